"""
Free-text generation: summaries, document chat and concept explanations.

Unlike quiz and flashcard generation these calls never raise on a backend
failure. The error is logged and a fixed apologetic reply is returned.
"""
import logging
from typing import Dict, List

from app.services.constants import (
    CHAT_FALLBACK,
    EXPLANATION_FALLBACK,
    MAX_PROMPT_CHARS,
    SUMMARY_FALLBACK,
    TEXT_TIMEOUT,
)
from app.services.models import GenerationServiceError, get_reply_from_model
from app.services.prompts import CHAT_PROMPT, EXPLAIN_CONCEPT_PROMPT, SUMMARY_PROMPT

logger = logging.getLogger(__name__)


def _join_chunks(chunks: List[Dict]) -> str:
    return "\n\n".join(chunk["content"] for chunk in chunks)


def generate_summary(content: str) -> str:
    try:
        reply = get_reply_from_model(
            SUMMARY_PROMPT.format(content=content[:MAX_PROMPT_CHARS]),
            timeout=TEXT_TIMEOUT,
        )
    except GenerationServiceError as e:
        logger.error(f"Summary generation error: {e}")
        return SUMMARY_FALLBACK
    return reply.strip() or SUMMARY_FALLBACK


def chat_with_context(question: str, relevant_chunks: List[Dict]) -> str:
    prompt = CHAT_PROMPT.format(context=_join_chunks(relevant_chunks), question=question)
    try:
        reply = get_reply_from_model(prompt, timeout=TEXT_TIMEOUT)
    except GenerationServiceError as e:
        logger.error(f"Chat generation error: {e}")
        return CHAT_FALLBACK
    return reply.strip() or CHAT_FALLBACK


def explain_concept(concept: str, relevant_chunks: List[Dict]) -> str:
    prompt = EXPLAIN_CONCEPT_PROMPT.format(concept=concept, context=_join_chunks(relevant_chunks))
    try:
        reply = get_reply_from_model(prompt, timeout=TEXT_TIMEOUT)
    except GenerationServiceError as e:
        logger.error(f"Explanation generation error: {e}")
        return EXPLANATION_FALLBACK
    return reply.strip() or EXPLANATION_FALLBACK
