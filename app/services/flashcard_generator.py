import logging
from typing import List

from app.services.constants import DEFAULT_FLASHCARD_COUNT, GENERATION_TIMEOUT, MAX_PROMPT_CHARS
from app.services.models import get_reply_from_model
from app.services.prompts import FLASHCARD_GENERATION_PROMPT
from app.services.response_parser import normalize_flashcards

logger = logging.getLogger(__name__)


def build_flashcard_prompt(content: str, count: int) -> str:
    return FLASHCARD_GENERATION_PROMPT.format(
        count=count,
        content=content[:MAX_PROMPT_CHARS],
    )


def generate_flashcards(content: str, count: int = DEFAULT_FLASHCARD_COUNT) -> List[dict]:
    """
    Generate up to ``count`` flashcards from document text.

    GenerationServiceError from the backend is propagated to the caller;
    unusable output yields fewer (possibly zero) cards.
    """
    raw_response = get_reply_from_model(
        build_flashcard_prompt(content, count),
        json_mode=True,
        timeout=GENERATION_TIMEOUT,
    )

    cards = normalize_flashcards(raw_response, count)
    logger.info(f"Generated {len(cards)} out of {count} requested flashcards")
    return cards
