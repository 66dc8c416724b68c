import logging
from typing import Optional

from app.services.constants import DEFAULT_QUIZ_QUESTIONS, GENERATION_TIMEOUT, MAX_PROMPT_CHARS
from app.services.models import get_reply_from_model
from app.services.prompts import QUIZ_GENERATION_PROMPT
from app.services.response_parser import normalize_quiz

logger = logging.getLogger(__name__)


def build_quiz_prompt(content: str, count: int) -> str:
    return QUIZ_GENERATION_PROMPT.format(
        count=count,
        content=content[:MAX_PROMPT_CHARS],
    )


def generate_quiz(
    content: str,
    num_questions: int = DEFAULT_QUIZ_QUESTIONS,
    title: Optional[str] = None,
) -> dict:
    """
    Generate a quiz with exactly ``num_questions`` questions from document text.

    A title supplied by the caller wins over the one the model proposes.
    GenerationServiceError from the backend is propagated to the caller.
    """
    raw_response = get_reply_from_model(
        build_quiz_prompt(content, num_questions),
        json_mode=True,
        timeout=GENERATION_TIMEOUT,
    )

    quiz = normalize_quiz(raw_response, num_questions)
    if title and title.strip():
        quiz["title"] = title.strip()

    logger.info(f"Generated quiz '{quiz['title']}' with {len(quiz['questions'])} questions")
    return quiz
