"""
Normalization of raw model output into flashcards and quiz questions.

The generation backend is asked for JSON but small local models regularly
answer with a bare object, a wrapped list, fenced markdown or the plain text
block format described in the prompts. Output is first classified into an
``OutputShape`` and each normalizer then handles every shape explicitly.
Nothing in this module raises on malformed output; it degrades to empty or
placeholder records instead.
"""
import json
import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from app.services.constants import (
    DEFAULT_DIFFICULTY,
    DIFFICULTY_LEVELS,
    FALLBACK_QUIZ_TITLE,
    OPTIONS_PER_QUESTION,
    PLACEHOLDER_OPTIONS,
    PLAIN_TEXT_SEPARATOR,
)

logger = logging.getLogger(__name__)

_OPTION_FIELD = re.compile(r"^O([1-4])\s*:", re.IGNORECASE)


class OutputShape(str, Enum):
    ARRAY = "array"
    CARDS_OBJECT = "cards_object"
    QUESTIONS_OBJECT = "questions_object"
    SINGLE_RECORD = "single_record"
    OTHER_OBJECT = "other_object"
    PLAIN_TEXT = "plain_text"


@dataclass(frozen=True)
class ParsedOutput:
    shape: OutputShape
    records: List[Any] = field(default_factory=list)
    title: Optional[str] = None
    text: str = ""


def clean_response_content(raw_content: str) -> str:
    """
    Clean raw response content by removing markdown formatting
    """
    content = (raw_content or "").strip()

    fenced = content.startswith("```")
    if content.startswith("```json"):
        content = content[7:]
    elif fenced:
        content = content[3:]

    # Text after the closing fence is chatter, not part of the payload
    closing = content.rfind("```")
    if fenced and closing != -1:
        content = content[:closing]
    elif content.endswith("```"):
        content = content[:-3]

    return content.strip()


def classify_output(raw_content: str) -> ParsedOutput:
    """ Decode the model output once and tag it with the shape that was found """
    content = clean_response_content(raw_content)

    try:
        data = json.loads(content)
    except (json.JSONDecodeError, TypeError):
        return ParsedOutput(shape=OutputShape.PLAIN_TEXT, text=content)

    if isinstance(data, list):
        return ParsedOutput(shape=OutputShape.ARRAY, records=data)

    if isinstance(data, dict):
        title = data.get("title") if isinstance(data.get("title"), str) else None
        if isinstance(data.get("cards"), list):
            return ParsedOutput(shape=OutputShape.CARDS_OBJECT, records=data["cards"], title=title)
        if isinstance(data.get("questions"), list):
            return ParsedOutput(shape=OutputShape.QUESTIONS_OBJECT, records=data["questions"], title=title)
        if data.get("question") and data.get("answer"):
            return ParsedOutput(shape=OutputShape.SINGLE_RECORD, records=[data], title=title)
        return ParsedOutput(shape=OutputShape.OTHER_OBJECT, title=title)

    return ParsedOutput(shape=OutputShape.OTHER_OBJECT)


def normalize_difficulty(value: Any) -> str:
    if isinstance(value, str) and value.strip().lower() in DIFFICULTY_LEVELS:
        return value.strip().lower()
    return DEFAULT_DIFFICULTY


def _split_blocks(text: str) -> List[List[str]]:
    blocks = []
    for block in text.split(PLAIN_TEXT_SEPARATOR):
        lines = [line.strip() for line in block.splitlines() if line.strip()]
        if lines:
            blocks.append(lines)
    return blocks


def _field(lines: List[str], prefix: str) -> Optional[str]:
    """ Value of the first line starting with ``prefix`` """
    for line in lines:
        if line.startswith(prefix):
            return line[len(prefix):].strip()
    return None


# ---------- Flashcards ----------

def parse_flashcard_blocks(text: str) -> List[Dict[str, str]]:
    """Parse the ``Q:/A:/D:`` block format; blocks without Q or A are dropped."""
    cards = []
    for lines in _split_blocks(text):
        question = _field(lines, "Q:")
        answer = _field(lines, "A:")
        if not question or not answer:
            continue
        cards.append(
            {
                "question": question,
                "answer": answer,
                "difficulty": normalize_difficulty(_field(lines, "D:")),
            }
        )
    return cards


def _coerce_flashcard(record: Any) -> Optional[Dict[str, str]]:
    if not isinstance(record, dict):
        return None
    question = record.get("question")
    answer = record.get("answer")
    if not isinstance(question, str) or not question.strip():
        return None
    if not isinstance(answer, str) or not answer.strip():
        return None
    return {
        "question": question.strip(),
        "answer": answer.strip(),
        "difficulty": normalize_difficulty(record.get("difficulty")),
    }


def normalize_flashcards(raw_content: str, count: int) -> List[Dict[str, str]]:
    """
    Turn raw model output into at most ``count`` flashcards.

    Fewer cards than requested are returned as-is; flashcards are never padded.
    """
    if count <= 0:
        return []

    parsed = classify_output(raw_content)

    if parsed.shape in (OutputShape.ARRAY, OutputShape.CARDS_OBJECT, OutputShape.SINGLE_RECORD):
        records = parsed.records
    elif parsed.shape is OutputShape.PLAIN_TEXT:
        records = parse_flashcard_blocks(parsed.text)
    elif parsed.shape in (OutputShape.QUESTIONS_OBJECT, OutputShape.OTHER_OBJECT):
        logger.warning(f"Model output has no flashcards (shape={parsed.shape.value})")
        records = []
    else:
        raise AssertionError(f"Unhandled output shape: {parsed.shape}")

    cards = [card for card in map(_coerce_flashcard, records) if card is not None]
    if len(cards) < len(records):
        logger.warning(f"Dropped {len(records) - len(cards)} malformed flashcards")

    return cards[:count]


# ---------- Quiz ----------

def parse_quiz_blocks(text: str) -> List[Dict[str, Any]]:
    """Parse the ``Q:/O1:-O4:/C:/E:/D:`` block format; blocks without Q are dropped."""
    questions = []
    for lines in _split_blocks(text):
        question = _field(lines, "Q:")
        if not question:
            continue

        options: Dict[int, str] = {}
        for line in lines:
            match = _OPTION_FIELD.match(line)
            if match and int(match.group(1)) not in options:
                options[int(match.group(1))] = line[match.end():].strip()

        record: Dict[str, Any] = {
            "question": question,
            "options": [options[i] for i in sorted(options)],
        }
        correct = _field(lines, "C:")
        if correct:
            record["correctAnswer"] = correct
        explanation = _field(lines, "E:")
        if explanation:
            record["explanation"] = explanation
        difficulty = _field(lines, "D:")
        if difficulty:
            record["difficulty"] = difficulty
        questions.append(record)
    return questions


def placeholder_question(number: int) -> Dict[str, Any]:
    return {
        "question": f"Question {number}",
        "options": list(PLACEHOLDER_OPTIONS),
        "correctAnswer": PLACEHOLDER_OPTIONS[0],
    }


def resolve_correct_answer(value: Any, options: List[str]) -> str:
    """
    Map the model's notion of the correct answer onto one of ``options``.

    Accepts the exact option text, a case-insensitive match, a letter (A-D)
    or a 1-based option number. Anything else resolves to the first option.
    """
    if isinstance(value, int) and not isinstance(value, bool):
        value = str(value)
    if not isinstance(value, str) or not value.strip():
        return options[0]

    value = value.strip()
    if value in options:
        return value

    lowered = value.lower()
    for option in options:
        if option.lower() == lowered:
            return option

    key = lowered.rstrip(").:")
    if key.startswith("option "):
        key = key[len("option "):]
    if len(key) == 1 and "a" <= key <= "d":
        return options[ord(key) - ord("a")]
    if key.isdigit() and 1 <= int(key) <= len(options):
        return options[int(key) - 1]

    logger.warning(f"Correct answer {value!r} matches no option, using the first option")
    return options[0]


def validate_quiz_question(record: Any, number: int) -> Dict[str, Any]:
    """ Force a single question into the stored shape, keeping whatever is usable """
    if not isinstance(record, dict):
        return placeholder_question(number)

    question = record.get("question")
    if not isinstance(question, str) or not question.strip():
        question = f"Question {number}"

    options = record.get("options")
    if isinstance(options, list) and len(options) >= OPTIONS_PER_QUESTION:
        options = [str(option).strip() for option in options[:OPTIONS_PER_QUESTION]]
    else:
        options = list(PLACEHOLDER_OPTIONS)

    validated = {
        "question": question.strip(),
        "options": options,
        "correctAnswer": resolve_correct_answer(record.get("correctAnswer"), options),
    }

    explanation = record.get("explanation")
    if isinstance(explanation, str) and explanation.strip():
        validated["explanation"] = explanation.strip()
    if record.get("difficulty") is not None:
        validated["difficulty"] = normalize_difficulty(record.get("difficulty"))

    return validated


def normalize_quiz(raw_content: str, count: int) -> Dict[str, Any]:
    """
    Turn raw model output into a quiz with exactly ``count`` questions.

    Returns:
        dict: ``{"title": str, "questions": [...]}`` where every question has
        exactly four options and a correctAnswer equal to one of them.
    """
    parsed = classify_output(raw_content)
    title = FALLBACK_QUIZ_TITLE

    if parsed.shape is OutputShape.QUESTIONS_OBJECT:
        questions = list(parsed.records)
        title = parsed.title or FALLBACK_QUIZ_TITLE
    elif parsed.shape is OutputShape.ARRAY:
        questions = list(parsed.records)
    elif parsed.shape is OutputShape.PLAIN_TEXT:
        questions = parse_quiz_blocks(parsed.text)
        if not questions:
            logger.error(f"JSON parse failed, raw response: {parsed.text[:500]}")
    elif parsed.shape in (OutputShape.CARDS_OBJECT, OutputShape.SINGLE_RECORD, OutputShape.OTHER_OBJECT):
        logger.warning(f"Model output has no quiz questions (shape={parsed.shape.value})")
        questions = []
    else:
        raise AssertionError(f"Unhandled output shape: {parsed.shape}")

    count = max(count, 0)
    if len(questions) > count:
        questions = questions[:count]
    while len(questions) < count:
        questions.append(placeholder_question(len(questions) + 1))

    return {
        "title": title,
        "questions": [
            validate_quiz_question(record, index + 1)
            for index, record in enumerate(questions)
        ],
    }
