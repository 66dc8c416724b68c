import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)


@dataclass
class GradeResult:
    correct_count: int
    score: int
    total_questions: int
    user_answers: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def answered_count(self) -> int:
        return len(self.user_answers)

    @property
    def is_complete(self) -> bool:
        """ Whether every question received an answer """
        return self.answered_count >= self.total_questions


def calculate_score(correct_count: int, total_questions: int) -> int:
    """
    Percentage of ``total_questions`` answered correctly, rounded half up.

    The denominator is the quiz's question count, not the number of answers
    submitted, so unanswered questions count as wrong.
    """
    if total_questions <= 0:
        return 0
    return int(correct_count * 100 / total_questions + 0.5)


def grade_submission(
    questions: List[Dict[str, Any]],
    total_questions: int,
    answers: List[Dict[str, Any]],
    answered_at: Optional[datetime] = None,
) -> GradeResult:
    """
    Grade a quiz submission.

    Args:
        questions (List[dict]): Stored questions, each with a ``correctAnswer``.
        total_questions (int): The quiz's declared question count.
        answers (List[dict]): Submitted ``{"questionIndex", "selectedAnswer"}`` pairs.
        answered_at (datetime): Timestamp recorded on every answer, defaults to now (UTC).

    Returns:
        GradeResult: Correct count, score and the recorded answers.

    Answers whose index falls outside the question list are skipped. When an
    index is answered more than once only the first answer counts.
    Comparison is exact and case-sensitive.
    """
    answered_at = answered_at or datetime.now(timezone.utc)

    correct_count = 0
    seen = set()
    user_answers = []

    for answer in answers:
        index = answer.get("questionIndex")
        if not isinstance(index, int) or isinstance(index, bool):
            continue
        if index < 0 or index >= len(questions):
            logger.info(f"Skipping answer for out-of-range question index {index}")
            continue
        if index in seen:
            logger.info(f"Skipping duplicate answer for question index {index}")
            continue
        seen.add(index)

        selected = answer.get("selectedAnswer")
        is_correct = selected == questions[index].get("correctAnswer")
        if is_correct:
            correct_count += 1

        user_answers.append(
            {
                "questionIndex": index,
                "selectedAnswer": selected,
                "isCorrect": is_correct,
                "answeredAt": answered_at,
            }
        )

    return GradeResult(
        correct_count=correct_count,
        score=calculate_score(correct_count, total_questions),
        total_questions=total_questions,
        user_answers=user_answers,
    )


def build_detailed_results(
    questions: List[Dict[str, Any]], user_answers: List[Dict[str, Any]]
) -> List[Dict[str, Any]]:
    """ Per-question breakdown for a completed quiz """
    by_index = {answer["questionIndex"]: answer for answer in user_answers}

    results = []
    for index, question in enumerate(questions):
        answer = by_index.get(index)
        results.append(
            {
                "questionIndex": index,
                "question": question.get("question"),
                "options": question.get("options", []),
                "correctAnswer": question.get("correctAnswer"),
                "selectedAnswer": answer["selectedAnswer"] if answer else None,
                "isCorrect": bool(answer and answer.get("isCorrect")),
                "explanation": question.get("explanation"),
            }
        )
    return results
