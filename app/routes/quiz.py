import logging
from fastapi import APIRouter, Body, Depends, HTTPException, status
from psycopg2.extensions import connection as PGConnection
from pydantic import ValidationError

from app.auth.dependencies import get_current_user
from app.database.connection import get_db
from app.database.quiz_queries import (
    complete_quiz,
    delete_quiz,
    get_quiz_by_id,
    get_quizzes_by_document,
)
from app.routes.utils import ensure_owner, success, validate_id
from app.schemas.quiz import QuizSubmission
from app.services.quiz_grader import build_detailed_results, grade_submission

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/quizzes", tags=["Quizzes"])


def _load_quiz(conn: PGConnection, quiz_id: str) -> dict:
    quiz = get_quiz_by_id(conn, quiz_id)
    if not quiz:
        raise HTTPException(status_code=404, detail="Quiz not found")
    return quiz


@router.get("/doc/{document_id}", status_code=status.HTTP_200_OK)
def list_document_quizzes(
    document_id: str,
    current_user: str = Depends(get_current_user),
    conn: PGConnection = Depends(get_db),
):
    """ List the user's quizzes for a document, newest first """
    document_id = validate_id(document_id, "document")
    try:
        quizzes = get_quizzes_by_document(conn, current_user, document_id)
        return success(quizzes, count=len(quizzes))
    except Exception as e:
        logger.error(f"[Quizzes] Failed to list quizzes for document {document_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to retrieve quizzes")


@router.get("/{quiz_id}", status_code=status.HTTP_200_OK)
def get_quiz(
    quiz_id: str,
    current_user: str = Depends(get_current_user),
    conn: PGConnection = Depends(get_db),
):
    quiz_id = validate_id(quiz_id, "quiz")
    quiz = _load_quiz(conn, quiz_id)
    ensure_owner(quiz["userId"], current_user, "Unauthorized access to quiz")
    return success(quiz)


@router.post("/{quiz_id}/submit", status_code=status.HTTP_200_OK)
def submit_quiz(
    quiz_id: str,
    payload: dict = Body(...),
    current_user: str = Depends(get_current_user),
    conn: PGConnection = Depends(get_db),
):
    """
    Grade and store a quiz submission. A quiz can be submitted once.
    """
    quiz_id = validate_id(quiz_id, "quiz")

    if not isinstance(payload.get("answers"), list):
        raise HTTPException(status_code=400, detail="Please provide answers array")
    try:
        submission = QuizSubmission(**payload)
    except ValidationError as e:
        logger.warning(f"[Submit] Malformed answers for quiz {quiz_id}: {e.errors()}")
        raise HTTPException(status_code=400, detail="Each answer needs a questionIndex and a selectedAnswer")

    quiz = _load_quiz(conn, quiz_id)
    ensure_owner(quiz["userId"], current_user, "Unauthorized to submit this quiz")
    if quiz["completedAt"]:
        raise HTTPException(status_code=400, detail="Quiz already completed")

    result = grade_submission(
        quiz["questions"],
        quiz["totalQuestions"],
        [answer.model_dump() for answer in submission.answers],
    )

    updated = complete_quiz(conn, quiz_id, current_user, result.user_answers, result.score)
    if updated is None:
        # Another submission completed the quiz after it was loaded
        logger.warning(f"[Submit] Concurrent submission rejected for quiz {quiz_id}")
        raise HTTPException(status_code=400, detail="Quiz already completed")

    if not result.is_complete:
        logger.info(
            f"[Submit] Quiz {quiz_id} submitted with {result.answered_count} "
            f"of {result.total_questions} questions answered"
        )

    return success(
        {
            "quizId": quiz_id,
            "score": result.score,
            "correctCount": result.correct_count,
            "totalQuestions": result.total_questions,
            "percentage": result.score,
            "answeredCount": result.answered_count,
            "isComplete": result.is_complete,
            "userAnswers": result.user_answers,
        },
        message="Quiz submitted successfully",
    )


@router.get("/{quiz_id}/results", status_code=status.HTTP_200_OK)
def get_quiz_results(
    quiz_id: str,
    current_user: str = Depends(get_current_user),
    conn: PGConnection = Depends(get_db),
):
    quiz_id = validate_id(quiz_id, "quiz")
    quiz = _load_quiz(conn, quiz_id)
    ensure_owner(quiz["userId"], current_user, "Unauthorized to view quiz results")
    if not quiz["completedAt"]:
        raise HTTPException(status_code=400, detail="Quiz not completed yet")

    return success(
        {
            "quiz": {
                "id": quiz["id"],
                "title": quiz["title"],
                "document": quiz.get("document"),
                "score": quiz["score"],
                "totalQuestions": quiz["totalQuestions"],
                "completedAt": quiz["completedAt"],
            },
            "results": build_detailed_results(quiz["questions"], quiz["userAnswers"]),
        }
    )


@router.delete("/{quiz_id}", status_code=status.HTTP_200_OK)
def remove_quiz(
    quiz_id: str,
    current_user: str = Depends(get_current_user),
    conn: PGConnection = Depends(get_db),
):
    quiz_id = validate_id(quiz_id, "quiz")
    quiz = _load_quiz(conn, quiz_id)
    ensure_owner(quiz["userId"], current_user, "Unauthorized to delete this quiz")

    if not delete_quiz(conn, quiz_id, current_user):
        raise HTTPException(status_code=404, detail="Quiz not found")
    return success(message="Quiz deleted successfully")
