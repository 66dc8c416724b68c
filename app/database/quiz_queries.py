import json
from typing import Dict, List, Optional

from psycopg2.extensions import connection as PGConnection
from psycopg2.extras import DictCursor

_QUIZ_COLUMNS = """
    q.id, q.user_id, q.document_id, q.title, q.questions, q.total_questions,
    q.user_answers, q.score, q.completed_at, q.created_at
"""


def _load_json(value):
    # jsonb comes back decoded; text columns from older rows do not
    if isinstance(value, str):
        return json.loads(value)
    return value


def _quiz_from_row(row) -> Dict:
    quiz = {
        "id": str(row["id"]),
        "userId": str(row["user_id"]),
        "documentId": str(row["document_id"]),
        "title": row["title"],
        "questions": _load_json(row["questions"]),
        "totalQuestions": row["total_questions"],
        "userAnswers": _load_json(row["user_answers"]) or [],
        "score": row["score"],
        "completedAt": row["completed_at"],
        "createdAt": row["created_at"],
    }
    if "document_title" in row.keys():
        quiz["document"] = {
            "id": str(row["document_id"]),
            "title": row["document_title"],
            "fileName": row["document_file_name"],
        }
    return quiz


def create_quiz(
    conn: PGConnection,
    user_id: str,
    document_id: str,
    title: str,
    questions: List[Dict],
) -> Dict:
    """
    Save a generated quiz
    Returns: the stored quiz
    """
    query = """
    INSERT INTO quizzes AS q (user_id, document_id, title, questions, total_questions)
    VALUES (%s, %s, %s, %s, %s)
    RETURNING {columns};
    """.format(columns=_QUIZ_COLUMNS)

    with conn.cursor(cursor_factory=DictCursor) as cursor:
        cursor.execute(
            query,
            (user_id, document_id, title, json.dumps(questions), len(questions))
        )
        result = cursor.fetchone()
    conn.commit()
    return _quiz_from_row(result)


def get_quiz_by_id(conn: PGConnection, quiz_id: str) -> Optional[Dict]:
    """
    Retrieve a quiz with its document's title, regardless of owner.
    Ownership is checked by the caller.
    """
    query = """
    SELECT {columns}, d.title AS document_title, d.file_name AS document_file_name
    FROM quizzes q
    JOIN documents d ON d.id = q.document_id
    WHERE q.id = %s;
    """.format(columns=_QUIZ_COLUMNS)

    with conn.cursor(cursor_factory=DictCursor) as cursor:
        cursor.execute(query, (quiz_id,))
        result = cursor.fetchone()
        return _quiz_from_row(result) if result else None


def get_quizzes_by_document(conn: PGConnection, user_id: str, document_id: str) -> List[Dict]:
    """
    All quizzes the user generated for a document, newest first
    """
    query = """
    SELECT {columns}, d.title AS document_title, d.file_name AS document_file_name
    FROM quizzes q
    JOIN documents d ON d.id = q.document_id
    WHERE q.user_id = %s AND q.document_id = %s
    ORDER BY q.created_at DESC;
    """.format(columns=_QUIZ_COLUMNS)

    with conn.cursor(cursor_factory=DictCursor) as cursor:
        cursor.execute(query, (user_id, document_id))
        return [_quiz_from_row(row) for row in cursor.fetchall()]


def complete_quiz(
    conn: PGConnection,
    quiz_id: str,
    user_id: str,
    user_answers: List[Dict],
    score: int,
) -> Optional[Dict]:
    """
    Record a submission only if the quiz has not been completed yet.

    The completed_at check and the write happen in one statement, so of two
    concurrent submissions exactly one succeeds.
    Returns: the updated quiz, or None if it was already completed
    """
    query = """
    UPDATE quizzes AS q
    SET user_answers = %s, score = %s, completed_at = NOW()
    WHERE q.id = %s AND q.user_id = %s AND q.completed_at IS NULL
    RETURNING {columns};
    """.format(columns=_QUIZ_COLUMNS)

    with conn.cursor(cursor_factory=DictCursor) as cursor:
        cursor.execute(
            query,
            (json.dumps(user_answers, default=str), score, quiz_id, user_id)
        )
        result = cursor.fetchone()
    conn.commit()
    return _quiz_from_row(result) if result else None


def delete_quiz(conn: PGConnection, quiz_id: str, user_id: str) -> bool:
    """
    Delete a quiz owned by the user
    Returns: True if deleted, False if not found
    """
    query = """
    DELETE FROM quizzes
    WHERE id = %s AND user_id = %s
    RETURNING id;
    """

    with conn.cursor() as cursor:
        cursor.execute(query, (quiz_id, user_id))
        deleted_id = cursor.fetchone()
    conn.commit()
    return deleted_id is not None
