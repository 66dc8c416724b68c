from typing import Dict, List, Optional

from psycopg2.extensions import connection as PGConnection
from psycopg2.extras import DictCursor

_CARD_COLUMNS = """
    c.id, c.set_id, c.position, c.question, c.answer, c.difficulty,
    c.review_count, c.last_reviewed, c.is_starred
"""


def _card_from_row(row) -> Dict:
    return {
        "id": str(row["id"]),
        "question": row["question"],
        "answer": row["answer"],
        "difficulty": row["difficulty"],
        "reviewCount": row["review_count"],
        "lastReviewed": row["last_reviewed"],
        "isStarred": row["is_starred"],
    }


def create_flashcard_set(
    conn: PGConnection, user_id: str, document_id: str, cards: List[Dict]
) -> Dict:
    """
    Save a generated set of flashcards
    Returns: the set with its stored cards
    """
    with conn.cursor(cursor_factory=DictCursor) as cursor:
        cursor.execute(
            """
            INSERT INTO flashcard_sets (user_id, document_id)
            VALUES (%s, %s)
            RETURNING id, user_id, document_id, created_at;
            """,
            (user_id, document_id),
        )
        flashcard_set = cursor.fetchone()

        stored = []
        for position, card in enumerate(cards):
            cursor.execute(
                """
                INSERT INTO flashcards AS c (set_id, position, question, answer, difficulty)
                VALUES (%s, %s, %s, %s, %s)
                RETURNING {columns};
                """.format(columns=_CARD_COLUMNS),
                (flashcard_set["id"], position, card["question"], card["answer"], card["difficulty"]),
            )
            stored.append(_card_from_row(cursor.fetchone()))
    conn.commit()

    return {
        "id": str(flashcard_set["id"]),
        "userId": str(flashcard_set["user_id"]),
        "documentId": str(flashcard_set["document_id"]),
        "createdAt": flashcard_set["created_at"],
        "cards": stored,
    }


def get_flashcard_sets(
    conn: PGConnection, user_id: str, document_id: Optional[str] = None
) -> List[Dict]:
    """
    The user's flashcard sets, newest first, optionally for one document
    """
    query = """
    SELECT s.id AS set_id, s.document_id, s.created_at, d.title AS document_title,
           {columns}
    FROM flashcard_sets s
    JOIN documents d ON d.id = s.document_id
    LEFT JOIN flashcards c ON c.set_id = s.id
    WHERE s.user_id = %s
    """.format(columns=_CARD_COLUMNS)
    params = [user_id]
    if document_id:
        query += " AND s.document_id = %s"
        params.append(document_id)
    query += " ORDER BY s.created_at DESC, c.position;"

    sets: Dict[str, Dict] = {}
    with conn.cursor(cursor_factory=DictCursor) as cursor:
        cursor.execute(query, params)
        for row in cursor.fetchall():
            set_id = str(row["set_id"])
            if set_id not in sets:
                sets[set_id] = {
                    "id": set_id,
                    "userId": user_id,
                    "documentId": str(row["document_id"]),
                    "document": {"id": str(row["document_id"]), "title": row["document_title"]},
                    "createdAt": row["created_at"],
                    "cards": [],
                }
            if row["id"] is not None:
                sets[set_id]["cards"].append(_card_from_row(row))
    return list(sets.values())


def get_flashcard_owner(conn: PGConnection, card_id: str) -> Optional[str]:
    """ Owner of the set a card belongs to, or None if the card does not exist """
    with conn.cursor() as cursor:
        cursor.execute(
            """
            SELECT s.user_id
            FROM flashcards c
            JOIN flashcard_sets s ON s.id = c.set_id
            WHERE c.id = %s;
            """,
            (card_id,),
        )
        result = cursor.fetchone()
        return str(result[0]) if result else None


def record_flashcard_review(conn: PGConnection, card_id: str) -> Optional[Dict]:
    query = """
    UPDATE flashcards AS c
    SET review_count = c.review_count + 1, last_reviewed = NOW()
    WHERE c.id = %s
    RETURNING {columns};
    """.format(columns=_CARD_COLUMNS)

    with conn.cursor(cursor_factory=DictCursor) as cursor:
        cursor.execute(query, (card_id,))
        result = cursor.fetchone()
    conn.commit()
    return _card_from_row(result) if result else None


def toggle_flashcard_star(conn: PGConnection, card_id: str) -> Optional[Dict]:
    query = """
    UPDATE flashcards AS c
    SET is_starred = NOT c.is_starred
    WHERE c.id = %s
    RETURNING {columns};
    """.format(columns=_CARD_COLUMNS)

    with conn.cursor(cursor_factory=DictCursor) as cursor:
        cursor.execute(query, (card_id,))
        result = cursor.fetchone()
    conn.commit()
    return _card_from_row(result) if result else None


def get_flashcard_set_owner(conn: PGConnection, set_id: str) -> Optional[str]:
    with conn.cursor() as cursor:
        cursor.execute("SELECT user_id FROM flashcard_sets WHERE id = %s;", (set_id,))
        result = cursor.fetchone()
        return str(result[0]) if result else None


def delete_flashcard_set(conn: PGConnection, set_id: str, user_id: str) -> bool:
    with conn.cursor() as cursor:
        cursor.execute(
            "DELETE FROM flashcard_sets WHERE id = %s AND user_id = %s RETURNING id;",
            (set_id, user_id),
        )
        deleted_id = cursor.fetchone()
    conn.commit()
    return deleted_id is not None
