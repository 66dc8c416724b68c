import json
from typing import Dict, List

from psycopg2.extensions import connection as PGConnection
from psycopg2.extras import DictCursor


def insert_chat_messages(
    conn: PGConnection, user_id: str, document_id: str, messages: List[Dict]
) -> List[Dict]:
    """
    Append messages to a document's chat history in the given order
    """
    stored = []
    with conn.cursor(cursor_factory=DictCursor) as cursor:
        for message in messages:
            cursor.execute(
                """
                INSERT INTO chat_messages (user_id, document_id, role, content, relevant_chunks)
                VALUES (%s, %s, %s, %s, %s)
                RETURNING id, role, content, relevant_chunks, created_at;
                """,
                (
                    user_id,
                    document_id,
                    message["role"],
                    message["content"],
                    json.dumps(message.get("relevantChunks", [])),
                ),
            )
            stored.append(_message_from_row(cursor.fetchone()))
    conn.commit()
    return stored


def get_chat_history(conn: PGConnection, user_id: str, document_id: str) -> List[Dict]:
    with conn.cursor(cursor_factory=DictCursor) as cursor:
        cursor.execute(
            """
            SELECT id, role, content, relevant_chunks, created_at
            FROM chat_messages
            WHERE user_id = %s AND document_id = %s
            ORDER BY created_at;
            """,
            (user_id, document_id),
        )
        return [_message_from_row(row) for row in cursor.fetchall()]


def _message_from_row(row) -> Dict:
    relevant = row["relevant_chunks"]
    if isinstance(relevant, str):
        relevant = json.loads(relevant)
    return {
        "id": str(row["id"]),
        "role": row["role"],
        "content": row["content"],
        "relevantChunks": relevant or [],
        "timestamp": row["created_at"],
    }
