from typing import Dict, List, Optional

from psycopg2.extensions import connection as PGConnection
from psycopg2.extras import DictCursor, execute_values

_DOCUMENT_COLUMNS = """
    id, user_id, title, file_name, file_path, file_size, status,
    last_accessed, created_at, updated_at
"""


def _document_from_row(row) -> Dict:
    document = {
        "id": str(row["id"]),
        "userId": str(row["user_id"]),
        "title": row["title"],
        "fileName": row["file_name"],
        "filePath": row["file_path"],
        "fileSize": row["file_size"],
        "status": row["status"],
        "lastAccessed": row["last_accessed"],
        "createdAt": row["created_at"],
        "updatedAt": row["updated_at"],
    }
    if "extracted_text" in row.keys():
        document["extractedText"] = row["extracted_text"]
    return document


def create_document_query(
    conn: PGConnection,
    user_id: str,
    title: str,
    file_name: str,
    file_path: str,
    file_size: int,
) -> Dict:
    query = """
    INSERT INTO documents (user_id, title, file_name, file_path, file_size)
    VALUES (%s, %s, %s, %s, %s)
    RETURNING {columns};
    """.format(columns=_DOCUMENT_COLUMNS)

    with conn.cursor(cursor_factory=DictCursor) as cursor:
        cursor.execute(query, (user_id, title, file_name, file_path, file_size))
        result = cursor.fetchone()
    conn.commit()
    return _document_from_row(result)


def mark_document_ready(
    conn: PGConnection, document_id: str, extracted_text: str, chunks: List[Dict]
) -> None:
    """ Store extracted text and chunks and flip the status in one transaction """
    with conn.cursor() as cursor:
        cursor.execute("DELETE FROM document_chunks WHERE document_id = %s", (document_id,))
        if chunks:
            execute_values(
                cursor,
                """
                INSERT INTO document_chunks (document_id, chunk_index, page_number, content)
                VALUES %s
                """,
                [
                    (document_id, chunk["chunkIndex"], chunk["pageNumber"], chunk["content"])
                    for chunk in chunks
                ],
            )
        cursor.execute(
            """
            UPDATE documents
            SET extracted_text = %s, status = 'ready', updated_at = NOW()
            WHERE id = %s
            """,
            (extracted_text, document_id),
        )
    conn.commit()


def mark_document_failed(conn: PGConnection, document_id: str) -> None:
    with conn.cursor() as cursor:
        cursor.execute(
            "UPDATE documents SET status = 'failed', updated_at = NOW() WHERE id = %s",
            (document_id,),
        )
    conn.commit()


def get_documents_by_user(conn: PGConnection, user_id: str) -> List[Dict]:
    query = """
    SELECT {columns}
    FROM documents
    WHERE user_id = %s
    ORDER BY created_at DESC;
    """.format(columns=_DOCUMENT_COLUMNS)

    with conn.cursor(cursor_factory=DictCursor) as cursor:
        cursor.execute(query, (user_id,))
        return [_document_from_row(row) for row in cursor.fetchall()]


def get_document_by_id(conn: PGConnection, document_id: str) -> Optional[Dict]:
    """ Document including its extracted text; ownership is checked by the caller """
    query = """
    SELECT {columns}, extracted_text
    FROM documents
    WHERE id = %s;
    """.format(columns=_DOCUMENT_COLUMNS)

    with conn.cursor(cursor_factory=DictCursor) as cursor:
        cursor.execute(query, (document_id,))
        result = cursor.fetchone()
        return _document_from_row(result) if result else None


def get_document_chunks(conn: PGConnection, document_id: str) -> List[Dict]:
    query = """
    SELECT chunk_index, page_number, content
    FROM document_chunks
    WHERE document_id = %s
    ORDER BY chunk_index;
    """
    with conn.cursor(cursor_factory=DictCursor) as cursor:
        cursor.execute(query, (document_id,))
        return [
            {
                "content": row["content"],
                "pageNumber": row["page_number"],
                "chunkIndex": row["chunk_index"],
            }
            for row in cursor.fetchall()
        ]


def touch_document(conn: PGConnection, document_id: str) -> None:
    with conn.cursor() as cursor:
        cursor.execute(
            "UPDATE documents SET last_accessed = NOW() WHERE id = %s",
            (document_id,),
        )
    conn.commit()


def delete_document_by_id(conn: PGConnection, document_id: str, user_id: str) -> Optional[str]:
    """
    Delete a document owned by the user together with everything generated from it
    Returns: the stored file path, or None if nothing was deleted
    """
    query = """
    DELETE FROM documents
    WHERE id = %s AND user_id = %s
    RETURNING file_path;
    """
    with conn.cursor() as cursor:
        cursor.execute(query, (document_id, user_id))
        result = cursor.fetchone()
    conn.commit()
    return result[0] if result else None
