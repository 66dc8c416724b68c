import logging
import os
import uuid
from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status
from psycopg2.extensions import connection as PGConnection

from app.auth.dependencies import get_current_user
from app.database.connection import get_db
from app.database.document_queries import (
    create_document_query,
    delete_document_by_id,
    get_document_by_id,
    get_documents_by_user,
    mark_document_failed,
    mark_document_ready,
    touch_document,
)
from app.routes.constants import MAX_UPLOAD_SIZE_MB, PDF_EXTENSIONS, UPLOAD_DIR
from app.routes.utils import ensure_owner, success, validate_id
from app.services.chunking import chunk_pages
from app.services.extraction import extract_text_from_pdf

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/documents", tags=["Documents"])


@router.post("/upload", status_code=status.HTTP_201_CREATED)
def upload_document(
    file: UploadFile = File(...),
    title: str = Form(None),
    current_user: str = Depends(get_current_user),
    conn: PGConnection = Depends(get_db),
):
    """ Store an uploaded PDF, extract its text and split it into chunks """
    filename = os.path.basename(file.filename or "")
    ext = filename.rsplit(".", 1)[-1].lower() if "." in filename else ""
    if ext not in PDF_EXTENSIONS:
        raise HTTPException(status_code=400, detail="Only PDF files are allowed")

    file_bytes = file.file.read()
    if not file_bytes:
        raise HTTPException(status_code=400, detail="Uploaded file is empty")
    if len(file_bytes) > MAX_UPLOAD_SIZE_MB * 1024 * 1024:
        raise HTTPException(status_code=400, detail=f"File exceeds the {MAX_UPLOAD_SIZE_MB}MB limit")

    os.makedirs(UPLOAD_DIR, exist_ok=True)
    stored_path = os.path.join(UPLOAD_DIR, f"{uuid.uuid4()}_{filename}")
    with open(stored_path, "wb") as f:
        f.write(file_bytes)

    document_title = (title or "").strip() or os.path.splitext(filename)[0]
    try:
        document = create_document_query(
            conn, current_user, document_title, filename, stored_path, len(file_bytes)
        )
    except Exception as e:
        logger.error(f"[Upload] Could not save document record for {filename}: {e}")
        try:
            os.remove(stored_path)
        except OSError as remove_error:
            logger.warning(f"[Upload] Could not remove stored file {stored_path}: {remove_error}")
        raise HTTPException(status_code=500, detail="Failed to save document")

    try:
        extracted = extract_text_from_pdf(stored_path)
        chunks = chunk_pages(extracted["pages"])
        mark_document_ready(conn, document["id"], extracted["text"], chunks)
    except Exception as e:
        logger.error(f"[Upload] Processing failed for document {document['id']}: {e}")
        conn.rollback()
        mark_document_failed(conn, document["id"])
        raise HTTPException(status_code=500, detail="Failed to extract text from PDF")

    logger.info(
        f"[Upload] Document {document['id']} ready: "
        f"{extracted['numPages']} pages, {len(chunks)} chunks"
    )
    document.update(status="ready", numPages=extracted["numPages"], chunkCount=len(chunks))
    return success(document, message="Document uploaded successfully")


@router.get("", status_code=status.HTTP_200_OK)
def list_documents(
    current_user: str = Depends(get_current_user),
    conn: PGConnection = Depends(get_db),
):
    documents = get_documents_by_user(conn, current_user)
    return success(documents, count=len(documents))


@router.get("/{document_id}", status_code=status.HTTP_200_OK)
def get_document(
    document_id: str,
    current_user: str = Depends(get_current_user),
    conn: PGConnection = Depends(get_db),
):
    document_id = validate_id(document_id, "document")
    document = get_document_by_id(conn, document_id)
    if not document:
        raise HTTPException(status_code=404, detail="Document not found")
    ensure_owner(document["userId"], current_user, "Unauthorized access to document")

    touch_document(conn, document_id)
    return success(document)


@router.delete("/{document_id}", status_code=status.HTTP_200_OK)
def delete_document(
    document_id: str,
    current_user: str = Depends(get_current_user),
    conn: PGConnection = Depends(get_db),
):
    """ Delete a document, its stored file and everything generated from it """
    document_id = validate_id(document_id, "document")
    document = get_document_by_id(conn, document_id)
    if not document:
        raise HTTPException(status_code=404, detail="Document not found")
    ensure_owner(document["userId"], current_user, "Unauthorized to delete this document")

    file_path = delete_document_by_id(conn, document_id, current_user)
    if file_path and os.path.exists(file_path):
        try:
            os.remove(file_path)
        except OSError as e:
            logger.warning(f"[Delete] Could not remove stored file {file_path}: {e}")

    return success(message="Document deleted successfully")
