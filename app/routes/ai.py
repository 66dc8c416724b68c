import logging
from fastapi import APIRouter, Depends, HTTPException, status
from psycopg2.extensions import connection as PGConnection
from pydantic import ValidationError

from app.auth.dependencies import get_current_user
from app.database.chat_queries import get_chat_history, insert_chat_messages
from app.database.connection import get_db
from app.database.document_queries import get_document_by_id, get_document_chunks
from app.database.flashcard_queries import create_flashcard_set
from app.database.quiz_queries import create_quiz
from app.routes.utils import ensure_owner, success, validate_id
from app.schemas.chat import ChatRequest, DocumentRequest, ExplainConceptRequest
from app.schemas.flashcard import Flashcard, GenerateFlashcardsRequest
from app.schemas.quiz import GenerateQuizRequest, QuizQuestion
from app.services.chunking import find_relevant_chunks
from app.services.constants import ASSISTANT_ROLE, RELEVANT_CHUNK_LIMIT, USER_ROLE
from app.services.flashcard_generator import generate_flashcards
from app.services.models import GenerationServiceError
from app.services.quiz_generator import generate_quiz
from app.services.study_assistant import chat_with_context, explain_concept, generate_summary

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/ai", tags=["AI"])


def _load_ready_document(conn: PGConnection, document_id: str, user_id: str) -> dict:
    """ The user's document, which must have finished text extraction """
    document_id = validate_id(document_id, "document")
    document = get_document_by_id(conn, document_id)
    if not document:
        raise HTTPException(status_code=404, detail="Document not found")
    ensure_owner(document["userId"], user_id, "Unauthorized access to document")
    if document["status"] != "ready" or not document.get("extractedText", "").strip():
        raise HTTPException(status_code=400, detail="Document is not ready for processing")
    return document


def _validated(model, records: list) -> list:
    """ Run normalized records through the stored schema, dropping any that still fail """
    valid = []
    for i, record in enumerate(records):
        try:
            valid.append(model(**record).model_dump(exclude_none=True))
        except ValidationError as e:
            logger.warning(f"Invalid {model.__name__} at index {i}: {e.errors()}")
    return valid


@router.post("/generate-flashcards", status_code=status.HTTP_201_CREATED)
def generate_document_flashcards(
    request: GenerateFlashcardsRequest,
    current_user: str = Depends(get_current_user),
    conn: PGConnection = Depends(get_db),
):
    document = _load_ready_document(conn, request.documentId, current_user)
    try:
        cards = _validated(Flashcard, generate_flashcards(document["extractedText"], request.count))
        flashcard_set = create_flashcard_set(conn, current_user, document["id"], cards)
        logger.info(f"[Flashcards] Saved {len(cards)} cards for document {document['id']}")
        return success(flashcard_set, message="Flashcards generated successfully")
    except (HTTPException, GenerationServiceError):
        raise
    except Exception as e:
        logger.error(f"[Flashcards] Generation failed for document {document['id']}: {e}")
        raise HTTPException(status_code=500, detail="Failed to generate flashcards")


@router.post("/generate-quiz", status_code=status.HTTP_201_CREATED)
def generate_document_quiz(
    request: GenerateQuizRequest,
    current_user: str = Depends(get_current_user),
    conn: PGConnection = Depends(get_db),
):
    document = _load_ready_document(conn, request.documentId, current_user)
    try:
        generated = generate_quiz(document["extractedText"], request.numQuestions, request.title)
        questions = _validated(QuizQuestion, generated["questions"])
        quiz = create_quiz(conn, current_user, document["id"], generated["title"], questions)
        logger.info(f"[Quiz] Saved quiz {quiz['id']} for document {document['id']}")
        return success(quiz, message="Quiz generated successfully")
    except (HTTPException, GenerationServiceError):
        raise
    except Exception as e:
        logger.error(f"[Quiz] Generation failed for document {document['id']}: {e}")
        raise HTTPException(status_code=500, detail="Failed to generate quiz")


@router.post("/generate-summary", status_code=status.HTTP_200_OK)
def generate_document_summary(
    request: DocumentRequest,
    current_user: str = Depends(get_current_user),
    conn: PGConnection = Depends(get_db),
):
    document = _load_ready_document(conn, request.documentId, current_user)
    summary = generate_summary(document["extractedText"])
    return success({"documentId": document["id"], "title": document["title"], "summary": summary})


@router.post("/chat", status_code=status.HTTP_200_OK)
def chat(
    request: ChatRequest,
    current_user: str = Depends(get_current_user),
    conn: PGConnection = Depends(get_db),
):
    """ Answer a question about a document using its most relevant chunks """
    document = _load_ready_document(conn, request.documentId, current_user)
    try:
        chunks = get_document_chunks(conn, document["id"])
        relevant = find_relevant_chunks(chunks, request.question, RELEVANT_CHUNK_LIMIT)
        answer = chat_with_context(request.question, relevant)

        chunk_indices = [chunk["chunkIndex"] for chunk in relevant]
        insert_chat_messages(
            conn,
            current_user,
            document["id"],
            [
                {"role": USER_ROLE, "content": request.question},
                {"role": ASSISTANT_ROLE, "content": answer, "relevantChunks": chunk_indices},
            ],
        )
        history = get_chat_history(conn, current_user, document["id"])

        return success(
            {
                "question": request.question,
                "answer": answer,
                "relevantChunks": chunk_indices,
                "chatHistory": history,
            }
        )
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"[Chat] Failed for document {document['id']}: {e}")
        raise HTTPException(status_code=500, detail="Failed to process chat request")


@router.post("/explain-concept", status_code=status.HTTP_200_OK)
def explain_document_concept(
    request: ExplainConceptRequest,
    current_user: str = Depends(get_current_user),
    conn: PGConnection = Depends(get_db),
):
    document = _load_ready_document(conn, request.documentId, current_user)
    chunks = get_document_chunks(conn, document["id"])
    relevant = find_relevant_chunks(chunks, request.concept, RELEVANT_CHUNK_LIMIT)
    explanation = explain_concept(request.concept, relevant)

    return success(
        {
            "concept": request.concept,
            "explanation": explanation,
            "relevantChunks": [chunk["chunkIndex"] for chunk in relevant],
        }
    )


@router.get("/chat-history/{document_id}", status_code=status.HTTP_200_OK)
def get_document_chat_history(
    document_id: str,
    current_user: str = Depends(get_current_user),
    conn: PGConnection = Depends(get_db),
):
    document_id = validate_id(document_id, "document")
    messages = get_chat_history(conn, current_user, document_id)
    return success(messages, count=len(messages))
