import logging
from fastapi import APIRouter, Depends, HTTPException, status
from psycopg2.extensions import connection as PGConnection

from app.auth.dependencies import get_current_user
from app.database.connection import get_db
from app.database.flashcard_queries import (
    delete_flashcard_set,
    get_flashcard_owner,
    get_flashcard_set_owner,
    get_flashcard_sets,
    record_flashcard_review,
    toggle_flashcard_star,
)
from app.routes.utils import ensure_owner, success, validate_id

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/flashcards", tags=["Flashcards"])


def _check_card_owner(conn: PGConnection, card_id: str, user_id: str) -> None:
    owner = get_flashcard_owner(conn, card_id)
    if owner is None:
        raise HTTPException(status_code=404, detail="Flashcard not found")
    ensure_owner(owner, user_id, "Unauthorized access to flashcard")


@router.get("", status_code=status.HTTP_200_OK)
def list_flashcard_sets(
    current_user: str = Depends(get_current_user),
    conn: PGConnection = Depends(get_db),
):
    """ All flashcard sets of the current user """
    sets = get_flashcard_sets(conn, current_user)
    return success(sets, count=len(sets))


@router.get("/{document_id}", status_code=status.HTTP_200_OK)
def list_document_flashcards(
    document_id: str,
    current_user: str = Depends(get_current_user),
    conn: PGConnection = Depends(get_db),
):
    document_id = validate_id(document_id, "document")
    sets = get_flashcard_sets(conn, current_user, document_id)
    return success(sets, count=len(sets))


@router.post("/{card_id}/review", status_code=status.HTTP_200_OK)
def review_flashcard(
    card_id: str,
    current_user: str = Depends(get_current_user),
    conn: PGConnection = Depends(get_db),
):
    card_id = validate_id(card_id, "flashcard")
    _check_card_owner(conn, card_id, current_user)
    card = record_flashcard_review(conn, card_id)
    return success(card, message="Flashcard reviewed")


@router.patch("/{card_id}/star", status_code=status.HTTP_200_OK)
def star_flashcard(
    card_id: str,
    current_user: str = Depends(get_current_user),
    conn: PGConnection = Depends(get_db),
):
    card_id = validate_id(card_id, "flashcard")
    _check_card_owner(conn, card_id, current_user)
    card = toggle_flashcard_star(conn, card_id)
    message = "Flashcard starred" if card["isStarred"] else "Flashcard unstarred"
    return success(card, message=message)


@router.delete("/{set_id}", status_code=status.HTTP_200_OK)
def remove_flashcard_set(
    set_id: str,
    current_user: str = Depends(get_current_user),
    conn: PGConnection = Depends(get_db),
):
    set_id = validate_id(set_id, "flashcard set")
    owner = get_flashcard_set_owner(conn, set_id)
    if owner is None:
        raise HTTPException(status_code=404, detail="Flashcard set not found")
    ensure_owner(owner, current_user, "Unauthorized to delete this flashcard set")

    delete_flashcard_set(conn, set_id, current_user)
    return success(message="Flashcard set deleted successfully")
