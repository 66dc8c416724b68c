from pydantic import BaseModel, Field
from typing import Literal

from app.services.constants import DEFAULT_FLASHCARD_COUNT


class Flashcard(BaseModel):
    question: str = Field(..., min_length=1)
    answer: str = Field(..., min_length=1)
    difficulty: Literal["easy", "medium", "hard"] = "medium"


class GenerateFlashcardsRequest(BaseModel):
    documentId: str
    count: int = Field(DEFAULT_FLASHCARD_COUNT, ge=0, le=100)
