from pydantic import BaseModel, Field, field_validator
from typing import List, Literal, Optional

from app.services.constants import DEFAULT_QUIZ_QUESTIONS


class QuizQuestion(BaseModel):
    question: str
    options: List[str] = Field(..., min_length=4, max_length=4)
    correctAnswer: str
    explanation: Optional[str] = None
    difficulty: Optional[Literal["easy", "medium", "hard"]] = None

    @field_validator("correctAnswer")
    @classmethod
    def correct_answer_is_an_option(cls, value, info):
        options = info.data.get("options") or []
        if options and value not in options:
            raise ValueError("correctAnswer must match one of the options")
        return value


class GenerateQuizRequest(BaseModel):
    documentId: str
    numQuestions: int = Field(DEFAULT_QUIZ_QUESTIONS, ge=1, le=50)
    title: Optional[str] = None


class SubmittedAnswer(BaseModel):
    questionIndex: int
    selectedAnswer: str


class QuizSubmission(BaseModel):
    answers: List[SubmittedAnswer]
