from pydantic import BaseModel, Field


class DocumentRequest(BaseModel):
    documentId: str


class ChatRequest(BaseModel):
    documentId: str
    question: str = Field(..., min_length=1)


class ExplainConceptRequest(BaseModel):
    documentId: str
    concept: str = Field(..., min_length=1)
