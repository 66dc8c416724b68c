import logging
from dotenv import load_dotenv

load_dotenv(dotenv_path=".env")

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from app.constants import ALLOWED_ORIGINS
from app.database.connection import PostgresPool
from app.errors import register_exception_handlers
from app.routes.ai import router as ai_router
from app.routes.documents import router as documents_router
from app.routes.flashcards import router as flashcards_router
from app.routes.quiz import router as quiz_router

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

logger = logging.getLogger(__name__)

app = FastAPI(
    title="ScholarMate Backend",
    description="Study aid API: PDF documents, generated flashcards and quizzes, quiz grading",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials="*" not in ALLOWED_ORIGINS,
    allow_methods=["GET", "POST", "PATCH", "PUT", "DELETE"],
    allow_headers=["Content-Type", "Authorization"],
)

register_exception_handlers(app)


@app.get("/")
def read_root():
    return {"success": True, "message": "ScholarMate API is running"}


@app.on_event("startup")
def open_database_pool():
    app.state.db = PostgresPool.from_env()
    logger.info("Database pool ready")


@app.on_event("shutdown")
def close_database_pool():
    db = getattr(app.state, "db", None)
    if db is not None:
        db.close()


app.include_router(documents_router)
app.include_router(ai_router)
app.include_router(quiz_router)
app.include_router(flashcards_router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=8000)
