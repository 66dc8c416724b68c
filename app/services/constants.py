import os

USER_ROLE = "user"
ASSISTANT_ROLE = "assistant"

OLLAMA_BASE_URL = os.getenv("OLLAMA_BASE_URL", "http://localhost:11434/v1")
OLLAMA_MODEL = os.getenv("OLLAMA_MODEL", "llama3.2:3b")

# seconds
GENERATION_TIMEOUT = float(os.getenv("GENERATION_TIMEOUT", 60))
TEXT_TIMEOUT = float(os.getenv("TEXT_TIMEOUT", 30))

DEFAULT_FLASHCARD_COUNT = 10
DEFAULT_QUIZ_QUESTIONS = 5

DIFFICULTY_LEVELS = ("easy", "medium", "hard")
DEFAULT_DIFFICULTY = "medium"

PLAIN_TEXT_SEPARATOR = "---"
FALLBACK_QUIZ_TITLE = "Generated Quiz"
PLACEHOLDER_OPTIONS = ["Option A", "Option B", "Option C", "Option D"]
OPTIONS_PER_QUESTION = 4

SUMMARY_FALLBACK = "Summary could not be generated."
CHAT_FALLBACK = "Sorry, I couldn't generate a response."
EXPLANATION_FALLBACK = "Sorry, I couldn't generate an explanation."

# Characters of document text embedded in a generation prompt
MAX_PROMPT_CHARS = 12000
RELEVANT_CHUNK_LIMIT = 3
