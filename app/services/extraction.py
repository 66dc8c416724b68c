import logging
import re
import unicodedata
from typing import Dict

import fitz  # PyMuPDF

logger = logging.getLogger(__name__)

_LIGATURES = {
    "ﬁ": "fi", "ﬂ": "fl", "ﬀ": "ff", "ﬃ": "ffi", "ﬄ": "ffl",
    "‘": "'", "’": "'", "“": '"', "”": '"',
    "–": "-", "—": "-", "…": "...",
}


def normalize_unicode(text: str) -> str:
    """Normalize unicode and fix ligatures, quotes, dashes, etc."""
    text = unicodedata.normalize("NFKC", text)
    for wrong, right in _LIGATURES.items():
        text = text.replace(wrong, right)
    return text


def remove_control_characters(text: str) -> str:
    """Remove invisible or control characters, keeping line breaks and tabs."""
    return "".join(c for c in text if c in "\n\t" or unicodedata.category(c)[0] != "C")


def normalize_whitespace(text: str) -> str:
    """Normalize whitespace while preserving paragraph structure."""
    text = re.sub(r"[ \t]+", " ", text)
    text = re.sub(r"\n\s*\n\s*\n+", "\n\n", text)
    return text.strip()


def clean_page_text(text: str) -> str:
    return normalize_whitespace(remove_control_characters(normalize_unicode(text)))


def extract_text_from_pdf(file_path: str) -> Dict:
    """
    Extract text from a PDF file.

    Returns:
        dict: ``{"text": str, "numPages": int, "pages": [str, ...]}``

    Raises:
        RuntimeError: if the file cannot be opened or read as a PDF.
    """
    try:
        with fitz.open(file_path) as doc:
            pages = [clean_page_text(page.get_text()) for page in doc]
    except Exception as e:
        logger.error(f"PDF parsing error for {file_path}: {e}")
        raise RuntimeError("Failed to extract text from PDF") from e

    return {
        "text": "\n\n".join(page for page in pages if page),
        "numPages": len(pages),
        "pages": pages,
    }
