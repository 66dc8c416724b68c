import logging
import re
from typing import Dict, List

logger = logging.getLogger(__name__)

_ABBREVIATIONS = {
    "mr", "mrs", "dr", "prof", "vs", "etc", "inc", "ltd", "jr", "sr", "st",
    "dept", "univ", "fig", "eq", "no", "e.g", "i.e",
}
_WORD = re.compile(r"[a-z0-9]+")


def chunk_text(
    text: str,
    chunk_size: int = 500,
    chunk_overlap: int = 50,
    max_chunks: int = 2000
) -> List[str]:
    """
    Splits text into overlapping chunks, preferring sentence boundaries.
    """
    if chunk_size <= 0:
        raise ValueError("chunk_size must be a positive integer.")
    if chunk_overlap < 0 or chunk_overlap >= chunk_size:
        raise ValueError("chunk_overlap must be >= 0 and less than chunk_size.")

    text = re.sub(r"\s+", " ", text or "").strip()
    if not text:
        return []
    if len(text) <= chunk_size:
        return [text]

    chunks = []
    start = 0
    while start < len(text) and len(chunks) < max_chunks:
        ideal_end = start + chunk_size
        if ideal_end >= len(text):
            chunks.append(text[start:].strip())
            break

        end = _find_split_point(text, start, ideal_end)
        chunk = text[start:end].strip()
        if chunk:
            chunks.append(chunk)

        next_start = max(start + 1, end - chunk_overlap)
        # Don't start the next chunk mid-word
        if next_start < len(text) and text[next_start - 1] != " ":
            space = text.find(" ", next_start)
            if space != -1 and space < end:
                next_start = space + 1
        start = next_start

    if start < len(text) and len(chunks) >= max_chunks:
        logger.warning(f"Reached max_chunks limit ({max_chunks}), remaining text was dropped")

    return chunks


def _find_split_point(text: str, start: int, ideal_end: int) -> int:
    floor = start + (ideal_end - start) // 2

    for i in range(ideal_end - 1, floor - 1, -1):
        if text[i] in ".!?" and text[i + 1] == " " and _is_sentence_end(text, i):
            return i + 1

    for i in range(ideal_end - 1, floor - 1, -1):
        if text[i] == " ":
            return i

    return ideal_end


def _is_sentence_end(text: str, pos: int) -> bool:
    if text[pos] != ".":
        return True
    word_start = text.rfind(" ", 0, pos) + 1
    word = text[word_start:pos].lower()
    if word in _ABBREVIATIONS:
        return False
    # Initials such as "A. Smith"
    return not (len(word) == 1 and word.isalpha())


def chunk_pages(pages: List[str], chunk_size: int = 500, chunk_overlap: int = 50) -> List[Dict]:
    """ Chunk each page separately so every chunk keeps its page number """
    chunks = []
    for page_number, page_text in enumerate(pages, start=1):
        for content in chunk_text(page_text, chunk_size, chunk_overlap):
            chunks.append(
                {
                    "content": content,
                    "pageNumber": page_number,
                    "chunkIndex": len(chunks),
                }
            )
    return chunks


def find_relevant_chunks(chunks: List[Dict], query: str, max_chunks: int = 3) -> List[Dict]:
    """
    Rank chunks by how many query words (longer than two characters) they contain.

    Falls back to the first ``max_chunks`` chunks when no chunk shares a word
    with the query, so a question always has some context.
    """
    if not chunks or max_chunks <= 0:
        return []

    query_words = {word for word in _WORD.findall((query or "").lower()) if len(word) > 2}
    if not query_words:
        return chunks[:max_chunks]

    scored = []
    for position, chunk in enumerate(chunks):
        content = chunk.get("content", "").lower()
        score = sum(content.count(word) for word in query_words)
        if score > 0:
            scored.append((score, position, chunk))

    if not scored:
        return chunks[:max_chunks]

    scored.sort(key=lambda item: (-item[0], item[1]))
    return [chunk for _, _, chunk in scored[:max_chunks]]
