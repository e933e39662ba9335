"""Text chunking for the indexing pipeline.

Splits extracted document text into sentence-aligned chunks small enough for
a single embedding request per chunk.
"""

import re
import textwrap

DEFAULT_CHUNK_SIZE = 2000   # characters per chunk
MIN_CHUNK_LENGTH = 50       # shorter chunks are dropped

_WHITESPACE = re.compile(r"\s+")
_SENTENCE_BOUNDARY = re.compile(r"(?<=[.!?])\s+")


def normalize_text(text: str) -> str:
    """Collapse every run of whitespace (blank lines included) to one space and trim."""
    return _WHITESPACE.sub(" ", text or "").strip()


def _split_sentences(text: str) -> list[str]:
    # the terminator stays attached to its sentence
    return [sentence for sentence in _SENTENCE_BOUNDARY.split(text) if sentence]


def _fit_sentence(sentence: str, max_chunk_size: int) -> list[str]:
    if len(sentence) <= max_chunk_size:
        return [sentence]
    return textwrap.wrap(sentence, width=max_chunk_size, break_on_hyphens=False)


def chunk_text(text: str, max_chunk_size: int = DEFAULT_CHUNK_SIZE) -> list[str]:
    """Split text into ordered, sentence-aligned chunks.

    Text that fits into one chunk is returned as a single normalized chunk.
    Longer text is split on sentence boundaries and sentences are packed
    greedily, joined by a single space. A sentence longer than the limit is
    wrapped on word boundaries. Chunks shorter than MIN_CHUNK_LENGTH are
    dropped.

    Args:
        text (str): The extracted document text.
        max_chunk_size (int): Maximum characters per chunk.

    Returns:
        list[str]: The chunks in document order.

    Raises:
        ValueError: If max_chunk_size is not positive.
    """
    if max_chunk_size <= 0:
        raise ValueError(f"max_chunk_size must be positive, got {max_chunk_size}.")

    normalized = normalize_text(text)
    if len(normalized) <= max_chunk_size:
        return [normalized]

    chunks: list[str] = []
    buffer = ""
    for sentence in _split_sentences(normalized):
        for piece in _fit_sentence(sentence, max_chunk_size):
            if not buffer:
                buffer = piece
            elif len(buffer) + 1 + len(piece) <= max_chunk_size:
                buffer = f"{buffer} {piece}"
            else:
                chunks.append(buffer)
                buffer = piece
    if buffer:
        chunks.append(buffer)

    return [chunk for chunk in chunks if len(chunk) >= MIN_CHUNK_LENGTH]
