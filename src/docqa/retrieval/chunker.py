"""
Document chunking with natural break points.

Splits raw document text into overlapping windows, preferring to end a
window at a sentence terminator or paragraph break when one falls in the
second half of the window.
"""

from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

SENTENCE_BREAK = ". "
PARAGRAPH_BREAK = "\n\n"

# A break point is only used when it lies beyond this fraction of the window.
BREAK_POINT_THRESHOLD = 0.5


@dataclass(frozen=True, eq=False)
class Chunk:
    """An embedded document chunk, the unit of retrieval."""

    id: str
    """Unique identifier, ``{document_id}_chunk_{sequence_index}``."""

    document_id: str
    """Back-reference to the owning document."""

    document_name: str
    """Display name of the owning document, used for source attribution."""

    text: str
    """The trimmed text content of the chunk."""

    embedding: NDArray[np.float32]
    """1-D embedding vector."""

    sequence_index: int
    """Position of the chunk within its document."""


def make_chunk_id(document_id: str, sequence_index: int) -> str:
    """Build the chunk identifier for a document position."""
    return f"{document_id}_chunk_{sequence_index}"


def split_text(
    text: str,
    chunk_size: int = 1000,
    overlap: int = 200,
) -> list[str]:
    """
    Split text into overlapping, trimmed chunks.

    A window of ``chunk_size`` characters slides over the text. When the
    window ends before the end of the text, it is shortened to the last
    ``". "`` or ``"\\n\\n"`` inside it, provided that break point lies beyond
    half of the window. The next window starts ``overlap`` characters
    before the end of the previous (untrimmed) one. Text that fits in a
    single window yields one chunk; longer text stops after the window
    that holds only its last ``overlap`` characters.

    Args:
        text: Raw document text
        chunk_size: Window size in characters
        overlap: Number of characters shared by consecutive windows

    Returns:
        Ordered list of non-empty, whitespace-trimmed chunks

    Raises:
        ValueError: If chunk_size <= 0, overlap < 0 or overlap >= chunk_size
    """
    if chunk_size <= 0:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")
    if overlap < 0:
        raise ValueError(f"overlap must be non-negative, got {overlap}")
    if overlap >= chunk_size:
        raise ValueError(
            f"overlap ({overlap}) must be less than chunk_size ({chunk_size})"
        )

    if not text:
        return []

    chunks: list[str] = []
    text_length = len(text)
    start = 0

    while start < text_length:
        end = min(start + chunk_size, text_length)
        window = text[start:end]

        if end < text_length:
            break_point = _find_break_point(window)
            if break_point > len(window) * BREAK_POINT_THRESHOLD:
                # Keep the terminating period (or first newline) in this chunk
                window = window[: break_point + 1]

        stripped = window.strip()
        if stripped:
            chunks.append(stripped)

        # Text that fits one window is one chunk. Longer text ends with a
        # window holding just the final `overlap` characters.
        if end >= text_length and (start == 0 or len(window) <= overlap):
            break

        # Shortened windows can be no longer than the overlap
        start += max(1, len(window) - overlap)

    return chunks


def _find_break_point(window: str) -> int:
    """
    Find the rightmost natural break in a window.

    Args:
        window: Text window to search

    Returns:
        Index of the last sentence or paragraph break, or -1 if none
    """
    return max(window.rfind(SENTENCE_BREAK), window.rfind(PARAGRAPH_BREAK))
