"""Text helpers: sentence units, boundaries and raw overlapping windows."""

from __future__ import annotations

import re
from typing import Iterator, List, Tuple

# A unit is a run of non-terminators closed by terminators plus trailing
# whitespace, or the unterminated tail of the text.
_SENTENCE_UNIT = re.compile(r"[^.!?]+(?:[.!?]+\s*|$)|[.!?]+\s*")
_SENTENCE_END = re.compile(r"[.!?]+\s*")
_WHITESPACE = re.compile(r"\s")


def split_sentences(text: str) -> List[str]:
    """Split text into sentence-like units without dropping any character.

    ``"".join(split_sentences(text)) == text`` always holds.
    """
    if not text:
        return []
    return [match.group(0) for match in _SENTENCE_UNIT.finditer(text) if match.group(0)]


def sentence_boundaries(text: str) -> List[int]:
    """Offsets at which a new sentence starts (excluding 0 and ``len(text)``)."""
    return [match.end() for match in _SENTENCE_END.finditer(text) if 0 < match.end() < len(text)]


def trailing_overlap(text: str, size: int) -> str:
    """Return the trailing context of ``text`` to repeat at the start of the next chunk.

    The window is the last ``size`` characters, moved forward to the first
    sentence start inside it when there is one. Otherwise it is widened back
    to the nearest sentence start before it, so the seed never begins
    mid-sentence while a boundary exists. The raw window is the fallback.
    """
    if size <= 0:
        return ""
    if len(text) <= size:
        return text
    window_start = len(text) - size
    preceding = None
    for boundary in sentence_boundaries(text):
        if boundary >= window_start:
            return text[boundary:]
        preceding = boundary
    if preceding is not None:
        return text[preceding:]
    return text[window_start:]


def chunk_text(
    text: str, *, max_chars: int = 1200, overlap: int = 200, min_chars: int = 0
) -> Iterator[Tuple[int, int]]:
    """Yield ``(start, end)`` spans of overlapping character windows.

    Windows end just after a whitespace character when one lies past
    ``min_chars`` into the window; the next window starts ``overlap``
    characters earlier, advanced to a word start where possible. Every
    character of ``text`` is covered and the last span ends at ``len(text)``.
    """
    if not text:
        return
    length = len(text)
    start = 0
    while start < length:
        end = min(start + max_chars, length)
        if end < length:
            floor = start + min_chars
            cut = _last_whitespace(text, floor, end)
            if cut is not None and cut + 1 > start:
                end = cut + 1
        yield start, end
        if end >= length:
            return
        next_start = max(end - overlap, start + 1) if overlap > 0 else end
        if next_start < end:
            match = _WHITESPACE.search(text, next_start, end)
            if match is not None and match.end() < end:
                next_start = match.end()
        start = next_start


def _last_whitespace(text: str, lower: int, upper: int) -> int | None:
    for index in range(upper - 1, lower - 1, -1):
        if text[index].isspace():
            return index
    return None


def line_number(text: str, offset: int) -> int:
    """Zero-based line number of the character at ``offset``."""
    return text.count("\n", 0, max(offset, 0))
