"""Keyword ranking of notes.

The query is matched as one contiguous, case-insensitive substring. There is
no per-word matching and no boolean combination: ``"cat food"`` only matches
text containing exactly ``cat food``.
"""

from __future__ import annotations

import re
from typing import Iterable, List, Optional

from obsidian_rag.models import FIELD_CONTENT, FIELD_TAGS, FIELD_TITLE, Note, SearchResult

TITLE_WEIGHT = 2
TAG_MATCH_BONUS = 3


def count_occurrences(pattern: re.Pattern[str], text: str) -> int:
    return sum(1 for _ in pattern.finditer(text))


def compile_query(query: str) -> re.Pattern[str]:
    # Escaped so that e.g. "c++" or "(draft)" are matched literally.
    return re.compile(re.escape(query), re.IGNORECASE)


def score_note(
    note: Note, query: str, pattern: re.Pattern[str] | None = None
) -> SearchResult | None:
    """Score one note; None when nothing matches."""
    pattern = pattern or compile_query(query)
    needle = query.lower()
    matched: List[str] = []
    score = 0

    title_hits = count_occurrences(pattern, note.title)
    if title_hits:
        matched.append(FIELD_TITLE)
        score += title_hits * TITLE_WEIGHT

    content_hits = count_occurrences(pattern, note.content)
    if content_hits:
        matched.append(FIELD_CONTENT)
        score += content_hits

    if any(needle in tag.lower() for tag in note.tags):
        matched.append(FIELD_TAGS)
        score += TAG_MATCH_BONUS

    if not matched:
        return None
    return SearchResult(note=note, score=score, matched_fields=tuple(matched))


class NoteSearcher:
    """Ranks an in-memory collection of notes against a free-text query."""

    def search(
        self, query: str, notes: Iterable[Note], limit: Optional[int] = None
    ) -> List[SearchResult]:
        if not query or not query.strip():
            return []

        pattern = compile_query(query)
        results: List[SearchResult] = []
        for note in notes:
            result = score_note(note, query, pattern)
            if result is not None:
                results.append(result)

        # sorted() is stable: equal scores keep input order.
        results = sorted(results, key=lambda result: result.score, reverse=True)
        if limit is not None and limit > 0:
            return results[:limit]
        return results
