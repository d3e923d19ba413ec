"""Tests for keyword search."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from obsidian_rag.index.search import NoteSearcher, compile_query, count_occurrences, score_note
from obsidian_rag.models import Note

STAMP = datetime(2024, 1, 1, tzinfo=timezone.utc)


def make_note(path: str, title: str = "", content: str = "", tags=()) -> Note:
    return Note(
        path=path,
        title=title,
        content=content,
        frontmatter={},
        tags=tuple(tags),
        links=(),
        created_at=STAMP,
        modified_at=STAMP,
    )


class TestScoreNote:
    """Test score_note function."""

    def test_weights(self) -> None:
        """Title hits count double, content single, tags add a fixed bonus."""
        note = make_note("a.md", "Cats and cats", "cats cats CATS", tags=["catlover"])

        result = score_note(note, "cat")

        assert result is not None
        assert result.score == 2 * 2 + 3 + 3
        assert result.matched_fields == ("title", "content", "tags")

    def test_tag_bonus_is_applied_once(self) -> None:
        note = make_note("a.md", tags=["spanish", "spanish-verbs"])

        result = score_note(note, "span")

        assert result.score == 3
        assert result.matched_fields == ("tags",)

    def test_no_match(self) -> None:
        assert score_note(make_note("a.md", "Dogs", "woof"), "cat") is None

    def test_non_overlapping_count(self) -> None:
        assert count_occurrences(compile_query("aa"), "aaaa") == 2


class TestNoteSearcher:
    """Test NoteSearcher.search."""

    @pytest.fixture
    def searcher(self) -> NoteSearcher:
        return NoteSearcher()

    def test_empty_query(self, searcher: NoteSearcher) -> None:
        """An empty query matches nothing."""
        notes = [make_note("a.md", "anything", "anything")]

        assert searcher.search("", notes) == []
        assert searcher.search("   ", notes) == []

    def test_excludes_non_matching(self, searcher: NoteSearcher) -> None:
        notes = [make_note("a.md", "Cats"), make_note("b.md", "Dogs")]

        results = searcher.search("cats", notes)

        assert [result.path for result in results] == ["a.md"]

    def test_case_insensitive(self, searcher: NoteSearcher) -> None:
        notes = [make_note("a.md", content="PYTHON tips")]

        assert searcher.search("python", notes)[0].score == 1

    def test_sorted_by_score(self, searcher: NoteSearcher) -> None:
        notes = [
            make_note("low.md", content="note"),
            make_note("high.md", "note", "note note"),
            make_note("mid.md", content="note note"),
        ]

        results = searcher.search("note", notes)

        assert [result.path for result in results] == ["high.md", "mid.md", "low.md"]
        assert [result.score for result in results] == [4, 2, 1]

    def test_ties_keep_input_order(self, searcher: NoteSearcher) -> None:
        notes = [make_note(f"{name}.md", content="same") for name in ("c", "a", "b")]

        results = searcher.search("same", notes)

        assert [result.path for result in results] == ["c.md", "a.md", "b.md"]

    def test_limit_applies_after_sorting(self, searcher: NoteSearcher) -> None:
        notes = [
            make_note("one.md", content="x"),
            make_note("five.md", content="x x x x x"),
            make_note("three.md", content="x x x"),
        ]

        results = searcher.search("x", notes, limit=2)

        assert [result.score for result in results] == [5, 3]

    @pytest.mark.parametrize("limit", [None, 0, -1])
    def test_no_limit(self, searcher: NoteSearcher, limit) -> None:
        notes = [make_note(f"{index}.md", content="x") for index in range(5)]

        assert len(searcher.search("x", notes, limit=limit)) == 5

    @pytest.mark.parametrize("query", ["c++", "(draft)", "a.b", "[x]"])
    def test_special_characters_are_literal(self, searcher: NoteSearcher, query: str) -> None:
        """Regex metacharacters in the query match themselves only."""
        notes = [make_note("hit.md", content=f"text {query} text"), make_note("miss.md", content="cb abb x")]

        results = searcher.search(query, notes)

        assert [result.path for result in results] == ["hit.md"]

    def test_multi_word_query_is_one_substring(self, searcher: NoteSearcher) -> None:
        notes = [make_note("a.md", content="cat food"), make_note("b.md", content="food for a cat")]

        results = searcher.search("cat food", notes)

        assert [result.path for result in results] == ["a.md"]

    def test_only_matching_notes_are_returned(self, searcher: NoteSearcher) -> None:
        notes = [
            make_note("a.md", "Alpha", "first"),
            make_note("b.md", "Beta", "second", tags=["alphabet"]),
            make_note("c.md", "Gamma", "third"),
        ]

        for result in searcher.search("alpha", notes):
            note = result.note
            assert (
                "alpha" in note.title.lower()
                or "alpha" in note.content.lower()
                or any("alpha" in tag.lower() for tag in note.tags)
            )
