"""Tests for the chunking service."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, List

import pytest

from obsidian_rag.ingestion.chunking import ChunkingService, pack_sentences, split_sections
from obsidian_rag.models import ChunkOptions, DocumentChunk, Note

SCENARIO = "# Main\nIntro.\n\n## Section One\nContent one.\n\n## Section Two\nContent two."


def sentences(count: int, start: int = 0) -> str:
    return " ".join(f"Sentence number {index} is here." for index in range(start, start + count))


def rebuild(chunks: List[DocumentChunk]) -> str:
    """Join chunks back together, dropping each one's leading overlap."""
    return "".join(chunk.new_content for chunk in chunks)


def by_section(chunks: List[DocumentChunk]) -> Dict[str, List[DocumentChunk]]:
    grouped: Dict[str, List[DocumentChunk]] = {}
    for chunk in chunks:
        grouped.setdefault(chunk.metadata.header_context or "", []).append(chunk)
    return grouped


class TestSplitSections:
    """Test split_sections function."""

    def test_scenario_sections(self) -> None:
        sections = split_sections(SCENARIO)

        assert [section.header for section in sections] == ["Main", "Section One", "Section Two"]
        assert [section.level for section in sections] == [1, 2, 2]
        assert [(section.start_line, section.end_line) for section in sections] == [
            (0, 2),
            (3, 5),
            (6, 7),
        ]

    @pytest.mark.parametrize(
        "content",
        [
            SCENARIO,
            "Preamble\n\n# A\nbody",
            "# A\n# B",
            "# A\n\n# B\n",
            "\n# Only heading",
            "No headings at all\nsecond line",
        ],
    )
    def test_sections_rejoin_to_content(self, content: str) -> None:
        """Joining section texts with newlines gives back the content."""
        assert "\n".join(section.text for section in split_sections(content)) == content

    def test_preamble_has_no_header(self) -> None:
        preamble, heading = split_sections("Intro text\n# Title\nBody")

        assert preamble.header == ""
        assert preamble.level == 0
        assert heading.header == "Title"

    def test_heading_needs_text(self) -> None:
        """A lone '#' or '#tag' line is not a heading."""
        sections = split_sections("#\n#tag line\nplain")

        assert len(sections) == 1
        assert sections[0].header == ""


class TestChunkingService:
    """Test ChunkingService.chunk."""

    @pytest.fixture
    def service(self) -> ChunkingService:
        return ChunkingService()

    def test_empty_content(self, service: ChunkingService) -> None:
        assert service.chunk("", "note.md") == []
        assert service.chunk("   \n\n", "note.md") == []

    def test_header_scenario(self, service: ChunkingService) -> None:
        """Three small sections give three chunks tagged with their headings."""
        options = ChunkOptions(max_chunk_size=200, overlap_size=50, min_chunk_size=50)

        chunks = service.chunk(SCENARIO, "note.md", options)

        assert [chunk.metadata.header_context for chunk in chunks] == [
            "Main",
            "Section One",
            "Section Two",
        ]
        assert [chunk.metadata.header_level for chunk in chunks] == [1, 2, 2]
        assert all(chunk.metadata.chunk_index == 0 for chunk in chunks)
        assert all(chunk.metadata.note_id == "note.md" for chunk in chunks)
        assert chunks[0].content == "# Main\nIntro.\n"
        assert chunks[2].content == "## Section Two\nContent two."
        assert (chunks[1].metadata.start_line, chunks[1].metadata.end_line) == (3, 5)

    def test_short_content_is_one_chunk(self, service: ChunkingService) -> None:
        content = "Just a short note without headings."

        chunks = service.chunk(content, "n", ChunkOptions(max_chunk_size=100, overlap_size=10))

        assert len(chunks) == 1
        assert chunks[0].metadata.chunk_index == 0
        assert chunks[0].content == content
        assert chunks[0].metadata.header_context is None

    def test_content_of_exactly_max_size(self, service: ChunkingService) -> None:
        content = "x" * 100

        chunks = service.chunk(content, "n", ChunkOptions(max_chunk_size=100, overlap_size=10))

        assert len(chunks) == 1

    def test_blank_sections_are_skipped(self, service: ChunkingService) -> None:
        chunks = service.chunk("\n\n# Title\nBody", "n")

        assert len(chunks) == 1
        assert chunks[0].metadata.header_context == "Title"

    def test_long_section_round_trip(self, service: ChunkingService) -> None:
        """Stripping each chunk's overlap and concatenating rebuilds the section."""
        content = sentences(20)
        options = ChunkOptions(max_chunk_size=120, overlap_size=30, min_chunk_size=40)

        chunks = service.chunk(content, "n", options)

        assert len(chunks) > 1
        assert rebuild(chunks) == content
        assert [chunk.metadata.chunk_index for chunk in chunks] == list(range(len(chunks)))
        assert all(len(chunk.content) <= 120 for chunk in chunks)
        assert chunks[0].metadata.overlap == 0

    def test_consecutive_chunks_share_context(self, service: ChunkingService) -> None:
        content = sentences(20)
        options = ChunkOptions(max_chunk_size=120, overlap_size=30, min_chunk_size=40)

        chunks = service.chunk(content, "n", options)

        for previous, current in zip(chunks, chunks[1:]):
            shared = current.content[: current.metadata.overlap]
            assert 0 < len(shared) <= 30
            assert previous.content.endswith(shared)
            assert shared.startswith("Sentence")

    def test_zero_overlap(self, service: ChunkingService) -> None:
        content = sentences(20)
        options = ChunkOptions(max_chunk_size=120, overlap_size=0, min_chunk_size=40)

        chunks = service.chunk(content, "n", options)

        assert all(chunk.metadata.overlap == 0 for chunk in chunks)
        assert "".join(chunk.content for chunk in chunks) == content

    def test_round_trip_per_section(self, service: ChunkingService) -> None:
        """Chunk indices restart at 0 in every section."""
        first = "# First\n" + sentences(12)
        second = "## Second\n" + sentences(12, start=100)
        options = ChunkOptions(max_chunk_size=120, overlap_size=30, min_chunk_size=40)

        chunks = service.chunk(f"{first}\n{second}", "n", options)
        grouped = by_section(chunks)

        assert list(grouped) == ["First", "Second"]
        assert rebuild(grouped["First"]) == first
        assert rebuild(grouped["Second"]) == second
        for section_chunks in grouped.values():
            indices = [chunk.metadata.chunk_index for chunk in section_chunks]
            assert indices == list(range(len(section_chunks)))

    def test_unit_is_not_split(self, service: ChunkingService) -> None:
        """A sentence longer than the limit stays whole."""
        content = "x" * 500

        chunks = service.chunk(content, "n", ChunkOptions(max_chunk_size=100, overlap_size=10))

        assert [chunk.content for chunk in chunks] == [content]

    def test_force_append_below_minimum(self, service: ChunkingService) -> None:
        """Overflow below min_chunk_size appends instead of emitting."""
        content = sentences(6)
        options = ChunkOptions(max_chunk_size=60, overlap_size=10, min_chunk_size=1000)

        chunks = service.chunk(content, "n", options)

        assert len(chunks) == 1
        assert chunks[0].content == content

    def test_raw_mode(self, service: ChunkingService) -> None:
        """Without headers the body is windowed over characters."""
        content = "# Heading\n" + "word " * 100
        options = ChunkOptions(
            max_chunk_size=100, overlap_size=20, min_chunk_size=0, respect_headers=False
        )

        chunks = service.chunk(content, "n", options)

        assert len(chunks) > 1
        assert rebuild(chunks) == content
        assert all(chunk.metadata.header_context is None for chunk in chunks)
        assert all(len(chunk.content) <= 100 for chunk in chunks)
        assert [chunk.metadata.chunk_index for chunk in chunks] == list(range(len(chunks)))
        assert chunks[0].metadata.start_line == 0
        assert chunks[-1].metadata.end_line == 1

    def test_raw_mode_short_content(self, service: ChunkingService) -> None:
        options = ChunkOptions(max_chunk_size=100, overlap_size=10, respect_headers=False)

        chunks = service.chunk("# A\nshort", "n", options)

        assert len(chunks) == 1
        assert chunks[0].content == "# A\nshort"

    def test_service_default_options(self) -> None:
        service = ChunkingService(ChunkOptions(max_chunk_size=50, overlap_size=10, min_chunk_size=10))

        chunks = service.chunk(sentences(10), "n")

        assert len(chunks) > 1

    def test_chunk_note_uses_path(self, service: ChunkingService) -> None:
        stamp = datetime(2024, 1, 1, tzinfo=timezone.utc)
        note = Note(
            path="projects/alpha.md",
            title="Alpha",
            content="# Alpha\nText.",
            frontmatter={},
            tags=(),
            links=(),
            created_at=stamp,
            modified_at=stamp,
        )

        chunks = service.chunk_note(note)

        assert chunks[0].metadata.note_id == "projects/alpha.md"
        assert chunks[0].metadata.header_context == "Alpha"


class TestPackSentences:
    """Test pack_sentences function."""

    def test_parts_and_overlaps(self) -> None:
        text = "Aaaa aaaa. Bbbb bbbb. Cccc cccc. Dddd dddd."
        options = ChunkOptions(max_chunk_size=25, overlap_size=12, min_chunk_size=5)

        parts = pack_sentences(text, options)

        assert parts[0] == ("Aaaa aaaa. Bbbb bbbb. ", 0)
        assert parts[1] == ("Bbbb bbbb. Cccc cccc. ", 11)
        assert parts[2] == ("Cccc cccc. Dddd dddd.", 11)

    def test_overlap_starts_at_sentence_start(self) -> None:
        """A seed never begins mid-word when an earlier sentence start exists."""
        text = "Alpha beta gamma delta epsilon. Zeta eta theta iota kappa lambda mu. Nu xi omicron pi rho."
        options = ChunkOptions(max_chunk_size=70, overlap_size=20, min_chunk_size=10)

        parts = pack_sentences(text, options)

        assert len(parts) == 2
        assert parts[0] == ("Alpha beta gamma delta epsilon. Zeta eta theta iota kappa lambda mu. ", 0)
        chunk, overlap = parts[1]
        assert chunk.startswith("Zeta eta theta")
        assert overlap == len("Zeta eta theta iota kappa lambda mu. ")
        assert parts[0][0] + chunk[overlap:] == text
