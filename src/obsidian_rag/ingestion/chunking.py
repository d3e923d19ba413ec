"""Split note bodies into bounded, overlapping chunks for embedding.

With ``respect_headers`` the body is first cut into sections at markdown
headings. A section that fits in ``max_chunk_size`` becomes one chunk; a
larger one is packed greedily from sentence-like units, each new chunk
starting with the tail of the previous one. Without ``respect_headers`` the
whole body is windowed over raw characters, breaking at whitespace.

Chunks of a section never lose text: dropping each chunk's leading
``metadata.overlap`` characters (all but the first) and concatenating gives
back the section exactly.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, replace
from typing import List, Optional

from obsidian_rag.models import ChunkMetadata, ChunkOptions, DocumentChunk, Note
from obsidian_rag.utils.text import chunk_text, line_number, split_sentences, trailing_overlap

LOGGER = logging.getLogger(__name__)

_HEADING = re.compile(r"^(#{1,6})\s+(.+)$")


@dataclass(slots=True)
class Section:
    """A heading (possibly none) and the lines up to the next heading."""

    header: str
    level: int
    heading_line: str
    body: str
    start_line: int
    end_line: int

    @property
    def text(self) -> str:
        if not self.heading_line:
            return self.body
        if self.start_line == self.end_line and not self.body:
            return self.heading_line
        return f"{self.heading_line}\n{self.body}"


def split_sections(content: str) -> List[Section]:
    """Partition ``content`` at heading lines (levels 1-6).

    Lines before the first heading form a section with an empty header.
    Joining every section's ``text`` with newlines reproduces ``content``.
    """
    sections: List[Section] = []
    current: Optional[Section] = None
    body_lines: List[str] = []

    def close() -> None:
        if current is not None:
            current.body = "\n".join(body_lines)
            sections.append(current)

    for index, line in enumerate(content.split("\n")):
        match = _HEADING.match(line)
        if match:
            close()
            current = Section(
                header=match.group(2).strip(),
                level=len(match.group(1)),
                heading_line=line,
                body="",
                start_line=index,
                end_line=index,
            )
            body_lines = []
            continue
        if current is None:
            current = Section(
                header="", level=0, heading_line="", body="", start_line=index, end_line=index
            )
        body_lines.append(line)
        current.end_line = index

    close()
    return sections


class ChunkingService:
    """Pure text-to-chunks transformation; holds no state between calls."""

    def __init__(self, options: ChunkOptions | None = None) -> None:
        self.options = options or ChunkOptions()

    def chunk(
        self, content: str, note_id: str, options: ChunkOptions | None = None
    ) -> List[DocumentChunk]:
        opts = options or self.options
        if not content or not content.strip():
            return []

        if not opts.respect_headers:
            return self._chunk_raw(content, note_id, opts)

        chunks: List[DocumentChunk] = []
        for section in split_sections(content):
            chunks.extend(self._chunk_section(section, note_id, opts))
        LOGGER.debug("Chunked %s into %d chunks", note_id, len(chunks))
        return chunks

    def chunk_note(self, note: Note, options: ChunkOptions | None = None) -> List[DocumentChunk]:
        return self.chunk(note.content, note.path, options)

    def _chunk_section(
        self, section: Section, note_id: str, opts: ChunkOptions
    ) -> List[DocumentChunk]:
        text = section.text
        if not text.strip():
            return []

        base = ChunkMetadata(
            note_id=note_id,
            chunk_index=0,
            start_line=section.start_line,
            end_line=section.end_line,
            header_context=section.header or None,
            header_level=section.level or None,
        )
        if len(text) <= opts.max_chunk_size:
            return [DocumentChunk(content=text, metadata=base)]

        return [
            DocumentChunk(content=part, metadata=replace(base, chunk_index=index, overlap=overlap))
            for index, (part, overlap) in enumerate(pack_sentences(text, opts))
        ]

    def _chunk_raw(self, content: str, note_id: str, opts: ChunkOptions) -> List[DocumentChunk]:
        chunks: List[DocumentChunk] = []
        previous_end = 0
        spans = chunk_text(
            content,
            max_chars=opts.max_chunk_size,
            overlap=opts.overlap_size,
            min_chars=opts.min_chunk_size,
        )
        for index, (start, end) in enumerate(spans):
            chunks.append(
                DocumentChunk(
                    content=content[start:end],
                    metadata=ChunkMetadata(
                        note_id=note_id,
                        chunk_index=index,
                        start_line=line_number(content, start),
                        end_line=line_number(content, end - 1),
                        overlap=max(previous_end - start, 0),
                    ),
                )
            )
            previous_end = end
        return chunks


def pack_sentences(text: str, opts: ChunkOptions) -> List[tuple[str, int]]:
    """Greedily pack sentence units into ``(chunk, overlap_length)`` pairs.

    A unit that would overflow ``max_chunk_size`` closes the current chunk
    only once it holds at least ``min_chunk_size`` characters; otherwise the
    unit is appended anyway rather than split mid-sentence.
    """
    parts: List[tuple[str, int]] = []
    current = ""
    overlap_length = 0

    for unit in split_sentences(text):
        if len(current) + len(unit) <= opts.max_chunk_size:
            current += unit
        elif current and len(current) >= opts.min_chunk_size:
            parts.append((current, overlap_length))
            seed = trailing_overlap(current, opts.overlap_size)
            overlap_length = len(seed)
            current = seed + unit
        else:
            current += unit

    if current:
        parts.append((current, overlap_length))
    return parts
