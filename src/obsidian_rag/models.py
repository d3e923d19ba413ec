"""Core obsidian-rag data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple

UNTITLED = "Untitled"

FIELD_TITLE = "title"
FIELD_CONTENT = "content"
FIELD_TAGS = "tags"


@dataclass(frozen=True, slots=True)
class Frontmatter:
    """Structured view of a note's metadata block.

    Well-known keys are normalized into typed fields. Everything else is kept
    verbatim in ``extra``.
    """

    title: Optional[str] = None
    tags: Tuple[str, ...] = ()
    aliases: Tuple[str, ...] = ()
    created: Optional[datetime] = None
    updated: Optional[datetime] = None
    extra: Mapping[str, Any] = field(default_factory=dict)
    raw: Mapping[str, Any] = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return not self.raw


@dataclass(frozen=True, slots=True)
class Note:
    """One parsed markdown file from the vault."""

    path: str
    title: str
    content: str
    frontmatter: Mapping[str, Any]
    tags: Tuple[str, ...]
    links: Tuple[str, ...]
    created_at: datetime
    modified_at: datetime
    metadata: Frontmatter = field(default_factory=Frontmatter, compare=False, repr=False)

    def __post_init__(self) -> None:
        if not isinstance(self.frontmatter, MappingProxyType):
            object.__setattr__(self, "frontmatter", MappingProxyType(dict(self.frontmatter)))
        object.__setattr__(self, "tags", tuple(self.tags))
        object.__setattr__(self, "links", tuple(self.links))

    def has_tag(self, tag: str) -> bool:
        wanted = tag.lower()
        return any(existing.lower() == wanted for existing in self.tags)

    def matches_query(self, query: str) -> bool:
        needle = query.lower()
        return needle in self.title.lower() or needle in self.content.lower()

    @property
    def folder(self) -> str:
        head, _, _ = self.path.rpartition("/")
        return head

    @property
    def aliases(self) -> Tuple[str, ...]:
        return self.metadata.aliases


@dataclass(frozen=True, slots=True)
class SearchResult:
    """A note ranked against a query. Never persisted."""

    note: Note
    score: int
    matched_fields: Tuple[str, ...]

    @property
    def path(self) -> str:
        return self.note.path

    @property
    def title(self) -> str:
        return self.note.title


@dataclass(frozen=True, slots=True)
class ChunkMetadata:
    note_id: str
    chunk_index: int
    start_line: int
    end_line: int
    header_context: Optional[str] = None
    header_level: Optional[int] = None
    overlap: int = 0

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "note_id": self.note_id,
            "chunk_index": self.chunk_index,
            "start_line": self.start_line,
            "end_line": self.end_line,
            "overlap": self.overlap,
        }
        if self.header_context is not None:
            payload["header_context"] = self.header_context
            payload["header_level"] = self.header_level
        return payload


@dataclass(frozen=True, slots=True)
class DocumentChunk:
    """Bounded segment of a note body, prepared for a downstream embedding step."""

    content: str
    metadata: ChunkMetadata

    @property
    def new_content(self) -> str:
        """Content without the leading overlap shared with the previous chunk."""
        return self.content[self.metadata.overlap :]


@dataclass(frozen=True, slots=True)
class ChunkOptions:
    """Sizes are in characters."""

    max_chunk_size: int = 2000
    overlap_size: int = 200
    min_chunk_size: int = 100
    respect_headers: bool = True

    def __post_init__(self) -> None:
        if self.max_chunk_size <= 0:
            raise ValueError(f"max_chunk_size must be positive, got {self.max_chunk_size}")
        if self.overlap_size < 0:
            raise ValueError(f"overlap_size must be non-negative, got {self.overlap_size}")
        if self.min_chunk_size < 0:
            raise ValueError(f"min_chunk_size must be non-negative, got {self.min_chunk_size}")
        if self.overlap_size >= self.max_chunk_size:
            raise ValueError(
                f"overlap_size ({self.overlap_size}) must be less than "
                f"max_chunk_size ({self.max_chunk_size})"
            )
