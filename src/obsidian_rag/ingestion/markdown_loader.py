"""Markdown note parsing.

Turns the raw text of one vault file into a :class:`~obsidian_rag.models.Note`:
frontmatter, title, tags (frontmatter plus inline ``#tags``) and wikilinks.
"""

from __future__ import annotations

import logging
import re
from typing import Iterable, List

from obsidian_rag.index.storage import FileStats
from obsidian_rag.ingestion.frontmatter import parse_frontmatter
from obsidian_rag.models import UNTITLED, Note

LOGGER = logging.getLogger(__name__)

_H1 = re.compile(r"^#[ \t]+(.+?)[ \t]*$", re.MULTILINE)
# A tag starts at line start or after whitespace / "(", so URL fragments and
# heading markers ("# Title") never match.
_INLINE_TAG = re.compile(r"(?<![^\s(])#([A-Za-z0-9_/-]+)")
_WIKILINK = re.compile(r"!?\[\[([^\]|]+)(?:\|[^\]]*)?\]\]")
_FENCE = re.compile(r"^(```|~~~).*?^\1[ \t]*$", re.MULTILINE | re.DOTALL)


def extract_title(frontmatter_title: str | None, body: str) -> str:
    """Frontmatter title, else first level-1 heading, else ``Untitled``."""
    if frontmatter_title:
        return frontmatter_title
    match = _H1.search(body)
    if match:
        return match.group(1)
    return UNTITLED


def extract_inline_tags(body: str) -> List[str]:
    """Inline ``#tags`` in order of first appearance, ignoring fenced code."""
    searchable = _FENCE.sub("", body)
    tags: List[str] = []
    for match in _INLINE_TAG.finditer(searchable):
        tag = match.group(1).rstrip("/")
        if tag and not tag.isdigit() and tag not in tags:
            tags.append(tag)
    return tags


def extract_links(body: str) -> List[str]:
    """Wikilink targets in order; ``[[target|alias]]`` keeps ``target``."""
    links: List[str] = []
    for match in _WIKILINK.finditer(body):
        target = match.group(1).strip()
        if target:
            links.append(target)
    return links


def merge_tags(*groups: Iterable[str]) -> List[str]:
    """Union of tag groups, de-duplicated case-insensitively, first spelling wins."""
    seen: set[str] = set()
    merged: List[str] = []
    for group in groups:
        for tag in group:
            folded = tag.lower()
            if folded in seen:
                continue
            seen.add(folded)
            merged.append(tag)
    return merged


def load_note(path: str, text: str, stats: FileStats) -> Note:
    """Parse one note.

    Raises:
        InvalidFrontmatterError: If the metadata block cannot be parsed.
    """
    metadata, body = parse_frontmatter(text, path)
    tags = merge_tags(metadata.tags, extract_inline_tags(body))
    note = Note(
        path=path,
        title=extract_title(metadata.title, body),
        content=body,
        frontmatter=metadata.raw,
        tags=tuple(tags),
        links=tuple(extract_links(body)),
        created_at=metadata.created or stats.created_at,
        modified_at=metadata.updated or stats.modified_at,
        metadata=metadata,
    )
    LOGGER.debug("Parsed %s (%d tags, %d links)", path, len(note.tags), len(note.links))
    return note
