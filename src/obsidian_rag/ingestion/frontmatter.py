"""YAML frontmatter splitting and normalization.

Obsidian notes may open with a ``---`` delimited YAML block. Only a handful of
keys have meaning to the engine (``title``, ``tags``, ``aliases``, ``created``,
``updated``); everything else is carried through untouched in ``extra``.
"""

from __future__ import annotations

import re
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Tuple

import yaml

from obsidian_rag.errors import InvalidFrontmatterError
from obsidian_rag.models import Frontmatter

WELL_KNOWN_KEYS = frozenset({"title", "tags", "aliases", "created", "updated"})

_BLOCK = re.compile(
    r"\A---[ \t]*\r?\n(?P<body>.*?)(?:^|\r?\n)---[ \t]*(?:\r?\n|\Z)",
    re.DOTALL | re.MULTILINE,
)


class _FrontmatterLoader(yaml.SafeLoader):
    """Safe loader that keeps an impossible timestamp (``2024-02-30``) as its string."""

    def construct_yaml_timestamp(self, node: yaml.Node) -> Any:
        try:
            return super().construct_yaml_timestamp(node)
        except ValueError:
            return self.construct_scalar(node)


_FrontmatterLoader.add_constructor(
    "tag:yaml.org,2002:timestamp", _FrontmatterLoader.construct_yaml_timestamp
)


def split_frontmatter(text: str) -> Tuple[Optional[str], str]:
    """Return ``(yaml_block, body)``; ``yaml_block`` is None when absent."""
    if text.startswith("\ufeff"):
        text = text[1:]
    match = _BLOCK.match(text)
    if match is None:
        return None, text
    return match.group("body"), text[match.end() :]


def parse_frontmatter(text: str, path: str = "<memory>") -> Tuple[Frontmatter, str]:
    """Split ``text`` and parse its metadata block.

    Raises:
        InvalidFrontmatterError: If the block is not valid YAML or not a mapping.
    """
    block, body = split_frontmatter(text)
    if block is None or not block.strip():
        return Frontmatter(), body

    try:
        data = yaml.load(block, Loader=_FrontmatterLoader)
    except yaml.YAMLError as exc:
        raise InvalidFrontmatterError(path, "frontmatter", "malformed YAML", exc) from exc

    if data is None:
        return Frontmatter(), body
    if not isinstance(data, dict):
        raise InvalidFrontmatterError(
            path, "frontmatter", f"expected a mapping, got {type(data).__name__}"
        )
    return normalize_frontmatter(data), body


def normalize_frontmatter(raw: Mapping[str, Any]) -> Frontmatter:
    data: Dict[str, Any] = {str(key): value for key, value in raw.items()}
    title = data.get("title")
    return Frontmatter(
        title=title.strip() if isinstance(title, str) and title.strip() else None,
        tags=tuple(_strip_hashes(normalize_to_list(data.get("tags")))),
        aliases=tuple(normalize_to_list(data.get("aliases"))),
        created=parse_date(data.get("created")),
        updated=parse_date(data.get("updated")),
        extra={key: value for key, value in data.items() if key not in WELL_KNOWN_KEYS},
        raw=data,
    )


def normalize_to_list(value: Any) -> List[str]:
    """A single string becomes a one-item list; non-string list items are dropped."""
    if not value:
        return []
    if isinstance(value, str):
        items = [value]
    elif isinstance(value, (list, tuple)):
        items = [item for item in value if isinstance(item, str)]
    else:
        return []
    return [item.strip() for item in items if item.strip()]


def _strip_hashes(tags: List[str]) -> List[str]:
    return [tag.lstrip("#") for tag in tags if tag.lstrip("#")]


def parse_date(value: Any) -> Optional[datetime]:
    """Parse YAML dates, datetimes and ISO-8601 strings; None when unparsable."""
    if not value:
        return None
    if isinstance(value, datetime):
        return _as_aware(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    if isinstance(value, str):
        candidate = value.strip()
        if candidate.endswith("Z"):
            candidate = candidate[:-1] + "+00:00"
        try:
            return _as_aware(datetime.fromisoformat(candidate))
        except ValueError:
            return None
    return None


def _as_aware(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
