"""Utility helpers for vault-relative paths."""

from __future__ import annotations

import hashlib
from typing import Iterable

MARKDOWN_SUFFIX = ".md"


def is_markdown(name: str) -> bool:
    """True for entries with a ``.md`` suffix (any case)."""
    return name.lower().endswith(MARKDOWN_SUFFIX) and len(name) > len(MARKDOWN_SUFFIX)


def is_ignored(name: str, ignored_prefixes: Iterable[str]) -> bool:
    return any(prefix and name.startswith(prefix) for prefix in ignored_prefixes)


def join_path(base: str, name: str) -> str:
    """Join storage path segments with ``/`` regardless of platform."""
    if not base:
        return name
    return f"{base.rstrip('/')}/{name}"


def normalize_folder(folder: str) -> str:
    """Normalize a folder prefix to ``a/b/`` form; ``""`` means the whole vault."""
    cleaned = folder.replace("\\", "/").strip().strip("/")
    return f"{cleaned}/" if cleaned else ""


def compute_sha256(data: str | bytes) -> str:
    """Compute SHA256 hash for note content."""
    if isinstance(data, str):
        data = data.encode("utf-8")
    return hashlib.sha256(data).hexdigest()
