"""Storage backends the vault is read through.

The repository only needs four operations (``read_file``, ``readdir``,
``stat``, ``exists``). :class:`LocalFileSystem` serves them from disk and
:class:`MemoryFileSystem` from a dict, which is what the tests use.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Iterable, List, Protocol, Set, runtime_checkable

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


@dataclass(frozen=True, slots=True)
class FileStats:
    is_file: bool
    is_directory: bool
    modified_at: datetime
    created_at: datetime


@runtime_checkable
class FileSystemPort(Protocol):
    def read_file(self, path: str) -> str: ...

    def readdir(self, path: str) -> List[str]: ...

    def stat(self, path: str) -> FileStats: ...

    def exists(self, path: str) -> bool: ...


class LocalFileSystem:
    """Reads notes from the local disk as UTF-8 text."""

    def __init__(self, encoding: str = "utf-8") -> None:
        self.encoding = encoding

    def read_file(self, path: str) -> str:
        return Path(path).read_text(encoding=self.encoding)

    def readdir(self, path: str) -> List[str]:
        return os.listdir(path)

    def stat(self, path: str) -> FileStats:
        result = os.stat(path)
        # st_birthtime only exists on macOS/BSD; fall back to ctime elsewhere.
        created = getattr(result, "st_birthtime", None) or result.st_ctime
        return FileStats(
            is_file=Path(path).is_file(),
            is_directory=Path(path).is_dir(),
            modified_at=datetime.fromtimestamp(result.st_mtime, tz=timezone.utc),
            created_at=datetime.fromtimestamp(created, tz=timezone.utc),
        )

    def exists(self, path: str) -> bool:
        return os.path.exists(path)


class MemoryFileSystem:
    """In-memory storage keyed by ``/``-separated paths.

    Directories are implied by the files beneath them. Paths listed in
    ``fail_reads``, ``fail_stats`` or ``fail_listings`` raise ``OSError`` from
    the corresponding operation, for exercising failure handling.
    """

    def __init__(
        self,
        files: Dict[str, str] | None = None,
        *,
        modified_at: datetime | None = None,
        created_at: datetime | None = None,
    ) -> None:
        self._files: Dict[str, str] = {}
        self._directories: Set[str] = {""}
        self._modified: Dict[str, datetime] = {}
        self.default_modified_at = modified_at or _EPOCH
        self.default_created_at = created_at or _EPOCH
        self.fail_reads: Set[str] = set()
        self.fail_stats: Set[str] = set()
        self.fail_listings: Set[str] = set()
        for path, content in (files or {}).items():
            self.add_file(path, content)

    @staticmethod
    def _clean(path: str) -> str:
        return path.replace("\\", "/").strip("/")

    def add_file(self, path: str, content: str, *, modified_at: datetime | None = None) -> None:
        key = self._clean(path)
        self._files[key] = content
        if modified_at is not None:
            self._modified[key] = modified_at
        head, _, _ = key.rpartition("/")
        if head:
            self.add_directory(head)

    def add_directory(self, path: str) -> None:
        parts = self._clean(path).split("/")
        for depth in range(1, len(parts) + 1):
            self._directories.add("/".join(parts[:depth]))

    def remove_file(self, path: str) -> None:
        self._files.pop(self._clean(path), None)
        self._modified.pop(self._clean(path), None)

    def paths(self) -> Iterable[str]:
        return sorted(self._files)

    def read_file(self, path: str) -> str:
        key = self._clean(path)
        if key in self.fail_reads:
            raise OSError(f"simulated read failure: {path}")
        if key not in self._files:
            raise FileNotFoundError(f"ENOENT: no such file or directory, open '{path}'")
        return self._files[key]

    def readdir(self, path: str) -> List[str]:
        key = self._clean(path)
        if key in self.fail_listings:
            raise PermissionError(f"simulated listing failure: {path}")
        if key not in self._directories:
            raise FileNotFoundError(f"ENOENT: no such file or directory, scandir '{path}'")
        prefix = f"{key}/" if key else ""
        entries: List[str] = []
        for candidate in [*self._files, *self._directories]:
            if candidate and candidate.startswith(prefix):
                head = candidate[len(prefix) :].split("/", 1)[0]
                if head and head not in entries:
                    entries.append(head)
        return entries

    def stat(self, path: str) -> FileStats:
        key = self._clean(path)
        if key in self.fail_stats:
            raise OSError(f"simulated stat failure: {path}")
        is_file = key in self._files
        is_directory = key in self._directories
        if not is_file and not is_directory:
            raise FileNotFoundError(f"ENOENT: no such file or directory, stat '{path}'")
        return FileStats(
            is_file=is_file,
            is_directory=is_directory,
            modified_at=self._modified.get(key, self.default_modified_at),
            created_at=self.default_created_at,
        )

    def exists(self, path: str) -> bool:
        key = self._clean(path)
        return key in self._files or key in self._directories
