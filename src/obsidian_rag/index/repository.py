"""Vault scanning and note lookup."""

from __future__ import annotations

import logging
import time
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Sequence, Tuple

from obsidian_rag.errors import (
    FileSystemError,
    InvalidFrontmatterError,
    NoteParsingError,
    VaultAccessError,
)
from obsidian_rag.index.storage import FileStats, FileSystemPort
from obsidian_rag.ingestion.markdown_loader import load_note
from obsidian_rag.models import Note
from obsidian_rag.result import Err, Ok, Result, from_call
from obsidian_rag.utils.cache import LRUCache
from obsidian_rag.utils.files import (
    compute_sha256,
    is_ignored,
    is_markdown,
    join_path,
    normalize_folder,
)
from obsidian_rag.utils.timing import PerformanceMonitor

LOGGER = logging.getLogger(__name__)

ParseKey = Tuple[str, datetime, str]


@dataclass(slots=True)
class ScanStats:
    loaded: int = 0
    cached: int = 0
    skipped: int = 0
    failed: int = 0
    failed_paths: list[str] = field(default_factory=list)
    duration: float = 0.0

    def record_failure(self, path: str) -> None:
        self.failed += 1
        self.failed_paths.append(path)


class NoteRepository:
    """Reads every markdown note under ``vault_path`` through a storage backend.

    ``find_all`` rescans the vault and replaces the snapshot wholesale. The
    other lookups reuse the last snapshot, scanning first only when none
    exists yet; they never refresh it on their own.

    Unreadable or unparsable files are logged and skipped. Only a failure to
    list the vault root is reported, as ``Err(VaultAccessError)``.
    """

    def __init__(
        self,
        vault_path: str,
        file_system: FileSystemPort,
        ignored_folders: Sequence[str] = (),
        *,
        parse_cache: Optional[LRUCache[ParseKey, Note]] = None,
        monitor: Optional[PerformanceMonitor] = None,
    ) -> None:
        self.vault_path = vault_path
        self.file_system = file_system
        self.ignored_folders = tuple(ignored_folders)
        self.parse_cache = parse_cache
        self.monitor = monitor
        self._snapshot: Optional[List[Note]] = None
        self.last_scan = ScanStats()

    @property
    def snapshot(self) -> Optional[List[Note]]:
        """Notes from the last successful scan, or None before the first one."""
        return None if self._snapshot is None else list(self._snapshot)

    def find_all(self) -> Result[List[Note], VaultAccessError]:
        if self.monitor is None:
            return self._scan()
        with self.monitor.measure("find_all") as extra:
            result = self._scan()
            extra["item_count"] = len(result.value) if isinstance(result, Ok) else 0
        return result

    def find_by_path(self, path: str) -> Result[Optional[Note], VaultAccessError]:
        loaded = self._ensure_snapshot()
        if isinstance(loaded, Err):
            return loaded
        wanted = path.replace("\\", "/").lstrip("/")
        return Ok(next((note for note in loaded.value if note.path == wanted), None))

    def find_by_folder(self, folder: str) -> Result[List[Note], VaultAccessError]:
        loaded = self._ensure_snapshot()
        if isinstance(loaded, Err):
            return loaded
        prefix = normalize_folder(folder)
        return Ok([note for note in loaded.value if note.path.startswith(prefix)])

    def get_all_tags(self) -> Result[Dict[str, int], VaultAccessError]:
        loaded = self._ensure_snapshot()
        if isinstance(loaded, Err):
            return loaded
        counts = Counter(tag for note in loaded.value for tag in note.tags)
        ordered = sorted(counts.items(), key=lambda item: (-item[1], item[0]))
        return Ok(dict(ordered))

    def get_recently_modified(self, limit: int) -> Result[List[Note], VaultAccessError]:
        loaded = self._ensure_snapshot()
        if isinstance(loaded, Err):
            return loaded
        if limit <= 0:
            return Ok([])
        # Stable sort keeps scan order among equal timestamps.
        ordered = sorted(loaded.value, key=lambda note: note.modified_at, reverse=True)
        return Ok(ordered[:limit])

    def _ensure_snapshot(self) -> Result[List[Note], VaultAccessError]:
        if self._snapshot is not None:
            return Ok(self._snapshot)
        return self.find_all()

    def _scan(self) -> Result[List[Note], VaultAccessError]:
        stats = ScanStats()
        started = time.perf_counter()
        listing = from_call(self.file_system.readdir, self.vault_path, catch=OSError)
        if isinstance(listing, Err):
            LOGGER.error("Cannot list vault root %s: %s", self.vault_path, listing.error)
            return Err(VaultAccessError(self.vault_path, listing.error))
        entries = sorted(listing.value)

        notes: List[Note] = []
        self._walk(self.vault_path, "", entries, notes, stats)
        stats.duration = time.perf_counter() - started
        self._snapshot = notes
        self.last_scan = stats
        LOGGER.info(
            "Loaded %d notes from %s (%d failed, %.2fs)",
            len(notes),
            self.vault_path,
            stats.failed,
            stats.duration,
        )
        if self.parse_cache is not None:
            LOGGER.debug("Parse cache: %s", self.parse_cache.stats())
        return Ok(list(notes))

    def _walk(
        self,
        directory: str,
        relative: str,
        entries: List[str],
        notes: List[Note],
        stats: ScanStats,
    ) -> None:
        for entry in entries:
            if is_ignored(entry, self.ignored_folders):
                stats.skipped += 1
                continue

            full_path = join_path(directory, entry)
            note_path = join_path(relative, entry)
            try:
                entry_stats = self.file_system.stat(full_path)
            except OSError as exc:
                LOGGER.error("%s", FileSystemError("stat", full_path, exc))
                stats.record_failure(note_path)
                continue

            if entry_stats.is_directory:
                try:
                    children = sorted(self.file_system.readdir(full_path))
                except OSError as exc:
                    LOGGER.warning("Skipping unreadable folder %s: %s", full_path, exc)
                    stats.record_failure(note_path)
                    continue
                self._walk(full_path, note_path, children, notes, stats)
            elif entry_stats.is_file and is_markdown(entry):
                note = self._load(full_path, note_path, entry_stats, stats)
                if note is not None:
                    notes.append(note)
            else:
                stats.skipped += 1

    def _load(
        self, full_path: str, note_path: str, entry_stats: FileStats, stats: ScanStats
    ) -> Optional[Note]:
        try:
            text = self.file_system.read_file(full_path)
        except (OSError, UnicodeDecodeError) as exc:
            LOGGER.error("%s", FileSystemError("read", full_path, exc))
            stats.record_failure(note_path)
            return None

        key: Optional[ParseKey] = None
        if self.parse_cache is not None:
            key = (note_path, entry_stats.modified_at, compute_sha256(text))
            cached = self.parse_cache.get(key)
            if cached is not None:
                stats.cached += 1
                stats.loaded += 1
                return cached

        try:
            note = load_note(note_path, text, entry_stats)
        except InvalidFrontmatterError as exc:
            LOGGER.error("Skipping %s: %s", note_path, exc)
            stats.record_failure(note_path)
            return None
        except (ValueError, TypeError) as exc:
            LOGGER.error("%s", NoteParsingError(note_path, exc))
            stats.record_failure(note_path)
            return None

        if self.parse_cache is not None and key is not None:
            self.parse_cache.set(key, note)
        stats.loaded += 1
        return note

