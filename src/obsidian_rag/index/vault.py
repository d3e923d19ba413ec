"""Entry points a protocol adapter calls: search, get, list, tags, chunks."""

from __future__ import annotations

import logging
from typing import Dict, List, Optional

from obsidian_rag.config import AppConfig
from obsidian_rag.errors import VaultAccessError
from obsidian_rag.index.repository import NoteRepository
from obsidian_rag.index.search import NoteSearcher
from obsidian_rag.index.storage import FileSystemPort, LocalFileSystem
from obsidian_rag.ingestion.chunking import ChunkingService
from obsidian_rag.models import ChunkOptions, DocumentChunk, Note, SearchResult
from obsidian_rag.result import Err, Ok, Result
from obsidian_rag.utils.cache import LRUCache
from obsidian_rag.utils.timing import PerformanceMonitor

LOGGER = logging.getLogger(__name__)


class VaultService:
    """Coordinates repository, searcher and chunker over one vault."""

    def __init__(
        self,
        repository: NoteRepository,
        searcher: NoteSearcher | None = None,
        chunker: ChunkingService | None = None,
        *,
        search_limit: int = 50,
    ) -> None:
        self.repository = repository
        self.searcher = searcher or NoteSearcher()
        self.chunker = chunker or ChunkingService()
        self.search_limit = search_limit

    @classmethod
    def from_config(
        cls, config: AppConfig, file_system: FileSystemPort | None = None
    ) -> "VaultService":
        monitor = PerformanceMonitor() if config.enable_performance_monitoring else None
        repository = NoteRepository(
            str(config.vault_path),
            file_system or LocalFileSystem(),
            config.ignored_folders,
            parse_cache=LRUCache(config.cache_size),
            monitor=monitor,
        )
        return cls(
            repository,
            chunker=ChunkingService(config.chunk_options()),
            search_limit=config.search_limit,
        )

    def search_vault(
        self, query: str, limit: Optional[int] = None
    ) -> Result[List[SearchResult], VaultAccessError]:
        """Rescan the vault and rank every note against ``query``."""
        notes = self.repository.find_all()
        if isinstance(notes, Err):
            return notes
        results = self.searcher.search(query, notes.value, limit or self.search_limit)
        LOGGER.debug("Query %r matched %d notes", query, len(results))
        return Ok(results)

    def get_note(self, path: str) -> Result[Optional[Note], VaultAccessError]:
        return self.repository.find_by_path(path)

    def list_notes(self, folder: Optional[str] = None) -> Result[List[Note], VaultAccessError]:
        """Notes (optionally under ``folder``), newest first."""
        notes = self.repository.find_by_folder(folder) if folder else self.repository.find_all()
        return notes.map(
            lambda found: sorted(found, key=lambda note: note.modified_at, reverse=True)
        )

    def get_tags(self) -> Result[Dict[str, int], VaultAccessError]:
        return self.repository.get_all_tags()

    def recent_notes(self, limit: int = 10) -> Result[List[Note], VaultAccessError]:
        return self.repository.get_recently_modified(limit)

    def chunk_note(
        self, path: str, options: ChunkOptions | None = None
    ) -> Result[Optional[List[DocumentChunk]], VaultAccessError]:
        """Chunks of one note, or ``Ok(None)`` when the note does not exist."""
        found = self.repository.find_by_path(path)
        if isinstance(found, Err):
            return found
        if found.value is None:
            return Ok(None)
        return Ok(self.chunker.chunk_note(found.value, options))
