"""obsidian-rag - keyword retrieval and chunking over an Obsidian vault."""

from obsidian_rag.index.repository import NoteRepository
from obsidian_rag.index.search import NoteSearcher
from obsidian_rag.index.storage import LocalFileSystem, MemoryFileSystem
from obsidian_rag.index.vault import VaultService
from obsidian_rag.ingestion.chunking import ChunkingService
from obsidian_rag.models import ChunkOptions, DocumentChunk, Note, SearchResult
from obsidian_rag.utils.cache import LRUCache

__version__ = "0.1.0"

__all__ = [
    "ChunkOptions",
    "ChunkingService",
    "DocumentChunk",
    "LRUCache",
    "LocalFileSystem",
    "MemoryFileSystem",
    "Note",
    "NoteRepository",
    "NoteSearcher",
    "SearchResult",
    "VaultService",
]
