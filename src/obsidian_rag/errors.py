"""Typed errors raised or returned by the vault engine."""

from __future__ import annotations

from typing import Any, Dict


class ObsidianRagError(Exception):
    """Base error carrying a stable code, the offending path and the cause."""

    code = "OBSIDIAN_RAG_ERROR"

    def __init__(
        self,
        message: str,
        *,
        path: str | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.path = path
        self.cause = cause

    @property
    def context(self) -> Dict[str, Any]:
        context: Dict[str, Any] = {}
        if self.path is not None:
            context["path"] = self.path
        if self.cause is not None:
            context["original_error"] = str(self.cause)
        return context

    def __str__(self) -> str:
        if self.cause is None:
            return self.message
        return f"{self.message} ({self.cause})"


class VaultAccessError(ObsidianRagError):
    """The vault root (or one of its directories) cannot be listed."""

    code = "VAULT_ACCESS_ERROR"

    def __init__(self, vault_path: str, cause: BaseException | None = None) -> None:
        super().__init__(f"Cannot access vault at: {vault_path}", path=vault_path, cause=cause)


class VaultNotFoundError(ObsidianRagError):
    code = "VAULT_NOT_FOUND"

    def __init__(self, vault_path: str) -> None:
        super().__init__(f"Vault not found at: {vault_path}", path=vault_path)


class FileSystemError(ObsidianRagError):
    """A single file could not be read or stat'ed."""

    code = "FILE_SYSTEM_ERROR"

    def __init__(self, operation: str, path: str, cause: BaseException | None = None) -> None:
        super().__init__(f"File system error during {operation}: {path}", path=path, cause=cause)
        self.operation = operation

    @property
    def context(self) -> Dict[str, Any]:
        return {"operation": self.operation, **super().context}


class NoteParsingError(ObsidianRagError):
    code = "NOTE_PARSE_ERROR"

    def __init__(self, path: str, cause: BaseException | None = None) -> None:
        super().__init__(f"Failed to parse note: {path}", path=path, cause=cause)


class InvalidFrontmatterError(ObsidianRagError):
    """The metadata block exists but is not a YAML mapping."""

    code = "INVALID_FRONTMATTER"

    def __init__(
        self,
        path: str,
        field: str,
        reason: str,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(
            f"Invalid frontmatter in {path}: {field} - {reason}", path=path, cause=cause
        )
        self.field = field
        self.reason = reason

    @property
    def context(self) -> Dict[str, Any]:
        return {"field": self.field, "reason": self.reason, **super().context}


class ConfigError(ObsidianRagError):
    code = "CONFIG_ERROR"

    def __init__(self, message: str, *, path: str | None = None, cause: BaseException | None = None) -> None:
        super().__init__(message, path=path, cause=cause)
