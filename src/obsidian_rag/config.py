"""Application configuration.

Sources, each overriding the previous one: model defaults, a JSON config
file (``./config.json`` unless told otherwise), then ``OBSIDIAN_RAG_*``
environment variables.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Mapping

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from obsidian_rag.errors import ConfigError, VaultNotFoundError
from obsidian_rag.models import ChunkOptions

LOGGER = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("config.json")
DEFAULT_VAULT_PATH = "~/Documents/Obsidian/main"
DEFAULT_IGNORED_FOLDERS = [".obsidian", ".trash", ".git"]

ENV_PREFIX = "OBSIDIAN_RAG_"
ENV_MAPPING = {
    "VAULT_PATH": "vault_path",
    "IGNORED_FOLDERS": "ignored_folders",
    "CACHE_SIZE": "cache_size",
    "SEARCH_LIMIT": "search_limit",
    "ENABLE_PERFORMANCE_MONITORING": "enable_performance_monitoring",
}

_TRUTHY = {"1", "true", "yes", "on"}


class AppConfig(BaseModel):
    """Validated settings. File keys may use snake_case or camelCase."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    vault_path: Path = Field(default=Path(DEFAULT_VAULT_PATH), validate_default=True)
    ignored_folders: List[str] = Field(default_factory=lambda: list(DEFAULT_IGNORED_FOLDERS))
    cache_size: int = Field(default=1000, ge=0)
    search_limit: int = Field(default=50, ge=1, le=100)
    enable_performance_monitoring: bool = False

    max_chunk_size: int = Field(default=2000, gt=0)
    overlap_size: int = Field(default=200, ge=0)
    min_chunk_size: int = Field(default=100, ge=0)
    respect_headers: bool = True

    @field_validator("vault_path", mode="after")
    @classmethod
    def _expand_vault_path(cls, value: Path) -> Path:
        return value.expanduser().resolve()

    @field_validator("ignored_folders", mode="before")
    @classmethod
    def _split_folders(cls, value: Any) -> Any:
        if isinstance(value, str):
            return [item.strip() for item in value.split(",") if item.strip()]
        return value

    def chunk_options(self) -> ChunkOptions:
        try:
            return ChunkOptions(
                max_chunk_size=self.max_chunk_size,
                overlap_size=self.overlap_size,
                min_chunk_size=self.min_chunk_size,
                respect_headers=self.respect_headers,
            )
        except ValueError as exc:
            raise ConfigError(f"Invalid chunking settings: {exc}", cause=exc) from exc

    def ensure_vault(self) -> Path:
        if not self.vault_path.is_dir():
            raise VaultNotFoundError(str(self.vault_path))
        return self.vault_path


def _read_config_file(config_path: Path) -> Dict[str, Any]:
    if not config_path.exists():
        return {}
    try:
        data = json.loads(config_path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        LOGGER.warning("Failed to parse %s, using defaults: %s", config_path, exc)
        return {}
    if not isinstance(data, dict):
        LOGGER.warning("Ignoring %s: expected a JSON object", config_path)
        return {}
    LOGGER.debug("Loaded config from %s", config_path)
    return data


def _env_overrides(environ: Mapping[str, str]) -> Dict[str, Any]:
    overrides: Dict[str, Any] = {}
    for suffix, key in ENV_MAPPING.items():
        value = environ.get(ENV_PREFIX + suffix)
        if value is None:
            continue
        if key == "enable_performance_monitoring":
            overrides[key] = value.strip().lower() in _TRUTHY
        else:
            overrides[key] = value
    return overrides


def load_config(
    config_path: Path | str | None = None,
    *,
    environ: Mapping[str, str] | None = None,
    require_vault: bool = False,
    **overrides: Any,
) -> AppConfig:
    """Build an :class:`AppConfig` from file, environment and explicit overrides.

    Raises:
        ConfigError: If a value fails validation.
        VaultNotFoundError: If ``require_vault`` and the vault directory is missing.
    """
    path = Path(config_path) if config_path is not None else DEFAULT_CONFIG_PATH
    merged: Dict[str, Any] = {}
    for key, value in _read_config_file(path).items():
        merged[_snake(key)] = value
    merged.update(_env_overrides(os.environ if environ is None else environ))
    merged.update({key: value for key, value in overrides.items() if value is not None})

    try:
        config = AppConfig.model_validate(merged)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration: {exc}", path=str(path), cause=exc) from exc

    if require_vault:
        config.ensure_vault()
    return config


def _snake(key: str) -> str:
    return "".join(f"_{char.lower()}" if char.isupper() else char for char in key)


def write_default_config(config_path: Path | str = DEFAULT_CONFIG_PATH) -> bool:
    """Write the default config file; returns False when it already exists."""
    path = Path(config_path)
    if path.exists():
        return False
    defaults = {
        "vaultPath": DEFAULT_VAULT_PATH,
        "ignoredFolders": list(DEFAULT_IGNORED_FOLDERS),
        "cacheSize": 1000,
        "searchLimit": 50,
        "enablePerformanceMonitoring": False,
    }
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(defaults, indent=2) + "\n", encoding="utf-8")
    LOGGER.info("Created default config at %s", path)
    return True
