"""Where the local like cache lives on disk."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Final

from .env import optional_env_var

APP_DIR_NAME: Final[str] = "vibesync"
LIKE_CACHE_FILENAME: Final[str] = "like_cache.db"


@dataclass(frozen=True, slots=True)
class StorageConfig:
    data_dir: Path
    like_cache_filename: str = LIKE_CACHE_FILENAME

    def like_cache_path(self, *, create_parent: bool = True) -> Path:
        folder = self.data_dir.expanduser().resolve()
        if create_parent:
            folder.mkdir(parents=True, exist_ok=True)
        return folder / self.like_cache_filename

    def like_cache_uri(self) -> str:
        return f"sqlite+pysqlite:///{self.like_cache_path()}"


@dataclass(frozen=True, slots=True)
class CacheDatabaseConfig:
    uri: str


def _platform_data_home() -> Path:
    # LOCALAPPDATA on Windows, XDG elsewhere
    if os.name == "nt":
        override = optional_env_var("LOCALAPPDATA")
        return Path(override) if override else Path.home() / "AppData" / "Local"
    override = optional_env_var("XDG_DATA_HOME")
    return Path(override) if override else Path.home() / ".local" / "share"


def get_storage_config() -> StorageConfig:
    configured = optional_env_var("VIBESYNC_DATA_DIR")
    data_dir = Path(configured) if configured else _platform_data_home() / APP_DIR_NAME
    return StorageConfig(data_dir=data_dir)


def get_cache_database_config(*, storage: StorageConfig | None = None) -> CacheDatabaseConfig:
    """Resolve the cache database URI; ``VIBESYNC_CACHE_URI`` wins over the data directory."""

    uri = optional_env_var("VIBESYNC_CACHE_URI")
    if uri is None:
        uri = (storage or get_storage_config()).like_cache_uri()
    return CacheDatabaseConfig(uri=uri)
