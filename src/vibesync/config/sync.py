"""Synchronisation defaults for the reconciliation engines."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

from .env import env_float

DEFAULT_REFRESH_INTERVAL_SECONDS = 30.0
DEFAULT_DEBOUNCE_SECONDS = 0.3
DEFAULT_MUTATION_TIMEOUT_SECONDS = 15.0
DEFAULT_MAX_COMMENT_LENGTH = 500
DEFAULT_COMMENT_PAGE_SIZE = 20


class ConflictPolicy(StrEnum):
    """What a like toggle does when another toggle for the subject is still in flight."""

    DROP = "drop"
    SUPERSEDE = "supersede"


@dataclass(frozen=True, slots=True)
class SyncConfig:
    refresh_interval_seconds: float = DEFAULT_REFRESH_INTERVAL_SECONDS
    debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS
    mutation_timeout_seconds: float = DEFAULT_MUTATION_TIMEOUT_SECONDS
    max_comment_length: int = DEFAULT_MAX_COMMENT_LENGTH
    comment_page_size: int = DEFAULT_COMMENT_PAGE_SIZE
    conflict_policy: ConflictPolicy = ConflictPolicy.DROP


def get_sync_config() -> SyncConfig:
    return SyncConfig(
        refresh_interval_seconds=env_float(
            "VIBESYNC_REFRESH_INTERVAL", DEFAULT_REFRESH_INTERVAL_SECONDS
        ),
        debounce_seconds=env_float("VIBESYNC_DEBOUNCE_MS", DEFAULT_DEBOUNCE_SECONDS * 1000)
        / 1000,
    )
