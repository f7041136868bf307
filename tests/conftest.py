from __future__ import annotations

from itertools import count

import pytest

from tests.support.interactions import FakeInteractionService, MemoryLikeStateCache
from vibesync.config import ConflictPolicy, SyncConfig
from vibesync.domain.reconciliation import CommentReconciler, InteractionStore, LikeReconciler


@pytest.fixture(autouse=True)
def _clean_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "VIBESYNC_API_BASE_URL",
        "VIBESYNC_API_TOKEN",
        "VIBESYNC_REFRESH_INTERVAL",
        "VIBESYNC_DEBOUNCE_MS",
        "VIBESYNC_DATA_DIR",
        "VIBESYNC_CACHE_URI",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def service() -> FakeInteractionService:
    return FakeInteractionService()


@pytest.fixture
def store() -> InteractionStore:
    ticks = count(1_000)
    return InteractionStore(clock=lambda: next(ticks))


@pytest.fixture
def cache() -> MemoryLikeStateCache:
    return MemoryLikeStateCache()


@pytest.fixture
def sync_config() -> SyncConfig:
    return SyncConfig(
        refresh_interval_seconds=0,
        debounce_seconds=0.01,
        mutation_timeout_seconds=1.0,
    )


@pytest.fixture
def likes(
    service: FakeInteractionService,
    store: InteractionStore,
    cache: MemoryLikeStateCache,
    sync_config: SyncConfig,
) -> LikeReconciler:
    return LikeReconciler(service=service, store=store, cache=cache, config=sync_config)


@pytest.fixture
def superseding_likes(
    service: FakeInteractionService,
    store: InteractionStore,
    cache: MemoryLikeStateCache,
) -> LikeReconciler:
    config = SyncConfig(
        refresh_interval_seconds=0,
        mutation_timeout_seconds=1.0,
        conflict_policy=ConflictPolicy.SUPERSEDE,
    )
    return LikeReconciler(service=service, store=store, cache=cache, config=config)


@pytest.fixture
def comments(
    service: FakeInteractionService,
    store: InteractionStore,
    sync_config: SyncConfig,
) -> CommentReconciler:
    return CommentReconciler(service=service, store=store, config=sync_config)
