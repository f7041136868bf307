"""Application composition: one interaction session per signed-in client."""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from vibesync.adapters.remote import HttpInteractionService
from vibesync.adapters.sqlalchemy import SqlAlchemyLikeStateCache
from vibesync.config import get_cache_database_config, get_remote_config, get_sync_config
from vibesync.domain.reconciliation import (
    CommentReconciler,
    InteractionStore,
    LikeReconciler,
    ResyncScheduler,
)

if TYPE_CHECKING:
    from types import TracebackType

    from vibesync.config import RemoteConfig, SyncConfig
    from vibesync.domain.ports import InteractionService, LikeStateCache

log = getLogger(__name__)


@dataclass(slots=True)
class InteractionSession:
    """Reconcilers sharing one store, plus the scheduler that keeps them fresh.

    Use as an async context manager: entering starts periodic resync, leaving stops it and
    releases the resources the session created itself.
    """

    store: InteractionStore
    likes: LikeReconciler
    comments: CommentReconciler
    scheduler: ResyncScheduler
    service: InteractionService
    cache: LikeStateCache
    _owned_service: HttpInteractionService | None = field(default=None, repr=False)
    _owned_cache: SqlAlchemyLikeStateCache | None = field(default=None, repr=False)

    async def __aenter__(self) -> InteractionSession:
        self.scheduler.start()
        log.debug("Interaction session started")
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self.scheduler.stop()
        await self.likes.aclose()
        if self._owned_service is not None:
            await self._owned_service.aclose()
        if self._owned_cache is not None:
            self._owned_cache.dispose()
        log.debug("Interaction session closed")


def build_session(
    *,
    remote: RemoteConfig | None = None,
    sync: SyncConfig | None = None,
    cache: LikeStateCache | None = None,
    service: InteractionService | None = None,
    store: InteractionStore | None = None,
) -> InteractionSession:
    """Wire an ``InteractionSession`` from configuration, honouring injected pieces."""

    sync_config = sync or get_sync_config()

    owned_service: HttpInteractionService | None = None
    if service is None:
        remote_config = remote or get_remote_config()
        owned_service = HttpInteractionService(
            resilience=remote_config.resilience,
            mutation_timeout_seconds=sync_config.mutation_timeout_seconds,
        )
        service = owned_service

    owned_cache: SqlAlchemyLikeStateCache | None = None
    if cache is None:
        owned_cache = SqlAlchemyLikeStateCache.from_uri(get_cache_database_config().uri)
        cache = owned_cache

    effective_store = store or InteractionStore()
    likes = LikeReconciler(
        service=service, store=effective_store, cache=cache, config=sync_config
    )
    comments = CommentReconciler(service=service, store=effective_store, config=sync_config)
    scheduler = ResyncScheduler(likes=likes, store=effective_store, config=sync_config)
    log.info(
        "Built interaction session: conflict_policy=%s, refresh_interval=%ss",
        sync_config.conflict_policy,
        sync_config.refresh_interval_seconds,
    )

    return InteractionSession(
        store=effective_store,
        likes=likes,
        comments=comments,
        scheduler=scheduler,
        service=service,
        cache=cache,
        _owned_service=owned_service,
        _owned_cache=owned_cache,
    )
