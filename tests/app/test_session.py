from __future__ import annotations

import asyncio

import httpx
import pytest

from tests.support.interactions import FakeInteractionService, MemoryLikeStateCache
from vibesync.adapters.http_resilience import ResilientClient
from vibesync.adapters.remote import HttpInteractionService
from vibesync.adapters.sqlalchemy import SqlAlchemyLikeStateCache
from vibesync.app import build_session
from vibesync.config import MissingConfigurationError, SyncConfig
from vibesync.domain.model import LikeSnapshot, StateKey


def test_session_wires_shared_store(service: FakeInteractionService) -> None:
    service.base_likes["V1"] = 3
    sync = SyncConfig(refresh_interval_seconds=0, debounce_seconds=0)

    async def scenario() -> None:
        async with build_session(
            sync=sync, service=service, cache=MemoryLikeStateCache()
        ) as session:
            assert session.likes.get_state("V1", "U1") is session.store.get_like(
                StateKey("V1", "U1")
            )
            assert await session.likes.toggle_like("V1", "U1") is True
            created = await session.comments.add_comment("V1", "U1", "hello")
            assert session.store.get_thread("V1").comments == (created,)

    asyncio.run(scenario())

    assert service.calls["toggle_like"] == 1


def test_session_starts_and_stops_scheduler(service: FakeInteractionService) -> None:
    sync = SyncConfig(refresh_interval_seconds=60)

    async def scenario() -> None:
        session = build_session(sync=sync, service=service, cache=MemoryLikeStateCache())
        async with session:
            assert session.scheduler.running
        assert not session.scheduler.running

    asyncio.run(scenario())


def test_session_builds_http_service_and_sqlite_cache(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setenv("VIBESYNC_API_BASE_URL", "https://api.example.test")
    monkeypatch.setenv("VIBESYNC_CACHE_URI", "sqlite+pysqlite:///:memory:")
    monkeypatch.setenv("VIBESYNC_REFRESH_INTERVAL", "0")

    async def scenario() -> None:
        async with build_session() as session:
            assert isinstance(session.service, HttpInteractionService)
            assert isinstance(session.cache, SqlAlchemyLikeStateCache)
            session.cache.save(StateKey("V1", "U1"), LikeSnapshot(True, 2))
            assert session.cache.load(StateKey("V1", "U1")) == LikeSnapshot(True, 2)

    asyncio.run(scenario())


def test_session_without_remote_config_fails() -> None:
    with pytest.raises(MissingConfigurationError):
        build_session(cache=MemoryLikeStateCache())


def test_session_reads_go_through_http(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("VIBESYNC_API_BASE_URL", "https://api.example.test")

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/likes"
        return httpx.Response(200, json={"count": 9, "hasLiked": True})

    async def scenario() -> None:
        session = build_session(
            sync=SyncConfig(refresh_interval_seconds=0), cache=MemoryLikeStateCache()
        )
        assert isinstance(session.service, HttpInteractionService)
        http = session.service
        # swap the network for a mock transport before the first request
        http.client_factory = lambda config: ResilientClient(
            config, transport=httpx.MockTransport(handler)
        )
        async with session:
            await session.likes.refresh("V1", "U1")
            assert session.likes.get_state("V1", "U1").snapshot == LikeSnapshot(True, 9)

    asyncio.run(scenario())
