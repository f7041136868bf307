from __future__ import annotations

import asyncio

from tests.support.interactions import FakeInteractionService
from vibesync.config import SyncConfig
from vibesync.domain.model import StateKey
from vibesync.domain.reconciliation import InteractionStore, LikeReconciler, ResyncScheduler


def _scheduler(
    likes: LikeReconciler, store: InteractionStore, **overrides: float
) -> ResyncScheduler:
    settings: dict[str, float] = {"refresh_interval_seconds": 0, "debounce_seconds": 0.01}
    settings.update(overrides)
    return ResyncScheduler(likes=likes, store=store, config=SyncConfig(**settings))


def test_triggers_are_debounced_per_key(
    likes: LikeReconciler, store: InteractionStore, service: FakeInteractionService
) -> None:
    service.base_likes["V1"] = 6
    scheduler = _scheduler(likes, store)

    async def scenario() -> None:
        store.subscribe(StateKey("V1", "U1"), lambda _key, _state: None)
        for _ in range(5):
            assert scheduler.trigger_all() == 1
        await asyncio.sleep(0.05)
        await scheduler.stop()

    asyncio.run(scenario())

    assert service.calls["fetch_likes"] == 1
    assert likes.get_state("V1", "U1").likes_count == 6


def test_trigger_is_skipped_while_toggle_in_flight(
    likes: LikeReconciler, store: InteractionStore, service: FakeInteractionService
) -> None:
    scheduler = _scheduler(likes, store)

    async def scenario() -> None:
        service.toggle_gate = asyncio.Event()
        task = asyncio.create_task(likes.toggle_like("V1", "U1"))
        await asyncio.sleep(0)

        assert scheduler.trigger(StateKey("V1", "U1")) is False

        service.toggle_gate.set()
        await task
        await scheduler.stop()

    asyncio.run(scenario())

    assert service.calls["fetch_likes"] == 0


def test_periodic_tick_refreshes_observed_keys(
    likes: LikeReconciler, store: InteractionStore, service: FakeInteractionService
) -> None:
    service.base_likes["V2"] = 2
    scheduler = _scheduler(likes, store, refresh_interval_seconds=0.02, debounce_seconds=0)

    async def scenario() -> None:
        store.subscribe(StateKey("V2"), lambda _key, _state: None)
        scheduler.start()
        assert scheduler.running
        await asyncio.sleep(0.1)
        await scheduler.stop()
        assert not scheduler.running

    asyncio.run(scenario())

    assert service.calls["fetch_likes"] >= 1
    assert likes.get_state("V2").likes_count == 2


def test_zero_interval_disables_ticker(likes: LikeReconciler, store: InteractionStore) -> None:
    scheduler = _scheduler(likes, store)

    async def scenario() -> None:
        scheduler.start()
        assert not scheduler.running
        await scheduler.stop()

    asyncio.run(scenario())


def test_stop_cancels_pending_triggers(
    likes: LikeReconciler, store: InteractionStore, service: FakeInteractionService
) -> None:
    scheduler = _scheduler(likes, store, debounce_seconds=0.05)

    async def scenario() -> None:
        scheduler.trigger(StateKey("V1", "U1"))
        await scheduler.stop()
        await asyncio.sleep(0.1)

    asyncio.run(scenario())

    assert service.calls["fetch_likes"] == 0
