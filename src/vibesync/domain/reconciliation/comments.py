"""Optimistic comment threads.

Unlike likes there is no previous value to restore: a failed create removes the optimistic
entry, and a failed delete reloads the whole thread from the remote.
"""

from __future__ import annotations

import asyncio
import uuid
from datetime import UTC, datetime
from logging import getLogger
from typing import TYPE_CHECKING

from vibesync.config.sync import SyncConfig
from vibesync.domain.errors import (
    InteractionError,
    InvalidInput,
    NotFound,
    PermissionDenied,
    TransientError,
    Unauthenticated,
    error_code_for,
)
from vibesync.domain.model import CommentRecord, CommentThread, CounterShape, ErrorCode

if TYPE_CHECKING:
    from collections.abc import Callable

    from vibesync.domain.ports import CommentPage, InteractionService

    from .store import InteractionStore, Subscription

log = getLogger(__name__)

OPTIMISTIC_ID_PREFIX = "optimistic-"
_COUNTER_SHAPES = (CounterShape.FLAT, CounterShape.STATS)


def _utcnow() -> datetime:
    return datetime.now(UTC)


def normalize_comment_text(text: str, *, max_length: int) -> str:
    body = text.strip()
    if not body:
        raise InvalidInput("Comment text cannot be empty")
    if len(body) > max_length:
        raise InvalidInput(f"Comment text must be at most {max_length} characters")
    return body


class CommentReconciler:
    def __init__(
        self,
        *,
        service: InteractionService,
        store: InteractionStore,
        config: SyncConfig | None = None,
    ) -> None:
        self._service = service
        self._store = store
        self._config = config or SyncConfig()

    def get_thread(self, subject_id: str) -> CommentThread:
        return self._store.get_thread(subject_id)

    def observe(
        self,
        subject_id: str,
        listener: Callable[[CommentThread], None],
    ) -> Subscription:
        return self._store.subscribe_thread(subject_id, listener)

    async def load_comments(
        self,
        subject_id: str,
        *,
        limit: int | None = None,
        offset: int = 0,
    ) -> CommentThread:
        """Fetch a page of comments; ``offset=0`` replaces the confirmed list.

        Optimistic entries still waiting for the remote stay at the head.
        """

        self._store.update_thread(subject_id, lambda thread: thread.evolve(is_loading=True))
        try:
            page = await self._service.list_comments(
                subject_id=subject_id,
                limit=limit or self._config.comment_page_size,
                offset=offset,
            )
        except InteractionError as exc:
            log.warning("Loading comments for %s failed (%s): %s", subject_id, exc.code, exc)
            return self._store.update_thread(
                subject_id,
                lambda thread: thread.evolve(is_loading=False, error=ErrorCode.SYNC_FAILED),
            )
        except Exception:
            log.exception("Unexpected error while loading comments for %s", subject_id)
            return self._store.update_thread(
                subject_id,
                lambda thread: thread.evolve(is_loading=False, error=ErrorCode.UNEXPECTED),
            )

        def apply(thread: CommentThread) -> CommentThread:
            return _merge_page(thread, page, append=offset > 0)

        return self._store.update_thread(subject_id, apply)

    async def add_comment(
        self,
        subject_id: str,
        viewer_id: str | None,
        text: str,
    ) -> CommentRecord:
        """Post a comment, showing it at the head of the thread before the remote confirms."""

        if not viewer_id:
            raise Unauthenticated("You must be logged in to comment")
        body = normalize_comment_text(text, max_length=self._config.max_comment_length)

        optimistic = CommentRecord(
            id=f"{OPTIMISTIC_ID_PREFIX}{uuid.uuid4().hex}",
            viewer_id=viewer_id,
            subject_id=subject_id,
            text=body,
            created_at=_utcnow(),
            is_optimistic=True,
        )
        self._store.update_thread(
            subject_id,
            lambda thread: thread.prepend(optimistic).evolve(
                comments_count=thread.comments_count + 1,
                error=None,
            ),
        )

        try:
            created = await asyncio.wait_for(
                self._service.create_comment(
                    subject_id=subject_id,
                    viewer_id=viewer_id,
                    text=body,
                    timestamp=optimistic.created_at,
                ),
                timeout=self._config.mutation_timeout_seconds,
            )
        except TimeoutError as exc:
            self._discard_optimistic(subject_id, optimistic.id, ErrorCode.TIMEOUT)
            raise TransientError("Posting the comment timed out", code=ErrorCode.TIMEOUT) from exc
        except InteractionError as exc:
            log.warning("Posting comment on %s failed (%s): %s", subject_id, exc.code, exc)
            self._discard_optimistic(subject_id, optimistic.id, exc.code)
            raise
        except asyncio.CancelledError:
            self._discard_optimistic(subject_id, optimistic.id, None)
            raise
        except Exception:
            log.exception("Unexpected error while posting comment on %s", subject_id)
            self._discard_optimistic(subject_id, optimistic.id, ErrorCode.UNEXPECTED)
            raise

        confirmed = CommentRecord(
            id=created.id,
            viewer_id=viewer_id,
            subject_id=subject_id,
            text=body,
            created_at=created.created_at,
        )
        self._store.update_thread(
            subject_id,
            lambda thread: thread.replacing(optimistic.id, confirmed),
        )
        await self._sync_comment_counter(subject_id, delta=1)
        return confirmed

    async def delete_comment(
        self,
        subject_id: str,
        viewer_id: str | None,
        comment_id: str,
    ) -> None:
        """Remove the viewer's own comment, reloading the thread if the remote refuses."""

        if not viewer_id:
            raise Unauthenticated("You must be logged in to delete a comment")

        comment = self._store.get_thread(subject_id).find(comment_id)
        if comment is None:
            log.debug("Comment %s not found in thread %s", comment_id, subject_id)
            self._store.update_thread(
                subject_id, lambda thread: thread.evolve(error=ErrorCode.NOT_FOUND)
            )
            return
        # Ownership is checked here for UX only; the remote enforces it too.
        if comment.viewer_id != viewer_id:
            raise PermissionDenied("You can only delete your own comments")
        if comment.is_optimistic:
            raise InvalidInput("This comment is still being posted")

        self._store.update_thread(
            subject_id,
            lambda thread: thread.without(comment_id).evolve(
                comments_count=max(0, thread.comments_count - 1),
                error=None,
            ),
        )

        try:
            await asyncio.wait_for(
                self._service.delete_comment(comment_id=comment_id),
                timeout=self._config.mutation_timeout_seconds,
            )
        except NotFound:
            log.debug("Comment %s was already deleted", comment_id)
            return
        except PermissionDenied:
            await self._resync_after_failed_delete(subject_id, ErrorCode.PERMISSION)
            raise
        except (InteractionError, TimeoutError) as exc:
            log.warning("Deleting comment %s failed, reloading thread: %s", comment_id, exc)
            await self._resync_after_failed_delete(subject_id, error_code_for(exc))
            return
        except Exception:
            log.exception("Unexpected error while deleting comment %s", comment_id)
            await self._resync_after_failed_delete(subject_id, ErrorCode.UNEXPECTED)
            return

        await self._sync_comment_counter(subject_id, delta=-1)

    def _discard_optimistic(
        self,
        subject_id: str,
        comment_id: str,
        error: ErrorCode | None,
    ) -> None:
        self._store.update_thread(
            subject_id,
            lambda thread: thread.without(comment_id).evolve(
                comments_count=max(0, thread.comments_count - 1),
                error=error,
            ),
        )

    async def _resync_after_failed_delete(self, subject_id: str, error: ErrorCode) -> None:
        await self.load_comments(subject_id)
        self._store.update_thread(subject_id, lambda thread: thread.evolve(error=error))

    async def _sync_comment_counter(self, subject_id: str, *, delta: int) -> None:
        """Best-effort update of the subject's denormalised comment counter."""

        try:
            subject = await self._service.fetch_subject(subject_id=subject_id)
        except InteractionError as exc:
            log.warning("Skipping comment counter update for %s: %s", subject_id, exc)
            return
        except Exception:
            log.exception("Unexpected error while reading counters of %s", subject_id)
            return

        target = max(0, subject.comments_count + delta)
        for attempt, shape in enumerate(_COUNTER_SHAPES, start=1):
            try:
                await self._service.update_subject_counters(
                    subject_id=subject_id,
                    comments_count=target,
                    shape=shape,
                )
            except InteractionError as exc:
                log.warning(
                    "Comment counter update for %s failed (attempt %s/%s, %s payload): %s",
                    subject_id,
                    attempt,
                    len(_COUNTER_SHAPES),
                    shape,
                    exc,
                )
                continue
            except Exception:
                log.exception("Unexpected error while updating counters of %s", subject_id)
                return
            return
        log.info("Dropped comment counter update for %s", subject_id)


def _merge_page(thread: CommentThread, page: CommentPage, *, append: bool) -> CommentThread:
    pending = thread.pending
    if append:
        known = {comment.id for comment in thread.comments}
        fresh = tuple(comment for comment in page.comments if comment.id not in known)
        comments = (*thread.comments, *fresh)
    else:
        comments = (*pending, *page.comments)
    confirmed = len(comments) - len(pending)
    return thread.evolve(
        comments=comments,
        comments_count=max(page.total, confirmed) + len(pending),
        is_loading=False,
        error=None,
    )
