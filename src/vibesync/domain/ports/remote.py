"""Port for the remote like/comment service."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from datetime import datetime

    from vibesync.domain.model import (
        CommentRecord,
        CounterShape,
        InteractionSubject,
        LikeStatus,
    )


@dataclass(slots=True)
class CommentPage:
    """One page of comments as returned by the remote, newest first."""

    comments: list[CommentRecord] = field(default_factory=list)
    total: int = 0


@runtime_checkable
class InteractionService(Protocol):
    """Async port for the remote source of truth.

    Implementations raise ``vibesync.domain.errors.InteractionError`` subclasses only.
    """

    async def toggle_like(
        self, *, subject_id: str, viewer_id: str, timestamp: datetime
    ) -> LikeStatus: ...

    async def fetch_likes(self, *, subject_id: str, viewer_id: str | None = None) -> LikeStatus: ...

    async def create_comment(
        self, *, subject_id: str, viewer_id: str, text: str, timestamp: datetime
    ) -> CommentRecord: ...

    async def list_comments(
        self, *, subject_id: str, limit: int = 20, offset: int = 0
    ) -> CommentPage: ...

    async def delete_comment(self, *, comment_id: str) -> None: ...

    async def fetch_subject(self, *, subject_id: str) -> InteractionSubject: ...

    async def update_subject_counters(
        self,
        *,
        subject_id: str,
        comments_count: int | None = None,
        likes_count: int | None = None,
        shape: CounterShape,
    ) -> None: ...


__all__ = ["CommentPage", "InteractionService"]
