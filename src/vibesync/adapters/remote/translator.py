"""Translate interaction payloads into domain values."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

from vibesync.domain.model import CommentRecord, InteractionSubject, LikeStatus

if TYPE_CHECKING:
    from .schema import CommentPayload, LikeStatusPayload, SubjectPayload


def to_epoch_millis(value: datetime) -> int:
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return int(value.astimezone(UTC).timestamp() * 1000)


def parse_like_status(payload: LikeStatusPayload) -> LikeStatus:
    return LikeStatus(count=payload.count, has_liked=payload.has_liked)


def parse_comment(
    payload: CommentPayload,
    *,
    subject_id: str,
    viewer_id: str | None = None,
    text: str | None = None,
    fallback_time: datetime | None = None,
) -> CommentRecord:
    """Build a ``CommentRecord``, filling fields the remote omitted from the request values."""

    created_at = payload.timestamp or fallback_time or datetime.now(UTC)
    if created_at.tzinfo is None:
        created_at = created_at.replace(tzinfo=UTC)
    return CommentRecord(
        id=payload.id,
        viewer_id=payload.viewer_id or viewer_id or "",
        subject_id=payload.subject_id or subject_id,
        text=payload.text if payload.text is not None else (text or ""),
        created_at=created_at,
    )


def parse_subject(payload: SubjectPayload) -> InteractionSubject:
    return InteractionSubject(
        id=payload.id,
        likes_count=payload.likes_count,
        comments_count=payload.comments_count,
        profile_id=payload.profile_id,
    )
