"""Pydantic models describing the interaction service payloads.

Comment and subject payloads also accept the raw document field names
(``$id``, ``user_id``, ``vibe_id``, ``created_at``, legacy ``stats``) that older
endpoints return.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from datetime import datetime
from typing import cast

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator


def _to_int(value: object) -> int:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip() or 0)
        except ValueError:
            return 0
    return 0


class InteractionBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class ToggleLikeRequest(InteractionBaseModel):
    viewer_id: str = Field(serialization_alias="viewerId")
    subject_id: str = Field(serialization_alias="subjectId")
    timestamp: int


class LikeStatusPayload(InteractionBaseModel):
    count: int = 0
    has_liked: bool = Field(default=False, alias="hasLiked")

    @field_validator("count", mode="before")
    @classmethod
    def _coerce_count(cls, value: object) -> int:
        return max(0, _to_int(value))

    @field_validator("has_liked", mode="before")
    @classmethod
    def _coerce_flag(cls, value: object) -> bool:
        return bool(value)


class CreateCommentRequest(InteractionBaseModel):
    viewer_id: str = Field(serialization_alias="viewerId")
    subject_id: str = Field(serialization_alias="subjectId")
    text: str
    timestamp: int


class CommentPayload(InteractionBaseModel):
    id: str = Field(validation_alias=AliasChoices("id", "$id"))
    viewer_id: str | None = Field(
        default=None, validation_alias=AliasChoices("viewerId", "user_id")
    )
    subject_id: str | None = Field(
        default=None, validation_alias=AliasChoices("subjectId", "vibe_id")
    )
    text: str | None = None
    timestamp: datetime | None = Field(
        default=None, validation_alias=AliasChoices("timestamp", "created_at")
    )


class CreateCommentResponse(InteractionBaseModel):
    """Create answers either with the comment itself or wrapped as ``{"comment": {...}}``."""

    comment: CommentPayload

    @model_validator(mode="before")
    @classmethod
    def _wrap_bare_comment(cls, value: object) -> object:
        if isinstance(value, Mapping) and "comment" not in value:
            return {"comment": value}
        return value


class CommentListResponse(InteractionBaseModel):
    comments: list[CommentPayload] = Field(default_factory=list)
    total: int | None = None


class SubjectPayload(InteractionBaseModel):
    id: str = Field(validation_alias=AliasChoices("id", "$id"))
    likes_count: int = Field(default=0, alias="likesCount")
    comments_count: int = Field(default=0, alias="commentsCount")
    profile_id: str | None = Field(
        default=None, validation_alias=AliasChoices("profileId", "user_id")
    )

    @model_validator(mode="before")
    @classmethod
    def _normalize_legacy_stats(cls, value: object) -> object:
        """Derive counters from ``stats`` when the flat fields are absent.

        ``stats`` is either ``[likes, comments, views]`` (strings or numbers) or
        ``{"total_likes": .., "total_comments": ..}``.
        """

        if not isinstance(value, Mapping):
            return value
        data = dict(cast(Mapping[str, object], value))
        stats = data.get("stats")
        if "likesCount" in data or "commentsCount" in data or stats is None:
            return data
        if isinstance(stats, Mapping):
            stats_map = cast(Mapping[str, object], stats)
            data["likesCount"] = _to_int(stats_map.get("total_likes"))
            data["commentsCount"] = _to_int(stats_map.get("total_comments"))
        elif isinstance(stats, Sequence) and not isinstance(stats, str):
            items = list(cast(Sequence[object], stats))
            data["likesCount"] = _to_int(items[0]) if len(items) > 0 else 0
            data["commentsCount"] = _to_int(items[1]) if len(items) > 1 else 0
        return data

    @field_validator("likes_count", "comments_count", mode="after")
    @classmethod
    def _non_negative(cls, value: int) -> int:
        return max(0, value)


class FlatCountersPatch(InteractionBaseModel):
    likes_count: int | None = Field(default=None, serialization_alias="likesCount")
    comments_count: int | None = Field(default=None, serialization_alias="commentsCount")


class LegacyStats(InteractionBaseModel):
    total_likes: int | None = None
    total_comments: int | None = None


class LegacyStatsPatch(InteractionBaseModel):
    stats: LegacyStats


class ErrorResponse(InteractionBaseModel):
    error: str | None = None
    message: str | None = None

    @property
    def detail(self) -> str | None:
        return self.error or self.message
