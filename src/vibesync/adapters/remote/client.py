"""HTTP client for the interaction service."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING, Any, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from vibesync.adapters.http_resilience import ResilientClient
from vibesync.config.http_resilience import READ_TIMEOUT_SECONDS
from vibesync.config.sync import DEFAULT_MUTATION_TIMEOUT_SECONDS
from vibesync.domain.errors import (
    MalformedResponse,
    NotFound,
    PermissionDenied,
    RemoteRejected,
    TransientError,
)
from vibesync.domain.model import CounterShape, ErrorCode
from vibesync.domain.ports import CommentPage

from .schema import (
    CommentListResponse,
    CreateCommentRequest,
    CreateCommentResponse,
    ErrorResponse,
    FlatCountersPatch,
    LegacyStats,
    LegacyStatsPatch,
    LikeStatusPayload,
    SubjectPayload,
    ToggleLikeRequest,
)
from .translator import parse_comment, parse_like_status, parse_subject, to_epoch_millis

if TYPE_CHECKING:
    from collections.abc import Callable
    from datetime import datetime

    from vibesync.config.http_resilience import ResilienceConfig
    from vibesync.domain.model import CommentRecord, InteractionSubject, LikeStatus

log = getLogger(__name__)


def _default_client_factory(config: ResilienceConfig) -> ResilientClient:
    return ResilientClient(config)


def _error_detail(response: httpx.Response) -> str | None:
    try:
        payload = response.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return response.text or None
    if not isinstance(payload, dict):
        return None
    try:
        return ErrorResponse.model_validate(payload).detail
    except ValidationError:
        return None


def raise_for_status(response: httpx.Response) -> None:
    """Map a non-2xx response onto the interaction error taxonomy."""

    status = response.status_code
    if status < 400:
        return
    detail = _error_detail(response)
    request = response.request
    log.warning("%s %s answered %s: %s", request.method, request.url.path, status, detail)
    if status in (401, 403):
        raise PermissionDenied(detail)
    if status == 404:
        raise NotFound(detail)
    if status < 500:
        raise RemoteRejected(detail, status_code=status)
    raise TransientError(detail or f"Server error {status}", code=ErrorCode.SERVER)


@dataclass(slots=True)
class HttpInteractionService:
    """``InteractionService`` over the JSON API.

    Reads go through the transport retry policy; mutations are sent once with the longer
    mutation timeout.
    """

    resilience: ResilienceConfig
    client_factory: Callable[[ResilienceConfig], ResilientClient] = field(
        default=_default_client_factory
    )
    mutation_timeout_seconds: float = DEFAULT_MUTATION_TIMEOUT_SECONDS
    _client: ResilientClient | None = field(default=None, init=False, repr=False)

    @property
    def client(self) -> ResilientClient:
        if self._client is None:
            self._client = self.client_factory(self.resilience)
        return self._client

    async def aclose(self) -> None:
        client, self._client = self._client, None
        if client is not None:
            await client.aclose()

    async def toggle_like(
        self, *, subject_id: str, viewer_id: str, timestamp: datetime
    ) -> LikeStatus:
        body = ToggleLikeRequest(
            viewer_id=viewer_id,
            subject_id=subject_id,
            timestamp=to_epoch_millis(timestamp),
        )
        payload = await self._send("POST", "/likes/toggle", body=_dump(body))
        return parse_like_status(_validate(LikeStatusPayload, payload))

    async def fetch_likes(self, *, subject_id: str, viewer_id: str | None = None) -> LikeStatus:
        params = {"subjectId": subject_id}
        if viewer_id:
            params["viewerId"] = viewer_id
        payload = await self._send("GET", "/likes", params=params)
        return parse_like_status(_validate(LikeStatusPayload, payload))

    async def create_comment(
        self, *, subject_id: str, viewer_id: str, text: str, timestamp: datetime
    ) -> CommentRecord:
        body = CreateCommentRequest(
            viewer_id=viewer_id,
            subject_id=subject_id,
            text=text,
            timestamp=to_epoch_millis(timestamp),
        )
        payload = await self._send("POST", "/comments", body=_dump(body))
        created = _validate(CreateCommentResponse, payload).comment
        return parse_comment(
            created,
            subject_id=subject_id,
            viewer_id=viewer_id,
            text=text,
            fallback_time=timestamp,
        )

    async def list_comments(
        self, *, subject_id: str, limit: int = 20, offset: int = 0
    ) -> CommentPage:
        params = {"subjectId": subject_id, "limit": limit, "offset": offset}
        payload = await self._send("GET", "/comments", params=params)
        response = _validate(CommentListResponse, payload)
        comments = [parse_comment(item, subject_id=subject_id) for item in response.comments]
        total = response.total if response.total is not None else offset + len(comments)
        return CommentPage(comments=comments, total=max(0, total))

    async def delete_comment(self, *, comment_id: str) -> None:
        await self._send("DELETE", f"/comments/{comment_id}")

    async def fetch_subject(self, *, subject_id: str) -> InteractionSubject:
        payload = await self._send("GET", f"/subjects/{subject_id}")
        return parse_subject(_validate(SubjectPayload, payload))

    async def update_subject_counters(
        self,
        *,
        subject_id: str,
        comments_count: int | None = None,
        likes_count: int | None = None,
        shape: CounterShape = CounterShape.FLAT,
    ) -> None:
        patch: BaseModel
        if shape is CounterShape.STATS:
            patch = LegacyStatsPatch(
                stats=LegacyStats(total_likes=likes_count, total_comments=comments_count)
            )
        else:
            patch = FlatCountersPatch(likes_count=likes_count, comments_count=comments_count)
        await self._send("PATCH", f"/subjects/{subject_id}", body=_dump(patch))

    async def _send(
        self,
        method: str,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        body: dict[str, Any] | None = None,
    ) -> object:
        timeout = READ_TIMEOUT_SECONDS if method == "GET" else self.mutation_timeout_seconds
        try:
            response = await self.client.send(
                method, url, params=params, json=body, timeout=timeout
            )
        except httpx.TimeoutException as exc:
            raise TransientError(str(exc) or None, code=ErrorCode.TIMEOUT) from exc
        except httpx.HTTPError as exc:
            raise TransientError(str(exc) or None, code=ErrorCode.NETWORK) from exc

        raise_for_status(response)
        if not response.content:
            return {}
        try:
            return response.json()
        except (ValueError, UnicodeDecodeError) as exc:
            raise MalformedResponse(f"{method} {url} returned invalid JSON") from exc


def _dump(model: BaseModel) -> dict[str, Any]:
    return model.model_dump(by_alias=True, exclude_none=True)


ModelT = TypeVar("ModelT", bound=BaseModel)


def _validate(model: type[ModelT], payload: object) -> ModelT:
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        log.error("Unexpected %s payload: %s", model.__name__, exc)
        raise MalformedResponse(f"Unexpected {model.__name__} payload") from exc
