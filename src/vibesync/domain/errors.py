"""Error taxonomy shared by the reconcilers and the remote adapters."""

from __future__ import annotations

from vibesync.domain.model import ErrorCode


class InteractionError(RuntimeError):
    """Base class for failures of like and comment operations."""

    default_code: ErrorCode = ErrorCode.UNEXPECTED

    def __init__(self, message: str | None = None, *, code: ErrorCode | None = None) -> None:
        self.code = code or self.default_code
        super().__init__(message or self.code.message)


class Unauthenticated(InteractionError):
    default_code = ErrorCode.UNAUTHENTICATED


class InvalidInput(InteractionError, ValueError):
    default_code = ErrorCode.INVALID_INPUT


class TransientError(InteractionError):
    """Timeout, network failure or 5xx. Reads are retried, writes are not."""

    default_code = ErrorCode.NETWORK


class PermissionDenied(InteractionError):
    default_code = ErrorCode.PERMISSION


class NotFound(InteractionError):
    default_code = ErrorCode.NOT_FOUND


class RemoteRejected(InteractionError):
    """Any other 4xx answer; never retried."""

    default_code = ErrorCode.REJECTED

    def __init__(self, message: str | None = None, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class MalformedResponse(InteractionError):
    default_code = ErrorCode.MALFORMED_RESPONSE


def error_code_for(exc: BaseException) -> ErrorCode:
    """Map any failure raised while talking to the remote onto an ``ErrorCode``."""

    if isinstance(exc, InteractionError):
        return exc.code
    if isinstance(exc, TimeoutError):
        return ErrorCode.TIMEOUT
    return ErrorCode.UNEXPECTED


__all__ = [
    "InteractionError",
    "InvalidInput",
    "MalformedResponse",
    "NotFound",
    "PermissionDenied",
    "RemoteRejected",
    "TransientError",
    "Unauthenticated",
    "error_code_for",
]
