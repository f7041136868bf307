"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class SyncPhase(StrEnum):
    """Reconciliation phase of one like state."""

    IDLE = "idle"
    OPTIMISTIC = "optimistic"
    RECONCILING = "reconciling"
    ROLLED_BACK = "rolled_back"


class ErrorCode(StrEnum):
    UNAUTHENTICATED = "unauthenticated"
    INVALID_INPUT = "invalid_input"
    TIMEOUT = "timeout"
    NETWORK = "network"
    SERVER = "server"
    PERMISSION = "permission"
    NOT_FOUND = "not_found"
    REJECTED = "rejected"
    MALFORMED_RESPONSE = "malformed_response"
    SYNC_FAILED = "sync_failed"
    UNEXPECTED = "unexpected"

    @property
    def message(self) -> str:
        return _MESSAGES[self]

    @property
    def is_transient(self) -> bool:
        return self in {ErrorCode.TIMEOUT, ErrorCode.NETWORK, ErrorCode.SERVER}

    @property
    def is_actionable(self) -> bool:
        """Whether the user can fix this by doing something (log in, edit text)."""

        return self in {
            ErrorCode.UNAUTHENTICATED,
            ErrorCode.INVALID_INPUT,
            ErrorCode.PERMISSION,
        }


_MESSAGES: dict[ErrorCode, str] = {
    ErrorCode.UNAUTHENTICATED: "Please log in to continue",
    ErrorCode.INVALID_INPUT: "Please check your input and try again",
    ErrorCode.TIMEOUT: "The request timed out. Changes will sync when the connection is restored",
    ErrorCode.NETWORK: "Network error. Changes will sync when the connection is restored",
    ErrorCode.SERVER: "The server is having trouble. Please try again shortly",
    ErrorCode.PERMISSION: "Your session has expired, please log in again",
    ErrorCode.NOT_FOUND: "This item no longer exists",
    ErrorCode.REJECTED: "The request was rejected",
    ErrorCode.MALFORMED_RESPONSE: "Received an unexpected response from the server",
    ErrorCode.SYNC_FAILED: "Failed to sync with server",
    ErrorCode.UNEXPECTED: "Something went wrong",
}


class CounterShape(StrEnum):
    """Payload layout for denormalised subject counters."""

    FLAT = "flat"
    STATS = "stats"
