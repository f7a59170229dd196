"""Structured error taxonomy shared by the cache, store and orchestrator."""

from __future__ import annotations

import re
from enum import Enum


class ErrorKind(str, Enum):
    CONNECTIVITY = "connectivity"
    TIMEOUT = "timeout"
    NOT_FOUND = "not_found"
    SERIALIZATION = "serialization"
    UNCLASSIFIED = "unclassified"


class PromptSmithError(Exception):
    """Base error raised by backing-service adapters.

    Adapters translate driver exceptions into this hierarchy so callers can
    branch on `kind` instead of inspecting messages.
    """

    kind: ErrorKind = ErrorKind.UNCLASSIFIED

    def __init__(self, message: str, *, kind: ErrorKind | None = None) -> None:
        super().__init__(message)
        if kind is not None:
            self.kind = kind


class BackendUnavailableError(PromptSmithError):
    kind = ErrorKind.CONNECTIVITY


class BackendTimeoutError(PromptSmithError):
    kind = ErrorKind.TIMEOUT


class RecordNotFoundError(PromptSmithError):
    kind = ErrorKind.NOT_FOUND


# Drivers that do not raise typed errors still leak these markers.
_CONNECTIVITY_PATTERN = re.compile(
    r"ECONNREFUSED|ENOTFOUND|ECONNRESET|EHOSTUNREACH|connection refused|"
    r"connection reset|unable to connect|could not connect|unable to open database",
    flags=re.IGNORECASE,
)
_TIMEOUT_PATTERN = re.compile(r"ETIMEDOUT|timed out", flags=re.IGNORECASE)


def classify_error(exc: BaseException) -> ErrorKind:
    if isinstance(exc, PromptSmithError):
        return exc.kind
    if isinstance(exc, TimeoutError):
        return ErrorKind.TIMEOUT
    if isinstance(exc, ConnectionError):
        return ErrorKind.CONNECTIVITY

    message = str(exc)
    if _CONNECTIVITY_PATTERN.search(message):
        return ErrorKind.CONNECTIVITY
    if _TIMEOUT_PATTERN.search(message):
        return ErrorKind.TIMEOUT
    return ErrorKind.UNCLASSIFIED


def is_degradable(exc: BaseException) -> bool:
    """True when the failure means a dependency is unreachable."""
    return classify_error(exc) in {ErrorKind.CONNECTIVITY, ErrorKind.TIMEOUT}
