"""Error taxonomy for the transform pipeline.

Every failure that reaches a transform handler is turned into an
:class:`ApiError` (HTTP status, machine-readable code, human message) by
:func:`classify_error`. Errors raised by our own components are already
``ApiError`` instances; anything coming out of the provider SDK or the
network stack is classified by status, exception type and message.
"""
from __future__ import annotations

import asyncio
import logging
import socket
from typing import Any, Iterator

import httpx

logger = logging.getLogger(__name__)

# Machine-readable error codes
MISSING_FILE = "MISSING_FILE"
TOO_MANY_FILES = "TOO_MANY_FILES"
INVALID_FILE_TYPE = "INVALID_FILE_TYPE"
FILE_TOO_LARGE = "FILE_TOO_LARGE"
MISSING_PROMPT = "MISSING_PROMPT"
UPLOAD_ERROR = "UPLOAD_ERROR"
NETWORK_ERROR = "NETWORK_ERROR"
TIMEOUT = "TIMEOUT"
RATE_LIMITED = "RATE_LIMITED"
SERVER_BUSY = "SERVER_BUSY"
NO_IMAGE_RETURNED = "NO_IMAGE_RETURNED"
FETCH_FAILED = "FETCH_FAILED"
UNKNOWN_ERROR = "UNKNOWN_ERROR"
INTERNAL_ERROR = "INTERNAL_ERROR"

_STATUS_CODES = {
    408: TIMEOUT,
    429: RATE_LIMITED,
    503: NETWORK_ERROR,
}

_DNS_MARKERS = (
    "enotfound",
    "name or service not known",
    "nodename nor servname",
    "temporary failure in name resolution",
    "getaddrinfo failed",
    "no address associated with hostname",
)

_TIMEOUT_TYPES: tuple[type[BaseException], ...] = (
    httpx.TimeoutException,
    asyncio.TimeoutError,
    TimeoutError,
)


class ApiError(Exception):
    """A failure with a known HTTP status and error code."""

    def __init__(self, status: int, code: str, message: str):
        super().__init__(message)
        self.status = status
        self.code = code
        self.message = message

    def __repr__(self) -> str:
        return f"{type(self).__name__}(status={self.status}, code={self.code!r}, message={self.message!r})"


class UploadRejectedError(ApiError):
    """Raised by the upload gate. Always HTTP 400."""

    def __init__(self, code: str, message: str):
        super().__init__(400, code, message)


class NoImageReturnedError(ApiError):
    def __init__(self, message: str = "Provider did not return an image"):
        super().__init__(502, NO_IMAGE_RETURNED, message)


class ImageFetchError(ApiError):
    """The provider returned a URL but fetching it did not succeed."""

    def __init__(self, fetch_status: int):
        super().__init__(502, FETCH_FAILED, f"Failed to fetch image: {fetch_status}")
        self.fetch_status = fetch_status


class ServerBusyError(ApiError):
    def __init__(self, message: str = "Too many image transformations in progress, try again shortly"):
        super().__init__(503, SERVER_BUSY, message)


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------


def classify_error(exc: BaseException) -> ApiError:
    """Map any pipeline failure to an :class:`ApiError`.

    Precedence: an explicit provider status wins, then DNS failure (503),
    then timeout (408), then rate limiting (429), then 500.
    """

    if isinstance(exc, ApiError):
        return exc

    message = str(exc) or type(exc).__name__
    status = _provider_status(exc)
    if status is not None:
        code = _STATUS_CODES.get(status) or _code_from_message(exc, message) or UNKNOWN_ERROR
        return ApiError(status, code, message)

    if _is_dns_failure(exc):
        return ApiError(503, NETWORK_ERROR, message)
    if _is_timeout(exc, message):
        return ApiError(408, TIMEOUT, message)
    if _is_rate_limited(message):
        return ApiError(429, RATE_LIMITED, message)
    return ApiError(500, UNKNOWN_ERROR, message)


def _provider_status(exc: BaseException) -> int | None:
    for attr in ("status_code", "status"):
        value: Any = getattr(exc, attr, None)
        if isinstance(value, int) and not isinstance(value, bool) and 100 <= value <= 599:
            return value
    return None


def _code_from_message(exc: BaseException, message: str) -> str | None:
    if _is_dns_failure(exc):
        return NETWORK_ERROR
    if _is_timeout(exc, message):
        return TIMEOUT
    if _is_rate_limited(message):
        return RATE_LIMITED
    return None


def _exception_chain(exc: BaseException) -> Iterator[BaseException]:
    seen: set[int] = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        yield current
        current = current.__cause__ or current.__context__


def _is_dns_failure(exc: BaseException) -> bool:
    for link in _exception_chain(exc):
        if isinstance(link, socket.gaierror):
            return True
        if getattr(link, "code", None) == "ENOTFOUND":
            return True
        text = str(link).lower()
        if any(marker in text for marker in _DNS_MARKERS):
            return True
    return False


def _is_timeout(exc: BaseException, message: str) -> bool:
    if any(isinstance(link, _TIMEOUT_TYPES) for link in _exception_chain(exc)):
        return True
    lowered = message.lower()
    return "timeout" in lowered or "timed out" in lowered


def _is_rate_limited(message: str) -> bool:
    lowered = message.lower()
    return "rate limit" in lowered or "rate_limit" in lowered
