from __future__ import annotations

"""Centralised error code taxonomy for scraper and Digesto API failures.

These codes are included in structured logs so that we can explain why a
report or an API call failed. Task payloads only ever carry the summarised
message, never the code.
"""


class ErrorCode:
    NETWORK = "network_error"
    HTTP_4XX = "http_4xx"
    HTTP_401 = "http_401_unauthorised"
    HTTP_403 = "http_403_forbidden"
    HTTP_404 = "http_404_not_found"
    HTTP_5XX = "http_5xx"
    NAVIGATION = "navigation_error"
    TIMEOUT = "timeout"
    SITE_STRUCTURE = "site_structure_changed"
    EMPTY_RESULT = "empty_result"
    INVALID_PAYLOAD = "invalid_payload"
    INTERNAL = "internal_error"


def classify_http_status(status: int | None) -> str:
    if status is None:
        return ErrorCode.INTERNAL
    if status == 401:
        return ErrorCode.HTTP_401
    if status == 403:
        return ErrorCode.HTTP_403
    if status == 404:
        return ErrorCode.HTTP_404
    if 400 <= status < 500:
        return ErrorCode.HTTP_4XX
    if status >= 500:
        return ErrorCode.HTTP_5XX
    return ErrorCode.INTERNAL


def classify_exception(exc: BaseException) -> str:
    """Best-effort mapping of a scraping exception to an ``ErrorCode``."""

    name = type(exc).__name__
    if "Timeout" in name or isinstance(exc, TimeoutError):
        return ErrorCode.TIMEOUT
    if isinstance(exc, (ConnectionError, OSError)):
        return ErrorCode.NETWORK
    text = str(exc)
    if "net::" in text or "ERR_" in text:
        return ErrorCode.NAVIGATION
    return ErrorCode.INTERNAL


__all__ = ["ErrorCode", "classify_http_status", "classify_exception"]
