from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, Optional, TypeVar

from .error_codes import ErrorCode, classify_exception
from .logging_utils import _scraper_event

T = TypeVar("T")


class RetryExhaustedError(Exception):
    """Raised when every attempt of a retried operation failed with an error."""

    def __init__(self, attempts: int, cause: BaseException) -> None:
        super().__init__(str(cause) or type(cause).__name__)
        self.attempts = attempts
        self.cause = cause

    @property
    def message(self) -> str:
        return str(self.args[0]) if self.args else ""


def compute_backoff_seconds(attempt_index: int, base_delay: float) -> float:
    """Return the linear backoff for the given attempt (1-based)."""

    return float(base_delay) * max(1, attempt_index)


def decide_retry(
    attempt_index: int,
    max_attempts: int,
    *,
    error_code: Optional[str] = None,
    label: str = "",
) -> bool:
    """Return ``True`` while attempts remain."""

    will_retry = attempt_index < max_attempts
    _scraper_event(
        "state",
        phase="retry_decision",
        kind="retryable" if will_retry else "capped",
        retry_label=label,
        error_code=error_code,
        attempt=attempt_index,
        max_attempts=max_attempts,
        will_retry=will_retry,
    )
    return will_retry


def _is_empty(result: Any) -> bool:
    if result is None:
        return True
    numbers = getattr(result, "numbers", None)
    if numbers is not None:
        return len(numbers) == 0
    try:
        return len(result) == 0
    except TypeError:
        return False


async def with_retry(
    op: Callable[[], Awaitable[T]],
    max_attempts: int,
    base_delay: float,
    *,
    label: str = "",
    is_empty: Callable[[Any], bool] = _is_empty,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> Optional[T]:
    """Run ``op`` with bounded attempts and linear backoff.

    Exceptions are retried and, once attempts run out, re-raised wrapped in
    ``RetryExhaustedError``. Empty results are retried the same way but the
    final empty result is returned as ``None`` instead of raising.
    """

    max_attempts = max(1, int(max_attempts))
    for attempt in range(1, max_attempts + 1):
        try:
            result = await op()
        except Exception as exc:  # noqa: BLE001
            error_code = classify_exception(exc)
            _scraper_event(
                "error",
                phase="retry_attempt",
                retry_label=label,
                attempt=attempt,
                max_attempts=max_attempts,
                error_code=error_code,
                error=f"{type(exc).__name__}: {exc}",
            )
            if not decide_retry(attempt, max_attempts, error_code=error_code, label=label):
                raise RetryExhaustedError(attempt, exc) from exc
        else:
            if not is_empty(result):
                return result
            if not decide_retry(
                attempt, max_attempts, error_code=ErrorCode.EMPTY_RESULT, label=label
            ):
                return None

        await sleep(compute_backoff_seconds(attempt, base_delay))

    return None


__all__ = [
    "RetryExhaustedError",
    "compute_backoff_seconds",
    "decide_retry",
    "with_retry",
]
