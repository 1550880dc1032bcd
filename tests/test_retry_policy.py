from __future__ import annotations

import asyncio

import pytest

from painel.scraper import logging_utils, retry_policy
from painel.scraper.cache import ReportData
from painel.scraper.retry_policy import RetryExhaustedError, with_retry


@pytest.fixture
def event_recorder(monkeypatch: pytest.MonkeyPatch) -> list[tuple[str, dict]]:
    events: list[tuple[str, dict]] = []

    def _record(event_phase: str, **fields: object) -> None:
        events.append((event_phase, fields))

    monkeypatch.setattr(retry_policy, "_scraper_event", _record)
    return events


class _SleepRecorder:
    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.mark.parametrize(
    "attempt, expected, kind",
    [
        (1, True, "retryable"),
        (2, True, "retryable"),
        (3, False, "capped"),
        (5, False, "capped"),
    ],
)
def test_decide_retry_limits(
    attempt: int, expected: bool, kind: str, event_recorder: list[tuple[str, dict]]
) -> None:
    result = retry_policy.decide_retry(attempt, 3, error_code="timeout", label="report:1")
    assert result is expected
    assert len(event_recorder) == 1
    phase, fields = event_recorder[0]
    assert phase == "state"
    assert fields["phase"] == "retry_decision"
    assert fields["error_code"] == "timeout"
    assert fields["attempt"] == attempt
    assert fields["max_attempts"] == 3
    assert fields["will_retry"] is expected
    assert fields["kind"] == kind


def test_backoff_is_linear() -> None:
    assert retry_policy.compute_backoff_seconds(1, 2.0) == 2.0
    assert retry_policy.compute_backoff_seconds(3, 2.0) == 6.0


def test_failure_invokes_op_max_attempts_times(event_recorder) -> None:
    calls = []
    sleep = _SleepRecorder()

    async def op():
        calls.append(1)
        raise RuntimeError("Timeout 60000ms exceeded")

    with pytest.raises(RetryExhaustedError) as info:
        asyncio.run(with_retry(op, 3, 2.0, label="report:1", sleep=sleep))

    assert len(calls) == 3
    assert sleep.delays == [2.0, 4.0]
    assert info.value.attempts == 3
    assert info.value.message == "Timeout 60000ms exceeded"


def test_success_after_failure_returns_result(event_recorder) -> None:
    outcomes = [RuntimeError("flaky"), ReportData(numbers=["00012345620248240001"])]
    sleep = _SleepRecorder()

    async def op():
        outcome = outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    result = asyncio.run(with_retry(op, 3, 1.0, sleep=sleep))

    assert result.numbers == ["00012345620248240001"]
    assert sleep.delays == [1.0]


def test_empty_results_are_retried_then_none(event_recorder) -> None:
    calls = []
    sleep = _SleepRecorder()

    async def op():
        calls.append(1)
        return ReportData(numbers=[])

    assert asyncio.run(with_retry(op, 3, 0.5, sleep=sleep)) is None
    assert len(calls) == 3
    assert sleep.delays == [0.5, 1.0]
    codes = [fields["error_code"] for _, fields in event_recorder if fields["phase"] == "retry_decision"]
    assert codes == ["empty_result"] * 3


def test_single_attempt_does_not_sleep(event_recorder) -> None:
    sleep = _SleepRecorder()

    async def op():
        raise ValueError("bad")

    with pytest.raises(RetryExhaustedError):
        asyncio.run(with_retry(op, 1, 5.0, sleep=sleep))
    assert sleep.delays == []


def test_exhausted_failure_logs_through_real_event_helper(monkeypatch) -> None:
    lines: list[str] = []
    monkeypatch.setattr(logging_utils, "log_line", lines.append)
    calls = []

    async def op():
        calls.append(1)
        raise RuntimeError("net::ERR_CONNECTION_RESET")

    with pytest.raises(RetryExhaustedError) as info:
        asyncio.run(with_retry(op, 3, 0.1, label="report:77", sleep=_SleepRecorder()))

    assert len(calls) == 3
    assert info.value.attempts == 3
    attempt_lines = [line for line in lines if "phase='retry_attempt'" in line]
    assert len(attempt_lines) == 3
    assert all("retry_label='report:77'" in line for line in attempt_lines)


def test_empty_results_log_through_real_event_helper(monkeypatch) -> None:
    lines: list[str] = []
    monkeypatch.setattr(logging_utils, "log_line", lines.append)

    async def op():
        return ReportData(numbers=[])

    assert asyncio.run(with_retry(op, 2, 0.1, label="report:78", sleep=_SleepRecorder())) is None
    decisions = [line for line in lines if "phase='retry_decision'" in line]
    assert len(decisions) == 2
    assert "error_code='empty_result'" in decisions[-1]
