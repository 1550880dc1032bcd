from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Any
from zoneinfo import ZoneInfo

from painel.scraper import config

NOT_AVAILABLE = "N/A"
BR_DATE_FORMAT = "%d/%m/%Y"
BR_DATETIME_FORMAT = "%d/%m/%Y, %H:%M:%S"


def parse_date(value: str | None) -> date | None:
    """Parse ``DD/MM/YYYY``; ``N/A``, empty or malformed input gives ``None``."""

    candidate = (value or "").strip()
    if not candidate or candidate == NOT_AVAILABLE:
        return None
    try:
        return datetime.strptime(candidate, BR_DATE_FORMAT).date()
    except ValueError:
        return None


def parse_date_time(value: str | None) -> date | None:
    """Parse the date part of ``DD/MM/YYYY, HH:MM:SS``."""

    candidate = (value or "").strip()
    if not candidate or candidate == NOT_AVAILABLE:
        return None
    return parse_date(candidate.split(",", 1)[0])


def is_sent_before_distributed(sent: str | None, distributed: str | None) -> bool:
    """Compare calendar days only; unknown dates are never a discrepancy."""

    sent_date = parse_date_time(sent)
    distributed_date = parse_date(distributed)
    if sent_date is None or distributed_date is None:
        return False
    return sent_date < distributed_date


def format_epoch_ms(value: Any, tz_name: str | None = None) -> str:
    """Render epoch milliseconds as ``DD/MM/YYYY, HH:MM:SS`` in the local timezone."""

    if not value:
        return NOT_AVAILABLE
    try:
        moment = datetime.fromtimestamp(float(value) / 1000, tz=timezone.utc)
    except (TypeError, ValueError, OverflowError, OSError):
        return NOT_AVAILABLE
    return moment.astimezone(ZoneInfo(tz_name or config.TIMEZONE)).strftime(BR_DATETIME_FORMAT)


def iso_to_br_date(value: str | None) -> str:
    """``YYYY-MM-DD`` → ``DD/MM/YYYY``."""

    if not value:
        return NOT_AVAILABLE
    return "/".join(reversed(value.split("-")))


__all__ = [
    "NOT_AVAILABLE",
    "parse_date",
    "parse_date_time",
    "is_sent_before_distributed",
    "format_epoch_ms",
    "iso_to_br_date",
]
