from __future__ import annotations

from typing import Any

from .utils import log_line


def _format_fields(fields: dict[str, Any]) -> str:
    return ", ".join(f"{key}={value!r}" for key, value in sorted(fields.items()))


def _scraper_event(event: str = "", /, *, phase: str | None = None, **fields: Any) -> None:
    """Log one ``[SCRAPER][EVENT] key=value`` line.

    ``event`` is positional-only, so payload fields may use any name
    (``label``, ``event``) without clashing with it. Without an event,
    ``phase`` becomes the tag; otherwise it is logged as a field.
    """

    try:
        tag = event or phase or ""
        if phase and event:
            fields.setdefault("phase", phase)
        log_line(f"[SCRAPER][{tag.upper()}] {_format_fields(fields)}")
    except Exception:
        # Logging never interrupts a report run.
        return


__all__ = ["_scraper_event"]
