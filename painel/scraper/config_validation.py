from __future__ import annotations

from typing import Literal

from . import config
from .logging_utils import _scraper_event
from .utils import log_line

Entrypoint = Literal["ui", "cli", "tests"]

# Entrypoints that launch the report scraper need the Digesto token up front.
SCRAPING_ENTRYPOINTS = {"cli"}


def _raise_config_error(message: str, *, entrypoint: Entrypoint, error: str) -> None:
    _scraper_event(
        "error",
        phase="config",
        context="runtime_validation",
        error=error,
        entrypoint=entrypoint,
    )
    log_line(f"[CONFIG] {message} (entrypoint={entrypoint})")
    raise ValueError(message)


def _clamp_minimum(field_name: str, minimum: int, *, entrypoint: Entrypoint) -> None:
    value = getattr(config, field_name)
    if value >= minimum:
        return
    _scraper_event(
        "state",
        phase="config",
        context="runtime_validation",
        kind="config_adjustment",
        field=field_name,
        value=value,
        adjusted=minimum,
        entrypoint=entrypoint,
    )
    log_line(f"[CONFIG] {field_name} < {minimum}; clamping to {minimum}.")
    setattr(config, field_name, minimum)


def validate_runtime_config(
    entrypoint: Entrypoint, *, require_token: bool | None = None
) -> None:
    """Validate runtime configuration for the given entrypoint.

    Raises ``ValueError`` when a blocking misconfiguration is detected.
    Out-of-range concurrency knobs are clamped and logged instead.
    """

    if require_token is None:
        require_token = entrypoint in SCRAPING_ENTRYPOINTS
    if require_token and not config.digesto_token():
        _raise_config_error(
            f"{config.DIGESTO_API_TOKEN_ENV} must be set to scrape reports.",
            entrypoint=entrypoint,
            error="missing_token",
        )

    _clamp_minimum("PARALLEL_LIMIT", 1, entrypoint=entrypoint)
    _clamp_minimum("MAX_RETRIES", 1, entrypoint=entrypoint)

    timeout_fields = [
        ("PLAYWRIGHT_NAV_TIMEOUT_MS", config.PLAYWRIGHT_NAV_TIMEOUT_MS),
        ("PLAYWRIGHT_ELEMENT_TIMEOUT_MS", config.PLAYWRIGHT_ELEMENT_TIMEOUT_MS),
        ("PLAYWRIGHT_HOVER_TIMEOUT_MS", config.PLAYWRIGHT_HOVER_TIMEOUT_MS),
        ("PLAYWRIGHT_ROWS_TIMEOUT_MS", config.PLAYWRIGHT_ROWS_TIMEOUT_MS),
        ("DIGESTO_API_TIMEOUT_SECONDS", config.DIGESTO_API_TIMEOUT_SECONDS),
    ]

    for field_name, value in timeout_fields:
        if value <= 0:
            _raise_config_error(
                f"{field_name} must be greater than zero.",
                entrypoint=entrypoint,
                error="invalid_timeout",
            )


__all__ = ["validate_runtime_config", "Entrypoint"]
