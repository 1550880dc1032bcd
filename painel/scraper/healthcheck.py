from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

from . import config
from .config_validation import validate_runtime_config
from .logging_utils import _scraper_event
from .utils import dir_is_writable, log_line, resolve_cache_dir


@dataclass
class HealthResult:
    ok: bool
    checks: dict[str, dict[str, Any]]


def run_health_checks(entrypoint: str = "cli") -> HealthResult:
    checks: dict[str, dict[str, Any]] = {}

    try:
        validate_runtime_config(entrypoint or "cli", require_token=False)
        checks["config"] = {"ok": True}
    except ValueError as exc:
        checks["config"] = {"ok": False, "error": str(exc)}

    configured = Path(config.CACHE_DIR)
    try:
        cache_dir = resolve_cache_dir(configured)
    except OSError as exc:
        checks["filesystem"] = {"ok": False, "configured_cache_dir": str(configured), "error": str(exc)}
    else:
        checks["filesystem"] = {
            "ok": dir_is_writable(cache_dir),
            "cache_dir": str(cache_dir),
            "configured_cache_dir": str(configured),
            "fallback": cache_dir != configured,
            "data_dir": str(config.DATA_DIR),
        }

    checks["token"] = {"ok": config.digesto_token() is not None}

    # The dashboard still serves court counts without a token; the CLI cannot run.
    strict_token = entrypoint == "cli"
    overall_ok = all(
        check.get("ok", False)
        for name, check in checks.items()
        if strict_token or name != "token"
    )

    _scraper_event(
        "state" if overall_ok else "error",
        phase="health",
        context="healthcheck",
        ok=overall_ok,
        checks=checks,
    )

    return HealthResult(ok=overall_ok, checks=checks)


if __name__ == "__main__":  # pragma: no cover
    result = run_health_checks(entrypoint="cli")
    for name, info in result.checks.items():
        status = "OK" if info.get("ok") else "FAIL"
        log_line(f"[HEALTH] {name}: {status} {info}")
    raise SystemExit(0 if result.ok else 1)
