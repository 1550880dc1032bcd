"""Configuration constants for the legal-operations dashboard."""
from __future__ import annotations

import os
from pathlib import Path


def _parse_int(env_var: str, default: int, *, minimum: int | None = None) -> int:
    """Parse an integer from the environment, falling back to ``default``."""

    try:
        value = int(os.getenv(env_var, str(default)))
    except ValueError:
        return default
    if minimum is not None:
        return max(minimum, value)
    return value


def _parse_float(env_var: str, default: float, *, minimum: float | None = None) -> float:
    """Parse a float from the environment, falling back to ``default``."""

    try:
        value = float(os.getenv(env_var, str(default)))
    except ValueError:
        return default
    if minimum is not None:
        return max(minimum, value)
    return value


def _parse_bool(env_var: str, default: bool) -> bool:
    raw = os.getenv(env_var)
    if raw is None:
        return default
    return raw.strip().lower() not in {"0", "false", "no", ""}


DATA_DIR: Path = Path(os.getenv("PAINEL_DATA_DIR", str(Path.cwd() / "data")))
LOG_DIR: Path = DATA_DIR / "logs"
LOG_FILE: Path = LOG_DIR / "latest.log"
CACHE_DIR: Path = Path(os.getenv("PAINEL_CACHE_DIR", str(DATA_DIR / "cache")))
# Used when CACHE_DIR is not writable (read-only deployments).
FALLBACK_CACHE_DIRNAME: str = "painel-cache"

# Report cache and in-memory task registry lifetimes (seconds)
CACHE_TTL_SECONDS: float = _parse_float("PAINEL_CACHE_TTL_SECONDS", 3600.0, minimum=0.0)
# 0 disables eviction of finished tasks.
TASK_TTL_SECONDS: float = _parse_float("PAINEL_TASK_TTL_SECONDS", 86400.0, minimum=0.0)

# Retry + concurrency controls for report scraping
MAX_RETRIES: int = _parse_int("PAINEL_MAX_RETRIES", 3)
RETRY_DELAY_SECONDS: float = _parse_float("PAINEL_RETRY_DELAY_SECONDS", 2.0, minimum=0.0)
PARALLEL_LIMIT: int = _parse_int("PAINEL_PARALLEL_LIMIT", 6)

# Playwright browser
HEADLESS: bool = _parse_bool("PAINEL_HEADLESS", True)
BROWSER_ARGS: tuple[str, ...] = (
    "--disable-gpu",
    "--disable-dev-shm-usage",
    "--disable-setuid-sandbox",
    "--no-sandbox",
    "--disable-background-networking",
    "--disable-sync",
    "--disable-translate",
)
VIEWPORT: dict[str, int] = {"width": 1366, "height": 768}

# Playwright timeouts stay in milliseconds to match the Playwright API.
PLAYWRIGHT_NAV_TIMEOUT_MS: int = _parse_int("PAINEL_NAV_TIMEOUT_MS", 60000)
PLAYWRIGHT_ELEMENT_TIMEOUT_MS: int = _parse_int("PAINEL_ELEMENT_TIMEOUT_MS", 10000)
PLAYWRIGHT_HOVER_TIMEOUT_MS: int = _parse_int("PAINEL_HOVER_TIMEOUT_MS", 5000)
PLAYWRIGHT_ROWS_TIMEOUT_MS: int = _parse_int("PAINEL_ROWS_TIMEOUT_MS", 20000)

# Settle delays (seconds) between UI steps
SETTLE_AFTER_NAV_SECONDS: float = _parse_float("PAINEL_SETTLE_AFTER_NAV_SECONDS", 1.5, minimum=0.0)
SETTLE_AFTER_UPDATE_SECONDS: float = _parse_float("PAINEL_SETTLE_AFTER_UPDATE_SECONDS", 2.5, minimum=0.0)
FILTER_MENU_PAUSE_SECONDS: float = 1.0
FILTER_APPLY_PAUSE_SECONDS: float = _parse_float("PAINEL_FILTER_PAUSE_SECONDS", 2.0, minimum=0.0)
PAGINATION_PAUSE_SECONDS: float = _parse_float("PAINEL_PAGINATION_PAUSE_SECONDS", 2.0, minimum=0.0)
SCROLL_PAUSE_SECONDS: float = _parse_float("PAINEL_SCROLL_PAUSE_SECONDS", 0.5, minimum=0.0)

MAX_SCROLL_ATTEMPTS: int = 50
MAX_SCROLLS_WITHOUT_CHANGE: int = 3
PAGE_SIZE_LABEL: str = "1000"

# Digesto platform
DIGESTO_API_TOKEN_ENV: str = "DIGESTO_API_TOKEN"
DIGESTO_REPORT_URL: str = "https://op.digesto.com.br/#/relatorio/detalhes/"
DIGESTO_VIRTUAL_REPORT_URL: str = "https://op.digesto.com.br/#/virtual_report/detalhes/"
DIGESTO_API_BASE_URL: str = os.getenv(
    "DIGESTO_API_BASE_URL", "https://op.digesto.com.br/api"
).rstrip("/")
DIGESTO_API_TIMEOUT_SECONDS: int = _parse_int("DIGESTO_API_TIMEOUT_SECONDS", 30, minimum=1)
# Monitored event type for distributions
DISTRIBUTION_EVENT_TYPE: int = 4

TIMEZONE: str = os.getenv("PAINEL_TIMEZONE", "America/Sao_Paulo")

# Web application
SECRET_KEY: str = os.getenv("SECRET_KEY", "dev-secret-change-me")
SESSION_LIFETIME_SECONDS: int = 60 * 60 * 24 * 7


def digesto_token() -> str | None:
    """Return the Digesto bearer token, read at call time."""

    token = os.getenv(DIGESTO_API_TOKEN_ENV, "").strip()
    return token or None


def site_password() -> str | None:
    """Return the dashboard password; ``None`` disables the login gate."""

    password = os.getenv("SITE_PASSWORD", "")
    return password or None


def is_production() -> bool:
    return os.getenv("PAINEL_ENV", "").strip().lower() == "production"
