from __future__ import annotations

import logging
import sys
import tempfile
from pathlib import Path

from . import config

LOGGER = logging.getLogger("painel")
_LOGGER_INITIALISED = False
_CURRENT_LOG_FILE: Path = config.LOG_FILE


def _configure_logger(log_path: Path | None) -> None:
    """Configure the shared application logger.

    Logs always go to stdout; ``log_path`` adds a file handler when the log
    directory is writable.
    """

    global _LOGGER_INITIALISED, _CURRENT_LOG_FILE

    for handler in list(LOGGER.handlers):
        LOGGER.removeHandler(handler)
        try:
            handler.close()
        except Exception:  # noqa: BLE001
            continue

    formatter = logging.Formatter(
        fmt="[%(asctime)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    stream_handler = logging.StreamHandler(sys.stdout)
    stream_handler.setFormatter(formatter)
    LOGGER.addHandler(stream_handler)

    if log_path is not None:
        try:
            log_path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(log_path, encoding="utf-8")
        except OSError:
            file_handler = None
        if file_handler is not None:
            file_handler.setFormatter(formatter)
            LOGGER.addHandler(file_handler)
            _CURRENT_LOG_FILE = log_path

    LOGGER.setLevel(logging.INFO)
    LOGGER.propagate = False
    _LOGGER_INITIALISED = True


def _ensure_logger() -> None:
    """Initialise the logger lazily using the default log file."""

    if _LOGGER_INITIALISED:
        return
    _configure_logger(config.LOG_FILE)


def get_current_log_path() -> Path:
    """Return the path to the log file currently receiving log lines."""

    _ensure_logger()
    return _CURRENT_LOG_FILE


def log_line(message: str) -> None:
    """Write a timestamped log line to stdout and the active log file."""

    _ensure_logger()
    LOGGER.info(message)


def dir_is_writable(path: Path) -> bool:
    """Return ``True`` when ``path`` exists (or can be created) and accepts writes."""

    try:
        path.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(dir=path, prefix=".write-check-", delete=True):
            pass
    except OSError:
        return False
    return True


def resolve_cache_dir(preferred: Path | None = None) -> Path:
    """Return a writable cache directory.

    Falls back to the system temp directory when ``preferred`` is read-only,
    which is the case on some serverless/container deployments.
    """

    candidate = Path(preferred or config.CACHE_DIR)
    if dir_is_writable(candidate):
        return candidate

    fallback = Path(tempfile.gettempdir()) / config.FALLBACK_CACHE_DIRNAME
    fallback.mkdir(parents=True, exist_ok=True)
    log_line(f"[CACHE] {candidate} is not writable; using {fallback}")
    return fallback


def unique_in_order(values) -> list:
    """Deduplicate ``values`` keeping first-seen order."""

    return list(dict.fromkeys(values))


__all__ = [
    "LOGGER",
    "get_current_log_path",
    "log_line",
    "dir_is_writable",
    "resolve_cache_dir",
    "unique_in_order",
]
