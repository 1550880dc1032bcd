"""Per-report result cache on disk."""
from __future__ import annotations

import json
import os
import re
import tempfile
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, List, Optional

from . import config
from .logging_utils import _scraper_event
from .utils import resolve_cache_dir, unique_in_order

DEFAULT_PROGRESS = "100%"
_REPORT_FILE_PATTERN = re.compile(r"report_(\d+)_numbers")


@dataclass
class ReportData:
    numbers: List[str] = field(default_factory=list)
    progress: str = "0%"

    def __post_init__(self) -> None:
        self.numbers = unique_in_order(str(n) for n in self.numbers)

    @classmethod
    def from_payload(cls, payload: Any) -> "ReportData":
        """Build from either cache payload shape.

        Older cache files hold a bare list of numbers, which implies a fully
        processed report.
        """

        if isinstance(payload, list):
            return cls(numbers=[str(n) for n in payload], progress=DEFAULT_PROGRESS)
        if isinstance(payload, dict):
            numbers = payload.get("numbers") or []
            if not isinstance(numbers, list):
                raise ValueError("cache payload 'numbers' must be a list")
            progress = payload.get("progress") or DEFAULT_PROGRESS
            return cls(numbers=[str(n) for n in numbers], progress=str(progress))
        raise ValueError(f"unsupported cache payload type: {type(payload).__name__}")

    def to_dict(self) -> dict[str, Any]:
        return {"numbers": list(self.numbers), "progress": self.progress}


def report_id_from_path(path: str | Path) -> str:
    match = _REPORT_FILE_PATTERN.search(Path(path).name)
    return match.group(1) if match else "Unknown"


class ReportCache:
    """JSON file per report id, valid for ``ttl_seconds`` after the last write."""

    def __init__(self, directory: Optional[Path] = None, ttl_seconds: Optional[float] = None) -> None:
        self._directory = Path(directory) if directory is not None else None
        self.ttl_seconds = config.CACHE_TTL_SECONDS if ttl_seconds is None else float(ttl_seconds)

    @property
    def directory(self) -> Path:
        if self._directory is None:
            self._directory = resolve_cache_dir()
        return self._directory

    def path_for(self, report_id: str) -> Path:
        return self.directory / f"report_{report_id}_numbers.json"

    def is_valid(self, report_id: str, now: Optional[float] = None) -> bool:
        path = self.path_for(report_id)
        try:
            mtime = path.stat().st_mtime
        except FileNotFoundError:
            return False
        now = time.time() if now is None else now
        return (now - mtime) < self.ttl_seconds

    def write(self, report_id: str, data: ReportData) -> Path:
        """Persist ``data`` for ``report_id``, replacing any previous entry."""

        path = self.path_for(report_id)
        path.parent.mkdir(parents=True, exist_ok=True)
        # One temp file per writer; concurrent writers of an id each replace the entry whole.
        handle = tempfile.NamedTemporaryFile(
            "w", encoding="utf-8", dir=path.parent, prefix=f".{path.stem}-", suffix=".tmp", delete=False
        )
        tmp_path = Path(handle.name)
        try:
            with handle:
                json.dump(data.to_dict(), handle, ensure_ascii=False, indent=2)
            os.replace(tmp_path, path)
        except Exception:
            tmp_path.unlink(missing_ok=True)
            raise
        _scraper_event(
            "cache",
            phase="write",
            report_id=report_id,
            numbers=len(data.numbers),
            progress=data.progress,
        )
        return path

    def read(self, report_id: str) -> ReportData:
        return self.read_path(self.path_for(report_id))

    @staticmethod
    def read_path(path: str | Path) -> ReportData:
        with Path(path).open("r", encoding="utf-8") as handle:
            payload = json.load(handle)
        return ReportData.from_payload(payload)


__all__ = ["ReportData", "ReportCache", "report_id_from_path", "DEFAULT_PROGRESS"]
