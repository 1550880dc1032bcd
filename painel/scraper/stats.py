"""Court-level statistics derived from extracted report numbers."""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional

from .cache import ReportCache, ReportData, report_id_from_path
from .courts import UNKNOWN_TRIBUNAL, get_tribunal_from_cnj
from .logging_utils import _scraper_event
from .report_scraper import report_url_for
from .utils import unique_in_order

TOP_TRIBUNAIS = 5


@dataclass
class ReportStats:
    report_id: str
    report_url: str
    total_atrasados: int
    tribunais: Dict[str, int]
    total_tribunais: int
    progress: str
    numbers: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "report_id": self.report_id,
            "report_url": self.report_url,
            "total_atrasados": self.total_atrasados,
            "tribunais": dict(self.tribunais),
            "total_tribunais": self.total_tribunais,
            "progress": self.progress,
            "numbers": list(self.numbers),
        }


def compute_stats(report_id: str, data: ReportData) -> ReportStats:
    """Count resolvable numbers per tribunal for one report."""

    total = 0
    tribunais: Dict[str, int] = {}
    for number in data.numbers:
        tribunal = get_tribunal_from_cnj(number)
        if not tribunal:
            continue
        total += 1
        tribunais[tribunal] = tribunais.get(tribunal, 0) + 1

    return ReportStats(
        report_id=report_id,
        report_url=report_url_for(report_id),
        total_atrasados=total,
        tribunais=tribunais,
        total_tribunais=len(tribunais),
        progress=data.progress,
        numbers=list(data.numbers),
    )


def calculate_stats(result_files: Iterable[str | Path]) -> List[ReportStats]:
    """Build stats from cache files, in the given order.

    Files that cannot be read are logged and left out.
    """

    stats: List[ReportStats] = []
    for path in result_files:
        report_id = report_id_from_path(path)
        try:
            data = ReportCache.read_path(path)
        except (OSError, ValueError) as exc:
            _scraper_event(
                "error",
                phase="stats",
                kind="unreadable_cache",
                path=str(path),
                error=f"{type(exc).__name__}: {exc}",
            )
            continue
        stats.append(compute_stats(report_id, data))
    return stats


def _stat_field(stat: ReportStats | Mapping[str, Any], name: str) -> Any:
    if isinstance(stat, Mapping):
        return stat.get(name)
    return getattr(stat, name)


def summarise_reports(stats: Iterable[ReportStats | Mapping[str, Any]]) -> Dict[str, Any]:
    """Consolidate many reports into dashboard totals.

    ``numbers`` only carries numbers from the five busiest tribunals.
    """

    total = 0
    counts: Dict[str, int] = {}
    all_numbers: List[str] = []
    for stat in stats:
        total += int(_stat_field(stat, "total_atrasados") or 0)
        all_numbers.extend(_stat_field(stat, "numbers") or [])
        for tribunal, count in (_stat_field(stat, "tribunais") or {}).items():
            counts[tribunal] = counts.get(tribunal, 0) + int(count)

    ranked = sorted(counts.items(), key=lambda item: item[1], reverse=True)
    top = [{"name": name, "value": value} for name, value in ranked[:TOP_TRIBUNAIS]]
    top_names = {entry["name"] for entry in top}
    top_numbers = [
        number
        for number in unique_in_order(all_numbers)
        if get_tribunal_from_cnj(number) in top_names
    ]

    return {
        "total_processos": total,
        "tribunais": dict(ranked),
        "top5": top,
        "numbers": top_numbers,
    }


def court_breakdown(tribunais: Mapping[str, int], total: int) -> List[Dict[str, Any]]:
    rows = [
        {
            "name": name,
            "count": count,
            "percentage": (count / total * 100) if total else 0.0,
        }
        for name, count in tribunais.items()
    ]
    return sorted(rows, key=lambda row: row["percentage"], reverse=True)


def list_processes(
    numbers: Iterable[str],
    tribunal_counts: Optional[Mapping[str, int]] = None,
    *,
    tribunal: Optional[str] = None,
    search: str = "",
) -> Dict[str, Any]:
    """Label numbers with their tribunal and filter them for the process list."""

    rows = [
        {"number": number, "tribunal": get_tribunal_from_cnj(number) or UNKNOWN_TRIBUNAL}
        for number in unique_in_order(numbers)
    ]

    options = unique_in_order(row["tribunal"] for row in rows)
    if tribunal_counts is None:
        options.sort()
    else:
        options.sort(key=lambda name: tribunal_counts.get(name, 0), reverse=True)

    filtered = [
        row
        for row in rows
        if (not tribunal or tribunal == "all" or row["tribunal"] == tribunal)
        and search in row["number"]
    ]
    return {"rows": filtered, "tribunais": options, "count": len(filtered)}


__all__ = [
    "ReportStats",
    "compute_stats",
    "calculate_stats",
    "summarise_reports",
    "court_breakdown",
    "list_processes",
    "TOP_TRIBUNAIS",
]
