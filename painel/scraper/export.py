"""CSV export of extracted report numbers."""

from __future__ import annotations

from typing import Any, Iterable, Mapping

import pandas as pd

from .courts import UNKNOWN_TRIBUNAL, get_tribunal_from_cnj
from .stats import ReportStats, _stat_field

EXPORT_COLUMNS = ["Processo", "Tribunal", "Report_ID"]


def build_export_frame(stats: Iterable[ReportStats | Mapping[str, Any]]) -> pd.DataFrame:
    """One row per number per report, tribunal resolved from the CNJ."""

    records = [
        {
            "Processo": number,
            "Tribunal": get_tribunal_from_cnj(number) or UNKNOWN_TRIBUNAL,
            "Report_ID": _stat_field(stat, "report_id"),
        }
        for stat in stats
        for number in (_stat_field(stat, "numbers") or [])
    ]
    return pd.DataFrame(records, columns=EXPORT_COLUMNS)


def export_rows_csv(stats: Iterable[ReportStats | Mapping[str, Any]]) -> str:
    return build_export_frame(stats).to_csv(index=False)


__all__ = ["EXPORT_COLUMNS", "build_export_frame", "export_rows_csv"]
