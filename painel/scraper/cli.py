from __future__ import annotations

"""Run a report analysis from the command line and print per-report stats."""

import argparse
import json
from typing import Sequence

from . import config
from .config_validation import validate_runtime_config
from .service import ERROR_NO_IDS, ScraperService, extract_report_ids
from .tasks import TaskStatus


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Extract overdue case numbers from Digesto reports.",
    )
    parser.add_argument(
        "report_ids",
        nargs="+",
        help="Report IDs (4+ digits); separators are ignored.",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the final task payload as JSON.",
    )
    parser.add_argument(
        "--limit",
        type=int,
        default=None,
        help=f"Reports processed in parallel (default {config.PARALLEL_LIMIT}).",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point for the report analysis CLI."""

    parser = _build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    report_ids = extract_report_ids(" ".join(args.report_ids))
    if not report_ids:
        parser.error(ERROR_NO_IDS)

    try:
        validate_runtime_config("cli")
    except ValueError as exc:
        parser.error(str(exc))

    service = ScraperService(config.digesto_token() or "", parallel_limit=args.limit)
    task = service.run_blocking(report_ids)

    if args.json:
        print(json.dumps(task.to_dict(), ensure_ascii=False, indent=2))
    else:
        print(task.message)
        for stat in task.stats or []:
            print(
                f"  {stat['report_id']}: {stat['total_atrasados']} atrasados, "
                f"{stat['total_tribunais']} tribunais, progresso {stat['progress']}"
            )
            for tribunal, count in sorted(stat["tribunais"].items(), key=lambda item: -item[1]):
                print(f"    {tribunal}: {count}")
        for error in task.errors:
            print(f"  ! {error}")

    return 0 if task.status is TaskStatus.COMPLETED else 1


if __name__ == "__main__":  # pragma: no cover - CLI entry
    raise SystemExit(main())
