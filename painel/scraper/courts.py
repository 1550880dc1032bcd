"""Court (tribunal) resolution from CNJ numbers.

CNJ format: ``NNNNNNN-DD.YYYY.J.TR.OOOO`` where ``J`` is the justice segment
and ``TR`` the court inside that segment. The three digits ``J`` + ``TR`` sit
seven positions from the end of the digit-only number.
"""
from __future__ import annotations

import re
from types import MappingProxyType
from typing import Mapping

from .cnj import only_digits

MIN_RESOLVABLE_DIGITS = 14
UNKNOWN_TRIBUNAL = "Desconhecido"

COURT_MAP: Mapping[str, str] = MappingProxyType(
    {
        # State courts (TJ)
        "801": "TJAC", "802": "TJAL", "803": "TJAP", "804": "TJAM", "805": "TJBA",
        "806": "TJCE", "807": "TJDFT", "808": "TJES", "809": "TJGO", "810": "TJMA",
        "811": "TJMT", "812": "TJMS", "813": "TJMG", "814": "TJPA", "815": "TJPB",
        "816": "TJPR", "817": "TJPE", "818": "TJPI", "819": "TJRJ", "820": "TJRN",
        "821": "TJRS", "822": "TJRO", "823": "TJRR", "824": "TJSC", "825": "TJSE",
        "826": "TJSP", "827": "TJTO",
        # Federal regional courts (TRF)
        "401": "TRF1", "402": "TRF2", "403": "TRF3", "404": "TRF4", "405": "TRF5",
        "406": "TRF6",
        # Labour courts (TRT)
        "501": "TRT1", "502": "TRT2", "503": "TRT3", "504": "TRT4", "505": "TRT5",
        "506": "TRT6", "507": "TRT7", "508": "TRT8", "509": "TRT9", "510": "TRT10",
        "511": "TRT11", "512": "TRT12", "513": "TRT13", "514": "TRT14", "515": "TRT15",
        "516": "TRT16", "517": "TRT17", "518": "TRT18", "519": "TRT19", "520": "TRT20",
        "521": "TRT21", "522": "TRT22", "523": "TRT23", "524": "TRT24",
    }
)

_LIST_SEPARATORS = re.compile(r"[,\s]+")


def court_code_from_cnj(cnj: str | None) -> str | None:
    """Return the 3-digit segment+court code, or ``None`` for short input."""

    clean = only_digits(cnj)
    if len(clean) < MIN_RESOLVABLE_DIGITS:
        return None
    return clean[-7:-4]


def get_tribunal_from_cnj(cnj: str | None) -> str | None:
    """Return the tribunal acronym for ``cnj``.

    Unknown codes resolve to ``"Tribunal {code}"``; only input with fewer than
    14 digits yields ``None``.
    """

    code = court_code_from_cnj(cnj)
    if code is None:
        return None
    return COURT_MAP.get(code) or f"Tribunal {code}"


def count_courts(text: str | None) -> dict[str, object]:
    """Count known tribunals in a pasted list of CNJ numbers.

    Items are separated by commas, spaces or new lines. Codes missing from
    ``COURT_MAP`` are not counted.
    """

    counts: dict[str, int] = {}
    total = 0
    for item in _LIST_SEPARATORS.split(text or ""):
        code = court_code_from_cnj(item)
        if code is None:
            continue
        name = COURT_MAP.get(code)
        if not name:
            continue
        counts[name] = counts.get(name, 0) + 1
        total += 1
    return {"counts": counts, "total": total}


__all__ = [
    "COURT_MAP",
    "MIN_RESOLVABLE_DIGITS",
    "UNKNOWN_TRIBUNAL",
    "court_code_from_cnj",
    "get_tribunal_from_cnj",
    "count_courts",
]
