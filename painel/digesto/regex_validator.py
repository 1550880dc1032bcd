"""Check a party name against the regexes registered for a company."""
from __future__ import annotations

import re
from typing import Any, Dict, Iterable, Optional

from painel.scraper.logging_utils import _scraper_event

from .client import DigestoAPIError, DigestoClient, default_client
from .distribution import ERROR_INTERNAL, ERROR_NO_TOKEN

ERROR_API = "Erro ao consultar API, por favor verifique o ID da empresa"
ERROR_NO_MATCH = "Nenhuma correspondência encontrada."


def get_regex_patterns(company_id: Any, *, client: Optional[DigestoClient] = None) -> Dict[str, Any]:
    client = client or default_client()
    if client is None:
        return {"success": False, "error": ERROR_NO_TOKEN}

    try:
        patterns = client.regex_patterns(company_id)
    except DigestoAPIError:
        return {"success": False, "error": ERROR_API}
    except Exception as exc:  # noqa: BLE001
        _scraper_event("error", phase="digesto", kind="regex_lookup", company_id=company_id, error=str(exc))
        return {"success": False, "error": ERROR_INTERNAL}
    return {"success": True, "regexps": patterns}


def match_part(part: str, patterns: Iterable[str]) -> str | None:
    """First pattern that matches anywhere in ``part``; invalid ones are skipped."""

    for pattern in patterns:
        try:
            if re.search(pattern, part):
                return pattern
        except re.error as exc:
            _scraper_event("state", phase="regex", kind="invalid_pattern", pattern=pattern, error=str(exc))
    return None


def validate_part(part: str, company_id: Any, *, client: Optional[DigestoClient] = None) -> Dict[str, Any]:
    fetched = get_regex_patterns(company_id, client=client)
    if not fetched["success"]:
        return {"companyId": company_id, "success": False, "matchedRegex": None, "error": fetched["error"]}

    matched = match_part(part, fetched["regexps"])
    if matched is None:
        return {"companyId": company_id, "success": False, "matchedRegex": None, "error": ERROR_NO_MATCH}
    return {"companyId": company_id, "success": True, "matchedRegex": matched, "error": None}


def validate_part_against_companies(
    part: str, company_ids: Iterable[Any], *, client: Optional[DigestoClient] = None
) -> list[Dict[str, Any]]:
    client = client or default_client()
    if client is None:
        return [
            {"companyId": company_id, "success": False, "matchedRegex": None, "error": ERROR_NO_TOKEN}
            for company_id in company_ids
        ]
    return [validate_part(part, company_id, client=client) for company_id in company_ids]


__all__ = [
    "get_regex_patterns",
    "match_part",
    "validate_part",
    "validate_part_against_companies",
]
