"""Thin ``requests`` client for the Digesto REST API."""
from __future__ import annotations

import json
from typing import Any, Dict, List, Optional

import requests

from painel.scraper import config
from painel.scraper.error_codes import ErrorCode, classify_http_status
from painel.scraper.logging_utils import _scraper_event


class DigestoAPIError(Exception):
    def __init__(self, error_code: str, message: str, *, http_status: int | None = None) -> None:
        super().__init__(message)
        self.error_code = error_code
        self.http_status = http_status

    def __str__(self) -> str:  # pragma: no cover - inherited behaviour
        return str(self.args[0]) if self.args else ""


class DigestoClient:
    def __init__(
        self,
        token: str,
        *,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = (base_url or config.DIGESTO_API_BASE_URL).rstrip("/")
        self.timeout = config.DIGESTO_API_TIMEOUT_SECONDS if timeout is None else timeout
        self.session = session or requests.Session()
        self.session.headers.update(
            {
                "Authorization": f"Bearer {token}",
                "Content-Type": "application/json",
            }
        )

    def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        url = f"{self.base_url}/{path.lstrip('/')}"
        try:
            resp = self.session.get(url, params=params, timeout=self.timeout)
        except requests.RequestException as exc:
            _scraper_event("digesto", phase="request", path=path, status="network_error", error=str(exc))
            raise DigestoAPIError(ErrorCode.NETWORK, str(exc)) from exc

        status = resp.status_code
        _scraper_event("digesto", phase="request", path=path, http_status=status)
        if status >= 400:
            raise DigestoAPIError(classify_http_status(status), f"HTTP {status}", http_status=status)

        try:
            return resp.json()
        except ValueError as exc:
            raise DigestoAPIError(
                ErrorCode.INVALID_PAYLOAD, "Response is not JSON", http_status=status
            ) from exc

    def monitored_events(self, target_number: str) -> List[Dict[str, Any]]:
        """Distribution events for a formatted CNJ, normalised to a list."""

        where = json.dumps(
            {"evt_type": config.DISTRIBUTION_EVENT_TYPE, "target_number": target_number},
            separators=(",", ":"),
        )
        payload = self._get("monitored_event", params={"where": where})

        if isinstance(payload, list):
            return [item for item in payload if isinstance(item, dict)]
        if isinstance(payload, dict):
            items = payload.get("items")
            if isinstance(items, list):
                return [item for item in items if isinstance(item, dict)]
            if "$uri" in payload:
                return [payload]
        return []

    def user_company(self, company_id: Any) -> Dict[str, Any]:
        payload = self._get(f"admin/user_company/{company_id}")
        return payload if isinstance(payload, dict) else {}

    def regex_patterns(self, company_id: Any) -> List[str]:
        payload = self._get(
            f"admin/user_company/{company_id}/all_parte_ids", params={"regexps": "true"}
        )
        if isinstance(payload, dict):
            payload = payload.get("regexps")
        if not isinstance(payload, list):
            return []
        return [item for item in payload if isinstance(item, str)]


def default_client(session: Optional[requests.Session] = None) -> Optional[DigestoClient]:
    """Client built from the configured token, or ``None`` when it is missing."""

    token = config.digesto_token()
    if not token:
        return None
    return DigestoClient(token, session=session)


__all__ = ["DigestoAPIError", "DigestoClient", "default_client"]
