"""Distribution lookups for a CNJ and the support reply built from them."""
from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from typing import Any, Dict, List, Optional
from zoneinfo import ZoneInfo

from painel.scraper import config
from painel.scraper.cnj import extract_and_clean_cnj, format_cnj
from painel.scraper.logging_utils import _scraper_event
from painel.scraper.utils import unique_in_order

from .client import DigestoAPIError, DigestoClient, default_client
from .date_utils import NOT_AVAILABLE, format_epoch_ms, is_sent_before_distributed, iso_to_br_date

ERROR_NO_TOKEN = "API token not configured"
ERROR_API = "Erro ao consultar API"
ERROR_NO_DATA = "Desculpe, esse processo não nos retornou informação"
ERROR_INTERNAL = "Erro interno do servidor"
ERROR_COMPANY_API = "Erro ao consultar empresa"
ERROR_COMPANY_NAME = "Nome da empresa não encontrado"
UNKNOWN_COMPANY = "Empresa Desconhecida"

# Company lookups per distribution request.
MAX_COMPANY_LOOKUPS = 8


def get_company_name(company_id: Any, *, client: Optional[DigestoClient] = None) -> Dict[str, Any]:
    client = client or default_client()
    if client is None:
        return {"success": False, "error": ERROR_NO_TOKEN}

    try:
        payload = client.user_company(company_id)
    except DigestoAPIError:
        return {"success": False, "error": ERROR_COMPANY_API}
    except Exception as exc:  # noqa: BLE001
        _scraper_event("error", phase="digesto", kind="company_lookup", company_id=company_id, error=str(exc))
        return {"success": False, "error": ERROR_INTERNAL}

    name = payload.get("name")
    if name:
        return {"success": True, "name": name}
    return {"success": False, "error": ERROR_COMPANY_NAME}


def _distribution_id(item: Dict[str, Any]) -> str:
    uri = item.get("$uri")
    if not uri:
        return NOT_AVAILABLE
    return str(uri).split("/")[-1]


def _epoch_field(item: Dict[str, Any], name: str) -> str:
    value = item.get(name)
    if isinstance(value, dict):
        return format_epoch_ms(value.get("$date"))
    return NOT_AVAILABLE


def _distribution_date(item: Dict[str, Any]) -> str:
    data = item.get("data")
    if isinstance(data, list) and data and isinstance(data[0], dict):
        return iso_to_br_date(data[0].get("distribuicaoData"))
    return NOT_AVAILABLE


def _company_names(client: DigestoClient, company_ids: List[Any]) -> Dict[Any, str]:
    unique_ids = unique_in_order(company_ids)
    if not unique_ids:
        return {}

    def _lookup(company_id: Any) -> str:
        result = get_company_name(company_id, client=client)
        return result.get("name") if result.get("success") else NOT_AVAILABLE

    with ThreadPoolExecutor(max_workers=min(MAX_COMPANY_LOOKUPS, len(unique_ids))) as pool:
        return dict(zip(unique_ids, pool.map(_lookup, unique_ids)))


def build_distribution_rows(
    client: DigestoClient, target_number: str, items: List[Dict[str, Any]]
) -> List[Dict[str, Any]]:
    names = _company_names(client, [item.get("user_company_id") for item in items])
    rows = []
    for item in items:
        company_id = item.get("user_company_id")
        row = {
            "cnj": target_number,
            "distribution_id": _distribution_id(item),
            "distribution_sent": _epoch_field(item, "created_at"),
            "distribution_date": _distribution_date(item),
            "notified_at": _epoch_field(item, "notified_at"),
            "user_company_id": company_id,
            "user_company_name": names.get(company_id) or NOT_AVAILABLE,
        }
        row["is_discrepancy"] = is_sent_before_distributed(
            row["distribution_sent"], row["distribution_date"]
        )
        rows.append(row)
    return rows


def get_distribution_data(cnj: str | None, *, client: Optional[DigestoClient] = None) -> Dict[str, Any]:
    """Look up distribution events for the CNJ found in ``cnj``."""

    client = client or default_client()
    if client is None:
        return {"success": False, "error": ERROR_NO_TOKEN}

    clean = extract_and_clean_cnj(cnj)
    if not clean:
        return {"success": False}
    target_number = format_cnj(clean)

    try:
        items = client.monitored_events(target_number)
    except DigestoAPIError as exc:
        _scraper_event(
            "error",
            phase="digesto",
            kind="distribution_lookup",
            cnj=target_number,
            error_code=exc.error_code,
            http_status=exc.http_status,
        )
        return {"success": False, "error": ERROR_API}
    except Exception as exc:  # noqa: BLE001
        _scraper_event("error", phase="digesto", kind="distribution_lookup", cnj=target_number, error=str(exc))
        return {"success": False, "error": ERROR_INTERNAL}

    if not items:
        return {"success": False, "error": ERROR_NO_DATA}

    try:
        rows = build_distribution_rows(client, target_number, items)
    except Exception as exc:  # noqa: BLE001
        _scraper_event("error", phase="digesto", kind="distribution_rows", cnj=target_number, error=str(exc))
        return {"success": False, "error": ERROR_INTERNAL}

    return {"success": True, "data": rows}


def greeting_for(hour: int) -> str:
    if 5 <= hour < 12:
        return "Bom dia"
    if 12 <= hour < 18:
        return "Boa tarde"
    return "Boa noite"


def build_support_message(
    row: Dict[str, Any], company_name: str | None = None, now: datetime | None = None
) -> str:
    """Support reply explaining where and when a distribution was sent."""

    now = now or datetime.now(ZoneInfo(config.TIMEZONE))
    if not company_name:
        company_name = row.get("user_company_name")
    if not company_name or company_name == NOT_AVAILABLE:
        company_name = UNKNOWN_COMPANY

    message = (
        f"{greeting_for(now.hour)}! Tudo bem? \n Analisamos a sua solicitação e notamos que o "
        f"CNJ ({row.get('cnj')}) foi distribuído em {row.get('distribution_date')} e enviado em "
        f"{row.get('distribution_sent')} para {company_name}({row.get('user_company_id')}) "
        f"sob o id {row.get('distribution_id')}"
    )
    if row.get("is_discrepancy"):
        message += (
            "\n \n A distribuição não foi enviada porque o processo foi distribuído depois "
            "da data que a distribuição foi solicitada"
        )
    message += "\n \n Caso tenha alguma dúvida, entre em contato com o suporte."
    return message


__all__ = [
    "get_company_name",
    "get_distribution_data",
    "build_distribution_rows",
    "build_support_message",
    "greeting_for",
]
