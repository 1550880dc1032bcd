from __future__ import annotations

import re
from datetime import timedelta
from typing import Any, Dict, List

from flask import Flask, Response, jsonify, request, session

from painel.digesto import distribution, regex_validator
from painel.scraper import config
from painel.scraper.courts import count_courts
from painel.scraper.export import export_rows_csv
from painel.scraper.healthcheck import run_health_checks
from painel.scraper.logging_utils import _scraper_event
from painel.scraper.service import ERROR_NO_IDS, check_status, start_scraping
from painel.scraper.stats import court_breakdown, list_processes, summarise_reports
from painel.scraper.tasks import DEFAULT_STORE, TaskStatus

app = Flask(__name__)
app.secret_key = config.SECRET_KEY
app.config.update(
    PERMANENT_SESSION_LIFETIME=timedelta(seconds=config.SESSION_LIFETIME_SECONDS),
    SESSION_COOKIE_HTTPONLY=True,
    SESSION_COOKIE_SAMESITE="Lax",
    SESSION_COOKIE_SECURE=config.is_production(),
    TASK_STORE=DEFAULT_STORE,
    # Overridable collaborators; ``None`` means the production default.
    SESSION_FACTORY=None,
    REPORT_CACHE=None,
    DIGESTO_CLIENT=None,
)

SESSION_FLAG = "authenticated"
PUBLIC_ENDPOINTS = {"login", "logout", "api_health"}

LOGIN_WRONG_PASSWORD = "Senha incorreta"
LOGIN_NOT_CONFIGURED = "Login configuration error. Please contact support."

_DISTRIBUTION_ERROR_STATUS = {
    distribution.ERROR_NO_TOKEN: 503,
    distribution.ERROR_API: 502,
    distribution.ERROR_NO_DATA: 404,
    distribution.ERROR_INTERNAL: 500,
}

_COMPANY_ERROR_STATUS = {
    distribution.ERROR_NO_TOKEN: 503,
    distribution.ERROR_COMPANY_API: 502,
    distribution.ERROR_COMPANY_NAME: 404,
    distribution.ERROR_INTERNAL: 500,
}


def _payload() -> Dict[str, Any]:
    """Merge query args with the JSON body or form fields."""

    payload: Dict[str, Any] = {}
    payload.update(request.args.to_dict())
    if request.is_json:
        payload.update(request.get_json(silent=True) or {})
    else:
        payload.update(request.form.to_dict())
    return payload


def _split_ids(value: Any) -> List[str]:
    if isinstance(value, (list, tuple)):
        return [str(item).strip() for item in value if str(item).strip()]
    return [item for item in re.split(r"[\s,;]+", str(value or "")) if item]


def _completed_stats(task_id: str):
    """Return ``(stats, None)`` or ``(None, error_response)``."""

    status = check_status(task_id, store=app.config["TASK_STORE"])
    if "error" in status:
        return None, (jsonify({"ok": False, "error": status["error"]}), 404)
    if status["status"] != TaskStatus.COMPLETED.value:
        return None, (
            jsonify({"ok": False, "error": "task_not_completed", "status": status["status"]}),
            409,
        )
    return status["stats"] or [], None


@app.before_request
def require_login() -> Any:
    if config.site_password() is None:
        return None
    if request.endpoint in PUBLIC_ENDPOINTS or session.get(SESSION_FLAG):
        return None
    return jsonify({"ok": False, "error": "unauthorized"}), 401


@app.post("/login")
def login() -> Response:
    expected = config.site_password()
    if expected is None:
        _scraper_event("error", phase="login", kind="not_configured")
        return jsonify({"success": False, "error": LOGIN_NOT_CONFIGURED}), 500

    password = str(_payload().get("password") or "")
    if password != expected:
        return jsonify({"success": False, "error": LOGIN_WRONG_PASSWORD}), 401

    session.permanent = True
    session[SESSION_FLAG] = True
    return jsonify({"success": True})


@app.post("/logout")
def logout() -> Response:
    session.clear()
    return jsonify({"success": True})


@app.post("/api/report-analysis")
def api_start_report_analysis() -> Response:
    raw = _payload().get("report_ids")
    if isinstance(raw, (list, tuple)):
        raw = " ".join(str(item) for item in raw)

    result = start_scraping(
        raw,
        store=app.config["TASK_STORE"],
        session_factory=app.config["SESSION_FACTORY"],
        cache=app.config["REPORT_CACHE"],
    )
    if "error" in result:
        status = 400 if result["error"] == ERROR_NO_IDS else 503
        return jsonify(result), status
    return jsonify(result), 202


@app.get("/api/report-analysis/<task_id>")
def api_report_analysis_status(task_id: str) -> Response:
    status = check_status(task_id, store=app.config["TASK_STORE"])
    if "error" in status:
        return jsonify(status), 404
    return jsonify(status)


@app.get("/api/report-analysis/<task_id>/summary")
def api_report_analysis_summary(task_id: str) -> Response:
    stats, error = _completed_stats(task_id)
    if error is not None:
        return error

    summary = summarise_reports(stats)
    summary["breakdown"] = court_breakdown(summary["tribunais"], summary["total_processos"])
    summary["reports"] = [
        {
            "report_id": stat["report_id"],
            "report_url": stat["report_url"],
            "progress": stat["progress"],
            "total_atrasados": stat["total_atrasados"],
            "breakdown": court_breakdown(stat["tribunais"], stat["total_atrasados"]),
        }
        for stat in stats
    ]
    return jsonify(summary)


@app.get("/api/report-analysis/<task_id>/processes")
def api_report_analysis_processes(task_id: str) -> Response:
    stats, error = _completed_stats(task_id)
    if error is not None:
        return error

    report_id = request.args.get("report_id")
    if report_id:
        stats = [stat for stat in stats if stat["report_id"] == report_id]

    numbers = [number for stat in stats for number in stat["numbers"]]
    counts = summarise_reports(stats)["tribunais"]
    return jsonify(
        list_processes(
            numbers,
            counts,
            tribunal=request.args.get("tribunal"),
            search=request.args.get("q", ""),
        )
    )


@app.get("/api/report-analysis/<task_id>/export.csv")
def api_report_analysis_export(task_id: str) -> Response:
    stats, error = _completed_stats(task_id)
    if error is not None:
        return error

    return Response(
        export_rows_csv(stats),
        mimetype="text/csv",
        headers={"Content-Disposition": f"attachment; filename=processos-{task_id}.csv"},
    )


@app.post("/api/court")
def api_court() -> Response:
    return jsonify(count_courts(str(_payload().get("text") or "")))


@app.get("/api/distribution")
def api_distribution() -> Response:
    result = distribution.get_distribution_data(
        request.args.get("cnj", ""), client=app.config["DIGESTO_CLIENT"]
    )
    if not result.get("success"):
        status = _DISTRIBUTION_ERROR_STATUS.get(result.get("error"), 400)
        return jsonify(result), status

    for row in result["data"]:
        row["support_message"] = distribution.build_support_message(row)
    return jsonify(result)


@app.get("/api/companies/<company_id>/name")
def api_company_name(company_id: str) -> Response:
    result = distribution.get_company_name(company_id, client=app.config["DIGESTO_CLIENT"])
    if not result.get("success"):
        return jsonify(result), _COMPANY_ERROR_STATUS.get(result.get("error"), 500)
    return jsonify(result)


@app.post("/api/regex-validator")
def api_regex_validator() -> Response:
    payload = _payload()
    part = str(payload.get("part") or "").strip()
    company_ids = _split_ids(payload.get("company_ids"))
    if not part or not company_ids:
        return jsonify({"ok": False, "error": "invalid_params"}), 400

    results = regex_validator.validate_part_against_companies(
        part, company_ids, client=app.config["DIGESTO_CLIENT"]
    )
    return jsonify({"ok": True, "part": part, "results": results})


@app.get("/api/health")
def api_health() -> Response:
    """Return a JSON health summary for configuration and filesystem."""

    result = run_health_checks(entrypoint="ui")
    status = 200 if result.ok else 503
    return jsonify({"ok": result.ok, "checks": result.checks}), status
