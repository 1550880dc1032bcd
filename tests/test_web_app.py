from __future__ import annotations

import io
from pathlib import Path

import pandas as pd
import pytest

from painel import main
from painel.digesto.client import DigestoClient
from painel.scraper import config
from painel.scraper.cache import ReportData
from painel.scraper.stats import compute_stats
from painel.scraper.tasks import TaskStore
from tests.fakes import FakeHTTPSession, FakeResponse

TJSC = "00012345620248240001"
TJSP = "00076543220238260100"


@pytest.fixture
def client(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.delenv("SITE_PASSWORD", raising=False)
    monkeypatch.setattr(config, "CACHE_DIR", tmp_path / "cache")
    store = TaskStore(ttl_seconds=0)
    monkeypatch.setitem(main.app.config, "TASK_STORE", store)
    monkeypatch.setitem(main.app.config, "TESTING", True)
    test_client = main.app.test_client()
    test_client.store = store
    return test_client


def _completed_task(store: TaskStore) -> str:
    task_id = store.create()
    task = store.get(task_id)
    task.stats = [
        compute_stats("123456", ReportData(numbers=[TJSC, TJSP, TJSP[:-1] + "9"])).to_dict(),
        compute_stats("7777", ReportData(numbers=[TJSP])).to_dict(),
    ]
    task.result = []
    task.complete("Concluído! 2/2 relatórios processados.")
    return task_id


def test_start_requires_ids(client):
    resp = client.post("/api/report-analysis", data={"report_ids": "nada aqui"})
    assert resp.status_code == 400
    assert resp.get_json() == {"error": "Nenhum ID válido encontrado."}


def test_start_requires_token(client, monkeypatch):
    monkeypatch.delenv("DIGESTO_API_TOKEN", raising=False)
    resp = client.post("/api/report-analysis", json={"report_ids": ["123456"]})
    assert resp.status_code == 503
    assert resp.get_json() == {"error": "Token de autenticação não configurado."}


def test_status_unknown_task(client):
    resp = client.get("/api/report-analysis/nope")
    assert resp.status_code == 404
    assert resp.get_json() == {"error": "Tarefa não encontrada."}


def test_status_of_existing_task(client):
    task_id = client.store.create()
    resp = client.get(f"/api/report-analysis/{task_id}")
    assert resp.status_code == 200
    assert resp.get_json()["status"] == "PENDING"


def test_summary_requires_completed_task(client):
    task_id = client.store.create()
    resp = client.get(f"/api/report-analysis/{task_id}/summary")
    assert resp.status_code == 409


def test_summary(client):
    task_id = _completed_task(client.store)

    payload = client.get(f"/api/report-analysis/{task_id}/summary").get_json()

    assert payload["total_processos"] == 4
    assert payload["top5"][0] == {"name": "TJSP", "value": 3}
    assert payload["breakdown"][0]["name"] == "TJSP"
    assert payload["breakdown"][0]["percentage"] == 75.0
    assert [r["report_id"] for r in payload["reports"]] == ["123456", "7777"]


def test_processes_filters(client):
    task_id = _completed_task(client.store)

    payload = client.get(
        f"/api/report-analysis/{task_id}/processes", query_string={"tribunal": "TJSC"}
    ).get_json()
    assert payload["rows"] == [{"number": TJSC, "tribunal": "TJSC"}]
    assert payload["tribunais"] == ["TJSP", "TJSC"]

    single = client.get(
        f"/api/report-analysis/{task_id}/processes", query_string={"report_id": "7777"}
    ).get_json()
    assert single["count"] == 1


def test_export_csv(client):
    task_id = _completed_task(client.store)

    resp = client.get(f"/api/report-analysis/{task_id}/export.csv")

    assert resp.status_code == 200
    assert resp.mimetype == "text/csv"
    frame = pd.read_csv(io.StringIO(resp.get_data(as_text=True)), dtype=str)
    assert len(frame) == 4
    assert set(frame["Report_ID"]) == {"123456", "7777"}


def test_court_counter(client):
    resp = client.post("/api/court", json={"text": f"{TJSC}, {TJSP}\n{TJSP}"})
    assert resp.get_json() == {"counts": {"TJSC": 1, "TJSP": 2}, "total": 3}


def _fake_digesto(monkeypatch, routes):
    session = FakeHTTPSession(routes)
    monkeypatch.setitem(
        main.app.config,
        "DIGESTO_CLIENT",
        DigestoClient("tok", base_url="https://digesto.test/api", session=session),
    )
    return session


def test_distribution_route_adds_support_message(client, monkeypatch):
    _fake_digesto(
        monkeypatch,
        {
            "/monitored_event": FakeResponse(
                200,
                [
                    {
                        "$uri": "/api/monitored_event/55",
                        "created_at": {"$date": 1705238400000},
                        "user_company_id": 9,
                        "data": [{"distribuicaoData": "2024-01-20"}],
                    }
                ],
            ),
            "/admin/user_company/9": FakeResponse(200, {"name": "ACME"}),
        },
    )

    payload = client.get("/api/distribution", query_string={"cnj": TJSC}).get_json()

    row = payload["data"][0]
    assert row["distribution_id"] == "55"
    assert row["is_discrepancy"] is True
    assert "para ACME(9) sob o id 55" in row["support_message"]


def test_distribution_route_no_data(client, monkeypatch):
    _fake_digesto(monkeypatch, {"/monitored_event": FakeResponse(200, [])})

    resp = client.get("/api/distribution", query_string={"cnj": TJSC})

    assert resp.status_code == 404
    assert resp.get_json()["error"] == "Desculpe, esse processo não nos retornou informação"


def test_company_name_route(client, monkeypatch):
    _fake_digesto(monkeypatch, {"/admin/user_company/9": FakeResponse(200, {"name": "ACME"})})

    assert client.get("/api/companies/9/name").get_json() == {"success": True, "name": "ACME"}


def test_regex_validator_route(client, monkeypatch):
    _fake_digesto(
        monkeypatch,
        {"/admin/user_company/1/all_parte_ids": FakeResponse(200, ["^ACME"])},
    )

    resp = client.post("/api/regex-validator", json={"part": "ACME SA", "company_ids": "1"})

    assert resp.status_code == 200
    assert resp.get_json()["results"][0]["matchedRegex"] == "^ACME"
    assert client.post("/api/regex-validator", json={"part": ""}).status_code == 400


def test_health_route(client):
    resp = client.get("/api/health")
    assert resp.status_code == 200
    payload = resp.get_json()
    assert payload["ok"] is True
    assert payload["checks"]["filesystem"]["ok"] is True


def test_login_gate(client, monkeypatch):
    monkeypatch.setenv("SITE_PASSWORD", "s3nha")

    assert client.post("/api/court", json={"text": ""}).status_code == 401
    assert client.get("/api/health").status_code == 200

    wrong = client.post("/login", json={"password": "errada"})
    assert wrong.status_code == 401
    assert wrong.get_json()["error"] == "Senha incorreta"

    assert client.post("/login", json={"password": "s3nha"}).get_json() == {"success": True}
    assert client.post("/api/court", json={"text": ""}).status_code == 200

    client.post("/logout")
    assert client.post("/api/court", json={"text": ""}).status_code == 401


def test_login_without_configured_password(client):
    resp = client.post("/login", json={"password": "x"})
    assert resp.status_code == 500
    assert resp.get_json()["error"] == "Login configuration error. Please contact support."
