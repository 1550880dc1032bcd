from __future__ import annotations

from pathlib import Path

import pytest

from painel.scraper import config, healthcheck, utils


def test_run_health_checks_happy_path(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(config, "CACHE_DIR", tmp_path / "cache")
    monkeypatch.setenv("DIGESTO_API_TOKEN", "tok")

    result = healthcheck.run_health_checks(entrypoint="cli")

    assert result.ok is True
    assert result.checks["config"]["ok"] is True
    assert result.checks["filesystem"]["ok"] is True
    assert result.checks["token"]["ok"] is True


def test_missing_token_only_fails_cli(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(config, "CACHE_DIR", tmp_path / "cache")
    monkeypatch.delenv("DIGESTO_API_TOKEN", raising=False)

    assert healthcheck.run_health_checks(entrypoint="ui").ok is True
    assert healthcheck.run_health_checks(entrypoint="cli").ok is False


def test_read_only_cache_dir_reports_fallback(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    readonly = tmp_path / "readonly"
    monkeypatch.setattr(config, "CACHE_DIR", readonly)
    monkeypatch.setattr(utils.tempfile, "gettempdir", lambda: str(tmp_path / "tmp"))
    real_is_writable = utils.dir_is_writable
    monkeypatch.setattr(utils, "dir_is_writable", lambda path: path != readonly and real_is_writable(path))

    result = healthcheck.run_health_checks(entrypoint="ui")

    filesystem = result.checks["filesystem"]
    assert result.ok is True
    assert filesystem["ok"] is True
    assert filesystem["fallback"] is True
    assert filesystem["cache_dir"] == str(tmp_path / "tmp" / config.FALLBACK_CACHE_DIRNAME)


def test_invalid_config_and_unusable_cache(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(config, "PLAYWRIGHT_ROWS_TIMEOUT_MS", -1)

    def _no_dir(preferred=None):
        raise PermissionError("read-only file system")

    monkeypatch.setattr(healthcheck, "resolve_cache_dir", _no_dir)

    result = healthcheck.run_health_checks(entrypoint="ui")

    assert result.ok is False
    assert result.checks["config"]["ok"] is False
    assert result.checks["filesystem"]["ok"] is False
    assert "read-only" in result.checks["filesystem"]["error"]
