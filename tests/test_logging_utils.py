from painel.scraper import logging_utils, utils


def test_scraper_event_tag_and_phase(monkeypatch):
    events: list[str] = []
    monkeypatch.setattr(logging_utils, "log_line", lambda msg: events.append(msg))

    logging_utils._scraper_event("state", phase="scheduler", kind="summary")

    assert events
    line = events[-1]
    assert line.startswith("[SCRAPER][STATE]")
    assert "phase='scheduler'" in line
    assert "kind='summary'" in line


def test_scraper_event_never_raises(monkeypatch):
    def _boom(msg):
        raise RuntimeError("disk gone")

    monkeypatch.setattr(logging_utils, "log_line", _boom)

    logging_utils._scraper_event("cache", phase="write")


def test_log_line_writes_to_configured_file(tmp_path, monkeypatch):
    log_path = tmp_path / "logs" / "app.log"
    monkeypatch.setattr(utils, "_LOGGER_INITIALISED", False)
    utils._configure_logger(log_path)

    utils.log_line("hello painel")
    for handler in utils.LOGGER.handlers:
        handler.flush()

    assert utils.get_current_log_path() == log_path
    assert "hello painel" in log_path.read_text(encoding="utf-8")
    utils._configure_logger(None)


def test_unique_in_order():
    assert utils.unique_in_order(["b", "a", "b", "c", "a"]) == ["b", "a", "c"]


def test_scraper_event_accepts_label_and_event_fields(monkeypatch):
    events: list[str] = []
    monkeypatch.setattr(logging_utils, "log_line", events.append)

    logging_utils._scraper_event("state", phase="task", label="batch-1", event="created")

    line = events[-1]
    assert line.startswith("[SCRAPER][STATE]")
    assert "label='batch-1'" in line
    assert "event='created'" in line
    assert "phase='task'" in line


def test_scraper_event_uses_phase_as_tag_without_event(monkeypatch):
    events: list[str] = []
    monkeypatch.setattr(logging_utils, "log_line", events.append)

    logging_utils._scraper_event(phase="write", report_id="1")

    assert events == ["[SCRAPER][WRITE] report_id='1'"]
