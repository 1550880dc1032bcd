"""Report-analysis task orchestration.

``start_scraping`` validates the pasted report ids, registers a task and hands
the work to a daemon thread running its own asyncio loop. Callers poll
``check_status`` with the returned task id.
"""
from __future__ import annotations

import asyncio
import re
import threading
from typing import Any, AsyncContextManager, Callable, Dict, List, Optional

from . import config
from .browser import launch_session
from .cache import ReportCache, ReportData
from .logging_utils import _scraper_event
from .report_scraper import scrape_report
from .retry_policy import RetryExhaustedError, with_retry
from .scheduler import run_limited
from .stats import calculate_stats
from .tasks import DEFAULT_STORE, Task, TaskStore
from .utils import log_line, unique_in_order

REPORT_ID_PATTERN = re.compile(r"\b\d{4,}\b")

ERROR_NO_IDS = "Nenhum ID válido encontrado."
ERROR_NO_TOKEN = "Token de autenticação não configurado."
ERROR_TASK_NOT_FOUND = "Tarefa não encontrada."

SessionFactory = Callable[[str], AsyncContextManager[Any]]


def extract_report_ids(text: str | None) -> List[str]:
    """Return the distinct report ids (4+ digit tokens) in ``text``."""

    return unique_in_order(REPORT_ID_PATTERN.findall(text or ""))


class ScraperService:
    def __init__(
        self,
        bearer_token: str,
        *,
        store: Optional[TaskStore] = None,
        cache: Optional[ReportCache] = None,
        session_factory: Optional[SessionFactory] = None,
        max_retries: Optional[int] = None,
        retry_delay: Optional[float] = None,
        parallel_limit: Optional[int] = None,
    ) -> None:
        self._bearer_token = bearer_token
        self._store = DEFAULT_STORE if store is None else store
        self._cache = cache or ReportCache()
        self._session_factory = session_factory or launch_session
        self._max_retries = config.MAX_RETRIES if max_retries is None else max_retries
        self._retry_delay = config.RETRY_DELAY_SECONDS if retry_delay is None else retry_delay
        self._parallel_limit = config.PARALLEL_LIMIT if parallel_limit is None else parallel_limit

    def create_task(self) -> str:
        task_id = self._store.create()
        _scraper_event("state", phase="task", kind="created", task_id=task_id)
        return task_id

    def start_scraping_task(self, report_ids: List[str]) -> str:
        """Register a task and run it in the background; returns immediately."""

        unique_ids = unique_in_order(report_ids)
        task_id = self.create_task()

        def _run() -> None:
            try:
                asyncio.run(self.run_scraping(task_id, unique_ids))
            except Exception as exc:  # noqa: BLE001
                log_line(f"Report analysis thread failed: {exc}")

        threading.Thread(target=_run, name=f"report-analysis-{task_id[:8]}", daemon=True).start()
        return task_id

    def run_blocking(self, report_ids: List[str]) -> Task:
        """Run a task to completion on the calling thread (CLI use)."""

        task_id = self.create_task()
        asyncio.run(self.run_scraping(task_id, unique_in_order(report_ids)))
        task = self._store.get(task_id)
        if task is None:
            raise KeyError(task_id)
        return task

    async def run_scraping(self, task_id: str, report_ids: List[str]) -> None:
        task = self._store.get(task_id)
        if task is None:
            raise KeyError(task_id)

        results: List[str] = []
        errors: List[str] = []
        try:
            await self._run_pipeline(task, report_ids, results, errors)
        except Exception as exc:  # noqa: BLE001
            _scraper_event(
                "error",
                phase="task",
                kind="fatal",
                task_id=task_id,
                error=f"{type(exc).__name__}: {exc}",
            )
            task.result = list(results)
            task.errors = list(errors)
            task.fail(f"Erro fatal: {exc}")

    async def _run_pipeline(
        self, task: Task, report_ids: List[str], results: List[str], errors: List[str]
    ) -> None:
        task.mark_running("Iniciando navegador...")
        total = len(report_ids)
        started = 0

        async with self._session_factory(self._bearer_token) as session:

            async def _worker(report_id: str) -> None:
                nonlocal started
                started += 1
                task.message = f"Processando {started}/{total}: ID {report_id}"
                await self._process_report(session, report_id, results, errors)

            await run_limited(
                report_ids, _worker, self._parallel_limit, label=f"task:{task.task_id}"
            )

        stats = await asyncio.to_thread(calculate_stats, results)
        task.result = list(results)
        task.errors = list(errors)
        task.stats = [stat.to_dict() for stat in stats]
        task.complete(f"Concluído! {len(results)}/{total} relatórios processados.")
        _scraper_event(
            "state",
            phase="task",
            kind="completed",
            task_id=task.task_id,
            processed=len(results),
            total=total,
            errors=len(errors),
        )

    async def _process_report(
        self, session: Any, report_id: str, results: List[str], errors: List[str]
    ) -> None:
        if await asyncio.to_thread(self._cache.is_valid, report_id):
            _scraper_event("cache", phase="hit", report_id=report_id)
            results.append(str(self._cache.path_for(report_id)))
            return

        try:
            data = await with_retry(
                lambda: self.process_single_report(session, report_id),
                self._max_retries,
                self._retry_delay,
                label=f"report:{report_id}",
            )
        except RetryExhaustedError as exc:
            errors.append(f"ID {report_id}: {exc.message} (após {exc.attempts} tentativas)")
            return

        if data is None:
            errors.append(f"ID {report_id}: Sem dados")
            return

        try:
            path = await asyncio.to_thread(self._cache.write, report_id, data)
        except OSError as exc:
            errors.append(f"ID {report_id}: {exc}")
            return
        results.append(str(path))

    async def process_single_report(self, session: Any, report_id: str) -> ReportData:
        async with session.open_page() as page:
            return await scrape_report(page, report_id)


def start_scraping(
    report_ids_text: str | None,
    *,
    store: Optional[TaskStore] = None,
    session_factory: Optional[SessionFactory] = None,
    cache: Optional[ReportCache] = None,
) -> Dict[str, Any]:
    """Validate input and launch a background report-analysis task."""

    report_ids = extract_report_ids(report_ids_text)
    if not report_ids:
        return {"error": ERROR_NO_IDS}

    token = config.digesto_token()
    if not token:
        return {"error": ERROR_NO_TOKEN}

    service = ScraperService(token, store=store, cache=cache, session_factory=session_factory)
    task_id = service.start_scraping_task(report_ids)
    return {"taskId": task_id, "status": "PENDING"}


def check_status(task_id: str, *, store: Optional[TaskStore] = None) -> Dict[str, Any]:
    task = (DEFAULT_STORE if store is None else store).get(task_id)
    if task is None:
        return {"error": ERROR_TASK_NOT_FOUND}
    return task.to_dict()


__all__ = [
    "ScraperService",
    "extract_report_ids",
    "start_scraping",
    "check_status",
    "ERROR_NO_IDS",
    "ERROR_NO_TOKEN",
    "ERROR_TASK_NOT_FOUND",
]
