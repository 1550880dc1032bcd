"""In-memory registry of report-analysis tasks."""
from __future__ import annotations

import threading
import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from . import config
from .logging_utils import _scraper_event


class TaskStatus(str, Enum):
    PENDING = "PENDING"
    RUNNING = "RUNNING"
    COMPLETED = "COMPLETED"
    ERROR = "ERROR"

    @property
    def is_terminal(self) -> bool:
        return self in (TaskStatus.COMPLETED, TaskStatus.ERROR)


@dataclass
class Task:
    task_id: str
    status: TaskStatus = TaskStatus.PENDING
    message: str = "Inicializando..."
    result: Optional[List[str]] = None
    stats: Optional[List[Dict[str, Any]]] = None
    errors: List[str] = field(default_factory=list)
    created_at: float = field(default_factory=time.time)
    finished_at: Optional[float] = None

    def mark_running(self, message: str) -> None:
        if self.status.is_terminal:
            return
        self.status = TaskStatus.RUNNING
        self.message = message

    def complete(self, message: str) -> None:
        if self.status.is_terminal:
            return
        self.message = message
        self.status = TaskStatus.COMPLETED
        self.finished_at = time.time()

    def fail(self, message: str) -> None:
        if self.status.is_terminal:
            return
        self.message = message
        self.status = TaskStatus.ERROR
        self.finished_at = time.time()

    def to_dict(self) -> Dict[str, Any]:
        """Return the caller-facing snapshot of the task."""

        return {
            "status": self.status.value,
            "message": self.message,
            "result": list(self.result) if self.result is not None else None,
            "stats": list(self.stats) if self.stats is not None else None,
            "errors": list(self.errors),
        }


class TaskStore:
    """Keyed registry of tasks.

    Each task is mutated only by its own pipeline, so the lock guards the
    mapping itself, not individual task fields.
    """

    def __init__(self, ttl_seconds: float | None = None) -> None:
        self._tasks: Dict[str, Task] = {}
        self._lock = threading.Lock()
        self._ttl_seconds = config.TASK_TTL_SECONDS if ttl_seconds is None else ttl_seconds

    def create(self) -> str:
        task_id = str(uuid.uuid4())
        with self._lock:
            self._evict_expired_locked()
            self._tasks[task_id] = Task(task_id=task_id)
        return task_id

    def get(self, task_id: str) -> Optional[Task]:
        with self._lock:
            return self._tasks.get(task_id)

    def __len__(self) -> int:
        with self._lock:
            return len(self._tasks)

    def _evict_expired_locked(self, now: float | None = None) -> int:
        if not self._ttl_seconds:
            return 0
        now = time.time() if now is None else now
        expired = [
            task_id
            for task_id, task in self._tasks.items()
            if task.finished_at is not None and now - task.finished_at > self._ttl_seconds
        ]
        for task_id in expired:
            del self._tasks[task_id]
        if expired:
            _scraper_event(
                "state",
                phase="task_store",
                kind="evicted",
                count=len(expired),
                remaining=len(self._tasks),
            )
        return len(expired)

    def evict_expired(self, now: float | None = None) -> int:
        """Drop finished tasks older than the configured TTL."""

        with self._lock:
            return self._evict_expired_locked(now)


# Process-wide store backing the module-level API in ``service``.
DEFAULT_STORE = TaskStore()


__all__ = ["TaskStatus", "Task", "TaskStore", "DEFAULT_STORE"]
