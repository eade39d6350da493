from __future__ import annotations

import sys
import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Dict, Optional

__all__ = [
    "TaskStatus",
    "TaskRecord",
    "Reporter",
    "set_reporter",
    "get_reporter",
    "set_verbosity",
    "get_verbosity",
    "section",
    "task",
    "STAT_KEYS",
]

# Task meta keys echoed in completion lines, in this order.
STAT_KEYS = ("sources", "artifacts", "errors", "bytes")


class TaskStatus(Enum):
    RUNNING = auto()
    SUCCESS = auto()
    FAILED = auto()


@dataclass(slots=True)
class TaskRecord:
    task_id: str
    name: str
    total: Optional[int] = None
    completed: int = 0
    status: TaskStatus = TaskStatus.RUNNING
    start_time: float = field(default_factory=time.time)
    end_time: float | None = None
    meta: Dict[str, Any] = field(default_factory=dict)

    def stats_suffix(self) -> str:
        stats = [f"{k}={self.meta[k]}" for k in STAT_KEYS if k in self.meta]
        return f" [{' '.join(stats)}]" if stats else ""

    def duration(self) -> float:
        return (self.end_time - self.start_time) if self.end_time else 0.0


_VERBOSITY: int = 0  # set by the CLI (-v repeats)


def set_verbosity(level: int) -> None:
    global _VERBOSITY
    _VERBOSITY = max(0, level)


def get_verbosity() -> int:
    return _VERBOSITY


class Reporter:
    """Progress and message sink shared by the compiler's worker threads.

    Subclasses implement the ``_``-free methods; callers may invoke any of
    them from several threads, so implementations serialize on ``self.lock``.
    """

    supports_progress: bool = False

    def __init__(self) -> None:
        self.lock = threading.RLock()

    def start_task(
        self, task_id: str, name: str, total: int | None = None, **meta: Any
    ) -> None:
        raise NotImplementedError

    def advance(self, task_id: str, step: int = 1, **meta: Any) -> None:
        raise NotImplementedError

    def end_task(
        self,
        task_id: str,
        status: TaskStatus = TaskStatus.SUCCESS,
        **final_meta: Any,
    ) -> None:
        raise NotImplementedError

    def status(self, message: str, **fields: Any) -> None:
        raise NotImplementedError

    def verbose(self, message: str, *, level: int = 1, **fields: Any) -> None:
        pass

    def error(self, message: str, **fields: Any) -> None:
        raise NotImplementedError

    def warning(self, message: str, **fields: Any) -> None:
        self.status(message, **fields)

    def section(self, title: str) -> None:
        raise NotImplementedError

    def flush(self) -> None:
        pass


_ACTIVE_REPORTER: Reporter | None = None


def set_reporter(rep: Reporter) -> None:
    global _ACTIVE_REPORTER
    _ACTIVE_REPORTER = rep


def get_reporter() -> Reporter:
    global _ACTIVE_REPORTER
    if _ACTIVE_REPORTER is None:
        from .plain import PlainReporter  # local import to avoid cycle

        _ACTIVE_REPORTER = PlainReporter(stream=sys.stderr)
    return _ACTIVE_REPORTER


@contextmanager
def section(title: str):
    get_reporter().section(title)
    yield


@contextmanager
def task(task_id: str, name: str, total: int | None = None, **meta: Any):
    """Run a block as a reporter task; the task fails if the block raises.

    The yielded dict is merged into the task's final meta on success.
    """
    rep = get_reporter()
    rep.start_task(task_id, name, total, **meta)
    final: Dict[str, Any] = {}
    try:
        yield final
    except Exception:
        rep.end_task(task_id, TaskStatus.FAILED, **final)
        raise
    else:
        rep.end_task(task_id, TaskStatus.SUCCESS, **final)
