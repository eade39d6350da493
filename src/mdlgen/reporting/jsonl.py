from __future__ import annotations

import json
import sys
import time
from typing import Any, Dict
from .base import Reporter, TaskStatus, TaskRecord, get_verbosity

# "<Prefix> summary: k=v k=v" status lines are re-emitted as summary events.
SUMMARY_TYPES: Dict[str, str] = {
    "source summary": "source",
    "compile summary": "compile",
    "manifest summary": "manifest",
    "model summary": "model",
    "validate summary": "validate",
}


class JsonLinesReporter(Reporter):
    """Machine-readable JSON lines reporter."""

    supports_progress = False

    def __init__(self, stream=None):
        super().__init__()
        self.stream = stream or sys.stdout
        self._tasks: Dict[str, TaskRecord] = {}

    def _emit(self, obj: dict) -> None:
        line = json.dumps(obj, sort_keys=True, default=str)
        with self.lock:
            self.stream.write(line + "\n")

    def start_task(
        self, task_id: str, name: str, total: int | None = None, **meta: Any
    ) -> None:
        with self.lock:
            self._tasks[task_id] = TaskRecord(task_id, name, total, meta=meta)
        self._emit(
            {
                "event": "task_start",
                "id": task_id,
                "name": name,
                "total": total,
                **meta,
            }
        )

    def advance(self, task_id: str, step: int = 1, **meta: Any) -> None:
        with self.lock:
            rec = self._tasks.get(task_id)
            if not rec:
                return
            rec.completed += step
            rec.meta.update(meta)
            completed = rec.completed
        self._emit(
            {
                "event": "task_progress",
                "id": task_id,
                "completed": completed,
                **meta,
            }
        )

    def end_task(
        self,
        task_id: str,
        status: TaskStatus = TaskStatus.SUCCESS,
        **final_meta: Any,
    ) -> None:
        with self.lock:
            rec = self._tasks.pop(task_id, None)
        if not rec:
            return
        rec.status = status
        rec.end_time = time.time()
        rec.meta.update(final_meta)
        self._emit(
            {
                "event": "task_end",
                "id": task_id,
                "status": status.name.lower(),
                "completed": rec.completed,
                "total": rec.total,
                "duration_seconds": rec.duration(),
                **rec.meta,
            }
        )

    def _maybe_summary(self, message: str, level: str, **fields: Any) -> None:
        lower = message.lower()
        for prefix, stype in SUMMARY_TYPES.items():
            if not lower.startswith(prefix):
                continue
            _, _, kv_text = message.partition(":")
            kv_pairs = {}
            for token in kv_text.split():
                k, sep, v = token.partition("=")
                if sep:
                    kv_pairs[k] = v
            self._emit(
                {
                    "event": "summary",
                    "summary_type": stype,
                    "level": level,
                    "raw": message,
                    **kv_pairs,
                    **fields,
                }
            )
            break

    def status(self, message: str, **fields: Any) -> None:
        self._maybe_summary(message, "info", **fields)
        self._emit(
            {"event": "status", "message": message, "level": "info", **fields}
        )

    def verbose(self, message: str, *, level: int = 1, **fields: Any) -> None:
        if get_verbosity() < level:
            return
        self._emit(
            {
                "event": "status",
                "message": message,
                "level": f"verbose{level}",
                "vlevel": level,
                **fields,
            }
        )

    def error(self, message: str, **fields: Any) -> None:
        self._emit(
            {"event": "status", "message": message, "level": "error", **fields}
        )

    def warning(self, message: str, **fields: Any) -> None:
        self._emit(
            {"event": "status", "message": message, "level": "warning", **fields}
        )

    def section(self, title: str) -> None:
        self._emit({"event": "section", "title": title})
