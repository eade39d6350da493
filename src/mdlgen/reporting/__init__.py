"""Reporter backends and the process-wide active reporter."""

import sys

from .base import (
    Reporter,
    TaskStatus,
    get_reporter,
    get_verbosity,
    section,
    set_reporter,
    set_verbosity,
    task,
)
from .plain import PlainReporter
from .jsonl import JsonLinesReporter
from .silent import SilentReporter
from .rich_reporter import RichReporter

REPORTER_CHOICES = ("plain", "rich", "json", "silent")


def make_reporter(kind: str) -> Reporter:
    """Build a reporter by CLI name; ``rich`` degrades to plain off a TTY."""
    if kind == "json":
        return JsonLinesReporter()
    if kind == "silent":
        return SilentReporter()
    if kind == "rich" and sys.stderr.isatty():
        return RichReporter()
    return PlainReporter()


__all__ = [
    "Reporter",
    "TaskStatus",
    "get_reporter",
    "set_reporter",
    "section",
    "task",
    "set_verbosity",
    "get_verbosity",
    "make_reporter",
    "REPORTER_CHOICES",
    "PlainReporter",
    "JsonLinesReporter",
    "SilentReporter",
    "RichReporter",
]
