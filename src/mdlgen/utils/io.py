"""IO helpers for reading sources and artifacts."""

from __future__ import annotations
from pathlib import Path

from ..errors import CompileIOError, E_IO

__all__ = ["safe_read_file", "MAX_SOURCE_SIZE"]

MAX_SOURCE_SIZE = 512 * 1024 * 1024


def safe_read_file(path: Path, max_size: int = MAX_SOURCE_SIZE) -> bytes:
    if not path.is_file():
        raise CompileIOError(
            E_IO, f"File not found: {path}", {"path": str(path)}
        )
    size = path.stat().st_size
    if size > max_size:
        raise CompileIOError(
            E_IO,
            f"File too large: {size}>{max_size}",
            {"path": str(path), "size": size},
        )
    try:
        return path.read_bytes()
    except OSError as e:
        raise CompileIOError(
            E_IO, f"Cannot read {path}: {e}", {"path": str(path)}
        ) from e
