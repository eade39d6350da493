"""High-level API for MdlGen.

Compile side: :func:`compile_directory` / :func:`compile_file`.
Consumer side: :func:`decode_model` (the validated zero-copy decoder) and
:func:`load_model`, plus :func:`inspect_model` / :func:`validate_model`
used by the CLI.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import numpy as np

from .compiler import (
    ArtifactRecord,
    CompileOptions,
    CompileResult,
    SourceReport,
    compile_directory,
    compile_source,
)
from .errors import MdlError
from .format import ModelView, decode_model
from .logging import get_logger
from .utils import safe_read_file

__all__ = [
    "CompileOptions",
    "CompileResult",
    "ArtifactRecord",
    "SourceReport",
    "ModelView",
    "compile_directory",
    "compile_file",
    "decode_model",
    "load_model",
    "inspect_model",
    "validate_model",
]


def compile_file(source: str | Path, output_dir: str | Path) -> SourceReport:
    """Compile a single ``.dae`` file into ``output_dir``."""
    out = Path(output_dir)
    out.mkdir(parents=True, exist_ok=True)
    return compile_source(Path(source), out)


def load_model(path: str | Path) -> ModelView:
    """Read and decode an artifact; the view owns the file bytes."""
    return decode_model(safe_read_file(Path(path)))


def inspect_model(path: str | Path) -> dict[str, Any]:
    p = Path(path)
    view = load_model(p)
    bounds = view.bounds()
    info = {
        "file": p.name,
        "version": view.version,
        "size": view.nbytes,
        "vertex_count": view.vertex_count,
        "index_count": view.index_count,
        "triangle_count": view.index_count // 3,
        "zero_copy": view.zero_copy,
        "bounds": (
            {"min": bounds[0], "max": bounds[1]} if bounds is not None else None
        ),
    }
    get_logger().debug("inspected %s: %s", p.name, info)
    return info


def validate_model(path: str | Path) -> list[str]:
    """Human-readable problems with the artifact at ``path`` (empty if valid)."""
    try:
        view = load_model(path)
    except MdlError as e:
        return [f"{e.code}: {e.message}"]
    issues: list[str] = []
    for field in ("position", "normal", "texcoord"):
        bad = int(np.count_nonzero(~np.isfinite(view.vertices[field]).all(axis=1)))
        if bad:
            issues.append(f"{bad} vertices have non-finite {field} values")
    if view.index_count:
        tris = view.indices.reshape(-1, 3)
        degenerate = int(
            np.count_nonzero(
                (tris[:, 0] == tris[:, 1])
                | (tris[:, 1] == tris[:, 2])
                | (tris[:, 0] == tris[:, 2])
            )
        )
        if degenerate:
            issues.append(f"{degenerate} degenerate triangles")
    return issues
