"""Manifest generation for a compile run.

The manifest is an optional JSON artifact that summarises one
:func:`~mdlgen.compiler.compile_directory` run. It is only produced when
explicitly requested by the caller / CLI flag (``--emit-manifest``).

Contents:
- Format version of every artifact written
- Per-artifact entries (name, source, file, counts, size, sha256)
- Counts and the errors collected during the run
"""

from __future__ import annotations

from pathlib import Path
import hashlib
import json
from typing import TYPE_CHECKING, Any

from .format.constants import FORMAT_VERSION

if TYPE_CHECKING:
    from .compiler import CompileResult

__all__ = ["build_manifest", "manifest_dict", "MANIFEST_VERSION"]

MANIFEST_VERSION = 1


def _sha256(path: Path) -> str:
    return hashlib.sha256(path.read_bytes()).hexdigest()


def manifest_dict(result: "CompileResult") -> dict[str, Any]:
    artifacts = [
        {
            "name": a.name,
            "source": a.source.name,
            "file": a.path.name,
            "vertex_count": a.vertex_count,
            "index_count": a.index_count,
            "size": a.size,
            "sha256": _sha256(a.path),
        }
        for a in result.artifacts
    ]
    errors = [e.to_dict() for e in result.errors]
    return {
        "version": MANIFEST_VERSION,
        "format_version": FORMAT_VERSION,
        "counts": {
            "sources": len(result.sources),
            "artifacts": len(artifacts),
            "errors": len(errors),
            "bytes": result.bytes_written(),
        },
        "artifacts": artifacts,
        "errors": errors,
    }


def build_manifest(result: "CompileResult", output_path: Path) -> Path:
    data = manifest_dict(result)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(
        json.dumps(data, indent=2, sort_keys=True, default=str),
        encoding="utf-8",
    )
    return output_path
