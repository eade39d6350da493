"""Path utilities (safe resolution of artifact names)."""

from __future__ import annotations
from pathlib import Path

from ..errors import CompileIOError, E_OUTPUT_NAME
from ..format.constants import MODEL_EXTENSION

__all__ = ["safe_file_path", "artifact_path"]


def safe_file_path(base_dir: Path, file_path: str) -> Path:
    base_dir = base_dir.resolve()
    resolved = (base_dir / file_path).resolve()
    resolved.relative_to(base_dir)  # raises ValueError if escapes
    return resolved


def artifact_path(output_dir: Path, geometry: str) -> Path:
    """Path of the artifact for ``geometry`` inside ``output_dir``.

    The name must stay a plain file name: separators, ``..`` and empty names
    raise :class:`CompileIOError` with ``E_OUTPUT_NAME``.
    """
    file_name = geometry + MODEL_EXTENSION
    if (
        not geometry
        or geometry in {".", ".."}
        or "/" in geometry
        or "\\" in geometry
        or "\0" in geometry
    ):
        raise CompileIOError(
            E_OUTPUT_NAME,
            f"Geometry name '{geometry}' is not a valid artifact file name",
            {"geometry": geometry},
        )
    try:
        return safe_file_path(output_dir, file_name)
    except ValueError as e:
        raise CompileIOError(
            E_OUTPUT_NAME,
            f"Artifact for '{geometry}' would escape the output directory",
            {"geometry": geometry},
        ) from e
