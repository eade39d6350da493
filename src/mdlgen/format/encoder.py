"""Pure binary packing for .mdl artifacts plus the file writer.

Layout (little-endian, no padding)::

    u32 format_version
    u32 vertex_count
    vertex_count * VERTEX_DTYPE
    u32 index_count
    index_count * u32

The packers trust :class:`MeshBuffer`, whose constructor already enforced
index bounds; they only assert that emitted sizes match the layout.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import numpy as np

from ..errors import internal_error
from ..logging import get_logger
from .constants import (
    FORMAT_VERSION,
    HEADER,
    HEADER_SIZE,
    INDEX_COUNT_SIZE,
    INDEX_DTYPE,
    INDEX_SIZE,
    U32,
    VERTEX_DTYPE,
    VERTEX_SIZE,
)

if TYPE_CHECKING:
    from ..geometry.mesh import MeshBuffer

__all__ = [
    "pack_header",
    "pack_vertex_block",
    "pack_index_block",
    "encoded_size",
    "encode_mesh",
    "write_model",
]


def pack_header(vertex_count: int, version: int = FORMAT_VERSION) -> bytes:
    return HEADER.pack(version, vertex_count)


def pack_vertex_block(vertices: np.ndarray) -> bytes:
    data = np.ascontiguousarray(vertices, dtype=VERTEX_DTYPE).tobytes()
    if len(data) != len(vertices) * VERTEX_SIZE:
        raise internal_error(
            f"Vertex block size mismatch: {len(data)}",
            {"vertex_count": len(vertices)},
        )
    return data


def pack_index_block(indices: np.ndarray) -> bytes:
    return U32.pack(len(indices)) + np.ascontiguousarray(
        indices, dtype=INDEX_DTYPE
    ).tobytes()


def encoded_size(vertex_count: int, index_count: int) -> int:
    return (
        HEADER_SIZE
        + vertex_count * VERTEX_SIZE
        + INDEX_COUNT_SIZE
        + index_count * INDEX_SIZE
    )


def encode_mesh(mesh: MeshBuffer) -> bytes:
    out = b"".join(
        (
            pack_header(mesh.vertex_count),
            pack_vertex_block(mesh.vertices),
            pack_index_block(mesh.indices),
        )
    )
    expected = encoded_size(mesh.vertex_count, mesh.index_count)
    if len(out) != expected:
        raise internal_error(
            f"Encoded size mismatch for '{mesh.name}': {len(out)} != {expected}",
            {"geometry": mesh.name},
        )
    return out


def write_model(mesh: MeshBuffer, output_path: Path) -> int:
    """Encode ``mesh`` to ``output_path``; returns bytes written.

    The artifact is written to a sibling temp file and renamed into place so
    a reader never observes a partially written model.
    """
    data = encode_mesh(mesh)
    tmp = output_path.with_name(output_path.name + ".tmp")
    with tmp.open("wb") as f:
        f.write(data)
    tmp.replace(output_path)
    get_logger().debug(
        "Wrote %s vertices=%d indices=%d bytes=%d",
        output_path.name,
        mesh.vertex_count,
        mesh.index_count,
        len(data),
    )
    return len(data)
