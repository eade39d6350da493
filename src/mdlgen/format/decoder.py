"""Validated, zero-copy decoding of .mdl artifacts.

:func:`decode_model` is the only place where artifact bytes become typed
arrays. It checks, in order:

1. the buffer holds the fixed header (``TruncatedBufferError``);
2. the format version matches (``VersionMismatchError``);
3. the declared counts account for every byte, no more and no less
   (``SizeMismatchError``);
4. index count and index values are structurally valid
   (``DecodeError`` / ``IndexRangeError``).

Only then are arrays exposed. When the caller's buffer is suitably aligned
the arrays are views into it (numpy keeps a reference to the buffer through
``.base``, so it stays alive as long as any view does). Otherwise the bytes
are copied into freshly allocated aligned arrays; an unaligned typed view is
never built.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Optional, Tuple

import numpy as np

from ..errors import (
    DecodeError,
    E_BUFFER,
    E_INDEX_COUNT,
    E_INDEX_OUT_OF_RANGE,
    IndexRangeError,
    size_mismatch,
    version_mismatch,
)
from .constants import (
    FORMAT_VERSION,
    HEADER,
    HEADER_SIZE,
    INDEX_COUNT_SIZE,
    INDEX_DTYPE,
    U32,
    VERTEX_ALIGNMENT,
    VERTEX_DTYPE,
    VERTEX_SIZE,
)
from .encoder import encoded_size

if TYPE_CHECKING:
    from ..geometry.mesh import MeshBuffer

__all__ = ["ModelView", "decode_model", "read_header"]


@dataclass(frozen=True, slots=True)
class ModelView:
    """Read-only typed view over a decoded artifact."""

    version: int
    vertices: np.ndarray
    indices: np.ndarray
    zero_copy: bool
    nbytes: int

    @property
    def vertex_count(self) -> int:
        return len(self.vertices)

    @property
    def index_count(self) -> int:
        return len(self.indices)

    @property
    def positions(self) -> np.ndarray:
        return self.vertices["position"]

    @property
    def normals(self) -> np.ndarray:
        return self.vertices["normal"]

    @property
    def texcoords(self) -> np.ndarray:
        return self.vertices["texcoord"]

    def bounds(self) -> Optional[Tuple[list, list]]:
        if not self.vertex_count:
            return None
        pos = self.positions
        return pos.min(axis=0).tolist(), pos.max(axis=0).tolist()

    def to_mesh_buffer(self, name: str) -> "MeshBuffer":
        from ..geometry.mesh import MeshBuffer

        return MeshBuffer(name, self.vertices, self.indices)


def _byte_view(buffer: Any) -> memoryview:
    try:
        return memoryview(buffer).cast("B")
    except TypeError as e:
        raise DecodeError(
            E_BUFFER,
            f"Artifact buffer must be a contiguous bytes-like object: {e}",
        ) from e


def read_header(buffer: Any) -> Tuple[int, int]:
    """Return ``(format_version, vertex_count)`` without further checks."""
    mv = _byte_view(buffer)
    if mv.nbytes < HEADER_SIZE:
        raise size_mismatch(
            f"Buffer of {mv.nbytes} bytes cannot hold the {HEADER_SIZE}-byte header",
            expected=HEADER_SIZE,
            actual=mv.nbytes,
            truncated=True,
        )
    version, vertex_count = HEADER.unpack_from(mv, 0)
    return version, vertex_count


def _typed(
    raw: np.ndarray, dtype: np.dtype, count: int, offset: int, direct: bool
) -> np.ndarray:
    if not count:
        arr = np.empty(0, dtype=dtype)
    elif direct:
        arr = np.frombuffer(raw, dtype=dtype, count=count, offset=offset)
    else:
        arr = np.empty(count, dtype=dtype)
        arr.view(np.uint8)[:] = raw[offset : offset + count * dtype.itemsize]
    arr.flags.writeable = False
    return arr


def _reinterpret(
    mv: memoryview, vertex_count: int, index_count: int
) -> Tuple[np.ndarray, np.ndarray, bool]:
    raw = np.frombuffer(mv, dtype=np.uint8)
    address = raw.__array_interface__["data"][0]
    vertex_offset = HEADER_SIZE
    index_offset = vertex_offset + vertex_count * VERTEX_SIZE + INDEX_COUNT_SIZE
    direct = (address + vertex_offset) % VERTEX_ALIGNMENT == 0 and (
        address + index_offset
    ) % INDEX_DTYPE.alignment == 0
    vertices = _typed(raw, VERTEX_DTYPE, vertex_count, vertex_offset, direct)
    indices = _typed(raw, INDEX_DTYPE, index_count, index_offset, direct)
    return vertices, indices, direct


def decode_model(
    buffer: Any, *, expected_version: int = FORMAT_VERSION
) -> ModelView:
    """Validate ``buffer`` and expose it as a :class:`ModelView`.

    ``buffer`` is any contiguous bytes-like object. It is borrowed, not
    copied (unless misaligned), and must not be mutated while views exist.
    """
    mv = _byte_view(buffer)
    size = mv.nbytes
    version, vertex_count = read_header(mv)
    if version != expected_version:
        raise version_mismatch(version, expected_version)

    count_offset = HEADER_SIZE + vertex_count * VERTEX_SIZE
    if size < count_offset + INDEX_COUNT_SIZE:
        raise size_mismatch(
            f"Buffer of {size} bytes is too short for {vertex_count} vertices "
            "and the index count field",
            expected=count_offset + INDEX_COUNT_SIZE,
            actual=size,
        )
    (index_count,) = U32.unpack_from(mv, count_offset)
    expected = encoded_size(vertex_count, index_count)
    if size != expected:
        kind = "shortfall" if size < expected else "surplus"
        raise size_mismatch(
            f"Size {kind}: header declares {vertex_count} vertices and "
            f"{index_count} indices ({expected} bytes) but buffer has {size}",
            expected=expected,
            actual=size,
        )
    if index_count % 3:
        raise DecodeError(
            E_INDEX_COUNT,
            f"Index count {index_count} is not a multiple of 3",
            {"index_count": index_count},
        )

    vertices, indices, zero_copy = _reinterpret(mv, vertex_count, index_count)
    if index_count:
        top = int(indices.max())
        if top >= vertex_count:
            raise IndexRangeError(
                E_INDEX_OUT_OF_RANGE,
                f"Index {top} out of range for {vertex_count} vertices",
                {"index": top, "vertex_count": vertex_count},
            )
    return ModelView(
        version=version,
        vertices=vertices,
        indices=indices,
        zero_copy=zero_copy,
        nbytes=size,
    )
