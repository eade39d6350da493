"""In-memory geometry: vertex records and validated mesh buffers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Iterator, Sequence, Tuple

import numpy as np

from ..errors import (
    E_INDEX_COUNT,
    E_INDEX_OUT_OF_RANGE,
    E_VERTEX_LAYOUT,
    MeshError,
)
from ..format.constants import (
    INDEX_DTYPE,
    MAX_INDEX_COUNT,
    MAX_VERTEX_COUNT,
    VERTEX_DTYPE,
)

__all__ = ["VertexRecord", "MeshBuffer", "vertex_array"]

Vec3 = Tuple[float, float, float]
Vec2 = Tuple[float, float]


@dataclass(frozen=True, slots=True)
class VertexRecord:
    """One vertex: position, normal and texture coordinate."""

    position: Vec3 = (0.0, 0.0, 0.0)
    normal: Vec3 = (0.0, 0.0, 1.0)
    texcoord: Vec2 = (0.0, 0.0)

    @classmethod
    def from_row(cls, row: np.void) -> "VertexRecord":
        return cls(
            position=tuple(float(v) for v in row["position"]),  # type: ignore[arg-type]
            normal=tuple(float(v) for v in row["normal"]),  # type: ignore[arg-type]
            texcoord=tuple(float(v) for v in row["texcoord"]),  # type: ignore[arg-type]
        )

    def as_row(self) -> tuple:
        return (self.position, self.normal, self.texcoord)


def vertex_array(records: Iterable[VertexRecord]) -> np.ndarray:
    """Pack vertex records into a ``VERTEX_DTYPE`` array."""
    rows = [r.as_row() for r in records]
    if not rows:
        return np.zeros(0, dtype=VERTEX_DTYPE)
    return np.array(rows, dtype=VERTEX_DTYPE)


class MeshBuffer:
    """A named triangle mesh whose invariants hold from construction on.

    ``vertices`` is a 1-D array of :data:`VERTEX_DTYPE` and ``indices`` a 1-D
    ``uint32`` array whose length is a multiple of three and whose values are
    all below the vertex count. Violations raise :class:`MeshError` here, so
    the encoder never sees an invalid buffer. Both arrays are stored as
    private read-only copies.
    """

    __slots__ = ("name", "vertices", "indices")

    def __init__(
        self,
        name: str,
        vertices: np.ndarray | Sequence[VertexRecord],
        indices: np.ndarray | Sequence[int] = (),
    ) -> None:
        if not isinstance(vertices, np.ndarray):
            vertices = vertex_array(vertices)
        else:
            # private read-only copy; the checks below must keep holding
            vertices = vertices.copy()
        if vertices.dtype != VERTEX_DTYPE or vertices.ndim != 1:
            raise MeshError(
                E_VERTEX_LAYOUT,
                f"Vertices for '{name}' must be a 1-D array of the vertex record dtype",
                {"geometry": name, "dtype": str(vertices.dtype)},
            )
        if len(vertices) > MAX_VERTEX_COUNT:
            raise MeshError(
                E_VERTEX_LAYOUT,
                f"Too many vertices for '{name}': {len(vertices)}",
                {"geometry": name},
            )
        idx = np.array(indices)
        if idx.ndim != 1:
            raise MeshError(
                E_INDEX_COUNT,
                f"Indices for '{name}' must be one-dimensional",
                {"geometry": name},
            )
        if idx.size and not np.issubdtype(idx.dtype, np.integer):
            raise MeshError(
                E_INDEX_COUNT,
                f"Indices for '{name}' must be integers",
                {"geometry": name, "dtype": str(idx.dtype)},
            )
        if idx.size > MAX_INDEX_COUNT:
            raise MeshError(
                E_INDEX_COUNT,
                f"Too many indices for '{name}': {idx.size}",
                {"geometry": name},
            )
        if idx.size % 3:
            raise MeshError(
                E_INDEX_COUNT,
                f"Index count {idx.size} for '{name}' is not a multiple of 3",
                {"geometry": name, "index_count": int(idx.size)},
            )
        if idx.size:
            lo = int(idx.min())
            hi = int(idx.max())
            if lo < 0 or hi >= len(vertices):
                bad = lo if lo < 0 else hi
                raise MeshError(
                    E_INDEX_OUT_OF_RANGE,
                    f"Index {bad} out of range for '{name}' "
                    f"with {len(vertices)} vertices",
                    {
                        "geometry": name,
                        "index": bad,
                        "vertex_count": len(vertices),
                    },
                )
        vertices.flags.writeable = False
        idx = idx.astype(INDEX_DTYPE)
        idx.flags.writeable = False
        self.name = name
        self.vertices = vertices
        self.indices = idx

    @property
    def vertex_count(self) -> int:
        return len(self.vertices)

    @property
    def index_count(self) -> int:
        return len(self.indices)

    @property
    def triangle_count(self) -> int:
        return self.index_count // 3

    def vertex(self, i: int) -> VertexRecord:
        return VertexRecord.from_row(self.vertices[i])

    def iter_vertices(self) -> Iterator[VertexRecord]:
        for row in self.vertices:
            yield VertexRecord.from_row(row)

    def renamed(self, name: str) -> "MeshBuffer":
        return MeshBuffer(name, self.vertices, self.indices)

    @classmethod
    def merge(cls, name: str, parts: Sequence["MeshBuffer"]) -> "MeshBuffer":
        """Concatenate ``parts`` in order into a new buffer called ``name``.

        Indices of the Nth part are offset by the vertex count of all parts
        before it. Vertices are not deduplicated.
        """
        if not parts:
            return cls(name, np.zeros(0, dtype=VERTEX_DTYPE))
        offsets = np.cumsum([0] + [p.vertex_count for p in parts[:-1]])
        vertices = np.concatenate([p.vertices for p in parts])
        indices = np.concatenate(
            [
                p.indices.astype(np.int64) + int(off)
                for p, off in zip(parts, offsets)
            ]
        )
        return cls(name, vertices, indices)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MeshBuffer):
            return NotImplemented
        # bytewise: structured rows with subarray fields do not compare elementwise
        return (
            self.name == other.name
            and self.vertices.tobytes() == other.vertices.tobytes()
            and np.array_equal(self.indices, other.indices)
        )

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return (
            f"MeshBuffer(name={self.name!r}, vertices={self.vertex_count}, "
            f"indices={self.index_count})"
        )
