"""Turn parsed COLLADA geometries into validated :class:`MeshBuffer` objects.

Each ``<geometry>`` is extracted independently: an :class:`ExtractionError`
raised for one is recorded in :class:`ExtractionResult` and the remaining
geometries are still processed.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Tuple

import numpy as np

from ..errors import (
    E_DUP_GEOMETRY,
    E_INDEX_STREAM,
    E_MISSING_STREAM,
    E_SOURCE_DATA,
    E_TRANSFORM,
    MdlError,
    extraction_error,
)
from ..format.constants import VERTEX_DTYPE
from ..geometry.mesh import MeshBuffer
from ..geometry.reindex import unify_corner_indices
from ..logging import get_logger
from .document import (
    ColladaDocument,
    FloatSource,
    GeometryElement,
    MeshElement,
    Primitive,
    read_mesh,
)

__all__ = ["ExtractionResult", "extract_geometries", "extract_geometry"]

# semantic -> number of components consumed from the source
_STREAMS = (("POSITION", 3), ("NORMAL", 3), ("TEXCOORD", 2))


@dataclass(slots=True)
class ExtractionResult:
    # Insertion order is document order.
    meshes: Dict[str, MeshBuffer] = field(default_factory=dict)
    errors: List[MdlError] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


@dataclass(slots=True)
class _Stream:
    semantic: str
    source: FloatSource
    offset: int
    width: int


def _resolve_streams(
    mesh: MeshElement, prim: Primitive, name: str
) -> List[_Stream]:
    vertex_in = prim.input("VERTEX")
    if vertex_in is None:
        raise extraction_error(
            E_MISSING_STREAM,
            f"<{prim.kind}> of '{name}' has no VERTEX input",
            name,
        )
    if vertex_in.source != mesh.vertices_id:
        raise extraction_error(
            E_MISSING_STREAM,
            f"VERTEX input of '{name}' references '{vertex_in.source}', "
            f"not the mesh <vertices> '{mesh.vertices_id}'",
            name,
        )
    streams = []
    for semantic, width in _STREAMS:
        ref = None if semantic == "POSITION" else prim.input(semantic)
        offset = ref.offset if ref is not None else vertex_in.offset
        if ref is None:
            ref = mesh.vertices_input(semantic)
        if ref is None:
            raise extraction_error(
                E_MISSING_STREAM,
                f"Geometry '{name}' has no {semantic} stream",
                name,
                semantic=semantic,
            )
        source = mesh.sources.get(ref.source)
        if source is None:
            raise extraction_error(
                E_MISSING_STREAM,
                f"{semantic} input of '{name}' references unknown source "
                f"'{ref.source}'",
                name,
                semantic=semantic,
            )
        if source.stride < width:
            raise extraction_error(
                E_SOURCE_DATA,
                f"{semantic} source '{source.id}' of '{name}' has stride "
                f"{source.stride}, need at least {width}",
                name,
                semantic=semantic,
            )
        streams.append(_Stream(semantic, source, offset, width))
    return streams


def _corner_rows(prim: Primitive, name: str) -> np.ndarray:
    """Return the ``<p>`` stream as a ``(corners, stride)`` array."""
    stride = prim.stride
    if prim.p.size % stride:
        raise extraction_error(
            E_INDEX_STREAM,
            f"<p> of '{name}' has {prim.p.size} values, not a multiple of "
            f"the input stride {stride}",
            name,
        )
    rows = prim.p.reshape(-1, stride)
    if prim.kind == "polylist":
        vcount = prim.vcount if prim.vcount is not None else np.empty(0)
        if np.any(vcount != 3):
            raise extraction_error(
                E_INDEX_STREAM,
                f"<polylist> of '{name}' is not triangulated",
                name,
            )
        if int(vcount.sum()) != len(rows):
            raise extraction_error(
                E_INDEX_STREAM,
                f"<vcount> of '{name}' accounts for {int(vcount.sum())} "
                f"corners but <p> holds {len(rows)}",
                name,
            )
    if len(rows) % 3:
        raise extraction_error(
            E_INDEX_STREAM,
            f"Corner count {len(rows)} of '{name}' is not a multiple of 3",
            name,
        )
    if prim.count and prim.count * 3 != len(rows):
        get_logger().warning(
            "%s: <%s> declares %d triangles but holds %d",
            name,
            prim.kind,
            prim.count,
            len(rows) // 3,
        )
    return rows


def _primitive_keys(
    mesh: MeshElement, prim: Primitive, name: str
) -> List[Tuple]:
    streams = _resolve_streams(mesh, prim, name)
    rows = _corner_rows(prim, name)
    columns = []
    for s in streams:
        idx = rows[:, s.offset]
        if idx.size and (idx.min() < 0 or idx.max() >= s.source.count):
            bad = int(idx.min()) if idx.min() < 0 else int(idx.max())
            raise extraction_error(
                E_INDEX_STREAM,
                f"{s.semantic} index {bad} of '{name}' is outside source "
                f"'{s.source.id}' ({s.source.count} elements)",
                name,
                semantic=s.semantic,
            )
        columns.append(idx.tolist())
    ids = tuple(s.source.id for s in streams)
    # Keys are qualified by source id so primitives reading different
    # sources never share a vertex.
    return [
        (ids[0], p, ids[1], n, ids[2], t)
        for p, n, t in zip(*columns)
    ]


def _apply_transform(
    positions: np.ndarray, normals: np.ndarray, matrix: np.ndarray, name: str
) -> Tuple[np.ndarray, np.ndarray]:
    if not np.all(np.isfinite(matrix)):
        raise extraction_error(
            E_TRANSFORM, f"Node matrix for '{name}' is not finite", name
        )
    # affine part only; the bottom row is ignored
    linear = matrix[:3, :3]
    try:
        inverse = np.linalg.inv(linear)
    except np.linalg.LinAlgError as e:
        raise extraction_error(
            E_TRANSFORM, f"Node matrix for '{name}' is singular", name
        ) from e
    positions = positions @ linear.T + matrix[:3, 3]
    # inverse-transpose applied to row vectors
    normals = normals @ inverse
    length = np.linalg.norm(normals, axis=1, keepdims=True)
    normals = np.divide(
        normals, length, out=np.zeros_like(normals), where=length > 0
    )
    return positions, normals


def extract_geometry(
    document: ColladaDocument, geometry: GeometryElement
) -> MeshBuffer:
    """Extract one geometry; raises :class:`ExtractionError` on bad data."""
    name = geometry.label
    mesh = read_mesh(geometry)
    keys: List[Tuple] = []
    for prim in mesh.primitives:
        keys.extend(_primitive_keys(mesh, prim, name))
    unique, indices = unify_corner_indices(keys)

    sources = mesh.sources
    positions = np.array(
        [sources[k[0]].values[k[1], :3] for k in unique], dtype=np.float64
    ).reshape(-1, 3)
    normals = np.array(
        [sources[k[2]].values[k[3], :3] for k in unique], dtype=np.float64
    ).reshape(-1, 3)
    texcoords = np.array(
        [sources[k[4]].values[k[5], :2] for k in unique], dtype=np.float64
    ).reshape(-1, 2)

    matrix = document.transform_for(geometry.id)
    if matrix is not None:
        positions, normals = _apply_transform(positions, normals, matrix, name)

    vertices = np.zeros(len(unique), dtype=VERTEX_DTYPE)
    vertices["position"] = positions
    vertices["normal"] = normals
    vertices["texcoord"] = texcoords
    return MeshBuffer(name, vertices, np.asarray(indices, dtype=np.int64))


def extract_geometries(document: ColladaDocument) -> ExtractionResult:
    """Extract every mesh geometry of ``document``, isolating failures."""
    logger = get_logger()
    result = ExtractionResult()
    seen: set[str] = set()
    for geometry in document.geometries:
        name = geometry.label
        if not geometry.has_mesh:
            logger.debug("skipping geometry '%s' without <mesh>", name)
            result.skipped.append(name)
            continue
        if not name:
            result.errors.append(
                extraction_error(
                    E_SOURCE_DATA, "Geometry has neither name nor id"
                )
            )
            continue
        if name in seen:
            result.errors.append(
                extraction_error(
                    E_DUP_GEOMETRY,
                    f"Duplicate geometry name '{name}'",
                    name,
                )
            )
            continue
        seen.add(name)
        try:
            mesh = extract_geometry(document, geometry)
        except MdlError as e:
            result.errors.append(e.with_context(geometry=name))
            continue
        result.meshes[name] = mesh
        logger.debug(
            "extracted %s vertices=%d triangles=%d",
            name,
            mesh.vertex_count,
            mesh.triangle_count,
        )
    return result
