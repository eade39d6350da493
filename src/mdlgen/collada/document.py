"""Thin COLLADA reader on top of ``xml.etree.ElementTree``.

Only the parts the extractor consumes are modelled: geometry meshes (sources,
``<vertices>``, ``<triangles>``/``<polylist>``) and the top-level nodes of the
visual scenes. Namespaces (COLLADA 1.4 and 1.5) are stripped on load.

Document-level problems raise :class:`DocumentError`. Per-geometry content
(mesh data, node matrices) is parsed lazily and raises
:class:`ExtractionError`, so one malformed geometry does not spoil the
document.
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import numpy as np

from ..errors import (
    DocumentError,
    E_INDEX_STREAM,
    E_MISSING_STREAM,
    E_NOT_COLLADA,
    E_SOURCE_DATA,
    E_TRANSFORM,
    E_XML,
    extraction_error,
)

__all__ = [
    "InputRef",
    "FloatSource",
    "Primitive",
    "MeshElement",
    "GeometryElement",
    "SceneNode",
    "ColladaDocument",
    "parse_document",
    "read_mesh",
]


@dataclass(slots=True)
class InputRef:
    semantic: str
    source: str  # referenced id, without the leading '#'
    offset: int = 0
    set: Optional[int] = None


@dataclass(slots=True)
class FloatSource:
    id: str
    values: np.ndarray  # shape (count, stride)

    @property
    def count(self) -> int:
        return self.values.shape[0]

    @property
    def stride(self) -> int:
        return self.values.shape[1]


@dataclass(slots=True)
class Primitive:
    kind: str  # "triangles" | "polylist"
    count: int
    inputs: List[InputRef]
    p: np.ndarray
    vcount: Optional[np.ndarray] = None

    @property
    def stride(self) -> int:
        return max((i.offset for i in self.inputs), default=0) + 1

    def input(self, semantic: str) -> Optional[InputRef]:
        # lowest set wins when several inputs share a semantic
        found = [i for i in self.inputs if i.semantic == semantic]
        if not found:
            return None
        return min(found, key=lambda i: (i.set is not None, i.set or 0))


@dataclass(slots=True)
class MeshElement:
    sources: Dict[str, FloatSource]
    vertices_id: str
    vertices_inputs: List[InputRef]
    primitives: List[Primitive]

    def vertices_input(self, semantic: str) -> Optional[InputRef]:
        for i in self.vertices_inputs:
            if i.semantic == semantic:
                return i
        return None


@dataclass(slots=True)
class GeometryElement:
    id: str
    name: str
    element: ET.Element

    @property
    def label(self) -> str:
        return self.name or self.id

    @property
    def has_mesh(self) -> bool:
        return self.element.find("mesh") is not None


@dataclass(slots=True)
class SceneNode:
    id: str
    name: str
    matrix_text: Optional[str]
    geometry_ids: List[str] = field(default_factory=list)

    def matrix(self) -> Optional[np.ndarray]:
        """Row-major 4x4 node matrix, or None when the node has none."""
        if self.matrix_text is None:
            return None
        try:
            values = np.array(self.matrix_text.split(), dtype=np.float64)
        except (ValueError, OverflowError) as e:
            raise extraction_error(
                E_TRANSFORM, f"Invalid matrix on node '{self.id}': {e}"
            ) from e
        if values.size != 16:
            raise extraction_error(
                E_TRANSFORM,
                f"Matrix on node '{self.id}' has {values.size} values, "
                "expected 16",
            )
        return values.reshape(4, 4)


@dataclass(slots=True)
class ColladaDocument:
    version: str
    geometries: List[GeometryElement]
    nodes: List[SceneNode]

    def transform_for(self, geometry_id: str) -> Optional[np.ndarray]:
        """Matrix of the first top-level node instancing ``geometry_id``."""
        for node in self.nodes:
            if geometry_id in node.geometry_ids:
                return node.matrix()
        return None


def _strip_namespaces(root: ET.Element) -> None:
    for el in root.iter():
        if isinstance(el.tag, str) and el.tag.startswith("{"):
            el.tag = el.tag.split("}", 1)[1]


def _ref(url: str) -> str:
    return url[1:] if url.startswith("#") else url


def parse_document(data: bytes) -> ColladaDocument:
    try:
        root = ET.fromstring(data)
    except ET.ParseError as e:
        raise DocumentError(E_XML, f"Malformed XML: {e}") from e
    _strip_namespaces(root)
    if root.tag != "COLLADA":
        raise DocumentError(
            E_NOT_COLLADA,
            f"Root element is <{root.tag}>, expected <COLLADA>",
            {"root": root.tag},
        )
    geometries = [
        GeometryElement(id=g.get("id", ""), name=g.get("name", ""), element=g)
        for g in root.findall("library_geometries/geometry")
    ]
    nodes = []
    for node in root.findall("library_visual_scenes/visual_scene/node"):
        matrix_el = node.find("matrix")
        nodes.append(
            SceneNode(
                id=node.get("id", ""),
                name=node.get("name", ""),
                matrix_text=(
                    (matrix_el.text or "") if matrix_el is not None else None
                ),
                geometry_ids=[
                    _ref(i.get("url", ""))
                    for i in node.findall("instance_geometry")
                ],
            )
        )
    return ColladaDocument(
        version=root.get("version", ""), geometries=geometries, nodes=nodes
    )


# Upper bound for integer attributes (counts, strides, offsets, sets)
_MAX_INT_ATTR = 2**31 - 1


def _int_attr(
    el: ET.Element,
    key: str,
    default: int,
    geometry: str,
    *,
    code: str = E_SOURCE_DATA,
) -> int:
    raw = el.get(key)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError as e:
        raise extraction_error(
            code,
            f"Attribute {key}='{raw}' on <{el.tag}> is not an integer",
            geometry,
        ) from e
    if not 0 <= value <= _MAX_INT_ATTR:
        raise extraction_error(
            code,
            f"Attribute {key}={value} on <{el.tag}> is out of range",
            geometry,
        )
    return value


def _parse_inputs(parent: ET.Element, geometry: str) -> List[InputRef]:
    out = []
    for el in parent.findall("input"):
        set_attr = el.get("set")
        out.append(
            InputRef(
                semantic=el.get("semantic", ""),
                source=_ref(el.get("source", "")),
                offset=_int_attr(
                    el, "offset", 0, geometry, code=E_INDEX_STREAM
                ),
                set=(
                    _int_attr(el, "set", 0, geometry, code=E_INDEX_STREAM)
                    if set_attr is not None
                    else None
                ),
            )
        )
    return out


def _parse_source(el: ET.Element, geometry: str) -> FloatSource:
    source_id = el.get("id", "")
    arr = el.find("float_array")
    if arr is None:
        raise extraction_error(
            E_SOURCE_DATA,
            f"Source '{source_id}' has no float_array",
            geometry,
            source_id=source_id,
        )
    try:
        values = np.array((arr.text or "").split(), dtype=np.float64)
    except (ValueError, OverflowError) as e:
        raise extraction_error(
            E_SOURCE_DATA,
            f"Source '{source_id}' holds non-numeric data: {e}",
            geometry,
            source_id=source_id,
        ) from e
    accessor = el.find("technique_common/accessor")
    if accessor is not None:
        params = accessor.findall("param")
        stride = _int_attr(accessor, "stride", len(params) or 1, geometry)
        count = _int_attr(
            accessor, "count", values.size // max(stride, 1), geometry
        )
    else:
        stride, count = 1, values.size
    if stride < 1 or count < 0 or values.size < stride * count:
        raise extraction_error(
            E_SOURCE_DATA,
            f"Source '{source_id}' declares {count}x{stride} values "
            f"but holds {values.size}",
            geometry,
            source_id=source_id,
        )
    return FloatSource(
        id=source_id, values=values[: stride * count].reshape(count, stride)
    )


def _parse_ints(el: Optional[ET.Element], what: str, geometry: str) -> np.ndarray:
    text = el.text if el is not None else ""
    try:
        return np.array((text or "").split(), dtype=np.int64)
    except (ValueError, OverflowError) as e:
        raise extraction_error(
            E_INDEX_STREAM, f"Invalid integer in <{what}>: {e}", geometry
        ) from e


def read_mesh(geometry: GeometryElement) -> MeshElement:
    """Parse the ``<mesh>`` of ``geometry`` into a :class:`MeshElement`."""
    name = geometry.label
    mesh = geometry.element.find("mesh")
    if mesh is None:
        raise extraction_error(
            E_MISSING_STREAM, f"Geometry '{name}' has no <mesh>", name
        )
    sources = {}
    for s in mesh.findall("source"):
        src = _parse_source(s, name)
        sources[src.id] = src
    vertices = mesh.find("vertices")
    if vertices is None:
        raise extraction_error(
            E_MISSING_STREAM, f"Geometry '{name}' has no <vertices>", name
        )
    primitives = []
    for kind in ("triangles", "polylist"):
        for el in mesh.findall(kind):
            p = el.find("p")
            if p is None:
                raise extraction_error(
                    E_MISSING_STREAM,
                    f"<{kind}> of '{name}' has no <p> index stream",
                    name,
                )
            primitives.append(
                Primitive(
                    kind=kind,
                    count=_int_attr(el, "count", 0, name),
                    inputs=_parse_inputs(el, name),
                    p=_parse_ints(p, "p", name),
                    vcount=(
                        _parse_ints(el.find("vcount"), "vcount", name)
                        if kind == "polylist"
                        else None
                    ),
                )
            )
    if not primitives:
        others = [
            t
            for t in ("polygons", "lines", "linestrips", "trifans", "tristrips")
            if mesh.find(t) is not None
        ]
        detail = f" (found {', '.join(others)})" if others else ""
        raise extraction_error(
            E_MISSING_STREAM,
            f"Geometry '{name}' has no triangle stream{detail}",
            name,
        )
    return MeshElement(
        sources=sources,
        vertices_id=vertices.get("id", ""),
        vertices_inputs=_parse_inputs(vertices, name),
        primitives=primitives,
    )
