"""Builders for small COLLADA documents used across the tests.

Usage:
    from collada_helper import triangle_geometry, collada_document
    data = collada_document([triangle_geometry("tri")])
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Sequence

NS_14 = "http://www.collada.org/2005/11/COLLADASchema"
NS_15 = "http://www.collada.org/2008/03/COLLADASchema"

TRI_POSITIONS = [(0, 0, 0), (1, 0, 0), (0, 1, 0)]
QUAD_POSITIONS = [(0, 0, 0), (1, 0, 0), (1, 1, 0), (0, 1, 0)]
UP = [(0, 0, 1)]


def _floats(rows: Iterable[Sequence[float]]) -> tuple[str, int]:
    flat = [float(v) for row in rows for v in row]
    return " ".join(repr(v) for v in flat), len(flat)


def source_xml(sid: str, rows: Sequence[Sequence[float]], stride: int) -> str:
    text, n = _floats(rows)
    params = "".join(f'<param name="{c}" type="float"/>' for c in "XYZW"[:stride])
    return (
        f'<source id="{sid}">'
        f'<float_array id="{sid}-array" count="{n}">{text}</float_array>'
        f"<technique_common>"
        f'<accessor source="#{sid}-array" count="{len(rows)}" stride="{stride}">'
        f"{params}</accessor></technique_common></source>"
    )


def geometry_xml(
    gid: str,
    *,
    name: str | None = None,
    positions: Sequence[Sequence[float]] = TRI_POSITIONS,
    normals: Sequence[Sequence[float]] = UP,
    texcoords: Sequence[Sequence[float]] | None = None,
    p: Sequence[int] | None = None,
    interleaved: bool = False,
    primitive: str = "triangles",
    vcount: Sequence[int] | None = None,
    count: int | None = None,
    skip: Sequence[str] = (),
) -> str:
    """One ``<geometry>``.

    Default layout: ``<vertices>`` holds POSITION and the primitive carries
    VERTEX/NORMAL/TEXCOORD at offsets 0/1/2. With ``interleaved`` every
    stream hangs off ``<vertices>`` and ``p`` holds one index per corner.
    ``skip`` drops the named semantics.
    """
    if texcoords is None:
        texcoords = [(i * 0.5, 0.0) for i in range(len(positions))]
    if interleaved and len(normals) == 1:
        # interleaved streams share the VERTEX index
        normals = list(normals) * len(positions)
    if p is None:
        n = len(positions)
        if interleaved:
            p = list(range(n))
        else:
            p = [v for i in range(n) for v in (i, 0, i)]
    name_attr = f' name="{name}"' if name is not None else ""
    sources = [source_xml(f"{gid}-pos", positions, 3)]
    if "NORMAL" not in skip:
        sources.append(source_xml(f"{gid}-nrm", normals, 3))
    if "TEXCOORD" not in skip:
        sources.append(source_xml(f"{gid}-uv", texcoords, 2))
    vert_inputs = [f'<input semantic="POSITION" source="#{gid}-pos"/>']
    prim_inputs = [f'<input semantic="VERTEX" source="#{gid}-vtx" offset="0"/>']
    if interleaved:
        if "NORMAL" not in skip:
            vert_inputs.append(f'<input semantic="NORMAL" source="#{gid}-nrm"/>')
        if "TEXCOORD" not in skip:
            vert_inputs.append(
                f'<input semantic="TEXCOORD" source="#{gid}-uv"/>'
            )
    else:
        if "NORMAL" not in skip:
            prim_inputs.append(
                f'<input semantic="NORMAL" source="#{gid}-nrm" offset="1"/>'
            )
        if "TEXCOORD" not in skip:
            prim_inputs.append(
                f'<input semantic="TEXCOORD" source="#{gid}-uv" offset="2" set="0"/>'
            )
    stride = 1 if interleaved else 3
    tri_count = count if count is not None else len(p) // stride // 3
    vcount_xml = ""
    if primitive == "polylist":
        vc = vcount if vcount is not None else [3] * (len(p) // stride // 3)
        vcount_xml = f"<vcount>{' '.join(str(v) for v in vc)}</vcount>"
    return (
        f'<geometry id="{gid}"{name_attr}><mesh>'
        + "".join(sources)
        + f'<vertices id="{gid}-vtx">{"".join(vert_inputs)}</vertices>'
        + f'<{primitive} count="{tri_count}">'
        + "".join(prim_inputs)
        + vcount_xml
        + f"<p>{' '.join(str(i) for i in p)}</p>"
        + f"</{primitive}></mesh></geometry>"
    )


def triangle_geometry(gid: str, **kw) -> str:
    return geometry_xml(gid, **kw)


def quad_geometry(gid: str, **kw) -> str:
    """Two triangles sharing an edge: 4 unique corners, 6 indices."""
    kw.setdefault("positions", QUAD_POSITIONS)
    kw.setdefault("texcoords", [(0, 0), (1, 0), (1, 1), (0, 1)])
    if kw.get("interleaved"):
        kw.setdefault("p", [0, 1, 2, 0, 2, 3])
    else:
        corners = [0, 1, 2, 0, 2, 3]
        kw.setdefault("p", [v for c in corners for v in (c, 0, c)])
    return geometry_xml(gid, **kw)


def node_xml(
    node_id: str, geometry_id: str, matrix: Sequence[float] | None = None
) -> str:
    matrix_xml = ""
    if matrix is not None:
        matrix_xml = (
            f'<matrix sid="transform">{" ".join(str(float(v)) for v in matrix)}'
            "</matrix>"
        )
    return (
        f'<node id="{node_id}" name="{node_id}" type="NODE">{matrix_xml}'
        f'<instance_geometry url="#{geometry_id}"/></node>'
    )


def collada_document(
    geometries: Sequence[str],
    nodes: Sequence[str] = (),
    namespace: str | None = NS_14,
    version: str = "1.4.1",
) -> bytes:
    xmlns = f' xmlns="{namespace}"' if namespace else ""
    return (
        '<?xml version="1.0" encoding="utf-8"?>'
        f'<COLLADA{xmlns} version="{version}">'
        "<library_geometries>" + "".join(geometries) + "</library_geometries>"
        '<library_visual_scenes><visual_scene id="Scene">'
        + "".join(nodes)
        + "</visual_scene></library_visual_scenes>"
        "</COLLADA>"
    ).encode("utf-8")


def write_source(directory: Path, stem: str, geometries: Sequence[str], **kw) -> Path:
    path = directory / f"{stem}.dae"
    path.write_bytes(collada_document(geometries, **kw))
    return path
