import struct

import numpy as np

from mdlgen.api import inspect_model, validate_model
from mdlgen.format import FORMAT_VERSION, write_model
from mdlgen.geometry import MeshBuffer, VertexRecord


def _write(tmp_path, mesh):
    path = tmp_path / f"{mesh.name}.mdl"
    write_model(mesh, path)
    return path


def _tri(name="tri", p2=(0.0, 1.0, 0.0), indices=(0, 1, 2)):
    return MeshBuffer(
        name,
        [VertexRecord((0, 0, 0)), VertexRecord((1, 0, 0)), VertexRecord(p2)],
        list(indices),
    )


def test_inspect_summary(tmp_path):
    info = inspect_model(_write(tmp_path, _tri()))
    assert info["file"] == "tri.mdl"
    assert info["version"] == FORMAT_VERSION
    assert info["vertex_count"] == 3
    assert info["triangle_count"] == 1
    assert info["size"] == 8 + 3 * 32 + 4 + 12
    assert info["bounds"]["max"] == [1.0, 1.0, 0.0]


def test_validate_clean_model(tmp_path):
    assert validate_model(_write(tmp_path, _tri())) == []


def test_validate_reports_non_finite_and_degenerate(tmp_path):
    mesh = _tri(p2=(float("nan"), 0.0, 0.0), indices=(0, 1, 2, 0, 0, 1))
    issues = validate_model(_write(tmp_path, mesh))
    assert "1 vertices have non-finite position values" in issues
    assert "1 degenerate triangles" in issues


def test_validate_reports_decode_error(tmp_path):
    path = tmp_path / "v2.mdl"
    path.write_bytes(struct.pack("<III", FORMAT_VERSION + 1, 0, 0))
    (issue,) = validate_model(path)
    assert issue.startswith("E_VERSION")


def test_validate_missing_file(tmp_path):
    (issue,) = validate_model(tmp_path / "absent.mdl")
    assert issue.startswith("E_IO")
