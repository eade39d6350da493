import numpy as np
import pytest

from mdlgen.config import MergeSpec
from mdlgen.errors import E_MERGE_NAME, E_MERGE_REF, MergeConfigError
from mdlgen.geometry import MeshBuffer, VertexRecord, resolve_merges


def _mesh(name: str, n: int, x: float) -> MeshBuffer:
    verts = [VertexRecord((x, float(i), 0.0)) for i in range(n)]
    indices = [i % n for i in range(3 * max(1, n - 2))]
    return MeshBuffer(name, verts, indices)


def _meshes():
    return {
        "a": _mesh("a", 3, 1.0),
        "b": _mesh("b", 4, 2.0),
        "c": _mesh("c", 5, 3.0),
    }


def test_no_merges_emits_every_geometry_unchanged():
    meshes = _meshes()
    out = resolve_merges(meshes)
    assert list(out) == ["a", "b", "c"]
    assert out["b"] is meshes["b"]


def test_merge_offsets_indices_by_preceding_vertex_counts():
    meshes = _meshes()
    out = resolve_merges(meshes, [MergeSpec("ab", ("a", "b"))])
    ab = out["ab"]
    assert ab.vertex_count == 7
    a, b = meshes["a"], meshes["b"]
    assert np.array_equal(ab.indices[: a.index_count], a.indices)
    assert np.array_equal(ab.indices[a.index_count :], b.indices + 3)
    # vertices concatenated in listed order, no dedup
    assert ab.vertices.tobytes() == a.vertices.tobytes() + b.vertices.tobytes()


def test_merge_respects_listed_order_not_document_order():
    meshes = _meshes()
    out = resolve_merges(meshes, [MergeSpec("cb", ("c", "b"))])
    cb = out["cb"]
    assert cb.vertex(0).position[0] == 3.0
    assert cb.vertex(5).position[0] == 2.0
    assert int(cb.indices[meshes["c"].index_count :].min()) >= 5


def test_merged_outputs_first_then_unmerged_in_order():
    out = resolve_merges(_meshes(), [MergeSpec("bc", ("b", "c"))])
    assert list(out) == ["bc", "a"]


def test_inputs_are_consumed():
    out = resolve_merges(_meshes(), [MergeSpec("all", ("a", "b", "c"))])
    assert list(out) == ["all"]
    assert out["all"].vertex_count == 12


def test_unknown_geometry_reference():
    with pytest.raises(MergeConfigError) as ei:
        resolve_merges(_meshes(), [MergeSpec("x", ("a", "zzz"))])
    assert ei.value.code == E_MERGE_REF
    assert ei.value.context["geometry"] == "zzz"


def test_reference_to_already_consumed_geometry():
    with pytest.raises(MergeConfigError) as ei:
        resolve_merges(
            _meshes(),
            [MergeSpec("x", ("a", "b")), MergeSpec("y", ("b", "c"))],
        )
    assert ei.value.code == E_MERGE_REF
    assert "already consumed" in ei.value.message


def test_output_name_clashing_with_unmerged_geometry():
    with pytest.raises(MergeConfigError) as ei:
        resolve_merges(_meshes(), [MergeSpec("c", ("a", "b"))])
    assert ei.value.code == E_MERGE_NAME
