import struct

import numpy as np
import pytest

from mdlgen.errors import (
    E_INDEX_COUNT,
    E_SIZE_MISMATCH,
    E_TRUNCATED,
    DecodeError,
    IndexRangeError,
    SizeMismatchError,
    TruncatedBufferError,
    VersionMismatchError,
)
from mdlgen.format import FORMAT_VERSION, decode_model, encode_mesh, read_header
from mdlgen.geometry import MeshBuffer, VertexRecord


def _mesh() -> MeshBuffer:
    verts = [
        VertexRecord((0, 0, 0), (0, 0, 1), (0, 0)),
        VertexRecord((1, 0, 0), (0, 0, 1), (1, 0)),
        VertexRecord((1, 1, 0), (0, 0, 1), (1, 1)),
        VertexRecord((0, 1, 0), (0, 0, 1), (0, 1)),
    ]
    return MeshBuffer("quad", verts, [0, 1, 2, 0, 2, 3])


def test_roundtrip_preserves_vertices_and_indices():
    mesh = _mesh()
    view = decode_model(encode_mesh(mesh))
    assert view.version == FORMAT_VERSION
    assert view.vertex_count == 4
    assert view.index_count == 6
    assert view.vertices.tobytes() == mesh.vertices.tobytes()
    assert np.array_equal(view.indices, mesh.indices)
    assert view.to_mesh_buffer("quad") == mesh
    assert view.bounds() == ([0.0, 0.0, 0.0], [1.0, 1.0, 0.0])


def test_views_are_read_only():
    view = decode_model(encode_mesh(_mesh()))
    assert not view.vertices.flags.writeable
    assert not view.indices.flags.writeable
    with pytest.raises(ValueError):
        view.indices[0] = 1


def test_zero_copy_borrows_aligned_buffer():
    data = encode_mesh(_mesh())
    backing = np.frombuffer(data, dtype=np.uint8).copy()  # numpy allocs are aligned
    view = decode_model(backing)
    assert view.zero_copy
    assert np.shares_memory(view.vertices, backing)
    assert np.shares_memory(view.indices, backing)


def test_misaligned_buffer_takes_copy_path():
    data = encode_mesh(_mesh())
    backing = np.zeros(len(data) + 1, dtype=np.uint8)
    backing[1:] = np.frombuffer(data, dtype=np.uint8)
    unaligned = memoryview(backing)[1:]
    view = decode_model(unaligned)
    assert not view.zero_copy
    assert not np.shares_memory(view.vertices, backing)
    assert view.vertices.tobytes() == _mesh().vertices.tobytes()
    assert view.vertices.ctypes.data % 4 == 0


def test_version_mismatch_names_both_versions():
    data = bytearray(encode_mesh(_mesh()))
    struct.pack_into("<I", data, 0, FORMAT_VERSION + 1)
    with pytest.raises(VersionMismatchError) as ei:
        decode_model(bytes(data))
    assert ei.value.found == FORMAT_VERSION + 1
    assert ei.value.expected == FORMAT_VERSION
    assert str(FORMAT_VERSION + 1) in ei.value.message


def test_every_trailing_truncation_fails_with_size_mismatch():
    data = encode_mesh(_mesh())
    for cut in range(1, len(data) + 1):
        with pytest.raises(SizeMismatchError):
            decode_model(data[: len(data) - cut])


def test_header_truncation_is_truncated_buffer_error():
    with pytest.raises(TruncatedBufferError) as ei:
        decode_model(b"\x01\x00\x00")
    assert ei.value.code == E_TRUNCATED
    with pytest.raises(TruncatedBufferError):
        read_header(b"")


def test_trailing_surplus_rejected():
    data = encode_mesh(_mesh()) + b"\x00"
    with pytest.raises(SizeMismatchError) as ei:
        decode_model(data)
    assert ei.value.code == E_SIZE_MISMATCH
    assert "surplus" in ei.value.message
    assert not isinstance(ei.value, TruncatedBufferError)


def test_inflated_vertex_count_is_shortfall():
    data = bytearray(encode_mesh(_mesh()))
    struct.pack_into("<I", data, 4, 1000)
    with pytest.raises(SizeMismatchError):
        decode_model(bytes(data))


def test_index_out_of_range_rejected():
    data = bytearray(encode_mesh(_mesh()))
    last = len(data) - 4
    struct.pack_into("<I", data, last, 99)
    with pytest.raises(IndexRangeError):
        decode_model(bytes(data))


def test_index_count_not_multiple_of_three():
    body = struct.pack("<II", FORMAT_VERSION, 1) + b"\x00" * 32
    data = body + struct.pack("<II", 1, 0)
    with pytest.raises(DecodeError) as ei:
        decode_model(data)
    assert ei.value.code == E_INDEX_COUNT


def test_empty_model_decodes():
    view = decode_model(struct.pack("<III", FORMAT_VERSION, 0, 0))
    assert view.vertex_count == 0
    assert view.index_count == 0
    assert view.bounds() is None


def test_non_buffer_input_rejected():
    with pytest.raises(DecodeError):
        decode_model("not bytes")
