import numpy as np

from mdlgen.format.constants import (
    HEADER_SIZE,
    INDEX_DTYPE,
    VERTEX_DTYPE,
    VERTEX_SIZE,
)
from mdlgen.geometry import VertexRecord, vertex_array


def test_vertex_record_is_32_packed_bytes():
    assert VERTEX_SIZE == 32
    assert VERTEX_DTYPE.names == ("position", "normal", "texcoord")
    assert [VERTEX_DTYPE.fields[n][1] for n in VERTEX_DTYPE.names] == [0, 12, 24]
    assert INDEX_DTYPE.itemsize == 4
    assert HEADER_SIZE == 8


def test_default_vertex_normal_points_up():
    v = VertexRecord()
    assert v.position == (0.0, 0.0, 0.0)
    assert v.normal == (0.0, 0.0, 1.0)
    assert v.texcoord == (0.0, 0.0)


def test_vertex_bytes_little_endian_field_order():
    arr = vertex_array(
        [VertexRecord((1.0, 2.0, 3.0), (0.0, 1.0, 0.0), (0.25, 0.75))]
    )
    expected = np.array(
        [1.0, 2.0, 3.0, 0.0, 1.0, 0.0, 0.25, 0.75], dtype="<f4"
    ).tobytes()
    assert arr.tobytes() == expected


def test_vertex_record_row_roundtrip():
    rec = VertexRecord((1.5, -2.0, 0.5), (1.0, 0.0, 0.0), (0.5, 0.5))
    arr = vertex_array([rec])
    assert VertexRecord.from_row(arr[0]) == rec


def test_empty_vertex_array():
    arr = vertex_array([])
    assert arr.dtype == VERTEX_DTYPE
    assert len(arr) == 0
