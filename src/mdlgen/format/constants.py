"""Binary model (.mdl) format constants.

The artifact layout is defined by bytes, not by a schema negotiated at load
time; encoder and decoder both derive every size from :data:`VERTEX_DTYPE`.
Bump :data:`FORMAT_VERSION` whenever the vertex record layout changes.
"""

from __future__ import annotations

import struct

import numpy as np

FORMAT_VERSION = 1
MODEL_EXTENSION = ".mdl"

# position(3f) normal(3f) texcoord(2f), little-endian, no padding
VERTEX_DTYPE = np.dtype(
    [
        ("position", "<f4", (3,)),
        ("normal", "<f4", (3,)),
        ("texcoord", "<f4", (2,)),
    ]
)
VERTEX_SIZE = VERTEX_DTYPE.itemsize
VERTEX_ALIGNMENT = np.dtype("<f4").alignment
INDEX_DTYPE = np.dtype("<u4")
INDEX_SIZE = INDEX_DTYPE.itemsize

U32 = struct.Struct("<I")
HEADER = struct.Struct("<II")  # format_version, vertex_count
HEADER_SIZE = HEADER.size
INDEX_COUNT_SIZE = U32.size

MAX_VERTEX_COUNT = 0xFFFFFFFF
MAX_INDEX_COUNT = 0xFFFFFFFF

assert VERTEX_SIZE == 32, "vertex record must stay 32 bytes"

__all__ = [
    "FORMAT_VERSION",
    "MODEL_EXTENSION",
    "VERTEX_DTYPE",
    "VERTEX_SIZE",
    "VERTEX_ALIGNMENT",
    "INDEX_DTYPE",
    "INDEX_SIZE",
    "U32",
    "HEADER",
    "HEADER_SIZE",
    "INDEX_COUNT_SIZE",
    "MAX_VERTEX_COUNT",
    "MAX_INDEX_COUNT",
]
