"""The .mdl binary format: constants, encoder and validating decoder."""

from .constants import FORMAT_VERSION, MODEL_EXTENSION, VERTEX_DTYPE, VERTEX_SIZE
from .encoder import encode_mesh, encoded_size, write_model
from .decoder import ModelView, decode_model, read_header

__all__ = [
    "FORMAT_VERSION",
    "MODEL_EXTENSION",
    "VERTEX_DTYPE",
    "VERTEX_SIZE",
    "encode_mesh",
    "encoded_size",
    "write_model",
    "ModelView",
    "decode_model",
    "read_header",
]
