from .mesh import MeshBuffer, VertexRecord, vertex_array
from .merge import resolve_merges
from .reindex import unify_corner_indices

__all__ = [
    "MeshBuffer",
    "VertexRecord",
    "vertex_array",
    "resolve_merges",
    "unify_corner_indices",
]
