"""COLLADA (.dae) reading and geometry extraction."""

from .document import ColladaDocument, parse_document, read_mesh
from .extractor import ExtractionResult, extract_geometries, extract_geometry

__all__ = [
    "ColladaDocument",
    "parse_document",
    "read_mesh",
    "ExtractionResult",
    "extract_geometries",
    "extract_geometry",
]
