"""Error definitions for MdlGen.

Every failure raised by the library is an :class:`MdlError` carrying a stable
``code`` plus a free-form ``context`` mapping. The directory compiler collects
these per source file instead of aborting the run, so the context always
names the ``source`` and, where one is involved, the ``geometry``.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, Optional

# Extraction (per geometry)
E_MISSING_STREAM = "E_MISSING_STREAM"
E_INDEX_STREAM = "E_INDEX_STREAM"
E_SOURCE_DATA = "E_SOURCE_DATA"
E_DUP_GEOMETRY = "E_DUP_GEOMETRY"
E_TRANSFORM = "E_TRANSFORM"
# Document / config / merge (per file)
E_XML = "E_XML"
E_NOT_COLLADA = "E_NOT_COLLADA"
E_CONFIG_PARSE = "E_CONFIG_PARSE"
E_CONFIG_SCHEMA = "E_CONFIG_SCHEMA"
E_CONFIG_AMBIGUOUS = "E_CONFIG_AMBIGUOUS"
E_MERGE_REF = "E_MERGE_REF"
E_MERGE_NAME = "E_MERGE_NAME"
# Mesh construction
E_INDEX_COUNT = "E_INDEX_COUNT"
E_INDEX_OUT_OF_RANGE = "E_INDEX_OUT_OF_RANGE"
E_VERTEX_LAYOUT = "E_VERTEX_LAYOUT"
# Decode
E_BUFFER = "E_BUFFER"
E_TRUNCATED = "E_TRUNCATED"
E_VERSION = "E_VERSION"
E_SIZE_MISMATCH = "E_SIZE_MISMATCH"
# Output
E_IO = "E_IO"
E_OUTPUT_NAME = "E_OUTPUT_NAME"
E_INTERNAL = "E_INTERNAL"


@dataclass
class MdlError(Exception):
    code: str
    message: str
    context: Optional[Dict[str, Any]] = None

    def __str__(self) -> str:
        return f"{self.code}: {self.message}" + (
            f" | ctx={self.context}" if self.context else ""
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "context": self.context or {},
        }

    def with_context(self, **extra: Any) -> "MdlError":
        """Merge ``extra`` into the context (existing keys win) and return self."""
        merged = dict(extra)
        merged.update(self.context or {})
        self.context = merged
        return self

    @property
    def source(self) -> Optional[str]:
        return (self.context or {}).get("source")

    @property
    def geometry(self) -> Optional[str]:
        return (self.context or {}).get("geometry")


class MeshError(MdlError):
    pass


class ExtractionError(MdlError):
    pass


class DocumentError(MdlError):
    pass


class ConfigError(MdlError):
    pass


class MergeConfigError(ConfigError):
    pass


class CompileIOError(MdlError):
    pass


class DecodeError(MdlError):
    pass


class VersionMismatchError(DecodeError):
    @property
    def expected(self) -> int:
        return int((self.context or {})["expected"])

    @property
    def found(self) -> int:
        return int((self.context or {})["found"])


class SizeMismatchError(DecodeError):
    pass


class TruncatedBufferError(SizeMismatchError):
    pass


class IndexRangeError(DecodeError):
    pass


def extraction_error(
    code: str, message: str, geometry: Optional[str] = None, **context: Any
) -> ExtractionError:
    if geometry is not None:
        context["geometry"] = geometry
    return ExtractionError(code=code, message=message, context=context or None)


def version_mismatch(found: int, expected: int) -> VersionMismatchError:
    return VersionMismatchError(
        code=E_VERSION,
        message=(
            f"Artifact format version {found} does not match expected "
            f"version {expected}"
        ),
        context={"found": found, "expected": expected},
    )


def size_mismatch(
    message: str, *, expected: int, actual: int, truncated: bool = False
) -> SizeMismatchError:
    cls = TruncatedBufferError if truncated else SizeMismatchError
    return cls(
        code=E_TRUNCATED if truncated else E_SIZE_MISMATCH,
        message=message,
        context={"expected_size": expected, "actual_size": actual},
    )


def internal_error(
    message: str, context: Optional[Dict[str, Any]] = None
) -> MdlError:
    return MdlError(code=E_INTERNAL, message=message, context=context)


__all__ = [
    "MdlError",
    "MeshError",
    "ExtractionError",
    "DocumentError",
    "ConfigError",
    "MergeConfigError",
    "CompileIOError",
    "DecodeError",
    "VersionMismatchError",
    "SizeMismatchError",
    "TruncatedBufferError",
    "IndexRangeError",
    "extraction_error",
    "version_mismatch",
    "size_mismatch",
    "internal_error",
    "E_MISSING_STREAM",
    "E_INDEX_STREAM",
    "E_SOURCE_DATA",
    "E_DUP_GEOMETRY",
    "E_TRANSFORM",
    "E_XML",
    "E_NOT_COLLADA",
    "E_CONFIG_PARSE",
    "E_CONFIG_SCHEMA",
    "E_CONFIG_AMBIGUOUS",
    "E_MERGE_REF",
    "E_MERGE_NAME",
    "E_INDEX_COUNT",
    "E_INDEX_OUT_OF_RANGE",
    "E_VERTEX_LAYOUT",
    "E_BUFFER",
    "E_TRUNCATED",
    "E_VERSION",
    "E_SIZE_MISMATCH",
    "E_IO",
    "E_OUTPUT_NAME",
    "E_INTERNAL",
]
