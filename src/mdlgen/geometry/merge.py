"""Apply merge specifications to the geometries extracted from one source."""

from __future__ import annotations

from typing import Dict, Mapping, Sequence

from ..config.models import MergeSpec
from ..errors import E_MERGE_NAME, E_MERGE_REF, MergeConfigError
from ..logging import get_logger
from .mesh import MeshBuffer

__all__ = ["resolve_merges"]


def resolve_merges(
    meshes: Mapping[str, MeshBuffer], merges: Sequence[MergeSpec] = ()
) -> Dict[str, MeshBuffer]:
    """Return the geometries to emit for one source file.

    Each spec consumes its inputs: they are not emitted on their own and a
    later spec cannot reference them again. Merged outputs come first, in
    spec order, followed by the untouched geometries in their original
    order. Raises :class:`MergeConfigError` on a reference to a geometry that
    is missing (or already consumed) or when an output name would clash.
    """
    if not merges:
        return dict(meshes)
    logger = get_logger()
    remaining: Dict[str, MeshBuffer] = dict(meshes)
    consumed_by: Dict[str, str] = {}
    merged: Dict[str, MeshBuffer] = {}
    for spec in merges:
        parts = []
        for geom in spec.geometries:
            if geom not in remaining:
                if geom in consumed_by:
                    msg = (
                        f"Merge '{spec.name}' references geometry '{geom}' "
                        f"already consumed by merge '{consumed_by[geom]}'"
                    )
                else:
                    msg = (
                        f"Merge '{spec.name}' references unknown geometry "
                        f"'{geom}'"
                    )
                raise MergeConfigError(
                    E_MERGE_REF,
                    msg,
                    {"merge": spec.name, "geometry": geom},
                )
            parts.append(remaining.pop(geom))
            consumed_by[geom] = spec.name
        if spec.name in merged:
            raise MergeConfigError(
                E_MERGE_NAME,
                f"Merge output '{spec.name}' is produced twice",
                {"merge": spec.name},
            )
        merged[spec.name] = MeshBuffer.merge(spec.name, parts)
        logger.debug(
            "merged %s <- %s (%d vertices)",
            spec.name,
            ",".join(spec.geometries),
            merged[spec.name].vertex_count,
        )
    for name, mesh in remaining.items():
        if name in merged:
            raise MergeConfigError(
                E_MERGE_NAME,
                f"Merge output '{name}' clashes with an unmerged geometry",
                {"merge": name, "geometry": name},
            )
        merged[name] = mesh
    return merged
