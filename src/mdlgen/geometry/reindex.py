"""Unify per-attribute index streams into a single index space.

COLLADA lets every attribute of a triangle corner point at its own source
element, e.g. corner ``(position=4, normal=0, texcoord=7)``. A drawable mesh
needs one index per corner, so each distinct attribute tuple becomes one
vertex and corners that repeat a tuple share it.
"""

from __future__ import annotations

from typing import Dict, Hashable, List, Sequence, Tuple

__all__ = ["unify_corner_indices"]


def unify_corner_indices(
    corners: Sequence[Hashable],
) -> Tuple[List[Hashable], List[int]]:
    """Map corner keys to ``(unique_keys, indices)``.

    ``unique_keys`` lists each distinct key in first-seen order and
    ``indices[i]`` is the position of ``corners[i]`` in it.

    >>> unify_corner_indices([(0, 0), (1, 0), (0, 0)])
    ([(0, 0), (1, 0)], [0, 1, 0])
    """
    slots: Dict[Hashable, int] = {}
    unique: List[Hashable] = []
    indices: List[int] = []
    for key in corners:
        slot = slots.get(key)
        if slot is None:
            slot = len(unique)
            slots[key] = slot
            unique.append(key)
        indices.append(slot)
    return unique, indices
