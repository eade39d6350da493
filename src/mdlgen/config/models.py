"""Dataclass models for per-source model configuration."""

from __future__ import annotations
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional


@dataclass(frozen=True, slots=True)
class MergeSpec:
    """Concatenate ``geometries`` (in order) into one geometry ``name``."""

    name: str
    geometries: tuple[str, ...]


@dataclass(slots=True)
class ModelConfig:
    merges: List[MergeSpec] = field(default_factory=list)
    # Config file the values were read from; None when defaulted.
    path: Optional[Path] = None

    @property
    def has_merges(self) -> bool:
        return bool(self.merges)


__all__ = ["MergeSpec", "ModelConfig"]
