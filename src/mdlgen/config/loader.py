"""Per-source configuration loading (TOML/YAML/JSON) for MdlGen.

A source ``scene.dae`` may have one sibling config file sharing its stem,
``scene.toml`` being the canonical spelling::

    [[merges]]
    name = "ship"
    geometries = ["hull", "deck", "mast"]

Schema problems are collected as :class:`ConfigIssue` records first and
raised together, so one run reports every bad entry of a file.
"""

from __future__ import annotations
from pathlib import Path
from typing import Any, List, Optional
import json
import tomllib

import yaml

from ..errors import (
    CompileIOError,
    ConfigError,
    E_CONFIG_AMBIGUOUS,
    E_CONFIG_PARSE,
    E_CONFIG_SCHEMA,
    E_IO,
)
from .models import MergeSpec, ModelConfig

__all__ = [
    "CONFIG_SUFFIXES",
    "ConfigIssue",
    "find_config",
    "load_config",
    "config_for_source",
    "parse_config_dict",
    "validate_config_dict",
]

CONFIG_SUFFIXES = (".toml", ".yaml", ".yml", ".json")


class ConfigIssue:
    def __init__(self, message: str, path: str = "") -> None:
        self.message = message
        self.path = path

    def to_dict(self) -> dict:
        return {"message": self.message, "path": self.path}

    def __str__(self) -> str:
        return f"{self.path}: {self.message}" if self.path else self.message

    def __repr__(self) -> str:
        return f"ConfigIssue(path={self.path}, message={self.message})"


def find_config(source: Path) -> Optional[Path]:
    """Return the sibling config for ``source`` or None.

    More than one candidate (e.g. both ``.toml`` and ``.yaml``) is ambiguous
    and raises :class:`ConfigError`.
    """
    found = [
        source.with_suffix(s)
        for s in CONFIG_SUFFIXES
        if source.with_suffix(s).is_file()
    ]
    if len(found) > 1:
        raise ConfigError(
            E_CONFIG_AMBIGUOUS,
            "Multiple config files for one source: "
            + ", ".join(p.name for p in found),
            {"source": source.name},
        )
    return found[0] if found else None


def _read_document(path: Path) -> Any:
    suffix = path.suffix.lower()
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise CompileIOError(
            E_IO, f"Cannot read {path.name}: {e}", {"config": path.name}
        ) from e
    except UnicodeDecodeError as e:
        raise ConfigError(
            E_CONFIG_PARSE,
            f"{path.name} is not valid UTF-8: {e}",
            {"config": path.name},
        ) from e
    try:
        if suffix == ".toml":
            return tomllib.loads(text)
        if suffix in {".yaml", ".yml"}:
            # An empty YAML file is an empty config
            return yaml.safe_load(text) or {}
        return json.loads(text)
    except (tomllib.TOMLDecodeError, yaml.YAMLError, json.JSONDecodeError) as e:
        raise ConfigError(
            E_CONFIG_PARSE,
            f"Cannot parse {path.name}: {e}",
            {"config": path.name},
        ) from e


def validate_config_dict(data: Any) -> List[ConfigIssue]:
    issues: List[ConfigIssue] = []
    if not isinstance(data, dict):
        issues.append(ConfigIssue("Root of config must be a table/object"))
        return issues
    unknown = sorted(set(data) - {"merges"})
    for key in unknown:
        issues.append(ConfigIssue("Unknown key", key))
    merges = data.get("merges", [])
    if not isinstance(merges, list):
        issues.append(ConfigIssue("'merges' must be a list", "merges"))
        return issues
    seen: set[str] = set()
    for i, m in enumerate(merges):
        path = f"merges[{i}]"
        if not isinstance(m, dict):
            issues.append(ConfigIssue("Entry must be a table/object", path))
            continue
        name = m.get("name")
        if not isinstance(name, str) or not name:
            issues.append(ConfigIssue("Missing or invalid name", path + ".name"))
        elif name in seen:
            issues.append(
                ConfigIssue(f"Duplicate merge name '{name}'", path + ".name")
            )
        else:
            seen.add(name)
        geoms = m.get("geometries")
        if not isinstance(geoms, list) or not geoms:
            issues.append(
                ConfigIssue(
                    "'geometries' must be a non-empty list",
                    path + ".geometries",
                )
            )
            continue
        for j, g in enumerate(geoms):
            if not isinstance(g, str) or not g:
                issues.append(
                    ConfigIssue(
                        "Geometry name must be a non-empty string",
                        f"{path}.geometries[{j}]",
                    )
                )
        dups = {g for g in geoms if isinstance(g, str) and geoms.count(g) > 1}
        for g in sorted(dups):
            issues.append(
                ConfigIssue(
                    f"Geometry '{g}' listed more than once",
                    path + ".geometries",
                )
            )
    return issues


def parse_config_dict(data: Any, path: Optional[Path] = None) -> ModelConfig:
    issues = validate_config_dict(data)
    if issues:
        where = path.name if path is not None else "<config>"
        raise ConfigError(
            E_CONFIG_SCHEMA,
            f"Invalid config {where}: " + "; ".join(str(i) for i in issues),
            {"config": where, "issues": [i.to_dict() for i in issues]},
        )
    merges = [
        MergeSpec(name=m["name"], geometries=tuple(m["geometries"]))
        for m in data.get("merges", [])
    ]
    return ModelConfig(merges=merges, path=path)


def load_config(path: str | Path) -> ModelConfig:
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(p)
    return parse_config_dict(_read_document(p), p)


def config_for_source(source: Path) -> ModelConfig:
    """Load the sibling config of ``source``; defaults when there is none."""
    cfg_path = find_config(source)
    if cfg_path is None:
        return ModelConfig()
    return load_config(cfg_path)
