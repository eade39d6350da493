"""Directory compiler: every ``.dae`` in a directory becomes ``.mdl`` artifacts.

Source files are compiled concurrently on a thread pool. Within one file the
stages (read, parse, config, extract, merge, encode, write) run in order.
Failures are collected per file as :class:`MdlError` records tagged with the
source name; a failing file never stops the others.
"""

from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Tuple

from .collada import extract_geometries, parse_document
from .config import config_for_source
from .errors import (
    CompileIOError,
    E_IO,
    E_OUTPUT_NAME,
    MdlError,
    internal_error,
)
from .format import write_model
from .geometry import MeshBuffer, resolve_merges
from .logging import get_logger, section
from .manifest import build_manifest
from .reporting import get_reporter, task
from .utils import artifact_path, safe_read_file

__all__ = [
    "SOURCE_EXTENSION",
    "CompileOptions",
    "ArtifactRecord",
    "SourceReport",
    "CompileResult",
    "ArtifactRegistry",
    "discover_sources",
    "compile_source",
    "compile_directory",
]

SOURCE_EXTENSION = ".dae"


@dataclass(slots=True)
class CompileOptions:
    input_dir: Path
    output_dir: Path
    # None lets ThreadPoolExecutor pick its default
    workers: int | None = None
    # Optional path; when provided a manifest JSON is written after the run
    manifest_path: Path | None = None
    recursive: bool = False


@dataclass(slots=True)
class ArtifactRecord:
    name: str
    source: Path
    path: Path
    vertex_count: int
    index_count: int
    size: int


@dataclass(slots=True)
class SourceReport:
    source: Path
    artifacts: List[ArtifactRecord] = field(default_factory=list)
    errors: List[MdlError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


@dataclass(slots=True)
class CompileResult:
    sources: List[SourceReport] = field(default_factory=list)

    @property
    def artifacts(self) -> List[ArtifactRecord]:
        return [a for s in self.sources for a in s.artifacts]

    @property
    def errors(self) -> List[MdlError]:
        return [e for s in self.sources for e in s.errors]

    @property
    def ok(self) -> bool:
        return all(s.ok for s in self.sources)

    def bytes_written(self) -> int:
        return sum(a.size for a in self.artifacts)


class ArtifactRegistry:
    """Artifact names claimed during one run; the first claimant keeps a name.

    Names are compared case-insensitively so two artifacts never map onto the
    same file on a case-insensitive file system.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._owners: Dict[str, Tuple[Path, str]] = {}

    def claim(self, name: str, source: Path) -> None:
        key = name.casefold()
        with self._lock:
            owner = self._owners.setdefault(key, (source, name))
        if owner != (source, name):
            raise CompileIOError(
                E_OUTPUT_NAME,
                f"Artifact '{name}' collides with '{owner[1]}' "
                f"from {owner[0].name}",
                {"geometry": name, "owner": owner[0].name},
            )


def discover_sources(input_dir: Path, recursive: bool = False) -> List[Path]:
    if not input_dir.is_dir():
        raise CompileIOError(
            E_IO,
            f"Input directory not found: {input_dir}",
            {"path": str(input_dir)},
        )
    candidates = input_dir.rglob("*") if recursive else input_dir.iterdir()
    return sorted(
        p
        for p in candidates
        if p.is_file() and p.suffix.lower() == SOURCE_EXTENSION
    )


def _write_artifact(
    mesh: MeshBuffer,
    source: Path,
    output_dir: Path,
    registry: ArtifactRegistry,
) -> ArtifactRecord:
    path = artifact_path(output_dir, mesh.name)
    registry.claim(mesh.name, source)
    try:
        size = write_model(mesh, path)
    except OSError as e:
        raise CompileIOError(
            E_IO, f"Cannot write {path.name}: {e}", {"path": str(path)}
        ) from e
    return ArtifactRecord(
        name=mesh.name,
        source=source,
        path=path,
        vertex_count=mesh.vertex_count,
        index_count=mesh.index_count,
        size=size,
    )


def _run_stages(
    source: Path,
    output_dir: Path,
    registry: ArtifactRegistry,
    report: SourceReport,
) -> None:
    def fail(err: MdlError) -> None:
        report.errors.append(err.with_context(source=source.name))

    try:
        document = parse_document(safe_read_file(source))
        config = config_for_source(source)
    except MdlError as e:
        fail(e)
        return

    extraction = extract_geometries(document)
    for err in extraction.errors:
        fail(err)
    try:
        meshes = resolve_merges(extraction.meshes, config.merges)
    except MdlError as e:
        # A broken merge config aborts every output of this file
        fail(e)
        return

    for mesh in meshes.values():
        try:
            report.artifacts.append(
                _write_artifact(mesh, source, output_dir, registry)
            )
        except MdlError as e:
            fail(e.with_context(geometry=mesh.name))


def compile_source(
    source: Path,
    output_dir: Path,
    registry: ArtifactRegistry | None = None,
) -> SourceReport:
    """Compile one source file; errors are returned, not raised.

    Anything other than an :class:`MdlError` escaping a stage is recorded as
    ``E_INTERNAL`` for this source so the rest of the batch still runs.
    """
    logger = get_logger()
    registry = registry if registry is not None else ArtifactRegistry()
    report = SourceReport(source=source)
    try:
        _run_stages(source, output_dir, registry, report)
    except Exception as e:
        logger.debug("%s: unexpected failure", source.name, exc_info=True)
        report.errors.append(
            internal_error(
                f"Unexpected {type(e).__name__}: {e}",
                {"source": source.name},
            )
        )
    logger.debug(
        "%s: %d artifact(s), %d error(s)",
        source.name,
        len(report.artifacts),
        len(report.errors),
    )
    return report

    extraction = extract_geometries(document)
    for err in extraction.errors:
        fail(err)
    try:
        meshes = resolve_merges(extraction.meshes, config.merges)
    except MdlError as e:
        # A broken merge config aborts every output of this file
        fail(e)
        return report

    for mesh in meshes.values():
        try:
            report.artifacts.append(
                _write_artifact(mesh, source, output_dir, registry)
            )
        except MdlError as e:
            fail(e.with_context(geometry=mesh.name))
    logger.debug(
        "%s: %d artifact(s), %d error(s)",
        source.name,
        len(report.artifacts),
        len(report.errors),
    )
    return report


def compile_directory(options: CompileOptions) -> CompileResult:
    """Compile every source under ``options.input_dir`` into ``output_dir``."""
    rep = get_reporter()
    sources = discover_sources(options.input_dir, options.recursive)
    try:
        options.output_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise CompileIOError(
            E_IO,
            f"Cannot create output directory {options.output_dir}: {e}",
            {"path": str(options.output_dir)},
        ) from e
    rep.status(
        f"Source summary: sources={len(sources)} "
        f"input={options.input_dir} output={options.output_dir}"
    )

    registry = ArtifactRegistry()
    lock = threading.Lock()
    reports: Dict[Path, SourceReport] = {}

    def run(source: Path) -> None:
        report = compile_source(source, options.output_dir, registry)
        with lock:
            reports[source] = report
        rep.advance("compile.sources", current_item=source.name)

    with task(
        "compile.sources", "Compile sources", total=len(sources)
    ) as final:
        with ThreadPoolExecutor(max_workers=options.workers) as pool:
            list(pool.map(run, sources))
        result = CompileResult(sources=[reports[s] for s in sources])
        final.update(
            sources=len(sources),
            artifacts=len(result.artifacts),
            errors=len(result.errors),
            bytes=result.bytes_written(),
        )

    if result.errors:
        with section("Errors") as logger:
            for err in result.errors:
                where = err.source or "?"
                if err.geometry:
                    where += f":{err.geometry}"
                logger.error("%s: %s: %s", where, err.code, err.message)
    rep.status(
        "Compile summary: "
        f"sources={len(sources)} artifacts={len(result.artifacts)} "
        f"errors={len(result.errors)} bytes={result.bytes_written()}"
    )

    if options.manifest_path is not None:
        with task("manifest.emit", "Emit manifest"):
            build_manifest(result, options.manifest_path)
    return result
