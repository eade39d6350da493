"""Command line interface for MdlGen."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from .api import (
    CompileOptions,
    compile_directory,
    inspect_model,
    validate_model,
)
from .errors import MdlError
from .logging import configure_logging, step
from .reporting import (
    REPORTER_CHOICES,
    get_reporter,
    make_reporter,
    set_reporter,
    set_verbosity,
)


def _compile_cmd(args: argparse.Namespace) -> int:
    opts = CompileOptions(
        input_dir=args.src,
        output_dir=args.out,
        workers=args.workers,
        manifest_path=args.emit_manifest,
        recursive=args.recursive,
    )
    result = compile_directory(opts)
    return 0 if result.ok else 1


def _inspect_cmd(args: argparse.Namespace) -> int:
    step(f"inspecting {args.file.name}")
    info = inspect_model(args.file)
    rep = get_reporter()
    rep.flush()
    if args.json:
        print(json.dumps(info, indent=2, sort_keys=True))
    else:
        bounds = info["bounds"]
        rep.status(
            "Model summary: "
            f"file={info['file']} version={info['version']} "
            f"vertices={info['vertex_count']} indices={info['index_count']} "
            f"bytes={info['size']} zero_copy={info['zero_copy']}"
        )
        if bounds is not None:
            rep.status(f"Bounds: min={bounds['min']} max={bounds['max']}")
    return 0


def _validate_cmd(args: argparse.Namespace) -> int:
    rep = get_reporter()
    failed = 0
    for path in args.files:
        issues = validate_model(path)
        if issues:
            failed += 1
            for issue in issues:
                rep.error(f"{path.name}: {issue}")
        else:
            rep.status(f"{path.name}: ok")
    rep.status(f"Validate summary: files={len(args.files)} failed={failed}")
    return 1 if failed else 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="mdlgen", description="COLLADA to .mdl model compiler"
    )
    p.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (repeatable)",
    )
    p.add_argument(
        "-r",
        "--reporter",
        choices=REPORTER_CHOICES,
        default="plain",
        help="Select reporter backend: plain (default), rich, json (JSONL events), silent",
    )
    sub = p.add_subparsers(dest="cmd", required=True)

    c = sub.add_parser("compile", help="Compile a directory of .dae files")
    c.add_argument("src", type=Path)
    c.add_argument("out", type=Path)
    c.add_argument(
        "--workers",
        type=int,
        help="Number of source files compiled in parallel",
    )
    c.add_argument(
        "--emit-manifest",
        dest="emit_manifest",
        type=Path,
        help="Optional path to write manifest JSON (opt-in)",
    )
    c.add_argument(
        "--recursive",
        action="store_true",
        help="Also compile sources in subdirectories",
    )
    c.set_defaults(func=_compile_cmd)

    i = sub.add_parser("inspect", help="Inspect a .mdl file")
    i.add_argument("file", type=Path)
    i.add_argument("--json", action="store_true", help="Emit JSON summary")
    i.set_defaults(func=_inspect_cmd)

    v = sub.add_parser("validate", help="Validate .mdl files")
    v.add_argument("files", type=Path, nargs="+")
    v.set_defaults(func=_validate_cmd)

    return p


def main(argv: list[str] | None = None) -> int:
    argv = argv if argv is not None else sys.argv[1:]
    parser = build_parser()
    args = parser.parse_args(argv)
    if getattr(args, "workers", None) is not None and args.workers < 1:
        parser.error("--workers must be at least 1")
    set_reporter(make_reporter(args.reporter))
    # Apply verbosity globally for reporters (verbose gating)
    set_verbosity(args.verbose)
    configure_logging(args.verbose)
    try:
        return args.func(args)
    except MdlError as e:
        get_reporter().error(str(e))
        return 1
    finally:
        get_reporter().flush()


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
