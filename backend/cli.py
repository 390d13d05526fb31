"""
cli.py — CrudForge command line.

  crudforge generate [INPUT] [-o OUT] [--format auto|json|cs]
  crudforge watch INPUT -o OUT
  crudforge serve [--host HOST] [--port PORT]

INPUT is a JSON schema ({"name": "User", "fields": ["Id", "Name"]}),
a .cs model file, a project directory of .cs files, or '-' / nothing
for stdin. Generated code goes to stdout unless -o is given; status
messages go to stderr.
"""

import argparse
import os
import sys
import time

from crud_gen import generate_all
from cs_parser import parse_cs_file, parse_source, resolve_path
from schema import InvalidSchema, SourceResolutionFailure, load_schemas

EXIT_OK = 0
EXIT_IO = 1
EXIT_INVALID_SCHEMA = 2
EXIT_SOURCE_FAILURE = 3


def _log(msg: str):
    print(f"[CrudForge] {msg}", file=sys.stderr)


def _detect_format(path: str, fmt: str) -> str:
    if fmt != "auto":
        return fmt
    if path and path.lower().endswith(".cs"):
        return "cs"
    return "json"


def _read_text(path: str) -> str:
    """Read INPUT or stdin, reporting undecodable bytes as an I/O error."""
    from_stdin = not path or path == "-"
    try:
        if from_stdin:
            return sys.stdin.read()
        with open(path, "r", encoding="utf-8-sig") as f:
            return f.read()
    except UnicodeDecodeError as exc:
        label = "<stdin>" if from_stdin else path
        raise OSError(f"{label} is not valid UTF-8: {exc}") from exc


def load_types(path: str, fmt: str = "auto"):
    """
    Read INPUT and return (types, failures_by_file). Only a project
    directory can yield failures; any other input raises instead.
    """
    if path and path != "-" and os.path.isdir(path):
        return resolve_path(path)

    fmt = _detect_format(path, fmt)
    from_stdin = not path or path == "-"

    if fmt == "cs" and not from_stdin:
        return parse_cs_file(path), {}

    text = _read_text(path)
    if fmt == "cs":
        return parse_source(text, "<stdin>"), {}
    return load_schemas(text), {}


def _report_failure(exc: SourceResolutionFailure):
    _log(f"ERROR, {exc.message}")
    for d in exc.diagnostics:
        print(d.format(exc.file_path), file=sys.stderr)


def _warn_missing_id(types):
    for t in types:
        if not t.has_id:
            _log(f"warning: {t.name} has no Id property; Update returns item.Id")


def _write_output(code: str, output: str):
    if output:
        with open(output, "w", encoding="utf-8") as f:
            f.write(code + "\n")
        _log(f"wrote {output}")
    else:
        sys.stdout.write(code + "\n")


# ── Commands ──────────────────────────────────────────────────────────────

def cmd_generate(args) -> int:
    types, failures = load_types(args.input, args.format)
    for exc in failures.values():
        _report_failure(exc)
    if types:
        _warn_missing_id(types)
        _write_output(generate_all(types), args.output)
    return EXIT_SOURCE_FAILURE if failures else EXIT_OK


def cmd_watch(args) -> int:
    from file_watcher import ModelFileWatcher, regenerate

    source = os.path.abspath(args.input)
    if not os.path.exists(source):
        _log(f"no such file or directory: {args.input}")
        return EXIT_IO
    is_project = os.path.isdir(source)
    output = os.path.abspath(args.output)

    regenerate(source, output)

    def on_change(file_path, event_type):
        if event_type == "deleted" and not is_project:
            _log(f"{os.path.basename(file_path)} deleted, keeping {output}")
            return
        regenerate(source, output)

    watcher = ModelFileWatcher(on_change)
    watcher.start(source)
    _log(f"watching {source} (Ctrl+C to stop)")
    try:
        while watcher.is_running:
            time.sleep(0.5)
    except KeyboardInterrupt:
        _log("stopping watcher")
    finally:
        watcher.stop()
    return EXIT_OK


def cmd_serve(args) -> int:
    from app import run

    run(host=args.host, port=args.port)
    return EXIT_OK


# ── Entry point ───────────────────────────────────────────────────────────

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="crudforge",
        description="Generate data-access CRUD methods from a type schema.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    gen = sub.add_parser("generate", help="Generate CRUD methods once")
    gen.add_argument("input", nargs="?", default="-",
                     help="JSON schema, .cs model file or project directory ('-' for stdin)")
    gen.add_argument("-o", "--output", help="Write to this file instead of stdout")
    gen.add_argument("--format", choices=("auto", "json", "cs"), default="auto",
                     help="Input format (default: by file extension, JSON for stdin)")
    gen.set_defaults(func=cmd_generate)

    watch = sub.add_parser("watch", help="Regenerate OUTPUT whenever a .cs model changes")
    watch.add_argument("input", help=".cs model file or project directory")
    watch.add_argument("-o", "--output", required=True, help="Generated code file")
    watch.set_defaults(func=cmd_watch)

    serve = sub.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", help="Bind address (default: 127.0.0.1)")
    serve.add_argument("--port", type=int,
                       help="Port (default: $CRUDFORGE_PORT, else 7847)")
    serve.set_defaults(func=cmd_serve)

    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    try:
        return args.func(args)
    except InvalidSchema as exc:
        _log(f"invalid schema: {exc}")
        return EXIT_INVALID_SCHEMA
    except SourceResolutionFailure as exc:
        _report_failure(exc)
        return EXIT_SOURCE_FAILURE
    except OSError as exc:
        _log(str(exc))
        return EXIT_IO


if __name__ == "__main__":
    sys.exit(main())
