"""Command-line entry point."""

from __future__ import annotations

import json
import logging
import os
import sys

from .backend.extract import extract_classes
from .compiler import CompileOptions, compile_classes
from .diagnostics import CompileError, DiagnosticList
from .frontend.hierarchy import validate_hierarchy
from .frontend.parse import parse
from .frontend.registry import build_registry

PHASES: list[str] = [
    "registry",
    "hierarchy",
]

USAGE: str = """\
flatclass [OPTIONS] [INPUT] [-o OUTPUT]

Options:
  --keep-intermediate   Emit classes that are extended by other classes
  --export-only         Emit only classes exported in the source
  --annotate            Mark inherited and synthesized members with their origin
  --no-validate         Skip inheritance validation
  --no-export-all       Do not add 'export' to classes that lacked it
  --strict              Exit with status 1 when any diagnostic is reported
  --stop-at PHASE       Stop after phase and print it as JSON: registry, hierarchy
  --split DIR           Write one <Class>.js file per emitted class into DIR
  -o, --output FILE     Write output to FILE instead of stdout
  -v, --verbose         Log debug information to stderr
  -h, --help            Show this help message
"""


class Args:
    """Parsed command line."""

    def __init__(self) -> None:
        self.options: CompileOptions = CompileOptions()
        self.strict: bool = False
        self.stop_at: str | None = None
        self.split_dir: str | None = None
        self.input_file: str | None = None
        self.output_file: str | None = None
        self.verbose: bool = False


def read_source(input_file: str | None) -> tuple[str, int]:
    """Read source from file or stdin. Returns (source, exit_code) where exit_code 0 means OK."""
    if input_file is not None:
        try:
            with open(input_file, "rb") as f:
                raw = f.read()
        except OSError:
            print("error: cannot open '" + input_file + "'", file=sys.stderr)
            return ("", 1)
    else:
        raw = sys.stdin.buffer.read()
    try:
        source = raw.decode("utf-8")
    except ValueError:
        print("error: invalid utf-8 in input", file=sys.stderr)
        return ("", 1)
    return (source, 0)


def write_output(output: str, output_file: str | None) -> int:
    """Write output to file or stdout. Returns 0 on success, 1 on error."""
    if output_file is not None:
        try:
            with open(output_file, "w") as f:
                f.write(output)
        except OSError:
            print("error: cannot write '" + output_file + "'", file=sys.stderr)
            return 1
        return 0
    print(output, end="" if output.endswith("\n") else "\n")
    return 0


def write_split(code: str, split_dir: str) -> int:
    """Write one file per class. Nothing is written if any target exists."""
    try:
        os.makedirs(split_dir, exist_ok=True)
    except OSError:
        print("error: cannot create '" + split_dir + "'", file=sys.stderr)
        return 1
    fragments = extract_classes(code)
    paths: list[str] = []
    for extracted in fragments:
        path = os.path.join(split_dir, extracted.name + ".js")
        if os.path.exists(path):
            print("error: file already exists, not overwriting: '" + path + "'", file=sys.stderr)
            return 1
        paths.append(path)
    i = 0
    while i < len(fragments):
        try:
            with open(paths[i], "x") as f:
                f.write(fragments[i].code + "\n")
        except FileExistsError:
            print("error: file already exists, not overwriting: '" + paths[i] + "'", file=sys.stderr)
            return 1
        except OSError:
            print("error: cannot write '" + paths[i] + "'", file=sys.stderr)
            return 1
        i += 1
    return 0


def _print_errors(errors: list[object]) -> None:
    """Print a list of error objects to stderr."""
    for err in errors:
        print(repr(err), file=sys.stderr)


def _dump_phase(source: str, args: Args) -> tuple[int, str]:
    """Run the frontend only and return its JSON view."""
    unit = parse(source)
    registry = build_registry(unit)
    if args.stop_at == "registry":
        return (0, json.dumps(registry.to_dict(), indent=2))
    diagnostics = DiagnosticList()
    validate_hierarchy(registry, diagnostics)
    view = {
        "graph": registry.graph.to_dict(),
        "diagnostics": [d.to_dict() for d in diagnostics.items()],
    }
    return (0, json.dumps(view, indent=2))


def run_pipeline(source: str, args: Args) -> tuple[int, str]:
    """Run the flattening pipeline. Returns (exit_code, output)."""
    try:
        if args.stop_at is not None:
            return _dump_phase(source, args)
        result = compile_classes(source, args.options)
    except CompileError as e:
        print(str(e), file=sys.stderr)
        return (1, "")
    _print_errors(result.diagnostics)
    if args.strict and not result.ok():
        return (1, "")
    return (0, result.code)


def _usage_error(message: str) -> None:
    print("error: " + message, file=sys.stderr)
    sys.exit(2)


def parse_args(argv: list[str]) -> Args:
    """Parse command-line arguments."""
    args = Args()
    i = 0
    while i < len(argv):
        arg = argv[i]
        if arg == "--help" or arg == "-h":
            print(USAGE, end="")
            sys.exit(0)
        elif arg == "--keep-intermediate":
            args.options.exclude_intermediate = False
            i += 1
        elif arg == "--export-only":
            args.options.export_only = True
            i += 1
        elif arg == "--annotate":
            args.options.preserve_comments = True
            i += 1
        elif arg == "--no-validate":
            args.options.validate_inheritance = False
            i += 1
        elif arg == "--no-export-all":
            args.options.export_all = False
            i += 1
        elif arg == "--strict":
            args.strict = True
            i += 1
        elif arg == "-v" or arg == "--verbose":
            args.verbose = True
            i += 1
        elif arg in ("--stop-at", "--split", "-o", "--output"):
            if i + 1 >= len(argv):
                _usage_error(arg + " requires an argument")
            value = argv[i + 1]
            if arg == "--stop-at":
                args.stop_at = value
            elif arg == "--split":
                args.split_dir = value
            else:
                args.output_file = value
            i += 2
        elif arg.startswith("-") and arg != "-":
            _usage_error("unknown flag '" + arg + "'")
        else:
            if args.input_file is not None:
                _usage_error("unexpected argument '" + arg + "'")
            if arg != "-":
                args.input_file = arg
            i += 1
    if args.stop_at is not None and args.stop_at not in PHASES:
        _usage_error("unknown phase '" + args.stop_at + "'")
    if args.split_dir is not None and args.output_file is not None:
        _usage_error("--split and --output cannot be combined")
    return args


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    if argv is None:
        argv = sys.argv[1:]
    args = parse_args(argv)
    level = logging.WARNING
    if args.verbose:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")
    source, err = read_source(args.input_file)
    if err != 0:
        return err
    if len(source.strip()) == 0:
        print("error: no input provided", file=sys.stderr)
        return 2
    exit_code, output = run_pipeline(source, args)
    if exit_code != 0:
        return exit_code
    if args.split_dir is not None:
        return write_split(output, args.split_dir)
    return write_output(output, args.output_file)


if __name__ == "__main__":
    sys.exit(main())
