"""
compile_from_json.py — CLI for the nodescript compiler
======================================================
Compiles a graph snapshot JSON file into a script in the target language.

Usage
-----
    nodescript-compile <graph.json> [options]
    python -m nodescript.compile_from_json <graph.json> [options]

Options
-------
    --language  <tag>   Target language (default: NODESCRIPT_LANGUAGE or python)
    --debug-info        Annotate every node block with its id and title
    --strict            Fail on connections that reference missing nodes
    --out       <file>  Output file (default: <graph name>.<ext> beside the input)
    --print             Print the generated source to stdout instead of writing a file
    --timings           Print per-stage timings

Examples
--------
    nodescript-compile graphs/hello.json --print
    nodescript-compile graphs/hello.json --language lua --out build/hello.lua
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Optional

from nodescript.compiler import CompileError, compile_graph
from nodescript.compiler.deserialiser import load
from nodescript.compiler.schema import SchemaError
from nodescript.config import configure_logging, load_settings

EXTENSIONS = {"python": ".py", "lua": ".lua"}


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="compile_from_json",
        description="Compile a nodescript graph snapshot to source code.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    p.add_argument(
        "graph_json",
        metavar="graph.json",
        help="Path to the graph JSON file to compile.",
    )
    p.add_argument(
        "--language",
        default=None,
        help="Target language tag (default: NODESCRIPT_LANGUAGE or 'python').",
    )
    p.add_argument(
        "--debug-info",
        action="store_true",
        default=None,
        help="Prefix every node block with a comment naming the node.",
    )
    p.add_argument(
        "--strict",
        action="store_true",
        default=None,
        help="Treat connections to missing nodes as errors.",
    )
    p.add_argument(
        "--out",
        metavar="FILE",
        default=None,
        help="Output file (default: <graph name> with the language extension, beside the input).",
    )
    p.add_argument(
        "--print",
        dest="print_only",
        action="store_true",
        help="Print generated source to stdout instead of writing a file.",
    )
    p.add_argument(
        "--timings",
        action="store_true",
        help="Print the elapsed time of every compile stage.",
    )
    return p


def _output_filename(graph_name: str, language: str) -> str:
    """Turn 'hello-world' → 'hello_world.py'."""
    safe = graph_name.lower().replace("-", "_").replace(" ", "_")
    return f"{safe}{EXTENSIONS.get(language, '.txt')}"


def main(argv: Optional[list] = None) -> int:
    settings = load_settings()
    configure_logging(settings)

    parser = _build_parser()
    args = parser.parse_args(argv)

    language = args.language or settings.language
    debug_info = settings.debug_info if args.debug_info is None else args.debug_info
    strict = settings.strict if args.strict is None else args.strict

    json_path = Path(args.graph_json)
    if not json_path.exists():
        print(f"[error] File not found: {json_path}", file=sys.stderr)
        return 1

    # ── Load + validate ──────────────────────────────────────────────────────
    try:
        snapshot = load(json_path)
    except json.JSONDecodeError as exc:
        print(f"[error] Invalid JSON: {exc}", file=sys.stderr)
        return 1
    except SchemaError as exc:
        print(f"[error] Schema validation failed: {exc}", file=sys.stderr)
        return 1

    print(f"[compile_from_json] graph    : {snapshot.name}", file=sys.stderr)
    print(f"[compile_from_json] language : {language}", file=sys.stderr)
    print(f"[compile_from_json] nodes    : {len(snapshot.nodes)}", file=sys.stderr)
    print(f"[compile_from_json] links    : {len(snapshot.connections)}", file=sys.stderr)

    # ── Compile ──────────────────────────────────────────────────────────────
    try:
        compilation = compile_graph(
            snapshot.nodes,
            snapshot.connections,
            debug_info=debug_info,
            language=language,
            strict=strict,
            max_path_length=settings.max_path_length,
        )
    except CompileError as exc:
        print(f"[error] Compilation failed: {exc}", file=sys.stderr)
        return 1

    if args.timings:
        for stage, seconds in compilation.elapsed_times:
            print(f"[compile_from_json] {stage:<22}: {seconds * 1000:.3f} ms", file=sys.stderr)

    # ── Output ───────────────────────────────────────────────────────────────
    if args.print_only:
        sys.stdout.write(compilation.code)
        return 0

    out_path = Path(args.out) if args.out else json_path.parent / _output_filename(snapshot.name, language)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text(compilation.code, encoding="utf-8")

    print(f"[compile_from_json] wrote    : {out_path}", file=sys.stderr)
    return 0


if __name__ == "__main__":
    sys.exit(main())
