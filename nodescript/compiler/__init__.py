"""
nodescript Compiler
===================
Converts a snapshot of a visual program (nodes + control/data connections)
into source text for a target scripting language.

Pipeline:
    nodes, connections  →  [maps]       →  Maps
    Maps                →  [traversal]  →  ExecTraversal
    ExecTraversal       →  [deps]       →  Deps
    Deps                →  [codegen]    →  source str

Public API
----------
    from nodescript.compiler import compile_graph

    compilation = compile_graph(nodes, connections, language="python")
    print(compilation.code)
    for stage, seconds in compilation.elapsed_times:
        print(stage, seconds)
"""

from __future__ import annotations

from typing import Iterable

from nodescript.core.GraphPrimitives import Connection, Node

from .errors import (
    CompilationCancelled,
    CompileError,
    DependencyCycleError,
    GraphIntegrityError,
    MissingImplementationError,
    StageSequenceError,
    TemplateError,
    TraversalLimitError,
    UnknownLanguageError,
)
from .pipeline import Compilation, Compiler
from .traversal import MAX_PATH_LENGTH


def compile_graph(
    nodes: Iterable[Node],
    connections: Iterable[Connection],
    debug_info: bool = False,
    language: str = "python",
    strict: bool = False,
    max_path_length: int = MAX_PATH_LENGTH,
) -> Compilation:
    """
    Compile a graph snapshot in one call.

    Args:
        nodes:           Ordered node snapshot.
        connections:     Ordered connection snapshot.
        debug_info:      Prefix every node block with a comment naming the
                         node, and emit type-check assertions.
        language:        Target language tag ("python", "lua", or any
                         registered profile).
        strict:          Raise GraphIntegrityError for connections that
                         reference missing nodes instead of ignoring them.
        max_path_length: Upper bound on the length of one control path.

    Returns:
        The Compilation record: code, timestamp and per-stage timings.

    Raises:
        CompileError: On the first failing stage.
    """
    compiler = Compiler(
        nodes,
        connections,
        debug_info=debug_info,
        language=language,
        strict=strict,
        max_path_length=max_path_length,
    )
    return compiler.compile()


__all__ = [
    "compile_graph",
    "Compilation",
    "Compiler",
    "CompileError",
    "CompilationCancelled",
    "DependencyCycleError",
    "GraphIntegrityError",
    "MissingImplementationError",
    "StageSequenceError",
    "TemplateError",
    "TraversalLimitError",
    "UnknownLanguageError",
]
