"""
Compiler error hierarchy.

Every failure raised by the compilation pipeline derives from CompileError so
hosts can catch a single type. Cycle truncation during control traversal is
not an error and never raises.
"""

from __future__ import annotations

from typing import Optional


class CompileError(Exception):
    """Base class for all compilation failures."""


class StageSequenceError(CompileError):
    """step() was called on a driver that already reached Finished."""


class MissingImplementationError(CompileError):
    def __init__(self, node_id: int, title: str, language: str):
        super().__init__(
            f"Node {node_id} ({title!r}) has no implementation for language '{language}'"
        )
        self.node_id = node_id
        self.title = title
        self.language = language


class GraphIntegrityError(CompileError):
    """A connection references a node id absent from the snapshot (strict mode)."""


class TraversalLimitError(CompileError):
    def __init__(self, start_id: int, limit: int):
        super().__init__(
            f"Control path from node {start_id} exceeded {limit} nodes"
        )
        self.start_id = start_id
        self.limit = limit


class DependencyCycleError(CompileError):
    def __init__(self, node_id: int):
        super().__init__(f"Data dependency cycle through node {node_id}")
        self.node_id = node_id


class TemplateError(CompileError):
    def __init__(self, message: str, node_id: Optional[int] = None):
        if node_id is not None:
            message = f"Node {node_id}: {message}"
        super().__init__(message)
        self.node_id = node_id


class UnknownLanguageError(CompileError):
    def __init__(self, language: str):
        super().__init__(f"Unknown target language '{language}'")
        self.language = language


class CompilationCancelled(CompileError):
    """The host's cancellation callback asked the driver to stop between stages."""


__all__ = [
    "CompileError",
    "StageSequenceError",
    "MissingImplementationError",
    "GraphIntegrityError",
    "TraversalLimitError",
    "DependencyCycleError",
    "TemplateError",
    "UnknownLanguageError",
    "CompilationCancelled",
]
