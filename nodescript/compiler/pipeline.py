"""
nodescript compiler — Pipeline Driver
=====================================
A staged state machine; each step() consumes the current stage and builds
exactly the next one:

    IndexBuild             nodes + connections
        ↓  build_maps
    ControlTraversal       Maps
        ↓  ExecTraversal
    DependencyResolution   Maps + traversal
        ↓  Deps
    CodeGeneration         Maps + traversal + deps
        ↓  CodeGen
    Finished               code

A failed step() leaves the driver on its last good stage. compile() runs
step() to completion, timing every transition. Hosts that must stay
responsive can call step() once per tick instead and drop the driver to
cancel.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, ClassVar, Dict, Iterable, List, Optional, Tuple, Union

from nodescript.core.GraphPrimitives import Connection, Node

from .codegen import CodeGen
from .deps import Deps
from .errors import CompilationCancelled, GraphIntegrityError, StageSequenceError
from .maps import Maps, build_maps
from .templates import get_language
from .traversal import MAX_PATH_LENGTH, ExecTraversal

logger = logging.getLogger(__name__)


# ── Stages ───────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class IndexBuild:
    name: ClassVar[str] = "Index-Build"
    nodes: Tuple[Node, ...]
    connections: Tuple[Connection, ...]


@dataclass(frozen=True)
class ControlTraversal:
    name: ClassVar[str] = "Control-Traversal"
    maps: Maps


@dataclass(frozen=True)
class DependencyResolution:
    name: ClassVar[str] = "Dependency-Resolution"
    maps: Maps
    traversal: ExecTraversal


@dataclass(frozen=True)
class CodeGeneration:
    name: ClassVar[str] = "Code-Generation"
    maps: Maps
    traversal: ExecTraversal
    deps: Deps


@dataclass(frozen=True)
class Finished:
    name: ClassVar[str] = "Finished"
    code: str


Stage = Union[IndexBuild, ControlTraversal, DependencyResolution, CodeGeneration, Finished]


# ── Result record ────────────────────────────────────────────────────────────

@dataclass
class Compilation:
    code: str = ""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    elapsed_times: List[Tuple[str, float]] = field(default_factory=list)

    def add_elapsed_time(self, stage: str, seconds: float) -> None:
        self.elapsed_times.append((stage, seconds))

    def set_code(self, code: str) -> None:
        self.code = code
        self.timestamp = datetime.now(timezone.utc)

    def total_time(self) -> float:
        return sum(seconds for _, seconds in self.elapsed_times)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "timestamp": self.timestamp.isoformat(),
            "elapsed_times": [
                {"stage": stage, "seconds": seconds} for stage, seconds in self.elapsed_times
            ],
        }


# ── Driver ───────────────────────────────────────────────────────────────────

class Compiler:
    def __init__(self,
                 nodes: Iterable[Node],
                 connections: Iterable[Connection],
                 debug_info: bool = False,
                 language: str = "python",
                 strict: bool = False,
                 max_path_length: int = MAX_PATH_LENGTH):
        self.debug_info = debug_info
        self.profile = get_language(language)
        self.strict = strict
        self.max_path_length = max_path_length
        self.stage: Stage = IndexBuild(tuple(nodes), tuple(connections))
        self.compilation = Compilation()

    # ── Transitions ───────────────────────────────────────────────────────

    def _checked_connections(self, stage: IndexBuild) -> List[Connection]:
        node_ids = {node.id for node in stage.nodes}
        kept: List[Connection] = []
        for conn in stage.connections:
            if conn.from_node in node_ids and conn.to_node in node_ids:
                kept.append(conn)
                continue
            if self.strict:
                raise GraphIntegrityError(f"{conn!r} references a node missing from the snapshot")
            logger.debug(f"Ignoring {conn!r}: endpoint node missing from snapshot")
        return kept

    def _index_build(self, stage: IndexBuild) -> ControlTraversal:
        return ControlTraversal(build_maps(stage.nodes, self._checked_connections(stage)))

    def _control_traversal(self, stage: ControlTraversal) -> DependencyResolution:
        traversal = ExecTraversal(max_path_length=self.max_path_length)
        traversal.traverse(stage.maps.exec_map)
        return DependencyResolution(stage.maps, traversal)

    def _dependency_resolution(self, stage: DependencyResolution) -> CodeGeneration:
        deps = Deps().build(stage.traversal, stage.maps.data, stage.maps.nodes)
        return CodeGeneration(stage.maps, stage.traversal, deps)

    def _code_generation(self, stage: CodeGeneration) -> Finished:
        code = CodeGen(
            stage.maps,
            stage.traversal,
            stage.deps,
            self.profile,
            debug_info=self.debug_info,
        ).generate()
        return Finished(code)

    def step(self) -> Stage:
        stage = self.stage
        if isinstance(stage, IndexBuild):
            next_stage: Stage = self._index_build(stage)
        elif isinstance(stage, ControlTraversal):
            next_stage = self._control_traversal(stage)
        elif isinstance(stage, DependencyResolution):
            next_stage = self._dependency_resolution(stage)
        elif isinstance(stage, CodeGeneration):
            next_stage = self._code_generation(stage)
        else:
            raise StageSequenceError("Already finished")

        self.stage = next_stage
        return next_stage

    # ── Public API ────────────────────────────────────────────────────────

    def is_finished(self) -> bool:
        return isinstance(self.stage, Finished)

    def compile(self, should_cancel: Optional[Callable[[], bool]] = None) -> Compilation:
        logger.debug("Starting compilation")

        while not self.is_finished():
            if should_cancel is not None and should_cancel():
                raise CompilationCancelled(f"Cancelled before stage {self.stage.name}")

            name = self.stage.name
            logger.debug(f"Executing compile stage {name}")
            start = time.perf_counter()
            self.step()
            self.compilation.add_elapsed_time(name, time.perf_counter() - start)

        logger.info("Compilation finished")
        self.compilation.set_code(self.stage.code)
        return self.compilation


__all__ = [
    "IndexBuild",
    "ControlTraversal",
    "DependencyResolution",
    "CodeGeneration",
    "Finished",
    "Stage",
    "Compilation",
    "Compiler",
]
