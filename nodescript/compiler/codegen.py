"""
nodescript compiler — Code Generator
====================================
Turns the traversal's execution order into source text.

Output structure
----------------
    # Generated by nodescript (<language>)
    <required imports, first-use order, de-duplicated>

    <node block>
    <node block>
    ...

Emission order
--------------
Nodes are emitted in execution order. Before a node is emitted, every node
feeding its data inputs is emitted (depth-first, transitively), so a
producer's variable is always bound before a consumer reads it. One memo
set shared across the whole pass guarantees that a join node or a shared
producer is emitted exactly once.
"""

from __future__ import annotations

import logging
from typing import List, Set

from nodescript.core.GraphPrimitives import Implementation, Node

from .deps import Deps, data_sources
from .errors import DependencyCycleError, MissingImplementationError, TemplateError
from .maps import Maps
from .templates import (
    LanguageProfile,
    convert,
    render_literal,
    substitute,
    var_name,
)
from .traversal import ExecTraversal

logger = logging.getLogger(__name__)

GENERATOR_NAME = "nodescript"


class CodeGen:
    def __init__(self,
                 maps: Maps,
                 traversal: ExecTraversal,
                 deps: Deps,
                 profile: LanguageProfile,
                 debug_info: bool = False):
        self.maps = maps
        self.traversal = traversal
        self.deps = deps
        self.profile = profile
        self.debug_info = debug_info

        self._emitted: Set[int] = set()
        self._in_progress: Set[int] = set()
        self._blocks: List[str] = []
        self._order: List[int] = []
        self._imports: List[str] = []

    # ── Dependency walk ───────────────────────────────────────────────────

    def _dependencies(self, node_id: int) -> List[int]:
        deps = self.deps.dependencies(node_id)
        if deps is None:
            # Pure producers off every control path
            deps = data_sources(node_id, self.maps.data, self.maps.nodes)
        return deps

    def _visit(self, node_id: int) -> None:
        if node_id in self._emitted:
            return
        if node_id in self._in_progress:
            raise DependencyCycleError(node_id)

        self._in_progress.add(node_id)
        for dep_id in self._dependencies(node_id):
            self._visit(dep_id)
        self._in_progress.discard(node_id)

        node = self.maps.nodes.get(node_id)
        if node is None:
            return
        self._emit(node)
        self._emitted.add(node_id)
        self._order.append(node_id)

    # ── Input resolution ──────────────────────────────────────────────────

    def _input_expr(self, node: Node, port_name: str) -> str:
        """
        Expression for an input port.

        Resolution order:
          1. Data connection → producer's output variable, converted to the
             port's declared type when the producer declares another scalar.
          2. Port default → literal.
          3. Neither → language null.
        """
        port_index = node.desc.input_index(port_name)
        if port_index is None:
            raise TemplateError(f"unknown input port '{port_name}'", node.id)
        port = node.desc.inputs[port_index]
        if port.is_control():
            raise TemplateError(f"control port '{port_name}' has no value", node.id)

        source = self.maps.data.source_of((node.id, port_index))
        if source is not None:
            producer = self.maps.nodes.get(source[0])
            if producer is not None and source[1] < len(producer.desc.outputs):
                out_port = producer.desc.outputs[source[1]]
                expr = var_name(producer.title, producer.id, out_port.name)
                return convert(expr, self.maps.types.get(source), port.data_type, self.profile)

        return render_literal(port.default, self.profile)

    def _resolver(self, node: Node):
        def resolve(kind: str, name: str) -> str:
            if kind == "port":
                return self._input_expr(node, name)
            if kind == "field":
                fld = node.desc.get_field(name)
                if fld is None:
                    raise TemplateError(f"unknown field '{name}'", node.id)
                return render_literal(fld.value, self.profile)
            # kind == "out"
            if node.desc.output_index(name) is None:
                raise TemplateError(f"unknown output port '{name}'", node.id)
            return var_name(node.title, node.id, name)

        return resolve

    # ── Node emission ─────────────────────────────────────────────────────

    def _implementation(self, node: Node) -> Implementation:
        impl = node.desc.implementation(self.profile.name)
        if impl is None:
            raise MissingImplementationError(node.id, node.title, self.profile.name)
        return impl

    def _emit(self, node: Node) -> None:
        impl = self._implementation(node)
        resolve = self._resolver(node)

        for module in impl.imports:
            line = self.profile.import_line(module)
            if line not in self._imports:
                self._imports.append(line)

        writer = self.profile.writer()
        if self.debug_info:
            writer.comment(f"node {node.id}: {node.title}")
            if impl.type_check:
                writer.writeln(self.profile.assertion(substitute(impl.type_check, resolve)))

        code = substitute(impl.code, resolve).rstrip("\n")
        if code:
            writer.extend(code.split("\n"))

        logger.debug(f"Emitted node {node.id} ({node.title})")
        self._blocks.append(writer.result())

    # ── Public API ────────────────────────────────────────────────────────

    def emission_order(self) -> List[int]:
        return list(self._order)

    def generate(self) -> str:
        for node_id in self.traversal.execution_order():
            self._visit(node_id)

        header = self.profile.writer()
        header.comment(f"Generated by {GENERATOR_NAME} ({self.profile.name})")
        header.extend(self._imports)
        header.blank()

        blocks = [block for block in self._blocks if block]
        return "\n".join(header.lines() + blocks) + "\n"


def generate(maps: Maps,
             traversal: ExecTraversal,
             deps: Deps,
             profile: LanguageProfile,
             debug_info: bool = False) -> str:
    return CodeGen(maps, traversal, deps, profile, debug_info=debug_info).generate()


__all__ = ["CodeGen", "generate", "GENERATOR_NAME"]
