"""
nodescript compiler — Index Maps
================================
Read-only lookup structures derived from a graph snapshot during the
Index-Build stage.

    NodeIndex    id → Node
    LinkIndex    destination port → source port (one per PortVariant)
    ExecMap      source node → ExecEdge, plus the start nodes
    JoinCounter  node → number of incoming control edges
    TypesMap     (node, output port) → declared ValueType

Ports are addressed as (node id, port index); input and output ports are
indexed separately, in descriptor order.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from nodescript.core.GraphPrimitives import Connection, Node, PortRef
from nodescript.core.Types import PortVariant, ValueType

logger = logging.getLogger(__name__)


# ── Node index ───────────────────────────────────────────────────────────────

class NodeIndex:
    def __init__(self, nodes: Iterable[Node]):
        self._nodes: Dict[int, Node] = {}
        for node in nodes:
            self._nodes[node.id] = node

    def get(self, node_id: int) -> Optional[Node]:
        return self._nodes.get(node_id)

    def __contains__(self, node_id: int) -> bool:
        return node_id in self._nodes

    def __iter__(self) -> Iterator[Node]:
        return iter(self._nodes.values())

    def __len__(self) -> int:
        return len(self._nodes)


# ── Port-link index ──────────────────────────────────────────────────────────

class LinkIndex:
    """
    Destination → source lookup for one connection variant.

    At most one connection may end at a destination port; if the snapshot
    breaks that rule the last connection wins.
    """

    def __init__(self, connections: Iterable[Connection], variant: PortVariant):
        self.variant = variant
        self._links: Dict[PortRef, PortRef] = {}
        for conn in connections:
            if conn.variant != variant:
                continue
            self._links[conn.destination] = conn.source

    def source_of(self, destination: PortRef) -> Optional[PortRef]:
        return self._links.get(destination)

    def sources_feeding(self, node_id: int) -> List[Tuple[PortRef, PortRef]]:
        """All (destination, source) pairs whose destination is on `node_id`, by port index."""
        pairs = [(dst, src) for dst, src in self._links.items() if dst[0] == node_id]
        pairs.sort(key=lambda pair: pair[0][1])
        return pairs

    def items(self) -> Iterator[Tuple[PortRef, PortRef]]:
        return iter(self._links.items())

    def __len__(self) -> int:
        return len(self._links)


# ── Control-flow successor map ───────────────────────────────────────────────

@dataclass(frozen=True)
class ExecEdge:
    out_node: int   # node whose control output fires
    out_port: int
    in_node: int    # successor
    in_port: int


class ExecMap:
    """
    Outgoing control edge per node, keyed by the firing node's id.

    Only one successor is kept per node: a later control edge from the same
    node replaces the earlier one.
    """

    def __init__(self, control: LinkIndex, nodes: NodeIndex):
        self._edges: Dict[int, ExecEdge] = {}
        for (to_node, to_port), (from_node, from_port) in control.items():
            if from_node not in nodes or to_node not in nodes:
                continue
            previous = self._edges.get(from_node)
            if previous is not None:
                logger.debug(
                    f"Node {from_node}: control edge to {to_node} replaces edge to {previous.in_node}"
                )
            self._edges[from_node] = ExecEdge(from_node, from_port, to_node, to_port)

        self.start_nodes: List[int] = [n.id for n in nodes if n.desc.exec.is_start()]

    def get(self, node_id: int) -> Optional[ExecEdge]:
        return self._edges.get(node_id)

    def edges(self) -> Iterator[ExecEdge]:
        return iter(self._edges.values())

    def __len__(self) -> int:
        return len(self._edges)


# ── Join counter ─────────────────────────────────────────────────────────────

class JoinCounter:
    """Incoming control edge count per node; two or more marks a join point."""

    def __init__(self, exec_map: ExecMap):
        self._counts: Counter = Counter(edge.in_node for edge in exec_map.edges())

    def count(self, node_id: int) -> int:
        return self._counts.get(node_id, 0)

    def is_join(self, node_id: int) -> bool:
        return self.count(node_id) >= 2

    def joins(self) -> List[int]:
        return [node_id for node_id, n in self._counts.items() if n >= 2]


# ── Output-type table ────────────────────────────────────────────────────────

class TypesMap:
    def __init__(self, nodes: NodeIndex):
        self._types: Dict[PortRef, ValueType] = {}
        for node in nodes:
            for port_index, port in enumerate(node.desc.outputs):
                self._types[(node.id, port_index)] = port.data_type

    def get(self, port: PortRef) -> Optional[ValueType]:
        return self._types.get(port)


# ── Bundle handed between stages ─────────────────────────────────────────────

@dataclass(frozen=True)
class Maps:
    nodes: NodeIndex
    data: LinkIndex
    control: LinkIndex
    exec_map: ExecMap
    joins: JoinCounter
    types: TypesMap


def build_maps(nodes: Iterable[Node], connections: Iterable[Connection]) -> Maps:
    connections = list(connections)
    node_index = NodeIndex(nodes)
    data = LinkIndex(connections, PortVariant.DATA)
    control = LinkIndex(connections, PortVariant.CONTROL)
    exec_map = ExecMap(control, node_index)

    logger.debug(
        f"Indexed {len(node_index)} nodes, {len(data)} data links, "
        f"{len(control)} control links, {len(exec_map.start_nodes)} start nodes"
    )

    return Maps(
        nodes=node_index,
        data=data,
        control=control,
        exec_map=exec_map,
        joins=JoinCounter(exec_map),
        types=TypesMap(node_index),
    )


__all__ = [
    "NodeIndex",
    "LinkIndex",
    "ExecEdge",
    "ExecMap",
    "JoinCounter",
    "TypesMap",
    "Maps",
    "build_maps",
]
