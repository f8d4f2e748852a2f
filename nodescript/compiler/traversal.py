"""
nodescript compiler — Control-Flow Traversal
============================================
Walks the ExecMap from every start node and records one path per start.

A walk keeps a visited set scoped to itself: reaching a node that is already
on the current path stops the walk without recording it. The set is cleared when the walk unwinds, so two start
nodes whose chains share nodes do not affect each other.

Every node has at most one recorded successor, so each walk is a chain and
is run as a loop rather than by recursion.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Set, Tuple

from .errors import TraversalLimitError
from .maps import ExecMap

logger = logging.getLogger(__name__)

MAX_PATH_LENGTH = 1000


@dataclass(frozen=True)
class ExecPath:
    node_ids: Tuple[int, ...]


@dataclass
class ExecTraversal:
    max_path_length: int = MAX_PATH_LENGTH
    paths: List[ExecPath] = field(default_factory=list)
    current_path: List[int] = field(default_factory=list)
    visited: Set[int] = field(default_factory=set)

    def search(self, start_id: int, exec_map: ExecMap) -> None:
        node_id = start_id
        while True:
            if node_id in self.visited:
                logger.debug(f"Node {node_id} already on path from {start_id}; truncating cycle")
                self._unwind()
                return

            if len(self.current_path) >= self.max_path_length:
                self._unwind()
                raise TraversalLimitError(start_id, self.max_path_length)

            self.visited.add(node_id)
            self.current_path.append(node_id)

            edge = exec_map.get(node_id)
            if edge is None:
                logger.debug(f"Reached end of path at node {node_id}")
                break
            node_id = edge.in_node

        self.paths.append(ExecPath(tuple(self.current_path)))
        self._unwind()

    def _unwind(self) -> None:
        while self.current_path:
            self.visited.discard(self.current_path.pop())

    def traverse(self, exec_map: ExecMap) -> 'ExecTraversal':
        for start_id in exec_map.start_nodes:
            logger.debug(f"Searching from start node {start_id}")
            self.search(start_id, exec_map)
        return self

    def execution_order(self) -> List[int]:
        """All paths concatenated, each node id kept on its first occurrence."""
        order: List[int] = []
        seen: Set[int] = set()
        for path in self.paths:
            for node_id in path.node_ids:
                if node_id not in seen:
                    seen.add(node_id)
                    order.append(node_id)
        return order

    def node_ids(self) -> Set[int]:
        return {node_id for path in self.paths for node_id in path.node_ids}


__all__ = ["ExecPath", "ExecTraversal", "MAX_PATH_LENGTH"]
