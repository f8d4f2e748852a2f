"""
nodescript compiler — Dependency Resolver
=========================================
For each node on a control path, the ids of the nodes feeding its data
inputs. Producers may sit outside every control path (pure value nodes).
"""

from __future__ import annotations

from typing import Dict, List, Optional

from .maps import LinkIndex, NodeIndex
from .traversal import ExecTraversal


def data_sources(node_id: int, data: LinkIndex, nodes: NodeIndex) -> List[int]:
    """Ids of the nodes feeding `node_id`'s data inputs, in input-port order."""
    return [
        from_node
        for _dst, (from_node, _from_port) in data.sources_feeding(node_id)
        if from_node in nodes
    ]


class Deps:
    def __init__(self):
        self._map: Dict[int, List[int]] = {}

    def build(self, traversal: ExecTraversal, data: LinkIndex, nodes: NodeIndex) -> 'Deps':
        for path in traversal.paths:
            for node_id in path.node_ids:
                if node_id not in self._map:
                    self._map[node_id] = data_sources(node_id, data, nodes)
        return self

    def dependencies(self, node_id: int) -> Optional[List[int]]:
        return self._map.get(node_id)

    def __contains__(self, node_id: int) -> bool:
        return node_id in self._map

    def __len__(self) -> int:
        return len(self._map)


__all__ = ["Deps", "data_sources"]
