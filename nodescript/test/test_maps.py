import logging

from nodescript.compiler.maps import (
    ExecEdge,
    ExecMap,
    JoinCounter,
    LinkIndex,
    NodeIndex,
    TypesMap,
    build_maps,
)
from nodescript.core.GraphPrimitives import Connection, Node
from nodescript.core.Types import INT, STRING, PortVariant
from nodescript.test.builders import (
    add_desc,
    const_desc,
    end_desc,
    hello_graph,
    merge_desc,
    print_desc,
    start_desc,
)


class TestNodeIndex:

    def test_lookup_and_order(self):
        nodes, _ = hello_graph()
        index = NodeIndex(nodes)
        assert len(index) == 3
        assert index.get(1).title == "Print"
        assert index.get(99) is None
        assert 2 in index
        assert 99 not in index
        assert [n.id for n in index] == [0, 1, 2]


class TestLinkIndex:

    def test_split_by_variant(self):
        connections = [
            Connection.control((0, 0), (1, 0)),
            Connection.data((3, 0), (1, 1)),
        ]
        data = LinkIndex(connections, PortVariant.DATA)
        control = LinkIndex(connections, PortVariant.CONTROL)

        assert data.source_of((1, 1)) == (3, 0)
        assert data.source_of((1, 0)) is None
        assert control.source_of((1, 0)) == (0, 0)
        assert len(data) == 1
        assert len(control) == 1

    def test_last_connection_wins(self):
        connections = [
            Connection.data((3, 0), (1, 1)),
            Connection.data((4, 0), (1, 1)),
        ]
        data = LinkIndex(connections, PortVariant.DATA)
        assert data.source_of((1, 1)) == (4, 0)
        assert len(data) == 1

    def test_sources_feeding_sorted_by_port(self):
        connections = [
            Connection.data((5, 0), (2, 1)),
            Connection.data((4, 0), (2, 0)),
            Connection.data((6, 0), (3, 0)),
        ]
        data = LinkIndex(connections, PortVariant.DATA)
        assert data.sources_feeding(2) == [((2, 0), (4, 0)), ((2, 1), (5, 0))]
        assert data.sources_feeding(7) == []


class TestExecMap:

    def _control(self, *connections):
        return LinkIndex(connections, PortVariant.CONTROL)

    def test_successors_and_start_nodes(self):
        nodes, connections = hello_graph()
        index = NodeIndex(nodes)
        exec_map = ExecMap(LinkIndex(connections, PortVariant.CONTROL), index)

        assert exec_map.start_nodes == [0]
        assert exec_map.get(0) == ExecEdge(0, 0, 1, 0)
        assert exec_map.get(1) == ExecEdge(1, 0, 2, 0)
        assert exec_map.get(2) is None
        assert len(exec_map) == 2

    def test_multiple_start_nodes_in_snapshot_order(self):
        nodes = [Node(4, start_desc("Second")), Node(1, end_desc()), Node(2, start_desc())]
        exec_map = ExecMap(self._control(), NodeIndex(nodes))
        assert exec_map.start_nodes == [4, 2]

    def test_missing_endpoints_are_skipped(self):
        nodes = [Node(0, start_desc()), Node(1, end_desc())]
        exec_map = ExecMap(
            self._control(Connection.control((0, 0), (7, 0)), Connection.control((8, 0), (1, 0))),
            NodeIndex(nodes),
        )
        assert exec_map.get(0) is None
        assert exec_map.get(8) is None
        assert len(exec_map) == 0

    def test_later_edge_from_same_node_replaces_earlier(self, caplog):
        nodes = [Node(0, start_desc()), Node(1, end_desc()), Node(2, end_desc())]
        control = self._control(
            Connection.control((0, 0), (1, 0)),
            Connection.control((0, 0), (2, 0)),
        )
        with caplog.at_level(logging.DEBUG, logger="nodescript.compiler.maps"):
            exec_map = ExecMap(control, NodeIndex(nodes))

        assert exec_map.get(0).in_node == 2
        assert len(exec_map) == 1
        assert "replaces edge to 1" in caplog.text


class TestJoinCounter:

    def test_counts_incoming_edges(self):
        nodes = [
            Node(0, start_desc("A")),
            Node(1, start_desc("B")),
            Node(2, merge_desc()),
            Node(3, end_desc()),
        ]
        connections = [
            Connection.control((0, 0), (2, 0)),
            Connection.control((1, 0), (2, 1)),
            Connection.control((2, 0), (3, 0)),
        ]
        joins = JoinCounter(ExecMap(LinkIndex(connections, PortVariant.CONTROL), NodeIndex(nodes)))

        assert joins.count(2) == 2
        assert joins.count(3) == 1
        assert joins.count(0) == 0
        assert joins.is_join(2) is True
        assert joins.is_join(3) is False
        assert joins.joins() == [2]


class TestTypesMap:

    def test_declared_output_types(self):
        nodes = [Node(0, add_desc()), Node(1, const_desc("x")), Node(2, print_desc())]
        types = TypesMap(NodeIndex(nodes))

        assert types.get((0, 0)) == INT
        assert types.get((1, 0)) == STRING
        assert types.get((0, 1)) is None
        assert types.get((9, 0)) is None


class TestBuildMaps:

    def test_bundle(self):
        nodes, connections = hello_graph()
        maps = build_maps(nodes, connections)

        assert len(maps.nodes) == 3
        assert len(maps.control) == 2
        assert len(maps.data) == 0
        assert maps.exec_map.start_nodes == [0]
        assert maps.joins.joins() == []

    def test_accepts_generators(self):
        nodes, connections = hello_graph()
        maps = build_maps(iter(nodes), iter(connections))
        assert len(maps.control) == 2

    def test_empty_graph(self):
        maps = build_maps([], [])
        assert len(maps.nodes) == 0
        assert len(maps.data) == 0
        assert maps.exec_map.start_nodes == []
