from dataclasses import dataclass
from enum import Enum
from typing import NamedTuple, Optional, Tuple

from .Types import NodeExec, PortVariant, Value, ValueType


# (node id, port index)
PortRef = Tuple[int, int]


# Connection as a simple immutable record, hashable for use in sets
class Connection(NamedTuple):
    variant: PortVariant
    from_node: int
    from_port: int
    to_node: int
    to_port: int

    @property
    def source(self) -> PortRef:
        return (self.from_node, self.from_port)

    @property
    def destination(self) -> PortRef:
        return (self.to_node, self.to_port)

    @staticmethod
    def control(source: PortRef, destination: PortRef) -> 'Connection':
        return Connection(PortVariant.CONTROL, source[0], source[1], destination[0], destination[1])

    @staticmethod
    def data(source: PortRef, destination: PortRef) -> 'Connection':
        return Connection(PortVariant.DATA, source[0], source[1], destination[0], destination[1])

    def __repr__(self):
        return f"Connection[{self.variant.value}]({self.from_node}.{self.from_port} -> {self.to_node}.{self.to_port})"


@dataclass(frozen=True)
class PortDesc:
    name: str
    data_type: ValueType
    variant: PortVariant = PortVariant.DATA
    default: Optional[Value] = None

    def is_control(self) -> bool:
        return self.variant == PortVariant.CONTROL

    def is_data(self) -> bool:
        return self.variant == PortVariant.DATA


class FieldKind(Enum):
    ENTER = "enter"   # editable, applied on commit


@dataclass(frozen=True)
class FieldDesc:
    name: str
    data_type: ValueType
    value: Value
    kind: FieldKind = FieldKind.ENTER


@dataclass(frozen=True)
class Implementation:
    """Code template for one target language."""
    language: str
    code: str
    imports: Tuple[str, ...] = ()
    type_check: Optional[str] = None


@dataclass(frozen=True)
class NodeDesc:
    title: str
    exec: NodeExec
    fields: Tuple[FieldDesc, ...] = ()
    inputs: Tuple[PortDesc, ...] = ()
    outputs: Tuple[PortDesc, ...] = ()
    impls: Tuple[Implementation, ...] = ()
    description: str = ""
    category: str = ""

    def implementation(self, language: str) -> Optional[Implementation]:
        return next((impl for impl in self.impls if impl.language == language), None)

    def input_index(self, name: str) -> Optional[int]:
        return next((i for i, p in enumerate(self.inputs) if p.name == name), None)

    def output_index(self, name: str) -> Optional[int]:
        return next((i for i, p in enumerate(self.outputs) if p.name == name), None)

    def get_field(self, name: str) -> Optional[FieldDesc]:
        return next((f for f in self.fields if f.name == name), None)


@dataclass(frozen=True)
class Node:
    id: int
    desc: NodeDesc

    @property
    def title(self) -> str:
        return self.desc.title

    def __repr__(self):
        return f"Node({self.id}, {self.desc.title!r})"


@dataclass(frozen=True)
class GraphSnapshot:
    """Immutable by-value copy of an editing session, handed to the compiler."""
    nodes: Tuple[Node, ...] = ()
    connections: Tuple[Connection, ...] = ()
    name: str = "graph"

    def get_node(self, node_id: int) -> Optional[Node]:
        return next((n for n in self.nodes if n.id == node_id), None)
