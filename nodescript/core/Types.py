from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Tuple


class PortVariant(Enum):
    CONTROL = "control"
    DATA = "data"


class ExecKind(Enum):
    INPUT_ONLY = "input_only"              # control in, no control out (sinks)
    CONDITION_OUTPUT = "condition_output"  # control out only: seeds traversal
    PASS_THROUGH = "pass_through"          # one control in, one control out
    CONFIGURABLE = "configurable"          # N control ins, M control outs


@dataclass(frozen=True)
class NodeExec:
    kind: ExecKind
    label: Optional[str] = None  # condition-output only
    ins: int = 0
    outs: int = 0

    @staticmethod
    def input_only() -> 'NodeExec':
        return NodeExec(ExecKind.INPUT_ONLY, ins=1)

    @staticmethod
    def condition_output(label: str = "") -> 'NodeExec':
        return NodeExec(ExecKind.CONDITION_OUTPUT, label=label, outs=1)

    @staticmethod
    def pass_through() -> 'NodeExec':
        return NodeExec(ExecKind.PASS_THROUGH, ins=1, outs=1)

    @staticmethod
    def configurable(ins: int, outs: int) -> 'NodeExec':
        return NodeExec(ExecKind.CONFIGURABLE, ins=ins, outs=outs)

    def is_start(self) -> bool:
        return self.kind == ExecKind.CONDITION_OUTPUT


class TypeTag(Enum):
    BOOL = "Bool"
    INT = "Int"
    FLOAT = "Float"
    STRING = "String"
    CUSTOM = "Custom"
    MULTI = "Multi"


SCALAR_TAGS = frozenset({TypeTag.BOOL, TypeTag.INT, TypeTag.FLOAT, TypeTag.STRING})


@dataclass(frozen=True)
class ValueType:
    tag: TypeTag
    name: Optional[str] = None                  # Custom(name)
    members: Tuple['ValueType', ...] = ()       # Multi([...])

    @staticmethod
    def custom(name: str) -> 'ValueType':
        return ValueType(TypeTag.CUSTOM, name=name)

    @staticmethod
    def multi(*members: 'ValueType') -> 'ValueType':
        return ValueType(TypeTag.MULTI, members=tuple(members))

    def is_scalar(self) -> bool:
        return self.tag in SCALAR_TAGS

    def includes(self, other: 'ValueType') -> bool:
        """True if a value of type `other` can be used where `self` is expected."""
        if self == other:
            return True
        if self.tag == TypeTag.MULTI:
            return any(member.includes(other) for member in self.members)
        return False

    def accepts(self, value: Any) -> bool:
        if value is None:
            return True

        if self.tag == TypeTag.BOOL:
            return isinstance(value, bool)
        elif self.tag == TypeTag.INT:
            return isinstance(value, int) and not isinstance(value, bool)
        elif self.tag == TypeTag.FLOAT:
            return isinstance(value, (float, int)) and not isinstance(value, bool)
        elif self.tag == TypeTag.STRING:
            return isinstance(value, str)
        elif self.tag == TypeTag.CUSTOM:
            return isinstance(value, Value) and value.type == self
        elif self.tag == TypeTag.MULTI:
            return any(member.accepts(value) for member in self.members)

        return False

    def __str__(self) -> str:
        if self.tag == TypeTag.CUSTOM:
            return f"Custom({self.name})"
        if self.tag == TypeTag.MULTI:
            return "[" + ", ".join(str(m) for m in self.members) + "]"
        return self.tag.value


BOOL = ValueType(TypeTag.BOOL)
INT = ValueType(TypeTag.INT)
FLOAT = ValueType(TypeTag.FLOAT)
STRING = ValueType(TypeTag.STRING)


@dataclass(frozen=True)
class Value:
    """
    A literal carried by a port default or a field.

    Scalars hold the Python value in `payload`. Custom values hold the
    source text of the value; `type` names the custom type.
    """
    type: ValueType
    payload: Any

    @staticmethod
    def of(raw: Any) -> 'Value':
        # bool before int: bool is an int subclass
        if isinstance(raw, bool):
            return Value(BOOL, raw)
        if isinstance(raw, int):
            return Value(INT, raw)
        if isinstance(raw, float):
            return Value(FLOAT, raw)
        if isinstance(raw, str):
            return Value(STRING, raw)
        if isinstance(raw, Value):
            return raw
        raise TypeError(f"Cannot build a Value from {type(raw).__name__}")

    @staticmethod
    def custom(type_name: str, text: str) -> 'Value':
        return Value(ValueType.custom(type_name), text)

    def _display(self) -> str:
        tag = self.type.tag
        if tag == TypeTag.BOOL:
            return "true" if self.payload else "false"
        if tag == TypeTag.FLOAT:
            return f"{self.payload:g}" if float(self.payload).is_integer() else repr(self.payload)
        if tag == TypeTag.STRING:
            return f'"{self.payload}"'
        return str(self.payload)

    def __str__(self) -> str:
        if self.type.tag == TypeTag.CUSTOM:
            return f"({self.payload}: {self.type.name})"
        return self._display()

    def __repr__(self) -> str:
        if self.type.tag == TypeTag.CUSTOM:
            return f"{self.type.name}({self.payload})"
        return f"{self.type}({self._display()})"
