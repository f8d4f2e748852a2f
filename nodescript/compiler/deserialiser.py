"""
nodescript compiler — Snapshot Deserialiser
===========================================
Converts a graph snapshot dict (or JSON file) into the immutable model
objects the compiler consumes.

Pipeline
--------
    graph.json  →  [schema.validate]           →  dict
    dict        →  [deserialiser.from_dict]     →  GraphSnapshot
    GraphSnapshot → [compile_graph]             →  Compilation

See nodescript/compiler/schema.py for the format.

Values are read against the type they are declared with: an integer given
for a Float port becomes a Float value. A default or field value that does
not conform to its declared type is kept as written and logged as a
warning.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

from nodescript.core.GraphPrimitives import (
    Connection,
    FieldDesc,
    FieldKind,
    GraphSnapshot,
    Implementation,
    Node,
    NodeDesc,
    PortDesc,
)
from nodescript.core.Types import (
    ExecKind,
    NodeExec,
    PortVariant,
    TypeTag,
    Value,
    ValueType,
)

from .schema import validate

logger = logging.getLogger(__name__)


# ── Types & values ────────────────────────────────────────────────────────────

def parse_type(spec: Union[str, Dict[str, Any]]) -> ValueType:
    if isinstance(spec, str):
        return ValueType(TypeTag(spec))
    (tag, arg), = spec.items()
    if tag == TypeTag.CUSTOM.value:
        return ValueType.custom(arg)
    return ValueType.multi(*(parse_type(member) for member in arg))


def parse_value(raw: Any, declared: ValueType, context: str = "value") -> Optional[Value]:
    if raw is None:
        return None

    if isinstance(raw, dict):
        type_name, text = raw["Custom"]
        value = Value.custom(type_name, text)
    elif declared.tag == TypeTag.FLOAT and isinstance(raw, int) and not isinstance(raw, bool):
        value = Value(declared, float(raw))
    else:
        value = Value.of(raw)

    payload = value if value.type.tag == TypeTag.CUSTOM else value.payload
    if not declared.accepts(payload):
        logger.warning(f"{context}: expected {declared}, got {value.type}")
    return value


# ── Descriptors ───────────────────────────────────────────────────────────────

def _parse_exec(spec: Dict[str, Any]) -> NodeExec:
    kind = ExecKind(spec["kind"])
    if kind == ExecKind.INPUT_ONLY:
        return NodeExec.input_only()
    if kind == ExecKind.CONDITION_OUTPUT:
        return NodeExec.condition_output(spec.get("label", ""))
    if kind == ExecKind.PASS_THROUGH:
        return NodeExec.pass_through()
    return NodeExec.configurable(spec.get("ins", 1), spec.get("outs", 1))


def _parse_port(spec: Dict[str, Any], context: str) -> PortDesc:
    data_type = parse_type(spec["type"])
    return PortDesc(
        name=spec["name"],
        data_type=data_type,
        variant=PortVariant(spec["variant"]),
        default=parse_value(spec.get("default"), data_type, f"{context}.default"),
    )


def _parse_field(spec: Dict[str, Any], context: str) -> FieldDesc:
    data_type = parse_type(spec["type"])
    return FieldDesc(
        name=spec["name"],
        data_type=data_type,
        value=parse_value(spec["value"], data_type, f"{context}.value"),
        kind=FieldKind(spec.get("kind", FieldKind.ENTER.value)),
    )


def _parse_impl(spec: Dict[str, Any]) -> Implementation:
    return Implementation(
        language=spec["lang"],
        code=spec["code"],
        imports=tuple(spec.get("imports", [])),
        type_check=spec.get("type_check"),
    )


def parse_descriptor(spec: Dict[str, Any], context: str = "descriptor") -> NodeDesc:
    title = spec["title"]
    return NodeDesc(
        title=title,
        exec=_parse_exec(spec["exec"]),
        fields=tuple(_parse_field(f, f"{title}.fields[{i}]")
                     for i, f in enumerate(spec.get("fields", []))),
        inputs=tuple(_parse_port(p, f"{title}.inputs[{i}]")
                     for i, p in enumerate(spec.get("inputs", []))),
        outputs=tuple(_parse_port(p, f"{title}.outputs[{i}]")
                      for i, p in enumerate(spec.get("outputs", []))),
        impls=tuple(_parse_impl(impl) for impl in spec["impls"]),
        description=spec.get("description", ""),
        category=spec.get("category", ""),
    )


# ── Public entry point ────────────────────────────────────────────────────────

def from_dict(data: Dict[str, Any]) -> GraphSnapshot:
    """
    Validate a snapshot dict and build a GraphSnapshot.

    Raises:
        SchemaError: If the dict fails structural validation.
    """
    validate(data)

    library: Dict[str, NodeDesc] = {}
    for spec in data.get("library", []):
        library[spec["title"]] = parse_descriptor(spec)

    nodes = []
    for spec in data["nodes"]:
        if "desc" in spec:
            desc = parse_descriptor(spec["desc"])
        else:
            desc = library[spec["type"]]
        nodes.append(Node(id=spec["id"], desc=desc))

    connections = tuple(
        Connection(
            PortVariant(spec["variant"]),
            spec["from"][0],
            spec["from"][1],
            spec["to"][0],
            spec["to"][1],
        )
        for spec in data["connections"]
    )

    return GraphSnapshot(
        nodes=tuple(nodes),
        connections=connections,
        name=data.get("graph_name", "graph"),
    )


def load(path: Union[str, Path]) -> GraphSnapshot:
    """
    Read a graph JSON file and build a GraphSnapshot.

    Raises:
        FileNotFoundError: If the file does not exist.
        json.JSONDecodeError: If the file is not valid JSON.
        SchemaError: If the graph structure is invalid.
    """
    path = Path(path)
    with path.open(encoding="utf-8") as fh:
        data = json.load(fh)
    snapshot = from_dict(data)
    if "graph_name" not in data:
        snapshot = GraphSnapshot(snapshot.nodes, snapshot.connections, name=path.stem)
    return snapshot


__all__ = ["from_dict", "load", "parse_descriptor", "parse_type", "parse_value"]
