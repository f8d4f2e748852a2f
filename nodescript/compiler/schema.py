"""
nodescript compiler — Graph Snapshot Schema + Validator
=======================================================
Defines the plain-dict (JSON) description of a graph snapshot and a
lightweight validator that runs without any third-party JSON Schema library.

Snapshot format
---------------

    {
      "graph_name": "hello",                    // human label (str, optional)
      "library": [ <descriptor>, ... ],         // shared descriptors (optional)
      "nodes": [
        { "id": 0, "type": "Start" },           // descriptor by library title
        { "id": 1, "desc": <descriptor> }       // or inline
      ],
      "connections": [
        { "variant": "control", "from": [0, 0], "to": [1, 0] }
      ]
    }

Descriptor format
-----------------

    {
      "title":       "Print",                   // (str, required)
      "description": "Prints a value",          // (str, optional)
      "category":    "io",                      // (str, optional)
      "exec": { "kind": "pass_through" },       // input_only | condition_output
                                                // | pass_through | configurable
                                                // + "label" / "ins" / "outs"
      "fields":  [ { "name", "type", "value", "kind"? } ],
      "inputs":  [ { "name", "type", "variant", "default"? } ],
      "outputs": [ { "name", "type", "variant" } ],
      "impls": [
        { "lang": "python", "code": "print(${port:value})",
          "imports": ["sys"], "type_check": "isinstance(${port:value}, str)" }
      ]
    }

Types are "Bool" | "Int" | "Float" | "String" | {"Custom": name}
| {"Multi": [type, ...]}. Custom values are {"Custom": [type_name, text]}.
"""

from __future__ import annotations

from typing import Any, Dict, List, Set

from nodescript.core.Types import ExecKind, PortVariant, TypeTag

from .templates import placeholders


SCALAR_TYPE_NAMES = frozenset({TypeTag.BOOL.value, TypeTag.INT.value,
                               TypeTag.FLOAT.value, TypeTag.STRING.value})
EXEC_KINDS = frozenset(kind.value for kind in ExecKind)
VARIANTS = frozenset(variant.value for variant in PortVariant)


# ── Validation helpers ────────────────────────────────────────────────────────

class SchemaError(ValueError):
    """Raised when a graph snapshot dict fails structural validation."""


def _require(condition: bool, message: str) -> None:
    if not condition:
        raise SchemaError(message)


def _require_keys(obj: Dict, keys: List[str], context: str) -> None:
    for key in keys:
        _require(key in obj, f"{context}: missing required field '{key}'")


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _validate_type(spec: Any, context: str) -> None:
    if isinstance(spec, str):
        _require(spec in SCALAR_TYPE_NAMES, f"{context}: unknown type '{spec}'")
        return
    _require(isinstance(spec, dict) and len(spec) == 1,
             f"{context}: type must be a name or a single-key object")
    (tag, arg), = spec.items()
    if tag == TypeTag.CUSTOM.value:
        _require(isinstance(arg, str), f"{context}: Custom type name must be a string")
    elif tag == TypeTag.MULTI.value:
        _require(isinstance(arg, list) and arg, f"{context}: Multi must list at least one type")
        for i, member in enumerate(arg):
            _validate_type(member, f"{context}.Multi[{i}]")
    else:
        raise SchemaError(f"{context}: unknown type '{tag}'")


def _validate_value(value: Any, context: str) -> None:
    if isinstance(value, dict):
        _require(set(value) == {"Custom"}, f"{context}: only Custom values may be objects")
        pair = value["Custom"]
        _require(isinstance(pair, list) and len(pair) == 2 and all(isinstance(p, str) for p in pair),
                 f"{context}: Custom value must be [type_name, text]")
        return
    _require(isinstance(value, (bool, int, float, str)),
             f"{context}: value must be a bool, number, string or Custom object")


def _validate_port(port: Any, context: str) -> None:
    _require(isinstance(port, dict), f"{context}: each port must be a JSON object")
    _require_keys(port, ["name", "type", "variant"], context)
    _require(isinstance(port["name"], str), f"{context}.name must be a string")
    _validate_type(port["type"], f"{context}.type")
    _require(port["variant"] in VARIANTS, f"{context}.variant must be one of {sorted(VARIANTS)}")
    if port.get("default") is not None:
        _validate_value(port["default"], f"{context}.default")


def _validate_impl(impl: Any, context: str, names: Dict[str, Set[str]]) -> None:
    _require(isinstance(impl, dict), f"{context}: each impl must be a JSON object")
    _require_keys(impl, ["lang", "code"], context)
    _require(isinstance(impl["lang"], str), f"{context}.lang must be a string")
    _require(isinstance(impl["code"], str), f"{context}.code must be a string")
    imports = impl.get("imports", [])
    _require(isinstance(imports, list) and all(isinstance(m, str) for m in imports),
             f"{context}.imports must be a list of strings")
    type_check = impl.get("type_check")
    _require(type_check is None or isinstance(type_check, str),
             f"{context}.type_check must be a string")

    for template in (impl["code"], type_check or ""):
        for kind, name in placeholders(template):
            _require(name in names[kind],
                     f"{context}: placeholder '${{{kind}:{name}}}' does not name a known {kind}")


def validate_descriptor(desc: Any, context: str = "descriptor") -> None:
    _require(isinstance(desc, dict), f"{context}: descriptor must be a JSON object")
    _require_keys(desc, ["title", "exec", "impls"], context)
    _require(isinstance(desc["title"], str), f"{context}.title must be a string")

    exec_spec = desc["exec"]
    _require(isinstance(exec_spec, dict), f"{context}.exec must be an object")
    _require(exec_spec.get("kind") in EXEC_KINDS,
             f"{context}.exec.kind must be one of {sorted(EXEC_KINDS)}")
    for count in ("ins", "outs"):
        if count in exec_spec:
            _require(_is_int(exec_spec[count]) and exec_spec[count] >= 0,
                     f"{context}.exec.{count} must be a non-negative integer")

    for fi, fld in enumerate(desc.get("fields", [])):
        fctx = f"{context}.fields[{fi}]"
        _require(isinstance(fld, dict), f"{fctx}: each field must be a JSON object")
        _require_keys(fld, ["name", "type", "value"], fctx)
        _validate_type(fld["type"], f"{fctx}.type")
        _validate_value(fld["value"], f"{fctx}.value")
        _require(fld.get("kind", "enter") == "enter", f"{fctx}.kind must be 'enter'")

    for section in ("inputs", "outputs"):
        ports = desc.get(section, [])
        _require(isinstance(ports, list), f"{context}.{section} must be a list")
        for pi, port in enumerate(ports):
            _validate_port(port, f"{context}.{section}[{pi}]")

    names = {
        "port": {p["name"] for p in desc.get("inputs", []) if p["variant"] == PortVariant.DATA.value},
        "field": {f["name"] for f in desc.get("fields", [])},
        "out": {p["name"] for p in desc.get("outputs", [])},
    }
    _require(isinstance(desc["impls"], list), f"{context}.impls must be a list")
    for ii, impl in enumerate(desc["impls"]):
        _validate_impl(impl, f"{context}.impls[{ii}]", names)


# ── Public validator ─────────────────────────────────────────────────────────

def validate(data: Dict[str, Any]) -> None:
    """
    Validate a parsed graph snapshot dict.

    Connections are not checked against the node list: dangling endpoints
    are handled by the compiler's Index-Build stage.

    Raises:
        SchemaError: On any structural violation.
    """
    _require(isinstance(data, dict), "graph JSON must be a JSON object at the top level")
    _require_keys(data, ["nodes", "connections"], "graph root")
    _require(isinstance(data["nodes"], list), "nodes must be a list")
    _require(isinstance(data["connections"], list), "connections must be a list")
    if "graph_name" in data:
        _require(isinstance(data["graph_name"], str), "graph_name must be a string")

    # ── Library ─────────────────────────────────────────────────────────────

    titles: Set[str] = set()
    library = data.get("library", [])
    _require(isinstance(library, list), "library must be a list")
    for i, desc in enumerate(library):
        validate_descriptor(desc, f"library[{i}]")
        _require(desc["title"] not in titles, f"library[{i}]: duplicate title '{desc['title']}'")
        titles.add(desc["title"])

    # ── Nodes ───────────────────────────────────────────────────────────────

    node_ids: Set[int] = set()

    for i, node in enumerate(data["nodes"]):
        ctx = f"nodes[{i}]"
        _require(isinstance(node, dict), f"{ctx}: each node must be a JSON object")
        _require_keys(node, ["id"], ctx)
        _require(_is_int(node["id"]), f"{ctx}.id must be an integer")
        _require(node["id"] not in node_ids, f"{ctx}: duplicate node id '{node['id']}'")
        node_ids.add(node["id"])

        if "desc" in node:
            validate_descriptor(node["desc"], f"{ctx}.desc")
        else:
            _require("type" in node, f"{ctx}: needs either 'desc' or 'type'")
            _require(node["type"] in titles, f"{ctx}: unknown node type '{node['type']}'")

    # ── Connections ─────────────────────────────────────────────────────────

    for i, conn in enumerate(data["connections"]):
        ctx = f"connections[{i}]"
        _require(isinstance(conn, dict), f"{ctx}: each connection must be a JSON object")
        _require_keys(conn, ["variant", "from", "to"], ctx)
        _require(conn["variant"] in VARIANTS, f"{ctx}.variant must be one of {sorted(VARIANTS)}")
        for end in ("from", "to"):
            ref = conn[end]
            _require(isinstance(ref, list) and len(ref) == 2 and all(_is_int(x) for x in ref),
                     f"{ctx}.{end} must be [node_id, port_index]")


__all__ = ["SchemaError", "validate", "validate_descriptor"]
