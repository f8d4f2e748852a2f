"""
nodescript compiler — Code Templates & Language Profiles
========================================================
Node implementations carry a code template per target language. The
generator fills the template's placeholders:

    ${port:NAME}    value expression for input data port NAME
                    (bound variable of the connected producer, or a literal
                    of the port default, or the language null)
    ${field:NAME}   literal of field NAME's current value
    ${out:NAME}     variable bound to this node's output port NAME
    $$              a literal "$"

A LanguageProfile knows how to spell literals, comments, imports,
assertions and scalar conversions in one target language.

Adding a target language
------------------------
1. Build a LanguageProfile.
2. Register: register_language(profile)
"""

from __future__ import annotations

import json
import math
import re
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from nodescript.core.Types import TypeTag, Value, ValueType

from .errors import UnknownLanguageError


# ── Code writer ───────────────────────────────────────────────────────────────

class CodeWriter:
    """Simple line accumulator."""

    def __init__(self, comment_prefix: str = "#"):
        self._lines: List[str] = []
        self._comment_prefix = comment_prefix

    def writeln(self, line: str = "") -> "CodeWriter":
        self._lines.append(line)
        return self

    def blank(self) -> "CodeWriter":
        return self.writeln()

    def comment(self, text: str) -> "CodeWriter":
        return self.writeln(f"{self._comment_prefix} {text}")

    def extend(self, lines: List[str]) -> "CodeWriter":
        for line in lines:
            self.writeln(line)
        return self

    def lines(self) -> List[str]:
        return self._lines

    def result(self) -> str:
        return "\n".join(self._lines)


# ── Language profiles ─────────────────────────────────────────────────────────

def _json_quote(text: str) -> str:
    return json.dumps(text, ensure_ascii=False)


_LUA_ESCAPES = {"\\": "\\\\", "\"": "\\\"", "\n": "\\n", "\r": "\\r", "\t": "\\t"}


def _lua_quote(text: str) -> str:
    # Lua has no \uXXXX escape; other control characters use \ddd
    out = []
    for ch in text:
        if ch in _LUA_ESCAPES:
            out.append(_LUA_ESCAPES[ch])
        elif ord(ch) < 32 or ord(ch) == 127:
            out.append(f"\\{ord(ch):03d}")
        else:
            out.append(ch)
    return "\"" + "".join(out) + "\""


@dataclass(frozen=True)
class LanguageProfile:
    name: str
    comment_prefix: str
    true_literal: str
    false_literal: str
    null_literal: str
    import_format: Callable[[str], str]
    assert_format: str
    # target scalar type → conversion expression around "{}"
    conversions: Dict[TypeTag, str] = field(default_factory=dict)
    quote_string: Callable[[str], str] = _json_quote
    inf_literal: str = "float(\"inf\")"
    nan_literal: str = "float(\"nan\")"

    def import_line(self, module: str) -> str:
        return self.import_format(module)

    def assertion(self, expr: str) -> str:
        return self.assert_format.format(expr)

    def writer(self) -> CodeWriter:
        return CodeWriter(comment_prefix=self.comment_prefix)


def _python_import(module: str) -> str:
    # Full statements pass through untouched
    if module.startswith(("import ", "from ")):
        return module
    return f"import {module}"


def _lua_import(module: str) -> str:
    if module.startswith("local "):
        return module
    local_name = module.rsplit(".", 1)[-1]
    return f'local {local_name} = require("{module}")'


PYTHON = LanguageProfile(
    name="python",
    comment_prefix="#",
    true_literal="True",
    false_literal="False",
    null_literal="None",
    import_format=_python_import,
    assert_format="assert {}",
    conversions={
        TypeTag.BOOL: "bool({})",
        TypeTag.INT: "int({})",
        TypeTag.FLOAT: "float({})",
        TypeTag.STRING: "str({})",
    },
)

LUA = LanguageProfile(
    name="lua",
    comment_prefix="--",
    true_literal="true",
    false_literal="false",
    null_literal="nil",
    import_format=_lua_import,
    assert_format="assert({})",
    conversions={
        TypeTag.BOOL: "({} and true or false)",
        TypeTag.INT: "math.floor(tonumber({}))",
        TypeTag.FLOAT: "tonumber({})",
        TypeTag.STRING: "tostring({})",
    },
    quote_string=_lua_quote,
    inf_literal="math.huge",
    nan_literal="(0/0)",
)

LANGUAGE_REGISTRY: Dict[str, LanguageProfile] = {
    PYTHON.name: PYTHON,
    LUA.name: LUA,
}


def register_language(profile: LanguageProfile) -> None:
    LANGUAGE_REGISTRY[profile.name] = profile


def get_language(name: str) -> LanguageProfile:
    profile = LANGUAGE_REGISTRY.get(name)
    if profile is None:
        raise UnknownLanguageError(name)
    return profile


# ── Literal rendering & conversion ────────────────────────────────────────────

def render_literal(value: Optional[Value], profile: LanguageProfile) -> str:
    if value is None:
        return profile.null_literal

    tag = value.type.tag
    if tag == TypeTag.BOOL:
        return profile.true_literal if value.payload else profile.false_literal
    if tag == TypeTag.INT:
        return str(int(value.payload))
    if tag == TypeTag.FLOAT:
        number = float(value.payload)
        if math.isnan(number):
            return profile.nan_literal
        if math.isinf(number):
            return profile.inf_literal if number > 0 else f"-{profile.inf_literal}"
        return repr(number)
    if tag == TypeTag.STRING:
        return profile.quote_string(value.payload)
    # Custom values carry their own source text
    return str(value.payload)


def convert(expr: str,
            source: Optional[ValueType],
            target: ValueType,
            profile: LanguageProfile) -> str:
    """
    Wrap `expr` in a conversion when a scalar producer type differs from the
    scalar type the consumer declares. Custom and multi types pass through.
    """
    if source is None or target.includes(source):
        return expr
    if not (source.is_scalar() and target.is_scalar()):
        return expr
    pattern = profile.conversions.get(target.tag)
    if pattern is None:
        return expr
    return pattern.format(expr)


# ── Identifiers ───────────────────────────────────────────────────────────────

_UNSAFE = re.compile(r"[^0-9a-zA-Z_]+")


def safe_name(name: str) -> str:
    """Convert a title or port name to a safe identifier fragment."""
    safe = _UNSAFE.sub("_", name.strip().lower()).strip("_")
    return safe or "node"


def var_name(title: str, node_id: int, port_name: str) -> str:
    return f"{safe_name(title)}_{node_id}_{safe_name(port_name)}"


# ── Placeholder substitution ──────────────────────────────────────────────────

PLACEHOLDER = re.compile(r"\$\$|\$\{(port|field|out):([^}]*)\}")


def substitute(template: str, resolve: Callable[[str, str], str]) -> str:
    """Replace every placeholder via resolve(kind, name)."""

    def _replace(match: "re.Match[str]") -> str:
        if match.group(0) == "$$":
            return "$"
        return resolve(match.group(1), match.group(2).strip())

    return PLACEHOLDER.sub(_replace, template)


def placeholders(template: str) -> List[tuple]:
    """(kind, name) pairs referenced by a template, in order of appearance."""
    return [
        (m.group(1), m.group(2).strip())
        for m in PLACEHOLDER.finditer(template)
        if m.group(0) != "$$"
    ]


__all__ = [
    "CodeWriter",
    "LanguageProfile",
    "PYTHON",
    "LUA",
    "LANGUAGE_REGISTRY",
    "register_language",
    "get_language",
    "render_literal",
    "convert",
    "safe_name",
    "var_name",
    "substitute",
    "placeholders",
]
