"""Canonical tagged text rendering of expression trees.

Every rendered node ends with ``:<tag>`` naming its syntactic category, so a
formatted result always shows which parts are still symbolic (``:ref`` and
``:action``) and which were expanded to values.
"""

from __future__ import annotations

import json
import math
from decimal import Decimal

from sigil.ast import (
    Action,
    Array,
    Bind,
    Bool,
    Choice,
    Difference,
    Equality,
    Existence,
    Inequality,
    Member,
    Morphism,
    Node,
    Null,
    Number,
    Object,
    Product,
    Reference,
    Similarity,
    String,
    TypeAnnotation,
)

# Binary node class -> (operator text, tag)
BINARY_SYNTAX: dict[type, tuple[str, str]] = {
    TypeAnnotation: (":", "annotation"),
    Bind: ("@", "bind"),
    Product: ("*", "product"),
    Morphism: ("->", "morphism"),
    Choice: ("|", "choice"),
    Equality: ("=", "equality"),
    Inequality: ("!=", "inequality"),
}


def format_number(value: float) -> str:
    """Render a number in a form the tokenizer reads back to the same value.

    The tokenizer never produces non-finite values; nodes built by hand that
    hold one render as ``inf``, ``-inf`` or ``nan``, which do not read back.
    """
    if not math.isfinite(value):
        return repr(value)
    if value.is_integer() and abs(value) < 1e15:
        return str(int(value))
    return format(Decimal(repr(value)), "f")


def format_node(node: Node) -> str:
    """Render ``node`` as canonical tagged text. Pure and deterministic."""
    if isinstance(node, Null):
        return "null:null"
    if isinstance(node, Bool):
        return f"{'true' if node.value else 'false'}:bool"
    if isinstance(node, Number):
        return f"{format_number(node.value)}:number"
    if isinstance(node, String):
        return f"{json.dumps(node.value, ensure_ascii=False)}:string"
    if isinstance(node, Reference):
        return f"${node.name}:ref"
    if isinstance(node, Action):
        return f"!{node.name}:action"
    if isinstance(node, Existence):
        return "?:existence"
    if isinstance(node, Member):
        return f"({format_node(node.obj)}).{node.field}:member"
    syntax = BINARY_SYNTAX.get(type(node))
    if syntax is not None:
        op, tag = syntax
        return f"({format_node(node.left)} {op} {format_node(node.right)}):{tag}"
    if isinstance(node, Array):
        return "[" + ", ".join(format_node(item) for item in node.items) + "]:array"
    if isinstance(node, Object):
        pairs = ", ".join(
            f"{json.dumps(key, ensure_ascii=False)}: {format_node(value)}"
            for key, value in node.fields
        )
        return "{" + pairs + "}:object"
    if isinstance(node, Similarity):
        return f"[{format_node(node.inner)}]:similarity"
    if isinstance(node, Difference):
        return f"{{{format_node(node.inner)}}}:difference"
    raise TypeError(f"Not an expression node: {node!r}")


def is_fully_resolved(node: Node) -> bool:
    """True when no reference or action remains anywhere in ``node``."""
    if isinstance(node, (Reference, Action)):
        return False
    if isinstance(node, Member):
        return False
    if isinstance(node, Array):
        return all(is_fully_resolved(item) for item in node.items)
    if isinstance(node, Object):
        return all(is_fully_resolved(value) for _, value in node.fields)
    if isinstance(node, (Similarity, Difference)):
        return is_fully_resolved(node.inner)
    if type(node) in BINARY_SYNTAX:
        return is_fully_resolved(node.left) and is_fully_resolved(node.right)
    return True
