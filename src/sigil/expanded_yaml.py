"""Expanded YAML emission of resolved expression trees."""

from __future__ import annotations

from io import StringIO

from ruamel.yaml import YAML

from sigil.ast import (
    Action,
    Array,
    Bool,
    Difference,
    Existence,
    Member,
    Node,
    Null,
    Number,
    Object,
    Reference,
    Similarity,
    String,
)
from sigil.formatter import BINARY_SYNTAX


def _escape_key(key: str) -> str:
    return "!" + key if key.startswith("!") else key


def to_data(node: Node) -> object:
    """Convert a tree into plain YAML/JSON-compatible data.

    JSON-like values map directly: objects to mappings, arrays to lists and
    literals to scalars. Every other node becomes a single-key mapping whose key
    is its tag prefixed with ``!``::

        $user        -> {"!ref": "user"}
        ?            -> {"!existence": null}
        $a * $b      -> {"!product": [{"!ref": "a"}, {"!ref": "b"}]}
        $e.id        -> {"!member": {"object": {"!ref": "e"}, "field": "id"}}

    Object keys that start with ``!`` get one more ``!`` so a user object can
    never be read back as a tagged node.
    """
    if isinstance(node, Null):
        return None
    if isinstance(node, (Bool, String)):
        return node.value
    if isinstance(node, Number):
        value = node.value
        return int(value) if value.is_integer() else value
    if isinstance(node, Reference):
        return {"!ref": node.name}
    if isinstance(node, Action):
        return {"!action": node.name}
    if isinstance(node, Existence):
        return {"!existence": None}
    if isinstance(node, Member):
        return {"!member": {"object": to_data(node.obj), "field": node.field}}
    syntax = BINARY_SYNTAX.get(type(node))
    if syntax is not None:
        _, tag = syntax
        return {f"!{tag}": [to_data(node.left), to_data(node.right)]}
    if isinstance(node, Array):
        return [to_data(item) for item in node.items]
    if isinstance(node, Object):
        return {_escape_key(key): to_data(value) for key, value in node.fields}
    if isinstance(node, Similarity):
        return {"!similarity": to_data(node.inner)}
    if isinstance(node, Difference):
        return {"!difference": to_data(node.inner)}
    raise TypeError(f"Not an expression node: {node!r}")


def render_expanded_yaml(node: Node) -> str:
    """Render a tree as block-style YAML for inspection/debugging."""
    yml = YAML(typ="rt")
    yml.allow_unicode = True
    yml.default_flow_style = False
    stream = StringIO()
    yml.dump(to_data(node), stream)
    return stream.getvalue()
