"""Resolution: expand references and actions against a definition registry."""

from __future__ import annotations

from collections.abc import Callable, Mapping

from sigil.ast import (
    BINARY_TYPES,
    LITERAL_TYPES,
    Action,
    Array,
    Difference,
    Existence,
    Member,
    Node,
    Object,
    Reference,
    Similarity,
)
from sigil.errors import (
    BudgetExceededError,
    DefinitionError,
    FieldNotFoundError,
    LexError,
    NestingError,
    NotStructuredError,
    ParseError,
)
from sigil.formatter import format_node
from sigil.models import ResolveMode, ResolveOptions
from sigil.parser import parse_expression
from sigil.registry import lookup
from sigil.warning_policy import emit_warning

# Deepest point in the result tree at which a definition may still be
# substituted. Parsed definitions are at most MAX_NESTING deep themselves.
MAX_RESULT_NESTING = 128


def resolve(
    node: Node,
    registry: Mapping[str, str],
    mode: ResolveMode | None = None,
    options: ResolveOptions | None = None,
) -> Node:
    """Expand ``node`` against ``registry``.

    Args:
        node: Parsed expression tree.
        registry: Name to definition text mapping. Only read, never modified.
        mode: ``"flat"`` expands every reference by exactly one lookup level;
            ``"deep"`` keeps expanding until nothing changes. Overrides
            ``options.mode`` when given.
        options: Pass budget and diagnostics settings. Defaults apply if None.

    Returns:
        The expanded tree. Undefined names and names that would re-enter a
        cycle stay symbolic.

    Raises:
        FieldNotFoundError: Member access on an object without that field.
        NotStructuredError: Member access on a non-object value.
        BudgetExceededError: Deep resolution ran out of passes and the
            options ask to fail rather than return a partial tree.
        DefinitionError: A definition text needed during expansion is invalid.
        NestingError: Expansion would substitute a definition more than
            ``MAX_RESULT_NESTING`` levels below the root.
        EscalatedWarning: The warning policy escalates W01 or W02.
    """
    if options is None:
        options = ResolveOptions()
    if mode is not None and mode != options.mode:
        options = options.model_copy(update={"mode": mode})
    return _Resolution(registry, options).run(node)


def _rebuild(node: Node, fn: Callable[..., Node], *args: object) -> Node:
    """Apply ``fn(child, *args)`` to each immediate child and rebuild the same shape."""
    if isinstance(node, BINARY_TYPES):
        return type(node)(fn(node.left, *args), fn(node.right, *args))
    if isinstance(node, Array):
        items = []
        for item in node.items:
            items.append(fn(item, *args))
        return Array(tuple(items))
    if isinstance(node, Object):
        fields = []
        for key, value in node.fields:
            fields.append((key, fn(value, *args)))
        return Object(tuple(fields))
    if isinstance(node, Similarity):
        return Similarity(fn(node.inner, *args))
    if isinstance(node, Difference):
        return Difference(fn(node.inner, *args))
    raise TypeError(f"Not a composite expression node: {node!r}")


class _Resolution:
    """State owned by a single resolve call: parse cache and diagnostics."""

    def __init__(self, registry: Mapping[str, str], options: ResolveOptions) -> None:
        self.registry = registry
        self.options = options
        self._parsed: dict[str, Node] = {}
        self._cycle_names: set[str] = set()
        self._budget_exhausted = False

    def run(self, node: Node) -> Node:
        if self.options.mode == "flat":
            return self.flat(node)

        result = self.deep(node, frozenset(), 0, 0)
        if self._budget_exhausted:
            emit_warning(
                "W01",
                policy=self.options.warning_policy,
                max_passes=self.options.max_passes,
                result=format_node(result),
            )
        return result

    def definition(self, name: str) -> Node | None:
        """Parsed definition for ``name``, or None when the name is undefined."""
        if name in self._parsed:
            return self._parsed[name]
        text = lookup(name, self.registry)
        if text is None:
            return None
        try:
            parsed = parse_expression(text)
        except (LexError, ParseError) as e:
            raise DefinitionError(name, e) from e
        self._parsed[name] = parsed
        return parsed

    # --- flat ---

    def flat(self, node: Node) -> Node:
        if isinstance(node, (Reference, Action)):
            expanded = self.definition(node.name)
            return node if expanded is None else expanded
        if isinstance(node, LITERAL_TYPES) or isinstance(node, Existence):
            return node
        if isinstance(node, Member):
            obj = self.flat(node.obj)
            value = _select(node, obj)
            return Member(obj, node.field) if value is None else value
        return _rebuild(node, self.flat)

    # --- deep ---

    def deep(self, node: Node, visited: frozenset[str], depth: int, level: int) -> Node:
        """Expand to a fixed point.

        ``depth`` counts nested expansions along the branch against the pass
        budget; ``level`` is the node's distance from the root of the result.
        """
        if isinstance(node, (Reference, Action)):
            return self._expand_symbol(node, visited, depth, level)
        if isinstance(node, LITERAL_TYPES) or isinstance(node, Existence):
            return node
        if isinstance(node, Member):
            obj = self.deep(node.obj, visited, depth, level + 1)
            value = _select(node, obj)
            if value is None:
                return Member(obj, node.field)
            return self.deep(value, visited, depth, level)
        return _rebuild(node, self.deep, visited, depth, level + 1)

    def _expand_symbol(
        self, node: Reference | Action, visited: frozenset[str], depth: int, level: int
    ) -> Node:
        name = node.name
        if name in visited:
            if name not in self._cycle_names:
                self._cycle_names.add(name)
                emit_warning("W02", policy=self.options.warning_policy, name=name)
            return node

        expanded = self.definition(name)
        if expanded is None:
            return node

        if depth >= self.options.max_passes:
            if self.options.on_budget_exhausted == "fail":
                raise BudgetExceededError(self.options.max_passes)
            self._budget_exhausted = True
            return node

        if level >= MAX_RESULT_NESTING:
            raise NestingError(MAX_RESULT_NESTING)

        return self.deep(expanded, visited | {name}, depth + 1, level)


def _select(member: Member, obj: Node) -> Node | None:
    """Pick ``member.field`` out of a resolved object.

    Returns None when ``obj`` is still symbolic, so the access stays unexpanded.
    """
    if isinstance(obj, Object):
        value = obj.get(member.field)
        if value is None:
            raise FieldNotFoundError(member.field, obj.keys())
        return value
    if isinstance(obj, (Reference, Action, Member)):
        return None
    raise NotStructuredError(
        f"Cannot access field {member.field!r} on non-object value {format_node(obj)}"
    )
