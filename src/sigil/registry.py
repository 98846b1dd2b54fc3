"""Definition registry: an immutable, ordered-merge mapping of name to definition text."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from types import MappingProxyType
from typing import Union

DefinitionSource = Union[Mapping[str, str], Iterable[tuple[str, str]]]

# Primitive definitions shipped with the core; every other source may shadow them.
BUILTINS: Mapping[str, str] = MappingProxyType(
    {
        "null": "null",
        "bool": "false",
        "int": "0",
        "float": "0",
        "number": "0",
        "string": '""',
        "any": "?",
    }
)


class Registry(Mapping[str, str]):
    """Read-only mapping of definition names to raw, unparsed definition text.

    A registry is never mutated after construction. Overrides are expressed by
    building a new registry with :func:`merge`.
    """

    __slots__ = ("_entries",)

    def __init__(self, entries: DefinitionSource = ()) -> None:
        self._entries = MappingProxyType(dict(_pairs(entries)))

    def __getitem__(self, name: str) -> str:
        return self._entries[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"Registry({dict(self._entries)!r})"

    def __hash__(self) -> int:
        return hash(frozenset(self._entries.items()))


def _pairs(source: DefinitionSource) -> Iterable[tuple[str, str]]:
    items = source.items() if isinstance(source, Mapping) else source
    for name, text in items:
        if not isinstance(name, str) or not isinstance(text, str):
            raise TypeError(f"Registry entries must be (str, str) pairs, got ({name!r}, {text!r})")
        yield name, text


def merge(base: DefinitionSource, overlay: DefinitionSource) -> Registry:
    """Return a new registry with every entry of ``base``, overridden by ``overlay``.

    Keys absent from ``overlay`` are always kept; there is no deletion.
    """
    entries = dict(_pairs(base))
    entries.update(_pairs(overlay))
    return Registry(entries)


def lookup(name: str, registry: Mapping[str, str]) -> str | None:
    """Return the raw definition text for ``name``, or None if it is undefined."""
    return registry.get(name)


def build_registry(
    builtins: DefinitionSource = BUILTINS,
    schema: DefinitionSource = (),
    inline: DefinitionSource = (),
    user_types: DefinitionSource = (),
) -> Registry:
    """Build the effective registry from its four sources.

    Sources are applied in fixed order (built-ins, external schema, inline
    definitions, user compositional types); later sources win on conflict.
    """
    registry = Registry(builtins)
    for source in (schema, inline, user_types):
        registry = merge(registry, source)
    return registry
