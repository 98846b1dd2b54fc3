"""Expression tree vocabulary.

Every node is a frozen dataclass, so trees are immutable, hashable and
compare structurally. The set of node kinds is closed: ``Node`` lists them all.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union


# --- Literals ---


@dataclass(frozen=True)
class Null:
    pass


@dataclass(frozen=True)
class Bool:
    value: bool


@dataclass(frozen=True)
class Number:
    value: float


@dataclass(frozen=True)
class String:
    value: str


# --- Atoms referring outward ---


@dataclass(frozen=True)
class Reference:
    name: str


@dataclass(frozen=True)
class Action:
    name: str


@dataclass(frozen=True)
class Existence:
    pass


# --- Operators ---


@dataclass(frozen=True)
class Member:
    obj: Node
    field: str


@dataclass(frozen=True)
class Binary:
    """Shared shape of the binary operator nodes. Not a node kind itself."""

    left: Node
    right: Node


@dataclass(frozen=True)
class TypeAnnotation(Binary):
    pass


@dataclass(frozen=True)
class Bind(Binary):
    pass


@dataclass(frozen=True)
class Product(Binary):
    pass


@dataclass(frozen=True)
class Morphism(Binary):
    pass


@dataclass(frozen=True)
class Choice(Binary):
    pass


@dataclass(frozen=True)
class Equality(Binary):
    pass


@dataclass(frozen=True)
class Inequality(Binary):
    pass


# --- Structures ---


@dataclass(frozen=True)
class Array:
    items: tuple[Node, ...] = ()


@dataclass(frozen=True)
class Object:
    """Ordered key/value pairs with unique keys."""

    fields: tuple[tuple[str, Node], ...] = ()

    def keys(self) -> list[str]:
        return [key for key, _ in self.fields]

    def get(self, key: str) -> Node | None:
        for k, value in self.fields:
            if k == key:
                return value
        return None


@dataclass(frozen=True)
class Similarity:
    inner: Node


@dataclass(frozen=True)
class Difference:
    inner: Node


Node = Union[
    Null,
    Bool,
    Number,
    String,
    Reference,
    Action,
    Existence,
    Member,
    TypeAnnotation,
    Bind,
    Product,
    Morphism,
    Choice,
    Equality,
    Inequality,
    Array,
    Object,
    Similarity,
    Difference,
]

LITERAL_TYPES = (Null, Bool, Number, String)
SYMBOLIC_TYPES = (Reference, Action)
BINARY_TYPES = (TypeAnnotation, Bind, Product, Morphism, Choice, Equality, Inequality)
