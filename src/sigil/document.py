"""Split a Sigil document into its declarations and trailing expression.

A document is a sequence of lines::

    # comment
    int = 0
    type id = $int * $unique
    $id

``name = text`` lines are inline definitions and ``type name = text`` lines
are user compositional types. Every other non-blank line belongs to the
expression. A bare identifier can never start an expression, so a line that
opens with ``name =`` is always a declaration.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from sigil.errors import SchemaError

_DECLARATION_RE = re.compile(r"^\s*(?:(type)\s+)?([A-Za-z][A-Za-z0-9_]*)\s*=(?!=)\s*(.*?)\s*$")


@dataclass(frozen=True)
class Document:
    expression: str
    inline: dict[str, str] = field(default_factory=dict)
    user_types: dict[str, str] = field(default_factory=dict)


def parse_declaration(line: str) -> tuple[bool, str, str] | None:
    """Match a single declaration line.

    Returns:
        ``(is_user_type, name, definition_text)``, or None if the line is not
        a declaration.
    """
    m = _DECLARATION_RE.match(line)
    if m is None:
        return None
    is_type, name, definition = m.groups()
    return is_type is not None, name, definition


def split_document(text: str) -> Document:
    """Separate declarations from the expression text.

    Later declarations of the same name replace earlier ones.

    Raises:
        SchemaError: If a declaration has no definition text or no expression remains.
    """
    inline: dict[str, str] = {}
    user_types: dict[str, str] = {}
    expression_lines: list[str] = []

    for lineno, line in enumerate(text.splitlines(), start=1):
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        declaration = parse_declaration(line)
        if declaration is None:
            expression_lines.append(stripped)
            continue
        is_type, name, definition = declaration
        if not definition:
            raise SchemaError(f"Line {lineno}: declaration of {name!r} has no definition")
        (user_types if is_type else inline)[name] = definition

    if not expression_lines:
        raise SchemaError("Document contains no expression")
    return Document(expression=" ".join(expression_lines), inline=inline, user_types=user_types)
