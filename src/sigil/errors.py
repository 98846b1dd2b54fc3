"""Custom exception hierarchy for the Sigil notation interpreter."""

from __future__ import annotations


class SigilError(Exception):
    """Base exception for all Sigil errors."""


class LexError(SigilError):
    """Raised when the tokenizer meets text it cannot turn into a token."""

    def __init__(self, message: str, pos: int, char: str | None = None) -> None:
        self.pos = pos
        self.char = char
        super().__init__(f"{message} at position {pos}")


class ParseError(SigilError):
    """Raised when a token sequence does not form a valid expression."""

    def __init__(self, message: str, pos: int, expected: str | None = None) -> None:
        self.pos = pos
        self.expected = expected
        super().__init__(f"{message} at position {pos}")


class ResolutionError(SigilError):
    """Raised when an expression cannot be expanded against a registry."""


class FieldNotFoundError(ResolutionError):
    """Raised when member access names a field the object does not have."""

    def __init__(self, field: str, available: list[str]) -> None:
        self.field = field
        self.available = available
        super().__init__(f"Field {field!r} not found (available: {', '.join(available) or 'none'})")


class NotStructuredError(ResolutionError):
    """Raised when member access targets a value that is not an object."""


class BudgetExceededError(ResolutionError):
    """Raised when deep resolution runs out of passes under the 'fail' policy."""

    def __init__(self, max_passes: int) -> None:
        self.max_passes = max_passes
        super().__init__(f"Deep resolution did not reach a fixed point within {max_passes} passes")


class NestingError(ResolutionError):
    """Raised when expansion would build a tree nested deeper than the resolver allows."""

    def __init__(self, limit: int) -> None:
        self.limit = limit
        super().__init__(f"Expansion nests deeper than {limit} levels")


class EscalatedWarning(ResolutionError):
    """Raised in place of a coded warning that the warning policy escalates."""

    def __init__(self, code: str, message: str) -> None:
        self.code = code
        super().__init__(f"[{code}] {message}")


class DefinitionError(ResolutionError):
    """Raised when a registry definition text fails to tokenize or parse."""

    def __init__(self, name: str, cause: SigilError) -> None:
        self.name = name
        super().__init__(f"Invalid definition for {name!r}: {cause}")


class SchemaError(SigilError):
    """Raised when a schema file or document cannot be loaded."""
