"""Tokenizer: turn expression text into a sequence of typed tokens."""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from enum import Enum

from sigil.errors import LexError


class TokenKind(Enum):
    # Literals
    NUMBER = "number"
    STRING = "string"
    IDENT = "identifier"
    NULL = "null"
    TRUE = "true"
    FALSE = "false"

    # Sigils
    DOLLAR = "$"
    BANG = "!"
    QUESTION = "?"

    # Operators
    DOT = "."
    COLON = ":"
    AT = "@"
    STAR = "*"
    ARROW = "->"
    PIPE = "|"
    EQ = "="
    NE = "!="

    # Punctuation
    COMMA = ","
    LBRACKET = "["
    RBRACKET = "]"
    LBRACE = "{"
    RBRACE = "}"
    LPAREN = "("
    RPAREN = ")"

    EOF = "end of input"


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    value: object = None
    pos: int = 0

    def describe(self) -> str:
        """Human-readable form used in error messages."""
        if self.kind in (TokenKind.NUMBER, TokenKind.IDENT):
            return f"{self.kind.value} {self.value!r}"
        if self.kind is TokenKind.STRING:
            return f"string {self.value!r}"
        if self.kind is TokenKind.EOF:
            return "end of input"
        return repr(self.kind.value)


_KEYWORDS: dict[str, TokenKind] = {
    "null": TokenKind.NULL,
    "true": TokenKind.TRUE,
    "false": TokenKind.FALSE,
}

_TWO_CHAR: dict[str, TokenKind] = {
    "!=": TokenKind.NE,
    "->": TokenKind.ARROW,
}

_SINGLE_CHAR: dict[str, TokenKind] = {
    "$": TokenKind.DOLLAR,
    "!": TokenKind.BANG,
    "?": TokenKind.QUESTION,
    ".": TokenKind.DOT,
    ":": TokenKind.COLON,
    "@": TokenKind.AT,
    "*": TokenKind.STAR,
    "|": TokenKind.PIPE,
    "=": TokenKind.EQ,
    ",": TokenKind.COMMA,
    "[": TokenKind.LBRACKET,
    "]": TokenKind.RBRACKET,
    "{": TokenKind.LBRACE,
    "}": TokenKind.RBRACE,
    "(": TokenKind.LPAREN,
    ")": TokenKind.RPAREN,
}

_ESCAPES: dict[str, str] = {
    '"': '"',
    "\\": "\\",
    "n": "\n",
    "t": "\t",
}

_NUMBER_RE = re.compile(r"-?[0-9]+(\.[0-9]+)?")
_IDENT_RE = re.compile(r"[A-Za-z][A-Za-z0-9_]*")


def tokenize(text: str) -> list[Token]:
    """Tokenize expression text.

    Returns:
        Tokens in source order, always terminated by an ``EOF`` token.

    Raises:
        LexError: On an unrecognized character, a ``-`` that starts neither
            ``->`` nor a negative number, or a malformed string literal.
    """
    tokens: list[Token] = []
    i = 0
    n = len(text)

    while i < n:
        c = text[i]

        if c.isspace():
            i += 1
            continue

        two = text[i : i + 2]
        if two in _TWO_CHAR:
            tokens.append(Token(_TWO_CHAR[two], two, i))
            i += 2
            continue

        if c == "-" or c.isdigit():
            m = _NUMBER_RE.match(text, i)
            if m is None:
                raise LexError(f"Unexpected character {c!r}", i, c)
            value = float(m.group(0))
            if not math.isfinite(value):
                raise LexError("Numeric literal out of range", i, c)
            tokens.append(Token(TokenKind.NUMBER, value, i))
            i = m.end()
            continue

        if c == '"':
            value, end = _read_string(text, i)
            tokens.append(Token(TokenKind.STRING, value, i))
            i = end
            continue

        if c.isalpha():
            m = _IDENT_RE.match(text, i)
            if m is None:
                raise LexError(f"Unexpected character {c!r}", i, c)
            word = m.group(0)
            kind = _KEYWORDS.get(word, TokenKind.IDENT)
            tokens.append(Token(kind, word, i))
            i = m.end()
            continue

        kind = _SINGLE_CHAR.get(c)
        if kind is None:
            raise LexError(f"Unexpected character {c!r}", i, c)
        tokens.append(Token(kind, c, i))
        i += 1

    tokens.append(Token(TokenKind.EOF, None, n))
    return tokens


def _read_string(text: str, start: int) -> tuple[str, int]:
    """Read a double-quoted literal starting at ``start``; return (value, end)."""
    chars: list[str] = []
    i = start + 1
    n = len(text)
    while i < n:
        c = text[i]
        if c == '"':
            return "".join(chars), i + 1
        if c == "\\":
            if i + 1 >= n:
                break
            esc = text[i + 1]
            if esc not in _ESCAPES:
                raise LexError(f"Unknown escape sequence '\\{esc}'", i, esc)
            chars.append(_ESCAPES[esc])
            i += 2
            continue
        chars.append(c)
        i += 1
    raise LexError("Unterminated string literal", start, '"')
