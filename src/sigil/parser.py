"""Precedence-climbing parser for Sigil expressions.

Grammar (precedence high to low, all operators left associative):

    member      expr "." IDENT              8
    annotation  expr ":" expr               7
    bind        expr "@" expr               6
    product     expr "*" expr               5
    morphism    expr "->" expr              4
    choice      expr "|" expr               3
    equality    expr ("=" | "!=") expr      2

    atom        literal | "$" IDENT | "!" IDENT | "?" | "(" expr ")"
                | "[" ... "]" | "{" ... "}"

Bracket contents are classified before parsing: ``[a, b]`` is an array and
``[a]`` a similarity; ``{"k": v}`` is an object and ``{a}`` a difference.

Each parse function takes the token sequence and a start index and returns the
node, the index after it and the height of the node. Nothing is mutated, so a
failed parse leaves no state behind. Trees deeper than ``MAX_NESTING`` are
rejected with a ``ParseError``.
"""

from __future__ import annotations

from collections.abc import Sequence

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
from sigil.errors import ParseError
from sigil.tokenizer import Token, TokenKind, tokenize

MEMBER_PRECEDENCE = 8

# Binary operator token -> (precedence, node class)
BINARY_OPERATORS: dict[TokenKind, tuple[int, type]] = {
    TokenKind.COLON: (7, TypeAnnotation),
    TokenKind.AT: (6, Bind),
    TokenKind.STAR: (5, Product),
    TokenKind.ARROW: (4, Morphism),
    TokenKind.PIPE: (3, Choice),
    TokenKind.EQ: (2, Equality),
    TokenKind.NE: (2, Inequality),
}

_OPENERS = {TokenKind.LBRACKET, TokenKind.LBRACE, TokenKind.LPAREN}
_CLOSERS = {TokenKind.RBRACKET, TokenKind.RBRACE, TokenKind.RPAREN}

# Deepest tree the parser will build. Counts bracket, paren, operator and
# member levels alike.
MAX_NESTING = 64

# (node, index after it, height of node above its leaves)
_Result = tuple[Node, int, int]


def parse_expression(text: str) -> Node:
    """Tokenize and parse expression text.

    Raises:
        LexError: If the text cannot be tokenized.
        ParseError: If the tokens do not form exactly one expression, or nest
            deeper than ``MAX_NESTING``.
    """
    return parse_tokens(tokenize(text))


def parse_tokens(tokens: Sequence[Token]) -> Node:
    """Parse a full token sequence (ending in ``EOF``) into one expression."""
    tokens = tuple(tokens)
    if not tokens or tokens[-1].kind is not TokenKind.EOF:
        raise ParseError("Token sequence is not terminated", _end_pos(tokens), "end of input")

    node, pos, _ = _parse_expr(tokens, 0, 0, 0)
    tok = tokens[pos]
    if tok.kind is not TokenKind.EOF:
        raise ParseError(f"Unexpected {tok.describe()} after expression", tok.pos, "end of input")
    return node


def _end_pos(tokens: Sequence[Token]) -> int:
    return tokens[-1].pos if tokens else 0


def _expect(tokens: Sequence[Token], pos: int, kind: TokenKind) -> int:
    tok = tokens[pos]
    if tok.kind is not kind:
        raise ParseError(f"Expected {kind.value!r}, got {tok.describe()}", tok.pos, kind.value)
    return pos + 1


def _check_nesting(tok: Token, level: int) -> None:
    if level > MAX_NESTING:
        raise ParseError(f"Expression nested deeper than {MAX_NESTING} levels", tok.pos)


def _parse_expr(tokens: Sequence[Token], pos: int, min_prec: int, level: int) -> _Result:
    """Precedence climbing over the binary and member operators.

    ``level`` is how many nodes will sit above the result once it is attached.
    """
    _check_nesting(tokens[pos], level)
    left, pos, height = _parse_atom(tokens, pos, level)

    while True:
        tok = tokens[pos]

        if tok.kind is TokenKind.DOT:
            if MEMBER_PRECEDENCE < min_prec:
                break
            name_tok = tokens[pos + 1]
            if name_tok.kind is not TokenKind.IDENT:
                raise ParseError(
                    f"Member access needs a field name, got {name_tok.describe()}",
                    name_tok.pos,
                    "identifier",
                )
            left = Member(left, name_tok.value)
            height += 1
            _check_nesting(tok, level + height)
            pos += 2
            continue

        op = BINARY_OPERATORS.get(tok.kind)
        if op is None:
            break
        prec, node_cls = op
        if prec < min_prec:
            break
        right, pos, right_height = _parse_expr(tokens, pos + 1, prec + 1, level + 1)
        left = node_cls(left, right)
        height = max(height, right_height) + 1
        _check_nesting(tok, level + height)

    return left, pos, height


def _parse_atom(tokens: Sequence[Token], pos: int, level: int) -> _Result:
    tok = tokens[pos]
    kind = tok.kind

    if kind is TokenKind.NULL:
        return Null(), pos + 1, 0
    if kind is TokenKind.TRUE:
        return Bool(True), pos + 1, 0
    if kind is TokenKind.FALSE:
        return Bool(False), pos + 1, 0
    if kind is TokenKind.NUMBER:
        return Number(tok.value), pos + 1, 0
    if kind is TokenKind.STRING:
        return String(tok.value), pos + 1, 0
    if kind is TokenKind.QUESTION:
        return Existence(), pos + 1, 0
    if kind is TokenKind.DOLLAR:
        return Reference(_sigil_name(tokens, pos)), pos + 2, 0
    if kind is TokenKind.BANG:
        return Action(_sigil_name(tokens, pos)), pos + 2, 0
    if kind is TokenKind.LPAREN:
        # Grouping adds no node but still counts as a level.
        node, pos, height = _parse_expr(tokens, pos + 1, 0, level + 1)
        return node, _expect(tokens, pos, TokenKind.RPAREN), height
    if kind is TokenKind.LBRACKET:
        return _parse_square(tokens, pos, level)
    if kind is TokenKind.LBRACE:
        return _parse_curly(tokens, pos, level)

    raise ParseError(f"Unexpected {tok.describe()}", tok.pos, "expression")


def _sigil_name(tokens: Sequence[Token], pos: int) -> str:
    sigil = tokens[pos]
    name_tok = tokens[pos + 1]
    if name_tok.kind is not TokenKind.IDENT:
        raise ParseError(
            f"Expected a name after {sigil.kind.value!r}, got {name_tok.describe()}",
            name_tok.pos,
            "identifier",
        )
    return name_tok.value


def _has_top_level_comma(tokens: Sequence[Token], start: int) -> bool:
    """Scan from just inside an opening bracket to its match for a depth-0 comma."""
    depth = 0
    for tok in tokens[start:]:
        if tok.kind in _OPENERS:
            depth += 1
        elif tok.kind in _CLOSERS:
            if depth == 0:
                return False
            depth -= 1
        elif tok.kind is TokenKind.COMMA and depth == 0:
            return True
        elif tok.kind is TokenKind.EOF:
            return False
    return False


def _parse_square(tokens: Sequence[Token], pos: int, level: int) -> _Result:
    """``[]`` empty array, ``[a, b, ...]`` array, ``[a]`` similarity."""
    pos += 1
    if tokens[pos].kind is TokenKind.RBRACKET:
        return Array(()), pos + 1, 0

    if not _has_top_level_comma(tokens, pos):
        inner, pos, height = _parse_expr(tokens, pos, 0, level + 1)
        return Similarity(inner), _expect(tokens, pos, TokenKind.RBRACKET), height + 1

    items: list[Node] = []
    height = 0
    while True:
        item, pos, item_height = _parse_expr(tokens, pos, 0, level + 1)
        items.append(item)
        height = max(height, item_height)
        if tokens[pos].kind is TokenKind.COMMA:
            pos += 1
            continue
        pos = _expect(tokens, pos, TokenKind.RBRACKET)
        return Array(tuple(items)), pos, height + 1


def _parse_curly(tokens: Sequence[Token], pos: int, level: int) -> _Result:
    """``{}`` empty object, ``{"k": v, ...}`` object, ``{a}`` difference."""
    pos += 1
    if tokens[pos].kind is TokenKind.RBRACE:
        return Object(()), pos + 1, 0

    if not (tokens[pos].kind is TokenKind.STRING and tokens[pos + 1].kind is TokenKind.COLON):
        inner, pos, height = _parse_expr(tokens, pos, 0, level + 1)
        return Difference(inner), _expect(tokens, pos, TokenKind.RBRACE), height + 1

    fields: list[tuple[str, Node]] = []
    seen: set[str] = set()
    height = 0
    while True:
        key_tok = tokens[pos]
        if key_tok.kind is not TokenKind.STRING:
            raise ParseError(
                f"Expected an object key string, got {key_tok.describe()}",
                key_tok.pos,
                "string",
            )
        if key_tok.value in seen:
            raise ParseError(f"Duplicate object key {key_tok.value!r}", key_tok.pos)
        seen.add(key_tok.value)
        pos = _expect(tokens, pos + 1, TokenKind.COLON)
        value, pos, value_height = _parse_expr(tokens, pos, 0, level + 1)
        fields.append((key_tok.value, value))
        height = max(height, value_height)
        if tokens[pos].kind is TokenKind.COMMA:
            pos += 1
            continue
        pos = _expect(tokens, pos, TokenKind.RBRACE)
        return Object(tuple(fields)), pos, height + 1
