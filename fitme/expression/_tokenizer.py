"""
Formula tokenizer and grammar check.

First pass of parsing. The formula is split into numbers, identifiers,
operators and parentheses, then walked with a two-state machine
(expecting an operand / expecting an operator) so that syntax errors are
reported at the offset of the offending token rather than wherever the
expression builder happens to notice.

Grammar:
    expr    := unary (binop unary)*
    unary   := ('+' | '-')* primary
    primary := NUMBER | NAME | FUNC '(' expr ')' | '(' expr ')'
    binop   := '+' | '-' | '*' | '/' | '^' | '**'
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from enum import Enum
from typing import Callable

from fitme.core.exceptions import ParseError


class TokenKind(Enum):
    NUMBER = 'number'
    NAME = 'name'
    OPERATOR = 'operator'
    LPAREN = 'lparen'
    RPAREN = 'rparen'


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    text: str
    position: int


_TOKEN_RE = re.compile(
    r"""
      (?P<ws>\s+)
    | (?P<number>(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)
    | (?P<name>[A-Za-z_][A-Za-z0-9_]*)
    | (?P<operator>\*\*|[-+*/^])
    | (?P<lparen>\()
    | (?P<rparen>\))
    """,
    re.VERBOSE,
)

_UNARY = frozenset({'+', '-'})


def tokenize(formula: str) -> list[Token]:
    """
    Split formula into tokens.

    Raises:
        ParseError: On a character that starts no token, or a number
            literal too large for a float
    """
    tokens: list[Token] = []
    pos = 0
    while pos < len(formula):
        m = _TOKEN_RE.match(formula, pos)
        if m is None:
            raise ParseError(
                f"Unexpected character '{formula[pos]}' at byte {pos}.",
                formula=formula,
                position=pos,
            )
        kind = m.lastgroup
        if kind == 'number' and math.isinf(float(m.group())):
            raise ParseError(
                f"Number out of range at byte {pos}.",
                formula=formula,
                position=pos,
            )
        if kind != 'ws':
            tokens.append(Token(TokenKind(kind), m.group(), pos))
        pos = m.end()
    return tokens


def check_grammar(
    tokens: list[Token],
    formula: str,
    is_function: Callable[[str], bool],
) -> None:
    """
    Validate token order.

    Args:
        tokens: Output of tokenize()
        formula: Original text, for error reporting
        is_function: Predicate naming the callable identifiers

    Raises:
        ParseError: With the 0-based position of the first bad token
    """
    if not tokens:
        raise ParseError("Empty expression.", formula=formula, position=0)

    def unexpected(tok: Token) -> ParseError:
        return ParseError(
            f"Unexpected token at byte {tok.position}.",
            formula=formula,
            position=tok.position,
        )

    expect_operand = True
    open_parens: list[int] = []
    i = 0
    while i < len(tokens):
        tok = tokens[i]
        if expect_operand:
            if tok.kind is TokenKind.NUMBER:
                expect_operand = False
            elif tok.kind is TokenKind.NAME:
                nxt = tokens[i + 1] if i + 1 < len(tokens) else None
                called = nxt is not None and nxt.kind is TokenKind.LPAREN
                if is_function(tok.text):
                    if not called:
                        raise ParseError(
                            f"Function '{tok.text}' at byte {tok.position} "
                            f"must be called with parentheses.",
                            formula=formula,
                            position=tok.position,
                        )
                    open_parens.append(nxt.position)
                    i += 2
                    continue
                if called:
                    raise ParseError(
                        f"Unknown function '{tok.text}' at byte {tok.position}.",
                        formula=formula,
                        position=tok.position,
                    )
                expect_operand = False
            elif tok.kind is TokenKind.LPAREN:
                open_parens.append(tok.position)
            elif tok.kind is TokenKind.OPERATOR and tok.text in _UNARY:
                pass
            else:
                raise unexpected(tok)
        else:
            if tok.kind is TokenKind.OPERATOR:
                expect_operand = True
            elif tok.kind is TokenKind.RPAREN and open_parens:
                open_parens.pop()
            else:
                raise unexpected(tok)
        i += 1

    if expect_operand:
        raise ParseError(
            "Unexpected end of expression.",
            formula=formula,
            position=len(formula),
        )
    if open_parens:
        raise ParseError(
            f"Unclosed parenthesis at byte {open_parens[-1]}.",
            formula=formula,
            position=open_parens[-1],
        )
