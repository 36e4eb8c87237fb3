"""
Tests for the formula tokenizer and grammar check.

Offsets are 0-based character positions into the formula text.
"""

import pytest

from fitme.core.exceptions import ParseError
from fitme.expression._context import FunctionContext
from fitme.expression._tokenizer import Token, TokenKind, check_grammar, tokenize


def check(formula):
    tokens = tokenize(formula)
    check_grammar(tokens, formula, FunctionContext.builtin().is_function)
    return tokens


# ═══════════════════════════════════════════════════════════════════════
# Tokenizing
# ═══════════════════════════════════════════════════════════════════════


class TestTokenize:

    def test_simple(self):
        assert tokenize("m * x + c") == [
            Token(TokenKind.NAME, "m", 0),
            Token(TokenKind.OPERATOR, "*", 2),
            Token(TokenKind.NAME, "x", 4),
            Token(TokenKind.OPERATOR, "+", 6),
            Token(TokenKind.NAME, "c", 8),
        ]

    @pytest.mark.parametrize("text", ["1", "1.5", ".5", "1.", "1e-3", "2.5E+10"])
    def test_numbers(self, text):
        tokens = tokenize(text)
        assert tokens == [Token(TokenKind.NUMBER, text, 0)]

    def test_double_star_is_one_operator(self):
        assert [t.text for t in tokenize("x**2")] == ["x", "**", "2"]

    def test_caret(self):
        assert [t.kind for t in tokenize("x^2")] == [
            TokenKind.NAME, TokenKind.OPERATOR, TokenKind.NUMBER,
        ]

    def test_number_then_name(self):
        assert [(t.kind, t.text) for t in tokenize("2x")] == [
            (TokenKind.NUMBER, "2"), (TokenKind.NAME, "x"),
        ]

    def test_identifiers_with_digits_and_underscores(self):
        assert [t.text for t in tokenize("_a1 + b_2")] == ["_a1", "+", "b_2"]

    def test_unknown_character(self):
        with pytest.raises(ParseError) as exc_info:
            tokenize("a $ b")
        assert exc_info.value.position == 2
        assert "'$'" in str(exc_info.value)

    @pytest.mark.parametrize("formula, position", [
        ("a * 1e400", 4),
        ("1" + "0" * 400 + " * a", 0),
    ])
    def test_number_out_of_range(self, formula, position):
        with pytest.raises(ParseError) as exc_info:
            tokenize(formula)
        assert exc_info.value.position == position
        assert str(exc_info.value) == f"Number out of range at byte {position}."

    def test_tiny_number_is_accepted(self):
        assert tokenize("1e-400")[0] == Token(TokenKind.NUMBER, "1e-400", 0)


# ═══════════════════════════════════════════════════════════════════════
# Grammar
# ═══════════════════════════════════════════════════════════════════════


class TestGrammar:

    @pytest.mark.parametrize("formula", [
        "m * x + c",
        "-a",
        "--a + +b",
        "a * -x",
        "(a + b) * (c - d)",
        "sin(x) + ln(abs(x))",
        "a ^ -2",
        "exp(-(x - m) ^ 2 / s)",
    ])
    def test_valid(self, formula):
        check(formula)

    def test_dangling_operator_reports_token(self):
        with pytest.raises(ParseError) as exc_info:
            check("3 * 2x +")
        assert exc_info.value.position == 5
        assert str(exc_info.value) == "Unexpected token at byte 5."
        assert exc_info.value.formula == "3 * 2x +"

    def test_end_of_expression(self):
        with pytest.raises(ParseError) as exc_info:
            check("a +")
        assert exc_info.value.position == 3
        assert "Unexpected end of expression" in str(exc_info.value)

    def test_empty(self):
        with pytest.raises(ParseError, match="Empty expression"):
            check("   ")

    def test_unclosed_parenthesis(self):
        with pytest.raises(ParseError) as exc_info:
            check("a * (b + (c)")
        assert exc_info.value.position == 4

    def test_unmatched_close(self):
        with pytest.raises(ParseError) as exc_info:
            check("a + b)")
        assert exc_info.value.position == 5

    def test_empty_parentheses(self):
        with pytest.raises(ParseError) as exc_info:
            check("a * ()")
        assert exc_info.value.position == 5

    def test_two_operators(self):
        with pytest.raises(ParseError) as exc_info:
            check("a * / b")
        assert exc_info.value.position == 4

    def test_unknown_function(self):
        with pytest.raises(ParseError, match="Unknown function 'foo'") as exc_info:
            check("1 + foo(x)")
        assert exc_info.value.position == 4

    def test_function_needs_parentheses(self):
        with pytest.raises(ParseError, match="must be called") as exc_info:
            check("a * sin")
        assert exc_info.value.position == 4

    def test_function_names_are_case_sensitive(self):
        # SIN is an ordinary identifier, so calling it is an unknown function
        with pytest.raises(ParseError, match="Unknown function 'SIN'"):
            check("SIN(x)")
        check("SIN * x")
