"""
Formula parsing and evaluation.

Public API:
    ExpressionModel.parse(formula, headers) -> ExpressionModel
    FunctionContext.builtin() -> FunctionContext

Example:
    >>> from fitme.core import HeaderIndex
    >>> from fitme.expression import ExpressionModel
    >>> model = ExpressionModel.parse("m * x + c", HeaderIndex.from_names(["x", "y"]))
    >>> model.params
    ('m', 'c')
    >>> model.vars
    ('x',)
"""

from fitme.expression._context import BUILTIN_FUNCTIONS, FunctionContext
from fitme.expression._tokenizer import Token, TokenKind, tokenize
from fitme.expression.model import ExpressionModel, IdentifierRole, resolve_identifiers

__all__ = [
    "ExpressionModel",
    "FunctionContext",
    "BUILTIN_FUNCTIONS",
    "IdentifierRole",
    "resolve_identifiers",
    "Token",
    "TokenKind",
    "tokenize",
]
