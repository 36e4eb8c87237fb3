"""
Expression model: parse a formula once, evaluate it many times.

A formula such as `m * x + c` is the right-hand side of `target = ...`.
Parsing resolves every identifier to exactly one role:

    FUNCTION   a name in the FunctionContext (checked first, so a column
               called `sin` never shadows the function)
    VARIABLE   matches a header, ignoring case and whitespace; its value
               comes from the current row
    PARAMETER  anything else; its value is estimated by the solver

Parameter order is first-occurrence order in the formula, and that order is
authoritative for how callers interpret the solver's output vector.

The resolved formula is built into a sympy expression and compiled with
sympy.lambdify to a numpy function of (params..., variables...). Evaluation
is value-in/value-out: the model holds no scratch state, so re-evaluating
any (params, row) pair is always safe and order-independent.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Sequence

import numpy as np
import sympy as sp
from numpy.typing import ArrayLike, NDArray

from fitme.core.compute.probes import starting_candidates
from fitme.core.datasource import Cell
from fitme.core.exceptions import EvaluationError, ParseError
from fitme.core.headers import HeaderIndex
from fitme.expression._context import FunctionContext
from fitme.expression._tokenizer import Token, TokenKind, check_grammar, tokenize

# Exceptions a compiled formula may raise for a genuinely bad binding, as
# opposed to returning NaN/Inf.
_EVAL_FAULTS = (TypeError, ValueError, ArithmeticError, NameError)


class IdentifierRole(Enum):
    FUNCTION = 'function'
    VARIABLE = 'variable'
    PARAMETER = 'parameter'


@dataclass(frozen=True)
class ResolvedIdentifier:
    """One identifier occurrence and the role it resolved to."""
    name: str
    role: IdentifierRole
    position: int
    column: int | None = None


def resolve_identifiers(
    tokens: Sequence[Token],
    headers: HeaderIndex,
    context: FunctionContext,
) -> list[ResolvedIdentifier]:
    """
    Second parsing pass: classify every NAME token.

    Functions are resolved first against the context, then headers
    (case- and whitespace-insensitive), and whatever is left is a parameter.
    """
    resolved = []
    for tok in tokens:
        if tok.kind is not TokenKind.NAME:
            continue
        if context.is_function(tok.text):
            resolved.append(ResolvedIdentifier(tok.text, IdentifierRole.FUNCTION, tok.position))
            continue
        column = headers.find_ignore_case_and_ws(tok.text)
        if column is not None:
            resolved.append(
                ResolvedIdentifier(tok.text, IdentifierRole.VARIABLE, tok.position, column)
            )
        else:
            resolved.append(ResolvedIdentifier(tok.text, IdentifierRole.PARAMETER, tok.position))
    return resolved


def _number_text(text: str) -> str:
    # Normalise so the expression builder never sees e.g. '007' or '1.'
    if any(c in text for c in '.eE'):
        return repr(float(text))
    return str(int(text))


@dataclass(frozen=True)
class ExpressionModel:
    """
    Parsed formula with column-bound variables and free parameters.

    Construct with ExpressionModel.parse(). Immutable after construction.
    """
    _formula: str
    _bindings: tuple[tuple[str, int], ...]
    _params: tuple[str, ...]
    _context: FunctionContext
    _expression: sp.Expr = field(compare=False)
    _evaluator: Callable[..., Any] = field(compare=False, repr=False)

    @classmethod
    def parse(
        cls,
        formula: str,
        headers: HeaderIndex,
        *,
        context: FunctionContext | None = None,
    ) -> ExpressionModel:
        """
        Parse formula against the given headers.

        Args:
            formula: Right-hand side, e.g. 'a * exp(b * x) + c'
            headers: Column names that identifiers may bind to
            context: Callable names; defaults to FunctionContext.builtin()

        Returns:
            ExpressionModel (possibly with zero parameters)

        Raises:
            ParseError: On a syntax error (with .position) or if the
                formula cannot be evaluated at any probe vector
        """
        if context is None:
            context = FunctionContext.builtin()

        try:
            tokens = tokenize(formula)
            check_grammar(tokens, formula, context.is_function)
        except ParseError as e:
            raise ParseError(
                f"parsing '{formula}' failed", formula=formula, position=e.position
            ) from e

        identifiers = resolve_identifiers(tokens, headers, context)

        params: list[str] = []
        bindings: list[tuple[str, int]] = []
        for ident in identifiers:
            if ident.role is IdentifierRole.PARAMETER and ident.name not in params:
                params.append(ident.name)
            elif ident.role is IdentifierRole.VARIABLE and ident.name not in (
                name for name, _ in bindings
            ):
                bindings.append((ident.name, ident.column))

        param_symbols = [sp.Symbol(f"_p{i}") for i in range(len(params))]
        var_symbols = [sp.Symbol(f"_v{j}") for j in range(len(bindings))]

        # Rewrite the token stream onto internal names so user identifiers
        # can never collide with sympy globals or Python keywords.
        internal = {name: f"_p{i}" for i, name in enumerate(params)}
        internal.update({name: f"_v{j}" for j, (name, _) in enumerate(bindings)})
        local_dict: dict[str, Any] = {str(s): s for s in param_symbols + var_symbols}

        pieces = []
        for tok in tokens:
            if tok.kind is TokenKind.NUMBER:
                pieces.append(_number_text(tok.text))
            elif tok.kind is TokenKind.NAME:
                if context.is_function(tok.text):
                    key = f"_f_{tok.text}"
                    local_dict[key] = context[tok.text]
                    pieces.append(key)
                else:
                    pieces.append(internal[tok.text])
            elif tok.text == '^':
                pieces.append('**')
            else:
                pieces.append(tok.text)
        code = " ".join(pieces)

        try:
            expression = sp.sympify(code, locals=local_dict)
            if expression.has(sp.zoo, sp.nan):
                raise ValueError(
                    "expression contains an undefined constant such as a division by zero"
                )
            evaluator = sp.lambdify(param_symbols + var_symbols, expression, modules='numpy')
        except (sp.SympifyError, SyntaxError, RecursionError, KeyError, *_EVAL_FAULTS) as e:
            raise ParseError(
                f"parsing '{formula}' failed", formula=formula
            ) from e

        model = cls(
            _formula=formula,
            _bindings=tuple(bindings),
            _params=tuple(params),
            _context=context,
            _expression=expression,
            _evaluator=evaluator,
        )
        model._check_evaluable()
        return model

    def _check_evaluable(self) -> None:
        """
        Evaluate once per probe vector with every variable set to 1.

        Only a hard fault counts; NaN/Inf is fine here since the data may
        well keep the formula in its domain.
        """
        trial_columns = np.ones((1, len(self._bindings)), dtype=np.float64)
        last_error: EvaluationError | None = None
        for _, probe in starting_candidates(self.params_len()):
            try:
                self.solve_many(probe, trial_columns)
                return
            except EvaluationError as e:
                last_error = e
        raise ParseError(
            f"supplied expr '{self._formula}' could not be evaluated at any trial "
            f"parameter vector",
            formula=self._formula,
        ) from last_error

    # === Accessors ===

    def params_len(self) -> int:
        """Number of free parameters (zero is legal here, not for fitting)."""
        return len(self._params)

    @property
    def params(self) -> tuple[str, ...]:
        """Free parameter names, first-occurrence order."""
        return self._params

    @property
    def vars(self) -> tuple[str, ...]:
        """Column-bound identifier names, first-occurrence order."""
        return tuple(name for name, _ in self._bindings)

    @property
    def bindings(self) -> tuple[tuple[str, int], ...]:
        """(identifier, column index) pairs for column-bound variables."""
        return self._bindings

    @property
    def columns(self) -> tuple[int, ...]:
        """Column indices of the bound variables, in vars order."""
        return tuple(col for _, col in self._bindings)

    @property
    def expr(self) -> str:
        """Original formula text."""
        return self._formula

    @property
    def expression(self) -> sp.Expr:
        """The sympy expression over internal symbols _p{i} and _v{j}."""
        return self._expression

    @property
    def context(self) -> FunctionContext:
        return self._context

    # === Evaluation ===

    def solve(self, params: ArrayLike, row: Sequence[Cell]) -> float | None:
        """
        Evaluate the formula for one row.

        Args:
            params: Parameter values, in params order
            row: Full data row (cells indexed by column)

        Returns:
            The value (possibly NaN/Inf), or None if a bound cell is text

        Raises:
            EvaluationError: If the formula cannot be evaluated at all
        """
        values = []
        for _, col in self._bindings:
            cell = row[col]
            if isinstance(cell, str):
                return None
            values.append(cell)
        columns = np.asarray(values, dtype=np.float64).reshape(1, len(values))
        return float(self.solve_many(params, columns)[0])

    def solve_many(self, params: ArrayLike, columns: ArrayLike) -> NDArray[np.float64]:
        """
        Evaluate the formula for every row at once.

        Args:
            params: Parameter values, shape (k,)
            columns: Variable values, shape (n, n_vars), in vars order

        Returns:
            float64 array of shape (n,). Complex results map to NaN.

        Raises:
            ValueError: If params or columns have the wrong shape
            EvaluationError: If the formula cannot be evaluated at all
        """
        params = np.asarray(params, dtype=np.float64)
        columns = np.asarray(columns, dtype=np.float64)
        if params.shape != (self.params_len(),):
            raise ValueError(
                f"expected {self.params_len()} parameter values, got shape {params.shape}"
            )
        if columns.ndim != 2 or columns.shape[1] != len(self._bindings):
            raise ValueError(
                f"expected columns of shape (n, {len(self._bindings)}), got {columns.shape}"
            )
        n = columns.shape[0]

        try:
            with np.errstate(all='ignore'):
                out = np.asarray(self._evaluator(*params, *columns.T))
                if np.iscomplexobj(out):
                    out = np.where(out.imag == 0, out.real, np.nan)
                out = out.astype(np.float64)
        except _EVAL_FAULTS as e:
            raise EvaluationError(
                f"failed to evaluate '{self._formula}': {e}"
            ) from e

        return np.array(np.broadcast_to(out, (n,)), dtype=np.float64)

    def __repr__(self) -> str:
        return (
            f"ExpressionModel(expr={self._formula!r}, params={list(self._params)!r}, "
            f"vars={list(self.vars)!r})"
        )
