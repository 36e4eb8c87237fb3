"""
Built-in function context.

The symbol table of callable names is a plain immutable value constructed
explicitly and handed to ExpressionModel.parse(); nothing is registered
globally, so a test can build its own context without any process-wide
setup.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Callable, Mapping

import sympy as sp

SymbolicFunction = Callable[[sp.Expr], sp.Expr]


def _log10(arg: sp.Expr) -> sp.Expr:
    return sp.log(arg, 10)


BUILTIN_FUNCTIONS: Mapping[str, SymbolicFunction] = MappingProxyType({
    'sin': sp.sin,
    'cos': sp.cos,
    'tan': sp.tan,
    'ln': sp.log,
    'log': _log10,
    'sqrt': sp.sqrt,
    'exp': sp.exp,
    'abs': sp.Abs,
})


@dataclass(frozen=True)
class FunctionContext:
    """
    Fixed mapping of function names to sympy constructors.

    Names are case-sensitive: `sin` is a function, `SIN` is an ordinary
    identifier.
    """
    _functions: Mapping[str, SymbolicFunction]

    @classmethod
    def builtin(cls) -> FunctionContext:
        """sin, cos, tan, ln, log (base 10), sqrt, exp, abs."""
        return cls(_functions=BUILTIN_FUNCTIONS)

    def extended(self, functions: Mapping[str, SymbolicFunction]) -> FunctionContext:
        """New context with extra (or replaced) functions."""
        merged = dict(self._functions)
        merged.update(functions)
        return FunctionContext(_functions=MappingProxyType(merged))

    def is_function(self, name: str) -> bool:
        return name in self._functions

    def __getitem__(self, name: str) -> SymbolicFunction:
        return self._functions[name]

    @property
    def names(self) -> frozenset[str]:
        return frozenset(self._functions)
