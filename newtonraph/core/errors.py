"""Exceptions raised by the nonlinear solvers."""

from typing import Any


class NonlinearSolverError(Exception):
    """Base class for solver failures."""


class ConvergenceError(NonlinearSolverError):
    """
    Iteration budget exhausted before the tolerance was met.

    The unknown vector passed to the solver still holds the last iterate, so
    the caller may accept it as a best-effort solution or retry with another
    configuration reusing ``cache``.
    """

    def __init__(self, message: str, result: Any, cache: Any = None) -> None:
        super().__init__(message)
        self.result = result
        self.cache = cache


class DimensionMismatchError(NonlinearSolverError, ValueError):
    """Cache buffers do not match the length of the unknown vector."""


class StructureMismatchError(NonlinearSolverError, ValueError):
    """Matrix sparsity pattern differs from the one seen at symbolic setup."""
