"""Core abstractions for nonlinear solves."""

from newtonraph.core.operator import NonlinearOperator, CallbackOperator, AffineOperator
from newtonraph.core.errors import (
    NonlinearSolverError,
    ConvergenceError,
    DimensionMismatchError,
    StructureMismatchError,
)

__all__ = [
    "NonlinearOperator",
    "CallbackOperator",
    "AffineOperator",
    "NonlinearSolverError",
    "ConvergenceError",
    "DimensionMismatchError",
    "StructureMismatchError",
]
