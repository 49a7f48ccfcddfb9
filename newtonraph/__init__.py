"""
Newtonraph: reusable Newton-Raphson solver for discretized nonlinear systems.

This library provides:
- A nonlinear operator abstraction (residual, Jacobian, fused evaluation)
- Pluggable linear solvers with symbolic/numerical setup split
- A Newton-Raphson solver whose cache is reused across repeated solves
- An implicit Euler driver threading the cache through time steps
"""

import logging

__version__ = "0.1.0"

from newtonraph.core.operator import NonlinearOperator, CallbackOperator, AffineOperator
from newtonraph.core.errors import (
    NonlinearSolverError,
    ConvergenceError,
    DimensionMismatchError,
    StructureMismatchError,
)
from newtonraph.algebra import BackslashSolver, LUSolver, SparseLUSolver, create_linear_solver
from newtonraph.solvers import (
    NonlinearSolver,
    NewtonRaphsonSolver,
    NewtonRaphsonCache,
    NewtonResult,
    solve,
)

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "NonlinearOperator",
    "CallbackOperator",
    "AffineOperator",
    "NonlinearSolverError",
    "ConvergenceError",
    "DimensionMismatchError",
    "StructureMismatchError",
    "BackslashSolver",
    "LUSolver",
    "SparseLUSolver",
    "create_linear_solver",
    "NonlinearSolver",
    "NewtonRaphsonSolver",
    "NewtonRaphsonCache",
    "NewtonResult",
    "solve",
]
