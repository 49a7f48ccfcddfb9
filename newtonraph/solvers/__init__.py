"""Newton-type nonlinear solvers."""

from newtonraph.solvers.base import NonlinearSolver, solve
from newtonraph.solvers.newton import NewtonRaphsonSolver, NewtonRaphsonCache
from newtonraph.solvers.result import NewtonResult
from newtonraph.solvers.convergence import initial_check, check_convergence

__all__ = [
    "NonlinearSolver",
    "solve",
    "NewtonRaphsonSolver",
    "NewtonRaphsonCache",
    "NewtonResult",
    "initial_check",
    "check_convergence",
]
