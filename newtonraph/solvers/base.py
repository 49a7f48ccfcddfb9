"""Base nonlinear solver interface."""

from abc import ABC, abstractmethod
from typing import Any, Optional
from numpy.typing import NDArray

from newtonraph.core.operator import NonlinearOperator


class NonlinearSolver(ABC):
    """Drives x towards a root of a nonlinear operator."""

    @abstractmethod
    def solve(
        self,
        x: NDArray,
        op: NonlinearOperator,
        cache: Optional[Any] = None,
    ) -> Any:
        """
        Solve op(x) = 0 in place.

        Args:
            x: Initial guess, overwritten with the solution
            op: Nonlinear operator
            cache: Working set returned by a previous call, or None

        Returns:
            Cache to pass to the next call
        """
        ...


def solve(
    x: NDArray,
    solver: NonlinearSolver,
    op: NonlinearOperator,
    cache: Optional[Any] = None,
) -> Any:
    """Function form of ``solver.solve(x, op, cache)``."""
    return solver.solve(x, op, cache)
