"""Linear solver capability protocols."""

from typing import Protocol, Any
from numpy.typing import NDArray


class NumericalSetup(Protocol):
    """
    Solver state built from the values of a matrix (e.g. a factorization).
    Refreshed in place when the values change but the structure does not.
    """

    def update(self, A: Any) -> None:
        """
        Refresh the setup from new values of A.

        Args:
            A: Matrix with the same structure as the one used at construction
        """
        ...

    def solve(self, dx: NDArray, b: NDArray) -> None:
        """
        Solve A dx = b, writing the solution into dx.

        Args:
            dx: Destination vector, overwritten
            b: Right-hand side
        """
        ...


class SymbolicSetup(Protocol):
    """Preparation that depends only on the structure of a matrix."""

    def numerical_setup(self, A: Any) -> NumericalSetup:
        """Build the numerical setup from the values of A."""
        ...


class LinearSolver(Protocol):
    """
    Protocol for linear solvers.
    Allows swapping between dense, sparse, iterative implementations.
    """

    def symbolic_setup(self, A: Any) -> SymbolicSetup:
        """
        Analyse the structure of A.

        Args:
            A: System matrix

        Returns:
            Symbolic setup reusable for every matrix with the same pattern
        """
        ...


def symbolic_setup(ls: LinearSolver, A: Any) -> SymbolicSetup:
    return ls.symbolic_setup(A)


def numerical_setup(ss: SymbolicSetup, A: Any) -> NumericalSetup:
    return ss.numerical_setup(A)


def numerical_setup_update(ns: NumericalSetup, A: Any) -> None:
    ns.update(A)


def linear_solve(dx: NDArray, ns: NumericalSetup, b: NDArray) -> None:
    ns.solve(dx, b)
