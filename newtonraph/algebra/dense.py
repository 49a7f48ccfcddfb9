"""Dense linear solvers using NumPy/SciPy."""

import warnings
from typing import Any

import numpy as np
import scipy.linalg
import scipy.sparse
import scipy.sparse.linalg
from numpy.typing import NDArray


class BackslashNumericalSetup:
    """Keeps a reference to the matrix; every solve is a fresh direct solve."""

    def __init__(self, A: Any) -> None:
        self.A = A

    def update(self, A: Any) -> None:
        self.A = A

    def solve(self, dx: NDArray, b: NDArray) -> None:
        if scipy.sparse.issparse(self.A):
            dx[...] = scipy.sparse.linalg.spsolve(self.A.tocsc(), b)
        else:
            dx[...] = np.linalg.solve(self.A, b)


class BackslashSymbolicSetup:
    def numerical_setup(self, A: Any) -> BackslashNumericalSetup:
        return BackslashNumericalSetup(A)


class BackslashSolver:
    """
    Direct solve without factorization reuse.
    Accepts dense arrays and scipy sparse matrices.
    """

    def symbolic_setup(self, A: Any) -> BackslashSymbolicSetup:
        return BackslashSymbolicSetup()

    def __repr__(self) -> str:
        return "BackslashSolver()"


class LUNumericalSetup:
    """Dense LU factorization, refactored in place on update."""

    def __init__(self, A: Any) -> None:
        self.factorization: tuple[NDArray, NDArray] | None = None
        self.update(A)

    def update(self, A: Any) -> None:
        """
        Refactor from the current values of A.

        Raises:
            numpy.linalg.LinAlgError: if the factor has an exactly zero pivot
        """
        if scipy.sparse.issparse(A):
            A = A.toarray()
        with warnings.catch_warnings():
            # Singularity is reported through LinAlgError below
            warnings.simplefilter("ignore", scipy.linalg.LinAlgWarning)
            lu, piv = scipy.linalg.lu_factor(A)
        zero_pivots = np.flatnonzero(np.diag(lu) == 0.0)
        if zero_pivots.size > 0:
            raise np.linalg.LinAlgError(
                f"Singular matrix: zero pivot at position {zero_pivots[0]}"
            )
        self.factorization = (lu, piv)

    def solve(self, dx: NDArray, b: NDArray) -> None:
        """
        Solve using the stored factorization.

        Args:
            dx: Destination vector
            b: Right-hand side
        """
        dx[...] = scipy.linalg.lu_solve(self.factorization, b)


class LUSymbolicSetup:
    def numerical_setup(self, A: Any) -> LUNumericalSetup:
        return LUNumericalSetup(A)


class LUSolver:
    """Dense LU via scipy.linalg.lu_factor / lu_solve."""

    def symbolic_setup(self, A: Any) -> LUSymbolicSetup:
        return LUSymbolicSetup()

    def __repr__(self) -> str:
        return "LUSolver()"
