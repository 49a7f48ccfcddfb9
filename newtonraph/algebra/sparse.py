"""Sparse direct solver with symbolic/numerical split."""

from typing import Any

import numpy as np
import scipy.sparse
import scipy.sparse.linalg
from numpy.typing import NDArray

from newtonraph.core.errors import StructureMismatchError


def _as_csc(A: Any) -> scipy.sparse.csc_matrix:
    if not scipy.sparse.issparse(A):
        raise TypeError(
            f"SparseLUSolver requires a scipy sparse matrix, got {type(A).__name__}"
        )
    return scipy.sparse.csc_matrix(A)


class SparseLUNumericalSetup:
    """SuperLU factorization tied to a fixed sparsity pattern."""

    def __init__(self, symbolic: "SparseLUSymbolicSetup", A: Any) -> None:
        self.symbolic = symbolic
        self.lu: Any = None
        self.update(A)

    def update(self, A: Any) -> None:
        """
        Refactor from the current values of A.

        Raises:
            StructureMismatchError: if the pattern of A changed
            RuntimeError: propagated from SuperLU for singular matrices
        """
        A = _as_csc(A)
        self.symbolic.check_pattern(A)
        self.lu = scipy.sparse.linalg.splu(A, permc_spec=self.symbolic.permc_spec)

    def solve(self, dx: NDArray, b: NDArray) -> None:
        dx[...] = self.lu.solve(b)


class SparseLUSymbolicSetup:
    """Records shape and CSC pattern of the matrix it was built from."""

    def __init__(self, A: Any, permc_spec: str) -> None:
        A = _as_csc(A)
        self.shape = A.shape
        self.indptr = A.indptr.copy()
        self.indices = A.indices.copy()
        self.permc_spec = permc_spec

    def check_pattern(self, A: scipy.sparse.csc_matrix) -> None:
        if (
            A.shape != self.shape
            or not np.array_equal(A.indptr, self.indptr)
            or not np.array_equal(A.indices, self.indices)
        ):
            raise StructureMismatchError(
                "Matrix sparsity pattern changed since symbolic setup "
                f"(shape {A.shape}, nnz {A.nnz}; expected shape {self.shape}, "
                f"nnz {self.indices.size})"
            )

    def numerical_setup(self, A: Any) -> SparseLUNumericalSetup:
        return SparseLUNumericalSetup(self, A)


class SparseLUSolver:
    """
    Sparse LU via scipy.sparse.linalg.splu.

    Args:
        permc_spec: Column ordering passed to SuperLU
    """

    def __init__(self, permc_spec: str = "COLAMD") -> None:
        self.permc_spec = permc_spec

    def symbolic_setup(self, A: Any) -> SparseLUSymbolicSetup:
        return SparseLUSymbolicSetup(A, self.permc_spec)

    def __repr__(self) -> str:
        return f"SparseLUSolver(permc_spec={self.permc_spec!r})"
