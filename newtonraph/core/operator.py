"""Nonlinear operator abstractions."""

from abc import ABC, abstractmethod
from typing import Any, Callable, Optional

import numpy as np
import scipy.sparse
from numpy.typing import NDArray

from newtonraph.core.errors import StructureMismatchError


class NonlinearOperator(ABC):
    """
    Residual and Jacobian evaluator for F(x) = 0.

    Subclasses implement allocation and in-place evaluation; the allocating
    variants are derived. The fused residual-and-Jacobian entry points fall
    back to separate evaluations and should be overridden when an assembly
    loop can produce both at once.
    """

    @abstractmethod
    def allocate_residual(self, x: NDArray) -> NDArray:
        """Return an uninitialized residual vector compatible with x."""
        ...

    @abstractmethod
    def allocate_jacobian(self, x: NDArray) -> Any:
        """Return a Jacobian matrix (dense or sparse) compatible with x."""
        ...

    @abstractmethod
    def residual_into(self, b: NDArray, x: NDArray) -> None:
        """Overwrite b with the residual at x."""
        ...

    @abstractmethod
    def jacobian_into(self, A: Any, x: NDArray) -> None:
        """Overwrite the values of A with the Jacobian at x."""
        ...

    def residual(self, x: NDArray) -> NDArray:
        b = self.allocate_residual(x)
        self.residual_into(b, x)
        return b

    def jacobian(self, x: NDArray) -> Any:
        A = self.allocate_jacobian(x)
        self.jacobian_into(A, x)
        return A

    def residual_and_jacobian(self, x: NDArray) -> tuple[NDArray, Any]:
        b = self.allocate_residual(x)
        A = self.allocate_jacobian(x)
        self.residual_and_jacobian_into(b, A, x)
        return b, A

    def residual_and_jacobian_into(self, b: NDArray, A: Any, x: NDArray) -> None:
        self.residual_into(b, x)
        self.jacobian_into(A, x)


def _entry_keys(M: Any) -> NDArray:
    """Flattened (major, minor) position of every stored entry of a CSR/CSC matrix."""
    major = np.repeat(np.arange(M.indptr.size - 1), np.diff(M.indptr))
    minor_dim = M.shape[1] if M.format == "csr" else M.shape[0]
    return major * minor_dim + M.indices


def assign_matrix(A: Any, J: Any) -> None:
    """
    Copy values of J into A without changing A's storage.

    For sparse buffers the values are matched by (row, col): entries of A's
    pattern missing from J are set to zero, and J may only carry explicit
    zeros outside A's pattern.

    Raises:
        TypeError: sparse buffer not in CSR/CSC format, or dense J for it
        StructureMismatchError: J has a nonzero entry outside A's pattern
    """
    if not scipy.sparse.issparse(A):
        if scipy.sparse.issparse(J):
            J = J.toarray()
        A[...] = J
        return

    if A.format not in ("csr", "csc"):
        raise TypeError(
            f"Sparse Jacobian buffers must be CSR or CSC, got {A.format.upper()}"
        )
    if not scipy.sparse.issparse(J):
        raise TypeError("Cannot write a dense Jacobian into a sparse buffer")
    if J.shape != A.shape:
        raise StructureMismatchError(
            f"Jacobian of shape {J.shape} does not fit buffer of shape {A.shape}"
        )

    J = J.asformat(A.format)
    if np.array_equal(J.indptr, A.indptr) and np.array_equal(J.indices, A.indices):
        A.data[:] = J.data
        return

    J = J.copy()
    J.sum_duplicates()
    a_keys = _entry_keys(A)
    order = np.argsort(a_keys, kind="stable")
    sorted_keys = a_keys[order]
    j_keys = _entry_keys(J)

    pos = np.searchsorted(sorted_keys, j_keys)
    inside = pos < sorted_keys.size
    inside[inside] = sorted_keys[pos[inside]] == j_keys[inside]
    if np.any(J.data[~inside] != 0.0):
        raise StructureMismatchError(
            f"Jacobian has {np.count_nonzero(J.data[~inside])} nonzero entries "
            f"outside the buffer pattern ({A.nnz} stored entries)"
        )
    A.data[:] = 0.0
    A.data[order[pos[inside]]] = J.data[inside]


def _copy_matrix(J: Any) -> Any:
    if scipy.sparse.issparse(J):
        if J.format in ("csr", "csc"):
            return J.copy()
        return J.tocsr(copy=True)
    return np.array(J, dtype=float)


class CallbackOperator(NonlinearOperator):
    """
    Nonlinear operator built from plain callables returning fresh arrays.

    Args:
        residual_fn: x -> F(x)
        jacobian_fn: x -> J(x), dense array or scipy sparse matrix
        fused_fn: optional x -> (F(x), J(x)) evaluated in one pass
    """

    def __init__(
        self,
        residual_fn: Callable[[NDArray], NDArray],
        jacobian_fn: Callable[[NDArray], Any],
        fused_fn: Optional[Callable[[NDArray], tuple[NDArray, Any]]] = None,
    ):
        self.residual_fn = residual_fn
        self.jacobian_fn = jacobian_fn
        self.fused_fn = fused_fn

    def allocate_residual(self, x: NDArray) -> NDArray:
        return np.empty_like(x, dtype=float)

    def allocate_jacobian(self, x: NDArray) -> Any:
        return _copy_matrix(self.jacobian_fn(x))

    def residual_into(self, b: NDArray, x: NDArray) -> None:
        b[...] = self.residual_fn(x)

    def jacobian_into(self, A: Any, x: NDArray) -> None:
        assign_matrix(A, self.jacobian_fn(x))

    def jacobian(self, x: NDArray) -> Any:
        return _copy_matrix(self.jacobian_fn(x))

    def residual_and_jacobian(self, x: NDArray) -> tuple[NDArray, Any]:
        if self.fused_fn is None:
            return self.residual(x), self.jacobian(x)
        r, J = self.fused_fn(x)
        return np.array(r, dtype=float), _copy_matrix(J)

    def residual_and_jacobian_into(self, b: NDArray, A: Any, x: NDArray) -> None:
        if self.fused_fn is None:
            super().residual_and_jacobian_into(b, A, x)
            return
        r, J = self.fused_fn(x)
        b[...] = r
        assign_matrix(A, J)


class AffineOperator(NonlinearOperator):
    """
    Affine operator F(x) = A x - b with constant Jacobian A.

    Args:
        matrix: System matrix A (dense or scipy sparse)
        vector: Right-hand side b
    """

    def __init__(self, matrix: Any, vector: NDArray):
        if matrix.shape[0] != vector.shape[0]:
            raise ValueError(
                f"Matrix with {matrix.shape[0]} rows incompatible with "
                f"vector of length {vector.shape[0]}"
            )
        self.matrix = matrix
        self.vector = vector

    def allocate_residual(self, x: NDArray) -> NDArray:
        return np.empty(self.matrix.shape[0])

    def allocate_jacobian(self, x: NDArray) -> Any:
        return _copy_matrix(self.matrix)

    def residual_into(self, b: NDArray, x: NDArray) -> None:
        b[...] = self.matrix @ x
        b -= self.vector

    def jacobian_into(self, A: Any, x: NDArray) -> None:
        assign_matrix(A, self.matrix)

    def jacobian(self, x: NDArray) -> Any:
        return _copy_matrix(self.matrix)

    def residual_and_jacobian(self, x: NDArray) -> tuple[NDArray, Any]:
        return self.residual(x), self.jacobian(x)
