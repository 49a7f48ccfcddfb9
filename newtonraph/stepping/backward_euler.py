"""Implicit Euler time stepping with Newton cache reuse."""

from dataclasses import dataclass
from typing import Any, Callable

import numpy as np
import scipy.sparse
from numpy.typing import NDArray

from newtonraph.core.operator import NonlinearOperator, assign_matrix
from newtonraph.solvers.newton import NewtonRaphsonSolver, NewtonRaphsonCache
from newtonraph.solvers.result import NewtonResult


class BackwardEulerOperator(NonlinearOperator):
    """
    Stage equation of one implicit Euler step:

        R(z) = z - y_prev - h f(t, z),    dR/dz = I - h J(t, z)
    """

    def __init__(
        self,
        f: Callable[[float, NDArray], NDArray],
        jac: Callable[[float, NDArray], Any],
        y_prev: NDArray,
        t: float,
        h: float,
    ):
        self.f = f
        self.jac = jac
        self.y_prev = y_prev
        self.t = t
        self.h = h

    def _stage_jacobian(self, z: NDArray) -> Any:
        J = self.jac(self.t, z)
        if scipy.sparse.issparse(J):
            return stage_matrix(J, self.h)
        return np.eye(z.shape[0]) - self.h * np.asarray(J)

    def allocate_residual(self, x: NDArray) -> NDArray:
        return np.empty_like(self.y_prev, dtype=float)

    def allocate_jacobian(self, x: NDArray) -> Any:
        return self._stage_jacobian(x)

    def residual_into(self, b: NDArray, x: NDArray) -> None:
        b[...] = x - self.y_prev - self.h * self.f(self.t, x)

    def jacobian_into(self, A: Any, x: NDArray) -> None:
        assign_matrix(A, self._stage_jacobian(x))

    def jacobian(self, x: NDArray) -> Any:
        return self._stage_jacobian(x)

    def residual_and_jacobian(self, x: NDArray) -> tuple[NDArray, Any]:
        return self.residual(x), self._stage_jacobian(x)


def stage_matrix(J: Any, h: float) -> scipy.sparse.csr_matrix:
    """
    I - h J in CSR format on the stored pattern of J plus the diagonal.

    Entries of that pattern whose value is zero are kept as explicit zeros,
    so the result has the same structure whenever J does.
    """
    J = scipy.sparse.csr_matrix(J)
    n = J.shape[0]
    pattern = scipy.sparse.csr_matrix(
        (np.ones(J.nnz), J.indices, J.indptr), shape=J.shape
    )
    S = (pattern + scipy.sparse.identity(n, format="csr")).tocsr()
    S.data[:] = 0.0
    assign_matrix(S, -h * J)
    S.data[S.indices == np.repeat(np.arange(n), np.diff(S.indptr))] += 1.0
    return S


@dataclass
class SteppingResult:
    """Trajectory of an implicit time integration."""

    t: NDArray                  # (N+1,) time points
    Y: NDArray                  # (N+1, n) states
    newton: list[NewtonResult]  # per-step Newton diagnostics
    cache: NewtonRaphsonCache   # working set after the last step

    @property
    def N(self) -> int:
        """Number of time steps."""
        return len(self.newton)


def backward_euler(
    f: Callable[[float, NDArray], NDArray],
    jac: Callable[[float, NDArray], Any],
    y0: NDArray,
    t_span: tuple[float, float],
    N: int,
    solver: NewtonRaphsonSolver,
) -> SteppingResult:
    """
    Integrate y' = f(t, y) with the implicit Euler method.

    One Newton cache is created on the first step and threaded through all
    later steps, so Jacobian, residual and linear solver storage are
    allocated once.

    Args:
        f: Right-hand side f(t, y)
        jac: Jacobian df/dy, dense array or scipy sparse matrix
        y0: Initial state
        t_span: Time interval (t0, tf)
        N: Number of time steps
        solver: Newton solver used for every step

    Returns:
        SteppingResult with the states at every time point
    """
    if N <= 0:
        raise ValueError(f"Number of steps must be positive, got {N}")

    h = (t_span[1] - t_span[0]) / N
    t = t_span[0] + h * np.arange(N + 1)

    y0 = np.asarray(y0, dtype=float)
    Y = np.zeros((N + 1, y0.shape[0]))
    Y[0] = y0

    cache = None
    newton: list[NewtonResult] = []

    for step in range(N):
        op = BackwardEulerOperator(f, jac, Y[step].copy(), t[step + 1], h)

        # Previous state as initial guess
        z = Y[step].copy()
        cache = solver.solve(z, op, cache)
        Y[step + 1] = z
        newton.append(cache.result)

    return SteppingResult(t=t, Y=Y, newton=newton, cache=cache)
