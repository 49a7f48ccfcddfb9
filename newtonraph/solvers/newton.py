"""Newton-Raphson solver with a reusable working set."""

import logging
from dataclasses import dataclass, field
from typing import Any, Optional, Union

import numpy as np
from numpy.typing import NDArray

from newtonraph.algebra.dense import BackslashSolver
from newtonraph.algebra.factory import resolve_linear_solver
from newtonraph.algebra.protocols import (
    LinearSolver,
    NumericalSetup,
    linear_solve,
    numerical_setup,
    numerical_setup_update,
    symbolic_setup,
)
from newtonraph.algebra.vectors import inf_norm, scale_entries
from newtonraph.core.errors import ConvergenceError, DimensionMismatchError
from newtonraph.core.operator import NonlinearOperator
from newtonraph.solvers.base import NonlinearSolver
from newtonraph.solvers.convergence import check_convergence, initial_check
from newtonraph.solvers.result import NewtonResult

logger = logging.getLogger(__name__)


@dataclass
class NewtonRaphsonCache:
    """Buffers reused across solves; A, b, dx are mutated in place."""

    A: Any                          # (n, n) Jacobian, dense or sparse
    b: NDArray                      # (n,) residual
    dx: NDArray                     # (n,) Newton update
    ns: NumericalSetup              # always consistent with the values in A
    result: Optional[NewtonResult] = None

    @property
    def size(self) -> int:
        return self.b.shape[0]


@dataclass(frozen=True)
class NewtonRaphsonSolver(NonlinearSolver):
    """
    Vanilla Newton-Raphson method.

    Converged when the infinity norm of the residual drops below
    ``tol`` times its value at the starting guess, or below ``atol``.

    Args:
        linear_solver: Linear solver instance or registered name
        tol: Relative reduction of the residual inf-norm
        max_iterations: Maximum number of Newton steps per call
        atol: Absolute floor on the residual inf-norm, also tested on entry
        raise_on_failure: Raise ConvergenceError when the budget is
            exhausted; otherwise only record the failure in cache.result
    """

    linear_solver: Union[LinearSolver, str] = field(default_factory=BackslashSolver)
    tol: float = 1e-8
    max_iterations: int = 10
    atol: float = 0.0
    raise_on_failure: bool = True

    def __post_init__(self) -> None:
        if self.tol < 0:
            raise ValueError(f"tol must be non-negative, got {self.tol}")
        if self.atol < 0:
            raise ValueError(f"atol must be non-negative, got {self.atol}")
        if self.max_iterations < 0:
            raise ValueError(
                f"max_iterations must be non-negative, got {self.max_iterations}"
            )
        object.__setattr__(
            self, "linear_solver", resolve_linear_solver(self.linear_solver)
        )

    def solve(
        self,
        x: NDArray,
        op: NonlinearOperator,
        cache: Optional[NewtonRaphsonCache] = None,
    ) -> NewtonRaphsonCache:
        """
        Solve op(x) = 0, overwriting x.

        Args:
            x: Initial guess (1-D float array), overwritten with the solution
            op: Nonlinear operator
            cache: Cache from a previous call with a compatible operator

        Returns:
            The cache (new on the first call, the same instance afterwards)

        Raises:
            DimensionMismatchError: cache built for a different problem size
            ConvergenceError: budget exhausted and raise_on_failure is set
        """
        _check_unknown(x)
        if cache is None:
            cache = self._new_cache(x, op)
        else:
            self._update_cache(cache, x, op)

        result = self._solve_nr(x, cache, op)
        cache.result = result

        if not result.converged:
            message = (
                f"Newton-Raphson did not converge in {result.iterations} "
                f"iterations (|r|_inf = {result.residual_norm:.3e}, "
                f"initial {result.initial_residual_norm:.3e}, tol = {self.tol:g})"
            )
            logger.warning(message)
            if self.raise_on_failure:
                raise ConvergenceError(message, result, cache)
        return cache

    def _new_cache(self, x: NDArray, op: NonlinearOperator) -> NewtonRaphsonCache:
        b, A = op.residual_and_jacobian(x)
        dx = np.empty_like(b)
        ss = symbolic_setup(self.linear_solver, A)
        ns = numerical_setup(ss, A)
        return NewtonRaphsonCache(A=A, b=b, dx=dx, ns=ns)

    def _update_cache(
        self, cache: NewtonRaphsonCache, x: NDArray, op: NonlinearOperator
    ) -> None:
        n = x.shape[0]
        if (
            cache.b.shape != (n,)
            or cache.dx.shape != (n,)
            or cache.A.shape != (n, n)
        ):
            raise DimensionMismatchError(
                f"Cache built for a system of size {cache.b.shape[0]} "
                f"(A {cache.A.shape}), got unknown vector of length {n}"
            )
        op.residual_and_jacobian_into(cache.b, cache.A, x)
        numerical_setup_update(cache.ns, cache.A)

    def _solve_nr(
        self, x: NDArray, cache: NewtonRaphsonCache, op: NonlinearOperator
    ) -> NewtonResult:
        A, b, dx, ns = cache.A, cache.b, cache.dx, cache.ns

        # Reference norm for the relative test
        _, m0 = initial_check(b)
        logger.debug("Newton-Raphson start: |r0|_inf = %.6e", m0)
        if m0 <= self.atol:
            return NewtonResult(
                converged=True, iterations=0,
                residual_norm=m0, initial_residual_norm=m0,
            )

        m = m0
        for nliter in range(1, self.max_iterations + 1):
            # Solve linearized problem A dx = -b
            scale_entries(b, -1.0)
            linear_solve(dx, ns, b)
            x += dx

            op.residual_into(b, x)
            m = inf_norm(b)
            logger.debug("Newton-Raphson iter %d: |r|_inf = %.6e", nliter, m)
            if check_convergence(b, self.tol, m0, self.atol):
                logger.debug("Newton-Raphson converged in %d iterations", nliter)
                return NewtonResult(
                    converged=True, iterations=nliter,
                    residual_norm=m, initial_residual_norm=m0,
                )

            if nliter == self.max_iterations:
                break

            # Re-linearize; ns must track the new values of A
            op.jacobian_into(A, x)
            numerical_setup_update(ns, A)

        return NewtonResult(
            converged=False, iterations=self.max_iterations,
            residual_norm=m, initial_residual_norm=m0,
        )


def _check_unknown(x: Any) -> None:
    if not isinstance(x, np.ndarray):
        raise TypeError(
            f"Unknown vector must be a numpy array, got {type(x).__name__}"
        )
    if x.ndim != 1:
        raise DimensionMismatchError(
            f"Unknown vector must be 1-D, got shape {x.shape}"
        )
    if not np.issubdtype(x.dtype, np.inexact):
        raise TypeError(
            f"Unknown vector must have a floating dtype for in-place updates, "
            f"got {x.dtype}"
        )
