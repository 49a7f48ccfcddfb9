"""Infinity-norm convergence checks relative to the initial residual."""

from numpy.typing import NDArray

from newtonraph.algebra.vectors import inf_norm


def initial_check(b: NDArray) -> tuple[bool, float]:
    """
    Seed the convergence reference from the residual at the starting guess.

    Returns:
        (False, m0) where m0 is the infinity norm of b
    """
    return False, inf_norm(b)


def check_convergence(b: NDArray, tol: float, m0: float, atol: float = 0.0) -> bool:
    """
    True iff inf_norm(b) < tol * m0, or inf_norm(b) <= atol.

    With the default atol == 0.0 an exactly zero residual is always converged.
    """
    m = inf_norm(b)
    return m < tol * m0 or m <= atol
