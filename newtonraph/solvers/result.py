"""Outcome of a nonlinear solve."""

from dataclasses import dataclass


@dataclass(frozen=True)
class NewtonResult:
    """Diagnostics of the most recent call to a Newton-type solver."""

    converged: bool
    iterations: int                 # Newton steps taken (linear solves)
    residual_norm: float            # inf-norm of the final residual
    initial_residual_norm: float    # inf-norm at the starting guess (m0)

    @property
    def reduction(self) -> float:
        """Ratio residual_norm / initial_residual_norm (0.0 if m0 == 0)."""
        if self.initial_residual_norm == 0.0:
            return 0.0
        return self.residual_norm / self.initial_residual_norm
