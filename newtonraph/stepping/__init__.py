"""Time stepping drivers built on the Newton solver."""

from newtonraph.stepping.backward_euler import (
    BackwardEulerOperator,
    SteppingResult,
    backward_euler,
    stage_matrix,
)

__all__ = [
    "BackwardEulerOperator",
    "SteppingResult",
    "backward_euler",
    "stage_matrix",
]
