"""Linear solver factory."""

from typing import Any, Union

from newtonraph.algebra.protocols import LinearSolver
from newtonraph.algebra.dense import BackslashSolver, LUSolver
from newtonraph.algebra.sparse import SparseLUSolver


_LINEAR_SOLVERS = {
    "backslash": BackslashSolver,
    "lu": LUSolver,
    "sparse_lu": SparseLUSolver,
}


def create_linear_solver(name: str, **options: Any) -> LinearSolver:
    """
    Build a linear solver from its registered name.

    Args:
        name: One of "backslash", "lu", "sparse_lu"
        **options: Forwarded to the solver constructor

    Returns:
        Linear solver instance
    """
    try:
        cls = _LINEAR_SOLVERS[name.lower()]
    except KeyError:
        known = ", ".join(sorted(_LINEAR_SOLVERS))
        raise ValueError(
            f"Unknown linear solver {name!r}; expected one of: {known}"
        ) from None
    return cls(**options)


def resolve_linear_solver(ls: Union[str, LinearSolver]) -> LinearSolver:
    """Accept either a linear solver instance or its registered name."""
    if isinstance(ls, str):
        return create_linear_solver(ls)
    return ls
