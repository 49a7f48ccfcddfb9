"""Linear algebra capabilities."""

from newtonraph.algebra.protocols import (
    LinearSolver,
    SymbolicSetup,
    NumericalSetup,
    symbolic_setup,
    numerical_setup,
    numerical_setup_update,
    linear_solve,
)
from newtonraph.algebra.dense import BackslashSolver, LUSolver
from newtonraph.algebra.sparse import SparseLUSolver
from newtonraph.algebra.factory import create_linear_solver
from newtonraph.algebra.vectors import inf_norm, scale_entries, copy_entries

__all__ = [
    "LinearSolver",
    "SymbolicSetup",
    "NumericalSetup",
    "symbolic_setup",
    "numerical_setup",
    "numerical_setup_update",
    "linear_solve",
    "BackslashSolver",
    "LUSolver",
    "SparseLUSolver",
    "create_linear_solver",
    "inf_norm",
    "scale_entries",
    "copy_entries",
]
