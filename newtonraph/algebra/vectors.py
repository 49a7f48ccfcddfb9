"""In-place vector helpers."""

import numpy as np
from numpy.typing import NDArray


def inf_norm(v: NDArray) -> float:
    """Maximum absolute component; 0.0 for an empty vector."""
    if v.size == 0:
        return 0.0
    return float(np.max(np.abs(v)))


def scale_entries(v: NDArray, alpha: float) -> None:
    """v <- alpha * v."""
    np.multiply(v, alpha, out=v)


def copy_entries(dst: NDArray, src: NDArray) -> None:
    """dst <- src, shapes must agree."""
    if dst.shape != src.shape:
        raise ValueError(
            f"Cannot copy array of shape {src.shape} into shape {dst.shape}"
        )
    np.copyto(dst, src)
