"""Global index ranges for knot-major flattened vectors.

A vector of ``T`` blocks of width ``w`` is laid out block after block, so
block ``t`` occupies ``[t*w, (t+1)*w)``. The same functions are used to
build sparsity structures and to place values, which keeps both in the
same order.
"""

from typing import Tuple

import numpy as np
from numpy.typing import NDArray

from trajnlp.core.errors import DimensionError


def _check(t: int, width: int) -> None:
    if t < 0:
        raise DimensionError(f"timestep must be non-negative, got {t}")
    if width <= 0:
        raise DimensionError(f"block width must be positive, got {width}")


def knot_slice(t: int, width: int) -> NDArray:
    """
    Indices of block t in a vector of width-sized blocks.

    Args:
        t: Block (timestep) index, 0-based
        width: Block width

    Returns:
        Integer array [t*width, ..., (t+1)*width - 1]
    """
    _check(t, width)
    return np.arange(t * width, (t + 1) * width)


def window_slice(t: int, width: int, span: int = 2) -> NDArray:
    """
    Indices of the consecutive blocks t, ..., t+span-1.

    With span=2 this is the two-knot window [z_t; z_{t+1}].
    """
    _check(t, width)
    if span <= 0:
        raise DimensionError(f"window span must be positive, got {span}")
    return np.arange(t * width, (t + span) * width)


def block_slice(t: int, width: int, offset: int, block_width: int) -> NDArray:
    """Indices of a sub-block [offset, offset+block_width) inside block t."""
    _check(t, width)
    if offset < 0 or block_width <= 0 or offset + block_width > width:
        raise DimensionError(
            f"sub-block [{offset}, {offset + block_width}) "
            f"does not fit in width {width}"
        )
    start = t * width + offset
    return np.arange(start, start + block_width)


def upper_triangle(n: int) -> Tuple[NDArray, NDArray]:
    """Row-major (i, j) index arrays of the upper triangle i <= j of an n x n matrix."""
    if n <= 0:
        raise DimensionError(f"matrix size must be positive, got {n}")
    return np.triu_indices(n)
