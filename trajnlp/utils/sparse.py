"""Conversions between (row, col) triplet lists and scipy.sparse matrices.

Repeated (row, col) pairs are summed, which is the COO convention used by
scipy.sparse and by sparse NLP solver interfaces.
"""

from typing import List, Sequence, Tuple

import numpy as np
import scipy.sparse as sparse
from numpy.typing import NDArray, ArrayLike

from trajnlp.core.errors import StructureError

Structure = List[Tuple[int, int]]


def structure_arrays(structure: Sequence[Tuple[int, int]]) -> Tuple[NDArray, NDArray]:
    """Split a pair list into (rows, cols) integer arrays."""
    if len(structure) == 0:
        return np.zeros(0, dtype=int), np.zeros(0, dtype=int)
    pairs = np.asarray(structure, dtype=int)
    return pairs[:, 0], pairs[:, 1]


def _check_lengths(structure: Sequence[Tuple[int, int]], values: NDArray) -> None:
    if len(structure) != values.shape[0]:
        raise StructureError(
            f"structure has {len(structure)} entries but "
            f"{values.shape[0]} values were given"
        )


def sparse_matrix(
    structure: Sequence[Tuple[int, int]],
    values: ArrayLike,
    shape: Tuple[int, int],
) -> sparse.csr_matrix:
    """
    Assemble a sparse matrix from structure and values.

    Args:
        structure: Ordered (row, col) pairs
        values: Value at each pair
        shape: Matrix shape

    Returns:
        CSR matrix with repeated pairs summed
    """
    values = np.asarray(values, dtype=float)
    _check_lengths(structure, values)
    rows, cols = structure_arrays(structure)
    return sparse.coo_matrix((values, (rows, cols)), shape=shape).tocsr()


def symmetric_matrix(
    structure: Sequence[Tuple[int, int]],
    values: ArrayLike,
    n: int,
) -> sparse.csr_matrix:
    """
    Full symmetric matrix from upper-triangular entries.

    Entries with row < col are mirrored; diagonal entries are counted once.
    """
    rows, cols = structure_arrays(structure)
    if np.any(rows > cols):
        raise StructureError("symmetric_matrix expects upper-triangular pairs")
    U = sparse_matrix(structure, values, (n, n))
    return (U + U.T - sparse.diags(U.diagonal())).tocsr()


def coalesce(
    structure: Sequence[Tuple[int, int]],
    values: ArrayLike,
) -> Tuple[Structure, NDArray]:
    """
    Merge repeated pairs by summation.

    For consumers that require unique entries. Pairs keep the order of
    their first appearance.

    Returns:
        (unique_structure, summed_values)
    """
    values = np.asarray(values, dtype=float)
    _check_lengths(structure, values)

    position = {}
    merged = []
    for pair, value in zip(structure, values):
        pair = (int(pair[0]), int(pair[1]))
        if pair in position:
            merged[position[pair]] += value
        else:
            position[pair] = len(merged)
            merged.append(value)

    return list(position), np.array(merged, dtype=float)
