"""Tests for index slicing utilities."""

import numpy as np
import pytest

from trajnlp.core.errors import DimensionError
from trajnlp.utils.indexing import (
    knot_slice,
    window_slice,
    block_slice,
    upper_triangle,
)


def test_knot_slice_basic():
    """Test block t of width w covers [t*w, (t+1)*w)."""
    assert np.array_equal(knot_slice(0, 3), [0, 1, 2])
    assert np.array_equal(knot_slice(2, 3), [6, 7, 8])


def test_window_slice_covers_two_knots():
    """Test two-knot window is contiguous over knots t and t+1."""
    w = window_slice(1, 4)

    assert np.array_equal(w, np.arange(4, 12))
    assert np.array_equal(w, np.concatenate([knot_slice(1, 4), knot_slice(2, 4)]))


def test_window_slice_span():
    """Test window with a custom span."""
    assert np.array_equal(window_slice(0, 2, span=3), np.arange(6))


def test_block_slice():
    """Test named block position inside a knot."""
    # knot width 5, block at offset 2 of width 2, knot 3
    assert np.array_equal(block_slice(3, 5, 2, 2), [17, 18])


@pytest.mark.parametrize("t, width", [(-1, 3), (0, 0), (2, -1)])
def test_invalid_arguments_raise(t, width):
    """Test negative timesteps and non-positive widths are rejected."""
    with pytest.raises(DimensionError):
        knot_slice(t, width)
    with pytest.raises(DimensionError):
        window_slice(t, width)


def test_block_slice_out_of_range():
    """Test a sub-block that does not fit is rejected."""
    with pytest.raises(DimensionError):
        block_slice(0, 4, 3, 2)


def test_upper_triangle_row_major():
    """Test upper triangle indices are enumerated row by row."""
    iu, ju = upper_triangle(3)

    pairs = list(zip(iu.tolist(), ju.tolist()))
    assert pairs == [(0, 0), (0, 1), (0, 2), (1, 1), (1, 2), (2, 2)]


def test_slicing_is_deterministic():
    """Test repeated calls give identical results."""
    for t in range(4):
        assert np.array_equal(window_slice(t, 5), window_slice(t, 5))
