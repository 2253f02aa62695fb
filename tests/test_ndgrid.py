"""
Unit tests for the dense N-dimensional grid.
"""

import numpy as np
import pytest

from mule import NdGrid


def test_total_size_and_default_fill():
    """Every shape allocates prod(shape) cells filled with the default."""
    for shape in [(1,), (7,), (3, 4), (2, 3, 4), (1, 5, 1, 2)]:
        grid = NdGrid(shape, default_value=2.5)
        assert grid.total_size == int(np.prod(shape))
        assert grid.shape == shape
        assert np.all(grid.values == 2.5)
        for index in grid.indices():
            assert grid[index] == 2.5


def test_zero_dimension_rejected():
    with pytest.raises(ValueError):
        NdGrid((3, 0))
    with pytest.raises(ValueError):
        NdGrid(())


def test_row_major_position():
    grid = NdGrid((2, 3, 4))
    assert grid.position((0, 0, 0)) == 0
    assert grid.position((0, 0, 1)) == 1
    assert grid.position((0, 1, 0)) == 4
    assert grid.position((1, 2, 3)) == 1 * 12 + 2 * 4 + 3

    grid[(1, 2, 3)] = 7.0
    assert grid.values[23] == 7.0
    assert grid.to_numpy()[1, 2, 3] == 7.0


def test_index_length_mismatch():
    grid = NdGrid((2, 2))
    with pytest.raises(IndexError):
        grid[(1,)]
    with pytest.raises(IndexError):
        grid[(0, 0, 0)] = 1.0


def test_reshape_keeps_linear_storage():
    """[1..6] (6,) -> (2, 3) -> (3, 2) reads the same buffer in order."""
    grid = NdGrid.from_array(np.arange(1, 7, dtype=float))
    before = grid.values.copy()

    grid.reshape((2, 3))
    assert grid.shape == (2, 3)
    assert np.array_equal(grid.values, before)
    assert grid[(1, 0)] == 4.0

    grid.reshape((3, 2))
    assert np.array_equal(grid.values, before)
    assert grid[(1, 0)] == 3.0
    assert grid[(2, 1)] == 6.0


def test_reshape_rejects_size_change():
    grid = NdGrid((2, 3))
    with pytest.raises(ValueError):
        grid.reshape((4, 2))
    assert grid.shape == (2, 3)


def test_copy_is_deep():
    grid = NdGrid((2, 2), default_value=1.0)
    clone = grid.copy()
    clone[(0, 0)] = 5.0
    assert grid[(0, 0)] == 1.0
    assert clone.shape == grid.shape


def test_astype_casts_elementwise():
    grid = NdGrid.from_array([[1.7, 2.2], [-0.5, 3.9]])
    as_int = grid.astype(np.int64)
    assert as_int.dtype == np.int64
    assert as_int.to_numpy().tolist() == [[1, 2], [0, 3]]
    # the source grid is untouched
    assert grid[(0, 0)] == pytest.approx(1.7)


def test_grid_arithmetic():
    a = NdGrid.from_array([[1.0, 2.0], [3.0, 4.0]])
    b = NdGrid.from_array([[2.0, 2.0], [2.0, 8.0]])

    assert (a + b).to_numpy().tolist() == [[3.0, 4.0], [5.0, 12.0]]
    assert a.subtract(b).to_numpy().tolist() == [[-1.0, 0.0], [1.0, -4.0]]
    assert (a * b).to_numpy().tolist() == [[2.0, 4.0], [6.0, 32.0]]
    assert (a / b).to_numpy().tolist() == [[0.5, 1.0], [1.5, 0.5]]
    assert (a % b).to_numpy().tolist() == [[1.0, 0.0], [1.0, 4.0]]
    # operands are never modified
    assert a.to_numpy().tolist() == [[1.0, 2.0], [3.0, 4.0]]


def test_scalar_arithmetic():
    a = NdGrid.from_array([1.0, 2.0, 3.0])
    assert (a + 1).values.tolist() == [2.0, 3.0, 4.0]
    assert (1 + a).values.tolist() == [2.0, 3.0, 4.0]
    assert (a - 1).values.tolist() == [0.0, 1.0, 2.0]
    assert (2 * a).values.tolist() == [2.0, 4.0, 6.0]
    assert a.multiply(5).add(1).values.tolist() == [6.0, 11.0, 16.0]
    assert a.divide(2).values.tolist() == [0.5, 1.0, 1.5]
    assert a.modulo(2).values.tolist() == [1.0, 0.0, 1.0]


def test_integer_grid_keeps_dtype():
    counts = NdGrid((3,), default_value=7, dtype=np.int64)
    halved = counts / 2
    assert halved.dtype == np.int64
    assert halved.values.tolist() == [3, 3, 3]
    assert (counts % 4).values.tolist() == [3, 3, 3]


def test_shape_mismatch_rejected():
    a = NdGrid((2, 3))
    b = NdGrid((3, 2))
    for op in (a.add, a.subtract, a.multiply, a.divide, a.modulo):
        with pytest.raises(ValueError):
            op(b)


def test_max_min():
    grid = NdGrid.from_array([[3.0, -2.0], [9.5, 0.0]])
    assert grid.max_value() == 9.5
    assert grid.min_value() == -2.0
