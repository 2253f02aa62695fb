"""
Dense N-dimensional grid with row-major storage.

The grid owns a flat numpy buffer and a shape. Index vectors map to linear
offsets with the last axis contiguous (C order), so

    offset = sum(p[i] * prod(shape[i + 1:]))

`reshape` only swaps the shape used by that mapping; the buffer is never
reordered:

    [1, 2, 3, 4, 5, 6]  (6,)  ->  [[1, 2, 3], [4, 5, 6]]  (2, 3)
                              ->  [[1, 2], [3, 4], [5, 6]]  (3, 2)
"""

from __future__ import annotations

import itertools
from typing import Iterator, Sequence, Tuple

import numpy as np


def _check_shape(shape: Sequence[int]) -> Tuple[int, ...]:
    shape = tuple(int(s) for s in shape)
    if len(shape) == 0:
        raise ValueError("Grid shape must have at least one dimension")
    if any(s <= 0 for s in shape):
        raise ValueError(f"Grid dimensions must be positive, got {shape}")
    return shape


def _strides(shape: Tuple[int, ...]) -> Tuple[int, ...]:
    strides = []
    step = 1
    for size in reversed(shape):
        strides.append(step)
        step *= size
    return tuple(reversed(strides))


class NdGrid:
    """Numeric N-dimensional array backed by a contiguous buffer."""

    def __init__(self, shape: Sequence[int], default_value=0, dtype=np.float64) -> None:
        dtype = np.dtype(dtype)
        if dtype.kind not in "iuf":
            raise TypeError(f"NdGrid holds integer or floating values, not {dtype}")
        self._shape = _check_shape(shape)
        self._strides = _strides(self._shape)
        self._data = np.full(int(np.prod(self._shape)), default_value, dtype=dtype)

    # ------------------------------------------------------------------ builders
    @classmethod
    def from_array(cls, values, shape: Sequence[int] | None = None, dtype=None) -> "NdGrid":
        """Copy an array-like into a new grid (shape defaults to the array's)."""
        arr = np.array(values, dtype=dtype)
        grid = cls(arr.shape if shape is None else shape, dtype=arr.dtype)
        if arr.size != grid.total_size:
            raise ValueError(
                f"Cannot fit {arr.size} values into a grid of shape {grid.shape}"
            )
        grid._data[:] = arr.ravel()
        return grid

    def copy(self) -> "NdGrid":
        """Deep copy; the new grid owns its own buffer."""
        return self.astype(self.dtype)

    def astype(self, dtype) -> "NdGrid":
        """Element-wise cast into a new grid of the requested numeric type."""
        grid = NdGrid(self._shape, dtype=dtype)
        grid._data[:] = self._data.astype(grid.dtype)
        return grid

    # ------------------------------------------------------------------ layout
    @property
    def shape(self) -> Tuple[int, ...]:
        return self._shape

    @property
    def ndim(self) -> int:
        return len(self._shape)

    @property
    def total_size(self) -> int:
        return self._data.size

    @property
    def dtype(self) -> np.dtype:
        return self._data.dtype

    @property
    def values(self) -> np.ndarray:
        """The flat backing buffer (not a copy)."""
        return self._data

    def to_numpy(self) -> np.ndarray:
        return self._data.reshape(self._shape).copy()

    def position(self, index: Sequence[int]) -> int:
        """Linear offset of an index vector."""
        if len(index) != len(self._shape):
            raise IndexError(
                f"Index {tuple(index)} has {len(index)} components, grid has {self.ndim}"
            )
        offset = 0
        for p, stride in zip(index, self._strides):
            offset += p * stride
        return offset

    def reshape(self, new_shape: Sequence[int]) -> None:
        new_shape = _check_shape(new_shape)
        if int(np.prod(new_shape)) != self.total_size:
            raise ValueError(
                f"Cannot reshape grid of size {self.total_size} into {new_shape}"
            )
        self._shape = new_shape
        self._strides = _strides(new_shape)

    def indices(self) -> Iterator[Tuple[int, ...]]:
        """Every index vector in row-major order."""
        return itertools.product(*(range(s) for s in self._shape))

    # ------------------------------------------------------------------ access
    def __getitem__(self, index: Sequence[int]):
        return self._data[self.position(index)]

    def __setitem__(self, index: Sequence[int], value) -> None:
        self._data[self.position(index)] = value

    def max_value(self):
        return self._data.max()

    def min_value(self):
        return self._data.min()

    # ------------------------------------------------------------------ arithmetic
    def _operand(self, other):
        if isinstance(other, NdGrid):
            if other.shape != self._shape:
                raise ValueError(
                    f"Shape mismatch: {self._shape} vs {other.shape}"
                )
            return other._data
        return other

    def _wrap(self, result: np.ndarray) -> "NdGrid":
        grid = NdGrid(self._shape, dtype=self.dtype)
        grid._data[:] = result.astype(self.dtype, copy=False)
        return grid

    def add(self, other) -> "NdGrid":
        return self._wrap(self._data + self._operand(other))

    def subtract(self, other) -> "NdGrid":
        return self._wrap(self._data - self._operand(other))

    def multiply(self, other) -> "NdGrid":
        return self._wrap(self._data * self._operand(other))

    def divide(self, other) -> "NdGrid":
        rhs = self._operand(other)
        if self.dtype.kind in "iu":
            return self._wrap(np.floor_divide(self._data, rhs))
        return self._wrap(self._data / rhs)

    def modulo(self, other) -> "NdGrid":
        return self._wrap(np.mod(self._data, self._operand(other)))

    __add__ = add
    __radd__ = add
    __sub__ = subtract
    __mul__ = multiply
    __rmul__ = multiply
    __truediv__ = divide
    __mod__ = modulo

    def __repr__(self) -> str:
        return f"NdGrid(shape={self._shape}, dtype={self.dtype})"


__all__ = ["NdGrid"]
