"""
Heuristic potentials added to the frontier priority of the path search.

A potential is any callable mapping a grid point (tuple of ints) to a float.
Potentials that also provide ``evaluate_grid(shape)`` are evaluated once for
the whole grid, which is how the built-in ones are used.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence, Tuple

import numpy as np
from numba import njit

from .errors import ConfigurationError


@njit(cache=True)
def _manhattan_field(
    shape: np.ndarray,
    targets: np.ndarray,
    force_constants: np.ndarray,
    pbc: np.ndarray,
    lower: np.ndarray,
    upper: np.ndarray,
) -> np.ndarray:
    """Bias value for every cell, in row-major order."""
    ndim = shape.shape[0]
    total = 1
    for d in range(ndim):
        total *= shape[d]

    out = np.zeros(total, dtype=np.float64)
    index = np.zeros(ndim, dtype=np.int64)
    for offset in range(total):
        rem = offset
        for d in range(ndim - 1, -1, -1):
            index[d] = rem % shape[d]
            rem //= shape[d]

        energy = 0.0
        for t in range(targets.shape[0]):
            for d in range(ndim):
                dist = abs(index[d] - targets[t, d])
                if pbc[d]:
                    # wrap through either boundary
                    d2 = abs(index[d] - lower[d]) + abs(targets[t, d] - upper[d])
                    d3 = abs(index[d] - upper[d]) + abs(targets[t, d] - lower[d])
                    dist = min(dist, d2, d3)
                energy += dist * force_constants[t, d]
        out[offset] = energy
    return out


@dataclass(frozen=True)
class Target:
    """A grid point the search is steered toward, with per-axis force constants."""

    point: Tuple[int, ...]
    force_constant: Tuple[float, ...]


class ZeroPotential:
    """No bias: the search is a plain minimum-bottleneck expansion."""

    def __call__(self, point: Sequence[int]) -> float:
        return 0.0

    def evaluate_grid(self, shape: Sequence[int]) -> np.ndarray:
        return np.zeros(int(np.prod(shape)), dtype=np.float64)


class ManhattanPotential:
    """
    Sum over targets and axes of ``distance * force_constant``.

    On a non-periodic axis the distance is ``|p - t|``. On a periodic axis it
    is the smallest of the direct distance and the two distances that go
    through the lower or upper boundary index.
    """

    def __init__(
        self,
        targets: Sequence[Target],
        pbc: Sequence[bool],
        lowerboundary: Sequence[int],
        upperboundary: Sequence[int],
    ) -> None:
        self.targets = list(targets)
        self.pbc = tuple(bool(p) for p in pbc)
        self.lowerboundary = tuple(int(b) for b in lowerboundary)
        self.upperboundary = tuple(int(b) for b in upperboundary)
        ndim = len(self.pbc)
        for target in self.targets:
            if len(target.point) != ndim or len(target.force_constant) != ndim:
                raise ConfigurationError(
                    f"Target {target} does not match the {ndim}-dimensional grid"
                )

    def axis_distance(self, p: int, t: int, axis: int) -> int:
        direct = abs(p - t)
        if not self.pbc[axis]:
            return direct
        lo = self.lowerboundary[axis]
        up = self.upperboundary[axis]
        return min(direct, abs(p - lo) + abs(t - up), abs(p - up) + abs(t - lo))

    def __call__(self, point: Sequence[int]) -> float:
        energy = 0.0
        for target in self.targets:
            for axis, (p, t) in enumerate(zip(point, target.point)):
                energy += self.axis_distance(p, t, axis) * target.force_constant[axis]
        return energy

    def evaluate_grid(self, shape: Sequence[int]) -> np.ndarray:
        ndim = len(self.pbc)
        if not self.targets:
            return np.zeros(int(np.prod(shape)), dtype=np.float64)
        targets = np.array([t.point for t in self.targets], dtype=np.int64).reshape(-1, ndim)
        force_constants = np.array(
            [t.force_constant for t in self.targets], dtype=np.float64
        ).reshape(-1, ndim)
        return _manhattan_field(
            np.asarray(shape, dtype=np.int64),
            targets,
            force_constants,
            np.asarray(self.pbc, dtype=np.bool_),
            np.asarray(self.lowerboundary, dtype=np.int64),
            np.asarray(self.upperboundary, dtype=np.int64),
        )


__all__ = ["ManhattanPotential", "Target", "ZeroPotential"]
