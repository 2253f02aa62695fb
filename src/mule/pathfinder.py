"""
Least-energy pathway search on a PMF grid.

The lattice graph has one vertex per grid cell and edges to the 2*D
axis-aligned neighbours; periodic axes wrap from the last index to the first.

The frontier is ordered by the *energy of the point itself* (plus an optional
heuristic), not by an accumulated path cost. Expanding the globally lowest
point first grows the explored region like a flood fill from the start, so
the path found to the end point minimises the highest energy it crosses
(the barrier) rather than the sum of energies along it.

Ties in priority are broken first-in, first-out: of two frontier points with
equal priority, the one that entered the frontier earlier is expanded first.

Usage::

    finder = PathFinder(pmf, initial_point, end_point, pbc)
    finder.set_targeted_points([[19.5, 2.2]], [[1.0, 1.0]])  # optional bias
    finder.run(finder.manhattan_potential())
    coords, energies = finder.get_results()
    explored = finder.get_explored_points()
"""

from __future__ import annotations

import heapq
import itertools
import logging
from typing import Callable, Dict, List, Optional, Sequence, Tuple

import numpy as np

from .bias import ManhattanPotential, Target, ZeroPotential
from .errors import ConfigurationError, DegenerateGraphError, SearchError, UnreachableTargetError
from .pmf import Pmf

logger = logging.getLogger(__name__)

GridPoint = Tuple[int, ...]

OPEN = 1
CLOSED = 2


class PathFinder:
    """Best-first minimum-barrier search between two points of a PMF."""

    def __init__(
        self,
        pmf: Pmf,
        initial_point: Sequence[float],
        end_point: Sequence[float],
        pbc: Sequence[bool],
        *,
        energy_cutoff: Optional[float] = None,
    ) -> None:
        dimension = pmf.dimension
        if not (len(initial_point) == len(end_point) == len(pbc) == dimension):
            raise ConfigurationError(
                f"initial point, end point and pbc must all have {dimension} components "
                f"(got {len(initial_point)}, {len(end_point)}, {len(pbc)})"
            )

        self.pmf = pmf
        self.dimension = dimension
        self.pbc = tuple(bool(p) for p in pbc)
        self.energy_cutoff = energy_cutoff

        # the search runs in internal units: indices 0 .. shape-1, unit steps
        self.lowerboundary: GridPoint = (0,) * dimension
        self.upperboundary: GridPoint = tuple(s - 1 for s in pmf.shape)
        self.width: GridPoint = (1,) * dimension

        self.initial_point = pmf.rc_to_internal(initial_point)
        self.end_point = pmf.rc_to_internal(end_point)
        for name, rc, point in (
            ("initial", initial_point, self.initial_point),
            ("end", end_point, self.end_point),
        ):
            if not pmf.contains(point):
                raise ConfigurationError(
                    f"The {name} point {tuple(rc)} lies outside the PMF grid"
                )

        self.targets: List[Target] = []
        self._reset()

    def _reset(self) -> None:
        self.parent: Dict[GridPoint, GridPoint] = {}
        self.state: Dict[GridPoint, int] = {}
        self.closed: List[GridPoint] = []
        self.trajectory: List[GridPoint] = []

    # ------------------------------------------------------------------ bias
    def set_targeted_points(
        self,
        points: Sequence[Sequence[float]],
        force_constants: Sequence[Sequence[float]],
    ) -> None:
        """Add targets (continuous coordinates) for the Manhattan bias."""
        if len(points) != len(force_constants):
            raise ConfigurationError(
                f"Got {len(points)} targeted points but {len(force_constants)} force constants"
            )
        for point, fc in zip(points, force_constants):
            if len(fc) != self.dimension:
                raise ConfigurationError(
                    f"Force constant {tuple(fc)} does not have {self.dimension} components"
                )
            self.targets.append(
                Target(self.pmf.rc_to_internal(point), tuple(float(k) for k in fc))
            )

    def manhattan_potential(self) -> ManhattanPotential:
        return ManhattanPotential(
            self.targets, self.pbc, self.lowerboundary, self.upperboundary
        )

    # ------------------------------------------------------------------ graph
    def find_adjacent_points(self, point: GridPoint) -> List[GridPoint]:
        """
        Left then right neighbour along each axis, in axis order.

        Periodic axes wrap to the opposite extreme; on other axes an
        out-of-range neighbour is dropped.
        """
        adjacent = []
        for i in range(self.dimension):
            lo, up, step = self.lowerboundary[i], self.upperboundary[i], self.width[i]

            left = point[i] - step
            if left < lo:
                left = up if self.pbc[i] else None
            right = point[i] + step
            if right > up:
                right = lo if self.pbc[i] else None

            if left is not None:
                adjacent.append(point[:i] + (left,) + point[i + 1 :])
            if right is not None:
                adjacent.append(point[:i] + (right,) + point[i + 1 :])

        if not adjacent:
            raise DegenerateGraphError(point)
        return adjacent

    def _passable(self, energies: np.ndarray) -> np.ndarray:
        passable = np.isfinite(energies)
        if self.energy_cutoff is not None:
            passable &= energies <= self.energy_cutoff
        return passable

    # ------------------------------------------------------------------ search
    def run(self, potential: Optional[Callable[[GridPoint], float]] = None) -> List[GridPoint]:
        """
        Search from the initial point to the end point.

        `potential` adds a heuristic to each point's energy; it defaults to
        zero. Returns the trajectory as grid points, start to end.
        """
        if potential is None:
            potential = ZeroPotential()
        self._reset()

        energies = np.asarray(self.pmf.data.values, dtype=np.float64)
        passable = self._passable(energies)
        if hasattr(potential, "evaluate_grid"):
            priorities = energies + potential.evaluate_grid(self.pmf.shape)
            point_bias = None
        else:
            priorities = energies
            point_bias = potential

        position = self.pmf.data.position
        counter = itertools.count()

        def priority(point: GridPoint) -> float:
            value = float(priorities[position(point)])
            if point_bias is not None:
                value += point_bias(point)
            return value

        start, end = self.initial_point, self.end_point
        logger.debug("Searching %s -> %s on grid %s", start, end, self.pmf.shape)
        frontier = [(priority(start), next(counter), start)]
        self.state[start] = OPEN

        while frontier:
            _, _, p = heapq.heappop(frontier)
            self.state[p] = CLOSED
            self.closed.append(p)

            if p == end:
                self.trajectory = self._construct_results(end)
                logger.debug(
                    "Reached %s after exploring %d points", end, len(self.closed)
                )
                return self.trajectory

            for q in self.find_adjacent_points(p):
                if q in self.state or not passable[position(q)]:
                    continue
                self.state[q] = OPEN
                self.parent[q] = p
                heapq.heappush(frontier, (priority(q), next(counter), q))

        raise UnreachableTargetError(end, len(self.closed))

    def _construct_results(self, point: GridPoint) -> List[GridPoint]:
        path = [point]
        while point in self.parent:
            point = self.parent[point]
            path.append(point)
        path.reverse()
        return path

    # ------------------------------------------------------------------ results
    def _require_results(self) -> None:
        if not self.trajectory:
            raise SearchError("No search results available; call run() first")

    def _require_explored(self) -> None:
        # closed points are kept after an unreachable-target failure
        if not self.closed:
            raise SearchError("No points explored yet; call run() first")

    def get_results(self) -> Tuple[np.ndarray, np.ndarray]:
        """(N, D) continuous coordinates and N energies along the path."""
        self._require_results()
        coords = np.array(
            [self.pmf.internal_to_rc(p) for p in self.trajectory], dtype=np.float64
        )
        energies = np.array([self.pmf[p] for p in self.trajectory])
        return coords, energies

    def get_explored_points(self) -> np.ndarray:
        """Continuous coordinates of every finalised point, in order."""
        self._require_explored()
        return np.array(
            [self.pmf.internal_to_rc(p) for p in self.closed], dtype=np.float64
        )

    @property
    def explored_point_num(self) -> int:
        self._require_explored()
        return len(self.closed)


__all__ = ["GridPoint", "PathFinder"]
