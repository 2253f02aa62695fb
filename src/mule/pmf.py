"""
Potential of mean force on a regular grid.

A `Pmf` pairs an `NdGrid` of energies (or counts) with the mapping between
continuous reaction coordinates (RC) and internal grid indices:

    internal[i] = floor((rc[i] - lowerboundary[i] + accuracy) / width[i] + 1/2)
    rc[i]       = internal[i] * width[i] + lowerboundary[i]

Grid points sit on bin centres and a coordinate maps to the nearest centre,
so the boundaries are inclusive and the shape along each axis is
``round((ub - lb + accuracy) / width) + 1``.

Two file layouts are understood:

* NAMD ``.pmf`` files, which describe their own grid in a ``#`` header
  (``# D`` followed by ``# origin width count pbc`` per axis);
* plain tables of ``D`` coordinate columns plus one value column, which need
  the boundaries and widths supplied by the caller.
"""

from __future__ import annotations

import logging
import math
import os
from pathlib import Path
from typing import Optional, Sequence, Tuple

import numpy as np

from .errors import ConfigurationError, FormatError
from .ndgrid import NdGrid
from .utils import format_number, read_dat, require_file

logger = logging.getLogger(__name__)

DEFAULT_ACCURACY = 1e-8


def _nearest(x: float) -> int:
    # half-way values go up
    return int(math.floor(x + 0.5))


def decimal_places(accuracy: float) -> int:
    """Digits kept when writing coordinates (7 for the default accuracy)."""
    return int(round(-math.log10(accuracy))) - 1


class Pmf:
    """Energy grid plus its coordinate system."""

    def __init__(
        self,
        lowerboundary: Sequence[float],
        width: Sequence[float],
        upperboundary: Sequence[float],
        data: Optional[NdGrid] = None,
        *,
        shape: Optional[Sequence[int]] = None,
        accuracy: float = DEFAULT_ACCURACY,
    ) -> None:
        self.lowerboundary = tuple(float(x) for x in lowerboundary)
        self.width = tuple(float(x) for x in width)
        self.upperboundary = tuple(float(x) for x in upperboundary)
        self.accuracy = float(accuracy)

        dimension = len(self.lowerboundary)
        if dimension == 0:
            raise ConfigurationError("A PMF needs at least one dimension")
        if len(self.width) != dimension or len(self.upperboundary) != dimension:
            raise ConfigurationError(
                "lowerboundary, width and upperboundary must have the same length "
                f"(got {dimension}, {len(self.width)}, {len(self.upperboundary)})"
            )
        if any(w <= 0 for w in self.width):
            raise ConfigurationError(f"Bin widths must be positive, got {self.width}")
        if any(u < l for l, u in zip(self.lowerboundary, self.upperboundary)):
            raise ConfigurationError(
                f"upperboundary {self.upperboundary} lies below "
                f"lowerboundary {self.lowerboundary}"
            )

        if shape is None:
            shape = tuple(
                _nearest((u - l + self.accuracy) / w) + 1
                for l, w, u in zip(self.lowerboundary, self.width, self.upperboundary)
            )
        elif len(shape) != dimension:
            raise ConfigurationError(f"Shape {tuple(shape)} does not match dimension {dimension}")
        self.shape: Tuple[int, ...] = tuple(int(s) for s in shape)

        if data is None:
            data = NdGrid(self.shape)
        elif data.shape != self.shape:
            raise ConfigurationError(
                f"Grid shape {data.shape} does not match PMF shape {self.shape}"
            )
        self.data = data

    # ------------------------------------------------------------------ loaders
    @classmethod
    def from_namd_file(
        cls, path: str | os.PathLike[str], *, accuracy: float = DEFAULT_ACCURACY
    ) -> "Pmf":
        """Read a self-describing NAMD PMF file."""
        with open(require_file(path), "r") as fh:
            lines = fh.read().splitlines()

        if not lines or not lines[0].startswith("#"):
            raise FormatError(f"{path} is not a NAMD PMF file (missing '#' header)")
        try:
            dimension = int(lines[0].split()[1])
        except (IndexError, ValueError) as exc:
            raise FormatError(f"{path}: cannot read dimension from {lines[0]!r}") from exc
        if dimension <= 0 or len(lines) < dimension + 1:
            raise FormatError(f"{path}: truncated header for {dimension} dimensions")

        origins, widths, counts = [], [], []
        for line in lines[1 : dimension + 1]:
            fields = line.split()
            try:
                if fields[0] != "#":
                    raise ValueError(line)
                origins.append(float(fields[1]))
                widths.append(float(fields[2]))
                counts.append(int(fields[3]))
            except (IndexError, ValueError) as exc:
                raise FormatError(f"{path}: malformed axis header {line!r}") from exc

        lower = [o + 0.5 * w for o, w in zip(origins, widths)]
        upper = [l + w * (n - 1) for l, w, n in zip(lower, widths, counts)]
        try:
            pmf = cls(lower, widths, upper, shape=counts, accuracy=accuracy)
        except ValueError as exc:
            raise FormatError(f"{path}: invalid grid header ({exc})") from exc

        rows = []
        for lineno, line in enumerate(lines[dimension + 1 :], start=dimension + 2):
            fields = line.split()
            if not fields or fields[0].startswith("#"):
                continue
            if len(fields) < dimension + 1:
                raise FormatError(f"{path}:{lineno}: expected {dimension + 1} columns")
            try:
                rows.append([float(f) for f in fields[: dimension + 1]])
            except ValueError as exc:
                raise FormatError(f"{path}:{lineno}: non-numeric entry") from exc

        if rows:
            pmf.fill_from_table(np.asarray(rows, dtype=np.float64))
        logger.debug("Read NAMD PMF %s: shape=%s, %d rows", path, pmf.shape, len(rows))
        return pmf

    @classmethod
    def from_plain_file(
        cls,
        path: str | os.PathLike[str],
        lowerboundary: Sequence[float],
        width: Sequence[float],
        upperboundary: Sequence[float],
        *,
        accuracy: float = DEFAULT_ACCURACY,
    ) -> "Pmf":
        """Read a plain table using caller-supplied boundaries."""
        pmf = cls(lowerboundary, width, upperboundary, accuracy=accuracy)
        table = read_dat(path).to_numpy()
        if table.shape[1] < pmf.dimension + 1:
            raise FormatError(
                f"{path}: need {pmf.dimension} coordinate columns and one value column, "
                f"found {table.shape[1]} columns"
            )
        pmf.fill_from_table(table)
        logger.debug("Read plain PMF %s: shape=%s, %d rows", path, pmf.shape, table.shape[0])
        return pmf

    def fill_from_table(self, table: np.ndarray) -> None:
        """
        Store rows of ``rc_1 .. rc_D value`` into the grid.

        Rows falling outside the grid are skipped; a later row overwrites an
        earlier one that maps to the same cell.
        """
        table = np.asarray(table, dtype=np.float64)
        internal = self.rc_to_internal_many(table[:, : self.dimension])
        shape = np.asarray(self.shape)
        inside = np.all((internal >= 0) & (internal < shape), axis=1)
        skipped = int(np.count_nonzero(~inside))
        if skipped:
            logger.warning("Skipped %d rows outside the grid boundaries", skipped)
        offsets = np.ravel_multi_index(tuple(internal[inside].T), self.shape)
        self.data.values[offsets] = table[inside, self.dimension]

    # ------------------------------------------------------------------ writers
    def write_namd_file(self, path: str | os.PathLike[str]) -> None:
        """
        Write the grid in NAMD PMF format.

        Periodicity is not stored in a Pmf, so every axis is written with a
        0 flag.
        """
        digits = decimal_places(self.accuracy)
        last = tuple(s - 1 for s in self.shape)
        Path(path).parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as fh:
            fh.write(f"# {self.dimension}\n")
            for lower, width, count in zip(self.lowerboundary, self.width, self.shape):
                origin = format_number(lower - 0.5 * width)
                fh.write(f"# {origin:>10} {format_number(width):>10} {count:>10} 0\n")
            fh.write("\n")

            for index in self.data.indices():
                coords = " ".join(
                    format_number(round(c, digits)) for c in self.internal_to_rc(index)
                )
                fh.write(f"{coords} {format_number(self.data[index])}\n")
                # one blank line per axis that wraps after this cell
                for d in range(self.dimension - 1, -1, -1):
                    if index[d] != last[d]:
                        break
                    fh.write("\n")

    # ------------------------------------------------------------------ mapping
    @property
    def dimension(self) -> int:
        return len(self.shape)

    def rc_to_internal(self, rc: Sequence[float]) -> Tuple[int, ...]:
        """Index of the bin whose grid coordinate is the last one at or below `rc`."""
        if len(rc) != self.dimension:
            raise ConfigurationError(
                f"Coordinate {tuple(rc)} has {len(rc)} components, PMF has {self.dimension}"
            )
        return tuple(
            int(math.floor((x - l + self.accuracy) / w))
            for x, l, w in zip(rc, self.lowerboundary, self.width)
        )

    def rc_to_internal_many(self, coords: np.ndarray) -> np.ndarray:
        """Vectorised `rc_to_internal` over an (N, D) array."""
        coords = np.asarray(coords, dtype=np.float64).reshape(-1, self.dimension)
        lower = np.asarray(self.lowerboundary)
        width = np.asarray(self.width)
        return np.floor((coords - lower + self.accuracy) / width).astype(np.int64)

    def internal_to_rc(self, internal: Sequence[int]) -> Tuple[float, ...]:
        if len(internal) != self.dimension:
            raise ConfigurationError(
                f"Grid point {tuple(internal)} has {len(internal)} components, "
                f"PMF has {self.dimension}"
            )
        return tuple(
            float(p * w + l) for p, w, l in zip(internal, self.width, self.lowerboundary)
        )

    def contains(self, internal: Sequence[int]) -> bool:
        return len(internal) == self.dimension and all(
            0 <= p < s for p, s in zip(internal, self.shape)
        )

    # ------------------------------------------------------------------ lookup
    def energy_at(self, rc: Sequence[float]):
        """Energy of the bin containing a continuous coordinate."""
        return self.data[self.rc_to_internal(rc)]

    def __getitem__(self, internal: Sequence[int]):
        return self.data[internal]

    def __repr__(self) -> str:
        return (
            f"Pmf(lowerboundary={self.lowerboundary}, width={self.width}, "
            f"upperboundary={self.upperboundary}, shape={self.shape})"
        )


__all__ = ["DEFAULT_ACCURACY", "Pmf", "decimal_places"]
