# src/mule/utils.py
from __future__ import annotations

import configparser
import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

import numpy as np

from .errors import ConfigurationError, FormatError
from .ndgrid import NdGrid

try:  # Python 3.11+
    import tomllib
except ModuleNotFoundError:  # pragma: no cover
    tomllib = None  # type: ignore


@dataclass
class PathResult:
    """Common container for a path search outcome."""

    trajectory: Optional[np.ndarray] = None
    energies: Optional[np.ndarray] = None
    explored: Optional[np.ndarray] = None
    meta: Optional[Dict[str, Any]] = None

    def ensure_meta(self) -> Dict[str, Any]:
        if self.meta is None:
            self.meta = {}
        return self.meta


def require_file(path: str | os.PathLike[str]) -> Path:
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"Missing input file: {path}")
    return path


def read_dat(path: str | os.PathLike[str], dtype=np.float64) -> NdGrid:
    """
    Read a whitespace-separated table into a 2D grid.

    Lines starting with '#' and blank lines are skipped. The column count
    comes from the first data row; shorter rows are padded with zeros and
    extra columns are dropped.
    """
    rows: List[List[str]] = []
    with open(require_file(path), "r") as fh:
        for line in fh:
            if line.startswith("#"):
                continue
            fields = line.split()
            if fields:
                rows.append(fields)
    if not rows:
        raise FormatError(f"{path} contains no data rows")

    ncols = len(rows[0])
    grid = NdGrid((len(rows), ncols), dtype=dtype)
    table = np.zeros((len(rows), ncols), dtype=np.float64)
    try:
        for i, fields in enumerate(rows):
            values = [float(f) for f in fields[:ncols]]
            table[i, : len(values)] = values
    except ValueError as exc:
        raise FormatError(f"{path}: non-numeric entry in row {i + 1}") from exc
    grid.values[:] = table.ravel().astype(grid.dtype)
    return grid


def write_dat(path: str | os.PathLike[str], grid: NdGrid) -> None:
    """Write a 2D grid as a whitespace-separated table."""
    if grid.ndim != 2:
        raise ValueError(f"write_dat expects a 2D grid, got shape {grid.shape}")
    Path(path).parent.mkdir(parents=True, exist_ok=True)
    table = grid.to_numpy()
    with open(path, "w") as fh:
        for row in table:
            fh.write(" ".join(format_number(v) for v in row) + " \n")


def format_number(value) -> str:
    """Shortest text that reads back to the same number."""
    if isinstance(value, (int, np.integer)):
        return str(int(value))
    return repr(float(value))


def write_points(path: str | os.PathLike[str], points) -> None:
    """One point per line, coordinates separated by spaces."""
    with open(path, "w") as fh:
        for point in points:
            fh.write(" ".join(format_number(c) for c in point) + "\n")


def write_values(path: str | os.PathLike[str], values) -> None:
    with open(path, "w") as fh:
        for value in values:
            fh.write(format_number(value) + "\n")


def save_path_result(
    prefix: str | os.PathLike[str], result: PathResult, *, write_explored: bool = False
) -> List[Path]:
    """
    Write <prefix>.traj, <prefix>.energy and optionally <prefix>.explored.

    Returns the list of files written.
    """
    prefix = str(prefix)
    Path(prefix).parent.mkdir(parents=True, exist_ok=True)
    written = [Path(prefix + ".traj"), Path(prefix + ".energy")]
    write_points(written[0], result.trajectory)
    write_values(written[1], result.energies)
    if write_explored:
        if result.explored is None:
            raise ValueError("Explored points were requested but not recorded")
        written.append(Path(prefix + ".explored"))
        write_points(written[2], result.explored)
    return written


def load_points(path: str | os.PathLike[str]) -> np.ndarray:
    """Read a .traj / .explored file back as an (N, D) array."""
    return read_dat(path).to_numpy()


def _load_ini(text: str) -> Dict[str, Any]:
    parser = configparser.ConfigParser(
        comment_prefixes=("#", ";", "//"),
        inline_comment_prefixes=(";", "#", "//"),
        interpolation=None,
    )
    parser.read_string(text)
    return {section: dict(parser.items(section)) for section in parser.sections()}


def load_params(path: str | os.PathLike[str]) -> Dict[str, Any]:
    """
    Load run parameters from an INI, JSON or TOML file.
    """
    path = str(path)
    with open(require_file(path), "rb") as fh:
        data = fh.read()
    suffix = Path(path).suffix.lower()
    try:
        if suffix in {".ini", ".cfg", ".conf"}:
            return _load_ini(data.decode("utf-8"))
        if suffix in {".json", ""}:
            return json.loads(data.decode("utf-8"))
        if suffix in {".toml", ".tml"}:
            if tomllib is None:
                raise RuntimeError("tomllib is unavailable; cannot parse TOML files")
            return tomllib.loads(data.decode("utf-8"))
    except (configparser.Error, ValueError) as exc:
        # JSONDecodeError and TOMLDecodeError are ValueErrors
        raise FormatError(f"Cannot parse {path}: {exc}") from exc
    raise ConfigurationError(f"Unsupported parameter file format: {suffix}")

