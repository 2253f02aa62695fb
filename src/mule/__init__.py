"""
MULE - MUltidimensional Least Energy path finder

This package finds the minimum-barrier pathway between two points of a
potential of mean force (PMF) sampled on a regular grid:
- NdGrid: dense N-dimensional array with row-major storage
- Pmf: energy grid plus its reaction-coordinate mapping and file formats
- PathFinder: best-first lattice search with periodic axes and optional bias
"""

from .errors import (
    ConfigurationError,
    DegenerateGraphError,
    FormatError,
    MuleError,
    SearchError,
    UnreachableTargetError,
)
from .ndgrid import NdGrid
from .pmf import DEFAULT_ACCURACY, Pmf
from .bias import ManhattanPotential, Target, ZeroPotential
from .pathfinder import PathFinder
from .runner import RunParams, find_pathway, load_run_params, run_model
from . import utils

__version__ = "0.20.0"

__all__ = [
    # Core models
    "NdGrid",
    "Pmf",
    "PathFinder",
    # Heuristics
    "ManhattanPotential",
    "Target",
    "ZeroPotential",
    # Workflow
    "RunParams",
    "find_pathway",
    "load_run_params",
    "run_model",
    "DEFAULT_ACCURACY",
    # Errors
    "MuleError",
    "ConfigurationError",
    "FormatError",
    "SearchError",
    "DegenerateGraphError",
    "UnreachableTargetError",
    # Utilities
    "utils",
]
