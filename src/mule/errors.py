"""Exceptions raised by the MULE path finder."""

from __future__ import annotations


class MuleError(Exception):
    """Base class for every error raised by this package."""


class ConfigurationError(MuleError, ValueError):
    """Missing or inconsistent run parameters."""


class FormatError(MuleError, ValueError):
    """A grid or data file does not follow its expected layout."""


class SearchError(MuleError, RuntimeError):
    """The lattice search could not produce a path."""


class DegenerateGraphError(SearchError):
    """A lattice point has no neighbour under the configured periodicity."""

    def __init__(self, point):
        self.point = tuple(point)
        super().__init__(f"No adjacent point found for grid point {self.point}")


class UnreachableTargetError(SearchError):
    """The open set emptied before the end point was finalised."""

    def __init__(self, end_point, explored: int):
        self.end_point = tuple(end_point)
        self.explored = explored
        super().__init__(
            f"End point {self.end_point} is unreachable "
            f"({explored} points explored before the frontier emptied)"
        )
