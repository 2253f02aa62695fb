"""
Run parameters and the end-to-end pathway workflow.

A run is described by the keys of the ``[mule]`` section of an INI file
(or the same keys in JSON / TOML)::

    [mule]
    directory             =   ./ref.pmf
    lowerboundary         =   -20, 0        ; omit all three for NAMD files
    upperboundary         =    20, 3
    width                 =   0.2, 0.1
    initial               =   -20, 1.0
    end                   =    20, 1.0
    pbc                   =     0, 0
    writeExploredPoints   =     0
    target                =    20, 1.0, 0.1, 0.0

``target`` is a flat list of (coordinate, force constant) blocks of length
2*D each; several blocks define several targets.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple

from . import utils
from .errors import ConfigurationError
from .pathfinder import PathFinder
from .pmf import DEFAULT_ACCURACY, Pmf

logger = logging.getLogger(__name__)

Vector = Tuple[float, ...]

# normalised config key -> RunParams field
_CONFIG_KEYS = {
    "directory": "directory",
    "lowerboundary": "lowerboundary",
    "upperboundary": "upperboundary",
    "width": "width",
    "initial": "initial",
    "end": "end",
    "pbc": "pbc",
    "writeexploredpoints": "write_explored_points",
    "target": "target",
    "cutoff": "energy_cutoff",
    "energycutoff": "energy_cutoff",
    "outputprefix": "output_prefix",
    "accuracy": "accuracy",
}

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off", ""}


@dataclass
class RunParams:
    directory: str
    initial: Vector
    end: Vector
    pbc: Tuple[bool, ...]
    lowerboundary: Optional[Vector] = None
    upperboundary: Optional[Vector] = None
    width: Optional[Vector] = None
    write_explored_points: bool = False
    targets: List[Tuple[Vector, Vector]] = field(default_factory=list)
    energy_cutoff: Optional[float] = None
    output_prefix: Optional[str] = None
    accuracy: float = DEFAULT_ACCURACY

    def __post_init__(self) -> None:
        self.validate()

    @property
    def dimension(self) -> int:
        return len(self.initial)

    @property
    def namd_format(self) -> bool:
        """True when the grid file carries its own boundaries."""
        return self.lowerboundary is None

    @property
    def prefix(self) -> str:
        if self.output_prefix:
            return self.output_prefix
        return os.path.splitext(self.directory)[0]

    def validate(self) -> None:
        if not self.directory:
            raise ConfigurationError("'directory' (the PMF file) must be given")
        dim = len(self.initial)
        if dim == 0:
            raise ConfigurationError("'initial' must contain at least one coordinate")
        if len(self.end) != dim or len(self.pbc) != dim:
            raise ConfigurationError(
                f"'initial', 'end' and 'pbc' must have the same length "
                f"(got {dim}, {len(self.end)}, {len(self.pbc)})"
            )

        bounds = (self.lowerboundary, self.upperboundary, self.width)
        given = [b is not None for b in bounds]
        if any(given) and not all(given):
            raise ConfigurationError(
                "'lowerboundary', 'upperboundary' and 'width' must be given together"
            )
        if all(given):
            for name, vec in zip(("lowerboundary", "upperboundary", "width"), bounds):
                if len(vec) != dim:
                    raise ConfigurationError(
                        f"'{name}' has {len(vec)} components, expected {dim}"
                    )

        for point, fc in self.targets:
            if len(point) != dim or len(fc) != dim:
                raise ConfigurationError(
                    f"Target {point} / force constant {fc} must have {dim} components"
                )
        if self.accuracy <= 0:
            raise ConfigurationError("'accuracy' must be positive")


def _normalise_key(key: Any) -> str:
    return str(key).replace("_", "").replace("-", "").lower()


def parse_flag(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE:
        return True
    if text in _FALSE:
        return False
    try:
        return float(text) != 0
    except ValueError as exc:
        raise ConfigurationError(f"Cannot interpret {value!r} as a boolean") from exc


def parse_vector(value: Any, cast: Callable[[Any], Any] = float) -> tuple:
    """Parse a comma-separated string or a list into a tuple."""
    if value is None:
        return ()
    if isinstance(value, str):
        items = [item.strip() for item in value.split(",")]
        items = [item for item in items if item]
    elif isinstance(value, (int, float)):
        items = [value]
    else:
        items = list(value)
    try:
        return tuple(cast(item) for item in items)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"Cannot parse {value!r} as a list of numbers") from exc


def _optional_vector(value: Any) -> Optional[Vector]:
    vec = parse_vector(value)
    return vec or None


def _optional_scalar(value: Any, name: str, default: Optional[float] = None) -> Optional[float]:
    """A single number, or `default` when the entry is missing or empty."""
    vec = parse_vector(value)
    if not vec:
        return default
    if len(vec) > 1:
        raise ConfigurationError(f"'{name}' takes a single number, got {value!r}")
    return vec[0]


def _split_targets(flat: Vector, dim: int) -> List[Tuple[Vector, Vector]]:
    block = 2 * dim
    if len(flat) % block:
        raise ConfigurationError(
            f"'target' needs blocks of {block} numbers (coordinate then force "
            f"constant), got {len(flat)} numbers"
        )
    return [
        (flat[i : i + dim], flat[i + dim : i + block]) for i in range(0, len(flat), block)
    ]


def params_from_dict(config: Dict[str, Any]) -> RunParams:
    """
    Build RunParams from a parsed config mapping.

    The keys may sit at the top level or under a ``mule`` section. Key
    matching ignores case, underscores and dashes.
    """
    section = config
    for key, value in config.items():
        if _normalise_key(key) == "mule" and isinstance(value, dict):
            section = value
            break

    values: Dict[str, Any] = {}
    for key, value in section.items():
        name = _CONFIG_KEYS.get(_normalise_key(key))
        if name is None:
            if not isinstance(value, dict):
                logger.warning("Ignoring unknown configuration key %r", key)
            continue
        values[name] = value

    missing = [k for k in ("directory", "initial", "end", "pbc") if values.get(k) in (None, "")]
    if missing:
        raise ConfigurationError(f"Missing mandatory configuration keys: {', '.join(missing)}")

    initial = parse_vector(values["initial"])
    if not initial:
        raise ConfigurationError("'initial' must contain at least one coordinate")
    return RunParams(
        directory=str(values["directory"]).strip(),
        initial=initial,
        end=parse_vector(values["end"]),
        pbc=parse_vector(values["pbc"], parse_flag),
        lowerboundary=_optional_vector(values.get("lowerboundary")),
        upperboundary=_optional_vector(values.get("upperboundary")),
        width=_optional_vector(values.get("width")),
        write_explored_points=parse_flag(values.get("write_explored_points", False)),
        targets=_split_targets(parse_vector(values.get("target")), len(initial)),
        energy_cutoff=_optional_scalar(values.get("energy_cutoff"), "cutoff"),
        output_prefix=str(values["output_prefix"]) if values.get("output_prefix") else None,
        accuracy=_optional_scalar(values.get("accuracy"), "accuracy", DEFAULT_ACCURACY),
    )


def load_run_params(path: str | os.PathLike[str]) -> RunParams:
    return params_from_dict(utils.load_params(path))


def load_pmf(params: RunParams) -> Pmf:
    if params.namd_format:
        logger.info("Reading NAMD PMF file %s", params.directory)
        return Pmf.from_namd_file(params.directory, accuracy=params.accuracy)
    logger.info("Reading plain PMF file %s", params.directory)
    return Pmf.from_plain_file(
        params.directory,
        params.lowerboundary,
        params.width,
        params.upperboundary,
        accuracy=params.accuracy,
    )


def find_pathway(pmf: Pmf, params: RunParams) -> utils.PathResult:
    """Run the search on a loaded PMF and collect the results."""
    if pmf.dimension != params.dimension:
        raise ConfigurationError(
            f"The PMF has {pmf.dimension} dimensions but the run parameters have "
            f"{params.dimension}"
        )
    finder = PathFinder(
        pmf, params.initial, params.end, params.pbc, energy_cutoff=params.energy_cutoff
    )
    if params.targets:
        finder.set_targeted_points(
            [point for point, _ in params.targets], [fc for _, fc in params.targets]
        )
        finder.run(finder.manhattan_potential())
    else:
        finder.run()

    trajectory, energies = finder.get_results()
    explored = finder.get_explored_points() if params.write_explored_points else None
    meta = {
        "prefix": params.prefix,
        "shape": pmf.shape,
        "explored_point_num": finder.explored_point_num,
        "num_targets": len(params.targets),
        "barrier": float(energies.max()),
    }
    return utils.PathResult(
        trajectory=trajectory, energies=energies, explored=explored, meta=meta
    )


def run_model(config: RunParams | Dict[str, Any]) -> utils.PathResult:
    params = config if isinstance(config, RunParams) else params_from_dict(config)
    return find_pathway(load_pmf(params), params)


__all__ = [
    "RunParams",
    "find_pathway",
    "load_pmf",
    "load_run_params",
    "params_from_dict",
    "parse_flag",
    "parse_vector",
    "run_model",
]
