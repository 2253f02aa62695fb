#!/usr/bin/env python3
"""
MULE Pathway Runner

Reads a run configuration (INI with a [mule] section, JSON or TOML), finds the
least-energy pathway on the PMF it points to, and writes <prefix>.traj,
<prefix>.energy and optionally <prefix>.explored.

Exit status is 0 on success and 1 on any configuration, I/O, format or
search error.
"""

import argparse
import logging
import sys
import time
from pathlib import Path

# Allow running from a source checkout without installing
SRC = Path(__file__).resolve().parents[1]
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from mule import MuleError, __version__, runner, utils  # noqa: E402


def _fmt(values) -> str:
    return " ".join(f"{v:g}" for v in values)


def print_inputs(params: runner.RunParams) -> None:
    if params.namd_format:
        print(f"Reading NAMD PMF file {params.directory}")
        print("Lowerboundary, upperboundary and width will be read from the PMF file!")
    else:
        print(f"Reading plain PMF file {params.directory}")
        print(f"lowerboundary: {_fmt(params.lowerboundary)}")
        print(f"upperboundary: {_fmt(params.upperboundary)}")
        print(f"width: {_fmt(params.width)}")
    print(f"initial point: {_fmt(params.initial)}")
    print(f"end point: {_fmt(params.end)}")
    if params.targets:
        print("Target points:")
        for point, fc in params.targets:
            print(f"  {_fmt(point)}  (force constants {_fmt(fc)})")
    if params.energy_cutoff is not None:
        print(f"energy cutoff: {params.energy_cutoff:g}")


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(
        description="Find the least-energy pathway between two points of a PMF",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "config",
        help="Run configuration (.ini with a [mule] section, .json or .toml)",
    )
    parser.add_argument(
        "--prefix",
        type=str,
        default=None,
        help="Output prefix (default: PMF path without its extension)",
    )
    parser.add_argument(
        "--explored",
        action="store_true",
        help="Also write every explored point to <prefix>.explored",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log search details",
    )
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    print(f"MUltidimensional Least Energy finder (MULE) v{__version__}\n")

    try:
        params = runner.load_run_params(args.config)
        if args.prefix is not None:
            params.output_prefix = args.prefix
        if args.explored:
            params.write_explored_points = True
        print_inputs(params)

        start_time = time.time()
        result = runner.run_model(params)
        elapsed_time = time.time() - start_time

        written = utils.save_path_result(
            params.prefix, result, write_explored=params.write_explored_points
        )
    except (MuleError, OSError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    meta = result.ensure_meta()
    print(f"\nFinished! See {written[0]} and {written[1]} for the results")
    if params.write_explored_points:
        print(f"   Explored points written to {written[2]}")
    print(f"   Path length: {len(result.energies)} points")
    print(f"   Highest energy along the path: {meta['barrier']:g}")
    print(f"   Time elapsed: {elapsed_time:.2f} seconds")
    print(f"A total of {meta['explored_point_num']} points have been explored!")
    return 0


if __name__ == "__main__":
    sys.exit(main())
