# src/scripts/plot_path.py
"""
Plot a PMF together with the pathway found by run_mule.py.

2D surfaces are drawn as a heat map with the path (and optionally the
explored points) on top; 1D surfaces as an energy curve. The right-hand panel
always shows the energy profile along the path.
"""
import argparse
import os
import sys
from pathlib import Path

import matplotlib.pyplot as plt
import numpy as np

SRC = Path(__file__).resolve().parents[1]
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from mule import MuleError, Pmf, utils  # noqa: E402
from mule.runner import parse_vector  # noqa: E402


def load_surface(path, lower=None, upper=None, width=None):
    """Load a NAMD PMF, or a plain one when boundaries are given."""
    if lower is None and upper is None and width is None:
        return Pmf.from_namd_file(path)
    return Pmf.from_plain_file(
        path, parse_vector(lower), parse_vector(width), parse_vector(upper)
    )


def draw_surface(ax, pmf, cmap="viridis", vmax=None):
    """Draw a 1D or 2D PMF on `ax`; returns the mappable for a colorbar, if any."""
    energies = pmf.data.to_numpy()
    if pmf.dimension == 1:
        x = pmf.lowerboundary[0] + pmf.width[0] * np.arange(pmf.shape[0])
        ax.plot(x, energies, color="0.3", lw=1.0)
        ax.set_xlabel("RC 1")
        ax.set_ylabel("Energy")
        if vmax is not None:
            ax.set_ylim(top=vmax)
        return None

    # imshow wants (row=y, col=x); half a bin of padding puts bin centres on the grid
    extent = (
        pmf.lowerboundary[0] - 0.5 * pmf.width[0],
        pmf.upperboundary[0] + 0.5 * pmf.width[0],
        pmf.lowerboundary[1] - 0.5 * pmf.width[1],
        pmf.upperboundary[1] + 0.5 * pmf.width[1],
    )
    im = ax.imshow(
        energies.T,
        origin="lower",
        extent=extent,
        aspect="auto",
        interpolation="nearest",
        cmap=cmap,
        vmax=vmax,
    )
    ax.set_xlabel("RC 1")
    ax.set_ylabel("RC 2")
    return im


def draw_path(ax, pmf, trajectory, energies, explored=None):
    if pmf.dimension == 1:
        if explored is not None:
            ax.scatter(
                explored[:, 0],
                [pmf.energy_at(p) for p in explored],
                s=4,
                color="0.7",
                label="explored",
            )
        ax.plot(trajectory[:, 0], energies, color="crimson", lw=2.0, label="path")
    else:
        if explored is not None:
            ax.scatter(explored[:, 0], explored[:, 1], s=2, color="white", alpha=0.4, label="explored")
        ax.plot(trajectory[:, 0], trajectory[:, 1], color="crimson", lw=1.5, label="path")
        ax.scatter(*trajectory[0, :2], color="black", marker="o", zorder=3, label="initial")
        ax.scatter(*trajectory[-1, :2], color="black", marker="x", zorder=3, label="end")
    ax.legend(loc="best", fontsize=8)


def render(pmf, trajectory, energies, explored=None, title=None, output=None, cmap="viridis", vmax=None, dpi=200):
    plot_surface = pmf.dimension <= 2
    ncols = 2 if plot_surface else 1
    fig, axes = plt.subplots(1, ncols, figsize=(6 * ncols, 5), squeeze=False)
    axes = axes[0]

    if plot_surface:
        im = draw_surface(axes[0], pmf, cmap=cmap, vmax=vmax)
        draw_path(axes[0], pmf, trajectory, energies, explored)
        if im is not None:
            fig.colorbar(im, ax=axes[0], label="Energy")
    else:
        print(f"{pmf.dimension}D surface: only the energy profile is drawn")

    profile = axes[-1]
    profile.plot(np.arange(len(energies)), energies, color="crimson", lw=1.5)
    barrier = int(np.argmax(energies))
    profile.axhline(energies[barrier], color="0.5", ls="--", lw=0.8)
    profile.set_xlabel("Path point")
    profile.set_ylabel("Energy")
    profile.set_title(f"Barrier {energies[barrier]:.3g} at point {barrier}", fontsize=9)

    if title:
        fig.suptitle(title)
    fig.tight_layout()

    if output:
        os.makedirs(os.path.dirname(output) if os.path.dirname(output) else ".", exist_ok=True)
        fig.savefig(output, dpi=dpi, bbox_inches="tight")
        print(f"Saved figure to {output}")
    return fig


def main():
    parser = argparse.ArgumentParser(
        description="Plot a PMF with the least-energy pathway found on it"
    )
    parser.add_argument("pmf", help="PMF file used for the search")
    parser.add_argument(
        "--prefix",
        default=None,
        help="Prefix of the .traj/.energy files (default: PMF path without extension)",
    )
    parser.add_argument("--lower", default=None, help="lowerboundary for plain PMF files, e.g. '-20,0'")
    parser.add_argument("--upper", default=None, help="upperboundary for plain PMF files")
    parser.add_argument("--width", default=None, help="bin widths for plain PMF files")
    parser.add_argument("--explored", action="store_true", help="Overlay <prefix>.explored")
    parser.add_argument("--vmax", type=float, default=None, help="Clip the colour scale at this energy")
    parser.add_argument("--cmap", default="viridis", help="Matplotlib colormap (default: viridis)")
    parser.add_argument("--out", default=None, help="Output image path (default: <prefix>_path.png)")
    parser.add_argument("--dpi", type=int, default=200, help="DPI for output file (default: 200)")
    parser.add_argument("--show", action="store_true", help="Show plot interactively")
    args = parser.parse_args()

    prefix = args.prefix or os.path.splitext(args.pmf)[0]
    try:
        pmf = load_surface(args.pmf, args.lower, args.upper, args.width)
        trajectory = utils.load_points(prefix + ".traj")
        energies = utils.load_points(prefix + ".energy")[:, 0]
        explored = utils.load_points(prefix + ".explored") if args.explored else None
    except (MuleError, OSError) as exc:
        print(f"Error: {exc}")
        return 1

    output = args.out or f"{prefix}_path.png"
    fig = render(
        pmf,
        trajectory,
        energies,
        explored=explored,
        title=Path(args.pmf).name,
        output=output,
        cmap=args.cmap,
        vmax=args.vmax,
        dpi=args.dpi,
    )
    if args.show:
        plt.show()
    plt.close(fig)
    return 0


if __name__ == "__main__":
    sys.exit(main())
