"""
plot_debug.py
=============
Matplotlib sanity-check plot for the procedural universe generator.

Shows:
  • Galaxy boundary circle (radius galaxy_size / 2, the star-placement bound)
  • Stars, planets and moons, sized by body size
  • Bodies coloured by type, temperature, mass, or life
  • Parent → child links (optional; --no_links hides them)
  • Life-bearing planets ringed in green

Usage
-----
    # Default: use ./output/, colour by type, show links
    python plot_debug.py

    # Colour by temperature, no links
    python plot_debug.py --no_links --color_by temperature

    # Save to PNG instead of opening an interactive window
    python plot_debug.py --save galaxy.png

    # Save as SVG (vector, scales to any size)
    python plot_debug.py --svg galaxy.svg

    # Point at a different output directory
    python plot_debug.py --out_dir my_run
"""

from __future__ import annotations

import argparse
import json
import os

import matplotlib.pyplot as plt
import matplotlib.patches as mpatches
from matplotlib.colors import LinearSegmentedColormap
import numpy as np
import pandas as pd
from matplotlib.collections import LineCollection


_TYPE_COLORS = {
    "star":     "#ffd86b",
    "planet":   "#5fa8ff",
    "moon":     "#b0b0c0",
    "asteroid": "#8a6a4a",
    "nebula":   "#c060ff",
}


# ---------------------------------------------------------------------------
# Argument parsing
# ---------------------------------------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="plot_debug.py",
        description="Debug visualisation for the procedural universe generator.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    # Output location
    p.add_argument("--out_dir",  default="output",
                   help="Directory containing bodies.csv and params.json.")
    p.add_argument("--save",     default=None, metavar="FILE",
                   help="Save figure to FILE (png/pdf/svg) instead of displaying.")
    p.add_argument("--svg",      nargs="?", const="galaxy.svg", default=None,
                   metavar="FILE",
                   help="Save figure as SVG (vector format).  "
                        "FILE defaults to 'galaxy.svg' when omitted.  "
                        "Overrides --save when both are given.")

    # Cosmetic toggles
    p.add_argument("--no_links", action="store_true",
                   help="Skip drawing parent → child links.")
    p.add_argument("--color_by",
                   choices=["type", "temperature", "mass", "life"],
                   default="type",
                   help="Body colouring scheme.")
    p.add_argument("--size_scale", type=float, default=6.0,
                   help="Scatter marker size per unit of body size.")
    p.add_argument("--link_alpha", type=float, default=0.35,
                   help="Link line alpha (0=invisible, 1=solid).")
    p.add_argument("--link_color", default="#2244aa",
                   help="Link line colour (any matplotlib colour string).")

    # Auto-loaded from params.json when present; explicit values take precedence.
    p.add_argument("--galaxy_size", type=float, default=None)

    return p


# ---------------------------------------------------------------------------
# Plot
# ---------------------------------------------------------------------------

def load_bodies(out_dir: str) -> tuple[pd.DataFrame, dict]:
    """Read bodies.csv and (if present) params.json from *out_dir*."""
    bodies_path = os.path.join(out_dir, "bodies.csv")
    if not os.path.exists(bodies_path):
        raise FileNotFoundError(
            f"bodies.csv not found in '{out_dir}'.  "
            "Run run_generate.py first."
        )
    bodies = pd.read_csv(bodies_path)

    params: dict = {}
    params_path = os.path.join(out_dir, "params.json")
    if os.path.exists(params_path):
        with open(params_path) as f:
            params = json.load(f)
    return bodies, params


def draw_galaxy(args: argparse.Namespace) -> plt.Figure:
    """Load bodies.csv and draw the galaxy plot.

    Returns
    -------
    matplotlib Figure
    """
    bodies, params = load_bodies(args.out_dir)
    if getattr(args, "galaxy_size", None) is None:
        args.galaxy_size = float(params.get("galaxy_size", 100.0))
    r_bound = args.galaxy_size / 2.0

    # ── Figure setup ─────────────────────────────────────────────────────
    fig, ax = plt.subplots(figsize=(10, 10))
    ax.set_aspect("equal", adjustable="datalim")

    BG = "#09090f"
    ax.set_facecolor(BG)
    fig.patch.set_facecolor(BG)

    xy = bodies[["x", "y"]].to_numpy(dtype=np.float64)
    finite = np.isfinite(xy).all(axis=1)
    extent = float(np.abs(xy[finite]).max()) if finite.any() else 0.0
    margin = max(r_bound, extent) * 1.08 or 1.0
    ax.set_xlim(-margin, margin)
    ax.set_ylim(-margin, margin)
    ax.autoscale(False)

    # ── Galaxy boundary ───────────────────────────────────────────────────
    ax.add_patch(plt.Circle(
        (0, 0), r_bound,
        fill=False, edgecolor="#3a3a5c", linewidth=1.0, linestyle="--", zorder=2,
    ))

    # ── Parent → child links ──────────────────────────────────────────────
    if not getattr(args, "no_links", False) and len(bodies) > 0:
        parent = bodies["parent_index"].to_numpy(dtype=np.int64)
        child  = np.where(parent >= 0)[0]
        ok = finite[child] & finite[parent[child]]
        segs = [[xy[parent[c]], xy[c]] for c in child[ok]]
        if segs:
            ax.add_collection(LineCollection(
                segs,
                colors=args.link_color,
                linewidths=0.5,
                alpha=args.link_alpha,
                zorder=3,
            ))

    # ── Bodies ────────────────────────────────────────────────────────────
    color_by = getattr(args, "color_by", "type")
    sizes = bodies["size"].to_numpy(dtype=np.float64) * args.size_scale

    clabel = None
    cmap   = None
    if color_by == "temperature":
        c = bodies["temperature"].to_numpy(dtype=np.float64)
        cmap = LinearSegmentedColormap.from_list(
            "temp", ["#2244ff", "#ffffff", "#ffcc44", "#ff3300"])
        clabel = "Temperature (K for stars)"
    elif color_by == "mass":
        c = np.log10(bodies["mass"].to_numpy(dtype=np.float64))
        cmap, clabel = "viridis", "log10 mass"
    elif color_by == "life":
        c = np.where(bodies["has_life"].astype(str) == "True", "#44ff88", "#444455")
    else:
        c = [_TYPE_COLORS.get(t, "#ffffff") for t in bodies["type"]]

    sc = ax.scatter(
        xy[:, 0], xy[:, 1],
        c=c, cmap=cmap,
        s=sizes,
        alpha=0.85,
        linewidths=0,
        zorder=6,
    )
    if clabel and cmap:
        cbar = plt.colorbar(sc, ax=ax, pad=0.01, fraction=0.03, shrink=0.85)
        cbar.set_label(clabel, color="white", fontsize=9)
        cbar.ax.yaxis.set_tick_params(color="white", labelsize=7)
        plt.setp(plt.getp(cbar.ax.axes, "yticklabels"), color="white")
    ax.set_xlim(-margin, margin)
    ax.set_ylim(-margin, margin)

    # ── Life markers ──────────────────────────────────────────────────────
    life = (bodies["has_life"].astype(str) == "True").to_numpy()
    if life.any():
        ax.scatter(xy[life, 0], xy[life, 1], s=sizes[life] * 4,
                   facecolors="none", edgecolors="#00ff88",
                   linewidths=1.2, zorder=7)

    # ── Decorations ───────────────────────────────────────────────────────
    counts = bodies["type"].value_counts()
    seed = params.get("seed", "?")
    title = (
        f"Galaxy {seed!r}  —  "
        f"{int(counts.get('star', 0))} stars  |  "
        f"{int(counts.get('planet', 0))} planets  |  "
        f"{int(counts.get('moon', 0))} moons"
    )
    ax.set_title(title, color="white", fontsize=11, pad=10)

    for spine in ax.spines.values():
        spine.set_edgecolor("#2a2a3a")
    ax.tick_params(colors="#555566", labelsize=7)

    legend_patches = [
        mpatches.Patch(facecolor="#3a3a5c", edgecolor="#3a3a5c",
                       label=f"Placement bound (r={r_bound:g})"),
    ]
    if color_by == "type":
        legend_patches += [
            mpatches.Patch(facecolor=_TYPE_COLORS[t], label=t.capitalize())
            for t in ("star", "planet", "moon")
        ]
    ax.legend(
        handles=legend_patches,
        loc="upper right",
        fontsize=8,
        facecolor="#111122",
        edgecolor="#333355",
        labelcolor="white",
    )

    return fig


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def main(argv=None) -> None:
    parser = build_parser()
    args   = parser.parse_args(argv)

    fig = draw_galaxy(args)

    if args.svg:
        fig.savefig(args.svg, format="svg", bbox_inches="tight",
                    facecolor=fig.get_facecolor())
        print(f"Saved figure to {args.svg}")
    elif args.save:
        fig.savefig(args.save, dpi=150, bbox_inches="tight",
                    facecolor=fig.get_facecolor())
        print(f"Saved figure to {args.save}")
    else:
        plt.show()


if __name__ == "__main__":
    main()
