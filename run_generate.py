"""
run_generate.py
===============
CLI entrypoint for the procedural universe generator.

All parameters are optional; unspecified parameters fall back to the chosen
preset (``default`` unless ``--preset`` is given).  Without ``--seed`` a
fresh random seed is minted and printed so the run can be reproduced.

Quick start
-----------
    python run_generate.py

With custom parameters (matching the default preset)::

    python run_generate.py \\
        --seed abc \\
        --galaxy_size 100 \\
        --star_density 0.2 \\
        --planet_probability 0.5 \\
        --life_probability 0.05 \\
        --out_dir output

Then visualise the result::

    python plot_debug.py
"""

import argparse
import dataclasses
import sys

from universegen import PRESETS, RunConfig, UniverseGenerator, generate_seed


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="run_generate.py",
        description=(
            "Deterministic procedural universe generator.\n"
            "Produces bodies.csv, galaxy.json, params.json and (optionally) "
            "graph.gexf in OUT_DIR."
        ),
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    # ── Reproducibility ───────────────────────────────────────────────────
    p.add_argument(
        "--seed", type=str, default=None,
        metavar="S",
        help="Seed string (any text, empty allowed).  Random when omitted.",
    )
    p.add_argument(
        "--preset", choices=sorted(PRESETS), default="default",
        help="Base parameter set; individual flags below override it.",
    )

    # ── Generation parameters ─────────────────────────────────────────────
    p.add_argument(
        "--galaxy_size", type=float, default=None,
        metavar="R",
        help="Outer radius bound of the galaxy.",
    )
    p.add_argument(
        "--star_density", type=float, default=None,
        metavar="D",
        help="Stars per unit of size, before the safety caps.",
    )
    p.add_argument(
        "--planet_probability", type=float, default=None,
        metavar="P",
        help="Probability [0, 1] that a star hosts planets.",
    )
    p.add_argument(
        "--life_probability", type=float, default=None,
        metavar="P",
        help="Probability [0, 1] that a planet hosts life.",
    )
    p.add_argument(
        "--complexity", type=float, default=None,
        metavar="C",
        help="Reserved tuning knob; recorded in the output only.",
    )
    p.add_argument(
        "--fractal_iterations", type=int, default=None,
        metavar="N",
        help="Reserved tuning knob; recorded in the output only.",
    )

    # ── Output ───────────────────────────────────────────────────────────
    p.add_argument(
        "--out_dir", type=str, default="output",
        metavar="DIR",
        help="Directory to write output files (created if absent).",
    )
    p.add_argument(
        "--no_gexf", action="store_true",
        help="Skip GEXF export (useful when networkx is not installed).",
    )

    return p


def config_from_args(args: argparse.Namespace) -> RunConfig:
    """Merge preset and explicit flags into a RunConfig."""
    params = PRESETS[args.preset]
    overrides = {
        f.name: getattr(args, f.name)
        for f in dataclasses.fields(params)
        if getattr(args, f.name, None) is not None
    }
    if overrides:
        params = dataclasses.replace(params, **overrides)

    return RunConfig(
        seed       = args.seed if args.seed is not None else generate_seed(),
        params     = params,
        out_dir    = args.out_dir,
        write_gexf = not args.no_gexf,
    )


def main(argv=None) -> None:
    parser = build_parser()
    args   = parser.parse_args(argv)
    cfg    = config_from_args(args)

    # Print config so the user can confirm parameters before waiting
    print("Configuration")
    print("─" * 40)
    print(f"  {'seed':<22} = {cfg.seed!r}")
    for field, value in cfg.params.to_dict().items():
        print(f"  {field:<22} = {value}")
    print(f"  {'out_dir':<22} = {cfg.out_dir}")
    print()

    gen = UniverseGenerator(cfg)
    gen.run()

    # Remind user of next steps
    flags = " ".join(f"--{k} {v}" for k, v in cfg.params.to_dict().items())
    print(
        f"\nNext steps:\n"
        f"  • Reproduce  : python run_generate.py --seed {cfg.seed!r} {flags}\n"
        f"  • Debug plot : python plot_debug.py --out_dir {cfg.out_dir}\n"
        f"  • Gephi      : import {cfg.out_dir}/graph.gexf"
    )


if __name__ == "__main__":
    sys.exit(main())
