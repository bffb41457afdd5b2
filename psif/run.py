"""Command line entry point: sweep the grid, outline zones, profile one point.

Example::

    python -m psif.run --override grid.q.count=45 --point -0.5 0.65

Nothing is written to disk; tables go to stdout and diagnostics to the log.
"""
from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import List, Optional

import pandas as pd

from . import config_utils
from .profile import profile_from_config
from .sweep import run_from_config
from .zones import consistency_zones, zone_summary

logger = logging.getLogger(__name__)

SUMMARY_QUANTITIES = ("eb", "fc", "fd", "fe", "d9_bulk", "d8_postdisprop", "pyr_S5", "diff_S8_pyrite")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Polysulfide isotope fractionation: sweep (q, p) and report S8–pyrite offsets"
    )
    parser.add_argument("--config", type=Path, default=None, help="Path to YAML configuration (optional)")
    parser.add_argument(
        "--override",
        action="append",
        nargs="+",
        metavar="PATH=VALUE",
        help="Apply configuration overrides using dotted paths; e.g. --override grid.p.count=50",
    )
    parser.add_argument(
        "--overrides-file",
        action="append",
        type=Path,
        help="Load overrides from a file (one PATH=VALUE per line).",
    )
    parser.add_argument("--jobs", type=int, default=None, help="Worker processes (overrides sweep.jobs).")
    parser.add_argument(
        "--progress",
        action="store_true",
        help="Show a console progress bar over q rows.",
    )
    parser.add_argument(
        "--point",
        nargs=2,
        type=float,
        metavar=("Q1", "P1"),
        help="Highlighted (q, p) for the position profile (overrides highlight.q1/p1).",
    )
    parser.add_argument(
        "--quiet",
        action=argparse.BooleanOptionalAction,
        default=False,
        help="Suppress INFO logs and Python warnings.",
    )
    return parser


def _collect_overrides(args: argparse.Namespace) -> List[str]:
    override_list: List[str] = []
    if args.overrides_file:
        for override_path in args.overrides_file:
            override_list.extend(config_utils.read_overrides_file(override_path))
    if args.override:
        for group in args.override:
            override_list.extend(group)
    if args.jobs is not None:
        override_list.append(f"sweep.jobs={args.jobs}")
    if args.progress:
        override_list.append("sweep.progress=true")
    if args.point is not None:
        q1, p1 = args.point
        override_list.extend([f"highlight.q1={q1!r}", f"highlight.p1={p1!r}"])
    return override_list


def main(argv: Optional[List[str]] = None) -> None:
    """Command line entry point."""

    args = build_parser().parse_args(argv)
    config_utils.configure_logging(logging.WARNING if args.quiet else logging.INFO, suppress_warnings=args.quiet)

    cfg = config_utils.load_config(args.config, overrides=_collect_overrides(args))
    grids = run_from_config(cfg)
    zones = consistency_zones(grids, cfg.zones)
    profile = profile_from_config(cfg)

    with pd.option_context("display.width", 120, "display.max_columns", 20):
        print("Grid summary")
        print(grids.summary().loc[list(SUMMARY_QUANTITIES)].to_string(float_format=lambda v: f"{v:.4g}"))
        print()
        print("Consistency zones")
        print(zone_summary(grids, zones).to_string(float_format=lambda v: f"{v:.4g}"))
        print()
        coeffs = profile.coefficients
        print(
            f"Profile at q={profile.q:g} p={profile.p:g}: "
            f"eb={coeffs.eb:.4g} fc={coeffs.fc:.4g} fd={coeffs.fd:.4g} fe={coeffs.fe:.4g}"
        )
        print(profile.to_frame().to_string(float_format=lambda v: f"{v:.3f}"))
        print(
            f"pyrite(S5)={profile.d_pyr:.3f}  S8(post-disproportionation)={profile.d_s8:.3f}  "
            f"offset={profile.diff_s8_pyrite:.3f} per mil"
        )


if __name__ == "__main__":  # pragma: no cover - standard CLI entrypoint
    main()
