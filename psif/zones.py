"""Consistency zones in ``(q, p)`` space.

Each zone marks the grid cells where one model output agrees with an
independent constraint:

* ``s9_match``: S9 bulk within ``obs_tolerance`` of the extrapolated S9 value
* ``eb_range``: ``eb`` inside the S8–sulfide fractionation window (3.4–5.4 ‰)
* ``de_gap`` / ``bc_gap``: ``e`` above ``d`` and ``c`` above ``b`` by 0–5 ‰
* ``s6_match``: S6 bulk within ``obs_tolerance`` of the observed S6 value

``overlap`` is the conjunction of all zones; the S8–pyrite offset inside
it is the model's prediction.  Cells with non-finite values never belong to
a zone.
"""
from __future__ import annotations

import logging
from typing import Dict, Optional, Tuple

import numpy as np
import pandas as pd

from .schema import Zones
from .sweep import ResultGrids

__all__ = ["ZONE_NAMES", "consistency_zones", "zone_summary"]

logger = logging.getLogger(__name__)

ZONE_NAMES: Tuple[str, ...] = ("s9_match", "eb_range", "de_gap", "bc_gap", "s6_match")


def _within(values: np.ndarray, lo: float, hi: float) -> np.ndarray:
    with np.errstate(invalid="ignore"):
        return np.isfinite(values) & (values >= lo) & (values <= hi)


def consistency_zones(grids: ResultGrids, criteria: Optional[Zones] = None) -> Dict[str, np.ndarray]:
    """Boolean masks of shape ``grids.shape`` for every zone plus ``overlap``."""

    crit = criteria or Zones()
    ref = grids.reference
    tol = float(crit.obs_tolerance)
    zones: Dict[str, np.ndarray] = {
        "s9_match": _within(grids["d9_bulk"], ref.extrap_S9_in - tol, ref.extrap_S9_in + tol),
        "eb_range": _within(grids["eb"], *crit.eb_range),
        "de_gap": _within(grids["de_diff"], *crit.de_gap_range),
        "bc_gap": _within(grids["bc_diff"], *crit.bc_gap_range),
        "s6_match": _within(grids["d6_bulk"], ref.d6_in - tol, ref.d6_in + tol),
    }
    zones["overlap"] = np.logical_and.reduce([zones[name] for name in ZONE_NAMES])
    logger.info(
        "consistency zones: %s",
        ", ".join(f"{name}={int(np.count_nonzero(mask))}" for name, mask in zones.items()),
    )
    return zones


def zone_summary(
    grids: ResultGrids,
    zones: Dict[str, np.ndarray],
    *,
    quantity: str = "diff_S8_pyrite",
) -> pd.DataFrame:
    """Cell count, ``q``/``p`` extent and the range of ``quantity`` per zone."""

    Q, P = grids.axes.mesh()
    values = grids[quantity]
    rows = []
    for name, mask in zones.items():
        selected = mask & np.isfinite(values)
        count = int(np.count_nonzero(mask))
        row = {
            "zone": name,
            "cells": count,
            "q_min": float(Q[mask].min()) if count else np.nan,
            "q_max": float(Q[mask].max()) if count else np.nan,
            "p_min": float(P[mask].min()) if count else np.nan,
            "p_max": float(P[mask].max()) if count else np.nan,
            f"{quantity}_min": float(values[selected].min()) if selected.any() else np.nan,
            f"{quantity}_max": float(values[selected].max()) if selected.any() else np.nan,
        }
        rows.append(row)
    return pd.DataFrame(rows).set_index("zone")
