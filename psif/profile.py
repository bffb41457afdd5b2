"""Position profile of all chains for one highlighted ``(q1, p1)`` point.

The profile is recomputed from the closed-form solution rather than read
back from a sweep, so it is exact for any point, on or off the grid.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Optional

import numpy as np
import pandas as pd

from .constants import CHAIN_LENGTHS, DEFAULT_REFERENCE, ReferenceConstants
from .physics.coefficients import CoefficientSet, FcClosure, solve_coefficients
from .physics.diagnostics import pyrite_composition
from .physics.positions import POSITION_ROLES, ChainComposition, chain_compositions, post_disproportionation_s8
from .schema import Config

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class PointProfile:
    """Coefficients and compositions at a single parameter combination.

    Attributes
    ----------
    q, p:
        The evaluated parameters (‰).
    coefficients:
        Solved ``eb, fc, fd, fe``.
    chains:
        Compositions of S4–S9 keyed by chain length.
    d_pyr:
        δ34S of pyrite formed from S5.
    d_s8:
        δ34S of S8 after disproportionation of S9.
    """

    q: float
    p: float
    coefficients: CoefficientSet
    chains: Dict[int, ChainComposition]
    d_pyr: float
    d_s8: float

    @property
    def diff_s8_pyrite(self) -> float:
        return self.d_s8 - self.d_pyr

    @property
    def is_finite(self) -> bool:
        return bool(self.coefficients.is_finite())

    @property
    def in_physical_domain(self) -> bool:
        return bool(self.coefficients.in_physical_domain())

    def to_frame(self) -> pd.DataFrame:
        """Positions ``a``–``e`` and the bulk value, one row per chain (``S4``…``S9``).

        Roles a chain does not have are ``NaN``.
        """

        records = []
        for n in CHAIN_LENGTHS:
            chain = self.chains[n]
            values = chain.as_dict()
            record = {role: float(values.get(role, np.nan)) for role in POSITION_ROLES}
            record["bulk"] = float(chain.bulk)
            records.append(record)
        return pd.DataFrame(records, index=pd.Index([f"S{n}" for n in CHAIN_LENGTHS], name="chain"))


def compute_point_profile(
    q1: float,
    p1: float,
    reference: ReferenceConstants = DEFAULT_REFERENCE,
    *,
    fc_closure: FcClosure = "S5",
) -> PointProfile:
    """Solve and propagate the model at ``(q1, p1)``."""

    coeffs = solve_coefficients(float(q1), float(p1), reference, fc_closure=fc_closure)
    chains = chain_compositions(float(q1), float(p1), coeffs)
    profile = PointProfile(
        q=float(q1),
        p=float(p1),
        coefficients=coeffs,
        chains=chains,
        d_pyr=float(pyrite_composition(chains[5])),
        d_s8=float(post_disproportionation_s8(chains[9])),
    )
    if not profile.is_finite:
        logger.warning("profile at q=%g p=%g is degenerate (eb=%g)", q1, p1, coeffs.eb)
    elif not profile.in_physical_domain:
        logger.info(
            "profile at q=%g p=%g has fc=%.3f fd=%.3f fe=%.3f; expected all >= 1",
            q1,
            p1,
            coeffs.fc,
            coeffs.fd,
            coeffs.fe,
        )
    return profile


def profile_from_config(cfg: Config, reference: Optional[ReferenceConstants] = None) -> PointProfile:
    """Profile of the configured highlight point."""

    ref = reference or cfg.reference.to_constants()
    return compute_point_profile(
        cfg.highlight.q1,
        cfg.highlight.p1,
        ref,
        fc_closure=cfg.model.fc_closure,
    )


__all__ = ["PointProfile", "compute_point_profile", "profile_from_config"]
