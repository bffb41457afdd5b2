"""Closed-form fractionation coefficients ``eb, fc, fd, fe``.

Position values follow

    δ(Sn-a) = q + (n-4) p
    δ(Sn-b) = q + (n-4) p + eb
    δ(Sn-c) = q + (n-4) p + fc·eb
    δ(Sn-d) = q + (n-4) p + fd·eb
    δ(Sn-e) = q + (n-4) p + fe·eb

so the chain averages of S4, S5 and S7 and the S9 → S8 disproportionation
balance each add one unknown.  Solving them in that order is plain
back-substitution; no iteration is involved.

References
----------
- [@Amrani2006_InorgChem45_1427] chain-length resolved δ34S used as closures
- [@Luther1991_GCA55_2839] pyrite formation via polysulfides
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Literal, Union

import numpy as np

from ..constants import ReferenceConstants
from ..errors import ModelError

__all__ = [
    "CoefficientSet",
    "solve_coefficients",
    "solve_eb",
    "solve_fc",
    "solve_fc_from_s6",
    "solve_fd",
    "solve_fe",
]

logger = logging.getLogger(__name__)

ArrayLike = Union[float, np.ndarray]
FcClosure = Literal["S5", "S6"]


def _as_float(value: np.ndarray) -> ArrayLike:
    arr = np.asarray(value, dtype=float)
    return float(arr) if arr.ndim == 0 else arr


def solve_eb(q: ArrayLike, ref: ReferenceConstants) -> ArrayLike:
    """S4 average ``(2a + 2b)/4 = d4_in`` solved for ``eb``."""

    q_arr = np.asarray(q, dtype=float)
    return _as_float(2.0 * ref.d4_in - 2.0 * q_arr)


def solve_fc(q: ArrayLike, p: ArrayLike, eb: ArrayLike, ref: ReferenceConstants) -> ArrayLike:
    """S5 average ``(2a + 2b + c)/5 = d5_in`` solved for ``fc``."""

    q_arr, p_arr, eb_arr = (np.asarray(v, dtype=float) for v in (q, p, eb))
    with np.errstate(divide="ignore", invalid="ignore"):
        fc = (5.0 * ref.d5_in - 2.0 * eb_arr - 5.0 * q_arr - 5.0 * p_arr) / eb_arr
    return _as_float(fc)


def solve_fc_from_s6(q: ArrayLike, p: ArrayLike, eb: ArrayLike, ref: ReferenceConstants) -> ArrayLike:
    """S6 average ``(2a + 2b + 2c)/6 = d6_in`` solved for ``fc``.

    Alternate closure.  It is not equivalent to :func:`solve_fc` for the
    measured inputs, so it is only used when requested explicitly.
    """

    q_arr, p_arr, eb_arr = (np.asarray(v, dtype=float) for v in (q, p, eb))
    with np.errstate(divide="ignore", invalid="ignore"):
        fc = (6.0 * ref.d6_in - 6.0 * q_arr - 12.0 * p_arr - 2.0 * eb_arr) / (2.0 * eb_arr)
    return _as_float(fc)


def solve_fd(
    q: ArrayLike, p: ArrayLike, eb: ArrayLike, fc: ArrayLike, ref: ReferenceConstants
) -> ArrayLike:
    """S7 average ``(2a + 2b + 2c + d)/7 = d7_in`` solved for ``fd``."""

    q_arr, p_arr, eb_arr, fc_arr = (np.asarray(v, dtype=float) for v in (q, p, eb, fc))
    with np.errstate(divide="ignore", invalid="ignore"):
        fd = (
            7.0 * ref.d7_in - 7.0 * q_arr - 21.0 * p_arr - 2.0 * eb_arr - 2.0 * fc_arr * eb_arr
        ) / eb_arr
    return _as_float(fd)


def solve_fe(eb: ArrayLike, fc: ArrayLike, fd: ArrayLike, ref: ReferenceConstants) -> ArrayLike:
    """S9 → S8 disproportionation balance solved for ``fe``.

    The post-disproportionation S8 average minus the S9 terminal value must
    reproduce ``S8_HS_offset``; ``q`` and ``p`` cancel out of the balance.
    """

    eb_arr, fc_arr, fd_arr = (np.asarray(v, dtype=float) for v in (eb, fc, fd))
    with np.errstate(divide="ignore", invalid="ignore"):
        fe = (
            8.0 * ref.S8_HS_offset - 2.0 * eb_arr - 2.0 * fc_arr * eb_arr - 2.0 * fd_arr * eb_arr
        ) / eb_arr
    return _as_float(fe)


@dataclass(frozen=True, eq=False)
class CoefficientSet:
    """Fractionation coefficients for one grid point or a broadcastable block.

    ``fc``, ``fd`` and ``fe`` are expected to be ≥ 1 on physical grounds;
    smaller values are kept and only reported by :meth:`in_physical_domain`.
    """

    eb: ArrayLike
    fc: ArrayLike
    fd: ArrayLike
    fe: ArrayLike

    def is_degenerate(self) -> ArrayLike:
        """``eb == 0``: the multipliers are undefined."""

        result = np.asarray(self.eb, dtype=float) == 0.0
        return bool(result) if result.ndim == 0 else result

    def is_finite(self) -> ArrayLike:
        arrays = np.broadcast_arrays(*(np.asarray(v, dtype=float) for v in self.as_tuple()))
        result = np.logical_and.reduce([np.isfinite(a) for a in arrays])
        return bool(result) if np.ndim(result) == 0 else result

    def in_physical_domain(self) -> ArrayLike:
        """``fc, fd, fe ≥ 1``; non-finite coefficients are outside the domain."""

        arrays = np.broadcast_arrays(*(np.asarray(v, dtype=float) for v in (self.fc, self.fd, self.fe)))
        with np.errstate(invalid="ignore"):
            result = np.logical_and.reduce([np.isfinite(a) & (a >= 1.0) for a in arrays])
        return bool(result) if np.ndim(result) == 0 else result

    def as_tuple(self) -> tuple:
        return (self.eb, self.fc, self.fd, self.fe)

    def as_dict(self) -> dict:
        return {"eb": self.eb, "fc": self.fc, "fd": self.fd, "fe": self.fe}


def solve_coefficients(
    q: ArrayLike,
    p: ArrayLike,
    ref: ReferenceConstants,
    *,
    fc_closure: FcClosure = "S5",
) -> CoefficientSet:
    """Return ``eb, fc, fd, fe`` for ``(q, p)``.

    ``q`` and ``p`` may be scalars or arrays that broadcast together.  When
    ``eb == 0`` (``q == d4_in``) the dependent coefficients are ``inf`` or
    ``nan``; nothing is raised.

    Args:
        q: Baseline offset of the terminal position (‰, system relative).
        p: Increment per additional sulfur in the chain (‰).
        ref: Reference δ34S values.
        fc_closure: ``"S5"`` (reference) or ``"S6"`` (alternate) equation for ``fc``.

    Returns:
        The coefficient set; scalar inputs give float members.
    """

    if fc_closure not in ("S5", "S6"):
        raise ModelError(f"unknown fc_closure={fc_closure!r}; expected 'S5' or 'S6'")
    eb = solve_eb(q, ref)
    if fc_closure == "S5":
        fc = solve_fc(q, p, eb, ref)
    else:
        fc = solve_fc_from_s6(q, p, eb, ref)
    fd = solve_fd(q, p, eb, fc, ref)
    fe = solve_fe(eb, fc, fd, ref)
    if np.ndim(eb) == 0 and np.ndim(p) == 0:
        logger.debug("solve_coefficients: q=%g p=%g -> eb=%g fc=%g fd=%g fe=%g", q, p, eb, fc, fd, fe)
    return CoefficientSet(eb=eb, fc=fc, fd=fd, fe=fe)
