"""Derived diagnostics: pyrite compositions, the S8–pyrite offset and gaps.

Pyrite is assumed to nucleate from the terminal S–S pair of a polysulfide
(Luther, 1991; Butler et al., 2004), so its δ34S is the mean of the ``a`` and
``b`` positions of the parent chain.

References
----------
- [@Luther1991_GCA55_2839] polysulfide pathway of pyrite formation
- [@Butler2004_EPSL228_495] isotope partitioning during polysulfide pyrite formation
"""
from __future__ import annotations

from typing import Dict, Mapping, Union

import numpy as np

from ..constants import CHAIN_LENGTHS, ReferenceConstants
from ..errors import ModelError
from .positions import ChainComposition, post_disproportionation_s8

__all__ = [
    "PYRITE_PARENTS",
    "DiagnosticsBundle",
    "closure_residuals",
    "diff_s8_pyrite",
    "diff_s8_pyrite_alternate",
    "evaluate_diagnostics",
    "positional_gaps",
    "pyrite_composition",
]

ArrayLike = Union[float, np.ndarray]
DiagnosticsBundle = Dict[str, ArrayLike]

PYRITE_PARENTS = (4, 5, 6)
OBSERVED_LENGTHS = (4, 5, 6, 7)


def _as_float(value: np.ndarray) -> ArrayLike:
    arr = np.asarray(value, dtype=float)
    return float(arr) if arr.ndim == 0 else arr


def _require(chains: Mapping[int, ChainComposition], n: int) -> ChainComposition:
    try:
        return chains[n]
    except KeyError:
        raise ModelError(f"diagnostic requires the S{n} composition") from None


def pyrite_composition(chain: ChainComposition) -> ArrayLike:
    """δ34S of pyrite formed from the terminal pair of ``chain`` (S4, S5 or S6)."""

    if chain.n not in PYRITE_PARENTS:
        raise ModelError(f"pyrite formation is modelled from S4–S6 only, got S{chain.n}")
    return _as_float(0.5 * (np.asarray(chain["a"]) + np.asarray(chain["b"])))


def diff_s8_pyrite(chains: Mapping[int, ChainComposition]) -> ArrayLike:
    """Disproportionated S8 minus pyrite formed from S5 (primary diagnostic)."""

    s8 = post_disproportionation_s8(_require(chains, 9))
    pyr = pyrite_composition(_require(chains, 5))
    with np.errstate(invalid="ignore"):
        return _as_float(np.asarray(s8) - np.asarray(pyr))


def diff_s8_pyrite_alternate(chains: Mapping[int, ChainComposition]) -> ArrayLike:
    """S8 chain average minus pyrite formed from S6.

    Not interchangeable with :func:`diff_s8_pyrite`; only reported when
    alternates are requested.
    """

    s8 = _require(chains, 8).bulk
    pyr = pyrite_composition(_require(chains, 6))
    with np.errstate(invalid="ignore"):
        return _as_float(np.asarray(s8) - np.asarray(pyr))


def positional_gaps(chain: ChainComposition) -> Dict[str, ArrayLike]:
    """Differences between adjacent position roles (``b−a``, ``c−b`` …).

    The gaps only depend on the coefficients, never on the chain length, so
    the S9 chain yields the complete set ``ab_diff`` … ``de_diff``.
    """

    roles = chain.roles
    gaps: Dict[str, ArrayLike] = {}
    with np.errstate(invalid="ignore"):
        for inner, outer in zip(roles[:-1], roles[1:]):
            gaps[f"{inner}{outer}_diff"] = _as_float(np.asarray(chain[outer]) - np.asarray(chain[inner]))
    return gaps


def closure_residuals(
    chains: Mapping[int, ChainComposition], ref: ReferenceConstants
) -> Dict[str, ArrayLike]:
    """Modelled minus observed bulk δ34S for S4–S7.

    With the default S5 closure, S4, S5 and S7 close the coefficient
    equations and vanish up to rounding; S6 is not used in the solve and
    measures how well a ``(q, p)`` point reproduces the fourth observation.
    """

    residuals: Dict[str, ArrayLike] = {}
    with np.errstate(invalid="ignore"):
        for n in OBSERVED_LENGTHS:
            bulk = np.asarray(_require(chains, n).bulk)
            residuals[f"resid_d{n}"] = _as_float(bulk - ref.observed_offset(n))
    return residuals


def evaluate_diagnostics(
    chains: Mapping[int, ChainComposition],
    ref: ReferenceConstants,
    *,
    include_alternates: bool = False,
) -> DiagnosticsBundle:
    """Collect every named diagnostic for one grid point or one grid row."""

    bundle: DiagnosticsBundle = {}
    for n in CHAIN_LENGTHS:
        bundle[f"d{n}_bulk"] = _require(chains, n).bulk
    bundle["d8_postdisprop"] = post_disproportionation_s8(_require(chains, 9))
    for n in PYRITE_PARENTS:
        bundle[f"pyr_S{n}"] = pyrite_composition(_require(chains, n))
    bundle["diff_S8_pyrite"] = diff_s8_pyrite(chains)
    if include_alternates:
        bundle["diff_S8_pyrite_alt"] = diff_s8_pyrite_alternate(chains)
    bundle.update(positional_gaps(_require(chains, 9)))
    bundle.update(closure_residuals(chains, ref))
    return bundle
