"""Position-resolved and bulk δ34S of S4²⁻ … S9²⁻.

Positions are labelled from both chain ends inward::

    S4  a b b a
    S5  a b c b a
    S6  a b c c b a
    S7  a b c d c b a
    S8  a b c d d c b a
    S9  a b c d e d c b a

Every role except the centre of an odd chain occurs twice, which sets the
abundance weights of the bulk (chain-average) value.  The weights live in
:data:`CHAIN_LAYOUTS` rather than being spelled out per chain length.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Dict, Sequence, Tuple, Union

import numpy as np

from ..constants import CHAIN_LENGTHS
from ..errors import ModelError
from .coefficients import CoefficientSet

__all__ = [
    "CHAIN_LAYOUTS",
    "POSITION_ROLES",
    "POSTDISPROP_WEIGHTS",
    "ChainComposition",
    "ChainLayout",
    "chain_composition",
    "chain_compositions",
    "get_layout",
    "position_offsets",
    "post_disproportionation_s8",
]

ArrayLike = Union[float, np.ndarray]

POSITION_ROLES: Tuple[str, ...] = ("a", "b", "c", "d", "e")

# S9 -> S8 loses one terminal sulfur: weights over (a, b, c, d, e), divisor 8.
POSTDISPROP_WEIGHTS: Tuple[float, ...] = (1.0, 2.0, 2.0, 2.0, 1.0)
POSTDISPROP_DIVISOR: float = 8.0


@dataclass(frozen=True)
class ChainLayout:
    """Symmetric position structure of an ``n``-sulfur chain.

    Attributes
    ----------
    n:
        Number of sulfur atoms.
    roles:
        Distinct position roles from the terminus inward.
    weights:
        Multiplicity of each role in the chain.
    p_steps:
        Multiple of ``p`` added to every position, ``n - 4``.
    """

    n: int
    roles: Tuple[str, ...]
    weights: Tuple[float, ...]
    p_steps: int

    @property
    def divisor(self) -> float:
        return float(sum(self.weights))

    @classmethod
    def for_length(cls, n: int) -> "ChainLayout":
        n_roles = math.ceil(n / 2)
        roles = POSITION_ROLES[:n_roles]
        weights = [2.0] * n_roles
        if n % 2 == 1:
            weights[-1] = 1.0
        return cls(n=n, roles=roles, weights=tuple(weights), p_steps=n - 4)


CHAIN_LAYOUTS: Dict[int, ChainLayout] = {n: ChainLayout.for_length(n) for n in CHAIN_LENGTHS}


def get_layout(n: int) -> ChainLayout:
    try:
        return CHAIN_LAYOUTS[n]
    except KeyError:
        raise ModelError(f"chain length {n!r} is not modelled; expected one of {CHAIN_LENGTHS}") from None


@dataclass(frozen=True, eq=False)
class ChainComposition:
    """δ34S of each distinct position of one chain and its bulk value.

    Members are floats for a single grid point or arrays when evaluated over
    a block of the grid.
    """

    n: int
    positions: Tuple[ArrayLike, ...]
    bulk: ArrayLike

    @property
    def layout(self) -> ChainLayout:
        return get_layout(self.n)

    @property
    def roles(self) -> Tuple[str, ...]:
        return self.layout.roles

    def __getitem__(self, role: str) -> ArrayLike:
        try:
            idx = self.roles.index(role)
        except ValueError:
            raise KeyError(f"S{self.n} has no position {role!r}; roles are {self.roles}") from None
        return self.positions[idx]

    def as_dict(self) -> Dict[str, ArrayLike]:
        return dict(zip(self.roles, self.positions))

    @classmethod
    def from_positions(cls, n: int, values: Sequence[ArrayLike]) -> "ChainComposition":
        """Build a composition from explicit position values, ``a`` first."""

        layout = get_layout(n)
        if len(values) != len(layout.roles):
            raise ModelError(
                f"S{n} has {len(layout.roles)} distinct positions, got {len(values)} values"
            )
        positions = tuple(_as_float(v) for v in values)
        return cls(n=n, positions=positions, bulk=_weighted_mean(positions, layout.weights, layout.divisor))


def _as_float(value: ArrayLike) -> ArrayLike:
    arr = np.asarray(value, dtype=float)
    return float(arr) if arr.ndim == 0 else arr


def _weighted_mean(values: Sequence[ArrayLike], weights: Sequence[float], divisor: float) -> ArrayLike:
    with np.errstate(invalid="ignore"):
        total = sum(w * np.asarray(v, dtype=float) for w, v in zip(weights, values))
        return _as_float(total / divisor)


def position_offsets(coeffs: CoefficientSet) -> Dict[str, ArrayLike]:
    """Role offsets relative to the terminal ``a`` position."""

    eb = np.asarray(coeffs.eb, dtype=float)
    with np.errstate(invalid="ignore"):
        return {
            "a": np.zeros_like(eb),
            "b": eb,
            "c": np.asarray(coeffs.fc, dtype=float) * eb,
            "d": np.asarray(coeffs.fd, dtype=float) * eb,
            "e": np.asarray(coeffs.fe, dtype=float) * eb,
        }


def chain_composition(n: int, q: ArrayLike, p: ArrayLike, coeffs: CoefficientSet) -> ChainComposition:
    """Return the composition of ``S_n`` for baseline ``q`` and increment ``p``."""

    layout = get_layout(n)
    base = np.asarray(q, dtype=float) + layout.p_steps * np.asarray(p, dtype=float)
    offsets = position_offsets(coeffs)
    with np.errstate(invalid="ignore"):
        positions = tuple(_as_float(base + offsets[role]) for role in layout.roles)
    return ChainComposition(
        n=n,
        positions=positions,
        bulk=_weighted_mean(positions, layout.weights, layout.divisor),
    )


def chain_compositions(q: ArrayLike, p: ArrayLike, coeffs: CoefficientSet) -> Dict[int, ChainComposition]:
    """Compositions of every modelled chain length, keyed by ``n``."""

    return {n: chain_composition(n, q, p, coeffs) for n in CHAIN_LENGTHS}


def post_disproportionation_s8(chain: ChainComposition) -> ArrayLike:
    """δ34S of S8 formed by disproportionation of ``chain`` (must be S9).

    One terminal sulfur leaves the chain, so the ``a`` role counts once:
    ``(a + 2b + 2c + 2d + e) / 8``.  This is not the S8 chain average.
    """

    if chain.n != 9:
        raise ModelError(f"disproportionation to S8 is defined for S9 only, got S{chain.n}")
    return _weighted_mean(chain.positions, POSTDISPROP_WEIGHTS, POSTDISPROP_DIVISOR)

