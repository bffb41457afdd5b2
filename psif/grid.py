"""Parameter grid for the ``(q, p)`` sweep.

``q`` is the baseline δ34S offset of a terminal (``a``) position and ``p``
the per-sulfur increment between successive chain lengths, both in ‰
relative to the bulk system value.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

from . import constants
from .errors import ConfigurationError
from .schema import Axis, Config


def linear_axis(start: float, stop: float, count: int) -> np.ndarray:
    """Return ``count`` evenly spaced values on ``[start, stop]``.

    Both endpoints are included exactly, as with :func:`numpy.linspace`.

    Parameters
    ----------
    start, stop:
        Axis bounds.  ``stop`` must not be smaller than ``start``.
    count:
        Number of samples, at least 1.  A single sample returns ``[start]``.
    """
    n = int(count)
    if n != count or n < 1:
        raise ConfigurationError(f"axis count must be a positive integer, got {count!r}")
    start_f = float(start)
    stop_f = float(stop)
    if not (math.isfinite(start_f) and math.isfinite(stop_f)):
        raise ConfigurationError("axis bounds must be finite")
    if stop_f < start_f:
        raise ConfigurationError(f"axis stop ({stop_f}) must be ≥ start ({start_f})")
    if n == 1:
        return np.asarray([start_f], dtype=float)
    return np.linspace(start_f, stop_f, n, dtype=float)


@dataclass(frozen=True, eq=False)
class GridAxes:
    """The two independent axes of a sweep.

    Parameters
    ----------
    q:
        Baseline offsets, one per grid row.
    p:
        Per-sulfur increments, one per grid column.
    """

    q: np.ndarray
    p: np.ndarray

    def __post_init__(self) -> None:
        q = np.array(self.q, dtype=float)
        p = np.array(self.p, dtype=float)
        if q.ndim != 1 or p.ndim != 1 or q.size == 0 or p.size == 0:
            raise ConfigurationError("grid axes must be non-empty one dimensional arrays")
        q.setflags(write=False)
        p.setflags(write=False)
        object.__setattr__(self, "q", q)
        object.__setattr__(self, "p", p)

    @property
    def shape(self) -> Tuple[int, int]:
        return (int(self.q.size), int(self.p.size))

    @property
    def size(self) -> int:
        return int(self.q.size * self.p.size)

    def mesh(self) -> Tuple[np.ndarray, np.ndarray]:
        """Return ``(Q, P)`` broadcast to :attr:`shape` (``Q[i, j] == q[i]``)."""

        return np.meshgrid(self.q, self.p, indexing="ij")

    @classmethod
    def linear(
        cls,
        q_bounds: Tuple[float, float],
        p_bounds: Tuple[float, float] = constants.P_BOUNDS,
        n_q: int = constants.N_Q,
        n_p: int = constants.N_P,
    ) -> "GridAxes":
        """Construct axes from ``(start, stop)`` bounds and sample counts."""

        return cls(
            q=linear_axis(q_bounds[0], q_bounds[1], n_q),
            p=linear_axis(p_bounds[0], p_bounds[1], n_p),
        )

    @classmethod
    def default(cls, reference: Optional[constants.ReferenceConstants] = None) -> "GridAxes":
        """Axes of the reference run: ``q ∈ [extrap_HS_in, d4_in]``, ``p ∈ [0, 1.2]``."""

        ref = reference or constants.DEFAULT_REFERENCE
        return cls.linear((ref.extrap_HS_in, ref.d4_in))

    @classmethod
    def from_config(cls, cfg: Config, reference: Optional[constants.ReferenceConstants] = None) -> "GridAxes":
        """Resolve the configured axes, filling unset ``q`` bounds from ``reference``."""

        ref = reference or cfg.reference.to_constants()
        q_start, q_stop = _resolve_bounds(cfg.grid.q, (ref.extrap_HS_in, ref.d4_in))
        p_start, p_stop = _resolve_bounds(cfg.grid.p, constants.P_BOUNDS)
        return cls(
            q=linear_axis(q_start, q_stop, cfg.grid.q.count),
            p=linear_axis(p_start, p_stop, cfg.grid.p.count),
        )


def _resolve_bounds(axis: Axis, fallback: Tuple[float, float]) -> Tuple[float, float]:
    start = fallback[0] if axis.start is None else axis.start
    stop = fallback[1] if axis.stop is None else axis.stop
    return float(start), float(stop)


__all__ = ["GridAxes", "linear_axis"]
