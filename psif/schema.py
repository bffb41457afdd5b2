"""Configuration schema for polysulfide fractionation sweeps.

The Pydantic models mirror the layout of the YAML files read by
:func:`psif.config_utils.load_config`.  Every field has a default, so an
empty mapping (or no file at all) reproduces the reference run: Amrani et
al. (2006) inputs, a 90 × 100 ``(q, p)`` grid and the highlighted point
``(q1, p1) = (-0.5, 0.65)``.
"""
from __future__ import annotations

import math
from typing import Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from . import constants
from .errors import ConfigurationError


class _Section(BaseModel):
    model_config = ConfigDict(extra="forbid")


class Reference(_Section):
    """Measured and extrapolated δ34S reference values (‰ VCDT).

    Values are deliberately not cross-validated; see
    :class:`psif.constants.ReferenceConstants`.
    """

    system_d34S: float = Field(constants.SYSTEM_D34S, description="Bulk δ34S of all sulfur in the system")
    extrap_d34S_HS: float = Field(constants.EXTRAP_D34S_HS, description="Extrapolated δ34S of dissolved sulfide")
    extrap_d34S_S9: float = Field(constants.EXTRAP_D34S_S9, description="Extrapolated δ34S of S9^2-")
    extrap_d34S_S8: float = Field(constants.EXTRAP_D34S_S8, description="Extrapolated δ34S of S8^2-")
    d4_obs: float = Field(constants.D4_OBS, description="Observed δ34S of S4^2-")
    d5_obs: float = Field(constants.D5_OBS, description="Observed δ34S of S5^2-")
    d6_obs: float = Field(constants.D6_OBS, description="Observed δ34S of S6^2-")
    d7_obs: float = Field(constants.D7_OBS, description="Observed δ34S of S7^2-")
    S8_HS_offset: float = Field(constants.S8_HS_OFFSET, description="S8 − HS⁻ fractionation")

    def to_constants(self) -> constants.ReferenceConstants:
        return constants.ReferenceConstants(**self.model_dump())


class Axis(_Section):
    """Evenly spaced axis specification; ``None`` bounds are derived at run time."""

    start: Optional[float] = None
    stop: Optional[float] = None
    count: int = Field(..., ge=1, description="Number of samples, endpoints inclusive")

    @model_validator(mode="after")
    def _check_bounds(self) -> "Axis":
        for label, value in (("start", self.start), ("stop", self.stop)):
            if value is not None and not math.isfinite(value):
                raise ConfigurationError(f"axis {label} must be finite, got {value}")
        if self.start is not None and self.stop is not None and self.stop < self.start:
            raise ConfigurationError(f"axis stop ({self.stop}) must be ≥ start ({self.start})")
        return self


class Grid(_Section):
    """``q`` and ``p`` axes of the sweep.

    The default ``q`` axis spans ``[extrap_d34S_HS − system_d34S, d4_in]``
    and is resolved against the reference values by
    :meth:`psif.grid.GridAxes.from_config`.
    """

    q: Axis = Field(default_factory=lambda: Axis(count=constants.N_Q))
    p: Axis = Field(
        default_factory=lambda: Axis(
            start=constants.P_BOUNDS[0], stop=constants.P_BOUNDS[1], count=constants.N_P
        )
    )


class Highlight(_Section):
    """Single ``(q1, p1)`` combination evaluated for the position profile."""

    q1: float = constants.Q1
    p1: float = constants.P1


class Model(_Section):
    fc_closure: Literal["S5", "S6"] = Field(
        "S5",
        description=(
            "Chain-average equation used to close fc. 'S5' is the reference model; "
            "'S6' is the alternate closure and must be chosen explicitly."
        ),
    )


class Diagnostics(_Section):
    include_alternates: bool = Field(
        False,
        description="Also store diff_S8_pyrite_alt = d8_bulk − pyrite(S6) in the result grids.",
    )


class Zones(_Section):
    """Acceptance windows used to outline consistent ``(q, p)`` regions."""

    obs_tolerance: float = Field(constants.OBS_STD_ERROR, ge=0.0, description="± window around observed/extrapolated δ34S")
    eb_range: Tuple[float, float] = constants.S8_HS_OFFSET_RANGE
    de_gap_range: Tuple[float, float] = (0.0, 5.0)
    bc_gap_range: Tuple[float, float] = (0.0, 5.0)

    @field_validator("eb_range", "de_gap_range", "bc_gap_range")
    @classmethod
    def _check_range(cls, value: Tuple[float, float]) -> Tuple[float, float]:
        lo, hi = value
        if lo > hi:
            raise ConfigurationError(f"range lower bound {lo} exceeds upper bound {hi}")
        return value


class Sweep(_Section):
    jobs: int = Field(1, ge=1, description="Worker processes; 1 runs in-process")
    progress: bool = Field(False, description="Show a terminal progress bar over q rows")


class Config(_Section):
    """Top-level configuration."""

    reference: Reference = Field(default_factory=Reference)
    grid: Grid = Field(default_factory=Grid)
    highlight: Highlight = Field(default_factory=Highlight)
    model: Model = Field(default_factory=Model)
    diagnostics: Diagnostics = Field(default_factory=Diagnostics)
    zones: Zones = Field(default_factory=Zones)
    sweep: Sweep = Field(default_factory=Sweep)


__all__ = [
    "Axis",
    "Config",
    "Diagnostics",
    "Grid",
    "Highlight",
    "Model",
    "Reference",
    "Sweep",
    "Zones",
]
