"""Reference isotope values for the polysulfide fractionation model.

All δ34S values are in per mil (‰) relative to VCDT.  Bulk, sulfide and
polysulfide values come from the (NH4)2Sn solution experiments of Amrani et
al. (2006); the S8–HS⁻ offset is the 3.4–5.4 ‰ fractionation reported by
Amrani & Aizenshtat (2004).  The model itself works with offsets relative to
the bulk system value, exposed here as the ``*_in`` properties.

References
----------
- [@Amrani2006_InorgChem45_1427] δ34S of polysulfide anions sorted by chain length
- [@AmraniAizenshtat2004_OrgGeochem35_1319] S8–sulfide fractionation
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

from .errors import ModelError

# Bulk δ34S of all sulfur in the system (‰)
SYSTEM_D34S: float = 16.5

# Extrapolated δ34S of dissolved sulfide, S9^2- and S8^2- (‰)
EXTRAP_D34S_HS: float = 13.8
EXTRAP_D34S_S9: float = 23.0
EXTRAP_D34S_S8: float = 21.8

# Observed δ34S of S4^2- .. S7^2- (‰), standard error ±0.3 ‰
D4_OBS: float = 16.9
D5_OBS: float = 18.1
D6_OBS: float = 19.2
D7_OBS: float = 20.6
OBS_STD_ERROR: float = 0.3

# S8 − HS⁻ offset (‰), 4.4 ± 1.0
S8_HS_OFFSET: float = 4.4
S8_HS_OFFSET_RANGE: Tuple[float, float] = (3.4, 5.4)

# Chain lengths covered by the model
CHAIN_LENGTHS: Tuple[int, ...] = (4, 5, 6, 7, 8, 9)

# Default sweep resolution and p bounds (‰)
N_Q: int = 90
N_P: int = 100
P_BOUNDS: Tuple[float, float] = (0.0, 1.2)

# Highlighted parameter combination used for the single-point profile (‰)
Q1: float = -0.5
P1: float = 0.65


@dataclass(frozen=True)
class ReferenceConstants:
    """Measured and extrapolated reference values.

    Instances are immutable; the model never cross-checks the values against
    each other, so inconsistent inputs propagate silently into the results.
    """

    system_d34S: float = SYSTEM_D34S
    extrap_d34S_HS: float = EXTRAP_D34S_HS
    extrap_d34S_S9: float = EXTRAP_D34S_S9
    extrap_d34S_S8: float = EXTRAP_D34S_S8
    d4_obs: float = D4_OBS
    d5_obs: float = D5_OBS
    d6_obs: float = D6_OBS
    d7_obs: float = D7_OBS
    S8_HS_offset: float = S8_HS_OFFSET

    @property
    def d4_in(self) -> float:
        return self.d4_obs - self.system_d34S

    @property
    def d5_in(self) -> float:
        return self.d5_obs - self.system_d34S

    @property
    def d6_in(self) -> float:
        return self.d6_obs - self.system_d34S

    @property
    def d7_in(self) -> float:
        return self.d7_obs - self.system_d34S

    @property
    def extrap_HS_in(self) -> float:
        """Sulfide offset from the system value; lower bound of the q axis."""
        return self.extrap_d34S_HS - self.system_d34S

    @property
    def extrap_S9_in(self) -> float:
        return self.extrap_d34S_S9 - self.system_d34S

    @property
    def extrap_S8_in(self) -> float:
        return self.extrap_d34S_S8 - self.system_d34S

    def observed_offset(self, n: int) -> float:
        """Return the system-relative observed δ34S for chain length ``n`` (4–7)."""

        lookup = {4: self.d4_in, 5: self.d5_in, 6: self.d6_in, 7: self.d7_in}
        try:
            return lookup[n]
        except KeyError:
            raise ModelError(f"no observed δ34S for S{n}; observations cover S4–S7") from None


DEFAULT_REFERENCE = ReferenceConstants()
