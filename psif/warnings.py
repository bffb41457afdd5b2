"""Structured warning classes for the :mod:`psif` package."""
from __future__ import annotations


class PsifWarning(UserWarning):
    """Base warning class for psif."""


class NumericalWarning(PsifWarning):
    """Non-finite or otherwise numerically unusable results."""


class DegenerateCoefficientWarning(NumericalWarning):
    """Grid points where ``eb == 0`` leaves ``fc``, ``fd`` and ``fe`` undefined."""


__all__ = [
    "PsifWarning",
    "NumericalWarning",
    "DegenerateCoefficientWarning",
]
