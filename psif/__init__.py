"""Steady-state polysulfide isotope fractionation model."""
from . import constants, grid
from .constants import ReferenceConstants
from .errors import PsifError
from .grid import GridAxes
from .sweep import ResultGrids, evaluate_point, run_sweep

__all__ = [
    "constants",
    "grid",
    "GridAxes",
    "PsifError",
    "ReferenceConstants",
    "ResultGrids",
    "evaluate_point",
    "run_sweep",
]
