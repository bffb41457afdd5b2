"""Fractionation physics: coefficient solver, position model and diagnostics."""
from . import coefficients, diagnostics, positions

__all__ = [
    "coefficients",
    "positions",
    "diagnostics",
]
