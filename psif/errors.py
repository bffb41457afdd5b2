"""Custom exceptions for the :mod:`psif` package."""
from __future__ import annotations


class PsifError(Exception):
    """Base exception for polysulfide fractionation model errors."""


class ConfigurationError(PsifError, ValueError):
    """Invalid configuration file, override or grid parameter."""


class ModelError(PsifError, ValueError):
    """Structural misuse of the model, e.g. an unsupported chain length."""


class SweepAborted(PsifError, RuntimeError):
    """Raised when a parameter sweep is cancelled before completion."""


__all__ = [
    "PsifError",
    "ConfigurationError",
    "ModelError",
    "SweepAborted",
]
