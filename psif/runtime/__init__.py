"""Runtime helpers used by the sweep driver."""

from .progress import ProgressReporter

__all__ = ["ProgressReporter"]
