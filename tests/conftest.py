from __future__ import annotations

import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from psif.constants import ReferenceConstants  # noqa: E402
from psif.grid import GridAxes  # noqa: E402


@pytest.fixture
def reference() -> ReferenceConstants:
    return ReferenceConstants()


@pytest.fixture
def small_axes(reference: ReferenceConstants) -> GridAxes:
    """Coarse grid over the reference bounds; the last q row is degenerate."""

    return GridAxes.linear((reference.extrap_HS_in, reference.d4_in), (0.0, 1.2), n_q=7, n_p=5)
