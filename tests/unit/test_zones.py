from __future__ import annotations

import numpy as np
import pytest

from psif import sweep
from psif.grid import GridAxes
from psif.schema import Zones
from psif.zones import ZONE_NAMES, consistency_zones, zone_summary


@pytest.fixture
def synthetic_grids() -> sweep.ResultGrids:
    axes = GridAxes(q=[-1.0, 0.0], p=[0.0, 1.0])
    data = {
        "d9_bulk": np.array([[6.5, 6.9], [6.3, np.nan]]),
        "eb": np.array([[4.0, 4.0], [6.0, 0.0]]),
        "de_diff": np.array([[1.0, 1.0], [-1.0, np.nan]]),
        "bc_diff": np.array([[2.0, 6.0], [2.0, np.nan]]),
        "d6_bulk": np.array([[2.8, 2.7], [2.7, 2.7]]),
        "diff_S8_pyrite": np.array([[6.0, 7.0], [8.0, np.nan]]),
    }
    return sweep.ResultGrids(axes=axes, data=data)


def test_individual_zones(synthetic_grids: sweep.ResultGrids) -> None:
    zones = consistency_zones(synthetic_grids)

    assert set(zones) == set(ZONE_NAMES) | {"overlap"}
    np.testing.assert_array_equal(zones["s9_match"], [[True, False], [True, False]])
    np.testing.assert_array_equal(zones["eb_range"], [[True, True], [False, False]])
    np.testing.assert_array_equal(zones["de_gap"], [[True, True], [False, False]])
    np.testing.assert_array_equal(zones["bc_gap"], [[True, False], [True, False]])
    np.testing.assert_array_equal(zones["s6_match"], [[True, True], [True, True]])
    np.testing.assert_array_equal(zones["overlap"], [[True, False], [False, False]])


def test_custom_criteria_widen_zones(synthetic_grids: sweep.ResultGrids) -> None:
    criteria = Zones(obs_tolerance=0.5, eb_range=(3.0, 7.0), de_gap_range=(-2.0, 5.0), bc_gap_range=(0.0, 10.0))
    zones = consistency_zones(synthetic_grids, criteria)

    np.testing.assert_array_equal(zones["overlap"], [[True, True], [True, False]])


def test_zone_summary(synthetic_grids: sweep.ResultGrids) -> None:
    zones = consistency_zones(synthetic_grids)
    table = zone_summary(synthetic_grids, zones)

    assert table.index.name == "zone"
    assert table.loc["overlap", "cells"] == 1
    assert table.loc["overlap", "diff_S8_pyrite_min"] == 6.0
    assert table.loc["s9_match", "q_min"] == -1.0
    assert table.loc["s9_match", "q_max"] == 0.0
    assert table.loc["s9_match", "diff_S8_pyrite_max"] == 8.0
    assert table.loc["s6_match", "cells"] == 4
    assert table.loc["s6_match", "diff_S8_pyrite_max"] == 8.0


def test_empty_zone_summary_is_nan(synthetic_grids: sweep.ResultGrids) -> None:
    zones = {"none": np.zeros((2, 2), dtype=bool)}
    table = zone_summary(synthetic_grids, zones)

    assert table.loc["none", "cells"] == 0
    assert np.isnan(table.loc["none", "q_min"])
    assert np.isnan(table.loc["none", "diff_S8_pyrite_max"])


def test_reference_sweep_overlap_is_consistent(small_axes: GridAxes) -> None:
    with pytest.warns(Warning):
        grids = sweep.run_sweep(small_axes)
    zones = consistency_zones(grids)

    assert zones["overlap"].shape == grids.shape
    assert not zones["overlap"][-1].any()
    assert np.all(zones["overlap"] <= zones["eb_range"])
