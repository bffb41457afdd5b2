from __future__ import annotations

import math

import numpy as np
import pytest

from psif.constants import ReferenceConstants
from psif.errors import ModelError
from psif.physics import coefficients


def test_reference_offsets(reference: ReferenceConstants) -> None:
    assert reference.d4_in == pytest.approx(0.4)
    assert reference.d5_in == pytest.approx(1.6)
    assert reference.d6_in == pytest.approx(2.7)
    assert reference.d7_in == pytest.approx(4.1)
    assert reference.extrap_HS_in == pytest.approx(-2.7)
    assert reference.extrap_S9_in == pytest.approx(6.5)


def test_known_point_matches_hand_solution(reference: ReferenceConstants) -> None:
    coeffs = coefficients.solve_coefficients(-0.5, 0.65, reference)

    assert coeffs.eb == pytest.approx(1.8, rel=1e-12)
    assert coeffs.fc == pytest.approx(3.65 / 1.8, rel=1e-12)
    assert coeffs.fc == pytest.approx(2.028, abs=5e-4)
    assert coeffs.fd == pytest.approx(4.25, rel=1e-12)
    assert coeffs.fe == pytest.approx(5.0, rel=1e-12)
    assert isinstance(coeffs.eb, float)
    assert coeffs.is_finite()
    assert coeffs.in_physical_domain()
    assert not coeffs.is_degenerate()


def test_eb_depends_on_q_only(reference: ReferenceConstants) -> None:
    q = np.array([-2.0, -1.0, 0.0])
    eb = coefficients.solve_eb(q, reference)
    np.testing.assert_allclose(eb, 2.0 * reference.d4_in - 2.0 * q)


def test_array_inputs_broadcast(reference: ReferenceConstants) -> None:
    p = np.linspace(0.0, 1.2, 4)
    block = coefficients.solve_coefficients(-0.5, p, reference)
    for idx, p_val in enumerate(p):
        point = coefficients.solve_coefficients(-0.5, float(p_val), reference)
        assert block.fc[idx] == pytest.approx(point.fc)
        assert block.fd[idx] == pytest.approx(point.fd)
        assert block.fe[idx] == pytest.approx(point.fe)


def test_degenerate_eb_gives_nonfinite_without_raising(reference: ReferenceConstants) -> None:
    coeffs = coefficients.solve_coefficients(reference.d4_in, 0.3, reference)

    assert coeffs.eb == 0.0
    assert coeffs.is_degenerate()
    assert not math.isfinite(coeffs.fc)
    assert not math.isfinite(coeffs.fd)
    assert not math.isfinite(coeffs.fe)
    assert not coeffs.is_finite()
    assert not coeffs.in_physical_domain()


def test_values_below_one_are_returned(reference: ReferenceConstants) -> None:
    # Large p pushes fd below 1 at this q; the solver must not clamp it.
    coeffs = coefficients.solve_coefficients(-0.5, 1.2, reference)
    expected_fd = (7 * reference.d7_in + 3.5 - 25.2 - 3.6 - 2 * coeffs.fc * 1.8) / 1.8
    assert coeffs.fd == pytest.approx(expected_fd, rel=1e-9)
    assert coeffs.fd < 1.0
    assert not coeffs.in_physical_domain()


def test_s6_closure_is_opt_in(reference: ReferenceConstants) -> None:
    default = coefficients.solve_coefficients(-0.5, 0.65, reference)
    alternate = coefficients.solve_coefficients(-0.5, 0.65, reference, fc_closure="S6")

    assert alternate.fc == pytest.approx(7.8 / 3.6, rel=1e-12)
    assert alternate.fc != pytest.approx(default.fc)
    assert alternate.eb == default.eb


def test_unknown_closure_rejected(reference: ReferenceConstants) -> None:
    with pytest.raises(ModelError):
        coefficients.solve_coefficients(-0.5, 0.65, reference, fc_closure="S7")  # type: ignore[arg-type]


def test_fe_closes_disproportionation_offset(reference: ReferenceConstants) -> None:
    coeffs = coefficients.solve_coefficients(-1.3, 0.2, reference)
    eb, fc, fd, fe = coeffs.as_tuple()
    offset = (2 * eb + 2 * fc * eb + 2 * fd * eb + fe * eb) / 8.0
    assert offset == pytest.approx(reference.S8_HS_offset, rel=1e-12)


def test_module_documents_position_equations() -> None:
    assert coefficients.__doc__ is not None
    assert "back-substitution" in coefficients.__doc__
