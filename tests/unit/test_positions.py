from __future__ import annotations

import numpy as np
import pytest

from psif.constants import ReferenceConstants
from psif.errors import ModelError
from psif.physics import coefficients, positions


@pytest.mark.parametrize(
    "n, roles, weights",
    [
        (4, ("a", "b"), (2.0, 2.0)),
        (5, ("a", "b", "c"), (2.0, 2.0, 1.0)),
        (6, ("a", "b", "c"), (2.0, 2.0, 2.0)),
        (7, ("a", "b", "c", "d"), (2.0, 2.0, 2.0, 1.0)),
        (8, ("a", "b", "c", "d"), (2.0, 2.0, 2.0, 2.0)),
        (9, ("a", "b", "c", "d", "e"), (2.0, 2.0, 2.0, 2.0, 1.0)),
    ],
)
def test_chain_layouts(n: int, roles: tuple, weights: tuple) -> None:
    layout = positions.CHAIN_LAYOUTS[n]
    assert layout.roles == roles
    assert layout.weights == weights
    assert layout.divisor == float(n)
    assert layout.p_steps == n - 4


def test_unknown_chain_length_rejected() -> None:
    with pytest.raises(ModelError):
        positions.get_layout(10)


def test_known_point_positions(reference: ReferenceConstants) -> None:
    coeffs = coefficients.solve_coefficients(-0.5, 0.65, reference)
    chains = positions.chain_compositions(-0.5, 0.65, coeffs)

    assert chains[4].as_dict() == pytest.approx({"a": -0.5, "b": 1.3})
    assert chains[5].as_dict() == pytest.approx({"a": 0.15, "b": 1.95, "c": 3.8})
    assert chains[9].as_dict() == pytest.approx(
        {"a": 2.75, "b": 4.55, "c": 6.4, "d": 10.4, "e": 11.75}
    )
    assert chains[8].bulk == pytest.approx(5.375)
    assert chains[9].bulk == pytest.approx(59.95 / 9.0)


@pytest.mark.parametrize("q, p", [(-2.7, 0.0), (-1.1, 0.4), (-0.5, 0.65), (0.2, 1.2)])
def test_bulk_closes_observed_chains(reference: ReferenceConstants, q: float, p: float) -> None:
    coeffs = coefficients.solve_coefficients(q, p, reference)
    chains = positions.chain_compositions(q, p, coeffs)

    assert chains[4].bulk == pytest.approx(reference.d4_in, abs=1e-9)
    assert chains[5].bulk == pytest.approx(reference.d5_in, abs=1e-9)
    assert chains[7].bulk == pytest.approx(reference.d7_in, abs=1e-9)


def test_adjacent_gaps_do_not_depend_on_chain_length(reference: ReferenceConstants) -> None:
    q = np.array([-2.7, -1.5, -0.5])[:, None]
    p = np.linspace(0.0, 1.2, 6)[None, :]
    coeffs = coefficients.solve_coefficients(q, p, reference)
    chains = positions.chain_compositions(q, p, coeffs)
    eb = np.broadcast_to(coeffs.eb, (3, 6))

    for n, chain in chains.items():
        np.testing.assert_allclose(chain["b"] - chain["a"], eb, rtol=0, atol=1e-12)
        if "c" in chain.roles:
            np.testing.assert_allclose(chain["c"] - chain["b"], chains[9]["c"] - chains[9]["b"], rtol=0, atol=1e-12)
        if "d" in chain.roles:
            np.testing.assert_allclose(chain["d"] - chain["c"], chains[9]["d"] - chains[9]["c"], rtol=0, atol=1e-12)


def test_successive_chains_shift_by_p(reference: ReferenceConstants) -> None:
    coeffs = coefficients.solve_coefficients(-1.0, 0.3, reference)
    chains = positions.chain_compositions(-1.0, 0.3, coeffs)
    for n in range(5, 10):
        assert chains[n]["a"] - chains[n - 1]["a"] == pytest.approx(0.3)


def test_post_disproportionation_weighting() -> None:
    chain = positions.ChainComposition.from_positions(9, [1.0, 2.0, 3.0, 4.0, 5.0])

    assert positions.post_disproportionation_s8(chain) == pytest.approx(3.0)
    assert chain.bulk == pytest.approx(25.0 / 9.0)
    s8 = positions.ChainComposition.from_positions(8, [1.0, 2.0, 3.0, 4.0])
    assert s8.bulk == pytest.approx(2.5)
    assert positions.post_disproportionation_s8(chain) != pytest.approx(s8.bulk)


def test_post_disproportionation_requires_s9() -> None:
    chain = positions.ChainComposition.from_positions(8, [1.0, 2.0, 3.0, 4.0])
    with pytest.raises(ModelError):
        positions.post_disproportionation_s8(chain)


def test_from_positions_checks_length() -> None:
    with pytest.raises(ModelError):
        positions.ChainComposition.from_positions(5, [1.0, 2.0])


def test_missing_role_raises_keyerror() -> None:
    chain = positions.ChainComposition.from_positions(4, [0.0, 1.0])
    with pytest.raises(KeyError):
        chain["c"]


def test_degenerate_point_keeps_terminal_positions_finite(reference: ReferenceConstants) -> None:
    q = reference.d4_in
    coeffs = coefficients.solve_coefficients(q, 0.5, reference)
    chains = positions.chain_compositions(q, 0.5, coeffs)

    assert np.isfinite(chains[4].bulk)
    assert np.isfinite(chains[5]["a"]) and np.isfinite(chains[5]["b"])
    assert not np.isfinite(chains[5]["c"])
    assert not np.isfinite(chains[9].bulk)
    assert not np.isfinite(positions.post_disproportionation_s8(chains[9]))
