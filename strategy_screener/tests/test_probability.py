"""Tests for the probability model."""

import math

import numpy as np
import pytest

from strategy_screener.models import Position, Strategy
from strategy_screener.probability import (
    find_break_points,
    lognormal_pdf,
    normal_cdf,
    price_grid,
    probability_of_profit,
    trapezoid,
    z_score,
)

S0 = 100.0
T = 30 / 365
R = 0.01
SIGMA = 0.2


class TestNormalCdf:
    """Tests for the Abramowitz-Stegun normal CDF."""

    def test_center(self):
        """CDF at zero is one half."""
        assert normal_cdf(0.0) == pytest.approx(0.5, abs=1e-7)

    @pytest.mark.parametrize("x", [-4.0, -2.5, -1.0, -0.3, 0.1, 0.8, 1.96, 3.5])
    def test_matches_erf_within_tolerance(self, x):
        """Approximation stays within 1.5e-7 of the exact CDF."""
        exact = 0.5 * (1 + math.erf(x / math.sqrt(2)))
        assert abs(normal_cdf(x) - exact) < 1.5e-7

    def test_symmetry(self):
        """Phi(x) + Phi(-x) == 1."""
        for x in [0.2, 1.0, 2.7]:
            assert normal_cdf(x) + normal_cdf(-x) == pytest.approx(1.0, abs=1e-12)

    def test_monotone(self):
        """CDF increases with x."""
        values = [normal_cdf(x) for x in np.linspace(-5, 5, 41)]
        assert all(b >= a for a, b in zip(values, values[1:]))


class TestHelpers:
    """Tests for grid, z-score, density and integration helpers."""

    def test_price_grid(self):
        """1000 points from 0.01 to 2 * S0 inclusive."""
        grid = price_grid(S0)
        assert len(grid) == 1000
        assert grid[0] == pytest.approx(0.01)
        assert grid[-1] == pytest.approx(200.0)
        assert np.all(np.diff(grid) > 0)

    def test_z_score_at_spot(self):
        """At S0 the z-score is minus the drift over sigma * sqrt(T)."""
        drift = (R - 0.5 * SIGMA ** 2) * T
        assert z_score(S0, S0, T, R, SIGMA) == pytest.approx(-drift / (SIGMA * math.sqrt(T)))

    def test_trapezoid_constant(self):
        """Integral of a constant over the nodes is the interval length."""
        nodes = np.linspace(0.0, 10.0, 1001)
        assert trapezoid(np.ones_like(nodes), 0.01) == pytest.approx(10.0)

    def test_trapezoid_too_short(self):
        """Fewer than two samples integrate to zero."""
        assert trapezoid(np.array([3.0]), 1.0) == 0.0

    def test_lognormal_pdf_integrates_to_one(self):
        """Density mass over a wide domain is close to one."""
        nodes = np.linspace(0.01, 400.0, 20001)
        density = lognormal_pdf(nodes, S0, 1.0, R, SIGMA)
        step = nodes[1] - nodes[0]
        assert trapezoid(density, step) == pytest.approx(1.0, abs=1e-3)

    def test_find_break_points(self):
        """Break point is the first sample on the new side."""
        prices = np.array([1.0, 2.0, 3.0, 4.0, 5.0])
        profitable = np.array([False, False, True, True, False])
        np.testing.assert_array_equal(find_break_points(prices, profitable), [3.0, 5.0])


class TestProbabilityOfProfit:
    """Tests for probability_of_profit."""

    def test_always_profitable(self):
        """Strictly positive curve gives exactly 1.0."""
        assert probability_of_profit(lambda s: np.full_like(s, 2.0), S0, T, R, SIGMA) == 1.0

    def test_never_profitable(self):
        """Strictly negative curve gives exactly 0.0."""
        assert probability_of_profit(lambda s: np.full_like(s, -1.0), S0, T, R, SIGMA) == 0.0

    def test_zero_payoff_is_not_profit(self):
        """Profit must be strictly positive."""
        assert probability_of_profit(lambda s: np.zeros_like(s), S0, T, R, SIGMA) == 0.0

    def test_single_break_profit_above(self):
        """Bought call is profitable above its break point."""
        strategy = Strategy([Position("call", "buy", 100.0, 5.0)])
        grid = price_grid(S0)
        profitable = strategy.net_payoff(grid) > 0
        (boundary,) = find_break_points(grid, profitable)

        expected = 1.0 - normal_cdf(z_score(boundary, S0, T, R, SIGMA))
        assert strategy.probability_of_profit(S0, T, R, SIGMA) == pytest.approx(expected)

    def test_single_break_profit_below(self):
        """Bought put is profitable below its break point."""
        strategy = Strategy([Position("put", "buy", 100.0, 5.0)])
        grid = price_grid(S0)
        profitable = strategy.net_payoff(grid) > 0
        (boundary,) = find_break_points(grid, profitable)

        expected = normal_cdf(z_score(boundary, S0, T, R, SIGMA))
        assert strategy.probability_of_profit(S0, T, R, SIGMA) == pytest.approx(expected)

    def test_iron_condor_interior_profit(self, iron_condor):
        """Credit condor with wings outside spot uses the two-break closed form."""
        grid = price_grid(S0)
        profitable = iron_condor.net_payoff(grid) > 0
        breaks = find_break_points(grid, profitable)
        assert len(breaks) == 2

        z1, z2 = (z_score(b, S0, T, R, SIGMA) for b in breaks)
        expected = normal_cdf(z2) - normal_cdf(z1)

        pop = iron_condor.probability_of_profit(S0, T, R, SIGMA)
        assert pop == pytest.approx(expected)
        assert pop > 0.5

    def test_two_breaks_profit_outside(self):
        """Long strangle profits on both tails, not between the breaks."""
        strangle = Strategy([
            Position("call", "buy", 110.0, 1.0),
            Position("put", "buy", 90.0, 1.0),
        ])
        grid = price_grid(S0)
        profitable = strangle.net_payoff(grid) > 0
        breaks = find_break_points(grid, profitable)
        assert len(breaks) == 2
        assert profitable[0]

        z1, z2 = (z_score(b, S0, T, R, SIGMA) for b in breaks)
        inside = normal_cdf(z2) - normal_cdf(z1)

        pop = strangle.probability_of_profit(S0, T, R, SIGMA)
        assert pop == pytest.approx(1.0 - inside)
        assert pop < 0.5

    def test_many_breaks_integrates_density(self):
        """Three or more break points fall back to trapezoid integration."""
        def payoff(prices):
            return np.sin(np.asarray(prices) / 3.0)

        grid = price_grid(S0)
        assert len(find_break_points(grid, payoff(grid) > 0)) >= 3

        nodes = np.linspace(0.01, 2 * S0, 1001)
        integrand = (payoff(nodes) > 0) * lognormal_pdf(nodes, S0, T, R, SIGMA)
        expected = trapezoid(integrand, (2 * S0 - 0.01) / 1000)

        pop = probability_of_profit(payoff, S0, T, R, SIGMA)
        assert pop == pytest.approx(expected)
        assert 0.0 < pop < 1.0

    @pytest.mark.parametrize("sigma", [0.05, 0.2, 0.8])
    @pytest.mark.parametrize("days", [1, 30, 365])
    def test_bounded(self, iron_condor, sigma, days):
        """Probability stays in [0, 1] across market scenarios."""
        pop = iron_condor.probability_of_profit(S0, days / 365, R, sigma)
        assert 0.0 <= pop <= 1.0

    @pytest.mark.parametrize(
        "s0, t, sigma",
        [(0.0, T, SIGMA), (S0, 0.0, SIGMA), (S0, T, 0.0)],
    )
    def test_rejects_degenerate_market(self, iron_condor, s0, t, sigma):
        """Non-positive price, time or volatility is rejected."""
        with pytest.raises(ValueError):
            iron_condor.probability_of_profit(s0, t, R, sigma)
