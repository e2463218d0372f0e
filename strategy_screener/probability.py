"""
Probability model for strategy evaluation.

Terminal prices follow the geometric Brownian motion model used by
Black-Scholes:

    ln(S_T) ~ Normal(ln(S0) + (r - sigma^2 / 2) * T, sigma * sqrt(T))

Probability of profit is resolved in closed form when the payoff curve has
one or two break points, and by trapezoid integration of the lognormal
density otherwise.
"""

import logging
import math
from typing import Callable

import numpy as np

logger = logging.getLogger(__name__)

# Sampling domain for payoff curves
GRID_MIN_PRICE = 0.01
GRID_POINTS = 1000
INTEGRATION_STEPS = 1000

# Abramowitz & Stegun 7.1.26 constants
_A1 = 0.254829592
_A2 = -0.284496736
_A3 = 1.421413741
_A4 = -1.453152027
_A5 = 1.061405429
_P = 0.3275911

PayoffFunction = Callable[[np.ndarray], np.ndarray]


def price_grid(underlying_price: float, points: int = GRID_POINTS) -> np.ndarray:
    """
    Evenly spaced terminal prices from 0.01 to twice the current price.

    Both endpoints are included.

    Args:
        underlying_price: Current underlying price (S0)
        points: Number of samples (default 1000)

    Returns:
        Array of terminal prices
    """
    return np.linspace(GRID_MIN_PRICE, 2.0 * underlying_price, points)


def normal_cdf(x: float) -> float:
    """
    Standard normal CDF via the Abramowitz-Stegun rational approximation.

    Max absolute error is about 1.5e-7.
    """
    sign = -1.0 if x < 0 else 1.0
    x = abs(x) / math.sqrt(2.0)
    t = 1.0 / (1.0 + _P * x)
    y = 1.0 - ((((_A5 * t + _A4) * t + _A3) * t + _A2) * t + _A1) * t * math.exp(-x * x)
    return 0.5 * (1.0 + sign * y)


def z_score(
    price: float,
    underlying_price: float,
    time_to_expiry: float,
    risk_free_rate: float,
    volatility: float,
) -> float:
    """Standardized lognormal z-score of a terminal price."""
    drift = (risk_free_rate - 0.5 * volatility ** 2) * time_to_expiry
    return (math.log(price / underlying_price) - drift) / (volatility * math.sqrt(time_to_expiry))


def lognormal_pdf(
    prices: np.ndarray,
    underlying_price: float,
    time_to_expiry: float,
    risk_free_rate: float,
    volatility: float,
) -> np.ndarray:
    """Lognormal density of the terminal price, evaluated elementwise."""
    prices = np.asarray(prices, dtype=float)
    variance = volatility ** 2 * time_to_expiry
    drift = (risk_free_rate - 0.5 * volatility ** 2) * time_to_expiry
    log_ratio = np.log(prices / underlying_price) - drift
    return np.exp(-(log_ratio ** 2) / (2 * variance)) / (
        prices * volatility * np.sqrt(2 * math.pi * time_to_expiry)
    )


def trapezoid(values: np.ndarray, step: float) -> float:
    """Composite trapezoidal rule over equally spaced samples."""
    values = np.asarray(values, dtype=float)
    if values.size < 2:
        return 0.0
    return float(step * (values.sum() - 0.5 * (values[0] + values[-1])))


def find_break_points(prices: np.ndarray, profitable: np.ndarray) -> np.ndarray:
    """
    Sampled prices where profitability flips.

    The break point is the first sample on the new side of the flip.
    """
    flips = np.nonzero(profitable[1:] != profitable[:-1])[0] + 1
    return prices[flips]


def _integrate_profit_region(
    payoff: PayoffFunction,
    underlying_price: float,
    time_to_expiry: float,
    risk_free_rate: float,
    volatility: float,
) -> float:
    """Integrate the lognormal density over the profitable part of the grid."""
    low = GRID_MIN_PRICE
    high = 2.0 * underlying_price
    nodes = np.linspace(low, high, INTEGRATION_STEPS + 1)
    indicator = (np.asarray(payoff(nodes)) > 0).astype(float)
    density = lognormal_pdf(nodes, underlying_price, time_to_expiry, risk_free_rate, volatility)
    step = (high - low) / INTEGRATION_STEPS
    return trapezoid(indicator * density, step)


def probability_of_profit(
    payoff: PayoffFunction,
    underlying_price: float,
    time_to_expiry: float,
    risk_free_rate: float,
    volatility: float,
) -> float:
    """
    Probability that the payoff finishes strictly positive.

    Args:
        payoff: Vectorised payoff function of terminal price
        underlying_price: Current underlying price (S0)
        time_to_expiry: Time to expiration in years
        risk_free_rate: Annual risk-free rate
        volatility: Annualised volatility

    Returns:
        Probability in [0, 1]. Exactly 1.0 when the sampled curve is
        profitable everywhere and exactly 0.0 when it is profitable nowhere.
    """
    prices = price_grid(underlying_price)
    return probability_from_samples(
        payoff,
        prices,
        np.asarray(payoff(prices)),
        underlying_price,
        time_to_expiry,
        risk_free_rate,
        volatility,
    )


def probability_from_samples(
    payoff: PayoffFunction,
    prices: np.ndarray,
    payoffs: np.ndarray,
    underlying_price: float,
    time_to_expiry: float,
    risk_free_rate: float,
    volatility: float,
) -> float:
    """
    Probability of profit from payoffs already sampled on `price_grid`.

    `payoff` is only called again when three or more break points force
    the integration path.
    """
    if underlying_price <= 0 or time_to_expiry <= 0 or volatility <= 0:
        raise ValueError("underlying_price, time_to_expiry and volatility must be positive")

    profitable = np.asarray(payoffs) > 0

    if not profitable.any():
        return 0.0
    if profitable.all():
        return 1.0

    break_points = find_break_points(prices, profitable)
    z_values = [
        z_score(float(b), underlying_price, time_to_expiry, risk_free_rate, volatility)
        for b in break_points
    ]
    profitable_at_low_end = bool(profitable[0])

    if len(z_values) == 1:
        cdf = normal_cdf(z_values[0])
        probability = cdf if profitable_at_low_end else 1.0 - cdf
    elif len(z_values) == 2:
        inside = normal_cdf(z_values[1]) - normal_cdf(z_values[0])
        # Profit on both tails when the low end is already profitable
        probability = 1.0 - inside if profitable_at_low_end else inside
    else:
        logger.debug(
            f"{len(z_values)} break points, integrating lognormal density"
        )
        probability = _integrate_profit_region(
            payoff, underlying_price, time_to_expiry, risk_free_rate, volatility
        )

    return max(0.0, min(1.0, probability))
