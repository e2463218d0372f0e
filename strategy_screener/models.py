"""
Data models for the options strategy screener.
"""

import math
from dataclasses import dataclass, field
from typing import NamedTuple, Optional, Sequence, Union

import numpy as np

from strategy_screener.exceptions import (
    InvalidActionError,
    InvalidKindError,
    InvalidPositionError,
)
from strategy_screener.probability import (
    price_grid,
    probability_from_samples,
    probability_of_profit,
)

OPTION_KINDS = ("call", "put")
ACTIONS = ("buy", "sell")

PriceInput = Union[float, np.ndarray]


@dataclass(frozen=True)
class Position:
    """
    A single option leg.

    Attributes:
        option_type: 'call' or 'put'
        action: 'buy' or 'sell'
        strike: Strike price
        premium: Price paid (buy) or received (sell) per unit
        quantity: Number of units (default: 1)
    """
    option_type: str
    action: str
    strike: float
    premium: float
    quantity: int = 1

    def __post_init__(self) -> None:
        option_type = self.option_type.lower() if isinstance(self.option_type, str) else self.option_type
        action = self.action.lower() if isinstance(self.action, str) else self.action
        if option_type not in OPTION_KINDS:
            raise InvalidKindError(self.option_type)
        if action not in ACTIONS:
            raise InvalidActionError(self.action)
        if not (self.strike > 0 and math.isfinite(self.strike)):
            raise InvalidPositionError(f"strike must be positive and finite, got {self.strike}")
        if not (self.premium >= 0 and math.isfinite(self.premium)):
            raise InvalidPositionError(f"premium must be non-negative and finite, got {self.premium}")
        if isinstance(self.quantity, bool) or not isinstance(self.quantity, (int, np.integer)):
            raise InvalidPositionError(f"quantity must be an integer, got {self.quantity!r}")
        if self.quantity < 1:
            raise InvalidPositionError(f"quantity must be at least 1, got {self.quantity}")
        object.__setattr__(self, "option_type", option_type)
        object.__setattr__(self, "action", action)

    def intrinsic_value(self, terminal_price: PriceInput) -> PriceInput:
        """Value at expiry ignoring the premium."""
        prices = np.asarray(terminal_price, dtype=float)
        if self.option_type == "call":
            value = np.maximum(prices - self.strike, 0.0)
        else:
            value = np.maximum(self.strike - prices, 0.0)
        return float(value) if value.ndim == 0 else value

    def payoff(self, terminal_price: PriceInput) -> PriceInput:
        """
        Profit/loss of this leg at expiry.

        Args:
            terminal_price: Underlying price at expiry (scalar or array)

        Returns:
            quantity * (intrinsic - premium) for a buy,
            quantity * (premium - intrinsic) for a sell
        """
        intrinsic = self.intrinsic_value(terminal_price)
        if self.action == "buy":
            return self.quantity * (intrinsic - self.premium)
        return self.quantity * (self.premium - intrinsic)

    def describe(self) -> str:
        return f"{self.action.title()} {self.quantity} {self.option_type} @ {self.strike:g} for {self.premium:.2f}"


def _reward_to_risk(max_profit: float, max_loss: float) -> float:
    if max_profit == 0:
        return float("inf") if max_loss < 0 else 0.0
    if max_loss == 0:
        return float("inf")
    return abs(max_profit / max_loss)


def _zero_crossings(prices: np.ndarray, payoffs: np.ndarray) -> list[float]:
    losing = payoffs <= 0
    crossings = np.nonzero(losing[1:] != losing[:-1])[0]
    before = np.abs(payoffs[crossings])
    after = np.abs(payoffs[crossings + 1])
    weight = before / (before + after)
    points = prices[crossings] + (prices[crossings + 1] - prices[crossings]) * weight
    return points.tolist()


@dataclass(frozen=True)
class Strategy:
    """
    An ordered collection of positions evaluated together.

    Leg order is kept for display only; it does not change the payoff.
    """
    positions: tuple

    def __post_init__(self) -> None:
        positions = tuple(self.positions)
        if not positions:
            raise InvalidPositionError("strategy must have at least one position")
        object.__setattr__(self, "positions", positions)

    def net_payoff(self, terminal_price: PriceInput) -> PriceInput:
        """Sum of all leg payoffs at the same terminal price."""
        total = 0.0
        for position in self.positions:
            total = total + position.payoff(terminal_price)
        return total

    def _sampled_payoffs(self, underlying_price: float) -> tuple[np.ndarray, np.ndarray]:
        prices = price_grid(underlying_price)
        return prices, np.asarray(self.net_payoff(prices), dtype=float)

    def probability_of_profit(
        self,
        underlying_price: float,
        time_to_expiry: float,
        risk_free_rate: float,
        volatility: float,
    ) -> float:
        """Probability the net payoff finishes strictly positive."""
        return probability_of_profit(
            self.net_payoff,
            underlying_price,
            time_to_expiry,
            risk_free_rate,
            volatility,
        )

    def risk_reward_ratio(
        self,
        underlying_price: float,
        time_to_expiry: float = 0.0,
        risk_free_rate: float = 0.0,
        volatility: float = 0.0,
    ) -> float:
        """
        Reward-to-risk ratio |max profit / max loss| over the sampled curve.

        Market parameters other than the underlying price do not affect the
        sampled payoff; they are accepted so every metric shares a signature.

        Returns:
            inf when there is no profit but some loss, 0 when the curve is
            flat at zero, inf when there is profit and no loss.
        """
        _, payoffs = self._sampled_payoffs(underlying_price)
        return _reward_to_risk(float(np.max(payoffs)), float(np.min(payoffs)))

    def max_profit(self, underlying_price: float) -> float:
        """Largest sampled net payoff."""
        return float(np.max(self._sampled_payoffs(underlying_price)[1]))

    def max_loss(self, underlying_price: float) -> float:
        """Smallest sampled net payoff (negative for a loss)."""
        return float(np.min(self._sampled_payoffs(underlying_price)[1]))

    def break_even_points(
        self,
        underlying_price: float,
        prices: Optional[np.ndarray] = None,
    ) -> list[float]:
        """
        Prices where the net payoff crosses zero.

        Each crossing is linearly interpolated between the two samples that
        straddle it.

        Args:
            underlying_price: Current underlying price, sets the default grid
            prices: Optional ascending sample prices

        Returns:
            List of break-even prices in ascending order
        """
        if prices is None:
            prices = price_grid(underlying_price)
        prices = np.asarray(prices, dtype=float)
        payoffs = np.asarray(self.net_payoff(prices), dtype=float)
        return _zero_crossings(prices, payoffs)

    def metrics(
        self,
        underlying_price: float,
        time_to_expiry: float,
        risk_free_rate: float,
        volatility: float,
    ) -> dict:
        """
        All screening metrics from a single evaluation of the price grid.

        Returns:
            Dict with risk_reward_ratio, probability_of_profit, max_profit,
            max_loss and break_even_points
        """
        prices, payoffs = self._sampled_payoffs(underlying_price)
        max_profit = float(np.max(payoffs))
        max_loss = float(np.min(payoffs))
        return {
            "risk_reward_ratio": _reward_to_risk(max_profit, max_loss),
            "probability_of_profit": probability_from_samples(
                self.net_payoff,
                prices,
                payoffs,
                underlying_price,
                time_to_expiry,
                risk_free_rate,
                volatility,
            ),
            "max_profit": max_profit,
            "max_loss": max_loss,
            "break_even_points": tuple(_zero_crossings(prices, payoffs)),
        }

    def payoff_curve(self, underlying_price: float, points: int = 100) -> tuple[list[float], list[float]]:
        """Chart data: prices from 50% of spot upwards in 1% steps, with payoffs."""
        prices = underlying_price * (0.5 + np.arange(points) * 0.01)
        payoffs = self.net_payoff(prices)
        return prices.tolist(), np.asarray(payoffs, dtype=float).tolist()


def _json_number(value: float, digits: int) -> Union[float, str]:
    """Rounded value for JSON output; infinities become "inf" or "-inf"."""
    if math.isinf(value):
        return "inf" if value > 0 else "-inf"
    return round(value, digits)


class CandidateIndices(NamedTuple):
    """Chain row positions of the four legs of a candidate."""
    call_sell: int
    call_buy: int
    put_sell: int
    put_buy: int

    def label(self) -> str:
        return "-".join(str(i) for i in self)


@dataclass
class StrategyResult:
    """
    Scored candidate produced by the combination generator.

    Attributes:
        indices: Source chain rows of the four legs
        risk_reward_ratio: |max profit / max loss|
        probability_of_profit: Probability of finishing profitable
        max_profit: Largest sampled payoff
        max_loss: Smallest sampled payoff
        break_even_points: Interpolated zero crossings
        sequence: Position in enumeration order, used for stable ranking
        strategy: The evaluated strategy
    """
    indices: CandidateIndices
    risk_reward_ratio: float
    probability_of_profit: float
    max_profit: float
    max_loss: float
    break_even_points: Sequence[float] = field(default_factory=tuple)
    sequence: int = 0
    strategy: Optional[Strategy] = None

    @property
    def name(self) -> str:
        return f"Iron Condor {self.indices.label()}"

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        legs = []
        if self.strategy is not None:
            legs = [
                {
                    "option_type": p.option_type,
                    "action": p.action,
                    "strike": p.strike,
                    "premium": round(p.premium, 2),
                    "quantity": int(p.quantity),
                }
                for p in self.strategy.positions
            ]
        return {
            "name": self.name,
            "indices": self.indices._asdict(),
            "risk_reward_ratio": _json_number(self.risk_reward_ratio, 4),
            "probability_of_profit": _json_number(self.probability_of_profit, 4),
            "max_profit": _json_number(self.max_profit, 2),
            "max_loss": _json_number(self.max_loss, 2),
            "break_even_points": [round(b, 2) for b in self.break_even_points],
            "legs": legs,
        }
