"""
Configuration classes for the options strategy screener.
"""

from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Optional

import yaml

from strategy_screener.chain import ChainSchema
from strategy_screener.exceptions import ConfigError
from strategy_screener.policies import POLICIES

DAYS_PER_YEAR = 365

RANKING_METRICS = ("risk_reward_ratio", "probability_of_profit", "max_profit", "max_loss")


@dataclass(frozen=True)
class MarketParameters:
    """
    Scenario parameters supplied by the caller.

    There are no defaults: every scan must state its own market.

    Attributes:
        underlying_price: Current underlying price (S0)
        days_to_expiry: Calendar days until expiration
        risk_free_rate: Annual risk-free rate (e.g. 0.01)
        volatility: Annualised volatility (e.g. 0.122)
    """
    underlying_price: float
    days_to_expiry: float
    risk_free_rate: float
    volatility: float

    def __post_init__(self) -> None:
        if self.underlying_price <= 0:
            raise ValueError("underlying_price must be positive")
        if self.days_to_expiry <= 0:
            raise ValueError("days_to_expiry must be positive")
        if self.volatility <= 0:
            raise ValueError("volatility must be positive")

    @property
    def time_to_expiry(self) -> float:
        """Time to expiration in years."""
        return self.days_to_expiry / DAYS_PER_YEAR

    def as_args(self) -> tuple[float, float, float, float]:
        """(S0, T, r, sigma) in the order the strategy metrics take them."""
        return (
            self.underlying_price,
            self.time_to_expiry,
            self.risk_free_rate,
            self.volatility,
        )


@dataclass
class ScreenerConfig:
    """
    Configuration for the combination search and ranking.

    Attributes:
        max_rows: Number of chain rows in the search window (default: 30)
        start: First chain row of the window (default: 0)
        policy: Enumeration policy name (default: "nested_offset")
        metric: Ranking metric (default: "risk_reward_ratio")
        descending: Rank highest metric first (default: True)
        top_n: Number of ranked results to keep, None for all
        min_probability: Drop results below this probability of profit
        n_jobs: Worker processes for candidate evaluation (default: 1)
        deadline_seconds: Stop evaluating after this many seconds
        max_skip_reasons: Number of skip messages kept for reporting
    """
    max_rows: int = 30
    start: int = 0
    policy: str = "nested_offset"
    metric: str = "risk_reward_ratio"
    descending: bool = True
    top_n: Optional[int] = None
    min_probability: Optional[float] = None
    n_jobs: int = 1
    deadline_seconds: Optional[float] = None
    max_skip_reasons: int = 100

    def __post_init__(self) -> None:
        self._validate()

    def _validate(self) -> None:
        """Validate configuration parameters."""
        if self.max_rows < 1:
            raise ValueError("max_rows must be at least 1")
        if self.start < 0:
            raise ValueError("start must be non-negative")
        if self.policy not in POLICIES:
            raise ValueError(f"Invalid policy: {self.policy}")
        if self.metric not in RANKING_METRICS:
            raise ValueError(f"Invalid metric: {self.metric}")
        if self.top_n is not None and self.top_n < 1:
            raise ValueError("top_n must be at least 1")
        if self.min_probability is not None and not 0 <= self.min_probability <= 1:
            raise ValueError("min_probability must be between 0 and 1")
        if self.n_jobs < 1:
            raise ValueError("n_jobs must be at least 1")
        if self.deadline_seconds is not None and self.deadline_seconds <= 0:
            raise ValueError("deadline_seconds must be positive")
        if self.max_skip_reasons < 0:
            raise ValueError("max_skip_reasons must be non-negative")


@dataclass
class LoadedConfig:
    """Sections read from a YAML config file."""
    market: Optional[MarketParameters] = None
    screener: ScreenerConfig = field(default_factory=ScreenerConfig)
    schema: ChainSchema = field(default_factory=ChainSchema)


def _known_keys(section: dict, cls: type, file_path: str, name: str) -> dict:
    allowed = {f.name for f in fields(cls)}
    unknown = sorted(set(section) - allowed)
    if unknown:
        raise ConfigError(file_path, f"unknown keys in '{name}': {', '.join(unknown)}")
    return section


def load_config(file_path: str) -> LoadedConfig:
    """
    Load screener configuration from YAML.

    Expected layout:

        market:
          underlying_price: 23559.15
          days_to_expiry: 21
          risk_free_rate: 0.01
          volatility: 0.122
        screener:
          max_rows: 30
          policy: nested_offset
        chain_schema:
          strike: Strike
          call_bid: Call Bid

    Every section is optional.

    Raises:
        ConfigError: If the file is missing, unparsable or has bad values.
    """
    path = Path(file_path)
    if not path.exists():
        raise ConfigError(file_path, "file not found")

    try:
        with open(path) as f:
            data: Any = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(file_path, f"YAML parse error: {e}")

    if not isinstance(data, dict):
        raise ConfigError(file_path, "top level must be a mapping")

    loaded = LoadedConfig()
    try:
        if data.get("market"):
            section = _known_keys(data["market"], MarketParameters, file_path, "market")
            loaded.market = MarketParameters(**section)
        if data.get("screener"):
            section = _known_keys(data["screener"], ScreenerConfig, file_path, "screener")
            loaded.screener = ScreenerConfig(**section)
        if data.get("chain_schema"):
            loaded.schema = ChainSchema.from_mapping(data["chain_schema"])
    except (TypeError, ValueError) as e:
        raise ConfigError(file_path, str(e))

    return loaded
