"""
Main screener module.

Provides both a class-based API and a simple function interface.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional, Union

from strategy_screener.chain import ChainTable
from strategy_screener.config import MarketParameters, ScreenerConfig
from strategy_screener.discovery import discover_strategies
from strategy_screener.policies import EnumerationPolicy, get_policy
from strategy_screener.ranking import (
    RankedStrategy,
    format_csv_output,
    format_ranking_report,
    rank_results,
)

logger = logging.getLogger(__name__)


@dataclass
class ScreenerResult:
    """Result from screening operation."""

    market: MarketParameters
    chain: ChainTable
    ranked: list[RankedStrategy]
    total_candidates: int
    evaluated: int
    skipped: int
    skip_reasons: list[str]
    timed_out: bool
    config: ScreenerConfig
    policy_name: str = ""

    def to_report(self) -> str:
        """Generate human-readable report."""
        return format_ranking_report(
            self.ranked,
            self.market,
            self.evaluated,
            self.skipped,
        )

    def to_csv(self, layout: str = "standard") -> str:
        """Generate CSV output."""
        return format_csv_output(self.ranked, self.chain, layout)

    def to_json_dict(self) -> dict:
        """JSON-serializable summary with every ranked strategy."""
        return {
            "market": {
                "underlying_price": self.market.underlying_price,
                "days_to_expiry": self.market.days_to_expiry,
                "risk_free_rate": self.market.risk_free_rate,
                "volatility": self.market.volatility,
            },
            "policy": self.policy_name or self.config.policy,
            "metric": self.config.metric,
            "total_candidates": self.total_candidates,
            "evaluated": self.evaluated,
            "skipped": self.skipped,
            "timed_out": self.timed_out,
            "strategies": [rs.to_json_dict() for rs in self.ranked],
        }


@dataclass
class StrategyScreener:
    """
    Screener for 4-leg option strategies over a single chain.

    Example usage:
        market = MarketParameters(23559.15, 21, 0.01, 0.122)
        screener = StrategyScreener(market=market)
        result = screener.screen(ChainTable.from_csv("chain.csv"))
        print(result.to_report())
    """

    market: MarketParameters
    config: ScreenerConfig = field(default_factory=ScreenerConfig)
    policy: Optional[Union[str, EnumerationPolicy]] = None

    def screen(self, chain: ChainTable, top_n: Optional[int] = None) -> ScreenerResult:
        """
        Run the screening process.

        Args:
            chain: Options chain to enumerate
            top_n: Number of top results to return (overrides config.top_n)

        Returns:
            ScreenerResult with ranked strategies
        """
        if top_n is None:
            top_n = self.config.top_n

        logger.info(
            f"Starting screen: S0={self.market.underlying_price}, "
            f"T={self.market.time_to_expiry:.4f}y, {len(chain)} chain rows"
        )

        policy = get_policy(self.policy if self.policy is not None else self.config.policy)
        generated = discover_strategies(chain, self.market, self.config, policy)

        ranked = rank_results(
            generated.results,
            metric=self.config.metric,
            descending=self.config.descending,
            top_n=top_n,
            min_probability=self.config.min_probability,
        )

        return ScreenerResult(
            market=self.market,
            chain=chain,
            ranked=ranked,
            total_candidates=generated.candidates,
            evaluated=generated.evaluated,
            skipped=generated.skipped,
            skip_reasons=generated.skip_reasons,
            timed_out=generated.timed_out,
            config=self.config,
            policy_name=policy.name,
        )


def screen_chain(
    chain: ChainTable,
    underlying_price: float,
    days_to_expiry: float,
    risk_free_rate: float,
    volatility: float,
    max_rows: int = 30,
    policy: Union[str, EnumerationPolicy] = "nested_offset",
    top_n: Optional[int] = None,
    n_jobs: int = 1,
    deadline_seconds: Optional[float] = None,
) -> ScreenerResult:
    """
    Simple function interface to screen a chain.

    This is the main entry point for using the screener as a library.

    Example:
        from strategy_screener import ChainTable, screen_chain

        chain = ChainTable.from_csv("chain.csv")
        result = screen_chain(chain, 23559.15, 21, 0.01, 0.122, top_n=100)
        print(result.to_csv())
    """
    market = MarketParameters(
        underlying_price=underlying_price,
        days_to_expiry=days_to_expiry,
        risk_free_rate=risk_free_rate,
        volatility=volatility,
    )
    policy_name = policy if isinstance(policy, str) else "nested_offset"
    config = ScreenerConfig(
        max_rows=max_rows,
        policy=policy_name,
        top_n=top_n,
        n_jobs=n_jobs,
        deadline_seconds=deadline_seconds,
    )
    screener = StrategyScreener(
        market=market,
        config=config,
        policy=None if isinstance(policy, str) else policy,
    )
    return screener.screen(chain)
