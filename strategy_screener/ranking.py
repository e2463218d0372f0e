"""
Ranking and export for scored strategies.

Sorts scored candidates by a chosen metric and serializes them as flat rows
for CSV or JSON output.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

import pandas as pd

from strategy_screener.chain import ChainTable
from strategy_screener.config import RANKING_METRICS, MarketParameters
from strategy_screener.models import CandidateIndices, StrategyResult

logger = logging.getLogger(__name__)

STANDARD_HEADER = [
    "Risk Reward Ratio",
    "Probability of Profit",
    "Call_Sell_Strike",
    "Call_Buy_Strike",
    "Put_Sell_Strike",
    "Put_Buy_Strike",
    "Call_Sell_Price",
    "Call_Buy_Price",
    "Put_Sell_Price",
    "Put_Buy_Price",
]

EXTENDED_HEADER = [
    "Strategy Name",
    "Risk Reward Ratio",
    "Probability of Profit",
    "Max Profit",
    "Max Loss",
    "Break Even Points",
    "Call Sell Strike",
    "Call Buy Strike",
    "Put Sell Strike",
    "Put Buy Strike",
    "Call Sell Premium",
    "Call Buy Premium",
    "Put Sell Premium",
    "Put Buy Premium",
]

LAYOUTS = ("standard", "extended")


@dataclass
class RankedStrategy:
    """A scored strategy with its rank."""

    result: StrategyResult
    rank: int

    @property
    def indices(self) -> CandidateIndices:
        return self.result.indices

    @property
    def risk_reward_ratio(self) -> float:
        return self.result.risk_reward_ratio

    @property
    def probability_of_profit(self) -> float:
        return self.result.probability_of_profit

    def summary(self) -> str:
        """Return a human-readable summary of the strategy."""
        r = self.result
        lines = [
            f"Rank #{self.rank} | {r.name}",
            f"Risk/Reward: {r.risk_reward_ratio:.4f} | PoP: {r.probability_of_profit:.2%}",
            f"Max Profit: {r.max_profit:.2f} | Max Loss: {r.max_loss:.2f}",
        ]
        if r.break_even_points:
            lines.append(
                "Break-evens: " + ", ".join(f"{b:.2f}" for b in r.break_even_points)
            )
        if r.strategy is not None:
            lines.extend(f"  {p.describe()}" for p in r.strategy.positions)
        return "\n".join(lines)

    def to_json_dict(self) -> dict:
        """Return JSON-serializable dictionary."""
        data = self.result.to_dict()
        data["rank"] = self.rank
        return data


def rank_results(
    results: Sequence[StrategyResult],
    metric: str = "risk_reward_ratio",
    descending: bool = True,
    top_n: Optional[int] = None,
    min_probability: Optional[float] = None,
) -> list[RankedStrategy]:
    """
    Rank scored strategies by a metric.

    The sort is stable, so equal values (including inf) keep their
    enumeration order. The input sequence is not modified.

    Args:
        results: Scored strategies in enumeration order
        metric: Attribute of StrategyResult to sort by
        descending: Highest value first (default: True)
        top_n: Optional number of strategies to keep
        min_probability: Optional minimum probability of profit

    Returns:
        New list of RankedStrategy objects with 1-based ranks
    """
    if metric not in RANKING_METRICS:
        raise ValueError(f"Invalid metric: {metric}")

    candidates = list(results)
    if min_probability is not None:
        candidates = [r for r in candidates if r.probability_of_profit >= min_probability]

    ordered = sorted(candidates, key=lambda r: getattr(r, metric), reverse=descending)

    if top_n is not None:
        ordered = ordered[:top_n]

    ranked = [RankedStrategy(result=r, rank=i) for i, r in enumerate(ordered, start=1)]
    logger.info(f"Ranked {len(ranked)} strategies from {len(results)} candidates by {metric}")
    return ranked


def _format_number(value: float) -> str:
    """Plain number without float noise (110.0 -> 110, 23559.15 stays)."""
    return f"{value:.10g}"


def _standard_row(ranked: RankedStrategy, chain: ChainTable) -> list[str]:
    idx = ranked.indices
    return [
        f"{ranked.risk_reward_ratio:.4f}",
        f"{ranked.probability_of_profit:.4f}",
        _format_number(chain.value("strike", idx.call_sell)),
        _format_number(chain.value("strike", idx.call_buy)),
        _format_number(chain.value("strike", idx.put_sell)),
        _format_number(chain.value("strike", idx.put_buy)),
        f"{chain.value('call_bid', idx.call_sell):.2f}",
        f"{chain.value('call_ask', idx.call_buy):.2f}",
        f"{chain.value('put_bid', idx.put_sell):.2f}",
        f"{chain.value('put_ask', idx.put_buy):.2f}",
    ]


def _extended_row(ranked: RankedStrategy) -> list[str]:
    r = ranked.result
    positions = r.strategy.positions if r.strategy is not None else ()
    strikes = [_format_number(p.strike) for p in positions]
    premiums = [f"{p.premium:.2f}" for p in positions]
    return [
        r.name,
        f"{r.risk_reward_ratio:.4f}",
        f"{r.probability_of_profit:.4f}",
        f"{r.max_profit:.2f}",
        f"{r.max_loss:.2f}",
        ";".join(f"{b:.2f}" for b in r.break_even_points),
        *(strikes + [""] * (4 - len(strikes))),
        *(premiums + [""] * (4 - len(premiums))),
    ]


def results_to_frame(
    ranked: Sequence[RankedStrategy],
    chain: Optional[ChainTable] = None,
    layout: str = "standard",
) -> pd.DataFrame:
    """
    Flatten ranked strategies into a table of formatted strings.

    The standard layout looks strikes and prices up in the chain by the
    stored row indices, so it needs the chain the results came from.
    """
    if layout not in LAYOUTS:
        raise ValueError(f"Invalid layout: {layout}")

    if layout == "standard":
        if chain is None:
            raise ValueError("The standard layout needs the source chain")
        rows = [_standard_row(rs, chain) for rs in ranked]
        return pd.DataFrame(rows, columns=STANDARD_HEADER)

    rows = [_extended_row(rs) for rs in ranked]
    return pd.DataFrame(rows, columns=EXTENDED_HEADER)


def format_csv_output(
    ranked: Sequence[RankedStrategy],
    chain: Optional[ChainTable] = None,
    layout: str = "standard",
) -> str:
    """
    Format ranked strategies as CSV.

    Args:
        ranked: Ranked strategies
        chain: Source chain (required for the standard layout)
        layout: "standard" or "extended"

    Returns:
        CSV text with a header row
    """
    frame = results_to_frame(ranked, chain, layout)
    return frame.to_csv(index=False, lineterminator="\n")


def format_ranking_report(
    ranked: Sequence[RankedStrategy],
    market: MarketParameters,
    total_candidates: int,
    skipped: int = 0,
) -> str:
    """Format a human-readable ranking report."""
    if not ranked:
        return "No strategy candidates found"

    lines = [
        "=" * 70,
        "OPTIONS STRATEGY SCREENER RESULTS",
        f"Price: {market.underlying_price:.2f} | DTE: {market.days_to_expiry:g} | "
        f"Rate: {market.risk_free_rate:.2%} | Vol: {market.volatility:.2%}",
        "=" * 70,
        "",
    ]

    for rs in ranked:
        lines.append("-" * 70)
        lines.append(rs.summary())
        lines.append("")

    lines.append("=" * 70)
    lines.append(f"Shown: {len(ranked)} | Evaluated: {total_candidates} | Skipped: {skipped}")
    lines.append("=" * 70)

    return "\n".join(lines)
