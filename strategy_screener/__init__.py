"""
Options Strategy Screener

Enumerates 4-leg option strategies (sell call, buy call, sell put, buy put)
from an options chain, scores each by probability of profit under a
lognormal price model and by reward-to-risk ratio, and ranks the results.

Usage as library:
    from strategy_screener import ChainTable, screen_chain

    chain = ChainTable.from_csv("chain.csv")
    result = screen_chain(chain, 23559.15, 21, 0.01, 0.122, top_n=100)
    print(result.to_report())

    # Or evaluate a strategy directly
    from strategy_screener import Position, Strategy

    condor = Strategy([
        Position("call", "sell", 110, 3.0),
        Position("call", "buy", 120, 1.0),
        Position("put", "sell", 90, 3.0),
        Position("put", "buy", 80, 1.0),
    ])
    condor.probability_of_profit(100, 30 / 365, 0.01, 0.2)

Usage as CLI:
    python -m strategy_screener chain.csv --price 23559.15 --dte 21 --rate 0.01 --vol 0.122
    python -m strategy_screener chain.csv --config scan.yaml --csv results.csv
"""

from strategy_screener.chain import ChainSchema, ChainTable
from strategy_screener.config import MarketParameters, ScreenerConfig, load_config
from strategy_screener.discovery import GenerationResult, discover_strategies
from strategy_screener.exceptions import (
    ChainLoadError,
    ChainSchemaError,
    ConfigError,
    EmptyChainError,
    InvalidActionError,
    InvalidKindError,
    InvalidPositionError,
    MalformedCellValueError,
    ScreenerError,
)
from strategy_screener.models import CandidateIndices, Position, Strategy, StrategyResult
from strategy_screener.policies import (
    EnumerationPolicy,
    IndependentPolicy,
    NestedOffsetPolicy,
    PredicatePolicy,
)
from strategy_screener.ranking import RankedStrategy, rank_results
from strategy_screener.screener import ScreenerResult, StrategyScreener, screen_chain

__version__ = "1.0.0"

__all__ = [
    "ChainSchema",
    "ChainTable",
    "MarketParameters",
    "ScreenerConfig",
    "load_config",
    "GenerationResult",
    "discover_strategies",
    "ScreenerError",
    "InvalidKindError",
    "InvalidActionError",
    "MalformedCellValueError",
    "ChainSchemaError",
    "EmptyChainError",
    "ChainLoadError",
    "ConfigError",
    "InvalidPositionError",
    "CandidateIndices",
    "Position",
    "Strategy",
    "StrategyResult",
    "EnumerationPolicy",
    "IndependentPolicy",
    "NestedOffsetPolicy",
    "PredicatePolicy",
    "RankedStrategy",
    "rank_results",
    "ScreenerResult",
    "StrategyScreener",
    "screen_chain",
]
