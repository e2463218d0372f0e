"""
Pytest fixtures shared by the screener tests.
"""

import pandas as pd
import pytest

from strategy_screener.chain import ChainTable
from strategy_screener.config import MarketParameters
from strategy_screener.models import Position, Strategy


@pytest.fixture
def market() -> MarketParameters:
    """30-day scenario around a 100 underlying."""
    return MarketParameters(
        underlying_price=100.0,
        days_to_expiry=30,
        risk_free_rate=0.01,
        volatility=0.2,
    )


@pytest.fixture
def chain_frame() -> pd.DataFrame:
    """Five-strike chain with prices that fall away from the money."""
    return pd.DataFrame(
        {
            "strike": [90.0, 95.0, 100.0, 105.0, 110.0],
            "call_bid": [10.5, 6.4, 3.2, 1.3, 0.4],
            "call_ask": [10.9, 6.7, 3.4, 1.5, 0.5],
            "put_bid": [0.4, 1.2, 3.0, 6.1, 10.2],
            "put_ask": [0.5, 1.4, 3.3, 6.4, 10.6],
        }
    )


@pytest.fixture
def chain(chain_frame) -> ChainTable:
    return ChainTable(chain_frame)


@pytest.fixture
def iron_condor() -> Strategy:
    """Net credit of 4 with short strikes 90/110 and wings at 80/120."""
    return Strategy([
        Position("call", "sell", 110.0, 3.0),
        Position("call", "buy", 120.0, 1.0),
        Position("put", "sell", 90.0, 3.0),
        Position("put", "buy", 80.0, 1.0),
    ])
