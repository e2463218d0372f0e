"""
Combination generator for candidate strategies.

Enumerates 4-leg candidates (sell call, buy call, sell put, buy put) from an
options chain using an enumeration policy, evaluates each one, and collects
scored results. Candidates with malformed chain cells are skipped and counted,
never fatal.
"""

import logging
import time
from concurrent.futures import ProcessPoolExecutor, as_completed
from dataclasses import dataclass, field
from itertools import islice
from typing import Iterable, Iterator, Optional, Union

from strategy_screener.chain import ChainTable
from strategy_screener.config import MarketParameters, ScreenerConfig
from strategy_screener.exceptions import MalformedCellValueError
from strategy_screener.models import CandidateIndices, Position, Strategy, StrategyResult
from strategy_screener.policies import EnumerationPolicy, get_policy

logger = logging.getLogger(__name__)

# Candidates per task submitted to the worker pool
CHUNK_SIZE = 2000


@dataclass
class GenerationResult:
    """Outcome of one enumeration pass."""

    results: list[StrategyResult] = field(default_factory=list)
    candidates: int = 0
    evaluated: int = 0
    skipped: int = 0
    skip_reasons: list[str] = field(default_factory=list)
    timed_out: bool = False

    def merge(self, other: "GenerationResult", max_skip_reasons: int) -> None:
        """Append another partial result, in order."""
        self.results.extend(other.results)
        self.candidates += other.candidates
        self.evaluated += other.evaluated
        self.skipped += other.skipped
        room = max_skip_reasons - len(self.skip_reasons)
        if room > 0:
            self.skip_reasons.extend(other.skip_reasons[:room])
        self.timed_out = self.timed_out or other.timed_out


def _strike(chain: ChainTable, index: int) -> float:
    strike = chain.value("strike", index)
    if strike <= 0:
        raise MalformedCellValueError("strike", index, strike)
    return strike


def _price(chain: ChainTable, field_name: str, index: int) -> float:
    price = chain.value(field_name, index)
    if price < 0:
        raise MalformedCellValueError(field_name, index, price)
    return price


def build_candidate_strategy(chain: ChainTable, indices: CandidateIndices) -> Strategy:
    """
    Construct the four-leg strategy for a candidate.

    Each leg trades at its own side of the market: sold legs at the bid,
    bought legs at the ask.

    Raises:
        MalformedCellValueError: If any strike or price cell is unusable.
    """
    call_sell_price = _price(chain, "call_bid", indices.call_sell)
    call_buy_price = _price(chain, "call_ask", indices.call_buy)
    put_sell_price = _price(chain, "put_bid", indices.put_sell)
    put_buy_price = _price(chain, "put_ask", indices.put_buy)

    return Strategy((
        Position("call", "sell", _strike(chain, indices.call_sell), call_sell_price, 1),
        Position("call", "buy", _strike(chain, indices.call_buy), call_buy_price, 1),
        Position("put", "sell", _strike(chain, indices.put_sell), put_sell_price, 1),
        Position("put", "buy", _strike(chain, indices.put_buy), put_buy_price, 1),
    ))


def evaluate_strategy(
    strategy: Strategy,
    indices: CandidateIndices,
    market: MarketParameters,
    sequence: int = 0,
) -> StrategyResult:
    """Compute all metrics for one strategy from a single pass over the price grid."""
    return StrategyResult(
        indices=indices,
        sequence=sequence,
        strategy=strategy,
        **strategy.metrics(*market.as_args()),
    )


def _evaluate_candidates(
    chain: ChainTable,
    candidates: Iterable[tuple[int, CandidateIndices]],
    market: MarketParameters,
    deadline: Optional[float],
    max_skip_reasons: int,
) -> GenerationResult:
    """Evaluate (sequence, indices) pairs until exhausted or past the deadline."""
    partial = GenerationResult()

    for sequence, indices in candidates:
        if deadline is not None and time.time() > deadline:
            partial.timed_out = True
            break

        partial.candidates += 1
        try:
            strategy = build_candidate_strategy(chain, indices)
        except MalformedCellValueError as e:
            partial.skipped += 1
            logger.debug(f"Skipping candidate {indices.label()}: {e}")
            if len(partial.skip_reasons) < max_skip_reasons:
                partial.skip_reasons.append(f"{indices.label()}: {e}")
            continue

        partial.results.append(evaluate_strategy(strategy, indices, market, sequence))
        partial.evaluated += 1

    return partial


def _chunked(
    items: Iterator[tuple[int, CandidateIndices]], size: int
) -> Iterator[list[tuple[int, CandidateIndices]]]:
    while True:
        chunk = list(islice(items, size))
        if not chunk:
            return
        yield chunk


def _evaluate_parallel(
    chain: ChainTable,
    candidates: Iterator[tuple[int, CandidateIndices]],
    market: MarketParameters,
    config: ScreenerConfig,
    deadline: Optional[float],
) -> GenerationResult:
    """Fan chunks out to a process pool and merge partials in submission order."""
    partials: dict[int, GenerationResult] = {}

    with ProcessPoolExecutor(max_workers=config.n_jobs) as executor:
        future_to_chunk = {
            executor.submit(
                _evaluate_candidates,
                chain,
                chunk,
                market,
                deadline,
                config.max_skip_reasons,
            ): chunk_id
            for chunk_id, chunk in enumerate(_chunked(candidates, CHUNK_SIZE))
        }

        completed = 0
        for future in as_completed(future_to_chunk):
            chunk_id = future_to_chunk[future]
            partials[chunk_id] = future.result()
            completed += 1
            if completed % 10 == 0:
                logger.debug(f"[{completed}/{len(future_to_chunk)}] chunks evaluated")

    merged = GenerationResult()
    for chunk_id in sorted(partials):
        merged.merge(partials[chunk_id], config.max_skip_reasons)
    return merged


def discover_strategies(
    chain: ChainTable,
    market: MarketParameters,
    config: Optional[ScreenerConfig] = None,
    policy: Optional[Union[str, EnumerationPolicy]] = None,
) -> GenerationResult:
    """
    Enumerate and evaluate candidate strategies from a chain.

    Args:
        chain: Options chain
        market: Scenario parameters (S0, days to expiry, r, sigma)
        config: Search window, worker count and deadline
        policy: Enumeration policy or name (overrides config.policy)

    Returns:
        GenerationResult with results in enumeration order and skip counts
    """
    if config is None:
        config = ScreenerConfig()
    policy = get_policy(policy if policy is not None else config.policy)

    start = config.start
    stop = min(start + config.max_rows, len(chain))
    if stop <= start:
        logger.warning(f"Search window is empty: start={start}, chain rows={len(chain)}")
        return GenerationResult()

    logger.info(f"Enumerating rows {start}-{stop - 1} with policy '{policy.name}'")

    deadline = None
    if config.deadline_seconds is not None:
        deadline = time.time() + config.deadline_seconds

    candidates = enumerate(policy.candidates(start, stop))

    if config.n_jobs > 1:
        result = _evaluate_parallel(chain, candidates, market, config, deadline)
    else:
        result = _evaluate_candidates(
            chain, candidates, market, deadline, config.max_skip_reasons
        )

    if result.timed_out:
        logger.warning(
            f"Deadline of {config.deadline_seconds}s reached after "
            f"{result.candidates} candidates; returning partial results"
        )

    logger.info(
        f"Evaluated {result.evaluated} candidates, skipped {result.skipped} "
        f"with malformed cells"
    )
    return result
