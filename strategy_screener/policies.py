"""
Enumeration policies for candidate strategies.

A policy decides which 4-tuples of chain rows are tried. Each policy is a
constraint predicate over the four indices plus a generator that yields the
admissible tuples in a fixed order. Swapping the policy changes the search
without touching the payoff or probability engine.
"""

from itertools import product
from typing import Callable, Iterator, Union

from strategy_screener.models import CandidateIndices


class EnumerationPolicy:
    """
    Base policy: every 4-tuple in the window that satisfies `predicate`.

    Subclasses override `predicate`, and may override `candidates` with a
    direct generator when scanning the full product is wasteful.
    """

    name = "base"

    def predicate(self, indices: CandidateIndices) -> bool:
        return True

    def candidates(self, start: int, stop: int) -> Iterator[CandidateIndices]:
        """
        Yield admissible index tuples with every index in [start, stop).

        Order is deterministic: call-sell slowest, put-buy fastest.
        """
        window = range(start, stop)
        for combo in product(window, repeat=4):
            indices = CandidateIndices(*combo)
            if self.predicate(indices):
                yield indices

    def count(self, start: int, stop: int) -> int:
        """Number of tuples `candidates` yields for this window."""
        return sum(1 for _ in self.candidates(start, stop))

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"


class IndependentPolicy(EnumerationPolicy):
    """
    All four legs range independently over the window.

    Yields window**4 tuples, including degenerate ones where a leg is bought
    and sold at the same row.
    """

    name = "independent"

    def count(self, start: int, stop: int) -> int:
        return max(0, stop - start) ** 4


class NestedOffsetPolicy(EnumerationPolicy):
    """
    Bought legs sit at a strictly larger row than their sold counterpart.

    For each side the (sell, buy) pair is sell < buy < stop, so a window of
    n rows yields (n * (n - 1) / 2) ** 2 tuples.
    """

    name = "nested_offset"

    def predicate(self, indices: CandidateIndices) -> bool:
        return indices.call_buy > indices.call_sell and indices.put_buy > indices.put_sell

    def candidates(self, start: int, stop: int) -> Iterator[CandidateIndices]:
        for call_sell in range(start, stop):
            for call_buy in range(call_sell + 1, stop):
                for put_sell in range(start, stop):
                    for put_buy in range(put_sell + 1, stop):
                        yield CandidateIndices(call_sell, call_buy, put_sell, put_buy)

    def count(self, start: int, stop: int) -> int:
        n = max(0, stop - start)
        pairs = n * (n - 1) // 2
        return pairs * pairs


class PredicatePolicy(EnumerationPolicy):
    """Caller-supplied predicate applied over the independent product."""

    def __init__(
        self,
        predicate: Callable[[CandidateIndices], bool],
        name: str = "custom",
    ) -> None:
        self._predicate = predicate
        self.name = name

    def predicate(self, indices: CandidateIndices) -> bool:
        return bool(self._predicate(indices))


POLICIES: dict[str, type] = {
    NestedOffsetPolicy.name: NestedOffsetPolicy,
    IndependentPolicy.name: IndependentPolicy,
}


def get_policy(policy: Union[str, EnumerationPolicy]) -> EnumerationPolicy:
    """
    Resolve a policy name or instance.

    Raises:
        ValueError: If the name is not registered.
    """
    if isinstance(policy, EnumerationPolicy):
        return policy
    try:
        return POLICIES[policy]()
    except KeyError:
        raise ValueError(
            f"Unknown policy '{policy}', expected one of: {', '.join(sorted(POLICIES))}"
        )
