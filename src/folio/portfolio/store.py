"""Canonical portfolio records keyed by id."""

from __future__ import annotations

import copy
from collections.abc import Iterator

from folio.core.models import Portfolio


class PortfolioStore:
    """Maps portfolio id to ``Portfolio`` and tracks the id counter.

    The store does no validation of its own: uniqueness of ids and
    monotonicity of the counter are the engine's responsibility.
    """

    def __init__(self, counter: int = 0) -> None:
        self._portfolios: dict[int, Portfolio] = {}
        self._counter = counter

    @property
    def counter(self) -> int:
        """Highest id committed so far."""
        return self._counter

    def next_identifier(self) -> int:
        """Return the candidate id for the next portfolio without reserving it."""
        return self._counter + 1

    def insert(self, portfolio_id: int, record: Portfolio) -> None:
        """Insert or overwrite the record for ``portfolio_id``."""
        self._portfolios[portfolio_id] = record

    def get(self, portfolio_id: int) -> Portfolio | None:
        """Get a portfolio by id, or None if it does not exist."""
        return self._portfolios.get(portfolio_id)

    def commit_counter(self, portfolio_id: int) -> None:
        """Advance the counter to ``portfolio_id``."""
        self._counter = portfolio_id

    def __contains__(self, portfolio_id: object) -> bool:
        return portfolio_id in self._portfolios

    def __len__(self) -> int:
        return len(self._portfolios)

    def __iter__(self) -> Iterator[Portfolio]:
        for portfolio_id in sorted(self._portfolios):
            yield self._portfolios[portfolio_id]

    def snapshot(self) -> tuple[dict[int, Portfolio], int]:
        return copy.deepcopy(self._portfolios), self._counter

    def restore(self, snapshot: tuple[dict[int, Portfolio], int]) -> None:
        self._portfolios, self._counter = snapshot
