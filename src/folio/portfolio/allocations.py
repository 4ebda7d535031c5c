"""Per-slot asset allocation records."""

from __future__ import annotations

import copy
from collections.abc import Iterator

from folio.core.models import MAX_SLOTS, AssetAllocation
from folio.portfolio.store import PortfolioStore


class AllocationTable:
    """Maps (portfolio id, slot index) to ``AssetAllocation``.

    Writes are unchecked; ``is_valid_slot`` consults the portfolio store
    for the bounds the engine enforces.
    """

    def __init__(self, portfolios: PortfolioStore) -> None:
        self._portfolios = portfolios
        self._allocations: dict[tuple[int, int], AssetAllocation] = {}

    def set(self, portfolio_id: int, slot_index: int, record: AssetAllocation) -> None:
        """Insert or overwrite the allocation in a slot."""
        self._allocations[(portfolio_id, slot_index)] = record

    def get(self, portfolio_id: int, slot_index: int) -> AssetAllocation | None:
        """Get the allocation in a slot, or None if the slot is empty."""
        return self._allocations.get((portfolio_id, slot_index))

    def is_valid_slot(self, portfolio_id: int, slot_index: int) -> bool:
        """Check that the portfolio exists and the slot is within its bounds."""
        portfolio = self._portfolios.get(portfolio_id)
        if portfolio is None:
            return False
        return slot_index < MAX_SLOTS and slot_index < portfolio.slot_count

    def for_portfolio(self, portfolio_id: int) -> list[AssetAllocation]:
        """Get all materialized allocations of a portfolio in slot order."""
        return [
            self._allocations[key]
            for key in sorted(self._allocations)
            if key[0] == portfolio_id
        ]

    def __len__(self) -> int:
        return len(self._allocations)

    def __iter__(self) -> Iterator[AssetAllocation]:
        for key in sorted(self._allocations):
            yield self._allocations[key]

    def snapshot(self) -> dict[tuple[int, int], AssetAllocation]:
        return copy.deepcopy(self._allocations)

    def restore(self, snapshot: dict[tuple[int, int], AssetAllocation]) -> None:
        self._allocations = snapshot
