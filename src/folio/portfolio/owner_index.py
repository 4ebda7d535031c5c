"""Secondary index from owner identity to the portfolio ids they own."""

from __future__ import annotations

from collections.abc import Iterable, Iterator

from folio.core.errors import ErrorCode, RegistryError
from folio.core.models import MAX_OWNER_PORTFOLIOS


class BoundedList:
    """Ordered, append-only collection with a fixed capacity.

    Appending past capacity raises instead of truncating.
    """

    def __init__(self, capacity: int, items: Iterable[int] = ()) -> None:
        if capacity < 0:
            raise ValueError(f"capacity cannot be negative, got {capacity}")
        self.capacity = capacity
        self._items: list[int] = []
        for item in items:
            self.append(item)

    def append(self, item: int) -> None:
        """Append an item.

        Raises:
            RegistryError: STORAGE_CAPACITY_EXCEEDED if the list is full
        """
        if len(self._items) >= self.capacity:
            raise RegistryError(
                ErrorCode.STORAGE_CAPACITY_EXCEEDED,
                f"capacity of {self.capacity} reached",
            )
        self._items.append(item)

    @property
    def is_full(self) -> bool:
        return len(self._items) >= self.capacity

    def to_list(self) -> list[int]:
        return list(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[int]:
        return iter(self._items)


class OwnerIndex:
    """Maps each owner to an ordered list of at most 20 portfolio ids."""

    def __init__(self, capacity: int = MAX_OWNER_PORTFOLIOS) -> None:
        self.capacity = capacity
        self._entries: dict[str, BoundedList] = {}

    def list_for(self, owner: str) -> list[int]:
        """Get an owner's portfolio ids (empty if they own none)."""
        entry = self._entries.get(owner)
        return entry.to_list() if entry is not None else []

    def append(self, owner: str, portfolio_id: int) -> None:
        """Record that ``owner`` owns ``portfolio_id``.

        Raises:
            RegistryError: STORAGE_CAPACITY_EXCEEDED if the owner already
                has ``capacity`` portfolios
        """
        entry = self._entries.get(owner)
        if entry is None:
            entry = BoundedList(self.capacity)
        entry.append(portfolio_id)
        self._entries[owner] = entry

    def owners(self) -> list[str]:
        """Get all owners with at least one portfolio."""
        return sorted(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def snapshot(self) -> dict[str, list[int]]:
        return {owner: entry.to_list() for owner, entry in self._entries.items()}

    def restore(self, snapshot: dict[str, list[int]]) -> None:
        self._entries = {
            owner: BoundedList(self.capacity, ids) for owner, ids in snapshot.items()
        }
