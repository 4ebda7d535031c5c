"""Registry state container and transactional access."""

from __future__ import annotations

import threading
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from loguru import logger

from folio.core.models import PROTOCOL_FEE_BPS
from folio.portfolio.allocations import AllocationTable
from folio.portfolio.owner_index import OwnerIndex
from folio.portfolio.store import PortfolioStore


class RegistryState:
    """
    All mutable registry state, owned by one engine instance.

    Holds the portfolio store, allocation table and owner index together
    with the protocol scalars. State is injected into the engine rather
    than held globally, so independent registries can coexist.

    Example:
        state = RegistryState(protocol_owner="deployer")
        with state.transaction():
            state.portfolios.insert(1, portfolio)
            state.portfolios.commit_counter(1)
    """

    def __init__(
        self,
        protocol_owner: str,
        counter: int = 0,
        protocol_fee_bps: int = PROTOCOL_FEE_BPS,
    ) -> None:
        """Initialize empty registry state.

        Args:
            protocol_owner: Identity allowed to run admin operations
            counter: Highest portfolio id already assigned
            protocol_fee_bps: Protocol fee in basis points (stored only)
        """
        self.protocol_owner = protocol_owner
        self.protocol_fee_bps = protocol_fee_bps
        self.portfolios = PortfolioStore(counter=counter)
        self.allocations = AllocationTable(self.portfolios)
        self.owners = OwnerIndex()
        self._lock = threading.RLock()
        self._depth = 0

    def _snapshot(self) -> dict[str, Any]:
        return {
            "portfolios": self.portfolios.snapshot(),
            "allocations": self.allocations.snapshot(),
            "owners": self.owners.snapshot(),
            "protocol_owner": self.protocol_owner,
        }

    def _restore(self, snapshot: dict[str, Any]) -> None:
        self.portfolios.restore(snapshot["portfolios"])
        self.allocations.restore(snapshot["allocations"])
        self.owners.restore(snapshot["owners"])
        self.protocol_owner = snapshot["protocol_owner"]

    @contextmanager
    def transaction(self) -> Iterator[RegistryState]:
        """Run a block of reads and writes atomically.

        Writers are serialized on a re-entrant lock. If the block raises,
        every map and scalar is restored to its state at entry and the
        exception is re-raised. Nested transactions join the outermost one.
        """
        with self._lock:
            if self._depth > 0:
                self._depth += 1
                try:
                    yield self
                finally:
                    self._depth -= 1
                return

            snapshot = self._snapshot()
            self._depth = 1
            try:
                yield self
            except BaseException:
                self._restore(snapshot)
                logger.debug("Transaction rolled back")
                raise
            finally:
                self._depth = 0
