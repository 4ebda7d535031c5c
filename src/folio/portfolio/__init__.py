"""Portfolio registry: stores, owner index and the state-transition engine."""

from folio.portfolio.allocations import AllocationTable
from folio.portfolio.engine import PortfolioEngine
from folio.portfolio.owner_index import BoundedList, OwnerIndex
from folio.portfolio.state import RegistryState
from folio.portfolio.store import PortfolioStore

__all__ = [
    "AllocationTable",
    "BoundedList",
    "OwnerIndex",
    "PortfolioEngine",
    "PortfolioStore",
    "RegistryState",
]
