"""Portfolio registry domain models."""

from __future__ import annotations

from dataclasses import dataclass

# Protocol limits
MAX_SLOTS = 10  # Allocation slots per portfolio
MAX_OWNER_PORTFOLIOS = 20  # Portfolio ids tracked per owner
MAX_PERCENTAGE = 10_000  # 100% in basis points
REBALANCE_COOLDOWN = 144  # Logical time units (~24h at 10 min per unit)
PROTOCOL_FEE_BPS = 25  # Stored only, no logic charges it
REQUIRED_INITIAL_SLOTS = 2  # Slots materialized on creation


@dataclass(frozen=True)
class Portfolio:
    """A user-owned collection of weighted asset allocations.

    Attributes:
        portfolio_id: Unique id, assigned monotonically from 1
        owner: Opaque principal identity
        created_at: Logical time of creation
        last_rebalanced: Logical time of the last rebalance bookkeeping update
        total_value: Externally accumulated valuation
        active: Whether the portfolio accepts rebalances
        slot_count: Number of requested allocation slots (0-10)
    """

    portfolio_id: int
    owner: str
    created_at: int
    last_rebalanced: int
    total_value: int = 0
    active: bool = True
    slot_count: int = 0

    def __post_init__(self) -> None:
        """Validate portfolio."""
        if self.portfolio_id < 1:
            raise ValueError(f"portfolio_id must be positive, got {self.portfolio_id}")
        if not 0 <= self.slot_count <= MAX_SLOTS:
            raise ValueError(
                f"slot_count must be between 0 and {MAX_SLOTS}, got {self.slot_count}"
            )
        if self.total_value < 0:
            raise ValueError(f"total_value cannot be negative, got {self.total_value}")

    def is_owned_by(self, caller: str) -> bool:
        """Check whether ``caller`` is the portfolio owner."""
        return self.owner == caller


@dataclass(frozen=True)
class AssetAllocation:
    """Target allocation held in one slot of a portfolio.

    Attributes:
        portfolio_id: Owning portfolio
        slot_index: Position within the portfolio (0-9)
        token: Opaque asset identifier
        target_percentage: Target weight in basis points (0-10000)
        current_amount: Held amount, maintained outside the registry
    """

    portfolio_id: int
    slot_index: int
    token: str
    target_percentage: int
    current_amount: int = 0

    def __post_init__(self) -> None:
        """Validate allocation."""
        if not 0 <= self.target_percentage <= MAX_PERCENTAGE:
            raise ValueError(
                f"target_percentage must be between 0 and {MAX_PERCENTAGE}, "
                f"got {self.target_percentage}"
            )
        if not 0 <= self.slot_index < MAX_SLOTS:
            raise ValueError(
                f"slot_index must be between 0 and {MAX_SLOTS - 1}, got {self.slot_index}"
            )

    @property
    def target_pct(self) -> float:
        """Target weight as a fraction (0.0-1.0)."""
        return self.target_percentage / MAX_PERCENTAGE


@dataclass(frozen=True)
class RebalanceEligibility:
    """Read-only rebalance check for a portfolio."""

    portfolio_id: int
    total_value: int
    needs_rebalance: bool
