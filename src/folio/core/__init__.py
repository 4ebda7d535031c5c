"""Core domain models and types."""

from folio.core.clock import IntervalClock, LogicalClock, ManualClock
from folio.core.errors import ErrorCode, RegistryError, Result
from folio.core.models import (
    MAX_OWNER_PORTFOLIOS,
    MAX_PERCENTAGE,
    MAX_SLOTS,
    PROTOCOL_FEE_BPS,
    REBALANCE_COOLDOWN,
    REQUIRED_INITIAL_SLOTS,
    AssetAllocation,
    Portfolio,
    RebalanceEligibility,
)

__all__ = [
    "AssetAllocation",
    "ErrorCode",
    "IntervalClock",
    "LogicalClock",
    "MAX_OWNER_PORTFOLIOS",
    "MAX_PERCENTAGE",
    "MAX_SLOTS",
    "ManualClock",
    "PROTOCOL_FEE_BPS",
    "Portfolio",
    "REBALANCE_COOLDOWN",
    "REQUIRED_INITIAL_SLOTS",
    "RebalanceEligibility",
    "RegistryError",
    "Result",
]
