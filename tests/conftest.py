"""Shared test fixtures."""

from __future__ import annotations

import pytest

from folio.core.clock import ManualClock
from folio.portfolio.engine import PortfolioEngine
from folio.portfolio.state import RegistryState

OWNER = "alice"
DEPLOYER = "deployer"


@pytest.fixture
def clock() -> ManualClock:
    """Create a clock at height 1000."""
    return ManualClock(1000)


@pytest.fixture
def state() -> RegistryState:
    """Create empty registry state."""
    return RegistryState(protocol_owner=DEPLOYER)


@pytest.fixture
def engine(state: RegistryState, clock: ManualClock) -> PortfolioEngine:
    """Create an engine over empty state."""
    return PortfolioEngine(state, clock)


@pytest.fixture
def portfolio_id(engine: PortfolioEngine) -> int:
    """Create a two-asset 50/50 portfolio owned by alice."""
    return engine.create_portfolio(["STX", "BTC"], [5000, 5000], caller=OWNER).unwrap()
