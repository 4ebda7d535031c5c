#!/usr/bin/env python
"""
Walk through a portfolio lifecycle against an in-memory registry.

This script can be run directly without installing the package:
    python scripts/run_scenario.py --owner alice --height 1000

Or after installing, the same steps are available as commands:
    folio create STX,BTC 5000,5000 --caller alice
"""

from __future__ import annotations

import sys
from pathlib import Path

# Add src to path for development
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from folio.core.clock import ManualClock
from folio.core.models import REBALANCE_COOLDOWN
from folio.portfolio import PortfolioEngine, RegistryState


def main(owner: str = "alice", other: str = "bob", height: int = 1000) -> None:
    """Run the scenario with given parameters."""
    print(f"\n{'='*50}")
    print("Folio Registry Scenario")
    print(f"{'='*50}")
    print(f"Owner: {owner}")
    print(f"Starting height: {height}")

    clock = ManualClock(height)
    engine = PortfolioEngine(RegistryState(protocol_owner="deployer"), clock)

    result = engine.create_portfolio(["STX", "BTC"], [5000, 5000], caller=owner)
    portfolio_id = result.unwrap()
    print(f"\nCreated portfolio {portfolio_id}")
    print(f"Portfolios of {owner}: {engine.get_user_portfolios(owner)}")

    engine.update_portfolio_allocation(portfolio_id, 0, 6000, caller=owner).unwrap()
    asset = engine.get_portfolio_asset(portfolio_id, 0)
    print(f"Slot 0 target: {asset.target_percentage if asset else None} bps")

    denied = engine.update_portfolio_allocation(portfolio_id, 0, 1000, caller=other)
    print(f"Update by {other}: {denied.error.label if denied.error else 'ok'}")

    clock.advance(REBALANCE_COOLDOWN + 1)
    report = engine.calculate_rebalance_amounts(portfolio_id).unwrap()
    print(f"\nAt height {clock.now()}: needs rebalance = {report.needs_rebalance}")

    engine.rebalance_portfolio(portfolio_id, caller=owner).unwrap()
    report = engine.calculate_rebalance_amounts(portfolio_id).unwrap()
    print(f"After rebalance: needs rebalance = {report.needs_rebalance}")


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Run a registry scenario")
    parser.add_argument("--owner", default="alice", help="Portfolio owner identity")
    parser.add_argument("--other", default="bob", help="Non-owner identity")
    parser.add_argument("--height", type=int, default=1000, help="Starting height")

    args = parser.parse_args()
    main(owner=args.owner, other=args.other, height=args.height)
