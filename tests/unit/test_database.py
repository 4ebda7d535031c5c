"""Tests for SQLite registry storage."""

from __future__ import annotations

import csv
from pathlib import Path

import pytest

from folio.core.clock import ManualClock
from folio.portfolio.engine import PortfolioEngine
from folio.portfolio.state import RegistryState
from folio.storage.database import RegistryDatabase, get_registry_db


class TestRegistryDatabase:
    """Tests for RegistryDatabase."""

    @pytest.fixture
    def db(self, tmp_path: Path) -> RegistryDatabase:
        return RegistryDatabase(tmp_path / "registry" / "folio.db")

    @pytest.fixture
    def populated(self) -> PortfolioEngine:
        """Create an engine with a few portfolios and updates applied."""
        clock = ManualClock(100)
        engine = PortfolioEngine(RegistryState(protocol_owner="deployer"), clock)
        engine.create_portfolio(["STX", "BTC", "ETH"], [4000, 4000, 2000], caller="alice")
        engine.create_portfolio(["USDA", "STX"], [5000, 5000], caller="bob")
        engine.create_portfolio(["BTC", "ETH"], [9000, 1000], caller="alice")
        clock.advance(10)
        engine.update_portfolio_allocation(1, 1, 3500, caller="alice")
        engine.rebalance_portfolio(3, caller="alice")
        engine.initialize("carol", caller="deployer")
        return engine

    def test_creates_parent_directory(self, tmp_path: Path) -> None:
        db = RegistryDatabase(tmp_path / "nested" / "dir" / "folio.db")
        assert db.db_path.exists()

    def test_empty_database_loads_default_state(self, db: RegistryDatabase) -> None:
        state = db.load_state(default_owner="deployer")

        assert state.protocol_owner == "deployer"
        assert state.portfolios.counter == 0
        assert state.protocol_fee_bps == 25
        assert len(state.portfolios) == 0

    def test_save_and_load(
        self, db: RegistryDatabase, populated: PortfolioEngine
    ) -> None:
        db.save_state(populated.state)
        state = db.load_state(default_owner="ignored")
        engine = PortfolioEngine(state, ManualClock(110))

        assert state.protocol_owner == "carol"
        assert state.portfolios.counter == 3
        assert engine.get_portfolio(1) == populated.get_portfolio(1)
        assert engine.get_portfolio(3).last_rebalanced == 110
        assert engine.get_portfolio(1).slot_count == 3
        assert engine.get_portfolio_asset(1, 1).target_percentage == 3500
        assert engine.get_portfolio_asset(1, 2) is None
        assert engine.get_user_portfolios("alice") == [1, 3]
        assert engine.get_user_portfolios("bob") == [2]

    def test_loaded_state_continues_numbering(
        self, db: RegistryDatabase, populated: PortfolioEngine
    ) -> None:
        db.save_state(populated.state)
        engine = PortfolioEngine(db.load_state("deployer"), ManualClock(200))

        result = engine.create_portfolio(["A", "B"], [5000, 5000], caller="alice")
        assert result.value == 4
        assert engine.get_user_portfolios("alice") == [1, 3, 4]

    def test_save_replaces_snapshot(
        self, db: RegistryDatabase, populated: PortfolioEngine
    ) -> None:
        db.save_state(populated.state)
        db.save_state(RegistryState(protocol_owner="fresh"))

        state = db.load_state("deployer")
        assert state.protocol_owner == "fresh"
        assert len(state.portfolios) == 0
        assert state.owners.list_for("alice") == []

    def test_export_csv(
        self, db: RegistryDatabase, populated: PortfolioEngine, tmp_path: Path
    ) -> None:
        db.save_state(populated.state)
        out = tmp_path / "out" / "allocations.csv"

        count = db.export_allocations_csv(out)

        assert count == 6
        with open(out, newline="") as f:
            rows = list(csv.DictReader(f))
        assert rows[0]["portfolio_id"] == "1"
        assert rows[0]["token"] == "STX"
        assert rows[1]["target_percentage"] == "3500"

    def test_export_empty(self, db: RegistryDatabase, tmp_path: Path) -> None:
        out = tmp_path / "empty.csv"
        assert db.export_allocations_csv(out) == 0
        assert not out.exists()


class TestGetRegistryDb:
    """Tests for the global database accessor."""

    def test_custom_path_replaces_instance(self, tmp_path: Path) -> None:
        first = get_registry_db(tmp_path / "a.db")
        second = get_registry_db(tmp_path / "b.db")

        assert first is not second
        assert second.db_path == tmp_path / "b.db"
        assert get_registry_db() is second
