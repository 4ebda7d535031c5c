"""Tests for registry state transactions."""

from __future__ import annotations

from dataclasses import replace

import pytest

from folio.core.errors import ErrorCode, RegistryError
from folio.core.models import AssetAllocation, Portfolio
from folio.portfolio.state import RegistryState


def write_portfolio(state: RegistryState, portfolio_id: int) -> None:
    state.portfolios.insert(
        portfolio_id,
        Portfolio(
            portfolio_id=portfolio_id,
            owner="alice",
            created_at=0,
            last_rebalanced=0,
            slot_count=2,
        ),
    )
    state.allocations.set(
        portfolio_id,
        0,
        AssetAllocation(
            portfolio_id=portfolio_id, slot_index=0, token="STX", target_percentage=5000
        ),
    )
    state.owners.append("alice", portfolio_id)
    state.portfolios.commit_counter(portfolio_id)


class TestRegistryState:
    """Tests for RegistryState."""

    def test_initial_state(self) -> None:
        state = RegistryState(protocol_owner="deployer")
        assert state.protocol_owner == "deployer"
        assert state.protocol_fee_bps == 25
        assert state.portfolios.counter == 0
        assert len(state.portfolios) == 0

    def test_transaction_commits(self) -> None:
        state = RegistryState(protocol_owner="deployer")
        with state.transaction():
            write_portfolio(state, 1)

        assert state.portfolios.get(1) is not None
        assert state.portfolios.counter == 1
        assert state.owners.list_for("alice") == [1]

    def test_transaction_rolls_back_everything(self) -> None:
        state = RegistryState(protocol_owner="deployer")
        with pytest.raises(RegistryError):
            with state.transaction():
                write_portfolio(state, 1)
                state.protocol_owner = "mallory"
                raise RegistryError(ErrorCode.STORAGE_CAPACITY_EXCEEDED)

        assert state.portfolios.get(1) is None
        assert state.portfolios.counter == 0
        assert state.allocations.get(1, 0) is None
        assert state.owners.list_for("alice") == []
        assert state.protocol_owner == "deployer"

    def test_rollback_restores_mutated_records(self) -> None:
        state = RegistryState(protocol_owner="deployer")
        with state.transaction():
            write_portfolio(state, 1)

        with pytest.raises(ValueError):
            with state.transaction():
                state.portfolios.insert(
                    1, replace(state.portfolios.get(1), last_rebalanced=500)
                )
                raise ValueError("boom")

        assert state.portfolios.get(1).last_rebalanced == 0

    def test_nested_transaction_joins_outer(self) -> None:
        state = RegistryState(protocol_owner="deployer")
        with pytest.raises(RegistryError):
            with state.transaction():
                with state.transaction():
                    write_portfolio(state, 1)
                raise RegistryError(ErrorCode.INVALID_PORTFOLIO)

        assert state.portfolios.get(1) is None

    def test_allocation_table_tracks_restored_store(self) -> None:
        state = RegistryState(protocol_owner="deployer")
        with pytest.raises(RegistryError):
            with state.transaction():
                write_portfolio(state, 1)
                raise RegistryError(ErrorCode.INVALID_PORTFOLIO)

        with state.transaction():
            write_portfolio(state, 1)
        assert state.allocations.is_valid_slot(1, 1) is True
