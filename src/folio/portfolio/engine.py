"""Portfolio engine: the registry's state transitions.

Every mutating operation checks its preconditions in a fixed order,
stops at the first failure and writes nothing unless all checks pass.
Failures are returned as ``Result`` values carrying an ``ErrorCode``.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import replace
from typing import TypeVar

from loguru import logger

from folio.core.clock import LogicalClock
from folio.core.errors import ErrorCode, RegistryError, Result
from folio.core.models import (
    MAX_PERCENTAGE,
    MAX_SLOTS,
    REBALANCE_COOLDOWN,
    REQUIRED_INITIAL_SLOTS,
    AssetAllocation,
    Portfolio,
    RebalanceEligibility,
)
from folio.portfolio.state import RegistryState

T = TypeVar("T")


def _is_valid_percentage(value: object) -> bool:
    """Check a basis-point value is an integer in [0, 10000]."""
    if isinstance(value, bool) or not isinstance(value, int):
        return False
    return 0 <= value <= MAX_PERCENTAGE


def _is_valid_index(value: object, minimum: int) -> bool:
    """Check an id or slot index is a plain integer no smaller than ``minimum``."""
    if isinstance(value, bool) or not isinstance(value, int):
        return False
    return value >= minimum


def _is_valid_token(token: object) -> bool:
    return isinstance(token, str) and bool(token.strip())


class PortfolioEngine:
    """
    Creates portfolios, updates target allocations and records rebalances.

    The engine never moves value: rebalancing only stamps the portfolio
    with the current logical time.

    Example:
        state = RegistryState(protocol_owner="deployer")
        engine = PortfolioEngine(state, ManualClock(100))

        result = engine.create_portfolio(["STX", "BTC"], [5000, 5000], caller="alice")
        if result.ok:
            engine.update_portfolio_allocation(result.value, 0, 6000, caller="alice")
    """

    def __init__(self, state: RegistryState, clock: LogicalClock) -> None:
        """Initialize the engine.

        Args:
            state: Registry state the engine exclusively mutates
            clock: Source of the current logical time
        """
        self.state = state
        self.clock = clock

    @property
    def now(self) -> int:
        """Current logical time."""
        return self.clock.now()

    def _execute(self, operation: str, body: Callable[[], T]) -> Result[T]:
        """Run ``body`` in a transaction and convert registry errors to results."""
        try:
            with self.state.transaction():
                value = body()
        except RegistryError as e:
            logger.warning(f"{operation} rejected: {e}")
            return Result.failure(e.code)
        return Result.success(value)

    def _require_portfolio(self, portfolio_id: int) -> Portfolio:
        portfolio = self.get_portfolio(portfolio_id)
        if portfolio is None:
            raise RegistryError(
                ErrorCode.INVALID_PORTFOLIO, f"portfolio {portfolio_id} not found"
            )
        return portfolio

    def _require_owner(self, portfolio: Portfolio, caller: str) -> None:
        if not portfolio.is_owned_by(caller):
            raise RegistryError(
                ErrorCode.NOT_AUTHORIZED,
                f"{caller} does not own portfolio {portfolio.portfolio_id}",
            )

    # Mutating operations

    def create_portfolio(
        self,
        tokens: Sequence[str],
        percentages: Sequence[int],
        caller: str,
    ) -> Result[int]:
        """Create a portfolio owned by ``caller``.

        Only slots 0 and 1 are materialized as allocations; ``slot_count``
        still records the full number of tokens supplied.

        Args:
            tokens: Asset identifiers, at most 10
            percentages: Target weights in basis points, one per token

        Returns:
            Result carrying the new portfolio id. Failure codes, checked in
            order: MAX_ASSETS_EXCEEDED, LENGTH_MISMATCH, INVALID_PERCENTAGE,
            INVALID_TOKEN, STORAGE_CAPACITY_EXCEEDED
        """

        now = self.now

        def body() -> int:
            if len(tokens) > MAX_SLOTS or len(percentages) > MAX_SLOTS:
                raise RegistryError(
                    ErrorCode.MAX_ASSETS_EXCEEDED,
                    f"{max(len(tokens), len(percentages))} assets exceeds {MAX_SLOTS}",
                )
            if len(tokens) != len(percentages):
                raise RegistryError(
                    ErrorCode.LENGTH_MISMATCH,
                    f"{len(tokens)} tokens vs {len(percentages)} percentages",
                )
            for pct in percentages:
                if not _is_valid_percentage(pct):
                    raise RegistryError(
                        ErrorCode.INVALID_PERCENTAGE, f"{pct!r} is outside 0-{MAX_PERCENTAGE}"
                    )
            if len(tokens) < REQUIRED_INITIAL_SLOTS or not all(
                _is_valid_token(t) for t in tokens[:REQUIRED_INITIAL_SLOTS]
            ):
                raise RegistryError(
                    ErrorCode.INVALID_TOKEN,
                    f"at least {REQUIRED_INITIAL_SLOTS} well-formed tokens required",
                )

            store = self.state.portfolios
            portfolio_id = store.next_identifier()
            store.insert(
                portfolio_id,
                Portfolio(
                    portfolio_id=portfolio_id,
                    owner=caller,
                    created_at=now,
                    last_rebalanced=now,
                    total_value=0,
                    active=True,
                    slot_count=len(tokens),
                ),
            )
            for slot in range(REQUIRED_INITIAL_SLOTS):
                self.state.allocations.set(
                    portfolio_id,
                    slot,
                    AssetAllocation(
                        portfolio_id=portfolio_id,
                        slot_index=slot,
                        token=tokens[slot],
                        target_percentage=percentages[slot],
                    ),
                )
            self.state.owners.append(caller, portfolio_id)
            store.commit_counter(portfolio_id)
            return portfolio_id

        result = self._execute("create-portfolio", body)
        if result.ok:
            logger.info(
                f"Created portfolio {result.value} for {caller} "
                f"with {len(tokens)} assets at height {now}"
            )
        return result

    def create(self, assets: Sequence[tuple[str, int]], caller: str) -> Result[int]:
        """Create a portfolio from ``(token, percentage)`` pairs."""
        tokens = [token for token, _ in assets]
        percentages = [pct for _, pct in assets]
        return self.create_portfolio(tokens, percentages, caller)

    def update_portfolio_allocation(
        self,
        portfolio_id: int,
        slot_index: int,
        new_percentage: int,
        caller: str,
    ) -> Result[bool]:
        """Change the target weight of one slot.

        Returns:
            Result carrying True. Failure codes, checked in order:
            INVALID_PORTFOLIO, NOT_AUTHORIZED, INVALID_TOKEN,
            INVALID_PERCENTAGE, INVALID_TOKEN_ID
        """

        def body() -> bool:
            portfolio = self._require_portfolio(portfolio_id)
            self._require_owner(portfolio, caller)
            allocation = self.get_portfolio_asset(portfolio_id, slot_index)
            if allocation is None:
                raise RegistryError(
                    ErrorCode.INVALID_TOKEN,
                    f"no allocation in slot {slot_index} of portfolio {portfolio_id}",
                )
            if not _is_valid_percentage(new_percentage):
                raise RegistryError(
                    ErrorCode.INVALID_PERCENTAGE,
                    f"{new_percentage!r} is outside 0-{MAX_PERCENTAGE}",
                )
            if not self.state.allocations.is_valid_slot(portfolio_id, slot_index):
                raise RegistryError(
                    ErrorCode.INVALID_TOKEN_ID,
                    f"slot {slot_index} out of range for portfolio {portfolio_id}",
                )

            self.state.allocations.set(
                portfolio_id,
                slot_index,
                replace(allocation, target_percentage=new_percentage),
            )
            return True

        result = self._execute("update-portfolio-allocation", body)
        if result.ok:
            logger.info(
                f"Portfolio {portfolio_id} slot {slot_index} target set to "
                f"{new_percentage} bps"
            )
        return result

    def rebalance_portfolio(self, portfolio_id: int, caller: str) -> Result[bool]:
        """Record a rebalance at the current logical time.

        No amounts are moved. Calling twice at the same height succeeds
        both times and leaves the timestamp unchanged.

        Returns:
            Result carrying True. Failure codes: INVALID_PORTFOLIO (missing or
            inactive), NOT_AUTHORIZED
        """

        now = self.now

        def body() -> bool:
            portfolio = self._require_portfolio(portfolio_id)
            self._require_owner(portfolio, caller)
            if not portfolio.active:
                raise RegistryError(
                    ErrorCode.INVALID_PORTFOLIO, f"portfolio {portfolio_id} is inactive"
                )
            self.state.portfolios.insert(
                portfolio_id, replace(portfolio, last_rebalanced=now)
            )
            return True

        result = self._execute("rebalance-portfolio", body)
        if result.ok:
            logger.info(f"Portfolio {portfolio_id} rebalanced at height {now}")
        return result

    def initialize(self, new_owner: str, caller: str) -> Result[bool]:
        """Transfer protocol ownership to ``new_owner``.

        Only the current protocol owner may call, and not to hand
        ownership to themselves. Both cases fail with NOT_AUTHORIZED.
        """

        def body() -> bool:
            if caller != self.state.protocol_owner:
                raise RegistryError(
                    ErrorCode.NOT_AUTHORIZED, f"{caller} is not the protocol owner"
                )
            if new_owner == caller:
                raise RegistryError(
                    ErrorCode.NOT_AUTHORIZED, "new owner must differ from caller"
                )
            self.state.protocol_owner = new_owner
            return True

        result = self._execute("initialize", body)
        if result.ok:
            logger.info(f"Protocol ownership transferred from {caller} to {new_owner}")
        return result

    # Read-only operations

    def get_portfolio(self, portfolio_id: int) -> Portfolio | None:
        """Get a portfolio by id."""
        if not _is_valid_index(portfolio_id, 1):
            return None
        return self.state.portfolios.get(portfolio_id)

    def get_portfolio_asset(
        self, portfolio_id: int, slot_index: int
    ) -> AssetAllocation | None:
        """Get the allocation in one slot of a portfolio."""
        if not (_is_valid_index(portfolio_id, 1) and _is_valid_index(slot_index, 0)):
            return None
        return self.state.allocations.get(portfolio_id, slot_index)

    def get_portfolio_assets(self, portfolio_id: int) -> list[AssetAllocation]:
        """Get all materialized allocations of a portfolio in slot order."""
        if not _is_valid_index(portfolio_id, 1):
            return []
        return self.state.allocations.for_portfolio(portfolio_id)

    def get_user_portfolios(self, owner: str) -> list[int]:
        """Get the ids of portfolios created by ``owner``."""
        return self.state.owners.list_for(owner)

    def calculate_rebalance_amounts(
        self, portfolio_id: int
    ) -> Result[RebalanceEligibility]:
        """Check whether the rebalance cooldown has elapsed.

        ``needs_rebalance`` is True only once strictly more than 144 units
        have passed since the last rebalance.
        """
        portfolio = self.get_portfolio(portfolio_id)
        if portfolio is None:
            return Result.failure(ErrorCode.INVALID_PORTFOLIO)

        elapsed = self.now - portfolio.last_rebalanced
        return Result.success(
            RebalanceEligibility(
                portfolio_id=portfolio_id,
                total_value=portfolio.total_value,
                needs_rebalance=elapsed > REBALANCE_COOLDOWN,
            )
        )
