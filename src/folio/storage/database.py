"""SQLite storage for registry state."""

from __future__ import annotations

import csv
import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from loguru import logger

from folio.core.models import PROTOCOL_FEE_BPS, AssetAllocation, Portfolio
from folio.portfolio.state import RegistryState

# Default database path
DEFAULT_DB_PATH = Path.home() / ".folio" / "folio.db"


class RegistryDatabase:
    """SQLite-backed snapshot of a ``RegistryState``.

    Each save replaces the stored snapshot in a single transaction, so
    the database always holds the state after some complete operation.
    """

    def __init__(self, db_path: Path | str | None = None) -> None:
        """Initialize the registry database.

        Args:
            db_path: Path to SQLite database. Defaults to ~/.folio/folio.db
        """
        self.db_path = Path(db_path) if db_path else DEFAULT_DB_PATH
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    @contextmanager
    def _get_connection(self) -> Iterator[sqlite3.Connection]:
        """Get a database connection with row factory."""
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
        finally:
            conn.close()

    def _init_db(self) -> None:
        """Initialize database schema."""
        with self._get_connection() as conn:
            cursor = conn.cursor()

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS portfolios (
                    portfolio_id INTEGER PRIMARY KEY,
                    owner TEXT NOT NULL,
                    created_at INTEGER NOT NULL,
                    last_rebalanced INTEGER NOT NULL,
                    total_value INTEGER NOT NULL DEFAULT 0,
                    active INTEGER NOT NULL DEFAULT 1,
                    slot_count INTEGER NOT NULL
                )
            """)

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS portfolio_assets (
                    portfolio_id INTEGER NOT NULL,
                    slot_index INTEGER NOT NULL,
                    token TEXT NOT NULL,
                    target_percentage INTEGER NOT NULL,
                    current_amount INTEGER NOT NULL DEFAULT 0,
                    PRIMARY KEY (portfolio_id, slot_index),
                    FOREIGN KEY (portfolio_id) REFERENCES portfolios(portfolio_id)
                )
            """)

            # Owner index, ordered by position
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS user_portfolios (
                    owner TEXT NOT NULL,
                    position INTEGER NOT NULL,
                    portfolio_id INTEGER NOT NULL,
                    PRIMARY KEY (owner, position)
                )
            """)

            # Scalars: portfolio counter, protocol owner, fee
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS registry_meta (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                )
            """)

            cursor.execute("""
                CREATE INDEX IF NOT EXISTS idx_portfolios_owner ON portfolios(owner)
            """)

            conn.commit()
            logger.debug(f"Database initialized at {self.db_path}")

    def save_state(self, state: RegistryState) -> None:
        """Replace the stored snapshot with ``state``.

        Args:
            state: Registry state to persist
        """
        with self._get_connection() as conn:
            cursor = conn.cursor()

            for table in (
                "portfolio_assets",
                "portfolios",
                "user_portfolios",
                "registry_meta",
            ):
                cursor.execute(f"DELETE FROM {table}")

            cursor.executemany(
                """
                INSERT INTO portfolios (
                    portfolio_id, owner, created_at, last_rebalanced,
                    total_value, active, slot_count
                ) VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
                [
                    (
                        p.portfolio_id,
                        p.owner,
                        p.created_at,
                        p.last_rebalanced,
                        p.total_value,
                        int(p.active),
                        p.slot_count,
                    )
                    for p in state.portfolios
                ],
            )

            cursor.executemany(
                """
                INSERT INTO portfolio_assets (
                    portfolio_id, slot_index, token, target_percentage, current_amount
                ) VALUES (?, ?, ?, ?, ?)
            """,
                [
                    (
                        a.portfolio_id,
                        a.slot_index,
                        a.token,
                        a.target_percentage,
                        a.current_amount,
                    )
                    for a in state.allocations
                ],
            )

            cursor.executemany(
                "INSERT INTO user_portfolios (owner, position, portfolio_id) VALUES (?, ?, ?)",
                [
                    (owner, position, portfolio_id)
                    for owner in state.owners.owners()
                    for position, portfolio_id in enumerate(
                        state.owners.list_for(owner)
                    )
                ],
            )

            cursor.executemany(
                "INSERT INTO registry_meta (key, value) VALUES (?, ?)",
                [
                    ("portfolio_counter", str(state.portfolios.counter)),
                    ("protocol_owner", state.protocol_owner),
                    ("protocol_fee_bps", str(state.protocol_fee_bps)),
                ],
            )

            conn.commit()
            logger.debug(
                f"Saved registry state ({len(state.portfolios)} portfolios) "
                f"to {self.db_path}"
            )

    def load_state(self, default_owner: str) -> RegistryState:
        """Load the stored snapshot.

        Args:
            default_owner: Protocol owner for a database with no saved state

        Returns:
            RegistryState rebuilt from the database
        """
        with self._get_connection() as conn:
            cursor = conn.cursor()

            cursor.execute("SELECT key, value FROM registry_meta")
            meta = {row["key"]: row["value"] for row in cursor.fetchall()}

            state = RegistryState(
                protocol_owner=meta.get("protocol_owner", default_owner),
                counter=int(meta.get("portfolio_counter", 0)),
                protocol_fee_bps=int(meta.get("protocol_fee_bps", PROTOCOL_FEE_BPS)),
            )

            cursor.execute("SELECT * FROM portfolios ORDER BY portfolio_id")
            for row in cursor.fetchall():
                state.portfolios.insert(
                    row["portfolio_id"],
                    Portfolio(
                        portfolio_id=row["portfolio_id"],
                        owner=row["owner"],
                        created_at=row["created_at"],
                        last_rebalanced=row["last_rebalanced"],
                        total_value=row["total_value"],
                        active=bool(row["active"]),
                        slot_count=row["slot_count"],
                    ),
                )

            cursor.execute(
                "SELECT * FROM portfolio_assets ORDER BY portfolio_id, slot_index"
            )
            for row in cursor.fetchall():
                state.allocations.set(
                    row["portfolio_id"],
                    row["slot_index"],
                    AssetAllocation(
                        portfolio_id=row["portfolio_id"],
                        slot_index=row["slot_index"],
                        token=row["token"],
                        target_percentage=row["target_percentage"],
                        current_amount=row["current_amount"],
                    ),
                )

            cursor.execute(
                "SELECT owner, portfolio_id FROM user_portfolios ORDER BY owner, position"
            )
            for row in cursor.fetchall():
                state.owners.append(row["owner"], row["portfolio_id"])

        logger.debug(
            f"Loaded registry state ({len(state.portfolios)} portfolios) "
            f"from {self.db_path}"
        )
        return state

    def export_allocations_csv(self, filepath: Path | str) -> int:
        """Export portfolios joined with their allocations to a CSV file.

        Args:
            filepath: Output file path

        Returns:
            Number of rows exported
        """
        filepath = Path(filepath)
        filepath.parent.mkdir(parents=True, exist_ok=True)

        with self._get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute("""
                SELECT p.portfolio_id, p.owner, p.created_at, p.last_rebalanced,
                       p.total_value, p.active, p.slot_count,
                       a.slot_index, a.token, a.target_percentage, a.current_amount
                FROM portfolios p
                LEFT JOIN portfolio_assets a ON a.portfolio_id = p.portfolio_id
                ORDER BY p.portfolio_id, a.slot_index
            """)
            rows = [dict(row) for row in cursor.fetchall()]

        if not rows:
            logger.warning("No portfolios to export")
            return 0

        fieldnames = [
            "portfolio_id",
            "owner",
            "created_at",
            "last_rebalanced",
            "total_value",
            "active",
            "slot_count",
            "slot_index",
            "token",
            "target_percentage",
            "current_amount",
        ]

        with open(filepath, "w", newline="") as f:
            writer = csv.DictWriter(f, fieldnames=fieldnames, extrasaction="ignore")
            writer.writeheader()
            writer.writerows(rows)

        logger.info(f"Exported {len(rows)} allocation rows to {filepath}")
        return len(rows)


# Global database instance
_db: RegistryDatabase | None = None


def get_registry_db(db_path: Path | str | None = None) -> RegistryDatabase:
    """Get the global registry database instance.

    Args:
        db_path: Optional custom database path

    Returns:
        RegistryDatabase instance
    """
    global _db
    if _db is None or db_path is not None:
        _db = RegistryDatabase(db_path)
    return _db
