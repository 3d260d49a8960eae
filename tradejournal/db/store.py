"""SQLite position store for the trade journal."""

import logging
import sqlite3
from datetime import date, datetime, timedelta
from pathlib import Path
from typing import Optional

from tradejournal.models import ExitEvent, Position, ValuationReport

logger = logging.getLogger(__name__)


class DataStore:
    """SQLite-based store for positions, their exits and cached valuations.

    The store gives no locking guarantees; callers serialize writes to a
    single position themselves.
    """

    REQUIRED_TABLES = [
        "positions",
        "exits",
        "valuation_cache",
    ]

    def __init__(self, db_path: Path):
        """Initialize the data store.

        Args:
            db_path: Path to the SQLite database file.
        """
        self.db_path = db_path
        self._ensure_db_dir()
        self._init_schema()

    def _ensure_db_dir(self) -> None:
        """Ensure the database directory exists."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    def _get_connection(self) -> sqlite3.Connection:
        """Get a database connection."""
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    def _init_schema(self) -> None:
        """Initialize database schema on first run."""
        conn = self._get_connection()
        try:
            cursor = conn.cursor()

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS positions (
                    id TEXT PRIMARY KEY,
                    owner_id TEXT NOT NULL,
                    symbol TEXT NOT NULL,
                    action TEXT NOT NULL,
                    quantity INTEGER NOT NULL,
                    price REAL NOT NULL,
                    instrument_type TEXT NOT NULL,
                    option_type TEXT,
                    strike_price REAL,
                    expiration_date TEXT,
                    entry_date TEXT NOT NULL,
                    strategy TEXT,
                    notes TEXT
                )
            """)

            # Exits keep their application order in seq
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS exits (
                    position_id TEXT NOT NULL
                        REFERENCES positions(id) ON DELETE CASCADE,
                    seq INTEGER NOT NULL,
                    exit_date TEXT NOT NULL,
                    exit_price REAL NOT NULL,
                    quantity INTEGER NOT NULL,
                    profit REAL NOT NULL,
                    profit_percentage REAL NOT NULL,
                    PRIMARY KEY (position_id, seq)
                )
            """)

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS valuation_cache (
                    symbol TEXT PRIMARY KEY,
                    content TEXT NOT NULL,
                    cached_at TEXT NOT NULL
                )
            """)

            cursor.execute(
                "CREATE INDEX IF NOT EXISTS idx_positions_owner ON positions(owner_id)"
            )

            conn.commit()
        finally:
            conn.close()

    def get_tables(self) -> list[str]:
        """Get list of all tables in the database."""
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT name FROM sqlite_master WHERE type='table' AND name NOT LIKE 'sqlite_%'"
            )
            return [row["name"] for row in cursor.fetchall()]
        finally:
            conn.close()

    # ==================== Positions ====================

    def save_position(self, position: Position) -> None:
        """Insert or update a position together with its exits.

        Args:
            position: Position to save.
        """
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                """
                INSERT INTO positions
                (id, owner_id, symbol, action, quantity, price, instrument_type,
                 option_type, strike_price, expiration_date, entry_date, strategy, notes)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    owner_id = excluded.owner_id,
                    symbol = excluded.symbol,
                    action = excluded.action,
                    quantity = excluded.quantity,
                    price = excluded.price,
                    instrument_type = excluded.instrument_type,
                    option_type = excluded.option_type,
                    strike_price = excluded.strike_price,
                    expiration_date = excluded.expiration_date,
                    entry_date = excluded.entry_date,
                    strategy = excluded.strategy,
                    notes = excluded.notes
                """,
                (
                    position.id,
                    position.owner_id,
                    position.symbol,
                    position.action,
                    position.quantity,
                    position.price,
                    position.instrument_type,
                    position.option_type,
                    position.strike_price,
                    position.expiration_date.isoformat() if position.expiration_date else None,
                    position.entry_date.isoformat(),
                    position.strategy,
                    position.notes,
                ),
            )
            cursor.execute("DELETE FROM exits WHERE position_id = ?", (position.id,))
            cursor.executemany(
                """
                INSERT INTO exits
                (position_id, seq, exit_date, exit_price, quantity, profit, profit_percentage)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                [
                    (
                        position.id,
                        seq,
                        exit_event.exit_date.isoformat(),
                        exit_event.exit_price,
                        exit_event.quantity,
                        exit_event.profit,
                        exit_event.profit_percentage,
                    )
                    for seq, exit_event in enumerate(position.exits)
                ],
            )
            conn.commit()
        finally:
            conn.close()

    def _load_exits(self, cursor: sqlite3.Cursor, position_ids: list[str]) -> dict[str, list[ExitEvent]]:
        exits: dict[str, list[ExitEvent]] = {pid: [] for pid in position_ids}
        if not position_ids:
            return exits
        placeholders = ", ".join("?" for _ in position_ids)
        cursor.execute(
            f"""
            SELECT position_id, exit_date, exit_price, quantity, profit, profit_percentage
            FROM exits
            WHERE position_id IN ({placeholders})
            ORDER BY position_id, seq
            """,
            position_ids,
        )
        for row in cursor.fetchall():
            exits[row["position_id"]].append(
                ExitEvent(
                    exit_date=date.fromisoformat(row["exit_date"]),
                    exit_price=row["exit_price"],
                    quantity=row["quantity"],
                    profit=row["profit"],
                    profit_percentage=row["profit_percentage"],
                )
            )
        return exits

    @staticmethod
    def _row_to_position(row: sqlite3.Row, exits: list[ExitEvent]) -> Position:
        return Position(
            id=row["id"],
            owner_id=row["owner_id"],
            symbol=row["symbol"],
            action=row["action"],
            quantity=row["quantity"],
            price=row["price"],
            instrument_type=row["instrument_type"],
            option_type=row["option_type"],
            strike_price=row["strike_price"],
            expiration_date=(
                date.fromisoformat(row["expiration_date"]) if row["expiration_date"] else None
            ),
            entry_date=date.fromisoformat(row["entry_date"]),
            strategy=row["strategy"],
            notes=row["notes"],
            exits=tuple(exits),
        )

    def get_position(self, position_id: str) -> Optional[Position]:
        """Get a position by ID.

        Args:
            position_id: Position ID.

        Returns:
            Position if found, None otherwise.
        """
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute("SELECT * FROM positions WHERE id = ?", (position_id,))
            row = cursor.fetchone()
            if row is None:
                return None
            exits = self._load_exits(cursor, [position_id])
            return self._row_to_position(row, exits[position_id])
        finally:
            conn.close()

    def get_positions(self, owner_id: Optional[str] = None) -> list[Position]:
        """Get positions, optionally only those of one owner.

        Args:
            owner_id: Optional owner filter. If None, returns all positions.

        Returns:
            Positions ordered by entry date.
        """
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            if owner_id is not None:
                cursor.execute(
                    "SELECT * FROM positions WHERE owner_id = ? ORDER BY entry_date, rowid",
                    (owner_id,),
                )
            else:
                cursor.execute("SELECT * FROM positions ORDER BY entry_date, rowid")
            rows = cursor.fetchall()
            exits = self._load_exits(cursor, [row["id"] for row in rows])
            return [self._row_to_position(row, exits[row["id"]]) for row in rows]
        finally:
            conn.close()

    def delete_position(self, position_id: str) -> bool:
        """Delete a position and its exits.

        Args:
            position_id: ID of the position to delete.

        Returns:
            True if a position was deleted.
        """
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute("DELETE FROM positions WHERE id = ?", (position_id,))
            conn.commit()
            return cursor.rowcount > 0
        finally:
            conn.close()

    # ==================== Valuation Cache ====================

    def cache_valuation(self, report: ValuationReport) -> None:
        """Cache a valuation report, replacing any earlier one for the symbol."""
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                """
                INSERT OR REPLACE INTO valuation_cache (symbol, content, cached_at)
                VALUES (?, ?, ?)
                """,
                (report.symbol, report.model_dump_json(), datetime.now().isoformat()),
            )
            conn.commit()
        finally:
            conn.close()

    def get_cached_valuation(
        self, symbol: str, max_age_hours: float = 24
    ) -> Optional[ValuationReport]:
        """Get a cached valuation if not expired.

        Args:
            symbol: Trading symbol.
            max_age_hours: Maximum age of cache in hours.

        Returns:
            Cached report if found and not expired, None otherwise.
        """
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT content, cached_at FROM valuation_cache WHERE symbol = ?",
                (symbol,),
            )
            row = cursor.fetchone()
            if row:
                cached_at = datetime.fromisoformat(row["cached_at"])
                age_hours = (datetime.now() - cached_at).total_seconds() / 3600
                if age_hours <= max_age_hours:
                    return ValuationReport.model_validate_json(row["content"])
            return None
        finally:
            conn.close()

    def purge_expired_valuations(self, max_age_hours: float = 24) -> int:
        """Delete cached valuations older than max_age_hours.

        Returns:
            Number of entries removed.
        """
        cutoff = datetime.now() - timedelta(hours=max_age_hours)
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                "DELETE FROM valuation_cache WHERE cached_at < ?",
                (cutoff.isoformat(),),
            )
            conn.commit()
            removed = cursor.rowcount
        finally:
            conn.close()
        if removed:
            logger.debug("Purged %d expired valuations", removed)
        return removed

    # ==================== Stats ====================

    def get_stats(self) -> dict:
        """Get database statistics.

        Returns:
            Dictionary with table record counts.
        """
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            stats = {}
            for table in self.REQUIRED_TABLES:
                cursor.execute(f"SELECT COUNT(*) as count FROM {table}")
                stats[table] = cursor.fetchone()["count"]
            return stats
        finally:
            conn.close()
