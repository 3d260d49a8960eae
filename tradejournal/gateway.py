"""Entry point for collaborators driving the journal engine.

The gateway loads positions from the store, applies ledger operations,
saves the result, and runs analytics and valuations on request. Exits
against one position id are serialized with a per-id lock so the
remaining-quantity check and the append happen as one step.
"""

import logging
import threading
from datetime import date
from typing import Any, Optional

from tradejournal.db.store import DataStore
from tradejournal.engine import analytics, ledger, valuation
from tradejournal.errors import PositionNotFound
from tradejournal.models import (
    PortfolioStatsReport,
    Position,
    ValuationInputs,
    ValuationReport,
)

logger = logging.getLogger(__name__)


class AnalyticsGateway:
    """Orchestrates the ledger, analytics and valuation over a DataStore."""

    def __init__(self, store: DataStore, valuation_cache_hours: float = 24.0):
        """Initialize the gateway.

        Args:
            store: Position store.
            valuation_cache_hours: How long a cached valuation stays valid.
                Zero disables caching.
        """
        self._store = store
        self._valuation_cache_hours = valuation_cache_hours
        self._locks: dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def _lock_for(self, position_id: str) -> threading.Lock:
        with self._locks_guard:
            return self._locks.setdefault(position_id, threading.Lock())

    def _forget_lock(self, position_id: str) -> None:
        with self._locks_guard:
            self._locks.pop(position_id, None)

    def _load_locked(self, position_id: str) -> Position:
        """Load a position while holding its lock, dropping the lock if the id is unknown."""
        try:
            return self.get_position(position_id)
        except PositionNotFound:
            self._forget_lock(position_id)
            raise

    # ==================== Positions ====================

    def open_position(
        self,
        owner_id: str,
        symbol: str,
        action: str,
        quantity: int,
        price: float,
        entry_date: date,
        **details: Any,
    ) -> Position:
        """Open and persist a new position.

        Extra keyword arguments (instrument_type, option_type, strike_price,
        expiration_date, strategy, notes) are passed to the ledger.
        """
        position = ledger.open_position(
            owner_id, symbol, action, quantity, price, entry_date, **details
        )
        self._store.save_position(position)
        return position

    def get_position(self, position_id: str) -> Position:
        """Get a position by ID.

        Raises:
            PositionNotFound: If no position has this ID.
        """
        position = self._store.get_position(position_id)
        if position is None:
            raise PositionNotFound(position_id)
        return position

    def list_positions(self, owner_id: Optional[str] = None) -> list[Position]:
        return self._store.get_positions(owner_id)

    def record_exit(
        self, position_id: str, exit_date: date, exit_price: float, exit_quantity: int
    ) -> Position:
        """Record an exit against a stored position.

        Raises:
            PositionNotFound: If no position has this ID.
            PositionClosed: If the position is already closed.
            InvalidExitQuantity: If the exit over-closes the position.
        """
        with self._lock_for(position_id):
            position = self._load_locked(position_id)
            updated = ledger.record_exit(position, exit_date, exit_price, exit_quantity)
            self._store.save_position(updated)
        return updated

    def update_position(self, position_id: str, **changes: Any) -> Position:
        """Edit non-accounting fields of a stored position."""
        with self._lock_for(position_id):
            position = self._load_locked(position_id)
            updated = ledger.edit_position(position, **changes)
            self._store.save_position(updated)
        logger.info("Updated position %s: %s", position_id, ", ".join(sorted(changes)))
        return updated

    def delete_position(self, position_id: str) -> None:
        """Delete a stored position.

        Raises:
            PositionNotFound: If no position has this ID.
        """
        with self._lock_for(position_id):
            deleted = self._store.delete_position(position_id)
        self._forget_lock(position_id)
        if not deleted:
            raise PositionNotFound(position_id)
        logger.info("Deleted position %s", position_id)

    # ==================== Analytics ====================

    def compute_portfolio_stats(self, positions: list[Position]) -> PortfolioStatsReport:
        return analytics.compute_portfolio_stats(positions)

    def portfolio_stats(self, owner_id: Optional[str] = None) -> PortfolioStatsReport:
        """Compute stats over every stored position of an owner."""
        return analytics.compute_portfolio_stats(self.list_positions(owner_id))

    # ==================== Valuation ====================

    def compute_valuation(self, inputs: ValuationInputs) -> ValuationReport:
        """Value one symbol and remember the report for cached_valuation.

        Never raises for missing fundamentals; see engine.valuation.
        Empty reports are not cached.
        """
        report = valuation.compute_valuation(inputs)
        if self._valuation_cache_hours > 0 and inputs.symbol and report.current_price > 0:
            self._store.cache_valuation(report)
        return report

    def cached_valuation(self, symbol: str) -> Optional[ValuationReport]:
        """Most recent report for a symbol if it has not expired."""
        if self._valuation_cache_hours <= 0:
            return None
        return self._store.get_cached_valuation(symbol.upper(), self._valuation_cache_hours)

    def purge_valuation_cache(self) -> int:
        """Drop expired cached valuations."""
        return self._store.purge_expired_valuations(self._valuation_cache_hours)
