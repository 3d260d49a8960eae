"""Tests for the analytics gateway over a real store.

**Feature: trade-journal**
"""

import tempfile
import threading
from datetime import date
from pathlib import Path

import pytest

from tradejournal.db.store import DataStore
from tradejournal.errors import InvalidExitQuantity, PositionClosed, PositionNotFound
from tradejournal.gateway import AnalyticsGateway
from tradejournal.models import ValuationInputs


@pytest.fixture
def store():
    with tempfile.TemporaryDirectory() as tmpdir:
        yield DataStore(Path(tmpdir) / "test.db")


@pytest.fixture
def gateway(store):
    return AnalyticsGateway(store)


def _open(gateway: AnalyticsGateway, quantity: int = 100, **details):
    return gateway.open_position("user-1", "AAPL", "BUY", quantity, 10.0, date(2024, 1, 2), **details)


KO_INPUTS = ValuationInputs(symbol="ko", price=40.0, trailing_pe=8.0, price_to_book=2.0, return_on_equity=20.0)


class TestPositionLifecycle:
    def test_open_persists(self, gateway, store):
        position = _open(gateway, strategy="Breakout")
        assert store.get_position(position.id) == position
        assert gateway.get_position(position.id) == position

    def test_exits_are_saved(self, gateway, store):
        position = _open(gateway)
        gateway.record_exit(position.id, date(2024, 2, 1), 15.0, 40)
        updated = gateway.record_exit(position.id, date(2024, 3, 1), 12.0, 60)

        stored = store.get_position(position.id)
        assert stored == updated
        assert stored.status == "CLOSED"
        assert stored.total_profit == pytest.approx(320.0)

    def test_unknown_position(self, gateway):
        with pytest.raises(PositionNotFound) as excinfo:
            gateway.record_exit("missing", date(2024, 2, 1), 15.0, 1)
        assert excinfo.value.position_id == "missing"

        with pytest.raises(PositionNotFound):
            gateway.get_position("missing")

    def test_rejected_exit_leaves_store_unchanged(self, gateway, store):
        position = _open(gateway)
        gateway.record_exit(position.id, date(2024, 2, 1), 15.0, 40)
        before = store.get_position(position.id)

        with pytest.raises(InvalidExitQuantity):
            gateway.record_exit(position.id, date(2024, 2, 2), 15.0, 61)

        assert store.get_position(position.id) == before

    def test_closed_position_rejects_exit(self, gateway):
        position = _open(gateway, quantity=10)
        gateway.record_exit(position.id, date(2024, 2, 1), 15.0, 10)

        with pytest.raises(PositionClosed):
            gateway.record_exit(position.id, date(2024, 2, 2), 15.0, 1)

    def test_update_position(self, gateway, store):
        position = _open(gateway)
        gateway.record_exit(position.id, date(2024, 2, 1), 15.0, 40)
        updated = gateway.update_position(position.id, notes="trailing stop", strategy="Swing")

        stored = store.get_position(position.id)
        assert stored == updated
        assert stored.notes == "trailing stop"
        assert stored.total_profit == pytest.approx(200.0)

    def test_update_rejects_accounting_fields(self, gateway):
        position = _open(gateway)
        with pytest.raises(ValueError):
            gateway.update_position(position.id, quantity=5)

    def test_delete_position(self, gateway, store):
        position = _open(gateway)
        gateway.delete_position(position.id)

        assert store.get_position(position.id) is None
        with pytest.raises(PositionNotFound):
            gateway.delete_position(position.id)

    def test_list_positions_by_owner(self, gateway):
        _open(gateway)
        gateway.open_position("user-2", "MSFT", "SELL", 5, 300.0, date(2024, 1, 3))

        assert [p.symbol for p in gateway.list_positions("user-1")] == ["AAPL"]
        assert len(gateway.list_positions()) == 2


class TestConcurrentExits:
    """Concurrent exits on one position never over-close it."""

    def test_parallel_exits_serialize(self, gateway, store):
        position = _open(gateway, quantity=10)
        outcomes = []
        outcomes_lock = threading.Lock()
        start = threading.Barrier(20)

        def worker():
            start.wait()
            try:
                gateway.record_exit(position.id, date(2024, 2, 1), 11.0, 1)
                result = "ok"
            except (InvalidExitQuantity, PositionClosed):
                result = "rejected"
            with outcomes_lock:
                outcomes.append(result)

        threads = [threading.Thread(target=worker) for _ in range(20)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert outcomes.count("ok") == 10
        assert outcomes.count("rejected") == 10
        stored = store.get_position(position.id)
        assert stored.remaining_quantity == 0
        assert len(stored.exits) == 10


class TestPortfolioStats:
    def test_stats_over_stored_positions(self, gateway):
        winner = _open(gateway)
        gateway.record_exit(winner.id, date(2024, 2, 1), 15.0, 100)
        loser = _open(gateway)
        gateway.record_exit(loser.id, date(2024, 2, 2), 8.0, 100)
        _open(gateway)

        report = gateway.portfolio_stats("user-1")
        assert report.counts.total == 3
        assert report.counts.closed == 2
        assert report.counts.open == 1
        assert report.win_ratio == pytest.approx(0.5)
        assert report.profit.gross_profits == pytest.approx(500.0)
        assert report.profit.gross_losses == pytest.approx(200.0)

    def test_empty_portfolio(self, gateway):
        report = gateway.compute_portfolio_stats([])
        assert report.counts.total == 0
        assert report.biggest_win is None


class TestValuationCaching:
    def test_compute_caches_report(self, gateway):
        report = gateway.compute_valuation(KO_INPUTS)
        assert report.symbol == "KO"
        assert gateway.cached_valuation("ko") == report

    def test_empty_report_is_not_cached(self, gateway):
        gateway.compute_valuation(ValuationInputs(symbol="BAD", price=0))
        assert gateway.cached_valuation("BAD") is None

    def test_caching_disabled(self, store):
        gateway = AnalyticsGateway(store, valuation_cache_hours=0)
        gateway.compute_valuation(KO_INPUTS)

        assert gateway.cached_valuation("KO") is None
        assert store.get_cached_valuation("KO") is None

    def test_purge_keeps_fresh_entries(self, gateway):
        gateway.compute_valuation(KO_INPUTS)
        assert gateway.purge_valuation_cache() == 0
        assert gateway.cached_valuation("KO") is not None

    def test_extreme_fundamentals_reload_from_cache(self, gateway):
        report = gateway.compute_valuation(
            ValuationInputs(
                symbol="Y",
                price=40.0,
                operating_cf_per_share=1e200,
                free_cf_per_share=1e200,
                shares_outstanding=1e200,
            )
        )
        assert gateway.cached_valuation("Y") == report
        assert report.buffett.buffett_value == 0.0

    def test_nan_eps_reloads_from_cache(self, gateway):
        report = gateway.compute_valuation(ValuationInputs(symbol="X", price=40.0, eps=float("nan")))
        assert gateway.cached_valuation("X") == report


class TestLockBookkeeping:
    """Locks are only kept for ids that exist."""

    def test_unknown_id_leaves_no_lock(self, gateway):
        with pytest.raises(PositionNotFound):
            gateway.record_exit("missing", date(2024, 2, 1), 15.0, 1)
        with pytest.raises(PositionNotFound):
            gateway.update_position("missing", notes="x")
        with pytest.raises(PositionNotFound):
            gateway.delete_position("missing")

        assert "missing" not in gateway._locks

    def test_lock_dropped_after_delete(self, gateway):
        position = _open(gateway)
        gateway.record_exit(position.id, date(2024, 2, 1), 15.0, 10)
        assert position.id in gateway._locks

        gateway.delete_position(position.id)
        assert position.id not in gateway._locks
