"""Property-based tests for portfolio analytics.

**Feature: trade-journal**
"""

from datetime import date, timedelta

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from tradejournal.engine import analytics
from tradejournal.engine.ledger import open_position, record_exit
from tradejournal.models import Position


def _position(
    profit: float | None = None,
    exit_date: date = date(2024, 3, 1),
    entry_date: date = date(2024, 1, 2),
    strategy: str | None = None,
    symbol: str = "AAPL",
) -> Position:
    """A one-share position at 1000, closed for the given profit if one is given."""
    position = open_position(
        owner_id="user-1",
        symbol=symbol,
        action="BUY",
        quantity=1,
        price=1000.0,
        entry_date=entry_date,
        strategy=strategy,
    )
    if profit is not None:
        position = record_exit(position, exit_date, 1000.0 + profit, 1)
    return position


def _partial(profit_per_share: float, exit_date: date = date(2024, 3, 1)) -> Position:
    position = open_position("user-1", "MSFT", "BUY", 10, 50.0, date(2024, 1, 2))
    return record_exit(position, exit_date, 50.0 + profit_per_share, 4)


class TestWinLossScenario:
    """Two closed positions with +100 and -40 and no open positions."""

    @pytest.fixture
    def positions(self):
        return [_position(100.0), _position(-40.0)]

    def test_win_ratio(self, positions):
        assert analytics.win_ratio(positions) == pytest.approx(0.5)

    def test_profit_factor(self, positions):
        assert analytics.profit_factor(positions) == pytest.approx(2.5)

    def test_biggest_win_and_loss(self, positions):
        assert analytics.biggest_win(positions) == pytest.approx(100.0)
        assert analytics.biggest_loss(positions) == pytest.approx(-40.0)

    def test_average_profit(self, positions):
        assert analytics.average_profit(positions) == pytest.approx(30.0)

    def test_gross_values(self, positions):
        assert analytics.gross_profits(positions) == pytest.approx(100.0)
        assert analytics.gross_losses(positions) == pytest.approx(40.0)

    def test_consistency_score(self, positions):
        # 0.5 * 40 + (2.5 / 3) * 30 + (2 / 20) * 30
        assert analytics.consistency_score(positions) == pytest.approx(48.0)


class TestEmptyAndDegenerateInputs:
    """Aggregates never divide by zero and keep absent values distinct."""

    def test_no_positions(self):
        assert analytics.win_ratio([]) == 0.0
        assert analytics.average_profit([]) == 0.0
        assert analytics.profit_factor([]) == 0.0
        assert analytics.max_drawdown([]) == 0.0
        assert analytics.biggest_win([]) is None
        assert analytics.biggest_loss([]) is None

    def test_only_open_positions(self):
        positions = [_position(), _position()]
        assert analytics.win_ratio(positions) == 0.0
        assert analytics.counts(positions).open == 2
        assert analytics.counts(positions).closed == 0

    def test_zero_profit_trade_is_neither_win_nor_loss(self):
        positions = [_position(0.0)]
        assert analytics.biggest_win(positions) is None
        assert analytics.biggest_loss(positions) is None
        assert analytics.win_ratio(positions) == 0.0

    def test_profit_factor_without_losses(self):
        positions = [_position(100.0), _position(50.0)]
        assert analytics.profit_factor(positions) == pytest.approx(150.0)

    def test_consistency_score_is_capped(self):
        positions = [_position(10.0) for _ in range(25)]
        assert analytics.consistency_score(positions) == pytest.approx(100.0)

    def test_consistency_score_all_losses(self):
        positions = [_position(-10.0), _position(-5.0)]
        # win ratio 0, profit factor 0, two trades
        assert analytics.consistency_score(positions) == pytest.approx(3.0)


class TestCounts:
    def test_counts_by_bucket(self):
        positions = [_position(), _position(10.0), _partial(1.0)]
        counts = analytics.counts(positions)

        assert counts.total == 3
        assert counts.open == 1
        assert counts.closed == 2

    def test_partially_closed_counts_as_realized(self):
        positions = [_partial(2.0)]
        assert analytics.win_ratio(positions) == 1.0
        assert analytics.biggest_win(positions) == pytest.approx(8.0)


class TestMaxDrawdown:
    """Drawdown replays realized positions in order of their last exit."""

    def test_replay_uses_exit_date_order(self):
        positions = [
            _position(30.0, exit_date=date(2024, 3, 3)),
            _position(100.0, exit_date=date(2024, 3, 1)),
            _position(-20.0, exit_date=date(2024, 3, 4)),
            _position(-150.0, exit_date=date(2024, 3, 2)),
        ]
        # equity 100, -50, -20, -40 against a peak of 100
        assert analytics.max_drawdown(positions) == pytest.approx(150.0)

    def test_losses_from_start_count_against_zero(self):
        positions = [_position(-10.0), _position(-20.0, exit_date=date(2024, 3, 2))]
        assert analytics.max_drawdown(positions) == pytest.approx(30.0)

    def test_same_day_exits_keep_input_order(self):
        loss = _position(-80.0, exit_date=date(2024, 3, 1))
        gain = _position(100.0, exit_date=date(2024, 3, 1))
        later = _position(-90.0, exit_date=date(2024, 3, 2))

        assert analytics.max_drawdown([loss, gain, later]) == pytest.approx(90.0)
        assert analytics.max_drawdown([gain, loss, later]) == pytest.approx(170.0)

    def test_open_positions_are_ignored(self):
        assert analytics.max_drawdown([_position(), _position(-5.0)]) == pytest.approx(5.0)


class TestPnLByDate:
    def test_buckets_by_last_exit_date_inclusive(self):
        positions = [
            _position(10.0, exit_date=date(2024, 3, 1)),
            _position(5.0, exit_date=date(2024, 3, 1)),
            _position(-7.0, exit_date=date(2024, 3, 5)),
            _position(99.0, exit_date=date(2024, 2, 28)),
            _position(),
        ]
        points = analytics.pnl_by_date(positions, date(2024, 3, 1), date(2024, 3, 5))

        assert [p.date for p in points] == [date(2024, 3, 1), date(2024, 3, 5)]
        assert points[0].pnl == pytest.approx(15.0)
        assert points[1].pnl == pytest.approx(-7.0)

    def test_uses_total_profit_on_last_exit(self):
        position = open_position("user-1", "AAPL", "BUY", 2, 10.0, date(2024, 1, 2))
        position = record_exit(position, date(2024, 2, 1), 15.0, 1)
        position = record_exit(position, date(2024, 3, 1), 12.0, 1)

        points = analytics.pnl_by_date([position], date(2024, 1, 1), date(2024, 12, 31))
        assert len(points) == 1
        assert points[0].date == date(2024, 3, 1)
        assert points[0].pnl == pytest.approx(7.0)

    def test_pnl_chart_uses_timeframe(self):
        today = date(2024, 6, 30)
        positions = [
            _position(10.0, exit_date=date(2024, 6, 25)),
            _position(20.0, exit_date=date(2024, 5, 1)),
        ]
        points = analytics.pnl_chart(positions, "1W", today=today)
        assert [p.pnl for p in points] == [pytest.approx(10.0)]


class TestTimeframeStart:
    @pytest.mark.parametrize(
        "timeframe,expected",
        [
            ("1W", date(2024, 3, 24)),
            ("1M", date(2024, 2, 29)),
            ("3M", date(2023, 12, 31)),
            ("6M", date(2023, 9, 30)),
            ("1Y", date(2023, 3, 31)),
            ("YTD", date(2024, 1, 1)),
            ("ALL", date(2000, 1, 1)),
            ("ytd", date(2024, 1, 1)),
        ],
    )
    def test_start_dates(self, timeframe, expected):
        assert analytics.timeframe_start(timeframe, today=date(2024, 3, 31)) == expected

    def test_invalid_timeframe(self):
        with pytest.raises(ValueError):
            analytics.timeframe_start("2D", today=date(2024, 3, 31))


class TestPnLByStrategy:
    def test_groups_and_sorts(self):
        positions = [
            _position(10.0, strategy="Breakout"),
            _position(-30.0, strategy="Breakout"),
            _position(50.0, strategy="Swing"),
            _position(25.0, strategy="Swing"),
            _position(5.0, strategy=""),
            _position(5.0),
            _position(strategy="Swing"),
        ]
        rows = analytics.pnl_by_strategy(positions)

        assert [r.strategy for r in rows] == ["Swing", "Breakout"]
        swing, breakout = rows
        assert swing.total_pnl == pytest.approx(75.0)
        assert swing.trade_count == 2
        assert swing.win_ratio == pytest.approx(1.0)
        assert swing.avg_pnl == pytest.approx(37.5)
        assert breakout.total_pnl == pytest.approx(-20.0)
        assert breakout.win_ratio == pytest.approx(0.5)
        assert breakout.avg_pnl == pytest.approx(-10.0)


class TestPnLByYear:
    """Yearly P&L attributes each exit's profit to the year of that exit."""

    def test_exits_spanning_years(self):
        position = open_position("user-1", "AAPL", "BUY", 2, 10.0, date(2022, 11, 1))
        position = record_exit(position, date(2022, 12, 1), 60.0, 1)
        position = record_exit(position, date(2023, 3, 1), 40.0, 1)

        assert analytics.pnl_by_year([position], 2023).total_pnl == pytest.approx(30.0)
        assert analytics.pnl_by_year([position], 2022).total_pnl == pytest.approx(50.0)
        assert analytics.pnl_by_year([position], 2021).total_pnl == 0.0

    def test_partial_positions_contribute(self):
        result = analytics.pnl_by_year([_partial(1.0, exit_date=date(2023, 5, 5))], 2023)
        assert result.year == 2023
        assert result.total_pnl == pytest.approx(4.0)


class TestDurationMetrics:
    def test_days_held_and_average(self):
        positions = [
            _position(1.0, entry_date=date(2024, 1, 1), exit_date=date(2024, 1, 11)),
            _position(-1.0, entry_date=date(2024, 2, 1), exit_date=date(2024, 2, 1)),
            _position(),
        ]
        metrics = analytics.duration_metrics(positions)

        assert [d.days_held for d in metrics.durations] == [10, 0]
        assert metrics.average_duration == pytest.approx(5.0)

    def test_no_realized_positions(self):
        metrics = analytics.duration_metrics([_position()])
        assert metrics.durations == []
        assert metrics.average_duration == 0.0


def position_strategy():
    """Generate open, partially closed and closed positions."""

    @st.composite
    def build(draw):
        quantity = draw(st.integers(min_value=1, max_value=100))
        price = draw(st.floats(min_value=1.0, max_value=1000.0, allow_nan=False, allow_infinity=False))
        position = open_position(
            "user-1",
            draw(st.sampled_from(["AAPL", "MSFT", "TSLA"])),
            draw(st.sampled_from(["BUY", "SELL"])),
            quantity,
            price,
            date(2023, 1, 1) + timedelta(days=draw(st.integers(min_value=0, max_value=300))),
            strategy=draw(st.sampled_from([None, "Breakout", "Swing"])),
        )
        exit_qty = draw(st.integers(min_value=0, max_value=quantity))
        if exit_qty:
            exit_price = draw(st.floats(min_value=1.0, max_value=1000.0, allow_nan=False, allow_infinity=False))
            exit_day = position.entry_date + timedelta(days=draw(st.integers(min_value=0, max_value=200)))
            position = record_exit(position, exit_day, exit_price, exit_qty)
        return position

    return build()


class TestPortfolioStatsProperties:
    """
    **Feature: trade-journal, Property: Read Path Idempotence**

    *For any* unchanged list of positions, computing portfolio stats twice
    yields identical reports, and bounded metrics stay in range.
    """

    @given(positions=st.lists(position_strategy(), min_size=0, max_size=30))
    @settings(max_examples=50, deadline=None)
    def test_stats_are_idempotent(self, positions):
        first = analytics.compute_portfolio_stats(positions)
        second = analytics.compute_portfolio_stats(positions)
        assert first == second

    @given(positions=st.lists(position_strategy(), min_size=0, max_size=30))
    @settings(max_examples=50, deadline=None)
    def test_bounded_metrics(self, positions):
        report = analytics.compute_portfolio_stats(positions)

        assert 0.0 <= report.win_ratio <= 1.0
        assert 0.0 <= report.profit.consistency_score <= 100.0
        assert report.profit.max_drawdown >= 0.0
        assert report.counts.total == len(positions)
        assert report.counts.open + report.counts.closed == report.counts.total
        if report.biggest_win is not None:
            assert report.biggest_win > 0
        if report.biggest_loss is not None:
            assert report.biggest_loss < 0
