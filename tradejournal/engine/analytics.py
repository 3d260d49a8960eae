"""Portfolio analytics over a collection of positions.

All functions are read-only. A position counts as closed once it has
realized profit, that is when its status is CLOSED or PARTIALLY_CLOSED.
"""

import logging
from datetime import date
from typing import Optional

import pandas as pd

from tradejournal.models import (
    OPEN,
    DailyPnL,
    DurationMetrics,
    PortfolioStatsReport,
    Position,
    ProfitMetrics,
    StrategyPnL,
    TradeCounts,
    TradeDuration,
    YearlyPnL,
)

logger = logging.getLogger(__name__)

# Start of history for the ALL timeframe.
ALL_TIME_START = date(2000, 1, 1)

TIMEFRAME_OFFSETS = {
    "1W": pd.DateOffset(weeks=1),
    "1M": pd.DateOffset(months=1),
    "3M": pd.DateOffset(months=3),
    "6M": pd.DateOffset(months=6),
    "1Y": pd.DateOffset(years=1),
}

TIMEFRAMES = [*TIMEFRAME_OFFSETS, "YTD", "ALL"]


def closed_positions(positions: list[Position]) -> list[Position]:
    """Positions with realized profit, in input order."""
    return [p for p in positions if p.is_realized]


def _realized_profits(positions: list[Position]) -> list[float]:
    return [p.total_profit for p in closed_positions(positions) if p.total_profit is not None]


# ==================== Counts and ratios ====================


def counts(positions: list[Position]) -> TradeCounts:
    """Count total, open and closed positions."""
    return TradeCounts(
        total=len(positions),
        open=sum(1 for p in positions if p.status == OPEN),
        closed=len(closed_positions(positions)),
    )


def win_ratio(positions: list[Position]) -> float:
    """Fraction of closed positions with positive total profit."""
    closed = closed_positions(positions)
    if not closed:
        return 0.0
    winners = sum(1 for p in closed if p.total_profit is not None and p.total_profit > 0)
    return winners / len(closed)


def average_profit(positions: list[Position]) -> float:
    profits = _realized_profits(positions)
    return sum(profits) / len(profits) if profits else 0.0


def biggest_win(positions: list[Position]) -> Optional[float]:
    """Largest positive total profit, or None when nothing was won."""
    wins = [p for p in _realized_profits(positions) if p > 0]
    return max(wins) if wins else None


def biggest_loss(positions: list[Position]) -> Optional[float]:
    """Most negative total profit, or None when nothing was lost."""
    losses = [p for p in _realized_profits(positions) if p < 0]
    return min(losses) if losses else None


# ==================== Profit metrics ====================


def gross_profits(positions: list[Position]) -> float:
    return sum(p for p in _realized_profits(positions) if p > 0)


def gross_losses(positions: list[Position]) -> float:
    """Sum of losses as a positive number."""
    return abs(sum(p for p in _realized_profits(positions) if p < 0))


def profit_factor(positions: list[Position]) -> float:
    """Gross profits over gross losses.

    With no losses the factor is the gross profit itself rather than
    infinity.
    """
    profits = gross_profits(positions)
    losses = gross_losses(positions)
    return profits / losses if losses > 0 else profits


def _by_last_exit(positions: list[Position]) -> list[Position]:
    # sorted() is stable, so same-day exits keep input order
    with_exits = [p for p in closed_positions(positions) if p.exits and p.total_profit is not None]
    return sorted(with_exits, key=lambda p: p.last_exit_date)


def max_drawdown(positions: list[Position]) -> float:
    """Largest peak-to-trough fall of cumulative realized profit.

    Positions are replayed in order of their last exit date, starting
    from zero equity.
    """
    peak = 0.0
    equity = 0.0
    drawdown = 0.0
    for position in _by_last_exit(positions):
        equity += position.total_profit
        peak = max(peak, equity)
        drawdown = max(drawdown, peak - equity)
    return drawdown


def consistency_score(positions: list[Position]) -> float:
    """Composite 0-100 score from win ratio, profit factor and trade count."""
    closed_count = len(closed_positions(positions))
    score = (
        win_ratio(positions) * 40
        + min(profit_factor(positions) / 3.0, 1.0) * 30
        + min(closed_count / 20.0, 1.0) * 30
    )
    return min(max(score, 0.0), 100.0)


def profit_metrics(positions: list[Position]) -> ProfitMetrics:
    metrics = ProfitMetrics(
        profit_factor=profit_factor(positions),
        gross_profits=gross_profits(positions),
        gross_losses=gross_losses(positions),
        max_drawdown=max_drawdown(positions),
        consistency_score=consistency_score(positions),
    )
    logger.debug("Profit metrics: %s", metrics)
    return metrics


# ==================== P&L breakdowns ====================


def pnl_by_date(positions: list[Position], start_date: date, end_date: date) -> list[DailyPnL]:
    """Realized profit bucketed by each position's last exit date.

    Args:
        positions: Positions to aggregate.
        start_date: First date included.
        end_date: Last date included.

    Returns:
        One entry per date with activity, oldest first.
    """
    daily: dict[date, float] = {}
    for position in _by_last_exit(positions):
        exit_date = position.last_exit_date
        if start_date <= exit_date <= end_date:
            daily[exit_date] = daily.get(exit_date, 0.0) + position.total_profit
    return [DailyPnL(date=d, pnl=pnl) for d, pnl in sorted(daily.items())]


def timeframe_start(timeframe: str, today: Optional[date] = None) -> date:
    """First date covered by a chart timeframe such as 1M or YTD.

    Raises:
        ValueError: If the timeframe is not one of TIMEFRAMES.
    """
    today = today or date.today()
    key = timeframe.upper()
    if key == "YTD":
        return date(today.year, 1, 1)
    if key == "ALL":
        return ALL_TIME_START
    if key not in TIMEFRAME_OFFSETS:
        raise ValueError(f"Invalid timeframe: {timeframe}. Must be one of {TIMEFRAMES}")
    return (pd.Timestamp(today) - TIMEFRAME_OFFSETS[key]).date()


def pnl_chart(positions: list[Position], timeframe: str, today: Optional[date] = None) -> list[DailyPnL]:
    """Daily realized P&L from the start of a timeframe through today."""
    today = today or date.today()
    return pnl_by_date(positions, timeframe_start(timeframe, today), today)


def pnl_by_strategy(positions: list[Position]) -> list[StrategyPnL]:
    """Realized P&L grouped by strategy tag, best strategy first."""
    groups: dict[str, list[Position]] = {}
    for position in closed_positions(positions):
        if position.strategy and position.total_profit is not None:
            groups.setdefault(position.strategy, []).append(position)

    results = []
    for strategy, members in groups.items():
        total = sum(p.total_profit for p in members)
        winners = sum(1 for p in members if p.total_profit > 0)
        results.append(
            StrategyPnL(
                strategy=strategy,
                total_pnl=total,
                trade_count=len(members),
                win_ratio=winners / len(members),
                avg_pnl=total / len(members),
            )
        )
    results.sort(key=lambda s: s.total_pnl, reverse=True)
    return results


def pnl_by_year(positions: list[Position], year: int) -> YearlyPnL:
    """Sum of per-exit profit for exits dated in the given year.

    A position whose exits span years contributes to each year only the
    profit of the exits made in it.
    """
    total = sum(
        e.profit for p in positions for e in p.exits if e.exit_date.year == year
    )
    return YearlyPnL(year=year, total_pnl=total)


def duration_metrics(positions: list[Position]) -> DurationMetrics:
    """Calendar days from entry to last exit for each realized position."""
    durations = [
        TradeDuration(
            position_id=p.id,
            symbol=p.symbol,
            entry_date=p.entry_date,
            exit_date=p.last_exit_date,
            days_held=(p.last_exit_date - p.entry_date).days,
        )
        for p in closed_positions(positions)
        if p.exits
    ]
    average = sum(d.days_held for d in durations) / len(durations) if durations else 0.0
    return DurationMetrics(average_duration=average, durations=durations)


# ==================== Report ====================


def compute_portfolio_stats(positions: list[Position]) -> PortfolioStatsReport:
    """Compute every aggregate statistic for a snapshot of positions."""
    snapshot = list(positions)
    report = PortfolioStatsReport(
        counts=counts(snapshot),
        win_ratio=win_ratio(snapshot),
        average_profit=average_profit(snapshot),
        biggest_win=biggest_win(snapshot),
        biggest_loss=biggest_loss(snapshot),
        profit=profit_metrics(snapshot),
        strategies=pnl_by_strategy(snapshot),
        durations=duration_metrics(snapshot),
    )
    logger.debug(
        "Portfolio stats over %d positions: win_ratio=%.3f profit_factor=%.3f",
        report.counts.total,
        report.win_ratio,
        report.profit.profit_factor,
    )
    return report
