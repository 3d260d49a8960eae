"""Position lifecycle, portfolio analytics and valuation engine."""

from tradejournal.engine.analytics import (
    TIMEFRAMES,
    average_profit,
    biggest_loss,
    biggest_win,
    compute_portfolio_stats,
    consistency_score,
    counts,
    duration_metrics,
    max_drawdown,
    pnl_by_date,
    pnl_by_strategy,
    pnl_by_year,
    pnl_chart,
    profit_factor,
    profit_metrics,
    timeframe_start,
    win_ratio,
)
from tradejournal.engine.ledger import (
    edit_position,
    open_position,
    record_exit,
)
from tradejournal.engine.valuation import (
    compute_valuation,
    compute_valuations,
    graham_number,
    margin_of_safety,
)

__all__ = [
    "TIMEFRAMES",
    "average_profit",
    "biggest_loss",
    "biggest_win",
    "compute_portfolio_stats",
    "consistency_score",
    "counts",
    "duration_metrics",
    "max_drawdown",
    "pnl_by_date",
    "pnl_by_strategy",
    "pnl_by_year",
    "pnl_chart",
    "profit_factor",
    "profit_metrics",
    "timeframe_start",
    "win_ratio",
    "edit_position",
    "open_position",
    "record_exit",
    "compute_valuation",
    "compute_valuations",
    "graham_number",
    "margin_of_safety",
]
