"""Data models for the trade journal."""

from tradejournal.models.position import (
    CLOSED,
    OPEN,
    PARTIALLY_CLOSED,
    ExitEvent,
    Position,
    status_for,
)
from tradejournal.models.report import (
    DailyPnL,
    DurationMetrics,
    PortfolioStatsReport,
    ProfitMetrics,
    StrategyPnL,
    TradeCounts,
    TradeDuration,
    YearlyPnL,
)
from tradejournal.models.valuation import (
    BuffettEstimate,
    GrahamEstimate,
    LynchEstimate,
    ValuationInputs,
    ValuationReport,
)

__all__ = [
    "OPEN",
    "PARTIALLY_CLOSED",
    "CLOSED",
    "ExitEvent",
    "Position",
    "status_for",
    "DailyPnL",
    "DurationMetrics",
    "PortfolioStatsReport",
    "ProfitMetrics",
    "StrategyPnL",
    "TradeCounts",
    "TradeDuration",
    "YearlyPnL",
    "BuffettEstimate",
    "GrahamEstimate",
    "LynchEstimate",
    "ValuationInputs",
    "ValuationReport",
]
