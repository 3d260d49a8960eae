"""Portfolio analytics report models."""

from datetime import date as date_type
from typing import Optional

from pydantic import BaseModel, Field


class TradeCounts(BaseModel):
    """Position counts by lifecycle bucket."""

    total: int = Field(..., ge=0, description="All positions")
    open: int = Field(..., ge=0, description="Positions with no exits")
    closed: int = Field(..., ge=0, description="Closed or partially closed positions")

    model_config = {"frozen": True}


class DailyPnL(BaseModel):
    """Realized P&L bucketed on one exit date."""

    date: date_type
    pnl: float

    model_config = {"frozen": True}


class StrategyPnL(BaseModel):
    """Realized P&L for one strategy tag."""

    strategy: str
    total_pnl: float
    trade_count: int = Field(..., ge=0)
    win_ratio: float = Field(..., ge=0, le=1)
    avg_pnl: float

    model_config = {"frozen": True}


class YearlyPnL(BaseModel):
    """Realized P&L attributed to one calendar year."""

    year: int
    total_pnl: float

    model_config = {"frozen": True}


class TradeDuration(BaseModel):
    """Holding period of one realized position."""

    position_id: str
    symbol: str
    entry_date: date_type
    exit_date: date_type
    days_held: int

    model_config = {"frozen": True}


class DurationMetrics(BaseModel):
    """Holding periods and their mean."""

    average_duration: float = 0.0
    durations: list[TradeDuration] = Field(default_factory=list)

    model_config = {"frozen": True}


class ProfitMetrics(BaseModel):
    """Risk and consistency metrics over realized positions."""

    profit_factor: float
    gross_profits: float = Field(..., ge=0)
    gross_losses: float = Field(..., ge=0)
    max_drawdown: float = Field(..., ge=0)
    consistency_score: float = Field(..., ge=0, le=100)

    model_config = {"frozen": True}


class PortfolioStatsReport(BaseModel):
    """Aggregate statistics for a collection of positions."""

    counts: TradeCounts
    win_ratio: float = Field(..., ge=0, le=1)
    average_profit: float
    biggest_win: Optional[float] = Field(default=None, description="None when no winning position")
    biggest_loss: Optional[float] = Field(default=None, description="None when no losing position")
    profit: ProfitMetrics
    strategies: list[StrategyPnL] = Field(default_factory=list)
    durations: DurationMetrics = Field(default_factory=DurationMetrics)

    model_config = {"frozen": True}
