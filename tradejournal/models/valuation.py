"""Valuation input and report models."""

import math
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator


def as_float(value: Any) -> float:
    """Coerce a provider value to float, treating missing or junk values as 0."""
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        parsed = float(value)
    elif isinstance(value, str):
        try:
            parsed = float(value)
        except ValueError:
            return 0.0
    else:
        return 0.0
    return parsed if math.isfinite(parsed) else 0.0


class ValuationInputs(BaseModel):
    """Per-share fundamentals and current price for one symbol."""

    symbol: str = Field(default="", description="Trading symbol")
    price: float = Field(default=0.0, description="Current market price")
    trailing_pe: float = Field(default=0.0, description="Trailing P/E ratio")
    price_to_book: float = Field(default=0.0, description="Price to book ratio")
    return_on_equity: float = Field(default=0.0, description="ROE in percent")
    operating_cf_per_share: float = Field(default=0.0, description="Operating cash flow per share")
    free_cf_per_share: float = Field(default=0.0, description="Free cash flow per share")
    shares_outstanding: float = Field(default=0.0, description="Shares outstanding")
    dividend_yield: float = Field(default=0.0, description="Dividend yield")
    eps: Optional[float] = Field(default=None, description="Explicit EPS, derived from P/E if unset")
    book_value: Optional[float] = Field(
        default=None, description="Explicit book value per share, derived from P/B if unset"
    )

    model_config = {"frozen": True}

    @field_validator(
        "price",
        "trailing_pe",
        "price_to_book",
        "return_on_equity",
        "operating_cf_per_share",
        "free_cf_per_share",
        "shares_outstanding",
        "dividend_yield",
        mode="before",
    )
    @classmethod
    def _coerce_number(cls, value: Any) -> float:
        return as_float(value)

    @field_validator("eps", "book_value", mode="before")
    @classmethod
    def _coerce_optional_number(cls, value: Any) -> Optional[float]:
        # None means derive from the ratio
        return None if value is None else as_float(value)

    @field_validator("symbol")
    @classmethod
    def _normalize_symbol(cls, value: str) -> str:
        return value.strip().upper()

    @classmethod
    def from_provider(cls, symbol: str, quote: Optional[dict], ratios: Optional[dict]) -> "ValuationInputs":
        """Build inputs from a provider quote and TTM ratios payload.

        Args:
            symbol: Trading symbol.
            quote: Quote payload with ``price`` and ``sharesOutstanding``.
            ratios: TTM ratios payload.

        Returns:
            ValuationInputs with absent fields set to 0.
        """
        quote = quote or {}
        ratios = ratios or {}
        return cls(
            symbol=symbol,
            price=quote.get("price"),
            shares_outstanding=quote.get("sharesOutstanding"),
            trailing_pe=ratios.get("priceEarningsRatioTTM"),
            price_to_book=ratios.get("priceToBookRatioTTM"),
            return_on_equity=ratios.get("returnOnEquityTTM"),
            operating_cf_per_share=ratios.get("operatingCashFlowPerShareTTM"),
            free_cf_per_share=ratios.get("freeCashFlowPerShareTTM"),
            dividend_yield=ratios.get("dividendYielTTM"),
        )


class GrahamEstimate(BaseModel):
    """Graham Number estimate."""

    graham_number: float = 0.0
    margin_of_safety: float = 0.0
    is_buy: bool = False

    model_config = {"frozen": True}


class LynchEstimate(BaseModel):
    """Peter Lynch fair value estimate."""

    sustainable_growth_rate: float = 0.0
    fair_value: float = 0.0
    margin_of_safety: float = 0.0
    is_buy: bool = False

    model_config = {"frozen": True}


class BuffettEstimate(BaseModel):
    """Owner-earnings based estimate."""

    maintenance_capex_per_share: float = 0.0
    owner_earnings_per_share: float = 0.0
    owner_earnings: float = 0.0
    buffett_value: float = 0.0
    per_share_value: float = 0.0
    margin_of_safety: float = 0.0
    is_buy: bool = False

    model_config = {"frozen": True}


class ValuationReport(BaseModel):
    """Independent intrinsic value estimates for one symbol."""

    symbol: str = Field(default="", description="Trading symbol")
    current_price: float = 0.0
    eps: float = 0.0
    book_value: float = 0.0
    pe_ratio: float = 0.0
    roe: float = 0.0
    dividend_yield: float = 0.0
    graham: GrahamEstimate = Field(default_factory=GrahamEstimate)
    lynch: LynchEstimate = Field(default_factory=LynchEstimate)
    buffett: BuffettEstimate = Field(default_factory=BuffettEstimate)

    model_config = {"frozen": True}

    @classmethod
    def empty(cls, symbol: str = "") -> "ValuationReport":
        """All-zero report used when a symbol lacks usable data."""
        return cls(symbol=symbol)

    @property
    def is_graham_buy(self) -> bool:
        return self.graham.is_buy

    @property
    def is_lynch_buy(self) -> bool:
        return self.lynch.is_buy

    @property
    def is_buffett_buy(self) -> bool:
        return self.buffett.is_buy
