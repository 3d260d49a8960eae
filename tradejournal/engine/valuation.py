"""Intrinsic value calculators.

Every estimator degrades to zero values and a False buy signal when an
input it needs is missing or non-positive. Nothing in this module raises
on bad fundamentals, so a batch over many symbols always completes.
"""

import logging
import math

from tradejournal.models import (
    BuffettEstimate,
    GrahamEstimate,
    LynchEstimate,
    ValuationInputs,
    ValuationReport,
)
from tradejournal.models.valuation import as_float

logger = logging.getLogger(__name__)

GRAHAM_MULTIPLIER = 22.5
MAINTENANCE_CAPEX_SHARE = 0.7
OWNER_EARNINGS_MULTIPLE = 12


def derive_eps(price: float, trailing_pe: float) -> float:
    return as_float(price / trailing_pe) if trailing_pe > 0 else 0.0


def derive_book_value(price: float, price_to_book: float) -> float:
    return as_float(price / price_to_book) if price_to_book > 0 else 0.0


def margin_of_safety(value: float, price: float) -> float:
    """Percentage by which an estimate exceeds the market price."""
    return as_float((value - price) / value * 100) if value > 0 else 0.0


def graham_number(eps: float, book_value: float) -> float:
    if eps > 0 and book_value > 0:
        return as_float(math.sqrt(GRAHAM_MULTIPLIER * eps * book_value))
    return 0.0


def graham_estimate(price: float, eps: float, book_value: float) -> GrahamEstimate:
    number = graham_number(eps, book_value)
    if number == 0.0:
        logger.warning("Cannot calculate Graham Number - EPS: %s, Book Value: %s", eps, book_value)
    return GrahamEstimate(
        graham_number=number,
        margin_of_safety=margin_of_safety(number, price),
        is_buy=price < number,
    )


def lynch_estimate(price: float, eps: float, trailing_pe: float, roe: float) -> LynchEstimate:
    """Peter Lynch fair value using ROE as the sustainable growth rate.

    A negative product (from a negative ROE below -100%) is floored at 0,
    which also zeroes the margin of safety.

    Args:
        price: Current market price.
        eps: Earnings per share.
        trailing_pe: Trailing P/E used as the base multiple.
        roe: Return on equity in percent.
    """
    growth = roe / 100
    fair_value = max(as_float(eps * (1 + growth) * trailing_pe), 0.0)
    if fair_value == 0.0:
        logger.warning("Cannot calculate Lynch fair value - EPS: %s, P/E: %s", eps, trailing_pe)
    return LynchEstimate(
        sustainable_growth_rate=growth,
        fair_value=fair_value,
        margin_of_safety=margin_of_safety(fair_value, price),
        is_buy=price < fair_value,
    )


def buffett_estimate(
    price: float,
    operating_cf_per_share: float,
    free_cf_per_share: float,
    shares_outstanding: float,
) -> BuffettEstimate:
    """Owner-earnings value at a fixed 12x multiple.

    Maintenance capex is taken as 70% of the gap between operating and
    free cash flow. The buy signal compares price against the total value.
    The margin of safety is measured against the per-share value rather
    than the total value, so it stays a percentage of the share price.
    """
    if operating_cf_per_share <= 0:
        logger.warning(
            "Cannot calculate owner earnings - operating cash flow per share: %s",
            operating_cf_per_share,
        )
        return BuffettEstimate()

    maintenance = (operating_cf_per_share - free_cf_per_share) * MAINTENANCE_CAPEX_SHARE
    per_share_earnings = operating_cf_per_share - maintenance
    owner_earnings = per_share_earnings * max(shares_outstanding, 0.0)
    value = owner_earnings * OWNER_EARNINGS_MULTIPLE
    per_share_value = per_share_earnings * OWNER_EARNINGS_MULTIPLE
    if not all(map(math.isfinite, (maintenance, per_share_earnings, value, per_share_value))):
        logger.warning(
            "Owner earnings overflow - operating cash flow: %s, free cash flow: %s, shares: %s",
            operating_cf_per_share,
            free_cf_per_share,
            shares_outstanding,
        )
        return BuffettEstimate()

    return BuffettEstimate(
        maintenance_capex_per_share=maintenance,
        owner_earnings_per_share=per_share_earnings,
        owner_earnings=owner_earnings,
        buffett_value=value,
        per_share_value=per_share_value,
        margin_of_safety=margin_of_safety(per_share_value, price),
        is_buy=price < value,
    )


def compute_valuation(inputs: ValuationInputs) -> ValuationReport:
    """Run all three estimators for one symbol.

    Explicit EPS and book value on the inputs take precedence over the
    values derived from price and the P/E and P/B ratios.

    Returns:
        The report, or an all-zero report when the price is unusable.
    """
    price = inputs.price
    if price <= 0:
        logger.warning("Missing price for %s, returning empty valuation", inputs.symbol or "<unknown>")
        return ValuationReport.empty(inputs.symbol)

    eps = inputs.eps if inputs.eps is not None else derive_eps(price, inputs.trailing_pe)
    book_value = (
        inputs.book_value
        if inputs.book_value is not None
        else derive_book_value(price, inputs.price_to_book)
    )

    report = ValuationReport(
        symbol=inputs.symbol,
        current_price=price,
        eps=eps,
        book_value=book_value,
        pe_ratio=inputs.trailing_pe,
        roe=inputs.return_on_equity,
        dividend_yield=inputs.dividend_yield,
        graham=graham_estimate(price, eps, book_value),
        lynch=lynch_estimate(price, eps, inputs.trailing_pe, inputs.return_on_equity),
        buffett=buffett_estimate(
            price,
            inputs.operating_cf_per_share,
            inputs.free_cf_per_share,
            inputs.shares_outstanding,
        ),
    )
    logger.info(
        "Valuations for %s: Graham=%.2f Lynch=%.2f Buffett/share=%.2f",
        inputs.symbol,
        report.graham.graham_number,
        report.lynch.fair_value,
        report.buffett.per_share_value,
    )
    return report


def compute_valuations(inputs_list: list[ValuationInputs]) -> list[ValuationReport]:
    """Value many symbols; a symbol lacking data yields an empty report."""
    return [compute_valuation(inputs) for inputs in inputs_list]
