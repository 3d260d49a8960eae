"""Valuation command for tradejournal CLI."""

from typing import Optional

import click
from rich.panel import Panel
from rich.table import Table

from tradejournal.cli.main import console, fail, get_gateway
from tradejournal.models import ValuationInputs, ValuationReport


def _signal(is_buy: bool) -> str:
    return "[bold green]BUY[/bold green]" if is_buy else "[dim]-[/dim]"


def _render(report: ValuationReport) -> None:
    table = Table(
        title=f"Intrinsic Value: {report.symbol or '-'} @ {report.current_price:,.2f}",
        show_header=True,
        header_style="bold cyan",
    )
    table.add_column("Model", style="bold")
    table.add_column("Value", justify="right")
    table.add_column("Margin of Safety", justify="right")
    table.add_column("Signal", justify="center")

    table.add_row(
        "Graham Number",
        f"{report.graham.graham_number:,.2f}",
        f"{report.graham.margin_of_safety:.2f}%",
        _signal(report.is_graham_buy),
    )
    table.add_row(
        "Lynch Fair Value",
        f"{report.lynch.fair_value:,.2f}",
        f"{report.lynch.margin_of_safety:.2f}%",
        _signal(report.is_lynch_buy),
    )
    table.add_row(
        "Buffett (per share)",
        f"{report.buffett.per_share_value:,.2f}",
        f"{report.buffett.margin_of_safety:.2f}%",
        _signal(report.is_buffett_buy),
    )

    console.print(table)
    console.print(
        f"[dim]EPS {report.eps:.2f} | Book value {report.book_value:.2f} | "
        f"P/E {report.pe_ratio:.2f} | ROE {report.roe:.2f}% | "
        f"Owner earnings {report.buffett.owner_earnings:,.0f}[/dim]"
    )


@click.command()
@click.argument("symbol")
@click.option("-p", "--price", type=float, default=None, help="Current market price.")
@click.option("--pe", type=float, default=0.0, help="Trailing P/E ratio.")
@click.option("--pb", type=float, default=0.0, help="Price to book ratio.")
@click.option("--roe", type=float, default=0.0, help="Return on equity (percent).")
@click.option("--ocf", type=float, default=0.0, help="Operating cash flow per share.")
@click.option("--fcf", type=float, default=0.0, help="Free cash flow per share.")
@click.option("--shares", type=float, default=0.0, help="Shares outstanding.")
@click.option("--eps", type=float, default=None, help="EPS override (otherwise price / P/E).")
@click.option("--book", type=float, default=None, help="Book value per share override (otherwise price / P/B).")
@click.option("--cached", is_flag=True, default=False, help="Show the last cached valuation instead.")
def value(
    symbol: str,
    price: Optional[float],
    pe: float,
    pb: float,
    roe: float,
    ocf: float,
    fcf: float,
    shares: float,
    eps: Optional[float],
    book: Optional[float],
    cached: bool,
) -> None:
    """Estimate intrinsic value from per-share fundamentals.

    Missing fundamentals zero out only the estimates that need them.

    \b
    Examples:
      tradejournal value KO -p 60 --pe 24 --pb 10 --roe 40
      tradejournal value KO --cached
    """
    gateway = get_gateway()

    if cached:
        report = gateway.cached_valuation(symbol)
        if report is None:
            fail(f"No cached valuation for {symbol.upper()}", title="Not Found")
        _render(report)
        return

    if price is None:
        fail("--price is required unless --cached is given.")

    inputs = ValuationInputs(
        symbol=symbol,
        price=price,
        trailing_pe=pe,
        price_to_book=pb,
        return_on_equity=roe,
        operating_cf_per_share=ocf,
        free_cf_per_share=fcf,
        shares_outstanding=shares,
        eps=eps,
        book_value=book,
    )
    _render(gateway.compute_valuation(inputs))
