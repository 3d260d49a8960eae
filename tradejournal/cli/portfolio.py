"""Portfolio analytics commands for tradejournal CLI.

Handles portfolio statistics, P&L charts, strategy and yearly
breakdowns, and holding durations.
"""

from datetime import date

import click
from rich.panel import Panel
from rich.table import Table

from tradejournal.cli.main import console, fail, get_gateway, get_owner_id, signed
from tradejournal.engine import analytics


def _load_positions() -> list:
    return get_gateway().list_positions(get_owner_id())


@click.command()
def stats() -> None:
    """Display portfolio statistics.

    Shows counts, win ratio, profit factor, drawdown and the
    consistency score over realized positions.
    """
    report = get_gateway().compute_portfolio_stats(_load_positions())

    if report.counts.total == 0:
        console.print(Panel(
            "[dim]No positions recorded yet[/dim]",
            title="[bold]Portfolio Stats[/bold]",
            border_style="dim",
        ))
        return

    counts = report.counts
    profit = report.profit
    biggest_win = signed(report.biggest_win) if report.biggest_win is not None else "[dim]none[/dim]"
    biggest_loss = signed(report.biggest_loss) if report.biggest_loss is not None else "[dim]none[/dim]"

    console.print(Panel(
        f"[bold]Positions:[/bold] {counts.total}  "
        f"([cyan]{counts.open} open[/cyan], {counts.closed} closed)\n\n"
        f"[bold]Win Ratio:[/bold] {report.win_ratio * 100:.1f}%\n"
        f"[bold]Average P&L:[/bold] {signed(report.average_profit)}\n"
        f"[bold]Biggest Win:[/bold] {biggest_win}\n"
        f"[bold]Biggest Loss:[/bold] {biggest_loss}\n\n"
        f"[bold]Gross Profits:[/bold] {profit.gross_profits:,.2f}\n"
        f"[bold]Gross Losses:[/bold] {profit.gross_losses:,.2f}\n"
        f"[bold]Profit Factor:[/bold] {profit.profit_factor:.2f}\n"
        f"[bold]Max Drawdown:[/bold] {profit.max_drawdown:,.2f}\n"
        f"[bold]Consistency Score:[/bold] {profit.consistency_score:.0f}/100\n\n"
        f"[bold]Avg Holding Period:[/bold] {report.durations.average_duration:.1f} days",
        title="[bold]Portfolio Stats[/bold]",
        border_style="cyan",
    ))


@click.command()
@click.option(
    "-t", "--timeframe",
    type=click.Choice(analytics.TIMEFRAMES, case_sensitive=False),
    default="1M",
    show_default=True,
    help="Period to chart.",
)
def pnl(timeframe: str) -> None:
    """Display realized P&L per day for a timeframe.

    \b
    Examples:
      tradejournal pnl            # Last month
      tradejournal pnl -t YTD     # Year to date
    """
    points = analytics.pnl_chart(_load_positions(), timeframe, today=date.today())

    if not points:
        console.print(Panel(
            f"[dim]No realized P&L in {timeframe.upper()}[/dim]",
            title="[bold]P&L[/bold]",
            border_style="dim",
        ))
        return

    table = Table(title=f"Realized P&L ({timeframe.upper()})", show_header=True, header_style="bold cyan")
    table.add_column("Date", style="bold")
    table.add_column("P&L", justify="right")
    table.add_column("Cumulative", justify="right")

    cumulative = 0.0
    for point in points:
        cumulative += point.pnl
        table.add_row(point.date.isoformat(), signed(point.pnl), signed(cumulative))

    console.print(table)
    console.print(f"\n[bold]Total P&L:[/bold] {signed(cumulative)}")


@click.command()
def strategies() -> None:
    """Display realized P&L grouped by strategy."""
    rows = analytics.pnl_by_strategy(_load_positions())

    if not rows:
        console.print(Panel(
            "[dim]No realized positions with a strategy tag[/dim]",
            title="[bold]Strategies[/bold]",
            border_style="dim",
        ))
        return

    table = Table(title="Strategy P&L", show_header=True, header_style="bold cyan")
    table.add_column("Strategy", style="bold")
    table.add_column("Trades", justify="right")
    table.add_column("Win Rate", justify="right")
    table.add_column("Avg P&L", justify="right")
    table.add_column("Total P&L", justify="right")

    for row in rows:
        table.add_row(
            row.strategy,
            str(row.trade_count),
            f"{row.win_ratio * 100:.1f}%",
            signed(row.avg_pnl),
            signed(row.total_pnl),
        )

    console.print(table)


@click.command()
@click.argument("year", type=int, required=False)
def yearly(year: int | None) -> None:
    """Display realized P&L for a calendar year.

    Only exits made during YEAR count, even for positions opened or
    closed in another year. Defaults to the current year.
    """
    year = year or date.today().year
    if year < 1900:
        fail(f"Invalid year: {year}")
    result = analytics.pnl_by_year(_load_positions(), year)
    console.print(f"[bold]{result.year} Realized P&L:[/bold] {signed(result.total_pnl)}")


@click.command()
def durations() -> None:
    """Display holding periods of realized positions."""
    metrics = analytics.duration_metrics(_load_positions())

    if not metrics.durations:
        console.print(Panel(
            "[dim]No realized positions[/dim]",
            title="[bold]Durations[/bold]",
            border_style="dim",
        ))
        return

    table = Table(title="Holding Periods", show_header=True, header_style="bold cyan")
    table.add_column("Symbol", style="bold")
    table.add_column("Entry")
    table.add_column("Last Exit")
    table.add_column("Days", justify="right")

    for item in metrics.durations:
        table.add_row(
            item.symbol,
            item.entry_date.isoformat(),
            item.exit_date.isoformat(),
            str(item.days_held),
        )

    console.print(table)
    console.print(f"\n[bold]Average:[/bold] {metrics.average_duration:.1f} days")
