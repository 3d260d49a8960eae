"""Position commands for tradejournal CLI.

Handles opening positions, recording exits, editing and deleting
positions, and listing them.
"""

from datetime import date, datetime
from typing import Optional

import click
from pydantic import ValidationError
from rich.panel import Panel
from rich.table import Table

from tradejournal.cli.main import console, fail, get_gateway, get_owner_id, signed
from tradejournal.errors import JournalError
from tradejournal.models import Position

STATUS_STYLES = {
    "OPEN": "cyan",
    "PARTIALLY_CLOSED": "yellow",
    "CLOSED": "dim",
}


def _parse_date(value: Optional[str]) -> date:
    """Parse a YYYY-MM-DD date, defaulting to today."""
    if not value:
        return date.today()
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        raise click.BadParameter(f"Invalid date '{value}'. Use YYYY-MM-DD.")


def _position_summary(position: Position) -> str:
    lines = [
        f"[bold]{position.symbol}[/bold]  {position.action} {position.quantity} @ {position.price:,.2f}",
        f"ID: [dim]{position.id}[/dim]",
        f"Entry: {position.entry_date.isoformat()}",
        f"Status: [{STATUS_STYLES[position.status]}]{position.status}[/{STATUS_STYLES[position.status]}]",
        f"Remaining: {position.remaining_quantity}",
    ]
    if position.instrument_type == "OPTION":
        expiry = position.expiration_date.isoformat() if position.expiration_date else "-"
        lines.append(f"Option: {position.option_type or '-'} {position.strike_price or '-'} exp {expiry}")
    if position.total_profit is not None:
        lines.append(
            f"Realized P&L: {signed(position.total_profit)} ({position.total_profit_percentage:+.2f}%)"
        )
    if position.strategy:
        lines.append(f"Strategy: {position.strategy}")
    if position.notes:
        lines.append(f"Notes: {position.notes}")
    return "\n".join(lines)


@click.command("open")
@click.argument("symbol")
@click.argument("qty", type=int)
@click.argument("price", type=float)
@click.option("--short", is_flag=True, default=False, help="Open a short position (SELL).")
@click.option("-d", "--date", "entry_date", default=None, help="Entry date (YYYY-MM-DD). Defaults to today.")
@click.option("-s", "--strategy", default=None, help="Strategy tag.")
@click.option("-n", "--notes", default=None, help="Free-text notes.")
@click.option(
    "--option",
    "option_type",
    type=click.Choice(["CALL", "PUT"], case_sensitive=False),
    default=None,
    help="Record an option position of this type.",
)
@click.option("--strike", type=float, default=None, help="Option strike price.")
@click.option("--expiry", default=None, help="Option expiration date (YYYY-MM-DD).")
def open_position(
    symbol: str,
    qty: int,
    price: float,
    short: bool,
    entry_date: Optional[str],
    strategy: Optional[str],
    notes: Optional[str],
    option_type: Optional[str],
    strike: Optional[float],
    expiry: Optional[str],
) -> None:
    """Open a new position.

    SYMBOL is the trading symbol, QTY the quantity and PRICE the entry price.

    \b
    Examples:
      tradejournal open AAPL 100 150.25
      tradejournal open TSLA 10 240 --short -s "Breakdown"
      tradejournal open SPY 2 4.10 --option CALL --strike 450 --expiry 2024-06-21
    """
    gateway = get_gateway()
    try:
        position = gateway.open_position(
            get_owner_id(),
            symbol,
            "SELL" if short else "BUY",
            qty,
            price,
            _parse_date(entry_date),
            instrument_type="OPTION" if option_type else "STOCK",
            option_type=option_type,
            strike_price=strike,
            expiration_date=_parse_date(expiry) if expiry else None,
            strategy=strategy,
            notes=notes,
        )
    except (JournalError, ValidationError) as e:
        fail(f"Failed to open position:\n\n{e}")

    console.print(Panel(
        _position_summary(position),
        title="[bold green]Position Opened[/bold green]",
        border_style="green",
    ))


@click.command("exit")
@click.argument("position_id")
@click.argument("qty", type=int)
@click.argument("price", type=float)
@click.option("-d", "--date", "exit_date", default=None, help="Exit date (YYYY-MM-DD). Defaults to today.")
def exit_position(position_id: str, qty: int, price: float, exit_date: Optional[str]) -> None:
    """Record a full or partial exit.

    POSITION_ID is the position to close against, QTY the quantity
    closed and PRICE the exit price.

    \b
    Examples:
      tradejournal exit 3f2a... 40 15.00
      tradejournal exit 3f2a... 60 12.00 -d 2024-03-01
    """
    gateway = get_gateway()
    try:
        position = gateway.record_exit(position_id, _parse_date(exit_date), price, qty)
    except (JournalError, ValidationError) as e:
        fail(f"Failed to record exit:\n\n{e}")

    last = position.exits[-1]
    console.print(Panel(
        f"Closed {last.quantity} @ {last.exit_price:,.2f}: "
        f"{signed(last.profit)} ({last.profit_percentage:+.2f}%)\n\n"
        + _position_summary(position),
        title="[bold green]Exit Recorded[/bold green]",
        border_style="green",
    ))


@click.command()
@click.argument("position_id")
@click.option("--symbol", default=None, help="New symbol.")
@click.option("-s", "--strategy", default=None, help="New strategy tag.")
@click.option("-n", "--notes", default=None, help="New notes.")
@click.option("-d", "--date", "entry_date", default=None, help="New entry date (YYYY-MM-DD).")
def edit(
    position_id: str,
    symbol: Optional[str],
    strategy: Optional[str],
    notes: Optional[str],
    entry_date: Optional[str],
) -> None:
    """Edit descriptive fields of a position.

    Exits and realized P&L are never changed by an edit.
    """
    changes = {}
    if symbol is not None:
        changes["symbol"] = symbol
    if strategy is not None:
        changes["strategy"] = strategy
    if notes is not None:
        changes["notes"] = notes
    if entry_date is not None:
        changes["entry_date"] = _parse_date(entry_date)

    if not changes:
        fail("Nothing to change. Pass at least one of --symbol, --strategy, --notes, --date.")

    gateway = get_gateway()
    try:
        position = gateway.update_position(position_id, **changes)
    except (JournalError, ValidationError) as e:
        fail(f"Failed to edit position:\n\n{e}")

    console.print(Panel(
        _position_summary(position),
        title="[bold green]Position Updated[/bold green]",
        border_style="green",
    ))


@click.command()
@click.argument("position_id")
@click.confirmation_option(prompt="Delete this position and all of its exits?")
def delete(position_id: str) -> None:
    """Delete a position and its exit history."""
    gateway = get_gateway()
    try:
        gateway.delete_position(position_id)
    except JournalError as e:
        fail(str(e))
    console.print(f"[green]✓[/green] Deleted position {position_id}")


@click.command()
@click.option(
    "--status",
    type=click.Choice(["OPEN", "PARTIALLY_CLOSED", "CLOSED"], case_sensitive=False),
    default=None,
    help="Only show positions with this status.",
)
def positions(status: Optional[str]) -> None:
    """List recorded positions."""
    gateway = get_gateway()
    pos_list = gateway.list_positions(get_owner_id())
    if status:
        pos_list = [p for p in pos_list if p.status == status.upper()]

    if not pos_list:
        console.print(Panel(
            "[dim]No positions found[/dim]",
            title="[bold]Positions[/bold]",
            border_style="dim",
        ))
        return

    table = Table(
        title="Positions",
        show_header=True,
        header_style="bold cyan",
    )

    table.add_column("ID", style="dim", max_width=12)
    table.add_column("Symbol", style="bold")
    table.add_column("Side", justify="center")
    table.add_column("Qty", justify="right")
    table.add_column("Left", justify="right")
    table.add_column("Entry", justify="right")
    table.add_column("Entered", justify="right")
    table.add_column("Status", justify="center")
    table.add_column("P&L", justify="right")
    table.add_column("Strategy", max_width=20)

    for pos in pos_list:
        style = STATUS_STYLES[pos.status]
        table.add_row(
            pos.id[:12],
            pos.symbol,
            pos.action,
            str(pos.quantity),
            str(pos.remaining_quantity),
            f"{pos.price:,.2f}",
            pos.entry_date.isoformat(),
            f"[{style}]{pos.status}[/{style}]",
            signed(pos.total_profit) if pos.total_profit is not None else "-",
            pos.strategy or "-",
        )

    console.print(table)


@click.command()
@click.argument("position_id")
def show(position_id: str) -> None:
    """Show one position with its exit history."""
    gateway = get_gateway()
    try:
        position = gateway.get_position(position_id)
    except JournalError as e:
        fail(str(e))

    console.print(Panel(_position_summary(position), title="[bold]Position[/bold]", border_style="cyan"))

    if not position.exits:
        return

    table = Table(title="Exits", show_header=True, header_style="bold cyan")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Date")
    table.add_column("Qty", justify="right")
    table.add_column("Price", justify="right")
    table.add_column("P&L", justify="right")
    table.add_column("P&L %", justify="right")

    for i, exit_event in enumerate(position.exits, start=1):
        table.add_row(
            str(i),
            exit_event.exit_date.isoformat(),
            str(exit_event.quantity),
            f"{exit_event.exit_price:,.2f}",
            signed(exit_event.profit),
            f"{exit_event.profit_percentage:+.2f}%",
        )

    console.print(table)
