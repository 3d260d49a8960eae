"""Position ledger: opening positions and recording exits against them.

Positions are frozen, so every operation here returns a new Position and
leaves its argument untouched. Remaining quantity, totals and status are
recomputed from the exit sequence whenever they are read.
"""

import logging
from datetime import date
from typing import Any, Optional

from tradejournal.errors import InvalidExitQuantity, PositionClosed
from tradejournal.models import CLOSED, ExitEvent, Position, status_for

logger = logging.getLogger(__name__)

# Fields a caller may change after opening without affecting accounting.
EDITABLE_FIELDS = frozenset(
    {
        "symbol",
        "strategy",
        "notes",
        "entry_date",
        "instrument_type",
        "option_type",
        "strike_price",
        "expiration_date",
    }
)

__all__ = [
    "EDITABLE_FIELDS",
    "open_position",
    "build_exit",
    "record_exit",
    "edit_position",
    "status_for",
]


def _rebuild(position: Position, **changes: Any) -> Position:
    """Re-validate a position with some fields replaced."""
    data = position.model_dump()
    data["exits"] = position.exits
    data.update(changes)
    return Position.model_validate(data)


def open_position(
    owner_id: str,
    symbol: str,
    action: str,
    quantity: int,
    price: float,
    entry_date: date,
    instrument_type: str = "STOCK",
    option_type: Optional[str] = None,
    strike_price: Optional[float] = None,
    expiration_date: Optional[date] = None,
    strategy: Optional[str] = None,
    notes: Optional[str] = None,
    position_id: Optional[str] = None,
) -> Position:
    """Open a new position with no exits.

    Args:
        owner_id: Owning user.
        symbol: Trading symbol.
        action: BUY for a long position, SELL for a short one.
        quantity: Opening quantity.
        price: Opening price per unit.
        entry_date: Date the position was opened.
        instrument_type: STOCK or OPTION.
        option_type: CALL or PUT for options.
        strike_price: Option strike.
        expiration_date: Option expiry.
        strategy: Free-text strategy tag.
        notes: User notes.
        position_id: Explicit id; a fresh one is generated if omitted.

    Returns:
        The new OPEN position.
    """
    fields: dict[str, Any] = {
        "owner_id": owner_id,
        "symbol": symbol.strip().upper(),
        "action": action.upper(),
        "quantity": quantity,
        "price": price,
        "instrument_type": instrument_type.upper(),
        "option_type": option_type.upper() if option_type else None,
        "strike_price": strike_price,
        "expiration_date": expiration_date,
        "entry_date": entry_date,
        "strategy": strategy or None,
        "notes": notes or None,
    }
    if position_id is not None:
        fields["id"] = position_id

    position = Position(**fields)
    logger.info(
        "Opened %s %s x%d @ %.4f (id=%s)",
        position.action,
        position.symbol,
        position.quantity,
        position.price,
        position.id,
    )
    return position


def build_exit(
    position: Position, exit_date: date, exit_price: float, exit_quantity: int
) -> ExitEvent:
    """Price an exit against the position's opening price.

    Short positions earn when the exit price is below the opening price.
    """
    move = (exit_price - position.price) * position.direction
    return ExitEvent(
        exit_date=exit_date,
        exit_price=exit_price,
        quantity=exit_quantity,
        profit=move * exit_quantity,
        profit_percentage=move / position.price * 100,
    )


def record_exit(
    position: Position, exit_date: date, exit_price: float, exit_quantity: int
) -> Position:
    """Apply one exit to a position.

    Args:
        position: Position to close against.
        exit_date: Exit execution date.
        exit_price: Exit price per unit.
        exit_quantity: Quantity to close.

    Returns:
        A new position with the exit appended.

    Raises:
        PositionClosed: If the position is already fully closed.
        InvalidExitQuantity: If exit_quantity is not in 1..remaining.
    """
    if position.status == CLOSED:
        logger.warning("Rejected exit on closed position %s", position.id)
        raise PositionClosed(position.id)

    remaining = position.remaining_quantity
    if exit_quantity <= 0 or exit_quantity > remaining:
        logger.warning(
            "Rejected exit of %d on position %s with %d remaining",
            exit_quantity,
            position.id,
            remaining,
        )
        raise InvalidExitQuantity(exit_quantity, remaining)

    exit_event = build_exit(position, exit_date, exit_price, exit_quantity)
    updated = _rebuild(position, exits=position.exits + (exit_event,))
    logger.info(
        "Exit %s x%d @ %.4f profit=%.2f remaining=%d status=%s",
        updated.symbol,
        exit_quantity,
        exit_price,
        exit_event.profit,
        updated.remaining_quantity,
        updated.status,
    )
    return updated


def edit_position(position: Position, **changes: Any) -> Position:
    """Change non-accounting fields of a position at any status.

    Raises:
        ValueError: If a change targets an accounting or identity field.
    """
    disallowed = set(changes) - EDITABLE_FIELDS
    if disallowed:
        raise ValueError(f"Cannot edit fields: {', '.join(sorted(disallowed))}")

    if "symbol" in changes and changes["symbol"] is not None:
        changes["symbol"] = changes["symbol"].strip().upper()
    if "strategy" in changes:
        changes["strategy"] = changes["strategy"] or None
    if "notes" in changes:
        changes["notes"] = changes["notes"] or None

    return _rebuild(position, **changes)
