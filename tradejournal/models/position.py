"""Position and ExitEvent data models."""

from datetime import date
from typing import Literal, Optional
from uuid import uuid4

from pydantic import BaseModel, Field, computed_field, model_validator

Action = Literal["BUY", "SELL"]
Status = Literal["OPEN", "PARTIALLY_CLOSED", "CLOSED"]

OPEN = "OPEN"
PARTIALLY_CLOSED = "PARTIALLY_CLOSED"
CLOSED = "CLOSED"


def status_for(quantity: int, remaining: int) -> Status:
    """Lifecycle status implied by the opening and remaining quantities."""
    if remaining == 0:
        return CLOSED
    if remaining < quantity:
        return PARTIALLY_CLOSED
    return OPEN


class ExitEvent(BaseModel):
    """One partial or full closing execution against a position."""

    exit_date: date = Field(..., description="Exit execution date")
    exit_price: float = Field(..., gt=0, description="Exit price")
    quantity: int = Field(..., gt=0, description="Quantity closed")
    profit: float = Field(..., description="Realized profit of this exit")
    profit_percentage: float = Field(
        ..., description="Profit relative to the cost basis of the exited quantity"
    )

    model_config = {"frozen": True}


class Position(BaseModel):
    """Represents one trade lot from opening to eventual full closure.

    Accounting values (remaining quantity, totals, status) are derived
    from the exit sequence each time they are read.
    """

    id: str = Field(default_factory=lambda: uuid4().hex, description="Position ID")
    owner_id: str = Field(..., min_length=1, description="Owning user")
    symbol: str = Field(..., min_length=1, description="Trading symbol")
    action: Action = Field(default="BUY", description="BUY opens long, SELL opens short")
    quantity: int = Field(..., gt=0, description="Opening quantity")
    price: float = Field(..., gt=0, description="Opening price")
    instrument_type: Literal["STOCK", "OPTION"] = Field(
        default="STOCK", description="Instrument type"
    )
    option_type: Optional[Literal["CALL", "PUT"]] = Field(
        default=None, description="Option right (options only)"
    )
    strike_price: Optional[float] = Field(default=None, gt=0, description="Option strike")
    expiration_date: Optional[date] = Field(default=None, description="Option expiry")
    entry_date: date = Field(..., description="Date the position was opened")
    strategy: Optional[str] = Field(default=None, description="Free-text strategy tag")
    notes: Optional[str] = Field(default=None, description="User notes")
    exits: tuple[ExitEvent, ...] = Field(default=(), description="Exits in order applied")

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def _check_exits_fit_quantity(self) -> "Position":
        exited = sum(e.quantity for e in self.exits)
        if exited > self.quantity:
            raise ValueError(
                f"Exits total {exited} exceeds opening quantity {self.quantity}"
            )
        return self

    @property
    def direction(self) -> int:
        """+1 for long positions, -1 for short positions."""
        return -1 if self.action == "SELL" else 1

    @property
    def cost_basis(self) -> float:
        return self.price * self.quantity

    @computed_field
    @property
    def remaining_quantity(self) -> int:
        return self.quantity - sum(e.quantity for e in self.exits)

    @computed_field
    @property
    def total_profit(self) -> Optional[float]:
        if not self.exits:
            return None
        return sum(e.profit for e in self.exits)

    @computed_field
    @property
    def total_profit_percentage(self) -> Optional[float]:
        total = self.total_profit
        if total is None:
            return None
        return total / self.cost_basis * 100

    @computed_field
    @property
    def status(self) -> Status:
        return status_for(self.quantity, self.remaining_quantity)

    @computed_field
    @property
    def last_exit_date(self) -> Optional[date]:
        return self.exits[-1].exit_date if self.exits else None

    @property
    def is_realized(self) -> bool:
        """True once any quantity has been closed."""
        return self.status in (CLOSED, PARTIALLY_CLOSED)
