"""Exceptions raised by the trade journal."""


class JournalError(Exception):
    """Base class for all trade journal errors."""


class ConfigError(JournalError):
    """Configuration file could not be read."""


class PositionNotFound(JournalError, LookupError):
    """No position exists with the requested id."""

    def __init__(self, position_id: str):
        super().__init__(f"Position not found: {position_id}")
        self.position_id = position_id


class PositionClosed(JournalError):
    """The position is fully closed and accepts no further exits."""

    def __init__(self, position_id: str):
        super().__init__(f"Position {position_id} is already closed")
        self.position_id = position_id


class InvalidExitQuantity(JournalError, ValueError):
    """Exit quantity is not positive or exceeds the remaining open quantity."""

    def __init__(self, exit_quantity: int, remaining_quantity: int):
        super().__init__(
            f"Exit quantity {exit_quantity} must be between 1 and the "
            f"remaining quantity {remaining_quantity}"
        )
        self.exit_quantity = exit_quantity
        self.remaining_quantity = remaining_quantity
