"""
Signal, trade action and trade status enumerations.
"""

from enum import StrEnum


class SignalAction(StrEnum):
    """Action recommended by a signal."""

    BUY = "BUY"
    SELL = "SELL"
    HOLD = "HOLD"

    @property
    def is_actionable(self) -> bool:
        """Check if the signal asks for a trade."""
        return self != self.HOLD


class TradeAction(StrEnum):
    """Executed trade direction."""

    BUY = "BUY"
    SELL = "SELL"


class TradeStatus(StrEnum):
    """Trade lifecycle status."""

    PENDING = "PENDING"
    FILLED = "FILLED"
    CANCELLED = "CANCELLED"
