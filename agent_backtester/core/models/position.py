"""
Position domain model.

Positions are owned by the portfolio collaborator; the analytics layer
only reads them.
"""

from dataclasses import dataclass
from datetime import datetime

from agent_backtester.core.types.financial import safe_divide
from agent_backtester.core.utils.datetime_utils import ensure_utc


@dataclass
class Position:
    """An open holding in a portfolio."""

    symbol: str
    quantity: float
    entry_price: float
    current_price: float
    unrealized_pnl: float
    realized_pnl: float
    timestamp: datetime

    def __post_init__(self) -> None:
        self.timestamp = ensure_utc(self.timestamp)

    @property
    def market_value(self) -> float:
        """Value of the position at the current price."""
        return self.quantity * self.current_price

    @property
    def position_return(self) -> float:
        """Fractional price change since entry."""
        return safe_divide(self.current_price - self.entry_price, self.entry_price)

    def to_dict(self) -> dict:
        """Convert position to dictionary."""
        return {
            "symbol": self.symbol,
            "quantity": self.quantity,
            "entry_price": self.entry_price,
            "current_price": self.current_price,
            "unrealized_pnl": self.unrealized_pnl,
            "realized_pnl": self.realized_pnl,
            "timestamp": self.timestamp.isoformat(),
        }
