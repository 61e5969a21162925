"""
Portfolio state model as reported by the portfolio collaborator.
"""

from dataclasses import dataclass, field
from datetime import datetime

from agent_backtester.core.utils.datetime_utils import ensure_utc

from .position import Position


@dataclass
class Portfolio:
    """Cash, open positions and valuation at a point in time."""

    id: str
    cash: float
    total_value: float
    timestamp: datetime
    positions: list[Position] = field(default_factory=list)
    daily_pnl: float = 0.0
    total_pnl: float = 0.0

    def __post_init__(self) -> None:
        self.timestamp = ensure_utc(self.timestamp)

    @property
    def positions_value(self) -> float:
        """Value held outside cash."""
        return self.total_value - self.cash

    def get_position(self, symbol: str) -> Position | None:
        """Find the open position for ``symbol``."""
        for position in self.positions:
            if position.symbol == symbol:
                return position
        return None

    def to_dict(self) -> dict:
        """Convert portfolio to dictionary."""
        return {
            "id": self.id,
            "cash": self.cash,
            "total_value": self.total_value,
            "daily_pnl": self.daily_pnl,
            "total_pnl": self.total_pnl,
            "timestamp": self.timestamp.isoformat(),
            "positions": [position.to_dict() for position in self.positions],
        }
