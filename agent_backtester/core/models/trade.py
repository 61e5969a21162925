"""
Trade and signal domain models.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from agent_backtester.core.enums import SignalAction, TradeAction, TradeStatus
from agent_backtester.core.exceptions.backtest import ValidationError
from agent_backtester.core.utils.datetime_utils import ensure_utc


@dataclass
class Signal:
    """A trading recommendation produced by the agent layer."""

    id: str
    agent_id: str
    symbol: str
    action: SignalAction
    confidence: float
    strength: float
    timestamp: datetime
    reasoning: str = ""
    metadata: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        """Validate signal data after initialization."""
        self.timestamp = ensure_utc(self.timestamp)
        if not 0.0 <= self.confidence <= 1.0:
            raise ValidationError(f"Confidence must be between 0 and 1, got {self.confidence}")
        if not 0.0 <= self.strength <= 1.0:
            raise ValidationError(f"Strength must be between 0 and 1, got {self.strength}")

    def to_dict(self) -> dict:
        """Convert signal to dictionary."""
        return {
            "id": self.id,
            "agent_id": self.agent_id,
            "symbol": self.symbol,
            "action": self.action.value,
            "confidence": self.confidence,
            "strength": self.strength,
            "timestamp": self.timestamp.isoformat(),
            "reasoning": self.reasoning,
            "metadata": self.metadata,
        }


@dataclass
class Trade:
    """An order proposed or executed by the portfolio collaborator."""

    id: str
    symbol: str
    action: TradeAction
    quantity: float
    price: float
    timestamp: datetime
    status: TradeStatus = TradeStatus.PENDING
    agent_signals: list[str] = field(default_factory=list)
    metadata: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        """Validate trade data after initialization."""
        self.timestamp = ensure_utc(self.timestamp)
        if self.quantity <= 0:
            raise ValidationError(f"Quantity must be positive, got {self.quantity}")
        if self.price <= 0:
            raise ValidationError(f"Price must be positive, got {self.price}")

    @property
    def is_filled(self) -> bool:
        """Check if the trade was executed."""
        return self.status == TradeStatus.FILLED

    @property
    def realized_pnl(self) -> float:
        """Realized PnL carried in metadata (0 when absent)."""
        return float(self.metadata.get("realized_pnl") or 0.0)

    def to_dict(self) -> dict:
        """Convert trade to dictionary."""
        return {
            "id": self.id,
            "symbol": self.symbol,
            "action": self.action.value,
            "quantity": self.quantity,
            "price": self.price,
            "timestamp": self.timestamp.isoformat(),
            "status": self.status.value,
            "agent_signals": list(self.agent_signals),
            "metadata": self.metadata,
        }
