"""
Market data domain models.
"""

import math
from dataclasses import dataclass
from datetime import datetime

from agent_backtester.core.enums import Interval
from agent_backtester.core.exceptions.backtest import ValidationError
from agent_backtester.core.utils.datetime_utils import ensure_utc


@dataclass(frozen=True)
class MarketBar:
    """One OHLCV observation for a symbol at a timestamp."""

    symbol: str
    timestamp: datetime
    open: float
    high: float
    low: float
    close: float
    volume: float = 0.0

    def __post_init__(self) -> None:
        """Normalize the timestamp and reject non-finite or negative prices."""
        object.__setattr__(self, "timestamp", ensure_utc(self.timestamp))
        for name in ("open", "high", "low", "close"):
            value = getattr(self, name)
            if not math.isfinite(value) or value < 0:
                raise ValidationError(f"{name} must be a non-negative number, got {value}")
        if not math.isfinite(self.volume):
            raise ValidationError(f"volume must be a finite number, got {self.volume}")

    def to_dict(self) -> dict:
        """Convert bar to dictionary."""
        return {
            "symbol": self.symbol,
            "timestamp": self.timestamp.isoformat(),
            "open": self.open,
            "high": self.high,
            "low": self.low,
            "close": self.close,
            "volume": self.volume,
        }


@dataclass(frozen=True)
class DataRequest:
    """Symbol, date range and interval passed to a data provider."""

    symbol: str
    start_date: datetime
    end_date: datetime
    interval: Interval = Interval.D1

    def __post_init__(self) -> None:
        object.__setattr__(self, "start_date", ensure_utc(self.start_date))
        object.__setattr__(self, "end_date", ensure_utc(self.end_date))

    def contains(self, timestamp: datetime) -> bool:
        """Check whether a timestamp falls inside the inclusive range."""
        return self.start_date <= timestamp <= self.end_date
