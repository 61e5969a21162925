"""
Backtest configuration, snapshot and result models.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from agent_backtester.core.enums import AgentType, DataSource, RebalanceFrequency
from agent_backtester.core.utils.datetime_utils import ensure_utc

from .market import MarketBar
from .portfolio import Portfolio
from .trade import Signal, Trade


@dataclass(frozen=True)
class BacktestConfig:
    """Immutable per-run parameters.

    Construction does not enforce validity so that a bad request can be
    reported field by field; use the ``is_valid_*`` helpers.
    """

    start_date: datetime | None
    end_date: datetime | None
    initial_capital: float
    symbols: tuple[str, ...]
    commission: float = 0.0
    slippage: float = 0.0
    data_source: DataSource = DataSource.HISTORICAL
    rebalance_frequency: RebalanceFrequency = RebalanceFrequency.DAILY

    def __post_init__(self) -> None:
        if self.start_date is not None:
            object.__setattr__(self, "start_date", ensure_utc(self.start_date))
        if self.end_date is not None:
            object.__setattr__(self, "end_date", ensure_utc(self.end_date))
        object.__setattr__(self, "symbols", tuple(self.symbols))

    def has_dates(self) -> bool:
        """Check that both ends of the range are set."""
        return self.start_date is not None and self.end_date is not None

    def is_valid_date_range(self) -> bool:
        """Validate that end_date is after start_date."""
        return self.has_dates() and self.start_date < self.end_date  # type: ignore[operator]

    def is_valid_capital(self) -> bool:
        """Validate initial capital is positive."""
        return self.initial_capital is not None and self.initial_capital > 0

    def has_symbols(self) -> bool:
        """Validate that at least one symbol is configured."""
        return len(self.symbols) > 0

    def duration_days(self) -> int:
        """Calculate duration of backtest in days."""
        if not self.has_dates():
            return 0
        return (self.end_date - self.start_date).days  # type: ignore[operator]

    def to_dict(self) -> dict:
        """Convert config to dictionary."""
        return {
            "start_date": self.start_date.isoformat() if self.start_date else None,
            "end_date": self.end_date.isoformat() if self.end_date else None,
            "initial_capital": self.initial_capital,
            "symbols": list(self.symbols),
            "commission": self.commission,
            "slippage": self.slippage,
            "data_source": self.data_source.value,
            "rebalance_frequency": self.rebalance_frequency.value,
        }


@dataclass
class AgentConfig:
    """Configuration of one agent taking part in a backtest."""

    id: str
    name: str
    type: AgentType
    enabled: bool = True
    parameters: dict[str, Any] = field(default_factory=dict)
    weight: float = 1.0


@dataclass(frozen=True)
class StepMetrics:
    """Small metrics bundle recorded with every simulation step."""

    total_return: float = 0.0
    sharpe_ratio: float = 0.0
    max_drawdown: float = 0.0
    win_rate: float = 0.0


@dataclass
class BacktestSnapshot:
    """State of the simulation after one time step."""

    timestamp: datetime
    portfolio: Portfolio
    market_data: dict[str, MarketBar]
    signals: list[Signal]
    trades: list[Trade]
    metrics: StepMetrics


@dataclass(frozen=True)
class BacktestResult:
    """Terminal artifact of a completed backtest."""

    id: str
    start_date: datetime
    end_date: datetime
    initial_capital: float
    final_capital: float
    total_return: float
    max_drawdown: float
    sharpe_ratio: float
    total_trades: int
    winning_trades: int
    win_rate: float
    trades: tuple[Trade, ...] = ()

    def period(self) -> str:
        """Date range as ``YYYY-MM-DD to YYYY-MM-DD``."""
        return f"{self.start_date.date().isoformat()} to {self.end_date.date().isoformat()}"

    def summary(self) -> dict:
        """Key figures without the trade list."""
        return {
            "id": self.id,
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat(),
            "initial_capital": self.initial_capital,
            "final_capital": self.final_capital,
            "total_return": self.total_return,
            "max_drawdown": self.max_drawdown,
            "sharpe_ratio": self.sharpe_ratio,
            "total_trades": self.total_trades,
            "winning_trades": self.winning_trades,
            "win_rate": self.win_rate,
        }

    def to_dict(self) -> dict:
        """Convert result to dictionary."""
        return {**self.summary(), "trades": [trade.to_dict() for trade in self.trades]}
