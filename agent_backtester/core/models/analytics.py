"""
Performance analytics models produced by the portfolio tracker.
"""

from dataclasses import asdict, dataclass
from datetime import datetime

from .portfolio import Portfolio


@dataclass(frozen=True)
class PortfolioMetrics:
    """Metrics recomputed from the full snapshot history on every update."""

    total_return: float = 0.0
    cumulative_return: float = 0.0
    daily_return: float = 0.0
    volatility: float = 0.0
    sharpe_ratio: float = 0.0
    sortino_ratio: float = 0.0
    max_drawdown: float = 0.0
    current_drawdown: float = 0.0
    calmar_ratio: float = 0.0
    win_rate: float = 0.0
    profit_factor: float = 0.0
    average_win: float = 0.0
    average_loss: float = 0.0
    total_trades: int = 0
    winning_trades: int = 0
    losing_trades: int = 0
    largest_win: float = 0.0
    largest_loss: float = 0.0
    average_holding_period: float = 0.0
    beta: float = 0.0
    alpha: float = 0.0
    information_ratio: float = 0.0

    def to_dict(self) -> dict[str, float]:
        """Convert metrics to dictionary."""
        return asdict(self)


@dataclass(frozen=True)
class PositionAttribution:
    """Contribution of one position to portfolio return."""

    symbol: str
    weight: float
    position_return: float
    contribution: float
    pnl: float
    average_price: float
    current_price: float
    quantity: float
    holding_period: float

    def to_dict(self) -> dict:
        """Convert attribution to dictionary."""
        data = asdict(self)
        data["return"] = data.pop("position_return")
        return data


@dataclass(frozen=True)
class PortfolioSnapshot:
    """Tracker view of the portfolio at one point in time."""

    timestamp: datetime
    portfolio: Portfolio
    metrics: PortfolioMetrics
    attribution: tuple[PositionAttribution, ...]
