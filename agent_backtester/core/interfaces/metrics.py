"""
Performance metrics calculator interface.
"""

from abc import ABC, abstractmethod
from collections.abc import Sequence

from agent_backtester.core.models.trade import Trade


class IMetricsCalculator(ABC):
    """Abstract interface for performance metrics calculation."""

    @abstractmethod
    def calculate_returns(self, values: Sequence[float]) -> list[float]:
        """Per-step relative returns of a value series."""
        pass

    @abstractmethod
    def calculate_risk_metrics(self, values: Sequence[float]) -> dict[str, float]:
        """Volatility, risk-adjusted ratios and drawdowns."""
        pass

    @abstractmethod
    def calculate_trade_metrics(self, trades: Sequence[Trade]) -> dict[str, float]:
        """Win/loss statistics over filled trades."""
        pass
