"""
Portfolio and trade-execution collaborator interface.

The simulation engine never books trades itself; it drives an
implementation of ``IPortfolioManager`` step by step.
"""

from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime

from agent_backtester.core.models.portfolio import Portfolio
from agent_backtester.core.models.trade import Signal, Trade


@dataclass(frozen=True)
class TradeDecision:
    """Outcome of evaluating a signal."""

    approved: bool
    trade: Trade | None = None
    reason: str | None = None


@dataclass(frozen=True)
class ExecutionResult:
    """Outcome of executing a trade."""

    success: bool
    executed_trade: Trade | None = None
    error: str | None = None


@dataclass(frozen=True)
class PerformanceSummary:
    """Headline performance figures reported by the collaborator."""

    total_return: float = 0.0
    sharpe_ratio: float = 0.0
    max_drawdown: float = 0.0
    win_rate: float = 0.0


class IPortfolioManager(ABC):
    """Abstract interface for the portfolio/risk collaborator."""

    @abstractmethod
    def update_market_prices(
        self, prices: Mapping[str, float], timestamp: datetime | None = None
    ) -> None:
        """Revalue holdings at the given prices, as of ``timestamp`` when known."""
        pass

    @abstractmethod
    def process_signal(self, signal: Signal) -> TradeDecision:
        """Evaluate a signal and propose a trade if approved."""
        pass

    @abstractmethod
    def execute_trade(self, trade: Trade) -> ExecutionResult:
        """Execute an approved trade."""
        pass

    @abstractmethod
    def get_portfolio(self) -> Portfolio:
        """Current portfolio state."""
        pass

    @abstractmethod
    def get_performance_metrics(self) -> PerformanceSummary:
        """Headline performance so far."""
        pass

    @abstractmethod
    def get_trade_history(self) -> list[Trade]:
        """All executed trades."""
        pass
