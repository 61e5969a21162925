"""
Portfolio performance tracker.

Records a snapshot of the portfolio on every update and recomputes the
full metrics bundle from the entire history, including the new point.
Trades are kept in a separate ledger and only affect snapshots taken
after they were added.
"""

import copy
from collections import defaultdict
from collections.abc import Sequence
from datetime import datetime
from typing import Any

import pandas as pd
from loguru import logger

from agent_backtester.core.events import EventBus, EventType
from agent_backtester.core.models.analytics import (
    PortfolioMetrics,
    PortfolioSnapshot,
    PositionAttribution,
)
from agent_backtester.core.models.portfolio import Portfolio
from agent_backtester.core.models.position import Position
from agent_backtester.core.models.trade import Trade
from agent_backtester.core.types.financial import safe_divide
from agent_backtester.core.utils.datetime_utils import ensure_utc
from agent_backtester.core.utils.validation import validate_positive

from .performance import PerformanceCalculator

CSV_HEADERS = (
    "timestamp",
    "total_value",
    "cash",
    "positions_value",
    "daily_return",
    "cumulative_return",
    "drawdown",
    "sharpe_ratio",
    "volatility",
    "total_trades",
)

SECONDS_PER_DAY = 86_400


class PortfolioPerformanceTracker:
    """Snapshot history, analytics and exports for one portfolio.

    Args:
        initial_value: Capital the total return is measured against
        events: Bus used to publish ``PORTFOLIO_UPDATED`` and ``TRADE_ADDED``
        calculator: Shared metric definitions
    """

    def __init__(
        self,
        initial_value: float,
        events: EventBus | None = None,
        calculator: PerformanceCalculator | None = None,
    ):
        self.initial_value = validate_positive(initial_value, "initial_value")
        self.events = events or EventBus()
        self.calculator = calculator or PerformanceCalculator()

        self._snapshots: list[PortfolioSnapshot] = []
        self._trades: list[Trade] = []
        self._benchmark_returns: list[float] = []
        self._position_history: dict[str, list[Position]] = defaultdict(list)

    # Inputs

    def update_portfolio(
        self, portfolio: Portfolio, timestamp: datetime | None = None
    ) -> PortfolioSnapshot:
        """Record a new portfolio state.

        Args:
            portfolio: Current state; it is deep-copied so later mutation
                by the caller does not alter history
            timestamp: Snapshot time, defaults to the portfolio timestamp

        Returns:
            The appended snapshot
        """
        state = copy.deepcopy(portfolio)
        snapshot_time = ensure_utc(timestamp) if timestamp is not None else state.timestamp
        values = [snapshot.portfolio.total_value for snapshot in self._snapshots]
        values.append(state.total_value)

        attribution = self._calculate_attribution(state, snapshot_time)
        metrics = self._calculate_metrics(values, attribution)
        snapshot = PortfolioSnapshot(
            timestamp=snapshot_time,
            portfolio=state,
            metrics=metrics,
            attribution=attribution,
        )

        self._snapshots.append(snapshot)
        for position in state.positions:
            self._position_history[position.symbol].append(copy.copy(position))

        self.events.publish(EventType.PORTFOLIO_UPDATED, snapshot)
        return snapshot

    def add_trade(self, trade: Trade) -> None:
        """Append a trade to the ledger."""
        self._trades.append(trade)
        self.events.publish(EventType.TRADE_ADDED, trade)

    def set_benchmark_returns(self, returns: Sequence[float]) -> None:
        """Set the benchmark per-step return series used for beta, alpha and information ratio."""
        self._benchmark_returns = [float(r) for r in returns]
        logger.debug(f"Benchmark set with {len(self._benchmark_returns)} returns")

    # Calculations

    def _calculate_metrics(
        self, values: list[float], attribution: tuple[PositionAttribution, ...]
    ) -> PortfolioMetrics:
        calc = self.calculator
        returns = calc.calculate_returns(values)
        total_return = calc.total_return(self.initial_value, values[-1])
        max_drawdown = calc.max_drawdown(values)
        trade_metrics = calc.calculate_trade_metrics(self._trades)
        benchmark = self._benchmark_returns

        return PortfolioMetrics(
            total_return=total_return,
            cumulative_return=total_return,
            daily_return=returns[-1] if returns else 0.0,
            volatility=calc.volatility(returns),
            sharpe_ratio=calc.sharpe_ratio(returns),
            sortino_ratio=calc.sortino_ratio(returns),
            max_drawdown=max_drawdown,
            current_drawdown=calc.current_drawdown(values),
            calmar_ratio=calc.calmar_ratio(total_return, max_drawdown),
            win_rate=trade_metrics["win_rate"],
            profit_factor=trade_metrics["profit_factor"],
            average_win=trade_metrics["average_win"],
            average_loss=trade_metrics["average_loss"],
            total_trades=trade_metrics["total_trades"],
            winning_trades=trade_metrics["winning_trades"],
            losing_trades=trade_metrics["losing_trades"],
            largest_win=trade_metrics["largest_win"],
            largest_loss=trade_metrics["largest_loss"],
            average_holding_period=self._average_holding_period(attribution),
            beta=calc.beta(returns, benchmark) if benchmark else 0.0,
            alpha=calc.alpha(returns, benchmark) if benchmark else 0.0,
            information_ratio=calc.information_ratio(returns, benchmark) if benchmark else 0.0,
        )

    @staticmethod
    def _average_holding_period(attribution: tuple[PositionAttribution, ...]) -> float:
        """Mean age in days of the positions open at the snapshot.

        Measured from open positions rather than the trade ledger, since
        closed trades carry no entry time. 0 when nothing is held.
        """
        return safe_divide(sum(item.holding_period for item in attribution), len(attribution))

    @staticmethod
    def _calculate_attribution(
        portfolio: Portfolio, as_of: datetime
    ) -> tuple[PositionAttribution, ...]:
        attribution = []
        for position in portfolio.positions:
            weight = safe_divide(position.market_value, portfolio.total_value)
            position_return = position.position_return
            holding_seconds = (as_of - position.timestamp).total_seconds()
            attribution.append(
                PositionAttribution(
                    symbol=position.symbol,
                    weight=weight,
                    position_return=position_return,
                    contribution=weight * position_return,
                    pnl=position.unrealized_pnl + position.realized_pnl,
                    average_price=position.entry_price,
                    current_price=position.current_price,
                    quantity=position.quantity,
                    holding_period=holding_seconds / SECONDS_PER_DAY,
                )
            )
        return tuple(attribution)

    # Queries

    def get_snapshots(self) -> list[PortfolioSnapshot]:
        return list(self._snapshots)

    def get_latest_snapshot(self) -> PortfolioSnapshot | None:
        return self._snapshots[-1] if self._snapshots else None

    def get_trade_history(self) -> list[Trade]:
        return list(self._trades)

    def get_metrics_time_series(self) -> list[dict[str, Any]]:
        return [
            {"timestamp": snapshot.timestamp, "metrics": snapshot.metrics}
            for snapshot in self._snapshots
        ]

    def get_returns_time_series(self) -> list[dict[str, Any]]:
        return [
            {
                "timestamp": snapshot.timestamp,
                "return": snapshot.metrics.daily_return,
                "cumulative_return": snapshot.metrics.cumulative_return,
            }
            for snapshot in self._snapshots
        ]

    def get_drawdown_time_series(self) -> list[dict[str, Any]]:
        return [
            {"timestamp": snapshot.timestamp, "drawdown": snapshot.metrics.current_drawdown}
            for snapshot in self._snapshots
        ]

    def get_position_attribution_history(self, symbol: str) -> list[PositionAttribution]:
        """Attribution of ``symbol`` in every snapshot where it was held."""
        return [
            item
            for snapshot in self._snapshots
            for item in snapshot.attribution
            if item.symbol == symbol
        ]

    def get_position_history(self, symbol: str) -> list[Position]:
        """Recorded states of the ``symbol`` position, oldest first."""
        return list(self._position_history.get(symbol, []))

    # Exports

    def to_dataframe(self) -> pd.DataFrame:
        """Snapshot history as a frame indexed by timestamp."""
        rows = [
            {
                "timestamp": snapshot.timestamp,
                "total_value": snapshot.portfolio.total_value,
                "cash": snapshot.portfolio.cash,
                "positions_value": snapshot.portfolio.positions_value,
                **snapshot.metrics.to_dict(),
            }
            for snapshot in self._snapshots
        ]
        frame = pd.DataFrame(rows)
        if frame.empty:
            return frame
        return frame.set_index("timestamp")

    def export_to_csv(self) -> str:
        """One row per snapshot; percentages are multiplied by 100."""
        lines = [",".join(CSV_HEADERS)]
        for snapshot in self._snapshots:
            portfolio = snapshot.portfolio
            metrics = snapshot.metrics
            lines.append(
                ",".join(
                    [
                        snapshot.timestamp.isoformat(),
                        f"{portfolio.total_value:.2f}",
                        f"{portfolio.cash:.2f}",
                        f"{portfolio.positions_value:.2f}",
                        f"{metrics.daily_return * 100:.4f}",
                        f"{metrics.cumulative_return * 100:.2f}",
                        f"{metrics.current_drawdown * 100:.2f}",
                        f"{metrics.sharpe_ratio:.3f}",
                        f"{metrics.volatility * 100:.2f}",
                        str(metrics.total_trades),
                    ]
                )
            )
        return "\n".join(lines)
