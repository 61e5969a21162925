"""
Time-stepped simulation engine.

The engine replays multi-symbol bars in lockstep by index. At every step
it marks the portfolio collaborator to market, asks the signal source
for signals, routes them through the collaborator for approval and
execution, and records a snapshot. It never decides what to trade.
"""

import asyncio
import uuid
from collections.abc import Callable, Mapping, Sequence
from datetime import datetime
from typing import Any

from loguru import logger

from agent_backtester.core.enums import EngineState
from agent_backtester.core.events import EventBus, EventType
from agent_backtester.core.exceptions.backtest import BacktestAlreadyRunningError, DataError
from agent_backtester.core.interfaces.portfolio import IPortfolioManager
from agent_backtester.core.interfaces.signals import ISignalSource
from agent_backtester.core.models.backtest import (
    AgentConfig,
    BacktestConfig,
    BacktestResult,
    BacktestSnapshot,
    StepMetrics,
)
from agent_backtester.core.models.market import MarketBar
from agent_backtester.core.models.trade import Trade
from agent_backtester.core.types.financial import safe_divide
from agent_backtester.core.utils.decorators import log_operation
from agent_backtester.infrastructure.portfolio.paper_portfolio import PaperPortfolioManager
from agent_backtester.infrastructure.signals.null_signal_source import NullSignalSource

from .parameter_sweep import generate_combinations
from .tracker import PortfolioPerformanceTracker

PortfolioFactory = Callable[[BacktestConfig], IPortfolioManager]


def paper_portfolio_factory(config: BacktestConfig) -> IPortfolioManager:
    """Default collaborator: a paper portfolio using the config's costs."""
    return PaperPortfolioManager(
        initial_capital=config.initial_capital,
        commission=config.commission,
        slippage=config.slippage,
    )


class SimulationEngine:
    """Replays historical data through the portfolio collaborator.

    A fresh collaborator (and tracker, when enabled) is created for every
    run so that repeated runs and parameter sweeps start from the same
    initial capital.

    Args:
        config: Run parameters
        agent_configs: Agents taking part, recorded for reference
        risk_config: Passed through to integrators, unused by the engine
        portfolio_factory: Builds the portfolio collaborator for a run
        signal_source: Produces signals for each step's bars
        events: Bus used to publish lifecycle and progress events
        track_performance: Feed a ``PortfolioPerformanceTracker`` each run
        benchmark_returns: Benchmark series handed to each new tracker
    """

    def __init__(
        self,
        config: BacktestConfig,
        agent_configs: Sequence[AgentConfig] | None = None,
        risk_config: Mapping[str, Any] | None = None,
        portfolio_factory: PortfolioFactory | None = None,
        signal_source: ISignalSource | None = None,
        events: EventBus | None = None,
        track_performance: bool = True,
        benchmark_returns: Sequence[float] | None = None,
    ):
        self.config = config
        self.agent_configs = list(agent_configs or [])
        self.risk_config = dict(risk_config or {})
        self.portfolio_factory = portfolio_factory or paper_portfolio_factory
        self.signal_source = signal_source or NullSignalSource()
        self.events = events or EventBus()
        self.track_performance = track_performance
        self.benchmark_returns = list(benchmark_returns or [])

        self._data: dict[str, list[MarketBar]] = {}
        self._cursor = 0
        self._snapshots: list[BacktestSnapshot] = []
        self._results: BacktestResult | None = None
        self._portfolio: IPortfolioManager | None = None
        self._tracker: PortfolioPerformanceTracker | None = None
        self._state = EngineState.IDLE
        self._running = False
        self._stop_requested = False

        for agent in self.agent_configs:
            logger.debug(f"Registered agent config: {agent.name} ({agent.type.value})")

    # State

    @property
    def state(self) -> EngineState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def portfolio(self) -> IPortfolioManager | None:
        """Collaborator of the current or last run."""
        return self._portfolio

    @property
    def tracker(self) -> PortfolioPerformanceTracker | None:
        """Tracker of the current or last run."""
        return self._tracker

    # Data

    async def load_historical_data(self, data: Mapping[str, Sequence[MarketBar]]) -> None:
        """Install per-symbol bar series and check their integrity.

        Raises:
            DataError: If data is empty, a configured symbol is missing, or
                a series has no bars
        """
        self._data = {symbol: list(bars) for symbol, bars in data.items()}
        self.validate_data_integrity()
        logger.info(
            f"Loaded {sum(len(bars) for bars in self._data.values())} bars "
            f"for {len(self._data)} symbols"
        )

    def validate_data_integrity(self) -> None:
        if not self._data:
            raise DataError("No historical data provided")

        for symbol in self.config.symbols:
            if symbol not in self._data:
                raise DataError(f"Missing historical data for symbol: {symbol}")

        for symbol, bars in self._data.items():
            if not bars:
                raise DataError(f"Empty data for symbol: {symbol}")

            if self.config.start_date and bars[0].timestamp > self.config.start_date:
                logger.warning(f"Data for {symbol} starts after backtest start date")
            if self.config.end_date and bars[-1].timestamp < self.config.end_date:
                logger.warning(f"Data for {symbol} ends before backtest end date")

    def get_total_data_points(self) -> int:
        """Length of the longest series."""
        return max((len(bars) for bars in self._data.values()), default=0)

    def _has_more_data(self) -> bool:
        return any(self._cursor < len(bars) for bars in self._data.values())

    def _current_timestamp(self) -> datetime | None:
        """Earliest timestamp among symbols that still have a bar at the cursor."""
        timestamps = [
            bars[self._cursor].timestamp
            for bars in self._data.values()
            if self._cursor < len(bars)
        ]
        return min(timestamps, default=None)

    def _current_market_data(self) -> dict[str, MarketBar]:
        return {
            symbol: bars[self._cursor]
            for symbol, bars in self._data.items()
            if self._cursor < len(bars)
        }

    # Run

    @log_operation
    async def run_backtest(self) -> BacktestResult:
        """Replay all loaded data and return the terminal result.

        Raises:
            BacktestAlreadyRunningError: If a run is already active
            DataError: If the loaded data fails the integrity check
        """
        if self._running:
            raise BacktestAlreadyRunningError()

        self._running = True
        self._stop_requested = False
        self._cursor = 0
        self._snapshots = []
        self._results = None
        self._state = EngineState.RUNNING

        try:
            self.validate_data_integrity()
            portfolio_manager = self._start_collaborators()

            total = self.get_total_data_points()
            self.events.publish(
                EventType.BACKTEST_STARTED,
                {"config": self.config.to_dict(), "total_data_points": total},
            )

            while self._has_more_data():
                if self._stop_requested:
                    logger.info(f"Backtest stopped after {self._cursor} of {total} steps")
                    break

                await self._process_time_step(portfolio_manager)
                self._cursor += 1
                self.events.publish(
                    EventType.BACKTEST_PROGRESS,
                    {"progress": self._cursor / total, "current_index": self._cursor},
                )
                await asyncio.sleep(0)

            self._results = self._calculate_results(portfolio_manager)
            if self._stop_requested:
                self._state = EngineState.STOPPED
            else:
                self._state = EngineState.COMPLETED
                self.events.publish(EventType.BACKTEST_COMPLETED, self._results)
            return self._results
        except Exception as e:
            self._state = EngineState.FAILED
            self.events.publish(EventType.BACKTEST_ERROR, {"error": str(e)})
            raise
        finally:
            self._running = False

    def _start_collaborators(self) -> IPortfolioManager:
        self._portfolio = self.portfolio_factory(self.config)
        self._tracker = None
        if self.track_performance:
            self._tracker = PortfolioPerformanceTracker(self.config.initial_capital)
            if self.benchmark_returns:
                self._tracker.set_benchmark_returns(self.benchmark_returns)
        return self._portfolio

    async def _process_time_step(self, portfolio_manager: IPortfolioManager) -> None:
        timestamp = self._current_timestamp()
        if timestamp is None:
            return

        market_data = self._current_market_data()
        prices = {symbol: bar.close for symbol, bar in market_data.items()}
        portfolio_manager.update_market_prices(prices, timestamp)

        signals = await self.signal_source.generate_signals(market_data)
        trades: list[Trade] = []
        for signal in signals:
            decision = portfolio_manager.process_signal(signal)
            if not decision.approved or decision.trade is None:
                logger.debug(f"Signal {signal.id} rejected: {decision.reason}")
                continue

            execution = portfolio_manager.execute_trade(decision.trade)
            if execution.success and execution.executed_trade is not None:
                trades.append(execution.executed_trade)
                self._on_trade_executed(execution.executed_trade)
            else:
                logger.debug(f"Trade for signal {signal.id} failed: {execution.error}")

        portfolio = portfolio_manager.get_portfolio()
        self.events.publish(EventType.PORTFOLIO_UPDATED, portfolio)
        if self._tracker is not None:
            self._tracker.update_portfolio(portfolio, timestamp)

        performance = portfolio_manager.get_performance_metrics()
        snapshot = BacktestSnapshot(
            timestamp=timestamp,
            portfolio=portfolio,
            market_data=market_data,
            signals=signals,
            trades=trades,
            metrics=StepMetrics(
                total_return=performance.total_return,
                sharpe_ratio=performance.sharpe_ratio,
                max_drawdown=performance.max_drawdown,
                win_rate=performance.win_rate,
            ),
        )
        self._snapshots.append(snapshot)
        self.events.publish(EventType.TIME_STEP_PROCESSED, snapshot)

    def _on_trade_executed(self, trade: Trade) -> None:
        self.events.publish(EventType.TRADE_EXECUTED, trade)
        if self._tracker is not None:
            self._tracker.add_trade(trade)

    def _calculate_results(self, portfolio_manager: IPortfolioManager) -> BacktestResult:
        portfolio = portfolio_manager.get_portfolio()
        trades = portfolio_manager.get_trade_history()
        performance = portfolio_manager.get_performance_metrics()
        winning_trades = sum(1 for trade in trades if trade.realized_pnl > 0)
        first_bar, last_bar = self._data_bounds()

        return BacktestResult(
            id=str(uuid.uuid4()),
            start_date=self.config.start_date or first_bar,
            end_date=self.config.end_date or last_bar,
            initial_capital=self.config.initial_capital,
            final_capital=portfolio.total_value,
            total_return=performance.total_return,
            max_drawdown=performance.max_drawdown,
            sharpe_ratio=performance.sharpe_ratio,
            total_trades=len(trades),
            winning_trades=winning_trades,
            win_rate=safe_divide(winning_trades, len(trades)),
            trades=tuple(trades),
        )

    def _data_bounds(self) -> tuple[datetime, datetime]:
        first = min(bars[0].timestamp for bars in self._data.values())
        last = max(bars[-1].timestamp for bars in self._data.values())
        return first, last

    # Sweeps and control

    @log_operation
    async def run_parameter_sweep(
        self, parameter_ranges: Mapping[str, Sequence[Any]]
    ) -> dict[str, BacktestResult]:
        """Run one full backtest per parameter combination.

        Returns:
            Results keyed by sorted ``name=value`` pairs joined by commas
        """
        combinations = generate_combinations(parameter_ranges)
        results: dict[str, BacktestResult] = {}
        logger.info(f"Starting parameter sweep over {len(combinations)} combinations")

        for key, parameters in combinations.items():
            self.signal_source.update_parameters(parameters)
            results[key] = await self.run_backtest()
            self.events.publish(
                EventType.PARAMETER_SWEEP_PROGRESS,
                {
                    "completed": len(results),
                    "total": len(combinations),
                    "current_params": parameters,
                    "result": results[key],
                },
            )
            if self._state == EngineState.STOPPED:
                logger.info(f"Parameter sweep stopped after {len(results)} combinations")
                break

        return results

    def stop(self) -> None:
        """Ask the current run to stop after the step in progress."""
        if self._running:
            self._stop_requested = True
        self.events.publish(EventType.BACKTEST_STOPPED)

    # Accessors

    def get_snapshots(self, limit: int | None = None) -> list[BacktestSnapshot]:
        """Recorded snapshots, the last ``limit`` when given."""
        if limit:
            return self._snapshots[-limit:]
        return list(self._snapshots)

    def get_current_snapshot(self) -> BacktestSnapshot | None:
        return self._snapshots[-1] if self._snapshots else None

    def get_results(self) -> BacktestResult | None:
        return self._results
