"""
In-memory paper portfolio used as the default portfolio collaborator.

It keeps a cash balance and long positions, marks them to market on
every price update and sizes BUY signals as a fixed fraction of equity.
It performs no risk checks beyond cash and position availability.
"""

import copy
import math
import uuid
from collections.abc import Mapping
from dataclasses import replace
from datetime import datetime

from loguru import logger

from agent_backtester.backtesting.performance import PerformanceCalculator
from agent_backtester.core.config import get_settings
from agent_backtester.core.constants import MIN_TRADE_QUANTITY
from agent_backtester.core.enums import SignalAction, TradeAction, TradeStatus
from agent_backtester.core.interfaces.portfolio import (
    ExecutionResult,
    IPortfolioManager,
    PerformanceSummary,
    TradeDecision,
)
from agent_backtester.core.models.portfolio import Portfolio
from agent_backtester.core.models.position import Position
from agent_backtester.core.models.trade import Signal, Trade
from agent_backtester.core.types.financial import round_amount
from agent_backtester.core.utils.datetime_utils import ensure_utc, utc_now
from agent_backtester.core.utils.validation import validate_positive, validate_rate


class PaperPortfolioManager(IPortfolioManager):
    """Long-only cash book with commission and slippage rates."""

    def __init__(
        self,
        initial_capital: float,
        commission: float = 0.0,
        slippage: float = 0.0,
        position_fraction: float | None = None,
        portfolio_id: str = "backtest-portfolio",
    ):
        self.initial_capital = validate_positive(initial_capital, "initial_capital")
        self.commission = validate_rate(commission, "commission")
        self.slippage = validate_rate(slippage, "slippage")
        self.position_fraction = validate_rate(
            position_fraction if position_fraction is not None else get_settings().position_fraction,
            "position_fraction",
        )
        self.portfolio_id = portfolio_id

        self._cash = initial_capital
        self._positions: dict[str, Position] = {}
        self._prices: dict[str, float] = {}
        self._trades: list[Trade] = []
        self._value_history: list[float] = [initial_capital]
        self._timestamp = utc_now()
        self._calculator = PerformanceCalculator()

    # Valuation

    @property
    def cash(self) -> float:
        return self._cash

    @property
    def total_value(self) -> float:
        return self._cash + sum(position.market_value for position in self._positions.values())

    def update_market_prices(
        self, prices: Mapping[str, float], timestamp: datetime | None = None
    ) -> None:
        self._prices.update(prices)
        if timestamp is not None:
            self._timestamp = ensure_utc(timestamp)

        for symbol, position in self._positions.items():
            if symbol in prices:
                position.current_price = prices[symbol]
                position.unrealized_pnl = (position.current_price - position.entry_price) * position.quantity

        self._value_history.append(self.total_value)

    def get_portfolio(self) -> Portfolio:
        total_value = self.total_value
        previous_value = self._value_history[-2] if len(self._value_history) > 1 else self.initial_capital
        return Portfolio(
            id=self.portfolio_id,
            cash=self._cash,
            total_value=total_value,
            timestamp=self._timestamp,
            positions=[copy.copy(position) for position in self._positions.values()],
            daily_pnl=total_value - previous_value,
            total_pnl=total_value - self.initial_capital,
        )

    # Signals and execution

    def process_signal(self, signal: Signal) -> TradeDecision:
        if not signal.action.is_actionable:
            return TradeDecision(approved=False, reason="Hold signal")

        price = self._prices.get(signal.symbol)
        if price is None or price <= 0:
            return TradeDecision(approved=False, reason=f"No market price for {signal.symbol}")

        if signal.action == SignalAction.BUY:
            quantity = self._buy_quantity(price)
            if quantity < MIN_TRADE_QUANTITY:
                return TradeDecision(approved=False, reason="Insufficient cash")
            action = TradeAction.BUY
        else:
            position = self._positions.get(signal.symbol)
            if position is None:
                return TradeDecision(approved=False, reason=f"No position in {signal.symbol}")
            quantity = position.quantity
            action = TradeAction.SELL

        trade = Trade(
            id=str(uuid.uuid4()),
            symbol=signal.symbol,
            action=action,
            quantity=quantity,
            price=price,
            timestamp=signal.timestamp,
            agent_signals=[signal.id],
        )
        return TradeDecision(approved=True, trade=trade)

    def _buy_quantity(self, price: float) -> float:
        """Whole units affordable with the configured share of equity."""
        budget = min(self.total_value * self.position_fraction, self._cash)
        unit_cost = price * (1 + self.slippage) * (1 + self.commission)
        return float(math.floor(budget / unit_cost))

    def execute_trade(self, trade: Trade) -> ExecutionResult:
        if trade.status != TradeStatus.PENDING:
            return ExecutionResult(success=False, error=f"Trade {trade.id} is not pending")

        if trade.action == TradeAction.BUY:
            return self._execute_buy(trade)
        return self._execute_sell(trade)

    def _execute_buy(self, trade: Trade) -> ExecutionResult:
        fill_price = trade.price * (1 + self.slippage)
        cost = trade.quantity * fill_price
        fee = cost * self.commission
        if cost + fee > self._cash:
            return ExecutionResult(success=False, error="Insufficient cash")

        self._cash -= cost + fee
        position = self._positions.get(trade.symbol)
        if position is None:
            self._positions[trade.symbol] = Position(
                symbol=trade.symbol,
                quantity=trade.quantity,
                entry_price=fill_price,
                current_price=trade.price,
                unrealized_pnl=(trade.price - fill_price) * trade.quantity,
                realized_pnl=0.0,
                timestamp=trade.timestamp,
            )
        else:
            quantity = position.quantity + trade.quantity
            position.entry_price = (
                position.entry_price * position.quantity + fill_price * trade.quantity
            ) / quantity
            position.quantity = quantity
            position.current_price = trade.price
            position.unrealized_pnl = (position.current_price - position.entry_price) * quantity

        return self._record(trade, fill_price, fee, realized_pnl=0.0)

    def _execute_sell(self, trade: Trade) -> ExecutionResult:
        position = self._positions.get(trade.symbol)
        if position is None or trade.quantity > position.quantity:
            return ExecutionResult(success=False, error=f"Insufficient position in {trade.symbol}")

        fill_price = trade.price * (1 - self.slippage)
        proceeds = trade.quantity * fill_price
        fee = proceeds * self.commission
        realized_pnl = (fill_price - position.entry_price) * trade.quantity - fee

        self._cash += proceeds - fee
        position.quantity -= trade.quantity
        position.realized_pnl += realized_pnl
        if position.quantity <= 0:
            del self._positions[trade.symbol]
        else:
            position.unrealized_pnl = (position.current_price - position.entry_price) * position.quantity

        return self._record(trade, fill_price, fee, realized_pnl=realized_pnl)

    def _record(self, trade: Trade, fill_price: float, fee: float, realized_pnl: float) -> ExecutionResult:
        executed = replace(
            trade,
            price=fill_price,
            status=TradeStatus.FILLED,
            metadata={
                **trade.metadata,
                "commission": round_amount(fee),
                "realized_pnl": round_amount(realized_pnl),
            },
        )
        self._trades.append(executed)
        logger.debug(
            f"Executed {executed.action.value} {executed.quantity} {executed.symbol} @ {fill_price:.2f}"
        )
        return ExecutionResult(success=True, executed_trade=executed)

    # Reporting

    def get_trade_history(self) -> list[Trade]:
        return list(self._trades)

    def get_performance_metrics(self) -> PerformanceSummary:
        returns = self._calculator.calculate_returns(self._value_history)
        trade_metrics = self._calculator.calculate_trade_metrics(self._trades)
        return PerformanceSummary(
            total_return=self._calculator.total_return(self.initial_capital, self.total_value),
            sharpe_ratio=self._calculator.sharpe_ratio(returns),
            max_drawdown=self._calculator.max_drawdown(self._value_history),
            win_rate=trade_metrics["win_rate"],
        )
