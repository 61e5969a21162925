"""
Unit tests for the paper portfolio collaborator and the null signal source.
"""

from dataclasses import replace
from datetime import UTC, datetime, timedelta

import pytest

from agent_backtester.core.enums import SignalAction, TradeAction, TradeStatus
from agent_backtester.core.exceptions.backtest import ValidationError
from agent_backtester.core.models.trade import Signal
from agent_backtester.infrastructure.portfolio.paper_portfolio import PaperPortfolioManager
from agent_backtester.infrastructure.signals.null_signal_source import NullSignalSource

START = datetime(2023, 1, 2, tzinfo=UTC)


def make_signal(action: SignalAction, symbol: str = "AAPL", day: int = 0) -> Signal:
    return Signal(
        id=f"signal-{action.value}-{day}",
        agent_id="agent-1",
        symbol=symbol,
        action=action,
        confidence=0.8,
        strength=0.6,
        timestamp=START + timedelta(days=day),
    )


@pytest.fixture
def portfolio() -> PaperPortfolioManager:
    manager = PaperPortfolioManager(initial_capital=100_000.0, position_fraction=0.1)
    manager.update_market_prices({"AAPL": 100.0}, START)
    return manager


def buy(manager: PaperPortfolioManager, symbol: str = "AAPL", day: int = 0):
    decision = manager.process_signal(make_signal(SignalAction.BUY, symbol, day))
    assert decision.approved
    return manager.execute_trade(decision.trade)


class TestPaperPortfolioConstruction:
    """Test suite for constructor validation."""

    def test_should_start_with_all_cash(self) -> None:
        """Test initial state."""
        manager = PaperPortfolioManager(initial_capital=50_000.0)

        state = manager.get_portfolio()
        assert state.cash == 50_000.0
        assert state.total_value == 50_000.0
        assert state.positions == []
        assert manager.get_trade_history() == []

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"initial_capital": 0.0},
            {"initial_capital": 1_000.0, "commission": 1.5},
            {"initial_capital": 1_000.0, "slippage": -0.1},
        ],
    )
    def test_should_reject_invalid_parameters(self, kwargs) -> None:
        """Test capital and rate validation."""
        with pytest.raises(ValidationError):
            PaperPortfolioManager(**kwargs)


class TestSignalProcessing:
    """Test suite for signal evaluation."""

    def test_should_size_buy_as_fraction_of_equity(self, portfolio) -> None:
        """Test BUY sizing."""
        decision = portfolio.process_signal(make_signal(SignalAction.BUY))

        assert decision.approved
        assert decision.trade.action == TradeAction.BUY
        assert decision.trade.quantity == 100.0
        assert decision.trade.price == 100.0
        assert decision.trade.status == TradeStatus.PENDING
        assert decision.trade.agent_signals == ["signal-BUY-0"]
        assert decision.trade.timestamp == START

    def test_should_include_costs_when_sizing(self) -> None:
        """Test sizing with commission and slippage."""
        manager = PaperPortfolioManager(100_000.0, commission=0.001, slippage=0.01, position_fraction=0.1)
        manager.update_market_prices({"AAPL": 100.0}, START)

        decision = manager.process_signal(make_signal(SignalAction.BUY))

        assert decision.trade.quantity == 98.0

    def test_should_reject_hold_signals(self, portfolio) -> None:
        """Test HOLD is never traded."""
        decision = portfolio.process_signal(make_signal(SignalAction.HOLD))

        assert not decision.approved
        assert decision.reason == "Hold signal"

    def test_should_reject_signal_without_price(self, portfolio) -> None:
        """Test unknown symbols."""
        decision = portfolio.process_signal(make_signal(SignalAction.BUY, symbol="MSFT"))

        assert not decision.approved
        assert decision.reason == "No market price for MSFT"

    def test_should_reject_sell_without_position(self, portfolio) -> None:
        """Test SELL requires a holding."""
        decision = portfolio.process_signal(make_signal(SignalAction.SELL))

        assert not decision.approved
        assert decision.reason == "No position in AAPL"

    def test_should_reject_buy_when_cash_cannot_buy_one_unit(self) -> None:
        """Test insufficient cash."""
        manager = PaperPortfolioManager(initial_capital=500.0, position_fraction=0.1)
        manager.update_market_prices({"AAPL": 100.0}, START)

        decision = manager.process_signal(make_signal(SignalAction.BUY))

        assert not decision.approved
        assert decision.reason == "Insufficient cash"


class TestTradeExecution:
    """Test suite for trade execution and valuation."""

    def test_should_fill_buy_and_open_position(self, portfolio) -> None:
        """Test BUY execution."""
        result = buy(portfolio)

        assert result.success
        assert result.executed_trade.status == TradeStatus.FILLED
        assert result.executed_trade.realized_pnl == 0.0
        assert portfolio.cash == pytest.approx(90_000.0)
        position = portfolio.get_portfolio().get_position("AAPL")
        assert position.quantity == 100.0
        assert position.entry_price == 100.0

    def test_should_charge_slippage_and_commission_on_buy(self) -> None:
        """Test fill price and fee."""
        manager = PaperPortfolioManager(100_000.0, commission=0.001, slippage=0.01, position_fraction=0.1)
        manager.update_market_prices({"AAPL": 100.0}, START)

        result = buy(manager)

        assert result.executed_trade.price == pytest.approx(101.0)
        assert result.executed_trade.metadata["commission"] == pytest.approx(9.898)
        assert manager.cash == pytest.approx(100_000.0 - 98 * 101.0 * 1.001)

    def test_should_close_position_and_realize_pnl_on_sell(self, portfolio) -> None:
        """Test SELL execution."""
        buy(portfolio)
        portfolio.update_market_prices({"AAPL": 110.0}, START + timedelta(days=1))

        decision = portfolio.process_signal(make_signal(SignalAction.SELL, day=1))
        result = portfolio.execute_trade(decision.trade)

        assert result.success
        assert decision.trade.quantity == 100.0
        assert result.executed_trade.realized_pnl == pytest.approx(1_000.0)
        assert portfolio.cash == pytest.approx(101_000.0)
        assert portfolio.get_portfolio().positions == []
        assert len(portfolio.get_trade_history()) == 2

    def test_should_refuse_to_execute_non_pending_trade(self, portfolio) -> None:
        """Test only pending trades are executed."""
        decision = portfolio.process_signal(make_signal(SignalAction.BUY))

        result = portfolio.execute_trade(replace(decision.trade, status=TradeStatus.FILLED))

        assert not result.success
        assert "not pending" in result.error

    def test_should_mark_positions_to_market(self, portfolio) -> None:
        """Test revaluation and daily PnL."""
        buy(portfolio)
        portfolio.update_market_prices({"AAPL": 105.0}, START + timedelta(days=1))

        state = portfolio.get_portfolio()

        assert state.total_value == pytest.approx(100_500.0)
        assert state.daily_pnl == pytest.approx(500.0)
        assert state.total_pnl == pytest.approx(500.0)
        assert state.timestamp == START + timedelta(days=1)
        assert state.get_position("AAPL").unrealized_pnl == pytest.approx(500.0)

    def test_should_report_performance_metrics(self, portfolio) -> None:
        """Test headline performance."""
        buy(portfolio)
        portfolio.update_market_prices({"AAPL": 120.0}, START + timedelta(days=1))
        decision = portfolio.process_signal(make_signal(SignalAction.SELL, day=1))
        portfolio.execute_trade(decision.trade)

        performance = portfolio.get_performance_metrics()

        assert performance.total_return == pytest.approx(0.02)
        assert performance.win_rate == 0.5
        assert performance.max_drawdown == 0.0


class TestNullSignalSource:
    """Test suite for NullSignalSource."""

    @pytest.mark.asyncio
    async def test_should_never_produce_signals(self) -> None:
        """Test the source is silent."""
        assert await NullSignalSource().generate_signals({}) == []

    def test_should_remember_last_parameters(self) -> None:
        """Test parameter updates are kept."""
        source = NullSignalSource()

        source.update_parameters({"fast": 5})
        source.update_parameters({"fast": 10, "slow": 50})

        assert source.parameters == {"fast": 10, "slow": 50}
