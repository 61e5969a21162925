"""
Shared fixtures for unit and integration tests.
"""

from datetime import UTC, datetime, timedelta

import pytest

from agent_backtester.core.enums import AgentType, DataProviderType, TradeAction, TradeStatus
from agent_backtester.core.models.backtest import AgentConfig, BacktestConfig
from agent_backtester.core.models.job import BacktestRequest, DataProviderSpec
from agent_backtester.core.models.market import MarketBar
from agent_backtester.core.models.trade import Trade

START = datetime(2023, 1, 2, tzinfo=UTC)


def build_bars(symbol: str, closes: list[float], start: datetime = START) -> list[MarketBar]:
    """Daily bars with the given closes, one day apart."""
    return [
        MarketBar(
            symbol=symbol,
            timestamp=start + timedelta(days=i),
            open=close,
            high=close * 1.01,
            low=close * 0.99,
            close=close,
            volume=1_000_000.0,
        )
        for i, close in enumerate(closes)
    ]


def build_trade(pnl: float | None, status: TradeStatus = TradeStatus.FILLED, index: int = 0) -> Trade:
    """Filled SELL trade carrying ``pnl`` as realized PnL (no metadata when None)."""
    return Trade(
        id=f"trade-{index}",
        symbol="AAPL",
        action=TradeAction.SELL,
        quantity=10.0,
        price=100.0,
        timestamp=START + timedelta(days=index),
        status=status,
        metadata={} if pnl is None else {"realized_pnl": pnl},
    )


@pytest.fixture
def make_bars():
    return build_bars


@pytest.fixture
def make_trade():
    return build_trade


@pytest.fixture
def sample_config() -> BacktestConfig:
    return BacktestConfig(
        start_date=START,
        end_date=START + timedelta(days=30),
        initial_capital=100_000.0,
        symbols=("AAPL", "MSFT"),
    )


@pytest.fixture
def sample_request(sample_config) -> BacktestRequest:
    return BacktestRequest(
        name="Momentum test",
        config=sample_config,
        agent_configs=[AgentConfig(id="agent-1", name="Trend", type=AgentType.TECHNICAL)],
        data_provider=DataProviderSpec(type=DataProviderType.MOCK),
    )
