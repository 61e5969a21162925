"""
Unit tests for PerformanceCalculator.
"""

import math

import numpy as np
import pytest

from agent_backtester.backtesting.performance import PerformanceCalculator
from agent_backtester.core.enums import TradeStatus

VALUES = [100_000.0, 102_000.0, 98_000.0, 105_000.0, 95_000.0, 110_000.0]


@pytest.fixture
def calculator() -> PerformanceCalculator:
    return PerformanceCalculator()


class TestReturnsAndDrawdown:
    """Test suite for return and drawdown metrics."""

    def test_should_calculate_total_return_and_max_drawdown(self, calculator) -> None:
        """Test headline metrics over a known value path."""
        assert calculator.total_return(VALUES[0], VALUES[-1]) == pytest.approx(0.10)
        assert calculator.max_drawdown(VALUES) == pytest.approx(10_000 / 105_000)
        assert calculator.current_drawdown(VALUES) == 0.0

    def test_should_calculate_step_returns(self, calculator) -> None:
        """Test per-step relative changes."""
        returns = calculator.calculate_returns(VALUES)

        assert len(returns) == 5
        assert returns[0] == pytest.approx(0.02)
        assert returns[-1] == pytest.approx(110_000 / 95_000 - 1)

    def test_should_return_no_returns_for_single_value(self, calculator) -> None:
        """Test short series."""
        assert calculator.calculate_returns([100.0]) == []
        assert calculator.max_drawdown([100.0]) == 0.0

    def test_should_compute_drawdown_series_from_running_peak(self, calculator) -> None:
        """Test drawdown at each point."""
        assert calculator.drawdown_series([100.0, 120.0, 90.0]) == pytest.approx([0.0, 0.0, 0.25])

    def test_should_report_current_drawdown_below_peak(self, calculator) -> None:
        """Test current drawdown from the all-time peak."""
        assert calculator.current_drawdown([100.0, 200.0, 150.0]) == pytest.approx(0.25)

    def test_should_calculate_calmar_ratio(self, calculator) -> None:
        """Test Calmar ratio and its zero-drawdown case."""
        assert calculator.calmar_ratio(0.10, 0.05) == pytest.approx(2.0)
        assert calculator.calmar_ratio(0.10, 0.0) == 0.0


class TestRiskRatios:
    """Test suite for volatility, Sharpe and Sortino ratios."""

    def test_should_annualize_population_volatility(self, calculator) -> None:
        """Test volatility uses sqrt(252) annualization."""
        returns = [0.01, -0.01, 0.02, -0.02]

        assert calculator.volatility(returns) == pytest.approx(np.std(returns) * math.sqrt(252))

    def test_should_return_zero_ratios_for_short_series(self, calculator) -> None:
        """Test fewer than two returns."""
        assert calculator.volatility([0.01]) == 0.0
        assert calculator.sharpe_ratio([0.01]) == 0.0
        assert calculator.sortino_ratio([0.01]) == 0.0

    def test_should_return_zero_sharpe_for_constant_returns(self, calculator) -> None:
        """Test zero volatility."""
        assert calculator.sharpe_ratio([0.01, 0.01, 0.01]) == 0.0

    def test_should_calculate_sharpe_against_daily_risk_free_rate(self, calculator) -> None:
        """Test Sharpe ratio definition."""
        returns = [0.01, -0.005, 0.02, 0.0]
        expected = (np.mean(returns) - 0.02 / 252) / np.std(returns)

        assert calculator.sharpe_ratio(returns) == pytest.approx(expected)

    def test_should_return_infinite_sortino_without_losses(self, calculator) -> None:
        """Test Sortino with no downside."""
        assert calculator.sortino_ratio([0.01, 0.02]) == math.inf
        assert calculator.sortino_ratio([0.0, 0.0]) == 0.0

    def test_should_bundle_risk_metrics(self, calculator) -> None:
        """Test the risk metrics bundle."""
        metrics = calculator.calculate_risk_metrics(VALUES)

        assert set(metrics) == {
            "volatility",
            "sharpe_ratio",
            "sortino_ratio",
            "max_drawdown",
            "current_drawdown",
            "calmar_ratio",
        }
        assert metrics["calmar_ratio"] == pytest.approx(0.10 / (10_000 / 105_000))


class TestBenchmarkMetrics:
    """Test suite for benchmark-relative metrics."""

    def test_should_calculate_beta_of_leveraged_series(self, calculator) -> None:
        """Test beta of a series twice the benchmark."""
        benchmark = [0.01, -0.02, 0.015, 0.005]
        returns = [2 * r for r in benchmark]

        assert calculator.beta(returns, benchmark) == pytest.approx(2.0)
        assert calculator.alpha(returns, benchmark) == pytest.approx(0.02 / 252)

    def test_should_right_align_series_of_different_length(self, calculator) -> None:
        """Test the most recent observations are compared."""
        benchmark = [0.01, -0.02, 0.015]
        returns = [0.5, 0.02, -0.04, 0.03]

        assert calculator.beta(returns, benchmark) == pytest.approx(2.0)

    def test_should_return_zero_information_ratio_without_tracking_error(self, calculator) -> None:
        """Test identical series."""
        returns = [0.01, -0.02, 0.015]

        assert calculator.information_ratio(returns, returns) == 0.0

    def test_should_return_zero_for_empty_benchmark(self, calculator) -> None:
        """Test missing benchmark data."""
        assert calculator.beta([0.01, 0.02], []) == 0.0
        assert calculator.alpha([0.01, 0.02], []) == 0.0
        assert calculator.information_ratio([0.01, 0.02], []) == 0.0


class TestTradeMetrics:
    """Test suite for trade statistics."""

    def test_should_calculate_win_loss_statistics(self, calculator, make_trade) -> None:
        """Test statistics over two wins and one loss."""
        trades = [make_trade(500.0, index=0), make_trade(-200.0, index=1), make_trade(125.0, index=2)]

        metrics = calculator.calculate_trade_metrics(trades)

        assert metrics["total_trades"] == 3
        assert metrics["winning_trades"] == 2
        assert metrics["losing_trades"] == 1
        assert metrics["win_rate"] == pytest.approx(2 / 3)
        assert metrics["profit_factor"] == pytest.approx(3.125)
        assert metrics["average_win"] == pytest.approx(312.5)
        assert metrics["average_loss"] == pytest.approx(200.0)
        assert metrics["largest_win"] == 500.0
        assert metrics["largest_loss"] == -200.0

    def test_should_ignore_trades_that_are_not_filled(self, calculator, make_trade) -> None:
        """Test pending trades are excluded."""
        trades = [make_trade(500.0), make_trade(-200.0, status=TradeStatus.PENDING, index=1)]

        metrics = calculator.calculate_trade_metrics(trades)

        assert metrics["total_trades"] == 1
        assert metrics["profit_factor"] == math.inf

    def test_should_count_trades_without_pnl_as_neither_win_nor_loss(self, calculator, make_trade) -> None:
        """Test trades without realized PnL."""
        metrics = calculator.calculate_trade_metrics([make_trade(None)])

        assert metrics["total_trades"] == 1
        assert metrics["winning_trades"] == 0
        assert metrics["losing_trades"] == 0
        assert metrics["win_rate"] == 0.0
        assert metrics["profit_factor"] == 0.0

    def test_should_return_zeroes_without_trades(self, calculator) -> None:
        """Test empty ledger."""
        metrics = calculator.calculate_trade_metrics([])

        assert metrics["win_rate"] == 0.0
        assert metrics["largest_win"] == 0.0
        assert metrics["largest_loss"] == 0.0
