"""
Performance statistics over portfolio value series and trade ledgers.

This module holds the numeric definitions shared by the portfolio
tracker and the paper portfolio so that both report identical figures.
"""

import math
from collections.abc import Sequence

import numpy as np

from agent_backtester.core.constants import ANNUAL_RISK_FREE_RATE, TRADING_DAYS_PER_YEAR
from agent_backtester.core.interfaces.metrics import IMetricsCalculator
from agent_backtester.core.models.trade import Trade
from agent_backtester.core.types.financial import relative_change, safe_divide


class PerformanceCalculator(IMetricsCalculator):
    """Return, risk and trade statistics.

    Volatilities are population standard deviations annualized with
    ``sqrt(252)``. Ratios compare the mean per-step return with the
    annual risk-free rate de-annualized by ``/252``. Sortino ratio and
    profit factor return ``inf`` when there are no adverse observations
    but a positive numerator.
    """

    def __init__(
        self,
        risk_free_rate: float = ANNUAL_RISK_FREE_RATE,
        periods_per_year: int = TRADING_DAYS_PER_YEAR,
    ):
        self.risk_free_rate = risk_free_rate
        self.periods_per_year = periods_per_year

    @property
    def risk_free_per_period(self) -> float:
        return self.risk_free_rate / self.periods_per_year

    # Returns

    def calculate_returns(self, values: Sequence[float]) -> list[float]:
        """Per-step relative changes of a value series (empty with fewer than 2 values)."""
        return [relative_change(values[i - 1], values[i]) for i in range(1, len(values))]

    @staticmethod
    def total_return(initial_value: float, current_value: float) -> float:
        """Fractional change from the initial value."""
        return relative_change(initial_value, current_value)

    # Risk

    def volatility(self, returns: Sequence[float]) -> float:
        """Annualized population standard deviation of returns."""
        if len(returns) < 2:
            return 0.0
        return float(np.std(returns) * math.sqrt(self.periods_per_year))

    def sharpe_ratio(self, returns: Sequence[float]) -> float:
        if len(returns) < 2:
            return 0.0
        daily_volatility = self.volatility(returns) / math.sqrt(self.periods_per_year)
        if daily_volatility <= 0:
            return 0.0
        return float((np.mean(returns) - self.risk_free_per_period) / daily_volatility)

    def sortino_ratio(self, returns: Sequence[float]) -> float:
        if len(returns) < 2:
            return 0.0

        mean_return = float(np.mean(returns))
        downside = np.array([r for r in returns if r < 0])
        if downside.size == 0:
            return math.inf if mean_return > 0 else 0.0

        downside_volatility = math.sqrt(float(np.mean(downside**2)) * self.periods_per_year)
        if downside_volatility <= 0:
            return 0.0
        return (mean_return - self.risk_free_per_period) / (
            downside_volatility / math.sqrt(self.periods_per_year)
        )

    @staticmethod
    def drawdown_series(values: Sequence[float]) -> list[float]:
        """Fractional decline from the running peak at every point."""
        if len(values) == 0:
            return []
        series = np.asarray(values, dtype=float)
        peaks = np.maximum.accumulate(series)
        drawdowns = np.divide(
            peaks - series, peaks, out=np.zeros_like(series), where=peaks > 0
        )
        return drawdowns.tolist()

    def max_drawdown(self, values: Sequence[float]) -> float:
        """Worst peak-to-trough fraction over the whole series (0 with fewer than 2 values)."""
        if len(values) < 2:
            return 0.0
        return max(self.drawdown_series(values))

    @staticmethod
    def current_drawdown(values: Sequence[float]) -> float:
        """Decline of the latest value from the all-time peak."""
        if len(values) == 0:
            return 0.0
        peak = max(values)
        return safe_divide(peak - values[-1], peak) if peak > 0 else 0.0

    @staticmethod
    def calmar_ratio(total_return: float, max_drawdown: float) -> float:
        return total_return / max_drawdown if max_drawdown > 0 else 0.0

    def calculate_risk_metrics(self, values: Sequence[float]) -> dict[str, float]:
        returns = self.calculate_returns(values)
        max_drawdown = self.max_drawdown(values)
        total_return = self.total_return(values[0], values[-1]) if values else 0.0
        return {
            "volatility": self.volatility(returns),
            "sharpe_ratio": self.sharpe_ratio(returns),
            "sortino_ratio": self.sortino_ratio(returns),
            "max_drawdown": max_drawdown,
            "current_drawdown": self.current_drawdown(values),
            "calmar_ratio": self.calmar_ratio(total_return, max_drawdown),
        }

    # Benchmark-relative

    @staticmethod
    def _align(returns: Sequence[float], benchmark: Sequence[float]) -> tuple[np.ndarray, np.ndarray]:
        """Right-align both series and truncate them to the shorter length."""
        length = min(len(returns), len(benchmark))
        if length == 0:
            return np.array([]), np.array([])
        return (
            np.asarray(returns[-length:], dtype=float),
            np.asarray(benchmark[-length:], dtype=float),
        )

    def beta(self, returns: Sequence[float], benchmark: Sequence[float]) -> float:
        portfolio, market = self._align(returns, benchmark)
        if portfolio.size == 0:
            return 0.0
        covariance = float(np.mean((portfolio - portfolio.mean()) * (market - market.mean())))
        variance = float(np.var(market))
        return covariance / variance if variance > 0 else 0.0

    def alpha(self, returns: Sequence[float], benchmark: Sequence[float]) -> float:
        if len(returns) == 0 or len(benchmark) == 0:
            return 0.0
        portfolio_return = float(np.mean(returns))
        benchmark_return = float(np.mean(benchmark))
        beta = self.beta(returns, benchmark)
        return portfolio_return - (
            self.risk_free_per_period + beta * (benchmark_return - self.risk_free_per_period)
        )

    def information_ratio(self, returns: Sequence[float], benchmark: Sequence[float]) -> float:
        portfolio, market = self._align(returns, benchmark)
        if portfolio.size == 0:
            return 0.0
        excess = portfolio - market
        tracking_error = self.volatility(excess.tolist()) / math.sqrt(self.periods_per_year)
        return float(excess.mean()) / tracking_error if tracking_error > 0 else 0.0

    # Trades

    def calculate_trade_metrics(self, trades: Sequence[Trade]) -> dict[str, float]:
        """Win/loss statistics over filled trades, keyed by realized PnL."""
        pnls = [trade.realized_pnl for trade in trades if trade.is_filled]
        wins = [pnl for pnl in pnls if pnl > 0]
        losses = [pnl for pnl in pnls if pnl < 0]

        gross_profit = sum(wins)
        gross_loss = sum(abs(pnl) for pnl in pnls if pnl <= 0)
        if gross_loss > 0:
            profit_factor = gross_profit / gross_loss
        else:
            profit_factor = math.inf if gross_profit > 0 else 0.0

        return {
            "total_trades": len(pnls),
            "winning_trades": len(wins),
            "losing_trades": len(losses),
            "win_rate": safe_divide(len(wins), len(pnls)),
            "profit_factor": profit_factor,
            "average_win": safe_divide(gross_profit, len(wins)),
            "average_loss": safe_divide(sum(abs(pnl) for pnl in losses), len(losses)),
            "largest_win": max(wins, default=0.0),
            "largest_loss": min(losses, default=0.0),
        }
