"""
Unit tests for backtest domain models.
"""

from datetime import UTC, datetime, timedelta, timezone

import pytest

from agent_backtester.core.enums import SignalAction, TradeAction, TradeStatus
from agent_backtester.core.exceptions.backtest import ValidationError
from agent_backtester.core.models.backtest import BacktestConfig, BacktestResult
from agent_backtester.core.models.job import BacktestJob
from agent_backtester.core.models.market import DataRequest, MarketBar
from agent_backtester.core.models.portfolio import Portfolio
from agent_backtester.core.models.position import Position
from agent_backtester.core.models.trade import Signal, Trade

NOW = datetime(2023, 6, 1, tzinfo=UTC)


class TestMarketBar:
    """Test suite for MarketBar."""

    def test_should_treat_naive_timestamps_as_utc(self) -> None:
        """Test timestamp normalization."""
        bar = MarketBar("AAPL", datetime(2023, 6, 1), 1.0, 2.0, 0.5, 1.5, 100.0)
        assert bar.timestamp == NOW

    def test_should_convert_other_timezones_to_utc(self) -> None:
        """Test aware timestamps are converted."""
        eastern = timezone(timedelta(hours=-5))
        bar = MarketBar("AAPL", datetime(2023, 5, 31, 19, tzinfo=eastern), 1.0, 2.0, 0.5, 1.5)
        assert bar.timestamp == NOW

    @pytest.mark.parametrize("close", [float("nan"), float("inf"), -1.0])
    def test_should_reject_invalid_prices(self, close: float) -> None:
        """Test non-finite and negative prices."""
        with pytest.raises(ValidationError, match="close must be a non-negative number"):
            MarketBar("AAPL", NOW, 1.0, 2.0, 0.5, close)

    def test_should_serialize_to_dict(self) -> None:
        """Test to_dict."""
        bar = MarketBar("AAPL", NOW, 1.0, 2.0, 0.5, 1.5, 100.0)
        assert bar.to_dict()["timestamp"] == "2023-06-01T00:00:00+00:00"


class TestDataRequest:
    """Test suite for DataRequest."""

    def test_should_include_both_range_ends(self) -> None:
        """Test contains is inclusive."""
        request = DataRequest("AAPL", datetime(2023, 1, 1), datetime(2023, 1, 31))
        assert request.contains(datetime(2023, 1, 1, tzinfo=UTC))
        assert request.contains(datetime(2023, 1, 31, tzinfo=UTC))
        assert not request.contains(datetime(2023, 2, 1, tzinfo=UTC))


class TestBacktestConfig:
    """Test suite for BacktestConfig validity helpers."""

    def test_should_report_valid_config(self, sample_config: BacktestConfig) -> None:
        """Test a valid configuration."""
        assert sample_config.is_valid_date_range()
        assert sample_config.is_valid_capital()
        assert sample_config.has_symbols()
        assert sample_config.duration_days() == 30

    def test_should_allow_invalid_values_for_later_reporting(self) -> None:
        """Test construction never raises on bad values."""
        config = BacktestConfig(
            start_date=NOW, end_date=NOW, initial_capital=-5.0, symbols=()
        )
        assert not config.is_valid_date_range()
        assert not config.is_valid_capital()
        assert not config.has_symbols()

    def test_should_handle_missing_dates(self) -> None:
        """Test configs without dates."""
        config = BacktestConfig(start_date=None, end_date=None, initial_capital=1.0, symbols=("A",))
        assert not config.has_dates()
        assert config.duration_days() == 0
        assert config.to_dict()["start_date"] is None

    def test_should_store_symbols_as_tuple(self) -> None:
        """Test symbols list is frozen into a tuple."""
        config = BacktestConfig(NOW, NOW + timedelta(days=1), 1.0, ["AAPL"])  # type: ignore[arg-type]
        assert config.symbols == ("AAPL",)


class TestSignalAndTrade:
    """Test suite for Signal and Trade."""

    def test_should_reject_confidence_outside_unit_interval(self) -> None:
        """Test signal confidence bounds."""
        with pytest.raises(ValidationError, match="Confidence must be between 0 and 1"):
            Signal("s1", "agent", "AAPL", SignalAction.BUY, 1.5, 0.5, NOW)

    def test_should_reject_non_positive_quantity(self) -> None:
        """Test trade quantity validation."""
        with pytest.raises(ValidationError, match="Quantity must be positive"):
            Trade("t1", "AAPL", TradeAction.BUY, 0.0, 100.0, NOW)

    def test_should_read_realized_pnl_from_metadata(self, make_trade) -> None:
        """Test realized_pnl defaults to zero."""
        assert make_trade(125.0).realized_pnl == 125.0
        assert make_trade(None).realized_pnl == 0.0

    def test_should_report_fill_status(self) -> None:
        """Test is_filled and serialized status."""
        trade = Trade("t1", "AAPL", TradeAction.BUY, 10.0, 100.0, NOW, status=TradeStatus.FILLED)
        assert trade.is_filled
        assert trade.to_dict()["status"] == "FILLED"


class TestPortfolio:
    """Test suite for Portfolio and Position."""

    def test_should_value_positions(self) -> None:
        """Test market value and return helpers."""
        position = Position("AAPL", 10.0, 100.0, 110.0, 100.0, 0.0, NOW)
        portfolio = Portfolio("p1", cash=900.0, total_value=2000.0, timestamp=NOW, positions=[position])

        assert position.market_value == 1100.0
        assert position.position_return == pytest.approx(0.1)
        assert portfolio.positions_value == 1100.0
        assert portfolio.get_position("AAPL") is position
        assert portfolio.get_position("MSFT") is None
        assert portfolio.to_dict()["positions"][0]["symbol"] == "AAPL"


class TestBacktestResult:
    """Test suite for BacktestResult serializers."""

    def test_should_summarize_without_trades(self, make_trade) -> None:
        """Test summary, period and to_dict."""
        result = BacktestResult(
            id="r1",
            start_date=datetime(2023, 1, 1, tzinfo=UTC),
            end_date=datetime(2023, 12, 31, tzinfo=UTC),
            initial_capital=100_000.0,
            final_capital=110_000.0,
            total_return=0.1,
            max_drawdown=0.05,
            sharpe_ratio=1.2,
            total_trades=1,
            winning_trades=1,
            win_rate=1.0,
            trades=(make_trade(10.0),),
        )

        assert result.period() == "2023-01-01 to 2023-12-31"
        assert "trades" not in result.summary()
        assert result.to_dict()["trades"][0]["id"] == "trade-0"


class TestBacktestJob:
    """Test suite for BacktestJob."""

    def test_should_start_pending_with_unique_id(self, sample_request) -> None:
        """Test job defaults."""
        first = BacktestJob(name="a", request=sample_request)
        second = BacktestJob(name="b", request=sample_request)

        assert first.status.value == "PENDING"
        assert first.progress == 0
        assert first.id != second.id
        assert first.start_time is None
