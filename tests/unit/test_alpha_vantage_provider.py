"""
Unit tests for the Alpha Vantage provider.
HTTP calls are replaced with canned payloads.
"""

from datetime import UTC, datetime
from unittest.mock import Mock, patch

import pytest
import requests

from agent_backtester.core.enums import Interval
from agent_backtester.core.exceptions.backtest import ConfigurationError, DataError
from agent_backtester.core.models.market import DataRequest
from agent_backtester.infrastructure.data import AlphaVantageProvider

REQUESTS_GET = "agent_backtester.infrastructure.data.alpha_vantage_provider.requests.get"

DAILY_PAYLOAD = {
    "Meta Data": {"2. Symbol": "AAPL"},
    "Time Series (Daily)": {
        "2023-01-04": {
            "1. open": "126.89",
            "2. high": "128.66",
            "3. low": "125.08",
            "4. close": "126.36",
            "5. volume": "89113600",
        },
        "2023-01-03": {
            "1. open": "130.28",
            "2. high": "130.90",
            "3. low": "124.17",
            "4. close": "125.07",
            "5. volume": "112117500",
        },
        "2022-12-30": {
            "1. open": "128.41",
            "2. high": "129.95",
            "3. low": "127.43",
            "4. close": "129.93",
            "5. volume": "77034200",
        },
    },
}


def mock_response(payload: dict) -> Mock:
    response = Mock()
    response.json.return_value = payload
    response.raise_for_status.return_value = None
    return response


@pytest.fixture
def provider() -> AlphaVantageProvider:
    return AlphaVantageProvider(api_key="demo")


@pytest.fixture
def request_jan() -> DataRequest:
    return DataRequest(
        "AAPL", datetime(2023, 1, 1, tzinfo=UTC), datetime(2023, 1, 31, tzinfo=UTC)
    )


class TestAlphaVantageProvider:
    """Test suite for AlphaVantageProvider."""

    def test_should_require_api_key(self) -> None:
        """Test construction without a key."""
        with pytest.raises(ConfigurationError, match="API key is required"):
            AlphaVantageProvider(api_key="")

    @pytest.mark.parametrize(
        "interval,function",
        [
            (Interval.M5, "TIME_SERIES_INTRADAY"),
            (Interval.H4, "TIME_SERIES_INTRADAY"),
            (Interval.D1, "TIME_SERIES_DAILY"),
            (Interval.W1, "TIME_SERIES_WEEKLY"),
            (Interval.MN1, "TIME_SERIES_MONTHLY"),
        ],
    )
    def test_should_map_interval_to_series_function(self, interval, function) -> None:
        """Test series function selection."""
        assert AlphaVantageProvider.get_function_name(interval) == function

    @pytest.mark.asyncio
    async def test_should_parse_filter_and_sort_daily_series(self, provider, request_jan) -> None:
        """Test parsing of a daily payload."""
        with patch(REQUESTS_GET, return_value=mock_response(DAILY_PAYLOAD)) as get:
            bars = await provider.fetch_historical_data(request_jan)

        assert [bar.timestamp.day for bar in bars] == [3, 4]
        assert bars[0].open == 130.28
        assert bars[0].close == 125.07
        assert bars[0].volume == 112117500.0
        params = get.call_args.kwargs["params"]
        assert params["function"] == "TIME_SERIES_DAILY"
        assert params["apikey"] == "demo"
        assert "interval" not in params

    @pytest.mark.asyncio
    async def test_should_send_interval_for_intraday_requests(self, provider) -> None:
        """Test intraday query parameters."""
        request = DataRequest(
            "AAPL", datetime(2023, 1, 1, tzinfo=UTC), datetime(2023, 1, 2, tzinfo=UTC), Interval.H1
        )
        payload = {"Time Series (60min)": {}}

        with patch(REQUESTS_GET, return_value=mock_response(payload)) as get:
            assert await provider.fetch_historical_data(request) == []

        assert get.call_args.kwargs["params"]["interval"] == "60min"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "payload,message",
        [
            ({"Error Message": "Invalid API call"}, "API Error: Invalid API call"),
            ({"Note": "Thank you for using Alpha Vantage"}, "API Rate Limit"),
            ({"Information": "unexpected"}, "Invalid response format"),
        ],
    )
    async def test_should_raise_data_error_for_error_payloads(
        self, provider, request_jan, payload, message
    ) -> None:
        """Test error, rate-limit and malformed payloads."""
        with patch(REQUESTS_GET, return_value=mock_response(payload)):
            with pytest.raises(DataError, match=message):
                await provider.fetch_historical_data(request_jan)

    @pytest.mark.asyncio
    async def test_should_wrap_transport_failures(self, provider, request_jan) -> None:
        """Test HTTP errors become DataError."""
        with patch(REQUESTS_GET, side_effect=requests.ConnectionError("offline")):
            with pytest.raises(DataError, match="Failed to fetch data from Alpha Vantage"):
                await provider.fetch_historical_data(request_jan)
