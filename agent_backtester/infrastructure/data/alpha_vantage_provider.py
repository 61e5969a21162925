"""
Alpha Vantage backed historical data provider.
"""

import asyncio
import functools
from typing import Any

import requests
from loguru import logger

from agent_backtester.core.constants import ALPHA_VANTAGE_BASE_URL, ALPHA_VANTAGE_RATE_LIMIT
from agent_backtester.core.enums import Interval
from agent_backtester.core.exceptions.backtest import ConfigurationError, DataError
from agent_backtester.core.models.market import DataRequest, MarketBar
from agent_backtester.core.utils.datetime_utils import parse_timestamp

from .base_provider import BaseDataProvider, DataProviderConfig

INTRADAY_FUNCTION = "TIME_SERIES_INTRADAY"
DAILY_FUNCTION = "TIME_SERIES_DAILY"

SERIES_FUNCTIONS = {
    Interval.D1: DAILY_FUNCTION,
    Interval.W1: "TIME_SERIES_WEEKLY",
    Interval.MN1: "TIME_SERIES_MONTHLY",
}

# Alpha Vantage has no 4h bars; they collapse onto the hourly intraday series.
INTRADAY_INTERVALS = {
    Interval.M1: "1min",
    Interval.M5: "5min",
    Interval.M15: "15min",
    Interval.M30: "30min",
    Interval.H1: "60min",
    Interval.H4: "60min",
}


class AlphaVantageProvider(BaseDataProvider):
    """Fetches daily/weekly/monthly or intraday series from Alpha Vantage."""

    def __init__(
        self,
        api_key: str,
        base_url: str = ALPHA_VANTAGE_BASE_URL,
        rate_limit: int = ALPHA_VANTAGE_RATE_LIMIT,
        timeout_seconds: float = 30.0,
    ):
        if not api_key:
            raise ConfigurationError("Alpha Vantage API key is required")
        super().__init__(
            DataProviderConfig(
                api_key=api_key,
                base_url=base_url,
                rate_limit=rate_limit,
                timeout_seconds=timeout_seconds,
            )
        )

    async def fetch_historical_data(self, request: DataRequest) -> list[MarketBar]:
        try:
            payload = await self._get_json(self._build_params(request))
            bars = self._parse_time_series(payload, request)
        except DataError:
            raise
        except Exception as e:
            raise DataError(f"Failed to fetch data from Alpha Vantage: {e}") from e

        logger.info(f"Alpha Vantage returned {len(bars)} bars for {request.symbol}")
        return bars

    @staticmethod
    def get_function_name(interval: Interval) -> str:
        """Map a bar interval to the Alpha Vantage series function."""
        if interval.is_intraday:
            return INTRADAY_FUNCTION
        return SERIES_FUNCTIONS.get(interval, DAILY_FUNCTION)

    def _build_params(self, request: DataRequest) -> dict[str, str]:
        params = {
            "function": self.get_function_name(request.interval),
            "symbol": request.symbol,
            "apikey": self.config.api_key or "",
            "outputsize": "full",
            "datatype": "json",
        }
        if request.interval.is_intraday:
            params["interval"] = INTRADAY_INTERVALS[request.interval]
        return params

    async def _get_json(self, params: dict[str, str]) -> dict[str, Any]:
        """Perform the HTTP request off the event loop."""
        loop = asyncio.get_running_loop()
        response = await loop.run_in_executor(
            None,
            functools.partial(
                requests.get,
                self.config.base_url,
                params=params,
                timeout=self.config.timeout_seconds,
            ),
        )
        response.raise_for_status()
        return response.json()

    def _parse_time_series(self, payload: dict[str, Any], request: DataRequest) -> list[MarketBar]:
        if "Error Message" in payload:
            raise DataError(f"API Error: {payload['Error Message']}")
        if "Note" in payload:
            raise DataError(f"API Rate Limit: {payload['Note']}")

        series_key = next((key for key in payload if "Time Series" in key), None)
        if series_key is None:
            raise DataError("Invalid response format from Alpha Vantage")

        bars = []
        for timestamp, values in payload[series_key].items():
            bar_time = parse_timestamp(timestamp)
            if not request.contains(bar_time):
                continue
            bars.append(
                MarketBar(
                    symbol=request.symbol,
                    timestamp=bar_time,
                    open=float(self._field(values, "open")),
                    high=float(self._field(values, "high")),
                    low=float(self._field(values, "low")),
                    close=float(self._field(values, "close")),
                    volume=float(int(float(self._field(values, "volume")))),
                )
            )

        bars.sort(key=lambda bar: bar.timestamp)
        return bars

    @staticmethod
    def _field(values: dict[str, str], name: str) -> str:
        """Find a value by its suffix, e.g. ``"1. open"`` for ``open``."""
        for key, value in values.items():
            if key.split(". ", 1)[-1] == name:
                return value
        raise DataError(f"Missing '{name}' in Alpha Vantage bar")
