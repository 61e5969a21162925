"""
Shared behaviour for historical data providers.
"""

import asyncio
from collections.abc import Iterable
from dataclasses import dataclass

from loguru import logger

from agent_backtester.core.constants import SECONDS_PER_MINUTE
from agent_backtester.core.interfaces.data import IDataProvider
from agent_backtester.core.models.market import DataRequest, MarketBar
from agent_backtester.core.utils.decorators import log_operation


@dataclass(frozen=True)
class DataProviderConfig:
    """Connection settings common to all providers."""

    api_key: str | None = None
    base_url: str | None = None
    rate_limit: int = 0  # requests per minute, 0 disables throttling
    timeout_seconds: float = 30.0


class BaseDataProvider(IDataProvider):
    """
    Base class implementing the multi-symbol fetch on top of
    ``fetch_historical_data``.

    Symbols are fetched sequentially. When the provider declares a rate
    limit, the batch sleeps ``60 / rate_limit`` seconds after every
    successful request. A symbol that fails is logged and mapped to an
    empty list so the rest of the batch still completes.
    """

    def __init__(self, config: DataProviderConfig | None = None):
        self.config = config or DataProviderConfig()

    @log_operation
    async def fetch_multiple_symbols(
        self, requests: list[DataRequest]
    ) -> dict[str, list[MarketBar]]:
        results: dict[str, list[MarketBar]] = {}

        for request in requests:
            try:
                bars = await self.fetch_historical_data(request)
                results[request.symbol] = bars
                logger.debug(f"Fetched {len(bars)} bars for {request.symbol}")

                if self.config.rate_limit > 0:
                    await self._delay(SECONDS_PER_MINUTE / self.config.rate_limit)
            except Exception as e:
                logger.error(f"Failed to fetch data for {request.symbol}: {e}")
                results[request.symbol] = []

        return results

    async def _delay(self, seconds: float) -> None:
        """Block the batch between requests without blocking the event loop."""
        await asyncio.sleep(seconds)

    @staticmethod
    def _select_range(bars: Iterable[MarketBar], request: DataRequest) -> list[MarketBar]:
        """Filter bars to the request range and sort ascending."""
        selected = [bar for bar in bars if request.contains(bar.timestamp)]
        selected.sort(key=lambda bar: bar.timestamp)
        return selected
