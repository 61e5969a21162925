"""
Data access interfaces.
"""

from abc import ABC, abstractmethod

from agent_backtester.core.models.market import DataRequest, MarketBar


class IDataProvider(ABC):
    """Abstract interface for historical market data sources."""

    @abstractmethod
    async def fetch_historical_data(self, request: DataRequest) -> list[MarketBar]:
        """Fetch bars for one symbol, ascending by timestamp, within the request range."""
        pass

    @abstractmethod
    async def fetch_multiple_symbols(
        self, requests: list[DataRequest]
    ) -> dict[str, list[MarketBar]]:
        """Fetch several symbols; a failed symbol maps to an empty list."""
        pass
