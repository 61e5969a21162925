"""
Synthetic historical data provider.

Generates random-walk daily bars so backtests can run without any
external dependency. Every symbol has its own generator seeded from a
stable hash of its name, so the same symbol and range always produce the
same bars.
"""

import math
import zlib
from collections.abc import Iterable
from datetime import UTC, datetime, timedelta

import numpy as np
from loguru import logger

from agent_backtester.core.constants import (
    SYNTHETIC_DAILY_DRIFT,
    SYNTHETIC_DAILY_VOLATILITY,
    SYNTHETIC_DEFAULT_SEED,
    SYNTHETIC_DEFAULT_SYMBOLS,
)
from agent_backtester.core.models.market import DataRequest, MarketBar
from agent_backtester.core.types.financial import round_price
from agent_backtester.core.utils.datetime_utils import ensure_utc

from .base_provider import BaseDataProvider, DataProviderConfig

DEFAULT_START = datetime(2023, 1, 1, tzinfo=UTC)
DEFAULT_END = datetime(2024, 1, 1, tzinfo=UTC)


class SyntheticDataProvider(BaseDataProvider):
    """Random-walk bar generator with daily drift and volatility."""

    def __init__(
        self,
        symbols: Iterable[str] = SYNTHETIC_DEFAULT_SYMBOLS,
        start_date: datetime = DEFAULT_START,
        end_date: datetime = DEFAULT_END,
        seed: int = SYNTHETIC_DEFAULT_SEED,
        volatility: float = SYNTHETIC_DAILY_VOLATILITY,
        drift: float = SYNTHETIC_DAILY_DRIFT,
        generate_on_demand: bool = True,
    ):
        super().__init__(DataProviderConfig(rate_limit=0))
        self.seed = seed
        self.volatility = volatility
        self.drift = drift
        self.generate_on_demand = generate_on_demand
        self._data: dict[str, list[MarketBar]] = {}

        for symbol in symbols:
            self._data[symbol] = self.generate_symbol_data(symbol, start_date, end_date)

    async def fetch_historical_data(self, request: DataRequest) -> list[MarketBar]:
        if request.symbol in self._data:
            return self._select_range(self._data[request.symbol], request)

        if not self.generate_on_demand:
            return []

        logger.debug(f"Generating synthetic bars on demand for {request.symbol}")
        return self.generate_symbol_data(request.symbol, request.start_date, request.end_date)

    def add_mock_data(self, symbol: str, bars: list[MarketBar]) -> None:
        """Replace the series served for ``symbol``."""
        self._data[symbol] = sorted(bars, key=lambda bar: bar.timestamp)

    @property
    def symbols(self) -> list[str]:
        """Symbols with a stored series."""
        return list(self._data)

    def generate_symbol_data(
        self, symbol: str, start_date: datetime, end_date: datetime
    ) -> list[MarketBar]:
        """Generate one bar per calendar day from ``start_date`` to ``end_date`` inclusive."""
        rng = np.random.default_rng(self._symbol_seed(symbol))
        current_date = ensure_utc(start_date)
        end = ensure_utc(end_date)
        current_price = 100.0 + rng.random() * 100.0
        bars: list[MarketBar] = []

        while current_date <= end:
            change = (rng.random() - 0.5) * self.volatility + self.drift
            open_price = current_price
            close_price = current_price * (1 + change)
            high_price = max(open_price, close_price) * (1 + rng.random() * 0.01)
            low_price = min(open_price, close_price) * (1 - rng.random() * 0.01)
            volume = math.floor(1_000_000 + rng.random() * 5_000_000)

            bars.append(
                MarketBar(
                    symbol=symbol,
                    timestamp=current_date,
                    open=round_price(open_price),
                    high=round_price(high_price),
                    low=round_price(low_price),
                    close=round_price(close_price),
                    volume=float(volume),
                )
            )

            current_price = close_price
            current_date += timedelta(days=1)

        return bars

    def _symbol_seed(self, symbol: str) -> int:
        return self.seed + zlib.crc32(symbol.encode("utf-8"))
