"""
Delimited-file historical data provider.

Columns are detected from the header row using alias lists, so exports
from most charting tools load without configuration. Malformed rows are
skipped and logged one by one instead of failing the whole import.
"""

import asyncio
import io
from collections.abc import Mapping
from pathlib import Path

import pandas as pd
from loguru import logger

from agent_backtester.core.exceptions.backtest import ConfigurationError, DataError, ValidationError
from agent_backtester.core.models.market import DataRequest, MarketBar
from agent_backtester.core.utils.datetime_utils import parse_timestamp

from .base_provider import BaseDataProvider, DataProviderConfig

COLUMN_ALIASES: dict[str, tuple[str, ...]] = {
    "date": ("date", "timestamp", "time"),
    "open": ("open",),
    "high": ("high",),
    "low": ("low",),
    "close": ("close", "adj close", "adjusted_close"),
    "volume": ("volume",),
}

REQUIRED_COLUMNS = ("date", "open", "high", "low", "close")


def resolve_data_files(
    files: Mapping[str, str | Path], data_dir: str | Path
) -> dict[str, Path]:
    """Resolve per-symbol CSV paths inside ``data_dir``.

    Raises:
        ConfigurationError: If a path is absolute or resolves outside
            the data directory
    """
    base = Path(data_dir).resolve()
    resolved: dict[str, Path] = {}
    for symbol, file_path in files.items():
        relative = Path(file_path)
        if relative.is_absolute():
            raise ConfigurationError(f"CSV path for {symbol} must be relative to the data directory")

        try:
            path = (base / relative).resolve()
        except (OSError, RuntimeError) as e:
            raise ConfigurationError(f"Invalid CSV path for {symbol}") from e

        if not path.is_relative_to(base):
            raise ConfigurationError(f"CSV path for {symbol} escapes the data directory")
        resolved[symbol] = path
    return resolved


class CSVDataProvider(BaseDataProvider):
    """Serves bars imported from CSV content or files."""

    def __init__(self, files: dict[str, str | Path] | None = None):
        super().__init__(DataProviderConfig(rate_limit=0))
        self._data: dict[str, list[MarketBar]] = {}
        self._files = {symbol: Path(path) for symbol, path in (files or {}).items()}

    async def fetch_historical_data(self, request: DataRequest) -> list[MarketBar]:
        if request.symbol not in self._data and request.symbol in self._files:
            await self.load_from_file(request.symbol, self._files[request.symbol])

        return self._select_range(self._data.get(request.symbol, []), request)

    async def load_from_file(self, symbol: str, file_path: str | Path) -> int:
        """Read a CSV file off the event loop and import it for ``symbol``."""
        path = Path(file_path)
        if not path.exists():
            raise DataError(f"Data file not found: {path.name}")

        loop = asyncio.get_running_loop()
        try:
            content = await loop.run_in_executor(None, path.read_text)
        except (OSError, UnicodeDecodeError) as e:
            logger.error(f"File system error loading {path.name}: {e}")
            raise DataError(f"Failed to read CSV file: {path.name}") from e

        return self.load_from_csv(symbol, content)

    def load_from_csv(self, symbol: str, content: str) -> int:
        """Import CSV text for ``symbol``, replacing any previous series.

        Returns:
            Number of bars imported

        Raises:
            DataError: If a required column cannot be found in the header
        """
        if not content.strip():
            logger.warning(f"Empty CSV content for {symbol}")
            self._data[symbol] = []
            return 0

        frame = self._read_frame(content, symbol)
        indices = self._detect_columns(list(frame.columns))

        bars: list[MarketBar] = []
        for row_number, row in enumerate(frame.itertuples(index=False, name=None), start=2):
            bar = self._parse_row(symbol, row, indices, row_number)
            if bar is not None:
                bars.append(bar)

        bars.sort(key=lambda bar: bar.timestamp)
        self._data[symbol] = bars
        logger.info(f"Imported {len(bars)} of {len(frame)} rows for {symbol}")
        return len(bars)

    @staticmethod
    def _read_frame(content: str, symbol: str) -> pd.DataFrame:
        def skip_bad_line(bad_line: list[str]) -> None:
            logger.warning(f"Skipping malformed line for {symbol}: {','.join(bad_line)}")
            return None

        try:
            frame = pd.read_csv(
                io.StringIO(content),
                dtype=str,
                keep_default_na=False,
                skipinitialspace=True,
                skip_blank_lines=True,
                engine="python",
                on_bad_lines=skip_bad_line,
            )
        except (pd.errors.ParserError, ValueError) as e:
            raise DataError(f"CSV parsing failed for {symbol}") from e

        frame.columns = [str(column).strip().lower() for column in frame.columns]
        return frame

    @staticmethod
    def find_column_index(headers: list[str], candidates: tuple[str, ...]) -> int:
        """Index of the first header containing a candidate, trying candidates in order."""
        for candidate in candidates:
            for index, header in enumerate(headers):
                if candidate in header:
                    return index
        return -1

    def _detect_columns(self, headers: list[str]) -> dict[str, int]:
        indices = {
            field: self.find_column_index(headers, aliases)
            for field, aliases in COLUMN_ALIASES.items()
        }
        missing = [field for field in REQUIRED_COLUMNS if indices[field] < 0]
        if missing:
            raise DataError(f"CSV header is missing required columns: {', '.join(missing)}")
        return indices

    @staticmethod
    def _parse_row(
        symbol: str, row: tuple[str, ...], indices: dict[str, int], row_number: int
    ) -> MarketBar | None:
        try:
            volume = 0.0
            if indices["volume"] >= 0:
                try:
                    volume = float(int(float(row[indices["volume"]])))
                except (TypeError, ValueError):
                    volume = 0.0

            return MarketBar(
                symbol=symbol,
                timestamp=parse_timestamp(row[indices["date"]]),
                open=float(row[indices["open"]]),
                high=float(row[indices["high"]]),
                low=float(row[indices["low"]]),
                close=float(row[indices["close"]]),
                volume=volume,
            )
        except (IndexError, TypeError, ValueError, ValidationError) as e:
            logger.warning(f"Skipping invalid data row {row_number}: {','.join(map(str, row))} ({e})")
            return None

    @property
    def symbols(self) -> list[str]:
        """Symbols with an imported series."""
        return list(self._data)
