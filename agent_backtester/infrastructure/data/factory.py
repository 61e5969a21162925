"""
Factory for historical data providers.
"""

from collections.abc import Mapping
from typing import Any

from loguru import logger

from agent_backtester.core.config import Settings, get_settings
from agent_backtester.core.constants import SYNTHETIC_DEFAULT_SEED, SYNTHETIC_DEFAULT_SYMBOLS
from agent_backtester.core.enums import DataProviderType
from agent_backtester.core.exceptions.backtest import ConfigurationError

from .alpha_vantage_provider import AlphaVantageProvider
from .base_provider import BaseDataProvider
from .csv_provider import CSVDataProvider, resolve_data_files
from .synthetic_provider import SyntheticDataProvider


def _option(config: Mapping[str, Any], *names: str, default: Any = None) -> Any:
    """First present value among camelCase/snake_case spellings."""
    for name in names:
        if config.get(name) is not None:
            return config[name]
    return default


class DataProviderFactory:
    """Builds a provider from a type and a free-form config mapping."""

    SUPPORTED_TYPES = tuple(DataProviderType)

    @classmethod
    def create(
        cls,
        provider_type: DataProviderType | str,
        config: Mapping[str, Any] | None = None,
        settings: Settings | None = None,
    ) -> BaseDataProvider:
        """Create a provider instance.

        Raises:
            ConfigurationError: If the type is unknown or a required
                credential is missing
        """
        config = config or {}
        settings = settings or get_settings()

        try:
            kind = DataProviderType(str(provider_type).lower())
        except ValueError as e:
            raise ConfigurationError(f"Unknown data provider type: {provider_type}") from e

        logger.debug(f"Creating {kind.value} data provider")

        match kind:
            case DataProviderType.ALPHA_VANTAGE:
                api_key = _option(config, "apiKey", "api_key", default=settings.alpha_vantage_api_key)
                if not api_key:
                    raise ConfigurationError("Alpha Vantage API key is required")
                return AlphaVantageProvider(
                    api_key=api_key,
                    base_url=_option(
                        config, "baseUrl", "base_url", default=settings.alpha_vantage_base_url
                    ),
                    rate_limit=int(
                        _option(config, "rateLimit", "rate_limit", default=settings.alpha_vantage_rate_limit)
                    ),
                    timeout_seconds=settings.request_timeout_seconds,
                )
            case DataProviderType.MOCK:
                return SyntheticDataProvider(
                    symbols=_option(config, "symbols", default=SYNTHETIC_DEFAULT_SYMBOLS),
                    seed=int(_option(config, "seed", default=SYNTHETIC_DEFAULT_SEED)),
                )
            case DataProviderType.CSV:
                files = _option(config, "files", default={})
                if not isinstance(files, Mapping):
                    raise ConfigurationError("CSV provider files must map symbols to paths")
                return CSVDataProvider(files=resolve_data_files(files, settings.csv_data_dir))

        raise ConfigurationError(f"Unknown data provider type: {provider_type}")

    @classmethod
    def describe_providers(cls) -> list[dict[str, Any]]:
        """Static description of the supported providers."""
        return [
            {
                "type": DataProviderType.ALPHA_VANTAGE.value,
                "name": "Alpha Vantage",
                "description": "Daily, weekly, monthly and intraday series from the Alpha Vantage API",
                "requiresApiKey": True,
                "rateLimit": f"{get_settings().alpha_vantage_rate_limit} requests per minute",
            },
            {
                "type": DataProviderType.MOCK.value,
                "name": "Synthetic",
                "description": "Deterministic random-walk daily bars for testing",
                "requiresApiKey": False,
                "rateLimit": "None",
            },
            {
                "type": DataProviderType.CSV.value,
                "name": "CSV Files",
                "description": "Bars imported from CSV files",
                "requiresApiKey": False,
                "rateLimit": "None",
            },
        ]
