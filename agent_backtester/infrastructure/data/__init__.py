"""
Historical data providers.

This module contains the provider implementations behind
``IDataProvider`` and the factory that selects one per backtest.
"""

from .alpha_vantage_provider import AlphaVantageProvider
from .base_provider import BaseDataProvider, DataProviderConfig
from .csv_provider import CSVDataProvider
from .factory import DataProviderFactory
from .synthetic_provider import SyntheticDataProvider

__all__ = [
    "AlphaVantageProvider",
    "BaseDataProvider",
    "CSVDataProvider",
    "DataProviderConfig",
    "DataProviderFactory",
    "SyntheticDataProvider",
]
