"""
Backtest configuration enumerations.

This module defines agent kinds, data provider kinds, data sources
and rebalance cadences accepted in backtest requests.
"""

from enum import StrEnum


class AgentType(StrEnum):
    """Kinds of agents that may be configured for a backtest."""

    TECHNICAL = "TECHNICAL"
    FUNDAMENTAL = "FUNDAMENTAL"
    FUSION = "FUSION"
    RISK = "RISK"
    PORTFOLIO = "PORTFOLIO"
    EXECUTION = "EXECUTION"


class DataProviderType(StrEnum):
    """Historical data provider implementations."""

    ALPHA_VANTAGE = "alphavantage"
    MOCK = "mock"
    CSV = "csv"

    @property
    def requires_credentials(self) -> bool:
        """Check if the provider needs an API key."""
        return self == self.ALPHA_VANTAGE


class DataSource(StrEnum):
    """Origin of the replayed data."""

    HISTORICAL = "historical"
    MOCK = "mock"


class RebalanceFrequency(StrEnum):
    """Portfolio rebalance cadence."""

    DAILY = "DAILY"
    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"
