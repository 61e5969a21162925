"""
Signal source interface.
"""

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any

from agent_backtester.core.models.market import MarketBar
from agent_backtester.core.models.trade import Signal


class ISignalSource(ABC):
    """Abstract interface for the agent layer that produces signals."""

    @abstractmethod
    async def generate_signals(self, market_data: Mapping[str, MarketBar]) -> list[Signal]:
        """Produce zero or more signals for the current bars."""
        pass

    @abstractmethod
    def update_parameters(self, parameters: Mapping[str, Any]) -> None:
        """Apply strategy parameters (used by parameter sweeps)."""
        pass
