"""
Signal source that never proposes a trade.
"""

from collections.abc import Mapping
from typing import Any

from agent_backtester.core.interfaces.signals import ISignalSource
from agent_backtester.core.models.market import MarketBar
from agent_backtester.core.models.trade import Signal


class NullSignalSource(ISignalSource):
    """Default signal source for runs without an agent layer.

    Parameters applied during a sweep are kept so callers can inspect
    which combination was last in effect.
    """

    def __init__(self) -> None:
        self.parameters: dict[str, Any] = {}

    async def generate_signals(self, market_data: Mapping[str, MarketBar]) -> list[Signal]:
        return []

    def update_parameters(self, parameters: Mapping[str, Any]) -> None:
        self.parameters = dict(parameters)
