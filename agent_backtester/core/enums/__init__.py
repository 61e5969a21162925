"""
Core enumerations for the backtesting platform.

This module provides centralized enumerations for domain concepts
like bar intervals, job lifecycle, trade actions and provider kinds.
"""

from .backtest_options import AgentType, DataProviderType, DataSource, RebalanceFrequency
from .intervals import Interval
from .job_status import EngineState, JobStatus
from .trade_types import SignalAction, TradeAction, TradeStatus

__all__ = [
    "AgentType",
    "DataProviderType",
    "DataSource",
    "EngineState",
    "Interval",
    "JobStatus",
    "RebalanceFrequency",
    "SignalAction",
    "TradeAction",
    "TradeStatus",
]
