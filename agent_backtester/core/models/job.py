"""
Backtest request and job models owned by the scheduler.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from agent_backtester.core.enums import DataProviderType, JobStatus
from agent_backtester.core.utils.datetime_utils import utc_now

from .backtest import AgentConfig, BacktestConfig, BacktestResult


@dataclass
class DataProviderSpec:
    """Which data provider to use and how to configure it."""

    type: DataProviderType | None
    config: dict[str, Any] = field(default_factory=dict)


@dataclass
class BacktestRequest:
    """A client request to run a backtest."""

    name: str
    config: BacktestConfig | None
    agent_configs: list[AgentConfig] = field(default_factory=list)
    data_provider: DataProviderSpec | None = None
    risk_config: dict[str, Any] = field(default_factory=dict)
    description: str | None = None


@dataclass
class BacktestJob:
    """Scheduler record of one submitted backtest."""

    name: str
    request: BacktestRequest
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    status: JobStatus = JobStatus.PENDING
    progress: int = 0
    created_at: datetime = field(default_factory=utc_now)
    start_time: datetime | None = None
    end_time: datetime | None = None
    result: BacktestResult | None = None
    error: str | None = None
