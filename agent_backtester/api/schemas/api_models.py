"""
Pydantic schemas for API request/response models.

JSON bodies use camelCase field names. Request fields are optional at
the schema level so that missing values are reported by the backtest
request validator with its own messages.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from agent_backtester.core.enums import (
    AgentType,
    DataProviderType,
    DataSource,
    JobStatus,
    RebalanceFrequency,
    TradeAction,
    TradeStatus,
)
from agent_backtester.core.models.backtest import AgentConfig, BacktestConfig
from agent_backtester.core.models.job import BacktestRequest, DataProviderSpec


class ApiModel(BaseModel):
    """Base model with camelCase aliases."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# Requests


class BacktestConfigModel(ApiModel):
    start_date: datetime | None = Field(default=None, description="Backtest start date")
    end_date: datetime | None = Field(default=None, description="Backtest end date")
    initial_capital: float = Field(default=0.0, description="Starting capital")
    symbols: list[str] = Field(default_factory=list)
    commission: float = Field(default=0.0, ge=0.0, le=1.0, description="Commission rate")
    slippage: float = Field(default=0.0, ge=0.0, le=1.0, description="Slippage rate")
    data_source: DataSource = DataSource.HISTORICAL
    rebalance_frequency: RebalanceFrequency = RebalanceFrequency.DAILY

    def to_domain(self) -> BacktestConfig:
        return BacktestConfig(
            start_date=self.start_date,
            end_date=self.end_date,
            initial_capital=self.initial_capital,
            symbols=tuple(self.symbols),
            commission=self.commission,
            slippage=self.slippage,
            data_source=self.data_source,
            rebalance_frequency=self.rebalance_frequency,
        )


class AgentConfigModel(ApiModel):
    id: str
    name: str
    type: AgentType
    enabled: bool = True
    parameters: dict[str, Any] = Field(default_factory=dict)
    weight: float = 1.0

    def to_domain(self) -> AgentConfig:
        return AgentConfig(
            id=self.id,
            name=self.name,
            type=self.type,
            enabled=self.enabled,
            parameters=dict(self.parameters),
            weight=self.weight,
        )


class DataProviderModel(ApiModel):
    type: DataProviderType | None = None
    config: dict[str, Any] = Field(default_factory=dict)


class BacktestRequestModel(ApiModel):
    """Request model for backtest submission."""

    name: str = ""
    description: str | None = None
    config: BacktestConfigModel | None = None
    agent_configs: list[AgentConfigModel] = Field(default_factory=list)
    risk_config: dict[str, Any] = Field(default_factory=dict)
    data_provider: DataProviderModel | None = None

    def to_domain(self) -> BacktestRequest:
        return BacktestRequest(
            name=self.name,
            description=self.description,
            config=self.config.to_domain() if self.config else None,
            agent_configs=[agent.to_domain() for agent in self.agent_configs],
            risk_config=dict(self.risk_config),
            data_provider=(
                DataProviderSpec(type=self.data_provider.type, config=dict(self.data_provider.config))
                if self.data_provider
                else None
            ),
        )


class CompareRequest(ApiModel):
    job_ids: list[str] = Field(default_factory=list)


# Responses


class SubmitResponse(ApiModel):
    """Response model for backtest submission."""

    job_id: str
    status: JobStatus
    message: str


class JobSummaryResponse(ApiModel):
    id: str
    name: str
    status: JobStatus
    progress: int
    created_at: datetime
    start_time: datetime | None = None
    end_time: datetime | None = None
    error: str | None = None


class JobListResponse(ApiModel):
    jobs: list[JobSummaryResponse]
    total: int
    pending: int
    running: int
    completed: int
    failed: int
    cancelled: int


class JobActionResponse(ApiModel):
    message: str
    job_id: str
    status: JobStatus | None = None


class TradeResponse(ApiModel):
    id: str
    symbol: str
    action: TradeAction
    quantity: float
    price: float
    timestamp: datetime
    status: TradeStatus
    agent_signals: list[str] = Field(default_factory=list)
    metadata: dict[str, Any] = Field(default_factory=dict)


class BacktestResultResponse(ApiModel):
    """Response model for backtest results."""

    id: str
    start_date: datetime
    end_date: datetime
    initial_capital: float
    final_capital: float
    total_return: float
    max_drawdown: float
    sharpe_ratio: float
    total_trades: int
    winning_trades: int
    win_rate: float
    trades: list[TradeResponse] = Field(default_factory=list)


class BacktestSummaryResponse(ApiModel):
    job_id: str
    result_id: str
    name: str
    period: str
    initial_capital: float
    final_capital: float
    total_return: float
    max_drawdown: float
    sharpe_ratio: float
    total_trades: int
    win_rate: float


class RankingsResponse(ApiModel):
    by_return: list[str]
    by_sharpe: list[str]
    by_drawdown: list[str]
    by_win_rate: list[str]


class StatisticsResponse(ApiModel):
    avg_return: float
    avg_sharpe: float
    avg_drawdown: float
    avg_win_rate: float
    best_by_return: BacktestSummaryResponse
    best_by_sharpe: BacktestSummaryResponse


class ComparisonResponse(ApiModel):
    backtests: list[BacktestSummaryResponse]
    rankings: RankingsResponse
    statistics: StatisticsResponse


class ProviderInfo(ApiModel):
    type: DataProviderType
    name: str
    description: str
    requires_api_key: bool
    rate_limit: str


class ProvidersResponse(ApiModel):
    providers: list[ProviderInfo]
