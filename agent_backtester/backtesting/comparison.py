"""
Side-by-side comparison of completed backtests.
"""

from collections.abc import Callable, Sequence
from dataclasses import asdict, dataclass

from agent_backtester.core.exceptions.backtest import ValidationError
from agent_backtester.core.models.backtest import BacktestResult
from agent_backtester.core.models.job import BacktestJob

MIN_COMPARED_JOBS = 2


@dataclass(frozen=True)
class BacktestSummary:
    """Headline figures of one compared job."""

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

    @classmethod
    def from_job(cls, job: BacktestJob, result: BacktestResult) -> "BacktestSummary":
        return cls(
            job_id=job.id,
            result_id=result.id,
            name=job.name,
            period=result.period(),
            initial_capital=result.initial_capital,
            final_capital=result.final_capital,
            total_return=result.total_return,
            max_drawdown=result.max_drawdown,
            sharpe_ratio=result.sharpe_ratio,
            total_trades=result.total_trades,
            win_rate=result.win_rate,
        )


@dataclass(frozen=True)
class ComparisonRankings:
    """Job ids ordered best first under each criterion."""

    by_return: list[str]
    by_sharpe: list[str]
    by_drawdown: list[str]
    by_win_rate: list[str]


@dataclass(frozen=True)
class ComparisonStatistics:
    avg_return: float
    avg_sharpe: float
    avg_drawdown: float
    avg_win_rate: float
    best_by_return: BacktestSummary
    best_by_sharpe: BacktestSummary


@dataclass(frozen=True)
class BacktestComparison:
    backtests: list[BacktestSummary]
    rankings: ComparisonRankings
    statistics: ComparisonStatistics

    def to_dict(self) -> dict:
        """Convert comparison to dictionary."""
        return asdict(self)


def _rank(summaries: Sequence[BacktestSummary], key: Callable[[BacktestSummary], float], reverse: bool) -> list[str]:
    return [summary.job_id for summary in sorted(summaries, key=key, reverse=reverse)]


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values)


def compare_backtests(jobs: Sequence[BacktestJob]) -> BacktestComparison:
    """Rank and aggregate completed jobs.

    Ties keep the input order. Drawdown is ranked ascending, every other
    criterion descending.

    Raises:
        ValidationError: If fewer than two jobs are given or one has no result
    """
    if len(jobs) < MIN_COMPARED_JOBS:
        raise ValidationError("At least 2 job IDs required for comparison")

    summaries = []
    for job in jobs:
        if job.result is None:
            raise ValidationError(f"Backtest {job.id} has no result")
        summaries.append(BacktestSummary.from_job(job, job.result))

    return BacktestComparison(
        backtests=summaries,
        rankings=ComparisonRankings(
            by_return=_rank(summaries, lambda s: s.total_return, reverse=True),
            by_sharpe=_rank(summaries, lambda s: s.sharpe_ratio, reverse=True),
            by_drawdown=_rank(summaries, lambda s: s.max_drawdown, reverse=False),
            by_win_rate=_rank(summaries, lambda s: s.win_rate, reverse=True),
        ),
        statistics=ComparisonStatistics(
            avg_return=_mean([s.total_return for s in summaries]),
            avg_sharpe=_mean([s.sharpe_ratio for s in summaries]),
            avg_drawdown=_mean([s.max_drawdown for s in summaries]),
            avg_win_rate=_mean([s.win_rate for s in summaries]),
            best_by_return=max(summaries, key=lambda s: s.total_return),
            best_by_sharpe=max(summaries, key=lambda s: s.sharpe_ratio),
        ),
    )
