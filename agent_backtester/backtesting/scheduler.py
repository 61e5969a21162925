"""
Backtest job scheduler.

Accepts backtest requests, applies admission control, and runs each
accepted job as a background asyncio task that fetches data, drives a
``SimulationEngine`` and records the outcome on the job. Validation is
synchronous and never creates a job.
"""

import asyncio
import json
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from loguru import logger

from agent_backtester.core.config import Settings, get_settings
from agent_backtester.core.constants import PROGRESS_COMPLETE
from agent_backtester.core.enums import DataProviderType, Interval, JobStatus
from agent_backtester.core.events import Event, EventType
from agent_backtester.core.exceptions.backtest import (
    AdmissionRejectedError,
    JobNotFoundError,
    StateConflictError,
    ValidationError,
)
from agent_backtester.core.interfaces.data import IDataProvider
from agent_backtester.core.interfaces.signals import ISignalSource
from agent_backtester.core.models.backtest import BacktestResult
from agent_backtester.core.models.job import BacktestJob, BacktestRequest
from agent_backtester.core.models.market import DataRequest
from agent_backtester.core.utils.datetime_utils import utc_now
from agent_backtester.infrastructure.data.factory import DataProviderFactory
from agent_backtester.infrastructure.signals.null_signal_source import NullSignalSource

from .comparison import BacktestComparison, compare_backtests
from .engine import PortfolioFactory, SimulationEngine
from .job_repository import JobRepository
from .request_validator import validate_backtest_request

ProviderFactory = Callable[[DataProviderType, Mapping[str, Any]], IDataProvider]
SignalSourceFactory = Callable[[BacktestRequest], ISignalSource]

CSV_SUMMARY_HEADERS = "timestamp,total_value,daily_return,cumulative_return"
NOT_STARTED = datetime.min.replace(tzinfo=UTC)


@dataclass(frozen=True)
class SubmissionReceipt:
    job_id: str
    status: JobStatus
    message: str


@dataclass(frozen=True)
class JobListing:
    """Listed jobs plus counts by status over the whole registry."""

    jobs: list[BacktestJob]
    total: int
    counts: dict[JobStatus, int]


@dataclass(frozen=True)
class ExportPayload:
    filename: str
    media_type: str
    content: str


class BacktestScheduler:
    """Owns the job registry and the execution of backtest jobs.

    Args:
        repository: Job registry, a new empty one by default
        max_concurrent: RUNNING jobs allowed before submissions are rejected
        provider_factory: Builds a data provider from the request's spec
        portfolio_factory: Passed to every engine
        signal_source_factory: Builds the signal source for a request
        settings: Runtime settings
    """

    def __init__(
        self,
        repository: JobRepository | None = None,
        max_concurrent: int | None = None,
        provider_factory: ProviderFactory | None = None,
        portfolio_factory: PortfolioFactory | None = None,
        signal_source_factory: SignalSourceFactory | None = None,
        settings: Settings | None = None,
    ):
        self.settings = settings or get_settings()
        self.repository = repository or JobRepository()
        self.max_concurrent = max_concurrent or self.settings.max_concurrent_jobs
        self.provider_factory = provider_factory or self._default_provider_factory
        self.portfolio_factory = portfolio_factory
        self.signal_source_factory = signal_source_factory or (lambda request: NullSignalSource())

    def _default_provider_factory(
        self, provider_type: DataProviderType, config: Mapping[str, Any]
    ) -> IDataProvider:
        return DataProviderFactory.create(provider_type, config, self.settings)

    # Submission

    async def submit_backtest(self, request: BacktestRequest) -> SubmissionReceipt:
        """Validate, admit and start a backtest without waiting for it.

        Raises:
            ValidationError: If the request is invalid
            AdmissionRejectedError: If the concurrency ceiling is reached
        """
        validate_backtest_request(request)

        running = self.repository.running_count()
        if running >= self.max_concurrent:
            logger.warning(f"Rejecting backtest '{request.name}': {running} jobs running")
            raise AdmissionRejectedError(self.max_concurrent, running)

        job = self.repository.add(BacktestJob(name=request.name, request=request))
        job.status = JobStatus.RUNNING
        job.start_time = utc_now()
        task = asyncio.create_task(self._run_job(job.id), name=f"backtest-{job.id}")
        self.repository.track_task(job.id, task)

        logger.info(f"Queued backtest {job.id} ({job.name})")
        return SubmissionReceipt(
            job_id=job.id, status=job.status, message="Backtest job queued successfully"
        )

    # Execution

    async def _run_job(self, job_id: str) -> None:
        job = self.repository.find(job_id)
        if job is None or job.status != JobStatus.RUNNING:
            return

        logger.info(f"Starting backtest {job.id}")

        try:
            request = job.request
            config = request.config
            provider_spec = request.data_provider
            if config is None or config.start_date is None or config.end_date is None:
                raise ValidationError("Backtest configuration with start and end dates is required")
            if provider_spec is None or provider_spec.type is None:
                raise ValidationError("Data provider type is required")

            provider = self.provider_factory(provider_spec.type, provider_spec.config)
            engine = SimulationEngine(
                config,
                agent_configs=request.agent_configs,
                risk_config=request.risk_config,
                portfolio_factory=self.portfolio_factory,
                signal_source=self.signal_source_factory(request),
            )
            self.repository.register_engine(job.id, engine)
            engine.events.subscribe(
                EventType.BACKTEST_PROGRESS, lambda event: self._on_progress(job, event)
            )

            data = await provider.fetch_multiple_symbols(
                [
                    DataRequest(symbol, config.start_date, config.end_date, Interval.D1)
                    for symbol in config.symbols
                ]
            )
            if job.status == JobStatus.CANCELLED:
                logger.info(f"Backtest {job.id} cancelled before simulation")
                return

            await engine.load_historical_data(data)
            result = await engine.run_backtest()
            if engine.tracker is not None:
                self.repository.store_tracker(job.id, engine.tracker)

            if job.status == JobStatus.CANCELLED:
                logger.info(f"Backtest {job.id} cancelled, discarding result")
                return

            job.result = result
            job.progress = PROGRESS_COMPLETE
            job.status = JobStatus.COMPLETED
            job.end_time = utc_now()
            logger.info(f"Backtest {job.id} completed with return {result.total_return:.2%}")
        except asyncio.CancelledError:
            if not job.status.is_terminal:
                job.status = JobStatus.CANCELLED
                job.end_time = utc_now()
            raise
        except Exception as e:
            logger.exception(f"Backtest {job.id} failed")
            if job.status != JobStatus.CANCELLED:
                job.status = JobStatus.FAILED
                job.error = str(e)
                job.end_time = utc_now()
        finally:
            self.repository.release_engine(job.id)

    @staticmethod
    def _on_progress(job: BacktestJob, event: Event) -> None:
        if job.status != JobStatus.RUNNING:
            return
        fraction = event.payload["progress"]
        job.progress = max(0, min(PROGRESS_COMPLETE, int(fraction * PROGRESS_COMPLETE)))

    async def wait_for_job(self, job_id: str) -> BacktestJob:
        """Wait until the job's execution task has finished."""
        job = self.repository.get(job_id)
        task = self.repository.get_task(job_id)
        if task is not None:
            await asyncio.wait({task})
        return job

    async def shutdown(self) -> None:
        """Cancel every unfinished execution task."""
        tasks = self.repository.pending_tasks()
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
            logger.info(f"Cancelled {len(tasks)} unfinished backtests")

        # Tasks cancelled before their first step never reach their handler
        for job in self.repository.all():
            if job.status == JobStatus.RUNNING:
                job.status = JobStatus.CANCELLED
                job.end_time = utc_now()

    # Queries

    def get_status(self, job_id: str) -> BacktestJob:
        return self.repository.get(job_id)

    def get_result(self, job_id: str) -> BacktestResult:
        """Result of a completed job.

        Raises:
            JobNotFoundError: If the id is unknown
            StateConflictError: If the job has not completed
        """
        job = self.repository.get(job_id)
        if job.status != JobStatus.COMPLETED or job.result is None:
            raise StateConflictError(
                "Backtest not completed yet", status=job.status.value, progress=job.progress
            )
        return job.result

    def list_backtests(
        self, status: JobStatus | str | None = None, limit: int | None = None
    ) -> JobListing:
        """Jobs most recent first by start time, optionally filtered and limited."""
        if isinstance(status, str) and not isinstance(status, JobStatus):
            try:
                status = JobStatus.from_string(status)
            except ValueError as e:
                raise ValidationError(str(e)) from e

        jobs = self.repository.all()
        if status is not None:
            jobs = [job for job in jobs if job.status == status]

        jobs.sort(key=lambda job: job.start_time or NOT_STARTED, reverse=True)
        limit = self.settings.job_list_limit if limit is None else limit
        if limit > 0:
            jobs = jobs[:limit]

        return JobListing(jobs=jobs, total=len(jobs), counts=self.repository.count_by_status())

    # Control

    def cancel_backtest(self, job_id: str) -> BacktestJob:
        """Cancel a pending or running job.

        Raises:
            JobNotFoundError: If the id is unknown
            StateConflictError: If the job already reached a terminal status
        """
        job = self.repository.get(job_id)
        if not job.status.is_cancellable:
            raise StateConflictError("Cannot cancel backtest", status=job.status.value)

        engine = self.repository.get_engine(job_id)
        if engine is not None:
            engine.stop()
            self.repository.release_engine(job_id)

        job.status = JobStatus.CANCELLED
        job.end_time = utc_now()
        logger.info(f"Cancelled backtest {job_id}")
        return job

    def delete_backtest(self, job_id: str) -> BacktestJob:
        """Remove a job that is not running.

        Raises:
            JobNotFoundError: If the id is unknown
            StateConflictError: If the job is running
        """
        job = self.repository.get(job_id)
        if job.status == JobStatus.RUNNING:
            raise StateConflictError(
                "Cannot delete running backtest. Cancel it first.", status=job.status.value
            )
        self.repository.remove(job_id)
        logger.info(f"Deleted backtest {job_id}")
        return job

    # Reporting

    def compare_backtests(self, job_ids: list[str]) -> BacktestComparison:
        """Compare two or more completed jobs.

        Raises:
            ValidationError: If fewer than two ids are given
            JobNotFoundError: If an id is unknown
            StateConflictError: If a job has not completed
        """
        if len(job_ids) < 2:
            raise ValidationError("At least 2 job IDs required for comparison")

        jobs = []
        for job_id in job_ids:
            job = self.repository.find(job_id)
            if job is None:
                raise JobNotFoundError(job_id, f"Backtest job {job_id} not found")
            if job.status != JobStatus.COMPLETED or job.result is None:
                raise StateConflictError(
                    f"Backtest {job_id} is not completed", status=job.status.value
                )
            jobs.append(job)

        return compare_backtests(jobs)

    def export_backtest(self, job_id: str, export_format: str = "json") -> ExportPayload:
        """Serialize a completed job's result as JSON or CSV.

        CSV uses the job's recorded portfolio history when available and
        a single summary row otherwise.

        Raises:
            JobNotFoundError: If the id is unknown
            StateConflictError: If the job has not completed
            ValidationError: If the format is not ``json`` or ``csv``
        """
        job = self.repository.get(job_id)
        if job.status != JobStatus.COMPLETED or job.result is None:
            raise StateConflictError("Backtest not completed yet", status=job.status.value)

        match export_format.lower():
            case "csv":
                return ExportPayload(
                    filename=f"backtest_{job_id}.csv",
                    media_type="text/csv",
                    content=self._csv_export(job_id, job.result),
                )
            case "json":
                return ExportPayload(
                    filename=f"backtest_{job_id}.json",
                    media_type="application/json",
                    content=json.dumps(job.result.to_dict()),
                )
        raise ValidationError(f"Unsupported export format: {export_format}")

    def _csv_export(self, job_id: str, result: BacktestResult) -> str:
        tracker = self.repository.get_tracker(job_id)
        if tracker is not None and tracker.get_latest_snapshot() is not None:
            return tracker.export_to_csv()

        row = ",".join(
            [
                result.end_date.isoformat(),
                f"{result.final_capital:.2f}",
                f"{0.0:.4f}",
                f"{result.total_return * 100:.2f}",
            ]
        )
        return f"{CSV_SUMMARY_HEADERS}\n{row}\n"
