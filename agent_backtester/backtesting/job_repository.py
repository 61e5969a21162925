"""
In-memory registry of backtest jobs and their live resources.
"""

import asyncio
from collections import Counter
from typing import TYPE_CHECKING

from agent_backtester.core.enums import JobStatus
from agent_backtester.core.exceptions.backtest import JobNotFoundError
from agent_backtester.core.models.job import BacktestJob

if TYPE_CHECKING:
    from .engine import SimulationEngine
    from .tracker import PortfolioPerformanceTracker


class JobRepository:
    """Jobs, live engines, trackers and execution tasks of one scheduler.

    Engines are registered only while a job executes. Trackers outlive
    their engine so completed jobs can still be exported. Tasks are held
    here so they are not garbage collected while running.
    """

    def __init__(self) -> None:
        self._jobs: dict[str, BacktestJob] = {}
        self._engines: dict[str, "SimulationEngine"] = {}
        self._trackers: dict[str, "PortfolioPerformanceTracker"] = {}
        self._tasks: dict[str, asyncio.Task] = {}

    # Jobs

    def add(self, job: BacktestJob) -> BacktestJob:
        self._jobs[job.id] = job
        return job

    def get(self, job_id: str) -> BacktestJob:
        """Look up a job.

        Raises:
            JobNotFoundError: If the id is unknown
        """
        job = self._jobs.get(job_id)
        if job is None:
            raise JobNotFoundError(job_id)
        return job

    def find(self, job_id: str) -> BacktestJob | None:
        return self._jobs.get(job_id)

    def remove(self, job_id: str) -> BacktestJob:
        job = self.get(job_id)
        del self._jobs[job_id]
        self._trackers.pop(job_id, None)
        self._tasks.pop(job_id, None)
        return job

    def all(self) -> list[BacktestJob]:
        return list(self._jobs.values())

    def count_by_status(self) -> dict[JobStatus, int]:
        counts = Counter(job.status for job in self._jobs.values())
        return {status: counts.get(status, 0) for status in JobStatus}

    def running_count(self) -> int:
        return sum(1 for job in self._jobs.values() if job.status == JobStatus.RUNNING)

    def __len__(self) -> int:
        return len(self._jobs)

    def __contains__(self, job_id: object) -> bool:
        return job_id in self._jobs

    # Engines

    def register_engine(self, job_id: str, engine: "SimulationEngine") -> None:
        self._engines[job_id] = engine

    def get_engine(self, job_id: str) -> "SimulationEngine | None":
        return self._engines.get(job_id)

    def release_engine(self, job_id: str) -> None:
        self._engines.pop(job_id, None)

    @property
    def live_engine_count(self) -> int:
        return len(self._engines)

    # Trackers

    def store_tracker(self, job_id: str, tracker: "PortfolioPerformanceTracker") -> None:
        self._trackers[job_id] = tracker

    def get_tracker(self, job_id: str) -> "PortfolioPerformanceTracker | None":
        return self._trackers.get(job_id)

    # Tasks

    def track_task(self, job_id: str, task: asyncio.Task) -> None:
        self._tasks[job_id] = task
        task.add_done_callback(lambda _: self._tasks.pop(job_id, None))

    def get_task(self, job_id: str) -> asyncio.Task | None:
        return self._tasks.get(job_id)

    def pending_tasks(self) -> list[asyncio.Task]:
        return [task for task in self._tasks.values() if not task.done()]
