"""
Custom exception hierarchy for the backtesting platform.

This module defines domain-specific exceptions for better error handling.
"""

from typing import Any


class BacktestException(Exception):
    """Base exception for all backtesting-related errors."""

    def details(self) -> dict[str, Any]:
        """Structured details for error responses."""
        return {}


class ValidationError(BacktestException):
    """Raised when input validation fails."""

    def __init__(self, message: str, errors: list[str] | None = None):
        self.errors = errors if errors is not None else [message]
        super().__init__(message)

    def details(self) -> dict[str, Any]:
        return {"errors": list(self.errors)}


class DataError(BacktestException):
    """Raised when data access or processing fails."""

    pass


class ConfigurationError(BacktestException):
    """Raised when configuration is invalid."""

    pass


class BacktestAlreadyRunningError(BacktestException):
    """Raised when a simulation engine is started while a run is active."""

    def __init__(self) -> None:
        super().__init__("Backtest is already running")


class AdmissionRejectedError(BacktestException):
    """Raised when the concurrency ceiling for running backtests is reached."""

    def __init__(self, max_concurrent: int, current_running: int):
        self.max_concurrent = max_concurrent
        self.current_running = current_running
        super().__init__("Maximum concurrent backtests reached. Please try again later.")

    def details(self) -> dict[str, Any]:
        return {"maxConcurrent": self.max_concurrent, "currentRunning": self.current_running}


class JobNotFoundError(BacktestException):
    """Raised when a backtest job id is unknown."""

    def __init__(self, job_id: str, message: str = "Backtest job not found"):
        self.job_id = job_id
        super().__init__(message)


class StateConflictError(BacktestException):
    """Raised when an operation is not valid for the job's current status."""

    def __init__(self, message: str, status: str, progress: int | None = None):
        self.status = status
        self.progress = progress
        super().__init__(message)

    def details(self) -> dict[str, Any]:
        details: dict[str, Any] = {"status": self.status}
        if self.progress is not None:
            details["progress"] = self.progress
        return details
