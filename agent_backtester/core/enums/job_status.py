"""
Lifecycle enumerations for backtest jobs and simulation engines.
"""

from enum import StrEnum


class JobStatus(StrEnum):
    """
    Backtest job lifecycle.

    PENDING -> RUNNING -> {COMPLETED | FAILED | CANCELLED};
    PENDING jobs may also be cancelled directly.
    """

    PENDING = "PENDING"
    RUNNING = "RUNNING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"

    @property
    def is_terminal(self) -> bool:
        """Check if the status is final."""
        return self in [self.COMPLETED, self.FAILED, self.CANCELLED]

    @property
    def is_cancellable(self) -> bool:
        """Check if a job in this status may be cancelled."""
        return self in [self.PENDING, self.RUNNING]

    @classmethod
    def from_string(cls, value: str) -> "JobStatus":
        """Convert string to JobStatus, case-insensitively."""
        try:
            return cls(value.upper())
        except ValueError as e:
            raise ValueError(
                f"Unsupported job status: {value}. "
                f"Supported statuses: {', '.join([s.value for s in cls])}"
            ) from e


class EngineState(StrEnum):
    """Simulation engine run state."""

    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    STOPPED = "stopped"
