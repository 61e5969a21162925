"""
Backtest API endpoints.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Response, status

from agent_backtester.api.dependencies import get_scheduler
from agent_backtester.api.schemas.api_models import (
    BacktestRequestModel,
    BacktestResultResponse,
    CompareRequest,
    ComparisonResponse,
    JobActionResponse,
    JobListResponse,
    JobSummaryResponse,
    SubmitResponse,
)
from agent_backtester.backtesting.scheduler import BacktestScheduler
from agent_backtester.core.enums import JobStatus

router = APIRouter()

SchedulerDep = Annotated[BacktestScheduler, Depends(get_scheduler)]


@router.post(
    "",
    response_model=SubmitResponse,
    status_code=status.HTTP_201_CREATED,
)
async def submit_backtest(payload: BacktestRequestModel, scheduler: SchedulerDep) -> SubmitResponse:
    """Submit a new backtest for execution."""
    receipt = await scheduler.submit_backtest(payload.to_domain())
    return SubmitResponse.model_validate(receipt)


@router.get("", response_model=JobListResponse)
async def list_backtests(
    scheduler: SchedulerDep,
    status_filter: Annotated[str | None, Query(alias="status")] = None,
    limit: Annotated[int | None, Query(gt=0)] = None,
) -> JobListResponse:
    """List backtests, most recent first."""
    listing = scheduler.list_backtests(status_filter, limit)
    return JobListResponse(
        jobs=[JobSummaryResponse.model_validate(job) for job in listing.jobs],
        total=listing.total,
        pending=listing.counts[JobStatus.PENDING],
        running=listing.counts[JobStatus.RUNNING],
        completed=listing.counts[JobStatus.COMPLETED],
        failed=listing.counts[JobStatus.FAILED],
        cancelled=listing.counts[JobStatus.CANCELLED],
    )


@router.post("/compare", response_model=ComparisonResponse)
async def compare_backtests(payload: CompareRequest, scheduler: SchedulerDep) -> ComparisonResponse:
    """Compare two or more completed backtests."""
    return ComparisonResponse.model_validate(scheduler.compare_backtests(payload.job_ids))


@router.get("/{job_id}", response_model=JobSummaryResponse)
async def get_backtest_status(job_id: str, scheduler: SchedulerDep) -> JobSummaryResponse:
    """Get the status of a backtest."""
    return JobSummaryResponse.model_validate(scheduler.get_status(job_id))


@router.get("/{job_id}/result", response_model=BacktestResultResponse)
async def get_backtest_result(job_id: str, scheduler: SchedulerDep) -> BacktestResultResponse:
    """Get the result of a completed backtest."""
    return BacktestResultResponse.model_validate(scheduler.get_result(job_id))


@router.post("/{job_id}/cancel", response_model=JobActionResponse)
async def cancel_backtest(job_id: str, scheduler: SchedulerDep) -> JobActionResponse:
    """Cancel a pending or running backtest."""
    job = scheduler.cancel_backtest(job_id)
    return JobActionResponse(
        message="Backtest cancelled successfully", job_id=job.id, status=job.status
    )


@router.delete("/{job_id}", response_model=JobActionResponse)
async def delete_backtest(job_id: str, scheduler: SchedulerDep) -> JobActionResponse:
    """Delete a backtest that is not running."""
    job = scheduler.delete_backtest(job_id)
    return JobActionResponse(message="Backtest deleted successfully", job_id=job.id)


@router.get("/{job_id}/export")
async def export_backtest(
    job_id: str,
    scheduler: SchedulerDep,
    export_format: Annotated[str, Query(alias="format")] = "json",
) -> Response:
    """Download a completed backtest as JSON or CSV."""
    payload = scheduler.export_backtest(job_id, export_format)
    return Response(
        content=payload.content,
        media_type=payload.media_type,
        headers={"Content-Disposition": f'attachment; filename="{payload.filename}"'},
    )
