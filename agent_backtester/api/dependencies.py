"""
Request-scoped dependencies.
"""

from fastapi import Request

from agent_backtester.backtesting.scheduler import BacktestScheduler


def get_scheduler(request: Request) -> BacktestScheduler:
    """Scheduler created by the application lifespan."""
    return request.app.state.scheduler
