"""
FastAPI main application for the agent backtesting service.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from agent_backtester.backtesting.scheduler import BacktestScheduler
from agent_backtester.core.config import get_settings
from agent_backtester.core.exceptions.backtest import (
    AdmissionRejectedError,
    BacktestException,
    JobNotFoundError,
    StateConflictError,
    ValidationError,
)
from agent_backtester.core.utils.logging_config import setup_logging

from .routers import backtests, data

API_VERSION = "1.0.0"

ERROR_STATUS_CODES: dict[type[BacktestException], int] = {
    ValidationError: status.HTTP_400_BAD_REQUEST,
    StateConflictError: status.HTTP_400_BAD_REQUEST,
    JobNotFoundError: status.HTTP_404_NOT_FOUND,
    AdmissionRejectedError: status.HTTP_429_TOO_MANY_REQUESTS,
}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    settings = get_settings()
    setup_logging(settings.log_level)
    app.state.scheduler = BacktestScheduler(settings=settings)
    logger.info(f"Backtest scheduler ready (max {app.state.scheduler.max_concurrent} concurrent)")
    yield
    await app.state.scheduler.shutdown()


def create_app() -> FastAPI:
    app = FastAPI(
        title="Agent Backtesting API",
        version=API_VERSION,
        description="API for scheduling and analysing trading-agent backtests",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[
            "http://localhost:3000",  # Development frontend
            "http://localhost:8080",  # Alternative development port
        ],
        allow_credentials=False,
        allow_methods=["GET", "POST", "DELETE"],
        allow_headers=["Content-Type", "Accept", "Origin", "X-Requested-With"],
    )

    app.add_exception_handler(BacktestException, backtest_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)

    app.include_router(backtests.router, prefix="/api/backtests", tags=["backtests"])
    app.include_router(data.router, prefix="/api/data", tags=["data"])

    @app.get("/")
    async def root() -> dict[str, str]:
        """Root endpoint returning API information."""
        return {"message": "Agent Backtesting API", "version": API_VERSION, "status": "running"}

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "healthy"}

    return app


async def backtest_exception_handler(request: Request, exc: BacktestException) -> JSONResponse:
    """Translate domain errors into ``{"error": reason, ...}`` bodies."""
    status_code = next(
        (code for error_type, code in ERROR_STATUS_CODES.items() if isinstance(exc, error_type)),
        status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
    if status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        logger.error(f"Unhandled backtest error on {request.url.path}: {exc}")
    return JSONResponse(status_code=status_code, content={"error": str(exc), **exc.details()})


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report malformed bodies as client errors like every other validation failure."""
    errors = [
        f"{'.'.join(str(part) for part in error['loc'] if part != 'body')}: {error['msg']}"
        for error in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "Invalid request", "errors": errors},
    )


app = create_app()
