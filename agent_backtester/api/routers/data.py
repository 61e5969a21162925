"""
Data API endpoints.
"""

from fastapi import APIRouter

from agent_backtester.api.schemas.api_models import ProviderInfo, ProvidersResponse
from agent_backtester.infrastructure.data.factory import DataProviderFactory

router = APIRouter()


@router.get("/providers", response_model=ProvidersResponse)
async def get_data_providers() -> ProvidersResponse:
    """List the historical data providers a backtest can use."""
    return ProvidersResponse(
        providers=[
            ProviderInfo.model_validate(provider)
            for provider in DataProviderFactory.describe_providers()
        ]
    )
