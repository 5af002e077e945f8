import logging

from fastapi import APIRouter

from voxgate.dependencies import ProviderDep, SettingsDep
from voxgate.models.provider import token_is_set
from voxgate.schemas.health import HealthResponse
from voxgate.services.gateway import abandoned_calls

logger = logging.getLogger("voxgate")
router = APIRouter()

ENDPOINTS = {
    "health": "GET /",
    "generateTTS": "POST /tts",
    "test": "POST /test",
    "docs": "GET /docs",
}


@router.get("/", response_model=HealthResponse, summary="Health check")
async def health(provider: ProviderDep, config: SettingsDep):
    """Service status, default voice and whether the provider client is ready.

    No authentication required.
    """
    ready = provider is not None
    return HealthResponse(
        status="online" if ready else "degraded",
        service=config.service_name,
        service_name=config.service_name,
        version=config.version,
        default_voice=config.default_voice_id,
        default_voice_name=config.default_voice_name,
        ready=ready,
        puter_initialized=ready,
        token_set=token_is_set(config.puter_auth_token),
        abandoned_calls=abandoned_calls(),
        endpoints=ENDPOINTS,
    )
