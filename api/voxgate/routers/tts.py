import logging
from typing import Annotated

from fastapi import APIRouter, Body

from voxgate.dependencies import ProviderDep, SettingsDep
from voxgate.schemas.tts import ErrorResponse, ProbeAudio, ProbeResponse, TTSRequest, TTSResponse
from voxgate.services.gateway import SynthesisRequest, probe, synthesize

logger = logging.getLogger("voxgate")
router = APIRouter()

ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Missing text or text too long"},
    503: {"model": ErrorResponse, "description": "Provider client not initialized"},
    500: {"model": ErrorResponse, "description": "Provider failure, timeout or malformed response"},
}


@router.post(
    "/tts",
    response_model=TTSResponse,
    responses=ERROR_RESPONSES,
    summary="Text-to-Speech",
)
async def text_to_speech(
    provider: ProviderDep,
    config: SettingsDep,
    req: Annotated[TTSRequest | None, Body()] = None,
):
    """Synthesize text with ElevenLabs via Puter and return a playable audio URL.

    `voice_id`, `model` and `output_format` are forwarded verbatim; unknown
    values are rejected by the provider, not here.

    **Example:** `{"text": "Hello world!", "voice_id": "gmnazjXOFoOcWA59sd5m"}`
    """
    # An empty body is treated like `{}` so the gateway reports the missing text
    req = req or TTSRequest()
    result = await synthesize(
        SynthesisRequest(
            text=req.text,
            voice_id=req.voice_id,
            model=req.model,
            output_format=req.output_format,
        ),
        provider,
        config,
    )

    return TTSResponse(
        audio_url=result.audio_locator,
        used_voice=result.voice_used,
        text_length=result.text_length,
        model=result.model_used,
        output_format=result.output_format,
        generation_time=f"{result.elapsed_ms}ms",
    )


@router.post(
    "/test",
    response_model=ProbeResponse,
    responses={k: v for k, v in ERROR_RESPONSES.items() if k != 400},
    summary="Provider smoke test",
)
async def provider_test(provider: ProviderDep, config: SettingsDep):
    """Run a canned sentence with the default voice and report what came back."""
    report = await probe(provider, config)
    return ProbeResponse(
        success=report.is_valid,
        audio=ProbeAudio(
            is_valid=report.is_valid,
            has_src=report.has_src,
            src_length=report.src_length,
            audio_keys=report.audio_keys,
        ),
    )
