from fastapi import APIRouter

from voxgate.dependencies import SettingsDep

router = APIRouter()


@router.get("/docs", summary="Static API documentation")
async def docs(config: SettingsDep) -> dict:
    """Hand-written usage notes. Interactive docs live at `/swagger`."""
    base = config.public_base_url.rstrip("/")
    return {
        "title": config.service_name,
        "description": "Text-to-Speech API powered by Puter.js and ElevenLabs",
        "baseUrl": base,
        "endpoints": {
            "POST /tts": {
                "description": "Generate speech from text",
                "method": "POST",
                "requestBody": {
                    "text": f"string (required) - Max {config.tts_max_chars} characters",
                    "voice_id": (
                        "string (optional) - ElevenLabs voice ID, "
                        f"default: {config.default_voice_id}"
                    ),
                    "model": (
                        "string (optional) - eleven_multilingual_v2, "
                        "eleven_flash_v2_5, eleven_turbo_v2_5"
                    ),
                    "output_format": (
                        f"string (optional) - {config.default_output_format} (default), "
                        "mp3_44100_192, pcm_16000, etc"
                    ),
                },
                "example": {
                    "url": f"POST {base}/tts",
                    "headers": {"Content-Type": "application/json"},
                    "body": {
                        "text": "Hello! This is a test of ElevenLabs TTS via Puter.js",
                        "voice_id": config.default_voice_id,
                        "model": config.default_model,
                    },
                },
                "response": {
                    "success": "boolean",
                    "audioUrl": "string (data URL of audio)",
                    "usedVoice": "string",
                    "textLength": "number",
                    "model": "string",
                    "outputFormat": "string",
                    "generationTime": "string (e.g. '840ms')",
                    "message": "string",
                },
                "errors": {
                    "400": "text missing or over the length limit",
                    "503": "provider client not initialized (PUTER_AUTH_TOKEN)",
                    "500": f"provider failure, malformed response or timeout (>{config.tts_timeout_s:g}s)",
                },
            },
            "POST /test": {
                "description": "Canned synthesis with the default voice, returns diagnostics",
                "method": "POST",
            },
            "GET /": {
                "description": "Health check",
                "method": "GET",
            },
        },
    }
