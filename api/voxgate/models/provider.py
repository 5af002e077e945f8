import base64
import logging
from typing import Any

import httpx

from voxgate.config import settings

logger = logging.getLogger("voxgate")

# Placeholders shipped in sample .env files
PLACEHOLDER_TOKENS = {"your-puter-auth-token", "changeme"}


class PuterAPIError(Exception):
    """Raised when the Puter driver call is rejected or fails in transit."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class PuterTTSClient:
    """Thin async client for the Puter `puter-tts` driver interface.

    Mirrors what puter.js `ai.txt2speech` does: one POST to
    `/drivers/call`, then the audio blob is turned into a data URL exposed
    as `src`.
    """

    def __init__(self, http: httpx.AsyncClient, token: str):
        self.http = http
        self._token = token

    async def txt2speech(
        self,
        text: str,
        *,
        provider: str,
        voice: str,
        model: str,
        output_format: str,
    ) -> dict[str, Any]:
        payload = {
            "interface": "puter-tts",
            "driver": driver_for(provider),
            "test_mode": False,
            "method": "synthesize",
            "args": {
                "text": text,
                "provider": provider,
                "voice": voice,
                "model": model,
                "output_format": output_format,
            },
        }
        try:
            resp = await self.http.post(
                "/drivers/call",
                json=payload,
                headers={"Authorization": f"Bearer {self._token}"},
            )
        except httpx.HTTPError as e:
            raise PuterAPIError(f"Puter request failed: {e}") from e

        content_type = resp.headers.get("content-type", "").split(";")[0].strip()

        if content_type == "application/json":
            body = resp.json()
            if resp.is_error or (isinstance(body, dict) and body.get("success") is False):
                raise PuterAPIError(_error_message(body, resp.status_code), resp.status_code)
            return body

        if resp.is_error:
            raise PuterAPIError(
                f"Puter returned HTTP {resp.status_code}", resp.status_code
            )

        mime = content_type or "audio/mpeg"
        return {
            "src": to_data_url(resp.content, mime),
            "type": mime,
            "size": len(resp.content),
        }

    async def aclose(self):
        await self.http.aclose()


def driver_for(provider: str) -> str:
    return f"{provider}-tts"


def to_data_url(data: bytes, mime: str) -> str:
    return f"data:{mime};base64,{base64.b64encode(data).decode('ascii')}"


def _error_message(body: Any, status_code: int) -> str:
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        if isinstance(error, str) and error:
            return error
        if body.get("message"):
            return str(body["message"])
    return f"Puter returned HTTP {status_code}"


def token_is_set(token: str | None = None) -> bool:
    token = settings.puter_auth_token if token is None else token
    return bool(token) and token not in PLACEHOLDER_TOKENS


def load_provider() -> PuterTTSClient | None:
    """Build the process-wide client, or None when no credential is configured."""
    if not token_is_set():
        logger.warning("PUTER_AUTH_TOKEN not set, TTS requests will return 503")
        return None

    logger.info("Initializing Puter client: %s", settings.puter_api_origin)
    # Transport timeout stays above the gateway deadline
    http = httpx.AsyncClient(
        base_url=settings.puter_api_origin,
        timeout=httpx.Timeout(settings.tts_timeout_s * 2, connect=10.0),
    )
    return PuterTTSClient(http, settings.puter_auth_token)
