"""Synthesis gateway: validate, delegate with a deadline, normalize.

`synthesize` is the whole request pipeline for `POST /tts`. It makes at most
one provider call per invocation and never retries. The deadline race does not
cancel the provider call: a call that loses the race is abandoned, keeps
running in the background and has its outcome logged and discarded.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Protocol

from voxgate.config import Settings, settings
from voxgate.middleware.metrics import (
    ABANDONED_CALLS,
    PROVIDER_DURATION,
    SYNTHESIS_REQUESTS,
)

logger = logging.getLogger("voxgate")

# Primary key first, legacy key second
LOCATOR_KEYS = ("src", "url")

PROBE_TEXT = "This is a test of ElevenLabs text to speech via Puter.js"

# Strong references to abandoned provider calls until they settle
_abandoned: set[asyncio.Task] = set()


class SynthesisClient(Protocol):
    async def txt2speech(
        self,
        text: str,
        *,
        provider: str,
        voice: str,
        model: str,
        output_format: str,
    ) -> Any: ...


@dataclass
class SynthesisRequest:
    text: str | None
    voice_id: str | None = None
    model: str | None = None
    output_format: str | None = None


@dataclass
class SynthesisResult:
    audio_locator: str
    voice_used: str
    model_used: str
    output_format: str
    elapsed_ms: int
    text_length: int


@dataclass
class ProbeReport:
    is_valid: bool
    has_src: bool
    src_length: int
    audio_keys: list[str] = field(default_factory=list)


# --- Errors ---


class SynthesisError(Exception):
    """Base of the gateway error taxonomy. Maps 1:1 onto an HTTP envelope."""

    status_code = 500
    error = "Failed to generate audio"

    def __init__(self, error: str | None = None, **details: Any):
        self.error = error or self.error
        self.details = details
        super().__init__(self.error)

    def to_payload(self) -> dict:
        return {"success": False, "error": self.error, **self.details}


class InvalidInput(SynthesisError):
    status_code = 400
    error = "Invalid input"

    @classmethod
    def missing_text(cls, default_voice: str) -> "InvalidInput":
        return cls(
            "Text is required",
            example={"text": "Hello world!", "voice_id": default_voice},
        )

    @classmethod
    def too_long(cls, length: int, limit: int) -> "InvalidInput":
        return cls(
            f"Text exceeds {limit} character limit",
            textLength=length,
            maxLength=limit,
        )


class ServiceUnavailable(SynthesisError):
    status_code = 503
    error = "Puter service not initialized"

    def __init__(self, error: str | None = None, **details: Any):
        details.setdefault("hint", "Check PUTER_AUTH_TOKEN in environment")
        super().__init__(error, **details)


class SynthesisTimeout(SynthesisError):
    def __init__(self, timeout_s: float, elapsed_ms: int):
        self.timeout_s = timeout_s
        self.elapsed_ms = elapsed_ms
        super().__init__(
            f"TTS generation timeout (>{timeout_s:g}s)",
            timeoutSeconds=timeout_s,
            generationTime=f"{elapsed_ms}ms",
            hint="The provider may still be busy, try again later",
        )


class ProviderError(SynthesisError):
    def __init__(self, message: str, elapsed_ms: int | None = None):
        self.message = message
        details: dict[str, Any] = {"details": message}
        if elapsed_ms is not None:
            details["generationTime"] = f"{elapsed_ms}ms"
        details["hint"] = "Check PUTER_AUTH_TOKEN validity or try again"
        super().__init__("Failed to generate audio", **details)


class MalformedProviderResponse(SynthesisError):
    def __init__(self, fields_present: list[str] | None):
        self.fields_present = fields_present
        if fields_present is None:
            super().__init__(
                "Audio generation returned null",
                hint="Voice ID or Puter token might be invalid",
            )
        else:
            super().__init__(
                "Audio URL not found in response", audioObject=fields_present
            )


# --- Provider response helpers ---


def _field(audio: Any, key: str) -> Any:
    if isinstance(audio, dict):
        return audio.get(key)
    return getattr(audio, key, None)


def field_names(audio: Any) -> list[str]:
    """Names of the fields a provider response exposes, never their values."""
    if audio is None:
        return []
    if isinstance(audio, dict):
        return [str(k) for k in audio.keys()]
    try:
        return list(vars(audio).keys())
    except TypeError:
        return []


def locate_audio(audio: Any) -> str | None:
    """Return the audio locator under `src`, else `url`, else None."""
    if audio is None:
        return None
    for key in LOCATOR_KEYS:
        value = _field(audio, key)
        if isinstance(value, str) and value:
            return value
    return None


def resolve_params(req: SynthesisRequest, config: Settings = settings) -> tuple[str, str, str]:
    """Request values win; defaults fill the gaps. No allow-list checks.

    An empty voice falls back to the default voice; an empty model or format
    is forwarded as given.
    """
    return (
        req.voice_id or config.default_voice_id,
        config.default_model if req.model is None else req.model,
        config.default_output_format if req.output_format is None else req.output_format,
    )


# --- Deadline race ---


def _settle_abandoned(task: asyncio.Task):
    _abandoned.discard(task)
    ABANDONED_CALLS.dec()
    if task.cancelled():
        logger.info("Abandoned provider call was cancelled")
        return
    exc = task.exception()
    if exc is not None:
        logger.warning("Abandoned provider call failed after timeout: %s", exc)
    else:
        logger.info("Abandoned provider call completed after timeout, result discarded")


def _abandon(task: asyncio.Task):
    _abandoned.add(task)
    ABANDONED_CALLS.inc()
    task.add_done_callback(_settle_abandoned)


def abandoned_calls() -> int:
    return len(_abandoned)


def _describe(exc: BaseException) -> str:
    return str(exc) or type(exc).__name__


async def _race(client: SynthesisClient, text: str, voice: str, model: str,
                output_format: str, config: Settings) -> tuple[Any, int]:
    """Run one provider call against the deadline. Returns (audio, elapsed_ms)."""
    start = time.perf_counter()

    def elapsed() -> int:
        return round((time.perf_counter() - start) * 1000)

    try:
        task = asyncio.ensure_future(
            client.txt2speech(
                text,
                provider=config.tts_provider,
                voice=voice,
                model=model,
                output_format=output_format,
            )
        )
    except Exception as e:
        SYNTHESIS_REQUESTS.labels(outcome="provider_error").inc()
        raise ProviderError(_describe(e), elapsed()) from e

    try:
        audio = await asyncio.wait_for(asyncio.shield(task), timeout=config.tts_timeout_s)
    except asyncio.TimeoutError as e:
        if not task.done():
            _abandon(task)
            ms = elapsed()
            logger.error("TTS generation timeout after %dms", ms)
            SYNTHESIS_REQUESTS.labels(outcome="timeout").inc()
            raise SynthesisTimeout(config.tts_timeout_s, ms) from None
        if task.cancelled() or task.exception() is not None:
            # The provider itself failed, possibly with its own timeout error
            cause = e if task.cancelled() else task.exception()
            SYNTHESIS_REQUESTS.labels(outcome="provider_error").inc()
            raise ProviderError(_describe(cause), elapsed()) from cause
        # Provider settled in the same iteration the deadline fired
        audio = task.result()
    except asyncio.CancelledError:
        if not task.done():
            _abandon(task)
        raise
    except Exception as e:
        ms = elapsed()
        PROVIDER_DURATION.observe(ms / 1000)
        logger.error("TTS generation error: %s", _describe(e))
        SYNTHESIS_REQUESTS.labels(outcome="provider_error").inc()
        raise ProviderError(_describe(e), ms) from e

    ms = elapsed()
    PROVIDER_DURATION.observe(ms / 1000)
    return audio, ms


# --- Operations ---


def validate(req: SynthesisRequest, config: Settings = settings) -> str:
    if not req.text:
        raise InvalidInput.missing_text(config.default_voice_id)
    if len(req.text) > config.tts_max_chars:
        raise InvalidInput.too_long(len(req.text), config.tts_max_chars)
    return req.text


async def synthesize(
    req: SynthesisRequest,
    client: SynthesisClient | None,
    config: Settings = settings,
) -> SynthesisResult:
    """Turn a synthesis request into an audio locator via the provider.

    Raises:
        InvalidInput: text missing, empty or over the length limit.
        ServiceUnavailable: the provider client was never initialized.
        SynthesisTimeout: the provider did not answer within the deadline.
        ProviderError: the provider call raised.
        MalformedProviderResponse: no usable locator under `src` or `url`.
    """
    try:
        text = validate(req, config)
    except InvalidInput:
        SYNTHESIS_REQUESTS.labels(outcome="invalid_input").inc()
        raise

    if client is None:
        SYNTHESIS_REQUESTS.labels(outcome="unavailable").inc()
        raise ServiceUnavailable()

    voice, model, output_format = resolve_params(req, config)
    logger.info(
        "TTS request: %d chars, voice=%s, model=%s, format=%s",
        len(text), voice, model, output_format,
    )

    audio, elapsed_ms = await _race(client, text, voice, model, output_format, config)

    locator = locate_audio(audio)
    if locator is None:
        fields = None if audio is None else field_names(audio)
        logger.error("Audio locator not found, fields present: %s", fields)
        SYNTHESIS_REQUESTS.labels(outcome="malformed").inc()
        raise MalformedProviderResponse(fields)

    logger.info("TTS success (%dms), locator length %d chars", elapsed_ms, len(locator))
    SYNTHESIS_REQUESTS.labels(outcome="success").inc()
    return SynthesisResult(
        audio_locator=locator,
        voice_used=voice,
        model_used=model,
        output_format=output_format,
        elapsed_ms=elapsed_ms,
        text_length=len(text),
    )


async def probe(client: SynthesisClient | None, config: Settings = settings) -> ProbeReport:
    """Canned synthesis with the defaults, reported as a diagnostic."""
    if client is None:
        raise ServiceUnavailable("Puter not initialized")

    logger.info(
        "Running provider probe: voice=%s, model=%s",
        config.default_voice_id, config.default_model,
    )
    audio, elapsed_ms = await _race(
        client,
        PROBE_TEXT,
        config.default_voice_id,
        config.default_model,
        config.default_output_format,
        config,
    )
    src = _field(audio, "src") if audio is not None else None
    has_src = isinstance(src, str) and bool(src)
    logger.info("Probe finished (%dms), has_src=%s", elapsed_ms, has_src)
    return ProbeReport(
        is_valid=audio is not None,
        has_src=has_src,
        src_length=len(src) if has_src else 0,
        audio_keys=field_names(audio),
    )
