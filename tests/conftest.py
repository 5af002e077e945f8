"""Shared fixtures: a controllable fake provider and test settings."""

import asyncio
from typing import Any

import pytest

from voxgate.config import Settings


class FakeProvider:
    """Stands in for PuterTTSClient.

    Args:
        result: Value returned by txt2speech.
        delay: Seconds to sleep before answering.
        error: Exception raised instead of returning.
        gated: When True, the call blocks until `release()` is called.
    """

    def __init__(
        self,
        result: Any = None,
        delay: float = 0.0,
        error: BaseException | None = None,
        gated: bool = False,
    ) -> None:
        self.result = result
        self.delay = delay
        self.error = error
        self.gated = gated
        self.calls: list[dict] = []
        self.completed = 0
        self._gate: asyncio.Event | None = None

    def release(self) -> None:
        if self._gate is not None:
            self._gate.set()

    async def txt2speech(self, text, *, provider, voice, model, output_format):
        self.calls.append(
            {
                "text": text,
                "provider": provider,
                "voice": voice,
                "model": model,
                "output_format": output_format,
            }
        )
        if self.gated:
            self._gate = asyncio.Event()
            await self._gate.wait()
        if self.delay:
            await asyncio.sleep(self.delay)
        self.completed += 1
        if self.error is not None:
            raise self.error
        return self.result


@pytest.fixture
def config() -> Settings:
    """Settings isolated from the environment, with a short deadline."""
    return Settings(_env_file=None, tts_timeout_s=0.05, puter_auth_token="")


@pytest.fixture
def make_provider() -> type[FakeProvider]:
    return FakeProvider


@pytest.fixture
def audio_src() -> str:
    return "data:audio/mp3;base64,AAAA"
