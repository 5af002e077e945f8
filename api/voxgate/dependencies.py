from typing import Annotated

from fastapi import Depends, Request

from voxgate.config import Settings, settings
from voxgate.models.provider import PuterTTSClient


def get_settings() -> Settings:
    return settings


def get_provider(request: Request) -> PuterTTSClient | None:
    """The process-wide client built at startup; None when never initialized."""
    return getattr(request.app.state, "provider", None)


SettingsDep = Annotated[Settings, Depends(get_settings)]
ProviderDep = Annotated[PuterTTSClient | None, Depends(get_provider)]
