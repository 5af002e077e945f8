from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class HealthResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    status: str
    service: str
    service_name: str
    version: str
    default_voice: str
    default_voice_name: str
    ready: bool
    puter_initialized: bool
    token_set: bool
    abandoned_calls: int
    endpoints: dict[str, str]
