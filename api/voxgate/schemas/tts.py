from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class TTSRequest(BaseModel):
    # Length and emptiness are checked by the gateway so the error can
    # report the actual length and the limit.
    text: str | None = Field(default=None, description="Text to synthesize (max 3000 chars)")
    voice_id: str | None = Field(default=None, description="ElevenLabs voice ID")
    model: str | None = Field(default=None, description="ElevenLabs model ID")
    output_format: str | None = Field(default=None, description="Codec tag, e.g. mp3_44100_128")


class TTSResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    success: bool = True
    audio_url: str = Field(..., description="URL or data URL of the audio")
    used_voice: str
    text_length: int
    model: str
    output_format: str
    generation_time: str = Field(..., description="Wall-clock time of the provider call, e.g. '840ms'")
    message: str = "Audio generated successfully from ElevenLabs via Puter.js"


class ProbeAudio(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    is_valid: bool
    has_src: bool
    src_length: int
    audio_keys: list[str]


class ProbeResponse(BaseModel):
    success: bool
    audio: ProbeAudio


class ErrorResponse(BaseModel):
    model_config = ConfigDict(extra="allow")

    success: bool = False
    error: str
