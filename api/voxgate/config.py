from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings
from typing import List


class Settings(BaseSettings):
    # API
    api_host: str = "0.0.0.0"
    api_port: int = Field(
        default=3000, validation_alias=AliasChoices("port", "api_port")
    )
    log_level: str = "info"
    service_name: str = "Puter.js ElevenLabs TTS API"
    version: str = "1.0.0"
    public_base_url: str = "http://localhost:3000"

    # Puter driver API
    puter_auth_token: str = ""
    puter_api_origin: str = "https://api.puter.com"
    tts_provider: str = "elevenlabs"

    # Synthesis defaults
    default_voice_id: str = "gmnazjXOFoOcWA59sd5m"
    default_voice_name: str = "Dakocan (Multilingual)"
    default_model: str = "eleven_multilingual_v2"
    default_output_format: str = "mp3_44100_128"

    # Limits
    tts_max_chars: int = 3000
    tts_timeout_s: float = 30.0

    # Monitoring
    prometheus_enabled: bool = True

    # CORS
    cors_origins: List[str] = ["*"]

    model_config = {
        "env_file": ["../.env", ".env"],
        "env_file_encoding": "utf-8",
        "extra": "ignore",
        "populate_by_name": True,
    }


settings = Settings()
