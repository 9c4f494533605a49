"""
Runtime configuration for the moodmap service.

Values come from the environment (prefix ``MOODMAP_``) or a local ``.env``
file. Nested projector constants use ``__``, for example
``MOODMAP_PROJECTOR__GAIN=40``.
"""

from functools import lru_cache

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from .projector import ProjectorConfig


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="MOODMAP_",
        env_file=".env",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    # Tone analysis API
    tone_api_url: str = ""
    tone_api_key: SecretStr | None = None
    tone_api_version: str = "2017-09-21"
    tone_timeout: float = 10.0
    tone_threshold: float = Field(0.5, description="Minimum score shown as emoji")

    # Chart rendering
    chart_base_url: str = "https://image-charts.com/chart"
    chart_size: str = "600x300"
    history_limit: int = Field(20, ge=1, description="Turns kept for the line chart")

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    reload: bool = False
    log_level: str = "INFO"

    projector: ProjectorConfig = Field(default_factory=ProjectorConfig)


@lru_cache
def get_settings() -> Settings:
    return Settings()
