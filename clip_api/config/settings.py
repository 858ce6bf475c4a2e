from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from clip_api.constants import DEFAULT_MODEL_ID

_ENV_CONFIG = SettingsConfigDict(
    env_file=".env",
    env_file_encoding="utf-8",
    populate_by_name=True,
    extra="ignore",
    protected_namespaces=(),
)


class ScoringConfig(BaseSettings):
    """Scoring strategy configuration"""

    model_config = _ENV_CONFIG

    clip_evaluate_strategy: str = Field(default="heuristic", validation_alias="CLIP_EVALUATE_STRATEGY")
    evaluate_strategy: str = Field(default="external", validation_alias="EVALUATE_STRATEGY")
    probe_timeout: float = Field(default=10.0, validation_alias="PROBE_TIMEOUT")
    external_command: str | None = Field(default=None, validation_alias="EXTERNAL_COMMAND")
    # 0 disables the deadline
    external_timeout: float = Field(default=120.0, ge=0, validation_alias="EXTERNAL_TIMEOUT")


class APIConfig(BaseSettings):
    """API configuration"""

    model_config = _ENV_CONFIG

    max_batch_size: int = Field(default=100, ge=1, validation_alias="MAX_BATCH_SIZE")


class ObservabilityConfig(BaseSettings):
    """Observability configuration"""

    model_config = _ENV_CONFIG

    enable_metrics: bool = Field(default=True, validation_alias="ENABLE_METRICS")


class AppSettings(BaseSettings):
    """Application settings, read once at process start"""

    model_config = _ENV_CONFIG

    debug: bool = Field(default=False, validation_alias="DEBUG")
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    host: str = Field(default="0.0.0.0", validation_alias="HOST")
    port: int = Field(default=8000, validation_alias="PORT")

    huggingface_token: str | None = Field(default=None, validation_alias="HUGGINGFACE_TOKEN")
    model_id: str = Field(default=DEFAULT_MODEL_ID, validation_alias="MODEL_ID")

    # Sub-configurations
    scoring: ScoringConfig = Field(default_factory=ScoringConfig)
    api: APIConfig = Field(default_factory=APIConfig)
    observability: ObservabilityConfig = Field(default_factory=ObservabilityConfig)

    @property
    def token_configured(self) -> bool:
        return bool(self.huggingface_token)


@lru_cache
def get_settings() -> AppSettings:
    """Build settings from the environment once per process"""
    return AppSettings()
