from __future__ import annotations

from pydantic import Field, PositiveFloat, PositiveInt
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="LECTERN_", env_file=".env", extra="ignore", env_parse_none_str="none"
    )

    app_name: str = "lectern"
    env: str = "dev"

    # Redis
    redis_url: str = Field(default="redis://localhost:6379/0", validation_alias="REDIS_URL")

    # Eviction fan-out
    # Seconds allowed per cache-store call; None ("none" in the env) waits indefinitely
    eviction_timeout: PositiveFloat | None = Field(
        default=5.0, validation_alias="EVICTION_TIMEOUT"
    )
    # Upper bound on in-flight cache-store calls per invalidator; None is unbounded
    max_concurrent_evictions: PositiveInt | None = Field(
        default=None, validation_alias="MAX_CONCURRENT_EVICTIONS"
    )

    # Observability
    enable_metrics: bool = Field(default=True, validation_alias="ENABLE_METRICS")
    log_level: str = "INFO"
    log_json: bool = True


settings = Settings()
