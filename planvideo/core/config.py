from functools import lru_cache

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_name: str = "plan-video-renderer"
    environment: str = "dev"
    render_api_base_url: str = "https://api.nexrender.com/api/v2"
    render_api_key: SecretStr = SecretStr("")
    request_timeout_seconds: float = 10.0
    poll_interval_seconds: float = 2.0
    max_backoff_seconds: float = 15.0
    poll_retry_budget: int = 3
    preview_renders: bool = False
    otel_enabled: bool = True
    otel_service_name: str = "plan-video-renderer"
    otel_exporter_otlp_endpoint: str | None = None
    otel_exporter_otlp_headers: str | None = None
    otel_trace_sample_ratio: float = 1.0
    otel_log_correlation: bool = True

    model_config = SettingsConfigDict(env_prefix="PV_", extra="ignore")


@lru_cache
def get_settings() -> Settings:
    return Settings()
