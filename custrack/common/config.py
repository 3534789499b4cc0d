"""Central environment-driven settings for the customer tracking service.

The service process loads this once at startup. Behavior is controlled by
environment variables (see `.env.example`).
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class CommonSettings(BaseSettings):
    """Typed view of runtime configuration from environment variables."""

    service_name: str = "customers"
    log_level: str = "INFO"
    postgres_dsn: str
    api_key: str
    otel_exporter_otlp_endpoint: str = "http://otel-collector:4318/v1/traces"
    tracing_enabled: bool = True
    default_page_size: int = 20
    max_page_size: int = 100
    recent_activity_days: int = 7
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


settings = CommonSettings()
