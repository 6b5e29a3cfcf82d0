from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_name: str = "hiremistri-api"
    environment: str = "dev"
    cors_allow_origins: list[str] = ["*"]
    database_url: str | None = None
    database_pool_min_size: int = 1
    database_pool_max_size: int = 10
    database_command_timeout_seconds: float = 15.0
    supabase_url: str | None = None
    supabase_service_role_key: str | None = None
    identity_timeout_seconds: float = 5.0
    sendgrid_api_key: str | None = None
    sendgrid_from_email: str | None = None
    sendgrid_api_url: str = "https://api.sendgrid.com/v3/mail/send"
    email_timeout_seconds: float = 10.0
    email_max_attempts: int = 3
    email_retry_base_seconds: float = 2.0
    email_retry_max_seconds: float = 60.0
    notification_queue_size: int = 1000
    expiration_sweep_enabled: bool = True
    expiration_sweep_interval_seconds: float = 86400.0
    expiration_sweep_batch_size: int = 500
    recommendation_limit: int = 10
    otel_enabled: bool = True
    otel_service_name: str = "hiremistri-api"
    otel_exporter_otlp_endpoint: str | None = None
    otel_exporter_otlp_headers: str | None = None
    otel_trace_sample_ratio: float = 1.0
    otel_log_correlation: bool = True

    model_config = SettingsConfigDict(env_prefix="HM_", extra="ignore")


@lru_cache
def get_settings() -> Settings:
    return Settings()
