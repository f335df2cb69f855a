from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # App
    app_name: str = "Visual Feedback API"
    app_env: str = "development"  # development, testing, production
    debug: bool = False
    enable_openapi: bool = True  # Set to False in production
    api_version: str = "1.0.0"

    # Security
    api_keys: list[str] = []  # Bearer tokens accepted on protected endpoints
    # Checked in order; first non-empty header wins, else client is "unknown"
    trusted_ip_headers: list[str] = ["CF-Connecting-IP", "X-Forwarded-For"]
    csp_production: str = "default-src 'self'; frame-ancestors 'none'"
    max_request_bytes: int = 5 * 1024 * 1024
    max_user_agent_length: int = 500
    # Body paths (dot-separated) where only script patterns are screened
    injection_sql_exempt_fields: list[str] = ["metadata.user_agent"]

    # Database
    database_url: str
    database_pool_size: int = 5
    database_max_overflow: int = 10
    database_ssl_mode: str = "prefer"  # disable, prefer, require, verify-ca, verify-full
    database_statement_cache_size: int = 100

    # Projects
    project_ttl_days: int = 30
    project_max_extend_days: int = 365
    code_max_attempts: int = 100

    # Comments / screenshots
    blob_backend: str = "memory"  # memory, local
    blob_root: str = "./data/blobs"
    orphan_grace_minutes: int = 60

    # Rate Limiting (global middleware)
    rate_limit_enabled: bool = True
    rate_limit_requests: int = 100
    rate_limit_window_seconds: int = 60
    project_create_rate_limit: str = "20/hour"

    # Redis (optional - app works without it)
    redis_url: str | None = None  # e.g., "redis://localhost:6379/0"
    redis_pool_size: int = 10

    # Metrics
    metrics_api_key: str | None = None  # If set, /metrics requires this key

    # Notifications
    resend_api_key: str | None = None  # If not set, emails are logged but not sent
    email_from: str = "noreply@example.com"
    email_send_timeout_seconds: int = 10
    webhook_timeout_seconds: float = 5.0

    # Temporal
    temporal_host: str = "localhost:7233"
    temporal_namespace: str = "default"
    temporal_task_queue: str = "feedback-jobs"
    sweep_schedule: str | None = None  # Cron syntax, e.g., "*/15 * * * *"

    @field_validator("api_keys")
    @classmethod
    def validate_api_keys(cls, v: list[str]) -> list[str]:
        for key in v:
            if len(key) < 8:
                raise ValueError("API keys must be at least 8 characters")
        return v

    @field_validator("blob_backend")
    @classmethod
    def validate_blob_backend(cls, v: str) -> str:
        if v not in ("memory", "local"):
            raise ValueError("BLOB_BACKEND must be 'memory' or 'local'")
        return v

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"


@lru_cache
def get_settings() -> Settings:
    return Settings()
