"""Central environment-driven settings for the relay service.

The process loads this once at startup. Feature-specific keys (cipher key,
VAPID keys) may be left empty; the dependent feature then fails with a
configuration error only when it is used (see `.env.example`).
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class CommonSettings(BaseSettings):
    """Typed view of runtime configuration from environment variables."""

    service_name: str = "woomanager"
    app_name: str = "WooManager"
    log_level: str = "INFO"

    public_base_url: str = "http://localhost:8000"
    client_app_url: str = "http://localhost:5173"

    record_store_backend: str = "baserow"
    baserow_api_url: str = "https://api.baserow.io/api"
    baserow_token: str = ""
    baserow_store_table_id: int = 748
    baserow_webhook_table_id: int = 749
    baserow_notification_table_id: int = 750
    database_url: str = "sqlite:///./woomanager.db"

    cache_backend: str = "memory"
    redis_url: str = "redis://redis:6379/0"
    cache_ttl_orders_seconds: int = 60
    cache_ttl_products_seconds: int = 600
    cache_ttl_customers_seconds: int = 600
    cache_ttl_report_seconds: int = 300

    upstream_timeout_seconds: float = 15.0
    webhook_provision_attempts: int = 1
    webhook_provision_backoff_seconds: float = 1.0

    razorpay_enc_key: str = ""

    vapid_public_key: str = ""
    vapid_private_key: str = ""
    vapid_contact: str = "mailto:admin@example.com"
    push_concurrency: int = 8
    push_queue_maxsize: int = 1000
    push_timeout_seconds: float = 10.0
    push_ttl_seconds: int = 3600

    jwt_secret: str = "change-me-to-a-32-byte-or-longer-secret"
    jwt_ttl_minutes: int = 60 * 24 * 7
    bcrypt_rounds: int = 12

    tracing_enabled: bool = True
    otel_exporter_otlp_endpoint: str = "http://otel-collector:4318/v1/traces"
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


settings = CommonSettings()
