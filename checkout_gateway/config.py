"""Configuration management using Pydantic Settings"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables"""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Database (session-scoped checkout storage)
    database_url: str = "sqlite:///./checkout.db"

    # External Services
    signing_endpoint_url: str = "http://localhost:8001/api/payu-hash"
    redirect_url_field: str = "payuBaseUrl"

    # Return callbacks
    app_origin: str = "http://localhost:3000"
    success_path: str = "/payment-success"
    failure_path: str = "/payment-failure"

    # Service
    service_name: str = "checkout-gateway"
    log_level: str = "INFO"

    # HTTP Client
    http_timeout_seconds: float = 10.0

    # Queue / retry policy
    queue_min_interval_seconds: float = 60.0
    rate_limit_cooldown_seconds: int = 60
    rate_limits_before_fallback: int = 2
    failures_before_fallback: int = 3
    session_idle_ttl_seconds: float = 1800.0

    # Payment request
    product_info_max_length: int = 120
    billing_currency: str = "INR"
    standing_instructions_enabled: bool = True
    default_payer_phone: str = "9999999999"
    support_email: str = "care@payu.in"


settings = Settings()
