from typing import List, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict

from common.core.constants import Environment, NotificationProviderType


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # Environment Profile
    environment: Environment = Environment.LOCAL

    # API Settings
    app_name: str = "subscription-engine"
    api_version: str = "v1"
    debug: bool = False

    # Database Components
    db_user: str = "postgres"
    db_password: str = "postgres"
    db_host: str = "localhost"
    db_port: int = 5432
    db_name: str = "subscriptions"
    db_use_nullpool: bool = (
        False  # True for workers (sequential), False for API (concurrent)
    )
    db_pool_size: int = 10
    db_pool_overflow: int = 5

    @property
    def database_url(self) -> str:
        """Construct database URL from components."""
        return f"postgresql://{self.db_user}:{self.db_password}@{self.db_host}:{self.db_port}/{self.db_name}"

    # RabbitMQ
    rabbitmq_host: str = "localhost"
    rabbitmq_port: int = 5672
    rabbitmq_username: str = "guest"
    rabbitmq_password: str = "guest"
    rabbitmq_vhost: str = ""

    # Rate limiting (SlowAPI)
    rate_limit_enabled: bool = True
    rate_limit_storage_uri: str = "memory://"
    rate_limit_default: List[str] = ["10/second", "300/minute"]

    # OpenTelemetry
    otel_service_name: str = "subscription-engine"
    otel_service_version: str = "0.1.0"

    # Axiom
    axiom_token: str = ""
    axiom_dataset: str = "subscription-engine"

    # Billing - Robokassa (payments)
    robokassa_login: str = ""
    robokassa_password1: str = ""
    robokassa_password2: str = ""
    robokassa_base_url: str = "https://auth.robokassa.kz/Merchant/Index.aspx"
    robokassa_test_mode: bool = True
    robokassa_culture: str = "ru"
    robokassa_currency_label: Optional[str] = None

    # Billing - plans and payments
    default_currency: str = "KZT"
    payment_intent_ttl_hours: int = 24
    free_plan_name: str = "Free"
    free_tier_years: int = 100

    # Billing - quota gate
    quota_exempt_roles: List[str] = ["admin"]

    # Notifications
    notification_provider: NotificationProviderType = NotificationProviderType.QUEUE
    notification_queue_name: str = "subscription_notifications"

    # Workers
    subscription_sweep_interval_seconds: int = 6 * 60 * 60
    expiring_reminder_days: int = 3

    @property
    def cors_allowed_origins(self) -> List[str]:
        """Auto-select CORS origins based on environment."""
        if self.environment == Environment.LOCAL:
            return [
                "http://localhost:3000",
                "http://localhost:3001",
            ]
        return []


settings = Settings()
