"""Central environment-driven settings for the payment gateway process.

Loaded once at startup. Every value can be overridden through environment
variables or a local `.env` file (see `.env.example`).
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class GatewaySettings(BaseSettings):
    """Typed view of runtime configuration from environment variables."""

    service_name: str = "payment-gateway"
    log_level: str = "INFO"
    bank_base_url: str = "http://localhost:8080"
    bank_payment_route: str = "/payments"
    bank_timeout_seconds: float = 5.0
    ledger_backend: str = "memory"
    database_dsn: str = "sqlite:///./payments.db"
    # Read-only; handed to the request validator rather than looked up globally.
    supported_currencies: frozenset[str] = frozenset({"USD", "EUR", "GBP"})
    otel_enabled: bool = False
    otel_exporter_otlp_endpoint: str = "http://otel-collector:4318/v1/traces"
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


settings = GatewaySettings()
