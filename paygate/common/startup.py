"""Startup-time helpers for safe config logging."""

from paygate.common.config import GatewaySettings
from paygate.common.logging import logger

SECRET_MARKERS = ("key", "secret", "password", "token", "dsn")


def _safe_value(name: str, value: object) -> object:
    """Return the value with simple redaction for secret-like setting names."""

    if value is None:
        return "<unset>"
    if any(marker in name.lower() for marker in SECRET_MARKERS):
        return "<redacted>"
    if isinstance(value, (set, frozenset)):
        return sorted(value)
    return value


def startup_config(config: GatewaySettings, keys: list[str]) -> dict[str, object]:
    """Pick selected settings, redacted, for troubleshooting output."""

    snapshot: dict[str, object] = {"service": config.service_name}
    for key in keys:
        snapshot[key] = _safe_value(key, getattr(config, key, None))
    return snapshot


def log_startup_config(config: GatewaySettings, keys: list[str]) -> None:
    """Log selected startup config keys for quick troubleshooting."""

    logger.info("startup_config=%s", startup_config(config, keys))
