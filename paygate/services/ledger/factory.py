"""Ledger backend selection from settings."""

from paygate.common.config import GatewaySettings
from paygate.common.db import create_schema, make_session_factory
from paygate.services.ledger.sql_store import SqlPaymentLedger
from paygate.services.ledger.store import InMemoryPaymentLedger, PaymentLedger


def build_ledger(config: GatewaySettings) -> PaymentLedger:
    """Return the configured ledger; SQL schemas are created on first use."""

    if config.ledger_backend == "memory":
        return InMemoryPaymentLedger()
    if config.ledger_backend == "sql":
        session_factory = make_session_factory(config.database_dsn)
        create_schema(session_factory)
        return SqlPaymentLedger(session_factory)
    raise ValueError(f"unknown ledger backend: {config.ledger_backend!r}")
