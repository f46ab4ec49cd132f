"""SQLAlchemy-backed payment ledger.

The primary key enforces id uniqueness across writers and processes. Status
updates are compare-and-swap writes guarded by the status that was read, so
two racing updates on one payment cannot both succeed. Blocking session work
runs on a worker thread to keep the event loop free.
"""

import asyncio
from datetime import datetime, timezone

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from paygate.common.logging import logger
from paygate.common.metrics import ledger_conflicts_total
from paygate.common.result import ErrorKind, OperationResult
from paygate.common.state_machine import InvalidTransitionError, PaymentStatus, validate_transition
from paygate.services.ledger.models import PaymentRow
from paygate.services.ledger.store import DUPLICATE_MESSAGE, NOT_FOUND_MESSAGE
from paygate.services.payments.schemas import PaymentRecord

STORAGE_FAILURE_MESSAGE = "Payment storage unavailable."


def _to_record(row: PaymentRow) -> PaymentRecord:
    return PaymentRecord(
        id=row.payment_id,
        status=PaymentStatus(row.status),
        card_last_four=row.card_last_four,
        expiry_month=row.expiry_month,
        expiry_year=row.expiry_year,
        currency=row.currency,
        amount=row.amount,
    )


class SqlPaymentLedger:
    """`PaymentLedger` over a SQLAlchemy session factory."""

    backend = "sql"

    def __init__(self, session_factory) -> None:
        self.session_factory = session_factory

    def _storage_failure(self, operation: str, payment_id: str, exc: SQLAlchemyError) -> OperationResult:
        logger.error("ledger %s failed payment_id=%s error=%s", operation, payment_id, exc)
        return OperationResult.failure(ErrorKind.UNEXPECTED, STORAGE_FAILURE_MESSAGE)

    def _add(self, record: PaymentRecord) -> OperationResult[bool]:
        with self.session_factory() as db:
            db.add(
                PaymentRow(
                    payment_id=record.id,
                    status=record.status.value,
                    card_last_four=record.card_last_four,
                    expiry_month=record.expiry_month,
                    expiry_year=record.expiry_year,
                    currency=record.currency,
                    amount=record.amount,
                )
            )
            try:
                db.commit()
            except IntegrityError:
                db.rollback()
                ledger_conflicts_total.labels(backend=self.backend, operation="add").inc()
                logger.warning("duplicate payment id rejected payment_id=%s", record.id)
                return OperationResult.failure(ErrorKind.CONFLICT, DUPLICATE_MESSAGE)
            except SQLAlchemyError as exc:
                db.rollback()
                return self._storage_failure("add", record.id, exc)
        return OperationResult.success(True)

    def _get(self, payment_id: str) -> OperationResult[PaymentRecord]:
        with self.session_factory() as db:
            try:
                row = db.get(PaymentRow, payment_id)
            except SQLAlchemyError as exc:
                db.rollback()
                return self._storage_failure("get", payment_id, exc)
            if row is None:
                return OperationResult.failure(ErrorKind.NOT_FOUND, NOT_FOUND_MESSAGE, 404)
            return OperationResult.success(_to_record(row))

    def _update_status(self, payment_id: str, status: PaymentStatus) -> OperationResult[PaymentRecord]:
        with self.session_factory() as db:
            try:
                row = db.get(PaymentRow, payment_id)
                if row is None:
                    return OperationResult.failure(ErrorKind.NOT_FOUND, NOT_FOUND_MESSAGE, 404)
                current = PaymentStatus(row.status)
                try:
                    validate_transition(current, status)
                except InvalidTransitionError as exc:
                    ledger_conflicts_total.labels(backend=self.backend, operation="update_status").inc()
                    return OperationResult.failure(ErrorKind.CONFLICT, str(exc), 409)

                result = db.execute(
                    update(PaymentRow)
                    .where(PaymentRow.payment_id == payment_id, PaymentRow.status == current.value)
                    .values(status=status.value, updated_at=datetime.now(timezone.utc))
                )
                if result.rowcount != 1:
                    db.rollback()
                    ledger_conflicts_total.labels(backend=self.backend, operation="update_status").inc()
                    return OperationResult.failure(
                        ErrorKind.CONFLICT,
                        f"concurrent status update for payment {payment_id} (expected {current.value})",
                        409,
                    )
                db.commit()
            except SQLAlchemyError as exc:
                db.rollback()
                return self._storage_failure("update_status", payment_id, exc)
            return OperationResult.success(_to_record(row).with_status(status))

    async def add(self, record: PaymentRecord) -> OperationResult[bool]:
        return await asyncio.to_thread(self._add, record)

    async def get(self, payment_id: str) -> OperationResult[PaymentRecord]:
        return await asyncio.to_thread(self._get, payment_id)

    async def update_status(
        self, payment_id: str, status: PaymentStatus
    ) -> OperationResult[PaymentRecord]:
        return await asyncio.to_thread(self._update_status, payment_id, status)

    def count(self) -> int:
        with self.session_factory() as db:
            return db.execute(select(func.count()).select_from(PaymentRow)).scalar_one()
