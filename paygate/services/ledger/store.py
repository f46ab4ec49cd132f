"""Payment ledger: the one piece of shared mutable state in the gateway.

Records are keyed by payment id, never removed, and only their status moves,
along the transitions in `paygate.common.state_machine`.
"""

import threading
from typing import Protocol

from paygate.common.logging import logger
from paygate.common.metrics import ledger_conflicts_total
from paygate.common.result import ErrorKind, OperationResult
from paygate.common.state_machine import InvalidTransitionError, PaymentStatus, validate_transition
from paygate.services.payments.schemas import PaymentRecord

NOT_FOUND_MESSAGE = "Payment not found."
DUPLICATE_MESSAGE = "Could not add payment"


class PaymentLedger(Protocol):
    """Capability the orchestrator needs from payment storage."""

    async def add(self, record: PaymentRecord) -> OperationResult[bool]: ...

    async def get(self, payment_id: str) -> OperationResult[PaymentRecord]: ...

    async def update_status(
        self, payment_id: str, status: PaymentStatus
    ) -> OperationResult[PaymentRecord]: ...

    def count(self) -> int: ...


class InMemoryPaymentLedger:
    """Process-local ledger.

    Inserts go through `dict.setdefault`, which is atomic, so concurrent adds
    of one id yield exactly one winner. Status updates take a lock private to
    the payment id; unrelated ids never contend.
    """

    backend = "memory"

    def __init__(self) -> None:
        self._records: dict[str, PaymentRecord] = {}
        self._locks: dict[str, threading.Lock] = {}

    def _lock_for(self, payment_id: str) -> threading.Lock:
        return self._locks.setdefault(payment_id, threading.Lock())

    async def add(self, record: PaymentRecord) -> OperationResult[bool]:
        if self._records.setdefault(record.id, record) is not record:
            ledger_conflicts_total.labels(backend=self.backend, operation="add").inc()
            logger.warning("duplicate payment id rejected payment_id=%s", record.id)
            return OperationResult.failure(ErrorKind.CONFLICT, DUPLICATE_MESSAGE)
        return OperationResult.success(True)

    async def get(self, payment_id: str) -> OperationResult[PaymentRecord]:
        record = self._records.get(payment_id)
        if record is None:
            return OperationResult.failure(ErrorKind.NOT_FOUND, NOT_FOUND_MESSAGE, 404)
        return OperationResult.success(record)

    async def update_status(
        self, payment_id: str, status: PaymentStatus
    ) -> OperationResult[PaymentRecord]:
        # Records are never removed, so an absent id can be answered lock-free.
        if payment_id not in self._records:
            return OperationResult.failure(ErrorKind.NOT_FOUND, NOT_FOUND_MESSAGE, 404)
        with self._lock_for(payment_id):
            current = self._records[payment_id]
            try:
                validate_transition(current.status, status)
            except InvalidTransitionError as exc:
                ledger_conflicts_total.labels(backend=self.backend, operation="update_status").inc()
                return OperationResult.failure(ErrorKind.CONFLICT, str(exc), 409)
            updated = current.with_status(status)
            self._records[payment_id] = updated
            return OperationResult.success(updated)

    def count(self) -> int:
        return len(self._records)
