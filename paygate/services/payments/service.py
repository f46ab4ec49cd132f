"""Payment orchestration.

Sequences the provisional ledger insert, the single acquiring bank call and
the final status update. The ledger record is written before the bank is
contacted so a card is never charged without a local trace; when the two
sides disagree the caller is told so explicitly.
"""

from http import HTTPStatus

from paygate.common.logging import logger, payment_id_ctx
from paygate.common.metrics import (
    payment_failure_total,
    payment_latency_seconds,
    payment_outcomes_total,
    payment_requests_total,
    payments_stuck_total,
)
from paygate.common.result import Error, ErrorKind, OperationResult
from paygate.common.state_machine import PaymentStatus
from paygate.common.tracing import tracer
from paygate.services.bank.client import AcquiringBankClient
from paygate.services.ledger.store import PaymentLedger
from paygate.services.payments.schemas import PaymentCommand, PaymentRecord

ADD_FAILED_MESSAGE = "Could not add payment"
RECORDING_FAILED_MESSAGE = "Payment authorized but recording failed. We will reconcile."


class PaymentService:
    """Owns the Pending -> Authorized/Declined/InternalError progression."""

    def __init__(
        self,
        ledger: PaymentLedger,
        bank: AcquiringBankClient,
        service_name: str = "payment-gateway",
    ) -> None:
        self.ledger = ledger
        self.bank = bank
        self.service_name = service_name

    def _fail(self, error: Error) -> OperationResult[PaymentRecord]:
        payment_failure_total.labels(service=self.service_name, kind=error.kind.value).inc()
        return OperationResult.from_error(error)

    async def process_payment(self, command: PaymentCommand) -> OperationResult[PaymentRecord]:
        """Record, submit and resolve one payment attempt.

        Returns the updated record on success. Bank failures are passed
        through untouched and leave the record `Pending`. A bank decision the
        ledger could not store comes back as `TRANSIENT` with a 202 hint.

        Unanticipated exceptions after the insert move the record to
        `InternalError` on a best-effort basis and are then re-raised.
        Cancellation is not treated as a fault: it propagates and leaves the
        `Pending` record behind.
        """

        payment_requests_total.labels(service=self.service_name).inc()
        record = PaymentRecord.pending_from(command)
        token = payment_id_ctx.set(record.id)
        try:
            with payment_latency_seconds.labels(service=self.service_name).time():
                return await self._process(command, record)
        finally:
            payment_id_ctx.reset(token)

    async def _process(self, command: PaymentCommand, record: PaymentRecord) -> OperationResult[PaymentRecord]:
        added = await self.ledger.add(record)
        if added.is_failure:
            logger.error("ledger insert failed payment_id=%s error=%s", record.id, added.error.message)
            return self._fail(Error(ErrorKind.UNEXPECTED, ADD_FAILED_MESSAGE))
        logger.info("payment recorded status=%s", record.status.value)

        try:
            with tracer.start_as_current_span("bank.process_payment") as span:
                span.set_attribute("payment.id", record.id)
                bank_result = await self.bank.process_payment(command)

            if bank_result.is_failure:
                payments_stuck_total.labels(service=self.service_name, reason="bank_failure").inc()
                logger.warning(
                    "bank failure left payment pending kind=%s status_code=%s",
                    bank_result.error.kind.value,
                    bank_result.error.status_code,
                )
                return self._fail(bank_result.error)

            target = PaymentStatus.AUTHORIZED if bank_result.data.authorized else PaymentStatus.DECLINED
            updated = await self.ledger.update_status(record.id, target)
            if updated.is_failure:
                payments_stuck_total.labels(service=self.service_name, reason="recording_failed").inc()
                logger.error(
                    "bank decided but ledger update failed target=%s error=%s",
                    target.value,
                    updated.error.message,
                )
                return self._fail(Error(ErrorKind.TRANSIENT, RECORDING_FAILED_MESSAGE, HTTPStatus.ACCEPTED))
        except Exception:
            await self._mark_internal_error(record.id)
            raise

        payment_outcomes_total.labels(service=self.service_name, status=target.value).inc()
        logger.info("payment resolved status=%s", target.value)
        return OperationResult.success(updated.data)

    async def _mark_internal_error(self, payment_id: str) -> None:
        """Best-effort repair; never raises so the original fault survives."""

        try:
            repaired = await self.ledger.update_status(payment_id, PaymentStatus.INTERNAL_ERROR)
        except Exception:
            logger.exception("could not mark payment InternalError payment_id=%s", payment_id)
            return
        if repaired.is_failure:
            logger.error(
                "could not mark payment InternalError payment_id=%s error=%s",
                payment_id,
                repaired.error.message,
            )
            return
        payment_outcomes_total.labels(
            service=self.service_name, status=PaymentStatus.INTERNAL_ERROR.value
        ).inc()
        logger.warning("payment marked InternalError after unexpected fault payment_id=%s", payment_id)

    async def get_payment(self, payment_id: str) -> OperationResult[PaymentRecord]:
        """Fetch one previously processed payment."""

        return await self.ledger.get(payment_id)
