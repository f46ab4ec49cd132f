"""Acquiring bank client.

One outbound call per payment: no retries, no caching. Business failures the
bank reports (400/503) come back as `OperationResult` failures; anything else
is a fault and raises.
"""

import time
from typing import Protocol

import httpx
from pydantic import ValidationError

from paygate.common.logging import logger
from paygate.common.metrics import bank_request_duration_seconds, bank_requests_total
from paygate.common.result import ErrorKind, OperationResult
from paygate.services.bank.schemas import BankPaymentRequest, BankResponse
from paygate.services.payments.schemas import PaymentCommand


class BankProtocolError(RuntimeError):
    """The bank answered 200 with a body that is not a valid decision."""


class AcquiringBankClient(Protocol):
    """Capability the orchestrator needs from an acquiring bank."""

    async def process_payment(self, command: PaymentCommand) -> OperationResult[BankResponse]: ...


def to_bank_request(command: PaymentCommand) -> BankPaymentRequest:
    """Map a payment command onto the bank's wire format."""

    return BankPaymentRequest(
        card_number=command.card_number,
        expiry_date=command.expiry_date,
        currency=command.currency.upper(),
        amount=command.amount,
        cvv=command.cvv,
    )


class HttpAcquiringBankClient:
    """`AcquiringBankClient` over HTTP.

    Holds a pooled `httpx.AsyncClient`; safe to share between concurrent
    payments. The request timeout is enforced by the HTTP client and surfaces
    as `httpx.TimeoutException`. Cancelling the awaiting task aborts the
    request while it waits on the network.
    """

    def __init__(
        self,
        base_url: str,
        payment_route: str = "/payments",
        timeout_seconds: float = 5.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.payment_route = payment_route
        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout_seconds,
            transport=transport,
        )

    async def process_payment(self, command: PaymentCommand) -> OperationResult[BankResponse]:
        body = to_bank_request(command).model_dump()
        started = time.perf_counter()
        try:
            resp = await self._client.post(self.payment_route, json=body)
        except httpx.HTTPError as exc:
            bank_requests_total.labels(outcome="transport_error").inc()
            logger.error("bank call failed route=%s error=%s", self.payment_route, exc)
            raise
        finally:
            bank_request_duration_seconds.observe(max(0.0, time.perf_counter() - started))

        if resp.status_code == httpx.codes.BAD_REQUEST:
            bank_requests_total.labels(outcome="rejected").inc()
            logger.warning("bank rejected payment status=%s", resp.status_code)
            return OperationResult.failure(ErrorKind.UNEXPECTED, resp.text, resp.status_code)
        if resp.status_code == httpx.codes.SERVICE_UNAVAILABLE:
            bank_requests_total.labels(outcome="unavailable").inc()
            logger.warning("bank unavailable status=%s", resp.status_code)
            return OperationResult.failure(ErrorKind.TRANSIENT, resp.text, resp.status_code)

        if not resp.is_success:
            bank_requests_total.labels(outcome="unexpected_status").inc()
            logger.error("bank returned unexpected status=%s", resp.status_code)
            resp.raise_for_status()

        try:
            decision = BankResponse.model_validate_json(resp.content)
        except ValidationError as exc:
            bank_requests_total.labels(outcome="malformed").inc()
            raise BankProtocolError(f"malformed bank response: {resp.text!r}") from exc
        bank_requests_total.labels(outcome="authorized" if decision.authorized else "declined").inc()
        return OperationResult.success(decision)

    async def close(self) -> None:
        await self._client.aclose()
