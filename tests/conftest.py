"""Shared fakes and fixtures for gateway tests."""

import inspect
from datetime import datetime, timezone

import pytest

from paygate.common.result import ErrorKind, OperationResult
from paygate.common.state_machine import PaymentStatus
from paygate.services.bank.schemas import BankResponse
from paygate.services.ledger.store import InMemoryPaymentLedger
from paygate.services.payments.schemas import PaymentCommand, PaymentRecord


def next_month() -> tuple[int, int]:
    now = datetime.now(timezone.utc)
    if now.month == 12:
        return 1, now.year + 1
    return now.month + 1, now.year


def build_command(**overrides) -> PaymentCommand:
    month, year = next_month()
    fields = {
        "card_number": "4242424242424242",
        "expiry_month": month,
        "expiry_year": year,
        "currency": "USD",
        "amount": 100,
        "cvv": "123",
    }
    fields.update(overrides)
    return PaymentCommand(**fields)


def build_record(payment_id: str = "pay-1", status: PaymentStatus = PaymentStatus.PENDING) -> PaymentRecord:
    return PaymentRecord(
        id=payment_id,
        status=status,
        card_last_four="4242",
        expiry_month=12,
        expiry_year=2030,
        currency="USD",
        amount=100,
    )


class StubBankClient:
    """`AcquiringBankClient` fake driven by a (sync or async) handler."""

    def __init__(self, handler) -> None:
        self.handler = handler
        self.calls: list[PaymentCommand] = []

    async def process_payment(self, command: PaymentCommand) -> OperationResult[BankResponse]:
        self.calls.append(command)
        result = self.handler(command)
        if inspect.isawaitable(result):
            result = await result
        return result


class SpyLedger(InMemoryPaymentLedger):
    """In-memory ledger that remembers inserted ids and can be told to fail.

    `update_error` is raised from `update_status`; `fail_update_for` lists
    statuses whose update returns a failure result.
    """

    def __init__(self, fail_add: bool = False, fail_update_for=(), update_error: Exception | None = None) -> None:
        super().__init__()
        self.added_ids: list[str] = []
        self.fail_add = fail_add
        self.fail_update_for = set(fail_update_for)
        self.update_error = update_error

    async def add(self, record: PaymentRecord) -> OperationResult[bool]:
        if self.fail_add:
            return OperationResult.failure(ErrorKind.CONFLICT, "Could not add payment")
        result = await super().add(record)
        if result.is_success:
            self.added_ids.append(record.id)
        return result

    async def update_status(self, payment_id: str, status: PaymentStatus) -> OperationResult[PaymentRecord]:
        if self.update_error is not None:
            raise self.update_error
        if status in self.fail_update_for:
            return OperationResult.failure(ErrorKind.UNEXPECTED, "storage unavailable")
        return await super().update_status(payment_id, status)

    async def only_record(self) -> PaymentRecord:
        assert len(self.added_ids) == 1
        return (await self.get(self.added_ids[0])).data


def bank_decides(authorized: bool = True, authorization_code: str | None = "AUTH123") -> StubBankClient:
    return StubBankClient(
        lambda _: OperationResult.success(
            BankResponse(authorized=authorized, authorization_code=authorization_code)
        )
    )


@pytest.fixture
def command() -> PaymentCommand:
    return build_command()


@pytest.fixture
def ledger() -> SpyLedger:
    return SpyLedger()
