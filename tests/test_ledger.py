"""In-memory ledger behavior, including concurrent writers."""

import asyncio
import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from conftest import build_record
from paygate.common.result import ErrorKind
from paygate.common.state_machine import PaymentStatus
from paygate.services.ledger.store import InMemoryPaymentLedger


@pytest.mark.asyncio
async def test_add_then_get():
    ledger = InMemoryPaymentLedger()
    record = build_record("pay-1")

    added = await ledger.add(record)
    fetched = await ledger.get("pay-1")

    assert added.is_success and added.data is True
    assert fetched.data == record
    assert ledger.count() == 1


@pytest.mark.asyncio
async def test_duplicate_add_fails_and_keeps_size():
    ledger = InMemoryPaymentLedger()
    await ledger.add(build_record("pay-1"))

    second = await ledger.add(build_record("pay-1", status=PaymentStatus.AUTHORIZED))

    assert second.is_failure
    assert second.error.kind is ErrorKind.CONFLICT
    assert ledger.count() == 1
    assert (await ledger.get("pay-1")).data.status is PaymentStatus.PENDING


@pytest.mark.asyncio
async def test_get_unknown_is_not_found():
    result = await InMemoryPaymentLedger().get("missing")

    assert result.is_failure
    assert result.error.kind is ErrorKind.NOT_FOUND
    assert result.error.status_code == 404


@pytest.mark.asyncio
async def test_update_status_returns_updated_record():
    ledger = InMemoryPaymentLedger()
    record = build_record("pay-1")
    await ledger.add(record)

    updated = await ledger.update_status("pay-1", PaymentStatus.AUTHORIZED)

    assert updated.data.status is PaymentStatus.AUTHORIZED
    assert updated.data.card_last_four == record.card_last_four
    assert updated.data.amount == record.amount
    assert (await ledger.get("pay-1")).data.status is PaymentStatus.AUTHORIZED


@pytest.mark.asyncio
async def test_update_unknown_is_not_found():
    result = await InMemoryPaymentLedger().update_status("missing", PaymentStatus.DECLINED)

    assert result.error.kind is ErrorKind.NOT_FOUND


@pytest.mark.asyncio
async def test_update_from_terminal_status_is_refused():
    ledger = InMemoryPaymentLedger()
    await ledger.add(build_record("pay-1"))
    await ledger.update_status("pay-1", PaymentStatus.DECLINED)

    result = await ledger.update_status("pay-1", PaymentStatus.AUTHORIZED)

    assert result.error.kind is ErrorKind.CONFLICT
    assert (await ledger.get("pay-1")).data.status is PaymentStatus.DECLINED


@pytest.mark.asyncio
async def test_gathered_adds_with_distinct_ids():
    ledger = InMemoryPaymentLedger()

    results = await asyncio.gather(*(ledger.add(build_record(f"pay-{i}")) for i in range(200)))

    assert all(r.is_success for r in results)
    assert ledger.count() == 200


def test_threaded_adds_with_same_id_have_one_winner():
    """Many threads racing to insert one id: exactly one succeeds."""

    ledger = InMemoryPaymentLedger()
    workers = 16
    barrier = threading.Barrier(workers)

    def attempt(_):
        record = build_record("shared")
        barrier.wait()
        return asyncio.run(ledger.add(record))

    with ThreadPoolExecutor(max_workers=workers) as pool:
        results = list(pool.map(attempt, range(workers)))

    assert sum(r.is_success for r in results) == 1
    assert ledger.count() == 1


def test_threaded_adds_with_distinct_ids_are_all_kept():
    ledger = InMemoryPaymentLedger()
    callers, per_caller = 8, 50

    def caller(index: int):
        for n in range(per_caller):
            result = asyncio.run(ledger.add(build_record(f"pay-{index}-{n}")))
            assert result.is_success

    with ThreadPoolExecutor(max_workers=callers) as pool:
        list(pool.map(caller, range(callers)))

    assert ledger.count() == callers * per_caller
    for index in range(callers):
        for n in range(per_caller):
            assert asyncio.run(ledger.get(f"pay-{index}-{n}")).is_success


def test_threaded_status_updates_on_one_id_have_one_winner():
    """Racing Authorized/Declined updates: the first wins, the rest conflict."""

    ledger = InMemoryPaymentLedger()
    asyncio.run(ledger.add(build_record("pay-1")))
    workers = 12
    barrier = threading.Barrier(workers)
    targets = [PaymentStatus.AUTHORIZED if i % 2 else PaymentStatus.DECLINED for i in range(workers)]

    def attempt(target):
        barrier.wait()
        return asyncio.run(ledger.update_status("pay-1", target))

    with ThreadPoolExecutor(max_workers=workers) as pool:
        results = list(pool.map(attempt, targets))

    winners = [r for r in results if r.is_success]
    assert len(winners) == 1
    assert all(r.error.kind is ErrorKind.CONFLICT for r in results if r.is_failure)
    assert asyncio.run(ledger.get("pay-1")).data.status is winners[0].data.status
