from concurrent.futures import ThreadPoolExecutor

import pytest

from ..core.errors import InsufficientBalanceError
from ..core.money import Money
from ..services import InMemoryAccountStore, InMemoryTransactionStore, TransferEngine
from .conftest import make_account, transfer


@pytest.mark.parametrize(("funded", "attempts"), [(10, 10), (5, 12)])
def test_concurrent_debits_never_overdraw(funded: int, attempts: int) -> None:
    destinations = [f"payee{i}@okaxis" for i in range(attempts)]
    accounts = InMemoryAccountStore(
        [make_account("payer@okaxis", f"{100 * funded}.00")]
        + [make_account(upi_id, "0.00") for upi_id in destinations]
    )
    engine = TransferEngine(accounts, InMemoryTransactionStore())

    with ThreadPoolExecutor(max_workers=8) as pool:
        outcomes = list(
            pool.map(
                lambda upi_id: engine.execute(transfer("payer@okaxis", upi_id, "100.00")),
                destinations,
            )
        )

    succeeded = [outcome for outcome in outcomes if outcome.ok]
    failed = [outcome for outcome in outcomes if not outcome.ok]
    assert len(succeeded) == min(funded, attempts)
    assert all(isinstance(outcome.error, InsufficientBalanceError) for outcome in failed)

    remaining = accounts.find_by_id("payer@okaxis").balance
    assert remaining == Money.of(f"{100 * (funded - len(succeeded))}.00")
    assert not remaining.is_negative()

    credited = {outcome.result.destination_upi for outcome in succeeded}
    for upi_id in destinations:
        expected = Money.of("100.00") if upi_id in credited else Money.zero()
        assert accounts.find_by_id(upi_id).balance == expected


def test_opposite_transfers_do_not_deadlock() -> None:
    accounts = InMemoryAccountStore(
        [make_account("left@okaxis", "5000.00"), make_account("right@okaxis", "5000.00")]
    )
    transactions = InMemoryTransactionStore()
    engine = TransferEngine(accounts, transactions)
    requests = [
        transfer("left@okaxis", "right@okaxis", "10.00")
        if i % 2 == 0
        else transfer("right@okaxis", "left@okaxis", "10.00")
        for i in range(200)
    ]

    with ThreadPoolExecutor(max_workers=16) as pool:
        futures = [pool.submit(engine.execute, request) for request in requests]
        outcomes = [future.result(timeout=30) for future in futures]

    assert all(outcome.ok for outcome in outcomes)
    total = accounts.find_by_id("left@okaxis").balance + accounts.find_by_id("right@okaxis").balance
    assert total == Money.of("10000.00")
    assert accounts.find_by_id("left@okaxis").balance == Money.of("5000.00")
    assert len(transactions) == 200


def test_fees_leave_the_system_exactly_once_per_transfer() -> None:
    accounts = InMemoryAccountStore(
        [make_account("payer@okaxis", "50000.00"), make_account("payee@okaxis", "0.00")]
    )
    engine = TransferEngine(accounts, InMemoryTransactionStore())

    with ThreadPoolExecutor(max_workers=8) as pool:
        outcomes = list(
            pool.map(
                lambda _: engine.execute(transfer("payer@okaxis", "payee@okaxis", "2000.00")),
                range(20),
            )
        )

    assert all(outcome.ok for outcome in outcomes)
    assert accounts.find_by_id("payer@okaxis").balance == Money.of("9900.00")
    assert accounts.find_by_id("payee@okaxis").balance == Money.of("40000.00")
