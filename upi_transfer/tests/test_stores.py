import threading
from datetime import UTC, datetime

import pytest

from ..core.errors import StoreError
from ..core.money import Money
from ..models import Transaction, TransactionStatus
from ..services import InMemoryAccountStore, InMemoryTransactionStore
from .conftest import make_account


def _transaction(transaction_id: str, source: str, destination: str) -> Transaction:
    return Transaction(
        transaction_id=transaction_id,
        source_upi=source,
        destination_upi=destination,
        amount=Money.of("10.00"),
        fee=Money.zero(),
        total_debited=Money.of("10.00"),
        status=TransactionStatus.SUCCESS,
        timestamp=datetime.now(UTC),
    )


def test_find_for_update_returns_a_private_copy(accounts: InMemoryAccountStore) -> None:
    with accounts.unit_of_work():
        account = accounts.find_by_id_for_update("alice@okaxis")
        assert account is not None
        account.balance = Money.zero()
    assert accounts.find_by_id("alice@okaxis").balance == Money.of("10000.00")


def test_save_persists_under_a_handle(accounts: InMemoryAccountStore) -> None:
    with accounts.unit_of_work():
        account = accounts.find_by_id_for_update("bob@okhdfc")
        account.balance = Money.of("42.00")
        accounts.save(account)
    assert accounts.find_by_id("bob@okhdfc").balance == Money.of("42.00")


def test_missing_account_is_none_not_an_error(accounts: InMemoryAccountStore) -> None:
    with accounts.unit_of_work():
        assert accounts.find_by_id_for_update("ghost@okaxis") is None
    assert accounts.find_by_id("ghost@okaxis") is None


def test_save_requires_a_mutation_handle(accounts: InMemoryAccountStore) -> None:
    account = accounts.find_by_id("alice@okaxis")
    with pytest.raises(StoreError):
        accounts.save(account)
    with accounts.unit_of_work():
        with pytest.raises(StoreError, match="no mutation handle"):
            accounts.save(account)


def test_units_of_work_do_not_nest(accounts: InMemoryAccountStore) -> None:
    with accounts.unit_of_work():
        with pytest.raises(StoreError):
            with accounts.unit_of_work():
                pass


def test_add_rejects_duplicates(accounts: InMemoryAccountStore) -> None:
    with pytest.raises(StoreError, match="duplicate"):
        accounts.add(make_account("alice@okaxis", "1.00"))


def test_mutation_handle_blocks_other_threads(accounts: InMemoryAccountStore) -> None:
    acquired = threading.Event()

    def contender() -> None:
        with accounts.unit_of_work():
            accounts.find_by_id_for_update("alice@okaxis")
            acquired.set()

    with accounts.unit_of_work():
        accounts.find_by_id_for_update("alice@okaxis")
        worker = threading.Thread(target=contender)
        worker.start()
        assert not acquired.wait(0.2)

    worker.join(timeout=5)
    assert acquired.is_set()


def test_handles_are_released_when_the_block_raises(accounts: InMemoryAccountStore) -> None:
    with pytest.raises(RuntimeError):
        with accounts.unit_of_work():
            accounts.find_by_id_for_update("alice@okaxis")
            raise RuntimeError("boom")

    done = threading.Event()

    def reader() -> None:
        accounts.find_by_id("alice@okaxis")
        done.set()

    worker = threading.Thread(target=reader)
    worker.start()
    worker.join(timeout=5)
    assert done.is_set()


def test_ledger_is_append_only(transactions: InMemoryTransactionStore) -> None:
    transactions.append(_transaction("TXN-1", "alice@okaxis", "bob@okhdfc"))
    with pytest.raises(StoreError, match="duplicate"):
        transactions.append(_transaction("TXN-1", "carol@oksbi", "bob@okhdfc"))
    assert transactions.find_by_id("TXN-1").source_upi == "alice@okaxis"
    assert transactions.find_by_id("TXN-404") is None


def test_list_for_account_is_newest_first(transactions: InMemoryTransactionStore) -> None:
    transactions.append(_transaction("TXN-1", "alice@okaxis", "bob@okhdfc"))
    transactions.append(_transaction("TXN-2", "carol@oksbi", "dave@okaxis"))
    transactions.append(_transaction("TXN-3", "bob@okhdfc", "alice@okaxis"))

    listed = transactions.list_for_account("alice@okaxis")
    assert [txn.transaction_id for txn in listed] == ["TXN-3", "TXN-1"]
    assert len(transactions.list_for_account("alice@okaxis", limit=1)) == 1


def test_lookups_of_unknown_ids_allocate_no_locks(accounts: InMemoryAccountStore) -> None:
    known = len(accounts._locks)

    with accounts.unit_of_work():
        for n in range(50):
            assert accounts.find_by_id_for_update(f"ghost{n}@okaxis") is None
    for n in range(50):
        assert accounts.find_by_id(f"ghost{n}@okaxis") is None

    assert len(accounts._locks) == known


def test_accounts_added_later_can_be_locked(accounts: InMemoryAccountStore) -> None:
    accounts.add(make_account("late@okaxis", "5.00"))

    with accounts.unit_of_work():
        account = accounts.find_by_id_for_update("late@okaxis")
        account.balance = Money.of("6.00")
        accounts.save(account)

    assert accounts.find_by_id("late@okaxis").balance == Money.of("6.00")
