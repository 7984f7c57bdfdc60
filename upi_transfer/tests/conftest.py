from __future__ import annotations

from decimal import Decimal

import pytest

from ..core.money import Money
from ..models import Account, AccountStatus, TransferRequest
from ..services import InMemoryAccountStore, InMemoryTransactionStore, TransferEngine


def make_account(
    upi_id: str,
    balance: str,
    status: AccountStatus = AccountStatus.ACTIVE,
) -> Account:
    return Account(upi_id=upi_id, balance=Money.of(balance), status=status)


def transfer(source: str, destination: str, amount: str, remarks: str | None = None) -> TransferRequest:
    return TransferRequest(
        source_upi=source,
        destination_upi=destination,
        amount=Decimal(amount),
        remarks=remarks,
    )


@pytest.fixture
def accounts() -> InMemoryAccountStore:
    return InMemoryAccountStore(
        [
            make_account("alice@okaxis", "10000.00"),
            make_account("bob@okhdfc", "500.00"),
            make_account("carol@oksbi", "100.00"),
            make_account("dormant@okicici", "1000.00", AccountStatus.SUSPENDED),
        ]
    )


@pytest.fixture
def transactions() -> InMemoryTransactionStore:
    return InMemoryTransactionStore()


@pytest.fixture
def engine(accounts: InMemoryAccountStore, transactions: InMemoryTransactionStore) -> TransferEngine:
    return TransferEngine(accounts, transactions)
