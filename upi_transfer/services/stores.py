"""Storage contracts consumed by the transfer engine, plus in-memory backends.

An ``AccountStore`` hands out mutation handles: ``find_by_id_for_update``
locks the account until the surrounding ``unit_of_work`` block exits, and
``save`` is only accepted for accounts locked in the current block.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from dataclasses import replace
from typing import ContextManager, Dict, Iterable, Iterator, List, Optional, Protocol

from ..core.errors import StoreError
from ..models import Account, Transaction


class AccountStore(Protocol):
    #: True when balance writes and the ledger append commit or roll back together.
    supports_atomic_commit: bool

    def unit_of_work(self) -> ContextManager[None]:
        """Scope for mutation handles; leaving it releases every handle taken inside."""
        ...

    def find_by_id_for_update(self, upi_id: str) -> Optional[Account]:
        ...

    def save(self, account: Account) -> None:
        ...

    def add(self, account: Account) -> None:
        ...

    def find_by_id(self, upi_id: str) -> Optional[Account]:
        ...


class TransactionStore(Protocol):
    def append(self, transaction: Transaction) -> None:
        ...

    def find_by_id(self, transaction_id: str) -> Optional[Transaction]:
        ...

    def list_for_account(self, upi_id: str, limit: int = 50) -> List[Transaction]:
        ...


class InMemoryAccountStore:
    """Dict-backed account store with one re-entrant lock per account."""

    supports_atomic_commit = False

    def __init__(self, accounts: Iterable[Account] = ()) -> None:
        self._accounts: Dict[str, Account] = {}
        self._locks: Dict[str, threading.RLock] = {}
        self._registry_lock = threading.Lock()
        self._local = threading.local()
        for account in accounts:
            self.add(account)

    def _lock_for(self, upi_id: str) -> Optional[threading.RLock]:
        # Locks exist only for added accounts; accounts are never removed.
        with self._registry_lock:
            return self._locks.get(upi_id)

    def _held(self) -> Dict[str, threading.RLock]:
        held = getattr(self._local, "held", None)
        if held is None:
            raise StoreError("no unit of work is active on this thread")
        return held

    @contextmanager
    def unit_of_work(self) -> Iterator[None]:
        if getattr(self._local, "held", None) is not None:
            raise StoreError("unit of work already active on this thread")
        held: Dict[str, threading.RLock] = {}
        self._local.held = held
        try:
            yield
        finally:
            for lock in reversed(list(held.values())):
                lock.release()
            self._local.held = None

    def find_by_id_for_update(self, upi_id: str) -> Optional[Account]:
        held = self._held()
        if upi_id not in held:
            lock = self._lock_for(upi_id)
            if lock is None:
                return None
            lock.acquire()
            held[upi_id] = lock
        return replace(self._accounts[upi_id])

    def save(self, account: Account) -> None:
        if account.upi_id not in self._held():
            raise StoreError(f"no mutation handle held for {account.upi_id}")
        self._accounts[account.upi_id] = replace(account)

    def add(self, account: Account) -> None:
        with self._registry_lock:
            if account.upi_id in self._accounts:
                raise StoreError(f"duplicate account {account.upi_id}")
            self._accounts[account.upi_id] = replace(account)
            self._locks[account.upi_id] = threading.RLock()

    def find_by_id(self, upi_id: str) -> Optional[Account]:
        # Waits for any in-flight transfer on this account, so reads never
        # observe a half-applied transfer.
        lock = self._lock_for(upi_id)
        if lock is None:
            return None
        with lock:
            return replace(self._accounts[upi_id])


class InMemoryTransactionStore:
    """Append-only ledger kept in insertion order."""

    def __init__(self) -> None:
        self._transactions: Dict[str, Transaction] = {}
        self._lock = threading.Lock()

    def append(self, transaction: Transaction) -> None:
        with self._lock:
            if transaction.transaction_id in self._transactions:
                raise StoreError(
                    f"duplicate transaction id {transaction.transaction_id}"
                )
            self._transactions[transaction.transaction_id] = transaction

    def find_by_id(self, transaction_id: str) -> Optional[Transaction]:
        return self._transactions.get(transaction_id)

    def list_for_account(self, upi_id: str, limit: int = 50) -> List[Transaction]:
        with self._lock:
            matches = [
                txn
                for txn in self._transactions.values()
                if upi_id in (txn.source_upi, txn.destination_upi)
            ]
        matches.reverse()
        return matches[:limit]

    def __len__(self) -> int:
        return len(self._transactions)
