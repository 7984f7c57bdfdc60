from .accounts import AccountService
from .engine import TransferEngine, TransferOutcome, generate_transaction_id
from .fees import FeePolicy
from .repository import SessionScope, SqlAccountStore, SqlTransactionStore
from .stores import (
    AccountStore,
    InMemoryAccountStore,
    InMemoryTransactionStore,
    TransactionStore,
)
from .validator import TransferValidator

__all__ = [
    "AccountService",
    "AccountStore",
    "FeePolicy",
    "InMemoryAccountStore",
    "InMemoryTransactionStore",
    "SessionScope",
    "SqlAccountStore",
    "SqlTransactionStore",
    "TransactionStore",
    "TransferEngine",
    "TransferOutcome",
    "TransferValidator",
    "generate_transaction_id",
]
