from .db import Account as AccountModel
from .db import Transaction as TransactionModel
from .domain import Account, AccountStatus, Transaction, TransactionStatus
from .schemas import (
    AccountCreate,
    AccountResponse,
    BalanceResponse,
    ErrorResponse,
    StatementResponse,
    TransactionResponse,
    TransferRequest,
    TransferResult,
)

__all__ = [
    "Account",
    "AccountCreate",
    "AccountResponse",
    "AccountStatus",
    "BalanceResponse",
    "ErrorResponse",
    "StatementResponse",
    "Transaction",
    "TransactionResponse",
    "TransactionStatus",
    "TransferRequest",
    "TransferResult",
    "AccountModel",
    "TransactionModel",
]
