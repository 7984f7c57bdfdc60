from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .money import Money


class ErrorKind(str, Enum):
    INVALID_AMOUNT = "INVALID_AMOUNT"
    INVALID_UPI = "INVALID_UPI"
    INVALID_REQUEST = "INVALID_REQUEST"
    ACCOUNT_NOT_FOUND = "ACCOUNT_NOT_FOUND"
    ACCOUNT_INACTIVE = "ACCOUNT_INACTIVE"
    INSUFFICIENT_BALANCE = "INSUFFICIENT_BALANCE"
    TRANSACTION_NOT_FOUND = "TRANSACTION_NOT_FOUND"
    DUPLICATE_ACCOUNT = "DUPLICATE_ACCOUNT"
    PERSISTENCE = "PERSISTENCE"


class TransferError(Exception):
    """Base class for every outcome a caller can pattern-match on via ``kind``."""

    kind: ErrorKind
    retryable = False

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidAmountError(TransferError):
    """Raised when an amount is missing, out of bounds or too precise."""

    kind = ErrorKind.INVALID_AMOUNT


class InvalidUpiError(TransferError):
    """Raised when a UPI id is missing, malformed, or both sides are the same."""

    kind = ErrorKind.INVALID_UPI


class InvalidTransferError(TransferError):
    """Raised when an otherwise well-formed request breaks a request-level rule."""

    kind = ErrorKind.INVALID_REQUEST


class AccountNotFoundError(TransferError):
    """Raised when an account id is missing from the store."""

    kind = ErrorKind.ACCOUNT_NOT_FOUND

    def __init__(self, side: str, upi_id: str) -> None:
        super().__init__(f"{side} account not found: {upi_id}")
        self.side = side
        self.upi_id = upi_id


class AccountInactiveError(TransferError):
    """Raised when an account exists but is not ACTIVE."""

    kind = ErrorKind.ACCOUNT_INACTIVE

    def __init__(self, side: str, upi_id: str, status: str) -> None:
        super().__init__(f"{side} account is {status}: {upi_id}")
        self.side = side
        self.upi_id = upi_id
        self.status = status


class InsufficientBalanceError(TransferError):
    """Raised when a transfer would drop the source balance below zero."""

    kind = ErrorKind.INSUFFICIENT_BALANCE

    def __init__(self, available: Money, required: Money) -> None:
        super().__init__(
            f"Insufficient balance. Available: {available}, Required: {required}"
        )
        self.available = available
        self.required = required


class TransactionNotFoundError(TransferError):
    kind = ErrorKind.TRANSACTION_NOT_FOUND

    def __init__(self, transaction_id: str) -> None:
        super().__init__(f"Transaction not found: {transaction_id}")
        self.transaction_id = transaction_id


class DuplicateAccountError(TransferError):
    kind = ErrorKind.DUPLICATE_ACCOUNT

    def __init__(self, upi_id: str) -> None:
        super().__init__(f"Account already exists: {upi_id}")
        self.upi_id = upi_id


class PersistenceError(TransferError):
    """The store failed after validation passed; no partial state was kept."""

    kind = ErrorKind.PERSISTENCE
    retryable = True


class StoreError(Exception):
    """Raised by store implementations for storage-layer failures."""
