from datetime import datetime
from decimal import Decimal
from typing import Literal, Optional

from pydantic import BaseModel, Field

from .domain import Account, Transaction


class TransferRequest(BaseModel):
    """Transfer input. Field rules are enforced by ``TransferValidator``, not here."""

    source_upi: Optional[str] = Field(default=None, description="Payer UPI id, e.g. alice@okaxis")
    destination_upi: Optional[str] = Field(default=None, description="Payee UPI id")
    amount: Optional[Decimal] = Field(default=None, description="Amount in currency units, 2 decimals")
    remarks: Optional[str] = Field(default=None, description="Narrative stored with the transaction")


class TransferResult(BaseModel):
    transaction_id: str
    status: Literal["SUCCESS", "FAILED"]
    source_upi: str
    destination_upi: str
    amount: Decimal
    fee: Decimal
    total_debited: Decimal
    timestamp: datetime
    remarks: Optional[str] = None

    @classmethod
    def from_transaction(cls, transaction: Transaction) -> "TransferResult":
        return cls(
            transaction_id=transaction.transaction_id,
            status=transaction.status.value,
            source_upi=transaction.source_upi,
            destination_upi=transaction.destination_upi,
            amount=transaction.amount.to_decimal(),
            fee=transaction.fee.to_decimal(),
            total_debited=transaction.total_debited.to_decimal(),
            timestamp=transaction.timestamp,
            remarks=transaction.remarks,
        )


class TransactionResponse(TransferResult):
    failure_reason: Optional[str] = None

    @classmethod
    def from_transaction(cls, transaction: Transaction) -> "TransactionResponse":
        base = TransferResult.from_transaction(transaction)
        return cls(**base.model_dump(), failure_reason=transaction.failure_reason)


class AccountCreate(BaseModel):
    upi_id: str = Field(..., min_length=3, description="UPI id in localpart@handle form")
    phone: Optional[str] = None
    balance: Decimal = Field(default=Decimal("0.00"), ge=0, description="Opening balance")
    status: Literal["ACTIVE", "INACTIVE", "SUSPENDED"] = "ACTIVE"
    daily_limit: Optional[Decimal] = Field(default=None, ge=0)
    monthly_limit: Optional[Decimal] = Field(default=None, ge=0)


class AccountResponse(BaseModel):
    upi_id: str
    phone: Optional[str] = None
    balance: Decimal
    status: str
    daily_limit: Optional[Decimal] = None
    daily_used: Decimal
    monthly_limit: Optional[Decimal] = None
    monthly_used: Decimal
    created_at: datetime

    @classmethod
    def from_account(cls, account: Account) -> "AccountResponse":
        return cls(
            upi_id=account.upi_id,
            phone=account.phone,
            balance=account.balance.to_decimal(),
            status=account.status.value,
            daily_limit=account.daily_limit.to_decimal() if account.daily_limit else None,
            daily_used=account.daily_used.to_decimal(),
            monthly_limit=account.monthly_limit.to_decimal() if account.monthly_limit else None,
            monthly_used=account.monthly_used.to_decimal(),
            created_at=account.created_at,
        )


class BalanceResponse(BaseModel):
    upi_id: str
    balance: Decimal


class StatementResponse(BaseModel):
    items: list[TransactionResponse]


class ErrorResponse(BaseModel):
    timestamp: datetime
    status: int
    error: str
    message: str
    validation_errors: Optional[dict[str, str]] = None
