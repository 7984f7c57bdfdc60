from __future__ import annotations
from datetime import datetime, UTC
from typing import Optional
from sqlmodel import Field, SQLModel

class Account(SQLModel, table=True):
    __tablename__ = "accounts"

    upi_id: str = Field(primary_key=True, index=True)
    phone: Optional[str] = None
    balance: int = Field(default=0, ge=0)
    status: str = Field(default="ACTIVE")
    daily_limit: Optional[int] = None
    daily_used: int = 0
    monthly_limit: Optional[int] = None
    monthly_used: int = 0
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

class Transaction(SQLModel, table=True):
    __tablename__ = "transactions"

    id: Optional[int] = Field(default=None, primary_key=True)
    transaction_id: str = Field(unique=True, index=True)
    source_upi: str = Field(index=True)
    destination_upi: str = Field(index=True)
    amount: int
    fee: int = 0
    total_debited: int
    status: str
    failure_reason: Optional[str] = None
    remarks: Optional[str] = Field(default=None, max_length=255)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC), index=True)
