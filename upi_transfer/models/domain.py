from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Optional

from ..core.money import Money


class AccountStatus(str, Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    SUSPENDED = "SUSPENDED"


class TransactionStatus(str, Enum):
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"


@dataclass(slots=True)
class Account:
    """A UPI account. Only ``balance`` changes after creation.

    The daily/monthly usage counters are carried for reporting only; the
    transfer engine does not enforce them.
    """

    upi_id: str
    balance: Money
    status: AccountStatus = AccountStatus.ACTIVE
    phone: Optional[str] = None
    daily_limit: Optional[Money] = None
    daily_used: Money = field(default_factory=Money.zero)
    monthly_limit: Optional[Money] = None
    monthly_used: Money = field(default_factory=Money.zero)
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @property
    def is_active(self) -> bool:
        return self.status is AccountStatus.ACTIVE


@dataclass(frozen=True, slots=True)
class Transaction:
    """Immutable ledger record of one transfer attempt."""

    transaction_id: str
    source_upi: str
    destination_upi: str
    amount: Money
    fee: Money
    total_debited: Money
    status: TransactionStatus
    timestamp: datetime
    failure_reason: Optional[str] = None
    remarks: Optional[str] = None
