"""Transfer execution: validate, lock, price, check, mutate, record.

Both accounts are locked in ascending UPI id order regardless of direction,
so two transfers over the same pair can never deadlock. Validation and
response building happen outside the lock scope.
"""

from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass, replace
from datetime import UTC, datetime
from typing import Optional, Tuple, Union, cast

from ..core.config import Settings
from ..core.errors import (
    AccountInactiveError,
    AccountNotFoundError,
    InsufficientBalanceError,
    PersistenceError,
    StoreError,
    TransferError,
)
from ..core.log import sanitize_for_log
from ..core.money import Money
from ..models import (
    Account,
    Transaction,
    TransactionStatus,
    TransferRequest,
    TransferResult,
)
from .fees import FeePolicy
from .stores import AccountStore, TransactionStore
from .validator import TransferValidator


logger = logging.getLogger(__name__)

_ID_ATTEMPTS = 5


def generate_transaction_id(now: Optional[datetime] = None) -> str:
    """Return ``TXN-<yyyyMMddHHmmss>-<6 random digits>``."""
    now = now or datetime.now(UTC)
    return f"TXN-{now:%Y%m%d%H%M%S}-{secrets.randbelow(1_000_000):06d}"


@dataclass(frozen=True, slots=True)
class TransferOutcome:
    """Either a result or the error that stopped the transfer, never both."""

    result: Optional[TransferResult] = None
    error: Optional[TransferError] = None

    def __post_init__(self) -> None:
        if (self.result is None) == (self.error is None):
            raise ValueError("TransferOutcome needs exactly one of result or error")

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> TransferResult:
        if self.error is not None:
            raise self.error
        return cast(TransferResult, self.result)


@dataclass(frozen=True, slots=True)
class _Rejected:
    """A refusal decided under the locks, with the FAILED record if one was kept."""

    error: TransferError
    record: Optional[Transaction] = None


class TransferEngine:
    def __init__(
        self,
        accounts: AccountStore,
        transactions: TransactionStore,
        *,
        fee_policy: Optional[FeePolicy] = None,
        validator: Optional[TransferValidator] = None,
        record_failed_attempts: bool = True,
    ) -> None:
        self.accounts = accounts
        self.transactions = transactions
        self.fee_policy = fee_policy or FeePolicy()
        self.validator = validator or TransferValidator()
        self.record_failed_attempts = record_failed_attempts

    @classmethod
    def from_settings(
        cls,
        accounts: AccountStore,
        transactions: TransactionStore,
        settings: Settings,
    ) -> TransferEngine:
        return cls(
            accounts,
            transactions,
            fee_policy=FeePolicy(
                threshold=Money.of(settings.fee_threshold),
                flat_fee=Money.of(settings.flat_fee),
            ),
            validator=TransferValidator(
                min_amount=Money.of(settings.min_amount),
                max_amount=Money.of(settings.max_amount),
                max_remarks_length=settings.max_remarks_length,
            ),
            record_failed_attempts=settings.record_failed_attempts,
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def execute(self, request: TransferRequest) -> TransferOutcome:
        log_context = {
            "source_upi": sanitize_for_log(request.source_upi),
            "destination_upi": sanitize_for_log(request.destination_upi),
            "amount": str(request.amount),
        }
        try:
            amount = self.validator.check(
                request.source_upi,
                request.destination_upi,
                request.amount,
                request.remarks,
            )
        except TransferError as exc:
            logger.info(
                "transfer.rejected",
                extra={**log_context, "kind": exc.kind.value, "reason": exc.message},
            )
            return TransferOutcome(error=exc)

        try:
            settled = self._execute_locked(
                request.source_upi, request.destination_upi, request, amount
            )
        except TransferError as exc:
            logger.info(
                "transfer.rejected",
                extra={**log_context, "kind": exc.kind.value, "reason": exc.message},
            )
            return TransferOutcome(error=exc)
        except StoreError as exc:
            logger.exception("transfer.persistence_failed", extra=log_context)
            return TransferOutcome(
                error=PersistenceError(f"Transfer could not be completed: {exc}")
            )

        if isinstance(settled, _Rejected):
            logger.warning(
                "transfer.failed",
                extra={
                    **log_context,
                    "kind": settled.error.kind.value,
                    "reason": settled.error.message,
                    "transaction_id": settled.record.transaction_id if settled.record else None,
                },
            )
            return TransferOutcome(error=settled.error)

        transaction = settled
        logger.info(
            "transfer.completed",
            extra={
                **log_context,
                "transaction_id": transaction.transaction_id,
                "fee": str(transaction.fee),
            },
        )
        return TransferOutcome(result=TransferResult.from_transaction(transaction))

    # ------------------------------------------------------------------
    # Locked section
    # ------------------------------------------------------------------
    def _execute_locked(
        self,
        source_upi: str,
        destination_upi: str,
        request: TransferRequest,
        amount: Money,
    ) -> Union[Transaction, _Rejected]:
        """Lock, price, check, mutate and record inside one unit of work.

        Takes ids that already passed validation. Returns the SUCCESS
        transaction, or ``_Rejected`` when the accounts exist but cannot
        take part. Raises ``AccountNotFoundError`` or ``StoreError``; either
        one leaves the unit of work without any write.
        """
        with self.accounts.unit_of_work():
            source, destination = self._lock_accounts(source_upi, destination_upi)

            fee = self.fee_policy.calculate_fee(amount)
            total_debit = amount + fee

            rejection = self._check_participants(source, destination)
            if rejection is None and source.balance < total_debit:
                rejection = InsufficientBalanceError(
                    available=source.balance, required=total_debit
                )
            if rejection is not None:
                failed = None
                if self.record_failed_attempts:
                    failed = self._build_transaction(
                        request, amount, fee, total_debit,
                        TransactionStatus.FAILED, rejection.message,
                    )
                    self.transactions.append(failed)
                return _Rejected(rejection, failed)

            originals = (replace(source), replace(destination))
            source.balance = source.balance - total_debit
            destination.balance = destination.balance + amount

            transaction = self._build_transaction(
                request, amount, fee, total_debit, TransactionStatus.SUCCESS, None
            )
            try:
                self.accounts.save(source)
                self.accounts.save(destination)
                self.transactions.append(transaction)
            except StoreError:
                if not self.accounts.supports_atomic_commit:
                    self._compensate(originals)
                raise
            return transaction

    def _lock_accounts(self, source_upi: str, destination_upi: str) -> Tuple[Account, Account]:
        located = {}
        for upi_id in sorted((source_upi, destination_upi)):
            located[upi_id] = self.accounts.find_by_id_for_update(upi_id)

        source = located[source_upi]
        if source is None:
            raise AccountNotFoundError("Source", source_upi)
        destination = located[destination_upi]
        if destination is None:
            raise AccountNotFoundError("Destination", destination_upi)
        return source, destination

    def _check_participants(
        self, source: Account, destination: Account
    ) -> Optional[TransferError]:
        if not source.is_active:
            return AccountInactiveError("Source", source.upi_id, source.status.value)
        if not destination.is_active:
            return AccountInactiveError(
                "Destination", destination.upi_id, destination.status.value
            )
        return None

    def _compensate(self, originals: Tuple[Account, Account]) -> None:
        """Put both balances back while the handles are still held."""
        for account in originals:
            try:
                self.accounts.save(account)
            except StoreError:
                logger.critical(
                    "transfer.compensation_failed",
                    extra={"upi_id": sanitize_for_log(account.upi_id)},
                    exc_info=True,
                )

    def _build_transaction(
        self,
        request: TransferRequest,
        amount: Money,
        fee: Money,
        total_debit: Money,
        status: TransactionStatus,
        failure_reason: Optional[str],
    ) -> Transaction:
        return Transaction(
            transaction_id=self._new_transaction_id(),
            source_upi=request.source_upi or "",
            destination_upi=request.destination_upi or "",
            amount=amount,
            fee=fee,
            total_debited=total_debit,
            status=status,
            timestamp=datetime.now(UTC),
            failure_reason=failure_reason,
            remarks=request.remarks,
        )

    def _new_transaction_id(self) -> str:
        for _ in range(_ID_ATTEMPTS):
            transaction_id = generate_transaction_id()
            if self.transactions.find_by_id(transaction_id) is None:
                return transaction_id
        raise StoreError("could not allocate a unique transaction id")
