from __future__ import annotations

import logging
from typing import List

from ..core.errors import (
    AccountNotFoundError,
    DuplicateAccountError,
    InvalidUpiError,
    PersistenceError,
    StoreError,
    TransactionNotFoundError,
)
from ..core.log import sanitize_for_log
from ..core.money import Money
from ..models import (
    Account,
    AccountCreate,
    AccountResponse,
    AccountStatus,
    BalanceResponse,
    StatementResponse,
    TransactionResponse,
)
from .stores import AccountStore, TransactionStore
from .validator import UPI_PATTERN


logger = logging.getLogger(__name__)


class AccountService:
    """Account-facing reads and account opening. Money movement lives in ``TransferEngine``."""

    def __init__(self, accounts: AccountStore, transactions: TransactionStore) -> None:
        self.accounts = accounts
        self.transactions = transactions

    def open_account(self, payload: AccountCreate) -> AccountResponse:
        if not UPI_PATTERN.fullmatch(payload.upi_id):
            raise InvalidUpiError(f"Invalid UPI ID format: {payload.upi_id}")
        if self.accounts.find_by_id(payload.upi_id) is not None:
            raise DuplicateAccountError(payload.upi_id)

        account = Account(
            upi_id=payload.upi_id,
            balance=Money.amount(payload.balance),
            status=AccountStatus(payload.status),
            phone=payload.phone,
            daily_limit=Money.amount(payload.daily_limit) if payload.daily_limit is not None else None,
            monthly_limit=Money.amount(payload.monthly_limit) if payload.monthly_limit is not None else None,
        )
        try:
            self.accounts.add(account)
        except StoreError as exc:
            logger.exception(
                "account.create_failed",
                extra={"upi_id": sanitize_for_log(payload.upi_id)},
            )
            raise PersistenceError(f"Account could not be created: {exc}") from exc

        logger.info(
            "account.created",
            extra={"upi_id": sanitize_for_log(account.upi_id), "balance": str(account.balance)},
        )
        return AccountResponse.from_account(account)

    def get_account(self, upi_id: str) -> AccountResponse:
        return AccountResponse.from_account(self._get_account(upi_id))

    def check_balance(self, upi_id: str) -> Money:
        return self._get_account(upi_id).balance

    def get_balance(self, upi_id: str) -> BalanceResponse:
        return BalanceResponse(upi_id=upi_id, balance=self.check_balance(upi_id).to_decimal())

    def get_transaction(self, transaction_id: str) -> TransactionResponse:
        transaction = self.transactions.find_by_id(transaction_id)
        if transaction is None:
            raise TransactionNotFoundError(transaction_id)
        return TransactionResponse.from_transaction(transaction)

    def get_statement(self, upi_id: str, limit: int = 50) -> StatementResponse:
        self._get_account(upi_id)
        items: List[TransactionResponse] = [
            TransactionResponse.from_transaction(txn)
            for txn in self.transactions.list_for_account(upi_id, limit=limit)
        ]
        return StatementResponse(items=items)

    def _get_account(self, upi_id: str) -> Account:
        account = self.accounts.find_by_id(upi_id)
        if account is None:
            raise AccountNotFoundError("Account", upi_id)
        return account
