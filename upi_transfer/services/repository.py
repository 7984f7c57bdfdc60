from __future__ import annotations

import threading
from contextlib import contextmanager
from datetime import UTC, datetime
from typing import Iterator, List, Optional

from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import scoped_session, sessionmaker
from sqlalchemy import or_
from sqlmodel import Session, col, select

from ..core.errors import StoreError
from ..core.money import Money
from ..models import (
    Account,
    AccountModel,
    AccountStatus,
    Transaction,
    TransactionModel,
    TransactionStatus,
)


def _aware(value: datetime) -> datetime:
    # SQLite hands datetimes back without tzinfo; everything is stored as UTC.
    return value if value.tzinfo is not None else value.replace(tzinfo=UTC)


def _optional_money(minor_units: Optional[int]) -> Optional[Money]:
    return Money(minor_units) if minor_units is not None else None


def _optional_minor(money: Optional[Money]) -> Optional[int]:
    return money.minor_units if money is not None else None


class SessionScope:
    """Thread-bound SQLModel session shared by the SQL stores.

    ``transaction()`` blocks nest: only the outermost one commits, so every
    write made by either store inside a transfer lands in a single commit or
    is rolled back together. Reads go through the same scope, so a read made
    inside a transfer runs on that transfer's session and connection.
    """

    def __init__(self, engine: Engine) -> None:
        self._registry = scoped_session(
            sessionmaker(bind=engine, class_=Session, expire_on_commit=False)
        )
        self._depth = threading.local()

    @contextmanager
    def transaction(self) -> Iterator[Session]:
        depth = getattr(self._depth, "value", 0)
        session: Session = self._registry()
        if depth:
            self._depth.value = depth + 1
            try:
                yield session
            finally:
                self._depth.value = depth
            return

        self._depth.value = 1
        try:
            yield session
            session.commit()
        except SQLAlchemyError as exc:
            session.rollback()
            raise StoreError(f"database error: {exc}") from exc
        except BaseException:
            session.rollback()
            raise
        finally:
            self._depth.value = 0
            self._registry.remove()


class SqlAccountStore:
    """Account store backed by the ``accounts`` table, locking rows FOR UPDATE."""

    supports_atomic_commit = True

    def __init__(self, scope: SessionScope) -> None:
        self._scope = scope

    def unit_of_work(self):
        return self._scope.transaction()

    def find_by_id_for_update(self, upi_id: str) -> Optional[Account]:
        with self._scope.transaction() as session:
            stmt = (
                select(AccountModel)
                .where(AccountModel.upi_id == upi_id)
                .with_for_update()
            )
            try:
                row = session.exec(stmt).first()
            except SQLAlchemyError as exc:
                raise StoreError(f"database error: {exc}") from exc
            return self._to_domain(row) if row is not None else None

    def save(self, account: Account) -> None:
        with self._scope.transaction() as session:
            try:
                row = session.get(AccountModel, account.upi_id)
                if row is None:
                    raise StoreError(f"cannot save unknown account {account.upi_id}")
                row.balance = account.balance.minor_units
                row.status = account.status.value
                row.daily_used = account.daily_used.minor_units
                row.monthly_used = account.monthly_used.minor_units
                session.add(row)
                session.flush()
            except SQLAlchemyError as exc:
                raise StoreError(f"database error: {exc}") from exc

    def add(self, account: Account) -> None:
        with self._scope.transaction() as session:
            session.add(
                AccountModel(
                    upi_id=account.upi_id,
                    phone=account.phone,
                    balance=account.balance.minor_units,
                    status=account.status.value,
                    daily_limit=_optional_minor(account.daily_limit),
                    daily_used=account.daily_used.minor_units,
                    monthly_limit=_optional_minor(account.monthly_limit),
                    monthly_used=account.monthly_used.minor_units,
                    created_at=account.created_at,
                )
            )
            try:
                session.flush()
            except SQLAlchemyError as exc:
                raise StoreError(f"database error: {exc}") from exc

    def find_by_id(self, upi_id: str) -> Optional[Account]:
        with self._scope.transaction() as session:
            row = session.get(AccountModel, upi_id)
            return self._to_domain(row) if row is not None else None

    @staticmethod
    def _to_domain(row: AccountModel) -> Account:
        return Account(
            upi_id=row.upi_id,
            balance=Money(row.balance),
            status=AccountStatus(row.status),
            phone=row.phone,
            daily_limit=_optional_money(row.daily_limit),
            daily_used=Money(row.daily_used),
            monthly_limit=_optional_money(row.monthly_limit),
            monthly_used=Money(row.monthly_used),
            created_at=_aware(row.created_at),
        )


class SqlTransactionStore:
    """Ledger backed by the ``transactions`` table. Rows are inserted, never updated."""

    def __init__(self, scope: SessionScope) -> None:
        self._scope = scope

    def append(self, transaction: Transaction) -> None:
        with self._scope.transaction() as session:
            session.add(
                TransactionModel(
                    transaction_id=transaction.transaction_id,
                    source_upi=transaction.source_upi,
                    destination_upi=transaction.destination_upi,
                    amount=transaction.amount.minor_units,
                    fee=transaction.fee.minor_units,
                    total_debited=transaction.total_debited.minor_units,
                    status=transaction.status.value,
                    failure_reason=transaction.failure_reason,
                    remarks=transaction.remarks,
                    timestamp=transaction.timestamp,
                )
            )
            try:
                session.flush()
            except SQLAlchemyError as exc:
                raise StoreError(f"database error: {exc}") from exc

    def find_by_id(self, transaction_id: str) -> Optional[Transaction]:
        with self._scope.transaction() as session:
            stmt = select(TransactionModel).where(
                TransactionModel.transaction_id == transaction_id
            )
            row = session.exec(stmt).first()
            return self._to_domain(row) if row is not None else None

    def list_for_account(self, upi_id: str, limit: int = 50) -> List[Transaction]:
        stmt = (
            select(TransactionModel)
            .where(
                or_(
                    TransactionModel.source_upi == upi_id,
                    TransactionModel.destination_upi == upi_id,
                )
            )
            .order_by(col(TransactionModel.timestamp).desc(), col(TransactionModel.id).desc())
            .limit(limit)
        )
        with self._scope.transaction() as session:
            return [self._to_domain(row) for row in session.exec(stmt)]

    @staticmethod
    def _to_domain(row: TransactionModel) -> Transaction:
        return Transaction(
            transaction_id=row.transaction_id,
            source_upi=row.source_upi,
            destination_upi=row.destination_upi,
            amount=Money(row.amount),
            fee=Money(row.fee),
            total_debited=Money(row.total_debited),
            status=TransactionStatus(row.status),
            timestamp=_aware(row.timestamp),
            failure_reason=row.failure_reason,
            remarks=row.remarks,
        )
