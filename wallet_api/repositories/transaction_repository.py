"""Ledger store: persistence operations for transactions.

The repository is the only layer that talks SQL. Each mutation is a single
row statement committed immediately. Driver and database failures are
logged here and re-raised as StoreUnavailableAppError so the layers above
never see SQLAlchemy exceptions.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from sqlalchemy import BigInteger, case, delete, func, select, type_coerce
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from wallet_api.core.errors import StoreUnavailableAppError
from wallet_api.models.transaction import Transaction

logger = logging.getLogger(__name__)

# Range of the Integer primary key on every supported backend
MAX_TRANSACTION_ID = 2**31 - 1


@dataclass(frozen=True)
class CentTotals:
    """Raw per-user aggregates in integer cents."""

    income_cents: int
    expenses_cents: int


def _store_error(operation: str, exc: SQLAlchemyError) -> StoreUnavailableAppError:
    logger.error(
        "ledger_store.failure",
        extra={
            "operation": operation,
            "error_type": type(exc).__name__,
            "error_msg": str(exc),
        },
    )
    return StoreUnavailableAppError(
        code="store_unavailable",
        message="The transaction store is unavailable. Please try again later.",
    )


class TransactionRepository:
    """SQL-backed ledger of transaction rows.

    Attributes:
        session: Request-scoped SQLAlchemy session.
    """

    def __init__(self, session: Session) -> None:
        self.session = session

    def insert(
        self,
        *,
        user_id: str,
        title: str,
        amount: Decimal,
        category: str,
        created_at: date | None = None,
    ) -> Transaction:
        """Insert one row and return it with its assigned id and date."""

        row = Transaction(
            user_id=user_id,
            title=title,
            amount=amount,
            category=category,
            created_at=created_at or date.today(),
        )

        try:
            self.session.add(row)
            self.session.commit()
        except SQLAlchemyError as exc:
            self.session.rollback()
            raise _store_error("insert", exc) from exc

        return row

    def delete_by_id(self, transaction_id: int) -> bool:
        """Delete one row by id.

        Returns:
            True if a row was removed, False if no row had that id.
        """

        # Ids outside the column range cannot exist, and drivers reject them
        if not 1 <= transaction_id <= MAX_TRANSACTION_ID:
            return False

        try:
            result = self.session.execute(
                delete(Transaction).where(Transaction.id == transaction_id)
            )
            self.session.commit()
        except SQLAlchemyError as exc:
            self.session.rollback()
            raise _store_error("delete_by_id", exc) from exc

        return result.rowcount > 0

    def select_by_user(self, user_id: str) -> list[Transaction]:
        """Return the user's rows, most recent first."""

        stmt = (
            select(Transaction)
            .where(Transaction.user_id == user_id)
            .order_by(Transaction.created_at.desc(), Transaction.id.desc())
        )
        try:
            return list(self.session.scalars(stmt).all())
        except SQLAlchemyError as exc:
            raise _store_error("select_by_user", exc) from exc

    def aggregate_by_user(self, user_id: str) -> CentTotals:
        """Sum the user's income and expenses in integer cents."""

        cents = type_coerce(Transaction.amount, BigInteger)
        stmt = select(
            func.coalesce(func.sum(case((cents >= 0, cents), else_=0)), 0),
            func.coalesce(func.sum(case((cents < 0, cents), else_=0)), 0),
        ).where(Transaction.user_id == user_id)

        try:
            income, expenses = self.session.execute(stmt).one()
        except SQLAlchemyError as exc:
            raise _store_error("aggregate_by_user", exc) from exc

        return CentTotals(income_cents=int(income), expenses_cents=int(expenses))
