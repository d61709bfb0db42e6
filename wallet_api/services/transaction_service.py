"""Transaction service: input validation, ledger operations and summaries.

This service holds the business rules of the wallet ledger:
- Field validation before anything is written
- Per-user isolation (every read filters on user_id)
- Exact cent arithmetic for the balance summary
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from wallet_api.core.errors import NotFoundAppError, ValidationAppError
from wallet_api.models.transaction import Transaction
from wallet_api.repositories.transaction_repository import TransactionRepository
from wallet_api.utils.money import MAX_ABS_AMOUNT, from_cents, quantize, to_decimal

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransactionSummary:
    """Aggregate balance of one user.

    Attributes:
        balance: income + expenses.
        income: Sum of all non-negative amounts.
        expenses: Sum of all negative amounts (never positive).
    """

    balance: Decimal
    income: Decimal
    expenses: Decimal


def _is_blank(value: object) -> bool:
    return not isinstance(value, str) or not value.strip()


def _validate_amount(value: object) -> Decimal | None:
    """Return the amount rounded to cents, or None if it is not acceptable."""

    amount = to_decimal(value)
    if amount is None or not amount.is_finite():
        return None
    # copy_abs() never rounds, so huge exponents cannot overflow here
    if amount.copy_abs() > MAX_ABS_AMOUNT + 1:
        return None
    amount = quantize(amount)
    if amount.copy_abs() > MAX_ABS_AMOUNT:
        return None
    return amount


class TransactionService:
    """Service for recording transactions and summarizing a user's ledger.

    Attributes:
        repository: Ledger store used for all reads and writes.
    """

    def __init__(self, repository: TransactionRepository) -> None:
        self.repository = repository

    def create_transaction(
        self,
        user_id: object,
        title: object,
        amount: object,
        category: object,
        *,
        created_at: date | None = None,
    ) -> Transaction:
        """Validate and persist a new transaction.

        Args:
            user_id: Owner of the transaction (trusted, not authenticated).
            title: Non-empty description.
            amount: Signed amount; positive is income, negative an expense,
                zero is allowed. Rounded to cents.
            category: Non-empty free-form tag.
            created_at: Optional calendar date; defaults to today.

        Returns:
            The stored Transaction with its assigned id and created_at.

        Raises:
            ValidationAppError: If any field is missing or invalid. All
                offending fields are listed in ``details["fields"]``.
        """
        invalid: list[str] = []

        if _is_blank(user_id):
            invalid.append("user_id")
        if _is_blank(title):
            invalid.append("title")
        normalized_amount = _validate_amount(amount)
        if normalized_amount is None:
            invalid.append("amount")
        if _is_blank(category):
            invalid.append("category")

        if invalid:
            logger.info(
                "transaction.validation_failed",
                extra={"fields": invalid},
            )
            raise ValidationAppError(
                code="invalid_transaction",
                message=f"Invalid or missing fields: {', '.join(invalid)}",
                details={
                    "fields": invalid,
                    "hint": (
                        "user_id, title and category must be non-empty strings; "
                        "amount must be a finite number below 100000000"
                    ),
                },
            )

        transaction = self.repository.insert(
            user_id=user_id,
            title=title,
            amount=normalized_amount,
            category=category,
            created_at=created_at,
        )

        logger.info(
            "transaction.created",
            extra={
                "transaction_id": transaction.id,
                "user_id": transaction.user_id,
                "category": transaction.category,
            },
        )
        return transaction

    def list_transactions(self, user_id: str) -> list[Transaction]:
        """Return the user's transactions, most recent first.

        An unknown user simply has no transactions.
        """
        transactions = self.repository.select_by_user(user_id)
        logger.debug(
            "transaction.listed",
            extra={"user_id": user_id, "count": len(transactions)},
        )
        return transactions

    def delete_transaction(self, transaction_id: int) -> None:
        """Physically delete a transaction by id.

        Ownership is not checked: any caller that knows an id can delete it.

        Raises:
            NotFoundAppError: If no transaction has this id (including one
                that was already deleted).
        """
        if not self.repository.delete_by_id(transaction_id):
            raise NotFoundAppError(
                code="transaction_not_found",
                message="Transaction not found",
                details={"transaction_id": transaction_id},
            )

        logger.info(
            "transaction.deleted",
            extra={"transaction_id": transaction_id},
        )

    def get_summary(self, user_id: str) -> TransactionSummary:
        """Compute balance, income and expenses for one user.

        Totals are summed in integer cents by the store and converted to
        two-place Decimals, so balance == income + expenses exactly.
        """
        totals = self.repository.aggregate_by_user(user_id)
        income = from_cents(totals.income_cents)
        expenses = from_cents(totals.expenses_cents)
        return TransactionSummary(
            balance=income + expenses,
            income=income,
            expenses=expenses,
        )
