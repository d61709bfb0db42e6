"""Unit tests for TransactionService against an in-memory SQLite ledger."""

import random
from datetime import date
from decimal import Decimal

import pytest

from wallet_api.core.errors import NotFoundAppError, ValidationAppError
from wallet_api.services.transaction_service import TransactionService


class TestCreateTransaction:
    def test_returns_stored_record(self, service: TransactionService) -> None:
        created = service.create_transaction("u1", "Salary", Decimal("3000.00"), "income")

        assert created.id is not None
        assert created.user_id == "u1"
        assert created.title == "Salary"
        assert created.amount == Decimal("3000.00")
        assert created.category == "income"
        assert created.created_at == date.today()

    def test_created_record_is_listed(self, service: TransactionService) -> None:
        created = service.create_transaction("u1", "Groceries", -45.5, "food")

        listed = service.list_transactions("u1")

        assert len(listed) == 1
        assert listed[0].id == created.id
        assert listed[0].title == "Groceries"
        assert listed[0].amount == Decimal("-45.50")
        assert listed[0].category == "food"
        assert listed[0].created_at == created.created_at

    def test_ids_are_unique(self, service: TransactionService) -> None:
        ids = {service.create_transaction("u1", f"t{i}", i, "misc").id for i in range(5)}
        assert len(ids) == 5

    def test_zero_amount_is_valid(self, service: TransactionService) -> None:
        created = service.create_transaction("u1", "Refund reversal", 0, "misc")
        assert created.amount == Decimal("0.00")

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("12.345", Decimal("12.35")),
            ("-12.345", Decimal("-12.35")),
            (0.1, Decimal("0.10")),
            (7, Decimal("7.00")),
            ("  19.99 ", Decimal("19.99")),
        ],
    )
    def test_amount_is_rounded_to_cents(self, service: TransactionService, raw, expected) -> None:
        assert service.create_transaction("u1", "t", raw, "c").amount == expected

    def test_explicit_date_is_kept(self, service: TransactionService) -> None:
        created = service.create_transaction(
            "u1", "Rent", "-800", "housing", created_at=date(2024, 1, 31)
        )
        assert created.created_at == date(2024, 1, 31)

    def test_reports_all_invalid_fields(self, service: TransactionService) -> None:
        with pytest.raises(ValidationAppError) as exc_info:
            service.create_transaction("", None, None, "   ")

        assert exc_info.value.code == "invalid_transaction"
        assert exc_info.value.details["fields"] == ["user_id", "title", "amount", "category"]

    @pytest.mark.parametrize(
        "amount",
        [
            None,
            "abc",
            "NaN",
            "Infinity",
            float("inf"),
            True,
            [1],
            "100000000.00",
            "99999999.995",
            "1e999999999",
            "-1e1000000",
        ],
    )
    def test_rejects_invalid_amount(self, service: TransactionService, amount) -> None:
        with pytest.raises(ValidationAppError) as exc_info:
            service.create_transaction("u1", "t", amount, "c")

        assert exc_info.value.details["fields"] == ["amount"]

    def test_rejects_non_string_fields(self, service: TransactionService) -> None:
        with pytest.raises(ValidationAppError) as exc_info:
            service.create_transaction(42, "t", 1, ["food"])

        assert exc_info.value.details["fields"] == ["user_id", "category"]

    def test_validation_failure_writes_nothing(self, service: TransactionService) -> None:
        with pytest.raises(ValidationAppError):
            service.create_transaction("u1", "", 10, "misc")

        assert service.list_transactions("u1") == []


class TestListTransactions:
    def test_unknown_user_gets_empty_list(self, service: TransactionService) -> None:
        assert service.list_transactions("unknown_user") == []

    def test_most_recent_first(self, service: TransactionService) -> None:
        service.create_transaction("u1", "old", 1, "c", created_at=date(2024, 1, 1))
        service.create_transaction("u1", "new", 1, "c", created_at=date(2024, 3, 1))
        service.create_transaction("u1", "mid", 1, "c", created_at=date(2024, 2, 1))

        titles = [t.title for t in service.list_transactions("u1")]

        assert titles == ["new", "mid", "old"]

    def test_same_day_ties_break_by_newest_id(self, service: TransactionService) -> None:
        first = service.create_transaction("u1", "first", 1, "c", created_at=date(2024, 1, 1))
        second = service.create_transaction("u1", "second", 1, "c", created_at=date(2024, 1, 1))

        ids = [t.id for t in service.list_transactions("u1")]

        assert ids == [second.id, first.id]

    def test_users_are_isolated(self, service: TransactionService) -> None:
        service.create_transaction("alice", "Salary", 1000, "income")
        service.create_transaction("bob", "Coffee", -3, "food")

        alice = service.list_transactions("alice")
        bob = service.list_transactions("bob")

        assert [t.user_id for t in alice] == ["alice"]
        assert [t.user_id for t in bob] == ["bob"]
        assert service.get_summary("bob").income == Decimal("0.00")
        assert service.get_summary("alice").expenses == Decimal("0.00")


class TestDeleteTransaction:
    def test_deletes_row(self, service: TransactionService) -> None:
        created = service.create_transaction("u1", "t", 5, "c")

        service.delete_transaction(created.id)

        assert service.list_transactions("u1") == []
        assert service.get_summary("u1").balance == Decimal("0.00")

    def test_missing_id_raises_not_found(self, service: TransactionService) -> None:
        with pytest.raises(NotFoundAppError) as exc_info:
            service.delete_transaction(999999)

        assert exc_info.value.details["transaction_id"] == 999999

    @pytest.mark.parametrize("transaction_id", [0, -1, 2**31, 99999999999999999999])
    def test_out_of_range_id_raises_not_found(
        self, service: TransactionService, transaction_id: int
    ) -> None:
        with pytest.raises(NotFoundAppError):
            service.delete_transaction(transaction_id)

    def test_second_delete_raises_not_found(self, service: TransactionService) -> None:
        created = service.create_transaction("u1", "t", 5, "c")
        service.delete_transaction(created.id)

        with pytest.raises(NotFoundAppError):
            service.delete_transaction(created.id)

    def test_delete_does_not_touch_other_rows(self, service: TransactionService) -> None:
        keep = service.create_transaction("u1", "keep", 5, "c")
        drop = service.create_transaction("u2", "drop", 5, "c")

        service.delete_transaction(drop.id)

        assert [t.id for t in service.list_transactions("u1")] == [keep.id]


class TestGetSummary:
    def test_salary_and_groceries(self, service: TransactionService) -> None:
        service.create_transaction("u1", "Salary", Decimal("3000.00"), "income")
        service.create_transaction("u1", "Groceries", Decimal("-45.50"), "food")

        summary = service.get_summary("u1")

        assert summary.balance == Decimal("2954.50")
        assert summary.income == Decimal("3000.00")
        assert summary.expenses == Decimal("-45.50")

    def test_empty_user_is_all_zero(self, service: TransactionService) -> None:
        summary = service.get_summary("nobody")

        assert summary.balance == Decimal("0.00")
        assert summary.income == Decimal("0.00")
        assert summary.expenses == Decimal("0.00")
        assert str(summary.balance) == "0.00"

    def test_float_prone_values_sum_exactly(self, service: TransactionService) -> None:
        for _ in range(10):
            service.create_transaction("u1", "dime", 0.1, "c")
        service.create_transaction("u1", "fee", -0.3, "c")

        summary = service.get_summary("u1")

        assert summary.income == Decimal("1.00")
        assert summary.expenses == Decimal("-0.30")
        assert summary.balance == Decimal("0.70")

    def test_zero_counts_as_income_side(self, service: TransactionService) -> None:
        service.create_transaction("u1", "zero", 0, "c")

        summary = service.get_summary("u1")

        assert summary.income == Decimal("0.00")
        assert summary.expenses == Decimal("0.00")

    def test_balance_equals_income_plus_expenses_randomized(
        self, service: TransactionService
    ) -> None:
        rng = random.Random(20240501)

        for run in range(100):
            user_id = f"user-{run}"
            amounts = [
                Decimal(rng.randint(-5_000_000, 5_000_000)) / 100
                for _ in range(rng.randint(0, 12))
            ]
            for amount in amounts:
                service.create_transaction(user_id, "random", amount, "random")

            summary = service.get_summary(user_id)

            assert summary.balance == summary.income + summary.expenses
            assert summary.income == sum((a for a in amounts if a >= 0), Decimal("0.00"))
            assert summary.expenses == sum((a for a in amounts if a < 0), Decimal("0.00"))
            assert summary.expenses <= 0
            assert summary.balance.as_tuple().exponent == -2
