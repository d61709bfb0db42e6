"""Pydantic schemas for transaction requests and responses."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer

# Serialized as a decimal string with exactly two fractional digits
Money = Annotated[
    Decimal,
    PlainSerializer(lambda value: f"{value:.2f}", return_type=str, when_used="json"),
]


class TransactionCreate(BaseModel):
    """Payload for creating a transaction.

    Fields are optional at the schema level so that missing values reach the
    service, which reports every invalid field at once.
    """

    user_id: str | None = Field(
        default=None,
        description="Owner of the transaction. Caller-supplied and not authenticated.",
        examples=["u1"],
    )
    title: str | None = Field(
        default=None,
        description="Short description of the transaction.",
        examples=["Salary"],
    )
    amount: Decimal | None = Field(
        default=None,
        description="Signed amount: positive for income, negative for expenses. Rounded to cents.",
        examples=["3000.00", -45.5],
    )
    category: str | None = Field(
        default=None,
        description="Free-form category tag.",
        examples=["income"],
    )
    created_at: date | None = Field(
        default=None,
        description="Calendar date (YYYY-MM-DD). Defaults to today.",
    )


class TransactionRead(BaseModel):
    """A stored transaction."""

    model_config = ConfigDict(from_attributes=True)

    id: int = Field(..., description="Server-assigned identifier.")
    user_id: str
    title: str
    amount: Money = Field(..., description="Decimal string with two fractional digits.")
    category: str
    created_at: date = Field(..., description="Calendar date in YYYY-MM-DD format.")


class TransactionSummaryResponse(BaseModel):
    """Balance summary of one user."""

    model_config = ConfigDict(from_attributes=True)

    balance: Money = Field(..., description="income + expenses.")
    income: Money = Field(..., description="Sum of all non-negative amounts.")
    expenses: Money = Field(..., description="Sum of all negative amounts (zero or negative).")


class DeleteTransactionResponse(BaseModel):
    message: str
