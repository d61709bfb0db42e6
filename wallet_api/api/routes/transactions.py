from typing import Annotated

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from wallet_api.core.database import get_session
from wallet_api.core.rate_limit import enforce_rate_limit
from wallet_api.repositories.transaction_repository import TransactionRepository
from wallet_api.schemas.transaction import (
    DeleteTransactionResponse,
    TransactionCreate,
    TransactionRead,
    TransactionSummaryResponse,
)
from wallet_api.services.transaction_service import TransactionService

router = APIRouter(
    prefix="/transactions",
    tags=["Transactions"],
    dependencies=[Depends(enforce_rate_limit)],
)


def get_transaction_service(
    session: Annotated[Session, Depends(get_session)],
) -> TransactionService:
    """Build a TransactionService bound to the request's session."""
    return TransactionService(TransactionRepository(session))


ServiceDep = Annotated[TransactionService, Depends(get_transaction_service)]


@router.get("/summary/{user_id}", response_model=TransactionSummaryResponse)
def get_summary(user_id: str, service: ServiceDep) -> TransactionSummaryResponse:
    """Return balance, income and expenses for a user.

    A user without transactions gets all three values as 0.00.
    """
    summary = service.get_summary(user_id)
    return TransactionSummaryResponse.model_validate(summary)


@router.get("/{user_id}", response_model=list[TransactionRead])
def list_transactions(user_id: str, service: ServiceDep) -> list[TransactionRead]:
    """List a user's transactions, most recent first."""
    return [
        TransactionRead.model_validate(transaction)
        for transaction in service.list_transactions(user_id)
    ]


@router.post("", response_model=TransactionRead, status_code=status.HTTP_201_CREATED)
def create_transaction(payload: TransactionCreate, service: ServiceDep) -> TransactionRead:
    """Record a new income or expense.

    Raises:
        ValidationAppError: 400 listing every missing or invalid field.
    """
    transaction = service.create_transaction(
        payload.user_id,
        payload.title,
        payload.amount,
        payload.category,
        created_at=payload.created_at,
    )
    return TransactionRead.model_validate(transaction)


@router.delete("/{transaction_id}", response_model=DeleteTransactionResponse)
def delete_transaction(transaction_id: int, service: ServiceDep) -> DeleteTransactionResponse:
    """Delete a transaction by id.

    Raises:
        NotFoundAppError: 404 if the id does not exist.
    """
    service.delete_transaction(transaction_id)
    # Message text is part of the public contract
    return DeleteTransactionResponse(message="Transaction deleted succesfully")
