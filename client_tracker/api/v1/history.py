"""Audit log endpoints - score history per client and per payment"""

from typing import List
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from client_tracker.api.v1.schemas import ClientHistoryResponse, HistoryItem, PaymentHistoryResponse
from client_tracker.domain.exceptions import NotFoundError
from client_tracker.infrastructure.database.models import PaymentHistory
from client_tracker.infrastructure.database.session import get_db
from client_tracker.infrastructure.database.repositories import (
    ClientRepository,
    HistoryRepository,
    PaymentRepository,
)

router = APIRouter()


def _to_items(entries: List[PaymentHistory]) -> List[HistoryItem]:
    return [
        HistoryItem(
            id=e.id,
            kind=e.kind.value,
            payment_id=e.payment_id,
            previous_status=e.previous_status,
            new_status=e.new_status,
            score_change=e.score_change,
            notes=e.notes,
            comment=e.comment,
            created_at=e.created_at.isoformat(),
        )
        for e in entries
    ]


@router.get("/clients/{client_id}/history", response_model=ClientHistoryResponse)
def get_client_history(client_id: int, db: Session = Depends(get_db)):
    """
    Retrieve every score-affecting event for a client, oldest first.

    Returns:
        Audit rows plus the score obtained by replaying them, which equals
        the stored score.
    """
    client = ClientRepository(db).get_client(client_id)
    if not client:
        raise NotFoundError(f"Client {client_id} not found")

    history_repo = HistoryRepository(db)
    return ClientHistoryResponse(
        client_id=client.id,
        score=client.score,
        replayed_score=history_repo.replay_score(client.id),
        entries=_to_items(history_repo.get_client_history(client.id)),
    )


@router.get("/payments/{payment_id}/history", response_model=PaymentHistoryResponse)
def get_payment_history(payment_id: int, db: Session = Depends(get_db)):
    """Retrieve the status transitions of one payment"""
    if not PaymentRepository(db).get_payment(payment_id):
        raise NotFoundError(f"Payment {payment_id} not found")

    entries = HistoryRepository(db).get_payment_history(payment_id)
    return PaymentHistoryResponse(payment_id=payment_id, entries=_to_items(entries))
