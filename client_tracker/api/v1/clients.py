"""Client endpoints - registration, score lookup, stats and manual score overrides"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from client_tracker.api.dependencies import get_score_ledger
from client_tracker.api.v1.schemas import (
    ClientResponse,
    ClientStatsResponse,
    CreateClientRequest,
    ScoreAdjustmentRequest,
)
from client_tracker.config import settings
from client_tracker.domain.exceptions import NotFoundError
from client_tracker.infrastructure.database.models import Client
from client_tracker.infrastructure.database.repositories import ClientRepository
from client_tracker.infrastructure.database.session import get_db
from client_tracker.services.score_ledger import ScoreLedger

router = APIRouter()


def _to_response(client: Client) -> ClientResponse:
    return ClientResponse(
        id=client.id,
        name=client.name,
        email=client.email,
        phone=client.phone,
        score=client.score,
        status=client.status,
    )


@router.post("/clients", response_model=ClientResponse, status_code=201)
def create_client(request_body: CreateClientRequest, ledger: ScoreLedger = Depends(get_score_ledger)):
    """Register a client; the opening score is the first entry of its history"""
    client = ledger.open_account(
        name=request_body.name,
        email=request_body.email,
        phone=request_body.phone,
        opening_score=settings.opening_client_score,
    )
    return _to_response(client)


@router.get("/clients/{client_id}", response_model=ClientResponse)
def get_client(client_id: int, db: Session = Depends(get_db)):
    client = ClientRepository(db).get_client(client_id)
    if not client:
        raise NotFoundError(f"Client {client_id} not found")
    return _to_response(client)


@router.get("/clients/{client_id}/stats", response_model=ClientStatsResponse)
def get_client_stats(client_id: int, db: Session = Depends(get_db)):
    """Count the client's payments by status"""
    client_repo = ClientRepository(db)
    client = client_repo.get_client(client_id)
    if not client:
        raise NotFoundError(f"Client {client_id} not found")

    stats = client_repo.get_payment_stats(client_id)
    return ClientStatsResponse(
        client_id=client.id,
        score=client.score,
        total_payments=stats.total_payments,
        scheduled_payments=stats.scheduled_payments,
        completed_payments=stats.completed_payments,
        deferred_payments=stats.deferred_payments,
        abandoned_payments=stats.abandoned_payments,
        outstanding_payments=stats.outstanding_payments,
    )


@router.post("/clients/{client_id}/score-adjustments", response_model=ClientResponse)
def adjust_client_score(
    client_id: int,
    request_body: ScoreAdjustmentRequest,
    ledger: ScoreLedger = Depends(get_score_ledger),
):
    """Manual score override, recorded in the client's history as score_update"""
    client = ledger.adjust(client_id, request_body.delta, request_body.reason)
    return _to_response(client)
