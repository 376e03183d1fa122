"""Dependency injection for FastAPI endpoints"""

from datetime import datetime
from typing import Callable
from fastapi import Depends, Request
from sqlalchemy.orm import Session

from client_tracker.infrastructure.database.session import get_db
from client_tracker.services.payment_lifecycle import PaymentLifecycleService
from client_tracker.services.score_ledger import ScoreLedger
from client_tracker.utils.date_utils import utcnow


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_clock() -> Callable[[], datetime]:
    """Provide the clock used to date transitions"""
    return utcnow


def get_score_ledger(
    db: Session = Depends(get_db),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> ScoreLedger:
    return ScoreLedger(db, clock=clock)


def get_lifecycle_service(
    request: Request,
    db: Session = Depends(get_db),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> PaymentLifecycleService:
    """Provide a lifecycle engine bound to the request's session"""
    return PaymentLifecycleService(db, clock=clock, request_id=get_request_id(request))
