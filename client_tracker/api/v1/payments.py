"""Payment lifecycle endpoints - pay / skip / cancel an installment"""

from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from client_tracker.api.v1.schemas import (
    CancelRequest,
    PayRequest,
    PaymentActionResponse,
    PaymentListResponse,
    PaymentSchema,
    SkipRequest,
)
from client_tracker.api.dependencies import get_lifecycle_service
from client_tracker.domain.exceptions import NotFoundError
from client_tracker.domain.models import PaymentStatus
from client_tracker.infrastructure.database.models import Payment
from client_tracker.infrastructure.database.repositories import PaymentRepository
from client_tracker.infrastructure.database.session import get_db
from client_tracker.services.payment_lifecycle import PaymentLifecycleService, TransitionResult

router = APIRouter()


def to_payment_schema(payment: Payment) -> PaymentSchema:
    return PaymentSchema(
        id=payment.id,
        order_id=payment.order_id,
        client_id=payment.client_id,
        amount=payment.amount,
        status=payment.status.value,
        due_date=payment.due_date,
        paid_date=payment.paid_date,
        deferred_days=payment.deferred_days,
    )


def _action_response(result: TransitionResult) -> PaymentActionResponse:
    return PaymentActionResponse(
        payment=to_payment_schema(result.payment),
        previous_status=result.previous_status.value,
        score_change=result.score_change,
        client_score=result.client_score,
    )


@router.put("/payments/{payment_id}/pay", response_model=PaymentActionResponse)
def pay_payment(
    payment_id: int,
    request_body: PayRequest,
    lifecycle: PaymentLifecycleService = Depends(get_lifecycle_service),
):
    """
    Complete an installment.

    Score: +10 base, +5 when paid before the due date, +5 when the amount
    paid exceeds the amount due.
    """
    result = lifecycle.pay(payment_id, request_body.amount, comment=request_body.comment)
    return _action_response(result)


@router.put("/payments/{payment_id}/skip", response_model=PaymentActionResponse)
def skip_payment(
    payment_id: int,
    request_body: SkipRequest,
    lifecycle: PaymentLifecycleService = Depends(get_lifecycle_service),
):
    """
    Defer an installment to a later date.

    The deferral length is the number of calendar days between the current
    due date and the requested date. Score: -1 per day, capped at -30.
    """
    result = lifecycle.defer_until(payment_id, request_body.new_due_date, comment=request_body.comment)
    return _action_response(result)


@router.put("/payments/{payment_id}/cancel", response_model=PaymentActionResponse)
def cancel_payment(
    payment_id: int,
    request_body: Optional[CancelRequest] = None,
    lifecycle: PaymentLifecycleService = Depends(get_lifecycle_service),
):
    """Abandon an installment. Score: -50."""
    comment = request_body.comment if request_body else None
    result = lifecycle.abandon(payment_id, comment=comment)
    return _action_response(result)


@router.get("/payments", response_model=PaymentListResponse)
def list_payments(
    status: Optional[str] = Query(None, description="Filter by status; 'settled' is accepted for completed"),
    client_id: Optional[int] = Query(None),
    limit: int = Query(100, ge=1, le=500),
    db: Session = Depends(get_db),
):
    status_filter = PaymentStatus.parse(status) if status else None
    payments = PaymentRepository(db).list_payments(status=status_filter, client_id=client_id, limit=limit)
    return PaymentListResponse(payments=[to_payment_schema(p) for p in payments])


@router.get("/payments/{payment_id}", response_model=PaymentSchema)
def get_payment(payment_id: int, db: Session = Depends(get_db)):
    payment = PaymentRepository(db).get_payment(payment_id)
    if not payment:
        raise NotFoundError(f"Payment {payment_id} not found")
    return to_payment_schema(payment)
