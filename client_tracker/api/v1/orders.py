"""Order endpoints - create an order with its installment schedule, fetch it back"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from client_tracker.api.v1.payments import to_payment_schema
from client_tracker.api.v1.schemas import CreateOrderRequest, OrderResponse
from client_tracker.domain.exceptions import NotFoundError
from client_tracker.domain.installments import generate_installment_plan
from client_tracker.infrastructure.database.models import Order
from client_tracker.infrastructure.database.repositories import ClientRepository, OrderRepository
from client_tracker.infrastructure.database.session import get_db
from client_tracker.infrastructure.database.unit_of_work import unit_of_work

router = APIRouter()


def _to_response(order: Order) -> OrderResponse:
    return OrderResponse(
        order_id=order.id,
        client_id=order.client_id,
        total_amount=order.total_amount,
        status=order.status,
        payments=[to_payment_schema(p) for p in order.payments],
        created_at=order.created_at.isoformat(),
    )


@router.post("/orders", response_model=OrderResponse, status_code=201)
def create_order(request_body: CreateOrderRequest, db: Session = Depends(get_db)):
    """
    Create an order and schedule its installments.

    The total is split into equal payments `interval_days` apart; the last
    payment absorbs the rounding remainder. A total smaller than one cent
    per installment is rejected with 422 on `total_amount`.
    """
    if not ClientRepository(db).get_client(request_body.client_id):
        raise NotFoundError(f"Client {request_body.client_id} not found")

    installments = generate_installment_plan(
        request_body.total_amount,
        num_installments=request_body.installments,
        interval_days=request_body.interval_days,
        start_date=request_body.start_date,
    )

    with unit_of_work(db):
        order = OrderRepository(db).create_order(
            client_id=request_body.client_id,
            total_amount=request_body.total_amount,
            installments=installments,
        )

    db.refresh(order)
    return _to_response(order)


@router.get("/orders/{order_id}", response_model=OrderResponse)
def get_order(order_id: int, db: Session = Depends(get_db)):
    """Retrieve an order with its payment schedule"""
    order = OrderRepository(db).get_order(order_id)
    if not order:
        raise NotFoundError(f"Order {order_id} not found")
    return _to_response(order)
