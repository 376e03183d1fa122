"""Pydantic schemas for API request/response validation"""

from pydantic import BaseModel, Field
from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional


class PayRequest(BaseModel):
    """Request body for PUT /v1/payments/{id}/pay"""

    amount: Decimal = Field(..., gt=0, description="Amount received")
    comment: Optional[str] = Field(None, max_length=1000)


class SkipRequest(BaseModel):
    """Request body for PUT /v1/payments/{id}/skip"""

    new_due_date: date = Field(..., alias="date", description="New due date (ISO 8601)")
    comment: Optional[str] = Field(None, max_length=1000)


class CancelRequest(BaseModel):
    """Request body for PUT /v1/payments/{id}/cancel"""

    comment: Optional[str] = Field(None, max_length=1000)


class PaymentSchema(BaseModel):
    """Current state of one installment"""

    id: int
    order_id: int
    client_id: int
    amount: Decimal
    status: str
    due_date: date
    paid_date: Optional[datetime] = None
    deferred_days: int


class PaymentActionResponse(BaseModel):
    """Response for the pay / skip / cancel endpoints"""

    payment: PaymentSchema
    previous_status: str
    score_change: int
    client_score: int


class PaymentListResponse(BaseModel):
    payments: List[PaymentSchema]


class HistoryItem(BaseModel):
    """Single audit row"""

    id: int
    kind: str
    payment_id: Optional[int] = None
    previous_status: str
    new_status: str
    score_change: int
    notes: Optional[str] = None
    comment: Optional[str] = None
    created_at: str


class ClientHistoryResponse(BaseModel):
    """Response for GET /v1/clients/{id}/history"""

    client_id: int
    score: int
    replayed_score: int
    entries: List[HistoryItem]


class PaymentHistoryResponse(BaseModel):
    """Response for GET /v1/payments/{id}/history"""

    payment_id: int
    entries: List[HistoryItem]


class CreateClientRequest(BaseModel):
    """Request body for POST /v1/clients"""

    name: str = Field(..., min_length=1)
    email: str = Field(..., min_length=3)
    phone: Optional[str] = None


class ClientResponse(BaseModel):
    id: int
    name: str
    email: str
    phone: Optional[str] = None
    score: int
    status: str


class ScoreAdjustmentRequest(BaseModel):
    """Request body for POST /v1/clients/{id}/score-adjustments"""

    delta: int = Field(..., description="Signed score change")
    reason: str = Field(..., min_length=1)


class ClientStatsResponse(BaseModel):
    """Response for GET /v1/clients/{id}/stats"""

    client_id: int
    score: int
    total_payments: int
    scheduled_payments: int
    completed_payments: int
    deferred_payments: int
    abandoned_payments: int
    outstanding_payments: int


class CreateOrderRequest(BaseModel):
    """Request body for POST /v1/orders"""

    client_id: int
    total_amount: Decimal = Field(..., gt=0)
    installments: int = Field(4, ge=1, le=60)
    interval_days: int = Field(14, ge=1, le=366)
    start_date: Optional[date] = None


class OrderResponse(BaseModel):
    """Response for GET /v1/orders/{id}"""

    order_id: int
    client_id: int
    total_amount: Decimal
    status: str
    payments: List[PaymentSchema]
    created_at: str
