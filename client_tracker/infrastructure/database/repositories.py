"""Data access layer for clients, orders, payments and payment history"""

from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional
from sqlalchemy import func
from sqlalchemy.orm import Session
from client_tracker.infrastructure.database.models import Client, Order, Payment, PaymentHistory
from client_tracker.domain.models import (
    SCORE_UPDATE,
    ClientPaymentStats,
    Installment,
    ManualScoreAdjustment,
    PaymentStatus,
    PaymentTransition,
    ScoreEvent,
)


class ClientRepository:
    """Repository for clients"""

    def __init__(self, db: Session):
        self.db = db

    def create_client(self, name: str, email: str, phone: Optional[str] = None) -> Client:
        """Persist a client with a zero score; the opening score goes through the ledger"""
        db_client = Client(name=name, email=email, phone=phone, score=0)
        self.db.add(db_client)
        self.db.flush()
        return db_client

    def get_client(self, client_id: int) -> Optional[Client]:
        return self.db.query(Client).filter(Client.id == client_id).first()

    def get_client_for_update(self, client_id: int) -> Optional[Client]:
        """Fetch a client holding a row lock until the transaction ends"""
        return (
            self.db.query(Client)
            .filter(Client.id == client_id)
            .with_for_update()
            .populate_existing()
            .first()
        )

    def get_payment_stats(self, client_id: int) -> ClientPaymentStats:
        """Count the client's payments grouped by status"""
        rows = (
            self.db.query(Payment.status, func.count(Payment.id))
            .filter(Payment.client_id == client_id)
            .group_by(Payment.status)
            .all()
        )
        counts = {status: count for status, count in rows}
        return ClientPaymentStats(
            total_payments=sum(counts.values()),
            scheduled_payments=counts.get(PaymentStatus.SCHEDULED, 0),
            completed_payments=counts.get(PaymentStatus.COMPLETED, 0),
            deferred_payments=counts.get(PaymentStatus.DEFERRED, 0),
            abandoned_payments=counts.get(PaymentStatus.ABANDONED, 0),
            outstanding_payments=counts.get(PaymentStatus.OUTSTANDING, 0),
        )


class OrderRepository:
    """Repository for orders and their installment schedule"""

    def __init__(self, db: Session):
        self.db = db

    def create_order(
        self,
        client_id: int,
        total_amount: Decimal,
        installments: List[Installment],
    ) -> Order:
        """Create an order with one scheduled payment per installment"""
        db_order = Order(client_id=client_id, total_amount=total_amount)
        self.db.add(db_order)
        self.db.flush()

        for inst in installments:
            self.db.add(
                Payment(
                    order_id=db_order.id,
                    client_id=client_id,
                    amount=inst.amount,
                    due_date=inst.due_date,
                    status=PaymentStatus.SCHEDULED,
                    deferred_days=0,
                )
            )
        self.db.flush()

        return db_order

    def get_order(self, order_id: int) -> Optional[Order]:
        return self.db.query(Order).filter(Order.id == order_id).first()


class PaymentRepository:
    """Repository for payments"""

    def __init__(self, db: Session):
        self.db = db

    def get_payment(self, payment_id: int) -> Optional[Payment]:
        return self.db.query(Payment).filter(Payment.id == payment_id).first()

    def get_payment_for_update(self, payment_id: int) -> Optional[Payment]:
        """Fetch a payment holding a row lock so concurrent transitions serialize"""
        return (
            self.db.query(Payment)
            .filter(Payment.id == payment_id)
            .with_for_update()
            .populate_existing()
            .first()
        )

    def list_payments(
        self,
        status: Optional[PaymentStatus] = None,
        client_id: Optional[int] = None,
        limit: int = 100,
    ) -> List[Payment]:
        query = self.db.query(Payment)
        if status is not None:
            query = query.filter(Payment.status == status)
        if client_id is not None:
            query = query.filter(Payment.client_id == client_id)
        return query.order_by(Payment.due_date, Payment.id).limit(limit).all()

    def get_overdue_scheduled_ids(self, today: date) -> List[int]:
        """Ids of scheduled payments whose due date is before `today`"""
        rows = (
            self.db.query(Payment.id)
            .filter(Payment.status == PaymentStatus.SCHEDULED)
            .filter(Payment.due_date < today)
            .order_by(Payment.due_date, Payment.id)
            .all()
        )
        return [row[0] for row in rows]


class HistoryRepository:
    """Append-only repository for the payment audit log"""

    def __init__(self, db: Session):
        self.db = db

    def append(self, event: ScoreEvent, created_at: datetime) -> PaymentHistory:
        """Write one audit row for a transition or manual adjustment"""
        if isinstance(event, PaymentTransition):
            entry = PaymentHistory(
                kind=event.kind,
                client_id=event.client_id,
                payment_id=event.payment_id,
                previous_status=event.previous_status.value,
                new_status=event.new_status.value,
                score_change=event.score_change,
                notes=event.notes,
                comment=event.comment,
                created_at=created_at,
            )
        elif isinstance(event, ManualScoreAdjustment):
            entry = PaymentHistory(
                kind=event.kind,
                client_id=event.client_id,
                payment_id=None,
                previous_status=SCORE_UPDATE,
                new_status=SCORE_UPDATE,
                score_change=event.score_change,
                notes=event.reason,
                created_at=created_at,
            )
        else:
            raise TypeError(f"Unsupported score event: {event!r}")

        self.db.add(entry)
        self.db.flush()
        return entry

    def get_client_history(self, client_id: int, limit: Optional[int] = None) -> List[PaymentHistory]:
        """Audit rows for a client in the order they were written"""
        query = (
            self.db.query(PaymentHistory)
            .filter(PaymentHistory.client_id == client_id)
            .order_by(PaymentHistory.created_at, PaymentHistory.id)
        )
        if limit is not None:
            query = query.limit(limit)
        return query.all()

    def get_payment_history(self, payment_id: int) -> List[PaymentHistory]:
        return (
            self.db.query(PaymentHistory)
            .filter(PaymentHistory.payment_id == payment_id)
            .order_by(PaymentHistory.created_at, PaymentHistory.id)
            .all()
        )

    def replay_score(self, client_id: int) -> int:
        """Sum of every score change recorded for the client"""
        total = (
            self.db.query(func.coalesce(func.sum(PaymentHistory.score_change), 0))
            .filter(PaymentHistory.client_id == client_id)
            .scalar()
        )
        return int(total)
