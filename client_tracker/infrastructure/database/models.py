"""SQLAlchemy ORM models for clients, orders, payments and the payment audit log"""

from sqlalchemy import Column, String, Integer, Numeric, DateTime, Date, ForeignKey, Text, Enum
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func

from client_tracker.domain.models import HistoryKind, PaymentStatus

Base = declarative_base()


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class Client(Base):
    """Customer paying orders in installments; owns the reliability score"""

    __tablename__ = "clients"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(Text, nullable=False)
    email = Column(Text, nullable=False, index=True)
    phone = Column(Text, nullable=True)
    # Written only by ScoreLedger.record
    score = Column(Integer, nullable=False, default=0)
    status = Column(String(16), nullable=False, default="active")
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    orders = relationship("Order", back_populates="client")
    payments = relationship("Payment", back_populates="client")


class Order(Base):
    """Purchase whose total is collected through scheduled payments"""

    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, autoincrement=True)
    client_id = Column(Integer, ForeignKey("clients.id", ondelete="CASCADE"), nullable=False, index=True)
    total_amount = Column(Numeric(12, 2), nullable=False)
    status = Column(String(16), nullable=False, default="pending")
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    client = relationship("Client", back_populates="orders")
    payments = relationship("Payment", back_populates="order", order_by="Payment.due_date")


class Payment(Base):
    """Single installment of an order"""

    __tablename__ = "payments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    client_id = Column(Integer, ForeignKey("clients.id", ondelete="CASCADE"), nullable=False, index=True)
    amount = Column(Numeric(12, 2), nullable=False)
    status = Column(
        Enum(PaymentStatus, name="payment_status", native_enum=False, length=16, values_callable=_enum_values),
        nullable=False,
        default=PaymentStatus.SCHEDULED,
        index=True,
    )
    due_date = Column(Date, nullable=False, index=True)
    paid_date = Column(DateTime(timezone=True), nullable=True)
    deferred_days = Column(Integer, nullable=False, default=0)
    # Bumped on every UPDATE; a stale writer matches no row and raises StaleDataError
    version_id = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    __mapper_args__ = {"version_id_col": version_id}

    order = relationship("Order", back_populates="payments")
    client = relationship("Client", back_populates="payments")


class PaymentHistory(Base):
    """Append-only audit row: one per transition or manual score adjustment"""

    __tablename__ = "payment_history"

    id = Column(Integer, primary_key=True, autoincrement=True)
    kind = Column(
        Enum(HistoryKind, name="history_kind", native_enum=False, length=24, values_callable=_enum_values),
        nullable=False,
    )
    client_id = Column(Integer, ForeignKey("clients.id", ondelete="CASCADE"), nullable=False, index=True)
    # Null for manual score adjustments
    payment_id = Column(Integer, ForeignKey("payments.id", ondelete="CASCADE"), nullable=True, index=True)
    previous_status = Column(String(16), nullable=False)
    new_status = Column(String(16), nullable=False)
    score_change = Column(Integer, nullable=False)
    notes = Column(Text, nullable=True)
    comment = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False)
