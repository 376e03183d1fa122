"""Domain models - pure Python dataclasses and enums representing business entities"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional, Union

from client_tracker.domain.exceptions import InvalidInputError

SCORE_UPDATE = "score_update"


class PaymentStatus(str, Enum):
    """Lifecycle status of a single installment"""

    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    DEFERRED = "deferred"
    ABANDONED = "abandoned"
    OUTSTANDING = "outstanding"

    @classmethod
    def parse(cls, value: str) -> "PaymentStatus":
        """Parse a status string, accepting the "settled" display alias"""
        normalized = value.strip().lower()
        if normalized == "settled":
            return cls.COMPLETED
        try:
            return cls(normalized)
        except ValueError:
            allowed = ", ".join(s.value for s in cls)
            raise InvalidInputError({"status": f"must be one of: {allowed}, settled"})


class Operation(str, Enum):
    """Lifecycle operations that move a payment between statuses"""

    PAY = "pay"
    DEFER = "defer"
    ABANDON = "abandon"
    MARK_OUTSTANDING = "mark_outstanding"

    @property
    def target_status(self) -> PaymentStatus:
        return _TARGETS[self]


_TARGETS = {
    Operation.PAY: PaymentStatus.COMPLETED,
    Operation.DEFER: PaymentStatus.DEFERRED,
    Operation.ABANDON: PaymentStatus.ABANDONED,
    Operation.MARK_OUTSTANDING: PaymentStatus.OUTSTANDING,
}


class HistoryKind(str, Enum):
    """Discriminator for audit rows"""

    TRANSITION = "transition"
    SCORE_ADJUSTMENT = "score_adjustment"


@dataclass(frozen=True)
class PaymentTransition:
    """A status change of one payment and the score delta it caused"""

    payment_id: int
    client_id: int
    previous_status: PaymentStatus
    new_status: PaymentStatus
    score_change: int
    notes: str
    comment: Optional[str] = None

    @property
    def kind(self) -> HistoryKind:
        return HistoryKind.TRANSITION


@dataclass(frozen=True)
class ManualScoreAdjustment:
    """A client-level score change not tied to any payment"""

    client_id: int
    score_change: int
    reason: str

    @property
    def kind(self) -> HistoryKind:
        return HistoryKind.SCORE_ADJUSTMENT


ScoreEvent = Union[PaymentTransition, ManualScoreAdjustment]


@dataclass
class Installment:
    """Single payment in an order's installment schedule"""

    due_date: date
    amount: Decimal


@dataclass
class ClientPaymentStats:
    """Count of a client's payments by status"""

    total_payments: int
    scheduled_payments: int
    completed_payments: int
    deferred_payments: int
    abandoned_payments: int
    outstanding_payments: int
