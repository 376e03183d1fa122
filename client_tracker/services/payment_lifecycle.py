"""Payment lifecycle engine - validates and executes payment status transitions"""

import time
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Callable, Optional, Tuple
from sqlalchemy.orm import Session

from client_tracker.domain.exceptions import DomainException, InvalidInputError, InvalidTransitionError, NotFoundError
from client_tracker.domain.lifecycle import (
    ABANDON_NOTE,
    ABANDON_PENALTY,
    OUTSTANDING_NOTE,
    OUTSTANDING_PENALTY,
    assert_transition,
    completion_note,
    completion_score,
    deferral_note,
    deferral_penalty,
    validate_deferred_days,
    validate_payment_amount,
)
from client_tracker.domain.models import Operation, PaymentStatus, PaymentTransition
from client_tracker.infrastructure.database.models import Payment
from client_tracker.infrastructure.database.repositories import PaymentRepository
from client_tracker.infrastructure.database.unit_of_work import unit_of_work
from client_tracker.infrastructure.observability.logging import log_transition
from client_tracker.infrastructure.observability.metrics import record_transition, record_transition_failure
from client_tracker.services.score_ledger import ScoreLedger
from client_tracker.utils.date_utils import add_calendar_days, days_between, utcnow

# Mutates the locked payment and returns (score_change, notes)
Mutation = Callable[[Payment, datetime], Tuple[int, str]]


@dataclass
class TransitionResult:
    """Committed outcome of one lifecycle operation"""

    payment: Payment
    previous_status: PaymentStatus
    score_change: int
    client_score: int


class PaymentLifecycleService:
    """
    State machine for installment payments.

    Every operation loads the payment with a row lock, checks the transition
    is legal, mutates the payment, and hands a PaymentTransition to the score
    ledger, all inside one unit of work. Nothing is written unless all of it
    commits.
    """

    def __init__(
        self,
        db: Session,
        ledger: Optional[ScoreLedger] = None,
        clock: Callable[[], datetime] = utcnow,
        request_id: Optional[str] = None,
    ):
        self.db = db
        self.clock = clock
        self.ledger = ledger or ScoreLedger(db, clock=clock)
        self.payments = PaymentRepository(db)
        self.request_id = request_id

    def pay(self, payment_id: int, amount, comment: Optional[str] = None) -> TransitionResult:
        """Complete a payment; bonus for paying early and for paying more than due"""
        amount = _to_decimal(amount)
        validate_payment_amount(amount)

        def mutate(payment: Payment, now: datetime) -> Tuple[int, str]:
            score_change = completion_score(amount, payment.amount, now.date(), payment.due_date)
            payment.status = PaymentStatus.COMPLETED
            payment.paid_date = now
            return score_change, completion_note(amount)

        return self._transition(Operation.PAY, payment_id, mutate, comment)

    def defer(self, payment_id: int, deferred_days: int, comment: Optional[str] = None) -> TransitionResult:
        """Push the due date out by calendar days; one penalty point per day, capped"""
        validate_deferred_days(deferred_days)
        return self._transition(Operation.DEFER, payment_id, _deferral(deferred_days), comment)

    def defer_until(self, payment_id: int, new_due_date: date, comment: Optional[str] = None) -> TransitionResult:
        """Defer to a target date; the day count is taken from the current due date"""
        if new_due_date is None:
            raise InvalidInputError({"date": "is required"})

        def mutate(payment: Payment, now: datetime) -> Tuple[int, str]:
            deferred_days = days_between(payment.due_date, new_due_date)
            if deferred_days < 0:
                raise InvalidInputError(
                    {"date": f"must not be before the current due date {payment.due_date.isoformat()}"}
                )
            return _deferral(deferred_days)(payment, now)

        return self._transition(Operation.DEFER, payment_id, mutate, comment)

    def abandon(self, payment_id: int, comment: Optional[str] = None) -> TransitionResult:
        def mutate(payment: Payment, now: datetime) -> Tuple[int, str]:
            payment.status = PaymentStatus.ABANDONED
            return ABANDON_PENALTY, ABANDON_NOTE

        return self._transition(Operation.ABANDON, payment_id, mutate, comment)

    def mark_outstanding(self, payment_id: int) -> TransitionResult:
        """Flag a scheduled payment whose due date has passed"""

        def mutate(payment: Payment, now: datetime) -> Tuple[int, str]:
            if not payment.due_date < now.date():
                raise InvalidTransitionError(
                    f"Payment {payment.id} is not overdue (due {payment.due_date.isoformat()})"
                )
            payment.status = PaymentStatus.OUTSTANDING
            return OUTSTANDING_PENALTY, OUTSTANDING_NOTE

        return self._transition(Operation.MARK_OUTSTANDING, payment_id, mutate, None)

    def _transition(
        self,
        operation: Operation,
        payment_id: int,
        mutate: Mutation,
        comment: Optional[str],
    ) -> TransitionResult:
        start_time = time.time()
        try:
            with unit_of_work(self.db):
                payment = self.payments.get_payment_for_update(payment_id)
                if payment is None:
                    raise NotFoundError(f"Payment {payment_id} not found")

                previous_status = payment.status
                assert_transition(previous_status, operation)

                score_change, notes = mutate(payment, self.clock())
                self.db.flush()

                self.ledger.record(
                    PaymentTransition(
                        payment_id=payment.id,
                        client_id=payment.client_id,
                        previous_status=previous_status,
                        new_status=payment.status,
                        score_change=score_change,
                        notes=notes,
                        comment=comment,
                    )
                )
                client_score = payment.client.score
                client_id = payment.client_id

        except DomainException as e:
            record_transition_failure(operation.value, e)
            raise

        record_transition(operation.value, operation.target_status.value, score_change)
        log_transition(
            operation=operation.value,
            payment_id=payment_id,
            client_id=client_id,
            previous_status=previous_status.value,
            new_status=operation.target_status.value,
            score_change=score_change,
            client_score=client_score,
            duration_ms=(time.time() - start_time) * 1000,
            request_id=self.request_id,
        )

        return TransitionResult(
            payment=payment,
            previous_status=previous_status,
            score_change=score_change,
            client_score=client_score,
        )


def _deferral(deferred_days: int) -> Mutation:
    def mutate(payment: Payment, now: datetime) -> Tuple[int, str]:
        payment.status = PaymentStatus.DEFERRED
        payment.due_date = add_calendar_days(payment.due_date, deferred_days)
        payment.deferred_days = (payment.deferred_days or 0) + deferred_days
        return deferral_penalty(deferred_days), deferral_note(deferred_days)

    return mutate


def _to_decimal(value) -> Optional[Decimal]:
    if value is None:
        return None
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise InvalidInputError({"amount": "must be a number"})
    if not amount.is_finite():
        raise InvalidInputError({"amount": "must be a finite number"})
    return amount
