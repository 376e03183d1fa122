"""Payment lifecycle rules - core business logic for status transitions and score deltas"""

from datetime import date
from decimal import Decimal
from typing import Dict, FrozenSet

from client_tracker.domain.exceptions import InvalidInputError, InvalidTransitionError
from client_tracker.domain.models import Operation, PaymentStatus

# Score deltas
COMPLETION_BASE_BONUS = 10
EARLY_PAYMENT_BONUS = 5
OVERPAYMENT_BONUS = 5
MAX_DEFERRAL_PENALTY_DAYS = 30
ABANDON_PENALTY = -50
OUTSTANDING_PENALTY = -20

# Deferred payments stay active; every other non-initial status is terminal.
ALLOWED_OPERATIONS: Dict[PaymentStatus, FrozenSet[Operation]] = {
    PaymentStatus.SCHEDULED: frozenset(
        {Operation.PAY, Operation.DEFER, Operation.ABANDON, Operation.MARK_OUTSTANDING}
    ),
    PaymentStatus.DEFERRED: frozenset({Operation.PAY, Operation.DEFER, Operation.ABANDON}),
    PaymentStatus.COMPLETED: frozenset(),
    PaymentStatus.ABANDONED: frozenset(),
    PaymentStatus.OUTSTANDING: frozenset(),
}


def assert_transition(status: PaymentStatus, operation: Operation) -> None:
    """Raise InvalidTransitionError unless `operation` is legal from `status`"""
    if operation not in ALLOWED_OPERATIONS[status]:
        raise InvalidTransitionError(
            f"Cannot {operation.value} a payment that is {status.value} "
            f"(target status {operation.target_status.value})"
        )


def completion_score(amount_paid: Decimal, amount_due: Decimal, paid_on: date, due_date: date) -> int:
    """
    Score bonus for completing a payment.

    - +10 base for completing
    - +5 when paid strictly before the due date
    - +5 when more than the expected amount was paid

    Bonuses are additive, so the result is between +10 and +20.
    """
    bonus = COMPLETION_BASE_BONUS
    if paid_on < due_date:
        bonus += EARLY_PAYMENT_BONUS
    if amount_paid > amount_due:
        bonus += OVERPAYMENT_BONUS
    return bonus


def deferral_penalty(deferred_days: int) -> int:
    """One point per deferred day, capped at -30"""
    return -min(deferred_days, MAX_DEFERRAL_PENALTY_DAYS)


def validate_payment_amount(amount: Decimal) -> None:
    if amount is None:
        raise InvalidInputError({"amount": "is required"})
    if amount <= 0:
        raise InvalidInputError({"amount": "must be greater than 0"})


def validate_deferred_days(deferred_days: int) -> None:
    if deferred_days is None:
        raise InvalidInputError({"deferred_days": "is required"})
    if deferred_days < 0:
        raise InvalidInputError({"deferred_days": "must be 0 or greater"})


def completion_note(amount: Decimal) -> str:
    return f"Payment completed with amount {amount}"


def deferral_note(deferred_days: int) -> str:
    return f"Payment deferred for {deferred_days} days"


ABANDON_NOTE = "Payment abandoned"
OUTSTANDING_NOTE = "Payment marked as outstanding"
