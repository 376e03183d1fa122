"""Integration tests for the payment lifecycle engine and score ledger"""

import pytest
from datetime import date
from decimal import Decimal
from sqlalchemy.exc import OperationalError
from client_tracker.domain.exceptions import (
    InvalidInputError,
    InvalidTransitionError,
    NotFoundError,
    TransactionFailureError,
)
from client_tracker.domain.models import HistoryKind, PaymentStatus
from client_tracker.infrastructure.database.models import Client, Payment, PaymentHistory
from client_tracker.infrastructure.database.repositories import HistoryRepository
from client_tracker.services.payment_lifecycle import PaymentLifecycleService
from client_tracker.services.score_ledger import ScoreLedger

pytestmark = pytest.mark.integration


@pytest.fixture
def lifecycle(db, clock) -> PaymentLifecycleService:
    return PaymentLifecycleService(db, clock=clock)


def _history(db, payment_id):
    return HistoryRepository(db).get_payment_history(payment_id)


def _score(db, client_id) -> int:
    db.expire_all()
    return db.query(Client).filter(Client.id == client_id).one().score


def test_pay_early_exact_amount(db, lifecycle, make_client, make_payment):
    """Due 2024-06-01, paid 2024-05-30 with the exact amount: +15"""
    client = make_client()
    payment = make_payment(client, amount="100.00", due_date=date(2024, 6, 1))

    result = lifecycle.pay(payment.id, Decimal("100"))

    assert result.score_change == 15
    assert result.client_score == 85
    assert result.previous_status is PaymentStatus.SCHEDULED
    assert result.payment.status is PaymentStatus.COMPLETED
    assert result.payment.paid_date is not None

    entries = _history(db, payment.id)
    assert len(entries) == 1
    assert entries[0].previous_status == "scheduled"
    assert entries[0].new_status == "completed"
    assert entries[0].score_change == 15
    assert entries[0].notes == "Payment completed with amount 100"


def test_pay_late_overpaid(db, clock, lifecycle, make_client, make_payment):
    """Paid 2024-06-02 (late) with 150 of 100 due: +15"""
    client = make_client()
    payment = make_payment(client, amount="100.00", due_date=date(2024, 6, 1))
    clock.set(2024, 6, 2)

    result = lifecycle.pay(payment.id, 150)

    assert result.score_change == 15
    assert _score(db, client.id) == 85


def test_defer_penalty_is_capped(db, lifecycle, make_client, make_payment):
    client = make_client()
    payment = make_payment(client, due_date=date(2024, 6, 1))

    result = lifecycle.defer(payment.id, 45)

    assert result.score_change == -30
    assert result.payment.status is PaymentStatus.DEFERRED
    assert result.payment.due_date == date(2024, 7, 16)
    assert result.payment.deferred_days == 45
    assert _score(db, client.id) == 40
    assert _history(db, payment.id)[0].notes == "Payment deferred for 45 days"


def test_deferred_payment_can_be_deferred_again_and_paid(db, lifecycle, make_client, make_payment):
    client = make_client()
    payment = make_payment(client, due_date=date(2024, 6, 1))

    lifecycle.defer(payment.id, 10)
    lifecycle.defer(payment.id, 5)
    result = lifecycle.pay(payment.id, Decimal("100.00"))

    assert result.previous_status is PaymentStatus.DEFERRED
    assert result.payment.deferred_days == 15
    assert result.payment.due_date == date(2024, 6, 16)
    # Paid on 2024-05-30, before the moved due date
    assert result.score_change == 15
    assert _score(db, client.id) == 70 - 10 - 5 + 15
    assert [e.new_status for e in _history(db, payment.id)] == ["deferred", "deferred", "completed"]


def test_defer_until_derives_calendar_days(db, lifecycle, make_client, make_payment):
    client = make_client()
    payment = make_payment(client, due_date=date(2024, 6, 1))

    result = lifecycle.defer_until(payment.id, date(2024, 6, 8), comment="Client travelling")

    assert result.payment.deferred_days == 7
    assert result.score_change == -7
    assert _history(db, payment.id)[0].comment == "Client travelling"


def test_defer_until_earlier_date_is_rejected_without_mutation(db, lifecycle, make_client, make_payment):
    client = make_client()
    payment = make_payment(client, due_date=date(2024, 6, 1))

    with pytest.raises(InvalidInputError) as exc_info:
        lifecycle.defer_until(payment.id, date(2024, 5, 20))

    assert "date" in exc_info.value.errors
    db.expire_all()
    assert db.get(Payment, payment.id).status is PaymentStatus.SCHEDULED
    assert _history(db, payment.id) == []
    assert _score(db, client.id) == 70


def test_abandon_twice_penalizes_once(db, lifecycle, make_client, make_payment):
    client = make_client()
    payment = make_payment(client)

    lifecycle.abandon(payment.id)
    with pytest.raises(InvalidTransitionError):
        lifecycle.abandon(payment.id)

    assert _score(db, client.id) == 20
    assert len(_history(db, payment.id)) == 1


def test_abandon_completed_payment_fails(db, lifecycle, make_client, make_payment):
    client = make_client()
    payment = make_payment(client)
    lifecycle.pay(payment.id, Decimal("100"))
    score_after_payment = _score(db, client.id)

    with pytest.raises(InvalidTransitionError):
        lifecycle.abandon(payment.id)

    assert _score(db, client.id) == score_after_payment
    assert len(_history(db, payment.id)) == 1
    db.expire_all()
    assert db.get(Payment, payment.id).status is PaymentStatus.COMPLETED


def test_outstanding_is_terminal(db, clock, lifecycle, make_client, make_payment):
    client = make_client()
    payment = make_payment(client, due_date=date(2024, 6, 1))
    clock.set(2024, 6, 2)
    lifecycle.mark_outstanding(payment.id)

    with pytest.raises(InvalidTransitionError):
        lifecycle.pay(payment.id, Decimal("100"))
    with pytest.raises(InvalidTransitionError):
        lifecycle.defer(payment.id, 3)


def test_mark_outstanding_requires_past_due_date(db, lifecycle, make_client, make_payment):
    client = make_client()
    payment = make_payment(client, due_date=date(2024, 5, 30))  # Due today

    with pytest.raises(InvalidTransitionError):
        lifecycle.mark_outstanding(payment.id)

    assert _history(db, payment.id) == []


def test_missing_payment_raises_not_found(lifecycle):
    with pytest.raises(NotFoundError):
        lifecycle.pay(9999, Decimal("10"))


def test_input_validated_before_lookup(lifecycle):
    """Bad input is reported even when the payment does not exist"""
    with pytest.raises(InvalidInputError) as exc_info:
        lifecycle.defer(9999, -3)
    assert exc_info.value.errors == {"deferred_days": "must be 0 or greater"}

    with pytest.raises(InvalidInputError) as exc_info:
        lifecycle.pay(9999, Decimal("-1"))
    assert "amount" in exc_info.value.errors


def test_failed_score_update_rolls_back_payment(db, lifecycle, make_client, make_payment, monkeypatch):
    """No partial transition is visible when the ledger write fails"""
    client = make_client()
    payment = make_payment(client)

    def failing_record(self, event):
        raise OperationalError("UPDATE clients", {}, Exception("database is locked"))

    monkeypatch.setattr(ScoreLedger, "record", failing_record)

    with pytest.raises(TransactionFailureError):
        lifecycle.pay(payment.id, Decimal("100"))

    db.expire_all()
    assert db.get(Payment, payment.id).status is PaymentStatus.SCHEDULED
    assert db.get(Payment, payment.id).paid_date is None
    assert _history(db, payment.id) == []
    assert _score(db, client.id) == 70


def test_concurrent_pay_credits_score_once(db, clock, session_factory, make_client, make_payment):
    """A pay that loaded the payment before another pay committed must not commit too"""
    client = make_client()
    payment = make_payment(client, due_date=date(2024, 6, 1))
    payment_id, client_id = payment.id, client.id
    other_session = session_factory()
    competing = []

    def racing_clock():
        # Runs after this session loaded the payment, before it writes
        if not competing:
            competing.append(PaymentLifecycleService(other_session, clock=clock).pay(payment_id, Decimal("100")))
        return clock()

    try:
        with pytest.raises(TransactionFailureError):
            PaymentLifecycleService(db, clock=racing_clock).pay(payment_id, Decimal("100"))
    finally:
        other_session.close()

    assert competing[0].score_change == 15
    assert _score(db, client_id) == 85
    assert len(_history(db, payment_id)) == 1
    assert db.get(Payment, payment_id).status is PaymentStatus.COMPLETED


def test_history_replay_reproduces_score(db, clock, lifecycle, make_client, make_payment):
    client = make_client()
    first = make_payment(client, due_date=date(2024, 6, 1))
    second = make_payment(client, due_date=date(2024, 6, 15))
    third = make_payment(client, due_date=date(2024, 5, 1))

    lifecycle.pay(first.id, Decimal("120"))
    lifecycle.defer(second.id, 12)
    lifecycle.mark_outstanding(third.id)
    ScoreLedger(db, clock=clock).adjust(client.id, 5, "Goodwill after call")

    history = HistoryRepository(db)
    entries = history.get_client_history(client.id)
    assert sum(e.score_change for e in entries) == _score(db, client.id)
    assert history.replay_score(client.id) == _score(db, client.id)
    assert [e.kind for e in entries] == [
        HistoryKind.SCORE_ADJUSTMENT,
        HistoryKind.TRANSITION,
        HistoryKind.TRANSITION,
        HistoryKind.TRANSITION,
        HistoryKind.SCORE_ADJUSTMENT,
    ]


def test_manual_adjustment_logged_as_score_update(db, clock, make_client):
    client = make_client(opening_score=0)

    updated = ScoreLedger(db, clock=clock).adjust(client.id, -8, "Chargeback")

    assert updated.score == -8
    entry = db.query(PaymentHistory).filter(PaymentHistory.client_id == client.id).one()
    assert entry.payment_id is None
    assert entry.previous_status == entry.new_status == "score_update"
    assert entry.notes == "Chargeback"


def test_manual_adjustment_requires_reason_and_client(db, clock, make_client):
    ledger = ScoreLedger(db, clock=clock)
    client = make_client()

    with pytest.raises(InvalidInputError):
        ledger.adjust(client.id, 3, "  ")
    with pytest.raises(NotFoundError):
        ledger.adjust(9999, 3, "Typo fix")
