"""Score ledger - the only write path for a client's reliability score"""

from datetime import datetime
from typing import Callable, Optional
from sqlalchemy.orm import Session

from client_tracker.domain.exceptions import InvalidInputError, NotFoundError
from client_tracker.domain.models import ManualScoreAdjustment, ScoreEvent
from client_tracker.infrastructure.database.models import Client, PaymentHistory
from client_tracker.infrastructure.database.repositories import ClientRepository, HistoryRepository
from client_tracker.infrastructure.database.unit_of_work import unit_of_work
from client_tracker.infrastructure.observability.metrics import score_change_histogram
from client_tracker.utils.date_utils import utcnow


class ScoreLedger:
    """
    Applies score events to clients and records them in the audit log.

    `record` runs inside the caller's transaction and writes exactly one
    history row per event, so summing a client's history reproduces the
    client's score. `adjust` and `open_account` are standalone manual
    operations with their own unit of work.
    """

    def __init__(self, db: Session, clock: Callable[[], datetime] = utcnow):
        self.db = db
        self.clock = clock
        self.clients = ClientRepository(db)
        self.history = HistoryRepository(db)

    def record(self, event: ScoreEvent) -> PaymentHistory:
        """Add event.score_change to the client's score and append its audit row"""
        client = self.clients.get_client_for_update(event.client_id)
        if client is None:
            raise NotFoundError(f"Client {event.client_id} not found")

        client.score = client.score + event.score_change
        entry = self.history.append(event, created_at=self.clock())
        self.db.flush()
        return entry

    def adjust(self, client_id: int, delta: int, reason: str) -> Client:
        """Manual score override, logged as a score_update pseudo-transition"""
        if not reason or not reason.strip():
            raise InvalidInputError({"reason": "is required"})

        with unit_of_work(self.db):
            self.record(ManualScoreAdjustment(client_id=client_id, score_change=delta, reason=reason.strip()))
            client = self.clients.get_client(client_id)

        score_change_histogram.observe(delta)
        return client

    def open_account(
        self, name: str, email: str, phone: Optional[str] = None, opening_score: int = 0
    ) -> Client:
        """Create a client and record its opening score as the first ledger entry"""
        with unit_of_work(self.db):
            client = self.clients.create_client(name=name, email=email, phone=phone)
            if opening_score:
                self.record(
                    ManualScoreAdjustment(client_id=client.id, score_change=opening_score, reason="Opening score")
                )

        return client
