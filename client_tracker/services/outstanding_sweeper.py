"""Sweep that marks overdue scheduled payments as outstanding"""

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, List
from sqlalchemy.orm import Session

from client_tracker.domain.exceptions import DomainException
from client_tracker.infrastructure.database.repositories import PaymentRepository
from client_tracker.infrastructure.observability.logging import log_sweep
from client_tracker.infrastructure.observability.metrics import sweep_failure_counter, sweep_marked_counter
from client_tracker.services.payment_lifecycle import PaymentLifecycleService
from client_tracker.utils.date_utils import utcnow


@dataclass
class SweepReport:
    """Outcome of one sweep run"""

    examined: int = 0
    marked: List[int] = field(default_factory=list)
    failed: Dict[int, str] = field(default_factory=dict)


class OutstandingSweeper:
    """
    Best-effort batch of mark_outstanding calls.

    Each payment gets its own session and transaction so one failure
    neither blocks nor rolls back the others.
    """

    def __init__(self, session_factory: Callable[[], Session], clock: Callable[[], datetime] = utcnow):
        self.session_factory = session_factory
        self.clock = clock

    def find_candidates(self) -> List[int]:
        db = self.session_factory()
        try:
            return PaymentRepository(db).get_overdue_scheduled_ids(self.clock().date())
        finally:
            db.close()

    def run(self) -> SweepReport:
        start_time = time.time()
        report = SweepReport()

        for payment_id in self.find_candidates():
            report.examined += 1
            db = self.session_factory()
            try:
                PaymentLifecycleService(db, clock=self.clock).mark_outstanding(payment_id)
                report.marked.append(payment_id)
                sweep_marked_counter.inc()
            except DomainException as e:
                # Another writer may have moved the payment since it was selected
                report.failed[payment_id] = str(e)
                sweep_failure_counter.inc()
                logging.warning(
                    f"Could not mark payment {payment_id} outstanding: {e}",
                    extra={"payment_id": payment_id, "step": "sweep_item_failed"},
                )
            except Exception as e:
                # Corrupt rows and driver errors stay confined to their own payment
                report.failed[payment_id] = f"{type(e).__name__}: {e}"
                sweep_failure_counter.inc()
                logging.exception(
                    f"Unexpected error marking payment {payment_id} outstanding",
                    extra={"payment_id": payment_id, "step": "sweep_item_error"},
                )
            finally:
                db.close()

        log_sweep(
            examined=report.examined,
            marked=len(report.marked),
            failed=len(report.failed),
            duration_ms=(time.time() - start_time) * 1000,
        )
        return report
