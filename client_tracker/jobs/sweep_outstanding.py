"""
Cron entry point for the outstanding-payment sweep.

Run as `python -m client_tracker.jobs.sweep_outstanding` or `client-tracker-sweep`.
Exits non-zero when any payment could not be marked, so the scheduler flags the run.
"""

import argparse
import sys

from client_tracker.config import settings
from client_tracker.infrastructure.database.session import SessionLocal
from client_tracker.infrastructure.observability.logging import setup_logging
from client_tracker.services.outstanding_sweeper import OutstandingSweeper


def main(argv=None) -> None:
    parser = argparse.ArgumentParser(description="Mark overdue scheduled payments as outstanding")
    parser.add_argument("--log-level", default=settings.log_level)
    args = parser.parse_args(argv)

    setup_logging(args.log_level, service_name=settings.service_name)

    report = OutstandingSweeper(SessionLocal).run()
    print(f"[sweep_outstanding] examined={report.examined} marked={len(report.marked)} failed={len(report.failed)}")
    if report.failed:
        for payment_id, reason in sorted(report.failed.items()):
            print(f"[sweep_outstanding] payment {payment_id}: {reason}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
