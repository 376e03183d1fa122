"""Installment schedule generation for orders paid in parts"""

from datetime import date, timedelta
from decimal import Decimal
from typing import List
from client_tracker.domain.exceptions import InvalidInputError
from client_tracker.domain.models import Installment

CENT = Decimal("0.01")


def generate_installment_plan(
    total_amount: Decimal,
    num_installments: int = 4,
    interval_days: int = 14,
    start_date: date | None = None,
) -> List[Installment]:
    """
    Split an order total into equal installments.

    Requirements:
    - 4 equal installments by default
    - 14 days apart by default
    - Last installment absorbs the rounding remainder (≤ num_installments-1 cents drift)

    Args:
        total_amount: Order total to split
        num_installments: Number of payments (default 4)
        interval_days: Days between payments (default 14)
        start_date: First due date (default: today + interval_days)

    Example:
        400.03 → [100.00, 100.00, 100.00, 100.03]
    """
    total_amount = Decimal(total_amount)
    if total_amount <= 0 or num_installments <= 0:
        return []

    total_cents = int((total_amount / CENT).to_integral_value())
    if total_cents < num_installments:
        # Every installment must be at least one cent
        raise InvalidInputError(
            {"total_amount": f"must cover at least one cent per installment ({num_installments})"}
        )

    if start_date is None:
        start_date = date.today() + timedelta(days=interval_days)

    base_cents = total_cents // num_installments
    remainder = total_cents % num_installments

    installments = []
    for i in range(num_installments):
        due_date = start_date + timedelta(days=i * interval_days)
        cents = base_cents + (remainder if i == num_installments - 1 else 0)
        installments.append(Installment(due_date=due_date, amount=(Decimal(cents) * CENT)))

    return installments
