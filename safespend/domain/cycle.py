"""Pay-cycle reconstruction from income history"""

import logging
from datetime import date, timedelta
from typing import Iterable, List, Optional

from safespend.domain.models import CycleWindow, Transaction
from safespend.utils.date_utils import days_between, days_in_month, first_day_of_month

logger = logging.getLogger(__name__)

MIN_CYCLE_DAYS = 7
MAX_CYCLE_DAYS = 45


def income_dates(history: Iterable[Transaction], today: date) -> List[date]:
    """Sorted dates of inflows that happened on or before today"""
    return sorted(
        tx.occurred_on
        for tx in history
        if tx.amount is not None and tx.amount > 0 and tx.occurred_on <= today
    )


def resolve_cycle_window(
    history: Iterable[Transaction],
    focus_month: Optional[date],
    today: date,
) -> CycleWindow:
    """
    Reconstruct the current pay cycle from the two most recent income deposits.

    Rules:
    - Cycle starts on the latest income date on or before today
    - Cycle length is the gap to the previous income (at least 7 days)
    - Without a previous income the focus month's length is used
    - Length is capped at 45 days
    - A stale window is advanced in whole cycles until it covers today

    With fewer than two income events the window falls back to calendar-month
    boundaries of the focus month (or of today's month when none is given).
    """
    month = first_day_of_month(focus_month or today)
    dates = income_dates(history, today)

    cycle_start = dates[-1] if dates else month
    previous_income = dates[-2] if len(dates) >= 2 else None

    if previous_income is not None:
        cycle_length = max(MIN_CYCLE_DAYS, days_between(previous_income, cycle_start))
    else:
        cycle_length = days_in_month(month)
        logger.debug("Fewer than two income events, using calendar month of %s", month.isoformat())
    cycle_length = min(cycle_length, MAX_CYCLE_DAYS)

    if cycle_start > today:
        cycle_start = today

    cycle_end = cycle_start + timedelta(days=cycle_length - 1)
    while cycle_end < today:
        cycle_start = cycle_end + timedelta(days=1)
        cycle_end = cycle_start + timedelta(days=cycle_length - 1)

    previous_cycle_start = (
        previous_income if previous_income is not None
        else cycle_start - timedelta(days=cycle_length)
    )

    return CycleWindow(
        cycle_start=cycle_start,
        cycle_end=cycle_end,
        previous_cycle_start=previous_cycle_start,
        cycle_length_days=cycle_length,
    )
