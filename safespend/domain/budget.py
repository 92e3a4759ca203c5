"""Variable (discretionary) budget estimation from prior-cycle spend"""

import logging
from collections import defaultdict
from datetime import date, timedelta
from decimal import Decimal
from typing import Dict, Iterable, List

from safespend.domain.categories import is_variable
from safespend.domain.models import CycleWindow, Transaction
from safespend.utils.money import quantize, total

logger = logging.getLogger(__name__)

DEFAULT_VARIABLE_BUDGET = Decimal("500.00")


def posted_between(transactions: Iterable[Transaction], start: date, end: date) -> List[Transaction]:
    """Non-pending transactions dated within [start, end] (inclusive)"""
    return [
        tx for tx in transactions
        if not tx.pending and start <= tx.occurred_on <= end
    ]


def is_variable_outflow(tx: Transaction) -> bool:
    return tx.amount is not None and tx.amount < 0 and is_variable(tx.category)


def sum_variable_spend(transactions: Iterable[Transaction]) -> Decimal:
    """Absolute total of variable-category outflows"""
    return total(abs(tx.amount) for tx in transactions if is_variable_outflow(tx))


def variable_spend_by_day(transactions: Iterable[Transaction], window: CycleWindow) -> Dict[date, Decimal]:
    """Variable outflow magnitude per day inside the cycle window"""
    by_day: Dict[date, Decimal] = defaultdict(lambda: Decimal("0"))
    for tx in transactions:
        if not is_variable_outflow(tx):
            continue
        day = tx.occurred_on
        if day < window.cycle_start or day > window.cycle_end:
            continue
        by_day[day] += abs(tx.amount)
    return dict(by_day)


def estimate_variable_budget(
    history: Iterable[Transaction],
    window: CycleWindow,
    default_budget: Decimal = DEFAULT_VARIABLE_BUDGET,
) -> Decimal:
    """
    Derive this cycle's discretionary budget.

    Fallback order:
    1. Variable spend in the previous cycle [previous_cycle_start, cycle_start)
    2. Variable spend in the current cycle so far
    3. default_budget (new users with no spend at all)
    """
    history = list(history)
    previous_cycle = posted_between(
        history,
        window.previous_cycle_start,
        window.cycle_start - timedelta(days=1),
    )
    budget = sum_variable_spend(previous_cycle)
    if budget > 0:
        return budget

    current_cycle = posted_between(history, window.cycle_start, window.cycle_end)
    budget = sum_variable_spend(current_cycle)
    if budget > 0:
        logger.debug("No prior-cycle variable spend, using current cycle spend %s", budget)
        return budget

    logger.debug("No variable spend history, using default budget %s", default_budget)
    return quantize(default_budget)
