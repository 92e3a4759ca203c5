"""Remaining fixed and sinking-fund obligations for the current cycle"""

from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Callable, Dict, Iterable, List, Optional

from safespend.domain.categories import is_fixed, is_sinking
from safespend.domain.models import CycleWindow, Transaction
from safespend.utils.money import ZERO, quantize

CategoryPredicate = Callable[[Optional[str]], bool]

MIN_OCCURRENCES = 2


def median(values: List[Decimal]) -> Decimal:
    """Median rounded to cents; the mean of the middle pair for even counts"""
    if not values:
        return ZERO
    ordered = sorted(values)
    mid = len(ordered) // 2
    if len(ordered) % 2 == 1:
        return quantize(ordered[mid])
    return quantize((ordered[mid - 1] + ordered[mid]) / 2)


def _matching_outflows(history: Iterable[Transaction], predicate: CategoryPredicate) -> List[Transaction]:
    return [
        tx for tx in history
        if tx.amount is not None and tx.amount < 0 and predicate(tx.category)
    ]


def expected_per_merchant(
    history: Iterable[Transaction],
    predicate: CategoryPredicate,
    min_occurrences: int = MIN_OCCURRENCES,
) -> Dict[str, Decimal]:
    """Median charge per merchant, for merchants seen at least min_occurrences times"""
    amounts_by_merchant: Dict[str, List[Decimal]] = defaultdict(list)
    for tx in _matching_outflows(history, predicate):
        amounts_by_merchant[tx.merchant_name or ""].append(abs(tx.amount))

    return {
        merchant: median(amounts)
        for merchant, amounts in amounts_by_merchant.items()
        if len(amounts) >= min_occurrences
    }


def project_remaining(
    history: Iterable[Transaction],
    window: CycleWindow,
    today: date,
    predicate: CategoryPredicate,
) -> Decimal:
    """
    Estimate what is still to be paid this cycle for recurring merchants.

    For every merchant with enough history, the expected charge is the median
    of its past amounts (robust to one-off irregular charges). Anything
    already paid to that merchant between cycle_start and today counts
    against it; overpayment never goes negative.
    """
    history = list(history)
    expected = expected_per_merchant(history, predicate)
    if not expected:
        return ZERO

    paid: Dict[str, Decimal] = defaultdict(lambda: Decimal("0"))
    for tx in _matching_outflows(history, predicate):
        merchant = tx.merchant_name or ""
        if merchant not in expected:
            continue
        if window.cycle_start <= tx.occurred_on <= today:
            paid[merchant] += abs(tx.amount)

    remaining = sum(
        (max(Decimal("0"), amount - paid[merchant]) for merchant, amount in expected.items()),
        Decimal("0"),
    )
    return quantize(remaining)


def project_fixed_remaining(history: Iterable[Transaction], window: CycleWindow, today: date) -> Decimal:
    return project_remaining(history, window, today, is_fixed)


def project_sinking_remaining(history: Iterable[Transaction], window: CycleWindow, today: date) -> Decimal:
    return project_remaining(history, window, today, is_sinking)
