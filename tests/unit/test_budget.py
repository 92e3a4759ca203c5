"""Unit tests for variable budget estimation"""

from datetime import date
from decimal import Decimal
from safespend.domain.budget import (
    estimate_variable_budget,
    posted_between,
    sum_variable_spend,
    variable_spend_by_day,
)
from safespend.domain.models import CycleWindow

WINDOW = CycleWindow(
    cycle_start=date(2024, 3, 18),
    cycle_end=date(2024, 3, 31),
    previous_cycle_start=date(2024, 3, 4),
    cycle_length_days=14,
)


def test_budget_is_previous_cycle_variable_spend(tx):
    """Test only posted variable outflows of the previous cycle count"""
    history = [
        tx("Trader Joes", -150, date(2024, 3, 7), "Groceries"),
        tx("Cinema", -25.50, date(2024, 3, 17), "Entertainment"),
        tx("Local Rent Co", -900, date(2024, 3, 5), "Rent"),  # fixed
        tx("Vacation Fund", -120, date(2024, 3, 6), "Savings"),  # sinking
        tx("Refund", 40, date(2024, 3, 8), "Groceries"),  # inflow
        tx("Bakery", -12, date(2024, 3, 9), "Dining", pending=True),
        tx("Bakery", -30, date(2024, 3, 3), "Dining"),  # before previous cycle
        tx("Bakery", -18, date(2024, 3, 18), "Dining"),  # current cycle
    ]

    assert estimate_variable_budget(history, WINDOW) == Decimal("175.50")


def test_budget_falls_back_to_current_cycle(tx):
    history = [
        tx("Bakery", -18, date(2024, 3, 18), "Dining"),
        tx("Bakery", -22, date(2024, 3, 19), "Dining"),
    ]

    assert estimate_variable_budget(history, WINDOW) == Decimal("40.00")


def test_budget_defaults_without_variable_history(tx):
    """Test new users get the default budget"""
    history = [tx("Local Rent Co", -900, date(2024, 3, 5), "Rent")]

    assert estimate_variable_budget(history, WINDOW) == Decimal("500.00")
    assert estimate_variable_budget([], WINDOW, Decimal("250")) == Decimal("250.00")


def test_posted_between_is_inclusive_and_skips_pending(tx):
    first = tx("A", -1, date(2024, 3, 18))
    last = tx("B", -1, date(2024, 3, 31))
    pending = tx("C", -1, date(2024, 3, 20), pending=True)
    outside = tx("D", -1, date(2024, 4, 1))

    assert posted_between([first, last, pending, outside], WINDOW.cycle_start, WINDOW.cycle_end) == [first, last]


def test_variable_spend_by_day_groups_magnitudes(tx):
    history = [
        tx("Bakery", -10, date(2024, 3, 18), "Dining"),
        tx("Cafe", -5.25, date(2024, 3, 18), "Dining"),
        tx("Cinema", -20, date(2024, 3, 19), "Entertainment"),
        tx("Gym", -40, date(2024, 3, 19), "Subscription"),  # fixed
        tx("Old", -99, date(2024, 3, 1), "Dining"),  # outside window
    ]

    assert variable_spend_by_day(history, WINDOW) == {
        date(2024, 3, 18): Decimal("15.25"),
        date(2024, 3, 19): Decimal("20"),
    }


def test_sum_variable_spend_ignores_missing_amounts(tx):
    history = [tx("Bakery", -10, date(2024, 3, 18), "Dining"), tx("Broken", None, date(2024, 3, 18), "Dining")]

    assert sum_variable_spend(history) == Decimal("10.00")
