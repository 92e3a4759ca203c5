"""Unit tests for pay-cycle window resolution"""

import pytest
from datetime import date
from safespend.domain.cycle import resolve_cycle_window

TODAY = date(2024, 3, 20)


def test_biweekly_income_defines_cycle(biweekly_history):
    """Test cycle starts on latest payday and spans the gap to the previous one"""
    window = resolve_cycle_window(biweekly_history, date(2024, 3, 1), TODAY)

    assert window.cycle_start == date(2024, 3, 18)
    assert window.cycle_length_days == 14
    assert window.cycle_end == date(2024, 3, 31)
    assert window.previous_cycle_start == date(2024, 3, 4)


def test_no_income_falls_back_to_calendar_month():
    """Test empty history uses the focus month boundaries"""
    window = resolve_cycle_window([], date(2024, 3, 1), TODAY)

    assert window.cycle_start == date(2024, 3, 1)
    assert window.cycle_end == date(2024, 3, 31)
    assert window.cycle_length_days == 31
    assert window.previous_cycle_start == date(2024, 1, 30)


def test_no_focus_month_uses_todays_month():
    window = resolve_cycle_window([], None, TODAY)

    assert window.cycle_start == date(2024, 3, 1)
    assert window.cycle_length_days == 31


def test_single_income_uses_month_length(tx):
    """Test one payday starts the cycle but the length comes from the month"""
    history = [tx("Employer", 2000, date(2024, 3, 10), "Income")]

    window = resolve_cycle_window(history, date(2024, 3, 1), TODAY)

    assert window.cycle_start == date(2024, 3, 10)
    assert window.cycle_length_days == 31
    assert window.cycle_end == date(2024, 4, 9)
    assert window.previous_cycle_start == date(2024, 2, 8)


def test_past_focus_month_catches_up_to_today():
    """Test a stale calendar window advances in whole cycles"""
    window = resolve_cycle_window([], date(2024, 2, 1), TODAY)

    # February 2024 has 29 days: 02-01..02-29, then 03-01..03-29
    assert window.cycle_length_days == 29
    assert window.cycle_start == date(2024, 3, 1)
    assert window.cycle_end == date(2024, 3, 29)


def test_stale_income_history_catches_up(tx):
    """Test paychecks that stopped arriving still yield a window covering today"""
    history = [
        tx("Employer", 1500, date(2024, 1, 5), "Income"),
        tx("Employer", 1500, date(2024, 1, 19), "Income"),
    ]

    window = resolve_cycle_window(history, date(2024, 3, 1), TODAY)

    assert window.cycle_start == date(2024, 3, 15)
    assert window.cycle_end == date(2024, 3, 28)
    assert window.previous_cycle_start == date(2024, 1, 5)


def test_short_gap_is_raised_to_minimum(tx):
    history = [
        tx("Refund", 20, date(2024, 3, 15), "Refund"),
        tx("Employer", 1500, date(2024, 3, 18), "Income"),
    ]

    window = resolve_cycle_window(history, date(2024, 3, 1), TODAY)

    assert window.cycle_length_days == 7
    assert window.cycle_end == date(2024, 3, 24)


def test_long_gap_is_capped(tx):
    history = [
        tx("Employer", 1500, date(2024, 1, 10), "Income"),
        tx("Employer", 1500, date(2024, 3, 10), "Income"),
    ]

    window = resolve_cycle_window(history, date(2024, 3, 1), TODAY)

    assert window.cycle_length_days == 45
    assert window.cycle_end == date(2024, 4, 23)


def test_future_focus_month_is_clamped_to_today():
    window = resolve_cycle_window([], date(2024, 4, 1), TODAY)

    assert window.cycle_start == TODAY
    assert window.cycle_length_days == 30
    assert window.cycle_end == date(2024, 4, 18)


def test_future_dated_income_is_ignored(tx):
    history = [
        tx("Employer", 1500, date(2024, 3, 4), "Income"),
        tx("Employer", 1500, date(2024, 3, 25), "Income"),
    ]

    window = resolve_cycle_window(history, date(2024, 3, 1), TODAY)

    assert window.cycle_start == date(2024, 3, 4)


@pytest.mark.parametrize(
    "income_days",
    [
        [],
        [date(2024, 3, 20)],
        [date(2023, 11, 1)],
        [date(2024, 3, 19), date(2024, 3, 20)],
        [date(2023, 12, 1), date(2024, 1, 30)],
        [date(2024, 2, 1), date(2024, 2, 15), date(2024, 3, 1)],
    ],
)
@pytest.mark.parametrize("focus_month", [None, date(2023, 6, 1), date(2024, 3, 1), date(2024, 9, 1)])
def test_window_always_contains_today(tx, income_days, focus_month):
    """Test cycle_start <= today <= cycle_end for any income history"""
    history = [tx("Employer", 1000, day, "Income") for day in income_days]

    window = resolve_cycle_window(history, focus_month, TODAY)

    assert window.cycle_start <= TODAY <= window.cycle_end
    assert 7 <= window.cycle_length_days <= 45
