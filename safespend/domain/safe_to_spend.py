"""Safe-to-spend engine - combines pacing with a cash-based hard cap"""

from datetime import date
from decimal import Decimal
from typing import Iterable, List, Optional

from safespend.domain.budget import (
    DEFAULT_VARIABLE_BUDGET,
    estimate_variable_budget,
    posted_between,
    variable_spend_by_day,
)
from safespend.domain.cycle import resolve_cycle_window
from safespend.domain.exceptions import InvalidArgumentError
from safespend.domain.models import AccountBalance, PacingPolicy, SafeToSpendResult, Transaction
from safespend.domain.obligations import project_fixed_remaining, project_sinking_remaining
from safespend.domain.pacing import PacingResult, simulate_pacing
from safespend.utils.money import quantize, safe_amount, total

DEFAULT_BUFFER = Decimal("100.00")
AHEAD_OF_PLAN_PACE = Decimal("1.10")
BELOW_PLAN_PACE = Decimal("0.80")

NOTE_HARD_CAP_EXHAUSTED = "Hard cap exhausted; consider trimming, deferring, or substituting planned spends."
NOTE_AHEAD_OF_PLAN = "Variable spend is ahead of plan; dial back discretionary purchases."
NOTE_BELOW_PLAN = "Spending is below plan; consider allocating to sinking funds or future goals."
NOTE_BUDGET_ALLOCATED = "Variable budget fully allocated for this cycle."


def cash_on_hand(balances: Iterable[AccountBalance]) -> Decimal:
    """Sum of linked account balances; missing balances count as zero"""
    return total(quantize(b.balance) for b in balances if b.balance is not None)


def sum_future_income(transactions: Iterable[Transaction], today: date, cycle_end: date) -> Decimal:
    """Inflows dated after today and up to the cycle end"""
    return total(
        tx.amount for tx in transactions
        if tx.amount is not None and tx.amount > 0 and today < tx.occurred_on <= cycle_end
    )


def compute_hard_cap(
    cash: Decimal,
    future_income: Decimal,
    fixed_remaining: Decimal,
    sinking_remaining: Decimal,
    buffer: Decimal = DEFAULT_BUFFER,
) -> Decimal:
    """Absolute ceiling: cash plus incoming money minus known obligations and buffer"""
    return quantize(cash + future_income - fixed_remaining - sinking_remaining - buffer)


def clamp_to_hard_cap(pacing_amount: Decimal, hard_cap: Decimal) -> Decimal:
    """
    Limit the pacing allowance by the hard cap.

    A negative cap leaves the pacing value unclamped (the caller flags danger);
    the result is never negative.
    """
    amount = min(pacing_amount, hard_cap) if hard_cap >= 0 else pacing_amount
    return quantize(max(Decimal("0"), amount))


def build_notes(danger: bool, pace_ratio: Decimal, variable_remaining: Decimal) -> List[str]:
    notes = []
    if danger:
        notes.append(NOTE_HARD_CAP_EXHAUSTED)
    if pace_ratio > AHEAD_OF_PLAN_PACE:
        notes.append(NOTE_AHEAD_OF_PLAN)
    elif pace_ratio < BELOW_PLAN_PACE:
        notes.append(NOTE_BELOW_PLAN)
    if variable_remaining <= 0:
        notes.append(NOTE_BUDGET_ALLOCATED)
    return notes


def compose_safe_to_spend(
    pacing: PacingResult,
    hard_cap: Decimal,
    variable_budget: Decimal,
    variable_spent: Decimal,
) -> tuple[Decimal, bool, List[str]]:
    """
    Final safe amount, danger flag and advisory notes.

    Returns: (safe_to_spend_today, danger, notes)
    """
    safe = clamp_to_hard_cap(pacing.safe_to_spend_today, hard_cap)
    danger = hard_cap <= 0
    variable_remaining = max(Decimal("0"), variable_budget - variable_spent)
    return safe, danger, build_notes(danger, pacing.pace_ratio, variable_remaining)


def compute_safe_to_spend(
    history: Iterable[Transaction],
    balances: Iterable[AccountBalance],
    focus_month: Optional[date],
    today: date,
    policy: PacingPolicy = PacingPolicy(),
    buffer: Decimal = DEFAULT_BUFFER,
    default_budget: Decimal = DEFAULT_VARIABLE_BUDGET,
) -> SafeToSpendResult:
    """
    Main entry point: how much can be spent today without endangering the cycle.

    Flow:
    1. Resolve the pay-cycle window from income history
    2. Estimate the variable budget from the previous cycle
    3. Simulate pacing and rollover up to today
    4. Project remaining fixed and sinking obligations
    5. Build the hard cap and clamp the pacing allowance to it

    Raises:
        InvalidArgumentError: If history or balances is None, or an amount is not finite
    """
    if history is None:
        raise InvalidArgumentError("Transaction history is required")
    if balances is None:
        raise InvalidArgumentError("Account balances are required")
    history = list(history)
    malformed = [tx.id for tx in history if tx.amount is not None and safe_amount(tx.amount) is None]
    if malformed:
        raise InvalidArgumentError(f"Non-finite or malformed amounts on transactions: {malformed}")
    balances = list(balances)
    if any(b.balance is not None and safe_amount(b.balance) is None for b in balances):
        raise InvalidArgumentError("Non-finite or malformed account balance")

    window = resolve_cycle_window(history, focus_month, today)
    cycle_transactions = posted_between(history, window.cycle_start, window.cycle_end)

    variable_budget = estimate_variable_budget(history, window, default_budget)
    spend_by_day = variable_spend_by_day(cycle_transactions, window)
    variable_spent = total(amount for day, amount in spend_by_day.items() if day <= today)
    pacing = simulate_pacing(variable_budget, spend_by_day, window, today, policy)

    cash = cash_on_hand(balances)
    future_income = sum_future_income(cycle_transactions, today, window.cycle_end)
    fixed_remaining = project_fixed_remaining(history, window, today)
    sinking_remaining = project_sinking_remaining(history, window, today)
    hard_cap = compute_hard_cap(cash, future_income, fixed_remaining, sinking_remaining, buffer)

    safe, danger, notes = compose_safe_to_spend(pacing, hard_cap, variable_budget, variable_spent)
    variable_remaining = quantize(max(Decimal("0"), variable_budget - variable_spent))

    return SafeToSpendResult(
        cycle_start=window.cycle_start,
        cycle_end=window.cycle_end,
        safe_to_spend_today=safe,
        hard_cap=hard_cap,
        daily_base_allowance=quantize(pacing.daily_base),
        daily_adjusted_allowance=quantize(pacing.daily_adjusted),
        roll_today=quantize(pacing.roll),
        pace_ratio=quantize(pacing.pace_ratio),
        adjustment_factor=quantize(pacing.adjustment_factor),
        days_remaining=pacing.days_remaining,
        variable_budget=quantize(variable_budget),
        variable_spent=variable_spent,
        variable_remaining=variable_remaining,
        danger=danger,
        notes=notes,
        cash_on_hand=cash,
        future_income=future_income,
        fixed_remaining=fixed_remaining,
        sinking_remaining=sinking_remaining,
    )
