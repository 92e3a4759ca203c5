"""Adaptive daily allowance with bounded rollover of unspent money"""

from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal
from functools import partial, reduce
from itertools import accumulate
from typing import Dict, Iterator, List, Optional

from safespend.domain.models import CycleWindow, PacingPolicy
from safespend.utils.date_utils import days_between, generate_date_range
from safespend.utils.money import FOUR_PLACES, ZERO, divide, quantize

ONE = Decimal("1")
NEUTRAL_PACE = Decimal("1.0000")


@dataclass(frozen=True)
class DayPlan:
    """Allowance computed for a single day of the cycle"""

    day: date
    daily_base: Decimal
    pace_ratio: Decimal
    adjustment_factor: Decimal
    daily_adjusted: Decimal
    days_remaining: int
    spent: Decimal = ZERO
    roll: Decimal = ZERO  # end of day


@dataclass(frozen=True)
class RollState:
    """Accumulator carried from one simulated day to the next"""

    roll: Decimal = Decimal("0")
    spent_to_date: Decimal = Decimal("0")
    last_day: Optional[DayPlan] = None


@dataclass(frozen=True)
class PacingResult:
    daily_base: Decimal
    pace_ratio: Decimal
    adjustment_factor: Decimal
    daily_adjusted: Decimal
    roll: Decimal
    days_remaining: int
    spent_before_today: Decimal

    @property
    def safe_to_spend_today(self) -> Decimal:
        return quantize(self.daily_adjusted + self.roll)


def compute_pace_ratio(budget: Decimal, spent: Decimal, elapsed_days: int, total_days: int) -> Decimal:
    """
    Actual daily spend rate over planned daily spend rate.

    Planned rate is budget / total_days. Both rates are rounded to cents
    before dividing, the ratio to 4 places. Defaults to 1.0 when there is
    no budget to pace against.
    """
    if budget <= 0 or total_days <= 0:
        return NEUTRAL_PACE
    planned_daily = divide(budget, Decimal(total_days))
    if planned_daily == 0:
        return NEUTRAL_PACE
    actual_daily = divide(spent, Decimal(max(elapsed_days, 1)))
    return divide(actual_daily, planned_daily, FOUR_PLACES)


def adjustment_for(pace_ratio: Decimal, policy: PacingPolicy) -> Decimal:
    """Shrink the allowance when ahead of pace, grow it when behind, within bounds"""
    adjusted = ONE - policy.adjustment_coefficient * (pace_ratio - ONE)
    return min(policy.max_adjustment, max(policy.min_adjustment, adjusted))


def plan_day(
    budget: Decimal,
    spent_to_date: Decimal,
    day: date,
    window: CycleWindow,
    policy: PacingPolicy,
) -> DayPlan:
    """Base, pace and adjusted allowance for `day` given spend before it"""
    days_remaining = max(1, days_between(day, window.cycle_end) + 1)
    remaining_budget = max(Decimal("0"), budget - spent_to_date)
    daily_base = divide(remaining_budget, Decimal(days_remaining))

    elapsed = max(1, days_between(window.cycle_start, day))
    total_days = max(1, days_between(window.cycle_start, window.cycle_end) + 1)
    pace_ratio = compute_pace_ratio(budget, spent_to_date, elapsed, total_days)
    factor = adjustment_for(pace_ratio, policy)

    return DayPlan(
        day=day,
        daily_base=daily_base,
        pace_ratio=pace_ratio,
        adjustment_factor=factor,
        daily_adjusted=quantize(daily_base * factor),
        days_remaining=days_remaining,
    )


def step_day(
    state: RollState,
    day: date,
    *,
    budget: Decimal,
    spend_by_day: Dict[date, Decimal],
    window: CycleWindow,
    policy: PacingPolicy,
) -> RollState:
    """
    Simulate one elapsed day and return the next accumulator.

    Half of any unspent allowance (including carried roll) is added to the
    roll; overspend is taken out of it. The roll never drops below zero or
    rises above roll_cap_multiplier x the day's base allowance.
    """
    plan = plan_day(budget, state.spent_to_date, day, window, policy)
    spent = spend_by_day.get(day, Decimal("0"))
    leftover = plan.daily_adjusted + state.roll - spent

    roll = state.roll
    if leftover > 0:
        roll += leftover * policy.roll_carry_fraction
    elif leftover < 0:
        roll -= abs(leftover)
    roll_cap = quantize(plan.daily_base * policy.roll_cap_multiplier)
    roll = min(max(roll, Decimal("0")), roll_cap)

    recorded = DayPlan(
        day=plan.day,
        daily_base=plan.daily_base,
        pace_ratio=plan.pace_ratio,
        adjustment_factor=plan.adjustment_factor,
        daily_adjusted=plan.daily_adjusted,
        days_remaining=plan.days_remaining,
        spent=quantize(spent),
        roll=quantize(roll),
    )
    return RollState(roll=roll, spent_to_date=state.spent_to_date + spent, last_day=recorded)


def elapsed_days(window: CycleWindow, today: date) -> List[date]:
    """Cycle days strictly before today"""
    if today <= window.cycle_start:
        return []
    return generate_date_range(window.cycle_start, today - timedelta(days=1))


def iter_pacing_days(
    budget: Decimal,
    spend_by_day: Dict[date, Decimal],
    window: CycleWindow,
    today: date,
    policy: PacingPolicy = PacingPolicy(),
) -> Iterator[DayPlan]:
    """Yield the plan of every simulated day with its end-of-day roll"""
    step = partial(step_day, budget=budget, spend_by_day=spend_by_day, window=window, policy=policy)
    states = accumulate(elapsed_days(window, today), step, initial=RollState())
    next(states)
    for state in states:
        yield state.last_day


def simulate_pacing(
    budget: Decimal,
    spend_by_day: Dict[date, Decimal],
    window: CycleWindow,
    today: date,
    policy: PacingPolicy = PacingPolicy(),
) -> PacingResult:
    """
    Walk the cycle day by day up to today and produce today's allowance.

    Today's base, pace and adjustment use spend strictly before today;
    safe_to_spend_today is the adjusted allowance plus the carried roll.
    """
    step = partial(step_day, budget=budget, spend_by_day=spend_by_day, window=window, policy=policy)
    final = reduce(step, elapsed_days(window, today), RollState())
    today_plan = plan_day(budget, final.spent_to_date, today, window, policy)

    return PacingResult(
        daily_base=today_plan.daily_base,
        pace_ratio=today_plan.pace_ratio,
        adjustment_factor=today_plan.adjustment_factor,
        daily_adjusted=today_plan.daily_adjusted,
        roll=quantize(final.roll),
        days_remaining=today_plan.days_remaining,
        spent_before_today=quantize(final.spent_to_date),
    )
