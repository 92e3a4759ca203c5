"""Domain models - pure Python dataclasses representing forecast inputs and results"""

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import List, Optional


class CategoryClass(str, Enum):
    """Spending class a free-text category maps to"""

    FIXED = "FIXED"
    SINKING = "SINKING"
    VARIABLE = "VARIABLE"


class AnomalyMethod(str, Enum):
    ZSCORE = "ZSCORE"
    IQR = "IQR"


@dataclass(frozen=True)
class Transaction:
    """Ledger transaction; positive amount is an inflow, negative an outflow"""

    id: str
    account_id: str
    merchant_name: str
    amount: Decimal
    currency: str
    occurred_at: datetime
    pending: bool = False
    category: Optional[str] = None

    @property
    def occurred_on(self) -> date:
        """Calendar date of the transaction in UTC"""
        if self.occurred_at.tzinfo is None:
            return self.occurred_at.date()
        return self.occurred_at.astimezone(timezone.utc).date()


@dataclass(frozen=True)
class AccountBalance:
    """Current balance of one linked account"""

    account_id: str
    balance: Optional[Decimal]


@dataclass(frozen=True)
class CycleWindow:
    """Current and previous pay-cycle boundaries"""

    cycle_start: date
    cycle_end: date
    previous_cycle_start: date
    cycle_length_days: int


@dataclass(frozen=True)
class PacingPolicy:
    """
    Tunable heuristics for the pacing simulator.

    Defaults reproduce the long-standing production constants.
    """

    adjustment_coefficient: Decimal = Decimal("0.5")
    min_adjustment: Decimal = Decimal("0.85")
    max_adjustment: Decimal = Decimal("1.15")
    roll_cap_multiplier: Decimal = Decimal("1.5")
    roll_carry_fraction: Decimal = Decimal("0.5")


@dataclass(frozen=True)
class SafeToSpendResult:
    """Output of a safe-to-spend computation"""

    cycle_start: date
    cycle_end: date
    safe_to_spend_today: Decimal
    hard_cap: Decimal
    daily_base_allowance: Decimal
    daily_adjusted_allowance: Decimal
    roll_today: Decimal
    pace_ratio: Decimal
    adjustment_factor: Decimal
    days_remaining: int
    variable_budget: Decimal
    variable_spent: Decimal
    variable_remaining: Decimal
    danger: bool
    notes: List[str] = field(default_factory=list)
    cash_on_hand: Decimal = Decimal("0.00")
    future_income: Decimal = Decimal("0.00")
    fixed_remaining: Decimal = Decimal("0.00")
    sinking_remaining: Decimal = Decimal("0.00")


@dataclass(frozen=True)
class AnomalyInsight:
    """A transaction flagged as unusual against its cohort"""

    transaction_id: str
    method: AnomalyMethod
    score: Decimal
    amount: Decimal
    delta_amount: Decimal
    budget_impact_percent: Decimal
    merchant_name: str
    commentary: str
    occurred_at: Optional[datetime] = None


@dataclass(frozen=True)
class Totals:
    income: Decimal
    expense: Decimal
    net: Decimal


@dataclass(frozen=True)
class CategoryBreakdown:
    category: str
    amount: Decimal
    percentage: Decimal


@dataclass(frozen=True)
class MerchantBreakdown:
    merchant: str
    amount: Decimal
    transaction_count: int


@dataclass(frozen=True)
class AnalyticsSummary:
    """Monthly overview combining totals, breakdowns, anomalies and the forecast"""

    month: date
    totals: Totals
    categories: List[CategoryBreakdown]
    merchants: List[MerchantBreakdown]
    anomalies: List[AnomalyInsight]
    safe_to_spend: Optional[SafeToSpendResult] = None
    trace_id: Optional[str] = None
