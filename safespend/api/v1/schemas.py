"""Pydantic schemas for API response serialization"""

from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict

from safespend.domain.models import AnomalyMethod


class SafeToSpendResponse(BaseModel):
    """Response for GET /v1/safe-to-spend"""

    model_config = ConfigDict(from_attributes=True)

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
    notes: List[str]
    cash_on_hand: Decimal
    future_income: Decimal
    fixed_remaining: Decimal
    sinking_remaining: Decimal


class AnomalyInsightSchema(BaseModel):
    """Single flagged transaction"""

    model_config = ConfigDict(from_attributes=True)

    transaction_id: str
    method: AnomalyMethod
    score: Decimal
    amount: Decimal
    delta_amount: Decimal
    budget_impact_percent: Decimal
    merchant_name: str
    commentary: str
    occurred_at: Optional[datetime] = None


class AnomaliesResponse(BaseModel):
    """Response for GET /v1/anomalies"""

    user_id: str
    month: str
    anomalies: List[AnomalyInsightSchema]


class TotalsSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    income: Decimal
    expense: Decimal
    net: Decimal


class CategoryBreakdownSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    category: str
    amount: Decimal
    percentage: Decimal


class MerchantBreakdownSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    merchant: str
    amount: Decimal
    transaction_count: int


class SummaryResponse(BaseModel):
    """Response for GET /v1/analytics/summary"""

    model_config = ConfigDict(from_attributes=True)

    month: str
    totals: TotalsSchema
    categories: List[CategoryBreakdownSchema]
    merchants: List[MerchantBreakdownSchema]
    anomalies: List[AnomalyInsightSchema]
    safe_to_spend: Optional[SafeToSpendResponse] = None
    trace_id: Optional[str] = None
