"""Monthly totals and spending breakdowns"""

from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional

from safespend.domain.models import (
    AnalyticsSummary,
    AnomalyInsight,
    CategoryBreakdown,
    MerchantBreakdown,
    SafeToSpendResult,
    Totals,
    Transaction,
)
from safespend.utils.money import ZERO, quantize, total

TOP_CATEGORIES = 8
TOP_MERCHANTS = 5
UNCATEGORIZED = "Uncategorized"


def _usable(transactions: List[Transaction]) -> List[Transaction]:
    return [tx for tx in transactions if tx.amount is not None]


def calculate_totals(transactions: List[Transaction]) -> Totals:
    """Income (inflows), expense (outflows, negative) and net"""
    usable = _usable(transactions)
    income = total(tx.amount for tx in usable if tx.amount > 0)
    expense = total(tx.amount for tx in usable if tx.amount < 0)
    return Totals(income=income, expense=expense, net=quantize(income + expense))


def calculate_category_breakdown(transactions: List[Transaction], limit: int = TOP_CATEGORIES) -> List[CategoryBreakdown]:
    """
    Net amount per category for categories that net to an expense.

    Percentage is each category's share of the summed category expenses.
    Largest first, at most `limit` entries.
    """
    grouped: Dict[str, Decimal] = defaultdict(lambda: Decimal("0"))
    for tx in _usable(transactions):
        grouped[tx.category or UNCATEGORIZED] += tx.amount

    expenses = {category: amount for category, amount in grouped.items() if amount < 0}
    total_expense = sum((abs(amount) for amount in expenses.values()), Decimal("0"))

    breakdown = [
        CategoryBreakdown(
            category=category,
            amount=quantize(amount),
            percentage=quantize(abs(amount) * 100 / total_expense) if total_expense else ZERO,
        )
        for category, amount in expenses.items()
    ]
    breakdown.sort(key=lambda b: abs(b.amount), reverse=True)
    return breakdown[:limit]


def calculate_top_merchants(transactions: List[Transaction], limit: int = TOP_MERCHANTS) -> List[MerchantBreakdown]:
    """Merchants ranked by absolute net amount, with transaction counts"""
    by_merchant: Dict[str, List[Transaction]] = defaultdict(list)
    for tx in _usable(transactions):
        by_merchant[tx.merchant_name].append(tx)

    merchants = [
        MerchantBreakdown(
            merchant=merchant,
            amount=total(tx.amount for tx in txs),
            transaction_count=len(txs),
        )
        for merchant, txs in by_merchant.items()
    ]
    merchants.sort(key=lambda m: abs(m.amount), reverse=True)
    return merchants[:limit]


def build_summary(
    month: date,
    transactions: List[Transaction],
    anomalies: List[AnomalyInsight],
    safe_to_spend: Optional[SafeToSpendResult] = None,
    trace_id: Optional[str] = None,
) -> AnalyticsSummary:
    return AnalyticsSummary(
        month=month,
        totals=calculate_totals(transactions),
        categories=calculate_category_breakdown(transactions),
        merchants=calculate_top_merchants(transactions),
        anomalies=anomalies,
        safe_to_spend=safe_to_spend,
        trace_id=trace_id,
    )
