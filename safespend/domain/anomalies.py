"""Statistical anomaly detection over merchant and category cohorts"""

import statistics
from collections import defaultdict
from datetime import datetime, timezone
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Tuple

from safespend.domain.categories import normalize_category
from safespend.domain.exceptions import InvalidArgumentError
from safespend.domain.models import AnomalyInsight, AnomalyMethod, Transaction
from safespend.utils.money import ZERO, quantize, safe_amount, to_decimal

# (transaction id, magnitude) pairs of one merchant or category
Cohort = List[Tuple[str, float]]

_OLDEST = datetime.min.replace(tzinfo=timezone.utc)


def _magnitude(tx: Transaction) -> Optional[Decimal]:
    """Absolute amount of an outflow, None for inflows or unusable amounts"""
    amount = safe_amount(tx.amount)
    if amount is None or amount >= 0:
        return None
    return abs(amount)


def _merchant_key(tx: Transaction) -> str:
    return (tx.merchant_name or "").strip().lower()


class AnomalyDetector:
    """Flags outflows that deviate from the user's usual spend at a merchant or in a category"""

    def __init__(self, zscore_threshold: float = 2.0, iqr_multiplier: float = 1.5, min_samples: int = 3):
        """
        Initialize anomaly detector

        Args:
            zscore_threshold: Absolute z-score at or above which a transaction is flagged
            iqr_multiplier: Fence width in interquartile ranges beyond Q1/Q3
            min_samples: Smallest cohort that counts as a usable baseline
        """
        self.zscore_threshold = zscore_threshold
        self.iqr_multiplier = iqr_multiplier
        self.min_samples = min_samples

    def detect(
        self,
        transactions: Iterable[Transaction],
        baseline: Optional[Iterable[Transaction]] = None,
    ) -> List[AnomalyInsight]:
        """
        Score every outflow in `transactions` against its cohort.

        The cohort is the baseline's other outflows at the same merchant, or in
        the same category when the merchant has fewer than min_samples. The
        baseline defaults to the transactions themselves. Transactions without
        a usable cohort are skipped.

        Returns:
            Flagged transactions, newest first
        """
        if transactions is None:
            raise InvalidArgumentError("Transactions are required for anomaly detection")

        window = [tx for tx in transactions if _magnitude(tx) is not None]
        if not window:
            return []

        reference: Dict[str, Transaction] = {}
        for tx in list(baseline or []) + window:
            if _magnitude(tx) is not None:
                reference.setdefault(tx.id, tx)

        by_merchant: Dict[str, Cohort] = defaultdict(list)
        by_category: Dict[str, Cohort] = defaultdict(list)
        for tx in reference.values():
            magnitude = float(_magnitude(tx))
            if _merchant_key(tx):
                by_merchant[_merchant_key(tx)].append((tx.id, magnitude))
            if normalize_category(tx.category):
                by_category[normalize_category(tx.category)].append((tx.id, magnitude))

        total_expense = sum((_magnitude(tx) for tx in window), Decimal("0"))

        insights = []
        for tx in window:
            cohort = self._cohort_for(tx, by_merchant, by_category)
            if cohort is None:
                continue
            insight = self._score(tx, cohort, total_expense)
            if insight is not None:
                insights.append(insight)

        insights.sort(key=lambda i: i.occurred_at or _OLDEST, reverse=True)
        return insights

    def _cohort_for(
        self,
        tx: Transaction,
        by_merchant: Dict[str, Cohort],
        by_category: Dict[str, Cohort],
    ) -> Optional[List[float]]:
        """Baseline magnitudes for tx, excluding tx itself"""
        for key, groups in ((_merchant_key(tx), by_merchant), (normalize_category(tx.category), by_category)):
            if not key:
                continue
            values = [magnitude for tx_id, magnitude in groups.get(key, []) if tx_id != tx.id]
            if len(values) >= self.min_samples:
                return values
        return None

    def _score(self, tx: Transaction, cohort: List[float], total_expense: Decimal) -> Optional[AnomalyInsight]:
        """
        Z-score first, then the IQR fences.

        A flat cohort (zero stdev) has no z-score but still has fences, so a
        spike on a normally constant charge is caught as an IQR hit. With no
        spread at all the IQR score is the raw distance beyond the fence anchor.
        """
        mean = statistics.fmean(cohort)
        stdev = statistics.stdev(cohort)

        magnitude = _magnitude(tx)
        value = float(magnitude)
        z_score = (value - mean) / stdev if stdev > 0 else 0.0

        q1, median, q3 = statistics.quantiles(cohort, n=4, method="inclusive")
        iqr = q3 - q1
        lower_fence = q1 - self.iqr_multiplier * iqr
        upper_fence = q3 + self.iqr_multiplier * iqr

        if stdev > 0 and abs(z_score) >= self.zscore_threshold:
            method, score, typical = AnomalyMethod.ZSCORE, z_score, mean
        elif value < lower_fence or value > upper_fence:
            scale = iqr or stdev
            anchor = q3 if value > upper_fence else q1
            distance = value - anchor
            method, typical = AnomalyMethod.IQR, median
            score = distance / scale if scale else distance
        else:
            return None

        delta = quantize(magnitude - to_decimal(typical))
        impact = quantize(magnitude / total_expense * 100) if total_expense > 0 else ZERO
        score_value = quantize(to_decimal(score))

        return AnomalyInsight(
            transaction_id=tx.id,
            method=method,
            score=score_value,
            amount=quantize(tx.amount),
            delta_amount=delta,
            budget_impact_percent=impact,
            merchant_name=tx.merchant_name,
            commentary=commentary_for(tx, method, score_value, quantize(to_decimal(typical)), delta, impact),
            occurred_at=tx.occurred_at,
        )


def commentary_for(
    tx: Transaction,
    method: AnomalyMethod,
    score: Decimal,
    typical: Decimal,
    delta: Decimal,
    impact: Decimal,
) -> str:
    """Short human-readable explanation of a flagged transaction"""
    if method is AnomalyMethod.ZSCORE:
        reason = f"z-score {score}"
    else:
        reason = f"outside the usual range, IQR score {score}"
    direction = "above" if delta >= 0 else "below"
    return (
        f"Unusual spend at {tx.merchant_name}: ${quantize(abs(tx.amount))} is ${abs(delta)} "
        f"{direction} the typical ${typical} ({reason}); {impact}% of spend this period"
    )


def detect_anomalies(
    transactions: Iterable[Transaction],
    baseline: Optional[Iterable[Transaction]] = None,
    **options,
) -> List[AnomalyInsight]:
    """Run an AnomalyDetector with the given options over one window"""
    return AnomalyDetector(**options).detect(transactions, baseline)
