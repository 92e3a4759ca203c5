"""Forecast service - gathers collaborator data and runs the pure engine"""

from datetime import date, timedelta
from typing import Iterable, List, Optional

from safespend.config import Settings, settings as default_settings
from safespend.domain.anomalies import AnomalyDetector
from safespend.domain.exceptions import InvalidArgumentError
from safespend.domain.models import AnalyticsSummary, AnomalyInsight, SafeToSpendResult, Transaction
from safespend.domain.safe_to_spend import compute_safe_to_spend
from safespend.domain.summary import build_summary
from safespend.infrastructure.clients.ledger import LedgerClient
from safespend.utils.clock import Clock
from safespend.utils.date_utils import first_day_of_month, month_bounds, start_of_day


def merge_transactions(history: Iterable[Transaction], extra: Optional[Iterable[Transaction]]) -> List[Transaction]:
    """History plus any extra transactions whose id it does not already contain"""
    merged = {tx.id: tx for tx in history}
    for tx in extra or []:
        merged.setdefault(tx.id, tx)
    return list(merged.values())


class ForecastService:
    """
    Entry point for callers that only know a user id and a month.

    Fetching happens here; every calculation is delegated to the
    synchronous, side-effect-free domain layer.
    """

    def __init__(self, ledger: LedgerClient, clock: Clock, settings: Settings | None = None):
        self.ledger = ledger
        self.clock = clock
        self.settings = settings or default_settings
        self.detector = AnomalyDetector(
            zscore_threshold=self.settings.zscore_threshold,
            iqr_multiplier=self.settings.iqr_multiplier,
            min_samples=self.settings.anomaly_min_samples,
        )

    async def fetch_history(self, user_id: str, today: date) -> List[Transaction]:
        """Transactions from history_window_days before today up to the end of today"""
        start = start_of_day(today - timedelta(days=self.settings.history_window_days))
        end = start_of_day(today + timedelta(days=1))
        return await self.ledger.get_transactions(user_id, start, end)

    async def fetch_month(self, user_id: str, month: date) -> List[Transaction]:
        start, end = month_bounds(month)
        return await self.ledger.get_transactions(user_id, start, end)

    async def compute_safe_to_spend(
        self,
        user_id: str,
        focus_month: Optional[date] = None,
        transactions_for_month: Optional[List[Transaction]] = None,
        history: Optional[List[Transaction]] = None,
    ) -> SafeToSpendResult:
        """
        Safe-to-spend for the user's current pay cycle.

        Month transactions supplied by the caller are merged into the
        history so that rows outside the history window still count. A
        history already fetched by the caller is reused as is.
        """
        _require_user(user_id)
        today = self.clock.today()

        if history is None:
            history = await self.fetch_history(user_id, today)
        balances = await self.ledger.get_account_balances(user_id)

        return compute_safe_to_spend(
            merge_transactions(history, transactions_for_month),
            balances,
            first_day_of_month(focus_month) if focus_month else None,
            today,
            policy=self.settings.pacing_policy(),
            buffer=self.settings.safety_buffer,
            default_budget=self.settings.default_variable_budget,
        )

    async def detect_anomalies(
        self,
        user_id: str,
        focus_month: Optional[date] = None,
        transactions: Optional[List[Transaction]] = None,
        history: Optional[List[Transaction]] = None,
    ) -> List[AnomalyInsight]:
        """
        Anomalies among the focus month's transactions.

        Cohorts are built from the history window plus the month itself;
        budget impact is measured against the month's total outflow.
        """
        _require_user(user_id)
        today = self.clock.today()
        month = first_day_of_month(focus_month or today)

        if transactions is None:
            transactions = await self.fetch_month(user_id, month)
        if history is None:
            history = await self.fetch_history(user_id, today)
        return self.detector.detect(transactions, baseline=merge_transactions(history, transactions))

    async def build_summary(
        self,
        user_id: str,
        focus_month: Optional[date] = None,
        trace_id: Optional[str] = None,
    ) -> AnalyticsSummary:
        """Month totals, breakdowns, anomalies and the current forecast from one history fetch"""
        _require_user(user_id)
        today = self.clock.today()
        month = first_day_of_month(focus_month or today)

        transactions = await self.fetch_month(user_id, month)
        history = await self.fetch_history(user_id, today)
        anomalies = await self.detect_anomalies(user_id, month, transactions, history)
        safe_to_spend = await self.compute_safe_to_spend(user_id, month, transactions, history)
        return build_summary(month, transactions, anomalies, safe_to_spend, trace_id)


def _require_user(user_id: str) -> None:
    if not user_id or not user_id.strip():
        raise InvalidArgumentError("user_id is required")
