"""Prometheus metrics for forecast outcomes, anomaly volume and ledger performance"""

from decimal import Decimal
from typing import Iterable

from prometheus_client import Counter, Histogram

from safespend.domain.models import AnomalyInsight

# Forecast metrics
forecast_counter = Counter(
    "safespend_forecast_total",
    "Total safe-to-spend computations",
    ["outcome"],  # safe | danger
)

safe_to_spend_histogram = Histogram(
    "safespend_safe_to_spend_amount",
    "Safe-to-spend amounts returned, in currency units",
    buckets=[0, 10, 25, 50, 100, 250, 500, 1000],
)

# Anomaly metrics
anomaly_counter = Counter(
    "safespend_anomalies_flagged_total",
    "Transactions flagged as anomalous",
    ["method"],  # ZSCORE | IQR
)

# Ledger API metrics
ledger_latency_histogram = Histogram(
    "ledger_latency_seconds",
    "Ledger API response time",
    buckets=[0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

ledger_fetch_failures_counter = Counter(
    "ledger_fetch_failures_total",
    "Failed ledger API calls",
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_forecast(danger: bool, safe_to_spend_today: Decimal) -> None:
    """Record forecast metrics for monitoring how often users hit their hard cap"""
    forecast_counter.labels(outcome="danger" if danger else "safe").inc()
    safe_to_spend_histogram.observe(float(safe_to_spend_today))


def record_anomalies(insights: Iterable[AnomalyInsight]) -> None:
    for insight in insights:
        anomaly_counter.labels(method=insight.method.value).inc()
