"""GET /v1/analytics/summary - month overview with forecast and anomalies"""

import logging
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query, Request

from safespend.api.v1.schemas import (
    AnomalyInsightSchema,
    CategoryBreakdownSchema,
    MerchantBreakdownSchema,
    SafeToSpendResponse,
    SummaryResponse,
    TotalsSchema,
)
from safespend.api.dependencies import get_forecast_service, get_request_id
from safespend.services.forecast import ForecastService
from safespend.domain.exceptions import InvalidArgumentError, LedgerAPIError
from safespend.infrastructure.observability.metrics import (
    ledger_fetch_failures_counter,
    record_anomalies,
    record_forecast,
)
from safespend.utils.date_utils import parse_month

router = APIRouter()


@router.get("/analytics/summary", response_model=SummaryResponse)
async def get_summary(
    request: Request,
    user_id: str = Query(..., min_length=1, description="User identifier"),
    month: Optional[str] = Query(None, description="Month as YYYY-MM (defaults to current month)"),
    service: ForecastService = Depends(get_forecast_service),
):
    """
    Month totals, top categories and merchants, anomalies and today's forecast.

    The request ID is echoed back as trace_id.
    """
    request_id = get_request_id(request)

    try:
        focus_month = parse_month(month) if month else None
        summary = await service.build_summary(user_id, focus_month, trace_id=request_id)

        record_anomalies(summary.anomalies)
        if summary.safe_to_spend is not None:
            record_forecast(summary.safe_to_spend.danger, summary.safe_to_spend.safe_to_spend_today)

        return SummaryResponse(
            month=summary.month.strftime("%Y-%m"),
            totals=TotalsSchema.model_validate(summary.totals),
            categories=[CategoryBreakdownSchema.model_validate(c) for c in summary.categories],
            merchants=[MerchantBreakdownSchema.model_validate(m) for m in summary.merchants],
            anomalies=[AnomalyInsightSchema.model_validate(a) for a in summary.anomalies],
            safe_to_spend=(
                SafeToSpendResponse.model_validate(summary.safe_to_spend)
                if summary.safe_to_spend is not None
                else None
            ),
            trace_id=summary.trace_id,
        )

    except LedgerAPIError as e:
        ledger_fetch_failures_counter.inc()
        logging.error(f"Ledger API error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=503, detail="Ledger service unavailable")

    except InvalidArgumentError as e:
        logging.warning(f"Invalid argument: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=400, detail=str(e))

    except Exception as e:
        logging.exception(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")
