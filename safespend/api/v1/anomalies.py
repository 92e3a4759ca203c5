"""GET /v1/anomalies - unusual transactions in a month"""

import time
import logging
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query, Request

from safespend.api.v1.schemas import AnomaliesResponse, AnomalyInsightSchema
from safespend.api.dependencies import get_forecast_service, get_request_id
from safespend.services.forecast import ForecastService
from safespend.domain.exceptions import InvalidArgumentError, LedgerAPIError
from safespend.infrastructure.observability.metrics import record_anomalies, ledger_fetch_failures_counter
from safespend.infrastructure.observability.logging import log_anomalies
from safespend.utils.date_utils import first_day_of_month, parse_month

router = APIRouter()


@router.get("/anomalies", response_model=AnomaliesResponse)
async def get_anomalies(
    request: Request,
    user_id: str = Query(..., min_length=1, description="User identifier"),
    month: Optional[str] = Query(None, description="Month to scan as YYYY-MM (defaults to current month)"),
    service: ForecastService = Depends(get_forecast_service),
):
    """
    Flag transactions that deviate from the user's usual spend.

    Returns:
        Flagged transactions, newest first, with the scoring method and commentary
    """
    start_time = time.time()
    request_id = get_request_id(request)

    try:
        focus_month = parse_month(month) if month else first_day_of_month(service.clock.today())
        insights = await service.detect_anomalies(user_id, focus_month)

        record_anomalies(insights)
        log_anomalies(request_id, user_id, len(insights), (time.time() - start_time) * 1000)

        return AnomaliesResponse(
            user_id=user_id,
            month=focus_month.strftime("%Y-%m"),
            anomalies=[AnomalyInsightSchema.model_validate(i) for i in insights],
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
