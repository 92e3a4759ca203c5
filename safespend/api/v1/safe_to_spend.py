"""GET /v1/safe-to-spend - today's safe-to-spend for the current pay cycle"""

import time
import logging
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query, Request

from safespend.api.v1.schemas import SafeToSpendResponse
from safespend.api.dependencies import get_forecast_service, get_request_id
from safespend.services.forecast import ForecastService
from safespend.domain.exceptions import InvalidArgumentError, LedgerAPIError
from safespend.infrastructure.observability.metrics import record_forecast, ledger_fetch_failures_counter
from safespend.infrastructure.observability.logging import log_forecast
from safespend.utils.date_utils import parse_month

router = APIRouter()


@router.get("/safe-to-spend", response_model=SafeToSpendResponse)
async def get_safe_to_spend(
    request: Request,
    user_id: str = Query(..., min_length=1, description="User identifier"),
    month: Optional[str] = Query(None, description="Focus month as YYYY-MM (defaults to current month)"),
    service: ForecastService = Depends(get_forecast_service),
):
    """
    Compute how much the user can spend today.

    Flow:
    1. Fetch 120-day transaction history and account balances from the ledger
    2. Resolve the pay cycle and variable budget
    3. Simulate pacing/rollover and clamp to the cash hard cap
    4. Return the forecast with advisory notes
    """
    start_time = time.time()
    request_id = get_request_id(request)

    try:
        focus_month = parse_month(month) if month else None
        result = await service.compute_safe_to_spend(user_id, focus_month)

        duration_ms = (time.time() - start_time) * 1000
        record_forecast(result.danger, result.safe_to_spend_today)
        log_forecast(request_id, user_id, result.safe_to_spend_today, result.hard_cap, result.danger, duration_ms)

        return SafeToSpendResponse.model_validate(result)

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
