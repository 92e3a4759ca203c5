"""Dependency injection for FastAPI endpoints"""

from fastapi import Depends, Request
from safespend.infrastructure.clients.ledger import LedgerClient
from safespend.services.forecast import ForecastService
from safespend.utils.clock import Clock, SystemClock


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_ledger_client() -> LedgerClient:
    """Provide Ledger API client instance"""
    return LedgerClient()


def get_clock() -> Clock:
    """Provide the wall clock; tests override this with a FixedClock"""
    return SystemClock()


def get_forecast_service(
    ledger_client: LedgerClient = Depends(get_ledger_client),
    clock: Clock = Depends(get_clock),
) -> ForecastService:
    """Provide forecast service wired to the ledger and clock"""
    return ForecastService(ledger_client, clock)
