"""Ledger API HTTP client for transaction history and account balances"""

import asyncio
import logging
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List

import httpx

from safespend.config import settings
from safespend.domain.exceptions import InvalidTransactionDataError, LedgerAPIError
from safespend.domain.models import AccountBalance, Transaction
from safespend.infrastructure.observability.metrics import ledger_latency_histogram


def parse_transaction(raw: Dict[str, Any]) -> Transaction:
    """
    Build a Transaction from one ledger payload row.

    Raises:
        InvalidTransactionDataError: On missing fields or unparseable values
    """
    try:
        occurred_at = datetime.fromisoformat(raw["occurred_at"].replace("Z", "+00:00"))
        amount = Decimal(str(raw["amount"]))
        if not amount.is_finite():
            raise ValueError(f"non-finite amount {raw['amount']!r}")
        return Transaction(
            id=str(raw["id"]),
            account_id=str(raw["account_id"]),
            merchant_name=raw.get("merchant_name") or "",
            amount=amount,
            currency=raw.get("currency", "USD"),
            occurred_at=occurred_at,
            pending=bool(raw.get("pending", False)),
            category=raw.get("category"),
        )
    except (KeyError, ValueError, TypeError, ArithmeticError, AttributeError) as e:
        raise InvalidTransactionDataError(f"Invalid transaction row: {e}") from e


def parse_balance(raw: Dict[str, Any]) -> AccountBalance:
    try:
        balance = raw.get("balance")
        amount = Decimal(str(balance)) if balance is not None else None
        if amount is not None and not amount.is_finite():
            raise ValueError(f"non-finite balance {balance!r}")
        return AccountBalance(account_id=str(raw["id"]), balance=amount)
    except (KeyError, ValueError, TypeError, ArithmeticError) as e:
        raise InvalidTransactionDataError(f"Invalid account row: {e}") from e


class LedgerClient:
    """Client for the external ledger service that owns transactions and accounts"""

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url or settings.ledger_api_base
        self.timeout = timeout or settings.http_timeout_seconds
        self.max_retries = settings.ledger_max_retries
        self.backoff_base = settings.ledger_backoff_base
        self.transport = transport

    async def get_transactions(self, user_id: str, start: datetime, end: datetime) -> List[Transaction]:
        """
        Fetch all transactions (pending and posted) with occurred_at in [start, end).

        Raises:
            LedgerAPIError: On timeout, HTTP errors, or invalid response
        """
        data = await self._get(
            "/ledger/transactions",
            {"user_id": user_id, "from": start.isoformat(), "to": end.isoformat()},
        )
        try:
            return [parse_transaction(txn) for txn in data.get("transactions", [])]
        except InvalidTransactionDataError as e:
            raise LedgerAPIError(f"Invalid transaction data from ledger: {e}") from e

    async def get_account_balances(self, user_id: str) -> List[AccountBalance]:
        """
        Fetch current balances of the user's linked accounts.

        Raises:
            LedgerAPIError: On timeout, HTTP errors, or invalid response
        """
        data = await self._get("/ledger/accounts", {"user_id": user_id})
        try:
            return [parse_balance(account) for account in data.get("accounts", [])]
        except InvalidTransactionDataError as e:
            raise LedgerAPIError(f"Invalid account data from ledger: {e}") from e

    async def _get(self, path: str, params: Dict[str, str]) -> Dict[str, Any]:
        """
        GET a JSON document with retry logic.

        Retry strategy:
        - Exponential backoff: base, 2x base, 4x base ...
        - Retries on 5xx errors and network failures
        - 4xx responses and timeouts fail immediately
        """
        attempt = 0
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            while True:
                try:
                    with ledger_latency_histogram.time():
                        response = await client.get(f"{self.base_url}{path}", params=params)
                    response.raise_for_status()
                    return response.json()

                except httpx.TimeoutException as e:
                    raise LedgerAPIError(f"Ledger API timeout after {self.timeout}s") from e
                except httpx.HTTPStatusError as e:
                    if e.response.status_code < 500 or attempt + 1 >= self.max_retries:
                        raise LedgerAPIError(f"Ledger API error: {e.response.status_code}") from e
                except httpx.RequestError as e:
                    if attempt + 1 >= self.max_retries:
                        raise LedgerAPIError(f"Ledger API unreachable: {e}") from e
                except ValueError as e:
                    raise LedgerAPIError(f"Ledger API returned invalid JSON: {e}") from e

                attempt += 1
                backoff = self.backoff_base * (2 ** (attempt - 1))
                logging.warning(
                    f"Ledger request failed, retrying in {backoff}s",
                    extra={"path": path, "attempt": attempt},
                )
                await asyncio.sleep(backoff)
