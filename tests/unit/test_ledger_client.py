"""Unit tests for the ledger HTTP client"""

import httpx
import pytest
from datetime import datetime, timezone
from decimal import Decimal
from safespend.domain.exceptions import InvalidTransactionDataError, LedgerAPIError
from safespend.infrastructure.clients.ledger import LedgerClient, parse_balance, parse_transaction

BASE_URL = "http://ledger.test"
START = datetime(2024, 3, 1, tzinfo=timezone.utc)
END = datetime(2024, 4, 1, tzinfo=timezone.utc)

ROW = {
    "id": "tx_1",
    "account_id": "acct_checking",
    "merchant_name": "Corner Cafe",
    "amount": "-4.50",
    "currency": "USD",
    "occurred_at": "2024-03-18T12:00:00Z",
    "pending": False,
    "category": "Dining",
}


def make_client(handler) -> LedgerClient:
    client = LedgerClient(base_url=BASE_URL, transport=httpx.MockTransport(handler))
    client.backoff_base = 0
    return client


def test_parse_transaction():
    tx = parse_transaction(ROW)

    assert tx.id == "tx_1"
    assert tx.amount == Decimal("-4.50")
    assert tx.occurred_at == datetime(2024, 3, 18, 12, 0, tzinfo=timezone.utc)
    assert tx.pending is False
    assert tx.category == "Dining"


def test_parse_transaction_rejects_bad_rows():
    with pytest.raises(InvalidTransactionDataError):
        parse_transaction({**ROW, "amount": "not-a-number"})
    with pytest.raises(InvalidTransactionDataError):
        parse_transaction({k: v for k, v in ROW.items() if k != "occurred_at"})


async def test_get_transactions_sends_window_and_parses_rows():
    """Test query parameters and response parsing"""
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"transactions": [ROW, {**ROW, "id": "tx_2", "category": None}]})

    transactions = await make_client(handler).get_transactions("user_1", START, END)

    assert [tx.id for tx in transactions] == ["tx_1", "tx_2"]
    assert transactions[1].category is None
    request = seen[0]
    assert request.url.path == "/ledger/transactions"
    assert request.url.params["user_id"] == "user_1"
    assert request.url.params["from"] == START.isoformat()
    assert request.url.params["to"] == END.isoformat()


async def test_get_account_balances():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/ledger/accounts"
        return httpx.Response(
            200,
            json={"accounts": [{"id": "acct_checking", "balance": "1800.00"}, {"id": "acct_card", "balance": None}]},
        )

    balances = await make_client(handler).get_account_balances("user_1")

    assert balances[0].balance == Decimal("1800.00")
    assert balances[1].balance is None


async def test_retries_server_errors_then_succeeds():
    """Test 5xx responses are retried with backoff"""
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        if len(calls) < 3:
            return httpx.Response(503)
        return httpx.Response(200, json={"transactions": [ROW]})

    transactions = await make_client(handler).get_transactions("user_1", START, END)

    assert len(calls) == 3
    assert len(transactions) == 1


async def test_gives_up_after_max_retries():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(500)

    with pytest.raises(LedgerAPIError):
        await make_client(handler).get_transactions("user_1", START, END)
    assert len(calls) == 3


async def test_client_errors_are_not_retried():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(404, json={"detail": "unknown user"})

    with pytest.raises(LedgerAPIError):
        await make_client(handler).get_account_balances("ghost")
    assert len(calls) == 1


async def test_network_errors_are_retried():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(LedgerAPIError):
        await make_client(handler).get_transactions("user_1", START, END)
    assert len(calls) == 3


async def test_timeouts_fail_immediately():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        raise httpx.ReadTimeout("too slow", request=request)

    with pytest.raises(LedgerAPIError):
        await make_client(handler).get_transactions("user_1", START, END)
    assert len(calls) == 1


async def test_malformed_rows_raise_ledger_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"transactions": [{"id": "tx_1"}]})

    with pytest.raises(LedgerAPIError):
        await make_client(handler).get_transactions("user_1", START, END)


@pytest.mark.parametrize("amount", ["NaN", "Infinity", "-Infinity", "sNaN"])
def test_parse_transaction_rejects_non_finite_amounts(amount):
    with pytest.raises(InvalidTransactionDataError):
        parse_transaction({**ROW, "amount": amount})


def test_parse_balance_rejects_non_finite_balance():
    with pytest.raises(InvalidTransactionDataError):
        parse_balance({"id": "acct_checking", "balance": "Infinity"})


async def test_non_finite_amount_from_ledger_is_ledger_error():
    """Test a NaN amount in the payload is rejected before it reaches the engine"""
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"transactions": [{**ROW, "amount": "NaN"}]})

    with pytest.raises(LedgerAPIError):
        await make_client(handler).get_transactions("user_1", START, END)
