"""Pytest fixtures for testing"""

import uuid
import pytest
from datetime import date, datetime, time, timezone
from decimal import Decimal
from typing import Callable, List, Optional
from fastapi.testclient import TestClient
from safespend.api.main import create_app
from safespend.api.dependencies import get_clock, get_ledger_client
from safespend.domain.models import AccountBalance, Transaction
from safespend.utils.clock import FixedClock


TODAY = date(2024, 3, 20)


def make_transaction(
    merchant: str,
    amount,
    day: date,
    category: Optional[str] = "Misc",
    pending: bool = False,
    tx_id: Optional[str] = None,
) -> Transaction:
    """Build a transaction at noon UTC on `day`"""
    return Transaction(
        id=tx_id or str(uuid.uuid4()),
        account_id="acct_checking",
        merchant_name=merchant,
        amount=amount if amount is None or isinstance(amount, Decimal) else Decimal(str(amount)),
        currency="USD",
        occurred_at=datetime.combine(day, time(12, 0), tzinfo=timezone.utc),
        pending=pending,
        category=category,
    )


class FakeLedgerClient:
    """In-memory stand-in for LedgerClient"""

    def __init__(self, transactions: List[Transaction], balances: List[AccountBalance]):
        self.transactions = transactions
        self.balances = balances
        self.calls: List[tuple] = []

    async def get_transactions(self, user_id: str, start: datetime, end: datetime) -> List[Transaction]:
        self.calls.append(("transactions", user_id, start, end))
        return [tx for tx in self.transactions if start <= tx.occurred_at < end]

    async def get_account_balances(self, user_id: str) -> List[AccountBalance]:
        self.calls.append(("balances", user_id))
        return list(self.balances)


@pytest.fixture
def tx() -> Callable[..., Transaction]:
    """Transaction factory"""
    return make_transaction


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(datetime.combine(TODAY, time(9, 30), tzinfo=timezone.utc))


@pytest.fixture
def biweekly_history() -> List[Transaction]:
    """
    Paid $2200 every two weeks, $900 rent and $120 vacation savings monthly,
    $150 of groceries in the previous cycle.
    """
    current_income = date(2024, 3, 18)
    previous_income = date(2024, 3, 4)
    return [
        make_transaction("Employer Payroll", 2200, current_income, "Income"),
        make_transaction("Employer Payroll", 2200, previous_income, "Income"),
        make_transaction("Local Rent Co", -900, date(2024, 3, 2), "Housing"),
        make_transaction("Local Rent Co", -900, date(2024, 2, 1), "Housing"),
        make_transaction("Vacation Fund", -120, date(2024, 2, 23), "Sinking"),
        make_transaction("Vacation Fund", -120, date(2024, 1, 24), "Sinking"),
        make_transaction("Trader Joes", -150, date(2024, 3, 7), "Groceries"),
    ]


@pytest.fixture
def checking_balance() -> List[AccountBalance]:
    return [AccountBalance(account_id="acct_checking", balance=Decimal("1800.00"))]


@pytest.fixture
def ledger(biweekly_history, checking_balance) -> FakeLedgerClient:
    return FakeLedgerClient(biweekly_history, checking_balance)


@pytest.fixture
def client(ledger: FakeLedgerClient, clock: FixedClock) -> TestClient:
    """Create FastAPI test client backed by the in-memory ledger and a fixed clock"""
    app = create_app()
    app.dependency_overrides[get_ledger_client] = lambda: ledger
    app.dependency_overrides[get_clock] = lambda: clock
    return TestClient(app)
