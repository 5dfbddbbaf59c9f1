"""Pytest fixtures for testing"""

import pytest
import httpx
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock
from fastapi import FastAPI

from approval_engine.domain.models import CardRequest, CardStatus, LoanApplication, LoanStatus
from approval_engine.infrastructure.clients.approvals import ApprovalClient
from mock_services.approval_api.main import create_app
from mock_services.approval_api.store import ApprovalStore, make_card, make_loan

FIXED_NOW = datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)


class FakeClock:
    """Monotonic clock the test advances by hand"""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def fixed_now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store() -> ApprovalStore:
    """Empty mock API store"""
    return ApprovalStore()


@pytest.fixture
def api_app(store: ApprovalStore) -> FastAPI:
    return create_app(store)


@pytest.fixture
def api_client(api_app: FastAPI) -> ApprovalClient:
    """Real client talking to the in-process mock API"""
    return ApprovalClient(
        base_url="http://testserver/api",
        token="test-token",
        transport=httpx.ASGITransport(app=api_app),
    )


@pytest.fixture
def mock_client() -> AsyncMock:
    """Client double for tests that must count network calls"""
    client = AsyncMock(spec=ApprovalClient)
    client.set_loan_status.return_value = None
    client.set_card_status.return_value = None
    return client


@pytest.fixture
def pending_loan_store(store: ApprovalStore) -> ApprovalStore:
    """25 pending loans plus a few already decided ones"""
    base = datetime.now(timezone.utc) - timedelta(days=40)
    store.add_loans(*(make_loan(f"L{i}", amount=100_000 * i, applied=base + timedelta(days=i)) for i in range(1, 26)))
    store.add_loans(
        make_loan("D1", status="approved", applied=base),
        make_loan("D2", status="rejected", applied=base),
    )
    return store


@pytest.fixture
def card_store(store: ApprovalStore) -> ApprovalStore:
    now = datetime.now(timezone.utc)
    store.add_cards(
        make_card("C1", user_id="U1", card_type="credit", status="blocked", created=now - timedelta(days=1)),
        make_card("C2", user_id="U2", card_type="debit", status="pending", created=now - timedelta(days=2)),
        make_card("C3", user_id="U3", card_type="prepaid", status="suspended", created=now - timedelta(days=3)),
    )
    return store


def _loan(loan_id: str = "L1", status: LoanStatus = LoanStatus.PENDING, amount: float = 250_000) -> LoanApplication:
    return LoanApplication(
        id=loan_id,
        status=status,
        amount=amount,
        loan_type="personal",
        application_date=FIXED_NOW - timedelta(days=3),
    )


def _card(
    card_id: str = "C1",
    status: CardStatus = CardStatus.BLOCKED,
    card_type: str = "debit",
    age_days: float = 1,
    user_id: str = "U1",
) -> CardRequest:
    return CardRequest(
        id=card_id,
        user_id=user_id,
        status=status,
        card_type=card_type,
        created_at=FIXED_NOW - timedelta(days=age_days),
    )


@pytest.fixture
def loan_view():
    """Factory for cached loan views"""
    return _loan


@pytest.fixture
def card_view():
    """Factory for cached card views"""
    return _card
