"""Pytest fixtures for testing"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite:///./test.db")

import asyncio
import pytest
from decimal import Decimal
from typing import Generator, List
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from checkout_gateway.api.main import create_app
from checkout_gateway.config import settings
from checkout_gateway.domain.models import BillingCycle, GatewayParams, Package, Payer, PaymentType
from checkout_gateway.infrastructure.database.models import Base
from checkout_gateway.infrastructure.database.session import get_db
from checkout_gateway.infrastructure.storage import InMemorySessionStorage


# Test database
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class FakeClock:
    """Monotonic clock whose sleep advances time instantly"""

    def __init__(self, start: float = 0.0):
        self.now = start
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds
        await asyncio.sleep(0)


async def _instant_sleep(_seconds: float) -> None:
    await asyncio.sleep(0)


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create test database and session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db: Session, monkeypatch: pytest.MonkeyPatch) -> Generator[TestClient, None, None]:
    """Create FastAPI test client with test database and no queue spacing"""
    monkeypatch.setattr(settings, "queue_min_interval_seconds", 0.0)
    app = create_app()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def instant_sleep():
    """Sleep that yields to the loop without waiting"""
    return _instant_sleep


@pytest.fixture
def storage() -> InMemorySessionStorage:
    return InMemorySessionStorage()


@pytest.fixture
def payer() -> Payer:
    return Payer(id="user_42", email="asha@example.com", name="Asha Rao", phone="9876543210")


@pytest.fixture
def one_time_package() -> Package:
    return Package(
        id="pkg_starter",
        title="Influencer Starter Package",
        price=Decimal("999"),
        setup_fee=Decimal("20"),
        duration_months=12,
        payment_type=PaymentType.ONE_TIME,
        package_type="influencer",
    )


@pytest.fixture
def monthly_package() -> Package:
    return Package(
        id="pkg_growth_monthly",
        title="Business Growth (Monthly)",
        price=Decimal("1999"),
        monthly_price=Decimal("199"),
        setup_fee=Decimal("20"),
        duration_months=12,
        payment_type=PaymentType.RECURRING,
        billing_cycle=BillingCycle.MONTHLY,
        package_type="business",
    )


@pytest.fixture
def yearly_package() -> Package:
    return Package(
        id="pkg_premium_yearly",
        title="Premium Listing – Yearly ₹3,999",
        price=Decimal("3999"),
        setup_fee=Decimal("20"),
        duration_months=12,
        payment_type=PaymentType.RECURRING,
        billing_cycle=BillingCycle.YEARLY,
        advance_payment_months=1,
        package_type="business",
    )


@pytest.fixture
def gateway_params() -> GatewayParams:
    return GatewayParams(
        redirect_url="https://test.payu.in/_payment",
        fields={"key": "test_key", "txnid": "txn_1700000000000_0", "amount": "1019.00", "hash": "abc123"},
    )


@pytest.fixture
def checkout_body() -> dict:
    """Storefront-shaped checkout request (camelCase package)"""
    return {
        "package": {
            "id": "pkg_starter",
            "title": "Influencer Starter Package",
            "price": 999,
            "setupFee": 20,
            "durationMonths": 12,
            "paymentType": "one-time",
            "type": "influencer",
        },
        "user": {"id": "user_42", "email": "asha@example.com", "name": "Asha Rao", "phone": "9876543210"},
    }
