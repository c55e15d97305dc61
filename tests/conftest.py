"""Pytest fixtures for testing"""

import pytest
from datetime import date
from typing import Generator, List
import httpx
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from planning_gateway.api.dependencies import get_ledger_client, get_today
from planning_gateway.api.main import create_app
from planning_gateway.infrastructure.clients.ledger import LedgerClient
from planning_gateway.infrastructure.database.models import Base
from planning_gateway.infrastructure.database.session import get_db, get_session_factory
from planning_gateway.services.debts import add_debt_account


# Test database
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Reference date for every schedule generated in tests
TODAY = date(2025, 1, 1)


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
def session_factory() -> sessionmaker:
    """Factory for additional sessions on the test database"""
    return TestingSessionLocal


@pytest.fixture
def ledger_requests() -> List[httpx.Request]:
    """Requests the fake ledger received"""
    return []


@pytest.fixture
def ledger_client(ledger_requests: List[httpx.Request]) -> LedgerClient:
    """Ledger client whose transport records requests and always accepts"""

    def handler(request: httpx.Request) -> httpx.Response:
        ledger_requests.append(request)
        return httpx.Response(200, json={"status": "accepted"})

    return LedgerClient(
        webhook_url="http://ledger.test/mock-ledger",
        backoff_base=0,
        transport=httpx.MockTransport(handler),
    )


@pytest.fixture
def client(db: Session, ledger_client: LedgerClient) -> TestClient:
    """Create FastAPI test client with test database"""
    app = create_app()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: TestingSessionLocal
    app.dependency_overrides[get_ledger_client] = lambda: ledger_client
    app.dependency_overrides[get_today] = lambda: TODAY
    return TestClient(app)


@pytest.fixture
def car_loan(db: Session):
    """120000-cent loan at 12% APR, 5000 minimum, due on the 15th"""
    debt = add_debt_account(
        db,
        name="Car loan",
        type="loan",
        principal_cents=120000,
        interest_rate=12,
        min_monthly_payment_cents=5000,
        due_day=15,
        start_date=TODAY,
    )
    db.commit()
    return debt


@pytest.fixture
def car_loan_payload() -> dict:
    """Wire payload for the same loan, money in major units"""
    return {
        "name": "Car loan",
        "type": "loan",
        "principal": 1200,
        "interestRate": 12,
        "minMonthlyPayment": 50,
        "dueDay": 15,
        "startDate": TODAY.isoformat(),
    }
