"""Pytest fixtures for testing"""

import pytest
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Generator
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from client_tracker.api.main import create_app
from client_tracker.api.dependencies import get_clock
from client_tracker.domain.models import Installment
from client_tracker.infrastructure.database.models import Base, Client, Payment
from client_tracker.infrastructure.database.repositories import OrderRepository
from client_tracker.infrastructure.database.session import get_db
from client_tracker.services.score_ledger import ScoreLedger


# Test database
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class FakeClock:
    """Settable clock; defaults to 2024-05-30 noon UTC"""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def set(self, year: int, month: int, day: int, hour: int = 12) -> None:
        self.now = datetime(year, month, day, hour, tzinfo=timezone.utc)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2024, 5, 30, 12, tzinfo=timezone.utc))


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
def session_factory(db: Session):
    """Factory for extra sessions on the test database (one per sweep item)"""
    return TestingSessionLocal


@pytest.fixture
def client(db: Session, clock: FakeClock) -> TestClient:
    """Create FastAPI test client with test database and fixed clock"""
    app = create_app()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: clock
    return TestClient(app)


@pytest.fixture
def make_client(db: Session, clock: FakeClock):
    """Factory for committed clients with an opening score"""

    def _make(name: str = "Ana Pérez", opening_score: int = 70) -> Client:
        return ScoreLedger(db, clock=clock).open_account(
            name=name,
            email=f"{name.lower().replace(' ', '.')}@example.com",
            opening_score=opening_score,
        )

    return _make


@pytest.fixture
def make_payment(db: Session):
    """Factory for a committed single-installment order; returns the payment"""

    def _make(client: Client, amount: str = "100.00", due_date: date = date(2024, 6, 1)) -> Payment:
        order = OrderRepository(db).create_order(
            client_id=client.id,
            total_amount=Decimal(amount),
            installments=[Installment(due_date=due_date, amount=Decimal(amount))],
        )
        db.commit()
        return db.query(Payment).filter(Payment.order_id == order.id).one()

    return _make
