"""Pytest configuration: in-memory database, controllable clock, lease services."""

import os

# Set test database URL BEFORE any imports from src
# This ensures the module-level engine never touches a real database file
os.environ["DATABASE_URL"] = "sqlite:///:memory:"

import pytest  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

from src.models import Base  # noqa: E402
from src.services import build_engine  # noqa: E402
from src.services.agreement_service import (  # noqa: E402
    UNIT_SCALE,
    AgreementLockRegistry,
    AgreementService,
    EventPublisher,
)
from src.services.config import LeaseSettings  # noqa: E402
from src.services.ledger_service import LedgerService  # noqa: E402
from src.services.payment_service import PaymentService  # noqa: E402
from src.services.termination_service import TerminationService  # noqa: E402

LANDLORD = "acct-landlord"
TENANT = "acct-tenant"
STRANGER = "acct-stranger"
START_TIME = 1_700_000_000
DAY = 86_400


class FakeClock:
    """Deterministic clock returning epoch seconds."""

    def __init__(self, now: int = START_TIME):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: int) -> None:
        self.now += seconds


@pytest.fixture
def db_engine():
    """Create an in-memory engine with all lease tables."""
    engine = build_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db_session(db_engine):
    """Create test database session."""
    SessionLocal = sessionmaker(bind=db_engine, autoflush=False)
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def settings():
    """Default lease settings, isolated from any .env file."""
    return LeaseSettings(_env_file=None)


@pytest.fixture
def publisher():
    return EventPublisher()


@pytest.fixture
def service_kwargs(db_session, clock, settings, publisher):
    return {
        "db": db_session,
        "clock": clock,
        "settings": settings,
        "locks": AgreementLockRegistry(),
        "publisher": publisher,
    }


@pytest.fixture
def agreement_service(service_kwargs):
    return AgreementService(**service_kwargs)


@pytest.fixture
def payment_service(service_kwargs):
    return PaymentService(**service_kwargs)


@pytest.fixture
def termination_service(service_kwargs):
    return TerminationService(**service_kwargs)


@pytest.fixture
def ledger_service(service_kwargs):
    return LedgerService(**service_kwargs)


@pytest.fixture
def agreement(agreement_service):
    """Agreement with rent=1, deposit=2 (whole units) and a one-year term."""
    return agreement_service.create_agreement(
        landlord=LANDLORD,
        tenant=TENANT,
        rent_units=1,
        deposit_units=2,
        years=1,
    )


@pytest.fixture
def rent_value():
    return 1 * UNIT_SCALE


@pytest.fixture
def deposit_value():
    return 2 * UNIT_SCALE
