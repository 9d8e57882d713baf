"""Concurrent lease operations through the real engine and session wiring."""

import gc
import threading

import pytest
from sqlalchemy import event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from conftest import LANDLORD, TENANT, FakeClock
from src.models import Base
from src.models.lease_event import LeaseEventType
from src.services import build_engine
from src.services.agreement_service import (
    UNIT_SCALE,
    AgreementLockRegistry,
    AgreementService,
    EventPublisher,
)
from src.services.config import LeaseSettings
from src.services.errors import AgreementNotFoundError, IncorrectAmountError
from src.services.ledger_service import LedgerService
from src.services.payment_service import PaymentService


@pytest.fixture
def file_engine(tmp_path):
    """File-backed SQLite engine built the same way the application builds it."""
    engine = build_engine(f"sqlite:///{tmp_path / 'lease.db'}")
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def wiring(file_engine):
    """Session factory plus the collaborators shared by every service in a test."""
    return {
        "factory": sessionmaker(bind=file_engine, autoflush=False),
        "clock": FakeClock(),
        "settings": LeaseSettings(_env_file=None),
        "locks": AgreementLockRegistry(),
        "publisher": EventPublisher(),
    }


def _service(cls, wiring, session):
    return cls(
        db=session,
        clock=wiring["clock"],
        settings=wiring["settings"],
        locks=wiring["locks"],
        publisher=wiring["publisher"],
    )


class TestBuildEngine:
    """Test connection pooling per database kind."""

    def test_memory_sqlite_shares_one_connection(self):
        engine = build_engine("sqlite:///:memory:")
        try:
            assert isinstance(engine.pool, StaticPool)
        finally:
            engine.dispose()

    def test_file_sqlite_gives_each_session_its_own_connection(self, file_engine):
        assert not isinstance(file_engine.pool, StaticPool)

        with file_engine.connect() as first, file_engine.connect() as second:
            assert first.connection.dbapi_connection is not second.connection.dbapi_connection


class TestIndependentAgreements:
    """Operations on different agreements run side by side without interference."""

    def test_rejection_on_one_agreement_keeps_anothers_pending_write(self, wiring):
        factory = wiring["factory"]
        with factory() as session:
            agreements = _service(AgreementService, wiring, session)
            first = agreements.create_agreement(LANDLORD, TENANT, 1, 2, years=1).id
            second = agreements.create_agreement(LANDLORD, TENANT, 1, 2, years=1).id

        published = []
        wiring["publisher"].subscribe(published.append)
        flushed = threading.Event()
        release = threading.Event()
        outcome = {}

        def pay_first():
            session = factory()

            # Hold the rent payment between flush and commit
            @event.listens_for(session, "after_flush")
            def pause(sess, flush_context):
                flushed.set()
                release.wait(timeout=5)

            try:
                outcome["record"] = _service(PaymentService, wiring, session).pay_rent(
                    first, TENANT, UNIT_SCALE
                )
            except Exception as e:
                outcome["error"] = e
            finally:
                session.close()

        worker = threading.Thread(target=pay_first)
        worker.start()
        try:
            assert flushed.wait(timeout=5)

            with factory() as session:
                with pytest.raises(IncorrectAmountError):
                    _service(PaymentService, wiring, session).pay_rent(second, TENANT, 5)
        finally:
            release.set()
            worker.join(timeout=5)

        assert "error" not in outcome
        assert outcome["record"].event_type == LeaseEventType.RENT_PAID
        assert [r.agreement_id for r in published] == [first]

        with factory() as session:
            ledger = _service(LedgerService, wiring, session)
            events = _service(AgreementService, wiring, session).list_events(first)

            assert [e.event_type for e in events] == [LeaseEventType.RENT_PAID]
            assert ledger.get_held_balance(first) == UNIT_SCALE
            assert ledger.get_held_balance(second) == 0

    def test_lock_on_one_agreement_does_not_block_another(self, wiring):
        factory = wiring["factory"]
        with factory() as session:
            agreements = _service(AgreementService, wiring, session)
            first = agreements.create_agreement(LANDLORD, TENANT, 1, 2, years=1).id
            second = agreements.create_agreement(LANDLORD, TENANT, 1, 2, years=1).id

        done = threading.Event()

        def pay_second():
            with factory() as session:
                _service(PaymentService, wiring, session).pay_rent(second, TENANT, UNIT_SCALE)
            done.set()

        with wiring["locks"].hold(first):
            worker = threading.Thread(target=pay_second)
            worker.start()
            assert done.wait(timeout=5)
        worker.join(timeout=5)

        with factory() as session:
            assert _service(LedgerService, wiring, session).get_held_balance(second) == UNIT_SCALE


class TestLockRetention:
    """Locks are not retained for agreements nobody is operating on."""

    def test_unknown_ids_leave_no_locks(self, ledger_service, service_kwargs):
        for missing in range(1000, 1100):
            with pytest.raises(AgreementNotFoundError):
                ledger_service.withdraw_balance(missing, LANDLORD)

        gc.collect()
        assert len(service_kwargs["locks"]) == 0

    def test_completed_operations_leave_no_locks(
        self, payment_service, service_kwargs, agreement, rent_value
    ):
        payment_service.pay_rent(agreement.id, TENANT, rent_value)

        gc.collect()
        assert len(service_kwargs["locks"]) == 0
