"""Agreement lifecycle: creation, loading and the atomic unit of work.

Every mutating lease operation runs inside ``LeaseServiceBase._unit_of_work``:

1. the per-agreement lock is taken (operations on one agreement are serialized,
   different agreements proceed independently)
2. the agreement row is re-read (``SELECT ... FOR UPDATE`` where supported)
3. the operation validates, mutates and stages transfer/event rows
4. the session commits once; any exception rolls everything back
5. the committed events are published to listeners
"""

import logging
import threading
import weakref
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Callable, Iterator, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from src.models.agreement import Agreement
from src.models.lease_event import LeaseEvent, LeaseEventRecord, LeaseEventType
from src.models.value_transfer import TransferDirection, TransferKind, ValueTransfer
from src.services.calendar import (
    RENT_PERIOD_SECONDS,
    Clock,
    lease_duration_seconds,
    system_clock,
)
from src.services.config import LeaseSettings, get_settings
from src.services.errors import AgreementNotFoundError, InvalidAgreementError, LeaseError

logger = logging.getLogger(__name__)

# Smallest indivisible units per whole currency unit
UNIT_SCALE = 10**18

EventListener = Callable[[LeaseEventRecord], None]


def to_smallest_units(whole_units: int) -> int:
    """Scale a whole-unit amount to the smallest unit."""
    return whole_units * UNIT_SCALE


def to_whole_units(amount: int) -> int:
    """Scale down to whole units, discarding the fractional remainder."""
    return amount // UNIT_SCALE


class AgreementLock:
    """Re-entrant lock guarding one agreement."""

    __slots__ = ("_lock", "__weakref__")

    def __init__(self) -> None:
        self._lock = threading.RLock()

    def __enter__(self) -> "AgreementLock":
        self._lock.acquire()
        return self

    def __exit__(self, *exc_info) -> None:
        self._lock.release()


class AgreementLockRegistry:
    """One re-entrant lock per agreement id, created on first use.

    Entries are weak: a lock lives only while some caller holds a reference,
    so ids requested once (including unknown ids) leave nothing behind.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: weakref.WeakValueDictionary = weakref.WeakValueDictionary()

    def __len__(self) -> int:
        return len(self._locks)

    def lock_for(self, agreement_id: int) -> AgreementLock:
        with self._guard:
            lock = self._locks.get(agreement_id)
            if lock is None:
                lock = AgreementLock()
                self._locks[agreement_id] = lock
            return lock

    @contextmanager
    def hold(self, agreement_id: int) -> Iterator[None]:
        lock = self.lock_for(agreement_id)
        with lock:
            yield


class EventPublisher:
    """Fan-out of committed lease events to in-process listeners."""

    def __init__(self) -> None:
        self._listeners: List[EventListener] = []

    def subscribe(self, listener: EventListener) -> None:
        self._listeners.append(listener)

    def unsubscribe(self, listener: EventListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def publish(self, records: List[LeaseEventRecord]) -> None:
        """Deliver records to every listener.

        The operation that produced the records has already committed, so a
        failing listener is logged and the remaining listeners still run.
        """
        for record in records:
            for listener in list(self._listeners):
                try:
                    listener(record)
                except Exception:
                    logger.exception(
                        "Event listener %r failed for %s on agreement_id=%s",
                        listener,
                        record.event_type.value,
                        record.agreement_id,
                    )


default_lock_registry = AgreementLockRegistry()
default_publisher = EventPublisher()


@dataclass
class UnitOfWork:
    """Staging area for one atomic lease operation."""

    db: Session
    agreement: Agreement
    now: int
    staged_events: List[LeaseEvent] = field(default_factory=list)
    records: List[LeaseEventRecord] = field(default_factory=list)

    def emit(
        self,
        event_type: LeaseEventType,
        actor: str,
        amount: Optional[int] = None,
        detail: Optional[str] = None,
    ) -> LeaseEvent:
        event = LeaseEvent(
            agreement_id=self.agreement.id,
            event_type=event_type.value,
            actor=actor,
            amount=amount,
            detail=detail,
            occurred_at=self.now,
        )
        self.db.add(event)
        self.staged_events.append(event)
        return event

    def transfer(
        self,
        direction: TransferDirection,
        kind: TransferKind,
        counterparty: str,
        amount: int,
    ) -> ValueTransfer:
        transfer = ValueTransfer(
            agreement_id=self.agreement.id,
            direction=direction.value,
            kind=kind.value,
            counterparty=counterparty,
            amount=amount,
        )
        self.db.add(transfer)
        return transfer


class LeaseServiceBase:
    """Shared wiring for the lease services."""

    def __init__(
        self,
        db: Session,
        clock: Optional[Clock] = None,
        settings: Optional[LeaseSettings] = None,
        locks: Optional[AgreementLockRegistry] = None,
        publisher: Optional[EventPublisher] = None,
    ):
        """Initialize service.

        Args:
            db: SQLAlchemy database session
            clock: Callable returning epoch seconds (default: system time)
            settings: Lease settings (default: get_settings())
            locks: Per-agreement lock registry (default: process-wide registry)
            publisher: Event publisher (default: process-wide publisher)
        """
        self.db = db
        self.clock = clock or system_clock
        self.settings = settings or get_settings()
        self.locks = locks or default_lock_registry
        self.publisher = publisher or default_publisher

    def _load(self, agreement_id: int, for_update: bool = False) -> Agreement:
        stmt = select(Agreement).where(Agreement.id == agreement_id)
        if for_update:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        agreement = self.db.execute(stmt).scalar_one_or_none()
        if agreement is None:
            raise AgreementNotFoundError(agreement_id)
        return agreement

    @contextmanager
    def _unit_of_work(self, agreement_id: int, operation: str) -> Iterator[UnitOfWork]:
        with self.locks.hold(agreement_id):
            try:
                agreement = self._load(agreement_id, for_update=True)
                uow = UnitOfWork(db=self.db, agreement=agreement, now=self.clock())
                yield uow
                self.db.flush()
                uow.records = [event.to_record() for event in uow.staged_events]
                self.db.commit()
            except LeaseError as e:
                self.db.rollback()
                logger.warning(
                    "Rejected %s on agreement_id=%s: %s (%s)",
                    operation,
                    agreement_id,
                    e.code,
                    e.message,
                )
                raise
            except Exception:
                self.db.rollback()
                logger.error("Failed %s on agreement_id=%s", operation, agreement_id, exc_info=True)
                raise

        logger.info(
            "Committed %s on agreement_id=%s (%d event(s))",
            operation,
            agreement_id,
            len(uow.records),
        )
        self.publisher.publish(uow.records)


class AgreementService(LeaseServiceBase):
    """Create and query lease agreements."""

    def create_agreement(
        self,
        landlord: str,
        tenant: str,
        rent_units: int,
        deposit_units: int,
        years: int = 0,
        months: int = 0,
        days: int = 0,
    ) -> Agreement:
        """Create a new agreement; the creating caller becomes landlord.

        Args:
            landlord: Creating caller's account identifier
            tenant: Tenant account identifier
            rent_units: Rent in whole currency units
            deposit_units: Deposit in whole currency units
            years, months, days: Lease term (fixed 365/30-day calendar)

        Returns:
            Created Agreement with rent_due_date = now + 30 days

        Raises:
            InvalidAgreementError: If parties or amounts are unusable
        """
        if not landlord or not tenant:
            raise InvalidAgreementError("Landlord and tenant account identifiers are required")
        if landlord == tenant:
            raise InvalidAgreementError("Landlord and tenant must be different accounts")
        if rent_units < 0 or deposit_units < 0:
            raise InvalidAgreementError(
                f"Amounts must be non-negative: rent={rent_units}, deposit={deposit_units}"
            )
        try:
            duration = lease_duration_seconds(years, months, days)
        except ValueError as e:
            raise InvalidAgreementError(str(e)) from e

        now = self.clock()
        agreement = Agreement(
            landlord=landlord,
            tenant=tenant,
            rent_amount=to_smallest_units(rent_units),
            deposit_amount=to_smallest_units(deposit_units),
            utility_amount=0,
            started_at=now,
            rent_due_date=now + RENT_PERIOD_SECONDS,
            lease_end_date=now + duration,
            deposit_paid=False,
            deposit_refunded=False,
            contract_terminated=False,
        )
        try:
            self.db.add(agreement)
            self.db.commit()
        except Exception:
            self.db.rollback()
            logger.error("Failed to create agreement for tenant=%s", tenant, exc_info=True)
            raise
        self.db.refresh(agreement)
        logger.info(
            "Created agreement_id=%s landlord=%s tenant=%s rent=%s deposit=%s ends_at=%s",
            agreement.id,
            landlord,
            tenant,
            rent_units,
            deposit_units,
            agreement.lease_end_date,
        )
        return agreement

    def get_agreement(self, agreement_id: int) -> Agreement:
        """Get agreement by ID.

        Raises:
            AgreementNotFoundError: If no such agreement
        """
        return self._load(agreement_id)

    def list_events(self, agreement_id: int) -> List[LeaseEventRecord]:
        """Return the agreement's event log, oldest first."""
        self._load(agreement_id)
        stmt = (
            select(LeaseEvent)
            .where(LeaseEvent.agreement_id == agreement_id)
            .order_by(LeaseEvent.id)
        )
        return [event.to_record() for event in self.db.execute(stmt).scalars().all()]


__all__ = [
    "UNIT_SCALE",
    "AgreementLockRegistry",
    "AgreementService",
    "EventPublisher",
    "LeaseServiceBase",
    "UnitOfWork",
    "default_lock_registry",
    "default_publisher",
    "to_smallest_units",
    "to_whole_units",
]
