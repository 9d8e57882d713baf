"""Lease agreement API endpoints.

Caller identity is the opaque account identifier in the X-Account-Id header.
Payment values are in the smallest currency unit; amounts used to configure an
agreement (rent, deposit, utility) are in whole units.
"""

import logging
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Header, Query
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from src.models.lease_event import LeaseEventRecord
from src.services import get_db
from src.services.agreement_service import AgreementService
from src.services.calendar import Clock, DateTimeParts, system_clock
from src.services.ledger_service import LedgerService
from src.services.payment_service import PaymentService
from src.services.termination_service import TerminationService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/leases", tags=["leases"])


def get_clock() -> Clock:
    """Clock used by request-scoped services (overridable in tests)."""
    return system_clock


def get_caller(x_account_id: str = Header(..., min_length=1)) -> str:
    """Caller account identifier from the X-Account-Id header."""
    return x_account_id


# Request schemas
class CreateAgreementRequest(BaseModel):
    """Body for POST /api/leases."""

    tenant: str = Field(min_length=1)
    rent: int = Field(ge=0, description="Rent in whole currency units")
    deposit: int = Field(ge=0, description="Deposit in whole currency units")
    years: int = Field(default=0, ge=0)
    months: int = Field(default=0, ge=0)
    days: int = Field(default=0, ge=0)


class PaymentRequest(BaseModel):
    """Transferred value in the smallest unit."""

    value: int = Field(ge=0)


class UtilityAmountRequest(BaseModel):
    """New utility amount in whole currency units."""

    amount: int = Field(ge=0)


class MaintenanceRequest(BaseModel):
    """Free-form maintenance request."""

    text: str


# Response schemas
class AgreementResponse(BaseModel):
    """Agreement snapshot."""

    id: int
    landlord: str
    tenant: str
    rent_amount: int
    deposit_amount: int
    utility_amount: int
    started_at: int
    rent_due_date: int
    lease_end_date: int
    deposit_paid: bool
    deposit_refunded: bool
    contract_terminated: bool

    model_config = ConfigDict(from_attributes=True)


class EventResponse(BaseModel):
    """One lease event."""

    agreement_id: int
    event_type: str
    actor: str
    timestamp: int
    amount: Optional[int] = None
    detail: Optional[str] = None

    @classmethod
    def from_record(cls, record: LeaseEventRecord) -> "EventResponse":
        return cls(
            agreement_id=record.agreement_id,
            event_type=record.event_type.value,
            actor=record.actor,
            timestamp=record.timestamp,
            amount=record.amount,
            detail=record.detail,
        )


class UtilityAmountResponse(BaseModel):
    """Stored utility amount in the smallest unit."""

    utility_amount: int


class ExpiryCheckResponse(BaseModel):
    """Result of POST /check-expiry."""

    status: str
    event: Optional[EventResponse] = None


class AmountResponse(BaseModel):
    """Scaled amount in whole currency units."""

    amount: int


class DateResponse(BaseModel):
    """Decoded timestamp."""

    year: int
    month: int
    day: int
    hour: int
    minute: int
    second: int
    calendar: str

    @classmethod
    def from_parts(cls, parts: DateTimeParts, calendar: str) -> "DateResponse":
        return cls(calendar=calendar, **parts._asdict())


# Service dependencies
def get_agreement_service(
    db: Session = Depends(get_db), clock: Clock = Depends(get_clock)
) -> AgreementService:
    return AgreementService(db, clock=clock)


def get_payment_service(
    db: Session = Depends(get_db), clock: Clock = Depends(get_clock)
) -> PaymentService:
    return PaymentService(db, clock=clock)


def get_termination_service(
    db: Session = Depends(get_db), clock: Clock = Depends(get_clock)
) -> TerminationService:
    return TerminationService(db, clock=clock)


def get_ledger_service(
    db: Session = Depends(get_db), clock: Clock = Depends(get_clock)
) -> LedgerService:
    return LedgerService(db, clock=clock)


CalendarParam = Optional[Literal["approximate", "exact"]]


@router.post("", response_model=AgreementResponse, status_code=201)
def create_agreement(
    body: CreateAgreementRequest,
    caller: str = Depends(get_caller),
    service: AgreementService = Depends(get_agreement_service),
) -> AgreementResponse:
    """Create an agreement; the caller becomes landlord."""
    agreement = service.create_agreement(
        landlord=caller,
        tenant=body.tenant,
        rent_units=body.rent,
        deposit_units=body.deposit,
        years=body.years,
        months=body.months,
        days=body.days,
    )
    return AgreementResponse.model_validate(agreement)


@router.get("/{agreement_id}", response_model=AgreementResponse)
def get_agreement(
    agreement_id: int, service: AgreementService = Depends(get_agreement_service)
) -> AgreementResponse:
    return AgreementResponse.model_validate(service.get_agreement(agreement_id))


@router.get("/{agreement_id}/events", response_model=list[EventResponse])
def list_events(
    agreement_id: int, service: AgreementService = Depends(get_agreement_service)
) -> list[EventResponse]:
    return [EventResponse.from_record(r) for r in service.list_events(agreement_id)]


@router.post("/{agreement_id}/rent", response_model=EventResponse)
def pay_rent(
    agreement_id: int,
    body: PaymentRequest,
    caller: str = Depends(get_caller),
    service: PaymentService = Depends(get_payment_service),
) -> EventResponse:
    return EventResponse.from_record(service.pay_rent(agreement_id, caller, body.value))


@router.post("/{agreement_id}/utility", response_model=EventResponse)
def pay_utility(
    agreement_id: int,
    body: PaymentRequest,
    caller: str = Depends(get_caller),
    service: PaymentService = Depends(get_payment_service),
) -> EventResponse:
    return EventResponse.from_record(service.pay_utility(agreement_id, caller, body.value))


@router.post("/{agreement_id}/deposit", response_model=EventResponse)
def pay_deposit(
    agreement_id: int,
    body: PaymentRequest,
    caller: str = Depends(get_caller),
    service: PaymentService = Depends(get_payment_service),
) -> EventResponse:
    return EventResponse.from_record(service.pay_deposit(agreement_id, caller, body.value))


@router.put("/{agreement_id}/utility-amount", response_model=UtilityAmountResponse)
def set_utility_amount(
    agreement_id: int,
    body: UtilityAmountRequest,
    caller: str = Depends(get_caller),
    service: PaymentService = Depends(get_payment_service),
) -> UtilityAmountResponse:
    new_amount = service.set_utility_amount(agreement_id, caller, body.amount)
    return UtilityAmountResponse(utility_amount=new_amount)


@router.post("/{agreement_id}/maintenance", response_model=EventResponse)
def request_maintenance(
    agreement_id: int,
    body: MaintenanceRequest,
    caller: str = Depends(get_caller),
    service: PaymentService = Depends(get_payment_service),
) -> EventResponse:
    return EventResponse.from_record(service.request_maintenance(agreement_id, caller, body.text))


@router.post("/{agreement_id}/terminate", response_model=EventResponse)
def terminate(
    agreement_id: int,
    caller: str = Depends(get_caller),
    service: TerminationService = Depends(get_termination_service),
) -> EventResponse:
    return EventResponse.from_record(service.terminate(agreement_id, caller))


@router.post("/{agreement_id}/check-expiry", response_model=ExpiryCheckResponse)
def check_and_terminate(
    agreement_id: int,
    caller: str = Depends(get_caller),
    service: TerminationService = Depends(get_termination_service),
) -> ExpiryCheckResponse:
    outcome = service.check_and_terminate(agreement_id, caller)
    event = EventResponse.from_record(outcome.event) if outcome.event else None
    return ExpiryCheckResponse(status=outcome.status.value, event=event)


@router.post("/{agreement_id}/withdraw", response_model=EventResponse)
def withdraw_balance(
    agreement_id: int,
    caller: str = Depends(get_caller),
    service: LedgerService = Depends(get_ledger_service),
) -> EventResponse:
    return EventResponse.from_record(service.withdraw_balance(agreement_id, caller))


@router.get("/{agreement_id}/total-due", response_model=AmountResponse)
def get_total_due(
    agreement_id: int, service: LedgerService = Depends(get_ledger_service)
) -> AmountResponse:
    return AmountResponse(amount=service.get_total_due(agreement_id))


@router.get("/{agreement_id}/balance", response_model=AmountResponse)
def get_balance(
    agreement_id: int, service: LedgerService = Depends(get_ledger_service)
) -> AmountResponse:
    return AmountResponse(amount=service.get_balance(agreement_id))


@router.get("/{agreement_id}/rent-due-date", response_model=DateResponse)
def get_rent_due_date(
    agreement_id: int,
    calendar: CalendarParam = Query(default=None),
    service: LedgerService = Depends(get_ledger_service),
) -> DateResponse:
    mode = calendar or service.settings.calendar_mode
    return DateResponse.from_parts(service.get_rent_due_date(agreement_id, mode), mode)


@router.get("/{agreement_id}/lease-end-date", response_model=DateResponse)
def get_lease_end_date(
    agreement_id: int,
    calendar: CalendarParam = Query(default=None),
    service: LedgerService = Depends(get_ledger_service),
) -> DateResponse:
    mode = calendar or service.settings.calendar_mode
    return DateResponse.from_parts(service.get_lease_end_date(agreement_id, mode), mode)
