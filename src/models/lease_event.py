"""Lease event model: append-only activity log of an agreement."""

from dataclasses import dataclass
from enum import Enum

from sqlalchemy import BigInteger, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.models import Base, BaseModel
from src.models.types import TokenAmount


class LeaseEventType(str, Enum):
    """Kinds of events an agreement emits."""

    RENT_PAID = "rent_paid"
    UTILITY_PAID = "utility_paid"
    DEPOSIT_PAID = "deposit_paid"
    MAINTENANCE_REQUESTED = "maintenance_requested"
    LEASE_TERMINATED = "lease_terminated"
    WITHDRAWAL = "withdrawal"


@dataclass(frozen=True)
class LeaseEventRecord:
    """Immutable view of a committed lease event handed to callers and listeners."""

    agreement_id: int
    event_type: LeaseEventType
    actor: str
    timestamp: int
    amount: int | None = None
    detail: str | None = None


class LeaseEvent(Base, BaseModel):
    """Event log entry for one state transition.

    Records which account (actor) triggered what (event_type) on which
    agreement, with the transferred amount or the free-form text where the
    event carries one. Entries are never updated or deleted.
    """

    __tablename__ = "lease_events"

    agreement_id: Mapped[int] = mapped_column(
        ForeignKey("agreements.id"),
        nullable=False,
    )
    """Agreement that emitted the event."""

    event_type: Mapped[LeaseEventType] = mapped_column(String(50), nullable=False)
    """Event kind: "rent_paid", "lease_terminated", etc."""

    actor: Mapped[str] = mapped_column(String(255), nullable=False)
    """Account the event is about (payer, requester, refunded tenant, landlord)."""

    amount: Mapped[int | None] = mapped_column(TokenAmount, nullable=True)
    """Transferred value for payment and withdrawal events."""

    detail: Mapped[str | None] = mapped_column(Text, nullable=True)
    """Maintenance request text."""

    occurred_at: Mapped[int] = mapped_column(BigInteger, nullable=False)
    """Epoch seconds at which the operation ran."""

    agreement: Mapped["Agreement"] = relationship(  # noqa: F821
        "Agreement",
        back_populates="events",
    )

    __table_args__ = (Index("idx_lease_event_agreement", "agreement_id", "id"),)

    def to_record(self) -> LeaseEventRecord:
        return LeaseEventRecord(
            agreement_id=self.agreement_id,
            event_type=LeaseEventType(self.event_type),
            actor=self.actor,
            timestamp=self.occurred_at,
            amount=self.amount,
            detail=self.detail,
        )

    def __repr__(self) -> str:
        return (
            f"<LeaseEvent(id={self.id}, agreement_id={self.agreement_id}, "
            f"event_type={self.event_type}, actor={self.actor!r}, amount={self.amount})>"
        )


__all__ = ["LeaseEvent", "LeaseEventRecord", "LeaseEventType"]
