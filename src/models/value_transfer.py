"""ValueTransfer ORM model: every value movement into or out of an agreement."""

from enum import Enum

from sqlalchemy import ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.models import Base, BaseModel
from src.models.types import TokenAmount


class TransferDirection(str, Enum):
    """Direction of value relative to the agreement."""

    IN = "in"
    OUT = "out"


class TransferKind(str, Enum):
    """What a transfer pays for."""

    RENT = "rent"
    UTILITY = "utility"
    DEPOSIT = "deposit"
    REFUND = "refund"
    WITHDRAWAL = "withdrawal"


class ValueTransfer(Base, BaseModel):
    """Model representing one committed value transfer.

    The held balance of an agreement is the sum of its inbound transfers minus
    the sum of its outbound transfers. Rows are only ever inserted.
    """

    __tablename__ = "value_transfers"

    agreement_id: Mapped[int] = mapped_column(
        ForeignKey("agreements.id"),
        nullable=False,
        comment="Agreement holding the value",
    )
    direction: Mapped[TransferDirection] = mapped_column(
        String(10),
        nullable=False,
        comment="'in' for payments, 'out' for refunds and withdrawals",
    )
    kind: Mapped[TransferKind] = mapped_column(
        String(20),
        nullable=False,
        comment="Payment or payout category",
    )
    counterparty: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Payer (inbound) or recipient (outbound) account",
    )
    amount: Mapped[int] = mapped_column(
        TokenAmount,
        nullable=False,
        comment="Transferred value (smallest unit)",
    )

    agreement: Mapped["Agreement"] = relationship(  # noqa: F821
        "Agreement",
        back_populates="transfers",
    )

    __table_args__ = (
        Index("idx_transfer_agreement", "agreement_id"),
        Index("idx_transfer_agreement_direction", "agreement_id", "direction"),
    )

    @property
    def signed_amount(self) -> int:
        """Amount with outbound transfers negated."""
        if TransferDirection(self.direction) == TransferDirection.OUT:
            return -self.amount
        return self.amount

    def __repr__(self) -> str:
        return (
            f"<ValueTransfer(id={self.id}, agreement_id={self.agreement_id}, "
            f"direction={self.direction}, kind={self.kind}, amount={self.amount})>"
        )


__all__ = ["ValueTransfer", "TransferDirection", "TransferKind"]
