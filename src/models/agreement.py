"""Agreement ORM model: the persistent state of one two-party lease."""

from enum import Enum

from sqlalchemy import BigInteger, Boolean, Index, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.models import Base, BaseModel
from src.models.types import TokenAmount


class Role(str, Enum):
    """Privileged roles bound to an agreement."""

    LANDLORD = "landlord"
    """Account that created the agreement."""

    TENANT = "tenant"
    """Account named as tenant at creation."""


class Agreement(Base, BaseModel):
    """Model representing a lease between one landlord and one tenant.

    Created once, mutated in place for its whole lifetime and never deleted;
    termination only flips ``contract_terminated``.

    All amounts are integers in the smallest currency unit. Dates are epoch
    seconds so that due-date arithmetic stays exact.
    """

    __tablename__ = "agreements"

    # Parties (immutable)
    landlord: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Landlord account identifier",
    )
    tenant: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Tenant account identifier",
    )

    # Amounts
    rent_amount: Mapped[int] = mapped_column(
        TokenAmount,
        nullable=False,
        comment="Exact rent payment value (smallest unit)",
    )
    deposit_amount: Mapped[int] = mapped_column(
        TokenAmount,
        nullable=False,
        comment="Exact deposit payment value (smallest unit)",
    )
    utility_amount: Mapped[int] = mapped_column(
        TokenAmount,
        nullable=False,
        default=0,
        comment="Exact utility payment value (smallest unit), set by landlord",
    )

    # Dates (epoch seconds)
    started_at: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
        comment="Creation timestamp",
    )
    rent_due_date: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
        comment="Deadline for the next rent/utility payment",
    )
    lease_end_date: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
        comment="Lease expiry timestamp",
    )

    # Lifecycle flags
    deposit_paid: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        comment="Deposit received (never reset, not even by refund)",
    )
    deposit_refunded: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        comment="Deposit returned to tenant on termination",
    )
    contract_terminated: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        comment="Terminal state flag",
    )

    events: Mapped[list["LeaseEvent"]] = relationship(  # noqa: F821
        "LeaseEvent",
        back_populates="agreement",
        order_by="LeaseEvent.id",
    )
    transfers: Mapped[list["ValueTransfer"]] = relationship(  # noqa: F821
        "ValueTransfer",
        back_populates="agreement",
        order_by="ValueTransfer.id",
    )

    __table_args__ = (
        Index("idx_agreement_landlord", "landlord"),
        Index("idx_agreement_tenant", "tenant"),
    )

    def account_for(self, role: Role) -> str:
        """Return the account identifier bound to ``role``."""
        return self.landlord if role == Role.LANDLORD else self.tenant

    def __repr__(self) -> str:
        return (
            f"<Agreement(id={self.id}, landlord={self.landlord!r}, tenant={self.tenant!r}, "
            f"terminated={self.contract_terminated})>"
        )


__all__ = ["Agreement", "Role"]
