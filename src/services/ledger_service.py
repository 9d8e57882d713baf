"""Ledger queries and landlord withdrawals.

Held balance is derived from the committed transfers:
    Held = Incoming(payments) - Outgoing(refunds + withdrawals)

Scaled queries divide by UNIT_SCALE with floor division, so fractions of a
whole unit are dropped rather than rounded.
"""

import logging
from typing import Optional

from sqlalchemy import select

from src.models.agreement import Agreement, Role
from src.models.lease_event import LeaseEventRecord, LeaseEventType
from src.models.value_transfer import TransferDirection, TransferKind, ValueTransfer
from src.services.access_guard import require_active, require_role
from src.services.agreement_service import LeaseServiceBase, to_whole_units
from src.services.calendar import DateTimeParts, decode_timestamp
from src.services.errors import NothingToWithdrawError

logger = logging.getLogger(__name__)


class LedgerService(LeaseServiceBase):
    """Balances, due amounts, withdrawals and date decoding."""

    def _held_balance(self, agreement_id: int) -> int:
        stmt = select(ValueTransfer).where(ValueTransfer.agreement_id == agreement_id)
        transfers = self.db.execute(stmt).scalars().all()
        return sum(t.signed_amount for t in transfers)

    def _reserved_amount(self, agreement: Agreement) -> int:
        """Value withheld from withdrawals for the deposit.

        By default the full deposit_amount is reserved even if no deposit was
        ever received. With reserve_unpaid_deposit disabled, only a deposit
        actually held is reserved.
        """
        if self.settings.reserve_unpaid_deposit:
            return agreement.deposit_amount
        if agreement.deposit_paid and not agreement.deposit_refunded:
            return agreement.deposit_amount
        return 0

    def get_total_due(self, agreement_id: int) -> int:
        """Rent plus utility in whole currency units (fraction discarded)."""
        agreement = self._load(agreement_id)
        return to_whole_units(agreement.rent_amount + agreement.utility_amount)

    def get_held_balance(self, agreement_id: int) -> int:
        """Value currently held by the agreement, in the smallest unit."""
        self._load(agreement_id)
        return self._held_balance(agreement_id)

    def get_balance(self, agreement_id: int) -> int:
        """Held value in whole currency units (fraction discarded)."""
        return to_whole_units(self.get_held_balance(agreement_id))

    def get_withdrawable(self, agreement_id: int) -> int:
        """Amount withdraw_balance would pay out now (0 if nothing)."""
        agreement = self._load(agreement_id)
        return max(self._held_balance(agreement_id) - self._reserved_amount(agreement), 0)

    def withdraw_balance(self, agreement_id: int, caller: str) -> LeaseEventRecord:
        """Pay the entire surplus over the deposit reservation to the landlord.

        Raises:
            UnauthorizedError: Caller is not the landlord
            AlreadyTerminatedError: Agreement is terminated
            NothingToWithdrawError: Held balance does not exceed the reservation
        """
        with self._unit_of_work(agreement_id, "withdraw_balance") as uow:
            agreement = uow.agreement
            require_role(agreement, caller, Role.LANDLORD)
            require_active(agreement)

            withdrawable = self._held_balance(agreement_id) - self._reserved_amount(agreement)
            if withdrawable <= 0:
                raise NothingToWithdrawError()

            uow.transfer(TransferDirection.OUT, TransferKind.WITHDRAWAL, caller, withdrawable)
            uow.emit(LeaseEventType.WITHDRAWAL, actor=caller, amount=withdrawable)
            logger.info(
                "Withdrawing %s to landlord=%s from agreement_id=%s",
                withdrawable,
                caller,
                agreement_id,
            )

        return uow.records[0]

    def _calendar(self, calendar: Optional[str]) -> str:
        return calendar or self.settings.calendar_mode

    def get_rent_due_date(self, agreement_id: int, calendar: Optional[str] = None) -> DateTimeParts:
        """Decode rent_due_date (approximate calendar unless configured otherwise)."""
        agreement = self._load(agreement_id)
        return decode_timestamp(agreement.rent_due_date, self._calendar(calendar))

    def get_lease_end_date(self, agreement_id: int, calendar: Optional[str] = None) -> DateTimeParts:
        """Decode lease_end_date (approximate calendar unless configured otherwise)."""
        agreement = self._load(agreement_id)
        return decode_timestamp(agreement.lease_end_date, self._calendar(calendar))


__all__ = ["LedgerService"]
