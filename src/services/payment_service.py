"""Payment service for tenant payments and landlord utility pricing.

Provides methods for:
- Paying rent (advances the due date by 30 days)
- Paying utilities (shares the rent deadline)
- Paying the one-time security deposit
- Setting the utility amount (landlord)
- Sending a maintenance request notification (tenant)

Every payment must match its configured amount exactly; there are no partial
payments or overpayments.
"""

import logging

from src.models.agreement import Agreement, Role
from src.models.lease_event import LeaseEventRecord, LeaseEventType
from src.models.value_transfer import TransferDirection, TransferKind
from src.services.access_guard import require_active, require_role
from src.services.agreement_service import LeaseServiceBase, to_smallest_units
from src.services.calendar import RENT_PERIOD_SECONDS
from src.services.errors import (
    AlreadyPaidError,
    IncorrectAmountError,
    PaymentOverdueError,
)

logger = logging.getLogger(__name__)


def _require_exact(value: int, expected: int, what: str) -> None:
    if value != expected:
        raise IncorrectAmountError(f"Incorrect {what} amount: expected {expected}, got {value}")


def _require_not_overdue(agreement: Agreement, now: int) -> None:
    if now > agreement.rent_due_date:
        raise PaymentOverdueError(
            f"Payment overdue: due date {agreement.rent_due_date} has passed (now {now})"
        )


class PaymentService(LeaseServiceBase):
    """Tenant payments and related landlord/tenant mutators."""

    def pay_rent(self, agreement_id: int, caller: str, value: int) -> LeaseEventRecord:
        """Pay exactly one period of rent.

        Args:
            agreement_id: Agreement ID
            caller: Paying account (must be the tenant)
            value: Transferred value in the smallest unit

        Returns:
            RENT_PAID event record

        Raises:
            UnauthorizedError: Caller is not the tenant
            AlreadyTerminatedError: Agreement is terminated
            IncorrectAmountError: value != rent_amount (checked before the deadline)
            PaymentOverdueError: Current time is past rent_due_date
        """
        with self._unit_of_work(agreement_id, "pay_rent") as uow:
            agreement = uow.agreement
            require_role(agreement, caller, Role.TENANT)
            require_active(agreement)
            _require_exact(value, agreement.rent_amount, "rent")
            _require_not_overdue(agreement, uow.now)

            uow.transfer(TransferDirection.IN, TransferKind.RENT, caller, value)
            agreement.rent_due_date = agreement.rent_due_date + RENT_PERIOD_SECONDS
            uow.emit(LeaseEventType.RENT_PAID, actor=caller, amount=value)

        return uow.records[0]

    def pay_utility(self, agreement_id: int, caller: str, value: int) -> LeaseEventRecord:
        """Pay the current utility amount before the rent due date.

        A zero-value payment while no utility amount has been set is rejected
        unless settings.allow_zero_utility_payment is enabled.

        Raises:
            UnauthorizedError, AlreadyTerminatedError, IncorrectAmountError,
            PaymentOverdueError
        """
        with self._unit_of_work(agreement_id, "pay_utility") as uow:
            agreement = uow.agreement
            require_role(agreement, caller, Role.TENANT)
            require_active(agreement)
            if agreement.utility_amount == 0 and not self.settings.allow_zero_utility_payment:
                raise IncorrectAmountError("No utility amount has been set")
            _require_exact(value, agreement.utility_amount, "utility")
            _require_not_overdue(agreement, uow.now)

            if value:
                uow.transfer(TransferDirection.IN, TransferKind.UTILITY, caller, value)
            uow.emit(LeaseEventType.UTILITY_PAID, actor=caller, amount=value)

        return uow.records[0]

    def pay_deposit(self, agreement_id: int, caller: str, value: int) -> LeaseEventRecord:
        """Pay the security deposit (at most once per agreement).

        Raises:
            UnauthorizedError, AlreadyTerminatedError,
            AlreadyPaidError: Deposit already paid
            IncorrectAmountError: value != deposit_amount
        """
        with self._unit_of_work(agreement_id, "pay_deposit") as uow:
            agreement = uow.agreement
            require_role(agreement, caller, Role.TENANT)
            require_active(agreement)
            if agreement.deposit_paid:
                raise AlreadyPaidError()
            _require_exact(value, agreement.deposit_amount, "deposit")

            if value:
                uow.transfer(TransferDirection.IN, TransferKind.DEPOSIT, caller, value)
            agreement.deposit_paid = True
            uow.emit(LeaseEventType.DEPOSIT_PAID, actor=caller, amount=value)

        return uow.records[0]

    def set_utility_amount(self, agreement_id: int, caller: str, amount_units: int) -> int:
        """Set the utility amount in whole currency units (landlord only).

        Takes effect for the next utility payment. There is no upper bound.

        Returns:
            New utility amount in the smallest unit
        """
        with self._unit_of_work(agreement_id, "set_utility_amount") as uow:
            agreement = uow.agreement
            require_role(agreement, caller, Role.LANDLORD)
            require_active(agreement)
            if amount_units < 0:
                raise IncorrectAmountError(f"Utility amount cannot be negative: {amount_units}")
            agreement.utility_amount = to_smallest_units(amount_units)
            new_amount = agreement.utility_amount

        logger.info("Utility amount for agreement_id=%s set to %s units", agreement_id, amount_units)
        return new_amount

    def request_maintenance(self, agreement_id: int, caller: str, text: str) -> LeaseEventRecord:
        """Notify the landlord of a maintenance need.

        The text is not validated or stored anywhere except the emitted event.
        """
        with self._unit_of_work(agreement_id, "request_maintenance") as uow:
            agreement = uow.agreement
            require_role(agreement, caller, Role.TENANT)
            require_active(agreement)
            uow.emit(LeaseEventType.MAINTENANCE_REQUESTED, actor=caller, detail=text)

        return uow.records[0]


__all__ = ["PaymentService"]
