"""Termination service: landlord termination and expiry-triggered termination.

Both paths share ``_refund_and_close`` so the deposit is returned at most once
and the terminal flag is set the same way regardless of who ended the lease.
"""

import logging
from enum import Enum
from typing import NamedTuple, Optional

from src.models.agreement import Agreement, Role
from src.models.lease_event import LeaseEventRecord, LeaseEventType
from src.models.value_transfer import TransferDirection, TransferKind
from src.services.access_guard import require_role
from src.services.agreement_service import LeaseServiceBase, UnitOfWork
from src.services.errors import AlreadyTerminatedError

logger = logging.getLogger(__name__)


class TerminationStatus(str, Enum):
    """Result of evaluating lease expiry."""

    TERMINATED = "terminated"
    """Lease has expired (evaluate_expiry) or was just terminated (check_and_terminate)."""

    NOT_YET_DUE = "not_yet_due"
    """Lease end date has not been reached; nothing happened."""

    ALREADY_TERMINATED = "already_terminated"
    """Agreement was already in its terminal state."""


class TerminationOutcome(NamedTuple):
    """What check_and_terminate did."""

    status: TerminationStatus
    event: Optional[LeaseEventRecord] = None


def expiry_status(agreement: Agreement, now: int) -> TerminationStatus:
    """Classify an agreement against the current time without changing it."""
    if agreement.contract_terminated:
        return TerminationStatus.ALREADY_TERMINATED
    if now >= agreement.lease_end_date:
        return TerminationStatus.TERMINATED
    return TerminationStatus.NOT_YET_DUE


class TerminationService(LeaseServiceBase):
    """End agreements and release deposits."""

    def _refund_and_close(self, uow: UnitOfWork) -> None:
        agreement = uow.agreement
        if agreement.deposit_paid and not agreement.deposit_refunded:
            uow.transfer(
                TransferDirection.OUT,
                TransferKind.REFUND,
                agreement.tenant,
                agreement.deposit_amount,
            )
            agreement.deposit_refunded = True
            logger.info(
                "Refunding deposit %s to tenant=%s for agreement_id=%s",
                agreement.deposit_amount,
                agreement.tenant,
                agreement.id,
            )
        agreement.contract_terminated = True
        uow.emit(LeaseEventType.LEASE_TERMINATED, actor=agreement.tenant)

    def terminate(self, agreement_id: int, caller: str) -> LeaseEventRecord:
        """Terminate the lease at the landlord's request, at any time.

        Raises:
            UnauthorizedError: Caller is not the landlord
            AlreadyTerminatedError: Agreement already terminated
        """
        with self._unit_of_work(agreement_id, "terminate") as uow:
            require_role(uow.agreement, caller, Role.LANDLORD)
            if uow.agreement.contract_terminated:
                raise AlreadyTerminatedError()
            self._refund_and_close(uow)

        return uow.records[0]

    def evaluate_expiry(self, agreement_id: int) -> TerminationStatus:
        """Report whether check_and_terminate would terminate now. Read-only."""
        return expiry_status(self._load(agreement_id), self.clock())

    def check_and_terminate(self, agreement_id: int, caller: str) -> TerminationOutcome:
        """Terminate the lease if its end date has been reached. Callable by anyone.

        Returns:
            TerminationOutcome(TERMINATED, event) when the lease was ended now,
            TerminationOutcome(NOT_YET_DUE) when the end date is still ahead
            (no state change, no event)

        Raises:
            AlreadyTerminatedError: Agreement already terminated
        """
        with self._unit_of_work(agreement_id, "check_and_terminate") as uow:
            status = expiry_status(uow.agreement, uow.now)
            if status == TerminationStatus.ALREADY_TERMINATED:
                raise AlreadyTerminatedError()
            if status == TerminationStatus.TERMINATED:
                logger.info(
                    "Lease expired for agreement_id=%s (checked by %s)", agreement_id, caller
                )
                self._refund_and_close(uow)

        if status == TerminationStatus.NOT_YET_DUE:
            return TerminationOutcome(status)
        return TerminationOutcome(status, uow.records[0])


__all__ = ["TerminationOutcome", "TerminationService", "TerminationStatus", "expiry_status"]
