"""Role and lifecycle checks for privileged lease operations."""

import logging

from src.models.agreement import Agreement, Role
from src.services.errors import AlreadyTerminatedError, UnauthorizedError

logger = logging.getLogger(__name__)


def has_role(agreement: Agreement, caller: str, role: Role) -> bool:
    """Return True if caller is exactly the account bound to role."""
    return caller == agreement.account_for(role)


def require_role(agreement: Agreement, caller: str, role: Role) -> None:
    """Reject the call unless caller holds role on this agreement.

    Args:
        agreement: Agreement being operated on
        caller: Opaque account identifier of the caller
        role: Role the operation requires

    Raises:
        UnauthorizedError: If caller does not match the stored role account
    """
    if not has_role(agreement, caller, role):
        logger.debug(
            "Unauthorized: caller=%s is not %s of agreement_id=%s",
            caller,
            role.value,
            agreement.id,
        )
        raise UnauthorizedError(f"Only the {role.value} may perform this operation")


def require_active(agreement: Agreement) -> None:
    """Reject any mutation of a terminated agreement.

    Raises:
        AlreadyTerminatedError: If contract_terminated is set
    """
    if agreement.contract_terminated:
        raise AlreadyTerminatedError()


__all__ = ["has_role", "require_active", "require_role"]
