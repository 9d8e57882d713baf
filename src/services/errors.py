"""Lease error taxonomy.

Every rejection is synchronous and all-or-nothing: the operation raising one of
these leaves the agreement exactly as it was. Each error carries a stable code
and the HTTP status the API answers with.
"""

from typing import Any, Dict

from fastapi import status


class LeaseError(Exception):
    """Base lease error."""

    def __init__(self, message: str, code: str, http_status: int = 400):
        """Initialize error."""
        self.message = message
        self.code = code
        self.http_status = http_status
        super().__init__(message)


class UnauthorizedError(LeaseError):
    """Caller does not hold the role the operation requires."""

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message, "unauthorized", status.HTTP_403_FORBIDDEN)


class IncorrectAmountError(LeaseError):
    """Transferred value differs from the exact amount due."""

    def __init__(self, message: str = "Incorrect amount"):
        super().__init__(message, "incorrect_amount", status.HTTP_400_BAD_REQUEST)


class PaymentOverdueError(LeaseError):
    """Payment attempted after the rent due date."""

    def __init__(self, message: str = "Payment overdue"):
        super().__init__(message, "payment_overdue", status.HTTP_400_BAD_REQUEST)


class AlreadyPaidError(LeaseError):
    """Deposit has already been paid."""

    def __init__(self, message: str = "Deposit already paid"):
        super().__init__(message, "already_paid", status.HTTP_409_CONFLICT)


class AlreadyTerminatedError(LeaseError):
    """Agreement is in its terminal state."""

    def __init__(self, message: str = "Contract already terminated"):
        super().__init__(message, "already_terminated", status.HTTP_409_CONFLICT)


class NothingToWithdrawError(LeaseError):
    """Held balance does not exceed the deposit reservation."""

    def __init__(self, message: str = "Nothing to withdraw"):
        super().__init__(message, "nothing_to_withdraw", status.HTTP_400_BAD_REQUEST)


class AgreementNotFoundError(LeaseError):
    """No agreement with the requested id."""

    def __init__(self, agreement_id: int):
        super().__init__(
            f"Agreement {agreement_id} not found",
            "agreement_not_found",
            status.HTTP_404_NOT_FOUND,
        )


class InvalidAgreementError(LeaseError):
    """Creation parameters are unusable (negative amounts, same party twice, ...)."""

    def __init__(self, message: str):
        super().__init__(message, "invalid_agreement", status.HTTP_400_BAD_REQUEST)


def error_response(error: LeaseError) -> Dict[str, Any]:
    """Create a standardized error response."""
    return {
        "error": {
            "code": error.code,
            "message": error.message,
        }
    }


__all__ = [
    "LeaseError",
    "UnauthorizedError",
    "IncorrectAmountError",
    "PaymentOverdueError",
    "AlreadyPaidError",
    "AlreadyTerminatedError",
    "NothingToWithdrawError",
    "AgreementNotFoundError",
    "InvalidAgreementError",
    "error_response",
]
