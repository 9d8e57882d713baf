"""Custom column types shared by the lease models."""

from sqlalchemy import String
from sqlalchemy.types import TypeDecorator


class TokenAmount(TypeDecorator):
    """Non-negative integer amount in the smallest currency unit.

    Stored as a decimal string: amounts scaled by 10**18 overflow BIGINT and
    SQLite would round them as REAL.
    """

    impl = String(80)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if isinstance(value, bool) or not isinstance(value, int):
            raise TypeError(f"TokenAmount expects int, got {type(value).__name__}")
        if value < 0:
            raise ValueError(f"TokenAmount cannot be negative: {value}")
        return str(value)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return int(value)


__all__ = ["TokenAmount"]
