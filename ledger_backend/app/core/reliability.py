"""
Reliability Utilities.

Classifies store failures as transient or permanent and computes the
capped exponential backoff used when a transaction is retried.
"""

from dataclasses import dataclass

from sqlalchemy.exc import DBAPIError, OperationalError, TimeoutError as PoolTimeoutError

from ledger_backend.app.core.config import settings

# PostgreSQL: serialization_failure, deadlock_detected, lock_not_available,
# connection failures
TRANSIENT_SQLSTATES = {"40001", "40P01", "55P03", "08000", "08003", "08006"}

# Driver messages for the same conditions (SQLite, and drivers without sqlstate)
TRANSIENT_MESSAGE_MARKERS = (
    "database is locked",
    "database table is locked",
    "deadlock",
    "could not serialize",
    "lock timeout",
    "connection was closed",
    "connection is closed",
    "server closed the connection",
)


def _sqlstate(error) -> str:
    for candidate in (error, getattr(error, "__cause__", None)):
        if candidate is None:
            continue
        code = getattr(candidate, "sqlstate", None) or getattr(candidate, "pgcode", None)
        if code:
            return str(code)
    return ""


def is_transient_error(exc: BaseException) -> bool:
    """True for failures that a fresh attempt of the same transaction can fix."""
    if isinstance(exc, PoolTimeoutError):
        return True

    if not isinstance(exc, DBAPIError):
        return False

    if exc.connection_invalidated:
        return True

    if _sqlstate(exc.orig) in TRANSIENT_SQLSTATES:
        return True

    if isinstance(exc, OperationalError):
        message = str(exc.orig).lower()
        return any(marker in message for marker in TRANSIENT_MESSAGE_MARKERS)

    return False


@dataclass(frozen=True)
class RetryPolicy:
    """
    Bounded retry with capped exponential backoff.

    Attempt n (1-based) that fails transiently waits
    ``min(base_delay * 2 ** (n - 1), max_delay)`` before attempt n + 1.
    """
    max_attempts: int = 3
    base_delay: float = 0.05
    max_delay: float = 1.0

    @classmethod
    def from_settings(cls) -> "RetryPolicy":
        return cls(
            max_attempts=settings.transaction_max_attempts,
            base_delay=settings.transaction_backoff_base,
            max_delay=settings.transaction_backoff_max,
        )

    def delay_for(self, attempt: int) -> float:
        return min(self.base_delay * (2 ** (attempt - 1)), self.max_delay)
