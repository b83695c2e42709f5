"""
Transaction coordinator.

Runs a unit of work inside a single atomic transaction: every row it
touches commits together or not at all. Transient store failures retry
the whole unit of work; everything else propagates on the first attempt.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ledger_backend.app.core.exceptions import AppException, TransientStoreError
from ledger_backend.app.core.reliability import RetryPolicy, is_transient_error

logger = logging.getLogger("ledger.transaction")

UnitOfWork = Callable[..., Awaitable[Any]]


class TransactionCoordinator:
    """
    Owns transaction boundaries for multi-row mutations.

    Usage:
        coordinator = TransactionCoordinator(AsyncSessionLocal)
        result = await coordinator.run(do_work, arg1, arg2)

    ``do_work`` receives a session with an open transaction as its first
    argument. It must not commit; the coordinator commits when it returns
    and rolls back when it raises.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker,
        policy: Optional[RetryPolicy] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.session_factory = session_factory
        self.policy = policy or RetryPolicy.from_settings()
        self._sleep = sleep

    async def run(self, work: UnitOfWork, *args, **kwargs) -> Any:
        attempt = 0
        while True:
            attempt += 1
            try:
                return await self._run_once(work, *args, **kwargs)
            except AppException:
                # Domain errors are decided by current state; retrying cannot help
                raise
            except Exception as exc:
                if not is_transient_error(exc):
                    raise
                if attempt >= self.policy.max_attempts:
                    logger.error(
                        "Transaction failed after retries",
                        extra={"work": _name(work), "attempts": attempt, "error": str(exc)},
                    )
                    raise TransientStoreError(attempt, exc) from exc

                delay = self.policy.delay_for(attempt)
                logger.warning(
                    "Transient store failure, retrying",
                    extra={"work": _name(work), "attempt": attempt, "delay_s": delay, "error": str(exc)},
                )
                await self._sleep(delay)

    async def _run_once(self, work: UnitOfWork, *args, **kwargs) -> Any:
        session: AsyncSession
        async with self.session_factory() as session:
            async with session.begin():
                return await work(session, *args, **kwargs)


def _name(work: UnitOfWork) -> str:
    return getattr(work, "__qualname__", repr(work))
