"""Bounded retry for transient storage failures

Lock timeouts, "database is locked" and dropped connections are retried a
few times with exponential backoff. Anything else, and retry exhaustion,
becomes a STORAGE_ERROR result.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable
from sqlalchemy.exc import DBAPIError, OperationalError
from libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from .errors import ErrorCode

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RetryPolicy:
    max_retries: int = 3
    backoff_seconds: float = 0.05

    @classmethod
    def from_config(cls, config) -> "RetryPolicy":
        return cls(
            max_retries=config.STORAGE_MAX_RETRIES,
            backoff_seconds=config.STORAGE_RETRY_BACKOFF_SECONDS,
        )


def is_transient(exc: Exception) -> bool:
    if isinstance(exc, (OperationalError, asyncio.TimeoutError)):
        return True
    return isinstance(exc, DBAPIError) and exc.connection_invalidated


async def run_with_retry(
    uow: UnitOfWork,
    operation: Callable[[], Awaitable[Result]],
    operation_name: str,
    policy: RetryPolicy,
) -> Result:
    """
    Run operation, rolling back and retrying on transient storage errors

    Args:
        uow: Unit of work whose transaction is rolled back between attempts
        operation: Coroutine factory; each call is one full attempt
        operation_name: Name used in logs and error messages
        policy: Retry bounds

    Returns:
        The operation's Result, or a STORAGE_ERROR result
    """
    attempt = 0
    while True:
        try:
            return await operation()
        except Exception as e:
            await uow.rollback()

            if is_transient(e) and attempt < policy.max_retries:
                delay = policy.backoff_seconds * (2 ** attempt)
                attempt += 1
                logger.warning(
                    f"{operation_name}: transient storage error, retry {attempt}/{policy.max_retries} "
                    f"in {delay:.3f}s: {e}"
                )
                await asyncio.sleep(delay)
                continue

            logger.error(f"{operation_name} failed after {attempt + 1} attempt(s): {e}")
            return Return.err(
                Error(
                    code=ErrorCode.STORAGE_ERROR,
                    message=f"Storage failure during {operation_name}",
                    reason=str(e),
                )
            )
