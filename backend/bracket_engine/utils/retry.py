"""
Transaction boundary helper for the orchestrator.

Runs an operation against a caller-owned Session, commits on success and rolls
back on any failure. Only OperationalError (lock timeouts, deadlocks,
serialization failures) is retried; engine errors propagate on the first
attempt.
"""
import logging
import time
from typing import Callable, Optional, Sequence, TypeVar

from sqlalchemy.exc import OperationalError
from sqlmodel import Session

from bracket_engine.config import TX_RETRY_ATTEMPTS, TX_RETRY_BACKOFF_MS

logger = logging.getLogger(__name__)

T = TypeVar("T")


def run_in_transaction(
    session: Session,
    operation: Callable[[Session], T],
    max_attempts: Optional[int] = None,
    backoff_ms: Optional[Sequence[int]] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """Execute operation(session) as one transaction, retrying on contention."""
    attempts = max_attempts if max_attempts is not None else TX_RETRY_ATTEMPTS
    delays = list(backoff_ms if backoff_ms is not None else TX_RETRY_BACKOFF_MS) or [0]
    attempts = max(attempts, 1)

    for attempt in range(attempts):
        try:
            result = operation(session)
            session.commit()
            return result
        except OperationalError as e:
            session.rollback()
            if attempt >= attempts - 1:
                logger.exception("Transaction failed after %s attempts, rolled back", attempts)
                raise
            delay = delays[min(attempt, len(delays) - 1)] / 1000
            logger.warning(f"Retry {attempt + 1}/{attempts} after persistence error: {e}. Waiting {delay}s")
            sleep(delay)
        except Exception:
            session.rollback()
            raise

    raise RuntimeError("unreachable")
