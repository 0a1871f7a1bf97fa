"""Scoped session helpers.

Each operation acquires a session from the injected factory, uses it, and
releases it. Write scopes run inside a single transaction that commits on
success and rolls back on any exception.
"""

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from care_assistant.errors import CareCoreError, ConstraintViolationError, StorageError
from care_assistant.utils.metrics import CoreMetrics, PrometheusCoreMetrics

logger = logging.getLogger(__name__)

_default_metrics = PrometheusCoreMetrics()


def _elapsed_ms(start: float) -> float:
    return (time.monotonic() - start) * 1000


@asynccontextmanager
async def write_scope(
    sessions: async_sessionmaker[AsyncSession],
    operation: str,
    metrics: CoreMetrics | None = None,
) -> AsyncIterator[AsyncSession]:
    """Run the block in one transaction.

    Storage errors are wrapped in ``StorageError`` (``ConstraintViolationError``
    for integrity failures) after the rollback; core errors raised inside the
    block propagate unchanged, also after the rollback.
    """
    metrics = metrics or _default_metrics
    start = time.monotonic()
    try:
        async with sessions.begin() as session:
            yield session
    except IntegrityError as e:
        metrics.inc_rollback(operation, "constraint")
        metrics.record_latency(operation, "rolled_back", _elapsed_ms(start))
        logger.error(f"[{operation}] constraint violation, rolled back: {e.orig}", exc_info=True)
        raise ConstraintViolationError(f"{operation}: {e.orig}") from e
    except SQLAlchemyError as e:
        metrics.inc_rollback(operation, "storage")
        metrics.record_latency(operation, "rolled_back", _elapsed_ms(start))
        logger.error(f"[{operation}] transaction failed, rolled back: {e}", exc_info=True)
        raise StorageError(f"{operation}: {e}") from e
    except Exception as e:
        metrics.inc_rollback(operation, "rejected" if isinstance(e, CareCoreError) else "error")
        metrics.record_latency(operation, "rolled_back", _elapsed_ms(start))
        raise

    metrics.record_latency(operation, "committed", _elapsed_ms(start))


@asynccontextmanager
async def read_scope(
    sessions: async_sessionmaker[AsyncSession], operation: str
) -> AsyncIterator[AsyncSession]:
    """Plain session for reads; no explicit transaction is opened."""
    try:
        async with sessions() as session:
            yield session
    except SQLAlchemyError as e:
        logger.error(f"[{operation}] read failed: {e}", exc_info=True)
        raise StorageError(f"{operation}: {e}") from e
