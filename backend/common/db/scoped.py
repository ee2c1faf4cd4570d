"""
Operation-scoped database sessions.

Provides lazy session acquisition that releases connections immediately
after each operation, and an explicit unit of work for mutations that must
be all-or-nothing (subscription activation together with the payment flip,
renewal together with the counter reset, ...).

Usage:
    # Single operation - acquires and releases immediately
    async with get_session() as session:
        result = await session.get(Model, id)
    # Connection released here

    # Multiple operations in a transaction - share one session
    async with transaction():
        await payment_repo.mark_paid(payment_id)
        await subscription_repo.update(subscription_id, changes)
    # Commits together, then releases

    # Nested transaction() blocks join the outer unit of work
    async with transaction():
        await service_that_also_opens_a_transaction()
    # Only the outermost block commits

See also:
    - common/db/context.py: Decorators (@readonly, @transactional)
    - common/db/session.py: Request-scoped sessions (get_db)
"""

import time
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from common.core.exceptions import InternalError
from common.core.otel_axiom_exporter import get_logger
from common.db.session import AsyncSessionLocal, AsyncSessionLocalReadonly
from common.db.context import (
    get_current_session,
    set_current_session,
    reset_current_session,
    is_readonly_forced,
)

logger = get_logger(__name__)


@asynccontextmanager
async def transaction(readonly: bool = False) -> AsyncGenerator[AsyncSession, None]:
    """
    Explicit transaction boundary.

    All DB operations inside share one session/connection.
    Commits on success (unless readonly), rolls back on every other exit.
    A transaction() opened while another one is active in the same context
    reuses the outer session and leaves commit/rollback to the outer block.

    Args:
        readonly: If True, uses readonly session and skips commit.
                  Also respects @readonly decorator if applied to caller.

    Yields:
        The session for this transaction

    Raises:
        InternalError: Store failure (SQLAlchemyError), after rollback
        Exception: Re-raises any other exception after rollback
    """
    effective_readonly = readonly or is_readonly_forced()
    existing = get_current_session(readonly=effective_readonly)
    if existing is not None:
        logger.debug("Joining existing transaction session")
        yield existing
        return

    session_factory = (
        AsyncSessionLocalReadonly if effective_readonly else AsyncSessionLocal
    )

    start = time.perf_counter()
    async with session_factory() as session:
        acquire_time = time.perf_counter() - start
        logger.debug(
            f"Transaction session acquire: {acquire_time * 1000:.2f}ms, readonly={effective_readonly}"
        )

        token = set_current_session(session, readonly=effective_readonly)
        try:
            yield session
            if not effective_readonly:
                commit_start = time.perf_counter()
                await session.commit()
                commit_time = time.perf_counter() - commit_start
                logger.debug(f"Transaction commit: {commit_time * 1000:.2f}ms")
        except SQLAlchemyError as e:
            logger.error(
                f"Transaction rollback due to store failure: {e}",
                extra={"error_type": type(e).__name__},
            )
            await session.rollback()
            raise InternalError("Storage operation failed") from e
        except Exception as e:
            logger.error(f"Transaction rollback due to: {e}")
            await session.rollback()
            raise
        finally:
            reset_current_session(token, readonly=effective_readonly)


@asynccontextmanager
async def get_session(readonly: bool = False) -> AsyncGenerator[AsyncSession, None]:
    """
    Get a session for a single DB operation.

    This is the primary interface for repositories. It provides lazy session
    management that:
    - Reuses session if inside a transaction() block
    - Otherwise acquires a new session, auto-commits, and releases immediately

    Args:
        readonly: If True, uses readonly session (for read replicas).
                  Also respects @readonly decorator if applied to caller.

    Yields:
        A session for the operation
    """
    effective_readonly = readonly or is_readonly_forced()
    existing = get_current_session(readonly=effective_readonly)

    if existing:
        # Inside a transaction - reuse session, don't commit (transaction handles it)
        logger.debug("Reusing existing transaction session")
        yield existing
    else:
        # Standalone operation - acquire, commit, release
        session_factory = (
            AsyncSessionLocalReadonly if effective_readonly else AsyncSessionLocal
        )

        start = time.perf_counter()
        async with session_factory() as session:
            acquire_time = time.perf_counter() - start
            logger.debug(
                f"Operation session acquire: {acquire_time * 1000:.2f}ms, readonly={effective_readonly}"
            )

            try:
                yield session
                if not effective_readonly:
                    commit_start = time.perf_counter()
                    await session.commit()
                    commit_time = time.perf_counter() - commit_start
                    logger.debug(f"Operation commit: {commit_time * 1000:.2f}ms")
            except SQLAlchemyError as e:
                logger.error(f"Operation rollback due to store failure: {e}")
                await session.rollback()
                raise InternalError("Storage operation failed") from e
            except Exception as e:
                logger.error(f"Operation rollback due to: {e}")
                await session.rollback()
                raise
            # Connection released here when context manager exits
