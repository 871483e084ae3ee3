"""Unit-of-work helper: one public engine operation = one transaction."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from skillsage.errors import PersistenceError, RewardsError

logger = logging.getLogger(__name__)


@asynccontextmanager
async def atomic(db: AsyncSession) -> AsyncIterator[AsyncSession]:
    """Commit when the block succeeds, roll back on any failure.

    Database failures are re-raised as PersistenceError so callers only ever
    see the engine's typed errors.
    """
    try:
        yield db
        await db.commit()
    except RewardsError:
        await db.rollback()
        raise
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.warning("Transaction rolled back: %s", exc.__class__.__name__, exc_info=True)
        raise PersistenceError(f"Could not commit operation: {exc.__class__.__name__}") from exc
    except Exception:
        await db.rollback()
        raise
