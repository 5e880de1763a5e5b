"""Commit helper shared by the resource services.

Learn: The database is the last line of defence for uniqueness and
referential integrity (two requests can race past the same pre-check).
commit() turns whatever the database rejects into the typed errors from
tradeboard.errors, rolls back, and never lets a raw driver error leak.
"""

from typing import Optional

import structlog
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from tradeboard.errors import AppError, Internal, translate_integrity_error

logger = structlog.get_logger()


async def commit(
    db: AsyncSession,
    *,
    conflict: str = "Resource already exists.",
    foreign_key: Optional[AppError] = None,
    **context,
) -> None:
    """Commit the session, translating storage failures.

    `context` ends up in the log line (ids, company, operation).
    """
    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        raise translate_integrity_error(
            e, conflict=conflict, foreign_key=foreign_key, **context
        ) from e
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error("storage.commit_failed", error=str(e), **context)
        raise Internal() from e
