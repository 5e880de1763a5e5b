"""Health check endpoint.

Learn: Simple GET endpoint that tells load balancers and the frontend the
server is up, with a timestamp, and whether the database answers.
"""

from datetime import datetime, timezone

import structlog
from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from tradeboard import __version__
from tradeboard.db.engine import get_db

logger = structlog.get_logger()

router = APIRouter()


@router.get("/health")
async def health_check(db: AsyncSession = Depends(get_db)):
    """Service liveness plus a database probe."""
    checks = {"version": __version__}

    try:
        await db.execute(text("SELECT 1"))
        checks["database"] = "ok"
    except (SQLAlchemyError, OSError) as e:
        logger.warning("health.database_unavailable", error=str(e))
        checks["database"] = "error"

    status = "UP" if checks["database"] == "ok" else "DEGRADED"
    return {
        "status": status,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        **checks,
    }
