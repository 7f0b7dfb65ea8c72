import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)


@asynccontextmanager
async def atomic(db: AsyncSession) -> AsyncIterator[AsyncSession]:
    """
    Run a multi-step write as one unit: commit on success, roll back and
    re-raise on any failure, including guard failures raised mid-way.
    Row locks taken inside the block are released either way.
    """
    try:
        yield db
        await db.commit()
    except HTTPException:
        await db.rollback()
        raise
    except Exception:
        logger.exception("Transaction rolled back")
        await db.rollback()
        raise
