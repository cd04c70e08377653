from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.exceptions import KanbanError, InternalError
from src.logs import debug_logger, api_logger


@asynccontextmanager
async def transaction(db: AsyncSession, failure_message: str) -> AsyncIterator[AsyncSession]:
    """Commit the block's writes, or roll them back and report the failure.

    Service errors raised inside the block are re-raised unchanged; database
    errors become InternalError(failure_message). Steps committed by earlier
    blocks are left in place.
    """
    try:
        yield db
        await db.commit()
    except KanbanError:
        await db.rollback()
        raise
    except SQLAlchemyError as e:
        await db.rollback()
        debug_logger.error(f"{failure_message}: {e}")
        api_logger.error(f"{failure_message}: {e.__class__.__name__}")
        raise InternalError(failure_message) from e
