from typing import AsyncIterator

from sqlalchemy.ext.asyncio import AsyncSession

from libs.db.config import AsyncSessionLocal


async def get_async_db() -> AsyncIterator[AsyncSession]:
    """Request-scoped session.

    Handlers commit explicitly; anything left uncommitted when the request
    raises is rolled back before the connection returns to the pool.
    """
    session = AsyncSessionLocal()
    try:
        yield session
    except Exception:
        await session.rollback()
        raise
    finally:
        await session.close()
