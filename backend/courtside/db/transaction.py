import contextlib
from sqlalchemy.ext.asyncio import AsyncSession


# Commit on success, roll back everything on any error
@contextlib.asynccontextmanager
async def transaction(db: AsyncSession):
    try:
        yield db
        await db.commit()
    except Exception:
        await db.rollback()
        raise
