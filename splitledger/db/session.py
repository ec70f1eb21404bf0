from functools import wraps
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.orm import declarative_base
from splitledger.core.config import settings

engine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DB_ECHO,
    future=True,
)

async_session = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)

Base = declarative_base()


async def get_db():
    async with async_session() as session:
        yield session


def atomic(fn):
    """Roll the session back when the wrapped service call fails, so a
    rejected operation never leaves half-applied changes or held locks."""
    @wraps(fn)
    async def wrapper(db: AsyncSession, *args, **kwargs):
        try:
            return await fn(db, *args, **kwargs)
        except Exception:
            await db.rollback()
            raise
    return wrapper
