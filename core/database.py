from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import declarative_base

from core.config import get_settings

settings = get_settings()


def _engine_options(database_url: str) -> dict:
    """Pool sizing only applies to server databases"""
    if database_url.startswith("sqlite"):
        return {}
    return {
        "pool_pre_ping": True,
        "pool_size": 20,
        "max_overflow": 30,
        "pool_recycle": 3600,
    }


engine = create_async_engine(
    settings.database_url,
    echo=settings.database_echo,
    **_engine_options(settings.database_url),
)

AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
    autocommit=False,
)

Base = declarative_base()


async def get_db():
    """
    Database session dependency.

    Services commit explicitly; OAuth linking needs the new account committed
    before ingestion starts so that an ingestion failure cannot undo it.

    Note: async with context manager handles session cleanup automatically.
    """
    async with AsyncSessionLocal() as session:
        yield session
