"""Create database tables from the model metadata"""
import asyncio

import models  # noqa: F401  registers every table on Base.metadata
from core.database import Base, engine


async def init_db():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    await engine.dispose()

    print("Tables ready:")
    for table in Base.metadata.sorted_tables:
        print(f"  {table.name}")


if __name__ == "__main__":
    asyncio.run(init_db())
