"""
Database Initialization

Creates the SQLite table for NETS transaction records and provides the
async session factory used by the transaction store.
"""
import asyncio
import logging
from pathlib import Path

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from ..config import settings
from .models import Base

logger = logging.getLogger(__name__)


async def create_tables(bind: AsyncEngine) -> None:
    """
    Create all tables on the given engine.

    File databases are switched to WAL mode so the callback path and the
    order path do not block each other on reads.
    """
    async with bind.begin() as conn:
        database = bind.url.database
        if database and database != ":memory:":
            await conn.exec_driver_sql("PRAGMA journal_mode=WAL")
            await conn.exec_driver_sql("PRAGMA synchronous=NORMAL")
        await conn.run_sync(Base.metadata.create_all)


async def initialize_database() -> None:
    """
    Initialize the database with all required tables.

    Called during FastAPI startup.
    """
    db_path = Path(settings.database_path)
    logger.info(f"Initializing database at: {db_path}")

    db_path.parent.mkdir(parents=True, exist_ok=True)
    await create_tables(engine)

    logger.info(f"Database initialized successfully at {db_path}")


# ============================================================================
# SQLAlchemy Async Session Setup for FastAPI
# ============================================================================

DATABASE_URL = f"sqlite+aiosqlite:///{settings.database_path}"
engine = create_async_engine(
    DATABASE_URL,
    echo=False,
    connect_args={
        "timeout": 30,  # seconds to wait for the SQLite write lock
        "check_same_thread": False
    },
    pool_pre_ping=True,
    pool_recycle=3600
)

AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False
)


def main():
    """CLI entry point for initializing database."""
    logging.basicConfig(level=logging.INFO)
    asyncio.run(initialize_database())


if __name__ == "__main__":
    main()
