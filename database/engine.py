import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy import BigInteger, Integer, event
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import StaticPool

from core.config import settings
from core.exceptions import TransactionFailure

logger = logging.getLogger(__name__)

# SQLite only autoincrements INTEGER primary keys
BigIntId = BigInteger().with_variant(Integer(), "sqlite")


def _engine_options(database_url: str) -> dict:
    if database_url.startswith("sqlite"):
        # Single shared connection so in-memory databases survive across sessions
        return {
            "connect_args": {"check_same_thread": False},
            "poolclass": StaticPool,
        }
    return {
        "pool_size": settings.database_pool_size,
        "max_overflow": settings.database_max_overflow,
        "pool_pre_ping": True,
    }


def enable_sqlite_foreign_keys(engine: AsyncEngine) -> None:
    """SQLite ignores foreign keys unless each connection turns them on."""

    @event.listens_for(engine.sync_engine, "connect")
    def _set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


db_engine = create_async_engine(
    settings.database_url,
    echo=settings.database_echo,
    **_engine_options(settings.database_url),
)
if settings.database_url.startswith("sqlite"):
    enable_sqlite_foreign_keys(db_engine)

# Create async session maker to be used throughout the application
AsyncSessionLocal = async_sessionmaker(
    db_engine, class_=AsyncSession, expire_on_commit=False
)


# Base class for declarative models
class Base(DeclarativeBase):
    pass


# Dependency to get DB session
async def get_db():
    async with AsyncSessionLocal() as session:
        yield session


@asynccontextmanager
async def atomic(session: AsyncSession) -> AsyncIterator[AsyncSession]:
    """
    Run a block of work as one transaction.

    Commits when the block exits normally. Any exception raised inside the
    block (cancellation included) rolls back everything done in the session
    since the last commit and is re-raised. A failing commit is rolled back
    and reported as TransactionFailure.
    """
    try:
        yield session
    except BaseException:
        await session.rollback()
        raise

    try:
        await session.commit()
    except SQLAlchemyError as exc:
        await session.rollback()
        logger.error(f"Transaction commit failed: {type(exc).__name__}", exc_info=True)
        raise TransactionFailure("Failed to commit transaction") from exc


# Function to initialize the database (create tables)
async def init_db():
    # Register every model on Base.metadata
    from database.models import candidates, companies, departments, positions, users  # noqa: F401

    async with db_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database schema ready")


# Function to close database connections
async def close_db():
    """Close database engine and connections."""
    await db_engine.dispose()
