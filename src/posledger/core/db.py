"""Database configuration, session management and the unit of work."""

import os
from contextlib import asynccontextmanager
from typing import AsyncGenerator, AsyncIterator

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from posledger.core.errors import AppError, InternalError
from posledger.core.logging import get_logger

logger = get_logger(__name__)

DATABASE_URL = os.getenv("DATABASE_URL", "")

# Hosting providers hand out postgres:// or postgresql://, asyncpg needs postgresql+asyncpg://
if DATABASE_URL.startswith("postgres://"):
    DATABASE_URL = DATABASE_URL.replace("postgres://", "postgresql+asyncpg://", 1)
elif DATABASE_URL.startswith("postgresql://"):
    DATABASE_URL = DATABASE_URL.replace("postgresql://", "postgresql+asyncpg://", 1)
elif not DATABASE_URL:
    DATABASE_URL = "postgresql+asyncpg://posledger:dev_password_change_in_prod@db:5432/posledger_dev"

engine = create_async_engine(DATABASE_URL, pool_pre_ping=True)

# Session factory
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)

# Declarative base
Base = declarative_base()


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency for database sessions."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


@asynccontextmanager
async def atomic(db: AsyncSession, operation: str = "operation") -> AsyncIterator[AsyncSession]:
    """Run a block as one all-or-nothing unit of work.

    Opens a transaction when the session is idle, or a SAVEPOINT when the caller
    already holds one, so a failure only ever discards this block's writes.
    Domain errors propagate untouched. Storage errors are logged and surfaced
    as a generic InternalError so driver messages never reach callers.
    """
    begin = db.begin_nested if db.in_transaction() else db.begin
    try:
        async with begin():
            yield db
    except AppError:
        raise
    except SQLAlchemyError as exc:
        logger.error("uow.failed", operation=operation, error=type(exc).__name__, exc_info=True)
        raise InternalError(f"Could not complete {operation}") from exc
