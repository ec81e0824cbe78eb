"""Async SQLAlchemy engine, session factory and declarative base."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from app.core.config import settings
from app.core.exceptions import StoreError

logger = logging.getLogger(__name__)

engine = create_async_engine(settings.DATABASE_URL, echo=False, pool_pre_ping=True)
async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

Base = declarative_base()


async def get_db() -> AsyncIterator[AsyncSession]:
    """FastAPI dependency yielding a request-scoped session."""
    async with async_session() as session:
        yield session


@asynccontextmanager
async def store_errors(session: AsyncSession, action: str) -> AsyncIterator[None]:
    """Roll back and re-raise database failures as ``StoreError``."""
    try:
        yield
    except SQLAlchemyError as e:
        await session.rollback()
        logger.error("Database error while trying to %s: %s", action, e)
        raise StoreError(f"Could not {action}") from e
