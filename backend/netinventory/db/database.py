from sqlalchemy.ext.asyncio import create_async_engine, AsyncEngine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import NullPool
from sqlalchemy import text
from typing import Optional
import asyncio
import logging
from functools import wraps

from ..core.config import settings

logger = logging.getLogger(__name__)


def create_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    """Create an async engine, with SQLite-specific settings when relevant."""
    if database_url.startswith("sqlite"):
        return create_async_engine(
            database_url,
            echo=echo,
            # SQLite-specific settings for better concurrency
            connect_args={
                "timeout": 30,  # Increase timeout for locked database
                "check_same_thread": False,
            },
            poolclass=NullPool,  # Disable connection pooling for SQLite
        )
    return create_async_engine(database_url, echo=echo, pool_pre_ping=True)


def create_session_factory(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
        autocommit=False,
    )


engine = create_engine(settings.DATABASE_URL, echo=settings.DEBUG)

# Create async session factory
AsyncSessionLocal = create_session_factory(engine)

# Base class for models
Base = declarative_base()


async def init_db(bind: Optional[AsyncEngine] = None):
    """Initialize database tables and configure SQLite for WAL mode."""
    bind = bind or engine
    async with bind.begin() as conn:
        if bind.dialect.name == "sqlite":
            # Enable WAL mode for better concurrency
            await conn.execute(text("PRAGMA journal_mode=WAL"))
            # Set busy timeout
            await conn.execute(text("PRAGMA busy_timeout=30000"))  # 30 seconds
        # Create tables
        await conn.run_sync(Base.metadata.create_all)


def with_db_retry(max_retries: int = 3, delay: float = 0.5):
    """Decorator to retry database operations on lock errors."""
    def decorator(func):
        @wraps(func)
        async def wrapper(*args, **kwargs):
            from sqlalchemy.exc import OperationalError
            
            last_exception = None
            for attempt in range(max_retries):
                try:
                    return await func(*args, **kwargs)
                except OperationalError as e:
                    if "database is locked" in str(e):
                        last_exception = e
                        if attempt < max_retries - 1:
                            wait_time = delay * (2 ** attempt)  # Exponential backoff
                            logger.warning("Database locked, retrying in %ss... (attempt %d/%d)",
                                           wait_time, attempt + 1, max_retries)
                            await asyncio.sleep(wait_time)
                        else:
                            logger.error("Database locked after %d attempts", max_retries)
                    else:
                        raise
            
            # If we exhausted all retries, raise the last exception
            if last_exception:
                raise last_exception
        
        return wrapper
    return decorator
