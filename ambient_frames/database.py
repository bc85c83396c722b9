"""
Database connection and session management for SQLAlchemy 2.0.
Configured for async operations against PostgreSQL (asyncpg) or SQLite (aiosqlite).
"""
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    create_async_engine,
    async_sessionmaker,
)
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import NullPool
from sqlalchemy import text
from fastapi import HTTPException
from urllib.parse import urlparse
import logging

from ambient_frames.config import settings

logger = logging.getLogger(__name__)

SUPPORTED_SCHEMES = ("postgresql+asyncpg", "sqlite+aiosqlite")

# Create declarative base for models
Base = declarative_base()

_engine_args = {
    "echo": False,  # Set to True for SQL query logging in development
}

if settings.DATABASE_URL.startswith("postgresql"):
    _engine_args.update({
        "pool_size": 10,
        "max_overflow": 20,
        "pool_pre_ping": True,  # Verify connections before using (handles stale connections)
        "pool_recycle": 3600,
        "connect_args": {
            "server_settings": {
                "application_name": "ambient-frames-api"
            }
        }
    })
elif settings.DATABASE_URL.startswith("sqlite"):
    # SQLite connections are cheap to open and must not be shared across event loops
    _engine_args["poolclass"] = NullPool

engine = create_async_engine(
    settings.DATABASE_URL if settings.DATABASE_URL else "sqlite+aiosqlite:///:memory:",
    **_engine_args
)

# Create async session factory
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)


async def get_db() -> AsyncSession:
    """
    FastAPI dependency for database sessions.
    Provides async database session with automatic commit/rollback.

    Usage:
        @router.get("/endpoint")
        async def my_endpoint(db: AsyncSession = Depends(get_db)):
            ...
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except HTTPException:
            await session.rollback()
            raise
        except Exception as e:
            await session.rollback()
            logger.error(f"Database session error: {str(e)}", exc_info=True)
            raise
        finally:
            await session.close()


def validate_database_url(url: str) -> tuple[bool, str]:
    """
    Validate database URL and provide diagnostic information.
    Returns (is_valid, diagnostic_message)
    """
    if not url:
        return False, "DATABASE_URL is empty"

    try:
        parsed = urlparse(url)
    except ValueError as e:
        return False, f"Error parsing DATABASE_URL: {str(e)}"

    if parsed.scheme not in SUPPORTED_SCHEMES:
        return False, (
            f"Unsupported database URL scheme '{parsed.scheme}'. "
            f"Expected one of: {', '.join(SUPPORTED_SCHEMES)}"
        )

    if parsed.scheme.startswith("sqlite"):
        return True, f"SQLite database at '{parsed.path or ':memory:'}'"

    if not parsed.hostname:
        return False, "No hostname found in DATABASE_URL"

    return True, f"Hostname: {parsed.hostname}, Port: {parsed.port or 5432}, Database: {parsed.path or '/postgres'}"


async def init_db():
    """
    Verify the database connection and create missing tables.
    A missing or invalid DATABASE_URL is fatal.
    """
    if not settings.DATABASE_URL:
        raise RuntimeError("DATABASE_URL is not defined. Set it in the environment or .env file.")

    is_valid, diagnostic = validate_database_url(settings.DATABASE_URL)
    if not is_valid:
        logger.error(f"Invalid DATABASE_URL: {diagnostic}")
        raise ValueError(f"Invalid DATABASE_URL: {diagnostic}")

    logger.info(f"Database URL validation: {diagnostic}")

    # Register models on Base.metadata before create_all
    from ambient_frames import models  # noqa: F401

    try:
        async with engine.begin() as conn:
            await conn.execute(text("SELECT 1"))
            if settings.AUTO_CREATE_TABLES:
                await conn.run_sync(Base.metadata.create_all)
                logger.info("Database tables verified")
        logger.info("Database connection initialized successfully")
    except Exception as e:
        error_msg = str(e)
        if "connection refused" in error_msg.lower() or "timeout" in error_msg.lower():
            logger.error(
                f"Database connection failed - Connection refused/timeout: {error_msg}\n"
                f"Diagnostic: {diagnostic}"
            )
        elif "authentication failed" in error_msg.lower() or "password" in error_msg.lower():
            logger.error(
                f"Database connection failed - Authentication error: {error_msg}\n"
                f"Diagnostic: {diagnostic}"
            )
        else:
            logger.error(
                f"Database connection failed ({type(e).__name__}): {error_msg}\n"
                f"Diagnostic: {diagnostic}"
            )
        raise


async def close_db():
    """Close database connections."""
    await engine.dispose()
    logger.info("Database connections closed")
