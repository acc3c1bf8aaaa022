"""
Database connection and session management for SQLAlchemy 2.0.
Configured for async operations with PostgreSQL (asyncpg) or SQLite (aiosqlite).
"""
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    create_async_engine,
    async_sessionmaker,
)
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import NullPool
from sqlalchemy import event, text
from urllib.parse import urlparse
import logging
import socket

from studio_site.config import Settings

logger = logging.getLogger(__name__)

# Create declarative base for models
Base = declarative_base()


def _engine_args(url: str) -> dict:
    """Build engine keyword arguments for the configured backend."""
    args = {
        "echo": False,  # Set to True for SQL query logging in development
    }

    if url.startswith("postgresql"):
        args.update({
            "pool_size": 10,  # Number of connections to maintain in pool
            "max_overflow": 20,  # Additional connections allowed beyond pool_size
            "pool_pre_ping": True,  # Verify connections before using (handles stale connections)
            "pool_recycle": 3600,  # Recycle connections after 1 hour
            "connect_args": {
                "server_settings": {
                    "application_name": "studio-site-backend"
                }
            }
        })
    elif url.startswith("sqlite"):
        # aiosqlite connections are bound to the event loop that opened them
        args["poolclass"] = NullPool

    return args


def _validate_database_url(url: str) -> tuple[bool, str]:
    """
    Validate database URL and provide diagnostic information.
    Returns (is_valid, diagnostic_message)
    """
    if not url:
        return False, "DATABASE_URL is empty"

    try:
        parsed = urlparse(url)

        if url.startswith("sqlite"):
            return True, f"SQLite database: {parsed.path or ':memory:'}"

        if not url.startswith(("postgresql://", "postgresql+asyncpg://")):
            return False, f"Invalid database URL scheme. Expected postgresql+asyncpg:// or sqlite+aiosqlite://, got: {parsed.scheme}"

        hostname = parsed.hostname
        if not hostname:
            return False, "No hostname found in DATABASE_URL"

        try:
            socket.getaddrinfo(hostname, None)
            dns_status = "DNS resolution successful"
        except socket.gaierror as e:
            dns_status = f"DNS resolution failed: {str(e)}"

        return True, f"URL format valid. Hostname: {hostname}, Port: {parsed.port or 5432}, Database: {parsed.path or '/postgres'}. {dns_status}"

    except Exception as e:
        return False, f"Error parsing DATABASE_URL: {str(e)}"


class Database:
    """
    Owns the async engine and session factory for one application instance.

    Created by the application factory and closed on shutdown, so nothing
    here is a process-wide global.
    """

    def __init__(self, settings: Settings):
        self.url = settings.DATABASE_URL
        self.auto_create = settings.DATABASE_AUTO_CREATE
        self.engine: AsyncEngine = create_async_engine(self.url, **_engine_args(self.url))

        if self.url.startswith("sqlite"):
            # SQLite ignores foreign keys unless asked per connection
            @event.listens_for(self.engine.sync_engine, "connect")
            def _enable_foreign_keys(dbapi_connection, connection_record):
                cursor = dbapi_connection.cursor()
                cursor.execute("PRAGMA foreign_keys=ON")
                cursor.close()

        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autocommit=False,
            autoflush=False,
        )

    async def connect(self) -> None:
        """
        Verify the database connection and optionally create missing tables.

        Raises:
            ValueError: If DATABASE_URL is malformed
            Exception: Any driver error; the caller treats it as fatal
        """
        is_valid, diagnostic = _validate_database_url(self.url)
        if not is_valid:
            logger.error(f"Invalid DATABASE_URL: {diagnostic}")
            raise ValueError(f"Invalid DATABASE_URL: {diagnostic}")

        logger.info(f"Database URL validation: {diagnostic}")

        try:
            async with self.engine.begin() as conn:
                await conn.execute(text("SELECT 1"))
                if self.auto_create:
                    # Import models so every table is registered on Base.metadata
                    from studio_site import models  # noqa: F401

                    await conn.run_sync(Base.metadata.create_all)
                    logger.info("Database tables created (if missing)")
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

    async def ping(self) -> None:
        """Run a trivial query; used by the database health check."""
        async with self.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))

    async def close(self) -> None:
        """Close database connections."""
        await self.engine.dispose()
        logger.info("Database connections closed")
