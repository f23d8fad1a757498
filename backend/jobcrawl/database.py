"""
Storage client for the jobs table.

A single Database instance is created at application startup (see main.py
lifespan), kept on app.state, and handed to routes through the get_db /
get_database dependencies. Scripts create their own instance and must call
dispose() when done.
"""

import logging
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import AsyncIterator, Optional

from fastapi import Request
from sqlalchemy import delete, event, func, inspect, make_url, select, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import StaticPool

from jobcrawl.config import Settings

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    pass


def async_database_url(url: str) -> str:
    """Map a plain database URL onto its asyncio driver."""
    if url.startswith("sqlite:///"):
        return url.replace("sqlite:///", "sqlite+aiosqlite:///", 1)
    if url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql+asyncpg://", 1)
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+asyncpg://", 1)
    return url


def _enable_sqlite_savepoints(engine: AsyncEngine) -> None:
    # The sqlite driver issues its own BEGIN lazily, which breaks SAVEPOINT.
    # Hand transaction control back to SQLAlchemy.
    @event.listens_for(engine.sync_engine, "connect")
    def do_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def do_begin(conn):
        conn.exec_driver_sql("BEGIN")


class Database:
    """Async engine plus session factory, shared process-wide."""

    def __init__(self, url: str, pool_size: int = 20, pool_timeout: float = 2.0, echo: bool = False):
        self.url = async_database_url(url)
        kwargs = {"echo": echo}

        if self.url.startswith("sqlite"):
            if ":memory:" in self.url:
                kwargs["poolclass"] = StaticPool
                kwargs["connect_args"] = {"check_same_thread": False}
            else:
                database_file = make_url(self.url).database
                if database_file:
                    Path(database_file).parent.mkdir(parents=True, exist_ok=True)
        else:
            kwargs["pool_size"] = pool_size
            kwargs["pool_timeout"] = pool_timeout
            kwargs["pool_pre_ping"] = True

        self.engine: AsyncEngine = create_async_engine(self.url, **kwargs)
        if self.dialect == "sqlite":
            _enable_sqlite_savepoints(self.engine)
        self.sessionmaker = async_sessionmaker(self.engine, class_=AsyncSession, expire_on_commit=False)

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        return cls(
            settings.database_url,
            pool_size=settings.db_pool_size,
            pool_timeout=settings.db_pool_timeout,
        )

    @property
    def dialect(self) -> str:
        return self.engine.dialect.name

    def session(self) -> AsyncSession:
        return self.sessionmaker()

    async def init(self) -> None:
        """Create the jobs table, its unique constraint and indexes if missing."""
        # Imported for its side effect of registering the table on Base.metadata
        from jobcrawl.models import Job  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database initialized and verified")

    async def dispose(self) -> None:
        await self.engine.dispose()


def get_database(request: Request) -> Database:
    return request.app.state.db


async def get_db(request: Request) -> AsyncIterator[AsyncSession]:
    async with get_database(request).session() as session:
        yield session


async def count_jobs(session: AsyncSession) -> int:
    from jobcrawl.models import Job

    result = await session.execute(select(func.count(Job.id)))
    return result.scalar() or 0


async def verify_schema(db: Database) -> dict:
    """
    Report connectivity and schema state of the jobs table.

    Raises whatever the driver raises when the database is unreachable;
    the caller turns that into an error response.
    """

    def inspect_jobs(sync_conn) -> dict:
        inspector = inspect(sync_conn)
        if not inspector.has_table("jobs"):
            return {"tableExists": False, "constraints": []}
        constraints = [
            {"name": c.get("name"), "columns": c.get("column_names", [])}
            for c in inspector.get_unique_constraints("jobs")
        ]
        constraints.extend(
            {"name": idx.get("name"), "columns": idx.get("column_names", [])}
            for idx in inspector.get_indexes("jobs")
            if idx.get("unique")
        )
        return {"tableExists": True, "constraints": constraints}

    async with db.engine.connect() as conn:
        await conn.execute(text("SELECT 1"))
        state = await conn.run_sync(inspect_jobs)

    job_count = 0
    if state["tableExists"]:
        async with db.session() as session:
            job_count = await count_jobs(session)

    return {
        "connected": True,
        "tableExists": state["tableExists"],
        "jobCount": job_count,
        "hasUniqueConstraint": any("link" in c["columns"] for c in state["constraints"]),
        "constraints": state["constraints"],
    }


async def cleanup_old_jobs(db: Database, retention_days: int = 30, now: Optional[datetime] = None) -> int:
    """
    Delete postings whose posted_date sorts before the retention cutoff.

    posted_date is text, so the comparison is lexicographic against an ISO
    date; rows holding unparsed relative text are compared as strings too.
    Failures are logged and reported as zero deletions.
    """
    from jobcrawl.models import Job

    now = now or datetime.now(timezone.utc)
    cutoff = (now - timedelta(days=retention_days)).date().isoformat()

    try:
        async with db.session() as session:
            async with session.begin():
                result = await session.execute(delete(Job).where(Job.posted_date < cutoff))
        deleted = result.rowcount or 0
        logger.info(f"Cleaned up {deleted} old jobs")
        return deleted
    except (SQLAlchemyError, OSError) as e:
        logger.error(f"Cleanup failed: {e}")
        return 0
