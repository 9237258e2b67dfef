"""
Gallery database layer - SQLite for single-user local storage

A Database owns one engine and its session factory. The app builds one at
startup from settings; tests build their own against a temporary file.
"""
from fastapi import Request
from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import declarative_base

Base = declarative_base()


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Database:
    """Engine + session factory bound to a single database URL"""

    def __init__(self, url: str, echo: bool = False):
        self.url = url
        is_sqlite = url.startswith("sqlite")
        self.engine = create_async_engine(
            url,
            echo=echo,
            # SQLite specific settings
            connect_args={"check_same_thread": False} if is_sqlite else {}
        )
        if is_sqlite:
            event.listen(self.engine.sync_engine, "connect", _enable_sqlite_foreign_keys)

        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autocommit=False,
            autoflush=False
        )

    def session(self) -> AsyncSession:
        return self.session_factory()

    async def init(self):
        """Create all tables."""
        from . import models  # noqa: F401 - registers tables on Base.metadata

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def close(self):
        """Close database connections."""
        await self.engine.dispose()


async def get_db(request: Request):
    """Dependency for getting database sessions."""
    async with request.app.state.database.session() as session:
        try:
            yield session
        finally:
            await session.close()
