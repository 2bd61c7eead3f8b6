import logging
import ssl
from typing import AsyncGenerator

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from quizlink.config import Settings

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    pass


class Database:
    """Connection pool plus session factory, owned by the running app."""

    def __init__(self, settings: Settings):
        engine_options = {"echo": settings.database_echo}
        if not settings.is_sqlite:
            engine_options.update(
                pool_size=settings.database_pool_size,
                max_overflow=settings.database_max_overflow,
                pool_pre_ping=True,
            )
            if settings.database_ssl:
                # Hosted Postgres with a self-signed certificate
                context = ssl.create_default_context()
                context.check_hostname = False
                context.verify_mode = ssl.CERT_NONE
                engine_options["connect_args"] = {"ssl": context}

        self.engine = create_async_engine(settings.database_url, **engine_options)
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

    async def create_all(self) -> None:
        # Import registers the tables on Base.metadata
        from quizlink import models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables initialized.")

    async def dispose(self) -> None:
        await self.engine.dispose()

    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        async with self.session_factory() as session:
            yield session


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """Request dependency: one session from the app's pool per request."""
    database: Database = request.app.state.db
    async for session in database.session():
        yield session
