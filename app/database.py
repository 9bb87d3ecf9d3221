"""Async engine, session factory and declarative Base"""

import ssl
from typing import Any, AsyncGenerator, Dict, Tuple

from sqlalchemy.engine import URL, make_url
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import declarative_base

from app.config import settings

ENCRYPTED_SSLMODES = ("require", "verify-ca", "verify-full")


def asyncpg_url(dsn: str) -> Tuple[URL, Dict[str, Any]]:
    """
    Point a postgres DSN at the asyncpg driver.

    asyncpg does not understand libpq's ``sslmode`` query option, so it is
    dropped from the URL and turned into an ``ssl`` connect argument.
    ``require`` encrypts without verifying the server certificate (managed
    databases often present one the container does not trust);
    ``verify-ca`` checks the chain and ``verify-full`` also the hostname.
    """
    url = make_url(dsn)
    if url.drivername in ("postgres", "postgresql"):
        url = url.set(drivername="postgresql+asyncpg")

    connect_args: Dict[str, Any] = {}
    sslmode = url.query.get("sslmode")
    if sslmode is None:
        return url, connect_args
    if isinstance(sslmode, tuple):
        sslmode = sslmode[-1]
    url = url.difference_update_query(["sslmode"])

    sslmode = sslmode.lower()
    if sslmode in ENCRYPTED_SSLMODES:
        context = ssl.create_default_context()
        if sslmode != "verify-full":
            context.check_hostname = False
        if sslmode == "require":
            context.verify_mode = ssl.CERT_NONE
        connect_args["ssl"] = context
    return url, connect_args


database_url, connect_args = asyncpg_url(settings.DATABASE_URL)

engine = create_async_engine(
    database_url,
    connect_args=connect_args,
    pool_pre_ping=True,
    pool_size=settings.DB_POOL_SIZE,
    max_overflow=settings.DB_MAX_OVERFLOW,
    pool_timeout=settings.DB_POOL_TIMEOUT,
    pool_recycle=settings.DB_POOL_RECYCLE,
    echo=settings.DEBUG,
)

AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)

Base = declarative_base()


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Request-scoped session.

    Services commit their own units of work; anything left pending when the
    endpoint returns is committed here, and an exception rolls it back.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def init_db() -> None:
    """Create tables directly; local development only, Alembic owns the rest"""
    # Register every model on Base.metadata before create_all
    import app.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db() -> None:
    await engine.dispose()
