"""Engine construction and shared column types."""
import ssl
from datetime import datetime, timezone

from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.engine import URL, make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.types import JSON, DateTime, TypeDecorator


def asyncpg_url(database_url: str, ssl_verify: bool = False) -> tuple[URL, dict]:
    """Rewrite a Postgres URL for asyncpg and move ``sslmode`` into connect_args.

    Hosted databases hand out ``postgresql://...?sslmode=require``; asyncpg needs the
    ``+asyncpg`` driver and rejects ``sslmode`` as a keyword.
    """
    url = make_url(database_url.strip())
    if url.drivername in ("postgresql", "postgres"):
        url = url.set(drivername="postgresql+asyncpg")
    sslmode = url.query.get("sslmode")
    url = url.difference_update_query(["sslmode"])
    if sslmode != "require":
        return url, {}
    if ssl_verify:
        return url, {"ssl": True}
    ctx = ssl.create_default_context()
    ctx.check_hostname = False
    ctx.verify_mode = ssl.CERT_NONE
    return url, {"ssl": ctx}


def create_engine(database_url: str, echo: bool = False, ssl_verify: bool = False) -> AsyncEngine:
    """Async engine for the configured URL (asyncpg for Postgres, aiosqlite for local files)."""
    if make_url(database_url.strip()).get_backend_name() in ("postgresql", "postgres"):
        url, connect_args = asyncpg_url(database_url, ssl_verify)
        return create_async_engine(url, connect_args=connect_args, echo=echo, pool_pre_ping=True)
    return create_async_engine(database_url, echo=echo)


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, expire_on_commit=False, autoflush=False)


class JSONBType(TypeDecorator):
    """JSONB on PostgreSQL, plain JSON elsewhere (SQLite)."""
    impl = JSONB
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "postgresql":
            return dialect.type_descriptor(JSONB())
        return dialect.type_descriptor(JSON())


class UTCDateTime(TypeDecorator):
    """Timezone-aware datetimes stored as UTC; naive values read back as UTC."""
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        value = value.astimezone(timezone.utc)
        if dialect.name == "sqlite":
            return value.replace(tzinfo=None)
        return value

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        if isinstance(value, str):
            value = datetime.fromisoformat(value)
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


class Base(DeclarativeBase):
    """Declarative base for the quiz tables."""
    pass
