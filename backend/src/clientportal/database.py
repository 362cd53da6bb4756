"""Database engine, session factory and FastAPI session dependency.

Application code never queries tenant-owned tables through these sessions
directly; routers wrap the request session in a TenantGateway
(see clientportal.tenancy.dependencies).
"""

from typing import Generator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from .config import get_settings


def create_db_engine(url: str, echo: bool = False) -> Engine:
    """Create an engine with pool settings appropriate to the backend.

    Pool sizing only applies to server databases. In-memory SQLite uses a
    single shared connection so every session sees the same database, and
    SQLite connections get foreign key enforcement switched on so that
    ON DELETE CASCADE behaves like it does on PostgreSQL.
    """
    engine_kwargs = {"echo": echo}

    if url.startswith("sqlite"):
        engine_kwargs["connect_args"] = {"check_same_thread": False}
        if ":memory:" in url or url.rstrip("/") == "sqlite:":
            engine_kwargs["poolclass"] = StaticPool
    else:
        engine_kwargs["pool_pre_ping"] = True  # Verify connections before using
        engine_kwargs["pool_size"] = 5
        engine_kwargs["max_overflow"] = 10

    engine = create_engine(url, **engine_kwargs)

    if engine.dialect.name == "sqlite":
        @event.listens_for(engine, "connect")
        def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return engine


_settings = get_settings()
engine = create_db_engine(_settings.DATABASE_URL, echo=_settings.DATABASE_ECHO)

# Create session factory
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)


def get_db() -> Generator[Session, None, None]:
    """Dependency for FastAPI endpoints.

    Yields one session per request and always closes it. Uncommitted work
    is rolled back on close.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
