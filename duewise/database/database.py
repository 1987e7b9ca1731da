"""Database connection and session management for duewise.

This module supports both:
- Local SQLite (default for dev)
- PostgreSQL (production) via `DATABASE_URL`
"""

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from duewise import config

DATABASE_URL = config.DATABASE_URL


def _is_sqlite_url(database_url: str) -> bool:
    return "sqlite" in (database_url or "")


def get_engine_kwargs(database_url: str) -> dict:
    """Return deterministic create_engine kwargs for a DB URL.

    Separated so engine configuration can be unit tested without connecting.
    """
    engine_kwargs: dict = {
        "echo": config.DEBUG,
        "pool_pre_ping": True,
    }

    if _is_sqlite_url(database_url):
        # The sweep runs on a scheduler thread; sessions must cross threads.
        engine_kwargs["connect_args"] = {"check_same_thread": False}
        return engine_kwargs

    engine_kwargs["pool_size"] = config.DB_POOL_SIZE
    engine_kwargs["max_overflow"] = config.DB_MAX_OVERFLOW
    engine_kwargs["pool_timeout"] = config.DB_POOL_TIMEOUT_SEC
    return engine_kwargs


def build_engine(database_url: str) -> Engine:
    return create_engine(database_url, **get_engine_kwargs(database_url))


# Create engine (module-level singleton)
engine = build_engine(DATABASE_URL)


@event.listens_for(Engine, "connect")
def set_sqlite_pragmas(dbapi_conn, connection_record):
    """Enable WAL on SQLite so API reads are not blocked by a running sweep."""
    if _is_sqlite_url(DATABASE_URL):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()


# Create session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Base class for declarative models
Base = declarative_base()


def supports_row_locks(db: Session) -> bool:
    """SELECT ... FOR UPDATE is a no-op on SQLite; callers rely on the in-process lock there."""
    bind = db.get_bind()
    return bind is not None and bind.dialect.name != "sqlite"


def get_db() -> Session:
    """Get database session (dependency for FastAPI)."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db():
    """Initialize database schema.

    - SQLite (default dev): `create_all()`.
    - PostgreSQL: Alembic migrations when `RUN_MIGRATIONS=true`, otherwise `create_all()`.
    """
    # Register tables on Base.metadata.
    from duewise.database import models  # noqa: F401

    run_migrations = config.RUN_MIGRATIONS
    if run_migrations and not _is_sqlite_url(DATABASE_URL):
        from alembic import command
        from alembic.config import Config

        alembic_cfg = Config(config.ALEMBIC_INI)
        # Ensure Alembic uses the same runtime DB URL.
        alembic_cfg.set_main_option("sqlalchemy.url", DATABASE_URL)
        command.upgrade(alembic_cfg, "head")
        return

    Base.metadata.create_all(bind=engine)
