"""
database.py — Database Session & Connection Management

Purpose:
- Create and provide access to the database backing the economy store.
- Manage SQLAlchemy Engine + Session lifecycle.
- Expose a FastAPI dependency `get_store()` that hands routes the store.
- Create the schema for all models sharing `corpsim.models.base.Base`.

Key Characteristics:
- Synchronous SQLAlchemy engine.
- No Alembic migrations: `init_schema()` issues CREATE TABLE IF NOT EXISTS.
- The store opens one short transaction per operation; the session factory
  built here is what it is given.

This module does NOT:
- Define ORM models (see corpsim/models/*).
- Perform any queries or business logic (see corpsim/services/store/*).
"""

from typing import Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from corpsim.core.config import settings
from corpsim.core.logging import get_logger

logger = get_logger(__name__)


# -----------------------------------------------------------------------------
# Engine Construction
# -----------------------------------------------------------------------------

def normalize_database_url(db_url: str) -> str:
    """
    Use psycopg (v3) for Postgres URLs that don't name a driver.

        postgresql://u:p@host/db → postgresql+psycopg://u:p@host/db
    """
    db_url = db_url.strip()
    if db_url.startswith("postgres://"):
        db_url = db_url.replace("postgres://", "postgresql://", 1)
    if db_url.startswith("postgresql://") and "+" not in db_url.split("://")[0]:
        db_url = db_url.replace("postgresql://", "postgresql+psycopg://", 1)
    return db_url


def create_db_engine(db_url: str) -> Engine:
    """Build an engine for `db_url` with the connect args its dialect needs."""
    db_url = normalize_database_url(db_url)
    if not db_url:
        raise RuntimeError("Database is not configured. Please set DATABASE_URL.")

    if db_url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        # In-memory databases live as long as their one connection
        if db_url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        return create_engine(db_url, **kwargs)

    return create_engine(
        db_url,
        pool_pre_ping=True  # Ensures connections are valid before use
    )


def create_session_factory(db_url: Optional[str] = None) -> sessionmaker:
    """Session factory bound to a fresh engine for `db_url` (default: settings)."""
    engine = create_db_engine(db_url or settings.DATABASE_URL)
    return sessionmaker(
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
        bind=engine
    )


# -----------------------------------------------------------------------------
# Process-Wide Engine
# -----------------------------------------------------------------------------

SessionLocal = create_session_factory()
engine = SessionLocal.kw["bind"]


def init_schema(bind: Optional[Engine] = None) -> None:
    """Create every table registered on the shared Base."""
    # Importing the package registers all mapped classes on Base.metadata
    import corpsim.models  # noqa: F401
    from corpsim.models.base import Base

    target = bind if bind is not None else engine
    Base.metadata.create_all(bind=target)
    logger.info("Schema ready on %s", target.url.render_as_string(hide_password=True))


# -----------------------------------------------------------------------------
# FastAPI Dependency
# -----------------------------------------------------------------------------

def get_store():
    """
    FastAPI dependency: the SQLAlchemy-backed economy store.

    Usage in API endpoint:
        def endpoint(store: EconomyStore = Depends(get_store)):
            store.find_corporation_by_id(...)

    Tests override this with a store bound to an in-memory database.
    """
    from corpsim.services.store.sqlalchemy_store import SqlAlchemyStore

    return SqlAlchemyStore(SessionLocal)
