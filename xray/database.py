"""
Database connection and session management for X-Ray.

Provides:
- create_db_engine(): SQLAlchemy engine for a database URL
- create_session_factory(): sessionmaker bound to an engine
- init_db(): create all tables
"""

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from .models import Base


def create_db_engine(database_url: str, echo: bool = False) -> Engine:
    """
    Create an engine for the given URL.

    SQLite engines are made usable from worker threads and enforce
    foreign keys so ON DELETE CASCADE applies.
    """
    if database_url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False, "timeout": 30}}
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            # Single shared connection, otherwise every checkout sees an empty database
            kwargs["poolclass"] = StaticPool
        engine = create_engine(database_url, echo=echo, **kwargs)

        @event.listens_for(engine, "connect")
        def _enable_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        return engine

    # pool_pre_ping=True ensures connections are valid before using them
    return create_engine(database_url, pool_pre_ping=True, echo=echo)


def create_session_factory(engine: Engine) -> sessionmaker:
    # expire_on_commit=False: aggregates stay readable after their unit of work closes
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


def init_db(engine: Engine) -> None:
    """Create all X-Ray tables (no-op for existing tables)"""
    Base.metadata.create_all(engine)
