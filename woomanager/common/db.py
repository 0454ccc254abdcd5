"""Database bootstrap helpers for the SQL record-store backend."""

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker
from sqlalchemy.pool import StaticPool

from woomanager.common.config import settings


def make_engine(url: str) -> Engine:
    """Build an engine; SQLite URLs get thread-shared connections."""

    if url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if url in ("sqlite://", "sqlite:///:memory:"):
            # One shared connection, otherwise every session sees an empty database.
            kwargs["poolclass"] = StaticPool
        return create_engine(url, **kwargs)
    return create_engine(url, pool_pre_ping=True)


def make_session_factory(bind: Engine) -> sessionmaker:
    # `expire_on_commit=False` keeps ORM objects readable after commit in handlers.
    return sessionmaker(bind=bind, autoflush=False, autocommit=False, expire_on_commit=False)


# Single SQLAlchemy engine per process; no connection is opened until first use.
engine = make_engine(settings.database_url)
SessionLocal = make_session_factory(engine)


class Base(DeclarativeBase):
    """Declarative base for SQLAlchemy models."""

    pass
