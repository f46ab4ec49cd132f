"""Database bootstrap helpers for the SQL-backed ledger."""

from sqlalchemy import create_engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker
from sqlalchemy.pool import StaticPool


class Base(DeclarativeBase):
    """Declarative base for SQLAlchemy models."""

    pass


def make_session_factory(dsn: str) -> sessionmaker:
    """Create one engine per process and a session factory bound to it."""

    if dsn.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if dsn in ("sqlite://", "sqlite:///:memory:"):
            # One shared connection, otherwise every checkout sees an empty database.
            kwargs["poolclass"] = StaticPool
        engine = create_engine(dsn, **kwargs)
    else:
        engine = create_engine(dsn, pool_pre_ping=True)
    # `expire_on_commit=False` keeps ORM objects readable after commit.
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)


def create_schema(session_factory: sessionmaker) -> None:
    """Create all tables known to `Base` (idempotent)."""

    Base.metadata.create_all(session_factory.kw["bind"])
