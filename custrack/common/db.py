"""Database bootstrap helpers for the customer tracking service."""

from sqlalchemy import create_engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker

from custrack.common.config import settings


def _connect_args(dsn: str) -> dict:
    # Sessions are used from FastAPI's worker threads.
    if dsn.startswith("sqlite"):
        return {"check_same_thread": False}
    return {}


# Single SQLAlchemy engine per process.
engine = create_engine(
    settings.postgres_dsn,
    pool_pre_ping=True,
    connect_args=_connect_args(settings.postgres_dsn),
)
# `expire_on_commit=False` keeps ORM objects readable after commit in handlers.
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)


class Base(DeclarativeBase):
    """Declarative base for SQLAlchemy models."""

    pass
