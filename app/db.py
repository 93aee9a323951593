# app/db.py

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool

from .config import settings

DATABASE_URL = settings.DATABASE_URL


def _engine_kwargs(url: str) -> dict:
    """
    Postgres gets a sized pool; SQLite (local runs and tests) needs
    check_same_thread off, and an in-memory URL must share one connection.
    """
    if url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        return kwargs
    return {"pool_pre_ping": True, "pool_size": 10, "max_overflow": 20}


# Create the engine and session factory
engine       = create_engine(DATABASE_URL, **_engine_kwargs(DATABASE_URL))
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine
)

# Declarative base for all ORM models
Base = declarative_base()


def get_db():
    """
    FastAPI dependency: yields a SQLAlchemy Session and closes it after use.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db():
    """
    Ensure every ORM table exists.
    """
    from app import models  # noqa: F401  (registers tables on Base.metadata)
    Base.metadata.create_all(bind=engine)
