"""Database configuration and session management."""

from functools import lru_cache

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from grocerysync.config import get_settings


class Base(DeclarativeBase):
    """Base class for all database models."""

    pass


@lru_cache
def get_engine() -> Engine:
    """Engine for the configured database, created on first use."""
    settings = get_settings()
    return create_engine(settings.database_url, echo=False, pool_pre_ping=True)


@lru_cache
def get_session_factory() -> sessionmaker[Session]:
    """Session factory bound to the configured engine."""
    return sessionmaker(get_engine(), expire_on_commit=False)


def create_tables(engine: Engine) -> None:
    """Create all grocery tables on the given engine."""
    import grocerysync.models  # noqa: F401  (registers the mappers)

    Base.metadata.create_all(engine)
