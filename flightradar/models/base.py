"""
SQLAlchemy base configuration and session management.

Uses SQLAlchemy 2.0 style with type hints and declarative base. The only
persisted data is small key-value state (statistics), so the schema is
tiny; SQLite is the default and anything SQLAlchemy supports works.
"""

from contextlib import contextmanager
from typing import Generator, Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker, Session

from flightradar.config import config


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


def create_db_engine(url: Optional[str] = None, **kwargs) -> Engine:
    """
    Create an engine configured for the database type.

    SQLite connections are shared with the debounce-save timer thread,
    hence check_same_thread=False.
    """
    url = url or config.database.url
    engine_kwargs = {
        'echo': config.debug,  # Log SQL in debug mode
    }
    if url.startswith('sqlite'):
        engine_kwargs['connect_args'] = {'check_same_thread': False}
    engine_kwargs.update(kwargs)

    db_engine = create_engine(url, **engine_kwargs)

    if url.startswith('sqlite'):
        @event.listens_for(db_engine, 'connect')
        def set_sqlite_pragma(dbapi_connection, connection_record):
            """WAL mode lets API reads proceed during a save."""
            cursor = dbapi_connection.cursor()
            cursor.execute('PRAGMA journal_mode=WAL')
            cursor.execute('PRAGMA synchronous=NORMAL')
            cursor.close()

    return db_engine


def create_session_factory(db_engine: Engine) -> sessionmaker:
    """Session factory bound to an engine."""
    return sessionmaker(
        bind=db_engine,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,  # Avoid lazy loading issues
    )


engine = create_db_engine()

# Session factory
SessionLocal = create_session_factory(engine)


@contextmanager
def get_session(factory: Optional[sessionmaker] = None) -> Generator[Session, None, None]:
    """
    Context manager for database sessions.

    Usage:
        with get_session() as session:
            session.get(...)

    Automatically handles commit/rollback and session cleanup.
    """
    session = (factory or SessionLocal)()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def init_db(db_engine: Optional[Engine] = None) -> None:
    """
    Initialize database schema.

    Creates all tables if they don't exist.
    """
    Base.metadata.create_all(bind=db_engine or engine)
