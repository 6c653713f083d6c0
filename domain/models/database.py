"""
Database configuration and session management.

Each store container is one SQLite file; the data service builds its own
engine and session factory from a container name.
"""

import logging
from pathlib import Path
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

logger = logging.getLogger("takeeateasy.database")

# Create SQLAlchemy Base
Base = declarative_base()

_MEMORY_URLS = {"sqlite://", "sqlite:///:memory:"}


def build_database_url(container: str, store_dir: str, database_url: str = None) -> str:
    """
    Resolve the SQLAlchemy URL for a store container.

    An explicit ``database_url`` wins; otherwise the container maps to
    ``<store_dir>/<container>.sqlite`` and the directory is created.
    """
    if database_url:
        return database_url

    directory = Path(store_dir).expanduser()
    directory.mkdir(parents=True, exist_ok=True)
    return f"sqlite:///{directory / f'{container}.sqlite'}"


def create_store_engine(url: str, echo: bool = False) -> Engine:
    """Create an engine usable from the service's background worker thread"""
    kwargs = {"echo": echo, "future": True}
    if url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        if url in _MEMORY_URLS:
            # One shared connection, otherwise every checkout sees an empty database
            kwargs["poolclass"] = StaticPool

    engine = create_engine(url, **kwargs)

    if engine.dialect.name == "sqlite":

        @event.listens_for(engine, "connect")
        def _enable_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return engine


def make_session_factory(engine: Engine) -> sessionmaker:
    """Session factory for the background work context"""
    return sessionmaker(bind=engine, autoflush=False, future=True)


def init_database(engine: Engine) -> None:
    """Initialize database schema"""
    # Models must be registered on Base before create_all
    from domain.models import meal  # noqa: F401

    with engine.begin() as conn:
        Base.metadata.create_all(bind=conn)
    logger.info("Store tables ensured url=%s", engine.url.render_as_string(hide_password=True))
