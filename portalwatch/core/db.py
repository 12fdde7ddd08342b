"""
SQLAlchemy engine, session, and base. One Database per connected run.
"""
import logging
from contextlib import contextmanager
from typing import Generator, Optional

from sqlalchemy import create_engine, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker, declarative_base, Session

from portalwatch.core.errors import ServiceConnectionError

logger = logging.getLogger(__name__)

Base = declarative_base()


class Database:
    """Store handle: engine plus session factory for one connection string."""

    def __init__(self, db_url: str):
        self.db_url = db_url
        self._engine = create_engine(db_url, echo=False, future=True)
        self._SessionLocal = sessionmaker(
            bind=self._engine, autocommit=False, autoflush=False, expire_on_commit=False
        )
        self._connected = False

    def connect(self) -> None:
        """
        Ping the store and create tables. Raises ServiceConnectionError if unreachable.
        """
        # Import all model modules so tables are registered with Base
        from portalwatch.core import models as _core_models  # noqa: F401
        from portalwatch.portal import models as _portal_models  # noqa: F401

        try:
            with self._engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            Base.metadata.create_all(self._engine)
        except SQLAlchemyError as e:
            raise ServiceConnectionError(f"Could not connect to store: {e}") from e
        self._connected = True
        logger.info(f"Database initialized: {self.db_url.split('?')[0].split('@')[-1]}")

    @contextmanager
    def session_scope(self) -> Generator[Session, None, None]:
        """Context manager for a single DB session. Commits on success, rolls back on error."""
        if not self._connected:
            raise RuntimeError("Database not connected. Call connect() first.")
        session = self._SessionLocal()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def close(self) -> None:
        self._engine.dispose()
        self._connected = False


def open_database(db_url: Optional[str]) -> Database:
    """Construct and connect a Database for db_url."""
    if not db_url:
        raise ServiceConnectionError("No store connection string configured")
    try:
        db = Database(db_url)
    except (SQLAlchemyError, ValueError) as e:
        raise ServiceConnectionError(f"Invalid store connection string: {e}") from e
    try:
        db.connect()
    except ServiceConnectionError:
        db.close()
        raise
    return db
