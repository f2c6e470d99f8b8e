"""Database engine and transactional sessions for the affiliate stores."""

from contextlib import contextmanager
from typing import Generator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from affiliate_admin.logging_config import get_logger
from affiliate_admin.settings import settings
from affiliate_admin.storage.models import Base

logger = get_logger(__name__)


def _enable_sqlite_foreign_keys(dbapi_conn, connection_record) -> None:
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Database:
    """Owns the engine shared by the account and affiliate stores.

    Each `session()` block is one unit of work: it commits on success and
    rolls back if the block raises, so a store call never leaves a
    half-applied change behind.
    """

    def __init__(self, database_url: str | None = None):
        """Open an engine for the given URL.

        Args:
            database_url: SQLAlchemy URL (defaults to settings.database_url)
        """
        self.database_url = database_url or settings.database_url
        self.engine: Engine = create_engine(
            self.database_url,
            echo=settings.sql_echo,
            pool_pre_ping=True,
        )
        if self.engine.dialect.name == "sqlite":
            # Account memberships and affiliates reference accounts by FK
            event.listen(self.engine, "connect", _enable_sqlite_foreign_keys)

        self._sessions = sessionmaker(
            bind=self.engine,
            autoflush=False,
            expire_on_commit=False,
        )
        logger.debug("database_opened", url=self.database_url, dialect=self.engine.dialect.name)

    def create_tables(self) -> None:
        """Create the account and affiliate tables if they do not exist."""
        Base.metadata.create_all(bind=self.engine)
        logger.info("tables_created", tables=sorted(Base.metadata.tables))

    @contextmanager
    def session(self) -> Generator[Session, None, None]:
        """Transactional scope for one store operation."""
        session = self._sessions()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def dispose(self) -> None:
        """Release pooled connections."""
        self.engine.dispose()
