"""
SQLAlchemy-backed storage backend.

Persists local state in a single key/value table so favorites and the user
profile survive restarts of the app. Any SQLAlchemy URL works; a SQLite file
(`sqlite:///resep_state.db`) is the usual choice for a single-machine deploy.

Change notifications are delivered in-process only. Two server processes
pointing at the same database do not see each other's events.
"""

import logging
from typing import Optional

from sqlalchemy import Column, DateTime, String, Text, create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.sql import func

from .base import StorageBackend

logger = logging.getLogger(__name__)

Base = declarative_base()


class KeyValueRow(Base):
    """Key/value table - one row per persisted key."""
    __tablename__ = "local_state"

    key = Column(String(255), primary_key=True)
    value = Column(Text, nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)


class SQLStorage(StorageBackend):
    """
    StorageBackend on top of a SQLAlchemy engine.

    Args:
        database_url: SQLAlchemy database URL
        echo: Log emitted SQL (debugging only)
    """

    def __init__(self, database_url: str, echo: bool = False) -> None:
        super().__init__()
        self.engine = create_engine(database_url, pool_pre_ping=True, echo=echo)
        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)
        Base.metadata.create_all(bind=self.engine)
        logger.info("Local state table initialized (or already exists)")

    def _read(self, key: str) -> Optional[str]:
        db = self.SessionLocal()
        try:
            row = db.get(KeyValueRow, key)
            return row.value if row is not None else None
        finally:
            db.close()

    def _write(self, key: str, value: str) -> None:
        db = self.SessionLocal()
        try:
            row = db.get(KeyValueRow, key)
            if row is None:
                db.add(KeyValueRow(key=key, value=value))
            else:
                row.value = value
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def _delete(self, key: str) -> None:
        db = self.SessionLocal()
        try:
            db.query(KeyValueRow).filter(KeyValueRow.key == key).delete()
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def dispose(self) -> None:
        """Release pooled connections."""
        self.engine.dispose()
