"""
Word Store - durable tier backed by SQLAlchemy.

find() distinguishes a true absence (None) from an infrastructure failure
(StoreError). insert() replaces any existing row for the same key, so the
most recent write wins.

Usage:
    from db.engine import get_engine
    from services.word_store import SqlWordStore

    store = SqlWordStore(get_engine("web"))
    store.create_schema()
    record = store.find("apple")
"""
import logging
from typing import Optional

from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from models.word import WordRecord
from models.word_row import Base, WordRow
from services.cancellation import CancelToken, ensure_token
from services.errors import StoreError

logger = logging.getLogger(__name__)


class SqlWordStore:
    def __init__(self, engine: Engine):
        self.engine = engine
        self._Session = sessionmaker(bind=engine, expire_on_commit=False)

    def create_schema(self) -> None:
        Base.metadata.create_all(self.engine, tables=[WordRow.__table__])
        logger.info("word_store_schema_ready table=%s", WordRow.__tablename__)

    def find(self, key: str, cancel: Optional[CancelToken] = None) -> Optional[WordRecord]:
        """
        Look up a word by key.

        Returns:
            WordRecord, or None when the key has never been stored

        Raises:
            StoreError: On connectivity or query failure
            ResolutionCancelled: If the token is already cancelled
        """
        ensure_token(cancel).raise_if_cancelled(key)

        session = self._Session()
        try:
            row = session.get(WordRow, key)
            return row.to_record() if row is not None else None
        except SQLAlchemyError as e:
            logger.error("word_store_find_failed key=%s err=%s", key, str(e)[:200])
            raise StoreError(f"find failed for {key!r}: {e}", key=key) from e
        finally:
            session.close()

    def insert(self, record: WordRecord, cancel: Optional[CancelToken] = None) -> None:
        """
        Persist a record, replacing any row with the same key.

        Raises:
            StoreError: On connectivity or write failure
        """
        ensure_token(cancel).raise_if_cancelled(record.key)

        session = self._Session()
        try:
            session.merge(WordRow.from_record(record))
            session.commit()
            logger.info("word_store_insert key=%s groups=%d", record.key, len(record.groups))
        except SQLAlchemyError as e:
            session.rollback()
            logger.error("word_store_insert_failed key=%s err=%s", record.key, str(e)[:200])
            raise StoreError(
                f"insert failed for {record.key!r}: {e}", key=record.key, record=record
            ) from e
        finally:
            session.close()

    def count(self) -> int:
        session = self._Session()
        try:
            return session.query(WordRow).count()
        except SQLAlchemyError as e:
            raise StoreError(f"count failed: {e}") from e
        finally:
            session.close()

    def ping(self) -> bool:
        """True if the database answers SELECT 1."""
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as e:
            logger.warning("word_store_ping_failed err=%s", str(e)[:100])
            return False
