"""Merchant -> category cache persisted with SQLAlchemy."""

import threading

from sqlalchemy import delete, func, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session, sessionmaker

from ai_categorize.core.db import MerchantCategoryRecord
from ai_categorize.core.models import CacheEntry
from ai_categorize.core.utils import get_logger, utcnow_iso

logger = get_logger("ai-categorize.cache")

_UPSERT_INSERTS = {"sqlite": sqlite_insert, "postgresql": pg_insert}


class CacheStore:
    """Last known category per merchant name. Entries never expire on their own."""

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        """Bind the cache to a session factory."""
        self.Session = session_factory
        self._write_lock = threading.Lock()
        logger.info(f"Cache initialized: {self.count()} cached merchants")

    def get(self, merchant_name: str) -> CacheEntry | None:
        """Return the cached category for a merchant, or None on a miss."""
        with self.Session() as session:
            record = session.execute(
                select(MerchantCategoryRecord).where(MerchantCategoryRecord.merchant_name == merchant_name)
            ).scalar_one_or_none()
            if record is None:
                logger.debug(f"Cache miss: '{merchant_name}'")
                return None
            entry = CacheEntry.model_validate(record)
        logger.debug(f"Cache hit: '{merchant_name}' -> '{entry.category_name}'")
        return entry

    def set(self, merchant_name: str, category_name: str, category_id: str) -> None:
        """Insert or overwrite the category for a merchant, keeping its original creation time."""
        now = utcnow_iso()
        with self._write_lock, self.Session() as session:
            insert_fn = _UPSERT_INSERTS.get(session.get_bind().dialect.name)
            if insert_fn is not None:
                stmt = insert_fn(MerchantCategoryRecord).values(
                    merchant_name=merchant_name,
                    category_name=category_name,
                    category_id=category_id,
                    created_at=now,
                    updated_at=now,
                )
                stmt = stmt.on_conflict_do_update(
                    index_elements=[MerchantCategoryRecord.merchant_name],
                    set_={
                        "category_name": stmt.excluded.category_name,
                        "category_id": stmt.excluded.category_id,
                        "updated_at": stmt.excluded.updated_at,
                    },
                )
                session.execute(stmt)
            else:
                record = session.execute(
                    select(MerchantCategoryRecord).where(MerchantCategoryRecord.merchant_name == merchant_name)
                ).scalar_one_or_none()
                if record is None:
                    record = MerchantCategoryRecord(merchant_name=merchant_name, created_at=now)
                    session.add(record)
                record.category_name = category_name
                record.category_id = category_id
                record.updated_at = now
            session.commit()
        logger.info(f"Cached merchant category: '{merchant_name}' -> '{category_name}'")

    def update_from_override(self, merchant_name: str, category_name: str, category_id: str) -> None:
        """Replace the category of an existing entry; does nothing if the merchant is not cached."""
        with self._write_lock, self.Session() as session:
            result = session.execute(
                update(MerchantCategoryRecord)
                .where(MerchantCategoryRecord.merchant_name == merchant_name)
                .values(category_name=category_name, category_id=category_id, updated_at=utcnow_iso())
                .execution_options(synchronize_session=False)
            )
            session.commit()
            changed = result.rowcount
        if changed:
            logger.info(f"Updated cache from manual override: '{merchant_name}' -> '{category_name}'")

    def invalidate(self, merchant_name: str) -> None:
        """Delete the entry for a merchant if there is one."""
        with self._write_lock, self.Session() as session:
            result = session.execute(
                delete(MerchantCategoryRecord)
                .where(MerchantCategoryRecord.merchant_name == merchant_name)
                .execution_options(synchronize_session=False)
            )
            session.commit()
            removed = result.rowcount
        if removed:
            logger.info(f"Invalidated cache entry: '{merchant_name}'")

    def count(self) -> int:
        """Number of cached merchants."""
        with self.Session() as session:
            return session.execute(select(func.count()).select_from(MerchantCategoryRecord)).scalar_one()
