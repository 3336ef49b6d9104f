"""DB tables, column codecs and engine helpers for the Firefly AI categorizer."""

import json
from pathlib import Path

from sqlalchemy import Column, Index, Integer, String, Text, create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.types import TypeDecorator

from ai_categorize.core.utils import ensure_dir, unique_tags, utcnow_iso

Base = declarative_base()


class TagList(TypeDecorator):
    """Ordered, duplicate-free list of tags stored as a JSON array in a text column."""

    impl = Text
    cache_ok = True

    def process_bind_param(self, value: list[str] | None, dialect: object) -> str:
        """Serialize tags, dropping repeats but keeping first-seen order."""
        _ = dialect
        return json.dumps(unique_tags(value or []))

    def process_result_value(self, value: str | None, dialect: object) -> list[str]:
        """Decode the stored JSON array back into a tag list."""
        _ = dialect
        if not value:
            return []
        return unique_tags(str(tag) for tag in json.loads(value))


class JobRecord(Base):
    """A queued categorization job for one Firefly transaction."""

    __tablename__ = "jobs"
    id = Column(Integer, primary_key=True, autoincrement=True)
    transaction_id = Column(String, nullable=False)
    merchant_name = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    amount = Column(String, nullable=False)
    tags = Column(TagList, nullable=False, default=list)
    status = Column(String, nullable=False, default="pending")
    attempts = Column(Integer, nullable=False, default=0)
    error = Column(Text, nullable=True)
    created_at = Column(String, nullable=False, default=utcnow_iso)
    updated_at = Column(String, nullable=False, default=utcnow_iso)

    __table_args__ = (Index("idx_job_status", "status"),)


class MerchantCategoryRecord(Base):
    """Last known category for a merchant name."""

    __tablename__ = "merchant_categories"
    id = Column(Integer, primary_key=True, autoincrement=True)
    merchant_name = Column(String, unique=True, index=True, nullable=False)
    category_name = Column(String, nullable=False)
    category_id = Column(String, nullable=False)
    created_at = Column(String, nullable=False, default=utcnow_iso)
    updated_at = Column(String, nullable=False, default=utcnow_iso)


def get_engine(database_url: str) -> Engine:
    """Create a SQLAlchemy engine, preparing the directory of file-backed SQLite databases."""
    url = make_url(database_url)
    connect_args = {}
    if url.get_backend_name() == "sqlite":
        connect_args["check_same_thread"] = False
        if url.database and url.database != ":memory:":
            ensure_dir(Path(url.database).resolve().parent)
    return create_engine(url, connect_args=connect_args)


def init_db(engine: Engine) -> None:
    """Create the jobs and merchant cache tables if they do not exist."""
    Base.metadata.create_all(engine)


def get_session_factory(engine: Engine) -> sessionmaker[Session]:
    """Build the session factory shared by the queue and cache stores."""
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
