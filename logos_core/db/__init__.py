"""Persistence adapter: SQLAlchemy models, session handling and repositories."""

from logos_core.db.database import get_engine, get_session_factory, init_db, session_scope
from logos_core.db.models import Base, ItemRecord, ResponseRecord, RetentionCardRecord
from logos_core.db.repositories import CardRepository, ItemRepository, ResponseRepository

__all__ = [
    "get_engine",
    "get_session_factory",
    "init_db",
    "session_scope",
    "Base",
    "ItemRecord",
    "ResponseRecord",
    "RetentionCardRecord",
    "CardRepository",
    "ItemRepository",
    "ResponseRepository",
]
