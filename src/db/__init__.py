"""Storage collaborators for the retention engine."""

from src.db.memory_store import InMemoryStorage
from src.db.sql_store import SqlAlchemyStorage
from src.db.storage import TrackerStorage

__all__ = [
    "TrackerStorage",
    "InMemoryStorage",
    "SqlAlchemyStorage",
]
