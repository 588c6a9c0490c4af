"""
Backend translators: the in-memory reference plus a MongoDB translator.

The SQLAlchemy translator lives in ``query_algebra.backends.sql`` and needs
the ``sql`` extra.
"""

from __future__ import annotations

from .memory import InMemoryStore, InMemoryTranslator, MemoryFilter, MemoryUpdate
from .mongo import MongoTranslator, MongoUpdate, mongo_value

__all__ = [
    "InMemoryStore",
    "InMemoryTranslator",
    "MemoryFilter",
    "MemoryUpdate",
    "MongoTranslator",
    "MongoUpdate",
    "mongo_value",
]
