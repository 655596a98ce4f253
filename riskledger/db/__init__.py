"""Record store adapters for riskledger."""

from riskledger.db.base import RecordStore
from riskledger.db.memory import InMemoryRecordStore
from riskledger.db.store import SQLiteRecordStore

__all__ = ["RecordStore", "InMemoryRecordStore", "SQLiteRecordStore"]
