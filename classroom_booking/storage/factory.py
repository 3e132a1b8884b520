from fastapi import Depends
from sqlalchemy.orm import Session
from classroom_booking import config
from classroom_booking.db import get_db
from classroom_booking.storage.base import Storage
from classroom_booking.storage.memory import MemoryStorage
from classroom_booking.storage.sql import SqlStorage

_memory_storage = None


def memory_storage() -> MemoryStorage:
    """Process-wide in-memory store, created on first use."""
    global _memory_storage
    if _memory_storage is None:
        _memory_storage = MemoryStorage()
    return _memory_storage


def get_storage(db: Session = Depends(get_db)) -> Storage:
    if config.STORAGE_BACKEND == "memory":
        return memory_storage()
    return SqlStorage(db)
