"""Persistence: blob storage, session/archive store, and save scheduling."""

from .blobs import DOCUMENTS_BLOB, SESSION_BLOB, BlobStore, atomic_write_bytes
from .scheduler import DEFAULT_SAVE_DEBOUNCE_SECONDS, SaveScheduler
from .store import PersistentStore, SaveOutcome, group_by_document

__all__ = [
    "DEFAULT_SAVE_DEBOUNCE_SECONDS",
    "DOCUMENTS_BLOB",
    "SESSION_BLOB",
    "BlobStore",
    "PersistentStore",
    "SaveOutcome",
    "SaveScheduler",
    "atomic_write_bytes",
    "group_by_document",
]
