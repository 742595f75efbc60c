# nfl_stats/cache.py
"""
TTL cache over a document store.

Expiry is decided at read time from the entry's updatedAt stamp, never by
the store, so an entry the store still holds is a miss once it is older than
the caller's TTL. Writes always overwrite (last write wins); cached values
are derived and can be recomputed.

Keys end with CACHE_SCHEMA_VERSION. Bump it whenever the shape of a cached
value changes so old documents are never served to new code.

MemoryDocumentStore is per process (each gunicorn worker has its own);
SqliteDocumentStore survives restarts and is shared by workers on one host.
"""

from __future__ import annotations

import json
import logging
import sqlite3
import threading
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Dict, Generic, Optional, TypeVar, Union

logger = logging.getLogger(__name__)

T = TypeVar("T")

CACHE_SCHEMA_VERSION = "v3"


def cache_key(*parts: Any) -> str:
    """Join query parts with ':' and append the schema version."""
    return ":".join([str(p) for p in parts if p is not None and p != ""] + [CACHE_SCHEMA_VERSION])


def now_ms() -> int:
    return int(time.time() * 1000)


@dataclass(frozen=True)
class CacheEntry(Generic[T]):
    """A single cached value and the epoch-millis timestamp when it was set."""
    value: T
    updated_at: int

    def to_document(self) -> Dict[str, Any]:
        return {"value": self.value, "updatedAt": self.updated_at}

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "CacheEntry":
        return cls(value=doc["value"], updated_at=int(doc["updatedAt"]))


@dataclass(frozen=True)
class CacheMiss:
    """Falsy miss marker; reason is 'absent' or 'expired'."""
    reason: str = "absent"

    def __bool__(self) -> bool:
        return False


ABSENT = CacheMiss("absent")
EXPIRED = CacheMiss("expired")


class DocumentStore(ABC):
    """Key -> {value, updatedAt} documents."""

    @abstractmethod
    def read(self, key: str) -> Optional[Dict[str, Any]]:
        """Return the stored document or None."""

    @abstractmethod
    def write(self, key: str, document: Dict[str, Any]) -> None:
        """Store the document, replacing any previous one."""

    @abstractmethod
    def clear(self) -> None:
        """Drop every document."""


class MemoryDocumentStore(DocumentStore):
    """In-process store; documents are kept as JSON text so callers never share mutable state."""

    def __init__(self) -> None:
        self._docs: Dict[str, str] = {}
        self._lock = threading.Lock()

    def read(self, key: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            raw = self._docs.get(key)
        return json.loads(raw) if raw is not None else None

    def write(self, key: str, document: Dict[str, Any]) -> None:
        raw = json.dumps(document)
        with self._lock:
            self._docs[key] = raw

    def clear(self) -> None:
        with self._lock:
            self._docs.clear()


class SqliteDocumentStore(DocumentStore):
    """Durable store: one row per key holding the JSON document."""

    def __init__(self, db_path: str) -> None:
        self.db_path = db_path
        self._init_table()

    def _connect(self) -> sqlite3.Connection:
        return sqlite3.connect(self.db_path, timeout=5)

    def _init_table(self) -> None:
        conn = self._connect()
        try:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS cache_documents (
                    cache_key TEXT PRIMARY KEY,
                    document TEXT NOT NULL,
                    updated_at INTEGER NOT NULL
                )
                """
            )
            conn.commit()
        finally:
            conn.close()

    def read(self, key: str) -> Optional[Dict[str, Any]]:
        conn = self._connect()
        try:
            row = conn.execute(
                "SELECT document FROM cache_documents WHERE cache_key = ?", (key,)
            ).fetchone()
        finally:
            conn.close()
        return json.loads(row[0]) if row else None

    def write(self, key: str, document: Dict[str, Any]) -> None:
        conn = self._connect()
        try:
            conn.execute(
                "INSERT OR REPLACE INTO cache_documents (cache_key, document, updated_at) VALUES (?, ?, ?)",
                (key, json.dumps(document), int(document.get("updatedAt", 0))),
            )
            conn.commit()
        finally:
            conn.close()

    def clear(self) -> None:
        conn = self._connect()
        try:
            conn.execute("DELETE FROM cache_documents")
            conn.commit()
        finally:
            conn.close()


class TTLCache:
    """Read-time TTL checks over a DocumentStore."""

    def __init__(self, store: Optional[DocumentStore] = None, clock: Callable[[], int] = now_ms) -> None:
        self.store = store or MemoryDocumentStore()
        self._clock = clock

    def lookup(self, key: str, ttl_ms: int) -> Union[CacheEntry, CacheMiss]:
        """Return the entry if present and fresh, else a CacheMiss saying why."""
        doc = self.store.read(key)
        if doc is None:
            logger.debug("cache absent %s", key)
            return ABSENT

        try:
            entry = CacheEntry.from_document(doc)
        except (KeyError, TypeError, ValueError):
            logger.warning("Discarding unreadable cache document %s", key)
            return ABSENT

        if self._clock() - entry.updated_at > ttl_ms:
            logger.debug("cache expired %s", key)
            return EXPIRED

        logger.debug("cache hit %s", key)
        return entry

    def get(self, key: str, ttl_ms: int) -> Union[Any, CacheMiss]:
        """Cached value, or a falsy CacheMiss (absent and expired look the same to callers that don't care)."""
        found = self.lookup(key, ttl_ms)
        return found.value if isinstance(found, CacheEntry) else found

    def set(self, key: str, value: Any) -> None:
        """Unconditionally overwrite the entry for key."""
        self.store.write(key, CacheEntry(value=value, updated_at=self._clock()).to_document())

    def get_or_set(self, key: str, ttl_ms: int, loader: Callable[[], T]) -> T:
        """
        Retrieve a cached value if not expired, otherwise compute & store a new value.

        Args:
            key: Cache key.
            ttl_ms: Time-to-live for the entry in milliseconds.
            loader: Function that returns the value if the cache is stale/missing.

        Returns:
            The cached or newly loaded value.
        """
        found = self.get(key, ttl_ms)
        if not isinstance(found, CacheMiss):
            return found

        value = loader()
        self.set(key, value)
        return value

    def clear(self) -> None:
        """Clear all cached entries."""
        self.store.clear()
