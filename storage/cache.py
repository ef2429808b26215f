"""
Simple SQLite cache for processed snapshots.
Stores JSON payloads keyed by cohort with a write timestamp; TTL and size limits are
enforced on access and on write. The instance is created and closed by its owner.
"""

import json
import logging
import sqlite3
import threading
import time
from typing import Any, Dict, List, Optional

log = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 300.0
SNAPSHOT_PREFIX = 'snapshot:'
DEFAULT_COHORT = 'default'

# noinspection SqlResolve
SQL_CREATE = """
CREATE TABLE IF NOT EXISTS snapshot_cache (
    key TEXT PRIMARY KEY,
    payload TEXT,
    status INTEGER,
    timestamp REAL
);
"""


def snapshot_key(cohort: Optional[str] = None) -> str:
    """Cache key for a cohort's snapshot; records without a cohort share the default key."""
    return SNAPSHOT_PREFIX + ((cohort or '').strip() or DEFAULT_COHORT)


class Cache:
    def __init__(self, path: Optional[str] = None, max_entries: Optional[int] = None, ttl_seconds: Optional[float] = DEFAULT_TTL_SECONDS):
        """Create a cache instance.

        :param path: SQLite file path or None for in-memory.
        :param max_entries: optional maximum number of entries to keep; older entries will be pruned when exceeded.
        :param ttl_seconds: TTL in seconds (None disables expiry); entries older than TTL are pruned on set/get.
        """
        self.path = path or ':memory:'
        self.conn = sqlite3.connect(self.path, check_same_thread=False)
        self._lock = threading.RLock()
        self.max_entries = int(max_entries) if max_entries is not None else None
        self.ttl_seconds = float(ttl_seconds) if ttl_seconds is not None else None
        self._init_db()

    def _init_db(self):
        with self._lock:
            cur = self.conn.cursor()
            cur.executescript(SQL_CREATE)
            self.conn.commit()

    def close(self):
        with self._lock:
            if getattr(self, 'conn', None) is not None:
                try:
                    self.conn.close()
                finally:
                    self.conn = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def _expired(self, timestamp: Optional[float]) -> bool:
        if self.ttl_seconds is None or timestamp is None:
            return False
        return time.time() - float(timestamp) > self.ttl_seconds

    # noinspection SqlResolve
    def stats(self) -> Dict[str, Any]:
        """Return basic statistics about the cache: count, oldest timestamp, newest timestamp."""
        with self._lock:
            cur = self.conn.cursor()
            cur.execute('SELECT COUNT(1), MIN(timestamp), MAX(timestamp) FROM snapshot_cache')
            count, oldest, newest = cur.fetchone()
        return {
            'count': int(count or 0),
            'oldest': float(oldest) if oldest is not None else None,
            'newest': float(newest) if newest is not None else None,
            'ttl_seconds': self.ttl_seconds,
        }

    # noinspection SqlResolve
    def list_keys(self, limit: int = 1000) -> List[Dict[str, Any]]:
        """Return cache keys with basic metadata (key, status, timestamp, expired), newest first."""
        with self._lock:
            cur = self.conn.cursor()
            cur.execute('SELECT key, status, timestamp FROM snapshot_cache ORDER BY timestamp DESC LIMIT ?', (limit,))
            rows = cur.fetchall()
        return [
            {'key': k, 'status': int(status or 0), 'timestamp': float(ts or 0), 'expired': self._expired(ts)}
            for k, status, ts in rows
        ]

    # noinspection SqlWithoutWhere
    def clear(self):
        """Clear all entries from the cache."""
        with self._lock:
            cur = self.conn.cursor()
            cur.execute('DELETE FROM snapshot_cache')
            self.conn.commit()

    # noinspection SqlResolve
    def delete_key(self, key: str) -> int:
        """Delete a specific cache key. Returns number of rows deleted."""
        with self._lock:
            cur = self.conn.cursor()
            cur.execute('DELETE FROM snapshot_cache WHERE key = ?', (key,))
            self.conn.commit()
            return cur.rowcount

    # noinspection SqlResolve
    def get(self, key: str) -> Optional[Dict[str, Any]]:
        """Return {'response', 'status', 'timestamp'} for a live entry, or None (expired entries are evicted)."""
        with self._lock:
            cur = self.conn.cursor()
            cur.execute('SELECT payload, status, timestamp FROM snapshot_cache WHERE key = ?', (key,))
            row = cur.fetchone()
            if not row:
                return None
            payload, status, timestamp = row
            if self._expired(timestamp):
                self.delete_key(key)
                return None
        try:
            parsed = json.loads(payload)
        except (TypeError, ValueError):
            parsed = payload
        return {'response': parsed, 'status': status, 'timestamp': timestamp}

    # noinspection SqlResolve
    def _prune_if_needed(self):
        """Prune cache entries based on TTL and max_entries settings."""
        with self._lock:
            cur = self.conn.cursor()
            if self.ttl_seconds is not None:
                cutoff = time.time() - float(self.ttl_seconds)
                cur.execute('DELETE FROM snapshot_cache WHERE timestamp < ?', (cutoff,))
            if self.max_entries is not None:
                cur.execute('SELECT COUNT(1) FROM snapshot_cache')
                count = cur.fetchone()[0] or 0
                if count > self.max_entries:
                    cur.execute('SELECT key FROM snapshot_cache ORDER BY timestamp ASC LIMIT ?', (int(count - self.max_entries),))
                    keys = [r[0] for r in cur.fetchall() or []]
                    cur.executemany('DELETE FROM snapshot_cache WHERE key = ?', [(k,) for k in keys])
            self.conn.commit()

    # noinspection SqlResolve
    def set(self, key: str, response: Any, status: int = 200):
        with self._lock:
            try:
                payload = json.dumps(response)
            except (TypeError, ValueError):
                payload = json.dumps(str(response))
            cur = self.conn.cursor()
            cur.execute('REPLACE INTO snapshot_cache(key, payload, status, timestamp) VALUES (?, ?, ?, ?)', (key, payload, status, time.time()))
            self.conn.commit()
            # best-effort
            try:
                self._prune_if_needed()
            except sqlite3.Error as ex:
                log.warning("Cache pruning failed: %s", ex)


def load_snapshot(cache: Optional[Cache], cohort: Optional[str] = None) -> Optional[Dict[str, Any]]:
    """Return the cached snapshot dict for a cohort, or None when absent or expired."""
    if cache is None:
        return None
    entry = cache.get(snapshot_key(cohort))
    if not entry or not isinstance(entry.get('response'), dict):
        return None
    log.debug("Snapshot cache hit for %s", snapshot_key(cohort))
    return entry['response']


def store_snapshot(cache: Optional[Cache], snapshot_dict: Dict[str, Any], cohort: Optional[str] = None):
    if cache is None:
        return
    cache.set(snapshot_key(cohort), snapshot_dict)


__all__ = ["Cache", "snapshot_key", "load_snapshot", "store_snapshot"]
