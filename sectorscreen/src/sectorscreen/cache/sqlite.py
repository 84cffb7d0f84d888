import sqlite3
import json
import logging
import time
from typing import Optional, Any, Dict

from ..errors import CacheUnavailable

logger = logging.getLogger(__name__)

class SQLiteCache:
    """
    Key-value cache backed by SQLite, entries stamped with their write time.
    Schema: cache(key TEXT PRIMARY KEY, data TEXT, created_at REAL)

    Storage failures never propagate: a failed read is a miss and a failed
    write is dropped.
    """
    def __init__(self, db_path: str = "sectorscreen_cache.db"):
        self.db_path = db_path
        self._init_db()

    def _connect(self) -> sqlite3.Connection:
        try:
            return sqlite3.connect(self.db_path)
        except sqlite3.Error as e:
            raise CacheUnavailable(f"Cannot open cache at {self.db_path}: {e}")

    def _init_db(self):
        try:
            with self._connect() as conn:
                conn.execute("""
                    CREATE TABLE IF NOT EXISTS cache (
                        key TEXT PRIMARY KEY,
                        data TEXT,
                        created_at REAL
                    )
                """)
                conn.commit()
        except (CacheUnavailable, sqlite3.Error) as e:
            logger.error(f"Failed to init cache at {self.db_path}: {e}")

    def get(self, key: str) -> Optional[Dict[str, Any]]:
        """Return {"timestamp": float, "data": ...} or None."""
        try:
            with self._connect() as conn:
                cursor = conn.execute("SELECT data, created_at FROM cache WHERE key = ?", (key,))
                row = cursor.fetchone()
                if row:
                    return {"timestamp": float(row[1] or 0), "data": json.loads(row[0])}
        except (CacheUnavailable, sqlite3.Error, ValueError) as e:
            logger.warning(f"Cache get failed for {key}: {e}")
        return None

    def put(self, key: str, value: Any, timestamp: Optional[float] = None):
        """Store data as JSON string, stamped with `timestamp` (default: now)."""
        stamp = time.time() if timestamp is None else timestamp
        try:
            json_str = json.dumps(value, default=str)
            with self._connect() as conn:
                conn.execute("""
                    INSERT OR REPLACE INTO cache (key, data, created_at)
                    VALUES (?, ?, ?)
                """, (key, json_str, stamp))
                conn.commit()
        except (CacheUnavailable, sqlite3.Error, TypeError, ValueError) as e:
            logger.error(f"Cache put failed for {key}: {e}")

    def get_fresh(self, key: str, ttl_seconds: float, now: Optional[float] = None) -> Optional[Any]:
        """Cached data for `key` if younger than `ttl_seconds`, else None."""
        entry = self.get(key)
        if entry is None or not is_fresh(entry, ttl_seconds, now=now):
            return None
        return entry["data"]


def is_fresh(entry: Dict[str, Any], ttl_seconds: float, now: Optional[float] = None) -> bool:
    now = time.time() if now is None else now
    stamp = entry.get("timestamp")
    if not isinstance(stamp, (int, float)):
        return False
    return now - stamp < ttl_seconds
