"""
DISCOVERY CACHE

Memoizes every request that passed validation, keyed by address, valued by
its window start. The scanner uses it to skip re-validation and to detect
when a walk has reached territory classified in an earlier cycle; the
dispatcher uses it as its candidate set.

Values go through a CacheBackend as text and are parsed back to int here.
"""

import json
import logging
import threading
import time
from pathlib import Path
from typing import Callable, Dict, List, Optional

from .base import CacheBackend, is_null_address

logger = logging.getLogger(__name__)


class MemoryBackend(CacheBackend):
    """Process-local backend. Lost on restart."""

    def __init__(self):
        self._data: Dict[str, str] = {}

    def has(self, key: str) -> bool:
        return key in self._data

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str):
        self._data[key] = value

    def delete(self, key: str):
        self._data.pop(key, None)

    def keys(self) -> List[str]:
        return list(self._data.keys())

    def __len__(self) -> int:
        return len(self._data)


class JsonFileBackend(MemoryBackend):
    """
    Backend persisted to a JSON file.

    Changes are held in memory and the whole map is rewritten on
    ``flush()``, which the scanner calls once per cycle. A restarted keeper
    starts with everything flushed before it stopped.
    """

    def __init__(self, path):
        super().__init__()
        self.path = Path(path)
        self.dirty = False
        self._load_from_file()

    def set(self, key: str, value: str):
        super().set(key, value)
        self.dirty = True

    def delete(self, key: str):
        if key in self._data:
            super().delete(key)
            self.dirty = True

    def flush(self):
        if self.dirty and self._save_to_file():
            self.dirty = False

    def _load_from_file(self):
        try:
            if self.path.exists():
                with open(self.path, 'r') as f:
                    data = json.load(f)
                self._data = {k: str(v) for k, v in data.get('requests', {}).items()}
                logger.info(f"Loaded {len(self._data)} cached requests from {self.path}")
            else:
                logger.info(f"No cache file at {self.path}, starting fresh")
        except (OSError, ValueError) as e:
            logger.error(f"Error loading cache file {self.path}: {e}")
            self._data = {}

    def _save_to_file(self):
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            data = {
                'version': 1,
                'last_updated': time.strftime('%Y-%m-%d %H:%M:%S'),
                'total_count': len(self._data),
                'requests': self._data,
            }
            with open(self.path, 'w') as f:
                json.dump(data, f, indent=2)
            return True
        except OSError as e:
            logger.error(f"Error saving cache file {self.path}: {e}")
            return False


class DiscoveryCache:
    """
    Address -> window start memo shared by the scan and dispatch loops.

    Entries are kept until pruned. With ``ttl_seconds`` set, an entry older
    than the TTL is dropped the next time it is read or on
    ``cleanup_expired()``.
    """

    def __init__(self, backend: CacheBackend = None, ttl_seconds: float = None):
        self.backend = backend if backend is not None else MemoryBackend()
        self.ttl_seconds = ttl_seconds

        self._stored_at: Dict[str, float] = {}
        self._lock = threading.Lock()

        # Stats
        self.hits = 0
        self.misses = 0
        self.evictions = 0

    @staticmethod
    def _key(address: str) -> str:
        return address.lower()

    def has(self, address: str) -> bool:
        key = self._key(address)
        with self._lock:
            if not self.backend.has(key):
                self.misses += 1
                return False
            if self._is_expired(key):
                self._evict(key)
                self.misses += 1
                return False
            self.hits += 1
            return True

    def get(self, address: str) -> Optional[int]:
        """Cached window start, or None when the address is unknown."""
        key = self._key(address)
        with self._lock:
            if self._is_expired(key):
                self._evict(key)
                self.misses += 1
                return None
            value = self.backend.get(key)
            if value is None:
                self.misses += 1
                return None
            self.hits += 1
        return int(value)

    def set(self, address: str, window_start: int):
        if is_null_address(address):
            raise ValueError("The null address cannot be cached")
        key = self._key(address)
        with self._lock:
            self.backend.set(key, str(int(window_start)))
            self._stored_at[key] = time.monotonic()

    def len(self) -> int:
        with self._lock:
            return len(self.backend)

    def __len__(self) -> int:
        return self.len()

    def stored(self) -> List[str]:
        """Snapshot of cached addresses."""
        with self._lock:
            return self.backend.keys()

    def delete(self, address: str):
        key = self._key(address)
        with self._lock:
            self.backend.delete(key)
            self._stored_at.pop(key, None)

    def flush(self):
        """Write pending changes through to the backend."""
        with self._lock:
            self.backend.flush()

    def prune(self, predicate: Callable[[int], bool]) -> int:
        """
        Remove every entry whose window start satisfies ``predicate``.

        Returns:
            Number of entries removed
        """
        with self._lock:
            doomed = [
                key for key in self.backend.keys()
                if predicate(int(self.backend.get(key)))
            ]
            for key in doomed:
                self._evict(key)
        if doomed:
            logger.info(f"Pruned {len(doomed)} cached requests")
        return len(doomed)

    def cleanup_expired(self) -> int:
        """Remove all expired entries."""
        if self.ttl_seconds is None:
            return 0
        with self._lock:
            expired = [key for key in self.backend.keys() if self._is_expired(key)]
            for key in expired:
                self._evict(key)
        return len(expired)

    def _is_expired(self, key: str) -> bool:
        if self.ttl_seconds is None or not self.backend.has(key):
            return False
        # Entries loaded from a persistent backend start their TTL on first sight
        stored_at = self._stored_at.setdefault(key, time.monotonic())
        return time.monotonic() - stored_at > self.ttl_seconds

    def _evict(self, key: str):
        self.backend.delete(key)
        self._stored_at.pop(key, None)
        self.evictions += 1

    def get_stats(self) -> Dict:
        with self._lock:
            total_requests = self.hits + self.misses
            hit_rate = (self.hits / total_requests * 100) if total_requests > 0 else 0

            return {
                'size': len(self.backend),
                'hits': self.hits,
                'misses': self.misses,
                'hit_rate_pct': hit_rate,
                'evictions': self.evictions,
                'ttl_seconds': self.ttl_seconds,
            }
