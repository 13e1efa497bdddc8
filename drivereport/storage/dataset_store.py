"""
Dataset Store

Short-lived storage for uploaded report datasets (driver records plus an
optional configuration document), addressed by an opaque token. The HTTP
layer depends on the `DatasetStore` interface; the in-memory implementation
expires entries after a TTL and evicts the least recently used entry when
full.
"""

from __future__ import annotations
import logging
import secrets
import threading
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from drivereport.utils.constants import DEFAULT_DATASET_MAX_SIZE, DEFAULT_DATASET_TTL_SECONDS

logger = logging.getLogger(__name__)


@dataclass
class StoredDataset:
    """Uploaded drivers and the configuration they should be rendered with."""
    drivers: List[Dict[str, Any]] = field(default_factory=list)
    config: Optional[Dict[str, Any]] = None


class DatasetStore(ABC):
    """Abstract key-value store for uploaded datasets."""

    @abstractmethod
    def get(self, token: str) -> Optional[StoredDataset]:
        """Get a dataset, or None when unknown or expired."""
        pass

    @abstractmethod
    def set(self, token: str, value: StoredDataset) -> None:
        """Store a dataset under a token."""
        pass

    @abstractmethod
    def expire(self, token: str) -> bool:
        """Drop a token now. Returns True if it existed."""
        pass

    def new_token(self) -> str:
        return secrets.token_hex(16)


class InMemoryDatasetStore(DatasetStore):
    """Process-local store with TTL expiry and LRU eviction."""

    def __init__(
        self,
        ttl_seconds: int = DEFAULT_DATASET_TTL_SECONDS,
        max_size: int = DEFAULT_DATASET_MAX_SIZE,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._data: Dict[str, StoredDataset] = {}
        self._stored_at: Dict[str, float] = {}
        self._access_times: Dict[str, float] = {}
        self._ttl_seconds = ttl_seconds
        self._max_size = max_size
        self._clock = clock
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0

    @property
    def ttl_seconds(self) -> int:
        return self._ttl_seconds

    def _is_expired(self, token: str, now: float) -> bool:
        stored_at = self._stored_at.get(token)
        return stored_at is None or now - stored_at > self._ttl_seconds

    def _drop(self, token: str) -> bool:
        existed = self._data.pop(token, None) is not None
        self._stored_at.pop(token, None)
        self._access_times.pop(token, None)
        return existed

    def _evict_expired(self, now: float) -> int:
        expired = [t for t in self._stored_at if self._is_expired(t, now)]
        for token in expired:
            self._drop(token)
        if expired:
            logger.info(f"Expired {len(expired)} dataset tokens")
        return len(expired)

    def _evict_lru(self) -> None:
        while self._data and len(self._data) >= self._max_size:
            lru_token = min(self._access_times, key=lambda t: self._access_times[t])
            logger.info(f"Dataset store full, evicting {lru_token}")
            self._drop(lru_token)

    def get(self, token: str) -> Optional[StoredDataset]:
        with self._lock:
            now = self._clock()
            if token in self._data and not self._is_expired(token, now):
                self._access_times[token] = now
                self._hits += 1
                return self._data[token]
            if token in self._data:
                self._drop(token)
            self._misses += 1
            return None

    def set(self, token: str, value: StoredDataset) -> None:
        with self._lock:
            now = self._clock()
            self._evict_expired(now)
            if token not in self._data:
                self._evict_lru()
            self._data[token] = value
            self._stored_at[token] = now
            self._access_times[token] = now

    def expire(self, token: str) -> bool:
        with self._lock:
            return self._drop(token)

    def sweep(self) -> int:
        """Remove every expired entry; returns how many were removed."""
        with self._lock:
            return self._evict_expired(self._clock())

    def get_stats(self) -> Dict[str, Any]:
        with self._lock:
            total_requests = self._hits + self._misses
            hit_rate = self._hits / total_requests if total_requests > 0 else 0.0
            return {
                "size": len(self._data),
                "max_size": self._max_size,
                "hits": self._hits,
                "misses": self._misses,
                "hit_rate": round(hit_rate, 3),
                "ttl_seconds": self._ttl_seconds,
            }
