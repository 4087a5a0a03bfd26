import threading
from collections import OrderedDict
from typing import Dict, Optional

import numpy as np


class EmbeddingCache:
    """LRU cache of decoded vectors to skip repeated lookups and decodes."""

    def __init__(self, max_size: int = 512):
        """Initialize the LRU cache.

        Args:
            max_size: Maximum number of vectors to cache
        """
        self._cache: "OrderedDict[str, np.ndarray]" = OrderedDict()
        self._max_size = max_size
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0

    def get(self, word: str) -> Optional[np.ndarray]:
        """Get a vector from cache, updating LRU order."""
        with self._lock:
            if word in self._cache:
                self._cache.move_to_end(word)
                self._hits += 1
                return self._cache[word]
            self._misses += 1
            return None

    def put(self, word: str, vector: np.ndarray) -> np.ndarray:
        """Cache a vector, evicting the oldest entry if full.

        The cached array is made read-only and returned so callers share it safely.
        """
        vector.setflags(write=False)
        with self._lock:
            if word in self._cache:
                self._cache.move_to_end(word)
            elif len(self._cache) >= self._max_size:
                self._cache.popitem(last=False)
            self._cache[word] = vector
        return vector

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()
            self._hits = 0
            self._misses = 0

    @property
    def stats(self) -> Dict[str, float]:
        """Return cache statistics."""
        with self._lock:
            total = self._hits + self._misses
            hit_rate = (self._hits / total * 100) if total > 0 else 0
            return {
                "hits": self._hits,
                "misses": self._misses,
                "size": len(self._cache),
                "max_size": self._max_size,
                "hit_rate_pct": round(hit_rate, 2),
            }

    def __len__(self) -> int:
        return len(self._cache)

    def __bool__(self) -> bool:
        return True  # Cache is always truthy
