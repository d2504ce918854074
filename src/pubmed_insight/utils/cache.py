"""
인메모리 결과 캐시.

- TTLCache: 만료 시간이 있는 비동기 캐시 (AI 생성/분석 결과용)
- FIFOCache: 크기 제한이 있는 동기 캐시, 가장 먼저 들어온 항목부터 제거 (TF-IDF 결과용)
"""

import asyncio
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union

from loguru import logger


@dataclass
class CacheEntry:
    """TTL이 있는 캐시 항목."""
    value: Any
    expires_at: float
    created_at: float
    access_count: int = 0


class TTLCache:
    """TTL 기반 만료를 지원하는 비동기 인메모리 캐시.

    max_size가 지정되면 가득 찼을 때 가장 오래 전에 저장된 항목을 제거합니다.
    """

    def __init__(self, default_ttl: float = 300.0, max_size: Optional[int] = None):
        """
        캐시 초기화.

        Args:
            default_ttl: 기본 유효 시간 (초)
            max_size: 최대 항목 수 (None이면 제한 없음)
        """
        self.default_ttl = default_ttl
        self.max_size = max_size
        self._cache: Dict[str, CacheEntry] = {}
        self._lock = asyncio.Lock()

        self._hits = 0
        self._misses = 0
        self._evictions = 0

        logger.debug(f"TTL 캐시 초기화 (max_size={max_size}, default_ttl={default_ttl}s)")

    async def get(self, key: str) -> Optional[Any]:
        """캐시에서 값을 조회합니다. 없거나 만료되었으면 None."""
        async with self._lock:
            entry = self._cache.get(key)

            if entry is None:
                self._misses += 1
                return None

            if time.time() >= entry.expires_at:
                del self._cache[key]
                self._misses += 1
                return None

            entry.access_count += 1
            self._hits += 1
            return entry.value

    async def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        """캐시에 값을 저장합니다."""
        async with self._lock:
            ttl = self.default_ttl if ttl is None else ttl
            now = time.time()

            self._evict_expired(now)

            if self.max_size is not None and len(self._cache) >= self.max_size and key not in self._cache:
                self._evict_oldest()

            self._cache[key] = CacheEntry(value=value, expires_at=now + ttl, created_at=now)

    def _evict_expired(self, now: float) -> None:
        expired_keys = [key for key, entry in self._cache.items() if now >= entry.expires_at]
        for key in expired_keys:
            del self._cache[key]

    def _evict_oldest(self) -> None:
        if not self._cache:
            return
        oldest_key = next(iter(self._cache))
        del self._cache[oldest_key]
        self._evictions += 1

    async def clear(self) -> None:
        """모든 캐시 항목을 삭제합니다."""
        async with self._lock:
            self._cache.clear()
            logger.info("캐시가 비워졌습니다")

    def keys(self) -> List[str]:
        return list(self._cache.keys())

    def __len__(self) -> int:
        return len(self._cache)

    def get_stats(self) -> Dict[str, Union[int, float, None]]:
        """캐시 통계를 반환합니다."""
        total_requests = self._hits + self._misses
        hit_rate = self._hits / total_requests if total_requests > 0 else 0

        return {
            "size": len(self._cache),
            "max_size": self.max_size,
            "hits": self._hits,
            "misses": self._misses,
            "hit_rate": hit_rate,
            "evictions": self._evictions
        }


class FIFOCache:
    """크기 제한이 있는 동기 캐시. 가득 차면 삽입 순서상 가장 오래된 항목을 제거합니다.

    조회는 삽입 순서를 바꾸지 않습니다 (LRU가 아님).
    """

    def __init__(self, max_size: int = 100):
        if max_size < 1:
            raise ValueError("max_size는 1 이상이어야 합니다")
        self.max_size = max_size
        self._cache: Dict[str, Any] = {}

    def get(self, key: str) -> Optional[Any]:
        return self._cache.get(key)

    def __contains__(self, key: str) -> bool:
        return key in self._cache

    def set(self, key: str, value: Any) -> None:
        if key not in self._cache and len(self._cache) >= self.max_size:
            oldest_key = next(iter(self._cache))
            del self._cache[oldest_key]
            logger.debug(f"FIFO 캐시 항목 제거: {oldest_key[:16]}...")
        self._cache[key] = value

    def clear(self) -> None:
        self._cache.clear()

    def __len__(self) -> int:
        return len(self._cache)

    def get_stats(self) -> Dict[str, int]:
        return {"size": len(self._cache), "max_size": self.max_size}
