"""Match Cache Service - Redis cache-aside for match lists."""
import json
import logging
import threading
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, Optional
from urllib.parse import urlparse

from redis import Redis
from redis.exceptions import RedisError

logger = logging.getLogger(__name__)

CACHE_TTL_SECONDS = 60 * 60  # 1 hour
RECONNECT_INTERVAL_SECONDS = 30
KEY_PREFIX = "matches"


def _sanitize_url(url: str) -> str:
    """Remove credentials from URL for safe logging."""
    try:
        parsed = urlparse(url)
    except ValueError:
        return url
    if parsed.password:
        return parsed._replace(
            netloc=f"{parsed.username or ''}:*@{parsed.hostname}:{parsed.port or 6379}"
        ).geturl()
    return url


def make_cache_key(
    direction: str,
    subject_id: Any,
    limit: int,
    min_score: float,
    scope: Any = "all"
) -> str:
    """Key for one query shape; changing any parameter is a different entry."""
    return f"{KEY_PREFIX}:{direction}:{subject_id}:{limit}:{min_score}:{scope}"


@dataclass
class CachedResult:
    data: Any
    from_cache: bool
    cached_at: Optional[str] = None


class MatchCacheService:
    """
    Cache-aside wrapper around match computations.

    Entries are JSON {data, cached_at, ttl_seconds}. Any Redis failure is
    logged and treated as a miss; it never stops a result from being
    computed and returned. If Redis was unreachable, the next call after
    reconnect_interval_seconds tries to connect again.
    """

    def __init__(
        self,
        redis_url: str = "redis://localhost:6379/0",
        password: Optional[str] = None,
        ttl_seconds: int = CACHE_TTL_SECONDS,
        socket_timeout_seconds: float = 5.0,
        enabled: bool = True,
        reconnect_interval_seconds: float = RECONNECT_INTERVAL_SECONDS
    ):
        self.redis_url = redis_url
        self.ttl_seconds = ttl_seconds
        self.enabled = enabled
        self.reconnect_interval_seconds = reconnect_interval_seconds
        self._password = password
        self._socket_timeout_seconds = socket_timeout_seconds
        self._redis: Optional[Redis] = None
        self._available = False
        self._next_connect_at = 0.0
        self._connect_lock = threading.Lock()

        if not enabled:
            logger.info("Match cache disabled by configuration")
            return

        self._connect()

    def _connect(self) -> None:
        try:
            client = Redis.from_url(
                self.redis_url,
                password=self._password,
                decode_responses=True,
                socket_connect_timeout=self._socket_timeout_seconds,
                socket_timeout=self._socket_timeout_seconds
            )
            client.ping()
            self._redis = client
            self._available = True
            logger.info(f"Match cache connected to Redis at {_sanitize_url(self.redis_url)}")
        except (RedisError, OSError, ValueError) as e:
            logger.warning(
                f"Match cache Redis unavailable, retrying in {self.reconnect_interval_seconds}s: {e}"
            )
            self._redis = None
            self._available = False
            self._next_connect_at = time.monotonic() + self.reconnect_interval_seconds

    @property
    def is_available(self) -> bool:
        """True when Redis answered; retries the connection once the interval has passed."""
        if self._available and self._redis is not None:
            return True
        if not self.enabled or time.monotonic() < self._next_connect_at:
            return False
        with self._connect_lock:
            if not self._available and time.monotonic() >= self._next_connect_at:
                self._connect()
        return self._available and self._redis is not None

    def get(self, key: str) -> Optional[Dict[str, Any]]:
        """Raw cache entry for key, or None on miss or error."""
        if not self.is_available:
            return None
        try:
            raw = self._redis.get(key)
            if not raw:
                logger.debug(f"Cache miss for {key}")
                return None
            logger.debug(f"Cache hit for {key}")
            return json.loads(raw)
        except (RedisError, OSError, ValueError) as e:
            logger.warning(f"Error reading from match cache: {e}")
            return None

    def set(self, key: str, data: Any, ttl_seconds: Optional[int] = None) -> Optional[str]:
        """Store data under key; returns the cached_at stamp, or None if not stored."""
        if not self.is_available:
            return None
        ttl = ttl_seconds or self.ttl_seconds
        cached_at = datetime.now(timezone.utc).isoformat()
        entry = {"data": data, "cached_at": cached_at, "ttl_seconds": ttl}
        try:
            self._redis.setex(key, ttl, json.dumps(entry))
            logger.debug(f"Cached {key} (TTL: {ttl}s)")
            return cached_at
        except (RedisError, OSError, TypeError, ValueError) as e:
            logger.warning(f"Error writing to match cache: {e}")
            return None

    def get_or_compute(
        self,
        key: str,
        compute: Callable[[], Any],
        ttl_seconds: Optional[int] = None,
        force_refresh: bool = False
    ) -> CachedResult:
        """Return the cached value for key, or compute, store and return it.

        compute must return JSON-serializable data. Exceptions from compute
        propagate and nothing is cached.
        """
        if not force_refresh:
            entry = self.get(key)
            if entry is not None and "data" in entry:
                return CachedResult(data=entry["data"], from_cache=True, cached_at=entry.get("cached_at"))

        data = compute()
        cached_at = self.set(key, data, ttl_seconds)
        return CachedResult(data=data, from_cache=False, cached_at=cached_at)

    def _delete_matching(self, pattern: str) -> int:
        deleted = 0
        cursor = 0
        while True:
            cursor, keys = self._redis.scan(cursor=cursor, match=pattern, count=100)
            if keys:
                self._redis.delete(*keys)
                deleted += len(keys)
            if cursor == 0:
                break
        return deleted

    def invalidate_subject(self, subject_id: Any) -> int:
        """Drop every cached list whose subject is subject_id."""
        if not self.is_available:
            return 0
        try:
            deleted = self._delete_matching(f"{KEY_PREFIX}:*:{subject_id}:*")
            if deleted:
                logger.debug(f"Invalidated {deleted} cache entries for {subject_id}")
            return deleted
        except (RedisError, OSError) as e:
            logger.warning(f"Error invalidating match cache for {subject_id}: {e}")
            return 0

    def invalidate_subjects(self, subject_ids: Iterable[Any]) -> int:
        return sum(self.invalidate_subject(s) for s in set(map(str, subject_ids)))

    def get_cache_stats(self) -> Dict[str, Any]:
        if not self.is_available:
            return {"available": False}
        try:
            info = self._redis.info()
            key_count = 0
            cursor = 0
            while True:
                cursor, keys = self._redis.scan(cursor=cursor, match=f"{KEY_PREFIX}:*", count=1000)
                key_count += len(keys)
                if cursor == 0:
                    break
            return {
                "available": True,
                "used_memory_human": info.get("used_memory_human", "unknown"),
                "match_cache_keys": key_count,
                "ttl_seconds": self.ttl_seconds,
            }
        except (RedisError, OSError) as e:
            logger.warning(f"Error getting cache stats: {e}")
            return {"available": False, "error": str(e)}
