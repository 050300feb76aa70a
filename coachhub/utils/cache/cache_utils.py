"""Cache utilities - DRY Implementation"""
import time
import threading
from typing import Dict, Tuple, Any, Optional
from coachhub.config.settings import CacheConfig, RateLimitConfig

class BaseCache:
    """TTL cache with lazy expiry on read"""

    def __init__(self, ttl: int = None):
        self._cache: Dict[str, Tuple[float, Any]] = {}
        self._lock = threading.Lock()
        self.ttl = ttl or CacheConfig.DEFAULT_TTL

    def get(self, key: str) -> Any:
        """Get cached result"""
        with self._lock:
            rec = self._cache.get(key)
            if not rec:
                return None
            expires_at, val = rec
            if expires_at < time.time():
                self._cache.pop(key, None)
                return None
            return val

    def put(self, key: str, val: Any, ttl: Optional[int] = None) -> None:
        """Cache result"""
        with self._lock:
            self._cache[key] = (time.time() + (ttl or self.ttl), val)

    def delete(self, key: str) -> None:
        with self._lock:
            self._cache.pop(key, None)

    def invalidate_prefix(self, prefix: str) -> int:
        """Drop every key starting with prefix, returns how many were removed"""
        with self._lock:
            keys = [k for k in self._cache if k.startswith(prefix)]
            for key in keys:
                del self._cache[key]
            return len(keys)

    def clear(self) -> int:
        """Clear cache"""
        with self._lock:
            count = len(self._cache)
            self._cache.clear()
            return count

    def __len__(self):
        return len(self._cache)

def generate_key(prefix: str, params: Optional[Dict[str, Any]] = None) -> str:
    """Deterministic cache key: prefix:k1=v1&k2=v2 with keys sorted"""
    if not params:
        return prefix
    parts = [f"{k}={params[k]}" for k in sorted(params) if params[k] is not None]
    return f"{prefix}:{'&'.join(parts)}" if parts else prefix

class RateLimiter:
    """Fixed-window request counter per key"""

    def __init__(self, limit: int, window_seconds: int):
        self.limit = limit
        self.window_seconds = window_seconds
        self._windows: Dict[str, Tuple[float, int]] = {}
        self._lock = threading.Lock()

    def hit(self, key: str) -> bool:
        """Count a request, returns False once the window is exhausted"""
        now = time.time()
        with self._lock:
            window_start, count = self._windows.get(key, (now, 0))
            if now - window_start >= self.window_seconds:
                window_start, count = now, 0
            if count >= self.limit:
                self._windows[key] = (window_start, count)
                return False
            self._windows[key] = (window_start, count + 1)
            return True

    def reset(self) -> None:
        with self._lock:
            self._windows.clear()

# Key prefixes, invalidated by writes that change the cached result
PRICING_CACHE_PREFIX = "pricing"
ADMIN_STATS_CACHE_PREFIX = "admin_stats"
LEADERBOARD_CACHE_PREFIX = "leaderboard"

# Specific cache types with custom TTL
ApiCache = BaseCache
LeaderboardCache = lambda: BaseCache(CacheConfig.LEADERBOARD_TTL)

# Global cache instances
api_cache = ApiCache()
leaderboard_cache = LeaderboardCache()
login_rate_limiter = RateLimiter(RateLimitConfig.LOGIN_LIMIT, RateLimitConfig.LOGIN_WINDOW_SECONDS)

def clear_all_caches() -> Dict[str, int]:
    return {
        "api": api_cache.clear(),
        "leaderboard": leaderboard_cache.clear()
    }
