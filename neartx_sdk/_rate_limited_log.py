"""
Thread-safe rate-limited logging.

Retry loops against a flapping RPC endpoint would otherwise emit the same
warning on every attempt.
"""
import logging
import threading
from typing import Optional

from cachetools import LRUCache, TTLCache

logger = logging.getLogger(__name__)

MAX_INTERVALS = 16

# One cache per interval so a message is suppressed for exactly that long;
# least recently used intervals are dropped once MAX_INTERVALS is reached
_log_caches: LRUCache = LRUCache(maxsize=MAX_INTERVALS)
_log_cache_lock = threading.RLock()


def _cache_for(interval: int) -> TTLCache:
    cache = _log_caches.get(interval)
    if cache is None:
        cache = TTLCache(maxsize=256, ttl=interval)
        _log_caches[interval] = cache
    return cache


def rate_limited_log(
    message: str,
    level: str = "warning",
    interval: int = 60,
    logger_instance: Optional[logging.Logger] = None
) -> bool:
    """
    Log a message at most once per ``interval`` seconds.

    Args:
        message: Message to log
        level: Log level (debug, info, warning, error, critical)
        interval: Minimum interval between identical messages in seconds
        logger_instance: Logger to use (defaults to module logger)

    Returns:
        True if the message was emitted, False if it was suppressed
    """
    log_instance = logger_instance or logger
    log_method = getattr(log_instance, level.lower(), log_instance.warning)
    key = f"{log_instance.name}:{level}:{message}"

    with _log_cache_lock:
        cache = _cache_for(interval)
        if key in cache:
            return False
        log_method(message)
        cache[key] = True
        return True


def reset_rate_limits() -> None:
    """Forget every suppressed message (used by tests)"""
    with _log_cache_lock:
        _log_caches.clear()
