"""
Caching utilities for expensive aggregate queries
Uses Redis when configured, the local memory cache otherwise
"""
from django.conf import settings
from django.core.cache import cache
from functools import wraps
import hashlib
import logging

logger = logging.getLogger(__name__)

# Cache TTLs (in seconds)
DASHBOARD_CACHE_TTL = 300  # 5 minutes
FUNDING_SUMMARY_CACHE_TTL = 120  # 2 minutes
PROJECT_SUMMARY_CACHE_TTL = 120  # 2 minutes


def make_cache_key(prefix, *args, **kwargs):
    """Generate a unique cache key from arguments"""
    key_data = f"{prefix}:{args}:{sorted(kwargs.items())}"
    # Hash it to keep key length reasonable
    key_hash = hashlib.md5(key_data.encode()).hexdigest()
    return f"{prefix}:{key_hash}"


def cached_query(cache_ttl=60, key_prefix="query"):
    """
    Decorator to cache expensive queries

    Usage:
        @cached_query(cache_ttl=120, key_prefix="funding_summary")
        def get_funding_summary(lab_id):
            # expensive aggregation here
            return data
    """
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            cache_key = make_cache_key(key_prefix, *args, **kwargs)

            cached_data = cache.get(cache_key)
            if cached_data is not None:
                logger.debug(f"Cache HIT for {key_prefix}: {cache_key}")
                return cached_data

            logger.debug(f"Cache MISS for {key_prefix}: {cache_key}")
            result = func(*args, **kwargs)
            cache.set(cache_key, result, cache_ttl)
            return result
        wrapper.uncached = func
        return wrapper
    return decorator


def _uses_redis():
    backend = settings.CACHES.get('default', {}).get('BACKEND', '')
    return backend.startswith('django_redis')


def invalidate_cache_pattern(pattern):
    """
    Invalidate all cache keys matching a pattern

    With Redis this SCANs for matching keys. Other backends cannot list keys,
    so the whole local cache is cleared instead.
    """
    if not _uses_redis():
        cache.clear()
        logger.debug(f"Cleared local cache for pattern: {pattern}")
        return
    try:
        from django_redis import get_redis_connection
        redis_conn = get_redis_connection("default")

        keys = []
        cursor = 0
        while True:
            cursor, partial_keys = redis_conn.scan(cursor, match=f"*{pattern}*", count=100)
            keys.extend(partial_keys)
            if cursor == 0:
                break

        if keys:
            redis_conn.delete(*keys)
            logger.info(f"Invalidated {len(keys)} cache keys matching pattern: {pattern}")
    except Exception as e:
        logger.warning(f"Could not invalidate cache pattern {pattern}: {str(e)}")


def invalidate_dashboard_cache():
    """Invalidate dashboard KPIs cache"""
    invalidate_cache_pattern("dashboard")
    logger.info("Invalidated dashboard cache")


def invalidate_funding_cache():
    """Invalidate cached funding summaries"""
    invalidate_cache_pattern("funding_summary")
    logger.info("Invalidated funding cache")


def invalidate_project_cache():
    """Invalidate cached project summaries"""
    invalidate_cache_pattern("project_summary")
    logger.info("Invalidated project cache")
