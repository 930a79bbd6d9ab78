"""
Caching utilities for storefront queries
Uses Redis (django-redis) when configured, local memory otherwise
"""
from django.core.cache import cache
import hashlib
import logging

logger = logging.getLogger(__name__)

# Cache TTLs (in seconds)
STOREFRONT_PRODUCTS_CACHE_TTL = 120  # 2 minutes
CATEGORY_TREE_CACHE_TTL = 600  # 10 minutes

STOREFRONT_PRODUCTS_PREFIX = 'storefront_products'
CATEGORY_TREE_PREFIX = 'category_tree'


def make_cache_key(prefix, *args, **kwargs):
    """Generate a unique cache key from arguments"""
    key_data = f"{prefix}:{args}:{sorted(kwargs.items())}"
    # Hash it to keep key length reasonable
    key_hash = hashlib.md5(key_data.encode()).hexdigest()
    return f"{prefix}:{key_hash}"


def get_or_set(prefix, builder, ttl, *args, **kwargs):
    """Return the cached value for the key, building and storing it on a miss"""
    cache_key = make_cache_key(prefix, *args, **kwargs)
    cached_data = cache.get(cache_key)
    if cached_data is not None:
        logger.debug(f"Cache HIT for {prefix}: {cache_key}")
        return cached_data

    logger.debug(f"Cache MISS for {prefix}: {cache_key}")
    data = builder()
    cache.set(cache_key, data, ttl)
    return data


def invalidate_cache_pattern(pattern):
    """
    Invalidate all cache keys matching a pattern.
    django-redis supports pattern deletes; other backends are cleared entirely.
    """
    try:
        if hasattr(cache, 'delete_pattern'):
            deleted = cache.delete_pattern(f"*{pattern}*")
            logger.info(f"Cache invalidation for pattern: {pattern} - Deleted {deleted} keys")
        else:
            cache.clear()
            logger.info(f"Cache invalidation for pattern: {pattern} - Cleared local cache")
    except Exception as e:
        logger.warning(f"Could not invalidate cache pattern {pattern}: {str(e)}")


def invalidate_storefront_cache():
    """Invalidate cached product listings and the category tree"""
    invalidate_cache_pattern(STOREFRONT_PRODUCTS_PREFIX)
    invalidate_cache_pattern(CATEGORY_TREE_PREFIX)
