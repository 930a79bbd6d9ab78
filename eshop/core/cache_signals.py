"""
Cache invalidation signals
Automatically invalidate storefront cache when catalog data changes
"""
from django.db import transaction
from django.db.models.signals import post_save, post_delete
from django.dispatch import receiver
import logging
import threading
from contextlib import contextmanager

from .cache_utils import invalidate_storefront_cache

logger = logging.getLogger(__name__)

# Thread-local storage to track signal suspension
_thread_locals = threading.local()

CATALOG_MODELS = {'Category', 'Product', 'ProductVariant', 'ProductImage'}


@contextmanager
def suspend_cache_signals():
    """
    Context manager to temporarily suspend cache invalidation signals.
    Used by bulk imports; invalidate manually after the block.
    """
    try:
        _thread_locals.suspended = True
        yield
    finally:
        _thread_locals.suspended = False


def is_suspended():
    return getattr(_thread_locals, 'suspended', False)


@receiver([post_save, post_delete])
def invalidate_catalog_cache(sender, instance, **kwargs):
    """Invalidate storefront cache when catalog rows change"""
    if is_suspended():
        return

    if sender.__name__ not in CATALOG_MODELS or sender._meta.app_label != 'catalog':
        return

    # Invalidate after commit so the cache is not repopulated with stale rows
    transaction.on_commit(invalidate_storefront_cache)
