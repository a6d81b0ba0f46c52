"""
Cache invalidation signals
Automatically invalidate cached aggregates when lab data changes
"""
from django.db.models.signals import post_save, post_delete
from django.dispatch import receiver
import logging
import threading
from contextlib import contextmanager

from .cache_utils import invalidate_dashboard_cache, invalidate_funding_cache, invalidate_project_cache

logger = logging.getLogger(__name__)

# Thread-local storage to track signal suspension
_thread_locals = threading.local()

FUNDING_MODELS = {'FundingAccount', 'FundingAllocation', 'FundingTransaction', 'Order'}
PROJECT_MODELS = {'MasterProject', 'Workpackage', 'Deliverable', 'Task', 'Subtask', 'Order'}
DASHBOARD_MODELS = FUNDING_MODELS | PROJECT_MODELS | {'InventoryItem', 'CalendarEvent', 'ELNExperiment'}


@contextmanager
def suspend_cache_signals():
    """
    Context manager to temporarily suspend cache invalidation signals.
    Useful for bulk operations to prevent excessive cache clearing.
    Remember to manually invalidate cache after the block!
    """
    try:
        _thread_locals.suspended = True
        yield
    finally:
        _thread_locals.suspended = False


def is_suspended():
    return getattr(_thread_locals, 'suspended', False)


def invalidate_all_caches():
    """Manually invalidate every cached aggregate"""
    try:
        invalidate_funding_cache()
        invalidate_project_cache()
        invalidate_dashboard_cache()
    except Exception as e:
        logger.warning(f"Error invalidating caches: {e}")


@receiver([post_save, post_delete])
def invalidate_aggregate_caches(sender, instance, **kwargs):
    """Drop cached summaries when one of the models they aggregate changes"""
    if is_suspended():
        return

    model_name = sender.__name__
    if model_name not in DASHBOARD_MODELS:
        return

    try:
        if model_name in FUNDING_MODELS:
            invalidate_funding_cache()
        if model_name in PROJECT_MODELS:
            invalidate_project_cache()
        invalidate_dashboard_cache()
    except Exception as e:
        logger.warning(f"Error invalidating cache for {model_name}: {e}")
