"""
Raise budget alerts when an allocation's usage or status changes
"""
from django.db import transaction
from django.db.models.signals import pre_save, post_save
from django.dispatch import receiver
import logging

from .models import FundingAllocation

logger = logging.getLogger(__name__)


@receiver(pre_save, sender=FundingAllocation)
def remember_previous_usage(sender, instance, raw=False, **kwargs):
    """Keep the stored usage and status so post_save can compare"""
    instance._previous_usage = None
    if raw or instance.pk is None:
        return
    previous = FundingAllocation.objects.filter(pk=instance.pk).first()
    if previous is not None:
        instance._previous_usage = (previous.percent_used, previous.status)


@receiver(post_save, sender=FundingAllocation)
def send_funding_notifications(sender, instance, created, raw=False, **kwargs):
    if raw:
        return
    from .notifications import notify_allocation_created, notify_usage_change
    try:
        with transaction.atomic():
            if created:
                notify_allocation_created(instance)
            elif getattr(instance, '_previous_usage', None) is not None:
                percent_before, status_before = instance._previous_usage
                notify_usage_change(instance, percent_before, status_before)
    except Exception as e:
        # A failed alert must not undo the ledger update
        logger.error(f"Failed to send funding notifications for allocation {instance.pk}: {str(e)}")
