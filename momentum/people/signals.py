"""
Give new lab members their default funding allocation
"""
from django.db import transaction
from django.db.models.signals import post_save
from django.dispatch import receiver
import logging

from .models import PersonProfile

logger = logging.getLogger(__name__)


@receiver(post_save, sender=PersonProfile)
def create_default_allocation_for_member(sender, instance, created, **kwargs):
    if not created or instance.lab_id is None:
        return
    from momentum.funding.services import create_default_allocation
    try:
        # Savepoint so a failed insert does not break the caller's transaction
        with transaction.atomic():
            create_default_allocation(instance)
    except Exception as e:
        # Profile creation must not fail because of the allocation
        logger.error(f"Failed to create default allocation for profile {instance.pk}: {str(e)}")
