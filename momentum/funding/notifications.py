"""
Budget alerts for allocation holders

A PERSON allocation notifies its holder when it is created, each time its
usage crosses one of the warning thresholds and when it runs out. The lab's
PI is told about exhausted allocations too.
"""
import logging
from django.utils import timezone
from momentum.core.constants import FUNDING_WARNING_THRESHOLDS, format_currency
from momentum.people.models import PersonProfile
from .models import FundingNotification

logger = logging.getLogger(__name__)

ALERT_THRESHOLDS = sorted(FUNDING_WARNING_THRESHOLDS.values())


def crossed_thresholds(percent_before, percent_after):
    """Thresholds t with before < t <= after"""
    return [t for t in ALERT_THRESHOLDS if percent_before < t <= percent_after]


def _account_name(allocation):
    return allocation.funding_account.account_name


def notify_allocation_created(allocation):
    if allocation.type != 'PERSON' or allocation.person_id is None:
        return None
    amount = format_currency(allocation.allocated_amount or 0, allocation.currency)
    notification = FundingNotification.objects.create(
        recipient_id=allocation.person_id,
        allocation=allocation,
        type='ALLOCATION_CREATED',
        title='New Funding Allocation',
        message=f"You have been allocated {amount} from {_account_name(allocation)}.",
        priority='medium',
    )
    logger.info(f"Sent allocation created notification for allocation {allocation.pk}")
    return notification


def notify_usage_change(allocation, percent_before, status_before):
    """
    Compare an allocation against its previous usage and status and raise
    the alerts that apply. Returns the notifications created.
    Unlimited allocations have no usage percentage and raise nothing.
    """
    if allocation.person_id is None or not allocation.allocated_amount:
        return []

    created = []
    remaining = format_currency(allocation.remaining_budget or 0, allocation.currency)
    for threshold in crossed_thresholds(percent_before, allocation.percent_used):
        created.append(FundingNotification.objects.create(
            recipient_id=allocation.person_id,
            allocation=allocation,
            type='FUNDING_LOW_BALANCE',
            title=f"Budget Alert: {threshold}% Used",
            message=(f"Your {_account_name(allocation)} allocation has reached {threshold}% usage. "
                     f"Remaining budget: {remaining}"),
            priority='high' if threshold >= FUNDING_WARNING_THRESHOLDS['CRITICAL'] else 'medium',
            threshold=threshold,
        ))

    if allocation.status == 'exhausted' and status_before != 'exhausted':
        created.extend(_notify_exhausted(allocation))

    if created:
        logger.info(f"Sent {len(created)} funding notifications for allocation {allocation.pk}")
    return created


def _notify_exhausted(allocation):
    notifications = [FundingNotification.objects.create(
        recipient_id=allocation.person_id,
        allocation=allocation,
        type='FUNDING_EXHAUSTED',
        title='Budget Exhausted',
        message=(f"Your {_account_name(allocation)} allocation has been fully depleted. "
                 f"Please contact your PI to request additional funding."),
        priority='high',
    )]

    if allocation.lab_id:
        pi = PersonProfile.objects.filter(lab_id=allocation.lab_id, position='pi') \
            .exclude(pk=allocation.person_id).order_by('id').first()
        if pi:
            notifications.append(FundingNotification.objects.create(
                recipient=pi,
                allocation=allocation,
                type='FUNDING_EXHAUSTED_PI',
                title='Researcher Budget Exhausted',
                message=f"{allocation.person.full_name}'s {_account_name(allocation)} allocation has been fully depleted.",
                priority='medium',
            ))
    return notifications


def mark_read(notification):
    if not notification.is_read:
        notification.is_read = True
        notification.read_at = timezone.now()
        notification.save(update_fields=['is_read', 'read_at'])
    return notification
