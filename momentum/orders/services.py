"""
Order lifecycle: every create, update and delete goes through the funding
ledger, and receiving an order adds it to inventory.
"""
import copy
import logging
from datetime import date
from django.db import transaction
from momentum.funding.services import COMMITTED, SPENT, apply_order_status_change, ledger_bucket
from momentum.inventory.services import reconcile_received_order, validate_order_for_reconciliation
from .models import Order

logger = logging.getLogger(__name__)


def _stamp_dates(order, old_status):
    if order.status == 'ordered' and not order.ordered_date:
        order.ordered_date = date.today()
    if order.status == 'received' and old_status != 'received':
        if not order.received_date:
            order.received_date = date.today()
        if not order.ordered_date:
            order.ordered_date = order.received_date


def _reconcile(order, user):
    validation = validate_order_for_reconciliation(order)
    if not validation['valid']:
        logger.warning(f"Order {order.pk} not added to inventory: {validation['errors']}")
        return None
    return reconcile_received_order(order, user=user)


def create_order(data, user=None):
    """
    Create an order from validated serializer data and book it on the ledger.
    Returns (order, reconciliation result or None).
    """
    with transaction.atomic():
        order = Order(**data)
        if user is not None and user.is_authenticated:
            order.created_by = user
        if not order.lab_id and order.account_id:
            order.lab_id = order.account.lab_id
        _stamp_dates(order, None)
        order.save()
        apply_order_status_change(order, None, order.status, user=user)
        reconciliation = _reconcile(order, user) if order.status == 'received' else None
    logger.info(f"Order {order.pk} created ({order.status}): {order.product_name}")
    return order, reconciliation


def _ledger_moved(previous, order):
    """True when the order's money now sits on another account or allocation, or at another amount"""
    if previous.account_id != order.account_id or previous.allocation_id != order.allocation_id:
        return True
    bucket = ledger_bucket(previous.status)
    if bucket == COMMITTED and order.status == 'ordered':
        return previous.commit_amount != order.commit_amount
    if bucket == SPENT and order.status == 'received':
        return previous.spend_amount != order.spend_amount
    return False


def update_order(order, data, user=None):
    """
    Apply validated changes to an order and keep the ledger in step.

    A plain status change moves the amount between buckets. When the account,
    the allocation or the booked amount changes, the old booking is released
    and the order is booked again. Returns (order, reconciliation or None).
    """
    with transaction.atomic():
        order = Order.objects.select_for_update().get(pk=order.pk)
        previous = copy.copy(order)
        old_status = previous.status

        for field, value in data.items():
            setattr(order, field, value)
        _stamp_dates(order, old_status)
        order.save()

        if ledger_bucket(old_status) is not None and _ledger_moved(previous, order):
            apply_order_status_change(previous, old_status, None, user=user, previous_spend=previous.spend_amount)
            apply_order_status_change(order, None, order.status, user=user)
        else:
            apply_order_status_change(order, old_status, order.status, user=user,
                                      previous_spend=previous.spend_amount)

        reconciliation = None
        if order.status == 'received' and old_status != 'received':
            reconciliation = _reconcile(order, user)

    if old_status != order.status:
        logger.info(f"Order {order.pk} status {old_status} -> {order.status}")
    return order, reconciliation


def delete_order(order, user=None):
    """Release whatever the order holds on the ledger, then delete it"""
    with transaction.atomic():
        order = Order.objects.select_for_update().get(pk=order.pk)
        apply_order_status_change(order, order.status, None, user=user)
        order.delete()
    logger.info(f"Order deleted: {order.product_name}")
