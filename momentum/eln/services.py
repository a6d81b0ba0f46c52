"""
Electronic lab notebook helpers: experiment numbering and deducting the
stock an experiment consumed from inventory.
"""
import logging
import re
from django.db import transaction
from django.utils import timezone
from momentum.core.constants import to_decimal
from momentum.inventory.models import InventoryItem
from momentum.inventory.services import InventoryError, adjust_stock, format_quantity
from .models import ELNExperiment

logger = logging.getLogger(__name__)

ELN_ITEM_TYPES = ['image', 'photo', 'voice', 'note', 'document', 'data', 'video', 'file']

EXPERIMENT_NUMBER_RE = re.compile(r'^EXP-(\d{4})-(\d+)$')


def next_experiment_number(year=None):
    """Next free number for the year, e.g. EXP-2025-001, EXP-2025-002, ..."""
    year = year or timezone.now().year
    prefix = f"EXP-{year}-"
    highest = 0
    numbers = ELNExperiment.objects.filter(experiment_number__startswith=prefix).values_list(
        'experiment_number', flat=True
    )
    for number in numbers:
        match = EXPERIMENT_NUMBER_RE.match(number)
        if match:
            highest = max(highest, int(match.group(2)))
    return f"{prefix}{highest + 1:03d}"


def find_consumed_line(lines, inventory_id):
    for index, line in enumerate(lines):
        if str(line.get('inventory_id')) == str(inventory_id):
            return index
    return None


def deduct_experiment_inventory(experiment, inventory_item, quantity=None):
    """
    Take the stock an experiment used out of inventory.

    The item must be listed in the experiment's consumed_inventory and not
    deducted yet. `quantity` defaults to the line's quantity_used. Stock and
    the experiment line are updated together or not at all.
    Returns (experiment, inventory_item).
    """
    with transaction.atomic():
        experiment = ELNExperiment.objects.select_for_update().get(pk=experiment.pk)
        lines = list(experiment.consumed_inventory or [])
        index = find_consumed_line(lines, inventory_item.pk)
        if index is None:
            raise InventoryError('Item not linked to experiment')
        line = lines[index]
        if line.get('deducted'):
            raise InventoryError('Item already deducted')

        amount = to_decimal(quantity if quantity is not None else line.get('quantity_used'), None)
        if amount is None or not amount.is_finite() or amount <= 0:
            raise InventoryError('Quantity must be greater than zero')

        try:
            item = adjust_stock(inventory_item, -amount)
        except InventoryItem.DoesNotExist:
            raise InventoryError('Inventory item does not exist')

        lines[index] = {
            **line,
            'product_name': item.product_name,
            'quantity_used': format_quantity(amount),
            'deducted': True,
            'deducted_at': timezone.now().isoformat(),
        }
        experiment.consumed_inventory = lines
        experiment.save(update_fields=['consumed_inventory', 'updated_at'])

    logger.info(f"Deducted {format_quantity(amount)} x {item.product_name} for {experiment}")
    return experiment, item
