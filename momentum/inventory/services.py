"""
Order to inventory reconciliation

When an order is received, an existing inventory item is topped up where one
can be found, so the same reagent is not listed twice:

1. the item the order was raised to replenish (source_inventory_item)
2. an item with the same catalogue number and supplier (price refreshed)
3. an item with the same product name, ignoring case (price refreshed)
4. otherwise a new item is created and linked to the source equipment
"""
import logging
import math
from decimal import Decimal
from django.db import transaction
from django.utils import timezone
from momentum.core.constants import to_decimal
from .models import InventoryItem

logger = logging.getLogger(__name__)

DEFAULT_MIN_QUANTITY = Decimal('1')


class InventoryError(Exception):
    """Raised when a stock operation cannot be applied"""


def format_quantity(quantity):
    """Decimal('2.000') -> '2', Decimal('0.500') -> '0.5'"""
    value = Decimal(quantity).normalize()
    return format(value, 'f')


def _received_quantity(order):
    return order.quantity if order.quantity else Decimal('1')


def _lab_items(order):
    items = InventoryItem.objects.all()
    if order.lab_id:
        items = items.filter(lab_id=order.lab_id)
    return items


def validate_order_for_reconciliation(order):
    """Return {'valid': bool, 'errors': [str]}"""
    errors = []
    if not order.product_name or not order.product_name.strip():
        errors.append('Order must have a product name')
    if order.price_ex_vat is None or order.price_ex_vat < 0:
        errors.append('Order must have a valid price')
    if order.status != 'received':
        errors.append('Order must have status "received" to reconcile with inventory')
    return {'valid': not errors, 'errors': errors}


def _top_up(item, order, refresh_price):
    quantity = _received_quantity(order)
    item.current_quantity = (item.current_quantity or Decimal('0')) + quantity
    item.received_date = timezone.now()
    if order.ordered_date:
        item.last_ordered_date = order.ordered_date
    fields = ['current_quantity', 'received_date', 'last_ordered_date', 'inventory_level', 'updated_at']
    if refresh_price and order.price_ex_vat is not None:
        item.price_ex_vat = order.price_ex_vat
        fields.append('price_ex_vat')
    item.save(update_fields=fields)
    return quantity


def reconcile_received_order(order, user=None):
    """
    Add a received order to inventory.

    Returns {'action': 'CREATE'|'UPDATE', 'item': InventoryItem, 'message': str}.
    """
    with transaction.atomic():
        items = _lab_items(order).select_for_update()

        if order.source_inventory_item_id:
            item = items.filter(pk=order.source_inventory_item_id).first()
            if item is not None:
                quantity = _top_up(item, order, refresh_price=False)
                message = f"Updated {item.product_name}: +{format_quantity(quantity)} units"
                logger.info(message)
                return {'action': 'UPDATE', 'item': item, 'message': message}
            logger.warning(f"Order {order.pk} references missing inventory item "
                           f"{order.source_inventory_item_id}, looking for a match instead")

        if order.cat_num and order.supplier:
            item = items.filter(cat_num=order.cat_num, supplier=order.supplier).order_by('id').first()
            if item is not None:
                quantity = _top_up(item, order, refresh_price=True)
                message = f"Updated {item.product_name} (matched by catalog #): +{format_quantity(quantity)} units"
                logger.info(message)
                return {'action': 'UPDATE', 'item': item, 'message': message}

        name = order.product_name.strip()
        item = items.filter(product_name__iexact=name).order_by('id').first()
        if item is not None:
            quantity = _top_up(item, order, refresh_price=True)
            message = f"Updated {item.product_name} (matched by name): +{format_quantity(quantity)} units"
            logger.info(message)
            return {'action': 'UPDATE', 'item': item, 'message': message}

        item = InventoryItem.objects.create(
            product_name=order.product_name,
            cat_num=order.cat_num or '',
            supplier=order.supplier or '',
            current_quantity=_received_quantity(order),
            price_ex_vat=order.price_ex_vat or Decimal('0.00'),
            currency=order.currency,
            min_quantity=DEFAULT_MIN_QUANTITY,
            burn_rate_per_week=Decimal('0'),
            received_date=timezone.now(),
            last_ordered_date=order.ordered_date,
            category=order.category or '',
            subcategory=order.subcategory or '',
            charge_to_account_id=order.account_id,
            lab_id=order.lab_id,
            notes=f"Created from order {order.pk}",
            created_by=user if user and user.is_authenticated else None,
        )
        if order.source_equipment_id:
            order.source_equipment.supplies.add(item)
        message = f"Created new inventory item: {item.product_name}"
        logger.info(message)
        return {'action': 'CREATE', 'item': item, 'message': message}


def find_potential_duplicates(order, items=None):
    """
    Inventory items that might already hold what an order is for: exact
    catalogue number + supplier matches first, then names that contain (or
    are contained in) the order's product name.
    """
    if items is None:
        items = _lab_items(order)
    items = list(items)
    candidates = []

    if order.cat_num and order.supplier:
        candidates.extend(i for i in items if i.cat_num == order.cat_num and i.supplier == order.supplier)

    name = (order.product_name or '').lower().strip()
    if name:
        for item in items:
            other = item.product_name.lower().strip()
            if name in other or other in name:
                candidates.append(item)

    unique = []
    seen = set()
    for item in candidates:
        if item.pk not in seen:
            seen.add(item.pk)
            unique.append(item)
    return unique


def reconcile_multiple_orders(orders, user=None):
    """
    Reconcile several received orders in turn.

    Returns {'results': [...], 'summary': {'created', 'updated', 'errors'}}.
    """
    results = []
    summary = {'created': 0, 'updated': 0, 'errors': 0}

    for order in orders:
        validation = validate_order_for_reconciliation(order)
        if not validation['valid']:
            logger.error(f"Invalid order for reconciliation {order.pk}: {validation['errors']}")
            summary['errors'] += 1
            continue
        try:
            result = reconcile_received_order(order, user=user)
        except Exception as e:
            logger.error(f"Error reconciling order {order.pk}: {str(e)}")
            summary['errors'] += 1
            continue
        results.append(result)
        if result['action'] == 'CREATE':
            summary['created'] += 1
        else:
            summary['updated'] += 1

    return {'results': results, 'summary': summary}


def adjust_stock(item, delta):
    """
    Add (or with a negative delta remove) stock, refusing to go below zero.
    Locks the row; returns the updated item.
    """
    delta = Decimal(str(delta))
    with transaction.atomic():
        item = InventoryItem.objects.select_for_update().get(pk=item.pk)
        new_quantity = (item.current_quantity or Decimal('0')) + delta
        if new_quantity < 0:
            raise InventoryError(
                f"Insufficient stock for {item.product_name}: "
                f"{format_quantity(item.current_quantity)} available, {format_quantity(-delta)} requested"
            )
        item.current_quantity = new_quantity
        item.save(update_fields=['current_quantity', 'inventory_level', 'updated_at'])
    return item


# Supply planning

# Extra weeks of consumption added to a suggested order
REORDER_BUFFER_WEEKS = 2
# Weeks of stock that count as 100% health
HEALTH_WINDOW_WEEKS = 4
# Reported when nothing is being consumed
NO_CONSUMPTION_WEEKS = 99


def weeks_remaining(quantity, burn_per_week):
    burn = float(burn_per_week or 0)
    if burn <= 0:
        return NO_CONSUMPTION_WEEKS
    return float(quantity or 0) / burn


def weeks_to_health(weeks):
    """0-100, reaching 100 at HEALTH_WINDOW_WEEKS of stock"""
    return max(0.0, min(100.0, weeks / HEALTH_WINDOW_WEEKS * 100))


def stock_percentage(quantity, min_quantity):
    """Stock as a share of twice the minimum, clamped to 0-100"""
    quantity = float(quantity or 0)
    min_quantity = float(min_quantity or 0)
    if min_quantity <= 0:
        return 100.0 if quantity > 0 else 0.0
    return max(0.0, min(100.0, quantity / (min_quantity * 2) * 100))


def needed_quantity(quantity, min_quantity):
    return max(Decimal('0'), to_decimal(min_quantity) - to_decimal(quantity))


def suggested_order_quantity(quantity, min_quantity, burn_per_week):
    """Whole units to reach the minimum plus REORDER_BUFFER_WEEKS of consumption"""
    target = to_decimal(min_quantity) + to_decimal(burn_per_week) * REORDER_BUFFER_WEEKS
    return max(0, math.ceil(target - to_decimal(quantity)))


def health_class(percent):
    if percent <= 30:
        return 'critical'
    if percent <= 60:
        return 'warning'
    return 'ok'


def supply_health(item):
    return weeks_to_health(weeks_remaining(item.current_quantity, item.burn_rate_per_week))


def needs_reorder(item):
    return item.min_quantity is not None and item.current_quantity <= item.min_quantity


def supply_status(item):
    """Planning figures for one inventory item"""
    weeks = weeks_remaining(item.current_quantity, item.burn_rate_per_week)
    return {
        'weeks_remaining': round(weeks, 1),
        'health_percent': round(weeks_to_health(weeks)),
        'needs_reorder': needs_reorder(item),
        'stock_percentage': round(stock_percentage(item.current_quantity, item.min_quantity)),
        'needed_quantity': needed_quantity(item.current_quantity, item.min_quantity),
        'suggested_order_quantity': suggested_order_quantity(
            item.current_quantity, item.min_quantity, item.burn_rate_per_week
        ),
    }


def lowest_supply_health(items):
    """Health of the supply closest to running out; 100 with no supplies"""
    items = list(items)
    if not items:
        return 100.0
    return min(supply_health(item) for item in items)


def device_supply_health(items):
    """Average supply health of a device, rounded; 100 with no supplies"""
    items = list(items)
    if not items:
        return 100
    return round(sum(supply_health(item) for item in items) / len(items))


def total_burn_rate(items):
    return sum((item.burn_rate_per_week or Decimal('0') for item in items), Decimal('0'))
