"""
Funding ledger

Keeps FundingAccount and FundingAllocation totals in step with the status of
the orders charged to them. Each order status maps to one ledger bucket:

    to-order / cancelled / (no order) -> nothing held
    ordered                           -> committed
    received                          -> spent

A status change moves the order's amount out of the old bucket and into the
new one, and writes the matching FundingTransaction lines.
"""
import logging
from decimal import Decimal
from django.db import transaction
from django.db.models import Sum
from django.utils import timezone
from momentum.core.cache_utils import FUNDING_SUMMARY_CACHE_TTL, cached_query
from momentum.core.constants import FUNDING_WARNING_THRESHOLDS, get_low_balance_warning_level, to_decimal
from .models import FundingAccount, FundingAllocation, FundingTransaction

logger = logging.getLogger(__name__)

ZERO = Decimal('0.00')
CENT = Decimal('0.01')
COMMITTED = 'committed'
SPENT = 'spent'


class FundingError(Exception):
    """Raised when a ledger operation cannot be applied"""


def ledger_bucket(status):
    if status == 'ordered':
        return COMMITTED
    if status == 'received':
        return SPENT
    return None


def calculate_available_balance(account):
    """total - spent - committed"""
    return (
        to_decimal(account.total_budget)
        - to_decimal(account.spent_amount)
        - to_decimal(account.committed_amount)
    )


def check_sufficient_funds(account, amount):
    """
    Check whether an account can cover an amount.

    Returns {'sufficient': bool, 'available': Decimal, 'message': str|None}
    """
    if not isinstance(account, FundingAccount):
        account = FundingAccount.objects.filter(pk=account).first()
    if account is None:
        return {'sufficient': False, 'available': ZERO, 'message': 'Funding account not found'}

    amount = to_decimal(amount)
    available = calculate_available_balance(account)
    if amount > available:
        return {
            'sufficient': False,
            'available': available,
            'message': (
                f"Insufficient funds. Available: {available:.2f} {account.currency}, "
                f"Required: {amount:.2f} {account.currency}"
            ),
        }
    return {'sufficient': True, 'available': available, 'message': None}


def update_account_budget(account, amount, old_status, new_status, new_amount=None):
    """
    Move an order's money between the account's committed and spent buckets.

    `amount` leaves the bucket of `old_status` and `new_amount` (defaults to
    `amount`) enters the bucket of `new_status`. A status of None means the
    order does not exist (creation or deletion). Totals never go below zero.
    """
    account_id = account.pk if isinstance(account, FundingAccount) else account
    amount = to_decimal(amount)
    new_amount = amount if new_amount is None else to_decimal(new_amount)
    old_bucket = ledger_bucket(old_status)
    new_bucket = ledger_bucket(new_status)

    with transaction.atomic():
        try:
            locked = FundingAccount.objects.select_for_update().get(pk=account_id)
        except FundingAccount.DoesNotExist:
            raise FundingError('Funding account not found')

        if old_bucket == new_bucket:
            return locked

        committed = locked.committed_amount
        spent = locked.spent_amount

        if old_bucket == COMMITTED:
            committed -= amount
        elif old_bucket == SPENT:
            spent -= amount

        if new_bucket == COMMITTED:
            committed += new_amount
        elif new_bucket == SPENT:
            spent += new_amount

        locked.committed_amount = max(ZERO, committed)
        locked.spent_amount = max(ZERO, spent)
        locked.save(update_fields=['committed_amount', 'spent_amount', 'remaining_budget', 'updated_at'])

    logger.info(
        f"Account {locked.account_number}: {old_status} -> {new_status} "
        f"(committed={locked.committed_amount}, spent={locked.spent_amount})"
    )
    return locked


def refresh_allocation_status(allocation):
    """
    Recompute remaining budget and flip between active and exhausted.
    Suspended and archived allocations keep their status.
    """
    allocation.recalculate_remaining()
    if allocation.allocated_amount is None:
        if allocation.status == 'exhausted':
            allocation.status = 'active'
        return allocation
    if allocation.status == 'active' and allocation.remaining_budget <= 0:
        allocation.status = 'exhausted'
    elif allocation.status == 'exhausted' and allocation.remaining_budget > 0:
        allocation.status = 'active'
    return allocation


def _order_metadata(order, old_status, new_status):
    return {
        'order_id': order.pk,
        'product_name': order.product_name,
        'from_status': old_status,
        'to_status': new_status,
    }


def _record(order, allocation, tx_type, amount, status, description, user, old_status, new_status, now):
    return FundingTransaction.objects.create(
        funding_account_id=order.account_id,
        allocation=allocation,
        lab_id=order.lab_id,
        order=order,
        amount=amount,
        currency=order.currency,
        type=tx_type,
        status=status,
        description=description,
        invoice_number=order.invoice_number or '',
        po_number=order.po_number or '',
        supplier_name=order.supplier or '',
        metadata=_order_metadata(order, old_status, new_status),
        created_by=user if user and user.is_authenticated else None,
        finalized_at=now if status == 'FINAL' else None,
    )


def apply_order_status_change(order, old_status, new_status, user=None, previous_spend=None):
    """
    Apply an order status transition to its account, its allocation and the
    transaction ledger in one database transaction.

    `new_status=None` means the order is being deleted; `old_status=None`
    means it was just created. `previous_spend` is what the order had booked
    as spent before this change, when that differs from its current
    spend_amount.
    """
    old_bucket = ledger_bucket(old_status)
    new_bucket = ledger_bucket(new_status)
    if old_bucket == new_bucket:
        return []

    created = []
    with transaction.atomic():
        now = timezone.now()
        pending_commits = list(
            FundingTransaction.objects.select_for_update().filter(
                order=order, type='ORDER_COMMIT', status='PENDING'
            )
        )

        if old_bucket == COMMITTED:
            release = sum((t.amount for t in pending_commits), ZERO) if pending_commits else order.commit_amount
        elif old_bucket == SPENT:
            release = to_decimal(previous_spend) if previous_spend is not None else order.spend_amount
        else:
            release = ZERO

        if new_bucket == COMMITTED:
            apply = order.commit_amount
        elif new_bucket == SPENT:
            apply = order.spend_amount
        else:
            apply = ZERO

        update_account_budget(order.account_id, release, old_status, new_status, new_amount=apply)

        allocation = None
        if order.allocation_id:
            allocation = FundingAllocation.objects.select_for_update().get(pk=order.allocation_id)
            if old_bucket == COMMITTED:
                allocation.current_committed = max(ZERO, allocation.current_committed - release)
            elif old_bucket == SPENT:
                allocation.current_spent = max(ZERO, allocation.current_spent - release)
            if new_bucket == COMMITTED:
                allocation.current_committed += apply
            elif new_bucket == SPENT:
                allocation.current_spent += apply

        name = order.product_name

        if old_bucket == COMMITTED:
            for pending in pending_commits:
                if new_bucket == SPENT:
                    pending.status = 'FINAL'
                    pending.finalized_at = now
                else:
                    pending.status = 'CANCELLED'
                    pending.cancelled_at = now
                pending.save(update_fields=['status', 'finalized_at', 'cancelled_at'])
            if new_status in ('cancelled', None):
                created.append(_record(order, allocation, 'ORDER_CANCELLED', release, 'FINAL',
                                       f"Order cancelled: {name}", user, old_status, new_status, now))
        elif old_bucket == SPENT:
            created.append(_record(order, allocation, 'ADJUSTMENT', -release, 'FINAL',
                                   f"Order reverted from received: {name}", user, old_status, new_status, now))

        if new_bucket == COMMITTED:
            created.append(_record(order, allocation, 'ORDER_COMMIT', apply, 'PENDING',
                                   f"Order placed: {name}", user, old_status, new_status, now))
        elif new_bucket == SPENT:
            created.append(_record(order, allocation, 'ORDER_RECEIVED', apply, 'FINAL',
                                   f"Order received: {name}", user, old_status, new_status, now))

        if allocation is not None:
            allocation.last_transaction_at = now
            refresh_allocation_status(allocation)
            allocation.save()

    logger.info(f"Ledger updated for order {order.pk}: {old_status} -> {new_status}")
    return created


def record_allocation_event(allocation, tx_type, amount, description, user=None):
    """Write an ALLOCATION_CREATED / ALLOCATION_ADJUSTED line (no budget effect)"""
    return FundingTransaction.objects.create(
        funding_account_id=allocation.funding_account_id,
        allocation=allocation,
        lab_id=allocation.lab_id,
        amount=to_decimal(amount),
        currency=allocation.currency,
        type=tx_type,
        status='FINAL',
        description=description,
        created_by=user if user and user.is_authenticated else None,
        finalized_at=timezone.now(),
    )


def record_manual_transaction(account, tx_type, amount, description='', allocation=None, user=None, **extra):
    """
    Book a manual ADJUSTMENT or REFUND.

    Positive amounts are spent, negative amounts give money back. Both move
    the account's (and allocation's) spent total.
    """
    if tx_type not in ('ADJUSTMENT', 'REFUND'):
        raise FundingError(f"Manual transactions must be ADJUSTMENT or REFUND, not {tx_type}")
    amount = to_decimal(amount)
    if amount == 0:
        raise FundingError('Amount must not be zero')
    # Refunds always reduce spend
    if tx_type == 'REFUND' and amount > 0:
        amount = -amount

    metadata = dict(extra.pop('metadata', None) or {})
    metadata['manual'] = True

    with transaction.atomic():
        locked = FundingAccount.objects.select_for_update().get(pk=account.pk)
        locked.spent_amount = max(ZERO, locked.spent_amount + amount)
        locked.save(update_fields=['spent_amount', 'remaining_budget', 'updated_at'])

        if allocation is not None:
            if allocation.funding_account_id != locked.pk:
                raise FundingError('Allocation does not belong to this account')
            allocation = FundingAllocation.objects.select_for_update().get(pk=allocation.pk)
            allocation.current_spent = max(ZERO, allocation.current_spent + amount)
            allocation.last_transaction_at = timezone.now()
            refresh_allocation_status(allocation)
            allocation.save()

        tx = FundingTransaction.objects.create(
            funding_account=locked,
            allocation=allocation,
            lab_id=locked.lab_id,
            amount=amount,
            currency=locked.currency,
            type=tx_type,
            status='FINAL',
            description=description,
            created_by=user if user and user.is_authenticated else None,
            metadata=metadata,
            finalized_at=timezone.now(),
            **extra
        )
    logger.info(f"Manual {tx_type} of {amount} on account {locked.account_number}")
    return tx


def create_default_allocation(profile):
    """
    Give a new lab member a PERSON allocation on the lab's default account.
    Returns the allocation, or None when the lab has no default account or
    the member already has one there.
    """
    lab = profile.lab
    if lab is None or lab.default_funding_account_id is None:
        return None
    existing = FundingAllocation.objects.filter(
        funding_account_id=lab.default_funding_account_id, type='PERSON', person=profile
    ).first()
    if existing:
        return None

    allocation = FundingAllocation.objects.create(
        funding_account_id=lab.default_funding_account_id,
        lab=lab,
        type='PERSON',
        person=profile,
        allocated_amount=lab.default_allocation_amount,
        currency=lab.default_currency,
        status='active',
        created_by_label='SYSTEM',
    )
    record_allocation_event(
        allocation, 'ALLOCATION_CREATED', allocation.allocated_amount or ZERO,
        f"Default allocation for {profile.full_name}",
    )
    logger.info(f"Created default allocation {allocation.pk} for {profile.full_name}")
    return allocation


def get_active_allocations(allocations):
    """Active allocations with money left (or no limit)"""
    return [
        a for a in allocations
        if a.status == 'active' and (a.remaining_budget is None or a.remaining_budget > 0)
    ]


def get_total_remaining_budget(allocations):
    return sum(
        (a.remaining_budget or ZERO for a in allocations if a.status == 'active'),
        ZERO,
    )


def has_sufficient_funds(allocations, amount):
    return get_total_remaining_budget(allocations) >= to_decimal(amount)


def allocation_warning(allocation):
    """Warning level for an allocation, honouring its own threshold when set"""
    percent = allocation.percent_used
    if allocation.low_balance_warning_threshold and percent >= allocation.low_balance_warning_threshold:
        level = get_low_balance_warning_level(percent)
        return level if level != 'normal' else 'medium'
    return get_low_balance_warning_level(percent)


def funding_summary(allocations):
    """
    Summary card figures over a set of allocations:
    total budget, spent, committed, remaining, the allocations at or over the
    critical threshold, and the person/project split.
    """
    allocations = list(allocations)
    total_budget = sum((a.allocated_amount or ZERO for a in allocations), ZERO)
    total_spent = sum((a.current_spent or ZERO for a in allocations), ZERO)
    total_committed = sum((a.current_committed or ZERO for a in allocations), ZERO)
    total_remaining = sum((a.remaining_budget or ZERO for a in allocations), ZERO)

    critical = [a for a in allocations if a.percent_used >= FUNDING_WARNING_THRESHOLDS['CRITICAL']]

    return {
        'total_budget': total_budget,
        'total_spent': total_spent,
        'total_committed': total_committed,
        'total_remaining': total_remaining,
        'allocation_count': len(allocations),
        'person_allocations': sum(1 for a in allocations if a.type == 'PERSON'),
        'project_allocations': sum(1 for a in allocations if a.type == 'PROJECT'),
        'critical_allocations': [
            {
                'id': a.pk,
                'type': a.type,
                'person': a.person_id,
                'project': a.project_id,
                'percent_used': round(a.percent_used, 1),
                'warning_level': get_low_balance_warning_level(a.percent_used),
            }
            for a in critical
        ],
    }


@cached_query(cache_ttl=FUNDING_SUMMARY_CACHE_TTL, key_prefix="funding_summary")
def get_lab_funding_summary(lab_id=None):
    """Cached funding summary for one lab (or every lab)"""
    allocations = FundingAllocation.objects.all()
    if lab_id:
        allocations = allocations.filter(lab_id=lab_id)
    return funding_summary(allocations)


def _money(value):
    """Two-place Decimal; SQLite aggregates drop trailing zeros"""
    return Decimal(value or 0).quantize(CENT)


def _manual_total(**lookup):
    return _money(FundingTransaction.objects.filter(
        metadata__has_key='manual', status='FINAL', **lookup
    ).aggregate(total=Sum('amount'))['total'])


def recalculate_funding(accounts=None):
    """
    Rebuild account and allocation totals from the orders charged to them.

    Returns a list of {'account', 'allocation', 'field', 'old', 'new'} drift
    entries. Callers decide whether to keep the changes.
    """
    from momentum.orders.models import Order

    drift = []
    accounts = accounts if accounts is not None else FundingAccount.objects.all()

    for account in accounts:
        orders = Order.objects.filter(account=account)
        committed = _money(sum((o.commit_amount for o in orders.filter(status='ordered')), ZERO))
        spent = _money(sum((o.spend_amount for o in orders.filter(status='received')), ZERO))
        spent = max(ZERO, spent + _manual_total(funding_account=account))

        for field, value in (('committed_amount', committed), ('spent_amount', spent)):
            if getattr(account, field) != value:
                drift.append({'account': account.pk, 'allocation': None, 'field': field,
                              'old': getattr(account, field), 'new': value})
                setattr(account, field, value)
        account.save()

        for allocation in account.allocations.all():
            alloc_orders = orders.filter(allocation=allocation)
            a_committed = _money(sum((o.commit_amount for o in alloc_orders.filter(status='ordered')), ZERO))
            a_spent = _money(sum((o.spend_amount for o in alloc_orders.filter(status='received')), ZERO))
            a_spent = max(ZERO, a_spent + _manual_total(allocation=allocation))

            for field, value in (('current_committed', a_committed), ('current_spent', a_spent)):
                if getattr(allocation, field) != value:
                    drift.append({'account': account.pk, 'allocation': allocation.pk, 'field': field,
                                  'old': getattr(allocation, field), 'new': value})
                    setattr(allocation, field, value)
            refresh_allocation_status(allocation)
            allocation.save()

    return drift
