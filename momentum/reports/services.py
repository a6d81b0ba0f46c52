"""
Dashboard figures and the full data backup
"""
from datetime import timedelta
from decimal import Decimal
from django.db.models import Count, Q, Sum
from django.utils import timezone
from momentum.core.cache_utils import DASHBOARD_CACHE_TTL, cached_query
from momentum.eln.models import ELNExperiment
from momentum.eln.serializers import ELNExperimentSerializer
from momentum.events.models import CalendarEvent
from momentum.events.serializers import CalendarEventSerializer
from momentum.funding.models import FundingAccount, FundingAllocation, FundingTransaction
from momentum.funding.serializers import (
    FundingAccountSerializer, FundingAllocationSerializer, FundingTransactionSerializer
)
from momentum.inventory.models import Equipment, InventoryItem
from momentum.inventory.serializers import EquipmentSerializer, InventoryItemSerializer
from momentum.orders.models import Order
from momentum.orders.serializers import OrderSerializer
from momentum.people.models import PersonProfile
from momentum.people.serializers import PersonProfileSerializer
from momentum.projects.models import Deliverable, MasterProject, ProjectFile, Subtask, Task, Workpackage
from momentum.projects.serializers import (
    DeliverableSerializer, MasterProjectSerializer, ProjectFileSerializer, SubtaskSerializer,
    TaskSerializer, WorkpackageSerializer
)
from momentum.projects.services import round_percent

ZERO = Decimal('0.00')
UPCOMING_EVENT_DAYS = 7
OPEN_ORDER_STATUSES = ['to-order', 'ordered']
LOW_STOCK_LEVELS = ['empty', 'low']


def _for_lab(queryset, lab_id):
    return queryset.filter(lab_id=lab_id) if lab_id else queryset


@cached_query(cache_ttl=DASHBOARD_CACHE_TTL, key_prefix="dashboard")
def get_dashboard_kpis(lab_id=None):
    """Headline counts and funding totals, for one lab or all of them"""
    now = timezone.now()

    projects = _for_lab(MasterProject.objects.all(), lab_id).aggregate(
        total=Count('id'),
        active=Count('id', filter=Q(status='active')),
        at_risk=Count('id', filter=Q(health='at-risk')),
    )
    orders = _for_lab(Order.objects.all(), lab_id).aggregate(
        open=Count('id', filter=Q(status__in=OPEN_ORDER_STATUSES)),
        to_order=Count('id', filter=Q(status='to-order')),
        ordered=Count('id', filter=Q(status='ordered')),
        received_this_month=Count('id', filter=Q(status='received', received_date__year=now.year,
                                                 received_date__month=now.month)),
    )
    inventory = _for_lab(InventoryItem.objects.all(), lab_id).aggregate(
        total=Count('id'),
        low_stock=Count('id', filter=Q(inventory_level__in=LOW_STOCK_LEVELS)),
    )
    upcoming_events = _for_lab(CalendarEvent.objects.all(), lab_id).filter(
        end__gte=now, start__lte=now + timedelta(days=UPCOMING_EVENT_DAYS)
    ).count()
    experiments_in_progress = _for_lab(ELNExperiment.objects.all(), lab_id).filter(status='in-progress').count()

    totals = _for_lab(FundingAccount.objects.all(), lab_id).aggregate(
        total_budget=Sum('total_budget'),
        spent=Sum('spent_amount'),
        committed=Sum('committed_amount'),
    )
    total_budget = totals['total_budget'] or ZERO
    spent = totals['spent'] or ZERO
    committed = totals['committed'] or ZERO
    utilization = round_percent((spent + committed) / total_budget * 100) if total_budget > 0 else 0

    return {
        'projects': projects,
        'orders': orders,
        'inventory': inventory,
        'upcoming_events': upcoming_events,
        'experiments_in_progress': experiments_in_progress,
        'funding': {
            'total_budget': total_budget,
            'spent': spent,
            'committed': committed,
            'remaining': total_budget - spent - committed,
            'utilization_percentage': min(utilization, 100),
        },
        'generated_at': now.isoformat(),
    }


def collect_backup_data():
    """Every collection serialized the way the API returns it"""
    collections = [
        ('projects', MasterProject.objects.all(), MasterProjectSerializer),
        ('workpackages', Workpackage.objects.all(), WorkpackageSerializer),
        ('deliverables', Deliverable.objects.all(), DeliverableSerializer),
        ('tasks', Task.objects.all(), TaskSerializer),
        ('subtasks', Subtask.objects.all(), SubtaskSerializer),
        ('project_files', ProjectFile.objects.all(), ProjectFileSerializer),
        ('profiles', PersonProfile.objects.all(), PersonProfileSerializer),
        ('events', CalendarEvent.objects.all(), CalendarEventSerializer),
        ('orders', Order.objects.all(), OrderSerializer),
        ('inventory', InventoryItem.objects.all(), InventoryItemSerializer),
        ('equipment', Equipment.objects.all(), EquipmentSerializer),
        ('experiments', ELNExperiment.objects.all(), ELNExperimentSerializer),
        ('funding_accounts', FundingAccount.objects.all(), FundingAccountSerializer),
        ('funding_allocations', FundingAllocation.objects.all(), FundingAllocationSerializer),
        ('funding_transactions', FundingTransaction.objects.all(), FundingTransactionSerializer),
    ]
    return {name: serializer(queryset, many=True).data for name, queryset, serializer in collections}
