"""
Derived project values: health scoring, budget aggregation from orders,
progress roll-up and the cached per-project summary.

The health and budget helpers accept model instances or plain dicts so the
same rules apply to serializer payloads.
"""
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
import logging
import uuid

from django.db.models import Count, Q
from django.utils import timezone

from momentum.core.cache_utils import PROJECT_SUMMARY_CACHE_TTL, cached_query
from momentum.core.constants import DEFAULT_CURRENCY, get_budget_status, to_decimal
from momentum.core.search import as_comparable, get_value
from .models import Deliverable, MasterProject, Subtask, Task, Workpackage

logger = logging.getLogger(__name__)

ZERO = Decimal('0.00')

AT_RISK_SCORE = 3
OVERDUE_SCORE_CAP = 3
SCHEDULE_SLACK = 10


def round_percent(value):
    """Round half up to an int (0.5 -> 1), the way percentages are displayed"""
    return int(Decimal(str(value)).quantize(Decimal('1'), rounding=ROUND_HALF_UP))


def _plural(count, word):
    return f"{count} {word}{'' if count == 1 else 's'}"


# Health

def calculate_project_health(project, deliverables=None, workpackages=None, today=None):
    """
    Score a project and return {'status', 'issues', 'score'}.

    workpackages / deliverables default to the project's own rows. When lists
    are passed they may cover several projects: only workpackages of this
    project, and deliverables of those workpackages, are considered.
    """
    today = as_comparable(today) if today else date.today()
    project_id = get_value(project, 'id')

    if workpackages is None:
        workpackages = list(Workpackage.objects.filter(project_id=project_id))
    project_wps = [wp for wp in workpackages if str(get_value(wp, 'project')) == str(project_id)]
    wp_ids = {str(get_value(wp, 'id')) for wp in project_wps}

    if deliverables is None:
        deliverables = list(Deliverable.objects.filter(workpackage_id__in=[get_value(wp, 'id') for wp in project_wps]))
    project_deliverables = [d for d in deliverables if str(get_value(d, 'workpackage')) in wp_ids]

    issues = []
    score = 0

    at_risk = [wp for wp in project_wps if get_value(wp, 'status') == 'atRisk']
    if at_risk:
        score += len(at_risk)
        issues.append(f"{_plural(len(at_risk), 'workpackage')} flagged at risk")

    overdue = []
    for deliverable in project_deliverables:
        due = as_comparable(get_value(deliverable, 'due_date'))
        if isinstance(due, date) and due < today and get_value(deliverable, 'status') != 'done':
            overdue.append(deliverable)
    if overdue:
        score += min(OVERDUE_SCORE_CAP, len(overdue))
        issues.append(f"{_plural(len(overdue), 'deliverable')} overdue")

    start = as_comparable(get_value(project, 'start_date'))
    end = as_comparable(get_value(project, 'end_date'))
    if isinstance(start, date) and isinstance(end, date):
        total_days = (end - start).days
        if total_days > 0:
            elapsed = (today - start).days
            expected = min(100, max(0, round_percent(elapsed / total_days * 100)))
            progress = get_value(project, 'progress') or 0
            if progress + SCHEDULE_SLACK < expected:
                score += 1
                issues.append("Progress is trailing expected schedule")

    project_status = get_value(project, 'status')
    if project_status in ('on-hold', 'cancelled'):
        score += 2
        issues.append(f"Project is currently {project_status}")

    if score >= AT_RISK_SCORE:
        health = 'at-risk'
    elif score > 0:
        health = 'warning'
    else:
        health = 'good'
    return {'status': health, 'issues': issues, 'score': score}


def refresh_project_health(project):
    """Recompute and store the health field. Returns the health dict."""
    result = calculate_project_health(project)
    if project.health != result['status']:
        project.health = result['status']
        project.save(update_fields=['health', 'updated_at'])
        logger.info(f"Project {project.id} health is now {result['status']}")
    return result


# Budgets

def calculate_budgets_for_projects(projects, orders):
    """
    Aggregate order spend per project.

    spent sums received orders, committed sums ordered orders (both at
    price ex VAT). Returns {project_id: budget dict}.
    """
    orders = list(orders)
    budgets = {}
    for project in projects:
        project_id = get_value(project, 'id')
        project_orders = [o for o in orders if str(get_value(o, 'master_project')) == str(project_id)]

        total = to_decimal(get_value(project, 'total_budget'))
        spent = sum((to_decimal(get_value(o, 'price_ex_vat')) for o in project_orders
                     if get_value(o, 'status') == 'received'), ZERO)
        committed = sum((to_decimal(get_value(o, 'price_ex_vat')) for o in project_orders
                         if get_value(o, 'status') == 'ordered'), ZERO)
        remaining = max(ZERO, total - spent - committed)
        if total > 0:
            utilization = min(100, round_percent((spent + committed) / total * 100))
        else:
            utilization = 0

        currency = get_value(project, 'currency')
        if not currency and project_orders:
            currency = get_value(project_orders[0], 'currency')

        budgets[project_id] = {
            'project_id': project_id,
            'total_budget': total,
            'spent_amount': spent,
            'committed_amount': committed,
            'remaining_budget': remaining,
            'utilization_percentage': utilization,
            'budget_status': get_budget_status(utilization),
            'currency': currency or DEFAULT_CURRENCY,
        }
    return budgets


# Progress roll-up

def calculate_subtask_progress(todos):
    """Share of completed todos, rounded. None when there are no todos."""
    todos = todos or []
    if not todos:
        return None
    done = sum(1 for todo in todos if todo.get('completed'))
    return round_percent(done / len(todos) * 100)


def _mean_progress(values):
    values = list(values)
    if not values:
        return None
    return round_percent(sum(values) / len(values))


def recalculate_task_progress(task):
    progress = _mean_progress(task.subtasks.values_list('progress', flat=True))
    if progress is not None and progress != task.progress:
        task.progress = progress
        task.save(update_fields=['progress', 'updated_at'])
    return task.progress


def recalculate_workpackage_progress(workpackage):
    progress = _mean_progress(workpackage.tasks.values_list('progress', flat=True))
    if progress is not None and progress != workpackage.progress:
        workpackage.progress = progress
        workpackage.save(update_fields=['progress', 'updated_at'])
    return workpackage.progress


def recalculate_subtask_progress(subtask):
    """
    Recompute a subtask from its todos and roll the change up through its
    task and workpackage. Items without children keep their manual progress.
    """
    progress = calculate_subtask_progress(subtask.todos)
    if progress is not None and progress != subtask.progress:
        subtask.progress = progress
        subtask.save(update_fields=['progress', 'updated_at'])
    task = subtask.task
    recalculate_task_progress(task)
    recalculate_workpackage_progress(task.workpackage)
    return subtask.progress


def normalize_todos(todos):
    """Give every todo an id and the completed / completed_at keys"""
    normalized = []
    for todo in todos or []:
        item = dict(todo)
        item['id'] = str(item.get('id') or uuid.uuid4().hex)
        item['text'] = str(item.get('text', '')).strip()
        item['completed'] = bool(item.get('completed', False))
        item.setdefault('completed_at', None)
        if item['completed'] and not item['completed_at']:
            item['completed_at'] = timezone.now().isoformat()
        if not item['completed']:
            item['completed_at'] = None
        normalized.append(item)
    return normalized


def toggle_todo(subtask, todo_id):
    """
    Flip one todo, stamp or clear its completed_at and recalculate progress.
    Raises KeyError when the subtask has no todo with that id.
    """
    todos = list(subtask.todos or [])
    for todo in todos:
        if str(todo.get('id')) == str(todo_id):
            todo['completed'] = not todo.get('completed', False)
            todo['completed_at'] = timezone.now().isoformat() if todo['completed'] else None
            break
    else:
        raise KeyError(todo_id)
    subtask.todos = todos
    subtask.save(update_fields=['todos', 'updated_at'])
    recalculate_subtask_progress(subtask)
    return subtask


# Stats

def calculate_project_stats(project, today=None):
    """Counts for the project overview card"""
    today = today or date.today()
    deliverables = Deliverable.objects.filter(workpackage__project=project)
    tasks = Task.objects.filter(workpackage__project=project)

    deliverable_counts = deliverables.aggregate(
        total=Count('id'),
        done=Count('id', filter=Q(status='done')),
        overdue=Count('id', filter=Q(due_date__lt=today) & ~Q(status='done')),
    )
    task_counts = {row['status']: row['count'] for row in tasks.values('status').annotate(count=Count('id'))}
    order_counts = {row['status']: row['count'] for row in project.orders.values('status').annotate(count=Count('id'))}

    return {
        'workpackage_count': project.workpackages.count(),
        'deliverable_count': deliverable_counts['total'],
        'deliverables_done': deliverable_counts['done'],
        'deliverables_overdue': deliverable_counts['overdue'],
        'task_count': sum(task_counts.values()),
        'tasks_by_status': task_counts,
        'subtask_count': Subtask.objects.filter(task__workpackage__project=project).count(),
        'order_count': sum(order_counts.values()),
        'orders_by_status': order_counts,
        'file_count': project.files.count(),
    }


@cached_query(PROJECT_SUMMARY_CACHE_TTL, "project_summary")
def get_project_summary(project_id):
    """Health, stats and budget of one project (cached)"""
    project = MasterProject.objects.get(pk=project_id)
    budget = calculate_budgets_for_projects([project], project.orders.all())[project.id]
    return {
        'project_id': project.id,
        'name': project.name,
        'health': calculate_project_health(project),
        'stats': calculate_project_stats(project),
        'budget': budget,
    }
