"""
Shared enumerations, limits and money helpers used across all apps
"""
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

# Work status (deliverables, tasks, subtasks)
WORK_STATUS_CHOICES = [
    ('not-started', 'Not Started'),
    ('in-progress', 'In Progress'),
    ('at-risk', 'At Risk'),
    ('blocked', 'Blocked'),
    ('done', 'Done'),
]

PROJECT_STATUS_CHOICES = [
    ('planning', 'Planning'),
    ('active', 'Active'),
    ('completed', 'Completed'),
    ('on-hold', 'On Hold'),
    ('cancelled', 'Cancelled'),
]

WORKPACKAGE_STATUS_CHOICES = [
    ('planning', 'Planning'),
    ('active', 'Active'),
    ('atRisk', 'At Risk'),
    ('completed', 'Completed'),
    ('onHold', 'On Hold'),
]

IMPORTANCE_CHOICES = [
    ('low', 'Low'),
    ('medium', 'Medium'),
    ('high', 'High'),
    ('critical', 'Critical'),
]

PROJECT_VISIBILITY_CHOICES = [
    ('private', 'Private'),
    ('postdocs', 'Postdocs'),
    ('pi-researchers', 'PI & Researchers'),
    ('lab', 'Lab'),
    ('custom', 'Custom'),
    ('organisation', 'Organisation'),
    ('institute', 'Institute'),
]

EVENT_VISIBILITY_CHOICES = [
    ('private', 'Private'),
    ('lab', 'Lab'),
    ('organisation', 'Organisation'),
]

ORDER_STATUS_CHOICES = [
    ('to-order', 'To Order'),
    ('ordered', 'Ordered'),
    ('received', 'Received'),
    ('cancelled', 'Cancelled'),
]

INVENTORY_LEVEL_CHOICES = [
    ('empty', 'Empty'),
    ('low', 'Low'),
    ('medium', 'Medium'),
    ('full', 'Full'),
]

TASK_TYPE_CHOICES = [
    ('experiment', 'Experiment'),
    ('writing', 'Writing'),
    ('meeting', 'Meeting'),
    ('analysis', 'Analysis'),
]

EVENT_TYPE_CHOICES = [
    ('meeting', 'Meeting'),
    ('deadline', 'Deadline'),
    ('milestone', 'Milestone'),
    ('training', 'Training'),
    ('other', 'Other'),
]

RECURRENCE_FREQUENCIES = ['none', 'daily', 'weekly', 'biweekly', 'monthly', 'quarterly', 'yearly', 'custom']
REMINDER_METHODS = ['email', 'push', 'sms']
ATTENDEE_RESPONSES = ['accepted', 'declined', 'tentative', 'none']

PROJECT_HEALTH_CHOICES = [
    ('good', 'Good'),
    ('warning', 'Warning'),
    ('at-risk', 'At Risk'),
]

VALIDATION_LIMITS = {
    'PROJECT_NAME_MIN': 1,
    'PROJECT_NAME_MAX': 200,
    'TASK_NAME_MIN': 1,
    'TASK_NAME_MAX': 200,
    'PERSON_NAME_MIN': 1,
    'PERSON_NAME_MAX': 100,
    'EMAIL_MAX': 254,
    'DESCRIPTION_MAX': 5000,
    'NOTES_MAX': 10000,
    'PHONE_MAX': 50,
    'URL_MAX': 2048,
    'PROGRESS_MIN': 0,
    'PROGRESS_MAX': 100,
    'PRICE_MIN': 0,
    'PRICE_MAX': 999999999,
}

ERROR_MESSAGES = {
    'REQUIRED_FIELD': "This field is required",
    'INVALID_EMAIL': "Please enter a valid email address",
    'INVALID_DATE': "Please enter a valid date",
    'DATE_RANGE_INVALID': "End date must be after start date",
    'PERMISSION_DENIED': "You don't have permission to perform this action",
    'NOT_FOUND': "The requested item was not found",
    'ALREADY_EXISTS': "An item with this name already exists",
    'GENERIC_ERROR': "An error occurred. Please try again.",
}

PAGINATION = {
    'DEFAULT_PAGE_SIZE': 50,
    'MAX_PAGE_SIZE': 100,
}

# Money
DEFAULT_CURRENCY = 'EUR'

CURRENCY_CHOICES = [
    ('EUR', 'Euro'),
    ('GBP', 'British Pound'),
    ('USD', 'US Dollar'),
    ('CHF', 'Swiss Franc'),
]

CURRENCY_SYMBOLS = {
    'EUR': '€',
    'GBP': '£',
    'USD': '$',
    'CHF': 'CHF ',
}

# Percent of an allocation used (spent + committed) at which each warning starts
FUNDING_WARNING_THRESHOLDS = {
    'CRITICAL': 90,
    'HIGH': 80,
    'MEDIUM': 70,
}


def to_decimal(value, default=Decimal('0.00')):
    """Coerce ints, floats, strings and None into a Decimal"""
    if value is None or value == '':
        return default
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        return default


def format_currency(amount, currency=DEFAULT_CURRENCY):
    """
    Format an amount as symbol + value with exactly two decimals.

    No thousands separators are used, so format_currency(1234.5) == "€1234.50".
    Unknown currency codes fall back to "<CODE> 12.00".
    """
    value = to_decimal(amount).quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)
    code = (currency or DEFAULT_CURRENCY).upper()
    sign = '-' if value < 0 else ''
    digits = f"{abs(value):.2f}"
    symbol = CURRENCY_SYMBOLS.get(code)
    if symbol is None:
        return f"{sign}{code} {digits}"
    return f"{sign}{symbol}{digits}"


def get_low_balance_warning_level(percent_used):
    """Map the percentage of an allocation already used to a warning level"""
    percent = float(to_decimal(percent_used))
    if percent >= FUNDING_WARNING_THRESHOLDS['CRITICAL']:
        return 'critical'
    if percent >= FUNDING_WARNING_THRESHOLDS['HIGH']:
        return 'high'
    if percent >= FUNDING_WARNING_THRESHOLDS['MEDIUM']:
        return 'medium'
    return 'normal'


def get_budget_status(utilization_percentage):
    """healthy below 85%, warning from 85%, overbudget from 100%"""
    percent = float(to_decimal(utilization_percentage))
    if percent >= 100:
        return 'overbudget'
    if percent >= 85:
        return 'warning'
    return 'healthy'
