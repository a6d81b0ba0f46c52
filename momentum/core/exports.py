"""
CSV / JSON export and CSV import helpers shared by every list endpoint
"""
import csv
import io
import json
import re
from datetime import date, datetime
from decimal import Decimal

from django.core.serializers.json import DjangoJSONEncoder
from django.http import HttpResponse
from django.utils import timezone

from .search import get_value

ISO_DATE_RE = re.compile(r'^\d{4}-\d{2}-\d{2}(?:[T ]\d{2}:\d{2}(?::\d{2}(?:\.\d+)?)?(?:Z|[+-]\d{2}:?\d{2})?)?$')

BACKUP_VERSION = '1.0'

# (key, label) pairs per export kind
PROJECT_COLUMNS = [
    ('name', 'Project Name'),
    ('start_date', 'Start Date'),
    ('end_date', 'End Date'),
    ('progress', 'Progress (%)'),
    ('status', 'Status'),
    ('health', 'Health'),
    ('total_budget', 'Budget'),
    ('notes', 'Notes'),
]

TASK_COLUMNS = [
    ('name', 'Task Name'),
    ('start_date', 'Start Date'),
    ('end_date', 'End Date'),
    ('progress', 'Progress (%)'),
    ('importance', 'Importance'),
    ('status', 'Status'),
    ('type', 'Type'),
    ('primary_owner', 'Owner ID'),
    ('notes', 'Notes'),
]

PEOPLE_COLUMNS = [
    ('first_name', 'First Name'),
    ('last_name', 'Last Name'),
    ('email', 'Email'),
    ('position', 'Position'),
    ('organisation', 'Organisation'),
    ('institute', 'Institute'),
    ('lab_name', 'Lab'),
    ('phone', 'Phone'),
    ('office_location', 'Office'),
    ('research_interests', 'Research Interests'),
    ('qualifications', 'Qualifications'),
]

INVENTORY_COLUMNS = [
    ('product_name', 'Product Name'),
    ('cat_num', 'Catalog Number'),
    ('inventory_level', 'Stock Level'),
    ('current_quantity', 'Current Quantity'),
    ('min_quantity', 'Min Quantity'),
    ('burn_rate_per_week', 'Burn Rate/Week'),
    ('price_ex_vat', 'Price (ex VAT)'),
    ('category', 'Category'),
    ('subcategory', 'Subcategory'),
    ('received_date', 'Received Date'),
    ('notes', 'Notes'),
]

ORDER_COLUMNS = [
    ('product_name', 'Product Name'),
    ('cat_num', 'Catalog Number'),
    ('status', 'Status'),
    ('price_ex_vat', 'Price (ex VAT)'),
    ('ordered_by', 'Ordered By'),
    ('ordered_date', 'Ordered Date'),
    ('received_date', 'Received Date'),
    ('account', 'Account'),
    ('category', 'Category'),
    ('subcategory', 'Subcategory'),
]

EVENT_COLUMNS = [
    ('title', 'Title'),
    ('start', 'Start'),
    ('end', 'End'),
    ('type', 'Type'),
    ('location', 'Location'),
    ('visibility', 'Visibility'),
    ('description', 'Description'),
]

TRANSACTION_COLUMNS = [
    ('created_at', 'Date'),
    ('type', 'Type'),
    ('status', 'Status'),
    ('amount', 'Amount'),
    ('currency', 'Currency'),
    ('account', 'Account'),
    ('allocation', 'Allocation'),
    ('order', 'Order'),
    ('description', 'Description'),
]


def _quote(text):
    return '"' + text.replace('"', '""') + '"'


def format_csv_value(value):
    """Render a single cell following the export escaping rules"""
    if value is None:
        return ''
    if isinstance(value, datetime):
        return value.strftime('%Y-%m-%d')
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, str) and ISO_DATE_RE.match(value):
        return value[:10]
    if isinstance(value, (list, tuple, set)):
        return _quote('; '.join(str(getattr(v, 'pk', v)) for v in value))
    if isinstance(value, dict):
        return _quote(json.dumps(value, cls=DjangoJSONEncoder))
    if isinstance(value, Decimal):
        text = format(value.normalize(), 'f') if value == value.to_integral() else str(value)
    else:
        text = str(value)
    if ',' in text or '"' in text:
        return _quote(text)
    return text


def array_to_csv(rows, columns):
    """
    Convert rows (dicts or model instances) to a CSV string.

    The header holds the column labels. An empty row list gives "".
    """
    rows = list(rows)
    if not rows:
        return ''
    lines = [','.join(label for _, label in columns)]
    for row in rows:
        lines.append(','.join(format_csv_value(get_value(row, key)) for key, _ in columns))
    return '\n'.join(lines)


def export_filename(kind, extension, when=None):
    when = when or timezone.now()
    return f"{kind}_export_{when.strftime('%Y-%m-%d')}.{extension}"


def csv_response(rows, columns, kind):
    """Build an attachment response holding the CSV export"""
    response = HttpResponse(array_to_csv(rows, columns), content_type='text/csv; charset=utf-8')
    response['Content-Disposition'] = f'attachment; filename="{export_filename(kind, "csv")}"'
    return response


def json_response(data, kind, filename=None):
    """Build an attachment response holding pretty-printed JSON"""
    content = json.dumps(data, cls=DjangoJSONEncoder, indent=2)
    response = HttpResponse(content, content_type='application/json')
    response['Content-Disposition'] = f'attachment; filename="{filename or export_filename(kind, "json")}"'
    return response


def build_full_backup(data, when=None):
    """Wrap exported collections the way backups are stored: {exportDate, version, data}"""
    when = when or timezone.now()
    return {
        'exportDate': when.isoformat(),
        'version': BACKUP_VERSION,
        'data': data,
    }


def backup_filename(when=None):
    when = when or timezone.now()
    return f"momentum_backup_{when.strftime('%Y-%m-%d_%H-%M')}.json"


def parse_csv(text):
    """
    Parse CSV text into header-keyed rows.

    Blank lines are skipped, values are trimmed and missing cells become "".
    """
    lines = [line for line in (text or '').splitlines() if line.strip()]
    if not lines:
        return []
    reader = csv.reader(io.StringIO('\n'.join(lines)), skipinitialspace=True)
    headers = [h.strip() for h in next(reader)]
    rows = []
    for values in reader:
        values = [v.strip() for v in values]
        rows.append({header: values[index] if index < len(values) else '' for index, header in enumerate(headers)})
    return rows
