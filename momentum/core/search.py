"""
Linear search, filter and sort helpers.

They work on plain dicts (serializer output, imported rows) as well as model
instances, so the same rules apply to API payloads and ORM objects. Foreign
keys are compared by id: for model instances ``<field>_id`` is read when it
exists.
"""
from datetime import date, datetime
from decimal import Decimal


def get_value(item, field):
    """Read a field from a dict or an object, preferring the raw FK id"""
    if isinstance(item, dict):
        return item.get(field)
    fk_attname = f"{field}_id"
    if hasattr(item, fk_attname):
        return getattr(item, fk_attname)
    value = getattr(item, field, None)
    if hasattr(value, 'all') and callable(value.all):
        return list(value.all())
    return value


def _same(left, right):
    if left is None or right is None:
        return left is right
    return str(left) == str(right)


def _as_list(value):
    if value is None or value == '':
        return []
    if isinstance(value, (list, tuple, set)):
        return [v for v in value if v not in (None, '')]
    return [value]


def as_comparable(value):
    """Dates, datetimes and ISO strings compare as dates"""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and len(value) >= 10:
        try:
            return date.fromisoformat(value[:10])
        except ValueError:
            return value
    return value


def fuzzy_search(items, query, fields):
    """
    Case-insensitive substring search over the given fields.

    Strings match on substring, numbers on their digits, lists when any
    element matches. A blank query returns every item.
    """
    if not query or not str(query).strip():
        return list(items)

    needle = str(query).lower().strip()

    def matches(item):
        for field in fields:
            value = get_value(item, field)
            if value is None or isinstance(value, bool):
                continue
            if isinstance(value, str):
                if needle in value.lower():
                    return True
            elif isinstance(value, (int, float)) or hasattr(value, 'as_tuple'):
                if needle in str(value):
                    return True
            elif isinstance(value, (list, tuple)):
                if any(needle in str(v).lower() for v in value):
                    return True
        return False

    return [item for item in items if matches(item)]


def _filter_in(items, field, allowed, default=''):
    allowed = _as_list(allowed)
    if not allowed:
        return items
    return [item for item in items if (get_value(item, field) or default) in allowed]


def _filter_eq(items, field, expected):
    if expected in (None, ''):
        return items
    return [item for item in items if _same(get_value(item, field), expected)]


def _filter_range(items, field, lower=None, upper=None):
    if lower is not None:
        lower = as_comparable(lower)
        items = [i for i in items if get_value(i, field) is not None and as_comparable(get_value(i, field)) >= lower]
    if upper is not None:
        upper = as_comparable(upper)
        items = [i for i in items if get_value(i, field) is not None and as_comparable(get_value(i, field)) <= upper]
    return items


# Projects

def search_projects(projects, query):
    return fuzzy_search(projects, query, ['name', 'notes', 'tags'])


def filter_projects(projects, filters):
    """
    Filter projects by query, status, importance, kind, PI, start/end date
    ranges, progress bounds and tags (any tag matches).
    """
    filtered = list(projects)
    if filters.get('query'):
        filtered = search_projects(filtered, filters['query'])
    filtered = _filter_in(filtered, 'status', filters.get('status'))
    filtered = _filter_in(filtered, 'importance', filters.get('importance'))
    filtered = _filter_in(filtered, 'kind', filters.get('kind'), default='regular')
    pi = filters.get('principal_investigator')
    if pi not in (None, ''):
        filtered = [p for p in filtered
                    if any(_same(pi, getattr(v, 'pk', v)) for v in _as_list(get_value(p, 'principal_investigators')))]
    filtered = _filter_range(filtered, 'start_date', filters.get('start_date_from'), filters.get('start_date_to'))
    filtered = _filter_range(filtered, 'end_date', filters.get('end_date_from'), filters.get('end_date_to'))
    if filters.get('min_progress') is not None:
        filtered = [p for p in filtered if (get_value(p, 'progress') or 0) >= filters['min_progress']]
    if filters.get('max_progress') is not None:
        filtered = [p for p in filtered if (get_value(p, 'progress') or 0) <= filters['max_progress']]
    tags = _as_list(filters.get('tags'))
    if tags:
        filtered = [p for p in filtered if any(tag in tags for tag in (get_value(p, 'tags') or []))]
    return filtered


# Tasks

def search_tasks(tasks, query):
    return fuzzy_search(tasks, query, ['name', 'notes', 'tags'])


def filter_tasks(tasks, filters):
    filtered = list(tasks)
    if filters.get('query'):
        filtered = search_tasks(filtered, filters['query'])
    filtered = _filter_in(filtered, 'status', filters.get('status'))
    filtered = _filter_in(filtered, 'importance', filters.get('importance'))
    filtered = _filter_in(filtered, 'type', filters.get('type'))
    filtered = _filter_eq(filtered, 'primary_owner', filters.get('primary_owner'))
    filtered = _filter_eq(filtered, 'workpackage', filters.get('workpackage'))
    filtered = _filter_range(filtered, 'start_date', filters.get('start_date_from'), filters.get('start_date_to'))
    filtered = _filter_range(filtered, 'end_date', filters.get('end_date_from'), filters.get('end_date_to'))
    return filtered


# People

def search_people(profiles, query):
    return fuzzy_search(profiles, query, [
        'first_name', 'last_name', 'email', 'position', 'research_interests', 'qualifications',
    ])


def filter_people(profiles, filters):
    filtered = list(profiles)
    if filters.get('query'):
        filtered = search_people(filtered, filters['query'])
    filtered = _filter_eq(filtered, 'organisation', filters.get('organisation'))
    filtered = _filter_eq(filtered, 'institute', filters.get('institute'))
    filtered = _filter_eq(filtered, 'lab', filters.get('lab'))
    filtered = _filter_eq(filtered, 'position', filters.get('position'))
    filtered = _filter_eq(filtered, 'reports_to', filters.get('reports_to'))
    return filtered


# Inventory

def search_inventory(items, query):
    return fuzzy_search(items, query, ['product_name', 'cat_num', 'notes', 'category', 'subcategory'])


def filter_inventory(items, filters):
    """
    `min_quantity` (or its alias `below_minimum`) keeps only items whose
    quantity is under their minimum
    """
    filtered = list(items)
    if filters.get('query'):
        filtered = search_inventory(filtered, filters['query'])
    filtered = _filter_eq(filtered, 'category', filters.get('category'))
    filtered = _filter_eq(filtered, 'subcategory', filters.get('subcategory'))
    filtered = _filter_in(filtered, 'inventory_level', filters.get('inventory_level'))
    filtered = _filter_eq(filtered, 'charge_to_account', filters.get('charge_to_account'))
    if filters.get('min_quantity') or filters.get('below_minimum'):
        filtered = [
            i for i in filtered
            if get_value(i, 'current_quantity') is not None
            and get_value(i, 'min_quantity') is not None
            and get_value(i, 'current_quantity') < get_value(i, 'min_quantity')
        ]
    return filtered


# Events

def search_events(events, query):
    return fuzzy_search(events, query, ['title', 'description', 'location', 'tags'])


def filter_events(events, filters):
    filtered = list(events)
    if filters.get('query'):
        filtered = search_events(filtered, filters['query'])
    filtered = _filter_in(filtered, 'type', filters.get('type'))
    filtered = _filter_in(filtered, 'visibility', filters.get('visibility'))
    filtered = _filter_eq(filtered, 'owner', filters.get('owner'))
    filtered = _filter_range(filtered, 'start', filters.get('start_from'), filters.get('start_to'))
    return filtered


# Orders

def search_orders(orders, query):
    return fuzzy_search(orders, query, ['product_name', 'cat_num'])


def filter_orders(orders, filters):
    """
    Filter orders by query (product name, catalogue number), status list,
    category, subcategory, charged account and the person who ordered.
    """
    filtered = list(orders)
    if filters.get('query'):
        filtered = search_orders(filtered, filters['query'])
    filtered = _filter_in(filtered, 'status', filters.get('status'))
    filtered = _filter_eq(filtered, 'category', filters.get('category'))
    filtered = _filter_eq(filtered, 'subcategory', filters.get('subcategory'))
    filtered = _filter_eq(filtered, 'account', filters.get('account'))
    filtered = _filter_eq(filtered, 'ordered_by', filters.get('ordered_by'))
    return filtered


# Sorting

def _kind(value):
    if isinstance(value, date):
        return 'date'
    if isinstance(value, (int, float, Decimal)):
        return 'number'
    return type(value).__name__


def sort_by(items, key, direction='asc'):
    """
    Stable sort on `key`; missing values always go last.

    Columns of dates or ISO strings sort chronologically. A column mixing
    kinds (dates with free text, numbers with strings) sorts on the text
    form of each value.
    """
    present = [i for i in items if get_value(i, key) is not None]
    missing = [i for i in items if get_value(i, key) is None]
    keys = {id(i): as_comparable(get_value(i, key)) for i in present}
    if len({_kind(v) for v in keys.values()}) > 1:
        keys = {id(i): str(get_value(i, key)) for i in present}
    present.sort(key=lambda i: keys[id(i)], reverse=(direction == 'desc'))
    return present + missing
