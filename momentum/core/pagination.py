from django.core.paginator import Paginator
from rest_framework.response import Response

from .constants import PAGINATION


def paginated_response(request, queryset, serializer_class, context=None):
    """
    Paginate a queryset with ?page= and ?limit= and wrap it in the list envelope
    {results, count, next, previous, page, page_size, total_pages}
    """
    try:
        page = max(1, int(request.query_params.get('page', 1)))
    except (TypeError, ValueError):
        page = 1
    try:
        limit = int(request.query_params.get('limit', PAGINATION['DEFAULT_PAGE_SIZE']))
    except (TypeError, ValueError):
        limit = PAGINATION['DEFAULT_PAGE_SIZE']
    limit = max(1, min(limit, PAGINATION['MAX_PAGE_SIZE']))

    paginator = Paginator(queryset, limit)
    page_obj = paginator.get_page(page)

    serializer = serializer_class(page_obj, many=True, context=context or {'request': request})
    return Response({
        'results': serializer.data,
        'count': paginator.count,
        'next': page_obj.next_page_number() if page_obj.has_next() else None,
        'previous': page_obj.previous_page_number() if page_obj.has_previous() else None,
        'page': page_obj.number,
        'page_size': limit,
        'total_pages': paginator.num_pages,
    })
