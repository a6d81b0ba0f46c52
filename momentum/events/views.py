from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.shortcuts import get_object_or_404
from django.utils import timezone
from datetime import timedelta
import logging

from momentum.core.exports import EVENT_COLUMNS, csv_response
from momentum.core.pagination import paginated_response
from momentum.core.utils import create_audit_log, diff_instance
from .filters import CalendarEventFilter
from .models import CalendarEvent
from .serializers import CalendarEventSerializer

logger = logging.getLogger(__name__)

UPCOMING_DEFAULT_DAYS = 7
UPCOMING_MAX_DAYS = 365


def _event_queryset():
    return CalendarEvent.objects.select_related('owner', 'related_project')


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def event_list_create(request):
    """List calendar events or create one"""
    if request.method == 'GET':
        queryset = CalendarEventFilter(request.query_params, queryset=_event_queryset()).qs
        return paginated_response(request, queryset, CalendarEventSerializer)

    serializer = CalendarEventSerializer(data=request.data)
    if serializer.is_valid():
        event = serializer.save(created_by=request.user)
        create_audit_log(request=request, action='create', model_name='CalendarEvent', object_id=event.id,
                         object_name=event.title, changes={'start': event.start.isoformat(), 'type': event.type})
        return Response(CalendarEventSerializer(event).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def event_detail(request, pk):
    """Retrieve, update or delete a calendar event"""
    event = get_object_or_404(_event_queryset(), pk=pk)

    if request.method == 'GET':
        return Response(CalendarEventSerializer(event).data)

    if request.method in ('PUT', 'PATCH'):
        serializer = CalendarEventSerializer(event, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            changes = diff_instance(event, serializer.validated_data)
            event = serializer.save()
            create_audit_log(request=request, action='update', model_name='CalendarEvent', object_id=event.id,
                             object_name=event.title, changes=changes)
            return Response(CalendarEventSerializer(event).data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    event_id, title = event.id, event.title
    event.delete()
    create_audit_log(request=request, action='delete', model_name='CalendarEvent', object_id=event_id,
                     object_name=title)
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def event_upcoming(request):
    """
    Events taking place in the next ?days= days (default 7), soonest first.
    Events already under way are included. Accepts the event list filters.
    """
    try:
        days = int(request.query_params.get('days', UPCOMING_DEFAULT_DAYS))
    except (TypeError, ValueError):
        return Response({'error': 'days must be a whole number'}, status=status.HTTP_400_BAD_REQUEST)
    days = max(1, min(days, UPCOMING_MAX_DAYS))

    now = timezone.now()
    queryset = CalendarEventFilter(request.query_params, queryset=_event_queryset()).qs
    queryset = queryset.filter(end__gte=now, start__lte=now + timedelta(days=days)).order_by('start')
    return paginated_response(request, queryset, CalendarEventSerializer)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def event_export(request):
    """Export the (filtered) events as CSV"""
    queryset = CalendarEventFilter(request.query_params, queryset=CalendarEvent.objects.all()).qs
    rows = list(queryset)
    create_audit_log(request=request, action='export', model_name='CalendarEvent', object_id='all',
                     changes={'count': len(rows)})
    return csv_response(rows, EVENT_COLUMNS, 'events')
