import django_filters
from django.db.models import Q
from .models import CalendarEvent


class CalendarEventFilter(django_filters.FilterSet):
    search = django_filters.CharFilter(method='filter_search', label='Search')
    type = django_filters.CharFilter(field_name='type')
    visibility = django_filters.CharFilter(field_name='visibility')
    owner = django_filters.NumberFilter(field_name='owner_id')
    lab = django_filters.NumberFilter(field_name='lab_id')
    project = django_filters.NumberFilter(field_name='related_project_id')
    start_from = django_filters.IsoDateTimeFilter(field_name='start', lookup_expr='gte')
    start_to = django_filters.IsoDateTimeFilter(field_name='start', lookup_expr='lte')

    class Meta:
        model = CalendarEvent
        fields = ['search', 'type', 'visibility', 'owner', 'lab', 'start_from', 'start_to']

    def filter_search(self, queryset, name, value):
        if not value.strip():
            return queryset
        return queryset.filter(
            Q(title__icontains=value) | Q(description__icontains=value) | Q(location__icontains=value)
        )
