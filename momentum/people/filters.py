import django_filters
from django.db.models import Q
from .models import PersonProfile


class PersonProfileFilter(django_filters.FilterSet):
    """Filter people by free text, lab, position, line manager and affiliation"""
    search = django_filters.CharFilter(method='filter_search', label='Search')
    lab = django_filters.NumberFilter(field_name='lab_id')
    position = django_filters.CharFilter(field_name='position')
    reports_to = django_filters.NumberFilter(field_name='reports_to_id')
    organisation = django_filters.CharFilter(field_name='organisation', lookup_expr='iexact')
    institute = django_filters.CharFilter(field_name='institute', lookup_expr='iexact')
    user_role = django_filters.CharFilter(field_name='user_role')

    class Meta:
        model = PersonProfile
        fields = ['search', 'lab', 'position', 'reports_to', 'organisation', 'institute', 'user_role']

    def filter_search(self, queryset, name, value):
        value = value.strip()
        if not value:
            return queryset
        return queryset.filter(
            Q(first_name__icontains=value) |
            Q(last_name__icontains=value) |
            Q(email__icontains=value) |
            Q(position__icontains=value)
        )
