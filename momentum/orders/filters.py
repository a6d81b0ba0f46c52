import django_filters
from django.db.models import Q
from .models import Order


class OrderFilter(django_filters.FilterSet):
    search = django_filters.CharFilter(method='filter_search', label='Search')
    status = django_filters.CharFilter(method='filter_status', label='Status (comma separated)')
    category = django_filters.CharFilter(field_name='category')
    subcategory = django_filters.CharFilter(field_name='subcategory')
    account = django_filters.NumberFilter(field_name='account_id')
    allocation = django_filters.NumberFilter(field_name='allocation_id')
    master_project = django_filters.NumberFilter(field_name='master_project_id')
    ordered_by = django_filters.NumberFilter(field_name='ordered_by_id')
    lab = django_filters.NumberFilter(field_name='lab_id')
    priority = django_filters.CharFilter(field_name='priority')
    supplier = django_filters.CharFilter(field_name='supplier', lookup_expr='icontains')
    ordered_from = django_filters.DateFilter(field_name='ordered_date', lookup_expr='gte')
    ordered_to = django_filters.DateFilter(field_name='ordered_date', lookup_expr='lte')

    class Meta:
        model = Order
        fields = ['search', 'status', 'category', 'subcategory', 'account', 'ordered_by']

    def filter_search(self, queryset, name, value):
        if not value.strip():
            return queryset
        return queryset.filter(Q(product_name__icontains=value) | Q(cat_num__icontains=value))

    def filter_status(self, queryset, name, value):
        statuses = [s.strip() for s in value.split(',') if s.strip()]
        if not statuses:
            return queryset
        return queryset.filter(status__in=statuses)
