import django_filters
from django.db.models import Q
from .models import Equipment, InventoryItem


class InventoryItemFilter(django_filters.FilterSet):
    search = django_filters.CharFilter(method='filter_search', label='Search')
    level = django_filters.CharFilter(method='filter_level', label='Inventory level (comma separated)')
    category = django_filters.CharFilter(field_name='category')
    subcategory = django_filters.CharFilter(field_name='subcategory')
    supplier = django_filters.CharFilter(field_name='supplier', lookup_expr='icontains')
    lab = django_filters.NumberFilter(field_name='lab_id')
    charge_to_account = django_filters.NumberFilter(field_name='charge_to_account_id')
    equipment = django_filters.NumberFilter(field_name='equipment_devices')

    class Meta:
        model = InventoryItem
        fields = ['search', 'level', 'category', 'subcategory', 'supplier', 'lab']

    def filter_search(self, queryset, name, value):
        if not value.strip():
            return queryset
        return queryset.filter(
            Q(product_name__icontains=value) | Q(cat_num__icontains=value) | Q(supplier__icontains=value)
        )

    def filter_level(self, queryset, name, value):
        levels = [v.strip() for v in value.split(',') if v.strip()]
        if not levels:
            return queryset
        return queryset.filter(inventory_level__in=levels)


class EquipmentFilter(django_filters.FilterSet):
    search = django_filters.CharFilter(method='filter_search', label='Search')
    lab = django_filters.NumberFilter(field_name='lab_id')

    class Meta:
        model = Equipment
        fields = ['search', 'lab']

    def filter_search(self, queryset, name, value):
        if not value.strip():
            return queryset
        return queryset.filter(
            Q(name__icontains=value) | Q(make__icontains=value) | Q(model__icontains=value)
            | Q(serial_number__icontains=value)
        )
