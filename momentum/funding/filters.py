import django_filters
from django.db.models import Q
from .models import FundingAccount, FundingAllocation, FundingTransaction


class FundingAccountFilter(django_filters.FilterSet):
    search = django_filters.CharFilter(method='filter_search', label='Search')
    lab = django_filters.NumberFilter(field_name='lab_id')
    funder = django_filters.NumberFilter(field_name='funder_id')
    master_project = django_filters.NumberFilter(field_name='master_project_id')
    status = django_filters.CharFilter(field_name='status')
    account_type = django_filters.CharFilter(field_name='account_type')

    class Meta:
        model = FundingAccount
        fields = ['search', 'lab', 'funder', 'master_project', 'status', 'account_type']

    def filter_search(self, queryset, name, value):
        if not value.strip():
            return queryset
        return queryset.filter(Q(account_number__icontains=value) | Q(account_name__icontains=value))


class FundingAllocationFilter(django_filters.FilterSet):
    lab = django_filters.NumberFilter(field_name='lab_id')
    funding_account = django_filters.NumberFilter(field_name='funding_account_id')
    person = django_filters.NumberFilter(field_name='person_id')
    project = django_filters.NumberFilter(field_name='project_id')
    type = django_filters.CharFilter(field_name='type')
    status = django_filters.CharFilter(field_name='status')

    class Meta:
        model = FundingAllocation
        fields = ['lab', 'funding_account', 'person', 'project', 'type', 'status']


class FundingTransactionFilter(django_filters.FilterSet):
    lab = django_filters.NumberFilter(field_name='lab_id')
    funding_account = django_filters.NumberFilter(field_name='funding_account_id')
    allocation = django_filters.NumberFilter(field_name='allocation_id')
    order = django_filters.NumberFilter(field_name='order_id')
    type = django_filters.MultipleChoiceFilter(field_name='type', choices=FundingTransaction.TYPE_CHOICES)
    status = django_filters.CharFilter(field_name='status')
    date_from = django_filters.DateFilter(field_name='created_at', lookup_expr='date__gte')
    date_to = django_filters.DateFilter(field_name='created_at', lookup_expr='date__lte')

    class Meta:
        model = FundingTransaction
        fields = ['lab', 'funding_account', 'allocation', 'order', 'type', 'status', 'date_from', 'date_to']
