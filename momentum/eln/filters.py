import django_filters
from django.db.models import Q
from .models import ELNExperiment


class ELNExperimentFilter(django_filters.FilterSet):
    search = django_filters.CharFilter(method='filter_search', label='Search')
    status = django_filters.CharFilter(field_name='status')
    master_project = django_filters.NumberFilter(field_name='master_project_id')
    workpackage = django_filters.NumberFilter(field_name='workpackage_id')
    lab = django_filters.NumberFilter(field_name='lab_id')
    created_by = django_filters.NumberFilter(field_name='created_by_id')

    class Meta:
        model = ELNExperiment
        fields = ['search', 'status', 'master_project', 'workpackage', 'lab', 'created_by']

    def filter_search(self, queryset, name, value):
        if not value.strip():
            return queryset
        return queryset.filter(
            Q(title__icontains=value) | Q(description__icontains=value) | Q(experiment_number__icontains=value)
        )
