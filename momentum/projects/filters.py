import django_filters
from django.db.models import Q
from .models import MasterProject, Workpackage, Deliverable, Task, Subtask


class MasterProjectFilter(django_filters.FilterSet):
    search = django_filters.CharFilter(method='filter_search', label='Search')
    status = django_filters.CharFilter(method='filter_status', label='Status (comma separated)')
    lab = django_filters.NumberFilter(field_name='lab_id')
    type = django_filters.CharFilter(field_name='type')
    kind = django_filters.CharFilter(field_name='kind')
    importance = django_filters.CharFilter(field_name='importance')
    health = django_filters.CharFilter(field_name='health')
    principal_investigator = django_filters.NumberFilter(field_name='principal_investigators__id')
    member = django_filters.NumberFilter(method='filter_member', label='PI or team member')
    start_date_from = django_filters.DateFilter(field_name='start_date', lookup_expr='gte')
    start_date_to = django_filters.DateFilter(field_name='start_date', lookup_expr='lte')
    end_date_from = django_filters.DateFilter(field_name='end_date', lookup_expr='gte')
    end_date_to = django_filters.DateFilter(field_name='end_date', lookup_expr='lte')
    min_progress = django_filters.NumberFilter(field_name='progress', lookup_expr='gte')
    max_progress = django_filters.NumberFilter(field_name='progress', lookup_expr='lte')

    class Meta:
        model = MasterProject
        fields = ['search', 'status', 'lab', 'type', 'kind', 'importance', 'health']

    def filter_search(self, queryset, name, value):
        if not value.strip():
            return queryset
        return queryset.filter(
            Q(name__icontains=value) | Q(description__icontains=value) |
            Q(grant_name__icontains=value) | Q(grant_number__icontains=value) | Q(notes__icontains=value)
        )

    def filter_status(self, queryset, name, value):
        statuses = [s.strip() for s in value.split(',') if s.strip()]
        if not statuses:
            return queryset
        return queryset.filter(status__in=statuses)

    def filter_member(self, queryset, name, value):
        return queryset.filter(Q(principal_investigators__id=value) | Q(team_members__id=value)).distinct()


class WorkpackageFilter(django_filters.FilterSet):
    project = django_filters.NumberFilter(field_name='project_id')
    status = django_filters.CharFilter(field_name='status')
    owner = django_filters.NumberFilter(field_name='owner_id')

    class Meta:
        model = Workpackage
        fields = ['project', 'status', 'owner']


class DeliverableFilter(django_filters.FilterSet):
    workpackage = django_filters.NumberFilter(field_name='workpackage_id')
    project = django_filters.NumberFilter(field_name='workpackage__project_id')
    status = django_filters.CharFilter(field_name='status')
    owner = django_filters.NumberFilter(field_name='owner_id')
    order = django_filters.NumberFilter(field_name='orders__id', label='Linked order')
    due_before = django_filters.DateFilter(field_name='due_date', lookup_expr='lte')
    due_after = django_filters.DateFilter(field_name='due_date', lookup_expr='gte')

    class Meta:
        model = Deliverable
        fields = ['workpackage', 'project', 'status', 'owner']


class TaskFilter(django_filters.FilterSet):
    search = django_filters.CharFilter(method='filter_search', label='Search')
    workpackage = django_filters.NumberFilter(field_name='workpackage_id')
    project = django_filters.NumberFilter(field_name='workpackage__project_id')
    deliverable = django_filters.NumberFilter(field_name='deliverable_id')
    status = django_filters.CharFilter(method='filter_status', label='Status (comma separated)')
    importance = django_filters.CharFilter(field_name='importance')
    type = django_filters.CharFilter(field_name='type')
    owner = django_filters.NumberFilter(method='filter_owner', label='Owner or helper')
    start_date_from = django_filters.DateFilter(field_name='start_date', lookup_expr='gte')
    end_date_to = django_filters.DateFilter(field_name='end_date', lookup_expr='lte')

    class Meta:
        model = Task
        fields = ['search', 'workpackage', 'deliverable', 'importance', 'type']

    def filter_search(self, queryset, name, value):
        if not value.strip():
            return queryset
        return queryset.filter(Q(name__icontains=value) | Q(notes__icontains=value))

    def filter_status(self, queryset, name, value):
        statuses = [s.strip() for s in value.split(',') if s.strip()]
        if not statuses:
            return queryset
        return queryset.filter(status__in=statuses)

    def filter_owner(self, queryset, name, value):
        return queryset.filter(Q(primary_owner_id=value) | Q(helpers__id=value)).distinct()


class SubtaskFilter(django_filters.FilterSet):
    task = django_filters.NumberFilter(field_name='task_id')
    status = django_filters.CharFilter(field_name='status')
    owner = django_filters.NumberFilter(field_name='owner_id')

    class Meta:
        model = Subtask
        fields = ['task', 'status', 'owner']
