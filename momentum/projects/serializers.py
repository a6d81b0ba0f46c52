from rest_framework import serializers
from momentum.core.constants import VALIDATION_LIMITS
from momentum.core.serializers import ValidatedModelSerializer
from .models import MasterProject, Workpackage, Deliverable, Task, Subtask, ProjectFile
from .services import normalize_todos

DOCUMENT_LINK_PROVIDERS = ('google-drive', 'onedrive', 'url')

NAME_FIELD_KWARGS = {
    'min_length': VALIDATION_LIMITS['PROJECT_NAME_MIN'],
    'max_length': VALIDATION_LIMITS['PROJECT_NAME_MAX'],
}


def _validate_string_list(value, field_label):
    if not isinstance(value, list) or any(not isinstance(item, str) for item in value):
        raise serializers.ValidationError(f"{field_label} must be a list of strings")
    return [item.strip() for item in value if item.strip()]


class MasterProjectSerializer(ValidatedModelSerializer):
    name = serializers.CharField(**NAME_FIELD_KWARGS)
    lab_name = serializers.CharField(source='lab.name', read_only=True, default=None)
    workpackage_count = serializers.SerializerMethodField()

    date_range_fields = (('start_date', 'end_date'),)
    progress_field = 'progress'

    class Meta:
        model = MasterProject
        fields = ['id', 'name', 'description', 'lab', 'lab_name', 'type', 'kind', 'grant_name', 'grant_number',
                  'total_budget', 'currency', 'start_date', 'end_date', 'status', 'importance', 'progress',
                  'visibility', 'principal_investigators', 'team_members', 'tags', 'notes', 'health',
                  'workpackage_count', 'created_by', 'created_at', 'updated_at']
        read_only_fields = ['health', 'created_by', 'created_at', 'updated_at']

    def get_workpackage_count(self, obj):
        return obj.workpackages.count()

    def validate_total_budget(self, value):
        if value < 0:
            raise serializers.ValidationError("Budget cannot be negative")
        return value

    def validate_tags(self, value):
        return _validate_string_list(value, 'Tags')


class WorkpackageSerializer(ValidatedModelSerializer):
    name = serializers.CharField(**NAME_FIELD_KWARGS)
    date_range_fields = (('start_date', 'end_date'),)
    progress_field = 'progress'

    class Meta:
        model = Workpackage
        fields = ['id', 'project', 'name', 'start_date', 'end_date', 'progress', 'importance', 'status',
                  'owner', 'notes', 'created_at', 'updated_at']
        read_only_fields = ['created_at', 'updated_at']


class DeliverableSerializer(ValidatedModelSerializer):
    name = serializers.CharField(**NAME_FIELD_KWARGS)
    project = serializers.IntegerField(source='workpackage.project_id', read_only=True)
    linked_orders = serializers.SerializerMethodField()

    date_range_fields = (('start_date', 'due_date'),)
    progress_field = 'progress'

    class Meta:
        model = Deliverable
        fields = ['id', 'workpackage', 'project', 'name', 'description', 'start_date', 'due_date', 'progress',
                  'status', 'importance', 'owner', 'contributors', 'blockers', 'metrics', 'review_history',
                  'document_links', 'tags', 'notes', 'linked_orders', 'created_at', 'updated_at']
        read_only_fields = ['review_history', 'created_at', 'updated_at']

    def get_linked_orders(self, obj):
        return list(obj.orders.values_list('id', flat=True))

    def validate_blockers(self, value):
        return _validate_string_list(value, 'Blockers')

    def validate_tags(self, value):
        return _validate_string_list(value, 'Tags')

    def validate_metrics(self, value):
        if not isinstance(value, list):
            raise serializers.ValidationError("Metrics must be a list")
        for metric in value:
            if not isinstance(metric, dict):
                raise serializers.ValidationError("Each metric must be an object")
            for key in ('label', 'value'):
                text = str(metric.get(key, '')).strip()
                if not text or len(text) > 100:
                    raise serializers.ValidationError(f"Metric {key} must be 1 to 100 characters")
        return value

    def validate_document_links(self, value):
        if not isinstance(value, list):
            raise serializers.ValidationError("Document links must be a list")
        url_field = serializers.URLField(max_length=VALIDATION_LIMITS['URL_MAX'])
        for link in value:
            if not isinstance(link, dict) or not link.get('target_url') or not str(link.get('title', '')).strip():
                raise serializers.ValidationError("Each document link needs a title and target_url")
            if link.get('provider', 'url') not in DOCUMENT_LINK_PROVIDERS:
                raise serializers.ValidationError(f"Unknown link provider: {link.get('provider')}")
            url_field.run_validation(link['target_url'])
        return value


class DeliverableReviewSerializer(serializers.Serializer):
    """Input for appending a review to a deliverable"""
    reviewer = serializers.IntegerField()
    approved = serializers.BooleanField(default=False)
    summary = serializers.CharField(max_length=500, required=False, allow_blank=True)
    notes = serializers.CharField(max_length=VALIDATION_LIMITS['NOTES_MAX'], required=False, allow_blank=True)
    changes = serializers.CharField(max_length=VALIDATION_LIMITS['NOTES_MAX'], required=False, allow_blank=True)


class TaskSerializer(ValidatedModelSerializer):
    name = serializers.CharField(min_length=VALIDATION_LIMITS['TASK_NAME_MIN'],
                                 max_length=VALIDATION_LIMITS['TASK_NAME_MAX'])
    subtask_count = serializers.SerializerMethodField()

    date_range_fields = (('start_date', 'end_date'),)
    progress_field = 'progress'

    class Meta:
        model = Task
        fields = ['id', 'workpackage', 'deliverable', 'name', 'start_date', 'end_date', 'progress', 'importance',
                  'status', 'type', 'primary_owner', 'helpers', 'dependencies', 'tags', 'notes', 'subtask_count',
                  'created_at', 'updated_at']
        read_only_fields = ['created_at', 'updated_at']

    def get_subtask_count(self, obj):
        return obj.subtasks.count()

    def validate_tags(self, value):
        return _validate_string_list(value, 'Tags')

    def validate(self, attrs):
        attrs = super().validate(attrs)
        workpackage = attrs.get('workpackage', getattr(self.instance, 'workpackage', None))
        deliverable = attrs.get('deliverable', getattr(self.instance, 'deliverable', None))
        if deliverable and workpackage and deliverable.workpackage_id != workpackage.id:
            raise serializers.ValidationError({'deliverable': 'Deliverable belongs to another workpackage'})
        dependencies = attrs.get('dependencies') or []
        if self.instance is not None and any(dep.pk == self.instance.pk for dep in dependencies):
            raise serializers.ValidationError({'dependencies': 'A task cannot depend on itself'})
        return attrs


class SubtaskSerializer(ValidatedModelSerializer):
    name = serializers.CharField(min_length=VALIDATION_LIMITS['TASK_NAME_MIN'],
                                 max_length=VALIDATION_LIMITS['TASK_NAME_MAX'])
    date_range_fields = (('start_date', 'end_date'),)
    progress_field = 'progress'

    class Meta:
        model = Subtask
        fields = ['id', 'task', 'name', 'start_date', 'end_date', 'progress', 'status', 'owner', 'todos',
                  'notes', 'created_at', 'updated_at']
        read_only_fields = ['created_at', 'updated_at']

    def validate_todos(self, value):
        if not isinstance(value, list):
            raise serializers.ValidationError("Todos must be a list")
        for todo in value:
            if not isinstance(todo, dict) or not str(todo.get('text', '')).strip():
                raise serializers.ValidationError("Each todo needs text")
        return normalize_todos(value)


class ProjectFileSerializer(serializers.ModelSerializer):
    class Meta:
        model = ProjectFile
        fields = ['id', 'project', 'name', 'url', 'mime_type', 'size', 'uploaded_by', 'created_at']
        read_only_fields = ['uploaded_by', 'created_at']
