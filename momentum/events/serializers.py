from rest_framework import serializers
from momentum.core.constants import ATTENDEE_RESPONSES, RECURRENCE_FREQUENCIES, REMINDER_METHODS
from momentum.core.serializers import ValidatedModelSerializer
from .models import CalendarEvent


class CalendarEventSerializer(ValidatedModelSerializer):
    owner_name = serializers.SerializerMethodField()
    related_project_name = serializers.CharField(source='related_project.name', read_only=True, default=None)

    date_range_fields = (('start', 'end'),)

    class Meta:
        model = CalendarEvent
        fields = ['id', 'title', 'description', 'location', 'link_url', 'start', 'end', 'all_day', 'recurrence',
                  'attendees', 'reminders', 'tags', 'visibility', 'type', 'owner', 'owner_name',
                  'related_project', 'related_project_name', 'related_workpackage', 'related_deliverable',
                  'related_task', 'notes', 'lab', 'created_by', 'created_at', 'updated_at']
        read_only_fields = ['created_by', 'created_at', 'updated_at']

    def get_owner_name(self, obj):
        return obj.owner.full_name if obj.owner_id else None

    def validate_title(self, value):
        if not value.strip():
            raise serializers.ValidationError('Title is required')
        return value.strip()

    def validate_recurrence(self, value):
        if value is None:
            return value
        if not isinstance(value, dict):
            raise serializers.ValidationError('Recurrence must be an object')
        frequency = value.get('frequency')
        if frequency not in RECURRENCE_FREQUENCIES:
            raise serializers.ValidationError(
                f"Recurrence frequency must be one of: {', '.join(RECURRENCE_FREQUENCIES)}"
            )
        interval = value.get('interval')
        if interval is not None and (not isinstance(interval, int) or interval < 1):
            raise serializers.ValidationError('Recurrence interval must be a positive whole number')
        count = value.get('count')
        if count is not None and (not isinstance(count, int) or count < 1):
            raise serializers.ValidationError('Recurrence count must be a positive whole number')
        if value.get('until'):
            serializers.DateTimeField().run_validation(value['until'])
        return value

    def validate_attendees(self, value):
        if not isinstance(value, list):
            raise serializers.ValidationError('Attendees must be a list')
        cleaned = []
        for attendee in value:
            if not isinstance(attendee, dict) or not attendee.get('person_id'):
                raise serializers.ValidationError('Each attendee needs a person_id')
            response = attendee.get('response') or 'none'
            if response not in ATTENDEE_RESPONSES:
                raise serializers.ValidationError(
                    f"Attendee response must be one of: {', '.join(ATTENDEE_RESPONSES)}"
                )
            cleaned.append({**attendee, 'response': response})
        return cleaned

    def validate_reminders(self, value):
        if not isinstance(value, list):
            raise serializers.ValidationError('Reminders must be a list')
        for reminder in value:
            if not isinstance(reminder, dict) or reminder.get('method') not in REMINDER_METHODS:
                raise serializers.ValidationError(
                    f"Reminder method must be one of: {', '.join(REMINDER_METHODS)}"
                )
            minutes = reminder.get('minutes_before', 0)
            if not isinstance(minutes, int) or minutes < 0:
                raise serializers.ValidationError('Reminder minutes_before must be zero or more')
        return value

    def validate_tags(self, value):
        if not isinstance(value, list) or any(not isinstance(tag, str) for tag in value):
            raise serializers.ValidationError('Tags must be a list of strings')
        return [tag.strip() for tag in value if tag.strip()]

    def validate(self, attrs):
        attrs = super().validate(attrs)
        project = self._current(attrs, 'related_project')
        workpackage = self._current(attrs, 'related_workpackage')
        if project and workpackage and workpackage.project_id != project.id:
            raise serializers.ValidationError({'related_workpackage': 'Workpackage belongs to another project'})
        return attrs
