from django.db import models
from momentum.core.constants import EVENT_TYPE_CHOICES, EVENT_VISIBILITY_CHOICES
from momentum.core.models import User
from momentum.people.models import Lab, PersonProfile
from momentum.projects.models import Deliverable, MasterProject, Task, Workpackage


class CalendarEvent(models.Model):
    """
    Lab calendar entry.

    recurrence: {"frequency": str, "interval": int, "until": iso|None, "count": int|None}
    attendees:  [{"person_id": int, "response": "accepted|declined|tentative|none"}]
    reminders:  [{"method": "email|push|sms", "minutes_before": int}]
    """
    title = models.CharField(max_length=200)
    description = models.TextField(blank=True, max_length=5000)
    location = models.CharField(max_length=255, blank=True)
    link_url = models.URLField(max_length=2048, blank=True)
    start = models.DateTimeField()
    end = models.DateTimeField()
    all_day = models.BooleanField(default=False)
    recurrence = models.JSONField(null=True, blank=True)
    attendees = models.JSONField(default=list, blank=True)
    reminders = models.JSONField(default=list, blank=True)
    tags = models.JSONField(default=list, blank=True)
    visibility = models.CharField(max_length=20, choices=EVENT_VISIBILITY_CHOICES, default='lab')
    type = models.CharField(max_length=20, choices=EVENT_TYPE_CHOICES, default='meeting')
    owner = models.ForeignKey(PersonProfile, on_delete=models.SET_NULL, null=True, blank=True, related_name='owned_events')
    related_project = models.ForeignKey(MasterProject, on_delete=models.SET_NULL, null=True, blank=True, related_name='events')
    related_workpackage = models.ForeignKey(Workpackage, on_delete=models.SET_NULL, null=True, blank=True, related_name='events')
    related_deliverable = models.ForeignKey(Deliverable, on_delete=models.SET_NULL, null=True, blank=True, related_name='events')
    related_task = models.ForeignKey(Task, on_delete=models.SET_NULL, null=True, blank=True, related_name='events')
    notes = models.TextField(blank=True, max_length=10000)
    lab = models.ForeignKey(Lab, on_delete=models.CASCADE, null=True, blank=True, related_name='events')
    created_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='created_events')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.title

    class Meta:
        db_table = 'calendar_events'
        ordering = ['start']
        indexes = [
            models.Index(fields=['start'], name='idx_event_start'),
            models.Index(fields=['lab', 'start'], name='idx_event_lab_start'),
        ]
