from django.contrib import admin
from .models import CalendarEvent


@admin.register(CalendarEvent)
class CalendarEventAdmin(admin.ModelAdmin):
    list_display = ['title', 'start', 'end', 'type', 'visibility', 'owner', 'lab']
    list_filter = ['type', 'visibility']
    search_fields = ['title', 'description', 'location']
    date_hierarchy = 'start'
