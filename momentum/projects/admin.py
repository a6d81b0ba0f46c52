from django.contrib import admin
from .models import MasterProject, Workpackage, Deliverable, Task, Subtask, ProjectFile


class WorkpackageInline(admin.TabularInline):
    model = Workpackage
    extra = 0
    fields = ['name', 'start_date', 'end_date', 'status', 'progress']


@admin.register(MasterProject)
class MasterProjectAdmin(admin.ModelAdmin):
    list_display = ['name', 'lab', 'type', 'status', 'health', 'progress', 'total_budget', 'currency', 'start_date', 'end_date']
    list_filter = ['status', 'health', 'type', 'lab']
    search_fields = ['name', 'grant_name', 'grant_number']
    readonly_fields = ['health', 'created_at', 'updated_at']
    filter_horizontal = ['principal_investigators', 'team_members']
    inlines = [WorkpackageInline]


@admin.register(Workpackage)
class WorkpackageAdmin(admin.ModelAdmin):
    list_display = ['name', 'project', 'status', 'progress', 'start_date', 'end_date']
    list_filter = ['status']
    search_fields = ['name', 'project__name']


@admin.register(Deliverable)
class DeliverableAdmin(admin.ModelAdmin):
    list_display = ['name', 'workpackage', 'status', 'progress', 'due_date']
    list_filter = ['status', 'importance']
    search_fields = ['name']


@admin.register(Task)
class TaskAdmin(admin.ModelAdmin):
    list_display = ['name', 'workpackage', 'deliverable', 'status', 'progress', 'primary_owner']
    list_filter = ['status', 'importance', 'type']
    search_fields = ['name']


@admin.register(Subtask)
class SubtaskAdmin(admin.ModelAdmin):
    list_display = ['name', 'task', 'status', 'progress']
    search_fields = ['name']


@admin.register(ProjectFile)
class ProjectFileAdmin(admin.ModelAdmin):
    list_display = ['name', 'project', 'mime_type', 'size', 'uploaded_by', 'created_at']
    search_fields = ['name']
