from django.contrib import admin
from .models import ELNExperiment


@admin.register(ELNExperiment)
class ELNExperimentAdmin(admin.ModelAdmin):
    list_display = ['experiment_number', 'title', 'status', 'master_project', 'lab', 'created_by', 'created_at']
    list_filter = ['status']
    search_fields = ['experiment_number', 'title', 'description']
    readonly_fields = ['experiment_number', 'consumed_inventory', 'created_at', 'updated_at']
    filter_horizontal = ['equipment_used']
