from django.contrib import admin
from .models import Lab, PersonProfile


@admin.register(Lab)
class LabAdmin(admin.ModelAdmin):
    list_display = ['name', 'institute', 'organisation', 'default_funding_account', 'default_allocation_amount']
    search_fields = ['name', 'institute', 'organisation']
    ordering = ['name']


@admin.register(PersonProfile)
class PersonProfileAdmin(admin.ModelAdmin):
    list_display = ['first_name', 'last_name', 'email', 'position', 'user_role', 'lab']
    list_filter = ['position', 'user_role', 'lab']
    search_fields = ['first_name', 'last_name', 'email']
    ordering = ['last_name', 'first_name']
    raw_id_fields = ['user', 'reports_to']
