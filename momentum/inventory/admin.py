from django.contrib import admin
from .models import Equipment, InventoryItem


@admin.register(InventoryItem)
class InventoryItemAdmin(admin.ModelAdmin):
    list_display = ['product_name', 'cat_num', 'supplier', 'current_quantity', 'min_quantity',
                    'inventory_level', 'lab']
    list_filter = ['inventory_level', 'category']
    search_fields = ['product_name', 'cat_num', 'supplier']
    readonly_fields = ['inventory_level', 'created_at', 'updated_at']


@admin.register(Equipment)
class EquipmentAdmin(admin.ModelAdmin):
    list_display = ['name', 'make', 'model', 'serial_number', 'location', 'lab']
    search_fields = ['name', 'make', 'model', 'serial_number']
    filter_horizontal = ['supplies']
