from django.contrib import admin
from .models import Order


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ['product_name', 'cat_num', 'supplier', 'status', 'price_ex_vat', 'currency', 'account',
                    'allocation', 'ordered_date', 'received_date']
    list_filter = ['status', 'priority', 'category', 'currency']
    search_fields = ['product_name', 'cat_num', 'supplier', 'po_number', 'invoice_number']
    raw_id_fields = ['account', 'allocation', 'master_project', 'workpackage', 'deliverable', 'task',
                     'source_inventory_item', 'source_equipment', 'ordered_by']
    # Status changes must go through the API so the funding ledger stays in step
    readonly_fields = ['status', 'created_at', 'updated_at']
