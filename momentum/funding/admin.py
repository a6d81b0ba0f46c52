from django.contrib import admin
from .models import Funder, FundingAccount, FundingAllocation, FundingNotification, FundingTransaction


@admin.register(Funder)
class FunderAdmin(admin.ModelAdmin):
    list_display = ['name', 'type', 'country']
    list_filter = ['type']
    search_fields = ['name']


@admin.register(FundingAccount)
class FundingAccountAdmin(admin.ModelAdmin):
    list_display = ['account_number', 'account_name', 'lab', 'total_budget', 'spent_amount',
                    'committed_amount', 'remaining_budget', 'currency', 'status']
    list_filter = ['status', 'account_type', 'currency']
    search_fields = ['account_number', 'account_name']
    readonly_fields = ['spent_amount', 'committed_amount', 'remaining_budget', 'created_at', 'updated_at']


@admin.register(FundingAllocation)
class FundingAllocationAdmin(admin.ModelAdmin):
    list_display = ['funding_account', 'type', 'person', 'project', 'allocated_amount',
                    'current_spent', 'current_committed', 'remaining_budget', 'status']
    list_filter = ['type', 'status']
    readonly_fields = ['current_spent', 'current_committed', 'remaining_budget', 'last_transaction_at']


@admin.register(FundingTransaction)
class FundingTransactionAdmin(admin.ModelAdmin):
    list_display = ['created_at', 'type', 'status', 'amount', 'currency', 'funding_account', 'order']
    list_filter = ['type', 'status', 'currency']
    search_fields = ['description', 'invoice_number', 'po_number', 'supplier_name']
    ordering = ['-created_at']
    readonly_fields = [f.name for f in FundingTransaction._meta.fields]


@admin.register(FundingNotification)
class FundingNotificationAdmin(admin.ModelAdmin):
    list_display = ['created_at', 'type', 'recipient', 'priority', 'is_read']
    list_filter = ['type', 'priority', 'is_read']
    search_fields = ['title', 'message']
    ordering = ['-created_at']
