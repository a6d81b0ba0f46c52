from django.urls import path
from .views import (
    funder_list_create, funder_detail,
    account_list_create, account_detail, account_check_funds,
    allocation_list_create, allocation_detail,
    transaction_list_create, transaction_detail, transaction_export,
    funding_summary_view, personal_ledger,
    notification_list, notification_mark_read, notification_mark_all_read
)

urlpatterns = [
    path('funding/funders/', funder_list_create, name='funder-list-create'),
    path('funding/funders/<int:pk>/', funder_detail, name='funder-detail'),

    path('funding/accounts/', account_list_create, name='account-list-create'),
    path('funding/accounts/<int:pk>/', account_detail, name='account-detail'),
    path('funding/accounts/<int:pk>/check-funds/', account_check_funds, name='account-check-funds'),

    path('funding/allocations/', allocation_list_create, name='allocation-list-create'),
    path('funding/allocations/<int:pk>/', allocation_detail, name='allocation-detail'),

    path('funding/transactions/', transaction_list_create, name='transaction-list-create'),
    path('funding/transactions/export/', transaction_export, name='transaction-export'),
    path('funding/transactions/<int:pk>/', transaction_detail, name='transaction-detail'),

    path('funding/summary/', funding_summary_view, name='funding-summary'),
    path('funding/ledger/', personal_ledger, name='personal-ledger'),

    path('funding/notifications/', notification_list, name='notification-list'),
    path('funding/notifications/read-all/', notification_mark_all_read, name='notification-mark-all-read'),
    path('funding/notifications/<int:pk>/read/', notification_mark_read, name='notification-mark-read'),
]
