from django.urls import path
from .views import (
    inventory_list_create, inventory_detail, inventory_adjust, inventory_low_stock,
    inventory_duplicates, inventory_reconcile, inventory_export,
    equipment_list_create, equipment_detail
)

urlpatterns = [
    # Inventory endpoints
    path('inventory/', inventory_list_create, name='inventory-list-create'),
    path('inventory/low-stock/', inventory_low_stock, name='inventory-low-stock'),
    path('inventory/duplicates/', inventory_duplicates, name='inventory-duplicates'),
    path('inventory/reconcile/', inventory_reconcile, name='inventory-reconcile'),
    path('inventory/export/', inventory_export, name='inventory-export'),
    path('inventory/<int:pk>/', inventory_detail, name='inventory-detail'),
    path('inventory/<int:pk>/adjust/', inventory_adjust, name='inventory-adjust'),

    # Equipment endpoints
    path('equipment/', equipment_list_create, name='equipment-list-create'),
    path('equipment/<int:pk>/', equipment_detail, name='equipment-detail'),
]
