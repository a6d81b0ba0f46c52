from django.urls import path
from .views import (
    order_list_create, order_detail, order_status, order_categories, order_export
)

urlpatterns = [
    path('orders/', order_list_create, name='order-list-create'),
    path('orders/categories/', order_categories, name='order-categories'),
    path('orders/export/', order_export, name='order-export'),
    path('orders/<int:pk>/', order_detail, name='order-detail'),
    path('orders/<int:pk>/status/', order_status, name='order-status'),
]
