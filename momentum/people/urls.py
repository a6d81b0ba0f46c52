from django.urls import path
from .views import (
    lab_list_create, lab_detail,
    profile_list_create, profile_detail, profile_export
)

urlpatterns = [
    path('labs/', lab_list_create, name='lab-list-create'),
    path('labs/<int:pk>/', lab_detail, name='lab-detail'),

    path('people/', profile_list_create, name='profile-list-create'),
    path('people/export/', profile_export, name='profile-export'),
    path('people/<int:pk>/', profile_detail, name='profile-detail'),
]
