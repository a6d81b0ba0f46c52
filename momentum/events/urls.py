from django.urls import path
from .views import event_list_create, event_detail, event_upcoming, event_export

urlpatterns = [
    path('events/', event_list_create, name='event-list-create'),
    path('events/upcoming/', event_upcoming, name='event-upcoming'),
    path('events/export/', event_export, name='event-export'),
    path('events/<int:pk>/', event_detail, name='event-detail'),
]
