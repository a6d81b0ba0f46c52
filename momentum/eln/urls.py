from django.urls import path
from .views import experiment_list_create, experiment_detail, experiment_deduct, experiment_add_item

urlpatterns = [
    path('experiments/', experiment_list_create, name='experiment-list-create'),
    path('experiments/<int:pk>/', experiment_detail, name='experiment-detail'),
    path('experiments/<int:pk>/deduct/', experiment_deduct, name='experiment-deduct'),
    path('experiments/<int:pk>/items/', experiment_add_item, name='experiment-add-item'),
]
