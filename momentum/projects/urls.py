from django.urls import path
from .views import (
    project_list_create, project_detail, project_summary, project_export,
    project_file_list_create, project_file_delete,
    workpackage_list_create, workpackage_detail,
    deliverable_list_create, deliverable_detail, deliverable_link_order, deliverable_unlink_order,
    deliverable_add_review,
    task_list_create, task_detail, task_export,
    subtask_list_create, subtask_detail, subtask_toggle_todo
)

urlpatterns = [
    path('projects/', project_list_create, name='project-list-create'),
    path('projects/export/', project_export, name='project-export'),
    path('projects/<int:pk>/', project_detail, name='project-detail'),
    path('projects/<int:pk>/summary/', project_summary, name='project-summary'),
    path('projects/<int:pk>/files/', project_file_list_create, name='project-file-list-create'),
    path('projects/<int:pk>/files/<int:file_id>/', project_file_delete, name='project-file-delete'),

    path('workpackages/', workpackage_list_create, name='workpackage-list-create'),
    path('workpackages/<int:pk>/', workpackage_detail, name='workpackage-detail'),

    path('deliverables/', deliverable_list_create, name='deliverable-list-create'),
    path('deliverables/<int:pk>/', deliverable_detail, name='deliverable-detail'),
    path('deliverables/<int:pk>/orders/', deliverable_link_order, name='deliverable-link-order'),
    path('deliverables/<int:pk>/orders/<int:order_id>/', deliverable_unlink_order, name='deliverable-unlink-order'),
    path('deliverables/<int:pk>/reviews/', deliverable_add_review, name='deliverable-add-review'),

    path('tasks/', task_list_create, name='task-list-create'),
    path('tasks/export/', task_export, name='task-export'),
    path('tasks/<int:pk>/', task_detail, name='task-detail'),

    path('subtasks/', subtask_list_create, name='subtask-list-create'),
    path('subtasks/<int:pk>/', subtask_detail, name='subtask-detail'),
    path('subtasks/<int:pk>/todos/<str:todo_id>/toggle/', subtask_toggle_todo, name='subtask-toggle-todo'),
]
