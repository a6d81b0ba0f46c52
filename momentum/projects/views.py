from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.shortcuts import get_object_or_404
from django.db import transaction
from django.utils import timezone
import logging
import uuid

from momentum.core.exports import PROJECT_COLUMNS, TASK_COLUMNS, csv_response
from momentum.core.pagination import paginated_response
from momentum.core.utils import create_audit_log, diff_instance
from momentum.orders.models import Order
from momentum.people.models import PersonProfile
from .filters import DeliverableFilter, MasterProjectFilter, SubtaskFilter, TaskFilter, WorkpackageFilter
from .models import MasterProject, Workpackage, Deliverable, Task, Subtask, ProjectFile
from .serializers import (
    DeliverableReviewSerializer, DeliverableSerializer, MasterProjectSerializer, ProjectFileSerializer,
    SubtaskSerializer, TaskSerializer, WorkpackageSerializer
)
from .services import (
    get_project_summary, recalculate_subtask_progress, recalculate_task_progress, recalculate_workpackage_progress,
    refresh_project_health, toggle_todo
)

logger = logging.getLogger(__name__)


# Projects

@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def project_list_create(request):
    """List master projects or create a new one"""
    if request.method == 'GET':
        queryset = MasterProject.objects.select_related('lab').prefetch_related('principal_investigators', 'team_members')
        queryset = MasterProjectFilter(request.query_params, queryset=queryset).qs.distinct()
        return paginated_response(request, queryset, MasterProjectSerializer)

    serializer = MasterProjectSerializer(data=request.data)
    if serializer.is_valid():
        project = serializer.save(created_by=request.user)
        refresh_project_health(project)
        create_audit_log(request=request, action='create', model_name='MasterProject', object_id=project.id,
                         object_name=project.name, object_reference=project.grant_number or None,
                         changes={'status': project.status, 'total_budget': str(project.total_budget)})
        return Response(MasterProjectSerializer(project).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def project_detail(request, pk):
    """Retrieve, update or delete a master project"""
    project = get_object_or_404(MasterProject, pk=pk)

    if request.method == 'GET':
        return Response(MasterProjectSerializer(project).data)

    if request.method in ('PUT', 'PATCH'):
        serializer = MasterProjectSerializer(project, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            changes = diff_instance(project, serializer.validated_data)
            project = serializer.save()
            refresh_project_health(project)
            create_audit_log(request=request, action='update', model_name='MasterProject', object_id=project.id,
                             object_name=project.name, changes=changes)
            return Response(MasterProjectSerializer(project).data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    project_id, project_name = project.id, project.name
    project.delete()
    create_audit_log(request=request, action='delete', model_name='MasterProject', object_id=project_id,
                     object_name=project_name)
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def project_summary(request, pk):
    """Health, counts and order-based budget of one project"""
    project = get_object_or_404(MasterProject, pk=pk)
    return Response(get_project_summary(project.id))


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def project_export(request):
    """Export the (filtered) project list as CSV"""
    queryset = MasterProjectFilter(request.query_params, queryset=MasterProject.objects.all()).qs
    create_audit_log(request=request, action='export', model_name='MasterProject', object_id='all',
                     changes={'count': queryset.count()})
    return csv_response(queryset, PROJECT_COLUMNS, 'projects')


# Workpackages

@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def workpackage_list_create(request):
    if request.method == 'GET':
        queryset = WorkpackageFilter(request.query_params, queryset=Workpackage.objects.select_related('project')).qs
        return paginated_response(request, queryset, WorkpackageSerializer)

    serializer = WorkpackageSerializer(data=request.data)
    if serializer.is_valid():
        workpackage = serializer.save()
        refresh_project_health(workpackage.project)
        create_audit_log(request=request, action='create', model_name='Workpackage', object_id=workpackage.id,
                         object_name=workpackage.name, changes={'project': workpackage.project_id})
        return Response(WorkpackageSerializer(workpackage).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def workpackage_detail(request, pk):
    workpackage = get_object_or_404(Workpackage.objects.select_related('project'), pk=pk)

    if request.method == 'GET':
        return Response(WorkpackageSerializer(workpackage).data)

    if request.method in ('PUT', 'PATCH'):
        serializer = WorkpackageSerializer(workpackage, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            changes = diff_instance(workpackage, serializer.validated_data)
            workpackage = serializer.save()
            refresh_project_health(workpackage.project)
            create_audit_log(request=request, action='update', model_name='Workpackage', object_id=workpackage.id,
                             object_name=workpackage.name, changes=changes)
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    project = workpackage.project
    wp_id, wp_name = workpackage.id, workpackage.name
    workpackage.delete()
    refresh_project_health(project)
    create_audit_log(request=request, action='delete', model_name='Workpackage', object_id=wp_id, object_name=wp_name)
    return Response(status=status.HTTP_204_NO_CONTENT)


# Deliverables

@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def deliverable_list_create(request):
    if request.method == 'GET':
        queryset = Deliverable.objects.select_related('workpackage').prefetch_related('contributors')
        queryset = DeliverableFilter(request.query_params, queryset=queryset).qs.distinct()
        return paginated_response(request, queryset, DeliverableSerializer)

    serializer = DeliverableSerializer(data=request.data)
    if serializer.is_valid():
        deliverable = serializer.save()
        refresh_project_health(deliverable.workpackage.project)
        create_audit_log(request=request, action='create', model_name='Deliverable', object_id=deliverable.id,
                         object_name=deliverable.name, changes={'workpackage': deliverable.workpackage_id})
        return Response(DeliverableSerializer(deliverable).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def deliverable_detail(request, pk):
    deliverable = get_object_or_404(Deliverable.objects.select_related('workpackage__project'), pk=pk)

    if request.method == 'GET':
        return Response(DeliverableSerializer(deliverable).data)

    if request.method in ('PUT', 'PATCH'):
        serializer = DeliverableSerializer(deliverable, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            changes = diff_instance(deliverable, serializer.validated_data)
            deliverable = serializer.save()
            refresh_project_health(deliverable.workpackage.project)
            create_audit_log(request=request, action='update', model_name='Deliverable', object_id=deliverable.id,
                             object_name=deliverable.name, changes=changes)
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    project = deliverable.workpackage.project
    deliverable_id, deliverable_name = deliverable.id, deliverable.name
    deliverable.delete()
    refresh_project_health(project)
    create_audit_log(request=request, action='delete', model_name='Deliverable', object_id=deliverable_id,
                     object_name=deliverable_name)
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def deliverable_link_order(request, pk):
    """Link an order to a deliverable: {"order": <id>}"""
    deliverable = get_object_or_404(Deliverable, pk=pk)
    order_id = request.data.get('order')
    if not order_id:
        return Response({'error': 'order is required'}, status=status.HTTP_400_BAD_REQUEST)
    order = get_object_or_404(Order, pk=order_id)

    order.deliverable = deliverable
    order.workpackage_id = order.workpackage_id or deliverable.workpackage_id
    order.save(update_fields=['deliverable', 'workpackage', 'updated_at'])
    create_audit_log(request=request, action='link_order', model_name='Deliverable', object_id=deliverable.id,
                     object_name=deliverable.name, changes={'order': order.id})
    return Response(DeliverableSerializer(deliverable).data)


@api_view(['DELETE'])
@permission_classes([IsAuthenticated])
def deliverable_unlink_order(request, pk, order_id):
    deliverable = get_object_or_404(Deliverable, pk=pk)
    order = get_object_or_404(Order, pk=order_id, deliverable=deliverable)

    order.deliverable = None
    order.save(update_fields=['deliverable', 'updated_at'])
    create_audit_log(request=request, action='unlink_order', model_name='Deliverable', object_id=deliverable.id,
                     object_name=deliverable.name, changes={'order': order.id})
    return Response(DeliverableSerializer(deliverable).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def deliverable_add_review(request, pk):
    """Append a review to the deliverable's review history"""
    deliverable = get_object_or_404(Deliverable, pk=pk)
    serializer = DeliverableReviewSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    data = serializer.validated_data
    reviewer = get_object_or_404(PersonProfile, pk=data['reviewer'])
    review = {
        'id': uuid.uuid4().hex,
        'reviewer_id': reviewer.id,
        'reviewer_name': reviewer.full_name,
        'reviewed_at': timezone.now().isoformat(),
        'approved': data['approved'],
        'summary': data.get('summary', ''),
        'notes': data.get('notes', ''),
        'changes': data.get('changes', ''),
    }
    with transaction.atomic():
        deliverable = Deliverable.objects.select_for_update().get(pk=deliverable.pk)
        deliverable.review_history = list(deliverable.review_history or []) + [review]
        deliverable.save(update_fields=['review_history', 'updated_at'])
    create_audit_log(request=request, action='review', model_name='Deliverable', object_id=deliverable.id,
                     object_name=deliverable.name, changes={'approved': review['approved'], 'reviewer': reviewer.id})
    return Response(DeliverableSerializer(deliverable).data, status=status.HTTP_201_CREATED)


# Tasks

@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def task_list_create(request):
    if request.method == 'GET':
        queryset = Task.objects.select_related('workpackage').prefetch_related('helpers', 'dependencies')
        queryset = TaskFilter(request.query_params, queryset=queryset).qs
        return paginated_response(request, queryset, TaskSerializer)

    serializer = TaskSerializer(data=request.data)
    if serializer.is_valid():
        task = serializer.save()
        recalculate_workpackage_progress(task.workpackage)
        create_audit_log(request=request, action='create', model_name='Task', object_id=task.id,
                         object_name=task.name, changes={'workpackage': task.workpackage_id})
        return Response(TaskSerializer(task).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def task_detail(request, pk):
    task = get_object_or_404(Task.objects.select_related('workpackage'), pk=pk)

    if request.method == 'GET':
        return Response(TaskSerializer(task).data)

    if request.method in ('PUT', 'PATCH'):
        serializer = TaskSerializer(task, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            changes = diff_instance(task, serializer.validated_data)
            task = serializer.save()
            recalculate_workpackage_progress(task.workpackage)
            create_audit_log(request=request, action='update', model_name='Task', object_id=task.id,
                             object_name=task.name, changes=changes)
            return Response(TaskSerializer(task).data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    workpackage = task.workpackage
    task_id, task_name = task.id, task.name
    task.delete()
    recalculate_workpackage_progress(workpackage)
    create_audit_log(request=request, action='delete', model_name='Task', object_id=task_id, object_name=task_name)
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def task_export(request):
    """Export the (filtered) task list as CSV"""
    queryset = TaskFilter(request.query_params, queryset=Task.objects.all()).qs
    create_audit_log(request=request, action='export', model_name='Task', object_id='all',
                     changes={'count': queryset.count()})
    return csv_response(queryset, TASK_COLUMNS, 'tasks')


# Subtasks

@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def subtask_list_create(request):
    if request.method == 'GET':
        queryset = SubtaskFilter(request.query_params, queryset=Subtask.objects.all()).qs
        return paginated_response(request, queryset, SubtaskSerializer)

    serializer = SubtaskSerializer(data=request.data)
    if serializer.is_valid():
        with transaction.atomic():
            subtask = serializer.save()
            recalculate_subtask_progress(subtask)
        create_audit_log(request=request, action='create', model_name='Subtask', object_id=subtask.id,
                         object_name=subtask.name, changes={'task': subtask.task_id})
        return Response(SubtaskSerializer(subtask).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def subtask_detail(request, pk):
    subtask = get_object_or_404(Subtask.objects.select_related('task__workpackage'), pk=pk)

    if request.method == 'GET':
        return Response(SubtaskSerializer(subtask).data)

    if request.method in ('PUT', 'PATCH'):
        serializer = SubtaskSerializer(subtask, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            changes = diff_instance(subtask, serializer.validated_data)
            with transaction.atomic():
                subtask = serializer.save()
                recalculate_subtask_progress(subtask)
            create_audit_log(request=request, action='update', model_name='Subtask', object_id=subtask.id,
                             object_name=subtask.name, changes=changes)
            return Response(SubtaskSerializer(subtask).data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    task = subtask.task
    subtask_id, subtask_name = subtask.id, subtask.name
    with transaction.atomic():
        subtask.delete()
        recalculate_task_progress(task)
        recalculate_workpackage_progress(task.workpackage)
    create_audit_log(request=request, action='delete', model_name='Subtask', object_id=subtask_id,
                     object_name=subtask_name)
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def subtask_toggle_todo(request, pk, todo_id):
    """Flip a todo and recalculate subtask, task and workpackage progress"""
    subtask = get_object_or_404(Subtask.objects.select_related('task__workpackage'), pk=pk)
    try:
        with transaction.atomic():
            subtask = toggle_todo(subtask, todo_id)
    except KeyError:
        return Response({'error': 'Todo not found'}, status=status.HTTP_404_NOT_FOUND)
    return Response(SubtaskSerializer(subtask).data)


# Files

@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def project_file_list_create(request, pk):
    """List or attach files (stored by URL) for a project"""
    project = get_object_or_404(MasterProject, pk=pk)

    if request.method == 'GET':
        return Response(ProjectFileSerializer(project.files.all(), many=True).data)

    data = request.data.copy()
    data['project'] = project.id
    serializer = ProjectFileSerializer(data=data)
    if serializer.is_valid():
        project_file = serializer.save(uploaded_by=request.user)
        create_audit_log(request=request, action='create', model_name='ProjectFile', object_id=project_file.id,
                         object_name=project_file.name, changes={'project': project.id})
        return Response(ProjectFileSerializer(project_file).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['DELETE'])
@permission_classes([IsAuthenticated])
def project_file_delete(request, pk, file_id):
    project_file = get_object_or_404(ProjectFile, pk=file_id, project_id=pk)
    file_name = project_file.name
    project_file.delete()
    create_audit_log(request=request, action='delete', model_name='ProjectFile', object_id=file_id,
                     object_name=file_name)
    return Response(status=status.HTTP_204_NO_CONTENT)
