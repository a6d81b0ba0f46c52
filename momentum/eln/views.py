from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.shortcuts import get_object_or_404
from django.db import transaction
import logging
import uuid

from momentum.core.pagination import paginated_response
from momentum.core.utils import create_audit_log, diff_instance
from momentum.inventory.services import InventoryError
from .filters import ELNExperimentFilter
from .models import ELNExperiment
from .serializers import DeductionSerializer, ELNExperimentSerializer, ELNItemSerializer
from .services import deduct_experiment_inventory, next_experiment_number

logger = logging.getLogger(__name__)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def experiment_list_create(request):
    """List notebook experiments or start a new one (numbered EXP-<year>-NNN)"""
    if request.method == 'GET':
        queryset = ELNExperimentFilter(request.query_params, queryset=ELNExperiment.objects.select_related('master_project')).qs
        return paginated_response(request, queryset, ELNExperimentSerializer)

    serializer = ELNExperimentSerializer(data=request.data)
    if serializer.is_valid():
        with transaction.atomic():
            experiment = serializer.save(created_by=request.user, experiment_number=next_experiment_number())
        create_audit_log(request=request, action='create', model_name='ELNExperiment', object_id=experiment.id,
                         object_name=experiment.title, object_reference=experiment.experiment_number)
        return Response(ELNExperimentSerializer(experiment).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def experiment_detail(request, pk):
    experiment = get_object_or_404(ELNExperiment, pk=pk)

    if request.method == 'GET':
        return Response(ELNExperimentSerializer(experiment).data)

    if request.method in ('PUT', 'PATCH'):
        serializer = ELNExperimentSerializer(experiment, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            changes = diff_instance(experiment, serializer.validated_data)
            experiment = serializer.save()
            create_audit_log(request=request, action='update', model_name='ELNExperiment', object_id=experiment.id,
                             object_name=experiment.title, object_reference=experiment.experiment_number,
                             changes=changes)
            return Response(ELNExperimentSerializer(experiment).data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    experiment_id, title, number = experiment.id, experiment.title, experiment.experiment_number
    experiment.delete()
    create_audit_log(request=request, action='delete', model_name='ELNExperiment', object_id=experiment_id,
                     object_name=title, object_reference=number)
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def experiment_deduct(request, pk):
    """Deduct a consumed item from stock: {"inventory_item": id, "quantity"?: n}"""
    experiment = get_object_or_404(ELNExperiment, pk=pk)
    serializer = DeductionSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    item = serializer.validated_data['inventory_item']
    try:
        experiment, item = deduct_experiment_inventory(experiment, item, serializer.validated_data.get('quantity'))
    except InventoryError as e:
        logger.error(f"Deduction failed for experiment {pk}: {str(e)}")
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

    create_audit_log(request=request, action='stock_deduct', model_name='InventoryItem', object_id=item.id,
                     object_name=item.product_name, object_reference=experiment.experiment_number,
                     changes={'experiment': experiment.id, 'current_quantity': str(item.current_quantity)})
    return Response({
        'experiment': ELNExperimentSerializer(experiment).data,
        'inventory_item': {'id': item.id, 'current_quantity': item.current_quantity,
                           'inventory_level': item.inventory_level},
    })


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def experiment_add_item(request, pk):
    """Append a notebook item (note, image, data file, ...) to an experiment"""
    serializer = ELNItemSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    with transaction.atomic():
        experiment = get_object_or_404(ELNExperiment.objects.select_for_update(), pk=pk)
        items = list(experiment.items or [])
        item = {'id': uuid.uuid4().hex, 'order': len(items), **serializer.validated_data}
        items.append(item)
        experiment.items = items
        experiment.save(update_fields=['items', 'updated_at'])

    create_audit_log(request=request, action='update', model_name='ELNExperiment', object_id=experiment.id,
                     object_name=experiment.title, changes={'item_added': item['id'], 'type': item['type']})
    return Response(item, status=status.HTTP_201_CREATED)
