from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.shortcuts import get_object_or_404
import logging

from momentum.core.exports import INVENTORY_COLUMNS, csv_response
from momentum.core.pagination import paginated_response
from momentum.core.utils import create_audit_log, diff_instance
from momentum.orders.models import Order
from .filters import EquipmentFilter, InventoryItemFilter
from .models import Equipment, InventoryItem
from .serializers import (
    EquipmentSerializer, InventoryItemSerializer, LowStockItemSerializer, ReconcileRequestSerializer,
    StockAdjustmentSerializer
)
from .services import InventoryError, adjust_stock, find_potential_duplicates, reconcile_multiple_orders

logger = logging.getLogger(__name__)

LOW_STOCK_LEVELS = ['empty', 'low']


def _item_queryset():
    return InventoryItem.objects.select_related('charge_to_account').prefetch_related('equipment_devices')


# Inventory items

@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def inventory_list_create(request):
    """List inventory items or add one"""
    if request.method == 'GET':
        queryset = InventoryItemFilter(request.query_params, queryset=_item_queryset()).qs.distinct()
    XX

    serializer = InventoryItemSerializer(data=request.data)
    if serializer.is_valid():
        item = serializer.save(created_by=request.user)
        create_audit_log(request=request, action='create', model_name='InventoryItem', object_id=item.id,
                         object_name=item.product_name, object_reference=item.cat_num or None,
                         changes={'current_quantity': str(item.current_quantity)})
        return Response(InventoryItemSerializer(item).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def inventory_detail(request, pk):
    """Retrieve, update or delete an inventory item"""
    item = get_object_or_404(_item_queryset(), pk=pk)

    if request.method == 'GET':
        return Response(InventoryItemSerializer(item).data)

    if request.method in ('PUT', 'PATCH'):
        serializer = InventoryItemSerializer(item, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            changes = diff_instance(item, serializer.validated_data)
            item = serializer.save()
            create_audit_log(request=request, action='update', model_name='InventoryItem', object_id=item.id,
                             object_name=item.product_name, changes=changes)
            return Response(InventoryItemSerializer(item).data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    item_id, product_name = item.id, item.product_name
    item.delete()
    create_audit_log(request=request, action='delete', model_name='InventoryItem', object_id=item_id,
                     object_name=product_name)
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def inventory_adjust(request, pk):
    """Add or remove stock: {"delta": -2}"""
    item = get_object_or_404(InventoryItem, pk=pk)
    serializer = StockAdjustmentSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    old_quantity = item.current_quantity
    try:
        item = adjust_stock(item, serializer.validated_data['delta'])
    except InventoryError as e:
        logger.error(f"Stock adjustment failed for item {pk}: {str(e)}")
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

    create_audit_log(request=request, action='stock_adjust', model_name='InventoryItem', object_id=item.id,
                     object_name=item.product_name,
                     changes={'current_quantity': {'old': str(old_quantity), 'new': str(item.current_quantity)}})
    return Response(InventoryItemSerializer(item).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def inventory_low_stock(request):
    """Items that are empty or at/below their minimum quantity"""
    queryset = _item_queryset().filter(inventory_level__in=LOW_STOCK_LEVELS)
    lab = request.query_params.get('lab')
    if lab:
        queryset = queryset.filter(lab_id=lab)
    return paginated_response(request, queryset, LowStockItemSerializer)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def inventory_duplicates(request):
    """Inventory items that may already hold what an order is for: ?order=<id>"""
    order_id = request.query_params.get('order')
    if not order_id:
        return Response({'error': 'order parameter is required'}, status=status.HTTP_400_BAD_REQUEST)
    order = get_object_or_404(Order, pk=order_id)

    duplicates = find_potential_duplicates(order)
    return Response({
        'order': order.id,
        'count': len(duplicates),
        'duplicates': InventoryItemSerializer(duplicates, many=True).data,
    })


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def inventory_reconcile(request):
    """Add received orders to inventory: {"orders": [1, 2, 3]}"""
    serializer = ReconcileRequestSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    order_ids = serializer.validated_data['orders']
    orders = list(Order.objects.filter(pk__in=order_ids).order_by('id'))
    missing = set(order_ids) - {o.id for o in orders}

    outcome = reconcile_multiple_orders(orders, user=request.user)
    summary = dict(outcome['summary'])
    summary['errors'] += len(missing)

    create_audit_log(request=request, action='reconcile', model_name='InventoryItem', object_id='bulk',
                     changes={'orders': order_ids, 'summary': summary})
    return Response({
        'results': [
            {'action': r['action'], 'inventory_item': r['item'].id, 'message': r['message']}
            for r in outcome['results']
        ],
        'summary': summary,
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def inventory_export(request):
    """Export the (filtered) inventory as CSV"""
    queryset = InventoryItemFilter(request.query_params, queryset=InventoryItem.objects.all()).qs.distinct()
    rows = list(queryset)
    create_audit_log(request=request, action='export', model_name='InventoryItem', object_id='all',
                     changes={'count': len(rows)})
    return csv_response(rows, INVENTORY_COLUMNS, 'inventory')


# Equipment

@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def equipment_list_create(request):
    """List equipment devices or add one"""
    if request.method == 'GET':
        queryset = EquipmentFilter(request.query_params, queryset=Equipment.objects.prefetch_related('supplies')).qs
        return paginated_response(request, queryset, EquipmentSerializer)

    serializer = EquipmentSerializer(data=request.data)
    if serializer.is_valid():
        device = serializer.save()
        create_audit_log(request=request, action='create', model_name='Equipment', object_id=device.id,
                         object_name=device.name, object_reference=device.serial_number or None)
        return Response(EquipmentSerializer(device).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def equipment_detail(request, pk):
    """Retrieve, update or delete an equipment device"""
    device = get_object_or_404(Equipment, pk=pk)

    if request.method == 'GET':
        return Response(EquipmentSerializer(device).data)

    if request.method in ('PUT', 'PATCH'):
        serializer = EquipmentSerializer(device, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            changes = diff_instance(device, serializer.validated_data)
            device = serializer.save()
            create_audit_log(request=request, action='update', model_name='Equipment', object_id=device.id,
                             object_name=device.name, changes=changes)
            return Response(EquipmentSerializer(device).data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    device_id, name = device.id, device.name
    device.delete()
    create_audit_log(request=request, action='delete', model_name='Equipment', object_id=device_id,
                     object_name=name)
    return Response(status=status.HTTP_204_NO_CONTENT)
