from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.shortcuts import get_object_or_404
import logging

from momentum.core.exports import ORDER_COLUMNS, csv_response
from momentum.core.pagination import paginated_response
from momentum.core.utils import create_audit_log, diff_instance
from momentum.funding.services import FundingError
from momentum.inventory.services import InventoryError
from .categories import CATEGORIES
from .filters import OrderFilter
from .models import Order
from .serializers import OrderSerializer, OrderStatusSerializer
from .services import create_order, delete_order, update_order

logger = logging.getLogger(__name__)


def _order_queryset():
    return Order.objects.select_related('account', 'allocation', 'master_project', 'ordered_by')


def _reconciliation_payload(result):
    if result is None:
        return None
    return {'action': result['action'], 'inventory_item': result['item'].id, 'message': result['message']}


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def order_list_create(request):
    """List orders or create a new one (booked on the funding ledger)"""
    if request.method == 'GET':
        queryset = OrderFilter(request.query_params, queryset=_order_queryset()).qs
        return paginated_response(request, queryset, OrderSerializer)

    serializer = OrderSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    try:
        order, reconciliation = create_order(serializer.validated_data, user=request.user)
    except (FundingError, InventoryError) as e:
        logger.error(f"Order creation failed: {str(e)}")
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

    create_audit_log(request=request, action='create', model_name='Order', object_id=order.id,
                     object_name=order.product_name, object_reference=order.cat_num or None,
                     changes={'status': order.status, 'price_ex_vat': str(order.price_ex_vat),
                              'account': order.account_id})
    data = OrderSerializer(order).data
    data['reconciliation'] = _reconciliation_payload(reconciliation)
    return Response(data, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def order_detail(request, pk):
    """Retrieve, update or delete an order"""
    order = get_object_or_404(_order_queryset(), pk=pk)

    if request.method == 'GET':
        return Response(OrderSerializer(order).data)

    if request.method in ('PUT', 'PATCH'):
        serializer = OrderSerializer(order, data=request.data, partial=request.method == 'PATCH')
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        changes = diff_instance(order, serializer.validated_data)
        try:
            order, reconciliation = update_order(order, serializer.validated_data, user=request.user)
        except (FundingError, InventoryError) as e:
            logger.error(f"Order {pk} update failed: {str(e)}")
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
        create_audit_log(request=request, action='update', model_name='Order', object_id=order.id,
                         object_name=order.product_name, changes=changes)
        data = OrderSerializer(order).data
        data['reconciliation'] = _reconciliation_payload(reconciliation)
        return Response(data)

    order_id, product_name = order.id, order.product_name
    try:
        delete_order(order, user=request.user)
    except FundingError as e:
        logger.error(f"Order {pk} delete failed: {str(e)}")
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
    create_audit_log(request=request, action='delete', model_name='Order', object_id=order_id,
                     object_name=product_name)
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def order_status(request, pk):
    """Move an order to another status: {"status": "ordered"|"received"|..., "actual_cost"?}"""
    order = get_object_or_404(Order, pk=pk)
    serializer = OrderStatusSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    old_status = order.status
    try:
        order, reconciliation = update_order(order, serializer.validated_data, user=request.user)
    except (FundingError, InventoryError) as e:
        logger.error(f"Order {pk} status change failed: {str(e)}")
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

    create_audit_log(request=request, action='status_change', model_name='Order', object_id=order.id,
                     object_name=order.product_name,
                     changes={'status': {'old': old_status, 'new': order.status}})
    data = OrderSerializer(order).data
    data['reconciliation'] = _reconciliation_payload(reconciliation)
    return Response(data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def order_categories(request):
    """The supply category catalogue"""
    return Response(CATEGORIES)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def order_export(request):
    """Export the (filtered) order list as CSV"""
    queryset = OrderFilter(request.query_params, queryset=_order_queryset()).qs
    rows = [
        {
            'product_name': order.product_name,
            'cat_num': order.cat_num,
            'status': order.status,
            'price_ex_vat': order.price_ex_vat,
            'ordered_by': order.ordered_by.full_name if order.ordered_by_id else '',
            'ordered_date': order.ordered_date,
            'received_date': order.received_date,
            'account': order.account.account_number,
            'category': order.category,
            'subcategory': order.subcategory,
        }
        for order in queryset
    ]
    create_audit_log(request=request, action='export', model_name='Order', object_id='all',
                     changes={'count': len(rows)})
    return csv_response(rows, ORDER_COLUMNS, 'orders')
