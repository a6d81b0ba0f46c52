from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.shortcuts import get_object_or_404
from django.db import transaction
from django.db.models import ProtectedError
from django.utils import timezone
import logging

from momentum.core.exports import TRANSACTION_COLUMNS, csv_response
from momentum.core.pagination import paginated_response
from momentum.core.permissions import IsFundingAdmin, get_user_profile
from momentum.core.utils import create_audit_log, diff_instance
from .filters import FundingAccountFilter, FundingAllocationFilter, FundingTransactionFilter
from .models import Funder, FundingAccount, FundingAllocation, FundingNotification, FundingTransaction
from .notifications import mark_read
from .serializers import (
    FunderSerializer, FundingAccountSerializer, FundingAllocationSerializer,
    FundingNotificationSerializer, FundingTransactionSerializer, ManualTransactionSerializer
)
from .services import (
    FundingError, allocation_warning, check_sufficient_funds, get_active_allocations,
    get_lab_funding_summary, get_total_remaining_budget, record_allocation_event,
    record_manual_transaction, refresh_allocation_status
)

logger = logging.getLogger(__name__)


def _forbidden():
    return Response({'error': IsFundingAdmin.message}, status=status.HTTP_403_FORBIDDEN)


def _is_admin(request):
    return IsFundingAdmin().has_permission(request, None)


# Funders

@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def funder_list_create(request):
    """List funders or create one (funding admins)"""
    if request.method == 'GET':
        return Response(FunderSerializer(Funder.objects.all().order_by('name'), many=True).data)

    if not _is_admin(request):
        return _forbidden()
    serializer = FunderSerializer(data=request.data)
    if serializer.is_valid():
        funder = serializer.save(created_by=request.user)
        create_audit_log(request=request, action='create', model_name='Funder', object_id=funder.id,
                         object_name=funder.name)
        return Response(FunderSerializer(funder).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsFundingAdmin])
def funder_detail(request, pk):
    """Retrieve, update or delete a funder"""
    funder = get_object_or_404(Funder, pk=pk)

    if request.method == 'GET':
        return Response(FunderSerializer(funder).data)

    if request.method in ('PUT', 'PATCH'):
        serializer = FunderSerializer(funder, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            changes = diff_instance(funder, serializer.validated_data)
            serializer.save()
            create_audit_log(request=request, action='update', model_name='Funder', object_id=funder.id,
                             object_name=funder.name, changes=changes)
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    try:
        funder_id, funder_name = funder.id, funder.name
        funder.delete()
    except ProtectedError:
        return Response({'error': 'Funder still has funding accounts'}, status=status.HTTP_400_BAD_REQUEST)
    create_audit_log(request=request, action='delete', model_name='Funder', object_id=funder_id, object_name=funder_name)
    return Response(status=status.HTTP_204_NO_CONTENT)


# Accounts

@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def account_list_create(request):
    """List funding accounts or create one (funding admins)"""
    if request.method == 'GET':
        queryset = FundingAccount.objects.select_related('funder')
        queryset = FundingAccountFilter(request.query_params, queryset=queryset).qs
        return paginated_response(request, queryset.order_by('account_number'), FundingAccountSerializer)

    if not _is_admin(request):
        return _forbidden()
    serializer = FundingAccountSerializer(data=request.data)
    if serializer.is_valid():
        account = serializer.save(created_by=request.user)
        create_audit_log(request=request, action='create', model_name='FundingAccount', object_id=account.id,
                         object_name=account.account_name, object_reference=account.account_number,
                         changes={'total_budget': str(account.total_budget), 'currency': account.currency})
        return Response(FundingAccountSerializer(account).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def account_detail(request, pk):
    """Retrieve, update or delete a funding account"""
    account = get_object_or_404(FundingAccount.objects.select_related('funder'), pk=pk)

    if request.method == 'GET':
        return Response(FundingAccountSerializer(account).data)

    if not _is_admin(request):
        return _forbidden()

    if request.method in ('PUT', 'PATCH'):
        serializer = FundingAccountSerializer(account, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            changes = diff_instance(account, serializer.validated_data)
            serializer.save()
            create_audit_log(request=request, action='update', model_name='FundingAccount', object_id=account.id,
                             object_name=account.account_name, object_reference=account.account_number,
                             changes=changes)
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    account_id, account_name, account_number = account.id, account.account_name, account.account_number
    try:
        account.delete()
    except ProtectedError:
        return Response({'error': 'Account has orders charged to it and cannot be deleted'},
                        status=status.HTTP_400_BAD_REQUEST)
    create_audit_log(request=request, action='delete', model_name='FundingAccount', object_id=account_id,
                     object_name=account_name, object_reference=account_number)
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def account_check_funds(request, pk):
    """Check whether an account can cover ?amount="""
    account = get_object_or_404(FundingAccount, pk=pk)
    return Response(check_sufficient_funds(account, request.query_params.get('amount', 0)))


# Allocations

@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsFundingAdmin])
def allocation_list_create(request):
    """List allocations or create one"""
    if request.method == 'GET':
        queryset = FundingAllocation.objects.select_related('funding_account', 'person', 'project')
        queryset = FundingAllocationFilter(request.query_params, queryset=queryset).qs
        return paginated_response(request, queryset, FundingAllocationSerializer)

    serializer = FundingAllocationSerializer(data=request.data)
    if serializer.is_valid():
        with transaction.atomic():
            allocation = serializer.save(created_by=request.user)
            if allocation.lab_id is None and allocation.funding_account.lab_id:
                allocation.lab_id = allocation.funding_account.lab_id
            refresh_allocation_status(allocation)
            allocation.save()
            record_allocation_event(allocation, 'ALLOCATION_CREATED', allocation.allocated_amount or 0,
                                    f"Allocation created on {allocation.funding_account.account_name}",
                                    user=request.user)
        create_audit_log(request=request, action='create', model_name='FundingAllocation', object_id=allocation.id,
                         object_reference=allocation.funding_account.account_number,
                         changes={'type': allocation.type, 'allocated_amount': str(allocation.allocated_amount)})
        return Response(FundingAllocationSerializer(allocation).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsFundingAdmin])
def allocation_detail(request, pk):
    """Retrieve, update or delete an allocation"""
    allocation = get_object_or_404(FundingAllocation.objects.select_related('funding_account'), pk=pk)

    if request.method == 'GET':
        return Response(FundingAllocationSerializer(allocation).data)

    if request.method in ('PUT', 'PATCH'):
        serializer = FundingAllocationSerializer(allocation, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            old_amount = allocation.allocated_amount
            changes = diff_instance(allocation, serializer.validated_data)
            with transaction.atomic():
                allocation = serializer.save()
                refresh_allocation_status(allocation)
                allocation.save()
                if allocation.allocated_amount != old_amount:
                    delta = (allocation.allocated_amount or 0) - (old_amount or 0)
                    record_allocation_event(allocation, 'ALLOCATION_ADJUSTED', delta,
                                            f"Allocation changed from {old_amount} to {allocation.allocated_amount}",
                                            user=request.user)
            action = 'allocation_adjust' if 'allocated_amount' in changes else 'update'
            create_audit_log(request=request, action=action, model_name='FundingAllocation', object_id=allocation.id,
                             object_reference=allocation.funding_account.account_number, changes=changes)
            return Response(FundingAllocationSerializer(allocation).data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    if allocation.current_committed > 0:
        return Response({'error': 'Allocation has outstanding committed orders'}, status=status.HTTP_400_BAD_REQUEST)
    allocation_id = allocation.id
    allocation.delete()
    create_audit_log(request=request, action='delete', model_name='FundingAllocation', object_id=allocation_id)
    return Response(status=status.HTTP_204_NO_CONTENT)


# Transactions

@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsFundingAdmin])
def transaction_list_create(request):
    """List ledger transactions or book a manual ADJUSTMENT / REFUND"""
    if request.method == 'GET':
        queryset = FundingTransaction.objects.select_related('funding_account')
        queryset = FundingTransactionFilter(request.query_params, queryset=queryset).qs
        return paginated_response(request, queryset.order_by('-created_at', '-id'), FundingTransactionSerializer)

    serializer = ManualTransactionSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    data = serializer.validated_data
    try:
        tx = record_manual_transaction(
            data['funding_account'], data['type'], data['amount'],
            description=data.get('description', ''),
            allocation=data.get('allocation'),
            user=request.user,
            invoice_number=data.get('invoice_number', ''),
            notes=data.get('notes', ''),
        )
    except FundingError as e:
        logger.warning(f"Manual transaction rejected: {str(e)}")
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

    create_audit_log(request=request, action='funding_transaction', model_name='FundingTransaction', object_id=tx.id,
                     object_reference=tx.funding_account.account_number,
                     changes={'type': tx.type, 'amount': str(tx.amount)})
    return Response(FundingTransactionSerializer(tx).data, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsFundingAdmin])
def transaction_detail(request, pk):
    tx = get_object_or_404(FundingTransaction, pk=pk)
    return Response(FundingTransactionSerializer(tx).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsFundingAdmin])
def transaction_export(request):
    """Export (filtered) ledger transactions as CSV"""
    queryset = FundingTransactionFilter(request.query_params, queryset=FundingTransaction.objects.all()).qs
    queryset = queryset.order_by('-created_at', '-id')
    rows = [
        {
            'created_at': tx.created_at,
            'type': tx.type,
            'status': tx.status,
            'amount': tx.amount,
            'currency': tx.currency,
            'account': tx.funding_account_id,
            'allocation': tx.allocation_id,
            'order': tx.order_id,
            'description': tx.description,
        }
        for tx in queryset
    ]
    create_audit_log(request=request, action='export', model_name='FundingTransaction', object_id='all',
                     changes={'count': len(rows)})
    return csv_response(rows, TRANSACTION_COLUMNS, 'transactions')


# Summaries

@api_view(['GET'])
@permission_classes([IsAuthenticated, IsFundingAdmin])
def funding_summary_view(request):
    """Summary card: budget, spent, committed, remaining and critical allocations (?lab=)"""
    lab_id = request.query_params.get('lab') or None
    try:
        lab_id = int(lab_id) if lab_id else None
    except ValueError:
        return Response({'error': 'lab must be an integer'}, status=status.HTTP_400_BAD_REQUEST)
    return Response(get_lab_funding_summary(lab_id))


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def personal_ledger(request):
    """The current user's own PERSON allocations and their transactions"""
    profile = get_user_profile(request.user)
    if profile is None:
        return Response({'profile': None, 'allocations': [], 'transactions': [],
                         'total_remaining': 0, 'active_allocations': 0})

    allocations = list(
        FundingAllocation.objects.filter(type='PERSON', person=profile).select_related('funding_account')
    )
    transactions = FundingTransaction.objects.filter(allocation__in=allocations).order_by('-created_at', '-id')[:100]

    allocation_data = FundingAllocationSerializer(allocations, many=True).data
    for row, allocation in zip(allocation_data, allocations):
        row['warning_level'] = allocation_warning(allocation)

    return Response({
        'profile': profile.id,
        'allocations': allocation_data,
        'transactions': FundingTransactionSerializer(transactions, many=True).data,
        'total_remaining': get_total_remaining_budget(allocations),
        'active_allocations': len(get_active_allocations(allocations)),
    })


# Notifications

@api_view(['GET'])
@permission_classes([IsAuthenticated])
def notification_list(request):
    """The current user's funding notifications, newest first. ?unread=true for unread only"""
    profile = get_user_profile(request.user)
    if profile is None:
        return paginated_response(request, FundingNotification.objects.none(), FundingNotificationSerializer)

    notifications = FundingNotification.objects.filter(recipient=profile)
    if request.query_params.get('unread', '').lower() in ('1', 'true', 'yes'):
        notifications = notifications.filter(is_read=False)
    return paginated_response(request, notifications, FundingNotificationSerializer)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def notification_mark_read(request, pk):
    profile = get_user_profile(request.user)
    notification = get_object_or_404(FundingNotification, pk=pk, recipient=profile)
    mark_read(notification)
    return Response(FundingNotificationSerializer(notification).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def notification_mark_all_read(request):
    profile = get_user_profile(request.user)
    if profile is None:
        return Response({'updated': 0})
    updated = FundingNotification.objects.filter(recipient=profile, is_read=False) \
        .update(is_read=True, read_at=timezone.now())
    return Response({'updated': updated})
