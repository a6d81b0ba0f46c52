from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.shortcuts import get_object_or_404
from django.db import transaction
import logging

from momentum.core.exports import PEOPLE_COLUMNS, csv_response
from momentum.core.pagination import paginated_response
from momentum.core.permissions import IsFundingAdmin
from momentum.core.utils import create_audit_log, diff_instance
from .filters import PersonProfileFilter
from .models import Lab, PersonProfile
from .serializers import LabSerializer, PersonProfileSerializer

logger = logging.getLogger(__name__)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def lab_list_create(request):
    """List labs or create a new lab"""
    if request.method == 'GET':
        labs = Lab.objects.all().order_by('name')
        return Response(LabSerializer(labs, many=True).data)

    serializer = LabSerializer(data=request.data)
    if serializer.is_valid():
        lab = serializer.save()
        create_audit_log(request=request, action='create', model_name='Lab', object_id=lab.id,
                         object_name=lab.name, changes={'name': lab.name})
        return Response(LabSerializer(lab).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def lab_detail(request, pk):
    """Retrieve, update or delete a lab. Changing the lab's funding defaults needs funding admin rights."""
    lab = get_object_or_404(Lab, pk=pk)

    if request.method == 'GET':
        return Response(LabSerializer(lab).data)

    if request.method in ('PUT', 'PATCH'):
        touches_funding = any(
            key in request.data for key in ('default_funding_account', 'default_allocation_amount', 'default_currency')
        )
        if touches_funding and not IsFundingAdmin().has_permission(request, None):
            return Response({'error': IsFundingAdmin.message}, status=status.HTTP_403_FORBIDDEN)
        serializer = LabSerializer(lab, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            changes = diff_instance(lab, serializer.validated_data)
            serializer.save()
            create_audit_log(request=request, action='update', model_name='Lab', object_id=lab.id,
                             object_name=lab.name, changes=changes)
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    lab_id, lab_name = lab.id, lab.name
    lab.delete()
    create_audit_log(request=request, action='delete', model_name='Lab', object_id=lab_id, object_name=lab_name)
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def profile_list_create(request):
    """List person profiles or create a new one"""
    if request.method == 'GET':
        queryset = PersonProfile.objects.select_related('lab', 'reports_to')
        queryset = PersonProfileFilter(request.query_params, queryset=queryset).qs
        return paginated_response(request, queryset.order_by('last_name', 'first_name'), PersonProfileSerializer)

    serializer = PersonProfileSerializer(data=request.data)
    if serializer.is_valid():
        # The default allocation is created by the post_save signal in the same transaction
        with transaction.atomic():
            profile = serializer.save()
        create_audit_log(request=request, action='create', model_name='PersonProfile', object_id=profile.id,
                         object_name=profile.full_name, object_reference=profile.email or None,
                         changes={'lab': profile.lab_id, 'position': profile.position})
        return Response(PersonProfileSerializer(profile).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def profile_detail(request, pk):
    """Retrieve, update or delete a person profile"""
    profile = get_object_or_404(PersonProfile.objects.select_related('lab'), pk=pk)

    if request.method == 'GET':
        return Response(PersonProfileSerializer(profile).data)

    if request.method in ('PUT', 'PATCH'):
        serializer = PersonProfileSerializer(profile, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            changes = diff_instance(profile, serializer.validated_data)
            serializer.save()
            create_audit_log(request=request, action='update', model_name='PersonProfile', object_id=profile.id,
                             object_name=profile.full_name, changes=changes)
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    profile_id, full_name = profile.id, profile.full_name
    profile.delete()
    create_audit_log(request=request, action='delete', model_name='PersonProfile', object_id=profile_id,
                     object_name=full_name)
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def profile_export(request):
    """Export the (filtered) people directory as CSV"""
    queryset = PersonProfile.objects.select_related('lab')
    queryset = PersonProfileFilter(request.query_params, queryset=queryset).qs.order_by('last_name', 'first_name')
    create_audit_log(request=request, action='export', model_name='PersonProfile', object_id='all',
                     changes={'count': queryset.count()})
    return csv_response(queryset, PEOPLE_COLUMNS, 'people')
