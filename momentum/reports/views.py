from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.utils import timezone
import logging

from momentum.core.exports import backup_filename, build_full_backup, json_response
from momentum.core.permissions import IsFundingAdmin
from momentum.core.utils import create_audit_log
from .services import collect_backup_data, get_dashboard_kpis

logger = logging.getLogger(__name__)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def dashboard(request):
    """
    Dashboard KPIs: project, order, inventory, event and experiment counts
    plus funding totals. Cached for a few minutes; ?lab= narrows to one lab.
    """
    lab_id = request.query_params.get('lab')
    try:
        lab_id = int(lab_id) if lab_id else None
    except ValueError:
        return Response({'error': 'lab must be a number'}, status=status.HTTP_400_BAD_REQUEST)

    response = Response(get_dashboard_kpis(lab_id))
    # Authenticated content; browsers may reuse it briefly
    response['Cache-Control'] = 'private, max-age=60'
    return response


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsFundingAdmin])
def full_backup(request):
    """Download every collection as one JSON backup file"""
    now = timezone.now()
    data = collect_backup_data()
    counts = {name: len(rows) for name, rows in data.items()}
    logger.info(f"Full backup requested by {request.user.username}: {counts}")
    create_audit_log(request=request, action='export', model_name='Backup', object_id='all', changes=counts)
    return json_response(build_full_backup(data, when=now), 'backup', filename=backup_filename(now))
