from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated, IsAdminUser, AllowAny
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer, TokenRefreshSerializer
from rest_framework_simplejwt.exceptions import InvalidToken, TokenError, AuthenticationFailed
from django.contrib.auth import get_user_model
from django.core.exceptions import ObjectDoesNotExist
from django.shortcuts import get_object_or_404
from django.db.models import Q
from .models import AuditLog
from .pagination import paginated_response
from .permissions import get_user_profile, is_funding_admin
from .serializers import UserSerializer, UserCreateSerializer, AuditLogSerializer

User = get_user_model()

SEARCH_RESULT_LIMIT = 10


class CustomTokenObtainPairSerializer(TokenObtainPairSerializer):
    def validate(self, attrs):
        data = super().validate(attrs)
        if not self.user.is_active:
            raise AuthenticationFailed('User account is disabled.')
        return data

    @classmethod
    def get_token(cls, user):
        token = super().get_token(user)
        token['username'] = user.username
        profile = get_user_profile(user)
        token['role'] = profile.user_role if profile else None
        token['lab'] = profile.lab_id if profile else None
        return token


class CustomTokenObtainPairView(TokenObtainPairView):
    serializer_class = CustomTokenObtainPairSerializer


class CustomTokenRefreshSerializer(TokenRefreshSerializer):
    """Custom token refresh serializer that handles deleted users gracefully"""
    def validate(self, attrs):
        try:
            return super().validate(attrs)
        except (InvalidToken, TokenError):
            raise InvalidToken('Token is invalid or expired.')
        except (ObjectDoesNotExist, User.DoesNotExist):
            # User referenced in token doesn't exist anymore
            raise InvalidToken('Token is invalid. User no longer exists.')


class CustomTokenRefreshView(TokenRefreshView):
    """Custom token refresh view that handles deleted users gracefully"""
    serializer_class = CustomTokenRefreshSerializer


@api_view(['POST'])
@permission_classes([AllowAny])
def register(request):
    """User registration endpoint"""
    serializer = UserCreateSerializer(data=request.data)
    if serializer.is_valid():
        user = serializer.save()
        token = CustomTokenObtainPairSerializer.get_token(user)
        return Response({
            'user': UserSerializer(user).data,
            'access': str(token.access_token),
            'refresh': str(token),
        }, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsAdminUser])
def user_list_create(request):
    """List all users or create a new user"""
    if request.method == 'GET':
        users = User.objects.all().order_by('username')
        serializer = UserSerializer(users, many=True)
        return Response(serializer.data)
    else:
        serializer = UserCreateSerializer(data=request.data)
        if serializer.is_valid():
            user = serializer.save()
            return Response(UserSerializer(user).data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsAdminUser])
def user_detail(request, pk):
    """Retrieve, update or delete a user"""
    user = get_object_or_404(User, pk=pk)

    if request.method == 'GET':
        serializer = UserSerializer(user)
        return Response(serializer.data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = UserSerializer(user, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        user.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def user_me(request):
    """Get current user with profile role and derived access flags"""
    user = request.user
    user_data = UserSerializer(user).data

    profile = get_user_profile(user)
    if profile:
        user_data['profile'] = {
            'id': profile.id,
            'full_name': profile.full_name,
            'position': profile.position,
            'lab': profile.lab_id,
            'lab_name': profile.lab_name,
        }
        user_data['role'] = profile.user_role
    else:
        user_data['profile'] = None
        user_data['role'] = None

    is_admin = user.is_superuser or user.is_staff
    role = user_data['role']
    user_data['is_admin'] = is_admin
    user_data['can_access_funding'] = is_funding_admin(user)
    # Everyone with a profile sees their own ledger
    user_data['can_access_ledger'] = is_admin or profile is not None
    user_data['can_manage_inventory'] = is_admin or role in ('pi', 'lab_manager')
    user_data['can_access_reports'] = is_admin or role in ('pi', 'finance_admin', 'lab_manager')

    return Response(user_data)


# AuditLog views (read-only)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def audit_log_list(request):
    """List audit logs with filtering"""
    queryset = AuditLog.objects.select_related('user')

    # Non-admins only see their own trail
    if not request.user.is_staff:
        queryset = queryset.filter(user=request.user)

    action_filter = request.query_params.get('action', None)
    if action_filter:
        queryset = queryset.filter(action=action_filter)

    model_filter = request.query_params.get('model', None)
    if model_filter:
        queryset = queryset.filter(model_name=model_filter)

    object_filter = request.query_params.get('object_id', None)
    if object_filter:
        queryset = queryset.filter(object_id=object_filter)

    date_from = request.query_params.get('date_from', None)
    date_to = request.query_params.get('date_to', None)
    if date_from:
        queryset = queryset.filter(created_at__date__gte=date_from)
    if date_to:
        queryset = queryset.filter(created_at__date__lte=date_to)

    return paginated_response(request, queryset.order_by('-created_at'), AuditLogSerializer)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def audit_log_detail(request, pk):
    """Retrieve an audit log"""
    audit_log = get_object_or_404(AuditLog, pk=pk)

    if not request.user.is_staff and audit_log.user != request.user:
        return Response({'error': 'Permission denied'}, status=status.HTTP_403_FORBIDDEN)

    serializer = AuditLogSerializer(audit_log)
    return Response(serializer.data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def global_search(request):
    """Global search across projects, people, orders, inventory and events"""
    query = request.query_params.get('q', '').strip()

    empty = {
        'projects': [],
        'people': [],
        'orders': [],
        'inventory': [],
        'events': [],
    }
    if not query:
        return Response(empty)

    from momentum.projects.models import MasterProject
    from momentum.people.models import PersonProfile
    from momentum.orders.models import Order
    from momentum.inventory.models import InventoryItem
    from momentum.events.models import CalendarEvent
    from momentum.projects.serializers import MasterProjectSerializer
    from momentum.people.serializers import PersonProfileSerializer
    from momentum.orders.serializers import OrderSerializer
    from momentum.inventory.serializers import InventoryItemSerializer
    from momentum.events.serializers import CalendarEventSerializer

    results = {}

    projects = MasterProject.objects.filter(
        Q(name__icontains=query) |
        Q(notes__icontains=query) |
        Q(grant_name__icontains=query) |
        Q(grant_number__icontains=query)
    )[:SEARCH_RESULT_LIMIT]
    results['projects'] = MasterProjectSerializer(projects, many=True).data

    people = PersonProfile.objects.filter(
        Q(first_name__icontains=query) |
        Q(last_name__icontains=query) |
        Q(email__icontains=query) |
        Q(position__icontains=query)
    )[:SEARCH_RESULT_LIMIT]
    results['people'] = PersonProfileSerializer(people, many=True).data

    orders = Order.objects.filter(
        Q(product_name__icontains=query) |
        Q(cat_num__icontains=query) |
        Q(supplier__icontains=query)
    )[:SEARCH_RESULT_LIMIT]
    results['orders'] = OrderSerializer(orders, many=True).data

    inventory = InventoryItem.objects.filter(
        Q(product_name__icontains=query) |
        Q(cat_num__icontains=query) |
        Q(notes__icontains=query)
    )[:SEARCH_RESULT_LIMIT]
    results['inventory'] = InventoryItemSerializer(inventory, many=True).data

    events = CalendarEvent.objects.filter(
        Q(title__icontains=query) |
        Q(description__icontains=query) |
        Q(location__icontains=query)
    )[:SEARCH_RESULT_LIMIT]
    results['events'] = CalendarEventSerializer(events, many=True).data

    return Response(results)
