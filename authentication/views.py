import logging

from rest_framework import generics, status, permissions, filters
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework_simplejwt.tokens import RefreshToken
from rest_framework_simplejwt.views import TokenObtainPairView
from django.db import connection, transaction
from django.utils import timezone
from django_filters.rest_framework import DjangoFilterBackend
from drf_spectacular.utils import extend_schema, OpenApiParameter, OpenApiExample
from drf_spectacular.types import OpenApiTypes

from shifts.models import Shift
from .exceptions import POSError
from .models import Branch, UserRole, AuditLog
from .permissions import (
    IsOwner, IsStaff, get_user_role, bind_restaurant_context,
    require_permission, Permissions
)
from .serializers import (
    UserSerializer, LoginSerializer, RestaurantSerializer, BranchSerializer,
    UserRoleSerializer, StaffCreateSerializer, RestaurantSettingsSerializer,
    AuditLogSerializer, ChangePasswordSerializer, EmailUpdateSerializer
)

logger = logging.getLogger(__name__)


# =============== AUTHENTICATION VIEWS ===============

class CustomTokenObtainPairView(TokenObtainPairView):
    """
    JWT login. The access token carries the caller's role, restaurant and branch
    so clients can route to the right screen without another request.
    """
    serializer_class = LoginSerializer

    @extend_schema(
        summary="User Login with JWT Token",
        description="""
        Authenticate with email and password.
        - Returns access/refresh tokens with role, restaurant_id and branch_id claims
        - Users without an active role are rejected
        - Staff of an inactive restaurant are rejected (system admins are not)
        """,
        request=LoginSerializer,
        responses={
            200: {
                'type': 'object',
                'properties': {
                    'refresh': {'type': 'string', 'description': 'JWT refresh token'},
                    'access': {'type': 'string', 'description': 'JWT access token'},
                    'user': {'type': 'object', 'description': 'User information'},
                    'role': {'type': 'string', 'description': 'Role of the user'},
                    'restaurant': {'type': 'object', 'description': 'Restaurant information'},
                    'branch_id': {'type': 'string', 'description': 'Assigned branch'},
                    'subscription_active': {'type': 'boolean'},
                }
            },
            400: {'description': 'Invalid credentials'},
            403: {'description': 'No active role or restaurant inactive'}
        },
        examples=[
            OpenApiExample(
                'Cashier Login',
                value={
                    "email": "cashier@restaurant.com",
                    "password": "SecurePassword123!"
                }
            )
        ]
    )
    def post(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        user = serializer.validated_data['user']
        user_role = get_user_role(user)
        if user_role is None or not user_role.is_active:
            logger.warning("Login rejected for %s: no active role", user.email)
            raise POSError('not_authorized', status_code=status.HTTP_403_FORBIDDEN)

        restaurant = user_role.restaurant
        if user_role.role != 'system_admin' and (restaurant is None or not restaurant.is_active):
            logger.warning("Login rejected for %s: restaurant inactive", user.email)
            raise POSError('restaurant_inactive', status_code=status.HTTP_403_FORBIDDEN)

        user.last_login = timezone.now()
        user.save(update_fields=['last_login'])

        # Generate tokens
        refresh = RefreshToken.for_user(user)
        refresh['email'] = user.email
        refresh['full_name'] = user.full_name
        refresh['role'] = user_role.role
        refresh['restaurant_id'] = str(restaurant.id) if restaurant else None
        refresh['branch_id'] = str(user_role.branch_id) if user_role.branch_id else None

        return Response({
            'refresh': str(refresh),
            'access': str(refresh.access_token),
            'user': UserSerializer(user).data,
            'role': user_role.role,
            'restaurant': RestaurantSerializer(restaurant).data if restaurant else None,
            'branch_id': str(user_role.branch_id) if user_role.branch_id else None,
            'subscription_active': restaurant.has_active_subscription if restaurant else True,
        }, status=status.HTTP_200_OK)


# =============== USER PROFILE ===============

class MyProfileView(generics.RetrieveUpdateAPIView):
    """
    Get and update current user's profile information.
    """
    serializer_class = UserSerializer
    permission_classes = [permissions.IsAuthenticated]

    @extend_schema(summary="Get My Profile", responses={200: UserSerializer})
    def get(self, request, *args, **kwargs):
        return super().get(request, *args, **kwargs)

    def get_object(self):
        return self.request.user

    def perform_update(self, serializer):
        # Email is the login and cannot change here
        serializer.validated_data.pop('email', None)
        serializer.validated_data.pop('password', None)
        serializer.validated_data.pop('is_active', None)
        serializer.save()


@extend_schema(
    summary="Current Session",
    description="Role, restaurant, branch, enabled modules and subscription state of the caller",
    responses={200: OpenApiTypes.OBJECT}
)
@api_view(['GET'])
@permission_classes([permissions.IsAuthenticated])
def me(request):
    user_role = bind_restaurant_context(request)
    restaurant = request.restaurant
    payload = {
        'user': UserSerializer(request.user).data,
        'role': user_role.role if user_role else None,
        'role_active': bool(user_role and user_role.is_active),
        'restaurant': RestaurantSerializer(restaurant).data if restaurant else None,
        'branch': BranchSerializer(request.branch).data if request.branch else None,
        'modules': None,
    }
    if restaurant is not None:
        settings_obj = restaurant.get_settings()
        payload['modules'] = {
            'inventory_enabled': settings_obj.inventory_enabled,
            'kds_enabled': settings_obj.kds_enabled,
            'qr_enabled': settings_obj.qr_enabled,
        }
    return Response(payload)


@extend_schema(
    summary="Change Password",
    request=ChangePasswordSerializer,
    responses={200: OpenApiTypes.OBJECT, 400: {'description': 'Invalid current password'}}
)
@api_view(['POST'])
@permission_classes([permissions.IsAuthenticated])
def change_password(request):
    serializer = ChangePasswordSerializer(data=request.data, context={'request': request})
    serializer.is_valid(raise_exception=True)

    request.user.set_password(serializer.validated_data['new_password'])
    request.user.save()
    logger.info("Password changed for %s", request.user.email)

    return Response({'message': 'Password changed successfully'})


@extend_schema(
    summary="Cashier Status",
    description="Whether the caller's role, branch and restaurant allow working on the POS",
    responses={200: OpenApiTypes.OBJECT}
)
@api_view(['GET'])
@permission_classes([permissions.IsAuthenticated])
def cashier_status(request):
    user_role = bind_restaurant_context(request)
    restaurant = request.restaurant
    branch = user_role.branch if user_role else None

    role_active = bool(user_role and user_role.is_active)
    branch_active = bool(branch and branch.is_active)
    restaurant_active = bool(restaurant and restaurant.is_active)
    subscription_active = bool(restaurant and restaurant.has_active_subscription)

    return Response({
        'role': user_role.role if user_role else None,
        'role_active': role_active,
        'branch_active': branch_active,
        'restaurant_active': restaurant_active,
        'subscription_active': subscription_active,
        'can_operate': role_active and branch_active and restaurant_active and subscription_active,
    })


# =============== BRANCH MANAGEMENT VIEWS ===============

class BranchListCreateView(generics.ListCreateAPIView):
    """
    List and create branches of the owner's restaurant.
    Creation respects the restaurant's branch limit.
    """
    serializer_class = BranchSerializer
    permission_classes = [IsOwner]

    def get_queryset(self):
        queryset = Branch.objects.filter(restaurant=self.request.restaurant)
        if self.request.query_params.get('include_inactive') not in ('1', 'true', 'True'):
            queryset = queryset.filter(is_active=True)
        return queryset

    def get_serializer_context(self):
        context = super().get_serializer_context()
        context['restaurant'] = getattr(self.request, 'restaurant', None)
        return context

    @extend_schema(
        summary="Create New Branch",
        description="""
        Create a new branch for the owner's restaurant.
        Rejected with `branch_limit_reached` when the restaurant already has
        `max_branches_allowed` active branches.
        """,
        request=BranchSerializer,
        responses={
            201: BranchSerializer,
            403: {'description': 'Branch limit reached'}
        }
    )
    def post(self, request, *args, **kwargs):
        return super().post(request, *args, **kwargs)

    @transaction.atomic
    def perform_create(self, serializer):
        restaurant = self.request.restaurant
        if not restaurant.can_add_branch():
            logger.warning(
                "Branch limit reached for restaurant %s (%s)",
                restaurant.id, restaurant.max_branches_allowed
            )
            raise POSError(
                'branch_limit_reached',
                status_code=status.HTTP_403_FORBIDDEN,
                extra={
                    'max_branches_allowed': restaurant.max_branches_allowed,
                    'active_branches': restaurant.active_branch_count,
                }
            )

        is_first = not restaurant.branches.exists()
        branch = serializer.save(restaurant=restaurant, is_default=serializer.validated_data.get('is_default', is_first))
        AuditLog.record(
            'BRANCH_CREATED', 'branch', branch.id,
            restaurant=restaurant, user=self.request.user,
            details={'name': branch.name, 'code': branch.code},
        )


class BranchDetailView(generics.RetrieveUpdateDestroyAPIView):
    """
    Retrieve, update or deactivate a branch.
    """
    serializer_class = BranchSerializer
    permission_classes = [IsOwner]
    lookup_field = 'id'
    lookup_url_kwarg = 'branch_id'

    def get_queryset(self):
        return Branch.objects.filter(restaurant=self.request.restaurant)

    def get_serializer_context(self):
        context = super().get_serializer_context()
        context['restaurant'] = getattr(self.request, 'restaurant', None)
        return context

    def perform_update(self, serializer):
        branch = serializer.instance
        reactivating = not branch.is_active and serializer.validated_data.get('is_active') is True
        if reactivating and not branch.restaurant.can_add_branch():
            raise POSError('branch_limit_reached', status_code=status.HTTP_403_FORBIDDEN)
        if serializer.validated_data.get('is_active') is False:
            self._check_can_deactivate(branch)
        serializer.save()

    @extend_schema(
        summary="Deactivate Branch",
        description="Soft-deletes a branch. Blocked while it has active cashiers or open shifts.",
        responses={204: None, 409: {'description': 'ACTIVE_CASHIERS or OPEN_SHIFTS'}}
    )
    def delete(self, request, *args, **kwargs):
        return super().delete(request, *args, **kwargs)

    def _check_can_deactivate(self, branch):
        if UserRole.objects.filter(branch=branch, role='cashier', is_active=True).exists():
            raise POSError('active_cashiers', message='ACTIVE_CASHIERS', status_code=status.HTTP_409_CONFLICT)
        if Shift.objects.filter(branch=branch, status='open').exists():
            raise POSError('open_shifts', message='OPEN_SHIFTS', status_code=status.HTTP_409_CONFLICT)

    def perform_destroy(self, instance):
        self._check_can_deactivate(instance)
        instance.is_active = False
        instance.save(update_fields=['is_active', 'updated_at'])
        AuditLog.record(
            'BRANCH_DEACTIVATED', 'branch', instance.id,
            restaurant=instance.restaurant, user=self.request.user,
        )


# =============== STAFF MANAGEMENT VIEWS ===============

class StaffListCreateView(generics.ListCreateAPIView):
    """
    List and create cashier / kitchen accounts of the owner's restaurant.
    """
    permission_classes = [IsOwner]
    filter_backends = [DjangoFilterBackend, filters.SearchFilter]
    filterset_fields = ['role', 'branch', 'is_active']
    search_fields = ['user__email', 'user__first_name', 'user__last_name']

    def get_serializer_class(self):
        if self.request.method == 'POST':
            return StaffCreateSerializer
        return UserRoleSerializer

    def get_queryset(self):
        return UserRole.objects.filter(
            restaurant=self.request.restaurant,
            role__in=['cashier', 'kitchen']
        ).select_related('user', 'branch')

    def get_serializer_context(self):
        context = super().get_serializer_context()
        context['restaurant'] = getattr(self.request, 'restaurant', None)
        return context

    @extend_schema(
        summary="Create Staff User",
        request=StaffCreateSerializer,
        responses={201: UserRoleSerializer, 400: {'description': 'Validation errors'}},
        examples=[
            OpenApiExample(
                'Create Cashier',
                value={
                    "email": "cashier@restaurant.com",
                    "password": "SecurePassword123!",
                    "first_name": "Jane",
                    "last_name": "Smith",
                    "role": "cashier",
                    "branch": "8d5e5b3c-8a3f-4a8e-9b7e-2f8f3c0d1a2b"
                }
            )
        ]
    )
    def post(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user_role = serializer.save()

        AuditLog.record(
            'STAFF_CREATED', 'user_role', user_role.id,
            restaurant=request.restaurant, user=request.user,
            details={'email': user_role.user.email, 'role': user_role.role, 'branch_id': user_role.branch_id},
        )
        logger.info("Staff %s created as %s in %s", user_role.user.email, user_role.role, request.restaurant.id)
        return Response(UserRoleSerializer(user_role).data, status=status.HTTP_201_CREATED)


class StaffDetailView(generics.RetrieveUpdateDestroyAPIView):
    """
    Activate / deactivate a staff member or move them to another branch.
    delete: Remove the login of a staff member without shift history.
    """
    serializer_class = UserRoleSerializer
    permission_classes = [IsOwner]
    lookup_field = 'id'
    lookup_url_kwarg = 'role_id'

    def get_queryset(self):
        return UserRole.objects.filter(
            restaurant=self.request.restaurant,
            role__in=['cashier', 'kitchen']
        ).select_related('user', 'branch')

    def get_serializer_context(self):
        context = super().get_serializer_context()
        context['restaurant'] = getattr(self.request, 'restaurant', None)
        return context

    def perform_update(self, serializer):
        user_role = serializer.save()
        AuditLog.record(
            'STAFF_UPDATED', 'user_role', user_role.id,
            restaurant=self.request.restaurant, user=self.request.user,
            details={'is_active': user_role.is_active, 'branch_id': user_role.branch_id},
        )

    @extend_schema(
        summary="Delete Staff User",
        description="Deletes the staff login. Staff with shift history must be deactivated instead.",
        responses={204: None, 409: {'description': 'staff_has_shifts'}}
    )
    def delete(self, request, *args, **kwargs):
        return super().delete(request, *args, **kwargs)

    @transaction.atomic
    def perform_destroy(self, instance):
        user = instance.user
        if Shift.objects.filter(cashier=user).exists():
            raise POSError('staff_has_shifts', status_code=status.HTTP_409_CONFLICT)
        AuditLog.record(
            'STAFF_DELETED', 'user', user.id,
            restaurant=self.request.restaurant, user=self.request.user,
            details={'email': user.email, 'role': instance.role},
        )
        logger.info("Staff %s deleted from %s", user.email, self.request.restaurant.id)
        user.delete()


@extend_schema(
    summary="Update Staff Email",
    request=EmailUpdateSerializer,
    responses={200: UserRoleSerializer, 409: {'description': 'email_taken'}}
)
@api_view(['POST'])
@permission_classes([IsOwner])
def update_staff_email(request, role_id):
    user_role = generics.get_object_or_404(
        UserRole.objects.select_related('user', 'branch'),
        id=role_id, restaurant=request.restaurant, role__in=['cashier', 'kitchen'],
    )
    user = user_role.user
    serializer = EmailUpdateSerializer(data=request.data, context={'user': user})
    serializer.is_valid(raise_exception=True)

    old_email = user.email
    user.email = serializer.validated_data['new_email']
    user.save(update_fields=['email'])
    AuditLog.record(
        'STAFF_EMAIL_UPDATED', 'user', user.id,
        restaurant=request.restaurant, user=request.user,
        details={'old_email': old_email, 'new_email': user.email},
    )
    return Response(UserRoleSerializer(user_role).data)


# =============== SETTINGS & AUDIT ===============

class RestaurantSettingsView(generics.RetrieveUpdateAPIView):
    """
    get: Pricing rules and enabled modules (any staff)
    put/patch: Update pricing rules (owners only)
    """
    serializer_class = RestaurantSettingsSerializer

    def get_permissions(self):
        if self.request.method in ['PUT', 'PATCH']:
            return [IsOwner()]
        return [IsStaff()]

    def get_object(self):
        return self.request.restaurant.get_settings()

    def perform_update(self, serializer):
        settings_obj = serializer.save()
        AuditLog.record(
            'SETTINGS_UPDATED', 'restaurant_settings', settings_obj.id,
            restaurant=self.request.restaurant, user=self.request.user,
            details={key: str(value) for key, value in serializer.validated_data.items()},
        )


class AuditLogListView(generics.ListAPIView):
    """
    Audit trail of the owner's restaurant, newest first.
    """
    serializer_class = AuditLogSerializer
    permission_classes = [require_permission(Permissions.VIEW_AUDIT_LOGS)]
    filter_backends = [DjangoFilterBackend, filters.OrderingFilter]
    filterset_fields = ['entity_type', 'action', 'user']
    ordering_fields = ['created_at', 'action']
    ordering = ['-created_at']

    @extend_schema(
        summary="List Audit Logs",
        parameters=[
            OpenApiParameter('date_from', OpenApiTypes.DATE, description='Inclusive start date'),
            OpenApiParameter('date_to', OpenApiTypes.DATE, description='Inclusive end date'),
        ]
    )
    def get(self, request, *args, **kwargs):
        return super().get(request, *args, **kwargs)

    def get_queryset(self):
        queryset = AuditLog.objects.filter(restaurant=self.request.restaurant).select_related('user')
        date_from = self.request.query_params.get('date_from')
        date_to = self.request.query_params.get('date_to')
        if date_from:
            queryset = queryset.filter(created_at__date__gte=date_from)
        if date_to:
            queryset = queryset.filter(created_at__date__lte=date_to)
        return queryset


# =============== SYSTEM HEALTH & MONITORING ===============

@extend_schema(
    summary="System Health Check",
    description="Check system health and database connectivity",
    responses={
        200: {
            'type': 'object',
            'properties': {
                'status': {'type': 'string'},
                'timestamp': {'type': 'string'},
                'database': {'type': 'string'},
                'version': {'type': 'string'},
            }
        }
    }
)
@api_view(['GET'])
@permission_classes([permissions.AllowAny])
def health_check(request):
    try:
        # Test database connection
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")

        return Response({
            'status': 'healthy',
            'timestamp': timezone.now().isoformat(),
            'database': 'connected',
            'version': '1.0.0'
        })
    except Exception as e:
        logger.exception("Health check failed")
        return Response({
            'status': 'unhealthy',
            'timestamp': timezone.now().isoformat(),
            'database': 'disconnected',
            'error': str(e)
        }, status=status.HTTP_503_SERVICE_UNAVAILABLE)
