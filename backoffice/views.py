import logging
from datetime import timedelta

from rest_framework import generics, status, filters
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from django.db import transaction
from django.db.models import Count, Q
from django.shortcuts import get_object_or_404
from django.utils import timezone
from django.utils.dateparse import parse_date
from django_filters.rest_framework import DjangoFilterBackend
from drf_spectacular.utils import extend_schema, OpenApiParameter
from drf_spectacular.types import OpenApiTypes

from authentication.exceptions import POSError
from authentication.models import (
    AuditLog, Branch, CustomUser, Restaurant, RestaurantSettings, RestaurantSubscription, UserRole,
)
from authentication.permissions import IsSystemAdmin, Permissions, require_permission
from authentication.serializers import EmailUpdateSerializer, SubscriptionSerializer
from shifts.models import Shift
from . import reports
from .exports import cash_differences_workbook, sales_summary_workbook, xlsx_response
from .serializers import (
    AdminRestaurantSerializer, SubscriptionPeriodSerializer, CreateRestaurantSerializer,
    AssignOwnerSerializer, ResetPasswordSerializer, ModulesSerializer, SetActiveSerializer,
    ShiftReportSerializer,
)

logger = logging.getLogger(__name__)

CanViewReports = require_permission(Permissions.VIEW_REPORTS)
CanExportReports = require_permission(Permissions.EXPORT_REPORTS)

DATE_RANGE_PARAMETERS = [
    OpenApiParameter('start_date', OpenApiTypes.DATE, description='Inclusive start date (default: 7 days ago)'),
    OpenApiParameter('end_date', OpenApiTypes.DATE, description='Inclusive end date (default: today)'),
    OpenApiParameter('branch', OpenApiTypes.UUID, description='Limit to one branch'),
]


# =============== SYSTEM ADMIN ===============

def _admin_restaurants():
    return Restaurant.objects.select_related('owner', 'subscription', 'settings').annotate(
        total_branches=Count('branches', distinct=True),
        staff_count=Count('user_roles', filter=Q(user_roles__role__in=('cashier', 'kitchen')), distinct=True),
    )


def _get_restaurant(restaurant_id):
    return get_object_or_404(Restaurant.objects.select_related('owner'), id=restaurant_id)


class AdminRestaurantListView(generics.ListAPIView):
    """
    All restaurants with subscription, owner and branch counts.
    """
    serializer_class = AdminRestaurantSerializer
    permission_classes = [IsSystemAdmin]
    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]
    filterset_fields = ['is_active']
    search_fields = ['name', 'name_ar', 'owner__email']
    ordering_fields = ['name', 'created_at']
    ordering = ['name']

    def get_queryset(self):
        restaurants = _admin_restaurants()
        # Expired subscriptions are persisted as such while listing
        for subscription in RestaurantSubscription.objects.filter(
            status='ACTIVE', end_date__lt=timezone.localdate()
        ):
            subscription.refresh_status()
        return restaurants


@extend_schema(
    summary="Create Restaurant With Subscription",
    description="""
    Creates the restaurant, its default branch, its settings and an ACTIVE
    subscription in one transaction. end_date = start_date + period months
    + bonus months (bonus clamped to 0-6).
    """,
    request=CreateRestaurantSerializer,
    responses={201: AdminRestaurantSerializer},
)
@api_view(['POST'])
@permission_classes([IsSystemAdmin])
def create_restaurant(request):
    serializer = CreateRestaurantSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data

    start_date = data.get('start_date') or timezone.localdate()
    end_date = RestaurantSubscription.compute_end_date(start_date, data['period'], data['bonus_months'])

    with transaction.atomic():
        restaurant = Restaurant.objects.create(
            name=data['name'],
            name_ar=data['name_ar'],
            logo_url=data['logo_url'],
            max_branches_allowed=data['max_branches_allowed'],
            is_active=True,
        )
        Branch.objects.create(restaurant=restaurant, name='Main Branch', code='MAIN', is_default=True)
        RestaurantSettings.objects.create(restaurant=restaurant)
        subscription = RestaurantSubscription.objects.create(
            restaurant=restaurant,
            period=data['period'],
            start_date=start_date,
            end_date=end_date,
            bonus_months=data['bonus_months'],
            status='ACTIVE',
            reason=data['reason'],
            created_by=request.user,
        )
        AuditLog.record(
            'SUBSCRIPTION_CREATED', 'restaurant', restaurant.id, restaurant=restaurant, user=request.user,
            details={
                'period': subscription.period,
                'bonus_months': subscription.bonus_months,
                'reason': subscription.reason or None,
                'start_date': start_date,
                'end_date': end_date,
            },
        )

    logger.info("Restaurant %s created with %s subscription until %s", restaurant.name, subscription.period, end_date)
    return Response({
        'success': True,
        'restaurant': AdminRestaurantSerializer(_admin_restaurants().get(id=restaurant.id)).data,
        'subscription': SubscriptionSerializer(subscription).data,
    }, status=status.HTTP_201_CREATED)


@extend_schema(
    summary="Renew Subscription",
    description="Replaces the restaurant's subscription period. Status becomes ACTIVE.",
    request=SubscriptionPeriodSerializer,
    responses={200: SubscriptionSerializer},
)
@api_view(['POST'])
@permission_classes([IsSystemAdmin])
def renew_subscription(request, restaurant_id):
    restaurant = _get_restaurant(restaurant_id)
    serializer = SubscriptionPeriodSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data

    start_date = data.get('start_date') or timezone.localdate()
    end_date = RestaurantSubscription.compute_end_date(start_date, data['period'], data['bonus_months'])

    with transaction.atomic():
        subscription, created = RestaurantSubscription.objects.update_or_create(
            restaurant=restaurant,
            defaults={
                'period': data['period'],
                'start_date': start_date,
                'end_date': end_date,
                'bonus_months': data['bonus_months'],
                'status': 'ACTIVE',
                'reason': data['reason'],
                'created_by': request.user,
            }
        )
        AuditLog.record(
            'SUBSCRIPTION_RENEWED', 'restaurant', restaurant.id, restaurant=restaurant, user=request.user,
            details={
                'period': subscription.period,
                'bonus_months': subscription.bonus_months,
                'reason': subscription.reason or None,
                'start_date': start_date,
                'end_date': end_date,
                'created': created,
            },
        )

    logger.info("Subscription of %s renewed until %s", restaurant.name, end_date)
    return Response({'success': True, 'subscription': SubscriptionSerializer(subscription).data})


@extend_schema(
    summary="Update Branch Limit",
    description="`max_branches_allowed` must be null (unlimited) or an integer >= 1.",
    request={'application/json': {'type': 'object', 'properties': {'max_branches_allowed': {'type': 'integer', 'nullable': True}}}},
)
@api_view(['POST'])
@permission_classes([IsSystemAdmin])
def update_branch_limit(request, restaurant_id):
    restaurant = _get_restaurant(restaurant_id)
    if 'max_branches_allowed' not in request.data:
        raise POSError('missing_fields', message='max_branches_allowed is required')

    value = request.data.get('max_branches_allowed')
    if value is not None:
        # bool is an int subclass but never a valid limit
        if isinstance(value, bool) or not isinstance(value, int) or value < 1:
            raise POSError('invalid_branch_limit')

    old_value = restaurant.max_branches_allowed
    restaurant.max_branches_allowed = value
    restaurant.save(update_fields=['max_branches_allowed', 'updated_at'])
    AuditLog.record(
        'RESTAURANT_BRANCH_LIMIT_UPDATED', 'restaurant', restaurant.id, restaurant=restaurant, user=request.user,
        details={'old_max_branches_allowed': old_value, 'new_max_branches_allowed': value},
    )
    return Response({
        'success': True,
        'restaurant_id': str(restaurant.id),
        'max_branches_allowed': value,
        'active_branches': restaurant.active_branch_count,
    })


@extend_schema(summary="Activate or Deactivate Restaurant", request=SetActiveSerializer)
@api_view(['POST'])
@permission_classes([IsSystemAdmin])
def set_restaurant_active(request, restaurant_id):
    restaurant = _get_restaurant(restaurant_id)
    serializer = SetActiveSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    previous = restaurant.is_active
    restaurant.is_active = serializer.validated_data['is_active']
    restaurant.save(update_fields=['is_active', 'updated_at'])
    AuditLog.record(
        'RESTAURANT_STATUS_CHANGED', 'restaurant', restaurant.id, restaurant=restaurant, user=request.user,
        details={'previous_is_active': previous, 'is_active': restaurant.is_active},
    )
    logger.info("Restaurant %s is_active=%s", restaurant.name, restaurant.is_active)
    return Response({'success': True, 'restaurant_id': str(restaurant.id), 'is_active': restaurant.is_active})


@extend_schema(
    summary="Assign Owner",
    description="""
    Creates the owner account, or attaches an existing account that has no
    role yet (or is already an owner). A password is required to create a
    new account.
    """,
    request=AssignOwnerSerializer,
)
@api_view(['POST'])
@permission_classes([IsSystemAdmin])
def assign_owner(request, restaurant_id):
    restaurant = _get_restaurant(restaurant_id)
    serializer = AssignOwnerSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data

    previous_owner_id = restaurant.owner_id
    with transaction.atomic():
        user = CustomUser.objects.filter(email__iexact=data['email']).first()
        created = user is None
        if created:
            if not data.get('password'):
                raise POSError('missing_fields', message='password is required to create the owner account')
            user = CustomUser.objects.create_user(
                email=data['email'],
                password=data['password'],
                first_name=data['first_name'],
                last_name=data['last_name'],
            )

        user_role = UserRole.objects.filter(user=user).first()
        if user_role is None:
            UserRole.objects.create(user=user, role='owner', restaurant=restaurant)
        elif user_role.role == 'owner':
            user_role.restaurant = restaurant
            user_role.is_active = True
            user_role.save(update_fields=['restaurant', 'is_active', 'updated_at'])
        else:
            raise POSError('validation_error', message=f"User already has the {user_role.role} role")

        # An owner runs one restaurant; the one they leave is left without an owner
        released = Restaurant.objects.filter(owner=user).exclude(id=restaurant.id)
        released_ids = [str(pk) for pk in released.values_list('id', flat=True)]
        released.update(owner=None, updated_at=timezone.now())

        restaurant.owner = user
        restaurant.save(update_fields=['owner', 'updated_at'])
        AuditLog.record(
            'OWNER_ASSIGNED', 'restaurant', restaurant.id, restaurant=restaurant, user=request.user,
            details={
                'previous_owner_id': str(previous_owner_id) if previous_owner_id else None,
                'new_owner_id': str(user.id),
                'new_owner_email': user.email,
                'account_created': created,
                'released_restaurant_ids': released_ids,
            },
        )

    return Response({
        'success': True,
        'restaurant_id': str(restaurant.id),
        'owner_id': str(user.id),
        'owner_email': user.email,
        'previous_owner_id': str(previous_owner_id) if previous_owner_id else None,
    }, status=status.HTTP_201_CREATED if created else status.HTTP_200_OK)


@extend_schema(summary="Toggle Feature Modules", request=ModulesSerializer)
@api_view(['POST'])
@permission_classes([IsSystemAdmin])
def toggle_modules(request, restaurant_id):
    restaurant = _get_restaurant(restaurant_id)
    serializer = ModulesSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    settings_obj = restaurant.get_settings()
    changes = {}
    for flag, enabled in serializer.validated_data.items():
        if getattr(settings_obj, flag) != enabled:
            changes[flag] = {'old': getattr(settings_obj, flag), 'new': enabled}
            setattr(settings_obj, flag, enabled)
    settings_obj.save()

    AuditLog.record(
        'MODULES_UPDATED', 'restaurant_settings', settings_obj.id, restaurant=restaurant, user=request.user,
        details={'changes': changes},
    )
    return Response({
        'success': True,
        'inventory_enabled': settings_obj.inventory_enabled,
        'kds_enabled': settings_obj.kds_enabled,
        'qr_enabled': settings_obj.qr_enabled,
    })


@extend_schema(summary="Reset Owner Password", request=ResetPasswordSerializer)
@api_view(['POST'])
@permission_classes([IsSystemAdmin])
def reset_owner_password(request, restaurant_id):
    restaurant = _get_restaurant(restaurant_id)
    serializer = ResetPasswordSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    if restaurant.owner is None:
        raise POSError('not_found', message='Restaurant has no owner', status_code=status.HTTP_404_NOT_FOUND)

    owner = restaurant.owner
    owner.set_password(serializer.validated_data['new_password'])
    owner.save(update_fields=['password'])
    AuditLog.record(
        'PASSWORD_RESET', 'user', owner.id, restaurant=restaurant, user=request.user,
        details={'target_email': owner.email},
    )
    logger.info("Password of owner %s reset by %s", owner.email, request.user.email)
    return Response({'success': True, 'user_id': str(owner.id)})


def _user_restaurant(user):
    user_role = UserRole.objects.filter(user=user).select_related('restaurant').first()
    return user_role.restaurant if user_role else None


@extend_schema(
    summary="Update User Email",
    request=EmailUpdateSerializer,
    responses={200: OpenApiTypes.OBJECT, 409: {'description': 'email_taken'}}
)
@api_view(['POST'])
@permission_classes([IsSystemAdmin])
def update_user_email(request, user_id):
    user = get_object_or_404(CustomUser, id=user_id)
    serializer = EmailUpdateSerializer(data=request.data, context={'user': user})
    serializer.is_valid(raise_exception=True)

    old_email = user.email
    user.email = serializer.validated_data['new_email']
    user.save(update_fields=['email'])
    AuditLog.record(
        'USER_EMAIL_UPDATED', 'user', user.id, restaurant=_user_restaurant(user), user=request.user,
        details={'old_email': old_email, 'new_email': user.email},
    )
    logger.info("Email of user %s changed to %s by %s", old_email, user.email, request.user.email)
    return Response({'success': True, 'user_id': str(user.id), 'email': user.email})


@extend_schema(
    summary="Delete User",
    description="""
    Deletes a login account. System admin accounts cannot be deleted here,
    and accounts with shift history must be deactivated instead.
    """,
    request=None,
    responses={200: OpenApiTypes.OBJECT, 403: {'description': 'cannot_delete_user'}, 409: {'description': 'staff_has_shifts'}}
)
@api_view(['POST'])
@permission_classes([IsSystemAdmin])
def delete_user(request, user_id):
    user = get_object_or_404(CustomUser, id=user_id)
    user_role = UserRole.objects.filter(user=user).first()
    if user == request.user or (user_role and user_role.role == 'system_admin'):
        raise POSError('cannot_delete_user', status_code=status.HTTP_403_FORBIDDEN)
    if Shift.objects.filter(cashier=user).exists():
        raise POSError('staff_has_shifts', status_code=status.HTTP_409_CONFLICT)

    with transaction.atomic():
        AuditLog.record(
            'USER_DELETED', 'user', user.id, restaurant=_user_restaurant(user), user=request.user,
            details={'email': user.email, 'role': user_role.role if user_role else None},
        )
        user.delete()
    logger.info("User %s deleted by %s", user_id, request.user.email)
    return Response({'success': True, 'user_id': str(user_id)})


# =============== OWNER REPORTS ===============

def _report_branch(request):
    branch_id = request.query_params.get('branch')
    if branch_id:
        return get_object_or_404(Branch, id=branch_id, restaurant=request.restaurant)
    return request.branch


def _parse_date_param(request, name, default):
    value = request.query_params.get(name)
    if not value:
        return default
    parsed = parse_date(value)
    if parsed is None:
        raise POSError('validation_error', message=f"Invalid {name}. Use YYYY-MM-DD")
    return parsed


def _date_range(request, default_days=7):
    today = timezone.localdate()
    end_date = _parse_date_param(request, 'end_date', today)
    start_date = _parse_date_param(request, 'start_date', end_date - timedelta(days=default_days - 1))
    if start_date > end_date:
        raise POSError('validation_error', message='start_date must be before end_date')
    if (end_date - start_date).days > 366:
        raise POSError('validation_error', message='Date range cannot exceed one year')
    return start_date, end_date


@extend_schema(
    summary="Daily Summary",
    parameters=[
        OpenApiParameter('date', OpenApiTypes.DATE, description='Day to summarize (default: today)'),
        OpenApiParameter('branch', OpenApiTypes.UUID, description='Limit to one branch'),
    ],
)
@api_view(['GET'])
@permission_classes([CanViewReports])
def daily_summary(request):
    day = _parse_date_param(request, 'date', timezone.localdate())
    return Response(reports.daily_summary(request.restaurant, _report_branch(request), day))


@extend_schema(summary="Cash Differences", parameters=DATE_RANGE_PARAMETERS)
@api_view(['GET'])
@permission_classes([CanViewReports])
def cash_differences(request):
    start_date, end_date = _date_range(request)
    rows = reports.cash_differences(request.restaurant, _report_branch(request), start_date, end_date)
    return Response({
        'start_date': start_date,
        'end_date': end_date,
        'shift_count': len(rows),
        'total_difference': sum((row['cash_difference'] for row in rows), 0),
        'shifts': rows,
    })


@extend_schema(summary="Export Cash Differences (XLSX)", parameters=DATE_RANGE_PARAMETERS)
@api_view(['GET'])
@permission_classes([CanExportReports])
def export_cash_differences(request):
    start_date, end_date = _date_range(request)
    rows = reports.cash_differences(request.restaurant, _report_branch(request), start_date, end_date)
    wb = cash_differences_workbook(rows, start_date, end_date, request.restaurant)
    return xlsx_response(wb, f"cash_differences_{start_date}_{end_date}.xlsx")


@extend_schema(summary="Export Sales Summary (XLSX)", parameters=DATE_RANGE_PARAMETERS)
@api_view(['GET'])
@permission_classes([CanExportReports])
def export_sales_summary(request):
    start_date, end_date = _date_range(request)
    rows = reports.daily_sales(request.restaurant, _report_branch(request), start_date, end_date)
    wb = sales_summary_workbook(rows, start_date, end_date, request.restaurant)
    return xlsx_response(wb, f"sales_summary_{start_date}_{end_date}.xlsx")


@extend_schema(summary="Sales Summary", parameters=DATE_RANGE_PARAMETERS)
@api_view(['GET'])
@permission_classes([CanViewReports])
def sales_summary(request):
    start_date, end_date = _date_range(request)
    rows = reports.daily_sales(request.restaurant, _report_branch(request), start_date, end_date)
    return Response({'start_date': start_date, 'end_date': end_date, 'days': rows})


@extend_schema(
    summary="Best and Worst Sellers",
    parameters=DATE_RANGE_PARAMETERS + [
        OpenApiParameter('limit', OpenApiTypes.INT, description='Rows per list (default 10, max 50)'),
    ],
)
@api_view(['GET'])
@permission_classes([CanViewReports])
def best_sellers(request):
    start_date, end_date = _date_range(request, default_days=30)
    try:
        limit = min(max(int(request.query_params.get('limit', 10)), 1), 50)
    except ValueError:
        raise POSError('validation_error', message='limit must be an integer')

    branch = _report_branch(request)
    return Response({
        'start_date': start_date,
        'end_date': end_date,
        'best_sellers': reports.item_sales(request.restaurant, branch, start_date, end_date, limit),
        'worst_sellers': reports.item_sales(request.restaurant, branch, start_date, end_date, limit, ascending=True),
    })


@extend_schema(summary="Refund and Void Insights", parameters=DATE_RANGE_PARAMETERS)
@api_view(['GET'])
@permission_classes([CanViewReports])
def refund_void_insights(request):
    start_date, end_date = _date_range(request, default_days=30)
    data = reports.refund_void_insights(request.restaurant, _report_branch(request), start_date, end_date)
    data.update({'start_date': start_date, 'end_date': end_date})
    return Response(data)


class ShiftReportListView(generics.ListAPIView):
    """
    Shifts of the owner's restaurant.
    """
    serializer_class = ShiftReportSerializer
    permission_classes = [CanViewReports]
    filter_backends = [DjangoFilterBackend, filters.OrderingFilter]
    filterset_fields = ['branch', 'status', 'cashier']
    ordering_fields = ['opened_at', 'closed_at', 'cash_difference']
    ordering = ['-opened_at']

    @extend_schema(
        summary="List Shifts",
        parameters=[
            OpenApiParameter('date_from', OpenApiTypes.DATE, description='Opened on or after'),
            OpenApiParameter('date_to', OpenApiTypes.DATE, description='Opened on or before'),
        ]
    )
    def get(self, request, *args, **kwargs):
        return super().get(request, *args, **kwargs)

    def get_queryset(self):
        queryset = Shift.objects.filter(restaurant=self.request.restaurant).select_related('branch', 'cashier')
        date_from = self.request.query_params.get('date_from')
        date_to = self.request.query_params.get('date_to')
        if date_from:
            queryset = queryset.filter(opened_at__date__gte=date_from)
        if date_to:
            queryset = queryset.filter(opened_at__date__lte=date_to)
        return queryset
