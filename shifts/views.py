import logging

from rest_framework import status, generics
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from django.db import transaction
from django.utils import timezone
from drf_yasg.utils import swagger_auto_schema
from drf_yasg import openapi

from authentication.exceptions import POSError
from authentication.models import AuditLog
from authentication.permissions import (
    HasActiveSubscription, Permissions, ensure_same_restaurant, require_permission,
)
from backoffice.exports import xlsx_response, z_report_workbook
from orders.models import Order
from .models import Shift, ShiftTransaction
from .reports import load_z_report
from .serializers import (
    ShiftSerializer, ShiftTransactionSerializer, OpenShiftSerializer, CloseShiftSerializer,
    CashMovementSerializer,
)

logger = logging.getLogger(__name__)

CanManageShifts = require_permission(Permissions.MANAGE_SHIFTS)
CanViewShiftReports = require_permission(Permissions.VIEW_SHIFT_REPORTS)


def current_shift_for(user):
    return Shift.objects.filter(cashier=user, status='open').select_related('branch', 'cashier').first()


def get_shift(request, shift_id):
    """A shift of the caller's restaurant; cashiers only see their own"""
    shift = Shift.objects.select_related('branch', 'cashier', 'restaurant').filter(id=shift_id).first()
    if shift is None:
        raise POSError('not_found', status_code=status.HTTP_404_NOT_FOUND)
    ensure_same_restaurant(request, shift.restaurant_id)
    if request.user_role.role == 'cashier' and shift.cashier_id != request.user.id:
        raise POSError('not_authorized', status_code=status.HTTP_403_FORBIDDEN)
    return shift


@swagger_auto_schema(
    method='get',
    operation_description="The caller's open shift, or null",
    responses={200: ShiftSerializer}
)
@api_view(['GET'])
@permission_classes([CanManageShifts])
def current_shift(request):
    shift = current_shift_for(request.user)
    return Response({'shift': ShiftSerializer(shift).data if shift else None})


@swagger_auto_schema(
    method='post',
    operation_description="Open a shift with the cash counted in the drawer",
    request_body=OpenShiftSerializer,
    responses={201: ShiftSerializer, 400: 'Shift already open'}
)
@api_view(['POST'])
@permission_classes([CanManageShifts, HasActiveSubscription])
def open_shift(request):
    serializer = OpenShiftSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    if request.branch is None:
        raise POSError('branch_mismatch', message='No branch assigned', status_code=status.HTTP_403_FORBIDDEN)
    if current_shift_for(request.user) is not None:
        raise POSError('shift_already_open')

    shift = Shift.objects.create(
        restaurant=request.restaurant,
        branch=request.branch,
        cashier=request.user,
        opening_cash=serializer.validated_data['opening_cash'],
    )
    AuditLog.record(
        'SHIFT_OPEN', 'shift', shift.id, restaurant=request.restaurant, user=request.user,
        details={'opening_cash': str(shift.opening_cash), 'branch_id': str(shift.branch_id)},
    )
    logger.info("Shift %s opened by %s", shift.id, request.user.email)
    return Response(ShiftSerializer(shift).data, status=status.HTTP_201_CREATED)


@swagger_auto_schema(
    method='post',
    operation_description="Close the caller's open shift. Refused while orders are still open or held, "
                          "unless confirm is true.",
    request_body=CloseShiftSerializer,
    responses={
        200: openapi.Response(
            description="Shift closed with its Z report",
            schema=openapi.Schema(
                type=openapi.TYPE_OBJECT,
                properties={
                    'shift': openapi.Schema(type=openapi.TYPE_OBJECT),
                    'z_report': openapi.Schema(type=openapi.TYPE_OBJECT),
                }
            )
        ),
        409: 'Open orders exist',
    }
)
@api_view(['POST'])
@permission_classes([CanManageShifts])
def close_shift(request):
    serializer = CloseShiftSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    closing_cash = serializer.validated_data['closing_cash']

    with transaction.atomic():
        shift = Shift.objects.select_for_update().filter(cashier=request.user, status='open').first()
        if shift is None:
            raise POSError('no_open_shift')

        open_count = Order.objects.filter(shift=shift, status='open').count()
        held_count = Order.objects.filter(shift=shift, status='held').count()
        if (open_count or held_count) and not serializer.validated_data['confirm']:
            raise POSError(
                'open_orders_exist',
                status_code=status.HTTP_409_CONFLICT,
                extra={'open_orders': open_count, 'held_orders': held_count},
            )

        shift.closing_cash = closing_cash
        shift.closed_at = timezone.now()
        shift.status = 'closed'
        report = load_z_report(shift)
        shift.expected_cash = report['expected_cash']
        shift.cash_difference = report['cash_difference']
        shift.save()

        AuditLog.record(
            'SHIFT_CLOSE', 'shift', shift.id, restaurant=shift.restaurant, user=request.user,
            details={
                'opening_cash': str(shift.opening_cash),
                'closing_cash': str(closing_cash),
                'expected_cash': str(report['expected_cash']),
                'cash_difference': str(report['cash_difference']),
                'open_orders': open_count,
                'held_orders': held_count,
            },
        )

    if report['cash_difference']:
        logger.warning("Shift %s closed with cash difference %s", shift.id, report['cash_difference'])
    else:
        logger.info("Shift %s closed", shift.id)

    return Response({'shift': ShiftSerializer(shift).data, 'z_report': report})


@swagger_auto_schema(
    method='post',
    operation_description="Record cash put into or taken out of the drawer",
    request_body=CashMovementSerializer,
    responses={201: ShiftTransactionSerializer}
)
@api_view(['POST'])
@permission_classes([CanManageShifts, HasActiveSubscription])
def cash_movement(request):
    serializer = CashMovementSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    shift = current_shift_for(request.user)
    if shift is None:
        raise POSError('no_open_shift')

    txn = ShiftTransaction.objects.create(
        shift=shift,
        restaurant=shift.restaurant,
        branch=shift.branch,
        type=serializer.validated_data['type'],
        amount=serializer.validated_data['amount'],
        reason=serializer.validated_data['reason'],
        created_by=request.user,
    )
    AuditLog.record(
        'CASH_MOVEMENT', 'shift_transaction', txn.id, restaurant=shift.restaurant, user=request.user,
        details={'shift_id': str(shift.id), 'type': txn.type, 'amount': str(txn.amount), 'reason': txn.reason},
    )
    return Response(ShiftTransactionSerializer(txn).data, status=status.HTTP_201_CREATED)


class ShiftTransactionListView(generics.ListAPIView):
    """Cash movements of one shift"""
    serializer_class = ShiftTransactionSerializer
    permission_classes = [CanViewShiftReports]

    def get_queryset(self):
        shift = get_shift(self.request, self.kwargs['shift_id'])
        return shift.transactions.select_related('created_by')


@swagger_auto_schema(method='get', operation_description="Z report of a shift (live figures while it is open)")
@api_view(['GET'])
@permission_classes([CanViewShiftReports])
def z_report(request, shift_id):
    shift = get_shift(request, shift_id)
    return Response(load_z_report(shift))


@swagger_auto_schema(method='get', operation_description="Z report of a shift as an Excel workbook")
@api_view(['GET'])
@permission_classes([CanViewShiftReports])
def export_z_report(request, shift_id):
    shift = get_shift(request, shift_id)
    report = load_z_report(shift)
    wb = z_report_workbook(report, shift.restaurant)
    return xlsx_response(wb, f"z_report_{shift.opened_at.strftime('%Y%m%d')}_{shift.id}.xlsx")
