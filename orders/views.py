import logging

from rest_framework import status, generics, filters
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from django.conf import settings
from django.db.models import Prefetch
from django_filters.rest_framework import DjangoFilterBackend
from drf_yasg.utils import swagger_auto_schema
from drf_yasg import openapi

from authentication.exceptions import POSError
from authentication.permissions import (
    HasActiveSubscription, IsStaff, IsCashierOrOwner, KDSEnabled, QREnabled,
    Permissions, check_subscription, ensure_same_restaurant, require_permission,
)
from menu.models import MenuCategory, MenuItem
from menu.serializers import PublicMenuItemSerializer
from . import services
from .models import Order, OrderItem, RestaurantTable
from .serializers import (
    TableSerializer, OrderListSerializer, OrderReadSerializer, OrderItemReadSerializer,
    OrderCreateSerializer, OrderItemCreateSerializer, OrderItemUpdateSerializer, DiscountSerializer,
    TablePaymentSerializer, RefundCreateSerializer, KitchenOrderSerializer,
    QROrderCreateSerializer, QROrderStatusSerializer, ReasonSerializer,
)

logger = logging.getLogger(__name__)

CanCreateOrders = require_permission(Permissions.CREATE_ORDERS)
CanManagePayments = require_permission(Permissions.MANAGE_PAYMENTS)
CanApplyDiscounts = require_permission(Permissions.APPLY_DISCOUNTS)
CanVoidItems = require_permission(Permissions.VOID_ITEMS)
CanRefund = require_permission(Permissions.REFUND_ORDERS)
CanReopen = require_permission(Permissions.REOPEN_ORDERS)
CanConfirmQR = require_permission(Permissions.CONFIRM_QR_ORDERS)
CanViewKDS = require_permission(Permissions.VIEW_KDS)
CanUpdateKDS = require_permission(Permissions.UPDATE_KDS)
CanManageTables = require_permission(Permissions.MANAGE_BRANCHES)

ORDER_ID_PARAM = openapi.Parameter('order_id', openapi.IN_PATH, type=openapi.TYPE_STRING, format='uuid')

PAYMENTS_SCHEMA = openapi.Schema(
    type=openapi.TYPE_ARRAY,
    items=openapi.Schema(
        type=openapi.TYPE_OBJECT,
        required=['method', 'amount'],
        properties={
            'method': openapi.Schema(
                type=openapi.TYPE_STRING,
                enum=['cash', 'visa', 'cliq', 'zain_cash', 'orange_money', 'umniah_wallet'],
            ),
            'amount': openapi.Schema(type=openapi.TYPE_NUMBER),
        }
    )
)


def order_queryset(request):
    """Orders of the caller's restaurant, narrowed to the caller's branch when one is bound"""
    queryset = Order.objects.filter(restaurant=request.restaurant)
    if request.branch is not None:
        queryset = queryset.filter(branch=request.branch)
    return queryset.select_related('table', 'branch').prefetch_related(
        'items__modifiers', 'payments', 'refunds'
    )


def get_order(request, order_id):
    order = Order.objects.select_related('restaurant', 'branch', 'table').filter(id=order_id).first()
    if order is None:
        raise POSError('order_not_found', status_code=status.HTTP_404_NOT_FOUND)
    ensure_same_restaurant(request, order.restaurant_id)
    if request.branch is not None and order.branch_id not in (None, request.branch.id):
        raise POSError('branch_mismatch', status_code=status.HTTP_403_FORBIDDEN)
    return order


def get_order_item(request, item_id):
    item = OrderItem.objects.select_related('order__restaurant', 'order__branch').filter(id=item_id).first()
    if item is None:
        raise POSError('not_found', status_code=status.HTTP_404_NOT_FOUND)
    get_order(request, item.order_id)
    return item


def _reason(request):
    serializer = ReasonSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    return serializer.validated_data.get('reason') or ''


def _order_response(order, status_code=status.HTTP_200_OK):
    order = Order.objects.prefetch_related('items__modifiers', 'payments', 'refunds').select_related(
        'table', 'branch'
    ).get(id=order.id)
    return Response(OrderReadSerializer(order).data, status=status_code)


# =============== TABLES ===============

class TableListCreateView(generics.ListCreateAPIView):
    """List the restaurant's tables; owners add tables"""
    serializer_class = TableSerializer
    filter_backends = [DjangoFilterBackend, filters.SearchFilter]
    filterset_fields = ['branch', 'is_active']
    search_fields = ['table_name', 'table_code']

    def get_permissions(self):
        if self.request.method == 'POST':
            return [CanManageTables()]
        return [IsStaff()]

    def get_queryset(self):
        queryset = RestaurantTable.objects.filter(restaurant=self.request.restaurant).select_related('branch')
        if self.request.branch is not None:
            queryset = queryset.filter(branch=self.request.branch)
        return queryset

    def perform_create(self, serializer):
        serializer.save(restaurant=self.request.restaurant)


class TableDetailView(generics.RetrieveUpdateDestroyAPIView):
    serializer_class = TableSerializer

    def get_permissions(self):
        if self.request.method in ['PUT', 'PATCH', 'DELETE']:
            return [CanManageTables()]
        return [IsStaff()]

    def get_queryset(self):
        return RestaurantTable.objects.filter(restaurant=self.request.restaurant)


# =============== ORDERS ===============

class OrderListView(generics.ListAPIView):
    """List orders of the caller's restaurant (and branch)"""
    serializer_class = OrderListSerializer
    permission_classes = [IsCashierOrOwner]
    filter_backends = [DjangoFilterBackend, filters.OrderingFilter]
    filterset_fields = ['status', 'source', 'order_type', 'shift', 'table']
    ordering_fields = ['created_at', 'order_number', 'total']
    ordering = ['-created_at']

    def get_queryset(self):
        queryset = order_queryset(self.request)
        date_filter = self.request.query_params.get('date')
        if date_filter:
            queryset = queryset.filter(created_at__date=date_filter)
        return queryset

    @swagger_auto_schema(
        manual_parameters=[
            openapi.Parameter('status', openapi.IN_QUERY, description="Filter by order status", type=openapi.TYPE_STRING),
            openapi.Parameter('source', openapi.IN_QUERY, description="pos or qr", type=openapi.TYPE_STRING),
            openapi.Parameter('order_type', openapi.IN_QUERY, description="DINE_IN or TAKEAWAY", type=openapi.TYPE_STRING),
            openapi.Parameter('date', openapi.IN_QUERY, description="Filter by date (YYYY-MM-DD)", type=openapi.TYPE_STRING),
        ]
    )
    def get(self, request, *args, **kwargs):
        return super().get(request, *args, **kwargs)


class OrderDetailView(generics.RetrieveAPIView):
    serializer_class = OrderReadSerializer
    permission_classes = [IsCashierOrOwner]

    def get_queryset(self):
        return order_queryset(self.request)


@swagger_auto_schema(
    method='post',
    operation_description="Open a new order on the cashier's open shift",
    request_body=OrderCreateSerializer,
    responses={201: OrderReadSerializer, 400: 'No open shift / validation error'}
)
@api_view(['POST'])
@permission_classes([CanCreateOrders, HasActiveSubscription])
def create_order(request):
    serializer = OrderCreateSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data
    order = services.create_order(
        request.restaurant,
        request.user,
        order_type=data['order_type'],
        table_id=data.get('table_id'),
        notes=data['notes'],
        customer_phone=data['customer_phone'],
    )
    return _order_response(order, status.HTTP_201_CREATED)


def _list_response(queryset):
    return Response(OrderReadSerializer(queryset, many=True).data)


@swagger_auto_schema(method='get', operation_description="The cashier's open orders on the current shift",
                     responses={200: OrderReadSerializer(many=True)})
@api_view(['GET'])
@permission_classes([IsCashierOrOwner])
def open_orders(request):
    queryset = order_queryset(request).filter(status='open')
    shift = services.get_open_shift(request.user)
    if shift is not None:
        queryset = queryset.filter(shift=shift)
    return _list_response(queryset.order_by('created_at'))


@swagger_auto_schema(method='get', operation_description="Held orders", responses={200: OrderReadSerializer(many=True)})
@api_view(['GET'])
@permission_classes([IsCashierOrOwner])
def held_orders(request):
    return _list_response(order_queryset(request).filter(status='held').order_by('-updated_at'))


@swagger_auto_schema(
    method='get',
    operation_description="Recently paid or refunded orders",
    manual_parameters=[openapi.Parameter('limit', openapi.IN_QUERY, type=openapi.TYPE_INTEGER, default=20)],
    responses={200: OrderReadSerializer(many=True)}
)
@api_view(['GET'])
@permission_classes([IsCashierOrOwner])
def recent_orders(request):
    try:
        limit = min(max(int(request.query_params.get('limit', 20)), 1), 100)
    except ValueError:
        limit = 20
    queryset = order_queryset(request).filter(status__in=services.PAID_STATUSES).order_by('-updated_at')
    return _list_response(queryset[:limit])


# =============== ORDER ITEMS ===============

@swagger_auto_schema(
    method='post',
    operation_description="Add a menu item to an open order. Price comes from the menu (branch price first).",
    request_body=OrderItemCreateSerializer,
    responses={201: OrderReadSerializer}
)
@api_view(['POST'])
@permission_classes([CanCreateOrders, HasActiveSubscription])
def add_order_item(request, order_id):
    order = get_order(request, order_id)
    serializer = OrderItemCreateSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data
    services.add_item(
        order, data['menu_item_id'], quantity=data['quantity'], notes=data['notes'],
        modifier_ids=data['modifiers'], user=request.user,
    )
    return _order_response(order, status.HTTP_201_CREATED)


@swagger_auto_schema(
    method='patch',
    operation_description="Change quantity or notes of an order line",
    request_body=OrderItemUpdateSerializer,
    responses={200: OrderItemReadSerializer}
)
@swagger_auto_schema(method='delete', operation_description="Remove a line that has not been sent to the kitchen")
@api_view(['PATCH', 'DELETE'])
@permission_classes([CanCreateOrders, HasActiveSubscription])
def order_item_detail(request, item_id):
    item = get_order_item(request, item_id)
    if request.method == 'DELETE':
        services.remove_item(item)
        return Response(status=status.HTTP_204_NO_CONTENT)

    serializer = OrderItemUpdateSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    services.update_item(
        item, request.user,
        quantity=serializer.validated_data.get('quantity'),
        notes=serializer.validated_data.get('notes'),
    )
    return Response(OrderItemReadSerializer(item).data)


@swagger_auto_schema(method='post', operation_description="Void an order line (reason required)",
                     request_body=ReasonSerializer, responses={200: OrderItemReadSerializer})
@api_view(['POST'])
@permission_classes([CanVoidItems, HasActiveSubscription])
def void_order_item(request, item_id):
    item = get_order_item(request, item_id)
    services.void_item(item, _reason(request), request.user)
    return Response(OrderItemReadSerializer(item).data)


@swagger_auto_schema(method='post', operation_description="Apply an order discount (value 0 clears it)",
                     request_body=DiscountSerializer, responses={200: OrderReadSerializer})
@api_view(['POST'])
@permission_classes([CanApplyDiscounts, HasActiveSubscription])
def apply_discount(request, order_id):
    order = get_order(request, order_id)
    serializer = DiscountSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    services.apply_discount(
        order, serializer.validated_data['discount_type'], serializer.validated_data['discount_value'], request.user
    )
    return _order_response(order)


# =============== STATUS ===============

@swagger_auto_schema(method='post', operation_description="Hold an open order", responses={200: OrderReadSerializer})
@api_view(['POST'])
@permission_classes([CanCreateOrders, HasActiveSubscription])
def hold_order(request, order_id):
    order = services.hold_order(get_order(request, order_id), request.user)
    return _order_response(order)


@swagger_auto_schema(method='post', operation_description="Resume a held order", responses={200: OrderReadSerializer})
@api_view(['POST'])
@permission_classes([CanCreateOrders, HasActiveSubscription])
def resume_order(request, order_id):
    order = services.resume_order(get_order(request, order_id), request.user)
    return _order_response(order)


@swagger_auto_schema(method='post', operation_description="Cancel an open or held order",
                     request_body=ReasonSerializer, responses={200: OrderReadSerializer})
@api_view(['POST'])
@permission_classes([CanCreateOrders, HasActiveSubscription])
def cancel_order(request, order_id):
    order = services.cancel_order(get_order(request, order_id), _reason(request), request.user)
    return _order_response(order)


@swagger_auto_schema(method='post', operation_description="Reopen a paid dine-in order", responses={200: OrderReadSerializer})
@api_view(['POST'])
@permission_classes([CanReopen, HasActiveSubscription])
def reopen_order(request, order_id):
    order = services.reopen_order(get_order(request, order_id), request.user)
    return _order_response(order)


@swagger_auto_schema(
    method='post',
    operation_description="Move an open or held order to another table",
    request_body=openapi.Schema(
        type=openapi.TYPE_OBJECT,
        required=['table_id'],
        properties={'table_id': openapi.Schema(type=openapi.TYPE_STRING, format='uuid')}
    ),
    responses={200: OrderReadSerializer}
)
@api_view(['POST'])
@permission_classes([CanCreateOrders, HasActiveSubscription])
def move_order_table(request, order_id):
    table_id = request.data.get('table_id')
    if not table_id:
        raise POSError('missing_fields')
    order = services.move_order_table(get_order(request, order_id), table_id, request.user)
    return _order_response(order)


@swagger_auto_schema(
    method='post',
    operation_description="Send pending lines to the kitchen",
    responses={
        200: openapi.Response(
            description="Lines sent (sent_count 0 when nothing was pending)",
            schema=openapi.Schema(
                type=openapi.TYPE_OBJECT,
                properties={
                    'success': openapi.Schema(type=openapi.TYPE_BOOLEAN),
                    'sent_count': openapi.Schema(type=openapi.TYPE_INTEGER),
                    'sent_at': openapi.Schema(type=openapi.TYPE_STRING, format='date-time'),
                }
            )
        )
    }
)
@api_view(['POST'])
@permission_classes([CanCreateOrders, HasActiveSubscription])
def send_to_kitchen(request, order_id):
    count, sent_at = services.send_to_kitchen(get_order(request, order_id), request.user)
    return Response({
        'success': True,
        'sent_count': count,
        'sent_at': sent_at,
        'message': 'Sent to kitchen' if count else 'Nothing new to send',
    })


# =============== PAYMENT & REFUNDS ===============

@swagger_auto_schema(
    method='post',
    operation_description="Complete payment of an order. Cash may exceed the total (change is returned); "
                          "card and wallet payments must match it exactly.",
    request_body=openapi.Schema(
        type=openapi.TYPE_OBJECT,
        required=['payments'],
        properties={'payments': PAYMENTS_SCHEMA}
    ),
    responses={
        200: openapi.Response(
            description="Order paid",
            schema=openapi.Schema(
                type=openapi.TYPE_OBJECT,
                properties={
                    'success': openapi.Schema(type=openapi.TYPE_BOOLEAN),
                    'order_id': openapi.Schema(type=openapi.TYPE_STRING),
                    'new_status': openapi.Schema(type=openapi.TYPE_STRING),
                    'total_paid': openapi.Schema(type=openapi.TYPE_NUMBER),
                    'change': openapi.Schema(type=openapi.TYPE_NUMBER),
                    'inventory_warnings': openapi.Schema(
                        type=openapi.TYPE_ARRAY, items=openapi.Items(type=openapi.TYPE_OBJECT)
                    ),
                }
            )
        ),
        400: 'Validation error, card overpayment or underpayment',
        404: 'Order not found',
        409: 'Order not open or changed concurrently',
    }
)
@api_view(['POST'])
@permission_classes([CanManagePayments])
def complete_payment(request, order_id):
    payments = request.data.get('payments')
    services.validate_payments(payments)
    order = get_order(request, order_id)
    check_subscription(order.restaurant)
    return Response(services.complete_payment(order, payments, request.user))


@swagger_auto_schema(
    method='post',
    operation_description="Pay several orders of one table together",
    request_body=TablePaymentSerializer,
)
@api_view(['POST'])
@permission_classes([CanManagePayments, HasActiveSubscription])
def complete_table_payment(request):
    order_ids = request.data.get('order_ids') or []
    if not order_ids:
        raise POSError('missing_fields')
    orders = [get_order(request, order_id) for order_id in order_ids]
    return Response(services.complete_table_payment(orders, request.data.get('payments'), request.user))


@swagger_auto_schema(
    method='post',
    operation_description="Refund part or all of a paid order",
    request_body=RefundCreateSerializer,
    responses={
        201: openapi.Response(
            description="Refund created",
            schema=openapi.Schema(
                type=openapi.TYPE_OBJECT,
                properties={
                    'success': openapi.Schema(type=openapi.TYPE_BOOLEAN),
                    'refund_id': openapi.Schema(type=openapi.TYPE_STRING),
                    'total_refunded': openapi.Schema(type=openapi.TYPE_NUMBER),
                    'remaining_refundable': openapi.Schema(type=openapi.TYPE_NUMBER),
                    'is_fully_refunded': openapi.Schema(type=openapi.TYPE_BOOLEAN),
                }
            )
        )
    }
)
@api_view(['POST'])
@permission_classes([CanRefund])
def create_refund(request, order_id):
    order = get_order(request, order_id)
    result = services.create_refund(
        order,
        request.data.get('amount'),
        request.data.get('refund_type'),
        request.data.get('reason'),
        request.user,
    )
    return Response(result, status=status.HTTP_201_CREATED)


@swagger_auto_schema(
    method='get',
    operation_description="Receipt data for an order",
    manual_parameters=[ORDER_ID_PARAM],
)
@api_view(['GET'])
@permission_classes([IsCashierOrOwner])
def get_receipt(request, order_id):
    order = get_order(request, order_id)
    order = Order.objects.select_related('restaurant', 'branch', 'table', 'created_by').prefetch_related(
        Prefetch('items', queryset=OrderItem.objects.filter(voided=False).prefetch_related('modifiers')),
        'payments', 'refunds',
    ).get(id=order.id)
    totals = order.calculate_totals() if order.status in Order.EDITABLE_STATUSES else None

    receipt_data = {
        'brand_name': settings.POS['BRAND_NAME'],
        'restaurant_name': order.restaurant.name,
        'restaurant_name_ar': order.restaurant.name_ar,
        'branch_name': order.branch.name if order.branch else None,
        'branch_address': order.branch.address if order.branch else '',
        'order_id': str(order.id),
        'order_number': order.order_number,
        'order_type': order.order_type,
        'table_name': order.table.table_name if order.table else None,
        'status': order.status,
        'cashier': order.created_by.full_name if order.created_by else None,
        'created_at': order.created_at,
        'items': [
            {
                'name': item.name,
                'quantity': item.quantity,
                'unit_price': item.price,
                'modifiers': [{'name': m.name, 'price': m.price_adjustment} for m in item.modifiers.all()],
                'line_total': item.line_total(),
                'notes': item.notes,
            }
            for item in order.items.all()
        ],
        'subtotal': order.subtotal,
        'discount_type': order.discount_type,
        'discount_value': order.discount_value,
        'discount_amount': totals['discount_amount'] if totals else None,
        'service_charge': order.service_charge,
        'tax_rate': order.tax_rate,
        'tax_amount': order.tax_amount,
        'total': order.total,
        'payments': [{'method': p.method, 'amount': p.amount} for p in order.payments.all()],
        'refunds': [{'amount': r.amount, 'reason': r.reason} for r in order.refunds.all()],
        'currency': order.restaurant.get_settings().currency,
    }
    return Response(receipt_data)


# =============== KITCHEN DISPLAY ===============

@swagger_auto_schema(method='get', operation_description="Orders waiting in the kitchen, oldest first",
                     responses={200: KitchenOrderSerializer(many=True)})
@api_view(['GET'])
@permission_classes([CanViewKDS, KDSEnabled, HasActiveSubscription])
def kds_orders(request):
    queryset = Order.objects.filter(
        restaurant=request.restaurant, status__in=Order.KDS_STATUSES
    ).select_related('table').prefetch_related('items__modifiers').order_by('created_at')
    if request.branch is not None:
        queryset = queryset.filter(branch=request.branch)
    return Response(KitchenOrderSerializer(queryset, many=True).data)


@swagger_auto_schema(
    method='post',
    operation_description="Move a kitchen order forward: new -> in_progress -> ready -> closed",
    request_body=openapi.Schema(
        type=openapi.TYPE_OBJECT,
        required=['status'],
        properties={'status': openapi.Schema(type=openapi.TYPE_STRING, enum=['in_progress', 'ready', 'closed'])}
    ),
    responses={200: KitchenOrderSerializer}
)
@api_view(['POST'])
@permission_classes([CanUpdateKDS, KDSEnabled, HasActiveSubscription])
def kds_update_status(request, order_id):
    order = get_order(request, order_id)
    order = services.update_kds_status(order, request.data.get('status'), request.user)
    return Response(KitchenOrderSerializer(order).data)


# =============== QR ORDERING ===============

@swagger_auto_schema(
    method='get',
    operation_description="Public menu for QR ordering",
    manual_parameters=[openapi.Parameter('table_code', openapi.IN_QUERY, type=openapi.TYPE_STRING)],
)
@api_view(['GET'])
@permission_classes([AllowAny])
def public_qr_menu(request, restaurant_id):
    restaurant = services.qr_restaurant(restaurant_id)
    table = None
    table_code = request.query_params.get('table_code')
    if table_code:
        table = services.resolve_table(restaurant, table_code=table_code)
    branch = table.branch if table else restaurant.default_branch

    categories = MenuCategory.objects.filter(restaurant=restaurant, is_active=True).order_by('sort_order', 'name')
    items = MenuItem.objects.filter(
        restaurant=restaurant, is_available=True, category__is_active=True
    ).select_related('category').prefetch_related('branch_overrides')
    available = [item for item in items if item.is_available_in(branch)]

    context = {'branch': branch}
    return Response({
        'restaurant': {
            'id': str(restaurant.id),
            'name': restaurant.name,
            'name_ar': restaurant.name_ar,
            'logo_url': restaurant.logo_url,
        },
        'table': {'id': str(table.id), 'table_name': table.table_name} if table else None,
        'categories': [
            {
                'id': str(category.id),
                'name': category.name,
                'name_ar': category.name_ar,
                'items': PublicMenuItemSerializer(
                    [item for item in available if item.category_id == category.id], many=True, context=context
                ).data,
            }
            for category in categories
        ],
    })


@swagger_auto_schema(
    method='post',
    operation_description="Place an order from the QR menu (no login)",
    request_body=QROrderCreateSerializer,
    responses={
        201: openapi.Response(
            description="Order placed, waiting for cashier confirmation",
            schema=openapi.Schema(
                type=openapi.TYPE_OBJECT,
                properties={
                    'success': openapi.Schema(type=openapi.TYPE_BOOLEAN),
                    'order_id': openapi.Schema(type=openapi.TYPE_STRING),
                    'order_number': openapi.Schema(type=openapi.TYPE_INTEGER),
                    'total': openapi.Schema(type=openapi.TYPE_NUMBER),
                }
            )
        )
    }
)
@api_view(['POST'])
@permission_classes([AllowAny])
def qr_create_order(request):
    serializer = QROrderCreateSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    order = services.create_qr_order(dict(serializer.validated_data))
    return Response({
        'success': True,
        'order_id': str(order.id),
        'order_number': order.order_number,
        'total': order.total,
    }, status=status.HTTP_201_CREATED)


@swagger_auto_schema(method='get', operation_description="Status of a QR order for the customer",
                     responses={200: QROrderStatusSerializer})
@api_view(['GET'])
@permission_classes([AllowAny])
def qr_order_status(request, order_id):
    order = Order.objects.select_related('table').filter(id=order_id, source='qr').first()
    if order is None:
        raise POSError('order_not_found', status_code=status.HTTP_404_NOT_FOUND)
    return Response(QROrderStatusSerializer(order).data)


@swagger_auto_schema(method='get', operation_description="QR orders waiting for confirmation",
                     responses={200: OrderReadSerializer(many=True)})
@api_view(['GET'])
@permission_classes([CanConfirmQR, QREnabled])
def qr_pending_orders(request):
    queryset = order_queryset(request).filter(source='qr', status='pending').order_by('created_at')
    return _list_response(queryset)


@swagger_auto_schema(method='post', operation_description="Confirm a pending QR order",
                     responses={200: OrderReadSerializer, 409: 'Order is no longer pending'})
@api_view(['POST'])
@permission_classes([CanConfirmQR, QREnabled, HasActiveSubscription])
def qr_confirm_order(request, order_id):
    order = services.confirm_qr_order(get_order(request, order_id), request.user)
    return _order_response(order)


@swagger_auto_schema(
    method='post',
    operation_description="Reject a QR order",
    request_body=ReasonSerializer,
    responses={200: OrderReadSerializer, 409: 'Order already closed'}
)
@api_view(['POST'])
@permission_classes([CanConfirmQR, QREnabled, HasActiveSubscription])
def qr_reject_order(request, order_id):
    order = services.reject_qr_order(get_order(request, order_id), _reason(request), request.user)
    return _order_response(order)
