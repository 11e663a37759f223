import logging
from datetime import timedelta

from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from django.db.models import Avg, Sum
from django.utils import timezone
from drf_spectacular.utils import extend_schema

from authentication.models import AuditLog
from authentication.permissions import IsStaff
from inventory.services import low_stock_items
from orders.models import Order, OrderItem, Refund, RestaurantTable
from shifts.models import Shift
from .rules import evaluate_rules, get_rule
from .scope_guard import check_scope, get_greeting_message, get_intent_context, get_out_of_scope_message
from .serializers import AlertContextSerializer, AlertSerializer, ScopeCheckSerializer

logger = logging.getLogger(__name__)

# A kitchen ticket waiting longer than this counts as stuck
KDS_STUCK_MINUTES = 20
REFUND_AVERAGE_DAYS = 30


@extend_schema(
    summary="Check Assistant Scope",
    description="Classify a question as POS-related or not and detect its intent.",
    request=ScopeCheckSerializer,
)
@api_view(['POST'])
@permission_classes([IsStaff])
def scope_check(request):
    serializer = ScopeCheckSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    language = serializer.validated_data['language']

    result = check_scope(serializer.validated_data['message'])
    if result['intent'] == 'greeting':
        result['reply'] = get_greeting_message(language)
    elif not result['in_scope']:
        result['reply'] = get_out_of_scope_message(language)
    else:
        result['reply'] = None
        result['intent_context'] = get_intent_context(result['intent'])
    return Response(result)


def _shift_context(user, now):
    shift = Shift.objects.filter(cashier=user).order_by('-opened_at').first()
    if shift is None:
        return {}, None

    context = {'shift_status': shift.status, 'shift_opened_at': shift.opened_at}
    orders = Order.objects.filter(shift=shift)
    context['void_count_this_shift'] = OrderItem.objects.filter(order__in=orders, voided=True).count()
    context['hold_count_this_shift'] = AuditLog.objects.filter(
        user=user, action='ORDER_HOLD', created_at__gte=shift.opened_at
    ).count()
    context['refund_amount_this_shift'] = Refund.objects.filter(order__in=orders).aggregate(
        total=Sum('amount')
    )['total'] or 0
    context['void_count_last_hour'] = AuditLog.objects.filter(
        user=user, action='ITEM_VOID', created_at__gte=now - timedelta(hours=1)
    ).count()
    return context, shift


def _order_context(request, order_id):
    order = Order.objects.filter(id=order_id, restaurant=request.restaurant).first()
    if order is None:
        return {}

    context = {
        'order_status': order.status,
        'order_created_at': order.created_at,
        'order_item_count': order.items.filter(voided=False).count(),
        'discount_applied': order.discount_value > 0,
    }
    if order.status == 'held':
        hold = AuditLog.objects.filter(
            action='ORDER_HOLD', entity_type='order', entity_id=str(order.id)
        ).order_by('-created_at').first()
        context['order_held_at'] = hold.created_at if hold else order.updated_at
    return context


def _kds_context(request, now):
    if request.branch is None:
        return {}
    queue = Order.objects.filter(restaurant=request.restaurant, branch=request.branch, status__in=('new', 'in_progress'))
    return {
        'kds_stuck_order_count': queue.filter(created_at__lt=now - timedelta(minutes=KDS_STUCK_MINUTES)).count(),
        'kds_rush_order_count': queue.count(),
    }


def build_context(request, data, now):
    """Rule context for the caller: database state plus what the screen sent"""
    role = request.user_role.role
    context = {
        'payment_method': data.get('payment_method'),
        'payment_amount': data.get('payment_amount'),
        'failed_payment_count': data.get('failed_payment_count'),
        'last_action': data.get('last_action'),
        'discount_reason': data.get('discount_reason'),
        'training_mode': data.get('training_mode'),
    }

    if role == 'cashier':
        shift_context, shift = _shift_context(request.user, now)
        context.update(shift_context)
        if shift is not None:
            average = Refund.objects.filter(
                restaurant=request.restaurant, created_at__gte=now - timedelta(days=REFUND_AVERAGE_DAYS)
            ).aggregate(average=Avg('amount'))['average']
            context['average_refund_amount'] = average or 0

    if data.get('order_id'):
        context.update(_order_context(request, data['order_id']))

    table_id = data.get('table_id')
    if table_id and RestaurantTable.objects.filter(id=table_id, restaurant=request.restaurant).exists():
        context['table_id'] = str(table_id)
        context['table_has_active_order'] = Order.objects.filter(
            table_id=table_id, status__in=('open', 'held', 'confirmed')
        ).exists()

    if role == 'kitchen' or (role == 'owner' and request.restaurant.get_settings().kds_enabled):
        context.update(_kds_context(request, now))
        context['kds_is_first_visit'] = data.get('kds_is_first_visit')

    return context


@extend_schema(
    summary="Contextual Alerts",
    description="Alerts for the caller's current screen, highest priority first.",
    request=AlertContextSerializer,
    responses={200: AlertSerializer(many=True)},
)
@api_view(['POST'])
@permission_classes([IsStaff])
def alerts(request):
    serializer = AlertContextSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data
    now = timezone.now()

    context = build_context(request, data, now)
    triggered = evaluate_rules(context, now)

    # Role-specific alerts that depend on more than the rule context
    role = request.user_role.role
    if role == 'cashier' and data.get('last_action') == 'payment_attempt' and context.get('order_status') == 'held':
        triggered.insert(0, get_rule('cashier_pay_held_order'))
    if role == 'owner' and request.restaurant.get_settings().inventory_enabled \
            and low_stock_items(request.restaurant, request.branch):
        triggered.append(get_rule('owner_low_stock'))
    triggered.sort(key=lambda alert: -alert['priority'])

    if data['top_only']:
        triggered = triggered[:1]

    logger.debug("Assistant alerts for %s: %s", request.user.email, [alert['id'] for alert in triggered])
    return Response({
        'count': len(triggered),
        'alerts': AlertSerializer(triggered, many=True).data,
    })
