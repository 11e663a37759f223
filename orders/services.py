"""
Order lifecycle: entry, kitchen, payment, refunds and QR orders.

Views resolve the caller and the order, then call into here. Every rule
violation is raised as a ``POSError`` carrying its message code.
"""
import logging
import re
from decimal import Decimal

from django.conf import settings
from django.db import DatabaseError, transaction
from django.db.models import Sum
from django.utils import timezone
from rest_framework import status

from authentication.exceptions import POSError
from authentication.models import AuditLog, Branch, Restaurant
from authentication.permissions import check_subscription
from inventory.services import deduct_for_order
from menu.models import MenuItem, ModifierOption
from shifts.models import Shift
from .calculations import round_jod, to_decimal, ZERO
from .models import Order, OrderItem, OrderItemModifier, Payment, Refund, RestaurantTable

logger = logging.getLogger(__name__)

TOLERANCE = Decimal('0.001')
PAYMENT_METHODS = tuple(method for method, _ in Payment.METHOD_CHOICES)
PHONE_RE = re.compile(r'^\+?\d{7,15}$')
MAX_QR_QUANTITY = 99

# Orders that have been paid, whichever kitchen status they have reached
PAID_STATUSES = ('paid', 'refunded', 'new', 'in_progress', 'ready', 'closed')

KDS_TRANSITIONS = {
    'new': 'in_progress',
    'in_progress': 'ready',
    'ready': 'closed',
}


def _conflict(code, **kwargs):
    return POSError(code, status_code=status.HTTP_409_CONFLICT, **kwargs)


# =============== ORDER ENTRY ===============

def get_open_shift(user):
    return Shift.objects.filter(cashier=user, status='open').select_related('branch').first()


def resolve_table(restaurant, table_id=None, table_code=None):
    tables = RestaurantTable.objects.filter(restaurant=restaurant, is_active=True).select_related('branch')
    table = None
    if table_id:
        table = tables.filter(id=table_id).first()
    elif table_code:
        table = tables.filter(table_code=table_code).first()
    if table is None:
        raise POSError('table_not_found', status_code=status.HTTP_404_NOT_FOUND)
    return table


def create_order(restaurant, user, order_type='TAKEAWAY', table_id=None, notes='', customer_phone=''):
    """Open a new POS order on the cashier's open shift."""
    shift = get_open_shift(user)
    if shift is None:
        raise POSError('no_open_shift')

    table = None
    if table_id:
        table = resolve_table(restaurant, table_id=table_id)
        order_type = 'DINE_IN'
    elif order_type == 'DINE_IN':
        raise POSError('missing_fields', message='Dine-in orders need a table')

    settings_obj = restaurant.get_settings()
    order = Order.objects.create(
        restaurant=restaurant,
        branch=shift.branch,
        shift=shift,
        table=table,
        status='open',
        source='pos',
        order_type=order_type,
        notes=notes or '',
        customer_phone=customer_phone or '',
        tax_rate=settings_obj.tax_rate,
        created_by=user,
    )
    AuditLog.record(
        'ORDER_CREATE', 'order', order.id, restaurant=restaurant, user=user,
        details={'order_number': order.order_number, 'order_type': order_type,
                 'table_id': str(table.id) if table else None},
    )
    logger.info("Order #%s created by %s", order.order_number, user.email)
    return order


def ensure_editable(order):
    if order.status == 'held':
        raise _conflict('order_held')
    if order.status not in Order.EDITABLE_STATUSES:
        raise _conflict('order_not_open')


def _validate_modifiers(menu_item, option_ids):
    if not option_ids:
        options = []
    else:
        options = list(ModifierOption.objects.filter(
            id__in=option_ids,
            is_active=True,
            group__in=menu_item.modifier_groups.filter(is_active=True),
        ).select_related('group'))
        if len(options) != len(set(str(o) for o in option_ids)):
            raise POSError('validation_error', message='Some modifiers are not valid for this item')

    chosen = {}
    for option in options:
        chosen.setdefault(option.group_id, []).append(option)

    for group in menu_item.modifier_groups.filter(is_active=True):
        picked = chosen.get(group.id, [])
        if group.is_required and not picked:
            raise POSError('validation_error', message=f"{group.name} is required")
        limit = 1 if group.selection_type == 'single' else group.max_selections
        if limit and len(picked) > limit:
            raise POSError('validation_error', message=f"Too many selections for {group.name}")
    return options


def _create_line(order, menu_item, quantity, notes='', option_ids=()):
    options = _validate_modifiers(menu_item, option_ids)
    item = OrderItem(
        order=order,
        menu_item=menu_item,
        name=menu_item.name,
        price=menu_item.price_for_branch(order.branch),
        quantity=quantity,
        notes=notes or '',
    )
    with transaction.atomic():
        item.save()
        for option in options:
            OrderItemModifier.objects.create(
                order_item=item,
                modifier_option=option,
                name=option.name,
                price_adjustment=option.price_adjustment,
            )
    return item


def _parse_quantity(value, maximum=None):
    try:
        quantity = int(value)
    except (TypeError, ValueError):
        raise POSError('invalid_quantity')
    if quantity < 1 or (maximum is not None and quantity > maximum) or str(quantity) != str(value).strip():
        raise POSError('invalid_quantity')
    return quantity


def add_item(order, menu_item_id, quantity=1, notes='', modifier_ids=(), user=None):
    ensure_editable(order)
    quantity = _parse_quantity(quantity)
    menu_item = MenuItem.objects.select_related('category').filter(
        id=menu_item_id, restaurant=order.restaurant
    ).first()
    if menu_item is None or not menu_item.is_available_in(order.branch):
        raise POSError('menu_item_unavailable')
    return _create_line(order, menu_item, quantity, notes, modifier_ids)


def update_item(item, user, quantity=None, notes=None):
    ensure_editable(item.order)
    if item.voided:
        raise POSError('invalid_status', message='Voided items cannot be changed')

    details = {'item_id': str(item.id), 'name': item.name}
    if quantity is not None:
        quantity = _parse_quantity(quantity)
        if item.kitchen_sent_at is not None and quantity < item.quantity:
            raise _conflict('item_already_sent')
        details.update({'old_quantity': item.quantity, 'new_quantity': quantity})
        item.quantity = quantity
    if notes is not None:
        if item.kitchen_sent_at is not None:
            raise _conflict('item_already_sent')
        item.notes = notes
    item.save()

    if 'new_quantity' in details:
        AuditLog.record('ITEM_QTY_CHANGED', 'order_item', item.id,
                        restaurant=item.order.restaurant, user=user, details=details)
    return item


def void_item(item, reason, user):
    ensure_editable(item.order)
    if not reason or not reason.strip():
        raise POSError('reason_required')
    if item.voided:
        raise POSError('invalid_status', message='Item is already voided')

    item.voided = True
    item.void_reason = reason.strip()[:500]
    item.voided_by = user
    item.save()
    AuditLog.record(
        'ITEM_VOID', 'order_item', item.id, restaurant=item.order.restaurant, user=user,
        details={'order_id': str(item.order_id), 'name': item.name, 'quantity': item.quantity,
                 'reason': item.void_reason, 'line_total': str(item.line_total())},
    )
    logger.info("Voided %s on order %s", item.name, item.order_id)
    return item


def remove_item(item):
    ensure_editable(item.order)
    if item.kitchen_sent_at is not None:
        raise _conflict('item_already_sent')
    item.delete()


def apply_discount(order, discount_type, discount_value, user):
    """Set or clear (value 0) the order-level discount."""
    ensure_editable(order)
    settings_obj = order.restaurant.get_settings()
    if not settings_obj.discounts_enabled:
        raise POSError('discount_not_allowed', status_code=status.HTTP_403_FORBIDDEN)

    if discount_type == 'percent':
        discount_type = 'percentage'
    if discount_type not in ('percentage', 'fixed'):
        raise POSError('validation_error', message='discount_type must be percentage or fixed')

    value = to_decimal(discount_value)
    if value < 0:
        raise POSError('invalid_amount')
    if discount_type == 'percentage' and value > 100:
        raise POSError('validation_error', message='Percentage discount cannot exceed 100')

    order.calculate_totals()
    if discount_type == 'fixed' and value > order.subtotal:
        raise POSError('validation_error', message='Discount cannot exceed the subtotal')
    if settings_obj.max_discount_value is not None and value > settings_obj.max_discount_value:
        raise POSError(
            'discount_not_allowed',
            message=f"Maximum discount is {settings_obj.max_discount_value}",
            status_code=status.HTTP_403_FORBIDDEN,
        )

    order.discount_type = discount_type if value > 0 else None
    order.discount_value = value
    totals = order.calculate_totals()
    order.save()
    AuditLog.record(
        'DISCOUNT_APPLY', 'order', order.id, restaurant=order.restaurant, user=user,
        details={'discount_type': discount_type, 'discount_value': str(value),
                 'discount_amount': str(totals['discount_amount']), 'total': str(order.total)},
    )
    return order


# =============== STATUS CHANGES ===============

def _transition(order, allowed, new_status, user, action, **fields):
    """Conditional status update; zero rows means someone else moved the order first."""
    if order.status not in allowed:
        if order.status == 'held' and new_status != 'open':
            raise _conflict('order_held')
        raise _conflict('invalid_transition', extra={'from': order.status, 'to': new_status})

    updated = Order.objects.filter(id=order.id, status=order.status).update(
        status=new_status, updated_at=timezone.now(), **fields
    )
    if not updated:
        raise _conflict('race_condition')

    old_status = order.status
    order.refresh_from_db()
    AuditLog.record(
        action, 'order', order.id, restaurant=order.restaurant, user=user,
        details={'from': old_status, 'to': new_status, 'order_number': order.order_number, **fields},
    )
    return order


def hold_order(order, user):
    return _transition(order, ('open',), 'held', user, 'ORDER_HOLD')


def resume_order(order, user):
    return _transition(order, ('held',), 'open', user, 'ORDER_RESUME')


def cancel_order(order, reason, user):
    if not reason or not reason.strip():
        raise POSError('reason_required')
    return _transition(order, ('open', 'held', 'confirmed'), 'cancelled', user, 'ORDER_CANCEL',
                       cancelled_reason=reason.strip()[:500])


def reopen_order(order, user):
    if order.refunds.exists():
        raise _conflict('invalid_transition', message='Refunded orders cannot be reopened')
    return _transition(order, ('paid',), 'open', user, 'ORDER_REOPEN')


def move_order_table(order, table_id, user):
    if order.status not in ('open', 'held'):
        raise _conflict('order_not_open')
    table = resolve_table(order.restaurant, table_id=table_id)
    old_table = order.table
    order.table = table
    order.order_type = 'DINE_IN'
    order.save(update_fields=['table', 'order_type', 'updated_at'])
    AuditLog.record(
        'ORDER_MOVED_TABLE', 'order', order.id, restaurant=order.restaurant, user=user,
        details={'from_table': old_table.table_name if old_table else None, 'to_table': table.table_name},
    )
    return order


def send_to_kitchen(order, user):
    """Stamp pending lines as sent. Returns the number of lines sent (0 is a no-op)."""
    if order.status in Order.TERMINAL_STATUSES:
        raise _conflict('order_not_open')

    pending = order.items.filter(voided=False, kitchen_sent_at__isnull=True)
    item_ids = [str(pk) for pk in pending.values_list('id', flat=True)]
    if not item_ids:
        return 0, None

    sent_at = timezone.now()
    # Queryset update skips the totals signal, the lines themselves do not change
    OrderItem.objects.filter(id__in=item_ids).update(kitchen_sent_at=sent_at)
    AuditLog.record(
        'SEND_TO_KITCHEN', 'order', order.id, restaurant=order.restaurant, user=user,
        details={'order_id': str(order.id), 'item_count': len(item_ids), 'item_ids': item_ids,
                 'sent_at': sent_at.isoformat()},
    )
    return len(item_ids), sent_at


# =============== PAYMENT ===============

def validate_payments(payments):
    if not payments or not isinstance(payments, list):
        raise POSError('missing_fields')
    cleaned = []
    for payment in payments:
        if not isinstance(payment, dict):
            raise POSError('invalid_payment_method')
        method = payment.get('method')
        if method not in PAYMENT_METHODS:
            raise POSError('invalid_payment_method')
        try:
            amount = round_jod(to_decimal(payment.get('amount')))
        except (ArithmeticError, ValueError):
            raise POSError('invalid_amount')
        if amount <= 0:
            raise POSError('invalid_amount')
        cleaned.append({'method': method, 'amount': amount})
    return cleaned


def _check_amounts(due, paid, all_cash):
    if not all_cash and paid > due + TOLERANCE:
        raise POSError('card_overpayment')
    if paid < due - TOLERANCE:
        raise POSError('underpayment', extra={'due': str(due), 'paid': str(paid)})


def _drawer_payments(payments, change):
    """
    Payments as they stay in the drawer: change is taken off the cash
    payments from the last one backwards and fully returned rows are dropped.
    """
    remaining = change
    kept = []
    for payment in reversed(payments):
        amount = payment['amount']
        if payment['method'] == 'cash' and remaining > 0:
            taken = min(amount, remaining)
            amount = round_jod(amount - taken)
            remaining = round_jod(remaining - taken)
        if amount > 0:
            kept.append({'method': payment['method'], 'amount': amount})
    kept.reverse()
    return kept


def _run_inventory_deduction(order, user):
    if not order.restaurant.get_settings().inventory_enabled:
        return None
    return deduct_for_order(order, user)


def complete_payment(order, payments, user):
    """
    Settle an order.

    Dine-in orders (with a table) become ``paid``; takeaway orders become
    ``new`` so they show up on the kitchen display.
    """
    payments = validate_payments(payments)
    if order.status == 'held':
        raise _conflict('order_held')

    if order.is_dine_in:
        new_status, valid_statuses = 'paid', ('new', 'open', 'confirmed')
    else:
        new_status, valid_statuses = 'new', ('open', 'confirmed')
    if order.status not in valid_statuses:
        raise _conflict('order_not_open', extra={'status': order.status})

    total = round_jod(order.total)
    already_paid = round_jod(order.payments.aggregate(total=Sum('amount'))['total'] or ZERO)
    due = round_jod(total - already_paid)
    paid = round_jod(sum((p['amount'] for p in payments), ZERO))
    all_cash = all(p['method'] == 'cash' for p in payments)
    _check_amounts(due, paid, all_cash)

    change = round_jod(paid - due) if all_cash and paid > due else ZERO
    old_status = order.status

    with transaction.atomic():
        updated = Order.objects.filter(id=order.id, status__in=valid_statuses).update(
            status=new_status, updated_at=timezone.now()
        )
        if not updated:
            raise _conflict('race_condition')

        try:
            with transaction.atomic():
                for payment in _drawer_payments(payments, change):
                    Payment.objects.create(
                        order=order,
                        restaurant=order.restaurant,
                        branch=order.branch,
                        method=payment['method'],
                        amount=payment['amount'],
                        created_by=user,
                    )
        except DatabaseError:
            logger.exception("Payment insert failed for order %s", order.id)
            Order.objects.filter(id=order.id).update(status=old_status)
            raise POSError('payment_failed', status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)

        AuditLog.record(
            'PAYMENT_COMPLETED', 'order', order.id, restaurant=order.restaurant, user=user,
            details={'order_number': order.order_number, 'total': str(total), 'paid': str(paid),
                     'change': str(change), 'methods': [p['method'] for p in payments],
                     'new_status': new_status},
        )

    order.refresh_from_db()
    logger.info("Order #%s paid %s (%s)", order.order_number, paid, new_status)

    result = {
        'success': True,
        'order_id': str(order.id),
        'new_status': new_status,
        'total_paid': paid,
        'change': change,
    }
    deduction = _run_inventory_deduction(order, user)
    if deduction is not None:
        result['inventory_warnings'] = deduction['warnings']
    return result


def complete_table_payment(orders, payments, user):
    """
    Settle every open order of a table with one set of payments.

    Each payment is split across the orders in proportion to their totals;
    the last order (by number) takes the rounding remainder.
    """
    payments = validate_payments(payments)
    if not orders:
        raise POSError('missing_fields')
    restaurant_ids = {o.restaurant_id for o in orders}
    if len(restaurant_ids) != 1:
        raise POSError('restaurant_mismatch', status_code=status.HTTP_403_FORBIDDEN)
    for order in orders:
        if order.status not in ('open', 'new', 'confirmed'):
            raise _conflict('order_not_open', extra={'order_id': str(order.id), 'status': order.status})

    orders = sorted(orders, key=lambda o: o.order_number)
    combined_total = round_jod(sum((to_decimal(o.total) for o in orders), ZERO))
    paid = round_jod(sum((p['amount'] for p in payments), ZERO))
    all_cash = all(p['method'] == 'cash' for p in payments)
    _check_amounts(combined_total, paid, all_cash)
    change = round_jod(paid - combined_total) if all_cash and paid > combined_total else ZERO

    drawer_payments = _drawer_payments(payments, change)

    restaurant = orders[0].restaurant
    with transaction.atomic():
        allocated = [ZERO] * len(drawer_payments)
        for index, order in enumerate(orders):
            is_last = index == len(orders) - 1
            share = to_decimal(order.total) / combined_total if combined_total else ZERO

            updated = Order.objects.filter(id=order.id, status__in=('open', 'new', 'confirmed')).update(
                status='paid', updated_at=timezone.now()
            )
            if not updated:
                raise _conflict('race_condition', extra={'order_id': str(order.id)})

            for p_index, payment in enumerate(drawer_payments):
                if is_last:
                    amount = round_jod(payment['amount'] - allocated[p_index])
                else:
                    amount = round_jod(payment['amount'] * share)
                allocated[p_index] += amount
                if amount > 0:
                    Payment.objects.create(
                        order=order, restaurant=restaurant, branch=order.branch,
                        method=payment['method'], amount=amount, created_by=user,
                    )

        AuditLog.record(
            'TABLE_CHECKOUT', 'order', orders[0].id, restaurant=restaurant, user=user,
            details={'order_ids': [str(o.id) for o in orders], 'combined_total': str(combined_total),
                     'paid': str(paid), 'change': str(change)},
        )

    for order in orders:
        order.refresh_from_db()
        _run_inventory_deduction(order, user)

    return {
        'success': True,
        'orders': [{'order_id': str(o.id), 'order_number': o.order_number, 'total': o.total} for o in orders],
        'combined_total': combined_total,
        'payment_total': paid,
        'change': change,
    }


# =============== REFUNDS ===============

def create_refund(order, amount, refund_type, reason, user):
    try:
        amount = round_jod(to_decimal(amount))
    except (ArithmeticError, ValueError):
        raise POSError('invalid_amount')
    if amount <= 0:
        raise POSError('invalid_amount')
    if refund_type not in ('full', 'partial'):
        raise POSError('invalid_refund_type')
    if not reason or not str(reason).strip():
        raise POSError('missing_fields', message='Refund reason is required')
    if not order.restaurant.is_active:
        raise POSError('restaurant_inactive', status_code=status.HTTP_403_FORBIDDEN)
    if order.status not in PAID_STATUSES or not order.payments.exists():
        raise POSError('order_not_refundable')

    with transaction.atomic():
        locked = Order.objects.select_for_update().get(id=order.id)
        total = round_jod(locked.total)
        already = round_jod(locked.refunds.aggregate(total=Sum('amount'))['total'] or ZERO)
        max_refundable = round_jod(total - already)
        if amount > max_refundable + TOLERANCE:
            raise POSError(
                'refund_exceeds',
                message=f"Already refunded {already}. Maximum refundable: {max_refundable}",
                extra={'already_refunded': str(already), 'max_refundable': str(max_refundable)},
            )

        refund = Refund.objects.create(
            order=locked,
            restaurant=locked.restaurant,
            amount=amount,
            refund_type=refund_type,
            reason=str(reason).strip()[:500],
            refunded_by=user,
        )
        total_refunded = round_jod(already + amount)
        is_fully_refunded = total_refunded >= total - TOLERANCE
        if is_fully_refunded:
            Order.objects.filter(id=locked.id).update(status='refunded', updated_at=timezone.now())

        AuditLog.record(
            'REFUND_CREATED', 'refund', refund.id, restaurant=locked.restaurant, user=user,
            details={'order_id': str(locked.id), 'amount': str(amount), 'refund_type': refund_type,
                     'reason': refund.reason, 'total_refunded': str(total_refunded)},
        )

    logger.info("Refund %s on order #%s", amount, locked.order_number)
    return {
        'success': True,
        'refund_id': str(refund.id),
        'total_refunded': total_refunded,
        'remaining_refundable': max(ZERO, round_jod(total - total_refunded)),
        'is_fully_refunded': is_fully_refunded,
    }


# =============== KITCHEN DISPLAY ===============

def update_kds_status(order, new_status, user):
    if KDS_TRANSITIONS.get(order.status) != new_status:
        raise POSError('invalid_transition', extra={'from': order.status, 'to': new_status})
    return _transition(order, (order.status,), new_status, user, 'KDS_STATUS_CHANGE')


# =============== QR ORDERING ===============

def qr_restaurant(restaurant_id):
    """Active restaurant with a current subscription and the QR module on."""
    if not restaurant_id:
        raise POSError('missing_fields', message='restaurant_id is required')
    restaurant = Restaurant.objects.filter(id=restaurant_id).first()
    if restaurant is None:
        raise POSError('not_found', status_code=status.HTTP_404_NOT_FOUND)
    if not restaurant.is_active:
        raise POSError('restaurant_inactive', status_code=status.HTTP_403_FORBIDDEN)
    check_subscription(restaurant)
    if not restaurant.get_settings().qr_enabled:
        raise POSError('module_disabled', status_code=status.HTTP_403_FORBIDDEN, extra={'module': 'qr_enabled'})
    return restaurant


def create_qr_order(data):
    """Customer order from the QR menu. Prices always come from the menu."""
    restaurant = qr_restaurant(data.get('restaurant_id'))

    order_type = data.get('order_type') or 'DINE_IN'
    if order_type not in ('DINE_IN', 'TAKEAWAY'):
        raise POSError('validation_error', message='order_type must be DINE_IN or TAKEAWAY')
    table_code = data.get('table_code')
    table_id = data.get('table_id')
    if order_type == 'DINE_IN' and not (table_code or table_id):
        raise POSError('missing_fields', message='Dine-in orders need a table')

    items = data.get('items') or []
    if not items:
        raise POSError('order_empty')
    for line in items:
        line['quantity'] = _parse_quantity(line.get('quantity'), maximum=MAX_QR_QUANTITY)

    phone = (data.get('customer_phone') or '').strip()
    if phone and not PHONE_RE.match(phone):
        raise POSError('invalid_phone')

    table = None
    if table_code or table_id:
        table = resolve_table(restaurant, table_id=table_id, table_code=table_code)

    branch = None
    if table is not None:
        branch = table.branch
    elif data.get('branch_id'):
        branch = Branch.objects.filter(id=data['branch_id'], restaurant=restaurant, is_active=True).first()
    if branch is None:
        branch = restaurant.default_branch

    menu_items = {
        str(m.id): m for m in MenuItem.objects.select_related('category').filter(
            restaurant=restaurant, id__in=[line.get('menu_item_id') for line in items]
        )
    }
    for line in items:
        menu_item = menu_items.get(str(line.get('menu_item_id')))
        if menu_item is None or not menu_item.is_available_in(branch):
            raise POSError('menu_item_unavailable', extra={'menu_item_id': str(line.get('menu_item_id'))})

    with transaction.atomic():
        order = Order.objects.create(
            restaurant=restaurant,
            branch=branch,
            table=table,
            status='pending',
            source='qr',
            order_type=order_type,
            customer_phone=phone,
            notes=(data.get('notes') or '')[:1000],
            tax_rate=restaurant.get_settings().tax_rate,
        )
        for line in items:
            _create_line(order, menu_items[str(line['menu_item_id'])], line['quantity'],
                         line.get('notes', ''), line.get('modifiers') or ())

    order.refresh_from_db()
    logger.info("QR order #%s for %s (%s)", order.order_number, restaurant.name, order.total)
    return order


def confirm_qr_order(order, user):
    return _qr_transition(order, 'confirmed', user, 'QR_ORDER_CONFIRMED')


def reject_qr_order(order, reason, user):
    if order.status in Order.TERMINAL_STATUSES:
        raise _conflict('invalid_status', extra={'status': order.status})
    reason = (reason or '').strip() or 'Rejected by cashier'
    max_length = settings.POS['QR_REJECT_REASON_MAX_LENGTH']
    return _qr_transition(order, 'cancelled', user, 'QR_ORDER_REJECTED', cancelled_reason=reason[:max_length])


def _qr_transition(order, new_status, user, action, **fields):
    if order.source != 'qr':
        raise POSError('validation_error', message='Not a QR order')
    current = order.status
    if new_status == 'confirmed' and current != 'pending':
        raise _conflict('invalid_status', extra={'status': current})

    updated = Order.objects.filter(id=order.id, status=current).update(
        status=new_status, updated_at=timezone.now(), **fields
    )
    if not updated:
        raise _conflict('invalid_status')

    if new_status == 'confirmed' and order.shift_id is None:
        shift = get_open_shift(user)
        if shift is not None:
            Order.objects.filter(id=order.id).update(shift=shift)

    order.refresh_from_db()
    AuditLog.record(
        action, 'order', order.id, restaurant=order.restaurant, user=user,
        details={'order_number': order.order_number, 'from': current, 'to': new_status, **fields},
    )
    return order
