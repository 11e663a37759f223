"""
Z report: end-of-shift summary of sales, payments and the cash drawer.

Gross figures cover every paid order of the shift, refunded or not. Refunds are
then taken off per payment bucket; refunds carry no payment method, so each
one is allocated from the payments of its order. Net figures are never
clamped at zero, a negative value means more was refunded than collected.
"""
from decimal import Decimal

from orders.calculations import round_jod, to_decimal, ZERO
from orders.models import Order, Payment, Refund

PAYMENT_BUCKETS = {
    'cash': 'cash',
    'visa': 'card',
    'cliq': 'mobile',
    'zain_cash': 'mobile',
    'orange_money': 'mobile',
    'umniah_wallet': 'mobile',
}

BUCKETS = ('cash', 'card', 'mobile')

# Paid takeaway orders keep moving through the kitchen statuses
SALE_STATUSES = ('paid', 'refunded', 'new', 'in_progress', 'ready', 'closed')


def payment_bucket(method):
    return PAYMENT_BUCKETS.get(method)


def order_discount(order):
    value = to_decimal(order.get('discount_value'))
    if value <= 0:
        return ZERO
    if order.get('discount_type') in ('percent', 'percentage'):
        return to_decimal(order.get('subtotal')) * value / 100
    return value


def allocate_refund(amount, payments):
    """
    Split one refund across payment buckets.

    No supported payment: everything goes back through the drawer (cash).
    One supported payment: all of it to that bucket. Split payments: each
    bucket in proportion to its share of the order's supported payments.
    """
    amount = to_decimal(amount)
    allocation = {bucket: ZERO for bucket in BUCKETS}
    supported = [p for p in payments if payment_bucket(p['method'])]
    supported_sum = sum((to_decimal(p['amount']) for p in supported), ZERO)

    if not supported or supported_sum == 0:
        allocation['cash'] += amount
    elif len(supported) == 1:
        allocation[payment_bucket(supported[0]['method'])] += amount
    else:
        for payment in supported:
            share = to_decimal(payment['amount']) / supported_sum
            allocation[payment_bucket(payment['method'])] += amount * share
    return allocation


def build_z_report(shift, orders, payments, refunds, transactions):
    """
    Compute the Z report from plain rows.

    ``shift``: opening_cash, closing_cash (None while open).
    ``orders``: id, status, subtotal, discount_type, discount_value,
    tax_amount, service_charge, total.
    ``payments``: order_id, method, amount.
    ``refunds``: order_id, amount.
    ``transactions``: type (cash_in|cash_out), amount.
    """
    sale_orders = [o for o in orders if o['status'] in SALE_STATUSES]
    cancelled_count = sum(1 for o in orders if o['status'] == 'cancelled')
    orders_by_id = {str(o['id']): o for o in sale_orders}

    payments_by_order = {}
    for payment in payments:
        payments_by_order.setdefault(str(payment['order_id']), []).append(payment)

    gross_sales = sum((to_decimal(o['total']) for o in sale_orders), ZERO)
    gross_subtotal = sum((to_decimal(o['subtotal']) for o in sale_orders), ZERO)
    gross_tax = sum((to_decimal(o['tax_amount']) for o in sale_orders), ZERO)
    gross_service = sum((to_decimal(o['service_charge']) for o in sale_orders), ZERO)
    total_discounts = sum((order_discount(o) for o in sale_orders), ZERO)

    gross_payments = {bucket: ZERO for bucket in BUCKETS}
    for order_id in orders_by_id:
        for payment in payments_by_order.get(order_id, []):
            bucket = payment_bucket(payment['method'])
            if bucket:
                gross_payments[bucket] += to_decimal(payment['amount'])

    refunds_total = ZERO
    refund_payments = {bucket: ZERO for bucket in BUCKETS}
    refund_tax = ZERO
    refund_service = ZERO
    refund_subtotal = ZERO

    for refund in refunds:
        amount = to_decimal(refund['amount'])
        refunds_total += amount
        order = orders_by_id.get(str(refund['order_id']))
        if order is None:
            continue

        allocation = allocate_refund(amount, payments_by_order.get(str(refund['order_id']), []))
        for bucket in BUCKETS:
            refund_payments[bucket] += allocation[bucket]

        order_total = to_decimal(order['total'])
        if order_total > 0:
            ratio = amount / order_total
            refund_tax += to_decimal(order['tax_amount']) * ratio
            refund_service += to_decimal(order['service_charge']) * ratio
            refund_subtotal += to_decimal(order['subtotal']) * ratio

    net_payments = {bucket: gross_payments[bucket] - refund_payments[bucket] for bucket in BUCKETS}

    cash_in = sum((to_decimal(t['amount']) for t in transactions if t['type'] == 'cash_in'), ZERO)
    cash_out = sum((to_decimal(t['amount']) for t in transactions if t['type'] == 'cash_out'), ZERO)

    opening_cash = to_decimal(shift.get('opening_cash'))
    closing_cash = shift.get('closing_cash')
    expected_cash = opening_cash + net_payments['cash'] + cash_in - cash_out
    if closing_cash is None:
        cash_difference = ZERO
    else:
        closing_cash = to_decimal(closing_cash)
        cash_difference = closing_cash - expected_cash

    net_sales = gross_sales - refunds_total
    order_count = len(sale_orders)
    average_order_value = net_sales / order_count if order_count else ZERO

    report = {
        'order_count': order_count,
        'cancelled_count': cancelled_count,
        'refund_count': len(refunds),

        'gross_sales': gross_sales,
        'gross_subtotal': gross_subtotal,
        'gross_tax': gross_tax,
        'gross_service_charge': gross_service,
        'total_discounts': total_discounts,
        'gross_cash_payments': gross_payments['cash'],
        'gross_card_payments': gross_payments['card'],
        'gross_mobile_payments': gross_payments['mobile'],

        'refunds_total': refunds_total,
        'refund_tax': refund_tax,
        'refund_service_charge': refund_service,
        'refund_subtotal': refund_subtotal,
        'cash_refunds': refund_payments['cash'],
        'card_refunds': refund_payments['card'],
        'mobile_refunds': refund_payments['mobile'],

        'net_sales': net_sales,
        'net_subtotal': gross_subtotal - refund_subtotal,
        'net_tax': gross_tax - refund_tax,
        'net_service_charge': gross_service - refund_service,
        'net_cash_payments': net_payments['cash'],
        'net_card_payments': net_payments['card'],
        'net_mobile_payments': net_payments['mobile'],

        'opening_cash': opening_cash,
        'closing_cash': closing_cash,
        'cash_in': cash_in,
        'cash_out': cash_out,
        'expected_cash': expected_cash,
        'cash_difference': cash_difference,
        'average_order_value': average_order_value,
    }
    return {
        key: round_jod(value) if isinstance(value, Decimal) else value
        for key, value in report.items()
    }


def load_z_report(shift):
    """Z report of a ``Shift`` row, read from the database."""
    orders = list(Order.objects.filter(shift=shift).values(
        'id', 'status', 'subtotal', 'discount_type', 'discount_value',
        'tax_amount', 'service_charge', 'total'
    ))
    order_ids = [o['id'] for o in orders]
    payments = list(Payment.objects.filter(order_id__in=order_ids).values('order_id', 'method', 'amount'))
    refunds = list(Refund.objects.filter(order_id__in=order_ids).values('order_id', 'amount'))
    transactions = list(shift.transactions.values('type', 'amount'))

    report = build_z_report(
        {'opening_cash': shift.opening_cash, 'closing_cash': shift.closing_cash},
        orders, payments, refunds, transactions,
    )
    report.update({
        'shift_id': str(shift.id),
        'status': shift.status,
        'cashier_email': shift.cashier.email,
        'branch_name': shift.branch.name,
        'opened_at': shift.opened_at,
        'closed_at': shift.closed_at,
    })
    return report
