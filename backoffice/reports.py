"""
Owner reports over a date range.

Sales are counted on the day the order was created and refunds on the day
they were issued, so a refund of an earlier order lowers the day it happened.
Each refund is split across payment buckets the same way the Z report does it.
"""
from collections import OrderedDict
from datetime import timedelta

from django.db.models import Count, DecimalField, ExpressionWrapper, Sum, F, Q
from django.utils import timezone

from orders.calculations import round_jod, to_decimal, ZERO
from orders.models import Order, OrderItem, Payment, Refund
from shifts.models import Shift
from shifts.reports import BUCKETS, SALE_STATUSES, allocate_refund, payment_bucket


def _orders(restaurant, branch, start_date, end_date):
    queryset = Order.objects.filter(
        restaurant=restaurant, created_at__date__gte=start_date, created_at__date__lte=end_date
    )
    if branch is not None:
        queryset = queryset.filter(branch=branch)
    return queryset


def _refunds(restaurant, branch, start_date, end_date):
    queryset = Refund.objects.filter(
        restaurant=restaurant, created_at__date__gte=start_date, created_at__date__lte=end_date
    )
    if branch is not None:
        queryset = queryset.filter(order__branch=branch)
    return queryset


def _payments_by_order(order_ids):
    grouped = {}
    for payment in Payment.objects.filter(order_id__in=order_ids).values('order_id', 'method', 'amount'):
        grouped.setdefault(str(payment['order_id']), []).append(payment)
    return grouped


def _empty_day(day):
    row = {'date': day, 'order_count': 0, 'gross_sales': ZERO, 'refunds_total': ZERO, 'tax': ZERO}
    row.update({bucket: ZERO for bucket in BUCKETS})
    return row


def daily_sales(restaurant, branch, start_date, end_date):
    """One row per calendar day of the range, oldest first."""
    days = OrderedDict()
    day = start_date
    while day <= end_date:
        days[day] = _empty_day(day)
        day += timedelta(days=1)

    orders = list(_orders(restaurant, branch, start_date, end_date).filter(status__in=SALE_STATUSES).values(
        'id', 'total', 'tax_amount', 'created_at'
    ))
    refunds = list(_refunds(restaurant, branch, start_date, end_date).values('order_id', 'amount', 'created_at'))
    payments = _payments_by_order(
        [o['id'] for o in orders] + [r['order_id'] for r in refunds]
    )

    for order in orders:
        row = days[_local_date(order['created_at'])]
        row['order_count'] += 1
        row['gross_sales'] += to_decimal(order['total'])
        row['tax'] += to_decimal(order['tax_amount'])
        for payment in payments.get(str(order['id']), []):
            bucket = payment_bucket(payment['method'])
            if bucket:
                row[bucket] += to_decimal(payment['amount'])

    for refund in refunds:
        row = days[_local_date(refund['created_at'])]
        amount = to_decimal(refund['amount'])
        row['refunds_total'] += amount
        allocation = allocate_refund(amount, payments.get(str(refund['order_id']), []))
        for bucket in BUCKETS:
            row[bucket] -= allocation[bucket]

    rows = []
    for row in days.values():
        row['net_sales'] = row['gross_sales'] - row['refunds_total']
        rows.append({
            key: round_jod(value) if key not in ('date', 'order_count') else value
            for key, value in row.items()
        })
    return rows


def _local_date(value):
    return timezone.localtime(value).date()


def daily_summary(restaurant, branch, day):
    row = daily_sales(restaurant, branch, day, day)[0]
    orders = _orders(restaurant, branch, day, day)
    shifts = Shift.objects.filter(restaurant=restaurant, status='open')
    if branch is not None:
        shifts = shifts.filter(branch=branch)

    row.update({
        'cancelled_count': orders.filter(status='cancelled').count(),
        'open_orders': orders.filter(status__in=('open', 'held')).count(),
        'open_shifts': shifts.count(),
        'average_order_value': round_jod(row['net_sales'] / row['order_count']) if row['order_count'] else ZERO,
    })
    return row


def cash_differences(restaurant, branch, start_date, end_date):
    """Closed shifts of the range, shifts with a difference first"""
    queryset = Shift.objects.filter(
        restaurant=restaurant, status='closed',
        closed_at__date__gte=start_date, closed_at__date__lte=end_date,
    ).select_related('branch', 'cashier')
    if branch is not None:
        queryset = queryset.filter(branch=branch)

    rows = [
        {
            'shift_id': str(shift.id),
            'closed_at': shift.closed_at,
            'branch_name': shift.branch.name,
            'cashier_email': shift.cashier.email,
            'opening_cash': shift.opening_cash,
            'expected_cash': shift.expected_cash,
            'closing_cash': shift.closing_cash,
            'cash_difference': shift.cash_difference or ZERO,
        }
        for shift in queryset
    ]
    rows.sort(key=lambda row: (row['cash_difference'] == 0, -abs(row['cash_difference'])))
    return rows


def item_sales(restaurant, branch, start_date, end_date, limit=10, ascending=False):
    """Menu items ranked by quantity sold"""
    queryset = OrderItem.objects.filter(
        order__restaurant=restaurant,
        order__status__in=SALE_STATUSES,
        order__created_at__date__gte=start_date,
        order__created_at__date__lte=end_date,
        voided=False,
    )
    if branch is not None:
        queryset = queryset.filter(order__branch=branch)

    ranked = queryset.values('menu_item_id', 'name').annotate(
        quantity_sold=Sum('quantity'),
        revenue=Sum(ExpressionWrapper(F('price') * F('quantity'), output_field=DecimalField())),
        order_count=Count('order', distinct=True),
    ).order_by('quantity_sold' if ascending else '-quantity_sold', 'name')[:limit]

    return [
        {
            'menu_item_id': str(row['menu_item_id']) if row['menu_item_id'] else None,
            'name': row['name'],
            'quantity': row['quantity_sold'],
            'revenue': round_jod(row['revenue'] or ZERO),
            'order_count': row['order_count'],
        }
        for row in ranked
    ]


def refund_void_insights(restaurant, branch, start_date, end_date):
    refunds = _refunds(restaurant, branch, start_date, end_date).select_related('order', 'refunded_by')
    voids = OrderItem.objects.filter(
        order__restaurant=restaurant,
        order__created_at__date__gte=start_date,
        order__created_at__date__lte=end_date,
        voided=True,
    ).select_related('order', 'voided_by')
    if branch is not None:
        voids = voids.filter(order__branch=branch)

    refund_totals = refunds.aggregate(
        total=Sum('amount'),
        full_count=Count('id', filter=Q(refund_type='full')),
        partial_count=Count('id', filter=Q(refund_type='partial')),
    )

    return {
        'refund_count': refunds.count(),
        'refunds_total': round_jod(refund_totals['total'] or ZERO),
        'full_refunds': refund_totals['full_count'],
        'partial_refunds': refund_totals['partial_count'],
        'void_count': voids.count(),
        'voided_value': round_jod(sum((item.price * item.quantity for item in voids), ZERO)),
        'refunds': [
            {
                'order_number': refund.order.order_number,
                'amount': round_jod(refund.amount),
                'refund_type': refund.refund_type,
                'reason': refund.reason,
                'refunded_by': refund.refunded_by.email if refund.refunded_by else None,
                'created_at': refund.created_at,
            }
            for refund in refunds[:50]
        ],
        'voids': [
            {
                'order_number': item.order.order_number,
                'name': item.name,
                'quantity': item.quantity,
                'reason': item.void_reason,
                'voided_by': item.voided_by.email if item.voided_by else None,
            }
            for item in voids[:50]
        ],
    }
