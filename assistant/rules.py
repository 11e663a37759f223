"""
Contextual alerts for the POS screens.

Rules are read-only: they look at a plain ``context`` dict describing what the
user is doing (current order, shift, payment attempt, kitchen queue) and
return the alerts that apply, most important first. Nothing here touches the
database; ``assistant.views`` builds the context.
"""
from django.utils import timezone

HOLD_THRESHOLD_MINUTES = 30
SHIFT_DURATION_HOURS = 12
VOID_COUNT_THRESHOLD = 5
HIGH_REFUND_MULTIPLIER = 2
PENDING_ORDER_THRESHOLD_MINUTES = 15
VOID_RAPID_THRESHOLD = 3
FAILED_PAYMENT_THRESHOLD = 2
VOID_VS_HOLD_RATIO_THRESHOLD = 3
KDS_STUCK_ORDER_THRESHOLD = 1
KDS_RUSH_ORDER_THRESHOLD = 5

SEVERITIES = ('info', 'warning', 'error')

RULES = {
    'cash_zero_amount': {
        'severity': 'error',
        'title': {'ar': "مبلغ الدفع صفر", 'en': "Zero Payment Amount"},
        'message': {
            'ar': "تم اختيار الدفع نقداً لكن المبلغ صفر. أدخل مبلغ الدفع.",
            'en': "Cash payment selected but amount is zero. Enter payment amount.",
        },
        'suggestion': {
            'ar': "أدخل المبلغ المستلم من العميل أو اختر طريقة دفع أخرى.",
            'en': "Enter the amount received from customer or select another payment method.",
        },
    },
    'refund_after_shift_closed': {
        'severity': 'error',
        'title': {'ar': "الوردية مغلقة", 'en': "Shift Closed"},
        'message': {
            'ar': "لا يمكن إجراء استرداد بعد إغلاق الوردية.",
            'en': "Cannot process refund after shift is closed.",
        },
        'suggestion': {
            'ar': "افتح وردية جديدة لإتمام الاسترداد.",
            'en': "Open a new shift to complete the refund.",
        },
    },
    'order_held_too_long': {
        'severity': 'warning',
        'title': {'ar': "طلب معلق لفترة طويلة", 'en': "Order Held Too Long"},
        'message': {
            'ar': "هذا الطلب معلق منذ أكثر من 30 دقيقة.",
            'en': "This order has been on hold for over 30 minutes.",
        },
        'suggestion': {
            'ar': "راجع الطلب واستأنفه أو ألغه حسب الحاجة.",
            'en': "Review the order and resume or cancel as needed.",
        },
    },
    'excessive_voids': {
        'severity': 'warning',
        'title': {'ar': "عمليات إلغاء متعددة", 'en': "Multiple Void Actions"},
        'message': {
            'ar': "تم تسجيل عدة عمليات إلغاء في هذه الوردية.",
            'en': "Multiple void actions recorded this shift.",
        },
        'suggestion': {
            'ar': "تأكد من صحة الطلبات قبل إضافتها. الإلغاءات تُسجل في سجل التدقيق.",
            'en': "Verify orders before adding. Voids are recorded in audit log.",
        },
    },
    'empty_order_payment': {
        'severity': 'error',
        'title': {'ar': "الطلب فارغ", 'en': "Empty Order"},
        'message': {
            'ar': "لا يمكن إتمام الدفع لطلب بدون أصناف.",
            'en': "Cannot complete payment for an order with no items.",
        },
        'suggestion': {
            'ar': "أضف أصناف للطلب أولاً.",
            'en': "Add items to the order first.",
        },
    },
    'shift_open_too_long': {
        'severity': 'info',
        'title': {'ar': "وردية طويلة", 'en': "Long Shift"},
        'message': {
            'ar': "الوردية مفتوحة منذ أكثر من 12 ساعة.",
            'en': "Shift has been open for over 12 hours.",
        },
        'suggestion': {
            'ar': "فكر في إغلاق الوردية وفتح وردية جديدة للمحاسبة الدقيقة.",
            'en': "Consider closing the shift and opening a new one for accurate accounting.",
        },
    },
    'table_no_active_order': {
        'severity': 'warning',
        'title': {'ar': "طاولة بدون طلب", 'en': "Table Without Order"},
        'message': {
            'ar': "الطاولة مشغولة لكن لا يوجد طلب نشط مرتبط بها.",
            'en': "Table is occupied but has no active order associated.",
        },
        'suggestion': {
            'ar': "أنشئ طلباً جديداً لهذه الطاولة أو حررها.",
            'en': "Create a new order for this table or free it.",
        },
    },
    'discount_no_reason': {
        'severity': 'info',
        'title': {'ar': "خصم بدون سبب", 'en': "Discount Without Reason"},
        'message': {
            'ar': "تم تطبيق خصم بدون تحديد السبب.",
            'en': "Discount applied without specifying a reason.",
        },
        'suggestion': {
            'ar': "يُفضل تسجيل سبب الخصم للمراجعة لاحقاً.",
            'en': "It's recommended to record the discount reason for later review.",
        },
    },
    'high_cash_refund': {
        'severity': 'warning',
        'title': {'ar': "استرداد نقدي مرتفع", 'en': "High Cash Refund"},
        'message': {
            'ar': "مبلغ الاسترداد النقدي أعلى من المتوسط.",
            'en': "Cash refund amount is higher than average.",
        },
        'suggestion': {
            'ar': "تأكد من صحة مبلغ الاسترداد. يتم تسجيل جميع الاستردادات.",
            'en': "Verify the refund amount is correct. All refunds are logged.",
        },
    },
    'training_mode_active': {
        'severity': 'info',
        'title': {'ar': "وضع التدريب", 'en': "Training Mode"},
        'message': {
            'ar': "أنت في وضع التدريب. لا يتم حفظ العمليات.",
            'en': "You are in training mode. Operations are not saved.",
        },
        'priority': 10,
    },
    'long_pending_order': {
        'severity': 'warning',
        'title': {'ar': "طلب معلق طويلاً", 'en': "Long Pending Order"},
        'message': {
            'ar': "هذا الطلب مفتوح لفترة طويلة بدون إجراء.",
            'en': "This order has been open for a while without action.",
        },
        'suggestion': {
            'ar': "أكمل الدفع أو انقله لقائمة الانتظار.",
            'en': "Complete payment or move to Hold.",
        },
        'priority': 70,
    },
    'repeated_void_actions': {
        'severity': 'info',
        'title': {'ar': "إلغاءات متكررة", 'en': "Repeated Voids"},
        'message': {
            'ar': "لاحظنا عدة إلغاءات في وقت قصير.",
            'en': "Multiple voids detected in a short time.",
        },
        'suggestion': {
            'ar': "استخدم «تعليق» للطلبات المؤجلة بدلاً من الإلغاء.",
            'en': "Use Hold for deferred orders instead of Void.",
        },
        'priority': 50,
    },
    'repeated_failed_payments': {
        'severity': 'warning',
        'title': {'ar': "محاولات دفع فاشلة", 'en': "Payment Issues"},
        'message': {
            'ar': "فشلت عدة محاولات دفع متتالية.",
            'en': "Multiple payment attempts failed.",
        },
        'suggestion': {
            'ar': "تحقق من طريقة الدفع أو المبلغ أو الاتصال.",
            'en': "Check payment method, amount, or connectivity.",
        },
        'priority': 80,
    },
    'void_instead_of_hold': {
        'severity': 'info',
        'title': {'ar': "نصيحة: استخدم التعليق", 'en': "Tip: Use Hold"},
        'message': {
            'ar': "الإلغاء المتكرر قد يكون غير مناسب.",
            'en': "Frequent voids may not be the best approach.",
        },
        'suggestion': {
            'ar': "التعليق يحفظ الطلب للمتابعة لاحقاً دون حذفه.",
            'en': "Hold preserves the order for later without deleting it.",
        },
        'priority': 40,
    },
    'cashier_pay_held_order': {
        'severity': 'warning',
        'title': {'ar': "الطلب معلق", 'en': "Order is Held"},
        'message': {
            'ar': "لا يمكن الدفع لطلب معلق. يجب استئنافه أولاً.",
            'en': "Cannot pay for a held order. Resume it first.",
        },
        'suggestion': {
            'ar': "افتح «الطلبات المعلقة» واضغط «استئناف» على هذا الطلب.",
            'en': "Open 'Held Orders' and click 'Resume' on this order.",
        },
        'priority': 85,
    },
    'owner_low_stock': {
        'severity': 'warning',
        'title': {'ar': "مخزون منخفض", 'en': "Low Stock"},
        'message': {
            'ar': "بعض الأصناف قاربت على النفاد.",
            'en': "Some items are running low.",
        },
        'suggestion': {
            'ar': "راجع تنبيهات المخزون واطلب التوريد قبل النفاد.",
            'en': "Check inventory alerts and order supplies before stockout.",
        },
        'priority': 55,
    },
    'kds_stuck_orders': {
        'severity': 'warning',
        'title': {'ar': "طلبات متأخرة", 'en': "Delayed Orders"},
        'message': {
            'ar': "توجد طلبات في الانتظار لفترة طويلة.",
            'en': "Some orders have been waiting too long.",
        },
        'suggestion': {
            'ar': "ركز على الطلبات الحمراء أولاً.",
            'en': "Focus on red orders first.",
        },
        'priority': 75,
    },
    'kds_rush_accumulation': {
        'severity': 'info',
        'title': {'ar': "ازدحام الطلبات", 'en': "Order Rush"},
        'message': {
            'ar': "تراكم طلبات في الانتظار.",
            'en': "Orders accumulating in queue.",
        },
        'suggestion': {
            'ar': "ابدأ بالأقدم وحافظ على الترتيب.",
            'en': "Start with oldest and maintain order.",
        },
        'priority': 45,
    },
    'kds_first_time': {
        'severity': 'info',
        'title': {'ar': "مرحباً بك في شاشة المطبخ", 'en': "Welcome to Kitchen Display"},
        'message': {
            'ar': "الطلبات تظهر بالترتيب. اضغط لتغيير الحالة.",
            'en': "Orders appear in order. Click to change status.",
        },
        'suggestion': {
            'ar': "جديد ← قيد التحضير ← جاهز",
            'en': "New -> In Progress -> Ready",
        },
        'priority': 30,
    },
}


def get_rule(rule_id):
    """Rule definition with its id. Raises KeyError for an unknown id."""
    rule = RULES[rule_id]
    return {
        'id': rule_id,
        'severity': rule['severity'],
        'title': rule['title'],
        'message': rule['message'],
        'suggestion': rule.get('suggestion'),
        'priority': rule.get('priority', 0),
    }


def _minutes_since(value, now):
    return (now - value).total_seconds() / 60


def _is_set(context, key):
    return context.get(key) is not None


def _triggered_ids(context, now):
    """Yield the ids of the rules whose condition holds, in evaluation order."""
    if context.get('payment_method') == 'cash' and _is_set(context, 'payment_amount') \
            and context['payment_amount'] == 0:
        yield 'cash_zero_amount'

    if context.get('last_action') == 'refund_attempt' and context.get('shift_status') == 'closed':
        yield 'refund_after_shift_closed'

    if context.get('order_status') == 'held' and context.get('order_held_at'):
        if _minutes_since(context['order_held_at'], now) > HOLD_THRESHOLD_MINUTES:
            yield 'order_held_too_long'

    void_count = context.get('void_count_this_shift')
    if void_count is not None and void_count >= VOID_COUNT_THRESHOLD:
        yield 'excessive_voids'

    if context.get('last_action') == 'payment_attempt' and not context.get('order_item_count'):
        yield 'empty_order_payment'

    if context.get('shift_status') == 'open' and context.get('shift_opened_at'):
        if _minutes_since(context['shift_opened_at'], now) / 60 > SHIFT_DURATION_HOURS:
            yield 'shift_open_too_long'

    if context.get('table_id') and context.get('table_has_active_order') is False:
        yield 'table_no_active_order'

    if context.get('discount_applied') and not context.get('discount_reason'):
        yield 'discount_no_reason'

    refund_amount = context.get('refund_amount_this_shift')
    average_refund = context.get('average_refund_amount')
    if refund_amount is not None and average_refund is not None and average_refund > 0 \
            and refund_amount > average_refund * HIGH_REFUND_MULTIPLIER:
        yield 'high_cash_refund'

    if context.get('training_mode'):
        yield 'training_mode_active'

    if context.get('order_status') == 'open' and context.get('order_created_at') \
            and (context.get('order_item_count') or 0) > 0:
        if _minutes_since(context['order_created_at'], now) > PENDING_ORDER_THRESHOLD_MINUTES:
            yield 'long_pending_order'

    voids_last_hour = context.get('void_count_last_hour')
    if voids_last_hour is not None and voids_last_hour >= VOID_RAPID_THRESHOLD:
        yield 'repeated_void_actions'

    failed_payments = context.get('failed_payment_count')
    if failed_payments is not None and failed_payments >= FAILED_PAYMENT_THRESHOLD:
        yield 'repeated_failed_payments'

    hold_count = context.get('hold_count_this_shift')
    if void_count is not None and hold_count is not None and void_count >= VOID_COUNT_THRESHOLD \
            and void_count > (hold_count or 0) * VOID_VS_HOLD_RATIO_THRESHOLD:
        yield 'void_instead_of_hold'

    stuck = context.get('kds_stuck_order_count')
    if stuck is not None and stuck >= KDS_STUCK_ORDER_THRESHOLD:
        yield 'kds_stuck_orders'

    rush = context.get('kds_rush_order_count')
    if rush is not None and rush >= KDS_RUSH_ORDER_THRESHOLD:
        yield 'kds_rush_accumulation'

    if context.get('kds_is_first_visit') is True:
        yield 'kds_first_time'


def evaluate_rules(context, now=None):
    """
    Alerts triggered by ``context``, highest priority first.

    Rules of equal priority keep their evaluation order.
    """
    now = now or timezone.now()
    alerts = [get_rule(rule_id) for rule_id in _triggered_ids(context, now)]
    return sorted(alerts, key=lambda alert: -alert['priority'])


def get_top_alert(context, now=None):
    alerts = evaluate_rules(context, now)
    return alerts[0] if alerts else None
