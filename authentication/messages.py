"""
Bilingual (English / Arabic) user-facing messages.

Every business error raised by the API carries a machine code. The code is
looked up here so that clients can show a friendly message in either language
without ever displaying raw database or stack-trace text.
"""
import re

MESSAGES = {
    # Generic
    'unexpected': (
        'Something went wrong. Please try again.',
        'حدث خطأ غير متوقع. يرجى المحاولة مرة أخرى.',
    ),
    'validation_error': (
        'Some fields are missing or invalid.',
        'بعض الحقول ناقصة أو غير صحيحة.',
    ),
    'not_authenticated': (
        'Please sign in to continue.',
        'يرجى تسجيل الدخول للمتابعة.',
    ),
    'not_authorized': (
        'You are not allowed to perform this action.',
        'ليس لديك صلاحية لتنفيذ هذا الإجراء.',
    ),
    'permission_denied': (
        "You don't have permission to do this. Contact the restaurant owner if you need access.",
        'ليس لديك صلاحية للقيام بذلك. تواصل مع مالك المطعم إذا كنت بحاجة إلى الوصول.',
    ),
    'not_found': (
        'The requested record was not found. It may have been removed.',
        'لم يتم العثور على السجل المطلوب. ربما تم حذفه.',
    ),
    'duplicate': (
        'This record already exists.',
        'هذا السجل موجود مسبقاً.',
    ),
    'network': (
        'Connection problem. Check your internet and try again.',
        'مشكلة في الاتصال. تحقق من الإنترنت وحاول مرة أخرى.',
    ),
    'method_not_allowed': (
        'This action is not supported.',
        'هذا الإجراء غير مدعوم.',
    ),
    'conflict': (
        'The record was changed by someone else. Refresh and try again.',
        'تم تعديل السجل من قبل مستخدم آخر. قم بالتحديث وحاول مرة أخرى.',
    ),
    'missing_fields': (
        'Required information is missing.',
        'معلومات مطلوبة ناقصة.',
    ),
    'user_exists': (
        'A user with this email already exists.',
        'يوجد مستخدم بهذا البريد الإلكتروني مسبقاً.',
    ),
    'email_taken': (
        'This email is already registered.',
        'هذا البريد الإلكتروني مسجل مسبقاً.',
    ),
    'staff_has_shifts': (
        'This staff member has shift history. Deactivate the account instead.',
        'لدى هذا الموظف سجل ورديات. قم بتعطيل الحساب بدلاً من حذفه.',
    ),
    'cannot_delete_user': (
        'This account cannot be deleted.',
        'لا يمكن حذف هذا الحساب.',
    ),

    # Tenancy
    'restaurant_mismatch': (
        'This record belongs to a different restaurant.',
        'هذا السجل يخص مطعماً آخر.',
    ),
    'restaurant_inactive': (
        'This restaurant is currently inactive. Contact support.',
        'هذا المطعم غير نشط حالياً. تواصل مع الدعم.',
    ),
    'SUBSCRIPTION_EXPIRED': (
        'Your subscription has expired. Please renew to continue.',
        'انتهى اشتراكك. يرجى التجديد للمتابعة.',
    ),
    'module_disabled': (
        'This feature is not enabled for your restaurant.',
        'هذه الميزة غير مفعلة لمطعمك.',
    ),
    'branch_limit_reached': (
        'You have reached the maximum number of branches for your plan.',
        'لقد وصلت إلى الحد الأقصى لعدد الفروع المسموح به في اشتراكك.',
    ),
    'invalid_branch_limit': (
        'Branch limit must be empty (unlimited) or a whole number of at least 1.',
        'يجب أن يكون حد الفروع فارغاً (غير محدود) أو رقماً صحيحاً لا يقل عن 1.',
    ),
    'branch_mismatch': (
        'This order belongs to another branch.',
        'هذا الطلب يخص فرعاً آخر.',
    ),
    'active_cashiers': (
        'This branch still has active cashiers. Deactivate them first.',
        'يوجد كاشيرات نشطون في هذا الفرع. قم بإيقافهم أولاً.',
    ),
    'open_shifts': (
        'This branch has open shifts. Close them first.',
        'يوجد ورديات مفتوحة في هذا الفرع. قم بإغلاقها أولاً.',
    ),

    # Orders and payments
    'order_not_found': (
        'Order not found.',
        'الطلب غير موجود.',
    ),
    'order_not_open': (
        'This order is closed and cannot be changed.',
        'هذا الطلب مغلق ولا يمكن تعديله.',
    ),
    'order_held': (
        'This order is on hold. Resume it first.',
        'هذا الطلب معلق. قم باستئنافه أولاً.',
    ),
    'order_empty': (
        'Cannot complete an order with no items.',
        'لا يمكن إتمام طلب بدون أصناف.',
    ),
    'invalid_payment_method': (
        'This payment method is not supported.',
        'طريقة الدفع هذه غير مدعومة.',
    ),
    'invalid_amount': (
        'Amount must be greater than zero.',
        'يجب أن يكون المبلغ أكبر من صفر.',
    ),
    'card_overpayment': (
        'Card and wallet payments must not exceed the order total.',
        'يجب ألا تتجاوز مدفوعات البطاقة والمحفظة إجمالي الطلب.',
    ),
    'underpayment': (
        'Payment is less than the order total.',
        'المبلغ المدفوع أقل من إجمالي الطلب.',
    ),
    'race_condition': (
        'This order was updated at the same time by another device. Refresh and try again.',
        'تم تحديث هذا الطلب في نفس الوقت من جهاز آخر. قم بالتحديث وحاول مرة أخرى.',
    ),
    'payment_failed': (
        'Payment could not be recorded. The order was not charged.',
        'تعذر تسجيل الدفع. لم يتم احتساب الطلب.',
    ),
    'payment_duplicate': (
        'This order appears to be already paid.',
        'يبدو أن هذا الطلب مدفوع مسبقاً.',
    ),
    'invalid_refund_type': (
        'Refund type must be full or partial.',
        'يجب أن يكون نوع الاسترداد كاملاً أو جزئياً.',
    ),
    'order_not_refundable': (
        'Only paid orders can be refunded.',
        'يمكن استرداد الطلبات المدفوعة فقط.',
    ),
    'refund_exceeds': (
        'Refund amount exceeds the refundable balance.',
        'مبلغ الاسترداد يتجاوز الرصيد القابل للاسترداد.',
    ),
    'invalid_transition': (
        'This status change is not allowed.',
        'تغيير الحالة هذا غير مسموح.',
    ),
    'invalid_status': (
        'The order is no longer in a state that allows this action.',
        'لم يعد الطلب في حالة تسمح بهذا الإجراء.',
    ),
    'item_already_sent': (
        'This item was already sent to the kitchen. Void it instead.',
        'تم إرسال هذا الصنف إلى المطبخ. قم بإلغائه بدلاً من ذلك.',
    ),
    'discount_not_allowed': (
        'Discounts are disabled or exceed the allowed maximum.',
        'الخصومات معطلة أو تتجاوز الحد المسموح.',
    ),
    'reason_required': (
        'Please enter a reason.',
        'يرجى إدخال السبب.',
    ),
    'table_not_found': (
        'Table not found or inactive.',
        'الطاولة غير موجودة أو غير نشطة.',
    ),
    'menu_item_unavailable': (
        'One or more items are no longer available.',
        'صنف أو أكثر لم يعد متاحاً.',
    ),
    'invalid_phone': (
        'Phone number must be 7 to 15 digits.',
        'يجب أن يتكون رقم الهاتف من 7 إلى 15 رقماً.',
    ),
    'invalid_quantity': (
        'Quantity must be a whole number between 1 and 99.',
        'يجب أن تكون الكمية رقماً صحيحاً بين 1 و 99.',
    ),

    # Shifts
    'no_open_shift': (
        'Open a shift first.',
        'افتح وردية أولاً.',
    ),
    'shift_already_open': (
        'You already have an open shift.',
        'لديك وردية مفتوحة بالفعل.',
    ),
    'shift_closed': (
        'This shift is closed.',
        'هذه الوردية مغلقة.',
    ),
    'open_orders_exist': (
        'This shift still has open or held orders. Confirm to close it anyway.',
        'لا تزال هناك طلبات مفتوحة أو معلقة في هذه الوردية. قم بالتأكيد لإغلاقها على أي حال.',
    ),

    # Inventory
    'insufficient_stock': (
        'Not enough stock for this operation.',
        'المخزون غير كافٍ لهذه العملية.',
    ),
    'recipe_invalid': (
        'The recipe for this item is missing or invalid.',
        'وصفة هذا الصنف غير موجودة أو غير صحيحة.',
    ),
    'unit_mismatch': (
        'Unit conversion is not defined for this item.',
        'تحويل الوحدة غير معرف لهذا الصنف.',
    ),
    'technical': (
        'A technical problem occurred. Try again in a moment.',
        'حدثت مشكلة تقنية. حاول مرة أخرى بعد قليل.',
    ),
}


def get_message(code, language='en'):
    en, ar = MESSAGES.get(code, MESSAGES['unexpected'])
    return ar if language == 'ar' else en


def bilingual(code):
    return {
        'message_en': get_message(code, 'en'),
        'message_ar': get_message(code, 'ar'),
    }


def extract_error_text(error):
    """Pull a message and an optional code out of an exception, dict or string."""
    if error is None:
        return '', ''
    if isinstance(error, str):
        return error, ''
    if isinstance(error, dict):
        message = error.get('message') or error.get('error') or error.get('detail') or ''
        return str(message), str(error.get('code') or '')
    code = getattr(error, 'pgcode', None) or getattr(error, 'code', None) or ''
    if not isinstance(code, str):
        code = ''
    return str(error), code


PERMISSION_MARKERS = ('policy', 'rls', 'denied', 'permission', 'not allowed', 'unauthorized')
DUPLICATE_MARKERS = ('duplicate key', 'already exists', 'unique constraint', 'already registered')
NOT_FOUND_MARKERS = ('not found', 'no rows', 'does not exist')
NETWORK_MARKERS = ('network', 'failed to fetch', 'connection', 'timeout', 'econnrefused', 'offline')
MISMATCH_MARKERS = ('restaurant mismatch', 'restaurant_mismatch', 'wrong restaurant')


def map_error(error):
    """
    Map a raw error to a catalog code for back-office users.

    Matching is by substring on the lower-cased message, in a fixed order:
    branch deactivation guards, permission, duplicate, not found, network,
    restaurant mismatch. Anything else is ``unexpected``.
    """
    message, code = extract_error_text(error)
    lower = message.lower()

    if message == 'ACTIVE_CASHIERS' or 'active_cashiers' in lower:
        return 'active_cashiers'
    if message == 'OPEN_SHIFTS' or 'open_shifts' in lower:
        return 'open_shifts'
    if code == '42501' or any(marker in lower for marker in PERMISSION_MARKERS):
        return 'permission_denied'
    if any(marker in lower for marker in DUPLICATE_MARKERS):
        return 'duplicate'
    if any(marker in lower for marker in NOT_FOUND_MARKERS):
        return 'not_found'
    if any(marker in lower for marker in NETWORK_MARKERS):
        return 'network'
    if any(marker in lower for marker in MISMATCH_MARKERS):
        return 'restaurant_mismatch'
    return 'unexpected'


CASHIER_PATTERNS = {
    'order_not_open': re.compile(r'order.*not\s*open|status:\s*(paid|held|cancelled|voided)', re.I),
    'payment_duplicate': re.compile(r'already\s*paid|duplicate|possible\s*duplicate', re.I),
    'order_held': re.compile(r'status:\s*held', re.I),
    'underpayment': re.compile(r'payment.*less\s*than|underpay', re.I),
    'card_overpayment': re.compile(r'card.*exact|no\s*overpay', re.I),
    'restaurant_inactive': re.compile(r'restaurant.*not\s*active|inactive', re.I),
    'access_denied': re.compile(r'access\s*denied|permission|forbidden|403', re.I),
    'unauthorized': re.compile(r'unauthorized|401|jwt', re.I),
    'insufficient_stock': re.compile(r'insufficient\s*stock|not\s*enough', re.I),
    'recipe_invalid': re.compile(r'recipe.*invalid|no\s*recipe|empty\s*recipe', re.I),
    'unit_mismatch': re.compile(r'unit.*mismatch|conversion.*error', re.I),
    'network': re.compile(r'network|fetch|connection|timeout', re.I),
    'server': re.compile(r'500|internal\s*server', re.I),
}

INGREDIENT_PATTERN = re.compile(r'ingredient[:\s]+([^,.\n]+)', re.I)


def map_cashier_error(error):
    """
    Map a raw error to a catalog code for cashier screens.

    Returns ``(code, ingredient)``; ``ingredient`` is only set for stock errors
    that name the missing ingredient.
    """
    message, _ = extract_error_text(error)

    if CASHIER_PATTERNS['payment_duplicate'].search(message) or CASHIER_PATTERNS['order_not_open'].search(message):
        if CASHIER_PATTERNS['order_held'].search(message):
            return 'order_held', None
        if CASHIER_PATTERNS['payment_duplicate'].search(message):
            return 'payment_duplicate', None
        return 'order_not_open', None

    if CASHIER_PATTERNS['underpayment'].search(message):
        return 'underpayment', None
    if CASHIER_PATTERNS['card_overpayment'].search(message):
        return 'card_overpayment', None
    if CASHIER_PATTERNS['restaurant_inactive'].search(message):
        return 'restaurant_inactive', None
    if CASHIER_PATTERNS['access_denied'].search(message) or CASHIER_PATTERNS['unauthorized'].search(message):
        return 'permission_denied', None

    if CASHIER_PATTERNS['insufficient_stock'].search(message):
        match = INGREDIENT_PATTERN.search(message)
        return 'insufficient_stock', match.group(1).strip() if match else None
    if CASHIER_PATTERNS['recipe_invalid'].search(message):
        return 'recipe_invalid', None
    if CASHIER_PATTERNS['unit_mismatch'].search(message):
        return 'unit_mismatch', None

    if CASHIER_PATTERNS['network'].search(message) or CASHIER_PATTERNS['server'].search(message):
        return 'technical', None

    return 'unexpected', None


def describe_error(error, audience='owner'):
    """Bilingual payload for a raw error, using the cashier or back-office mapping."""
    ingredient = None
    if audience == 'cashier':
        code, ingredient = map_cashier_error(error)
    else:
        code = map_error(error)
    payload = {'code': code, **bilingual(code)}
    if ingredient:
        payload['ingredient'] = ingredient
    return payload
