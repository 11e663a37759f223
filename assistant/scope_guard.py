"""
Keeps the help assistant on POS topics.

``check_scope`` classifies a free-text question as in or out of scope and
detects what kind of help is asked for. Matching is plain substring search on
the lower-cased text, in Arabic and English.
"""
from django.conf import settings

POS_KEYWORDS = {
    'ar': [
        "كاشير", "طلب", "طلبات", "فاتورة", "فواتير", "دفع", "نقد", "بطاقة",
        "فيزا", "ماستركارد", "محفظة", "خصم", "ضريبة", "إجمالي", "مبلغ",
        "قائمة", "منيو", "صنف", "أصناف", "فئة", "فئات", "سعر", "أسعار",
        "طاولة", "طاولات", "عميل", "زبون", "استلام", "توصيل", "تيك اواي",
        "مخزون", "مخازن", "كمية", "وحدة", "نقل", "هدر", "جرد",
        "موظف", "موظفين", "مالك", "وردية", "شفت", "فتح", "إغلاق",
        "تقرير", "تقارير", "إحصائيات", "مبيعات", "أرباح", "تكلفة", "هامش",
        "إعدادات", "ضبط", "فرع", "فروع", "مطعم",
        "نظام", "البرنامج", "التطبيق", "الشاشة",
        "كيف", "لماذا", "أين", "متى", "مشكلة", "خطأ", "لا يعمل", "معطل",
    ],
    'en': [
        "pos", "cashier", "order", "orders", "invoice", "payment", "cash", "card",
        "visa", "mastercard", "wallet", "discount", "tax", "total", "amount",
        "menu", "item", "items", "category", "categories", "price", "prices",
        "table", "tables", "customer", "pickup", "delivery", "takeaway", "dine-in",
        "inventory", "stock", "quantity", "unit", "receive", "transfer", "waste", "count",
        "staff", "employee", "owner", "shift", "open", "close",
        "report", "reports", "statistics", "sales", "profit", "cost", "margin", "cogs",
        "settings", "branch", "branches", "restaurant",
        "system", "app", "application", "screen",
        "how", "why", "where", "when", "problem", "error", "not working", "disabled",
    ],
}

# Report intents come first so they win over the general ones
INTENT_PATTERNS = [
    ('sales_summary', {
        'ar': ["ملخص المبيعات", "تقرير المبيعات", "مبيعات اليوم", "إجمالي المبيعات", "كم بعنا", "مجموع المبيعات"],
        'en': ["sales summary", "sales report", "today sales", "total sales", "how much sold", "sales overview"],
    }),
    ('z_report', {
        'ar': ["تقرير زد", "تقرير z", "z report", "تقرير الوردية", "تقرير الشفت", "تقرير نهاية اليوم"],
        'en': ["z report", "z-report", "shift report", "end of day report", "daily summary", "shift summary"],
    }),
    ('refunds_report', {
        'ar': ["تقرير المرتجعات", "تقرير الاسترداد", "كم المرتجع", "مجموع المرتجعات", "تقرير الإرجاع"],
        'en': ["refunds report", "refund summary", "returns report", "how much refunded", "refund total"],
    }),
    ('payments_report', {
        'ar': ["تقرير المدفوعات", "طرق الدفع", "تقرير الدفع", "كم نقد", "كم بطاقات", "توزيع الدفع"],
        'en': ["payments report", "payment methods", "payment breakdown", "how much cash", "how much card",
               "payment summary"],
    }),
    ('inventory_variance_explain', {
        'ar': ["فرق المخزون", "انحراف المخزون", "فروقات الجرد", "نقص المخزون", "زيادة المخزون", "variance"],
        'en': ["inventory variance", "stock variance", "count difference", "inventory discrepancy",
               "stock difference"],
    }),
    ('how_to', {
        'ar': ["كيف", "طريقة", "خطوات", "أريد أن", "ممكن أ", "اشلون", "شلون"],
        'en': ["how to", "how do i", "how can i", "steps to", "way to", "guide"],
    }),
    ('why_disabled', {
        'ar': ["لماذا معطل", "ليش مو شغال", "ليش ما يشتغل", "غير متاح", "لا يعمل", "معطل", "مقفل"],
        'en': ["why disabled", "why can't", "not available", "greyed out", "can't click", "disabled", "locked"],
    }),
    ('explain_report', {
        'ar': ["اشرح تقرير", "ما معنى", "وضح لي", "ماذا يعني", "التقرير يوضح", "أرقام"],
        'en': ["explain report", "what does", "meaning of", "understand report", "numbers mean", "show me"],
    }),
    ('troubleshooting', {
        'ar': ["مشكلة", "خطأ", "لا يعمل", "توقف", "علق", "ما يفتح", "ما يحفظ"],
        'en': ["problem", "error", "not working", "stuck", "frozen", "won't open", "won't save", "issue", "bug"],
    }),
    ('greeting', {
        'ar': ["مرحبا", "السلام", "أهلا", "صباح", "مساء", "هلا"],
        'en': ["hello", "hi", "hey", "good morning", "good evening", "greetings"],
    }),
]

OUT_OF_SCOPE_PATTERNS = {
    'ar': [
        "طبخ", "وصفة", "وصفات", "مكونات", "طبق",
        "أخبار", "رياضة", "سياسة", "طقس",
        "برمجة", "كود", "javascript", "python",
        "أغنية", "فيلم", "مسلسل",
        "سفر", "فندق", "حجز رحلة",
        "صحة", "دواء", "علاج",
    ],
    'en': [
        "recipe", "cook", "cooking", "ingredients",
        "news", "sports", "politics", "weather",
        "code", "programming", "javascript", "python",
        "song", "movie", "series",
        "travel", "hotel", "book flight",
        "health", "medicine", "treatment",
    ],
}

INTENT_CONTEXT = {
    'how_to': "User is asking for step-by-step guidance. Provide clear, numbered steps.",
    'why_disabled': "User is asking why a feature is disabled. Explain possible reasons "
                    "(permissions, shift status, missing data, etc.).",
    'explain_report': "User wants to understand a report. Explain metrics and what they mean for their business.",
    'troubleshooting': "User has a problem. Ask clarifying questions and suggest solutions.",
    'greeting': "User is greeting. Respond warmly and offer to help.",
    'sales_summary': "User wants to understand sales figures. Explain what the displayed numbers mean "
                     "- no recalculation.",
    'z_report': "User wants to understand Z Report. Explain sections and what changed vs expectations.",
    'refunds_report': "User wants to understand refunds. Explain refund types and impact on net sales.",
    'payments_report': "User wants to understand payment breakdown. Explain distribution across payment methods.",
    'inventory_variance_explain': "User wants to understand inventory variance. Explain difference between "
                                  "expected and actual counts.",
}

GREETING_MAX_LENGTH = 30
UNKNOWN_TEXT_MAX_LENGTH = 20


def _patterns(groups):
    return groups['ar'] + groups['en']


def _brand():
    return settings.POS['BRAND_NAME']


def _keywords():
    return _patterns(POS_KEYWORDS) + [_brand().lower()]


def _greeting_patterns():
    return _patterns(dict(INTENT_PATTERNS)['greeting'])


def detect_intent(text):
    """First intent with a matching pattern; how_to when none matches."""
    text = text.lower()
    for intent, groups in INTENT_PATTERNS:
        if any(pattern.lower() in text for pattern in _patterns(groups)):
            return intent
    return 'how_to'


def check_scope(text):
    message = (text or '').lower().strip()

    is_greeting = any(pattern.lower() in message for pattern in _greeting_patterns())
    if is_greeting and len(message) < GREETING_MAX_LENGTH:
        return {'in_scope': True, 'intent': 'greeting', 'confidence': 1.0}

    out_of_scope = any(pattern.lower() in message for pattern in _patterns(OUT_OF_SCOPE_PATTERNS))
    has_pos_context = any(keyword.lower() in message for keyword in _keywords())

    if out_of_scope and not has_pos_context:
        return {'in_scope': False, 'intent': 'out_of_scope', 'confidence': 0.9}

    if not has_pos_context and len(message) > UNKNOWN_TEXT_MAX_LENGTH:
        return {'in_scope': False, 'intent': 'out_of_scope', 'confidence': 0.7}

    return {
        'in_scope': True,
        'intent': detect_intent(message),
        'confidence': 0.95 if has_pos_context else 0.6,
    }


def get_out_of_scope_message(language='en'):
    brand = _brand()
    if language == 'ar':
        return (
            f"أنا مخصص لمساعدتك داخل نظام {brand} فقط. يمكنني مساعدتك في:\n\n"
            "• شرح كيفية استخدام النظام\n• توضيح التقارير والإحصائيات\n"
            "• حل المشاكل التقنية\n• شرح سبب تعطل بعض الميزات\n\n"
            f"كيف يمكنني مساعدتك في نظام {brand}؟"
        )
    return (
        f"I'm designed to help you only within the {brand} system. I can assist you with:\n\n"
        "• Explaining how to use the system\n• Clarifying reports and statistics\n"
        "• Troubleshooting technical issues\n• Explaining why certain features are disabled\n\n"
        f"How can I help you with {brand}?"
    )


def get_greeting_message(language='en'):
    brand = _brand()
    if language == 'ar':
        return (
            f"مرحباً! أنا مساعد {brand} الذكي. كيف يمكنني مساعدتك اليوم في نظام نقاط البيع؟\n\n"
            "يمكنني مساعدتك في:\n• شرح كيفية تنفيذ المهام\n• توضيح التقارير\n"
            "• حل المشاكل\n• شرح الميزات المعطلة"
        )
    return (
        f"Hello! I'm the {brand} Assistant. How can I help you today with the POS system?\n\n"
        "I can help you with:\n• Explaining how to perform tasks\n• Clarifying reports\n"
        "• Troubleshooting issues\n• Explaining disabled features"
    )


def get_intent_context(intent):
    return INTENT_CONTEXT.get(intent, f"Provide helpful guidance about {_brand()}.")
