"""
Order money arithmetic.

Every intermediate amount is kept at three decimals (fils) with half-up
rounding. The final total of a JOD order is additionally rounded to one
decimal, once, at the very end:

    subtotal -> discount -> discounted subtotal -> service -> tax -> total
"""
from decimal import Decimal, ROUND_HALF_UP

THREE_PLACES = Decimal('0.001')
ONE_PLACE = Decimal('0.1')
ZERO = Decimal('0')

PERCENT_TYPES = ('percent', 'percentage')


def to_decimal(value):
    if value is None or value == '':
        return ZERO
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def round_jod(value):
    """Round to 3 decimal places (fils)."""
    return to_decimal(value).quantize(THREE_PLACES, rounding=ROUND_HALF_UP)


def round_final_total(value):
    """Round to 1 decimal place: 6.67 -> 6.7, 6.64 -> 6.6, 6.65 -> 6.7"""
    return to_decimal(value).quantize(ONE_PLACE, rounding=ROUND_HALF_UP).quantize(THREE_PLACES)


def discount_amount(subtotal, discount_type, discount_value):
    value = to_decimal(discount_value)
    if value <= 0:
        return ZERO
    if discount_type in PERCENT_TYPES:
        return round_jod(to_decimal(subtotal) * value / 100)
    return round_jod(value)


def calculate_order_totals(subtotal, discount_type=None, discount_value=None,
                           service_charge_rate=0, tax_rate=0, currency='JOD',
                           rounding_enabled=True):
    subtotal = round_jod(subtotal)

    discount = discount_amount(subtotal, discount_type, discount_value)
    discounted_subtotal = max(ZERO, round_jod(subtotal - discount))
    service_charge = round_jod(discounted_subtotal * to_decimal(service_charge_rate))
    tax_amount = round_jod((discounted_subtotal + service_charge) * to_decimal(tax_rate))
    total_before_rounding = round_jod(discounted_subtotal + service_charge + tax_amount)

    if currency == 'JOD' and rounding_enabled:
        total = round_final_total(total_before_rounding)
    else:
        total = total_before_rounding

    return {
        'subtotal': subtotal,
        'discount_amount': discount,
        'discounted_subtotal': discounted_subtotal,
        'service_charge': service_charge,
        'tax_amount': tax_amount,
        'total_before_rounding': total_before_rounding,
        'total': total,
    }


def line_total(price, quantity, modifiers=()):
    """(unit price + modifier adjustments) x quantity"""
    unit_price = to_decimal(price) + sum((to_decimal(m) for m in modifiers), ZERO)
    return round_jod(unit_price * int(quantity))


def calculate_subtotal(items):
    """
    Sum of non-voided lines. ``items`` are mappings with ``price``,
    ``quantity``, optional ``modifiers`` (price adjustments) and ``voided``.
    """
    subtotal = ZERO
    for item in items:
        if item.get('voided'):
            continue
        subtotal += line_total(item['price'], item['quantity'], item.get('modifiers', ()))
    return round_jod(subtotal)


def totals_for_settings(subtotal, settings_obj, discount_type=None, discount_value=None):
    """Totals using a restaurant's pricing settings."""
    return calculate_order_totals(
        subtotal,
        discount_type=discount_type,
        discount_value=discount_value,
        service_charge_rate=settings_obj.service_charge_rate,
        tax_rate=settings_obj.tax_rate,
        currency=settings_obj.currency,
        rounding_enabled=settings_obj.rounding_enabled,
    )
