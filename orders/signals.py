# Keep order totals in step with its lines
from django.db.models.signals import post_save, post_delete
from django.dispatch import receiver

from .models import Order, OrderItem, OrderItemModifier

TOTAL_FIELDS = ['subtotal', 'service_charge', 'tax_amount', 'total', 'updated_at']


def _recalculate(order_id):
    order = Order.objects.filter(pk=order_id).select_related('restaurant').first()
    # Paid orders keep the totals they were paid at
    if order is None or order.status not in Order.EDITABLE_STATUSES + ('held',):
        return
    order.calculate_totals()
    order.save(update_fields=TOTAL_FIELDS)


@receiver([post_save, post_delete], sender=OrderItem)
def update_order_totals_on_item_change(sender, instance, **kwargs):
    """Update order totals when items are added/removed/modified"""
    _recalculate(instance.order_id)


@receiver([post_save, post_delete], sender=OrderItemModifier)
def update_order_totals_on_modifier_change(sender, instance, **kwargs):
    order_id = OrderItem.objects.filter(pk=instance.order_item_id).values_list('order_id', flat=True).first()
    if order_id is not None:
        _recalculate(order_id)
