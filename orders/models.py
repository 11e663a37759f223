import uuid
from decimal import Decimal

from django.conf import settings
from django.db import models
from django.utils import timezone

from authentication.models import Restaurant, Branch
from menu.models import MenuItem, ModifierOption
from shifts.models import Shift
from .calculations import calculate_order_totals, calculate_subtotal


class RestaurantTable(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    restaurant = models.ForeignKey(Restaurant, on_delete=models.CASCADE, related_name='tables')
    branch = models.ForeignKey(Branch, on_delete=models.CASCADE, related_name='tables')
    table_name = models.CharField(max_length=50)
    table_code = models.CharField(max_length=50)
    capacity = models.PositiveSmallIntegerField(default=4)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.table_name} ({self.table_code})"

    class Meta:
        db_table = 'restaurant_tables'
        unique_together = ['restaurant', 'table_code']
        ordering = ['table_name']


class Order(models.Model):
    STATUS_CHOICES = (
        ('open', 'Open'),
        ('confirmed', 'Confirmed'),
        ('held', 'Held'),
        ('paid', 'Paid'),
        ('cancelled', 'Cancelled'),
        ('voided', 'Voided'),
        ('refunded', 'Refunded'),
        ('closed', 'Closed'),
        ('pending', 'Pending'),
        ('new', 'New'),
        ('in_progress', 'In Progress'),
        ('ready', 'Ready'),
    )
    SOURCE_CHOICES = (
        ('pos', 'POS'),
        ('qr', 'QR'),
    )
    ORDER_TYPE_CHOICES = (
        ('DINE_IN', 'Dine In'),
        ('TAKEAWAY', 'Takeaway'),
    )
    DISCOUNT_TYPE_CHOICES = (
        ('percentage', 'Percentage'),
        ('fixed', 'Fixed'),
    )

    # Orders in these statuses can no longer change
    TERMINAL_STATUSES = ('paid', 'cancelled', 'voided', 'refunded', 'closed')
    EDITABLE_STATUSES = ('open', 'confirmed', 'pending')
    KDS_STATUSES = ('new', 'in_progress', 'ready')

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    restaurant = models.ForeignKey(Restaurant, on_delete=models.CASCADE, related_name='orders')
    branch = models.ForeignKey(Branch, on_delete=models.CASCADE, related_name='orders', null=True, blank=True)
    shift = models.ForeignKey(Shift, on_delete=models.SET_NULL, related_name='orders', null=True, blank=True)
    table = models.ForeignKey(RestaurantTable, on_delete=models.SET_NULL, related_name='orders', null=True, blank=True)
    order_number = models.PositiveIntegerField(default=0)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='open', db_index=True)
    source = models.CharField(max_length=10, choices=SOURCE_CHOICES, default='pos')
    order_type = models.CharField(max_length=10, choices=ORDER_TYPE_CHOICES, default='TAKEAWAY')
    customer_phone = models.CharField(max_length=20, blank=True)
    notes = models.TextField(blank=True)

    # Pricing fields
    subtotal = models.DecimalField(max_digits=12, decimal_places=3, default=Decimal('0.000'))
    discount_type = models.CharField(max_length=20, choices=DISCOUNT_TYPE_CHOICES, null=True, blank=True)
    discount_value = models.DecimalField(max_digits=12, decimal_places=3, default=Decimal('0.000'))
    tax_rate = models.DecimalField(max_digits=5, decimal_places=4, default=Decimal('0.0000'))
    tax_amount = models.DecimalField(max_digits=12, decimal_places=3, default=Decimal('0.000'))
    service_charge = models.DecimalField(max_digits=12, decimal_places=3, default=Decimal('0.000'))
    total = models.DecimalField(max_digits=12, decimal_places=3, default=Decimal('0.000'))

    cancelled_reason = models.CharField(max_length=500, blank=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='created_orders'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def save(self, *args, **kwargs):
        if not self.order_number:
            today = timezone.localdate()
            last_number = Order.objects.filter(
                created_at__date=today,
                restaurant=self.restaurant
            ).aggregate(max_number=models.Max('order_number'))['max_number'] or 0
            self.order_number = last_number + 1

        super().save(*args, **kwargs)

    @property
    def is_dine_in(self):
        return self.table_id is not None

    def item_lines(self):
        lines = []
        for item in self.items.prefetch_related('modifiers'):
            lines.append({
                'price': item.price,
                'quantity': item.quantity,
                'voided': item.voided,
                'modifiers': [m.price_adjustment for m in item.modifiers.all()],
            })
        return lines

    def calculate_totals(self):
        """Recalculate money fields from the items and the restaurant's pricing settings"""
        settings_obj = self.restaurant.get_settings()
        totals = calculate_order_totals(
            calculate_subtotal(self.item_lines()),
            discount_type=self.discount_type,
            discount_value=self.discount_value,
            service_charge_rate=settings_obj.service_charge_rate,
            tax_rate=self.tax_rate,
            currency=settings_obj.currency,
            rounding_enabled=settings_obj.rounding_enabled,
        )
        self.subtotal = totals['subtotal']
        self.service_charge = totals['service_charge']
        self.tax_amount = totals['tax_amount']
        self.total = totals['total']
        return totals

    def __str__(self):
        return f"#{self.order_number} - {self.get_status_display()} - {self.table if self.table else self.order_type}"

    class Meta:
        db_table = 'orders'
        ordering = ['-created_at']


class OrderItem(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    order = models.ForeignKey(Order, related_name='items', on_delete=models.CASCADE)
    menu_item = models.ForeignKey(MenuItem, on_delete=models.SET_NULL, null=True, blank=True, related_name='order_items')
    # Name and price are copied from the menu at the time of ordering
    name = models.CharField(max_length=255)
    price = models.DecimalField(max_digits=12, decimal_places=3)
    quantity = models.PositiveIntegerField(default=1)
    notes = models.CharField(max_length=500, blank=True)
    voided = models.BooleanField(default=False)
    void_reason = models.CharField(max_length=500, blank=True)
    voided_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='voided_items'
    )
    kitchen_sent_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def line_total(self):
        modifiers_total = sum((m.price_adjustment for m in self.modifiers.all()), Decimal('0'))
        return (self.price + modifiers_total) * self.quantity

    def __str__(self):
        voided = " (Voided)" if self.voided else ""
        return f"{self.quantity} x {self.name}{voided}"

    class Meta:
        db_table = 'order_items'
        ordering = ['created_at']


class OrderItemModifier(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    order_item = models.ForeignKey(OrderItem, related_name='modifiers', on_delete=models.CASCADE)
    modifier_option = models.ForeignKey(ModifierOption, on_delete=models.SET_NULL, null=True, blank=True)
    name = models.CharField(max_length=100)
    price_adjustment = models.DecimalField(max_digits=12, decimal_places=3, default=Decimal('0.000'))

    class Meta:
        db_table = 'order_item_modifiers'


class Payment(models.Model):
    METHOD_CHOICES = (
        ('cash', 'Cash'),
        ('visa', 'Visa'),
        ('cliq', 'CliQ'),
        ('zain_cash', 'Zain Cash'),
        ('orange_money', 'Orange Money'),
        ('umniah_wallet', 'Umniah Wallet'),
    )

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    order = models.ForeignKey(Order, related_name='payments', on_delete=models.CASCADE)
    restaurant = models.ForeignKey(Restaurant, on_delete=models.CASCADE, related_name='payments')
    branch = models.ForeignKey(Branch, on_delete=models.SET_NULL, null=True, blank=True, related_name='payments')
    method = models.CharField(max_length=20, choices=METHOD_CHOICES)
    amount = models.DecimalField(max_digits=12, decimal_places=3)
    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.method} {self.amount} for order #{self.order.order_number}"

    class Meta:
        db_table = 'payments'
        ordering = ['created_at']


class Refund(models.Model):
    TYPE_CHOICES = (
        ('full', 'Full'),
        ('partial', 'Partial'),
    )

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    order = models.ForeignKey(Order, related_name='refunds', on_delete=models.CASCADE)
    restaurant = models.ForeignKey(Restaurant, on_delete=models.CASCADE, related_name='refunds')
    amount = models.DecimalField(max_digits=12, decimal_places=3)
    refund_type = models.CharField(max_length=10, choices=TYPE_CHOICES)
    reason = models.CharField(max_length=500)
    refunded_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"Refund {self.amount} on order #{self.order.order_number}"

    class Meta:
        db_table = 'refunds'
        ordering = ['-created_at']
