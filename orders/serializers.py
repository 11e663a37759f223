from rest_framework import serializers

from .models import Order, OrderItem, OrderItemModifier, Payment, Refund, RestaurantTable


class TableSerializer(serializers.ModelSerializer):
    branch_name = serializers.CharField(source='branch.name', read_only=True)

    class Meta:
        model = RestaurantTable
        fields = ['id', 'branch', 'branch_name', 'table_name', 'table_code', 'capacity', 'is_active', 'created_at']
        read_only_fields = ['id', 'created_at']

    def validate_branch(self, value):
        restaurant = self.context['request'].restaurant
        if value.restaurant_id != restaurant.id:
            raise serializers.ValidationError("Branch does not belong to this restaurant")
        return value

    def validate_table_code(self, value):
        restaurant = self.context['request'].restaurant
        queryset = RestaurantTable.objects.filter(restaurant=restaurant, table_code=value)
        if self.instance:
            queryset = queryset.exclude(pk=self.instance.pk)
        if queryset.exists():
            raise serializers.ValidationError("A table with this code already exists")
        return value


class OrderItemModifierSerializer(serializers.ModelSerializer):
    class Meta:
        model = OrderItemModifier
        fields = ['id', 'modifier_option', 'name', 'price_adjustment']


class OrderItemReadSerializer(serializers.ModelSerializer):
    modifiers = OrderItemModifierSerializer(many=True, read_only=True)
    line_total = serializers.SerializerMethodField()
    sent_to_kitchen = serializers.SerializerMethodField()

    class Meta:
        model = OrderItem
        fields = [
            'id', 'menu_item', 'name', 'price', 'quantity', 'notes', 'modifiers',
            'line_total', 'voided', 'void_reason', 'kitchen_sent_at', 'sent_to_kitchen', 'created_at'
        ]

    def get_line_total(self, obj):
        return str(obj.line_total())

    def get_sent_to_kitchen(self, obj):
        return obj.kitchen_sent_at is not None


class OrderItemCreateSerializer(serializers.Serializer):
    menu_item_id = serializers.UUIDField()
    quantity = serializers.IntegerField(min_value=1, default=1)
    notes = serializers.CharField(required=False, allow_blank=True, default='')
    modifiers = serializers.ListField(child=serializers.UUIDField(), required=False, default=list)


class OrderItemUpdateSerializer(serializers.Serializer):
    quantity = serializers.IntegerField(min_value=1, required=False)
    notes = serializers.CharField(required=False, allow_blank=True)


class PaymentSerializer(serializers.ModelSerializer):
    class Meta:
        model = Payment
        fields = ['id', 'method', 'amount', 'created_at']


class RefundSerializer(serializers.ModelSerializer):
    refunded_by_email = serializers.EmailField(source='refunded_by.email', read_only=True, default=None)

    class Meta:
        model = Refund
        fields = ['id', 'order', 'amount', 'refund_type', 'reason', 'refunded_by_email', 'created_at']


class OrderListSerializer(serializers.ModelSerializer):
    table_name = serializers.CharField(source='table.table_name', read_only=True, default=None)
    items_count = serializers.SerializerMethodField()

    class Meta:
        model = Order
        fields = [
            'id', 'order_number', 'status', 'source', 'order_type', 'table', 'table_name',
            'subtotal', 'tax_amount', 'service_charge', 'total', 'items_count', 'created_at'
        ]

    def get_items_count(self, obj):
        return sum(1 for item in obj.items.all() if not item.voided)


class OrderReadSerializer(serializers.ModelSerializer):
    items = OrderItemReadSerializer(many=True, read_only=True)
    payments = PaymentSerializer(many=True, read_only=True)
    refunds = RefundSerializer(many=True, read_only=True)
    table_name = serializers.CharField(source='table.table_name', read_only=True, default=None)
    branch_name = serializers.CharField(source='branch.name', read_only=True, default=None)

    class Meta:
        model = Order
        fields = [
            'id', 'order_number', 'status', 'source', 'order_type', 'branch', 'branch_name',
            'shift', 'table', 'table_name', 'customer_phone', 'notes',
            'subtotal', 'discount_type', 'discount_value', 'tax_rate', 'tax_amount',
            'service_charge', 'total', 'cancelled_reason',
            'items', 'payments', 'refunds', 'created_at', 'updated_at'
        ]


class KitchenOrderSerializer(serializers.ModelSerializer):
    """Order as shown on the kitchen display: no prices, no voided lines"""
    items = serializers.SerializerMethodField()
    table_name = serializers.CharField(source='table.table_name', read_only=True, default=None)

    class Meta:
        model = Order
        fields = ['id', 'order_number', 'status', 'source', 'order_type', 'table_name', 'notes', 'items', 'created_at']

    def get_items(self, obj):
        return [
            {
                'id': str(item.id),
                'name': item.name,
                'quantity': item.quantity,
                'notes': item.notes,
                'modifiers': [m.name for m in item.modifiers.all()],
            }
            for item in obj.items.all() if not item.voided
        ]


class OrderCreateSerializer(serializers.Serializer):
    order_type = serializers.ChoiceField(choices=Order.ORDER_TYPE_CHOICES, default='TAKEAWAY')
    table_id = serializers.UUIDField(required=False, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True, default='')
    customer_phone = serializers.RegexField(r'^\+?\d{7,15}$', required=False, allow_blank=True, default='')


class DiscountSerializer(serializers.Serializer):
    discount_type = serializers.ChoiceField(choices=['percent', 'percentage', 'fixed'])
    discount_value = serializers.DecimalField(max_digits=12, decimal_places=3, min_value=0)


class PaymentLineSerializer(serializers.Serializer):
    method = serializers.CharField()
    amount = serializers.DecimalField(max_digits=12, decimal_places=3)


class TablePaymentSerializer(serializers.Serializer):
    order_ids = serializers.ListField(child=serializers.UUIDField(), allow_empty=True)
    payments = PaymentLineSerializer(many=True, allow_empty=True)


class ReasonSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, allow_null=True, default='')


class RefundCreateSerializer(serializers.Serializer):
    amount = serializers.DecimalField(max_digits=12, decimal_places=3)
    refund_type = serializers.CharField()
    reason = serializers.CharField(allow_blank=True)


class QROrderLineSerializer(serializers.Serializer):
    menu_item_id = serializers.UUIDField()
    quantity = serializers.JSONField()
    notes = serializers.CharField(required=False, allow_blank=True, max_length=500)
    modifiers = serializers.ListField(child=serializers.UUIDField(), required=False)


class QROrderCreateSerializer(serializers.Serializer):
    restaurant_id = serializers.UUIDField(required=False, allow_null=True)
    branch_id = serializers.UUIDField(required=False, allow_null=True)
    table_code = serializers.CharField(required=False, allow_blank=True)
    table_id = serializers.UUIDField(required=False, allow_null=True)
    order_type = serializers.CharField(required=False, allow_blank=True)
    customer_phone = serializers.CharField(required=False, allow_blank=True)
    notes = serializers.CharField(required=False, allow_blank=True)
    items = QROrderLineSerializer(many=True, required=False)


class QROrderStatusSerializer(serializers.ModelSerializer):
    table_name = serializers.CharField(source='table.table_name', read_only=True, default=None)

    class Meta:
        model = Order
        fields = ['id', 'order_number', 'status', 'order_type', 'table_name', 'total', 'cancelled_reason', 'created_at']
