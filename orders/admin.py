from django.contrib import admin

from .models import RestaurantTable, Order, OrderItem, OrderItemModifier, Payment, Refund


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0


class PaymentInline(admin.TabularInline):
    model = Payment
    extra = 0


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ['order_number', 'restaurant', 'branch', 'status', 'source', 'order_type', 'total', 'created_at']
    list_filter = ['status', 'source', 'order_type']
    inlines = [OrderItemInline, PaymentInline]


@admin.register(RestaurantTable)
class RestaurantTableAdmin(admin.ModelAdmin):
    list_display = ['table_name', 'table_code', 'branch', 'capacity', 'is_active']


admin.site.register(OrderItemModifier)
admin.site.register(Refund)
