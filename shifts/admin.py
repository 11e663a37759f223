from django.contrib import admin

from .models import Shift, ShiftTransaction


class ShiftTransactionInline(admin.TabularInline):
    model = ShiftTransaction
    extra = 0
    readonly_fields = ['created_at']


@admin.register(Shift)
class ShiftAdmin(admin.ModelAdmin):
    list_display = ['id', 'cashier', 'branch', 'status', 'opening_cash', 'closing_cash', 'cash_difference', 'opened_at']
    list_filter = ['status']
    inlines = [ShiftTransactionInline]
