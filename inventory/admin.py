from django.contrib import admin

from .models import (
    InventoryUnit, UnitConversion, InventoryItem, InventoryStockLevel, InventoryTransaction,
    MenuItemRecipe, RecipeLine,
)


class RecipeLineInline(admin.TabularInline):
    model = RecipeLine
    extra = 0


@admin.register(InventoryItem)
class InventoryItemAdmin(admin.ModelAdmin):
    list_display = ['name', 'branch', 'base_unit', 'min_level', 'reorder_level', 'is_active']
    list_filter = ['is_active', 'branch']
    search_fields = ['name']


@admin.register(InventoryTransaction)
class InventoryTransactionAdmin(admin.ModelAdmin):
    list_display = ['item', 'txn_type', 'qty_in_base', 'reference_type', 'created_at']
    list_filter = ['txn_type']
    readonly_fields = ['created_at']


@admin.register(MenuItemRecipe)
class MenuItemRecipeAdmin(admin.ModelAdmin):
    list_display = ['menu_item', 'is_active']
    inlines = [RecipeLineInline]


admin.site.register(InventoryUnit)
admin.site.register(UnitConversion)
admin.site.register(InventoryStockLevel)
