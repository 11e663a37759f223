from django.contrib import admin

from .models import MenuCategory, MenuItem, ModifierGroup, ModifierOption, BranchMenuItem


class ModifierOptionInline(admin.TabularInline):
    model = ModifierOption
    extra = 0


@admin.register(MenuCategory)
class MenuCategoryAdmin(admin.ModelAdmin):
    list_display = ['name', 'restaurant', 'sort_order', 'is_active']
    list_filter = ['is_active']


@admin.register(ModifierGroup)
class ModifierGroupAdmin(admin.ModelAdmin):
    list_display = ['name', 'restaurant', 'selection_type', 'is_required', 'is_active']
    inlines = [ModifierOptionInline]


@admin.register(MenuItem)
class MenuItemAdmin(admin.ModelAdmin):
    list_display = ['name', 'category', 'price', 'is_available']
    list_filter = ['is_available', 'is_offer']
    search_fields = ['name', 'name_ar']


admin.site.register(BranchMenuItem)
