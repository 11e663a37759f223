from django.contrib import admin
from django.contrib.auth.admin import UserAdmin

from .models import (
    CustomUser, Restaurant, RestaurantSubscription, Branch, UserRole,
    RestaurantSettings, AuditLog
)


@admin.register(CustomUser)
class CustomUserAdmin(UserAdmin):
    ordering = ['email']
    list_display = ['email', 'first_name', 'last_name', 'is_active', 'is_staff']
    search_fields = ['email', 'first_name', 'last_name']
    fieldsets = (
        (None, {'fields': ('email', 'password')}),
        ('Personal info', {'fields': ('first_name', 'last_name', 'phone')}),
        ('Permissions', {'fields': ('is_active', 'is_staff', 'is_superuser', 'groups', 'user_permissions')}),
        ('Important dates', {'fields': ('last_login', 'date_joined')}),
    )
    add_fieldsets = (
        (None, {'classes': ('wide',), 'fields': ('email', 'first_name', 'last_name', 'password1', 'password2')}),
    )


@admin.register(Restaurant)
class RestaurantAdmin(admin.ModelAdmin):
    list_display = ['name', 'owner', 'is_active', 'max_branches_allowed', 'created_at']
    list_filter = ['is_active']
    search_fields = ['name', 'name_ar']


@admin.register(RestaurantSubscription)
class RestaurantSubscriptionAdmin(admin.ModelAdmin):
    list_display = ['restaurant', 'period', 'start_date', 'end_date', 'status']
    list_filter = ['period', 'status']


@admin.register(Branch)
class BranchAdmin(admin.ModelAdmin):
    list_display = ['name', 'code', 'restaurant', 'is_default', 'is_active']
    list_filter = ['is_active']


@admin.register(UserRole)
class UserRoleAdmin(admin.ModelAdmin):
    list_display = ['user', 'role', 'restaurant', 'branch', 'is_active']
    list_filter = ['role', 'is_active']


admin.site.register(RestaurantSettings)


@admin.register(AuditLog)
class AuditLogAdmin(admin.ModelAdmin):
    list_display = ['action', 'entity_type', 'entity_id', 'restaurant', 'user', 'created_at']
    list_filter = ['action', 'entity_type']
    readonly_fields = ['created_at']
