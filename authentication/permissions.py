from rest_framework import permissions, status

from .exceptions import POSError, SubscriptionExpired
from .models import Branch, Restaurant, UserRole


def get_user_role(user):
    if user is None or not user.is_authenticated:
        return None
    try:
        return UserRole.objects.select_related('restaurant', 'branch').get(user=user)
    except UserRole.DoesNotExist:
        return None


def bind_restaurant_context(request):
    """
    Resolve the caller's role, restaurant and branch once per request.

    Sets ``request.user_role``, ``request.restaurant`` and ``request.branch``.
    Cashiers and kitchen staff are pinned to their assigned branch; owners and
    system admins may pick a branch (and admins a restaurant) through the
    X-Branch-Id / X-Restaurant-Id headers.
    """
    if getattr(request, 'context_bound', False):
        return request.user_role

    user_role = get_user_role(request.user)
    restaurant = None
    branch = None

    if user_role is not None and user_role.is_active:
        if user_role.role == 'system_admin':
            restaurant_id = getattr(request, 'restaurant_id_header', None)
            if restaurant_id:
                restaurant = Restaurant.objects.filter(id=restaurant_id).first()
        else:
            restaurant = user_role.restaurant

        if user_role.role in ('cashier', 'kitchen'):
            branch = user_role.branch
        elif restaurant is not None:
            branch_id = getattr(request, 'branch_id_header', None)
            if branch_id:
                branch = Branch.objects.filter(id=branch_id, restaurant=restaurant).first()

    request.user_role = user_role
    request.restaurant = restaurant
    request.branch = branch
    request.context_bound = True
    return user_role


def ensure_same_restaurant(request, restaurant_id):
    if str(restaurant_id) != str(request.restaurant.id):
        raise POSError('restaurant_mismatch', status_code=status.HTTP_403_FORBIDDEN)


class IsSystemAdmin(permissions.BasePermission):
    """
    Permission to only allow active system administrators
    """
    def has_permission(self, request, view):
        if not request.user.is_authenticated:
            return False
        user_role = bind_restaurant_context(request)
        return bool(user_role and user_role.is_active and user_role.role == 'system_admin')


class HasRestaurantAccess(permissions.BasePermission):
    """
    Permission to check the caller has an active role in an active restaurant
    """
    def has_permission(self, request, view):
        if not request.user.is_authenticated:
            return False

        user_role = bind_restaurant_context(request)
        if user_role is None or not user_role.is_active:
            raise POSError('not_authorized', status_code=status.HTTP_403_FORBIDDEN)

        restaurant = request.restaurant
        if restaurant is None:
            if user_role.role == 'system_admin':
                raise POSError(
                    'missing_fields',
                    message='X-Restaurant-Id header is required',
                )
            raise POSError('not_authorized', status_code=status.HTTP_403_FORBIDDEN)

        if not restaurant.is_active and user_role.role != 'system_admin':
            raise POSError('restaurant_inactive', status_code=status.HTTP_403_FORBIDDEN)

        return True


class RolePermission(HasRestaurantAccess):
    allowed_roles = ()

    def has_permission(self, request, view):
        if not super().has_permission(request, view):
            return False
        return request.user_role.role in self.allowed_roles


class IsOwner(RolePermission):
    allowed_roles = ('owner',)


class IsCashier(RolePermission):
    allowed_roles = ('cashier',)


class IsKitchen(RolePermission):
    allowed_roles = ('kitchen',)


class IsCashierOrOwner(RolePermission):
    allowed_roles = ('cashier', 'owner')


class IsStaff(RolePermission):
    allowed_roles = ('owner', 'cashier', 'kitchen')


class HasActiveSubscription(permissions.BasePermission):
    """
    Subscription guard. Blocks tenant users once the paid period has ended.
    """
    def has_permission(self, request, view):
        user_role = bind_restaurant_context(request)
        if user_role is not None and user_role.role == 'system_admin':
            return True

        restaurant = getattr(request, 'restaurant', None)
        if restaurant is None:
            return False

        check_subscription(restaurant)
        return True


def check_subscription(restaurant):
    """Raise SubscriptionExpired unless the restaurant has a current subscription."""
    subscription = getattr(restaurant, 'subscription', None)
    if subscription is None:
        raise SubscriptionExpired()
    subscription.refresh_status()
    if not subscription.is_active:
        raise SubscriptionExpired()
    return subscription


class ModuleEnabled(permissions.BasePermission):
    """
    Permission to check an optional feature module is switched on
    """
    module = None

    def has_permission(self, request, view):
        restaurant = getattr(request, 'restaurant', None)
        if restaurant is None:
            return False
        if not getattr(restaurant.get_settings(), self.module):
            raise POSError(
                'module_disabled',
                status_code=status.HTTP_403_FORBIDDEN,
                extra={'module': self.module},
            )
        return True


def module_required(flag):
    return type(f'ModuleEnabled_{flag}', (ModuleEnabled,), {'module': flag})


InventoryEnabled = module_required('inventory_enabled')
KDSEnabled = module_required('kds_enabled')
QREnabled = module_required('qr_enabled')


class HasPermission(HasRestaurantAccess):
    """
    Permission to check a capability granted to the caller's role
    """
    required_permission = None

    def has_permission(self, request, view):
        if not super().has_permission(request, view):
            return False
        granted = DEFAULT_PERMISSIONS.get(request.user_role.role, [])
        return 'all' in granted or self.required_permission in granted


def require_permission(permission_name):
    """
    Build a permission class requiring one capability
    """
    return type(f'Requires_{permission_name}', (HasPermission,), {'required_permission': permission_name})


# Permission constants
class Permissions:
    # Sales
    CREATE_ORDERS = 'create_orders'
    MANAGE_PAYMENTS = 'manage_payments'
    APPLY_DISCOUNTS = 'apply_discounts'
    VOID_ITEMS = 'void_items'
    REFUND_ORDERS = 'refund_orders'
    REOPEN_ORDERS = 'reopen_orders'
    CONFIRM_QR_ORDERS = 'confirm_qr_orders'

    # Kitchen
    VIEW_KDS = 'view_kds'
    UPDATE_KDS = 'update_kds'

    # Shifts
    MANAGE_SHIFTS = 'manage_shifts'
    VIEW_SHIFT_REPORTS = 'view_shift_reports'

    # Back office
    MANAGE_MENU = 'manage_menu'
    MANAGE_INVENTORY = 'manage_inventory'
    VIEW_INVENTORY = 'view_inventory'
    VIEW_REPORTS = 'view_reports'
    EXPORT_REPORTS = 'export_reports'
    MANAGE_STAFF = 'manage_staff'
    MANAGE_BRANCHES = 'manage_branches'
    MANAGE_SETTINGS = 'manage_settings'
    VIEW_AUDIT_LOGS = 'view_audit_logs'


# Default permissions for each role
DEFAULT_PERMISSIONS = {
    'system_admin': ['all'],
    'owner': [
        Permissions.REFUND_ORDERS, Permissions.REOPEN_ORDERS,
        Permissions.VIEW_KDS, Permissions.UPDATE_KDS,
        Permissions.VIEW_SHIFT_REPORTS,
        Permissions.MANAGE_MENU, Permissions.MANAGE_INVENTORY, Permissions.VIEW_INVENTORY,
        Permissions.VIEW_REPORTS, Permissions.EXPORT_REPORTS,
        Permissions.MANAGE_STAFF, Permissions.MANAGE_BRANCHES, Permissions.MANAGE_SETTINGS,
        Permissions.VIEW_AUDIT_LOGS,
    ],
    'cashier': [
        Permissions.CREATE_ORDERS, Permissions.MANAGE_PAYMENTS, Permissions.APPLY_DISCOUNTS,
        Permissions.VOID_ITEMS, Permissions.REFUND_ORDERS, Permissions.REOPEN_ORDERS,
        Permissions.CONFIRM_QR_ORDERS,
        Permissions.MANAGE_SHIFTS, Permissions.VIEW_SHIFT_REPORTS,
        Permissions.VIEW_INVENTORY,
    ],
    'kitchen': [
        Permissions.VIEW_KDS, Permissions.UPDATE_KDS,
    ],
}
