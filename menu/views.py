import logging

from rest_framework import generics, status, filters
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from django.db import models
from django.shortcuts import get_object_or_404
from django_filters.rest_framework import DjangoFilterBackend

from authentication.exceptions import POSError
from authentication.models import AuditLog
from authentication.permissions import IsStaff, require_permission, Permissions
from .models import MenuCategory, MenuItem, ModifierGroup, ModifierOption, BranchMenuItem
from .serializers import (
    MenuCategorySerializer, ModifierGroupSerializer, ModifierOptionSerializer,
    MenuItemListSerializer, MenuItemDetailSerializer, MenuItemCreateUpdateSerializer,
    BranchMenuItemSerializer
)

logger = logging.getLogger(__name__)

CanManageMenu = require_permission(Permissions.MANAGE_MENU)


class RestaurantContextMixin:
    """Mixin to scope querysets and new rows to the caller's restaurant"""

    def get_queryset(self):
        return super().get_queryset().filter(restaurant=self.request.restaurant)

    def perform_create(self, serializer):
        serializer.save(restaurant=self.request.restaurant)

    def get_permissions(self):
        if self.request.method in ['POST', 'PUT', 'PATCH', 'DELETE']:
            return [CanManageMenu()]
        return [IsStaff()]


def _available_only(request):
    # Cashiers and kitchen only ever see what can be sold
    return request.user_role.role in ('cashier', 'kitchen')


# Category Views
class MenuCategoryListCreateView(RestaurantContextMixin, generics.ListCreateAPIView):
    """
    get: List menu categories of the caller's restaurant
    post: Create a category (owners only)
    """
    queryset = MenuCategory.objects.all()
    serializer_class = MenuCategorySerializer
    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]
    filterset_fields = ['is_active']
    search_fields = ['name', 'name_ar']
    ordering_fields = ['name', 'sort_order', 'created_at']
    ordering = ['sort_order', 'name']

    def get_queryset(self):
        queryset = super().get_queryset()
        if _available_only(self.request):
            queryset = queryset.filter(is_active=True)
        return queryset


class MenuCategoryRetrieveUpdateDestroyView(RestaurantContextMixin, generics.RetrieveUpdateDestroyAPIView):
    queryset = MenuCategory.objects.all()
    serializer_class = MenuCategorySerializer


# Modifier Views
class ModifierGroupListCreateView(RestaurantContextMixin, generics.ListCreateAPIView):
    """
    get: List modifier groups with their options
    post: Create a modifier group with options (owners only)
    """
    queryset = ModifierGroup.objects.prefetch_related('options')
    serializer_class = ModifierGroupSerializer
    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]
    filterset_fields = ['is_active', 'selection_type', 'is_required']
    search_fields = ['name', 'name_ar']
    ordering_fields = ['name', 'created_at']
    ordering = ['name']


class ModifierGroupRetrieveUpdateDestroyView(RestaurantContextMixin, generics.RetrieveUpdateDestroyAPIView):
    queryset = ModifierGroup.objects.prefetch_related('options')
    serializer_class = ModifierGroupSerializer


class ModifierOptionListCreateView(generics.ListCreateAPIView):
    """
    get: List options of one modifier group
    post: Add an option to the group (owners only)
    """
    serializer_class = ModifierOptionSerializer

    def get_permissions(self):
        if self.request.method == 'POST':
            return [CanManageMenu()]
        return [IsStaff()]

    def get_group(self):
        return get_object_or_404(ModifierGroup, id=self.kwargs['group_id'], restaurant=self.request.restaurant)

    def get_queryset(self):
        return ModifierOption.objects.filter(group=self.get_group())

    def perform_create(self, serializer):
        serializer.save(group=self.get_group())


class ModifierOptionRetrieveUpdateDestroyView(generics.RetrieveUpdateDestroyAPIView):
    serializer_class = ModifierOptionSerializer

    def get_permissions(self):
        if self.request.method in ['PUT', 'PATCH', 'DELETE']:
            return [CanManageMenu()]
        return [IsStaff()]

    def get_queryset(self):
        return ModifierOption.objects.filter(group__restaurant=self.request.restaurant)


# Menu Item Views
class MenuItemListCreateView(RestaurantContextMixin, generics.ListCreateAPIView):
    """
    get: List menu items. Cashiers only get available items of active categories,
         with their branch price.
    post: Create a menu item (owners only)
    """
    queryset = MenuItem.objects.select_related('category').prefetch_related('modifier_groups__options')
    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]
    filterset_fields = ['category', 'is_available', 'is_offer', 'is_favorite']
    search_fields = ['name', 'name_ar', 'description']
    ordering_fields = ['name', 'price', 'sort_order', 'created_at']
    ordering = ['sort_order', 'name']

    def get_serializer_class(self):
        if self.request.method == 'POST':
            return MenuItemCreateUpdateSerializer
        return MenuItemListSerializer

    def get_queryset(self):
        queryset = super().get_queryset()
        if _available_only(self.request):
            queryset = queryset.filter(is_available=True, category__is_active=True)
            branch = self.request.branch
            if branch is not None:
                queryset = queryset.exclude(
                    branch_overrides__branch=branch, branch_overrides__is_available=False
                )
        return queryset

    def list(self, request, *args, **kwargs):
        response = super().list(request, *args, **kwargs)
        branch = request.branch
        if branch is None:
            return response

        overrides = {
            str(override.menu_item_id): override.price
            for override in BranchMenuItem.objects.filter(branch=branch, price__isnull=False)
        }
        rows = response.data['results'] if isinstance(response.data, dict) else response.data
        for row in rows:
            price = overrides.get(str(row['id']))
            if price is not None:
                row['price'] = str(price)
        return response


class MenuItemRetrieveUpdateDestroyView(RestaurantContextMixin, generics.RetrieveUpdateDestroyAPIView):
    queryset = MenuItem.objects.select_related('category').prefetch_related(
        'modifier_groups__options', 'branch_overrides__branch'
    )

    def get_serializer_class(self):
        if self.request.method in ['PUT', 'PATCH']:
            return MenuItemCreateUpdateSerializer
        return MenuItemDetailSerializer


class BranchMenuItemListCreateView(generics.ListCreateAPIView):
    """
    get: Per-branch overrides of a menu item
    post: Create or replace the override of one branch (owners only)
    """
    serializer_class = BranchMenuItemSerializer
    permission_classes = [CanManageMenu]

    def get_menu_item(self):
        return get_object_or_404(MenuItem, id=self.kwargs['menu_item_id'], restaurant=self.request.restaurant)

    def get_queryset(self):
        return BranchMenuItem.objects.filter(menu_item=self.get_menu_item()).select_related('branch')

    def create(self, request, *args, **kwargs):
        menu_item = self.get_menu_item()
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        override, created = BranchMenuItem.objects.update_or_create(
            branch=serializer.validated_data['branch'],
            menu_item=menu_item,
            defaults={
                'price': serializer.validated_data.get('price'),
                'is_available': serializer.validated_data.get('is_available', True),
            }
        )
        return Response(
            BranchMenuItemSerializer(override).data,
            status=status.HTTP_201_CREATED if created else status.HTTP_200_OK
        )


# Additional utility views
@api_view(['GET'])
@permission_classes([IsStaff])
def menu_by_category(request, category_id):
    """Available items of one category"""
    category = get_object_or_404(MenuCategory, id=category_id, restaurant=request.restaurant)

    menu_items = MenuItem.objects.filter(
        category=category,
        is_available=True
    ).prefetch_related('modifier_groups__options')

    return Response({
        'category': MenuCategorySerializer(category).data,
        'menu_items': MenuItemListSerializer(menu_items, many=True).data
    })


@api_view(['POST'])
@permission_classes([CanManageMenu])
def bulk_update_availability(request):
    """Bulk switch menu item availability"""
    menu_item_ids = request.data.get('menu_item_ids', [])
    is_available = request.data.get('is_available', True)

    if not menu_item_ids:
        raise POSError('missing_fields', message='menu_item_ids is required')

    updated_count = MenuItem.objects.filter(
        id__in=menu_item_ids,
        restaurant=request.restaurant
    ).update(is_available=bool(is_available))

    AuditLog.record(
        'MENU_AVAILABILITY_UPDATED', 'menu_item', '',
        restaurant=request.restaurant, user=request.user,
        details={'count': updated_count, 'is_available': bool(is_available)},
    )
    logger.info("Availability of %s menu items set to %s", updated_count, is_available)

    return Response({
        'detail': f"Updated {updated_count} menu items",
        'updated_count': updated_count
    })


@api_view(['GET'])
@permission_classes([IsStaff])
def search_menu_items(request):
    """Search available menu items across categories"""
    query = request.GET.get('q', '')
    if not query:
        raise POSError('missing_fields', message="Query parameter 'q' is required")

    menu_items = MenuItem.objects.filter(
        restaurant=request.restaurant,
        is_available=True
    ).filter(
        models.Q(name__icontains=query) |
        models.Q(name_ar__icontains=query) |
        models.Q(description__icontains=query)
    ).select_related('category').prefetch_related('modifier_groups__options')[:20]

    return Response({
        'query': query,
        'results_count': len(menu_items),
        'menu_items': MenuItemListSerializer(menu_items, many=True).data
    })


@api_view(['POST'])
@permission_classes([CanManageMenu])
def duplicate_menu_item(request, menu_item_id):
    """Duplicate a menu item under a new name"""
    original_item = get_object_or_404(
        MenuItem.objects.prefetch_related('modifier_groups'),
        id=menu_item_id,
        restaurant=request.restaurant
    )

    new_name = request.data.get('name', f"{original_item.name} - Copy")

    new_item = MenuItem.objects.create(
        restaurant=request.restaurant,
        category=original_item.category,
        name=new_name,
        name_ar=original_item.name_ar,
        description=original_item.description,
        price=original_item.price,
        is_available=True,
        is_offer=original_item.is_offer,
        sort_order=original_item.sort_order,
    )
    new_item.modifier_groups.set(original_item.modifier_groups.all())

    return Response({
        'detail': 'Menu item duplicated successfully',
        'new_item': MenuItemDetailSerializer(new_item).data
    }, status=status.HTTP_201_CREATED)
