import logging

from rest_framework import generics, status, filters
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from django.shortcuts import get_object_or_404
from django_filters.rest_framework import DjangoFilterBackend
from drf_spectacular.utils import extend_schema, OpenApiParameter

from authentication.permissions import InventoryEnabled, Permissions, require_permission
from .models import InventoryUnit, UnitConversion, InventoryItem, InventoryTransaction, MenuItemRecipe
from .serializers import (
    InventoryUnitSerializer, UnitConversionSerializer, InventoryItemSerializer,
    InventoryTransactionSerializer, TransactionCreateSerializer, TransferSerializer,
    MenuItemRecipeSerializer, StockItemSummarySerializer,
)
from . import services

logger = logging.getLogger(__name__)

CanManageInventory = require_permission(Permissions.MANAGE_INVENTORY)
CanViewInventory = require_permission(Permissions.VIEW_INVENTORY)


class InventoryContextMixin:
    """Scope to the caller's restaurant; reads need VIEW_INVENTORY, writes MANAGE_INVENTORY"""

    def get_queryset(self):
        return super().get_queryset().filter(restaurant=self.request.restaurant)

    def perform_create(self, serializer):
        serializer.save(restaurant=self.request.restaurant)

    def get_permissions(self):
        if self.request.method in ['POST', 'PUT', 'PATCH', 'DELETE']:
            return [CanManageInventory(), InventoryEnabled()]
        return [CanViewInventory(), InventoryEnabled()]


class BranchScopedMixin:
    """Cashiers only see their own branch; owners may filter with ?branch="""

    def filter_branch(self, queryset):
        if self.request.user_role.role == 'cashier':
            return queryset.filter(branch=self.request.branch)
        branch_id = self.request.query_params.get('branch')
        if branch_id:
            queryset = queryset.filter(branch_id=branch_id)
        return queryset


class InventoryUnitListCreateView(InventoryContextMixin, generics.ListCreateAPIView):
    queryset = InventoryUnit.objects.all()
    serializer_class = InventoryUnitSerializer


class InventoryUnitDetailView(InventoryContextMixin, generics.RetrieveUpdateDestroyAPIView):
    queryset = InventoryUnit.objects.all()
    serializer_class = InventoryUnitSerializer


class UnitConversionListCreateView(InventoryContextMixin, generics.ListCreateAPIView):
    queryset = UnitConversion.objects.select_related('from_unit', 'to_unit')
    serializer_class = UnitConversionSerializer


class UnitConversionDetailView(InventoryContextMixin, generics.RetrieveUpdateDestroyAPIView):
    queryset = UnitConversion.objects.select_related('from_unit', 'to_unit')
    serializer_class = UnitConversionSerializer


class InventoryItemListCreateView(InventoryContextMixin, BranchScopedMixin, generics.ListCreateAPIView):
    """
    get: Stock items with their on-hand quantity
    post: Create a stock item in one branch (owners only)
    """
    queryset = InventoryItem.objects.select_related('branch', 'base_unit', 'stock_level')
    serializer_class = InventoryItemSerializer
    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]
    filterset_fields = ['is_active', 'base_unit']
    search_fields = ['name']
    ordering_fields = ['name', 'created_at']
    ordering = ['name']

    def get_queryset(self):
        return self.filter_branch(super().get_queryset())

    def perform_create(self, serializer):
        item = serializer.save(restaurant=self.request.restaurant)
        services.get_stock_level(item)
        logger.info("Inventory item %s created in %s", item.name, item.branch.name)


class InventoryItemDetailView(InventoryContextMixin, BranchScopedMixin, generics.RetrieveUpdateDestroyAPIView):
    queryset = InventoryItem.objects.select_related('branch', 'base_unit', 'stock_level')
    serializer_class = InventoryItemSerializer

    def get_queryset(self):
        return self.filter_branch(super().get_queryset())


class InventoryTransactionListView(InventoryContextMixin, BranchScopedMixin, generics.ListAPIView):
    """Stock movement ledger"""
    queryset = InventoryTransaction.objects.select_related('item', 'branch', 'unit', 'created_by')
    serializer_class = InventoryTransactionSerializer
    filter_backends = [DjangoFilterBackend, filters.OrderingFilter]
    filterset_fields = ['item', 'txn_type', 'reference_type', 'reference_id']
    ordering_fields = ['created_at']
    ordering = ['-created_at']

    def get_queryset(self):
        return self.filter_branch(super().get_queryset())


@extend_schema(
    summary="Record a manual stock movement",
    request=TransactionCreateSerializer,
    responses={201: InventoryTransactionSerializer},
)
@api_view(['POST'])
@permission_classes([CanManageInventory, InventoryEnabled])
def create_transaction(request):
    serializer = TransactionCreateSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data

    txn, new_on_hand = services.create_transaction(
        request.restaurant, request.user,
        branch_id=data['branch_id'],
        item_id=data['item_id'],
        txn_type=data['txn_type'],
        qty=data['qty'],
        unit_id=data.get('unit_id'),
        notes=data['notes'],
    )
    return Response({
        'transaction': InventoryTransactionSerializer(txn).data,
        'new_on_hand': str(new_on_hand),
    }, status=status.HTTP_201_CREATED)


@extend_schema(
    summary="Transfer stock between two branches",
    request=TransferSerializer,
)
@api_view(['POST'])
@permission_classes([CanManageInventory, InventoryEnabled])
def transfer_stock(request):
    serializer = TransferSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data

    moved = services.transfer(
        request.restaurant, request.user,
        from_branch_id=data['from_branch_id'],
        to_branch_id=data['to_branch_id'],
        lines=data['lines'],
        notes=data['notes'],
    )
    return Response({'success': True, 'lines': moved}, status=status.HTTP_201_CREATED)


@extend_schema(
    summary="Items at or below their reorder level",
    parameters=[OpenApiParameter('branch', str, description='Branch id (owners)')],
    responses={200: StockItemSummarySerializer(many=True)},
)
@api_view(['GET'])
@permission_classes([CanViewInventory, InventoryEnabled])
def low_stock(request):
    branch = request.branch
    if request.user_role.role != 'cashier' and request.query_params.get('branch'):
        branch = get_object_or_404(request.restaurant.branches, id=request.query_params['branch'])

    items = services.low_stock_items(request.restaurant, branch)
    return Response({
        'count': len(items),
        'items': StockItemSummarySerializer(items, many=True).data,
    })


class RecipeListCreateView(InventoryContextMixin, generics.ListCreateAPIView):
    """
    get: Recipes of the restaurant's menu items
    post: Create a recipe with its lines (owners only)
    """
    queryset = MenuItemRecipe.objects.select_related('menu_item').prefetch_related(
        'lines__inventory_item', 'lines__unit'
    )
    serializer_class = MenuItemRecipeSerializer
    filter_backends = [DjangoFilterBackend]
    filterset_fields = ['menu_item', 'is_active']


class RecipeDetailView(InventoryContextMixin, generics.RetrieveUpdateDestroyAPIView):
    queryset = MenuItemRecipe.objects.select_related('menu_item').prefetch_related(
        'lines__inventory_item', 'lines__unit'
    )
    serializer_class = MenuItemRecipeSerializer
