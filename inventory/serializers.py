from rest_framework import serializers

from .models import (
    InventoryUnit, UnitConversion, InventoryItem, InventoryTransaction, MenuItemRecipe, RecipeLine,
)
from .services import save_recipe_lines


class RestaurantScopedMixin:
    """Restrict a related-field value to the caller's restaurant"""

    def _check_restaurant(self, value, label):
        restaurant = self.context['request'].restaurant
        if value is not None and value.restaurant_id != restaurant.id:
            raise serializers.ValidationError(f"{label} does not belong to this restaurant")
        return value


class InventoryUnitSerializer(serializers.ModelSerializer):
    class Meta:
        model = InventoryUnit
        fields = ['id', 'name', 'symbol', 'created_at']
        read_only_fields = ['id', 'created_at']

    def validate_symbol(self, value):
        restaurant = self.context['request'].restaurant
        queryset = InventoryUnit.objects.filter(restaurant=restaurant, symbol=value)
        if self.instance:
            queryset = queryset.exclude(pk=self.instance.pk)
        if queryset.exists():
            raise serializers.ValidationError("A unit with this symbol already exists")
        return value


class UnitConversionSerializer(RestaurantScopedMixin, serializers.ModelSerializer):
    from_unit_symbol = serializers.CharField(source='from_unit.symbol', read_only=True)
    to_unit_symbol = serializers.CharField(source='to_unit.symbol', read_only=True)

    class Meta:
        model = UnitConversion
        fields = ['id', 'from_unit', 'from_unit_symbol', 'to_unit', 'to_unit_symbol', 'multiplier']
        read_only_fields = ['id']

    def validate_from_unit(self, value):
        return self._check_restaurant(value, "Unit")

    def validate_to_unit(self, value):
        return self._check_restaurant(value, "Unit")

    def validate_multiplier(self, value):
        if value <= 0:
            raise serializers.ValidationError("Multiplier must be greater than zero")
        return value

    def validate(self, attrs):
        if attrs.get('from_unit') and attrs.get('from_unit') == attrs.get('to_unit'):
            raise serializers.ValidationError("A unit cannot be converted to itself")
        return attrs


class InventoryItemSerializer(RestaurantScopedMixin, serializers.ModelSerializer):
    branch_name = serializers.CharField(source='branch.name', read_only=True)
    base_unit_symbol = serializers.CharField(source='base_unit.symbol', read_only=True)
    on_hand = serializers.DecimalField(max_digits=14, decimal_places=3, read_only=True)
    is_low_stock = serializers.BooleanField(read_only=True)

    class Meta:
        model = InventoryItem
        fields = [
            'id', 'branch', 'branch_name', 'name', 'base_unit', 'base_unit_symbol',
            'min_level', 'reorder_level', 'avg_cost', 'is_active', 'on_hand', 'is_low_stock',
            'created_at', 'updated_at'
        ]
        read_only_fields = ['id', 'created_at', 'updated_at']

    def validate_branch(self, value):
        return self._check_restaurant(value, "Branch")

    def validate_base_unit(self, value):
        return self._check_restaurant(value, "Unit")

    def validate(self, attrs):
        branch = attrs.get('branch', getattr(self.instance, 'branch', None))
        name = attrs.get('name', getattr(self.instance, 'name', None))
        queryset = InventoryItem.objects.filter(branch=branch, name=name)
        if self.instance:
            queryset = queryset.exclude(pk=self.instance.pk)
        if queryset.exists():
            raise serializers.ValidationError({'name': "An item with this name already exists in this branch"})
        return attrs


class InventoryTransactionSerializer(serializers.ModelSerializer):
    item_name = serializers.CharField(source='item.name', read_only=True)
    branch_name = serializers.CharField(source='branch.name', read_only=True)
    unit_symbol = serializers.CharField(source='unit.symbol', read_only=True, default=None)
    created_by_email = serializers.EmailField(source='created_by.email', read_only=True, default=None)

    class Meta:
        model = InventoryTransaction
        fields = [
            'id', 'branch', 'branch_name', 'item', 'item_name', 'txn_type', 'qty', 'unit', 'unit_symbol',
            'qty_in_base', 'reference_type', 'reference_id', 'notes', 'created_by_email', 'created_at'
        ]


class TransactionCreateSerializer(serializers.Serializer):
    branch_id = serializers.UUIDField()
    item_id = serializers.UUIDField()
    txn_type = serializers.ChoiceField(choices=InventoryTransaction.MANUAL_TYPES)
    qty = serializers.DecimalField(max_digits=14, decimal_places=3)
    unit_id = serializers.UUIDField(required=False, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True, default='', max_length=500)


class TransferLineSerializer(serializers.Serializer):
    item_id = serializers.UUIDField()
    qty = serializers.DecimalField(max_digits=14, decimal_places=3)
    unit_id = serializers.UUIDField(required=False, allow_null=True)


class TransferSerializer(serializers.Serializer):
    from_branch_id = serializers.UUIDField()
    to_branch_id = serializers.UUIDField()
    lines = TransferLineSerializer(many=True)
    notes = serializers.CharField(required=False, allow_blank=True, default='', max_length=400)


class RecipeLineSerializer(RestaurantScopedMixin, serializers.ModelSerializer):
    inventory_item_name = serializers.CharField(source='inventory_item.name', read_only=True)
    unit_symbol = serializers.CharField(source='unit.symbol', read_only=True, default=None)

    class Meta:
        model = RecipeLine
        fields = ['id', 'inventory_item', 'inventory_item_name', 'qty', 'unit', 'unit_symbol', 'qty_in_base']
        read_only_fields = ['id', 'qty_in_base']

    def validate_inventory_item(self, value):
        return self._check_restaurant(value, "Inventory item")

    def validate_unit(self, value):
        return self._check_restaurant(value, "Unit")


class MenuItemRecipeSerializer(RestaurantScopedMixin, serializers.ModelSerializer):
    menu_item_name = serializers.CharField(source='menu_item.name', read_only=True)
    lines = RecipeLineSerializer(many=True)

    class Meta:
        model = MenuItemRecipe
        fields = ['id', 'menu_item', 'menu_item_name', 'is_active', 'notes', 'lines', 'created_at', 'updated_at']
        read_only_fields = ['id', 'created_at', 'updated_at']

    def validate_menu_item(self, value):
        value = self._check_restaurant(value, "Menu item")
        queryset = MenuItemRecipe.objects.filter(menu_item=value)
        if self.instance:
            queryset = queryset.exclude(pk=self.instance.pk)
        if queryset.exists():
            raise serializers.ValidationError("This menu item already has a recipe")
        return value

    def validate_lines(self, value):
        for line in value:
            if line['qty'] <= 0:
                raise serializers.ValidationError("Recipe quantities must be greater than zero")
        return value

    def create(self, validated_data):
        lines = validated_data.pop('lines')
        recipe = MenuItemRecipe.objects.create(**validated_data)
        save_recipe_lines(recipe, lines)
        return recipe

    def update(self, instance, validated_data):
        lines = validated_data.pop('lines', None)
        for attr, value in validated_data.items():
            setattr(instance, attr, value)
        instance.save()
        if lines is not None:
            save_recipe_lines(instance, lines)
        return instance


class StockItemSummarySerializer(serializers.Serializer):
    """Low stock row"""
    id = serializers.UUIDField()
    name = serializers.CharField()
    branch_name = serializers.CharField(source='branch.name')
    base_unit_symbol = serializers.CharField(source='base_unit.symbol')
    on_hand = serializers.DecimalField(max_digits=14, decimal_places=3)
    min_level = serializers.DecimalField(max_digits=14, decimal_places=3)
    reorder_level = serializers.DecimalField(max_digits=14, decimal_places=3)

