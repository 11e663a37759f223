import uuid
from decimal import Decimal

from django.conf import settings
from django.db import models

from authentication.models import Restaurant, Branch, TimeStampedModel
from menu.models import MenuItem


class InventoryUnit(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    restaurant = models.ForeignKey(Restaurant, on_delete=models.CASCADE, related_name='inventory_units')
    name = models.CharField(max_length=50)
    symbol = models.CharField(max_length=10)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return self.symbol

    class Meta:
        db_table = 'inventory_units'
        unique_together = ['restaurant', 'symbol']
        ordering = ['name']


class UnitConversion(models.Model):
    """qty in from_unit x multiplier = qty in to_unit"""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    restaurant = models.ForeignKey(Restaurant, on_delete=models.CASCADE, related_name='unit_conversions')
    from_unit = models.ForeignKey(InventoryUnit, on_delete=models.CASCADE, related_name='conversions_from')
    to_unit = models.ForeignKey(InventoryUnit, on_delete=models.CASCADE, related_name='conversions_to')
    multiplier = models.DecimalField(max_digits=14, decimal_places=6)

    def __str__(self):
        return f"1 {self.from_unit} = {self.multiplier} {self.to_unit}"

    class Meta:
        db_table = 'inventory_unit_conversions'
        unique_together = ['from_unit', 'to_unit']


class InventoryItem(TimeStampedModel):
    """Stock item of one branch. Each branch keeps its own row per ingredient name."""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    restaurant = models.ForeignKey(Restaurant, on_delete=models.CASCADE, related_name='inventory_items')
    branch = models.ForeignKey(Branch, on_delete=models.CASCADE, related_name='inventory_items')
    name = models.CharField(max_length=255)
    base_unit = models.ForeignKey(InventoryUnit, on_delete=models.PROTECT, related_name='items')
    min_level = models.DecimalField(max_digits=14, decimal_places=3, default=Decimal('0'))
    reorder_level = models.DecimalField(max_digits=14, decimal_places=3, default=Decimal('0'))
    avg_cost = models.DecimalField(max_digits=12, decimal_places=3, default=Decimal('0'))
    is_active = models.BooleanField(default=True)

    def __str__(self):
        return f"{self.name} ({self.branch.name})"

    class Meta:
        db_table = 'inventory_items'
        unique_together = ['branch', 'name']
        ordering = ['name']

    @property
    def on_hand(self):
        try:
            return self.stock_level.on_hand_base
        except InventoryStockLevel.DoesNotExist:
            return Decimal('0')

    @property
    def is_low_stock(self):
        threshold = self.reorder_level if self.reorder_level > 0 else self.min_level
        return self.on_hand <= threshold


class InventoryStockLevel(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    item = models.OneToOneField(InventoryItem, on_delete=models.CASCADE, related_name='stock_level')
    on_hand_base = models.DecimalField(max_digits=14, decimal_places=3, default=Decimal('0'))
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.item.name}: {self.on_hand_base}"

    class Meta:
        db_table = 'inventory_stock_levels'


class InventoryTransaction(models.Model):
    TYPE_CHOICES = (
        ('ADJUSTMENT_IN', 'Adjustment In'),
        ('ADJUSTMENT_OUT', 'Adjustment Out'),
        ('WASTE', 'Waste'),
        ('INITIAL_STOCK', 'Initial Stock'),
        ('TRANSFER_IN', 'Transfer In'),
        ('TRANSFER_OUT', 'Transfer Out'),
        ('SALE', 'Sale'),
    )
    MANUAL_TYPES = ('ADJUSTMENT_IN', 'ADJUSTMENT_OUT', 'WASTE', 'INITIAL_STOCK')
    OUTGOING_TYPES = ('ADJUSTMENT_OUT', 'WASTE', 'TRANSFER_OUT', 'SALE')

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    restaurant = models.ForeignKey(Restaurant, on_delete=models.CASCADE, related_name='inventory_transactions')
    branch = models.ForeignKey(Branch, on_delete=models.CASCADE, related_name='inventory_transactions')
    item = models.ForeignKey(InventoryItem, on_delete=models.CASCADE, related_name='transactions')
    txn_type = models.CharField(max_length=20, choices=TYPE_CHOICES, db_index=True)
    # Signed: outgoing movements are stored negative
    qty = models.DecimalField(max_digits=14, decimal_places=3)
    unit = models.ForeignKey(InventoryUnit, on_delete=models.SET_NULL, null=True, blank=True)
    qty_in_base = models.DecimalField(max_digits=14, decimal_places=3)
    reference_type = models.CharField(max_length=20, blank=True)
    reference_id = models.CharField(max_length=64, blank=True, db_index=True)
    notes = models.CharField(max_length=500, blank=True)
    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.txn_type} {self.qty_in_base} {self.item.name}"

    class Meta:
        db_table = 'inventory_transactions'
        ordering = ['-created_at']


class MenuItemRecipe(TimeStampedModel):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    restaurant = models.ForeignKey(Restaurant, on_delete=models.CASCADE, related_name='recipes')
    menu_item = models.OneToOneField(MenuItem, on_delete=models.CASCADE, related_name='recipe')
    is_active = models.BooleanField(default=True)
    notes = models.CharField(max_length=500, blank=True)

    def __str__(self):
        return f"Recipe: {self.menu_item.name}"

    class Meta:
        db_table = 'menu_item_recipes'


class RecipeLine(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    recipe = models.ForeignKey(MenuItemRecipe, on_delete=models.CASCADE, related_name='lines')
    inventory_item = models.ForeignKey(InventoryItem, on_delete=models.CASCADE, related_name='recipe_lines')
    qty = models.DecimalField(max_digits=14, decimal_places=3)
    unit = models.ForeignKey(InventoryUnit, on_delete=models.SET_NULL, null=True, blank=True)
    # Quantity per one sold menu item, in the inventory item's base unit
    qty_in_base = models.DecimalField(max_digits=14, decimal_places=3)

    def __str__(self):
        return f"{self.qty} {self.unit or ''} {self.inventory_item.name}"

    class Meta:
        db_table = 'recipe_lines'
