import uuid

from django.db import models

from authentication.models import Restaurant, Branch, TimeStampedModel


class MenuCategory(TimeStampedModel):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    restaurant = models.ForeignKey(Restaurant, on_delete=models.CASCADE, related_name='menu_categories')
    name = models.CharField(max_length=100)
    name_ar = models.CharField(max_length=100, blank=True)
    sort_order = models.IntegerField(default=0)
    is_active = models.BooleanField(default=True)

    def __str__(self):
        return str(self.name)

    class Meta:
        db_table = 'menu_categories'
        unique_together = ['restaurant', 'name']
        ordering = ['sort_order', 'name']
        verbose_name_plural = "Menu Categories"


class ModifierGroup(TimeStampedModel):
    SELECTION_TYPES = [
        ('single', 'Single'),
        ('multiple', 'Multiple'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    restaurant = models.ForeignKey(Restaurant, on_delete=models.CASCADE, related_name='modifier_groups')
    name = models.CharField(max_length=100)
    name_ar = models.CharField(max_length=100, blank=True)
    selection_type = models.CharField(max_length=20, choices=SELECTION_TYPES, default='single')
    is_required = models.BooleanField(default=False)
    max_selections = models.PositiveSmallIntegerField(null=True, blank=True)
    is_active = models.BooleanField(default=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'modifier_groups'
        unique_together = ['restaurant', 'name']


class ModifierOption(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    group = models.ForeignKey(ModifierGroup, on_delete=models.CASCADE, related_name='options')
    name = models.CharField(max_length=100)
    name_ar = models.CharField(max_length=100, blank=True)
    price_adjustment = models.DecimalField(max_digits=12, decimal_places=3, default=0)
    sort_order = models.IntegerField(default=0)
    is_active = models.BooleanField(default=True)

    def __str__(self):
        return f"{self.group.name} - {self.name}"

    class Meta:
        db_table = 'modifier_options'
        ordering = ['sort_order', 'name']


class MenuItem(TimeStampedModel):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    restaurant = models.ForeignKey(Restaurant, on_delete=models.CASCADE, related_name='menu_items')
    category = models.ForeignKey(MenuCategory, on_delete=models.CASCADE, related_name="items")
    name = models.CharField(max_length=255)
    name_ar = models.CharField(max_length=255, blank=True)
    description = models.CharField(max_length=1000, blank=True)
    price = models.DecimalField(max_digits=12, decimal_places=3)
    is_available = models.BooleanField(default=True)
    is_offer = models.BooleanField(default=False)
    is_favorite = models.BooleanField(default=False)
    sort_order = models.IntegerField(default=0)

    modifier_groups = models.ManyToManyField(ModifierGroup, blank=True, related_name='menu_items')

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'menu_items'
        ordering = ['sort_order', 'name']

    def price_for_branch(self, branch):
        """Branch override price when one exists, else the restaurant price."""
        if branch is None:
            return self.price
        override = self.branch_overrides.filter(branch=branch).first()
        if override is not None and override.price is not None:
            return override.price
        return self.price

    def is_available_in(self, branch):
        if not self.is_available or not self.category.is_active:
            return False
        if branch is None:
            return True
        override = self.branch_overrides.filter(branch=branch).first()
        return override is None or override.is_available


class BranchMenuItem(models.Model):
    """Per-branch price and availability override"""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    branch = models.ForeignKey(Branch, on_delete=models.CASCADE, related_name='menu_overrides')
    menu_item = models.ForeignKey(MenuItem, on_delete=models.CASCADE, related_name='branch_overrides')
    price = models.DecimalField(max_digits=12, decimal_places=3, null=True, blank=True)
    is_available = models.BooleanField(default=True)

    class Meta:
        db_table = 'branch_menu_items'
        unique_together = ['branch', 'menu_item']
