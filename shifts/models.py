import uuid

from django.conf import settings
from django.db import models

from authentication.models import Restaurant, Branch


class Shift(models.Model):
    """A cashier's cash-drawer session"""
    STATUS_CHOICES = [
        ('open', 'Open'),
        ('closed', 'Closed'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    restaurant = models.ForeignKey(Restaurant, on_delete=models.CASCADE, related_name='shifts')
    branch = models.ForeignKey(Branch, on_delete=models.CASCADE, related_name='shifts')
    cashier = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name='shifts')
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default='open', db_index=True)
    opening_cash = models.DecimalField(max_digits=12, decimal_places=3, default=0)
    closing_cash = models.DecimalField(max_digits=12, decimal_places=3, null=True, blank=True)
    # Reconciliation snapshot taken when the shift is closed
    expected_cash = models.DecimalField(max_digits=12, decimal_places=3, null=True, blank=True)
    cash_difference = models.DecimalField(max_digits=12, decimal_places=3, null=True, blank=True)
    opened_at = models.DateTimeField(auto_now_add=True)
    closed_at = models.DateTimeField(null=True, blank=True)

    def __str__(self):
        return f"Shift {self.id} - {self.cashier} ({self.status})"

    class Meta:
        db_table = 'shifts'
        ordering = ['-opened_at']

    @property
    def is_open(self):
        return self.status == 'open'


class ShiftTransaction(models.Model):
    """Cash put into or taken out of the drawer outside of sales"""
    TYPE_CHOICES = [
        ('cash_in', 'Cash In'),
        ('cash_out', 'Cash Out'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    shift = models.ForeignKey(Shift, on_delete=models.CASCADE, related_name='transactions')
    restaurant = models.ForeignKey(Restaurant, on_delete=models.CASCADE, related_name='shift_transactions')
    branch = models.ForeignKey(Branch, on_delete=models.CASCADE, related_name='shift_transactions', null=True, blank=True)
    type = models.CharField(max_length=10, choices=TYPE_CHOICES)
    amount = models.DecimalField(max_digits=12, decimal_places=3)
    reason = models.CharField(max_length=255, blank=True)
    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'shift_transactions'
        ordering = ['-created_at']
