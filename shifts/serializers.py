from rest_framework import serializers

from .models import Shift, ShiftTransaction


class ShiftTransactionSerializer(serializers.ModelSerializer):
    created_by_email = serializers.EmailField(source='created_by.email', read_only=True, default=None)

    class Meta:
        model = ShiftTransaction
        fields = ['id', 'shift', 'type', 'amount', 'reason', 'created_by_email', 'created_at']
        read_only_fields = ['id', 'shift', 'created_at']


class ShiftSerializer(serializers.ModelSerializer):
    cashier_email = serializers.EmailField(source='cashier.email', read_only=True)
    cashier_name = serializers.CharField(source='cashier.full_name', read_only=True)
    branch_name = serializers.CharField(source='branch.name', read_only=True)

    class Meta:
        model = Shift
        fields = [
            'id', 'branch', 'branch_name', 'cashier', 'cashier_email', 'cashier_name', 'status',
            'opening_cash', 'closing_cash', 'expected_cash', 'cash_difference', 'opened_at', 'closed_at'
        ]
        read_only_fields = fields


class OpenShiftSerializer(serializers.Serializer):
    opening_cash = serializers.DecimalField(max_digits=12, decimal_places=3, min_value=0)


class CloseShiftSerializer(serializers.Serializer):
    closing_cash = serializers.DecimalField(max_digits=12, decimal_places=3, min_value=0)
    confirm = serializers.BooleanField(default=False)


class CashMovementSerializer(serializers.Serializer):
    type = serializers.ChoiceField(choices=ShiftTransaction.TYPE_CHOICES)
    amount = serializers.DecimalField(max_digits=12, decimal_places=3)
    reason = serializers.CharField(required=False, allow_blank=True, max_length=255, default='')

    def validate_amount(self, value):
        if value <= 0:
            raise serializers.ValidationError("Amount must be greater than zero")
        return value
