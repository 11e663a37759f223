from django.contrib.auth.password_validation import validate_password
from rest_framework import serializers

from authentication.models import RestaurantSubscription
from authentication.serializers import RestaurantSerializer
from shifts.models import Shift


class AdminRestaurantSerializer(RestaurantSerializer):
    """Restaurant row of the system admin console"""
    total_branches = serializers.IntegerField(read_only=True)
    staff_count = serializers.IntegerField(read_only=True)
    modules = serializers.SerializerMethodField()

    class Meta(RestaurantSerializer.Meta):
        fields = RestaurantSerializer.Meta.fields + ['total_branches', 'staff_count', 'modules']

    def get_modules(self, obj):
        settings_obj = getattr(obj, 'settings', None)
        return {
            'inventory_enabled': bool(settings_obj and settings_obj.inventory_enabled),
            'kds_enabled': bool(settings_obj and settings_obj.kds_enabled),
            'qr_enabled': bool(settings_obj and settings_obj.qr_enabled),
        }


class SubscriptionPeriodSerializer(serializers.Serializer):
    period = serializers.ChoiceField(choices=RestaurantSubscription.PERIOD_CHOICES)
    start_date = serializers.DateField(required=False)
    # Clamped to 0-6 rather than rejected
    bonus_months = serializers.IntegerField(required=False, default=0)
    reason = serializers.CharField(required=False, allow_blank=True, default='')

    def validate_bonus_months(self, value):
        return RestaurantSubscription.clamp_bonus(value)


class CreateRestaurantSerializer(SubscriptionPeriodSerializer):
    name = serializers.CharField(max_length=255)
    name_ar = serializers.CharField(max_length=255, required=False, allow_blank=True, default='')
    logo_url = serializers.URLField(required=False, allow_blank=True, default='')
    max_branches_allowed = serializers.IntegerField(required=False, allow_null=True, min_value=1, default=None)

    def validate_name(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Name is required")
        return value


class AssignOwnerSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True, required=False, validators=[validate_password])
    first_name = serializers.CharField(max_length=150, required=False, allow_blank=True, default='')
    last_name = serializers.CharField(max_length=150, required=False, allow_blank=True, default='')

    def validate_email(self, value):
        return value.lower()


class ResetPasswordSerializer(serializers.Serializer):
    new_password = serializers.CharField(write_only=True, min_length=6)


class ModulesSerializer(serializers.Serializer):
    inventory_enabled = serializers.BooleanField(required=False)
    kds_enabled = serializers.BooleanField(required=False)
    qr_enabled = serializers.BooleanField(required=False)

    def validate(self, attrs):
        if not attrs:
            raise serializers.ValidationError("At least one module flag is required")
        return attrs


class SetActiveSerializer(serializers.Serializer):
    is_active = serializers.BooleanField()


class ShiftReportSerializer(serializers.ModelSerializer):
    cashier_email = serializers.EmailField(source='cashier.email', read_only=True)
    branch_name = serializers.CharField(source='branch.name', read_only=True)

    class Meta:
        model = Shift
        fields = [
            'id', 'branch', 'branch_name', 'cashier', 'cashier_email', 'status',
            'opening_cash', 'closing_cash', 'expected_cash', 'cash_difference', 'opened_at', 'closed_at'
        ]

