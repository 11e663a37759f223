from rest_framework import serializers, status
from django.contrib.auth import authenticate
from django.contrib.auth.password_validation import validate_password
from django.db import transaction

from .exceptions import POSError
from .models import (
    CustomUser, Restaurant, RestaurantSubscription, Branch, UserRole,
    RestaurantSettings, AuditLog
)


class UserSerializer(serializers.ModelSerializer):
    password = serializers.CharField(write_only=True, validators=[validate_password], required=False)
    confirm_password = serializers.CharField(write_only=True, required=False)
    full_name = serializers.SerializerMethodField(read_only=True)

    class Meta:
        model = CustomUser
        fields = [
            'id', 'email', 'first_name', 'last_name', 'full_name', 'phone',
            'password', 'confirm_password', 'is_active', 'last_login'
        ]
        extra_kwargs = {
            'password': {'write_only': True},
            'last_login': {'read_only': True}
        }

    def get_full_name(self, obj):
        return obj.full_name

    def validate(self, attrs):
        if 'password' in attrs and 'confirm_password' in attrs:
            if attrs['password'] != attrs['confirm_password']:
                raise serializers.ValidationError("Passwords don't match")
        return attrs

    def update(self, instance, validated_data):
        validated_data.pop('confirm_password', None)
        password = validated_data.pop('password', None)

        for attr, value in validated_data.items():
            setattr(instance, attr, value)

        if password:
            instance.set_password(password)

        instance.save()
        return instance


class LoginSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField()

    def validate(self, attrs):
        email = attrs.get('email')
        password = attrs.get('password')

        if not email or not password:
            raise serializers.ValidationError('Email and password are required')

        # Authenticate user
        user = authenticate(self.context.get('request'), email=email, password=password)
        if not user:
            raise serializers.ValidationError('Invalid email or password')

        attrs['user'] = user
        return attrs


class SubscriptionSerializer(serializers.ModelSerializer):
    is_expired = serializers.BooleanField(read_only=True)
    days_remaining = serializers.IntegerField(read_only=True)

    class Meta:
        model = RestaurantSubscription
        fields = [
            'id', 'period', 'start_date', 'end_date', 'bonus_months', 'status',
            'reason', 'is_expired', 'days_remaining', 'created_at', 'updated_at'
        ]
        read_only_fields = fields


class RestaurantSerializer(serializers.ModelSerializer):
    owner_email = serializers.CharField(source='owner.email', read_only=True, default=None)
    subscription = serializers.SerializerMethodField()
    active_branches = serializers.SerializerMethodField()

    class Meta:
        model = Restaurant
        fields = [
            'id', 'name', 'name_ar', 'logo_url', 'is_active', 'max_branches_allowed',
            'owner', 'owner_email', 'subscription', 'active_branches', 'created_at', 'updated_at'
        ]
        read_only_fields = ['id', 'owner', 'is_active', 'max_branches_allowed', 'created_at', 'updated_at']

    def get_subscription(self, obj):
        subscription = getattr(obj, 'subscription', None)
        if subscription is None:
            return None
        return SubscriptionSerializer(subscription).data

    def get_active_branches(self, obj):
        return obj.active_branch_count


class BranchSerializer(serializers.ModelSerializer):
    restaurant_name = serializers.CharField(source='restaurant.name', read_only=True)
    total_staff = serializers.SerializerMethodField()

    class Meta:
        model = Branch
        fields = [
            'id', 'restaurant', 'restaurant_name', 'name', 'code', 'address', 'phone',
            'is_default', 'is_active', 'total_staff', 'created_at', 'updated_at'
        ]
        read_only_fields = ['id', 'restaurant', 'created_at', 'updated_at']

    def get_total_staff(self, obj):
        return obj.user_roles.filter(is_active=True).count()

    def validate_code(self, value):
        restaurant = self.context.get('restaurant')
        code = value.strip().upper()
        if restaurant is not None:
            queryset = Branch.objects.filter(restaurant=restaurant, code=code)
            if self.instance:
                queryset = queryset.exclude(id=self.instance.id)
            if queryset.exists():
                raise serializers.ValidationError('Branch code already exists in this restaurant')
        return code


class UserRoleSerializer(serializers.ModelSerializer):
    user_info = UserSerializer(source='user', read_only=True)
    branch_name = serializers.CharField(source='branch.name', read_only=True, default=None)
    role_display = serializers.CharField(source='get_role_display', read_only=True)

    class Meta:
        model = UserRole
        fields = [
            'id', 'user', 'role', 'role_display', 'restaurant', 'branch', 'branch_name',
            'is_active', 'user_info', 'created_at', 'updated_at'
        ]
        read_only_fields = ['id', 'user', 'role', 'restaurant', 'created_at', 'updated_at']

    def validate_branch(self, value):
        restaurant = self.context.get('restaurant')
        if value is not None and restaurant is not None and value.restaurant_id != restaurant.id:
            raise serializers.ValidationError('Branch does not belong to your restaurant')
        return value


class StaffCreateSerializer(serializers.Serializer):
    """Create a cashier or kitchen account inside the owner's restaurant"""
    STAFF_ROLES = [('cashier', 'Cashier'), ('kitchen', 'Kitchen')]

    email = serializers.EmailField()
    password = serializers.CharField(write_only=True, validators=[validate_password])
    first_name = serializers.CharField(max_length=150)
    last_name = serializers.CharField(max_length=150, required=False, allow_blank=True)
    phone = serializers.CharField(max_length=17, required=False, allow_blank=True)
    role = serializers.ChoiceField(choices=STAFF_ROLES)
    branch = serializers.PrimaryKeyRelatedField(queryset=Branch.objects.all())

    def validate_email(self, value):
        if CustomUser.objects.filter(email__iexact=value).exists():
            raise POSError('user_exists', status_code=status.HTTP_409_CONFLICT)
        return value.lower()

    def validate_branch(self, value):
        restaurant = self.context['restaurant']
        if value.restaurant_id != restaurant.id:
            raise serializers.ValidationError('Branch does not belong to your restaurant')
        if not value.is_active:
            raise serializers.ValidationError('Branch is inactive')
        return value

    @transaction.atomic
    def create(self, validated_data):
        user = CustomUser.objects.create_user(
            email=validated_data['email'],
            password=validated_data['password'],
            first_name=validated_data['first_name'],
            last_name=validated_data.get('last_name', ''),
            phone=validated_data.get('phone', ''),
        )
        return UserRole.objects.create(
            user=user,
            role=validated_data['role'],
            restaurant=self.context['restaurant'],
            branch=validated_data['branch'],
        )


class RestaurantSettingsSerializer(serializers.ModelSerializer):
    class Meta:
        model = RestaurantSettings
        fields = [
            'id', 'restaurant', 'tax_rate', 'service_charge_rate', 'prices_include_tax',
            'currency', 'rounding_enabled', 'discounts_enabled', 'discount_type',
            'max_discount_value', 'business_hours',
            'inventory_enabled', 'kds_enabled', 'qr_enabled', 'updated_at'
        ]
        # Modules are switched by system admins only
        read_only_fields = ['id', 'restaurant', 'inventory_enabled', 'kds_enabled', 'qr_enabled', 'updated_at']

    def validate_tax_rate(self, value):
        if value < 0 or value > 1:
            raise serializers.ValidationError('Tax rate must be between 0 and 1')
        return value

    def validate_service_charge_rate(self, value):
        if value < 0 or value > 1:
            raise serializers.ValidationError('Service charge rate must be between 0 and 1')
        return value


class AuditLogSerializer(serializers.ModelSerializer):
    user_email = serializers.CharField(source='user.email', read_only=True, default=None)

    class Meta:
        model = AuditLog
        fields = [
            'id', 'restaurant', 'user', 'user_email', 'entity_type', 'entity_id',
            'action', 'details', 'created_at'
        ]
        read_only_fields = fields


class ChangePasswordSerializer(serializers.Serializer):
    """Serializer for changing user password"""
    current_password = serializers.CharField()
    new_password = serializers.CharField(validators=[validate_password])
    confirm_password = serializers.CharField()

    def validate(self, attrs):
        if attrs['new_password'] != attrs['confirm_password']:
            raise serializers.ValidationError("New passwords don't match")
        return attrs

    def validate_current_password(self, value):
        user = self.context['request'].user
        if not user.check_password(value):
            raise serializers.ValidationError('Current password is incorrect')
        return value


class EmailUpdateSerializer(serializers.Serializer):
    """New login email for the user passed in the ``user`` context key"""
    new_email = serializers.EmailField()

    def validate_new_email(self, value):
        value = value.strip().lower()
        taken = CustomUser.objects.filter(email__iexact=value).exclude(pk=self.context['user'].pk)
        if taken.exists():
            raise POSError('email_taken', status_code=status.HTTP_409_CONFLICT)
        return value
