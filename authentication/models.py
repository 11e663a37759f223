import calendar
import uuid
from datetime import date
from decimal import Decimal

from django.db import models
from django.contrib.auth.models import AbstractUser, BaseUserManager
from django.core.serializers.json import DjangoJSONEncoder
from django.core.validators import RegexValidator
from django.utils import timezone


class CustomUserManager(BaseUserManager):
    def create_user(self, email, password=None, **extra_fields):
        if not email:
            raise ValueError('The Email field must be set')
        email = self.normalize_email(email)
        user = self.model(email=email, **extra_fields)
        user.set_password(password)
        user.save(using=self._db)
        return user

    def create_superuser(self, email, password=None, **extra_fields):
        extra_fields.setdefault('is_staff', True)
        extra_fields.setdefault('is_superuser', True)

        if extra_fields.get('is_staff') is not True:
            raise ValueError('Superuser must have is_staff=True.')
        if extra_fields.get('is_superuser') is not True:
            raise ValueError('Superuser must have is_superuser=True.')

        return self.create_user(email, password, **extra_fields)


class TimeStampedModel(models.Model):
    """Base model with created_at and updated_at fields"""
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


def add_months(start, months):
    """Add calendar months to a date, clamping the day to the target month length."""
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    day = min(start.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


# =============== USER MANAGEMENT ===============

class CustomUser(AbstractUser):
    """Staff and administrator accounts, authenticated by email"""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    phone_regex = RegexValidator(regex=r'^\+?\d{7,15}$')
    phone = models.CharField(validators=[phone_regex], max_length=17, blank=True)
    email = models.EmailField(unique=True)

    username = None
    USERNAME_FIELD = 'email'
    REQUIRED_FIELDS = ['first_name', 'last_name']
    objects = CustomUserManager()

    class Meta:
        db_table = 'users'

    def __str__(self):
        return self.email

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}".strip()


# =============== RESTAURANT & BRANCH MODELS ===============

class Restaurant(TimeStampedModel):
    """A tenant. Every branch, menu, order and shift belongs to exactly one restaurant."""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=255)
    name_ar = models.CharField(max_length=255, blank=True)
    owner = models.ForeignKey(
        CustomUser, on_delete=models.SET_NULL, null=True, blank=True, related_name='owned_restaurants'
    )
    logo_url = models.URLField(blank=True)
    is_active = models.BooleanField(default=True)
    # None means unlimited
    max_branches_allowed = models.PositiveIntegerField(null=True, blank=True)

    class Meta:
        db_table = 'restaurants'
        ordering = ['name']

    def __str__(self):
        return self.name

    @property
    def active_branch_count(self):
        return self.branches.filter(is_active=True).count()

    def can_add_branch(self):
        if self.max_branches_allowed is None:
            return True
        return self.active_branch_count < self.max_branches_allowed

    @property
    def has_active_subscription(self):
        try:
            subscription = self.subscription
        except RestaurantSubscription.DoesNotExist:
            return False
        return subscription.is_active

    def get_settings(self):
        settings_obj, _ = RestaurantSettings.objects.get_or_create(restaurant=self)
        return settings_obj

    @property
    def default_branch(self):
        branches = self.branches.filter(is_active=True)
        return branches.filter(is_default=True).first() or branches.order_by('created_at').first()


class RestaurantSubscription(TimeStampedModel):
    """Paid period for a restaurant, managed by system administrators"""
    PERIOD_CHOICES = [
        ('MONTHLY', 'Monthly'),
        ('QUARTERLY', 'Quarterly'),
        ('SEMI_ANNUAL', 'Semi annual'),
        ('ANNUAL', 'Annual'),
    ]
    PERIOD_MONTHS = {
        'MONTHLY': 1,
        'QUARTERLY': 3,
        'SEMI_ANNUAL': 6,
        'ANNUAL': 12,
    }
    MAX_BONUS_MONTHS = 6

    STATUS_CHOICES = [
        ('ACTIVE', 'Active'),
        ('EXPIRED', 'Expired'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    restaurant = models.OneToOneField(Restaurant, on_delete=models.CASCADE, related_name='subscription')
    period = models.CharField(max_length=20, choices=PERIOD_CHOICES)
    start_date = models.DateField()
    end_date = models.DateField()
    bonus_months = models.PositiveSmallIntegerField(default=0)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='ACTIVE')
    reason = models.TextField(blank=True)
    created_by = models.ForeignKey(
        CustomUser, on_delete=models.SET_NULL, null=True, blank=True, related_name='created_subscriptions'
    )

    class Meta:
        db_table = 'restaurant_subscriptions'

    def __str__(self):
        return f"{self.restaurant.name} {self.period} until {self.end_date}"

    @classmethod
    def clamp_bonus(cls, bonus_months):
        try:
            bonus = int(bonus_months or 0)
        except (TypeError, ValueError):
            bonus = 0
        return max(0, min(cls.MAX_BONUS_MONTHS, bonus))

    @classmethod
    def compute_end_date(cls, start_date, period, bonus_months=0):
        months = cls.PERIOD_MONTHS[period] + cls.clamp_bonus(bonus_months)
        return add_months(start_date, months)

    @property
    def is_expired(self):
        return self.end_date < timezone.localdate()

    @property
    def is_active(self):
        return self.status == 'ACTIVE' and not self.is_expired

    @property
    def days_remaining(self):
        return max(0, (self.end_date - timezone.localdate()).days)

    def refresh_status(self):
        """Persist EXPIRED once the end date has passed."""
        if self.status == 'ACTIVE' and self.is_expired:
            self.status = 'EXPIRED'
            self.save(update_fields=['status', 'updated_at'])
        return self.status


class Branch(TimeStampedModel):
    """Physical location under a restaurant"""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    restaurant = models.ForeignKey(Restaurant, on_delete=models.CASCADE, related_name='branches')
    name = models.CharField(max_length=255)
    code = models.CharField(max_length=50)
    address = models.CharField(max_length=500, blank=True)
    phone = models.CharField(max_length=20, blank=True)
    is_default = models.BooleanField(default=False)
    is_active = models.BooleanField(default=True)

    class Meta:
        db_table = 'branches'
        unique_together = ['restaurant', 'code']
        ordering = ['created_at']

    def __str__(self):
        return f"{self.restaurant.name} - {self.name}"


class UserRole(TimeStampedModel):
    """Role assignment. A user holds at most one role."""
    ROLE_CHOICES = [
        ('system_admin', 'System Admin'),
        ('owner', 'Owner'),
        ('cashier', 'Cashier'),
        ('kitchen', 'Kitchen'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.OneToOneField(CustomUser, on_delete=models.CASCADE, related_name='user_role')
    role = models.CharField(max_length=20, choices=ROLE_CHOICES)
    restaurant = models.ForeignKey(
        Restaurant, on_delete=models.CASCADE, null=True, blank=True, related_name='user_roles'
    )
    branch = models.ForeignKey(
        Branch, on_delete=models.SET_NULL, null=True, blank=True, related_name='user_roles'
    )
    is_active = models.BooleanField(default=True)

    class Meta:
        db_table = 'user_roles'

    def __str__(self):
        return f"{self.user.email} ({self.role})"


class RestaurantSettings(TimeStampedModel):
    """Per-restaurant pricing rules and feature modules"""
    DISCOUNT_TYPES = [
        ('percentage', 'Percentage'),
        ('fixed', 'Fixed'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    restaurant = models.OneToOneField(Restaurant, on_delete=models.CASCADE, related_name='settings')
    tax_rate = models.DecimalField(max_digits=5, decimal_places=4, default=Decimal('0.16'))
    service_charge_rate = models.DecimalField(max_digits=5, decimal_places=4, default=Decimal('0'))
    prices_include_tax = models.BooleanField(default=False)
    currency = models.CharField(max_length=3, default='JOD')
    rounding_enabled = models.BooleanField(default=True)
    discounts_enabled = models.BooleanField(default=True)
    discount_type = models.CharField(max_length=20, choices=DISCOUNT_TYPES, default='percentage')
    max_discount_value = models.DecimalField(max_digits=12, decimal_places=3, null=True, blank=True)
    business_hours = models.JSONField(default=dict, blank=True)

    # Feature modules, toggled by system admins
    inventory_enabled = models.BooleanField(default=False)
    kds_enabled = models.BooleanField(default=False)
    qr_enabled = models.BooleanField(default=False)

    class Meta:
        db_table = 'restaurant_settings'
        verbose_name_plural = 'Restaurant settings'

    def __str__(self):
        return f"Settings for {self.restaurant.name}"


class AuditLog(models.Model):
    """Append-only record of privileged actions"""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    restaurant = models.ForeignKey(
        Restaurant, on_delete=models.CASCADE, null=True, blank=True, related_name='audit_logs'
    )
    user = models.ForeignKey(
        CustomUser, on_delete=models.SET_NULL, null=True, blank=True, related_name='audit_logs'
    )
    entity_type = models.CharField(max_length=50)
    entity_id = models.CharField(max_length=64, blank=True)
    action = models.CharField(max_length=64)
    details = models.JSONField(default=dict, blank=True, encoder=DjangoJSONEncoder)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'audit_logs'
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.action} {self.entity_type}:{self.entity_id}"

    @classmethod
    def record(cls, action, entity_type, entity_id='', restaurant=None, user=None, details=None):
        if user is not None and not getattr(user, 'is_authenticated', False):
            user = None
        return cls.objects.create(
            restaurant=restaurant,
            user=user,
            entity_type=entity_type,
            entity_id=str(entity_id or ''),
            action=action,
            details=details or {},
        )
