"""
Test helpers shared by the app test suites.
"""
import random
import string
from datetime import timedelta
from decimal import Decimal

from django.utils import timezone
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken

from authentication.models import (
    Branch, CustomUser, Restaurant, RestaurantSettings, RestaurantSubscription, UserRole,
)
from menu.models import MenuCategory, MenuItem
from orders.models import Order, OrderItem, Payment, RestaurantTable
from shifts.models import Shift


def random_string(length=8):
    return ''.join(random.choices(string.ascii_lowercase + string.digits, k=length))


class TestDataFactory:
    """Factory for creating test data"""

    @staticmethod
    def create_user(email=None, password='testpass123', **kwargs):
        return CustomUser.objects.create_user(
            email=email or f'user_{random_string()}@example.com',
            password=password,
            first_name=kwargs.pop('first_name', 'Test'),
            last_name=kwargs.pop('last_name', 'User'),
            **kwargs
        )

    @staticmethod
    def create_restaurant(name=None, subscription_days=30, **settings_fields):
        """Active restaurant with a current subscription and a default branch"""
        restaurant = Restaurant.objects.create(name=name or f'Restaurant {random_string(4)}')
        today = timezone.localdate()
        RestaurantSubscription.objects.create(
            restaurant=restaurant,
            period='MONTHLY',
            start_date=today - timedelta(days=1),
            end_date=today + timedelta(days=subscription_days),
        )
        RestaurantSettings.objects.create(restaurant=restaurant, **settings_fields)
        Branch.objects.create(restaurant=restaurant, name='Main Branch', code='MAIN', is_default=True)
        return restaurant

    @staticmethod
    def create_branch(restaurant, name=None, **kwargs):
        return Branch.objects.create(
            restaurant=restaurant,
            name=name or f'Branch {random_string(4)}',
            code=kwargs.pop('code', random_string(5).upper()),
            **kwargs
        )

    @staticmethod
    def create_role(role, restaurant=None, branch=None, user=None):
        user = user or TestDataFactory.create_user()
        if branch is None and restaurant is not None and role in ('cashier', 'kitchen'):
            branch = restaurant.default_branch
        UserRole.objects.create(user=user, role=role, restaurant=restaurant, branch=branch)
        return user

    @staticmethod
    def create_category(restaurant, name=None):
        return MenuCategory.objects.create(restaurant=restaurant, name=name or f'Category {random_string(4)}')

    @staticmethod
    def create_menu_item(restaurant, price='5.000', category=None, **kwargs):
        return MenuItem.objects.create(
            restaurant=restaurant,
            category=category or TestDataFactory.create_category(restaurant),
            name=kwargs.pop('name', f'Item {random_string(4)}'),
            price=Decimal(price),
            **kwargs
        )

    @staticmethod
    def create_table(restaurant, branch=None, code=None):
        return RestaurantTable.objects.create(
            restaurant=restaurant,
            branch=branch or restaurant.default_branch,
            table_name=f'Table {random_string(3)}',
            table_code=code or random_string(6).upper(),
        )

    @staticmethod
    def create_shift(cashier, restaurant, branch=None, opening_cash='0.000'):
        return Shift.objects.create(
            restaurant=restaurant,
            branch=branch or restaurant.default_branch,
            cashier=cashier,
            opening_cash=Decimal(opening_cash),
        )

    @staticmethod
    def create_order(shift, items=(), table=None, **kwargs):
        """Open order on ``shift``; ``items`` is a list of (menu_item, quantity)."""
        restaurant = shift.restaurant
        order = Order.objects.create(
            restaurant=restaurant,
            branch=shift.branch,
            shift=shift,
            table=table,
            order_type='DINE_IN' if table else 'TAKEAWAY',
            tax_rate=restaurant.get_settings().tax_rate,
            created_by=shift.cashier,
            **kwargs
        )
        for menu_item, quantity in items:
            OrderItem.objects.create(
                order=order, menu_item=menu_item, name=menu_item.name,
                price=menu_item.price, quantity=quantity,
            )
        order.refresh_from_db()
        return order

    @staticmethod
    def pay_order(order, method='cash', amount=None, status='paid'):
        """Mark an order paid without going through the payment flow"""
        Payment.objects.create(
            order=order, restaurant=order.restaurant, branch=order.branch,
            method=method, amount=Decimal(amount) if amount is not None else order.total,
        )
        Order.objects.filter(id=order.id).update(status=status)
        order.refresh_from_db()
        return order


class AuthenticatedAPIClient(APIClient):
    """API client with JWT authentication"""

    def authenticate_user(self, user):
        refresh = RefreshToken.for_user(user)
        self.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
        return self

    def logout(self):
        self.credentials()
