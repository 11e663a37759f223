"""
Tests for the menu catalogue
Tests: Owner management, Cashier visibility, Branch overrides, Search
"""
from decimal import Decimal

from django.test import TestCase
from rest_framework import status

from authentication.test_utils import AuthenticatedAPIClient, TestDataFactory
from .models import BranchMenuItem, MenuItem


class MenuManagementTests(TestCase):
    """Test menu changes by owners"""

    def setUp(self):
        self.restaurant = TestDataFactory.create_restaurant()
        self.owner = TestDataFactory.create_role('owner', self.restaurant)
        self.category = TestDataFactory.create_category(self.restaurant, name='Grill')
        self.client = AuthenticatedAPIClient().authenticate_user(self.owner)

    def test_owner_creates_item(self):
        response = self.client.post('/api/menu/items/', {
            'category': str(self.category.id), 'name': 'Shish Tawook', 'price': '4.250',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        item = MenuItem.objects.get(name='Shish Tawook')
        self.assertEqual(item.restaurant, self.restaurant)
        self.assertEqual(item.price, Decimal('4.250'))

    def test_cashier_cannot_create_item(self):
        cashier = TestDataFactory.create_role('cashier', self.restaurant)
        client = AuthenticatedAPIClient().authenticate_user(cashier)
        response = client.post('/api/menu/items/', {
            'category': str(self.category.id), 'name': 'Kofta', 'price': '3.000',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_bulk_availability(self):
        first = TestDataFactory.create_menu_item(self.restaurant, category=self.category)
        second = TestDataFactory.create_menu_item(self.restaurant, category=self.category)
        response = self.client.post('/api/menu/items/bulk-availability/', {
            'menu_item_ids': [str(first.id), str(second.id)], 'is_available': False,
        }, format='json')
        self.assertEqual(response.data['updated_count'], 2)
        self.assertFalse(MenuItem.objects.filter(is_available=True).exists())

        response = self.client.post('/api/menu/items/bulk-availability/', {}, format='json')
        self.assertEqual(response.data['code'], 'missing_fields')

    def test_items_of_other_restaurant_are_hidden(self):
        other = TestDataFactory.create_restaurant()
        foreign = TestDataFactory.create_menu_item(other)
        response = self.client.get(f'/api/menu/items/{foreign.id}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)


class CashierMenuTests(TestCase):
    """Test what cashiers see"""

    def setUp(self):
        self.restaurant = TestDataFactory.create_restaurant()
        self.cashier = TestDataFactory.create_role('cashier', self.restaurant)
        self.client = AuthenticatedAPIClient().authenticate_user(self.cashier)
        self.burger = TestDataFactory.create_menu_item(self.restaurant, price='5.000', name='Burger')

    def names(self):
        return [row['name'] for row in self.client.get('/api/menu/items/').data]

    def test_unavailable_items_hidden(self):
        TestDataFactory.create_menu_item(self.restaurant, name='Mansaf', is_available=False)
        self.assertEqual(self.names(), ['Burger'])

    def test_branch_override(self):
        BranchMenuItem.objects.create(
            branch=self.restaurant.default_branch, menu_item=self.burger, price=Decimal('4.500')
        )
        rows = self.client.get('/api/menu/items/').data
        self.assertEqual(rows[0]['price'], '4.500')

        BranchMenuItem.objects.filter(menu_item=self.burger).update(is_available=False)
        self.assertEqual(self.names(), [])

    def test_search(self):
        response = self.client.get('/api/menu/items/search/?q=burg')
        self.assertEqual(response.data['results_count'], 1)
        response = self.client.get('/api/menu/items/search/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
