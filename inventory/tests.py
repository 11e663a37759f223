"""
Tests for stock keeping
Tests: Unit conversion, Manual movements, Transfers, Sale deduction, Recipes, Low stock
"""
from decimal import Decimal

from django.test import TestCase
from rest_framework import status

from authentication.exceptions import POSError
from authentication.models import AuditLog
from authentication.test_utils import AuthenticatedAPIClient, TestDataFactory
from inventory import services
from inventory.models import InventoryItem, InventoryTransaction, InventoryUnit, MenuItemRecipe, UnitConversion


class InventoryTestMixin:
    def setUp(self):
        self.restaurant = TestDataFactory.create_restaurant(inventory_enabled=True)
        self.branch = self.restaurant.default_branch
        self.owner = TestDataFactory.create_role('owner', self.restaurant)
        self.gram = InventoryUnit.objects.create(restaurant=self.restaurant, name='Gram', symbol='g')
        self.kilo = InventoryUnit.objects.create(restaurant=self.restaurant, name='Kilogram', symbol='kg')
        UnitConversion.objects.create(
            restaurant=self.restaurant, from_unit=self.kilo, to_unit=self.gram, multiplier=Decimal('1000')
        )
        self.beef = self.create_item('Beef', reorder_level='500')

    def create_item(self, name, branch=None, reorder_level='0'):
        item = InventoryItem.objects.create(
            restaurant=self.restaurant, branch=branch or self.branch, name=name,
            base_unit=self.gram, reorder_level=Decimal(reorder_level),
        )
        services.get_stock_level(item)
        return item

    def stock(self, item, qty, unit=None):
        services.create_transaction(
            self.restaurant, self.owner, item.branch_id, item.id, 'INITIAL_STOCK', qty,
            unit_id=unit.id if unit else None,
        )
        item.refresh_from_db()


class ConversionTests(InventoryTestMixin, TestCase):
    """Test unit conversion"""

    def test_direct_conversion_multiplies(self):
        self.assertEqual(services.convert_to_base(Decimal('2'), self.kilo, self.gram), Decimal('2000'))

    def test_reverse_conversion_divides(self):
        self.assertEqual(services.convert_to_base(Decimal('500'), self.gram, self.kilo), Decimal('0.5'))

    def test_missing_conversion_keeps_quantity(self):
        piece = InventoryUnit.objects.create(restaurant=self.restaurant, name='Piece', symbol='pc')
        self.assertEqual(services.convert_to_base(Decimal('3'), piece, self.gram), Decimal('3'))
        self.assertEqual(services.convert_to_base(Decimal('3'), None, self.gram), Decimal('3'))


class StockMovementTests(InventoryTestMixin, TestCase):
    """Test manual stock movements"""

    def test_initial_stock_in_other_unit(self):
        self.stock(self.beef, '1.5', unit=self.kilo)
        self.assertEqual(self.beef.on_hand, Decimal('1500.000'))
        txn = InventoryTransaction.objects.get(item=self.beef)
        self.assertEqual(txn.qty, Decimal('1.500'))
        self.assertEqual(txn.qty_in_base, Decimal('1500.000'))
        self.assertTrue(AuditLog.objects.filter(action='INVENTORY_INITIAL_STOCK').exists())

    def test_outgoing_movement_cannot_go_negative(self):
        self.stock(self.beef, '100')
        with self.assertRaises(POSError) as ctx:
            services.create_transaction(self.restaurant, self.owner, self.branch.id, self.beef.id, 'WASTE', '150')
        self.assertEqual(ctx.exception.error_code, 'insufficient_stock')

        txn, new_on_hand = services.create_transaction(
            self.restaurant, self.owner, self.branch.id, self.beef.id, 'WASTE', '40'
        )
        self.assertEqual(txn.qty_in_base, Decimal('-40.000'))
        self.assertEqual(new_on_hand, Decimal('60.000'))

    def test_sale_is_not_a_manual_type(self):
        with self.assertRaises(POSError) as ctx:
            services.create_transaction(self.restaurant, self.owner, self.branch.id, self.beef.id, 'SALE', '1')
        self.assertEqual(ctx.exception.error_code, 'validation_error')

    def test_quantity_must_be_positive(self):
        with self.assertRaises(POSError) as ctx:
            services.create_transaction(self.restaurant, self.owner, self.branch.id, self.beef.id, 'ADJUSTMENT_IN', '0')
        self.assertEqual(ctx.exception.error_code, 'invalid_quantity')

    def test_unit_of_other_restaurant(self):
        other = TestDataFactory.create_restaurant()
        foreign = InventoryUnit.objects.create(restaurant=other, name='Gram', symbol='g')
        with self.assertRaises(POSError) as ctx:
            services.create_transaction(
                self.restaurant, self.owner, self.branch.id, self.beef.id, 'ADJUSTMENT_IN', '1', unit_id=foreign.id
            )
        self.assertEqual(ctx.exception.error_code, 'unit_mismatch')


class TransferTests(InventoryTestMixin, TestCase):
    """Test transfers between branches"""

    def test_transfer_creates_destination_item(self):
        self.stock(self.beef, '1000')
        second = TestDataFactory.create_branch(self.restaurant, name='Sweifieh')
        moved = services.transfer(
            self.restaurant, self.owner, self.branch.id, second.id,
            [{'item_id': self.beef.id, 'qty': '0.25', 'unit_id': self.kilo.id}],
        )
        self.assertEqual(len(moved), 1)
        self.beef.refresh_from_db()
        self.assertEqual(self.beef.on_hand, Decimal('750.000'))
        target = InventoryItem.objects.get(branch=second, name='Beef')
        self.assertEqual(target.on_hand, Decimal('250.000'))
        self.assertEqual(target.reorder_level, self.beef.reorder_level)

    def test_same_branch_rejected(self):
        with self.assertRaises(POSError):
            services.transfer(self.restaurant, self.owner, self.branch.id, self.branch.id,
                              [{'item_id': self.beef.id, 'qty': '1'}])

    def test_insufficient_source_stock_rolls_back(self):
        self.stock(self.beef, '10')
        second = TestDataFactory.create_branch(self.restaurant)
        with self.assertRaises(POSError) as ctx:
            services.transfer(self.restaurant, self.owner, self.branch.id, second.id,
                              [{'item_id': self.beef.id, 'qty': '20'}])
        self.assertEqual(ctx.exception.error_code, 'insufficient_stock')
        self.assertFalse(InventoryTransaction.objects.filter(txn_type='TRANSFER_OUT').exists())


class SaleDeductionTests(InventoryTestMixin, TestCase):
    """Test recipe deduction when an order is paid"""

    def setUp(self):
        super().setUp()
        self.bun = self.create_item('Bun')
        self.burger = TestDataFactory.create_menu_item(self.restaurant, price='5.000', name='Burger')
        recipe = MenuItemRecipe.objects.create(restaurant=self.restaurant, menu_item=self.burger)
        services.save_recipe_lines(recipe, [
            {'inventory_item': self.beef, 'qty': Decimal('0.15'), 'unit': self.kilo},
            {'inventory_item': self.bun, 'qty': Decimal('1'), 'unit': None},
        ])
        self.cashier = TestDataFactory.create_role('cashier', self.restaurant)
        self.shift = TestDataFactory.create_shift(self.cashier, self.restaurant)

    def test_recipe_lines_store_base_quantity(self):
        line = self.burger.recipe.lines.get(inventory_item=self.beef)
        self.assertEqual(line.qty_in_base, Decimal('150.000'))

    def test_deduction_with_negative_warning(self):
        self.stock(self.beef, '1000')
        order = TestDataFactory.pay_order(TestDataFactory.create_order(self.shift, items=[(self.burger, 2)]))

        result = services.deduct_for_order(order, self.cashier)
        self.assertTrue(result['success'])
        self.assertEqual(result['deducted_count'], 2)
        self.beef.refresh_from_db()
        self.bun.refresh_from_db()
        self.assertEqual(self.beef.on_hand, Decimal('700.000'))
        self.assertEqual(self.bun.on_hand, Decimal('-2.000'))
        self.assertEqual([w['name'] for w in result['warnings']], ['Bun'])
        self.assertTrue(AuditLog.objects.filter(action='INVENTORY_NEGATIVE_AFTER_SALE').exists())

    def test_deduction_runs_once(self):
        order = TestDataFactory.pay_order(TestDataFactory.create_order(self.shift, items=[(self.burger, 1)]))
        services.deduct_for_order(order)
        result = services.deduct_for_order(order)
        self.assertTrue(result['success'])
        self.assertEqual(InventoryTransaction.objects.filter(txn_type='SALE').count(), 2)

    def test_unpaid_order_is_skipped(self):
        order = TestDataFactory.create_order(self.shift, items=[(self.burger, 1)])
        result = services.deduct_for_order(order)
        self.assertFalse(result['success'])
        self.assertFalse(InventoryTransaction.objects.filter(txn_type='SALE').exists())

    def test_payment_returns_inventory_warnings(self):
        order = TestDataFactory.create_order(self.shift, items=[(self.burger, 1)])
        client = AuthenticatedAPIClient().authenticate_user(self.cashier)
        response = client.post(
            f'/api/orders/{order.id}/complete-payment/',
            {'payments': [{'method': 'cash', 'amount': '5.8'}]}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data['inventory_warnings']), 2)


class InventoryApiTests(InventoryTestMixin, TestCase):
    """Test inventory endpoints"""

    def setUp(self):
        super().setUp()
        self.client = AuthenticatedAPIClient().authenticate_user(self.owner)

    def test_module_disabled(self):
        settings_obj = self.restaurant.get_settings()
        settings_obj.inventory_enabled = False
        settings_obj.save()
        response = self.client.get('/api/inventory/items/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data['code'], 'module_disabled')

    def test_create_transaction_endpoint(self):
        response = self.client.post('/api/inventory/transactions/create/', {
            'branch_id': str(self.branch.id),
            'item_id': str(self.beef.id),
            'txn_type': 'ADJUSTMENT_IN',
            'qty': '2',
            'unit_id': str(self.kilo.id),
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['new_on_hand'], '2000.000')

    def test_low_stock(self):
        self.stock(self.beef, '400')
        response = self.client.get('/api/inventory/items/low-stock/')
        self.assertEqual(response.data['count'], 1)

    def test_cashier_reads_but_cannot_write(self):
        cashier = TestDataFactory.create_role('cashier', self.restaurant)
        client = AuthenticatedAPIClient().authenticate_user(cashier)
        self.assertEqual(client.get('/api/inventory/items/').status_code, status.HTTP_200_OK)
        response = client.post('/api/inventory/units/', {'name': 'Litre', 'symbol': 'l'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_conversion_to_itself_rejected(self):
        response = self.client.post('/api/inventory/conversions/', {
            'from_unit': str(self.gram.id), 'to_unit': str(self.gram.id), 'multiplier': '1',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
