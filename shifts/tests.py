"""
Tests for shifts and the Z report
Tests: Refund allocation, Z report figures, Open/Close flow, Cash movements
"""
from decimal import Decimal

from django.test import SimpleTestCase, TestCase
from rest_framework import status

from authentication.models import AuditLog
from authentication.test_utils import AuthenticatedAPIClient, TestDataFactory
from orders.models import Refund
from shifts.models import Shift
from shifts.reports import allocate_refund, build_z_report


class RefundAllocationTests(SimpleTestCase):
    """Test splitting refunds across payment buckets"""

    def test_single_payment_takes_everything(self):
        allocation = allocate_refund('4', [{'method': 'visa', 'amount': '10'}])
        self.assertEqual(allocation['card'], Decimal('4'))
        self.assertEqual(allocation['cash'], Decimal('0'))

    def test_split_payment_is_proportional(self):
        allocation = allocate_refund('5', [
            {'method': 'cash', 'amount': '6'},
            {'method': 'zain_cash', 'amount': '4'},
        ])
        self.assertEqual(allocation['cash'], Decimal('3'))
        self.assertEqual(allocation['mobile'], Decimal('2'))

    def test_no_supported_payment_goes_to_cash(self):
        allocation = allocate_refund('2', [{'method': 'voucher', 'amount': '2'}])
        self.assertEqual(allocation['cash'], Decimal('2'))


class ZReportTests(SimpleTestCase):
    """Test Z report figures from plain rows"""

    def order(self, order_id, status='paid', total='11.600', subtotal='10.000', tax='1.600'):
        return {
            'id': order_id, 'status': status, 'subtotal': subtotal, 'discount_type': None,
            'discount_value': '0', 'tax_amount': tax, 'service_charge': '0', 'total': total,
        }

    def test_gross_refunds_and_cash_difference(self):
        report = build_z_report(
            {'opening_cash': '50', 'closing_cash': '60'},
            [self.order('a'), self.order('b', status='new'), self.order('c', status='cancelled')],
            [
                {'order_id': 'a', 'method': 'cash', 'amount': '11.600'},
                {'order_id': 'b', 'method': 'visa', 'amount': '11.600'},
            ],
            [{'order_id': 'a', 'amount': '5.800'}],
            [{'type': 'cash_in', 'amount': '5'}, {'type': 'cash_out', 'amount': '2'}],
        )
        self.assertEqual(report['order_count'], 2)
        self.assertEqual(report['cancelled_count'], 1)
        self.assertEqual(report['gross_sales'], Decimal('23.200'))
        self.assertEqual(report['refunds_total'], Decimal('5.800'))
        self.assertEqual(report['net_sales'], Decimal('17.400'))
        self.assertEqual(report['cash_refunds'], Decimal('5.800'))
        self.assertEqual(report['net_cash_payments'], Decimal('5.800'))
        self.assertEqual(report['net_card_payments'], Decimal('11.600'))
        self.assertEqual(report['refund_tax'], Decimal('0.800'))
        # 50 + 5.8 + 5 - 2
        self.assertEqual(report['expected_cash'], Decimal('58.800'))
        self.assertEqual(report['cash_difference'], Decimal('1.200'))

    def test_open_shift_has_no_difference(self):
        report = build_z_report({'opening_cash': '10', 'closing_cash': None}, [], [], [], [])
        self.assertEqual(report['expected_cash'], Decimal('10.000'))
        self.assertEqual(report['cash_difference'], Decimal('0.000'))
        self.assertEqual(report['average_order_value'], Decimal('0.000'))

    def test_net_is_not_clamped(self):
        report = build_z_report(
            {'opening_cash': '0', 'closing_cash': None},
            [self.order('a')],
            [{'order_id': 'a', 'method': 'cash', 'amount': '11.600'}],
            [{'order_id': 'a', 'amount': '11.600'}, {'order_id': 'x', 'amount': '3'}],
            [],
        )
        self.assertEqual(report['net_sales'], Decimal('-3.000'))


class ShiftFlowTests(TestCase):
    """Test opening and closing shifts"""

    def setUp(self):
        self.restaurant = TestDataFactory.create_restaurant()
        self.cashier = TestDataFactory.create_role('cashier', self.restaurant)
        self.client = AuthenticatedAPIClient().authenticate_user(self.cashier)
        self.burger = TestDataFactory.create_menu_item(self.restaurant, price='5.000')

    def test_open_shift(self):
        response = self.client.post('/api/shifts/open/', {'opening_cash': '20.000'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['status'], 'open')
        self.assertTrue(AuditLog.objects.filter(action='SHIFT_OPEN').exists())

        response = self.client.post('/api/shifts/open/', {'opening_cash': '20.000'}, format='json')
        self.assertEqual(response.data['code'], 'shift_already_open')

    def test_current_shift(self):
        response = self.client.get('/api/shifts/current/')
        self.assertIsNone(response.data['shift'])
        shift = TestDataFactory.create_shift(self.cashier, self.restaurant)
        response = self.client.get('/api/shifts/current/')
        self.assertEqual(response.data['shift']['id'], str(shift.id))

    def test_close_refused_with_open_orders(self):
        shift = TestDataFactory.create_shift(self.cashier, self.restaurant)
        TestDataFactory.create_order(shift, items=[(self.burger, 1)])
        held = TestDataFactory.create_order(shift)
        held.status = 'held'
        held.save()

        response = self.client.post('/api/shifts/close/', {'closing_cash': '0'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data['code'], 'open_orders_exist')
        self.assertEqual(response.data['details'], {'open_orders': 1, 'held_orders': 1})

        response = self.client.post('/api/shifts/close/', {'closing_cash': '0', 'confirm': True}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

    def test_close_stores_cash_difference(self):
        shift = TestDataFactory.create_shift(self.cashier, self.restaurant, opening_cash='50.000')
        order = TestDataFactory.create_order(shift, items=[(self.burger, 2)])
        TestDataFactory.pay_order(order)
        Refund.objects.create(
            order=order, restaurant=self.restaurant, amount=Decimal('1.600'),
            refund_type='partial', reason='Cold', refunded_by=self.cashier,
        )
        self.client.post('/api/shifts/cash-movement/', {'type': 'cash_out', 'amount': '5'}, format='json')

        response = self.client.post('/api/shifts/close/', {'closing_cash': '54.000'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        # 50 + 11.6 - 1.6 - 5
        self.assertEqual(response.data['z_report']['expected_cash'], Decimal('55.000'))
        self.assertEqual(response.data['z_report']['cash_difference'], Decimal('-1.000'))

        shift.refresh_from_db()
        self.assertEqual(shift.status, 'closed')
        self.assertEqual(shift.cash_difference, Decimal('-1.000'))
        log = AuditLog.objects.get(action='SHIFT_CLOSE')
        self.assertEqual(log.details['cash_difference'], '-1.000')

    def test_close_without_shift(self):
        response = self.client.post('/api/shifts/close/', {'closing_cash': '0'}, format='json')
        self.assertEqual(response.data['code'], 'no_open_shift')

    def test_cash_movement_amount_must_be_positive(self):
        TestDataFactory.create_shift(self.cashier, self.restaurant)
        response = self.client.post('/api/shifts/cash-movement/', {'type': 'cash_in', 'amount': '0'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_cashier_cannot_read_other_cashier_report(self):
        other = TestDataFactory.create_role('cashier', self.restaurant)
        shift = TestDataFactory.create_shift(other, self.restaurant)
        response = self.client.get(f'/api/shifts/{shift.id}/z-report/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_owner_exports_z_report(self):
        shift = TestDataFactory.create_shift(self.cashier, self.restaurant)
        owner = TestDataFactory.create_role('owner', self.restaurant)
        client = AuthenticatedAPIClient().authenticate_user(owner)
        response = client.get(f'/api/shifts/{shift.id}/z-report/export/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('spreadsheetml', response['Content-Type'])
        self.assertEqual(Shift.objects.get(id=shift.id).status, 'open')
