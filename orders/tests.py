"""
Tests for the order lifecycle
Tests: Totals and JOD rounding, Payment, Refunds, Hold/Resume, Kitchen, QR orders
"""
from decimal import Decimal

from django.test import SimpleTestCase, TestCase
from rest_framework import status

from authentication.exceptions import POSError
from authentication.models import AuditLog
from authentication.test_utils import AuthenticatedAPIClient, TestDataFactory
from orders import services
from orders.calculations import calculate_order_totals, calculate_subtotal, line_total, round_final_total
from orders.models import Order, Payment


class CalculationTests(SimpleTestCase):
    """Test order money arithmetic"""

    def test_final_total_rounds_half_up_to_one_decimal(self):
        self.assertEqual(round_final_total(Decimal('6.67')), Decimal('6.700'))
        self.assertEqual(round_final_total(Decimal('6.64')), Decimal('6.600'))
        self.assertEqual(round_final_total(Decimal('6.65')), Decimal('6.700'))

    def test_line_total_includes_modifiers(self):
        self.assertEqual(line_total('2.500', 3, modifiers=['0.250', '0.500']), Decimal('9.750'))

    def test_subtotal_skips_voided_lines(self):
        subtotal = calculate_subtotal([
            {'price': '4.000', 'quantity': 2},
            {'price': '9.000', 'quantity': 1, 'voided': True},
        ])
        self.assertEqual(subtotal, Decimal('8.000'))

    def test_order_of_operations(self):
        totals = calculate_order_totals(
            Decimal('10.000'), discount_type='percentage', discount_value=10,
            service_charge_rate=Decimal('0.10'), tax_rate=Decimal('0.16'),
        )
        self.assertEqual(totals['discount_amount'], Decimal('1.000'))
        self.assertEqual(totals['discounted_subtotal'], Decimal('9.000'))
        self.assertEqual(totals['service_charge'], Decimal('0.900'))
        self.assertEqual(totals['tax_amount'], Decimal('1.584'))
        self.assertEqual(totals['total_before_rounding'], Decimal('11.484'))
        self.assertEqual(totals['total'], Decimal('11.500'))

    def test_rounding_disabled_keeps_fils(self):
        totals = calculate_order_totals(Decimal('10.000'), tax_rate=Decimal('0.16'), rounding_enabled=False)
        self.assertEqual(totals['total'], Decimal('11.600'))
        totals = calculate_order_totals(Decimal('3.333'), currency='USD')
        self.assertEqual(totals['total'], Decimal('3.333'))

    def test_fixed_discount_cannot_go_negative(self):
        totals = calculate_order_totals(Decimal('5.000'), discount_type='fixed', discount_value='8')
        self.assertEqual(totals['discounted_subtotal'], Decimal('0'))
        self.assertEqual(totals['total'], Decimal('0.000'))


class OrderTestMixin:
    def setUp(self):
        self.restaurant = TestDataFactory.create_restaurant()
        self.branch = self.restaurant.default_branch
        self.cashier = TestDataFactory.create_role('cashier', self.restaurant)
        self.shift = TestDataFactory.create_shift(self.cashier, self.restaurant)
        self.burger = TestDataFactory.create_menu_item(self.restaurant, price='5.000', name='Burger')
        self.client = AuthenticatedAPIClient().authenticate_user(self.cashier)


class OrderEntryTests(OrderTestMixin, TestCase):
    """Test creating orders and editing lines"""

    def test_create_order_requires_open_shift(self):
        self.shift.status = 'closed'
        self.shift.save()
        response = self.client.post('/api/orders/create/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['code'], 'no_open_shift')

    def test_order_numbers_increase_per_day(self):
        first = self.client.post('/api/orders/create/', {}, format='json')
        second = self.client.post('/api/orders/create/', {}, format='json')
        self.assertEqual(first.status_code, status.HTTP_201_CREATED)
        self.assertEqual(second.data['order_number'], first.data['order_number'] + 1)
        self.assertEqual(first.data['shift'], self.shift.id)

    def test_add_item_updates_totals(self):
        order = TestDataFactory.create_order(self.shift)
        response = self.client.post(
            f'/api/orders/{order.id}/items/', {'menu_item_id': str(self.burger.id), 'quantity': 2}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(Decimal(response.data['subtotal']), Decimal('10.000'))
        self.assertEqual(Decimal(response.data['tax_amount']), Decimal('1.600'))
        self.assertEqual(Decimal(response.data['total']), Decimal('11.600'))

    def test_unavailable_item_is_rejected(self):
        self.burger.is_available = False
        self.burger.save()
        order = TestDataFactory.create_order(self.shift)
        response = self.client.post(
            f'/api/orders/{order.id}/items/', {'menu_item_id': str(self.burger.id)}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['code'], 'menu_item_unavailable')

    def test_void_requires_reason(self):
        order = TestDataFactory.create_order(self.shift, items=[(self.burger, 1)])
        item = order.items.first()
        with self.assertRaises(POSError) as ctx:
            services.void_item(item, '  ', self.cashier)
        self.assertEqual(ctx.exception.error_code, 'reason_required')

        services.void_item(item, 'Customer changed mind', self.cashier)
        order.refresh_from_db()
        self.assertEqual(order.total, Decimal('0.000'))
        self.assertTrue(AuditLog.objects.filter(action='ITEM_VOID').exists())

    def test_void_reason_must_be_text(self):
        order = TestDataFactory.create_order(self.shift, items=[(self.burger, 1)])
        item = order.items.first()
        response = self.client.post(
            f'/api/orders/items/{item.id}/void/', {'reason': {'text': 'Cold'}}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['code'], 'validation_error')
        item.refresh_from_db()
        self.assertFalse(item.voided)

    def test_sent_item_quantity_cannot_decrease(self):
        order = TestDataFactory.create_order(self.shift, items=[(self.burger, 3)])
        count, _ = services.send_to_kitchen(order, self.cashier)
        self.assertEqual(count, 1)
        item = order.items.first()
        item.refresh_from_db()
        with self.assertRaises(POSError) as ctx:
            services.update_item(item, self.cashier, quantity=1)
        self.assertEqual(ctx.exception.error_code, 'item_already_sent')
        self.assertEqual(services.send_to_kitchen(order, self.cashier), (0, None))


class HoldResumeTests(OrderTestMixin, TestCase):
    """Test holding and resuming orders"""

    def test_held_order_cannot_be_edited(self):
        order = TestDataFactory.create_order(self.shift)
        response = self.client.post(f'/api/orders/{order.id}/hold/')
        self.assertEqual(response.data['status'], 'held')

        response = self.client.post(
            f'/api/orders/{order.id}/items/', {'menu_item_id': str(self.burger.id)}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data['code'], 'order_held')

        response = self.client.post(f'/api/orders/{order.id}/resume/')
        self.assertEqual(response.data['status'], 'open')

    def test_held_order_cannot_be_paid(self):
        order = TestDataFactory.create_order(self.shift, items=[(self.burger, 1)])
        services.hold_order(order, self.cashier)
        response = self.client.post(
            f'/api/orders/{order.id}/complete-payment/',
            {'payments': [{'method': 'cash', 'amount': '10'}]}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data['code'], 'order_held')

    def test_cancel_requires_reason(self):
        order = TestDataFactory.create_order(self.shift)
        response = self.client.post(f'/api/orders/{order.id}/cancel/', {'reason': ''}, format='json')
        self.assertEqual(response.data['code'], 'reason_required')
        response = self.client.post(f'/api/orders/{order.id}/cancel/', {'reason': 'Walked out'}, format='json')
        self.assertEqual(response.data['status'], 'cancelled')
        self.assertEqual(response.data['cancelled_reason'], 'Walked out')

    def test_cancel_reason_must_be_text(self):
        order = TestDataFactory.create_order(self.shift, items=[(self.burger, 1)])
        response = self.client.post(f'/api/orders/{order.id}/cancel/', {'reason': ['late']}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['code'], 'validation_error')
        order.refresh_from_db()
        self.assertEqual(order.status, 'open')


class PaymentTests(OrderTestMixin, TestCase):
    """Test completing payments"""

    def setUp(self):
        super().setUp()
        self.order = TestDataFactory.create_order(self.shift, items=[(self.burger, 2)])

    def pay(self, payments, order=None):
        order = order or self.order
        return self.client.post(
            f'/api/orders/{order.id}/complete-payment/', {'payments': payments}, format='json'
        )

    def test_cash_payment_returns_change(self):
        response = self.pay([{'method': 'cash', 'amount': '20'}])
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['change'], Decimal('8.400'))
        self.assertEqual(response.data['new_status'], 'new')
        payment = Payment.objects.get(order=self.order)
        self.assertEqual(payment.amount, Decimal('11.600'))
        self.assertTrue(AuditLog.objects.filter(action='PAYMENT_COMPLETED').exists())

    def test_dine_in_order_becomes_paid(self):
        table = TestDataFactory.create_table(self.restaurant)
        order = TestDataFactory.create_order(self.shift, items=[(self.burger, 1)], table=table)
        response = self.pay([{'method': 'visa', 'amount': '5.8'}], order=order)
        self.assertEqual(response.data['new_status'], 'paid')

    def test_change_larger_than_last_cash_payment(self):
        response = self.pay([{'method': 'cash', 'amount': '20'}, {'method': 'cash', 'amount': '0.5'}])
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['change'], Decimal('8.900'))
        amounts = list(Payment.objects.filter(order=self.order).values_list('amount', flat=True))
        self.assertEqual(amounts, [Decimal('11.600')])

    def test_underpayment(self):
        response = self.pay([{'method': 'cash', 'amount': '10'}])
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['code'], 'underpayment')
        self.assertFalse(Payment.objects.filter(order=self.order).exists())

    def test_card_overpayment(self):
        response = self.pay([{'method': 'visa', 'amount': '12'}])
        self.assertEqual(response.data['code'], 'card_overpayment')

    def test_split_payment_with_card_must_be_exact(self):
        response = self.pay([{'method': 'visa', 'amount': '6'}, {'method': 'cash', 'amount': '6'}])
        self.assertEqual(response.data['code'], 'card_overpayment')
        response = self.pay([{'method': 'visa', 'amount': '6'}, {'method': 'cash', 'amount': '5.6'}])
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(Payment.objects.filter(order=self.order).count(), 2)

    def test_invalid_method(self):
        response = self.pay([{'method': 'bitcoin', 'amount': '12'}])
        self.assertEqual(response.data['code'], 'invalid_payment_method')

    def test_paid_order_cannot_be_paid_again(self):
        self.pay([{'method': 'cash', 'amount': '11.6'}])
        response = self.pay([{'method': 'cash', 'amount': '11.6'}])
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data['code'], 'order_not_open')

    def test_table_checkout_splits_payments(self):
        table = TestDataFactory.create_table(self.restaurant)
        first = TestDataFactory.create_order(self.shift, items=[(self.burger, 1)], table=table)
        second = TestDataFactory.create_order(self.shift, items=[(self.burger, 2)], table=table)
        result = services.complete_table_payment(
            [first, second], [{'method': 'cash', 'amount': '20'}], self.cashier
        )
        self.assertEqual(result['combined_total'], Decimal('17.400'))
        self.assertEqual(result['change'], Decimal('2.600'))
        total_paid = sum(p.amount for p in Payment.objects.filter(order__in=[first, second]))
        self.assertEqual(total_paid, Decimal('17.400'))
        first.refresh_from_db()
        self.assertEqual(first.status, 'paid')

    def test_table_checkout_never_stores_negative_cash(self):
        table = TestDataFactory.create_table(self.restaurant)
        first = TestDataFactory.create_order(self.shift, items=[(self.burger, 1)], table=table)
        second = TestDataFactory.create_order(self.shift, items=[(self.burger, 2)], table=table)
        result = services.complete_table_payment(
            [first, second],
            [{'method': 'cash', 'amount': '19'}, {'method': 'cash', 'amount': '1'}],
            self.cashier,
        )
        self.assertEqual(result['change'], Decimal('2.600'))
        payments = Payment.objects.filter(order__in=[first, second])
        self.assertFalse(payments.filter(amount__lte=0).exists())
        self.assertEqual(sum(p.amount for p in payments), Decimal('17.400'))


class RefundTests(OrderTestMixin, TestCase):
    """Test refund limits"""

    def setUp(self):
        super().setUp()
        order = TestDataFactory.create_order(self.shift, items=[(self.burger, 2)])
        self.order = TestDataFactory.pay_order(order)

    def test_partial_then_full(self):
        result = services.create_refund(self.order, '5', 'partial', 'Cold food', self.cashier)
        self.assertEqual(result['remaining_refundable'], Decimal('6.600'))
        self.assertFalse(result['is_fully_refunded'])

        with self.assertRaises(POSError) as ctx:
            services.create_refund(self.order, '7', 'partial', 'Again', self.cashier)
        self.assertEqual(ctx.exception.error_code, 'refund_exceeds')
        self.assertEqual(ctx.exception.extra['max_refundable'], '6.600')

        result = services.create_refund(self.order, '6.6', 'full', 'Again', self.cashier)
        self.assertTrue(result['is_fully_refunded'])
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, 'refunded')

    def test_refund_requires_reason(self):
        with self.assertRaises(POSError) as ctx:
            services.create_refund(self.order, '1', 'partial', ' ', self.cashier)
        self.assertEqual(ctx.exception.error_code, 'missing_fields')

    def test_unpaid_order_is_not_refundable(self):
        order = TestDataFactory.create_order(self.shift, items=[(self.burger, 1)])
        with self.assertRaises(POSError) as ctx:
            services.create_refund(order, '1', 'partial', 'x', self.cashier)
        self.assertEqual(ctx.exception.error_code, 'order_not_refundable')

    def test_refunded_order_cannot_be_reopened(self):
        services.create_refund(self.order, '1', 'partial', 'Late', self.cashier)
        self.order.refresh_from_db()
        with self.assertRaises(POSError) as ctx:
            services.reopen_order(self.order, self.cashier)
        self.assertEqual(ctx.exception.status_code, status.HTTP_409_CONFLICT)


class KitchenTests(OrderTestMixin, TestCase):
    """Test kitchen display transitions"""

    def test_transitions_follow_sequence(self):
        order = TestDataFactory.pay_order(TestDataFactory.create_order(self.shift, items=[(self.burger, 1)]), status='new')
        order = services.update_kds_status(order, 'in_progress', self.cashier)
        self.assertEqual(order.status, 'in_progress')
        with self.assertRaises(POSError) as ctx:
            services.update_kds_status(order, 'closed', self.cashier)
        self.assertEqual(ctx.exception.error_code, 'invalid_transition')

    def test_kds_requires_module(self):
        kitchen = TestDataFactory.create_role('kitchen', self.restaurant)
        client = AuthenticatedAPIClient().authenticate_user(kitchen)
        response = client.get('/api/orders/kds/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data['code'], 'module_disabled')


class QROrderTests(TestCase):
    """Test customer QR ordering and cashier confirmation"""

    def setUp(self):
        self.restaurant = TestDataFactory.create_restaurant(qr_enabled=True)
        self.table = TestDataFactory.create_table(self.restaurant, code='T1')
        self.burger = TestDataFactory.create_menu_item(self.restaurant, price='5.000')
        self.cashier = TestDataFactory.create_role('cashier', self.restaurant)
        self.shift = TestDataFactory.create_shift(self.cashier, self.restaurant)
        self.client = AuthenticatedAPIClient()

    def order_payload(self, **overrides):
        payload = {
            'restaurant_id': str(self.restaurant.id),
            'table_code': 'T1',
            'items': [{'menu_item_id': str(self.burger.id), 'quantity': 2}],
        }
        payload.update(overrides)
        return payload

    def test_create_qr_order_uses_menu_prices(self):
        response = self.client.post('/api/qr/orders/', self.order_payload(), format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        order = Order.objects.get(id=response.data['order_id'])
        self.assertEqual(order.status, 'pending')
        self.assertEqual(order.source, 'qr')
        self.assertEqual(order.total, Decimal('11.600'))

    def test_qr_disabled(self):
        settings_obj = self.restaurant.get_settings()
        settings_obj.qr_enabled = False
        settings_obj.save()
        response = self.client.post('/api/qr/orders/', self.order_payload(), format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data['code'], 'module_disabled')

    def test_quantity_limit_and_phone(self):
        payload = self.order_payload(items=[{'menu_item_id': str(self.burger.id), 'quantity': 100}])
        response = self.client.post('/api/qr/orders/', payload, format='json')
        self.assertEqual(response.data['code'], 'invalid_quantity')

        response = self.client.post('/api/qr/orders/', self.order_payload(customer_phone='abc'), format='json')
        self.assertEqual(response.data['code'], 'invalid_phone')

    def test_empty_order(self):
        response = self.client.post('/api/qr/orders/', self.order_payload(items=[]), format='json')
        self.assertEqual(response.data['code'], 'order_empty')

    def test_confirm_attaches_open_shift(self):
        order = services.create_qr_order(self.order_payload())
        self.client.authenticate_user(self.cashier)
        response = self.client.post(f'/api/orders/qr/{order.id}/confirm/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        order.refresh_from_db()
        self.assertEqual(order.status, 'confirmed')
        self.assertEqual(order.shift_id, self.shift.id)

        with self.assertRaises(POSError) as ctx:
            services.confirm_qr_order(order, self.cashier)
        self.assertEqual(ctx.exception.error_code, 'invalid_status')

    def test_reject_sets_reason(self):
        order = services.create_qr_order(self.order_payload())
        order = services.reject_qr_order(order, '', self.cashier)
        self.assertEqual(order.status, 'cancelled')
        self.assertEqual(order.cancelled_reason, 'Rejected by cashier')
        self.assertTrue(AuditLog.objects.filter(action='QR_ORDER_REJECTED').exists())

    def test_reject_reason_must_be_text(self):
        order = services.create_qr_order(self.order_payload())
        self.client.authenticate_user(self.cashier)
        response = self.client.post(f'/api/orders/qr/{order.id}/reject/', {'reason': ['spam']}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['code'], 'validation_error')
        order.refresh_from_db()
        self.assertNotEqual(order.status, 'cancelled')
