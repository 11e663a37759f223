"""
Tests for the help assistant
Tests: Scope guard, Intent detection, Alert rules, Alerts endpoint
"""
from datetime import timedelta
from decimal import Decimal

from django.test import SimpleTestCase, TestCase
from django.utils import timezone
from rest_framework import status

from authentication.test_utils import AuthenticatedAPIClient, TestDataFactory
from orders.models import Order
from .rules import evaluate_rules, get_rule, get_top_alert
from .scope_guard import check_scope, detect_intent


class ScopeGuardTests(SimpleTestCase):
    """Test in/out of scope classification"""

    def test_short_greeting(self):
        self.assertEqual(check_scope('hello'), {'in_scope': True, 'intent': 'greeting', 'confidence': 1.0})
        self.assertEqual(check_scope('مرحبا')['intent'], 'greeting')

    def test_out_of_scope_topic(self):
        result = check_scope("what's the weather")
        self.assertFalse(result['in_scope'])
        self.assertEqual(result['confidence'], 0.9)

    def test_long_unrelated_text(self):
        result = check_scope('tell me a joke please now')
        self.assertFalse(result['in_scope'])
        self.assertEqual(result['confidence'], 0.7)

    def test_pos_question(self):
        result = check_scope('How to refund an order')
        self.assertTrue(result['in_scope'])
        self.assertEqual(result['intent'], 'how_to')
        self.assertEqual(result['confidence'], 0.95)

    def test_pos_keyword_wins_over_out_of_scope(self):
        self.assertTrue(check_scope('recipe cost of menu item')['in_scope'])

    def test_report_intents_come_first(self):
        self.assertEqual(detect_intent('how to read the z report'), 'z_report')
        self.assertEqual(detect_intent('show me the sales summary'), 'sales_summary')
        self.assertEqual(detect_intent('open the drawer'), 'how_to')


class AlertRuleTests(SimpleTestCase):
    """Test rule evaluation on plain contexts"""

    def setUp(self):
        self.now = timezone.now()

    def ids(self, context):
        return [alert['id'] for alert in evaluate_rules(context, now=self.now)]

    def test_empty_context(self):
        self.assertEqual(self.ids({}), [])
        self.assertIsNone(get_top_alert({}, now=self.now))

    def test_cash_zero_amount(self):
        self.assertEqual(self.ids({'payment_method': 'cash', 'payment_amount': Decimal('0')}), ['cash_zero_amount'])
        self.assertEqual(self.ids({'payment_method': 'cash', 'payment_amount': None}), [])

    def test_held_order_threshold(self):
        context = {'order_status': 'held', 'order_held_at': self.now - timedelta(minutes=29)}
        self.assertEqual(self.ids(context), [])
        context['order_held_at'] = self.now - timedelta(minutes=31)
        self.assertEqual(self.ids(context), ['order_held_too_long'])

    def test_long_shift(self):
        context = {'shift_status': 'open', 'shift_opened_at': self.now - timedelta(hours=13)}
        self.assertEqual(self.ids(context), ['shift_open_too_long'])

    def test_voids_without_holds(self):
        context = {'void_count_this_shift': 5, 'hold_count_this_shift': 1}
        self.assertEqual(self.ids(context), ['void_instead_of_hold', 'excessive_voids'])
        context['hold_count_this_shift'] = 2
        self.assertEqual(self.ids(context), ['excessive_voids'])

    def test_high_refund_needs_average(self):
        context = {'refund_amount_this_shift': Decimal('30'), 'average_refund_amount': 0}
        self.assertEqual(self.ids(context), [])
        context['average_refund_amount'] = Decimal('10')
        self.assertEqual(self.ids(context), ['high_cash_refund'])

    def test_priority_order(self):
        context = {
            'training_mode': True,
            'failed_payment_count': 2,
            'order_status': 'open',
            'order_created_at': self.now - timedelta(minutes=20),
            'order_item_count': 2,
            'void_count_last_hour': 3,
        }
        self.assertEqual(
            self.ids(context),
            ['repeated_failed_payments', 'long_pending_order', 'repeated_void_actions', 'training_mode_active'],
        )
        self.assertEqual(get_top_alert(context, now=self.now)['id'], 'repeated_failed_payments')

    def test_get_rule_is_bilingual(self):
        rule = get_rule('kds_stuck_orders')
        self.assertEqual(rule['priority'], 75)
        self.assertIn('ar', rule['title'])
        self.assertIsNone(get_rule('training_mode_active')['suggestion'])
        with self.assertRaises(KeyError):
            get_rule('missing')


class AlertsEndpointTests(TestCase):
    """Test alerts built from the database"""

    def setUp(self):
        self.restaurant = TestDataFactory.create_restaurant()
        self.cashier = TestDataFactory.create_role('cashier', self.restaurant)
        self.shift = TestDataFactory.create_shift(self.cashier, self.restaurant)
        self.burger = TestDataFactory.create_menu_item(self.restaurant, price='5.000')

    def test_paying_held_order(self):
        order = TestDataFactory.create_order(self.shift, items=[(self.burger, 1)])
        order.status = 'held'
        order.save()
        client = AuthenticatedAPIClient().authenticate_user(self.cashier)
        response = client.post('/api/assistant/alerts/', {
            'order_id': str(order.id), 'last_action': 'payment_attempt',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([alert['id'] for alert in response.data['alerts']], ['cashier_pay_held_order'])

    def test_kitchen_stuck_orders(self):
        kitchen = TestDataFactory.create_role('kitchen', self.restaurant)
        order = TestDataFactory.create_order(self.shift, items=[(self.burger, 1)], status='new')
        Order.objects.filter(id=order.id).update(created_at=timezone.now() - timedelta(minutes=25))

        client = AuthenticatedAPIClient().authenticate_user(kitchen)
        response = client.post('/api/assistant/alerts/', {'kds_is_first_visit': True}, format='json')
        self.assertEqual([alert['id'] for alert in response.data['alerts']], ['kds_stuck_orders', 'kds_first_time'])

        response = client.post('/api/assistant/alerts/', {'kds_is_first_visit': True, 'top_only': True}, format='json')
        self.assertEqual(response.data['count'], 1)

    def test_scope_endpoint_replies_in_arabic(self):
        client = AuthenticatedAPIClient().authenticate_user(self.cashier)
        response = client.post('/api/assistant/scope/', {'message': 'hello', 'language': 'ar'}, format='json')
        self.assertEqual(response.data['intent'], 'greeting')
        self.assertIn('RestoPOS', response.data['reply'])

    def test_admin_is_refused(self):
        admin = TestDataFactory.create_role('system_admin')
        client = AuthenticatedAPIClient().authenticate_user(admin)
        response = client.post(
            '/api/assistant/alerts/', {}, format='json', HTTP_X_RESTAURANT_ID=str(self.restaurant.id)
        )
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
