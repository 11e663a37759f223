"""
Tests for the system admin console and owner reports
Tests: Restaurant creation, Renewal, Branch limit, Owner assignment, Modules, User accounts, Sales reports
"""
from datetime import date, timedelta
from decimal import Decimal

from django.test import TestCase
from django.utils import timezone
from rest_framework import status

from authentication.models import AuditLog, CustomUser, Restaurant, UserRole
from authentication.test_utils import AuthenticatedAPIClient, TestDataFactory
from backoffice import reports
from orders.models import Order, Refund

ADMIN_URL = '/api/backoffice/admin/restaurants/'


class AdminConsoleTests(TestCase):
    """Test system admin restaurant management"""

    def setUp(self):
        self.admin = TestDataFactory.create_role('system_admin')
        self.client = AuthenticatedAPIClient().authenticate_user(self.admin)
        self.restaurant = TestDataFactory.create_restaurant()

    def test_only_admins_allowed(self):
        owner = TestDataFactory.create_role('owner', self.restaurant)
        client = AuthenticatedAPIClient().authenticate_user(owner)
        response = client.get(ADMIN_URL)
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_create_restaurant(self):
        response = self.client.post(f'{ADMIN_URL}create/', {
            'name': ' Hummus House ',
            'period': 'QUARTERLY',
            'start_date': '2024-01-31',
            'bonus_months': 9,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['subscription']['end_date'], '2024-10-31')
        self.assertEqual(response.data['subscription']['bonus_months'], 6)

        restaurant = Restaurant.objects.get(name='Hummus House')
        self.assertEqual(restaurant.default_branch.code, 'MAIN')
        self.assertTrue(AuditLog.objects.filter(action='SUBSCRIPTION_CREATED', restaurant=restaurant).exists())

    def test_renew_reactivates_expired_subscription(self):
        subscription = self.restaurant.subscription
        subscription.end_date = timezone.localdate() - timedelta(days=3)
        subscription.status = 'EXPIRED'
        subscription.save()

        response = self.client.post(
            f'{ADMIN_URL}{self.restaurant.id}/renew/', {'period': 'MONTHLY', 'reason': 'Paid cash'}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        subscription.refresh_from_db()
        self.assertEqual(subscription.status, 'ACTIVE')
        self.assertTrue(subscription.is_active)

    def test_branch_limit_validation(self):
        url = f'{ADMIN_URL}{self.restaurant.id}/branch-limit/'
        for value in (0, -1, 2.5, 'three', True):
            response = self.client.post(url, {'max_branches_allowed': value}, format='json')
            self.assertEqual(response.data['code'], 'invalid_branch_limit', value)

        response = self.client.post(url, {'max_branches_allowed': 3}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        log = AuditLog.objects.get(action='RESTAURANT_BRANCH_LIMIT_UPDATED')
        self.assertEqual(log.details, {'old_max_branches_allowed': None, 'new_max_branches_allowed': 3})

        response = self.client.post(url, {'max_branches_allowed': None}, format='json')
        self.assertIsNone(response.data['max_branches_allowed'])

    def test_assign_new_owner(self):
        response = self.client.post(f'{ADMIN_URL}{self.restaurant.id}/assign-owner/', {
            'email': 'Owner@Example.com', 'password': 'Zaatar-2024-Pos',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        user = CustomUser.objects.get(email='owner@example.com')
        self.assertEqual(user.user_role.role, 'owner')
        self.restaurant.refresh_from_db()
        self.assertEqual(self.restaurant.owner, user)

    def test_assign_owner_rejects_staff_account(self):
        cashier = TestDataFactory.create_role('cashier', self.restaurant)
        response = self.client.post(
            f'{ADMIN_URL}{self.restaurant.id}/assign-owner/', {'email': cashier.email}, format='json'
        )
        self.assertEqual(response.data['code'], 'validation_error')
        self.assertEqual(UserRole.objects.get(user=cashier).role, 'cashier')

    def test_moving_owner_releases_previous_restaurant(self):
        previous = TestDataFactory.create_restaurant()
        owner = TestDataFactory.create_role('owner', previous)
        previous.owner = owner
        previous.save()

        response = self.client.post(
            f'{ADMIN_URL}{self.restaurant.id}/assign-owner/', {'email': owner.email}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        previous.refresh_from_db()
        self.restaurant.refresh_from_db()
        self.assertIsNone(previous.owner)
        self.assertEqual(self.restaurant.owner, owner)
        self.assertEqual(UserRole.objects.get(user=owner).restaurant, self.restaurant)
        log = AuditLog.objects.get(action='OWNER_ASSIGNED')
        self.assertEqual(log.details['released_restaurant_ids'], [str(previous.id)])

    def test_toggle_modules(self):
        response = self.client.post(
            f'{ADMIN_URL}{self.restaurant.id}/modules/', {'inventory_enabled': True}, format='json'
        )
        self.assertTrue(response.data['inventory_enabled'])
        self.assertFalse(response.data['kds_enabled'])
        log = AuditLog.objects.get(action='MODULES_UPDATED')
        self.assertEqual(log.details['changes']['inventory_enabled'], {'old': False, 'new': True})

    def test_reset_owner_password(self):
        owner = TestDataFactory.create_role('owner', self.restaurant)
        self.restaurant.owner = owner
        self.restaurant.save()
        url = f'{ADMIN_URL}{self.restaurant.id}/reset-owner-password/'

        response = self.client.post(url, {'new_password': '123'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = self.client.post(url, {'new_password': 'fresh-secret'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        owner.refresh_from_db()
        self.assertTrue(owner.check_password('fresh-secret'))

    def test_deactivated_restaurant_blocks_staff(self):
        self.client.post(f'{ADMIN_URL}{self.restaurant.id}/set-active/', {'is_active': False}, format='json')
        owner = TestDataFactory.create_role('owner', self.restaurant)
        client = AuthenticatedAPIClient().authenticate_user(owner)
        response = client.get('/api/branches/')
        self.assertEqual(response.data['code'], 'restaurant_inactive')


class AdminUserTests(TestCase):
    """Test system admin account maintenance"""

    def setUp(self):
        self.admin = TestDataFactory.create_role('system_admin')
        self.client = AuthenticatedAPIClient().authenticate_user(self.admin)
        self.restaurant = TestDataFactory.create_restaurant()
        self.owner = TestDataFactory.create_role('owner', self.restaurant)

    def test_update_email(self):
        response = self.client.post(
            f'/api/backoffice/admin/users/{self.owner.id}/email/', {'new_email': 'New.Owner@Example.com'}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.owner.refresh_from_db()
        self.assertEqual(self.owner.email, 'new.owner@example.com')
        log = AuditLog.objects.get(action='USER_EMAIL_UPDATED')
        self.assertEqual(log.restaurant, self.restaurant)

    def test_update_email_taken(self):
        response = self.client.post(
            f'/api/backoffice/admin/users/{self.owner.id}/email/', {'new_email': self.admin.email}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data['code'], 'email_taken')

    def test_delete_user(self):
        self.restaurant.owner = self.owner
        self.restaurant.save()
        response = self.client.post(f'/api/backoffice/admin/users/{self.owner.id}/delete/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(CustomUser.objects.filter(id=self.owner.id).exists())
        self.restaurant.refresh_from_db()
        self.assertIsNone(self.restaurant.owner)
        self.assertTrue(AuditLog.objects.filter(action='USER_DELETED', entity_id=str(self.owner.id)).exists())

    def test_admin_accounts_are_not_deleted(self):
        other_admin = TestDataFactory.create_role('system_admin')
        for user in (self.admin, other_admin):
            response = self.client.post(f'/api/backoffice/admin/users/{user.id}/delete/')
            self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
            self.assertEqual(response.data['code'], 'cannot_delete_user')

    def test_user_with_shifts_is_kept(self):
        cashier = TestDataFactory.create_role('cashier', self.restaurant)
        TestDataFactory.create_shift(cashier, self.restaurant)
        response = self.client.post(f'/api/backoffice/admin/users/{cashier.id}/delete/')
        self.assertEqual(response.data['code'], 'staff_has_shifts')

    def test_owner_cannot_use_admin_endpoints(self):
        client = AuthenticatedAPIClient().authenticate_user(self.owner)
        response = client.post(f'/api/backoffice/admin/users/{self.owner.id}/email/', {'new_email': 'x@example.com'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class SalesReportTests(TestCase):
    """Test owner reports"""

    def setUp(self):
        self.restaurant = TestDataFactory.create_restaurant()
        self.cashier = TestDataFactory.create_role('cashier', self.restaurant)
        self.owner = TestDataFactory.create_role('owner', self.restaurant)
        self.shift = TestDataFactory.create_shift(self.cashier, self.restaurant)
        self.burger = TestDataFactory.create_menu_item(self.restaurant, price='5.000', name='Burger')
        self.fries = TestDataFactory.create_menu_item(self.restaurant, price='2.000', name='Fries')
        self.client = AuthenticatedAPIClient().authenticate_user(self.owner)

    def paid_order(self, items, method='cash'):
        return TestDataFactory.pay_order(TestDataFactory.create_order(self.shift, items=items), method=method)

    def test_daily_sales_counts_refunds_on_refund_day(self):
        today = timezone.localdate()
        order = self.paid_order([(self.burger, 2)], method='visa')
        self.paid_order([(self.fries, 1)])
        TestDataFactory.create_order(self.shift, items=[(self.burger, 1)])
        Refund.objects.create(order=order, restaurant=self.restaurant, amount=Decimal('2.000'),
                              refund_type='partial', reason='Cold')

        rows = reports.daily_sales(self.restaurant, None, today - timedelta(days=1), today)
        self.assertEqual(len(rows), 2)
        self.assertEqual(rows[0]['order_count'], 0)
        row = rows[1]
        self.assertEqual(row['order_count'], 2)
        self.assertEqual(row['gross_sales'], Decimal('13.900'))
        self.assertEqual(row['refunds_total'], Decimal('2.000'))
        self.assertEqual(row['net_sales'], Decimal('11.900'))
        self.assertEqual(row['card'], Decimal('9.600'))
        self.assertEqual(row['cash'], Decimal('2.300'))

    def test_daily_summary_endpoint(self):
        self.paid_order([(self.burger, 1)])
        cancelled = TestDataFactory.create_order(self.shift)
        Order.objects.filter(id=cancelled.id).update(status='cancelled')

        response = self.client.get('/api/backoffice/reports/daily-summary/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['order_count'], 1)
        self.assertEqual(response.data['cancelled_count'], 1)
        self.assertEqual(response.data['open_shifts'], 1)
        self.assertEqual(response.data['average_order_value'], Decimal('5.800'))

    def test_best_sellers(self):
        self.paid_order([(self.burger, 1), (self.fries, 3)])
        response = self.client.get('/api/backoffice/reports/best-sellers/')
        self.assertEqual(response.data['best_sellers'][0]['name'], 'Fries')
        self.assertEqual(response.data['best_sellers'][0]['quantity'], 3)
        self.assertEqual(response.data['worst_sellers'][0]['name'], 'Burger')

    def test_item_sales_revenue(self):
        self.paid_order([(self.burger, 2)])
        self.paid_order([(self.burger, 1), (self.fries, 1)])
        today = timezone.localdate()
        rows = reports.item_sales(self.restaurant, None, today, today)
        self.assertEqual([row['name'] for row in rows], ['Burger', 'Fries'])
        self.assertEqual(rows[0]['quantity'], 3)
        self.assertEqual(rows[0]['revenue'], Decimal('15.000'))
        self.assertEqual(rows[0]['order_count'], 2)
        self.assertEqual(rows[1]['revenue'], Decimal('2.000'))

    def test_invalid_date_range(self):
        response = self.client.get('/api/backoffice/reports/sales-summary/?start_date=2024-02-10&end_date=2024-02-01')
        self.assertEqual(response.data['code'], 'validation_error')
        response = self.client.get('/api/backoffice/reports/sales-summary/?start_date=yesterday')
        self.assertEqual(response.data['code'], 'validation_error')

    def test_cash_differences_sorted(self):
        matched = TestDataFactory.create_shift(self.cashier, self.restaurant)
        short = TestDataFactory.create_shift(self.cashier, self.restaurant)
        now = timezone.now()
        for shift, difference in ((matched, '0'), (short, '-2.500')):
            shift.status = 'closed'
            shift.closed_at = now
            shift.cash_difference = Decimal(difference)
            shift.save()

        rows = reports.cash_differences(self.restaurant, None, date.today() - timedelta(days=1), date.today() + timedelta(days=1))
        self.assertEqual([row['shift_id'] for row in rows], [str(short.id), str(matched.id)])

    def test_cashier_cannot_view_reports(self):
        client = AuthenticatedAPIClient().authenticate_user(self.cashier)
        response = client.get('/api/backoffice/reports/sales-summary/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_export_sales_summary(self):
        self.paid_order([(self.burger, 1)])
        response = self.client.get('/api/backoffice/reports/sales-summary/export/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('attachment', response['Content-Disposition'])
